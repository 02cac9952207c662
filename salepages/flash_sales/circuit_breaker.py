import logging
import time
from enum import Enum
from threading import Lock
from typing import Any, Callable, Optional, Tuple, Type


logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"  # Normal operation
    OPEN = "open"      # Store is failing, skip calls
    HALF_OPEN = "half_open"  # Probing whether the store recovered


class CircuitBreakerOpenError(Exception):
    """Raised when a call is rejected because the circuit is open"""
    pass


class CircuitBreaker:
    """Circuit breaker guarding calls to a shared cache store.

    Only exceptions listed in ``expected_exceptions`` count as failures;
    anything else propagates without touching the failure count.
    """

    def __init__(
        self,
        name: str = "cache",
        failure_threshold: int = 5,
        timeout_seconds: float = 30,
        success_threshold: int = 1,
        expected_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.timeout_seconds = timeout_seconds
        self.success_threshold = success_threshold
        self.expected_exceptions = expected_exceptions
        self.clock = clock

        self.failure_count = 0
        self.success_count = 0
        self.opened_at: Optional[float] = None
        self.state = CircuitState.CLOSED
        self.lock = Lock()

    def call(self, func: Callable, *args, **kwargs) -> Any:
        """Execute ``func`` through the breaker"""
        self._before_call()
        try:
            result = func(*args, **kwargs)
        except self.expected_exceptions:
            self._on_failure()
            raise
        self._on_success()
        return result

    def _before_call(self):
        with self.lock:
            if self.state != CircuitState.OPEN:
                return
            if self.clock() - self.opened_at < self.timeout_seconds:
                raise CircuitBreakerOpenError(f"Circuit '{self.name}' is OPEN")
            self.state = CircuitState.HALF_OPEN
            self.success_count = 0
            logger.info("Circuit half-open", extra={"circuit": self.name})

    def _on_success(self):
        with self.lock:
            self.failure_count = 0
            if self.state == CircuitState.HALF_OPEN:
                self.success_count += 1
                if self.success_count >= self.success_threshold:
                    self.state = CircuitState.CLOSED
                    self.success_count = 0
                    self.opened_at = None
                    logger.info("Circuit closed", extra={"circuit": self.name})

    def _on_failure(self):
        with self.lock:
            self.failure_count += 1
            if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
                if self.state != CircuitState.OPEN:
                    logger.warning(
                        "Circuit opened",
                        extra={"circuit": self.name, "failures": self.failure_count},
                    )
                self.state = CircuitState.OPEN
                self.opened_at = self.clock()

    def reset(self):
        """Manually close the circuit"""
        with self.lock:
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            self.success_count = 0
            self.opened_at = None

    def get_state(self) -> CircuitState:
        return self.state
