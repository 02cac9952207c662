import pytest
from salepages.flash_sales.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError, CircuitState


class FakeClock:
    """Manually advanced monotonic clock"""
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class StoreDown(Exception):
    pass


def failing_function():
    """Function that always fails"""
    raise StoreDown("connection refused")


def succeeding_function():
    """Function that always succeeds"""
    return "success"


def open_breaker(breaker, failures):
    for _ in range(failures):
        with pytest.raises(StoreDown):
            breaker.call(failing_function)


def test_circuit_breaker_closed_state():
    breaker = CircuitBreaker(failure_threshold=3, timeout_seconds=60)

    assert breaker.call(succeeding_function) == "success"
    assert breaker.get_state() == CircuitState.CLOSED


def test_circuit_breaker_opens_after_failures():
    breaker = CircuitBreaker(failure_threshold=3, timeout_seconds=60)

    open_breaker(breaker, 2)
    assert breaker.get_state() == CircuitState.CLOSED
    open_breaker(breaker, 1)
    assert breaker.get_state() == CircuitState.OPEN


def test_circuit_breaker_rejects_when_open():
    breaker = CircuitBreaker(failure_threshold=2, timeout_seconds=60)
    open_breaker(breaker, 2)

    with pytest.raises(CircuitBreakerOpenError):
        breaker.call(succeeding_function)


def test_unexpected_exceptions_do_not_count():
    breaker = CircuitBreaker(failure_threshold=1, expected_exceptions=(StoreDown,))

    def buggy():
        raise KeyError("not a store failure")

    with pytest.raises(KeyError):
        breaker.call(buggy)
    assert breaker.get_state() == CircuitState.CLOSED


def test_half_open_after_timeout_then_closes():
    clock = FakeClock()
    breaker = CircuitBreaker(failure_threshold=2, timeout_seconds=30, success_threshold=2, clock=clock)
    open_breaker(breaker, 2)

    clock.now += 29
    with pytest.raises(CircuitBreakerOpenError):
        breaker.call(succeeding_function)

    clock.now += 2
    assert breaker.call(succeeding_function) == "success"
    assert breaker.get_state() == CircuitState.HALF_OPEN
    breaker.call(succeeding_function)
    assert breaker.get_state() == CircuitState.CLOSED


def test_failure_while_half_open_reopens():
    clock = FakeClock()
    breaker = CircuitBreaker(failure_threshold=3, timeout_seconds=10, clock=clock)
    open_breaker(breaker, 3)

    clock.now += 11
    open_breaker(breaker, 1)
    assert breaker.get_state() == CircuitState.OPEN
    with pytest.raises(CircuitBreakerOpenError):
        breaker.call(succeeding_function)


def test_circuit_breaker_reset():
    breaker = CircuitBreaker(failure_threshold=2, timeout_seconds=60)
    open_breaker(breaker, 2)
    assert breaker.get_state() == CircuitState.OPEN

    breaker.reset()

    assert breaker.get_state() == CircuitState.CLOSED
    assert breaker.call(succeeding_function) == "success"
