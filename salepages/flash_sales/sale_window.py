from datetime import timedelta
from enum import Enum
from typing import Any, Dict, Mapping, NamedTuple


# remaining_seconds reported once a sale is over; not a countdown
ENDED_REMAINING_SECONDS = -1


class SaleStatus(Enum):
    NOT_STARTED = 0
    ACTIVE = 1
    ENDED = 2

    @property
    def code(self) -> int:
        """Integer code exposed to clients (0/1/2)"""
        return self.value


class SaleWindow(NamedTuple):
    status: SaleStatus
    remaining_seconds: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "status": self.status.code,
            "remainingSeconds": self.remaining_seconds,
        }


def evaluate(now, start, end) -> SaleWindow:
    """Classify a sale window relative to ``now``.

    Instants may be datetimes or integer epoch milliseconds, as long as all
    three are the same kind. The window is inclusive at both ends. A window
    whose start is after its end is not rejected here.
    """
    if now < start:
        return SaleWindow(SaleStatus.NOT_STARTED, _whole_seconds(start - now))
    if now > end:
        return SaleWindow(SaleStatus.ENDED, ENDED_REMAINING_SECONDS)
    return SaleWindow(SaleStatus.ACTIVE, 0)


def evaluate_record(record: Mapping[str, Any], now) -> SaleWindow:
    """Evaluate the sale window stored on a goods record"""
    return evaluate(now, record["sale_start"], record["sale_end"])


def _whole_seconds(delta) -> int:
    # delta is always positive here, so floor and truncation agree
    if isinstance(delta, timedelta):
        return delta // timedelta(seconds=1)
    return int(delta // 1000)
