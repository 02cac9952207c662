import pytest
from datetime import datetime, timedelta
from salepages.flash_sales.sale_window import (
    ENDED_REMAINING_SECONDS,
    SaleStatus,
    SaleWindow,
    evaluate,
    evaluate_record,
)


START_MS = 1000000
END_MS = 2000000


def test_active_in_the_middle_of_the_window():
    assert evaluate(1500000, START_MS, END_MS) == (SaleStatus.ACTIVE, 0)


def test_not_started_reports_whole_seconds_until_start():
    assert evaluate(500000, START_MS, END_MS) == (SaleStatus.NOT_STARTED, 500)


def test_ended_reports_sentinel():
    assert evaluate(2500000, START_MS, END_MS) == (SaleStatus.ENDED, -1)
    assert ENDED_REMAINING_SECONDS == -1


@pytest.mark.parametrize("now", [START_MS, END_MS])
def test_window_is_inclusive_at_both_ends(now):
    assert evaluate(now, START_MS, END_MS) == (SaleStatus.ACTIVE, 0)


def test_partial_seconds_are_truncated():
    # 1999 ms before start is one whole second
    assert evaluate(START_MS - 1999, START_MS, END_MS).remaining_seconds == 1
    # under one second left still reads 0 while not started
    window = evaluate(START_MS - 1, START_MS, END_MS)
    assert window == (SaleStatus.NOT_STARTED, 0)


def test_countdown_never_increases_as_start_approaches():
    previous = None
    for now in range(0, START_MS, 37013):
        window = evaluate(now, START_MS, END_MS)
        assert window.status is SaleStatus.NOT_STARTED
        assert window.remaining_seconds >= 0
        if previous is not None:
            assert window.remaining_seconds <= previous
        previous = window.remaining_seconds


def test_single_instant_window():
    assert evaluate(START_MS, START_MS, START_MS) == (SaleStatus.ACTIVE, 0)
    assert evaluate(START_MS + 1, START_MS, START_MS) == (SaleStatus.ENDED, -1)


def test_inverted_window_is_not_rejected():
    # start after end: the start comparison runs first, so there is no active instant
    assert evaluate(1500, 2000, 1000) == (SaleStatus.NOT_STARTED, 0)
    assert evaluate(2000, 2000, 1000) == (SaleStatus.ENDED, -1)
    assert evaluate(500, 2000, 1000) == (SaleStatus.NOT_STARTED, 1)


def test_datetime_inputs():
    start = datetime(2024, 11, 11, 0, 0, 0)
    end = start + timedelta(hours=2)

    window = evaluate(start - timedelta(minutes=1, milliseconds=500), start, end)
    assert window == (SaleStatus.NOT_STARTED, 60)
    assert evaluate(start + timedelta(hours=1), start, end) == (SaleStatus.ACTIVE, 0)
    assert evaluate(end + timedelta(microseconds=1), start, end) == (SaleStatus.ENDED, -1)


def test_evaluate_record_reads_sale_timestamps():
    start = datetime(2024, 6, 18, 20, 0)
    record = {"id": 7, "sale_start": start, "sale_end": start + timedelta(hours=1)}

    assert evaluate_record(record, start - timedelta(seconds=90)) == (SaleStatus.NOT_STARTED, 90)


def test_status_codes_at_the_boundary():
    assert [s.code for s in SaleStatus] == [0, 1, 2]
    assert SaleWindow(SaleStatus.NOT_STARTED, 12).to_dict() == {"status": 0, "remainingSeconds": 12}
