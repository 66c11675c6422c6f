"""Tests for log retention pruning."""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from logite.exceptions import InvalidArgument, WriteError
from logite.logger import SECONDS_PER_DAY

from .conftest import NOW


def _seed(logite, clock, ages_in_seconds):
    """Write one entry per age, oldest first, then restore the clock."""
    for age in sorted(ages_in_seconds, reverse=True):
        clock.now = NOW - age
        logite.info(f"age={age}")
    clock.now = NOW


def test_clear_zero_removes_everything(logite, clock):
    _seed(logite, clock, [0, 60, 10 * SECONDS_PER_DAY])

    assert logite.clear(0) is logite
    assert logite.count() == 0


def test_clear_zero_on_empty_table(logite):
    logite.clear(0)
    assert logite.count() == 0


def test_clear_keeps_entries_within_window(logite, clock):
    """Entries exactly num_days old survive; older ones are removed."""
    two_days = 2 * SECONDS_PER_DAY
    _seed(logite, clock, [0, SECONDS_PER_DAY, two_days, two_days + 1, 30 * SECONDS_PER_DAY])

    logite.clear(2)

    remaining = [record.timestamp for record in logite.records()]
    assert remaining == [NOW - two_days, NOW - SECONDS_PER_DAY, NOW]


def test_clear_is_idempotent(logite, clock):
    _seed(logite, clock, [0, 3 * SECONDS_PER_DAY, 8 * SECONDS_PER_DAY])

    logite.clear(7)
    once = logite.records()
    logite.clear(7)

    assert logite.records() == once
    assert len(once) == 2


def test_clear_accepts_digit_strings(logite, clock):
    _seed(logite, clock, [0, 5 * SECONDS_PER_DAY])

    logite.clear("1")

    assert logite.count() == 1


def test_ids_continue_after_partial_clear(logite, clock):
    _seed(logite, clock, [0, 5 * SECONDS_PER_DAY])
    last_id = logite.records()[-1].id

    logite.clear(1)
    logite.info("fresh")

    assert logite.records()[-1].id > last_id


@pytest.mark.parametrize("num_days", [-1, "abc", 1.5, 2.0, "-3", "1.5", "", None, True, [1]])
def test_clear_rejects_invalid_days(logite, clock, num_days):
    """Malformed day counts fail before the table is touched."""
    _seed(logite, clock, [0, 10 * SECONDS_PER_DAY])

    with pytest.raises(InvalidArgument):
        logite.clear(num_days)

    assert logite.count() == 2


def test_vacuum_after_clear(logite, clock):
    _seed(logite, clock, [0, 10 * SECONDS_PER_DAY])

    assert logite.clear(0).vacuum() is logite
    logite.info("still writable")
    assert logite.count() == 1


@pytest.mark.parametrize("num_days", [10 ** 20, "99999999999999999999"])
def test_clear_with_huge_day_count_keeps_everything(logite, clock, num_days):
    """A window reaching past the smallest storable timestamp deletes nothing."""
    _seed(logite, clock, [0, 400 * SECONDS_PER_DAY])

    assert logite.clear(num_days) is logite

    assert logite.count() == 2


def test_clear_failure_raises_write_error(logite, clock):
    _seed(logite, clock, [0, 10 * SECONDS_PER_DAY])
    logite.connection.exec_driver_sql("DROP TABLE logite_log")

    with pytest.raises(WriteError) as excinfo:
        logite.clear(1)

    assert isinstance(excinfo.value.__cause__, SQLAlchemyError)
