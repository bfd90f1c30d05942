"""
Tests for applying skip/move exceptions to generated occurrences.
"""

import datetime

from planner.domain.models import RecurrenceException
from planner.services.exception_overlay import apply_exceptions, excluded_dates
from planner.services.occurrence_generator import Window


def d(year, month, day):
    return datetime.datetime(year, month, day)


JANUARY = Window(d(2025, 1, 1), datetime.datetime(2025, 1, 31, 23, 59, 59, 999999))
CANDIDATES = [d(2025, 1, 6), d(2025, 1, 8), d(2025, 1, 20), d(2025, 1, 22)]


def skip(day):
    return RecurrenceException(rule_id=1, exception_date=day, is_deleted=True)


def move(day, to, instance_id=99):
    return RecurrenceException(
        rule_id=1,
        exception_date=day,
        replacement_instance_id=instance_id,
        replacement_date=to,
    )


def test_no_exceptions_keeps_candidates():
    assert apply_exceptions(CANDIDATES, [], JANUARY) == CANDIDATES


def test_deleted_exception_removes_exactly_that_date():
    result = apply_exceptions(CANDIDATES, [skip(datetime.date(2025, 1, 8))], JANUARY)
    assert result == [d(2025, 1, 6), d(2025, 1, 20), d(2025, 1, 22)]


def test_replacement_moves_occurrence():
    result = apply_exceptions(
        CANDIDATES, [move(datetime.date(2025, 1, 8), datetime.date(2025, 1, 9))], JANUARY
    )
    assert result == [d(2025, 1, 6), d(2025, 1, 9), d(2025, 1, 20), d(2025, 1, 22)]


def test_replacement_onto_existing_occurrence_is_not_duplicated():
    result = apply_exceptions(
        CANDIDATES, [move(datetime.date(2025, 1, 8), datetime.date(2025, 1, 20))], JANUARY
    )
    assert result == [d(2025, 1, 6), d(2025, 1, 20), d(2025, 1, 22)]


def test_replacement_outside_window_only_removes_original():
    result = apply_exceptions(
        CANDIDATES, [move(datetime.date(2025, 1, 22), datetime.date(2025, 2, 3))], JANUARY
    )
    assert result == [d(2025, 1, 6), d(2025, 1, 8), d(2025, 1, 20)]


def test_replacement_without_deleted_flag_still_excludes_original():
    exception = move(datetime.date(2025, 1, 6), datetime.date(2025, 1, 7))
    assert exception.is_deleted is False
    assert excluded_dates([exception]) == {datetime.date(2025, 1, 6)}


def test_replacement_with_unresolved_instance_only_excludes():
    exception = RecurrenceException(
        rule_id=1, exception_date=datetime.date(2025, 1, 6), replacement_instance_id=5
    )
    assert apply_exceptions(CANDIDATES, [exception], JANUARY) == CANDIDATES[1:]


def test_inactive_exception_has_no_effect():
    exception = RecurrenceException(rule_id=1, exception_date=datetime.date(2025, 1, 6))
    assert apply_exceptions(CANDIDATES, [exception], JANUARY) == CANDIDATES


def test_result_is_sorted_and_unique():
    shuffled = [d(2025, 1, 22), d(2025, 1, 6), d(2025, 1, 22), d(2025, 1, 8)]
    result = apply_exceptions(
        shuffled, [move(datetime.date(2025, 1, 30), datetime.date(2025, 1, 2))], JANUARY
    )
    assert result == [d(2025, 1, 2), d(2025, 1, 6), d(2025, 1, 8), d(2025, 1, 22)]
