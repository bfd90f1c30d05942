"""
Tests for recurrence domain model validation.
"""

import datetime
import pytest
from pydantic import ValidationError

from planner.domain.models import ItemType, RecurrenceRule, RecurrenceType


class TestDaysOfWeek:

    def test_accepts_list(self):
        rule = RecurrenceRule(recurrence_type="weekly", days_of_week=[1, 3, 1])
        assert rule.days_of_week == frozenset({1, 3})

    def test_accepts_stored_json(self):
        rule = RecurrenceRule(recurrence_type="weekly", days_of_week="[0, 6]")
        assert rule.days_of_week == frozenset({0, 6})

    @pytest.mark.parametrize("raw", [None, "", "   ", "not json", "{\"a\": 1}", "3"])
    def test_missing_or_undecodable_degrades_to_empty(self, raw):
        rule = RecurrenceRule(recurrence_type="weekly", days_of_week=raw)
        assert rule.days_of_week == frozenset()

    @pytest.mark.parametrize("raw", [[7], [-1], "[1, 9]", ["mon"], [True]])
    def test_out_of_range_or_non_integer_is_rejected(self, raw):
        with pytest.raises(ValidationError):
            RecurrenceRule(recurrence_type="weekly", days_of_week=raw)

    def test_json_encoding_is_sorted(self):
        rule = RecurrenceRule(recurrence_type="weekly", days_of_week=[5, 1])
        assert rule.days_of_week_json() == "[1, 5]"
        assert RecurrenceRule().days_of_week_json() is None


class TestRecurrenceType:

    @pytest.mark.parametrize("raw, kind", [
        ("daily", RecurrenceType.DAILY),
        ("weekly", RecurrenceType.WEEKLY),
        ("monthly", RecurrenceType.MONTHLY),
        ("yearly", RecurrenceType.YEARLY),
    ])
    def test_known_kinds_parse_to_enum(self, raw, kind):
        rule = RecurrenceRule(recurrence_type=raw)
        assert rule.recurrence_type is kind
        assert rule.kind is kind

    def test_unknown_kind_is_kept_as_string(self):
        rule = RecurrenceRule(recurrence_type="custom")
        assert rule.recurrence_type == "custom"
        assert rule.kind is None


class TestBounds:

    def test_unbounded_without_start_and_end(self):
        assert RecurrenceRule().is_unbounded

    def test_end_only_is_not_unbounded(self):
        rule = RecurrenceRule(end_datetime=datetime.datetime(2025, 1, 31))
        assert not rule.is_unbounded

    def test_defaults(self):
        rule = RecurrenceRule()
        assert rule.item_type is ItemType.TASK
        assert rule.interval == 1
