"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
Rules and exceptions arrive from the database (ORM rows) and from seed/config
data. Pydantic validates them once at that boundary, so the generator and the
overlay can work with clean, typed values.
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Annotated, FrozenSet, List, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecurrenceType(str, Enum):
    """The four supported recurrence kinds."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ItemType(str, Enum):
    """Kind of workspace item that owns a recurrence rule."""
    TASK = "task"
    EVENT = "event"


# Sunday=0 ... Saturday=6
WEEKDAY_RANGE = range(0, 7)


def parse_days_of_week(value) -> FrozenSet[int]:
    """
    Normalize stored weekday data into a set of ints 0-6.

    Accepts an iterable of ints or the JSON-encoded list kept in the database.
    Missing, blank or undecodable values give an empty set (the generator then
    falls back to the weekday of the rule start). Values outside 0-6 are rejected.
    """
    if value is None:
        return frozenset()

    if isinstance(value, str):
        if not value.strip():
            return frozenset()
        try:
            value = json.loads(value)
        except ValueError:
            return frozenset()
        if not isinstance(value, list):
            return frozenset()

    days = set()
    for day in value:
        if isinstance(day, bool) or not isinstance(day, int):
            raise ValueError(f"Weekday must be an integer 0-6, got {day!r}")
        if day not in WEEKDAY_RANGE:
            raise ValueError(f"Weekday out of range 0-6: {day}")
        days.add(day)
    return frozenset(days)


class RecurrenceRule(BaseModel):
    """
    A recurrence definition attached to a task or an event.

    A rule with neither start nor end is "unbounded": it fires every day and is
    only ever evaluated through the relevance fast path.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    item_type: ItemType = ItemType.TASK
    item_id: Optional[int] = None

    # Unknown kinds read from storage are kept as plain strings
    recurrence_type: Annotated[
        Union[RecurrenceType, str], Field(union_mode="left_to_right")
    ] = RecurrenceType.DAILY
    interval: int = 1
    days_of_week: FrozenSet[int] = Field(default_factory=frozenset)

    start_datetime: Optional[datetime] = None
    end_datetime: Optional[datetime] = None

    @field_validator("interval", mode="before")
    @classmethod
    def clamp_interval(cls, value) -> int:
        if value is None:
            return 1
        return max(1, int(value))

    @field_validator("days_of_week", mode="before")
    @classmethod
    def validate_days_of_week(cls, value) -> FrozenSet[int]:
        return parse_days_of_week(value)

    @property
    def is_unbounded(self) -> bool:
        return self.start_datetime is None and self.end_datetime is None

    @property
    def kind(self) -> Optional[RecurrenceType]:
        """The recurrence kind, or None when the stored value is not recognized."""
        if isinstance(self.recurrence_type, RecurrenceType):
            return self.recurrence_type
        return None

    def days_of_week_json(self) -> Optional[str]:
        """Encode weekdays for storage"""
        if not self.days_of_week:
            return None
        return json.dumps(sorted(self.days_of_week))


class RecurrenceInstance(BaseModel):
    """A concrete record for one occurrence of a rule."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    rule_id: int
    item_id: Optional[int] = None
    instance_date: date
    status: Optional[str] = None


class RecurrenceException(BaseModel):
    """
    A per-date override on a rule.

    Either skips the occurrence on `exception_date` (is_deleted) or moves it to
    the date of the replacement instance. Both flags exclude the original date.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    rule_id: int
    exception_date: date
    is_deleted: bool = False
    replacement_instance_id: Optional[int] = None

    # Resolved from the replacement instance by the loader
    replacement_date: Optional[date] = None

    reason: Optional[str] = None
    created_by: Optional[int] = None

    @property
    def excludes_occurrence(self) -> bool:
        return self.is_deleted or self.replacement_instance_id is not None


class RelevantIds(NamedTuple):
    """Rule ids that fire on one date, split by owning item type."""
    task_ids: List[int]
    event_ids: List[int]
