"""Domain layer - Pure business entities and logic"""

from .models import (
    ItemType,
    RecurrenceException,
    RecurrenceInstance,
    RecurrenceRule,
    RecurrenceType,
    RelevantIds,
)
from .errors import PlannerError, RuleNotFoundError, UnknownRecurrenceTypeError

__all__ = [
    "ItemType",
    "RecurrenceException",
    "RecurrenceInstance",
    "RecurrenceRule",
    "RecurrenceType",
    "RelevantIds",
    "PlannerError",
    "RuleNotFoundError",
    "UnknownRecurrenceTypeError",
]
