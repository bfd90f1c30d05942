"""Infrastructure layer - Database and persistence"""

from .db import DatabaseEngine, get_engine, init_db
from .models import RecurrenceRuleModel, RecurrenceInstanceModel, RecurrenceExceptionModel

__all__ = [
    "DatabaseEngine",
    "get_engine",
    "init_db",
    "RecurrenceRuleModel",
    "RecurrenceInstanceModel",
    "RecurrenceExceptionModel",
]
