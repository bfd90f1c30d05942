"""
SQLAlchemy ORM models.
Separated from db.py for cleaner imports.
"""

from .db import RecurrenceRuleModel, RecurrenceInstanceModel, RecurrenceExceptionModel, Base

__all__ = ["RecurrenceRuleModel", "RecurrenceInstanceModel", "RecurrenceExceptionModel", "Base"]
