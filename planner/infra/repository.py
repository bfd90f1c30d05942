"""
Repository Pattern Implementation.

Architecture Decision: Why Repository Pattern?
Separates data access logic from the recurrence engine. Makes it easy to:
- Preload exceptions for many rules in a single query
- Mock data for testing
- Change data sources (local DB to cloud API)
"""

import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Union

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from planner.domain.errors import RuleNotFoundError
from planner.domain.models import (
    ItemType,
    RecurrenceException,
    RecurrenceInstance,
    RecurrenceRule,
)
from planner.infra.db import (
    RecurrenceExceptionModel,
    RecurrenceInstanceModel,
    RecurrenceRuleModel,
    get_engine,
)

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


class RuleRepository:
    """
    Handles all RecurrenceRule-related database operations.

    Converts between domain models (Pydantic) and ORM models (SQLAlchemy).
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()

    async def get_by_id(self, rule_id: int) -> Optional[RecurrenceRule]:
        """Get a specific rule by ID"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(RecurrenceRuleModel).where(RecurrenceRuleModel.id == rule_id)
            )
            model = result.scalar_one_or_none()
            return RecurrenceRule.model_validate(model) if model else None

    async def get_or_raise(self, rule_id: int) -> RecurrenceRule:
        """Get a rule by ID, raising RuleNotFoundError when it does not exist"""
        rule = await self.get_by_id(rule_id)
        if rule is None:
            raise RuleNotFoundError(rule_id)
        return rule

    async def get_all(self, item_type: Optional[ItemType] = None) -> List[RecurrenceRule]:
        """Get all rules, optionally only those owned by one item type"""
        session = await self._get_session()
        async with session:
            stmt = select(RecurrenceRuleModel)
            if item_type is not None:
                stmt = stmt.where(RecurrenceRuleModel.item_type == item_type.value)

            result = await session.execute(stmt.order_by(RecurrenceRuleModel.id))
            return [RecurrenceRule.model_validate(m) for m in result.scalars().all()]

    async def get_for_items(self, item_type: ItemType, item_ids: Iterable[int]) -> List[RecurrenceRule]:
        """Get the rules attached to the given tasks or events"""
        ids = list(item_ids)
        if not ids:
            return []

        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(RecurrenceRuleModel)
                .where(RecurrenceRuleModel.item_type == item_type.value)
                .where(RecurrenceRuleModel.item_id.in_(ids))
                .order_by(RecurrenceRuleModel.id)
            )
            return [RecurrenceRule.model_validate(m) for m in result.scalars().all()]

    async def create(self, rule: RecurrenceRule) -> RecurrenceRule:
        """Create a new rule"""
        session = await self._get_session()
        async with session:
            recurrence_type = rule.recurrence_type
            if rule.kind is not None:
                recurrence_type = rule.kind.value

            model = RecurrenceRuleModel(
                item_type=rule.item_type.value,
                item_id=rule.item_id,
                recurrence_type=recurrence_type,
                interval=rule.interval,
                days_of_week=rule.days_of_week_json(),
                start_datetime=rule.start_datetime,
                end_datetime=rule.end_datetime
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return RecurrenceRule.model_validate(model)


class InstanceRepository:
    """
    Handles RecurrenceInstance reads and writes.
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()

    async def create(self, instance: RecurrenceInstance) -> RecurrenceInstance:
        """Create a new instance"""
        session = await self._get_session()
        async with session:
            model = RecurrenceInstanceModel(
                rule_id=instance.rule_id,
                item_id=instance.item_id,
                instance_date=instance.instance_date,
                status=instance.status
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return RecurrenceInstance.model_validate(model)

    async def get_for_rules_on_date(self, rule_ids: Iterable[int],
                                    on_date: DateLike) -> Dict[int, RecurrenceInstance]:
        """
        Get the instance stored for each rule on one day, keyed by rule id.

        Rules without an instance on that day are absent from the result.
        """
        ids = list(rule_ids)
        if not ids:
            return {}

        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(RecurrenceInstanceModel)
                .where(RecurrenceInstanceModel.rule_id.in_(ids))
                .where(RecurrenceInstanceModel.instance_date == _as_date(on_date))
                .order_by(RecurrenceInstanceModel.id)
            )
            instances = {}
            for model in result.scalars().all():
                instances.setdefault(model.rule_id, RecurrenceInstance.model_validate(model))
            return instances


class ExceptionRepository:
    """
    Loads exception overrides for recurrence rules.

    An exception is in range when its own date falls in [start, end] or when
    the date of its replacement instance does. The replacement date is
    resolved in the same query.
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()

    async def get_for_rule(self, rule_id: int, start: DateLike, end: DateLike) -> List[RecurrenceException]:
        """Get the exceptions of one rule that touch [start, end]"""
        by_rule = await self.get_for_rules([rule_id], start, end)
        return by_rule.get(rule_id, [])

    async def get_for_rules(self, rule_ids: Iterable[int], start: DateLike,
                            end: DateLike) -> Dict[int, List[RecurrenceException]]:
        """
        Get the exceptions of many rules in one query, grouped by rule id.

        Args:
            rule_ids: Owning rule ids
            start: Start of range (inclusive)
            end: End of range (inclusive)

        Returns:
            Mapping of rule id to its exceptions; rules without any are absent
        """
        ids = sorted(set(rule_ids))
        if not ids:
            return {}

        start_date = _as_date(start)
        end_date = _as_date(end)

        session = await self._get_session()
        async with session:
            stmt = (
                select(RecurrenceExceptionModel, RecurrenceInstanceModel.instance_date)
                .outerjoin(
                    RecurrenceInstanceModel,
                    RecurrenceExceptionModel.replacement_instance_id == RecurrenceInstanceModel.id
                )
                .where(RecurrenceExceptionModel.rule_id.in_(ids))
                .where(
                    or_(
                        RecurrenceExceptionModel.exception_date.between(start_date, end_date),
                        RecurrenceInstanceModel.instance_date.between(start_date, end_date)
                    )
                )
                .order_by(RecurrenceExceptionModel.exception_date, RecurrenceExceptionModel.id)
            )
            result = await session.execute(stmt)

            grouped: Dict[int, List[RecurrenceException]] = {}
            for model, instance_date in result.all():
                exception = RecurrenceException.model_validate(model).model_copy(
                    update={"replacement_date": instance_date}
                )
                grouped.setdefault(model.rule_id, []).append(exception)

        logger.debug(
            f"Loaded exceptions for {len(grouped)}/{len(ids)} rules between {start_date} and {end_date}"
        )
        return grouped

    async def create(self, exception: RecurrenceException) -> RecurrenceException:
        """Create a new exception"""
        session = await self._get_session()
        async with session:
            model = RecurrenceExceptionModel(
                rule_id=exception.rule_id,
                exception_date=exception.exception_date,
                is_deleted=exception.is_deleted,
                replacement_instance_id=exception.replacement_instance_id,
                reason=exception.reason,
                created_by=exception.created_by
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return RecurrenceException.model_validate(model)
