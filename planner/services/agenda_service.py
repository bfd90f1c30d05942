"""
Agenda Service - builds the list of recurring tasks and events for one day.

Uses the relevance check of the RecurrenceExpander to filter rules, then
attaches the instance already stored for that day (status, completion).
"""

import datetime
import logging
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from planner.domain.models import ItemType, RecurrenceInstance, RecurrenceRule
from planner.infra.repository import InstanceRepository
from planner.services.occurrence_generator import DateLike, day_window
from planner.services.recurrence_expander import RecurrenceExpander

logger = logging.getLogger(__name__)


class AgendaEntry(BaseModel):
    """One recurring item that occurs on the agenda day."""
    rule: RecurrenceRule
    instance: Optional[RecurrenceInstance] = None

    @property
    def item_type(self) -> ItemType:
        return self.rule.item_type

    @property
    def item_id(self) -> Optional[int]:
        return self.rule.item_id


class DayAgenda(BaseModel):
    """Recurring tasks and events occurring on one day."""
    date: datetime.date
    tasks: List[AgendaEntry] = Field(default_factory=list)
    events: List[AgendaEntry] = Field(default_factory=list)


class AgendaService:
    """
    Answers "what recurs today" questions for the workspace views.
    """

    def __init__(self, expander: Optional[RecurrenceExpander] = None,
                 instance_repo: Optional[InstanceRepository] = None):
        self.expander = expander or RecurrenceExpander()
        self.instance_repo = instance_repo or InstanceRepository()

    async def is_relevant_for_date(self, rule: Optional[RecurrenceRule], target: DateLike) -> bool:
        """
        Check if an item shows up on the given day.

        Items without a rule are not recurring and are always relevant.
        """
        if rule is None:
            return True

        window = day_window(target)
        occurrences = await self.expander.expand(rule, window.start, window.end)
        return any(o.date() == window.start.date() for o in occurrences)

    async def occurrences_in_range(self, rule: RecurrenceRule, start: DateLike,
                                   end: DateLike) -> List[datetime.datetime]:
        """Expand a rule into concrete dates, exceptions applied"""
        return await self.expander.expand(rule, start, end)

    async def build_day(self, task_rules: Sequence[RecurrenceRule],
                        event_rules: Sequence[RecurrenceRule],
                        target: DateLike) -> DayAgenda:
        """
        Build the agenda of recurring tasks and events for one day.

        Args:
            task_rules: Rules owned by tasks
            event_rules: Rules owned by events
            target: The day

        Returns:
            DayAgenda with one entry per relevant rule, in input order
        """
        day = day_window(target).start.date()
        if not task_rules and not event_rules:
            return DayAgenda(date=day)

        relevant = await self.expander.relevant_ids_for_date(task_rules, event_rules, target)
        task_ids = set(relevant.task_ids)
        event_ids = set(relevant.event_ids)

        instances = await self.instance_repo.get_for_rules_on_date([*task_ids, *event_ids], day)

        agenda = DayAgenda(
            date=day,
            tasks=[
                AgendaEntry(rule=rule, instance=instances.get(rule.id))
                for rule in task_rules if rule.id in task_ids
            ],
            events=[
                AgendaEntry(rule=rule, instance=instances.get(rule.id))
                for rule in event_rules if rule.id in event_ids
            ],
        )
        logger.info(f"Agenda for {day}: {len(agenda.tasks)} tasks, {len(agenda.events)} events")
        return agenda
