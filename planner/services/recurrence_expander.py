"""
Recurrence Expander - expands rules into occurrences and answers, in batch,
which rules fire on a given day.

Architecture Decision: One overlay, injectable exceptions
Generation and overlay are pure and synchronous. Exceptions either come
preloaded from the caller or are read through the ExceptionRepository; the
batched read for many rules is a performance concern only and goes through
the same overlay code.
"""

import datetime
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from planner.domain.models import RecurrenceException, RecurrenceRule, RelevantIds
from planner.infra.repository import ExceptionRepository
from planner.services.exception_overlay import apply_exceptions, excluded_dates
from planner.services.occurrence_generator import (
    DateLike,
    Window,
    day_window,
    effective_window,
    generate,
    requested_window,
    start_of_day,
)

logger = logging.getLogger(__name__)


def _every_day(window: Window) -> List[datetime.datetime]:
    """Midnight of every day inside the window"""
    one_day = datetime.timedelta(days=1)
    current = start_of_day(window.start)
    if current < window.start:
        if window.end - current < one_day:
            return []
        current += one_day

    days = []
    while current <= window.end:
        days.append(current)
        # Stop before stepping past datetime.max
        if window.end - current < one_day:
            break
        current += one_day
    return days


class RecurrenceExpander:
    """
    Expands recurrence rules into concrete occurrence dates.

    Stateless apart from its collaborators, so one instance can serve
    concurrent requests.
    """

    def __init__(self, exception_repo: Optional[ExceptionRepository] = None,
                 strict_types: bool = False):
        """
        Args:
            exception_repo: Loader used when no exceptions are preloaded
            strict_types: Raise on unknown recurrence kinds instead of
                producing no occurrences
        """
        self.exception_repo = exception_repo or ExceptionRepository()
        self.strict_types = strict_types

    def expand_with_exceptions(self, rule: RecurrenceRule, start: DateLike, end: DateLike,
                               exceptions: Iterable[RecurrenceException]) -> List[datetime.datetime]:
        """
        Expand a rule with an already known set of exceptions.

        Unbounded rules fire every day of the requested range.
        """
        if rule.is_unbounded:
            window = requested_window(start, end)
            if window.start > window.end:
                return []
            candidates = _every_day(window)
        else:
            window = effective_window(rule, start, end)
            if window is None:
                return []
            candidates = generate(rule, start, end, strict_types=self.strict_types)

        return apply_exceptions(candidates, exceptions, window)

    async def expand(self, rule: RecurrenceRule, start: DateLike, end: DateLike,
                     preloaded_exceptions: Optional[Sequence[RecurrenceException]] = None
                     ) -> List[datetime.datetime]:
        """
        Expand a rule into ordered, duplicate-free occurrences within [start, end].

        Args:
            rule: Rule to expand
            start: Range start (inclusive)
            end: Range end (inclusive)
            preloaded_exceptions: Exceptions of this rule; loaded on demand when None

        Returns:
            Ascending list of occurrence date-times
        """
        if preloaded_exceptions is None:
            preloaded_exceptions = await self._load_for_rule(rule, start, end)
        return self.expand_with_exceptions(rule, start, end, preloaded_exceptions)

    async def expand_many(self, rules: Sequence[RecurrenceRule], start: DateLike,
                          end: DateLike) -> Dict[int, List[datetime.datetime]]:
        """Expand several rules with a single exception preload, keyed by rule id"""
        exceptions_by_rule = await self._load_for_rules(rules, start, end)
        return {
            rule.id: self.expand_with_exceptions(rule, start, end, exceptions_by_rule.get(rule.id, []))
            for rule in rules
            if rule.id is not None
        }

    def select_relevant(self, rules: Iterable[RecurrenceRule], target: DateLike,
                        exceptions_by_rule: Mapping[int, Sequence[RecurrenceException]]) -> List[int]:
        """
        Ids of the rules that have an occurrence on the target day.

        Args:
            rules: Rules to test
            target: The day
            exceptions_by_rule: Preloaded exceptions keyed by rule id
        """
        window = day_window(target)
        target_day = window.start.date()

        ids = []
        for rule in rules:
            if rule.id is None:
                continue
            exceptions = exceptions_by_rule.get(rule.id, [])

            if rule.is_unbounded:
                fires = self._unbounded_fires(target_day, exceptions)
            else:
                occurrences = self.expand_with_exceptions(rule, window.start, window.end, exceptions)
                fires = any(o.date() == target_day for o in occurrences)

            if fires:
                ids.append(rule.id)
        return ids

    async def relevant_ids(self, rules: Sequence[RecurrenceRule], target: DateLike) -> List[int]:
        """Ids of the rules that fire on the target day"""
        window = day_window(target)
        exceptions_by_rule = await self._load_for_rules(rules, window.start, window.end)
        return self.select_relevant(rules, target, exceptions_by_rule)

    async def relevant_ids_for_date(self, task_rules: Sequence[RecurrenceRule],
                                    event_rules: Sequence[RecurrenceRule],
                                    target: DateLike) -> RelevantIds:
        """
        Task and event rule ids that fire on the target day.

        Exceptions for both sets are loaded in one query.
        """
        window = day_window(target)
        exceptions_by_rule = await self._load_for_rules(
            [*task_rules, *event_rules], window.start, window.end
        )
        return RelevantIds(
            task_ids=self.select_relevant(task_rules, target, exceptions_by_rule),
            event_ids=self.select_relevant(event_rules, target, exceptions_by_rule),
        )

    @staticmethod
    def _unbounded_fires(day: datetime.date, exceptions: Sequence[RecurrenceException]) -> bool:
        for exception in exceptions:
            if exception.replacement_instance_id is not None and exception.replacement_date == day:
                return True
        return day not in excluded_dates(exceptions)

    async def _load_for_rule(self, rule: RecurrenceRule, start: DateLike,
                             end: DateLike) -> List[RecurrenceException]:
        # Unsaved rules cannot have stored exceptions
        if rule.id is None:
            return []
        window = requested_window(start, end)
        return await self.exception_repo.get_for_rule(rule.id, window.start, window.end)

    async def _load_for_rules(self, rules: Iterable[RecurrenceRule], start: DateLike,
                              end: DateLike) -> Dict[int, List[RecurrenceException]]:
        rule_ids = [rule.id for rule in rules if rule.id is not None]
        window = requested_window(start, end)
        logger.debug(f"Preloading exceptions for {len(rule_ids)} rules")
        return await self.exception_repo.get_for_rules(rule_ids, window.start, window.end)
