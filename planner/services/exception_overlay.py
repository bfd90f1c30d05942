"""
Exception Overlay - applies skip/move overrides to generated occurrences.
"""

import datetime
from typing import Iterable, List, Set

from planner.domain.models import RecurrenceException
from planner.services.occurrence_generator import Window, start_of_day


def excluded_dates(exceptions: Iterable[RecurrenceException]) -> Set[datetime.date]:
    """Dates whose original occurrence is removed (skipped or moved away)"""
    return {e.exception_date for e in exceptions if e.excludes_occurrence}


def replacement_dates(exceptions: Iterable[RecurrenceException],
                      window: Window) -> List[datetime.datetime]:
    """Dates occurrences were moved to, limited to the window"""
    dates = []
    for exception in exceptions:
        if exception.replacement_instance_id is None or exception.replacement_date is None:
            continue
        moved_to = start_of_day(exception.replacement_date)
        if window.contains(moved_to):
            dates.append(moved_to)
    return dates


def apply_exceptions(candidates: Iterable[datetime.datetime],
                     exceptions: Iterable[RecurrenceException],
                     window: Window) -> List[datetime.datetime]:
    """
    Apply exceptions to candidate occurrences.

    Args:
        candidates: Raw occurrences from the generator
        exceptions: Exceptions of the same rule
        window: Effective window the candidates were generated for

    Returns:
        Sorted list without duplicates
    """
    exceptions = list(exceptions)
    skipped = excluded_dates(exceptions)

    kept = [c for c in candidates if c.date() not in skipped]
    kept.extend(replacement_dates(exceptions, window))

    return sorted(set(kept))
