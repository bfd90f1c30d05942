"""
Occurrence Generator - turns one recurrence rule into candidate dates.

Every candidate is the start of a day as a naive wall-clock datetime.
Aware bounds are read in their own offset and their tzinfo dropped; no
timezone shifting happens here. Exceptions are not applied here; see
exception_overlay.
"""

import calendar
import datetime
import logging
from typing import List, NamedTuple, Optional, Union

from planner.domain.errors import UnknownRecurrenceTypeError
from planner.domain.models import RecurrenceRule, RecurrenceType

logger = logging.getLogger(__name__)

DateLike = Union[datetime.date, datetime.datetime]


class Window(NamedTuple):
    """Inclusive date-time range."""
    start: datetime.datetime
    end: datetime.datetime

    def contains(self, value: datetime.datetime) -> bool:
        return self.start <= value <= self.end


def wall_clock(value: datetime.datetime) -> datetime.datetime:
    """Drop tzinfo, keeping the local time of the value's own offset"""
    return value.replace(tzinfo=None)


def start_of_day(value: DateLike) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return wall_clock(value).replace(hour=0, minute=0, second=0, microsecond=0)
    return datetime.datetime.combine(value, datetime.time.min)


def end_of_day(value: DateLike) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return wall_clock(value).replace(hour=23, minute=59, second=59, microsecond=999999)
    return datetime.datetime.combine(value, datetime.time.max)


def day_window(target: DateLike) -> Window:
    """The whole of one day as a window"""
    return Window(start_of_day(target), end_of_day(target))


def requested_window(start: DateLike, end: DateLike) -> Window:
    """
    Normalize caller bounds. A plain date start means the start of that day
    and a plain date end means the end of that day.
    """
    start_dt = wall_clock(start) if isinstance(start, datetime.datetime) else start_of_day(start)
    end_dt = wall_clock(end) if isinstance(end, datetime.datetime) else end_of_day(end)
    return Window(start_dt, end_dt)


def effective_window(rule: RecurrenceRule, start: DateLike, end: DateLike) -> Optional[Window]:
    """
    Intersect the requested range with the rule's own bounds.

    Returns:
        The effective window, or None when it is empty
    """
    window = requested_window(start, end)
    lower, upper = window.start, window.end

    if rule.start_datetime is not None:
        lower = max(lower, start_of_day(rule.start_datetime))
    if rule.end_datetime is not None:
        upper = min(upper, end_of_day(rule.end_datetime))

    if lower > upper:
        return None
    return Window(lower, upper)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def generate(rule: RecurrenceRule, start: DateLike, end: DateLike,
             strict_types: bool = False) -> List[datetime.datetime]:
    """
    Generate the raw candidate occurrences of a rule inside [start, end].

    Args:
        rule: The rule to expand; must have a start_datetime
        start: Requested range start (inclusive)
        end: Requested range end (inclusive)
        strict_types: Raise UnknownRecurrenceTypeError for unknown kinds
            instead of returning no occurrences

    Returns:
        Ascending list of candidate date-times
    """
    kind = rule.kind
    if kind is None:
        if strict_types:
            raise UnknownRecurrenceTypeError(rule.recurrence_type)
        logger.warning(f"Rule {rule.id}: unknown recurrence type {rule.recurrence_type!r}, no occurrences")
        return []

    if rule.start_datetime is None:
        logger.warning(f"Rule {rule.id}: no start date to anchor {kind.value} recurrence, no occurrences")
        return []

    window = effective_window(rule, start, end)
    if window is None:
        return []

    anchor = start_of_day(rule.start_datetime)
    if kind is RecurrenceType.DAILY:
        return _daily(anchor, window, rule.interval)
    if kind is RecurrenceType.WEEKLY:
        return _weekly(anchor, window, rule.interval, rule.days_of_week)

    # Monthly and yearly candidates must not precede the exact start time
    not_before = wall_clock(rule.start_datetime)
    if kind is RecurrenceType.MONTHLY:
        return _monthly(anchor, not_before, window, rule.interval)
    return _yearly(anchor, not_before, window, rule.interval)


def _daily(anchor: datetime.datetime, window: Window, interval: int) -> List[datetime.datetime]:
    step = datetime.timedelta(days=interval)

    # First step that is not before the window
    skip = 0
    if window.start > anchor:
        skip = -((anchor - window.start) // step)
    if skip * step > window.end - anchor:
        return []

    dates = []
    current = anchor + skip * step
    while current <= window.end:
        if current >= window.start:
            dates.append(current)
        # Stop before stepping past datetime.max
        if window.end - current < step:
            break
        current += step
    return dates


def _weekday_offset(day: int) -> int:
    """Offset from Monday for a Sunday=0 weekday number"""
    return 6 if day == 0 else day - 1


def _weekly(anchor: datetime.datetime, window: Window, interval: int,
            days_of_week) -> List[datetime.datetime]:
    if days_of_week:
        offsets = sorted(_weekday_offset(day) for day in days_of_week)
    else:
        offsets = [anchor.weekday()]

    first_week = anchor - datetime.timedelta(days=anchor.weekday())

    skip = 0
    if window.start > first_week:
        weeks_before = (window.start - first_week).days // 7
        skip = weeks_before // interval

    step = datetime.timedelta(weeks=interval)
    dates = []
    current_week = first_week + skip * step
    while current_week <= window.end:
        for offset in offsets:
            delta = datetime.timedelta(days=offset)
            if delta > window.end - current_week:
                break
            candidate = current_week + delta
            if candidate >= anchor and window.contains(candidate):
                dates.append(candidate)
        if window.end - current_week < step:
            break
        current_week += step
    return dates


def _monthly(anchor: datetime.datetime, not_before: datetime.datetime,
             window: Window, interval: int) -> List[datetime.datetime]:
    # Month cursor as a running month index, so stepping never overflows into
    # the following month the way day-preserving arithmetic would
    first_index = anchor.year * 12 + anchor.month - 1

    skip = 0
    window_index = window.start.year * 12 + window.start.month - 1
    if window_index > first_index:
        skip = (window_index - first_index) // interval

    dates = []
    index = first_index + skip * interval
    while True:
        year, month = divmod(index, 12)
        month += 1
        if year > datetime.MAXYEAR or anchor.replace(year=year, month=month, day=1) > window.end:
            break
        candidate = anchor.replace(year=year, month=month, day=min(anchor.day, days_in_month(year, month)))
        if candidate >= not_before and window.contains(candidate):
            dates.append(candidate)
        index += interval
    return dates


def _yearly(anchor: datetime.datetime, not_before: datetime.datetime,
            window: Window, interval: int) -> List[datetime.datetime]:
    skip = 0
    if window.start.year > anchor.year:
        skip = (window.start.year - anchor.year) // interval

    dates = []
    year = anchor.year + skip * interval
    while year <= min(window.end.year, datetime.MAXYEAR):
        day = min(anchor.day, days_in_month(year, anchor.month))
        candidate = anchor.replace(year=year, day=day)
        if candidate >= not_before and window.contains(candidate):
            dates.append(candidate)
        year += interval
    return dates
