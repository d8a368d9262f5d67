"""
Date bookability and first-bookable-date resolution.

All comparisons are by venue-local calendar day using ``YYYY-MM-DD`` keys, so
two values differing only by time of day are the same day.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from utils.datetime_helpers import date_key, parse_date

logger = logging.getLogger(__name__)

FULL_SCAN_DAYS = 365
PRELIMINARY_SCAN_DAYS = 30


def weekday_index(day) -> int:
    """Weekday of a calendar day, 0=Sunday through 6=Saturday."""
    return int(parse_date(day).strftime('%w'))


@dataclass(frozen=True)
class AvailabilityRules:
    """Snapshot of the date-level availability rules for a booking window."""

    base_open_weekdays: frozenset = field(default_factory=frozenset)
    exceptional_open_dates: frozenset = field(default_factory=frozenset)
    exceptional_closure_dates: frozenset = field(default_factory=frozenset)
    private_event_blocked_dates: frozenset = field(default_factory=frozenset)

    @classmethod
    def build(cls, base_open_weekdays=(), exceptional_open_dates=(),
              exceptional_closure_dates=(), private_event_blocked_dates=()) -> 'AvailabilityRules':
        """Normalise any iterables of weekdays and dates into a rules snapshot."""
        return cls(
            base_open_weekdays=frozenset(int(day) for day in base_open_weekdays),
            exceptional_open_dates=frozenset(date_key(d) for d in exceptional_open_dates),
            exceptional_closure_dates=frozenset(date_key(d) for d in exceptional_closure_dates),
            private_event_blocked_dates=frozenset(date_key(d) for d in private_event_blocked_dates),
        )

    @classmethod
    def from_payload(cls, payload: dict) -> 'AvailabilityRules':
        """Build from the ``/api/availability-rules`` response data."""
        payload = payload or {}
        return cls.build(
            base_open_weekdays=payload.get('base_open_weekdays') or (),
            exceptional_open_dates=payload.get('exceptional_open_dates') or (),
            exceptional_closure_dates=payload.get('exceptional_closure_dates') or (),
            private_event_blocked_dates=payload.get('private_event_blocked_dates') or (),
        )

    @property
    def has_base_hours(self) -> bool:
        return bool(self.base_open_weekdays)


def is_date_bookable(day, rules: AvailabilityRules) -> bool:
    """
    Check whether the venue takes ordinary reservations on ``day``.

    Args:
        day: date, datetime (time of day ignored) or YYYY-MM-DD string
        rules: Availability rules snapshot

    Returns:
        True if (exceptional open or base weekday) and neither closed nor blocked
    """
    key = date_key(day)
    is_exception = key in rules.exceptional_open_dates
    is_base = weekday_index(key) in rules.base_open_weekdays
    is_closed = key in rules.exceptional_closure_dates
    is_blocked = key in rules.private_event_blocked_dates
    return (is_exception or is_base) and not is_closed and not is_blocked


def first_bookable_date(start, rules: AvailabilityRules, max_days_to_scan: int = FULL_SCAN_DAYS) -> tuple:
    """
    Scan forward from ``start`` for the first bookable day.

    Args:
        start: First day to consider
        rules: Availability rules snapshot
        max_days_to_scan: Number of days to examine, ``start`` included

    Returns:
        Tuple of (date, found). When nothing qualifies the start day is
        returned unchanged with found=False.
    """
    start_day = parse_date(start)
    for offset in range(max_days_to_scan):
        candidate = start_day + timedelta(days=offset)
        if is_date_bookable(candidate, rules):
            return candidate, True

    logger.warning('No bookable date within %d days of %s', max_days_to_scan, start_day.isoformat())
    return start_day, False


def first_base_open_date(start, base_open_weekdays, max_days_to_scan: int = PRELIMINARY_SCAN_DAYS) -> tuple:
    """
    Preliminary scan using base weekdays only, for use before exceptional
    opens, closures and private events have loaded.

    Returns:
        Tuple of (date, found); (start, False) when no weekdays are known
    """
    start_day = parse_date(start)
    weekdays = {int(day) for day in base_open_weekdays or ()}
    if not weekdays:
        return start_day, False

    for offset in range(max_days_to_scan):
        candidate = start_day + timedelta(days=offset)
        if weekday_index(candidate) in weekdays:
            return candidate, True
    return start_day, False


def bookable_dates(start, end, rules: AvailabilityRules) -> list:
    """Every bookable day from ``start`` to ``end`` inclusive."""
    current: date = parse_date(start)
    last: date = parse_date(end)
    days = []
    while current <= last:
        if is_date_bookable(current, rules):
            days.append(current)
        current += timedelta(days=1)
    return days
