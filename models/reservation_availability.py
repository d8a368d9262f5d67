"""
Slot availability and table assignment.

Wall-clock hours are venue-local; every overlap test runs on UTC instants
after converting through the venue timezone.
"""

from bisect import bisect_left, bisect_right
from datetime import datetime, timezone

from booking.policy import reservation_duration
from booking.slot_resolver import AvailabilityRules, bookable_dates, is_date_bookable, weekday_index
from database import get_db
from models.private_event import get_active_events_overlapping, get_blocked_dates
from models.table import get_all_tables
from models.venue_hours import get_base_open_weekdays, get_exceptions_between, get_exceptions_on, get_venue_hours
from utils.datetime_helpers import (
    format_minutes, get_timezone, local_day_bounds, local_to_utc,
    minutes_of, parse_date, parse_utc, to_utc_iso
)

SLOT_INTERVAL_MINUTES = 15


# =============================================================================
# DATE-LEVEL RULES
# =============================================================================

def get_availability_rules(start_date, end_date) -> dict:
    """
    Date-level availability rules for the window [start_date, end_date].

    Returns:
        dict: {
            'start', 'end', 'timezone',
            'base_open_weekdays': [0-6, ...],
            'exceptional_open_dates': ['YYYY-MM-DD', ...],
            'exceptional_closure_dates': [...]   (full-day only),
            'partial_closures': [{'date', 'time_ranges'}],
            'private_event_blocked_dates': [...],
            'bookable_dates': [...]
        }
    """
    start = parse_date(start_date)
    end = parse_date(end_date)
    if end < start:
        raise ValueError('The end date must not be before the start date')

    tz = get_timezone()
    exceptions = get_exceptions_between(start.isoformat(), end.isoformat())

    rules = {
        'start': start.isoformat(),
        'end': end.isoformat(),
        'timezone': tz.key,
        'base_open_weekdays': get_base_open_weekdays(),
        'exceptional_open_dates': sorted({
            row['date'] for row in exceptions if row['type'] == 'exceptional_open'
        }),
        'exceptional_closure_dates': sorted({
            row['date'] for row in exceptions
            if row['type'] == 'exceptional_closure' and row['full_day']
        }),
        'partial_closures': [
            {'date': row['date'], 'time_ranges': row['time_ranges']}
            for row in exceptions
            if row['type'] == 'exceptional_closure' and not row['full_day']
        ],
        'private_event_blocked_dates': get_blocked_dates(start, end, tz),
    }
    rules['bookable_dates'] = [
        day.isoformat() for day in bookable_dates(start, end, AvailabilityRules.from_payload(rules))
    ]
    return rules


def is_bookable_day(day) -> bool:
    """Check one venue-local day against the persisted rules."""
    day = parse_date(day)
    return is_date_bookable(day, AvailabilityRules.from_payload(get_availability_rules(day, day)))


# =============================================================================
# DAY HOURS AND SLOT GENERATION
# =============================================================================

def _to_minutes(time_ranges) -> list:
    return [(minutes_of(r['start']), minutes_of(r['end'])) for r in time_ranges]


def subtract_ranges(ranges: list, removed: list) -> list:
    """
    Remove closed windows from open windows (minutes after midnight).

    Args:
        ranges: [(start, end), ...] open windows
        removed: [(start, end), ...] closed windows

    Returns:
        Remaining sorted, non-empty windows
    """
    result = sorted(ranges)
    for cut_start, cut_end in removed:
        remaining = []
        for start, end in result:
            if cut_end <= start or cut_start >= end:
                remaining.append((start, end))
                continue
            if start < cut_start:
                remaining.append((start, cut_start))
            if cut_end < end:
                remaining.append((cut_end, end))
        result = remaining
    return result


def get_day_time_ranges(day) -> list:
    """
    Open windows for a venue-local day, as (start, end) minutes.

    Exceptional opens replace base hours; partial closures are subtracted;
    a full-day closure leaves nothing.
    """
    day = parse_date(day)
    exceptions = get_exceptions_on(day.isoformat())

    closures = [row for row in exceptions if row['type'] == 'exceptional_closure']
    if any(row['full_day'] for row in closures):
        return []

    opens = [row for row in exceptions if row['type'] == 'exceptional_open']
    if opens:
        ranges = [r for row in opens for r in _to_minutes(row['time_ranges'])]
    else:
        weekday = weekday_index(day)
        ranges = [
            r for row in get_venue_hours('base') if row['day_of_week'] == weekday
            for r in _to_minutes(row['time_ranges'])
        ]

    removed = [r for row in closures for r in _to_minutes(row['time_ranges'])]
    return subtract_ranges(ranges, removed)


def generate_slots(day) -> list:
    """Candidate HH:MM starts every 15 minutes; range start inclusive, end exclusive."""
    starts = set()
    for start, end in get_day_time_ranges(day):
        current = start
        while current < end:
            starts.add(current)
            current += SLOT_INTERVAL_MINUTES
    return [format_minutes(value) for value in sorted(starts)]


# =============================================================================
# OCCUPANCY
# =============================================================================

def get_occupied_windows(start_utc, end_utc, exclude_reservation_id: int = None) -> list:
    """
    Non-cancelled, table-assigned reservations overlapping [start_utc, end_utc).

    Returns:
        List of dicts with table_id, start (datetime), end (datetime)
    """
    db = get_db()
    cursor = db.cursor()

    query = '''
        SELECT id, table_id, start_time, end_time
        FROM reservations
        WHERE status != 'cancelled'
          AND table_id IS NOT NULL
          AND start_time < ?
          AND end_time > ?
    '''
    params = [to_utc_iso(parse_utc(end_utc)), to_utc_iso(parse_utc(start_utc))]
    if exclude_reservation_id:
        query += ' AND id != ?'
        params.append(exclude_reservation_id)

    cursor.execute(query, params)
    return [
        {
            'table_id': row['table_id'],
            'start': parse_utc(row['start_time']),
            'end': parse_utc(row['end_time']),
        }
        for row in cursor.fetchall()
    ]


def _busy_tables(windows: list, start: datetime, end: datetime) -> set:
    return {w['table_id'] for w in windows if w['start'] < end and w['end'] > start}


def _fitting_tables(party_size: int) -> list:
    return [t for t in get_all_tables(active_only=True) if t['seats'] >= party_size]


def find_available_table(start_utc, end_utc, party_size: int, exclude_reservation_id: int = None) -> dict:
    """
    Smallest active table seating the party that is free for the window.

    Returns:
        Table dict or None
    """
    start = parse_utc(start_utc)
    end = parse_utc(end_utc)
    windows = get_occupied_windows(start, end, exclude_reservation_id)
    busy = _busy_tables(windows, start, end)
    for table in sorted(_fitting_tables(party_size), key=lambda t: (t['seats'], t['id'])):
        if table['id'] not in busy:
            return table
    return None


def is_table_free(table_id: int, start_utc, end_utc, exclude_reservation_id: int = None) -> bool:
    start = parse_utc(start_utc)
    end = parse_utc(end_utc)
    return table_id not in _busy_tables(get_occupied_windows(start, end, exclude_reservation_id), start, end)


# =============================================================================
# SLOTS
# =============================================================================

def get_available_slots(date_str: str, party_size: int, now: datetime = None) -> list:
    """
    Offerable start times for a date and party size.

    A day that is not bookable (closed, or touched by a private event) has
    no slots. Otherwise a slot survives when it is in the future, overlaps
    no active private event (one starting after midnight can still cut off
    late seatings), and at least one fitting table has no overlapping
    reservation for the whole seating duration.

    Args:
        date_str: Venue-local date (YYYY-MM-DD)
        party_size: Number of guests
        now: Reference instant (defaults to the current time)

    Returns:
        Ordered list of HH:MM strings
    """
    day = parse_date(date_str)
    if not is_bookable_day(day):
        return []
    duration = reservation_duration(party_size)
    candidates = generate_slots(day)
    tables = _fitting_tables(party_size)
    if not candidates or not tables:
        return []

    tz = get_timezone()
    now = now or datetime.now(timezone.utc)
    day_start, day_end = local_day_bounds(day, tz)
    horizon_end = day_end + duration

    events = [
        (parse_utc(e['start_time']), parse_utc(e['end_time']))
        for e in get_active_events_overlapping(day_start, horizon_end)
    ]

    windows = get_occupied_windows(day_start, horizon_end)
    table_ids = {t['id'] for t in tables}

    slots = []
    for slot in candidates:
        start = local_to_utc(day, slot, tz)
        end = start + duration
        if start <= now:
            continue
        if any(event_start < end and event_end > start for event_start, event_end in events):
            continue
        if table_ids - _busy_tables(windows, start, end):
            slots.append(slot)
    return slots


def find_alternative_times(date_str: str, party_size: int, requested_time: str, now: datetime = None) -> dict:
    """
    Nearest offerable times strictly before and after the requested one.

    Returns:
        dict: {'before': 'HH:MM' or None, 'after': 'HH:MM' or None}
    """
    slots = get_available_slots(date_str, party_size, now=now)
    before_index = bisect_left(slots, requested_time)
    after_index = bisect_right(slots, requested_time)
    return {
        'before': slots[before_index - 1] if before_index > 0 else None,
        'after': slots[after_index] if after_index < len(slots) else None,
    }
