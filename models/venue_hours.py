"""
Venue hours data access.
Base weekly hours, exceptional open days and exceptional closures.

An exceptional open and an exceptional closure never share a date; the
create/update functions raise VenueHoursConflict when a write would break that.
"""

import json

from database import get_db
from utils.validators import validate_date_format, validate_time_ranges

HOURS_TYPES = ('base', 'exceptional_open', 'exceptional_closure')


class VenueHoursConflict(ValueError):
    """An exceptional open and closure would share a date."""


def _serialize(row) -> dict:
    hours = dict(row)
    hours['time_ranges'] = json.loads(hours.get('time_ranges') or '[]')
    hours['full_day'] = bool(hours.get('full_day'))
    return hours


def _check_ranges(time_ranges) -> list:
    time_ranges = time_ranges or []
    valid, error = validate_time_ranges(time_ranges)
    if not valid:
        raise ValueError(error)
    return [{'start': r['start'], 'end': r['end']} for r in sorted(time_ranges, key=lambda r: r['start'])]


def _check_date(date_str: str) -> str:
    if not validate_date_format(date_str):
        raise ValueError('Date must be YYYY-MM-DD')
    return date_str


# =============================================================================
# QUERIES
# =============================================================================

def get_venue_hours(hours_type: str = None) -> list:
    """
    Get venue hours rows.

    Args:
        hours_type: Optional filter ('base', 'exceptional_open', 'exceptional_closure')

    Returns:
        List of dicts with decoded time_ranges
    """
    db = get_db()
    cursor = db.cursor()

    query = 'SELECT * FROM venue_hours'
    params = []
    if hours_type:
        if hours_type not in HOURS_TYPES:
            raise ValueError(f'Unknown venue hours type: {hours_type}')
        query += ' WHERE type = ?'
        params.append(hours_type)
    query += ' ORDER BY type, day_of_week, date'

    cursor.execute(query, params)
    return [_serialize(row) for row in cursor.fetchall()]


def get_venue_hours_by_id(hours_id: int) -> dict:
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM venue_hours WHERE id = ?', (hours_id,))
    row = cursor.fetchone()
    return _serialize(row) if row else None


def get_exceptions_between(start_date: str, end_date: str) -> list:
    """Exceptional opens and closures dated within [start_date, end_date]."""
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        SELECT * FROM venue_hours
        WHERE type IN ('exceptional_open', 'exceptional_closure')
          AND date BETWEEN ? AND ?
        ORDER BY date
    ''', (start_date, end_date))
    return [_serialize(row) for row in cursor.fetchall()]


def get_exceptions_on(date_str: str) -> list:
    return get_exceptions_between(date_str, date_str)


def get_base_open_weekdays() -> list:
    """Weekday indices (0=Sunday) that have at least one base time range."""
    return sorted({row['day_of_week'] for row in get_venue_hours('base') if row['time_ranges']})


def _ensure_exclusive(date_str: str, hours_type: str, exclude_id: int = None) -> None:
    opposite = 'exceptional_closure' if hours_type == 'exceptional_open' else 'exceptional_open'
    for row in get_exceptions_on(date_str):
        if row['id'] == exclude_id:
            continue
        if row['type'] == opposite:
            if hours_type == 'exceptional_open':
                raise VenueHoursConflict(f'An exceptional closure already exists on {date_str}')
            raise VenueHoursConflict(f'An exceptional open already exists on {date_str}')


# =============================================================================
# WRITES
# =============================================================================

def save_base_hours(days: list) -> list:
    """
    Replace all base hours (delete-then-insert).

    Args:
        days: List of {'day_of_week': 0-6, 'enabled': bool, 'time_ranges': [...]}.
              Disabled days and days without ranges are dropped.

    Returns:
        The stored base rows
    """
    rows = []
    seen = set()
    for day in days or []:
        day_of_week = int(day.get('day_of_week'))
        if day_of_week < 0 or day_of_week > 6:
            raise ValueError('day_of_week must be between 0 (Sunday) and 6 (Saturday)')
        if day_of_week in seen:
            raise ValueError(f'Day {day_of_week} appears more than once')
        seen.add(day_of_week)
        if not day.get('enabled', True):
            continue
        time_ranges = _check_ranges(day.get('time_ranges'))
        if time_ranges:
            rows.append((day_of_week, json.dumps(time_ranges)))

    db = get_db()
    db.execute("DELETE FROM venue_hours WHERE type = 'base'")
    db.executemany(
        "INSERT INTO venue_hours (type, day_of_week, time_ranges) VALUES ('base', ?, ?)",
        rows
    )
    db.commit()
    return get_venue_hours('base')


def create_exceptional_open(date_str: str, time_ranges: list, label: str = None) -> int:
    """
    Open the venue on a date outside base hours.

    Raises:
        VenueHoursConflict: A closure exists on that date
        ValueError: Invalid date or ranges
    """
    _check_date(date_str)
    time_ranges = _check_ranges(time_ranges)
    if not time_ranges:
        raise ValueError('An exceptional open needs at least one time range')
    _ensure_exclusive(date_str, 'exceptional_open')

    db = get_db()
    cursor = db.execute('''
        INSERT INTO venue_hours (type, date, time_ranges, label)
        VALUES ('exceptional_open', ?, ?, ?)
    ''', (date_str, json.dumps(time_ranges), label))
    db.commit()
    return cursor.lastrowid


def create_exceptional_closure(date_str: str, full_day: bool = True, time_ranges: list = None,
                               reason: str = None) -> int:
    """
    Close the venue for a whole date or for the given windows.

    Raises:
        VenueHoursConflict: An exceptional open exists on that date
        ValueError: Invalid date, or a partial closure without ranges
    """
    _check_date(date_str)
    time_ranges = [] if full_day else _check_ranges(time_ranges)
    if not full_day and not time_ranges:
        raise ValueError('A partial closure needs at least one time range')
    _ensure_exclusive(date_str, 'exceptional_closure')

    db = get_db()
    cursor = db.execute('''
        INSERT INTO venue_hours (type, date, time_ranges, reason, full_day)
        VALUES ('exceptional_closure', ?, ?, ?, ?)
    ''', (date_str, json.dumps(time_ranges), reason, 1 if full_day else 0))
    db.commit()
    return cursor.lastrowid


def update_venue_hours(hours_id: int, **fields) -> bool:
    """
    Update an exceptional open/closure (date, time_ranges, label, reason, full_day).

    Raises:
        VenueHoursConflict: The new date collides with the opposite type
        ValueError: Invalid fields, or the result would leave a partial closure
            or an exceptional open without time ranges
    """
    existing = get_venue_hours_by_id(hours_id)
    if not existing:
        return False

    updates = {}
    if 'date' in fields:
        updates['date'] = _check_date(fields['date'])
    if 'time_ranges' in fields:
        updates['time_ranges'] = json.dumps(_check_ranges(fields['time_ranges']))
    for key in ('label', 'reason'):
        if key in fields:
            updates[key] = fields[key]
    if 'full_day' in fields:
        updates['full_day'] = 1 if fields['full_day'] else 0
    if not updates:
        return True

    full_day = bool(updates.get('full_day', existing['full_day']))
    ranges = json.loads(updates['time_ranges']) if 'time_ranges' in updates else existing['time_ranges']
    if existing['type'] == 'exceptional_closure' and not full_day and not ranges:
        raise ValueError('A partial closure needs at least one time range')
    if existing['type'] == 'exceptional_open' and not ranges:
        raise ValueError('An exceptional open needs at least one time range')

    if existing['type'] != 'base':
        _ensure_exclusive(updates.get('date', existing['date']), existing['type'], exclude_id=hours_id)

    db = get_db()
    assignments = ', '.join(f'{key} = ?' for key in updates)
    db.execute(f'UPDATE venue_hours SET {assignments} WHERE id = ?', list(updates.values()) + [hours_id])
    db.commit()
    return True


def delete_venue_hours(hours_id: int) -> bool:
    db = get_db()
    cursor = db.execute('DELETE FROM venue_hours WHERE id = ?', (hours_id,))
    db.commit()
    return cursor.rowcount > 0
