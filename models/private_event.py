"""
Private event data access.
Private events hold the venue for all or part of a day; their local dates are
removed from ordinary bookability.
"""

import secrets
from datetime import time, timedelta

from database import get_db
from utils.datetime_helpers import local_day_bounds, parse_utc, to_utc_iso

EVENT_STATUSES = ('active', 'cancelled', 'completed')

EVENT_FIELDS = (
    'title', 'event_type', 'start_time', 'end_time', 'full_day', 'max_guests',
    'total_attendees_maximum', 'deposit_required', 'event_description',
    'rsvp_enabled', 'require_time_selection', 'status'
)

BOOLEAN_FIELDS = ('full_day', 'rsvp_enabled', 'require_time_selection')


def _serialize(row) -> dict:
    event = dict(row)
    for key in BOOLEAN_FIELDS:
        event[key] = bool(event.get(key))
    return event


def generate_rsvp_token() -> str:
    """Unique URL token for a private event's RSVP page."""
    db = get_db()
    while True:
        token = secrets.token_urlsafe(9)
        row = db.execute('SELECT 1 FROM private_events WHERE rsvp_url = ?', (token,)).fetchone()
        if row is None:
            return token


# =============================================================================
# QUERIES
# =============================================================================

def get_private_events(start: str = None, end: str = None, status: str = None) -> list:
    """
    Get private events overlapping [start, end).

    Args:
        start: UTC instant or YYYY-MM-DD lower bound (optional)
        end: UTC instant or YYYY-MM-DD upper bound (optional)
        status: Optional status filter

    Returns:
        List of event dicts ordered by start_time
    """
    db = get_db()
    cursor = db.cursor()

    query = 'SELECT * FROM private_events WHERE 1=1'
    params = []
    if start:
        query += ' AND end_time > ?'
        params.append(to_utc_iso(parse_utc(start)))
    if end:
        query += ' AND start_time < ?'
        params.append(to_utc_iso(parse_utc(end)))
    if status:
        query += ' AND status = ?'
        params.append(status)
    query += ' ORDER BY start_time'

    cursor.execute(query, params)
    return [_serialize(row) for row in cursor.fetchall()]


def get_private_event_by_id(event_id: int) -> dict:
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM private_events WHERE id = ?', (event_id,))
    row = cursor.fetchone()
    return _serialize(row) if row else None


def get_active_events_overlapping(start_utc, end_utc) -> list:
    """Active events whose window intersects [start_utc, end_utc)."""
    return get_private_events(start=start_utc, end=end_utc, status='active')


def get_blocked_dates(start_date, end_date, tz) -> list:
    """
    Venue-local dates held by active private events within the window.

    Every local day an event touches is blocked, except the day its end falls
    on when that end is exactly local midnight.

    Args:
        start_date: First day of the window (date)
        end_date: Last day of the window (date)
        tz: Venue ZoneInfo

    Returns:
        Sorted list of YYYY-MM-DD strings
    """
    window_start, _ = local_day_bounds(start_date, tz)
    _, window_end = local_day_bounds(end_date, tz)

    blocked = set()
    for event in get_active_events_overlapping(window_start, window_end):
        local_start = parse_utc(event['start_time']).astimezone(tz)
        local_end = parse_utc(event['end_time']).astimezone(tz)
        last_day = local_end.date()
        if local_end.time() == time.min and last_day > local_start.date():
            last_day -= timedelta(days=1)

        current = local_start.date()
        while current <= last_day:
            if start_date <= current <= end_date:
                blocked.add(current.isoformat())
            current += timedelta(days=1)

    return sorted(blocked)


# =============================================================================
# WRITES
# =============================================================================

def _normalize(fields: dict) -> dict:
    values = {key: fields[key] for key in EVENT_FIELDS if key in fields}
    for key in ('start_time', 'end_time'):
        if key in values:
            values[key] = to_utc_iso(parse_utc(values[key]))
    for key in BOOLEAN_FIELDS:
        if key in values:
            values[key] = 1 if values[key] else 0
    if 'status' in values and values['status'] not in EVENT_STATUSES:
        raise ValueError(f"Unknown event status: {values['status']}")
    return values


def create_private_event(**fields) -> int:
    """
    Create a private event; an RSVP token is generated when RSVP is enabled.

    Raises:
        ValueError: Missing title/type/window, or end not after start
    """
    values = _normalize(fields)
    for key in ('title', 'event_type', 'start_time', 'end_time'):
        if not values.get(key):
            raise ValueError(f'{key} is required')
    if values['end_time'] <= values['start_time']:
        raise ValueError('A private event must end after it starts')
    if values.get('rsvp_enabled'):
        values['rsvp_url'] = generate_rsvp_token()

    db = get_db()
    columns = ', '.join(values)
    placeholders = ', '.join('?' * len(values))
    cursor = db.execute(f'INSERT INTO private_events ({columns}) VALUES ({placeholders})', list(values.values()))
    db.commit()
    return cursor.lastrowid


def update_private_event(event_id: int, **fields) -> bool:
    """Update supplied fields only. Enabling RSVP assigns a token if missing."""
    existing = get_private_event_by_id(event_id)
    if not existing:
        return False

    values = _normalize(fields)
    start = values.get('start_time', existing['start_time'])
    end = values.get('end_time', existing['end_time'])
    if end <= start:
        raise ValueError('A private event must end after it starts')
    if values.get('rsvp_enabled') and not existing.get('rsvp_url'):
        values['rsvp_url'] = generate_rsvp_token()
    if not values:
        return True

    db = get_db()
    assignments = ', '.join(f'{key} = ?' for key in values)
    db.execute(
        f'UPDATE private_events SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?',
        list(values.values()) + [event_id]
    )
    db.commit()
    return True


def delete_private_event(event_id: int) -> bool:
    db = get_db()
    cursor = db.execute('DELETE FROM private_events WHERE id = ?', (event_id,))
    db.commit()
    return cursor.rowcount > 0
