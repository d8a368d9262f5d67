"""
Reservation data access.
CRUD over the reservations table; every committed write publishes a change
on the 'reservations' feed.
"""

import logging

from flask import current_app

from database import get_db
from utils.datetime_helpers import parse_utc, to_utc_iso, utc_now_iso

logger = logging.getLogger(__name__)

RESERVATION_STATUSES = ('confirmed', 'cancelled', 'completed', 'no_show')
RESERVATION_SOURCES = ('manual', 'website', 'member')

INSERT_FIELDS = (
    'first_name', 'last_name', 'phone', 'email', 'member_id', 'membership_type',
    'party_size', 'event_type', 'notes', 'table_id', 'private_event_id',
    'start_time', 'end_time', 'status', 'checked_in', 'source',
    'payment_method_id', 'hold_amount', 'hold_status'
)

UPDATABLE_FIELDS = (
    'first_name', 'last_name', 'phone', 'email', 'party_size', 'event_type',
    'notes', 'table_id', 'start_time', 'end_time', 'status', 'checked_in',
    'membership_type', 'member_id'
)


def _serialize(row) -> dict:
    reservation = dict(row)
    reservation['checked_in'] = bool(reservation.get('checked_in'))
    return reservation


def publish_change(action: str, reservation_id: int) -> None:
    """Signal subscribers that the reservations table changed."""
    feed = current_app.extensions.get('change_feed')
    if feed is not None:
        feed.publish('reservations', action, reservation_id)


# =============================================================================
# QUERIES
# =============================================================================

def get_reservations(start: str = None, end: str = None, status: str = None) -> list:
    """
    Get reservations starting within [start, end).

    Args:
        start: Lower bound, UTC instant or YYYY-MM-DD (optional)
        end: Upper bound, UTC instant or YYYY-MM-DD (optional)
        status: Optional status filter

    Returns:
        List of reservation dicts with table_number, ordered by start_time
    """
    db = get_db()
    cursor = db.cursor()

    query = '''
        SELECT r.*, t.table_number
        FROM reservations r
        LEFT JOIN venue_tables t ON r.table_id = t.id
        WHERE 1=1
    '''
    params = []
    if start:
        query += ' AND r.start_time >= ?'
        params.append(to_utc_iso(parse_utc(start)))
    if end:
        query += ' AND r.start_time < ?'
        params.append(to_utc_iso(parse_utc(end)))
    if status:
        query += ' AND r.status = ?'
        params.append(status)
    query += ' ORDER BY r.start_time, r.id'

    cursor.execute(query, params)
    return [_serialize(row) for row in cursor.fetchall()]


def get_reservation_by_id(reservation_id: int) -> dict:
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        SELECT r.*, t.table_number
        FROM reservations r
        LEFT JOIN venue_tables t ON r.table_id = t.id
        WHERE r.id = ?
    ''', (reservation_id,))
    row = cursor.fetchone()
    return _serialize(row) if row else None


# =============================================================================
# WRITES
# =============================================================================

def _check_values(values: dict) -> None:
    if 'status' in values and values['status'] not in RESERVATION_STATUSES:
        raise ValueError(f"Unknown reservation status: {values['status']}")
    if 'source' in values and values['source'] not in RESERVATION_SOURCES:
        raise ValueError(f"Unknown reservation source: {values['source']}")
    if 'party_size' in values and int(values['party_size']) < 1:
        raise ValueError('Party size must be at least 1')
    for key in ('start_time', 'end_time'):
        if key in values:
            values[key] = to_utc_iso(parse_utc(values[key]))
    if 'checked_in' in values:
        values['checked_in'] = 1 if values['checked_in'] else 0


def insert_reservation(**fields) -> int:
    """
    Insert a reservation row as given (no availability checks).

    Returns:
        New reservation ID

    Raises:
        ValueError: Invalid status/source/party size or end not after start
    """
    values = {key: fields[key] for key in INSERT_FIELDS if fields.get(key) is not None}
    if 'start_time' not in values or 'end_time' not in values:
        raise ValueError('start_time and end_time are required')
    _check_values(values)
    if values['end_time'] <= values['start_time']:
        raise ValueError('A reservation must end after it starts')

    db = get_db()
    columns = ', '.join(values)
    placeholders = ', '.join('?' * len(values))
    cursor = db.execute(f'INSERT INTO reservations ({columns}) VALUES ({placeholders})', list(values.values()))
    db.commit()

    publish_change('insert', cursor.lastrowid)
    return cursor.lastrowid


def update_reservation(reservation_id: int, changes: dict) -> list:
    """
    Apply only the supplied fields; last write wins.

    Args:
        reservation_id: Reservation ID
        changes: Field -> new value (unknown fields are ignored)

    Returns:
        Names of the fields written, or None if the reservation does not exist

    Raises:
        ValueError: Invalid values or resulting end not after start
    """
    existing = get_reservation_by_id(reservation_id)
    if not existing:
        return None

    values = {key: changes[key] for key in UPDATABLE_FIELDS if key in changes}
    _check_values(values)
    start = values.get('start_time', existing['start_time'])
    end = values.get('end_time', existing['end_time'])
    if end <= start:
        raise ValueError('A reservation must end after it starts')
    if not values:
        return []

    values['updated_at'] = utc_now_iso()
    db = get_db()
    assignments = ', '.join(f'{key} = ?' for key in values)
    db.execute(f'UPDATE reservations SET {assignments} WHERE id = ?', list(values.values()) + [reservation_id])
    db.commit()

    publish_change('update', reservation_id)
    return [key for key in values if key != 'updated_at']


def delete_reservation(reservation_id: int, soft: bool = False) -> bool:
    """
    Delete a reservation.

    Args:
        reservation_id: Reservation ID
        soft: Mark as cancelled instead of removing the row

    Returns:
        True if a row was affected
    """
    db = get_db()
    if soft:
        cursor = db.execute(
            "UPDATE reservations SET status = 'cancelled', updated_at = ? WHERE id = ?",
            (utc_now_iso(), reservation_id)
        )
        action = 'update'
    else:
        cursor = db.execute('DELETE FROM reservations WHERE id = ?', (reservation_id,))
        action = 'delete'
    db.commit()

    if cursor.rowcount == 0:
        return False
    publish_change(action, reservation_id)
    logger.info('Reservation %s %s', reservation_id, 'cancelled' if soft else 'deleted')
    return True
