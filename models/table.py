"""
Venue table data access functions.
Tables are the calendar resources reservations are assigned to.
"""

import sqlite3

from database import get_db


def get_all_tables(active_only: bool = True) -> list:
    """
    Get all venue tables.

    Args:
        active_only: If True, only return active tables

    Returns:
        List of table dicts ordered by seats then number
    """
    db = get_db()
    cursor = db.cursor()

    query = 'SELECT * FROM venue_tables'
    if active_only:
        query += ' WHERE active = 1'
    query += ' ORDER BY seats, CAST(table_number AS INTEGER), table_number'

    cursor.execute(query)
    return [dict(row) for row in cursor.fetchall()]


def get_table_by_id(table_id: int) -> dict:
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM venue_tables WHERE id = ?', (table_id,))
    row = cursor.fetchone()
    return dict(row) if row else None


def create_table(table_number: str, seats: int) -> int:
    """
    Create a table.

    Args:
        table_number: Display number, unique
        seats: Seat count (> 0)

    Returns:
        New table ID

    Raises:
        ValueError: Duplicate number or invalid seats
    """
    if int(seats) < 1:
        raise ValueError('Seats must be at least 1')

    db = get_db()
    try:
        cursor = db.execute(
            'INSERT INTO venue_tables (table_number, seats) VALUES (?, ?)',
            (str(table_number), int(seats))
        )
    except sqlite3.IntegrityError:
        raise ValueError(f'A table with number {table_number} already exists')
    db.commit()
    return cursor.lastrowid


def update_table(table_id: int, **fields) -> bool:
    """
    Update table fields (table_number, seats, active).

    Returns:
        True if a row was updated

    Raises:
        ValueError: Duplicate number or invalid seats
    """
    allowed = {key: value for key, value in fields.items() if key in ('table_number', 'seats', 'active')}
    if not allowed:
        return False
    if 'seats' in allowed and int(allowed['seats']) < 1:
        raise ValueError('Seats must be at least 1')
    if 'active' in allowed:
        allowed['active'] = 1 if allowed['active'] else 0

    db = get_db()
    assignments = ', '.join(f'{key} = ?' for key in allowed)
    try:
        cursor = db.execute(
            f'UPDATE venue_tables SET {assignments} WHERE id = ?',
            list(allowed.values()) + [table_id]
        )
    except sqlite3.IntegrityError:
        raise ValueError(f"A table with number {allowed.get('table_number')} already exists")
    db.commit()
    return cursor.rowcount > 0


def delete_table(table_id: int) -> bool:
    """Delete a table; its reservations become unassigned."""
    db = get_db()
    cursor = db.execute('DELETE FROM venue_tables WHERE id = ?', (table_id,))
    db.commit()
    return cursor.rowcount > 0
