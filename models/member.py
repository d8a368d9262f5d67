"""
Member lookup.
Members book without guest identity or hold fee; their details are copied
onto the reservation at creation.
"""

import sqlite3

from database import get_db
from utils.validators import normalize_phone, phone_variants


def get_member_by_member_id(member_id: str) -> dict:
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM members WHERE member_id = ?', (member_id,))
    row = cursor.fetchone()
    return dict(row) if row else None


def find_member_by_phone(phone: str) -> dict:
    """
    Find a member by phone, trying every stored format of the number.

    Args:
        phone: Phone in any format

    Returns:
        Member dict or None
    """
    variants = phone_variants(phone)
    if not variants:
        return None

    db = get_db()
    cursor = db.cursor()
    placeholders = ','.join('?' * len(variants))
    cursor.execute(f'SELECT * FROM members WHERE phone IN ({placeholders}) ORDER BY id LIMIT 1', variants)
    row = cursor.fetchone()
    return dict(row) if row else None


def create_member(member_id: str, first_name: str, last_name: str, phone: str, email: str = None) -> int:
    """Register a member; ValueError if the member ID is taken."""
    db = get_db()
    try:
        cursor = db.execute('''
            INSERT INTO members (member_id, first_name, last_name, phone, email)
            VALUES (?, ?, ?, ?, ?)
        ''', (member_id, first_name, last_name, normalize_phone(phone), email))
    except sqlite3.IntegrityError:
        raise ValueError(f'Member {member_id} already exists')
    db.commit()
    return cursor.lastrowid
