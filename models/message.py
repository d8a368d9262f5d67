"""
Outbound message log.
"""

from database import get_db


def log_message(phone: str, content: str, status: str, reservation_id: int = None,
                member_id: str = None, error_message: str = None) -> int:
    """
    Record an outbound SMS attempt.

    Args:
        phone: Destination number
        content: Message body
        status: 'sent' or 'failed'
        reservation_id: Related reservation (optional)
        member_id: Related member (optional)
        error_message: Gateway error for failed sends

    Returns:
        New message ID
    """
    db = get_db()
    cursor = db.execute('''
        INSERT INTO messages (reservation_id, member_id, phone, content, status, error_message)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', (reservation_id, member_id, phone, content, status, error_message))
    db.commit()
    return cursor.lastrowid


def get_messages(reservation_id: int = None) -> list:
    db = get_db()
    cursor = db.cursor()
    if reservation_id is None:
        cursor.execute('SELECT * FROM messages ORDER BY id')
    else:
        cursor.execute('SELECT * FROM messages WHERE reservation_id = ? ORDER BY id', (reservation_id,))
    return [dict(row) for row in cursor.fetchall()]
