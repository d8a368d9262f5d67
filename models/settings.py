"""
Venue settings data access.
Single-row table holding timezone, booking window, hold fee and admin phone.
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from database import get_db
from utils.validators import validate_date_format, validate_date_range

SETTINGS_FIELDS = (
    'business_name', 'timezone', 'booking_start_date', 'booking_end_date',
    'hold_fee_enabled', 'hold_fee_amount', 'admin_notification_phone'
)


def _serialize(row) -> dict:
    settings = dict(row)
    settings['hold_fee_enabled'] = bool(settings['hold_fee_enabled'])
    settings['hold_fee_amount'] = float(settings['hold_fee_amount'] or 0)
    return settings


def get_settings() -> dict:
    """
    Get the venue settings row.

    Returns:
        Settings dict or None if the database has not been seeded
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM settings WHERE id = 1')
    row = cursor.fetchone()
    return _serialize(row) if row else None


def update_settings(**fields) -> dict:
    """
    Update venue settings.

    Args:
        **fields: Any of SETTINGS_FIELDS

    Returns:
        Updated settings dict

    Raises:
        ValueError: Unknown field, invalid timezone, date or amount
    """
    unknown = set(fields) - set(SETTINGS_FIELDS)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

    if fields.get('timezone'):
        try:
            ZoneInfo(fields['timezone'])
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {fields['timezone']}")

    for key in ('booking_start_date', 'booking_end_date'):
        if fields.get(key) and not validate_date_format(fields[key]):
            raise ValueError(f'{key} must be YYYY-MM-DD')

    current = get_settings() or {}
    start = fields.get('booking_start_date', current.get('booking_start_date'))
    end = fields.get('booking_end_date', current.get('booking_end_date'))
    if start and end and not validate_date_range(start, end):
        raise ValueError('The booking window must not end before it starts')

    if 'hold_fee_amount' in fields:
        amount = float(fields['hold_fee_amount'])
        if amount < 0:
            raise ValueError('Hold fee amount cannot be negative')
        fields['hold_fee_amount'] = amount

    if 'hold_fee_enabled' in fields:
        fields['hold_fee_enabled'] = 1 if fields['hold_fee_enabled'] else 0

    if fields:
        db = get_db()
        assignments = ', '.join(f'{key} = ?' for key in fields)
        db.execute(
            f'UPDATE settings SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = 1',
            list(fields.values())
        )
        db.commit()

    return get_settings()


def get_hold_fee_config() -> dict:
    """Hold-fee switch and amount; defaults apply when settings are missing."""
    settings = get_settings() or {}
    return {
        'hold_fee_enabled': settings.get('hold_fee_enabled', True),
        'hold_fee_amount': settings.get('hold_fee_amount', 25.0),
    }
