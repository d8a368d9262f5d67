"""
Input validation helper functions.
Provides validation for common input types.
"""

import re
from datetime import datetime

TIME_PATTERN = re.compile(r'^([01][0-9]|2[0-3]):[0-5][0-9]$')


def validate_email(email: str) -> bool:
    """
    Validate email format.

    Args:
        email: Email address to validate

    Returns:
        True if valid email format
    """
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def _phone_digits(phone: str) -> str:
    return re.sub(r'\D', '', phone or '')


def validate_phone(phone: str) -> bool:
    """
    Validate US phone number format.
    Accepts: +1 (XXX) XXX-XXXX, 1XXXXXXXXXX, XXX-XXX-XXXX

    Args:
        phone: Phone number to validate

    Returns:
        True if valid phone format
    """
    if not phone:
        return False

    digits = _phone_digits(phone)
    return len(digits) == 10 or (len(digits) == 11 and digits.startswith('1'))


def normalize_phone(phone: str) -> str:
    """
    Normalize a US phone number to E.164 (+1XXXXXXXXXX).

    Numbers that cannot be normalized are returned stripped but otherwise
    unchanged so the caller can still report them.

    Args:
        phone: Raw phone input

    Returns:
        Normalized phone string
    """
    if not phone:
        return ''

    digits = _phone_digits(phone)
    if len(digits) == 10:
        return f'+1{digits}'
    if len(digits) == 11 and digits.startswith('1'):
        return f'+{digits}'
    return phone.strip()


def phone_variants(phone: str) -> list:
    """Return the stored forms a phone number may appear under (E.164, 10 digits, raw)."""
    digits = _phone_digits(phone)
    if not digits:
        return []
    if len(digits) == 11 and digits.startswith('1'):
        digits = digits[1:]
    variants = [f'+1{digits}', digits, f'1{digits}', (phone or '').strip()]
    return [v for i, v in enumerate(variants) if v and v not in variants[:i]]


def validate_date_range(start_date: str, end_date: str) -> bool:
    """
    Validate that end date is not before start date.

    Args:
        start_date: Start date (YYYY-MM-DD)
        end_date: End date (YYYY-MM-DD)

    Returns:
        True if valid date range
    """
    try:
        start = datetime.strptime(start_date, '%Y-%m-%d')
        end = datetime.strptime(end_date, '%Y-%m-%d')
        return end >= start
    except (TypeError, ValueError):
        return False


def validate_date_format(date_str: str) -> bool:
    """
    Validate date is in YYYY-MM-DD format.

    Args:
        date_str: Date string to validate

    Returns:
        True if valid format
    """
    try:
        datetime.strptime(date_str, '%Y-%m-%d')
        return True
    except (TypeError, ValueError):
        return False


def validate_time_format(time_str: str) -> bool:
    """Validate a 24h wall-clock time in HH:MM format."""
    return bool(time_str) and bool(TIME_PATTERN.match(time_str))


def validate_time_ranges(time_ranges) -> tuple:
    """
    Validate a list of ``{start, end}`` wall-clock ranges.

    Args:
        time_ranges: List of dicts with 'start' and 'end' in HH:MM

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(time_ranges, list):
        return False, 'Time ranges must be a list'

    for index, time_range in enumerate(time_ranges):
        if not isinstance(time_range, dict):
            return False, f'Time range {index + 1} is malformed'
        start = time_range.get('start')
        end = time_range.get('end')
        if not validate_time_format(start) or not validate_time_format(end):
            return False, f'Time range {index + 1} must use HH:MM times'
        if end <= start:
            return False, f'Time range {index + 1} must end after it starts'

    return True, ''


def sanitize_input(text: str, max_length: int = None) -> str:
    """
    Sanitize text input by trimming and limiting length.

    Args:
        text: Text to sanitize
        max_length: Maximum length (optional)

    Returns:
        Sanitized text
    """
    if not text:
        return ''

    sanitized = text.strip()

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized
