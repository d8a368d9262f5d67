"""Timezone-aware date/time helpers for the reservations application.

Instants travel as UTC ISO strings (``YYYY-MM-DDTHH:MM:SSZ``); calendar days
travel as ``YYYY-MM-DD`` strings in the venue timezone. Only the first three
helpers need an application context.
"""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from flask import current_app

DEFAULT_TIMEZONE = 'America/Chicago'
UTC_FORMAT = '%Y-%m-%dT%H:%M:%SZ'


def get_timezone() -> ZoneInfo:
    """Get the venue timezone (persisted setting, else app config)."""
    from models.settings import get_settings

    settings = get_settings()
    tz_name = settings.get('timezone') if settings else None
    return ZoneInfo(tz_name or current_app.config.get('TIMEZONE', DEFAULT_TIMEZONE))


def get_today() -> date:
    """Get today's date in the venue timezone."""
    return datetime.now(get_timezone()).date()


def get_now() -> datetime:
    """Get current datetime in the venue timezone."""
    return datetime.now(get_timezone())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).strftime(UTC_FORMAT)


def to_utc_iso(value: datetime) -> str:
    """Render an aware datetime as a UTC ISO string. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(UTC_FORMAT)


def parse_utc(value) -> datetime:
    """
    Parse an ISO-8601 instant into an aware UTC datetime.

    Args:
        value: ISO string ('Z' or offset suffix; naive means UTC) or datetime

    Returns:
        Aware datetime in UTC

    Raises:
        ValueError: If the value is not a parseable instant
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        if not isinstance(value, str) or not value:
            raise ValueError(f'Invalid timestamp: {value!r}')
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_date(value) -> date:
    """
    Coerce a calendar-day value to a ``date``.

    Accepts ``date``, ``datetime`` (time of day ignored) or ``YYYY-MM-DD``.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, '%Y-%m-%d').date()


def date_key(value) -> str:
    """Calendar-day comparison key (``YYYY-MM-DD``)."""
    return parse_date(value).isoformat()


def local_to_utc(day, time_str: str, tz: ZoneInfo) -> datetime:
    """Convert a venue-local wall clock (day + HH:MM) to an aware UTC datetime."""
    hours, minutes = (int(part) for part in time_str.split(':'))
    local = datetime.combine(parse_date(day), datetime.min.time()).replace(
        hour=hours, minute=minutes, tzinfo=tz
    )
    return local.astimezone(timezone.utc)


def local_day_bounds(day, tz: ZoneInfo) -> tuple:
    """UTC instants for local midnight of ``day`` and of the following day."""
    start_local = datetime.combine(parse_date(day), datetime.min.time()).replace(tzinfo=tz)
    end_local = datetime.combine(parse_date(day) + timedelta(days=1), datetime.min.time()).replace(tzinfo=tz)
    return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)


def local_date_str(instant, tz: ZoneInfo) -> str:
    """The venue-local calendar day of an instant, as ``YYYY-MM-DD``."""
    return parse_utc(instant).astimezone(tz).strftime('%Y-%m-%d')


def local_time_str(instant, tz: ZoneInfo) -> str:
    """The venue-local wall clock of an instant, as ``HH:MM``."""
    return parse_utc(instant).astimezone(tz).strftime('%H:%M')


def format_local(instant, tz: ZoneInfo, fmt: str = '%A, %B %d at %I:%M %p') -> str:
    """Human-readable venue-local rendering used in guest messages."""
    return parse_utc(instant).astimezone(tz).strftime(fmt)


def iter_dates(start, end):
    """Yield each calendar day from ``start`` to ``end`` inclusive."""
    current = parse_date(start)
    last = parse_date(end)
    while current <= last:
        yield current
        current += timedelta(days=1)


def minutes_of(time_str: str) -> int:
    """Minutes after midnight for an HH:MM string."""
    hours, minutes = (int(part) for part in time_str.split(':'))
    return hours * 60 + minutes


def format_minutes(total: int) -> str:
    """HH:MM for a minutes-after-midnight value."""
    return f'{total // 60:02d}:{total % 60:02d}'
