"""Venue configuration injected into the booking controllers."""

from dataclasses import dataclass
from datetime import date, timedelta
from zoneinfo import ZoneInfo

from booking.policy import hold_amount
from utils.datetime_helpers import DEFAULT_TIMEZONE, parse_date


@dataclass(frozen=True)
class VenueConfig:
    """
    Read-only venue settings: timezone, booking window and hold-fee config.

    Build it once (usually from ``GET /api/settings``) and pass it to each
    controller instead of reading global state.
    """

    timezone: str = DEFAULT_TIMEZONE
    booking_start_date: date | None = None
    booking_end_date: date | None = None
    booking_window_days: int = 60
    hold_fee_enabled: bool = True
    hold_fee_amount: float = 25.0
    business_name: str = ''

    @classmethod
    def from_settings(cls, settings: dict, booking_window_days: int = 60) -> 'VenueConfig':
        """Build from the settings payload returned by the API."""
        settings = settings or {}
        start = settings.get('booking_start_date')
        end = settings.get('booking_end_date')
        enabled = settings.get('hold_fee_enabled')
        amount = settings.get('hold_fee_amount')
        return cls(
            timezone=settings.get('timezone') or DEFAULT_TIMEZONE,
            booking_start_date=parse_date(start) if start else None,
            booking_end_date=parse_date(end) if end else None,
            booking_window_days=booking_window_days,
            hold_fee_enabled=True if enabled is None else bool(enabled),
            hold_fee_amount=25.0 if amount is None else float(amount),
            business_name=settings.get('business_name') or '',
        )

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def booking_window(self, today: date) -> tuple:
        """
        Bounds for bookable dates as seen on ``today``.

        The window never starts in the past; without an explicit end date it
        spans ``booking_window_days`` from its start.
        """
        start = today
        if self.booking_start_date and self.booking_start_date > start:
            start = self.booking_start_date
        end = self.booking_end_date or start + timedelta(days=self.booking_window_days)
        return start, end

    def hold_fee_applies(self, is_member: bool) -> bool:
        return not is_member and self.hold_amount() > 0

    def hold_amount(self) -> float:
        return hold_amount(self.hold_fee_enabled, self.hold_fee_amount)
