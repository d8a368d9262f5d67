"""
Booking controllers for Noir Reservations.

- slot_resolver: date bookability and first bookable date
- times_fetcher: offerable start times and selection reconciliation
- reservation_form: guest booking flow
- calendar_timeline: admin timeline with optimistic drag/resize
- api_client: HTTP client for the JSON API
"""

from booking.config import VenueConfig
from booking.errors import ApiError, BookingError, PaymentError, SlotConflictError, ValidationError
from booking.policy import reservation_duration

__all__ = [
    'VenueConfig',
    'ApiError',
    'BookingError',
    'PaymentError',
    'SlotConflictError',
    'ValidationError',
    'reservation_duration',
]
