"""
Booking error taxonomy.

Controllers catch every ``BookingError`` at their boundary and turn it into a
notification or inline field message; nothing here is retried.
"""


class BookingError(Exception):
    """Base class for all booking-flow failures."""


class ValidationError(BookingError):
    """One or more fields failed validation before any request was sent."""

    def __init__(self, errors: dict):
        self.errors = dict(errors)
        super().__init__('; '.join(f'{field}: {message}' for field, message in self.errors.items()))


class PaymentError(BookingError):
    """The payment processor could not tokenize the guest's card."""


class ApiError(BookingError):
    """
    Non-2xx response or transport failure from the reservations API.

    ``status`` is ``None`` when the request never produced a response.
    """

    def __init__(self, status: int | None, message: str, payload: dict | None = None):
        self.status = status
        self.message = message
        self.payload = payload or {}
        super().__init__(message)


class SlotConflictError(ApiError):
    """The requested slot is taken; carries the nearest alternatives."""

    def __init__(self, message: str, alternative_times: dict | None, payload: dict | None = None):
        super().__init__(409, message, payload)
        alternative_times = alternative_times or {}
        self.alternative_times = {
            'before': alternative_times.get('before'),
            'after': alternative_times.get('after'),
        }
        self.requested_time = (payload or {}).get('requested_time')
