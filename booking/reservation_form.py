"""
Reservation form controller.

Drives one booking from date selection through submission:

    IDLE --edit--> READY --submit--> SUBMITTING --> CONFIRMED
                                               \--> ALTERNATIVES_OFFERED
                                               \--> READY (rejected)

The controller never mutates shared reservation lists; on success it calls
``on_save`` so the owner can re-fetch, then ``on_close``.
"""

import logging
from datetime import date
from enum import Enum
from typing import Callable, Protocol

from booking.config import VenueConfig
from booking.errors import ApiError, BookingError, PaymentError, SlotConflictError, ValidationError
from booking.policy import reservation_end
from booking.slot_resolver import (
    AvailabilityRules,
    first_base_open_date,
    first_bookable_date,
    is_date_bookable,
)
from booking.times_fetcher import AvailableTimesFetcher, reconcile_selected_time
from utils.datetime_helpers import local_to_utc, parse_date, to_utc_iso
from utils.validators import normalize_phone, validate_email, validate_phone

logger = logging.getLogger(__name__)

GUEST_FIELDS = ('first_name', 'last_name', 'email', 'is_member', 'member_id', 'event_type', 'notes')


class FormState(Enum):
    IDLE = 'idle'
    READY = 'ready'
    SUBMITTING = 'submitting'
    CONFIRMED = 'confirmed'
    ALTERNATIVES_OFFERED = 'alternatives_offered'


class PaymentTokenizer(Protocol):
    """External payment processor client."""

    def tokenize(self, card, amount: float) -> str:
        """Return an opaque payment-method token or raise ``PaymentError``."""


def _log_notification(level: str, message: str) -> None:
    logger.log(logging.ERROR if level == 'error' else logging.INFO, message)


class ReservationFormController:
    """Holds the ephemeral state of a single reservation form."""

    def __init__(self, api, venue: VenueConfig, tokenizer: PaymentTokenizer | None = None,
                 notify: Callable[[str, str], None] | None = None,
                 on_save: Callable[[dict], None] | None = None,
                 on_close: Callable[[], None] | None = None,
                 today: date | None = None,
                 source: str = 'website'):
        self.api = api
        self.venue = venue
        self.tokenizer = tokenizer
        self.notify = notify or _log_notification
        self.on_save = on_save
        self.on_close = on_close
        self.source = source
        self.today = today or date.today()
        self.fetcher = AvailableTimesFetcher(api)

        self.state = FormState.IDLE
        self.rules: AvailabilityRules | None = None
        self.base_open_weekdays: frozenset = frozenset()
        self.available_times: list = []
        self.alternatives: dict | None = None
        self.field_errors: dict = {}
        self.last_error: str | None = None
        self.reservation: dict | None = None

        self.party_size = 2
        self.date: date | None = None
        self.time = ''
        self.phone = ''
        self.first_name = ''
        self.last_name = ''
        self.email = ''
        self.is_member = False
        self.member_id = ''
        self.event_type = ''
        self.notes = ''

        self._date_resolved = False

    # =========================================================================
    # RULES AND INITIAL DATE
    # =========================================================================

    def load_rules(self) -> None:
        """
        Load base hours, then the full availability rules for the booking
        window, resolving the initial date once.

        A preliminary date from base weekdays is chosen first so the form has
        something sensible while exceptional data loads; the full scan then
        replaces it.
        """
        window_start, window_end = self.venue.booking_window(self.today)

        try:
            base_rows = self.api.get_venue_hours('base')
        except BookingError as exc:
            self._report(f'Could not load venue hours: {exc}')
            return
        self.base_open_weekdays = frozenset(
            int(row['day_of_week']) for row in base_rows if row.get('time_ranges')
        )

        if not self._date_resolved:
            preliminary, found = first_base_open_date(window_start, self.base_open_weekdays)
            if found:
                self.date = preliminary

        try:
            payload = self.api.get_availability_rules(window_start, window_end)
        except BookingError as exc:
            self._report(f'Could not load availability: {exc}')
            self.refresh_times()
            return
        self.rules = AvailabilityRules.from_payload(payload)

        if not self._date_resolved:
            if not self.rules.has_base_hours:
                logger.info('Base hours not available yet; keeping the current date')
            else:
                resolved, found = first_bookable_date(window_start, self.rules)
                self.date = resolved
                self._date_resolved = True
                if not found:
                    self.notify('warning', 'No bookable dates were found in the next year')

        self.refresh_times()

    # =========================================================================
    # FIELD EDITS
    # =========================================================================

    def set_party_size(self, party_size) -> None:
        try:
            self.party_size = int(party_size)
        except (TypeError, ValueError):
            self.party_size = 0
        self.refresh_times()

    def set_date(self, day) -> None:
        self.date = parse_date(day) if day else None
        self._date_resolved = True
        self.refresh_times()

    def set_time(self, time_str: str) -> None:
        self.time = time_str or ''
        self._sync_ready()

    def set_phone(self, raw: str) -> None:
        self.phone = normalize_phone(raw)
        self._sync_ready()

    def update_guest(self, **fields) -> None:
        unknown = set(fields) - set(GUEST_FIELDS)
        if unknown:
            raise ValueError(f"Unknown guest fields: {', '.join(sorted(unknown))}")
        for name, value in fields.items():
            setattr(self, name, value)
        self._sync_ready()

    def refresh_times(self) -> None:
        """
        Re-fetch offerable times and keep the selection pointing at one of
        them. A date the loaded rules reject gets no times and no request.
        """
        if self.date and self.party_size and self.party_size >= 1 and self._date_open():
            self.available_times = self.fetcher.fetch(self.date, self.party_size)
        else:
            self.available_times = []
        self.time = reconcile_selected_time(self.time, self.available_times)
        self._sync_ready()

    def _date_open(self) -> bool:
        return self.rules is None or is_date_bookable(self.date, self.rules)

    # =========================================================================
    # VALIDATION
    # =========================================================================

    @property
    def is_ready(self) -> bool:
        """All required fields are present and a slot is chosen."""
        if not (self.date and self.time and self.phone and self.party_size and self.party_size >= 1):
            return False
        if self.is_member:
            return True
        return bool(self.first_name and self.last_name and self.email)

    def _sync_ready(self) -> None:
        if self.state in (FormState.IDLE, FormState.READY):
            self.state = FormState.READY if self.is_ready else FormState.IDLE

    def validate(self) -> dict:
        """Return ``{field: message}`` for every problem; empty when valid."""
        errors = {}

        if not self.date:
            errors['date'] = 'Please choose a date'
        else:
            window_start, window_end = self.venue.booking_window(self.today)
            if self.date < window_start or self.date > window_end:
                errors['date'] = 'That date is outside the booking window'
            elif self.rules is not None and not is_date_bookable(self.date, self.rules):
                errors['date'] = 'The venue is not open on that date'

        if not self.time:
            errors['time'] = 'Please choose a time'
        elif self.time not in self.available_times:
            errors['time'] = 'That time is no longer available'

        if not self.phone:
            errors['phone'] = 'Phone number is required'
        elif not validate_phone(self.phone):
            errors['phone'] = 'Please enter a valid phone number'

        if not self.party_size or self.party_size < 1:
            errors['party_size'] = 'Party size must be at least 1'

        if not self.is_member:
            if not self.first_name:
                errors['first_name'] = 'First name is required'
            if not self.last_name:
                errors['last_name'] = 'Last name is required'
            if not self.email:
                errors['email'] = 'Email is required'
            elif not validate_email(self.email):
                errors['email'] = 'Please enter a valid email address'

        return errors

    def require_valid(self) -> None:
        errors = self.validate()
        if errors:
            raise ValidationError(errors)

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    def build_payload(self, payment_method_id: str | None = None) -> dict:
        start = local_to_utc(self.date, self.time, self.venue.tz)
        payload = {
            'start_time': to_utc_iso(start),
            'end_time': to_utc_iso(reservation_end(start, self.party_size)),
            'party_size': self.party_size,
            'phone': self.phone,
            'is_member': self.is_member,
            'source': self.source,
        }
        for name in ('first_name', 'last_name', 'email', 'member_id', 'event_type', 'notes'):
            value = getattr(self, name)
            if value:
                payload[name] = value
        if payment_method_id:
            payload['payment_method_id'] = payment_method_id
        return payload

    def submit(self, card=None) -> bool:
        """
        Validate, tokenize the card when a hold applies, then create the
        reservation. Returns True when the reservation was confirmed.
        """
        if self.state == FormState.SUBMITTING:
            return False

        try:
            self.require_valid()
        except ValidationError as exc:
            self.field_errors = exc.errors
            self.last_error = 'Please correct the highlighted fields'
            return False
        self.field_errors = {}

        self.state = FormState.SUBMITTING
        self.last_error = None
        try:
            payment_method_id = None
            if self.venue.hold_fee_applies(self.is_member):
                payment_method_id = self._tokenize(card)
            reservation = self.api.create_reservation(self.build_payload(payment_method_id))
        except SlotConflictError as exc:
            self.alternatives = exc.alternative_times
            self.state = FormState.ALTERNATIVES_OFFERED
            self.notify('warning', exc.message)
            return False
        except PaymentError as exc:
            self.field_errors = {'payment': str(exc)}
            self._reject(f'Payment failed: {exc}')
            return False
        except ApiError as exc:
            server_errors = exc.payload.get('errors')
            if isinstance(server_errors, dict):
                self.field_errors = server_errors
            self._reject(exc.message)
            return False
        except BookingError as exc:
            self._reject(str(exc))
            return False

        self.reservation = reservation
        self.state = FormState.CONFIRMED
        self.notify('success', 'Reservation confirmed')
        if self.on_save:
            self.on_save(reservation)
        if self.on_close:
            self.on_close()
        return True

    def _tokenize(self, card) -> str:
        if self.tokenizer is None:
            raise PaymentError('Card payments are not available')
        token = self.tokenizer.tokenize(card, self.venue.hold_amount())
        if not token:
            raise PaymentError('The card could not be verified')
        return token

    def _report(self, message: str) -> None:
        self.last_error = message
        self.notify('error', message)

    def _reject(self, message: str) -> None:
        self.state = FormState.READY
        self._report(message)

    # =========================================================================
    # ALTERNATIVES
    # =========================================================================

    def choose_alternative(self, time_str: str) -> None:
        """
        Take one of the offered alternative times and return to READY. If it
        was booked meanwhile the selection falls back like any other refresh.
        """
        if self.state != FormState.ALTERNATIVES_OFFERED:
            raise RuntimeError('No alternative times are on offer')
        offered = [t for t in (self.alternatives or {}).values() if t]
        if time_str not in offered:
            raise ValueError(f'{time_str} was not offered')

        self.alternatives = None
        self.state = FormState.READY
        self.available_times = self.fetcher.fetch(self.date, self.party_size)
        if time_str not in self.available_times:
            self.notify('warning', f'{time_str} is no longer available')
        self.time = reconcile_selected_time(time_str, self.available_times)
        self._sync_ready()

    def cancel_alternatives(self) -> None:
        self.alternatives = None
        self.state = FormState.IDLE
