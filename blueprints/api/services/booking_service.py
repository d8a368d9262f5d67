"""
Reservation booking business logic.

Resolves guest identity, applies the hold-fee rule, checks the date and the
slot, assigns a table and sends the confirmation texts. Routes translate the
exceptions raised here into HTTP responses.
"""

import logging

from flask import current_app

from booking.policy import hold_amount, reservation_end
from models.member import find_member_by_phone, get_member_by_member_id
from models.private_event import get_private_event_by_id
from models.reservation import get_reservation_by_id, insert_reservation
from models.reservation_availability import (
    find_alternative_times, find_available_table, is_bookable_day,
    is_table_free
)
from models.settings import get_hold_fee_config, get_settings
from models.table import get_table_by_id
from services.notifications import send_admin_notification, send_reservation_confirmation
from utils.datetime_helpers import get_timezone, local_date_str, local_time_str, parse_utc, to_utc_iso
from utils.messages import get_message
from utils.validators import normalize_phone

logger = logging.getLogger(__name__)


class SlotUnavailableError(Exception):
    """No table can seat the party at the requested time."""

    def __init__(self, message: str, alternative_times: dict, requested_time: str):
        super().__init__(message)
        self.message = message
        self.alternative_times = alternative_times
        self.requested_time = requested_time


def resolve_identity(data: dict) -> dict:
    """
    Guest identity for the reservation.

    Members are looked up by member_id, else by any stored form of their
    phone, and their details replace the submitted ones. Non-members must
    supply first name, last name and email.

    Raises:
        ValueError: Unknown member or incomplete guest identity
    """
    if data.get('is_member'):
        if data.get('member_id'):
            member = get_member_by_member_id(data['member_id'])
        else:
            member = find_member_by_phone(data.get('phone'))
        if not member:
            raise ValueError(get_message('member_not_found'))
        return {
            'first_name': member['first_name'],
            'last_name': member['last_name'],
            'email': member['email'],
            'phone': member['phone'] or normalize_phone(data.get('phone')),
            'member_id': member['member_id'],
            'membership_type': 'member',
        }

    if not (data.get('first_name') and data.get('last_name') and data.get('email')):
        raise ValueError(get_message('guest_identity_required'))
    return {
        'first_name': data['first_name'],
        'last_name': data['last_name'],
        'email': data['email'],
        'phone': normalize_phone(data.get('phone')),
        'member_id': None,
        'membership_type': 'non-member',
    }


def _conflict(start, party_size: int, tz) -> SlotUnavailableError:
    day = local_date_str(start, tz)
    requested = local_time_str(start, tz)
    alternatives = find_alternative_times(day, party_size, requested)
    return SlotUnavailableError(get_message('slot_unavailable'), alternatives, requested)


def create_booking(data: dict) -> dict:
    """
    Create a reservation from validated request data.

    Args:
        data: Request fields (start_time, party_size, phone, identity,
              optional end_time, source, table_id, private_event_id,
              payment_method_id, event_type, notes)

    Returns:
        The stored reservation dict

    Raises:
        ValueError: Identity, payment or date problems (400)
        LookupError: Unknown table or private event (404)
        SlotUnavailableError: Nothing free at that time (409)
    """
    tz = get_timezone()
    party_size = int(data['party_size'])
    source = data.get('source') or ('member' if data.get('is_member') else 'website')

    identity = resolve_identity(data)

    start = parse_utc(data['start_time'])
    end = parse_utc(data['end_time']) if data.get('end_time') else reservation_end(start, party_size)
    if end <= start:
        raise ValueError('A reservation must end after it starts')

    values = dict(identity)
    values.update({
        'party_size': party_size,
        'event_type': data.get('event_type'),
        'notes': data.get('notes'),
        'start_time': to_utc_iso(start),
        'end_time': to_utc_iso(end),
        'source': source,
        'status': 'confirmed',
    })

    # Hold fee: the card hold itself belongs to the payment processor
    if identity['membership_type'] == 'non-member':
        fee = get_hold_fee_config()
        amount = hold_amount(fee['hold_fee_enabled'], fee['hold_fee_amount'])
        if amount > 0:
            if not data.get('payment_method_id'):
                raise ValueError(get_message('payment_required'))
            values.update({
                'payment_method_id': data['payment_method_id'],
                'hold_amount': amount,
                'hold_status': 'pending',
            })

    if data.get('private_event_id'):
        private_event = get_private_event_by_id(data['private_event_id'])
        if not private_event or private_event['status'] != 'active':
            raise LookupError(get_message('private_event_not_found'))
        values['private_event_id'] = private_event['id']
    else:
        if source != 'manual':
            day = local_date_str(start, tz)
            if not is_bookable_day(day):
                raise ValueError(get_message('date_not_bookable', date=day))

        if data.get('table_id'):
            table = get_table_by_id(data['table_id'])
            if not table:
                raise LookupError(get_message('table_not_found'))
            if not is_table_free(table['id'], start, end):
                raise _conflict(start, party_size, tz)
        else:
            table = find_available_table(start, end, party_size)
            if table is None:
                raise _conflict(start, party_size, tz)
        values['table_id'] = table['id']

    reservation_id = insert_reservation(**values)
    reservation = get_reservation_by_id(reservation_id)
    current_app.logger.info('Reservation %s created for %s (party of %s)',
                            reservation_id, values['start_time'], party_size)

    notify_booking(reservation, 'created', guest=True)
    return reservation


def notify_booking(reservation: dict, action: str, guest: bool = False) -> list:
    """Send the guest confirmation (optional) and the admin notification."""
    tz = get_timezone()
    settings = get_settings() or {}
    results = []
    if guest:
        results.append(send_reservation_confirmation(reservation, tz, settings.get('business_name') or 'Noir'))
    results.append(send_admin_notification(reservation, action, settings, tz))
    return [result for result in results if result]
