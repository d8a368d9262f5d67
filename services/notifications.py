"""
Guest and admin text notifications for reservations.

Every attempt is recorded in the messages table. Failures are logged and
reported to the caller as a failed record, never raised, so a booking is
never undone by a messaging problem.
"""

import logging

from flask import current_app

from models.message import log_message
from services.messaging import MessagingError
from utils.datetime_helpers import format_local
from utils.validators import normalize_phone

logger = logging.getLogger(__name__)

EVENT_TYPE_LABELS = {
    'birthday': 'Birthday',
    'engagement': 'Engagement',
    'anniversary': 'Anniversary',
    'party': 'Party / Celebration',
    'graduation': 'Graduation',
    'corporate': 'Corporate Event',
    'holiday': 'Holiday Gathering',
    'networking': 'Networking',
    'fundraiser': 'Fundraiser / Charity',
    'bachelor': 'Bachelor / Bachelorette Party',
    'fun': 'Fun Night Out',
    'date': 'Date Night',
}


def event_type_label(event_type: str) -> str:
    if not event_type:
        return 'Dining'
    return EVENT_TYPE_LABELS.get(event_type, event_type)


def deliver(phone: str, content: str, reservation_id: int = None, member_id: str = None) -> dict:
    """
    Send a text through the app's gateway and log the attempt.

    Returns:
        dict: {'id', 'phone', 'status': 'sent'|'failed', 'error_message'}
    """
    to = normalize_phone(phone)
    gateway = current_app.extensions.get('sms')
    error_message = None
    try:
        if gateway is None:
            raise MessagingError('No SMS gateway is registered')
        gateway.send(to, content)
        status = 'sent'
    except MessagingError as exc:
        status = 'failed'
        error_message = str(exc)
        logger.warning('Text to %s failed: %s', to, exc)

    message_id = log_message(to, content, status, reservation_id=reservation_id,
                             member_id=member_id, error_message=error_message)
    return {'id': message_id, 'phone': to, 'status': status, 'error_message': error_message}


def compose_confirmation(reservation: dict, tz, business_name: str = 'Noir') -> str:
    name = reservation.get('first_name') or 'Guest'
    when = format_local(reservation['start_time'], tz, '%A, %B %d, %Y at %I:%M %p')
    occasion = reservation.get('event_type')
    occasion_text = f'Occasion: {event_type_label(occasion)}. ' if occasion and occasion != 'dining' else ''
    return (
        f"Thank you, {name}. Your reservation has been confirmed for {business_name} on {when} "
        f"for {reservation['party_size']} guests. {occasion_text}"
        'Please respond directly to this text message if you need to make any changes '
        'or if you have any questions.'
    )


def compose_admin_notification(reservation: dict, action: str, tz, business_name: str = 'Noir') -> str:
    when = format_local(reservation['start_time'], tz, '%m/%d/%Y at %I:%M %p')
    guest = f"{reservation.get('first_name') or 'Guest'} {reservation.get('last_name') or ''}".strip()
    member = 'Yes' if reservation.get('membership_type') == 'member' else 'No'
    content = (
        f"{business_name} Reservation {action}: {guest}, {when}, {reservation['party_size']} guests, "
        f"Table {reservation.get('table_number') or 'TBD'}, {event_type_label(reservation.get('event_type'))}, "
        f"Member: {member}"
    )
    notes = (reservation.get('notes') or '').strip()
    if notes:
        content += f'\nSpecial Requests: {notes}'
    return content


def send_reservation_confirmation(reservation: dict, tz, business_name: str = 'Noir') -> dict:
    """Text the guest their confirmation."""
    if not reservation.get('phone'):
        logger.info('Reservation %s has no phone; skipping confirmation', reservation.get('id'))
        return None
    return deliver(
        reservation['phone'],
        compose_confirmation(reservation, tz, business_name),
        reservation_id=reservation.get('id'),
        member_id=reservation.get('member_id'),
    )


def send_admin_notification(reservation: dict, action: str, settings: dict, tz) -> dict:
    """Text the venue's admin phone about a created or modified reservation."""
    admin_phone = (settings or {}).get('admin_notification_phone')
    if not admin_phone:
        logger.info('Admin notification phone not configured')
        return None
    business_name = (settings or {}).get('business_name') or 'Noir'
    return deliver(
        admin_phone,
        compose_admin_notification(reservation, action, tz, business_name),
        reservation_id=reservation.get('id'),
    )
