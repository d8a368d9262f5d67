"""
Centralized user-facing messages.
All API text lives here for consistency.
"""

MESSAGES = {
    # Success messages
    'reservation_created': 'Reservation created',
    'reservation_updated': 'Reservation updated',
    'reservation_deleted': 'Reservation deleted',
    'reservation_cancelled': 'Reservation cancelled',
    'private_event_created': 'Private event created',
    'private_event_updated': 'Private event updated',
    'private_event_deleted': 'Private event deleted',
    'table_created': 'Table created',
    'table_updated': 'Table updated',
    'table_deleted': 'Table deleted',
    'base_hours_saved': 'Base hours saved',
    'exceptional_open_created': 'Exceptional open day added',
    'exceptional_closure_created': 'Exceptional closure added',
    'venue_hours_updated': 'Venue hours updated',
    'venue_hours_deleted': 'Venue hours entry deleted',
    'settings_updated': 'Settings updated',
    'message_sent': 'Message sent',

    # Error messages
    'invalid_json': 'Request body must be JSON',
    'validation_failed': 'Please correct the highlighted fields',
    'not_found': 'Resource not found',
    'reservation_not_found': 'Reservation not found',
    'private_event_not_found': 'Private event not found',
    'table_not_found': 'Table not found',
    'venue_hours_not_found': 'Venue hours entry not found',
    'slot_unavailable': 'The requested time is no longer available',
    'date_not_bookable': 'The venue is not open for reservations on {date}',
    'payment_required': 'A payment method is required to hold this reservation',
    'guest_identity_required': 'First name, last name and email are required for non-member reservations',
    'member_not_found': 'No member matches the supplied member ID',
    'duplicate_table_number': 'A table with number {number} already exists',
    'closure_conflicts_open': 'An exceptional open already exists on {date}',
    'open_conflicts_closure': 'An exceptional closure already exists on {date}',
    'invalid_date_range': 'The end date must not be before the start date',
    'invalid_email': 'Invalid email format',
    'invalid_phone': 'Invalid phone number',
    'messaging_unavailable': 'The messaging service is not configured',
    'message_failed': 'Message could not be sent: {error}',
    'internal_error': 'Internal server error',
    'method_not_allowed': 'Method not allowed',
    'bad_request': 'Bad request',

    # Validation messages
    'field_required': 'This field is required',
    'invalid_value': 'Invalid value',
}


def get_message(key: str, **kwargs) -> str:
    """
    Get message with optional formatting.

    Args:
        key: Message key
        **kwargs: Format parameters

    Returns:
        Formatted message or key if not found
    """
    message = MESSAGES.get(key, key)
    if kwargs:
        return message.format(**kwargs)
    return message
