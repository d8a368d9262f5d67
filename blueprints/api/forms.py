"""
Request validation forms using Flask-WTF.
The API exchanges JSON, so forms are fed a flattened copy of the request body
and CSRF is disabled in config.
"""

from flask_wtf import FlaskForm
from werkzeug.datastructures import ImmutableMultiDict
from wtforms import BooleanField, FloatField, IntegerField, StringField
from wtforms.validators import AnyOf, DataRequired, InputRequired, Length, NumberRange, Optional, Regexp, ValidationError

from utils.validators import validate_email, validate_phone

DATE_REGEX = r'^\d{4}-\d{2}-\d{2}$'
TIME_REGEX = r'^([01][0-9]|2[0-3]):[0-5][0-9]$'


def _form_value(value) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def json_formdata(data: dict) -> ImmutableMultiDict:
    """Scalar JSON members as form strings; nulls, lists and objects are left out."""
    return ImmutableMultiDict({
        key: _form_value(value) for key, value in (data or {}).items()
        if value is not None and not isinstance(value, (list, dict))
    })


def email_address(form, field):
    if field.data and not validate_email(field.data):
        raise ValidationError('Invalid email format')


def us_phone(form, field):
    if field.data and not validate_phone(str(field.data)):
        raise ValidationError('Invalid phone number')


class AvailableSlotsForm(FlaskForm):
    """Date and party size for slot lookups."""

    date = StringField('Date', validators=[
        DataRequired(message='The date is required'),
        Regexp(DATE_REGEX, message='Date must be YYYY-MM-DD')
    ])

    party_size = IntegerField('Party size', validators=[
        InputRequired(message='The party size is required'),
        NumberRange(min=1, max=50, message='Party size must be between 1 and 50')
    ])


class AlternativeTimesForm(AvailableSlotsForm):
    """Slot lookup around a requested time."""

    requested_time = StringField('Requested time', validators=[
        DataRequired(message='The requested time is required'),
        Regexp(TIME_REGEX, message='Time must be HH:MM')
    ])


class ReservationForm(FlaskForm):
    """New reservation."""

    start_time = StringField('Start', validators=[DataRequired(message='The start time is required')])
    end_time = StringField('End', validators=[Optional()])
    party_size = IntegerField('Party size', validators=[
        InputRequired(message='The party size is required'),
        NumberRange(min=1, max=50, message='Party size must be between 1 and 50')
    ])
    phone = StringField('Phone', validators=[DataRequired(message='The phone number is required'), us_phone])
    email = StringField('Email', validators=[Optional(), email_address, Length(max=200)])
    first_name = StringField('First name', validators=[Optional(), Length(max=100)])
    last_name = StringField('Last name', validators=[Optional(), Length(max=100)])
    is_member = BooleanField('Member')
    member_id = StringField('Member ID', validators=[Optional(), Length(max=50)])
    event_type = StringField('Occasion', validators=[Optional(), Length(max=50)])
    notes = StringField('Notes', validators=[Optional(), Length(max=2000)])
    source = StringField('Source', validators=[
        Optional(),
        AnyOf(['manual', 'website', 'member'], message='Unknown reservation source')
    ])
    payment_method_id = StringField('Payment method', validators=[Optional(), Length(max=255)])
    table_id = IntegerField('Table', validators=[Optional()])
    private_event_id = IntegerField('Private event', validators=[Optional()])


class PrivateEventForm(FlaskForm):
    """New private event."""

    title = StringField('Title', validators=[DataRequired(message='The title is required'), Length(max=200)])
    event_type = StringField('Event type', validators=[DataRequired(message='The event type is required')])
    start_time = StringField('Start', validators=[DataRequired(message='The start time is required')])
    end_time = StringField('End', validators=[DataRequired(message='The end time is required')])
    full_day = BooleanField('Full day')
    max_guests = IntegerField('Max guests', validators=[Optional(), NumberRange(min=0)])
    total_attendees_maximum = IntegerField('Total attendees', validators=[Optional(), NumberRange(min=0)])
    deposit_required = FloatField('Deposit', validators=[Optional(), NumberRange(min=0)])
    event_description = StringField('Description', validators=[Optional(), Length(max=5000)])
    rsvp_enabled = BooleanField('RSVP')
    require_time_selection = BooleanField('Time selection')
    status = StringField('Status', validators=[
        Optional(),
        AnyOf(['active', 'cancelled', 'completed'], message='Unknown event status')
    ])


class TableForm(FlaskForm):
    """New table."""

    table_number = StringField('Table number', validators=[
        DataRequired(message='The table number is required'),
        Length(max=10)
    ])
    seats = IntegerField('Seats', validators=[
        InputRequired(message='The seat count is required'),
        NumberRange(min=1, max=50, message='Seats must be between 1 and 50')
    ])


class HoldFeeConfigForm(FlaskForm):
    """Hold fee switch and amount."""

    hold_fee_enabled = BooleanField('Enabled')
    hold_fee_amount = FloatField('Amount', validators=[
        InputRequired(message='The hold fee amount is required'),
        NumberRange(min=0, message='The amount cannot be negative')
    ])


class MessageForm(FlaskForm):
    """Outbound text to a reservation's guest or a phone number."""

    content = StringField('Content', validators=[
        DataRequired(message='The message content is required'),
        Length(max=1600)
    ])
    phone = StringField('Phone', validators=[Optional(), us_phone])
    reservation_id = IntegerField('Reservation', validators=[Optional()])
