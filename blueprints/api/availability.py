"""
Availability API routes: date-level rules, bookable slots and alternative
times for a conflicting request.
"""

from datetime import timedelta

from flask import current_app, request

from blueprints.api.forms import AlternativeTimesForm, AvailableSlotsForm, json_formdata
from models.reservation_availability import find_alternative_times, get_available_slots, get_availability_rules
from models.settings import get_settings
from utils.api_response import api_error, api_success, form_errors
from utils.datetime_helpers import get_today, parse_date
from utils.messages import get_message


def default_window() -> tuple:
    """Booking window from settings, else today plus the configured number of days."""
    settings = get_settings() or {}
    today = get_today()
    start = parse_date(settings['booking_start_date']) if settings.get('booking_start_date') else today
    start = max(start, today)
    if settings.get('booking_end_date'):
        end = parse_date(settings['booking_end_date'])
    else:
        end = start + timedelta(days=current_app.config.get('DEFAULT_BOOKING_WINDOW_DAYS', 60))
    return start, max(start, end)


def register_routes(bp):
    """Register availability routes on the blueprint."""

    @bp.route('/availability-rules', methods=['GET'])
    def availability_rules():
        """
        Date-level rules for a window.

        Query params:
            start: YYYY-MM-DD (defaults to the booking window start)
            end: YYYY-MM-DD (defaults to the booking window end)
        """
        default_start, default_end = default_window()
        try:
            start = parse_date(request.args['start']) if request.args.get('start') else default_start
            end = parse_date(request.args['end']) if request.args.get('end') else default_end
            rules = get_availability_rules(start, end)
        except ValueError as e:
            return api_error(str(e), 400)
        return api_success(data=rules)

    @bp.route('/available-slots', methods=['POST'])
    def available_slots():
        """Bookable HH:MM start times for {date, party_size}."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)

        form = AvailableSlotsForm(formdata=json_formdata(data))
        if not form.validate():
            return api_error(get_message('validation_failed'), 400, errors=form_errors(form))

        try:
            slots = get_available_slots(form.date.data, form.party_size.data)
        except ValueError as e:
            return api_error(str(e), 400)
        except Exception as e:
            current_app.logger.error(f'Error computing slots: {e}', exc_info=True)
            return api_error(get_message('internal_error'), 500)

        return api_success(slots=slots, date=form.date.data, party_size=form.party_size.data)

    @bp.route('/find-alternative-times', methods=['POST'])
    def alternative_times():
        """Nearest bookable times before and after {requested_time}."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)

        form = AlternativeTimesForm(formdata=json_formdata(data))
        if not form.validate():
            return api_error(get_message('validation_failed'), 400, errors=form_errors(form))

        try:
            alternatives = find_alternative_times(form.date.data, form.party_size.data, form.requested_time.data)
        except ValueError as e:
            return api_error(str(e), 400)

        return api_success(alternative_times=alternatives, requested_time=form.requested_time.data)
