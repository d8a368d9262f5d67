"""
Venue hours API routes: weekly base hours, exceptional opens and closures.
"""

from flask import request

from models.venue_hours import (
    HOURS_TYPES, VenueHoursConflict, create_exceptional_closure, create_exceptional_open,
    delete_venue_hours, get_venue_hours, get_venue_hours_by_id, save_base_hours,
    update_venue_hours
)
from utils.api_response import api_error, api_success
from utils.messages import get_message


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, (dict, list)) else None


def register_routes(bp):
    """Register venue hours routes on the blueprint."""

    @bp.route('/venue-hours', methods=['GET'])
    def list_venue_hours():
        """All venue hours rows; ?type= narrows to one kind."""
        hours_type = request.args.get('type')
        if hours_type and hours_type not in HOURS_TYPES:
            return api_error(get_message('invalid_value'), 400)
        return api_success(data=get_venue_hours(hours_type))

    @bp.route('/venue-hours/base', methods=['PUT'])
    def replace_base_hours():
        """
        Replace the weekly base hours.

        Body: [{day_of_week, enabled, time_ranges}, ...] or {"days": [...]}
        """
        data = _json_body()
        if data is None:
            return api_error(get_message('invalid_json'), 400)
        days = data.get('days') if isinstance(data, dict) else data
        if not isinstance(days, list):
            return api_error(get_message('invalid_value'), 400)

        try:
            rows = save_base_hours(days)
        except (TypeError, ValueError) as e:
            return api_error(str(e), 400)
        return api_success(data=rows, message=get_message('base_hours_saved'))

    @bp.route('/venue-hours/exceptional-opens', methods=['POST'])
    def add_exceptional_open():
        data = _json_body()
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)

        try:
            hours_id = create_exceptional_open(data.get('date'), data.get('time_ranges'), data.get('label'))
        except VenueHoursConflict as e:
            return api_error(str(e), 409)
        except (TypeError, ValueError) as e:
            return api_error(str(e), 400)
        return api_success(data=get_venue_hours_by_id(hours_id),
                           message=get_message('exceptional_open_created'), status=201)

    @bp.route('/venue-hours/exceptional-closures', methods=['POST'])
    def add_exceptional_closure():
        data = _json_body()
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)

        try:
            hours_id = create_exceptional_closure(
                data.get('date'),
                full_day=bool(data.get('full_day', True)),
                time_ranges=data.get('time_ranges'),
                reason=data.get('reason'),
            )
        except VenueHoursConflict as e:
            return api_error(str(e), 409)
        except (TypeError, ValueError) as e:
            return api_error(str(e), 400)
        return api_success(data=get_venue_hours_by_id(hours_id),
                           message=get_message('exceptional_closure_created'), status=201)

    @bp.route('/venue-hours/<int:hours_id>', methods=['PATCH'])
    def edit_venue_hours(hours_id):
        data = _json_body()
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)

        try:
            found = update_venue_hours(hours_id, **data)
        except VenueHoursConflict as e:
            return api_error(str(e), 409)
        except (TypeError, ValueError) as e:
            return api_error(str(e), 400)
        if not found:
            return api_error(get_message('venue_hours_not_found'), 404)
        return api_success(data=get_venue_hours_by_id(hours_id), message=get_message('venue_hours_updated'))

    @bp.route('/venue-hours/<int:hours_id>', methods=['DELETE'])
    def remove_venue_hours(hours_id):
        if not delete_venue_hours(hours_id):
            return api_error(get_message('venue_hours_not_found'), 404)
        return api_success(message=get_message('venue_hours_deleted'))
