"""
Private event API routes.
"""

from flask import current_app, request

from blueprints.api.forms import PrivateEventForm, json_formdata
from models.private_event import (
    create_private_event, delete_private_event, get_private_event_by_id,
    get_private_events, update_private_event
)
from utils.api_response import api_error, api_success, form_errors
from utils.messages import get_message


def register_routes(bp):
    """Register private event routes on the blueprint."""

    @bp.route('/private-events', methods=['GET'])
    def list_private_events():
        """
        List private events overlapping [startDate, endDate).

        Query params:
            startDate, endDate: UTC instants or YYYY-MM-DD (optional)
            status: Optional status filter
        """
        try:
            events = get_private_events(
                start=request.args.get('startDate'),
                end=request.args.get('endDate'),
                status=request.args.get('status'),
            )
        except ValueError:
            return api_error(get_message('invalid_date_range'), 400)
        return api_success(data=events)

    @bp.route('/private-events', methods=['POST'])
    def add_private_event():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)

        form = PrivateEventForm(formdata=json_formdata(data))
        if not form.validate():
            return api_error(get_message('validation_failed'), 400, errors=form_errors(form))

        fields = {key: value for key, value in form.data.items() if value is not None and value != ''}
        try:
            event_id = create_private_event(**fields)
        except ValueError as e:
            return api_error(str(e), 400)

        current_app.logger.info('Private event %s created: %s', event_id, fields['title'])
        return api_success(data=get_private_event_by_id(event_id),
                           message=get_message('private_event_created'), status=201)

    @bp.route('/private-events/<int:event_id>', methods=['GET'])
    def private_event_detail(event_id):
        event = get_private_event_by_id(event_id)
        if not event:
            return api_error(get_message('private_event_not_found'), 404)
        return api_success(data=event)

    @bp.route('/private-events/<int:event_id>', methods=['PATCH'])
    def edit_private_event(event_id):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)

        try:
            found = update_private_event(event_id, **data)
        except ValueError as e:
            return api_error(str(e), 400)
        if not found:
            return api_error(get_message('private_event_not_found'), 404)
        return api_success(data=get_private_event_by_id(event_id), message=get_message('private_event_updated'))

    @bp.route('/private-events/<int:event_id>', methods=['DELETE'])
    def remove_private_event(event_id):
        if not delete_private_event(event_id):
            return api_error(get_message('private_event_not_found'), 404)
        return api_success(message=get_message('private_event_deleted'))
