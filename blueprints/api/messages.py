"""
Outbound message API routes.
"""

from flask import request

from blueprints.api.forms import MessageForm, json_formdata
from models.message import get_messages
from models.reservation import get_reservation_by_id
from services.notifications import deliver
from utils.api_response import api_error, api_success, form_errors
from utils.messages import get_message


def register_routes(bp):
    """Register message routes on the blueprint."""

    @bp.route('/messages', methods=['GET'])
    def list_messages():
        return api_success(data=get_messages(request.args.get('reservation_id', type=int)))

    @bp.route('/messages', methods=['POST'])
    def send_message():
        """
        Text a guest.

        Body: {content, reservation_id?, phone?}; the reservation's phone is
        used when no phone is given.

        Returns:
            201 when sent, 502 when the gateway failed (the attempt is logged)
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)

        form = MessageForm(formdata=json_formdata(data))
        if not form.validate():
            return api_error(get_message('validation_failed'), 400, errors=form_errors(form))

        reservation = None
        if form.reservation_id.data is not None:
            reservation = get_reservation_by_id(form.reservation_id.data)
            if not reservation:
                return api_error(get_message('reservation_not_found'), 404)

        phone = form.phone.data or (reservation or {}).get('phone')
        if not phone:
            return api_error(get_message('validation_failed'), 400,
                             errors={'phone': get_message('field_required')})

        record = deliver(
            phone, form.content.data,
            reservation_id=reservation['id'] if reservation else None,
            member_id=reservation.get('member_id') if reservation else None,
        )
        if record['status'] != 'sent':
            return api_error(get_message('message_failed', error=record['error_message']), 502, data=record)
        return api_success(data=record, message=get_message('message_sent'), status=201)
