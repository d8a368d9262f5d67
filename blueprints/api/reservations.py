"""
Reservation API routes: listing, booking, edits, cancellation and the
server-sent change stream.
"""

import json

from flask import Response, current_app, request

from blueprints.api.forms import ReservationForm, json_formdata
from blueprints.api.services.booking_service import SlotUnavailableError, create_booking, notify_booking
from models.reservation import delete_reservation, get_reservation_by_id, get_reservations, update_reservation
from models.table import get_table_by_id
from utils.api_response import api_error, api_success, form_errors
from utils.messages import get_message

# Edits that change what the venue has to prepare for
NOTIFY_ON_CHANGE = {'start_time', 'end_time', 'party_size', 'table_id'}


def register_routes(bp):
    """Register reservation routes on the blueprint."""

    @bp.route('/reservations', methods=['GET'])
    def list_reservations():
        """
        List reservations.

        Query params:
            startDate: Lower bound on start_time (UTC instant or YYYY-MM-DD)
            endDate: Upper bound on start_time, exclusive
            status: Optional status filter
        """
        try:
            reservations = get_reservations(
                start=request.args.get('startDate'),
                end=request.args.get('endDate'),
                status=request.args.get('status'),
            )
        except ValueError:
            return api_error(get_message('invalid_date_range'), 400)
        return api_success(data=reservations)

    @bp.route('/reservations', methods=['POST'])
    def create_reservation():
        """
        Book a reservation.

        Returns:
            201 with the reservation, 400 on validation problems, 409 with
            alternative_times when nothing is free at the requested time
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)

        form = ReservationForm(formdata=json_formdata(data))
        if not form.validate():
            return api_error(get_message('validation_failed'), 400, errors=form_errors(form))

        try:
            reservation = create_booking(form.data)
        except SlotUnavailableError as e:
            return api_error(e.message, 409,
                             alternative_times=e.alternative_times,
                             requested_time=e.requested_time)
        except LookupError as e:
            return api_error(str(e), 404)
        except ValueError as e:
            return api_error(str(e), 400)
        except Exception as e:
            current_app.logger.error(f'Error creating reservation: {e}', exc_info=True)
            return api_error(get_message('internal_error'), 500)

        return api_success(data=reservation, message=get_message('reservation_created'), status=201)

    @bp.route('/reservations/changes')
    def reservation_changes():
        """
        Server-sent events: one 'change' event per reservation insert, update
        or delete. Query param ``limit`` closes the stream after that many.
        """
        feed = current_app.extensions['change_feed']
        limit = request.args.get('limit', type=int)
        heartbeat = current_app.config.get('CHANGE_FEED_HEARTBEAT', 15.0)

        def stream():
            yield ': connected\n\n'
            for change in feed.listen('reservations', heartbeat=heartbeat, max_events=limit):
                if change is None:
                    yield ': keepalive\n\n'
                else:
                    yield f'event: change\ndata: {json.dumps(change)}\n\n'

        return Response(stream(), mimetype='text/event-stream',
                        headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'})

    @bp.route('/reservations/<int:reservation_id>', methods=['GET'])
    def reservation_detail(reservation_id):
        reservation = get_reservation_by_id(reservation_id)
        if not reservation:
            return api_error(get_message('reservation_not_found'), 404)
        return api_success(data=reservation)

    @bp.route('/reservations/<int:reservation_id>', methods=['PATCH'])
    def edit_reservation(reservation_id):
        """Update only the supplied fields; last write wins."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return api_error(get_message('invalid_json'), 400)

        if data.get('table_id') is not None and not get_table_by_id(data['table_id']):
            return api_error(get_message('table_not_found'), 404)

        try:
            changed = update_reservation(reservation_id, data)
        except (TypeError, ValueError) as e:
            return api_error(str(e), 400)
        except Exception as e:
            current_app.logger.error(f'Error updating reservation {reservation_id}: {e}', exc_info=True)
            return api_error(get_message('internal_error'), 500)

        if changed is None:
            return api_error(get_message('reservation_not_found'), 404)

        reservation = get_reservation_by_id(reservation_id)
        if NOTIFY_ON_CHANGE & set(changed):
            notify_booking(reservation, 'modified')

        return api_success(data=reservation, message=get_message('reservation_updated'), changed=changed)

    @bp.route('/reservations/<int:reservation_id>', methods=['DELETE'])
    def remove_reservation(reservation_id):
        """Hard delete, or mark cancelled with ?soft=1."""
        soft = request.args.get('soft', '').lower() in ('1', 'true')
        if not delete_reservation(reservation_id, soft=soft):
            return api_error(get_message('reservation_not_found'), 404)
        key = 'reservation_cancelled' if soft else 'reservation_deleted'
        return api_success(data={'id': reservation_id}, message=get_message(key))
