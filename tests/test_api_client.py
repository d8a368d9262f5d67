"""
Tests for the HTTP client used by the booking controllers.
"""

import json
import threading
import pytest

import httpx

from booking.api_client import BookingApiClient, RemoteChangeFeed, parse_event_stream
from booking.errors import ApiError, SlotConflictError


def client_for(handler):
    return BookingApiClient(client=httpx.Client(transport=httpx.MockTransport(handler), base_url='http://noir.test'))


class TestEnvelope:
    """Tests for response handling."""

    def test_data_unwrapped(self):
        api = client_for(lambda request: httpx.Response(200, json={'success': True, 'data': [{'id': 1}]}))
        assert api.list_tables() == [{'id': 1}]

    def test_conflict_carries_alternatives(self):
        def handler(request):
            return httpx.Response(409, json={
                'success': False, 'error': 'Taken',
                'alternative_times': {'before': '18:45', 'after': None},
                'requested_time': '19:00',
            })

        with pytest.raises(SlotConflictError) as excinfo:
            client_for(handler).create_reservation({'party_size': 2})

        assert excinfo.value.status == 409
        assert excinfo.value.alternative_times == {'before': '18:45', 'after': None}
        assert excinfo.value.requested_time == '19:00'

    def test_server_error_message(self):
        api = client_for(lambda request: httpx.Response(500, json={'success': False, 'error': 'Internal server error'}))
        with pytest.raises(ApiError) as excinfo:
            api.get_settings()
        assert excinfo.value.status == 500
        assert excinfo.value.message == 'Internal server error'

    def test_non_json_error(self):
        api = client_for(lambda request: httpx.Response(502, text='Bad gateway'))
        with pytest.raises(ApiError) as excinfo:
            api.get_settings()
        assert excinfo.value.status == 502

    def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError('refused', request=request)

        with pytest.raises(ApiError) as excinfo:
            client_for(handler).get_settings()
        assert excinfo.value.status is None


class TestRequests:
    """Tests for request shapes."""

    def test_reservation_window_params(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={'success': True, 'data': []})

        client_for(handler).list_reservations(start_date='2030-07-05T05:00:00Z', end_date='2030-07-06T05:00:00Z')

        assert seen[0].url.params['startDate'] == '2030-07-05T05:00:00Z'
        assert seen[0].url.params['endDate'] == '2030-07-06T05:00:00Z'

    def test_patch_body(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={'success': True, 'data': {'id': 3}})

        client_for(handler).update_reservation(3, {'table_id': 4})

        assert seen[0].method == 'PATCH'
        assert seen[0].url.path == '/api/reservations/3'
        assert json.loads(seen[0].content) == {'table_id': 4}

    def test_soft_delete(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={'success': True})

        client_for(handler).delete_reservation(3, soft=True)
        assert seen[0].url.params['soft'] == '1'

    def test_available_slots(self):
        def handler(request):
            assert json.loads(request.content) == {'date': '2030-07-05', 'party_size': 2}
            return httpx.Response(200, json={'success': True, 'slots': ['18:00', '18:15']})

        assert client_for(handler).available_slots('2030-07-05', 2) == ['18:00', '18:15']


class TestAgainstApp:
    """Tests through the real application."""

    def test_settings_and_slots(self, api, friday):
        assert api.get_settings()['timezone'] == 'America/Chicago'
        assert len(api.available_slots(friday, 2)) == 20

    def test_rules(self, api, friday):
        rules = api.get_availability_rules(friday, friday)
        assert rules['bookable_dates'] == [friday.isoformat()]

    def test_validation_errors_surface(self, api):
        with pytest.raises(ApiError) as excinfo:
            api.create_reservation({'party_size': 2})
        assert excinfo.value.status == 400
        assert 'start_time' in excinfo.value.payload['errors']


class TestEventStream:
    """Tests for server-sent event decoding."""

    def test_parse_change_events(self):
        lines = [
            ': connected',
            '',
            'event: change',
            'data: {"table": "reservations", "action": "insert", "id": 1}',
            '',
            ': keepalive',
            '',
            'event: other',
            'data: {"ignored": true}',
            '',
            'event: change',
            'data: {"table": "reservations", "action": "delete", "id": 2}',
            '',
        ]
        changes = list(parse_event_stream(lines))
        assert [change['id'] for change in changes] == [1, 2]

    def test_malformed_payload_skipped(self):
        assert list(parse_event_stream(['event: change', 'data: {oops', ''])) == []

    def test_remote_feed_delivers_changes(self):
        body = 'event: change\ndata: {"table": "reservations", "action": "update", "id": 9}\n\n'

        def handler(request):
            assert request.url.path == '/api/reservations/changes'
            return httpx.Response(200, text=body, headers={'Content-Type': 'text/event-stream'})

        delivered = threading.Event()
        received = []

        def on_change(change):
            received.append(change)
            delivered.set()

        feed = RemoteChangeFeed(client_for(handler))
        unsubscribe = feed.subscribe('reservations', on_change)

        assert delivered.wait(timeout=5)
        unsubscribe()
        assert received[0]['id'] == 9

    def test_remote_feed_reconnects_after_stream_ends(self):
        connections = []

        def handler(request):
            connections.append(request)
            body = f'event: change\ndata: {{"table": "reservations", "action": "update", "id": {len(connections)}}}\n\n'
            return httpx.Response(200, text=body, headers={'Content-Type': 'text/event-stream'})

        reconnected = threading.Event()
        received = []

        def on_change(change):
            received.append(change)
            if change['id'] == 2:
                reconnected.set()

        feed = RemoteChangeFeed(client_for(handler), reconnect_delay=0.01)
        unsubscribe = feed.subscribe('reservations', on_change)

        assert reconnected.wait(timeout=5)
        unsubscribe()
        actions = [change['action'] for change in received]
        assert actions[:3] == ['update', 'resync', 'update']
        assert received[1]['id'] is None

    def test_remote_feed_retries_refused_stream(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) < 3:
                return httpx.Response(503, json={'success': False, 'error': 'Unavailable'})
            return httpx.Response(200, text='event: change\ndata: {"table": "reservations", "action": "insert", "id": 5}\n\n',
                                  headers={'Content-Type': 'text/event-stream'})

        delivered = threading.Event()
        received = []

        def on_change(change):
            received.append(change)
            delivered.set()

        feed = RemoteChangeFeed(client_for(handler), reconnect_delay=0.01)
        unsubscribe = feed.subscribe('reservations', on_change)

        assert delivered.wait(timeout=5)
        unsubscribe()
        assert received[0] == {'table': 'reservations', 'action': 'insert', 'id': 5}
        assert len(attempts) >= 3

    def test_remote_feed_only_reservations(self):
        feed = RemoteChangeFeed(client_for(lambda request: httpx.Response(200)))
        with pytest.raises(ValueError):
            feed.subscribe('tables', lambda change: None)
