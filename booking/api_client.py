"""
HTTP client for the reservations JSON API.

Every response uses the ``{"success": ..., "data": ...}`` envelope. Non-2xx
answers raise ``ApiError`` (``SlotConflictError`` for a 409 carrying
alternative times); transport failures raise ``ApiError`` with no status.
Requests are not retried; timeouts are httpx's defaults unless configured.
"""

import json
import logging
import threading
from typing import Any

import httpx

from booking.errors import ApiError, SlotConflictError
from utils.datetime_helpers import date_key

logger = logging.getLogger(__name__)


class BookingApiClient:
    """Thin wrapper over ``httpx.Client`` for the ``/api`` routes."""

    def __init__(self, base_url: str = '', client: httpx.Client | None = None,
                 timeout: float | None = None) -> None:
        if client is None:
            options: dict[str, Any] = {'base_url': base_url}
            if timeout is not None:
                options['timeout'] = timeout
            client = httpx.Client(**options)
        self._client = client

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> 'BookingApiClient':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning('%s %s failed: %s', method, path, exc)
            raise ApiError(None, f'Could not reach the reservations service: {exc}') from exc

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {'data': body}

        if response.is_success:
            return body

        message = body.get('error') or f'Request failed with status {response.status_code}'
        if response.status_code == 409 and 'alternative_times' in body:
            raise SlotConflictError(message, body.get('alternative_times'), body)
        raise ApiError(response.status_code, message, body)

    def _data(self, method: str, path: str, **kwargs):
        return self._request(method, path, **kwargs).get('data')

    # -------------------------------------------------------------------------
    # Settings and rules
    # -------------------------------------------------------------------------

    def get_settings(self) -> dict[str, Any]:
        return self._data('GET', '/api/settings') or {}

    def get_hold_fee_config(self) -> dict[str, Any]:
        return self._data('GET', '/api/settings/hold-fee-config') or {}

    def get_venue_hours(self, hours_type: str | None = None) -> list[dict[str, Any]]:
        params = {'type': hours_type} if hours_type else None
        return self._data('GET', '/api/venue-hours', params=params) or []

    def get_availability_rules(self, start, end) -> dict[str, Any]:
        params = {'start': date_key(start), 'end': date_key(end)}
        return self._data('GET', '/api/availability-rules', params=params) or {}

    def available_slots(self, day, party_size: int) -> list[str]:
        """Ordered HH:MM venue-local start times for ``day`` and ``party_size``."""
        body = self._request('POST', '/api/available-slots',
                             json={'date': date_key(day), 'party_size': party_size})
        return list(body.get('slots') or [])

    def find_alternative_times(self, day, party_size: int, requested_time: str) -> dict[str, Any]:
        body = self._request('POST', '/api/find-alternative-times', json={
            'date': date_key(day),
            'party_size': party_size,
            'requested_time': requested_time,
        })
        return body.get('alternative_times') or {'before': None, 'after': None}

    # -------------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------------

    def list_reservations(self, start_date: str | None = None, end_date: str | None = None) -> list[dict[str, Any]]:
        params = {key: value for key, value in (('startDate', start_date), ('endDate', end_date)) if value}
        return self._data('GET', '/api/reservations', params=params or None) or []

    def get_reservation(self, reservation_id) -> dict[str, Any]:
        return self._data('GET', f'/api/reservations/{reservation_id}')

    def create_reservation(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self._data('POST', '/api/reservations', json=payload)

    def update_reservation(self, reservation_id, changes: dict[str, Any]) -> dict[str, Any]:
        return self._data('PATCH', f'/api/reservations/{reservation_id}', json=changes)

    def delete_reservation(self, reservation_id, soft: bool = False) -> None:
        params = {'soft': '1'} if soft else None
        self._request('DELETE', f'/api/reservations/{reservation_id}', params=params)

    # -------------------------------------------------------------------------
    # Calendar resources, private events, messaging
    # -------------------------------------------------------------------------

    def list_tables(self) -> list[dict[str, Any]]:
        return self._data('GET', '/api/tables') or []

    def list_private_events(self, start_date: str | None = None, end_date: str | None = None) -> list[dict[str, Any]]:
        params = {key: value for key, value in (('startDate', start_date), ('endDate', end_date)) if value}
        return self._data('GET', '/api/private-events', params=params or None) or []

    def send_message(self, content: str, reservation_id=None, phone: str | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {'content': content}
        if reservation_id is not None:
            payload['reservation_id'] = reservation_id
        if phone:
            payload['phone'] = phone
        return self._data('POST', '/api/messages', json=payload)

    # -------------------------------------------------------------------------
    # Change stream
    # -------------------------------------------------------------------------

    def stream_changes(self, path: str = '/api/reservations/changes', on_connect=None):
        """
        Yield change dicts from the server-sent-events stream until it ends.
        ``on_connect`` is called once the server has accepted the stream.
        """
        try:
            with self._client.stream('GET', path, timeout=None) as response:
                if not response.is_success:
                    raise ApiError(response.status_code, f'Change stream refused with status {response.status_code}')
                if on_connect is not None:
                    on_connect()
                yield from parse_event_stream(response.iter_lines())
        except httpx.HTTPError as exc:
            raise ApiError(None, f'Change stream interrupted: {exc}') from exc


def parse_event_stream(lines):
    """Decode ``data:`` payloads of ``change`` events from SSE lines; comments are skipped."""
    event_name = 'message'
    data_lines = []
    for line in lines:
        if not line:
            if data_lines and event_name == 'change':
                try:
                    yield json.loads('\n'.join(data_lines))
                except ValueError:
                    logger.warning('Discarding malformed change payload')
            event_name = 'message'
            data_lines = []
            continue
        if line.startswith(':'):
            continue
        name, _, value = line.partition(':')
        value = value[1:] if value.startswith(' ') else value
        if name == 'event':
            event_name = value
        elif name == 'data':
            data_lines.append(value)


class RemoteChangeFeed:
    """
    Client-side change feed backed by the server's SSE stream.

    Exposes the same ``subscribe(table, callback) -> unsubscribe`` shape as the
    in-process feed so the timeline controller can use either. The stream is
    reopened with exponential backoff while anyone is subscribed; every
    reconnection delivers a ``resync`` change because notifications sent
    while disconnected are lost.
    """

    def __init__(self, api: BookingApiClient, reconnect_delay: float = 1.0,
                 max_reconnect_delay: float = 30.0) -> None:
        self._api = api
        self.reconnect_delay = reconnect_delay
        self.max_reconnect_delay = max_reconnect_delay
        self._lock = threading.Lock()
        self._callbacks: list = []
        self._thread: threading.Thread | None = None
        self._wakeup = threading.Event()

    def subscribe(self, table: str, callback):
        if table != 'reservations':
            raise ValueError(f'No change stream for table {table}')
        with self._lock:
            self._callbacks.append(callback)
            self._wakeup.clear()
            if self._thread is None:
                self._thread = threading.Thread(target=self._pump, name='reservation-changes', daemon=True)
                self._thread.start()

        def unsubscribe():
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)
                if not self._callbacks:
                    self._wakeup.set()

        return unsubscribe

    def _subscribers(self) -> list:
        with self._lock:
            return list(self._callbacks)

    def _stop_if_idle(self) -> bool:
        """Release the pump thread once nobody is subscribed."""
        with self._lock:
            if self._callbacks:
                return False
            self._thread = None
            return True

    def _dispatch(self, change: dict) -> None:
        for callback in self._subscribers():
            try:
                callback(change)
            except Exception:
                logger.exception('Change subscriber failed')

    def _pump(self) -> None:
        delay = self.reconnect_delay
        connections = 0

        def connected():
            nonlocal delay, connections
            delay = self.reconnect_delay
            connections += 1
            if connections > 1:
                self._dispatch({'table': 'reservations', 'action': 'resync', 'id': None})

        while not self._stop_if_idle():
            try:
                for change in self._api.stream_changes(on_connect=connected):
                    if self._stop_if_idle():
                        return
                    self._dispatch(change)
                logger.info('Reservation change stream closed; reconnecting in %.1fs', delay)
            except ApiError as exc:
                logger.warning('Reservation change stream stopped: %s; retrying in %.1fs', exc, delay)

            self._wakeup.wait(delay)
            delay = min(delay * 2, self.max_reconnect_delay)
