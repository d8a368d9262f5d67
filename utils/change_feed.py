"""
In-process change notifications.

Models publish ``(table, action, row_id)`` after every committed write.
Subscribers receive an opaque signal; they are expected to re-fetch rather
than apply the payload. ``listen()`` backs the server-sent-events endpoint.
"""

import logging
import queue
import threading
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

ACTIONS = ('insert', 'update', 'delete')


class ChangeFeed:
    """Thread-safe publish/subscribe keyed by table name."""

    def __init__(self, app=None):
        self._lock = threading.RLock()
        self._subscribers = {}
        self._queues = {}
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.extensions['change_feed'] = self

    def subscribe(self, table: str, callback):
        """
        Register a callback for changes to ``table``.

        Args:
            table: Table name (e.g. 'reservations')
            callback: Called with the change dict

        Returns:
            A zero-argument function that removes the subscription
        """
        with self._lock:
            self._subscribers.setdefault(table, []).append(callback)

        def unsubscribe():
            with self._lock:
                callbacks = self._subscribers.get(table, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def subscriber_count(self, table: str) -> int:
        with self._lock:
            return len(self._subscribers.get(table, [])) + len(self._queues.get(table, []))

    def publish(self, table: str, action: str, row_id=None) -> dict:
        """
        Notify every subscriber of ``table``. A failing subscriber is logged
        and does not prevent delivery to the others.
        """
        if action not in ACTIONS:
            raise ValueError(f'Unknown change action: {action}')

        change = {
            'table': table,
            'action': action,
            'id': row_id,
            'at': datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ'),
        }

        with self._lock:
            callbacks = list(self._subscribers.get(table, []))
            queues = list(self._queues.get(table, []))

        for callback in callbacks:
            try:
                callback(change)
            except Exception:
                logger.exception('Change subscriber for %s failed', table)

        for pending in queues:
            pending.put(change)

        return change

    def listen(self, table: str, heartbeat: float = 15.0, max_events: int | None = None):
        """
        Yield changes to ``table`` as they arrive; yields ``None`` every
        ``heartbeat`` seconds of silence so streaming responses can keep alive.
        """
        pending = queue.Queue()
        with self._lock:
            self._queues.setdefault(table, []).append(pending)

        delivered = 0
        try:
            while max_events is None or delivered < max_events:
                try:
                    change = pending.get(timeout=heartbeat)
                except queue.Empty:
                    yield None
                    continue
                delivered += 1
                yield change
        finally:
            with self._lock:
                queues = self._queues.get(table, [])
                if pending in queues:
                    queues.remove(pending)
