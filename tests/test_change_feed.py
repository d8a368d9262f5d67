"""
Tests for in-process change notifications.
"""

import pytest

from utils.change_feed import ChangeFeed


class TestChangeFeed:
    """Tests for publish/subscribe."""

    def test_subscriber_receives_change(self):
        feed = ChangeFeed()
        received = []
        feed.subscribe('reservations', received.append)

        change = feed.publish('reservations', 'insert', 7)

        assert received == [change]
        assert change['table'] == 'reservations'
        assert change['action'] == 'insert'
        assert change['id'] == 7

    def test_other_tables_not_notified(self):
        feed = ChangeFeed()
        received = []
        feed.subscribe('reservations', received.append)

        feed.publish('private_events', 'update', 1)
        assert received == []

    def test_unsubscribe(self):
        feed = ChangeFeed()
        received = []
        unsubscribe = feed.subscribe('reservations', received.append)
        unsubscribe()

        feed.publish('reservations', 'delete', 3)
        assert received == []
        assert feed.subscriber_count('reservations') == 0

    def test_failing_subscriber_does_not_block_others(self):
        feed = ChangeFeed()
        received = []

        def broken(change):
            raise RuntimeError('boom')

        feed.subscribe('reservations', broken)
        feed.subscribe('reservations', received.append)
        feed.publish('reservations', 'update', 1)

        assert len(received) == 1

    def test_unknown_action(self):
        with pytest.raises(ValueError):
            ChangeFeed().publish('reservations', 'upsert', 1)

    def test_listen_heartbeat_then_change(self):
        feed = ChangeFeed()
        stream = feed.listen('reservations', heartbeat=0.01, max_events=1)

        assert next(stream) is None
        assert feed.subscriber_count('reservations') == 1

        feed.publish('reservations', 'insert', 5)
        assert next(stream)['id'] == 5
        with pytest.raises(StopIteration):
            next(stream)
        assert feed.subscriber_count('reservations') == 0

    def test_init_app_registers_extension(self, app):
        assert 'change_feed' in app.extensions
