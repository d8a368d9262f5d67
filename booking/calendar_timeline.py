"""
Calendar timeline: reservations and private-event holds laid out on table
lanes, with drag/resize gestures reconciled against the server.

Gestures are two-phase. ``begin`` applies the change locally and remembers
the original placement; the PATCH result then either accepts it (followed by
a full refresh) or reverts to the original. The displayed state therefore
always matches something the server persisted.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable

from booking.config import VenueConfig
from booking.errors import BookingError
from utils.datetime_helpers import local_day_bounds, parse_date, parse_utc, to_utc_iso

logger = logging.getLogger(__name__)

PRIVATE_EVENTS_LANE = 'private-events'
MEMBER_MARKER = '★ '


@dataclass
class CalendarEvent:
    """One box on the timeline. ``start``/``end`` are aware UTC datetimes."""

    id: str
    resource_id: str
    start: datetime
    end: datetime
    title: str
    kind: str = 'reservation'
    reservation_id: int | None = None
    private_event_id: int | None = None
    extended: dict = field(default_factory=dict)

    @property
    def is_blocking(self) -> bool:
        return self.kind == 'blocking'

    def covers(self, resource_id: str, when: datetime) -> bool:
        return self.resource_id == resource_id and self.start <= when < self.end


@dataclass
class PendingGesture:
    """Original placement of an event awaiting server confirmation."""

    event_id: str
    original: CalendarEvent
    changes: dict


# =============================================================================
# MAPPING
# =============================================================================

def _table_sort_key(table: dict):
    number = str(table.get('table_number', ''))
    return (0, int(number), number) if number.isdigit() else (1, 0, number)


def build_resources(tables: list) -> list:
    """
    Table lanes sorted numerically by table number, then the private-events lane.

    Returns:
        List of dicts with 'id', 'title' and 'seats'
    """
    resources = [
        {
            'id': str(table['id']),
            'title': f"Table {table['table_number']}",
            'seats': table.get('seats'),
        }
        for table in sorted(tables, key=_table_sort_key)
    ]
    resources.append({'id': PRIVATE_EVENTS_LANE, 'title': 'Private Events', 'seats': None})
    return resources


def display_name(reservation: dict) -> str:
    first = reservation.get('first_name')
    if first:
        last = reservation.get('last_name')
        return f'{first} {last}' if last else first
    phone = reservation.get('phone') or ''
    return f'Guest ({phone[-4:]})' if phone else 'Guest'


def reservation_title(reservation: dict) -> str:
    marker = MEMBER_MARKER if reservation.get('membership_type') == 'member' else ''
    return f"{marker}{display_name(reservation)} | Party Size: {reservation.get('party_size')}"


def map_reservation_events(reservations: list, resources: list, private_events: list) -> list:
    """
    Turn reservation rows into timeline events.

    Private-event attendees (no table, linked event) go to the private-events
    lane and take the event's window unless it lets guests pick their own
    time. Other reservations use their table lane, or the first table lane
    when unassigned. Cancelled reservations are left off.
    """
    events_by_id = {event['id']: event for event in private_events}
    table_lanes = [resource['id'] for resource in resources if resource['id'] != PRIVATE_EVENTS_LANE]
    mapped = []

    for reservation in reservations:
        if reservation.get('status') == 'cancelled':
            continue

        start = reservation['start_time']
        end = reservation['end_time']
        if reservation.get('table_id') is None and reservation.get('private_event_id'):
            lane = PRIVATE_EVENTS_LANE
            private_event = events_by_id.get(reservation['private_event_id'])
            if private_event and not private_event.get('require_time_selection'):
                start = private_event['start_time']
                end = private_event['end_time']
        elif reservation.get('table_id') is not None:
            lane = str(reservation['table_id'])
        elif table_lanes:
            lane = table_lanes[0]
        else:
            lane = 'unassigned'

        mapped.append(CalendarEvent(
            id=str(reservation['id']),
            resource_id=lane,
            start=parse_utc(start),
            end=parse_utc(end),
            title=reservation_title(reservation),
            reservation_id=reservation['id'],
            private_event_id=reservation.get('private_event_id'),
            extended=dict(reservation),
        ))

    return mapped


def build_blocking_events(private_events: list, resources: list, day, tz) -> list:
    """
    One background hold per table lane for each active private event that
    starts on the displayed venue-local ``day``.
    """
    day_start, day_end = local_day_bounds(parse_date(day), tz)
    table_lanes = [resource for resource in resources if resource['id'] != PRIVATE_EVENTS_LANE]
    blocking = []

    for private_event in private_events:
        if private_event.get('status') != 'active':
            continue
        start = parse_utc(private_event['start_time'])
        if not (day_start <= start < day_end):
            continue
        end = parse_utc(private_event['end_time'])
        for resource in table_lanes:
            blocking.append(CalendarEvent(
                id=f"blocking-{private_event['id']}-{resource['id']}",
                resource_id=resource['id'],
                start=start,
                end=end,
                title=f"{private_event['title']} - Private Event",
                kind='blocking',
                private_event_id=private_event['id'],
            ))

    return blocking


# =============================================================================
# CONTROLLER
# =============================================================================

def _log_notification(level: str, message: str) -> None:
    logger.log(logging.ERROR if level == 'error' else logging.INFO, message)


class CalendarTimelineController:
    """Keeps the timeline for one displayed day in step with the server.

    Change notifications may arrive on a feed thread, so loading and gestures
    run under one re-entrant lock.
    """

    def __init__(self, api, venue: VenueConfig, feed=None,
                 notify: Callable[[str, str], None] | None = None,
                 day: date | None = None):
        self.api = api
        self.venue = venue
        self.feed = feed
        self.notify = notify or _log_notification
        self.day = parse_date(day) if day else date.today()

        self.tables: list = []
        self.resources: list = []
        self.private_events: list = []
        self.reservations: list = []
        self.events: list = []
        self.pending: dict = {}
        self.refresh_count = 0
        self._unsubscribe = None
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self) -> bool:
        """Fetch tables, private events and reservations; rebuild every event."""
        with self._lock:
            day_start, day_end = local_day_bounds(self.day, self.venue.tz)
            window = {'start_date': to_utc_iso(day_start), 'end_date': to_utc_iso(day_end)}
            try:
                tables = self.api.list_tables()
                private_events = self.api.list_private_events(**window)
                reservations = self.api.list_reservations(**window)
            except BookingError as exc:
                self.notify('error', f'Failed to load reservations: {exc}')
                return False

            self.tables = tables
            self.private_events = private_events
            self.reservations = reservations
            self._rebuild()
            self.refresh_count += 1
            return True

    def refresh(self, change=None) -> bool:
        """Full re-fetch; used for every change notification."""
        return self.load()

    def _rebuild(self) -> None:
        self.resources = build_resources(self.tables)
        self.events = (
            map_reservation_events(self.reservations, self.resources, self.private_events)
            + build_blocking_events(self.private_events, self.resources, self.day, self.venue.tz)
        )
        self.pending.clear()

    def set_date(self, day) -> bool:
        with self._lock:
            self.day = parse_date(day)
            return self.load()

    def start(self) -> None:
        """Load, then subscribe to reservation changes."""
        self.load()
        if self.feed is not None and self._unsubscribe is None:
            self._unsubscribe = self.feed.subscribe('reservations', self.refresh)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get_event(self, event_id: str) -> CalendarEvent | None:
        for event in self.events:
            if event.id == str(event_id):
                return event
        return None

    def is_slot_blocked(self, resource_id, when) -> bool:
        """True when a private-event hold covers ``resource_id`` at ``when``."""
        instant = parse_utc(when)
        return any(event.is_blocking and event.covers(str(resource_id), instant) for event in self.events)

    # -------------------------------------------------------------------------
    # Gestures
    # -------------------------------------------------------------------------

    def move_event(self, event_id, new_start, new_end=None, new_resource_id=None) -> bool:
        """
        Drag an event to a new start (keeping its length unless ``new_end`` is
        given) and optionally a new table lane.
        """
        with self._lock:
            event = self.get_event(event_id)
            if event is None:
                return False
            start = parse_utc(new_start)
            end = parse_utc(new_end) if new_end is not None else start + (event.end - event.start)
            resource_id = str(new_resource_id) if new_resource_id is not None else event.resource_id
            return self._apply_gesture(event, start, end, resource_id)

    def resize_event(self, event_id, new_start, new_end) -> bool:
        with self._lock:
            event = self.get_event(event_id)
            if event is None:
                return False
            return self._apply_gesture(event, parse_utc(new_start), parse_utc(new_end), event.resource_id)

    def _apply_gesture(self, event: CalendarEvent, start: datetime, end: datetime, resource_id: str) -> bool:
        if event.is_blocking:
            logger.info('Ignoring gesture on private-event hold %s', event.id)
            return False

        if end <= start:
            self.notify('error', 'A reservation must end after it starts')
            return False

        changes = {}
        if start != event.start or end != event.end:
            changes['start_time'] = to_utc_iso(start)
            changes['end_time'] = to_utc_iso(end)
        if resource_id != event.resource_id:
            if resource_id == PRIVATE_EVENTS_LANE:
                self.notify('error', 'Reservations cannot be moved onto the private events lane')
                return False
            changes['table_id'] = int(resource_id)
        if not changes:
            return True

        pending = self.begin(event, start, end, resource_id, changes)
        try:
            self.api.update_reservation(event.reservation_id, changes)
        except BookingError as exc:
            self.revert(pending)
            self.notify('error', f'Reservation update failed: {exc}')
            return False

        self.accept(pending)
        self.notify('success', 'Reservation updated')
        self.refresh()
        return True

    def begin(self, event: CalendarEvent, start, end, resource_id, changes) -> PendingGesture:
        """Phase one: apply the change locally and remember the original."""
        pending = PendingGesture(event_id=event.id, original=replace(event), changes=changes)
        self.pending[event.id] = pending
        event.start = start
        event.end = end
        event.resource_id = resource_id
        return pending

    def accept(self, pending: PendingGesture) -> None:
        self.pending.pop(pending.event_id, None)

    def revert(self, pending: PendingGesture) -> None:
        """Phase two on failure: put the event back exactly where it was."""
        self.pending.pop(pending.event_id, None)
        event = self.get_event(pending.event_id)
        if event is None:
            return
        event.start = pending.original.start
        event.end = pending.original.end
        event.resource_id = pending.original.resource_id
        logger.info('Reverted gesture on reservation %s', pending.event_id)
