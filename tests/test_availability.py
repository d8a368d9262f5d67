"""
Tests for slot generation, table assignment and the availability endpoints.
"""

import pytest
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from utils.datetime_helpers import local_to_utc, to_utc_iso

CHICAGO = ZoneInfo('America/Chicago')
LONG_AGO = datetime(2000, 1, 1, tzinfo=timezone.utc)


def book(day, hhmm, party_size, table_id, minutes=None):
    """Insert a confirmed reservation at a venue-local time."""
    from models.reservation import insert_reservation

    start = local_to_utc(day, hhmm, CHICAGO)
    end = start + timedelta(minutes=minutes or (90 if party_size <= 2 else 120))
    return insert_reservation(
        first_name='Test', last_name='Guest', phone='+13125550199', email='guest@example.com',
        party_size=party_size, table_id=table_id, start_time=to_utc_iso(start), end_time=to_utc_iso(end),
        status='confirmed', source='manual',
    )


def private_event(day, start, end, full_day=False, status='active'):
    from models.private_event import create_private_event

    return create_private_event(
        title='Gala', event_type='corporate', full_day=full_day, status=status,
        start_time=to_utc_iso(local_to_utc(day, start, CHICAGO)),
        end_time=to_utc_iso(local_to_utc(day, end, CHICAGO)),
    )


class TestGenerateSlots:
    """Tests for candidate start times from venue hours."""

    def test_friday_base_hours(self, app, friday):
        from models.reservation_availability import generate_slots

        slots = generate_slots(friday)
        assert len(slots) == 20
        assert slots[0] == '18:00'
        assert slots[-1] == '22:45'
        assert '23:00' not in slots

    def test_thursday_opens_earlier(self, app, next_weekday):
        from models.reservation_availability import generate_slots

        slots = generate_slots(next_weekday(4))
        assert slots[0] == '16:00'
        assert len(slots) == 28

    def test_closed_weekday(self, app, next_weekday):
        from models.reservation_availability import generate_slots

        assert generate_slots(next_weekday(3)) == []

    def test_exceptional_open_on_closed_weekday(self, app, next_weekday):
        from models.reservation_availability import generate_slots
        from models.venue_hours import create_exceptional_open

        wednesday = next_weekday(3)
        create_exceptional_open(wednesday.isoformat(), [{'start': '12:00', 'end': '14:00'}], 'Holiday lunch')

        slots = generate_slots(wednesday)
        assert slots == ['12:00', '12:15', '12:30', '12:45', '13:00', '13:15', '13:30', '13:45']

    def test_exceptional_open_replaces_base_hours(self, app, friday):
        from models.reservation_availability import generate_slots
        from models.venue_hours import create_exceptional_open

        create_exceptional_open(friday.isoformat(), [{'start': '20:00', 'end': '21:00'}])
        assert generate_slots(friday) == ['20:00', '20:15', '20:30', '20:45']

    def test_partial_closure_removes_window(self, app, friday):
        from models.reservation_availability import generate_slots
        from models.venue_hours import create_exceptional_closure

        create_exceptional_closure(friday.isoformat(), full_day=False,
                                   time_ranges=[{'start': '19:00', 'end': '20:00'}], reason='Staff meeting')

        slots = generate_slots(friday)
        assert len(slots) == 16
        assert '18:45' in slots
        assert '19:00' not in slots
        assert '19:45' not in slots
        assert '20:00' in slots

    def test_full_day_closure(self, app, friday):
        from models.reservation_availability import generate_slots
        from models.venue_hours import create_exceptional_closure

        create_exceptional_closure(friday.isoformat(), full_day=True, reason='Private maintenance')
        assert generate_slots(friday) == []


class TestSubtractRanges:
    """Tests for removing closed windows."""

    def test_split_in_middle(self):
        from models.reservation_availability import subtract_ranges

        assert subtract_ranges([(0, 100)], [(40, 60)]) == [(0, 40), (60, 100)]

    def test_cut_covers_everything(self):
        from models.reservation_availability import subtract_ranges

        assert subtract_ranges([(10, 20)], [(0, 30)]) == []

    def test_disjoint_cut(self):
        from models.reservation_availability import subtract_ranges

        assert subtract_ranges([(10, 20)], [(20, 30)]) == [(10, 20)]


class TestAvailableSlots:
    """Tests for offerable start times."""

    def test_all_slots_free(self, app, friday):
        from models.reservation_availability import get_available_slots

        assert len(get_available_slots(friday.isoformat(), 2, now=LONG_AGO)) == 20

    def test_only_table_booked_removes_overlapping_slots(self, app, friday):
        from models.reservation_availability import get_available_slots
        from models.table import get_all_tables

        eight_top = [t for t in get_all_tables() if t['seats'] == 8][0]
        book(friday, '19:00', 8, eight_top['id'])

        slots = get_available_slots(friday.isoformat(), 8, now=LONG_AGO)
        assert slots == ['21:00', '21:15', '21:30', '21:45', '22:00', '22:15', '22:30', '22:45']

    def test_cancelled_reservation_frees_table(self, app, friday):
        from models.reservation import delete_reservation
        from models.reservation_availability import get_available_slots
        from models.table import get_all_tables

        eight_top = [t for t in get_all_tables() if t['seats'] == 8][0]
        reservation_id = book(friday, '19:00', 8, eight_top['id'])
        delete_reservation(reservation_id, soft=True)

        assert len(get_available_slots(friday.isoformat(), 8, now=LONG_AGO)) == 20

    def test_other_tables_keep_slot_open(self, app, friday):
        from models.reservation_availability import get_available_slots

        book(friday, '19:00', 2, 1)
        assert '19:00' in get_available_slots(friday.isoformat(), 2, now=LONG_AGO)

    def test_party_too_large(self, app, friday):
        from models.reservation_availability import get_available_slots

        assert get_available_slots(friday.isoformat(), 9, now=LONG_AGO) == []

    def test_past_slots_skipped(self, app, friday):
        from models.reservation_availability import get_available_slots

        now = local_to_utc(friday, '20:00', CHICAGO)
        slots = get_available_slots(friday.isoformat(), 2, now=now)
        assert slots[0] == '20:15'
        assert len(slots) == 11

    def test_partial_private_event_closes_day(self, app, friday):
        from models.reservation_availability import get_available_slots

        private_event(friday, '19:00', '21:00')
        assert get_available_slots(friday.isoformat(), 2, now=LONG_AGO) == []

    def test_event_after_midnight_cuts_late_seating(self, app, friday):
        from models.reservation_availability import get_available_slots

        saturday = friday + timedelta(days=1)
        private_event(saturday, '00:00', '02:00')
        slots = get_available_slots(friday.isoformat(), 2, now=LONG_AGO)
        assert '22:30' in slots
        assert '22:45' not in slots
        assert len(slots) == 19

    def test_full_day_private_event_removes_all(self, app, friday):
        from models.reservation_availability import get_available_slots

        private_event(friday, '18:00', '23:00', full_day=True)
        assert get_available_slots(friday.isoformat(), 2, now=LONG_AGO) == []

    def test_cancelled_private_event_ignored(self, app, friday):
        from models.reservation_availability import get_available_slots

        private_event(friday, '18:00', '23:00', full_day=True, status='cancelled')
        assert len(get_available_slots(friday.isoformat(), 2, now=LONG_AGO)) == 20


class TestTableAssignment:
    """Tests for picking a table."""

    def test_smallest_fitting_table(self, app, friday):
        from models.reservation_availability import find_available_table

        start = local_to_utc(friday, '19:00', CHICAGO)
        table = find_available_table(start, start + timedelta(hours=2), 3)
        assert table['seats'] == 4
        assert table['table_number'] == '3'

    def test_busy_table_skipped(self, app, friday):
        from models.reservation_availability import find_available_table

        book(friday, '19:00', 3, 3)
        start = local_to_utc(friday, '20:00', CHICAGO)
        table = find_available_table(start, start + timedelta(hours=2), 3)
        assert table['table_number'] == '4'

    def test_back_to_back_is_free(self, app, friday):
        from models.reservation_availability import is_table_free

        book(friday, '19:00', 2, 1)
        start = local_to_utc(friday, '20:30', CHICAGO)
        assert is_table_free(1, start, start + timedelta(minutes=90)) is True
        assert is_table_free(1, start - timedelta(minutes=15), start + timedelta(minutes=75)) is False


class TestAlternativeTimes:
    """Tests for nearest alternatives."""

    def test_before_and_after(self, app, friday):
        from models.reservation_availability import find_alternative_times
        from models.table import get_all_tables

        eight_top = [t for t in get_all_tables() if t['seats'] == 8][0]
        book(friday, '20:30', 8, eight_top['id'])

        # Blocked starts run from 18:45 to 22:15
        alternatives = find_alternative_times(friday.isoformat(), 8, '20:30', now=LONG_AGO)
        assert alternatives == {'before': '18:30', 'after': '22:30'}

    def test_nothing_after(self, app, friday):
        from models.reservation_availability import find_alternative_times

        alternatives = find_alternative_times(friday.isoformat(), 2, '22:45', now=LONG_AGO)
        assert alternatives == {'before': '22:30', 'after': None}


class TestAvailabilityRules:
    """Tests for the date-level rules payload."""

    def test_rules_payload(self, app, friday):
        from models.reservation_availability import get_availability_rules
        from models.venue_hours import create_exceptional_closure, create_exceptional_open

        saturday = friday + timedelta(days=1)
        wednesday = friday - timedelta(days=2)
        thursday = friday - timedelta(days=1)
        create_exceptional_open(wednesday.isoformat(), [{'start': '18:00', 'end': '22:00'}])
        create_exceptional_closure(saturday.isoformat())
        create_exceptional_closure(thursday.isoformat(), full_day=False,
                                   time_ranges=[{'start': '16:00', 'end': '18:00'}])
        private_event(friday, '19:00', '22:00')

        rules = get_availability_rules(wednesday, saturday)

        assert rules['base_open_weekdays'] == [4, 5, 6]
        assert rules['exceptional_open_dates'] == [wednesday.isoformat()]
        assert rules['exceptional_closure_dates'] == [saturday.isoformat()]
        assert rules['partial_closures'][0]['date'] == thursday.isoformat()
        assert rules['private_event_blocked_dates'] == [friday.isoformat()]
        assert rules['bookable_dates'] == [wednesday.isoformat(), thursday.isoformat()]
        assert rules['timezone'] == 'America/Chicago'

    def test_reversed_window(self, app, friday):
        from models.reservation_availability import get_availability_rules

        with pytest.raises(ValueError):
            get_availability_rules(friday, friday - timedelta(days=1))

    def test_is_bookable_day(self, app, friday, next_weekday):
        from models.reservation_availability import is_bookable_day

        assert is_bookable_day(friday) is True
        assert is_bookable_day(next_weekday(1)) is False


class TestAvailabilityApi:
    """Tests for the availability endpoints."""

    def test_available_slots(self, client, friday):
        response = client.post('/api/available-slots', json={'date': friday.isoformat(), 'party_size': 2})
        assert response.status_code == 200
        body = response.get_json()
        assert body['success'] is True
        assert len(body['slots']) == 20
        assert body['slots'][0] == '18:00'

    def test_available_slots_closed_date(self, client, friday):
        response = client.post('/api/venue-hours/exceptional-closures', json={
            'date': friday.isoformat(), 'full_day': False, 'time_ranges': [{'start': '18:00', 'end': '19:00'}]
        })
        assert response.status_code == 201

        response = client.post('/api/available-slots', json={'date': friday.isoformat(), 'party_size': 2})
        assert response.status_code == 200
        assert response.get_json()['slots'] == []

    def test_available_slots_validation(self, client, friday):
        response = client.post('/api/available-slots', json={'date': friday.isoformat(), 'party_size': 0})
        assert response.status_code == 400
        assert 'party_size' in response.get_json()['errors']

    def test_available_slots_bad_date(self, client):
        response = client.post('/api/available-slots', json={'date': '07/05/2024', 'party_size': 2})
        assert response.status_code == 400
        assert 'date' in response.get_json()['errors']

    def test_available_slots_requires_json(self, client):
        response = client.post('/api/available-slots', data='nope', content_type='text/plain')
        assert response.status_code == 400

    def test_find_alternative_times(self, client, friday):
        response = client.post('/api/find-alternative-times', json={
            'date': friday.isoformat(), 'party_size': 2, 'requested_time': '19:00'
        })
        body = response.get_json()
        assert response.status_code == 200
        assert body['alternative_times'] == {'before': '18:45', 'after': '19:15'}
        assert body['requested_time'] == '19:00'

    def test_availability_rules_window(self, client, friday):
        response = client.get('/api/availability-rules', query_string={
            'start': friday.isoformat(), 'end': (friday + timedelta(days=1)).isoformat()
        })
        data = response.get_json()['data']
        assert response.status_code == 200
        assert data['bookable_dates'] == [friday.isoformat(), (friday + timedelta(days=1)).isoformat()]

    def test_availability_rules_default_window(self, client):
        response = client.get('/api/availability-rules')
        data = response.get_json()['data']
        assert response.status_code == 200
        assert data['base_open_weekdays'] == [4, 5, 6]

    def test_availability_rules_bad_date(self, client):
        response = client.get('/api/availability-rules?start=tomorrow')
        assert response.status_code == 400
