"""
Tests for venue hours: base weekly hours, exceptional opens and closures.
"""

import pytest


class TestBaseHours:
    """Tests for the weekly base hours."""

    def test_seeded_base_hours(self, app):
        from models.venue_hours import get_base_open_weekdays

        assert get_base_open_weekdays() == [4, 5, 6]

    def test_replace_base_hours(self, app):
        from models.venue_hours import get_base_open_weekdays, get_venue_hours, save_base_hours

        rows = save_base_hours([
            {'day_of_week': 0, 'enabled': True, 'time_ranges': [{'start': '17:00', 'end': '22:00'}]},
            {'day_of_week': 5, 'enabled': False, 'time_ranges': [{'start': '18:00', 'end': '23:00'}]},
            {'day_of_week': 6, 'enabled': True, 'time_ranges': []},
        ])

        assert [row['day_of_week'] for row in rows] == [0]
        assert get_base_open_weekdays() == [0]
        assert get_venue_hours('base')[0]['time_ranges'] == [{'start': '17:00', 'end': '22:00'}]

    def test_duplicate_day_rejected(self, app):
        from models.venue_hours import get_base_open_weekdays, save_base_hours

        with pytest.raises(ValueError):
            save_base_hours([
                {'day_of_week': 1, 'time_ranges': [{'start': '17:00', 'end': '22:00'}]},
                {'day_of_week': 1, 'time_ranges': [{'start': '18:00', 'end': '23:00'}]},
            ])
        assert get_base_open_weekdays() == [4, 5, 6]

    def test_range_must_end_after_start(self, app):
        from models.venue_hours import save_base_hours

        with pytest.raises(ValueError):
            save_base_hours([{'day_of_week': 2, 'time_ranges': [{'start': '22:00', 'end': '17:00'}]}])


class TestExceptions:
    """Tests for exceptional opens and closures."""

    def test_open_then_closure_conflicts(self, app):
        from models.venue_hours import VenueHoursConflict, create_exceptional_closure, create_exceptional_open

        create_exceptional_open('2030-07-03', [{'start': '18:00', 'end': '22:00'}])
        with pytest.raises(VenueHoursConflict):
            create_exceptional_closure('2030-07-03')

    def test_closure_then_open_conflicts(self, app):
        from models.venue_hours import VenueHoursConflict, create_exceptional_closure, create_exceptional_open

        create_exceptional_closure('2030-07-04', reason='Holiday')
        with pytest.raises(VenueHoursConflict):
            create_exceptional_open('2030-07-04', [{'start': '18:00', 'end': '22:00'}])

    def test_moving_closure_onto_open_conflicts(self, app):
        from models.venue_hours import (
            VenueHoursConflict, create_exceptional_closure, create_exceptional_open, update_venue_hours
        )

        create_exceptional_open('2030-07-03', [{'start': '18:00', 'end': '22:00'}])
        closure_id = create_exceptional_closure('2030-07-04')
        with pytest.raises(VenueHoursConflict):
            update_venue_hours(closure_id, date='2030-07-03')

    def test_partial_closure_needs_ranges(self, app):
        from models.venue_hours import create_exceptional_closure

        with pytest.raises(ValueError):
            create_exceptional_closure('2030-07-04', full_day=False)

    def test_exceptions_between(self, app):
        from models.venue_hours import create_exceptional_closure, create_exceptional_open, get_exceptions_between

        create_exceptional_open('2030-07-03', [{'start': '18:00', 'end': '22:00'}])
        create_exceptional_closure('2030-07-20')

        rows = get_exceptions_between('2030-07-01', '2030-07-10')
        assert [row['date'] for row in rows] == ['2030-07-03']


class TestVenueHoursApi:
    """Tests for the venue hours endpoints."""

    def test_list_by_type(self, client):
        response = client.get('/api/venue-hours?type=base')
        data = response.get_json()['data']
        assert response.status_code == 200
        assert [row['day_of_week'] for row in data] == [4, 5, 6]

    def test_every_stored_type_listable(self, client):
        from blueprints.api import venue_hours as routes
        from models.venue_hours import HOURS_TYPES

        assert routes.HOURS_TYPES is HOURS_TYPES
        for hours_type in HOURS_TYPES:
            assert client.get('/api/venue-hours', query_string={'type': hours_type}).status_code == 200

    def test_unknown_type(self, client):
        response = client.get('/api/venue-hours?type=weekly')
        assert response.status_code == 400

    def test_put_base_hours(self, client):
        response = client.put('/api/venue-hours/base', json={'days': [
            {'day_of_week': 3, 'enabled': True, 'time_ranges': [{'start': '17:00', 'end': '21:00'}]}
        ]})
        assert response.status_code == 200
        assert [row['day_of_week'] for row in response.get_json()['data']] == [3]

    def test_put_base_hours_invalid(self, client):
        response = client.put('/api/venue-hours/base', json={'days': [
            {'day_of_week': 9, 'time_ranges': [{'start': '17:00', 'end': '21:00'}]}
        ]})
        assert response.status_code == 400

    def test_exclusivity_returns_409(self, client):
        response = client.post('/api/venue-hours/exceptional-closures', json={'date': '2030-07-04', 'reason': 'Holiday'})
        assert response.status_code == 201

        response = client.post('/api/venue-hours/exceptional-opens', json={
            'date': '2030-07-04', 'time_ranges': [{'start': '18:00', 'end': '22:00'}]
        })
        assert response.status_code == 409
        assert '2030-07-04' in response.get_json()['error']

    def test_partial_closure_via_api(self, client):
        response = client.post('/api/venue-hours/exceptional-closures', json={
            'date': '2030-07-05', 'full_day': False, 'time_ranges': [{'start': '19:00', 'end': '20:00'}]
        })
        data = response.get_json()['data']
        assert response.status_code == 201
        assert data['full_day'] is False
        assert data['time_ranges'] == [{'start': '19:00', 'end': '20:00'}]

    def test_patch_and_delete(self, client):
        created = client.post('/api/venue-hours/exceptional-opens', json={
            'date': '2030-07-03', 'time_ranges': [{'start': '18:00', 'end': '22:00'}], 'label': 'Pop-up'
        }).get_json()['data']

        response = client.patch(f"/api/venue-hours/{created['id']}", json={'label': 'Summer pop-up'})
        assert response.status_code == 200
        assert response.get_json()['data']['label'] == 'Summer pop-up'

        assert client.delete(f"/api/venue-hours/{created['id']}").status_code == 200
        assert client.delete(f"/api/venue-hours/{created['id']}").status_code == 404

    def test_patch_closure_to_partial_without_ranges(self, app, client):
        from models.reservation_availability import is_bookable_day

        created = client.post('/api/venue-hours/exceptional-closures', json={
            'date': '2030-07-06', 'reason': 'Private party'
        }).get_json()['data']

        response = client.patch(f"/api/venue-hours/{created['id']}", json={'full_day': False})
        assert response.status_code == 400
        assert 'time range' in response.get_json()['error']

        stored = client.get('/api/venue-hours', query_string={'type': 'exceptional_closure'}).get_json()['data']
        assert [row['full_day'] for row in stored if row['id'] == created['id']] == [True]
        assert is_bookable_day('2030-07-06') is False

    def test_patch_closure_to_partial_with_ranges(self, client):
        created = client.post('/api/venue-hours/exceptional-closures', json={'date': '2030-07-07'}).get_json()['data']

        response = client.patch(f"/api/venue-hours/{created['id']}", json={
            'full_day': False, 'time_ranges': [{'start': '18:00', 'end': '19:00'}]
        })
        assert response.status_code == 200
        assert response.get_json()['data']['full_day'] is False

    def test_patch_open_clearing_ranges(self, client):
        created = client.post('/api/venue-hours/exceptional-opens', json={
            'date': '2030-07-08', 'time_ranges': [{'start': '18:00', 'end': '22:00'}]
        }).get_json()['data']

        response = client.patch(f"/api/venue-hours/{created['id']}", json={'time_ranges': []})
        assert response.status_code == 400

    def test_patch_missing(self, client):
        assert client.patch('/api/venue-hours/999', json={'label': 'x'}).status_code == 404
