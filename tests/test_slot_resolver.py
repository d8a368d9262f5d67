"""
Tests for date bookability and first-bookable-date resolution.
"""

import pytest
from datetime import date, datetime, timedelta

from booking.slot_resolver import (
    AvailabilityRules,
    bookable_dates,
    first_base_open_date,
    first_bookable_date,
    is_date_bookable,
    weekday_index,
)


THU_FRI_SAT = {4, 5, 6}


@pytest.fixture
def july_rules():
    """Thursday to Saturday venue closed on Independence Day."""
    return AvailabilityRules.build(
        base_open_weekdays=THU_FRI_SAT,
        exceptional_closure_dates=['2024-07-04'],
    )


class TestWeekdayIndex:
    """Tests for Sunday-based weekday numbering."""

    def test_sunday_is_zero(self):
        assert weekday_index(date(2024, 7, 7)) == 0

    def test_saturday_is_six(self):
        assert weekday_index('2024-07-06') == 6

    def test_datetime_uses_calendar_day(self):
        assert weekday_index(datetime(2024, 7, 4, 23, 59)) == 4


class TestIsDateBookable:
    """Tests for single-day bookability."""

    def test_base_weekday_is_bookable(self, july_rules):
        assert is_date_bookable('2024-07-05', july_rules) is True

    def test_non_base_weekday_is_not_bookable(self, july_rules):
        assert is_date_bookable('2024-07-03', july_rules) is False

    def test_closure_beats_base_weekday(self, july_rules):
        assert is_date_bookable('2024-07-04', july_rules) is False

    def test_exceptional_open_on_closed_weekday(self):
        rules = AvailabilityRules.build(base_open_weekdays=THU_FRI_SAT, exceptional_open_dates=['2024-07-03'])
        assert is_date_bookable('2024-07-03', rules) is True

    def test_private_event_blocks_open_day(self):
        rules = AvailabilityRules.build(
            base_open_weekdays=THU_FRI_SAT,
            exceptional_open_dates=['2024-07-10'],
            private_event_blocked_dates=['2024-07-05', '2024-07-10'],
        )
        assert is_date_bookable('2024-07-05', rules) is False
        assert is_date_bookable('2024-07-10', rules) is False

    def test_time_of_day_is_ignored(self, july_rules):
        assert is_date_bookable(datetime(2024, 7, 5, 0, 1), july_rules) is True
        assert is_date_bookable(datetime(2024, 7, 4, 23, 59), july_rules) is False

    def test_matches_rule_for_every_day_of_a_year(self):
        """Exceptional open or base weekday, and neither closed nor blocked."""
        opens = {'2024-03-05', '2024-06-11', '2024-12-24'}
        closures = {'2024-03-07', '2024-12-24', '2024-11-28'}
        blocked = {'2024-06-14', '2024-06-11'}
        rules = AvailabilityRules.build(
            base_open_weekdays=THU_FRI_SAT,
            exceptional_open_dates=opens,
            exceptional_closure_dates=closures,
            private_event_blocked_dates=blocked,
        )

        day = date(2024, 1, 1)
        while day.year == 2024:
            key = day.isoformat()
            expected = (
                (key in opens or weekday_index(day) in THU_FRI_SAT)
                and key not in closures
                and key not in blocked
            )
            assert is_date_bookable(day, rules) is expected, key
            day += timedelta(days=1)


class TestFirstBookableDate:
    """Tests for the forward scan."""

    def test_skips_closed_thursday(self, july_rules):
        result, found = first_bookable_date(date(2024, 7, 3), july_rules)
        assert found is True
        assert result == date(2024, 7, 5)

    def test_exceptional_open_start_returned_unchanged(self):
        rules = AvailabilityRules.build(
            base_open_weekdays=THU_FRI_SAT,
            exceptional_open_dates=['2024-07-03'],
            exceptional_closure_dates=['2024-07-04'],
        )
        result, found = first_bookable_date('2024-07-03', rules)
        assert found is True
        assert result == date(2024, 7, 3)

    def test_never_before_start_and_always_bookable(self, july_rules):
        start = date(2024, 6, 1)
        for offset in range(60):
            day = start + timedelta(days=offset)
            result, found = first_bookable_date(day, july_rules)
            assert found is True
            assert result >= day
            assert is_date_bookable(result, july_rules)

    def test_nothing_found_returns_start_unchanged(self):
        rules = AvailabilityRules.build()
        result, found = first_bookable_date(date(2024, 7, 3), rules)
        assert found is False
        assert result == date(2024, 7, 3)

    def test_respects_scan_limit(self, july_rules):
        # Wednesday start, the next open day (Friday) is two days out
        result, found = first_bookable_date(date(2024, 7, 3), july_rules, max_days_to_scan=2)
        assert found is False
        assert result == date(2024, 7, 3)

    def test_everything_blocked_logs_warning(self, caplog):
        closed_mondays = [date(2024, 1, 1) + timedelta(days=7 * week) for week in range(60)]
        rules = AvailabilityRules.build(base_open_weekdays={1}, exceptional_closure_dates=closed_mondays)

        with caplog.at_level('WARNING', logger='booking.slot_resolver'):
            result, found = first_bookable_date(date(2024, 1, 1), rules)

        assert found is False
        assert result == date(2024, 1, 1)
        assert 'No bookable date' in caplog.text


class TestFirstBaseOpenDate:
    """Tests for the preliminary weekday-only scan."""

    def test_ignores_closures(self):
        result, found = first_base_open_date(date(2024, 7, 3), THU_FRI_SAT)
        assert found is True
        assert result == date(2024, 7, 4)

    def test_no_weekdays_defers(self):
        result, found = first_base_open_date(date(2024, 7, 3), set())
        assert found is False
        assert result == date(2024, 7, 3)


class TestRulesPayload:
    """Tests for building rules from the API payload."""

    def test_from_payload(self):
        rules = AvailabilityRules.from_payload({
            'base_open_weekdays': [4, 5, 6],
            'exceptional_open_dates': ['2024-07-03'],
            'exceptional_closure_dates': ['2024-07-04'],
            'private_event_blocked_dates': [],
        })
        assert rules.has_base_hours is True
        assert '2024-07-03' in rules.exceptional_open_dates

    def test_empty_payload(self):
        rules = AvailabilityRules.from_payload(None)
        assert rules.has_base_hours is False

    def test_bookable_dates_in_window(self, july_rules):
        days = bookable_dates('2024-07-01', '2024-07-07', july_rules)
        assert days == [date(2024, 7, 5), date(2024, 7, 6)]
