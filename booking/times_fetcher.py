"""Fetching offerable start times and keeping the selected time valid."""

import logging

from booking.errors import BookingError
from utils.datetime_helpers import date_key

logger = logging.getLogger(__name__)


class AvailableTimesFetcher:
    """Requests the server's slot list for a date and party size."""

    def __init__(self, api):
        self._api = api

    def fetch(self, day, party_size) -> list:
        """
        Ordered ``HH:MM`` venue-local start times, or ``[]``.

        Missing inputs and API failures both yield an empty list.
        """
        if not day or not party_size or int(party_size) < 1:
            return []
        try:
            return list(self._api.available_slots(date_key(day), int(party_size)))
        except BookingError as exc:
            logger.warning('Could not load available times for %s (party of %s): %s',
                           date_key(day), party_size, exc)
            return []


def reconcile_selected_time(current: str, times: list) -> str:
    """Keep ``current`` if still offered, else fall back to the first time, else ''."""
    if current and current in times:
        return current
    return times[0] if times else ''
