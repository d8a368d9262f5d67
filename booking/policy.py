"""Fixed reservation business rules shared by the server and the booking controllers."""

from datetime import timedelta

SMALL_PARTY_MAX = 2
SMALL_PARTY_DURATION = timedelta(minutes=90)
LARGE_PARTY_DURATION = timedelta(minutes=120)


def reservation_duration(party_size: int) -> timedelta:
    """
    Seating duration for a party.

    Args:
        party_size: Number of guests (>= 1)

    Returns:
        90 minutes for parties of two or fewer, else 120 minutes

    Raises:
        ValueError: If party_size is below 1
    """
    if party_size is None or int(party_size) < 1:
        raise ValueError('Party size must be at least 1')
    if int(party_size) <= SMALL_PARTY_MAX:
        return SMALL_PARTY_DURATION
    return LARGE_PARTY_DURATION


def reservation_end(start, party_size: int):
    """End instant for a reservation starting at ``start``."""
    return start + reservation_duration(party_size)


def hold_amount(enabled: bool, amount: float) -> float:
    """Card hold taken from non-member guests; zero when the hold fee is off."""
    if not enabled:
        return 0.0
    return float(amount or 0)
