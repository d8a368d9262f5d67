"""API services package."""

from blueprints.api.services.booking_service import (  # noqa: F401
    SlotUnavailableError,
    create_booking,
    notify_booking,
    resolve_identity,
)
