"""Check-in error taxonomy.

Every failure here is recoverable from the member's point of view: the state
machine reports it as a message and the member may retry from ``idle``.
"""

import math
from datetime import datetime
from typing import Optional

from services.checkin_service.models.enums import LocationErrorReason, WindowState

LOCATION_ERROR_MESSAGES = {
    LocationErrorReason.PERMISSION_DENIED: "User denied the request for Geolocation.",
    LocationErrorReason.POSITION_UNAVAILABLE: "Location information is unavailable.",
    LocationErrorReason.TIMEOUT: "The request to get user location timed out.",
    LocationErrorReason.UNSUPPORTED: "Geolocation is not supported by your browser.",
}


def _whole_meters(value: float) -> int:
    """Round half up, so 250.5 shows as 251."""
    return math.floor(value + 0.5)


class CheckInError(Exception):
    """Base exception for check-in rule violations and collaborator failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class LocationUnavailable(CheckInError):
    """The device position could not be obtained."""

    def __init__(self, reason: LocationErrorReason, message: Optional[str] = None):
        self.reason = LocationErrorReason(reason)
        super().__init__(message or LOCATION_ERROR_MESSAGES[self.reason])


class GeofenceViolation(CheckInError):
    """The member is further from the venue than the geofence radius."""

    def __init__(self, distance_m: float, radius_m: float):
        self.distance_m = distance_m
        self.radius_m = radius_m
        super().__init__(
            f"You are {_whole_meters(distance_m)}m away from the event location. "
            f"Check-in is only available within {_whole_meters(radius_m)}m."
        )


class WindowClosed(CheckInError):
    """Check-in is locked because the attempt is outside the event's window."""

    def __init__(self, window: WindowState, opens_at: datetime, closes_at: datetime):
        self.window = window
        self.opens_at = opens_at
        self.closes_at = closes_at
        if window == WindowState.NOT_OPEN:
            message = "Check-in has not opened yet for this event."
        else:
            message = "Check-in for this event has closed."
        super().__init__(message)


class MissingJustification(CheckInError):
    """A late check-in was attempted without a reason."""

    def __init__(self):
        super().__init__("Please tell your lead why you are running late to check in.")


class PersistenceFailure(CheckInError):
    """The check-in record could not be stored."""


class DuplicateCheckIn(PersistenceFailure):
    """A check-in for this event and member already exists."""

    def __init__(self, event_id: str, member_id: str):
        self.event_id = event_id
        self.member_id = member_id
        super().__init__("You have already checked in for this event.")


class AuthorizationError(CheckInError):
    """The caller lacks the admin flag required for the action."""
