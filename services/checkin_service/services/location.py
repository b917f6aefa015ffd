"""Location provider seam used while the check-in state machine is ``locating``."""

from typing import Optional, Protocol

from services.checkin_service.exceptions import LocationUnavailable
from services.checkin_service.models.enums import LocationErrorReason
from services.checkin_service.schemas import CheckInAttempt, GeoPoint


class LocationProvider(Protocol):
    async def get_current_location(self) -> GeoPoint:
        """Return the device position or raise ``LocationUnavailable``."""
        raise NotImplementedError


class ReportedLocationProvider:
    """Serves a position the client already acquired (or the reason it could not)."""

    def __init__(
        self,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        error: Optional[LocationErrorReason] = None,
    ):
        self.latitude = latitude
        self.longitude = longitude
        self.error = error

    @classmethod
    def from_attempt(cls, attempt: CheckInAttempt) -> "ReportedLocationProvider":
        return cls(
            latitude=attempt.latitude,
            longitude=attempt.longitude,
            error=attempt.location_error,
        )

    async def get_current_location(self) -> GeoPoint:
        if self.error is not None:
            raise LocationUnavailable(self.error)
        if self.latitude is None or self.longitude is None:
            raise LocationUnavailable(LocationErrorReason.POSITION_UNAVAILABLE)
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)
