"""Check-in gating rules: time window, lateness and geofence.

The rules are evaluated in that order and fail closed. ``now`` is always an
explicit argument so callers decide which clock the rules see.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from libs.common.config import Settings, get_settings
from libs.common.datetime_utils import ensure_datetime
from services.checkin_service.exceptions import (
    GeofenceViolation,
    MissingJustification,
    WindowClosed,
)
from services.checkin_service.models.enums import WindowState
from services.checkin_service.schemas import GeoPoint, ServiceEvent
from services.checkin_service.services.geo import haversine_distance


@dataclass(frozen=True)
class CheckInPolicy:
    opens_before_minutes: int = 60
    closes_after_minutes: int = 30
    late_after_minutes: int = 5
    geofence_radius_m: float = 200.0

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CheckInPolicy":
        settings = settings or get_settings()
        return cls(
            opens_before_minutes=settings.CHECKIN_WINDOW_OPENS_MINUTES,
            closes_after_minutes=settings.CHECKIN_WINDOW_CLOSES_MINUTES,
            late_after_minutes=settings.CHECKIN_LATE_AFTER_MINUTES,
            geofence_radius_m=settings.CHECKIN_GEOFENCE_RADIUS_M,
        )


@dataclass(frozen=True)
class GateDecision:
    window: WindowState
    is_late: bool
    opens_at: datetime
    closes_at: datetime
    late_at: datetime

    @property
    def is_open(self) -> bool:
        return self.window == WindowState.OPEN


class CheckInGate:
    """Pure decision function over an event and an instant."""

    def __init__(self, policy: Optional[CheckInPolicy] = None):
        self.policy = policy or CheckInPolicy()

    def evaluate(self, event: ServiceEvent, now: datetime) -> GateDecision:
        now = ensure_datetime(now)
        call_time = ensure_datetime(event.call_time)

        opens_at = call_time - timedelta(minutes=self.policy.opens_before_minutes)
        closes_at = call_time + timedelta(minutes=self.policy.closes_after_minutes)
        late_at = call_time + timedelta(minutes=self.policy.late_after_minutes)

        if now < opens_at:
            window = WindowState.NOT_OPEN
        elif now > closes_at:
            window = WindowState.CLOSED
        else:
            window = WindowState.OPEN

        return GateDecision(
            window=window,
            is_late=now >= late_at,
            opens_at=opens_at,
            closes_at=closes_at,
            late_at=late_at,
        )

    def check_window(self, event: ServiceEvent, now: datetime) -> GateDecision:
        decision = self.evaluate(event, now)
        if not decision.is_open:
            raise WindowClosed(decision.window, decision.opens_at, decision.closes_at)
        return decision

    @staticmethod
    def require_justification(
        decision: GateDecision, late_reason: Optional[str]
    ) -> Optional[str]:
        """Return the stripped reason for a late attempt, ``None`` when not late."""
        if not decision.is_late:
            return None
        reason = (late_reason or "").strip()
        if not reason:
            raise MissingJustification()
        return reason

    def check_geofence(
        self, event: ServiceEvent, location: GeoPoint
    ) -> Optional[float]:
        """Return the distance to the venue, or ``None`` when the event has no coordinates."""
        venue = event.location
        if venue is None or not venue.has_coordinates:
            return None

        distance = haversine_distance(
            location.latitude, location.longitude, venue.latitude, venue.longitude
        )
        if distance > self.policy.geofence_radius_m:
            raise GeofenceViolation(distance, self.policy.geofence_radius_m)
        return distance

    def authorize(
        self,
        event: ServiceEvent,
        now: datetime,
        location: GeoPoint,
        late_reason: Optional[str] = None,
    ) -> Optional[str]:
        """Run every rule in order; return the accepted late reason, if any."""
        decision = self.check_window(event, now)
        reason = self.require_justification(decision, late_reason)
        self.check_geofence(event, location)
        return reason
