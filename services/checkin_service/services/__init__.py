"""Check-in Service business logic package."""

from services.checkin_service.services.alerts import (
    AlertThresholds,
    detect_performance_issues,
)
from services.checkin_service.services.attendance import (
    calculate_attendance_stats,
    classify_arrival,
    past_assignments,
    rate_accountability,
    summarize_team_reliability,
    summarize_timeliness,
)
from services.checkin_service.services.gate import (
    CheckInGate,
    CheckInPolicy,
    GateDecision,
)
from services.checkin_service.services.geo import haversine_distance, is_within_radius
from services.checkin_service.services.location import (
    LocationProvider,
    ReportedLocationProvider,
)
from services.checkin_service.services.manual import record_manual_check_in
from services.checkin_service.services.state_machine import CheckInStateMachine
from services.checkin_service.services.store import (
    CheckInStore,
    SQLAlchemyCheckInStore,
)

__all__ = [
    "AlertThresholds",
    "CheckInGate",
    "CheckInPolicy",
    "CheckInStateMachine",
    "CheckInStore",
    "GateDecision",
    "LocationProvider",
    "ReportedLocationProvider",
    "SQLAlchemyCheckInStore",
    "calculate_attendance_stats",
    "classify_arrival",
    "detect_performance_issues",
    "haversine_distance",
    "is_within_radius",
    "past_assignments",
    "rate_accountability",
    "record_manual_check_in",
    "summarize_team_reliability",
    "summarize_timeliness",
]
