"""Check-in Service models package."""

from services.checkin_service.models.core import (
    CheckInRecord,
    EventAssignmentRecord,
    ServiceEventRecord,
    TeamMemberRecord,
)
from services.checkin_service.models.enums import (
    AccountabilityTier,
    AlertLevel,
    AlertType,
    ArrivalClass,
    CheckInState,
    LocationErrorReason,
    MemberStatus,
    WindowState,
)

__all__ = [
    "AccountabilityTier",
    "AlertLevel",
    "AlertType",
    "ArrivalClass",
    "CheckInRecord",
    "CheckInState",
    "EventAssignmentRecord",
    "LocationErrorReason",
    "MemberStatus",
    "ServiceEventRecord",
    "TeamMemberRecord",
    "WindowState",
]
