"""Check-in Service schemas package."""

from services.checkin_service.schemas.main import (
    Assignment,
    AttendanceStats,
    CheckIn,
    CheckInAttempt,
    CheckInCreate,
    CheckInResponse,
    CheckInView,
    EventLocation,
    GeoPoint,
    MemberAttendanceResponse,
    PerformanceAlert,
    ReliabilitySummary,
    ServiceEvent,
    TeamMember,
    TimelinessBreakdown,
)

__all__ = [
    "Assignment",
    "AttendanceStats",
    "CheckIn",
    "CheckInAttempt",
    "CheckInCreate",
    "CheckInResponse",
    "CheckInView",
    "EventLocation",
    "GeoPoint",
    "MemberAttendanceResponse",
    "PerformanceAlert",
    "ReliabilitySummary",
    "ServiceEvent",
    "TeamMember",
    "TimelinessBreakdown",
]
