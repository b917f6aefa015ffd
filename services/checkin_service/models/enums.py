"""Enum definitions for check-in service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class MemberStatus(str, enum.Enum):
    ACTIVE = "active"
    PENDING_APPROVAL = "pending-approval"
    INACTIVE = "inactive"


class CheckInState(str, enum.Enum):
    IDLE = "idle"
    LOCATING = "locating"
    CHECKING_IN = "checking-in"
    CHECKED_IN = "checked-in"
    ERROR = "error"


class WindowState(str, enum.Enum):
    NOT_OPEN = "not_open"
    OPEN = "open"
    CLOSED = "closed"


class ArrivalClass(str, enum.Enum):
    EARLY = "early"
    ON_TIME = "on_time"
    LATE = "late"


class LocationErrorReason(str, enum.Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"


class AlertType(str, enum.Enum):
    LATENESS = "lateness"
    NO_SHOWS = "no-shows"


class AlertLevel(str, enum.Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class AccountabilityTier(str, enum.Enum):
    ELITE = "elite"  # 90+
    RELIABLE = "reliable"  # 75+
    GROWING = "growing"
