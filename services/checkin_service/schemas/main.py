"""Pydantic schemas for the Check-in Service.

Domain documents (events, members, check-ins) accept both the camelCase keys
used by the scheduling store and snake_case field names. Their timestamp
fields go through ``ensure_datetime`` so any stored shape is accepted.
"""

import uuid
from datetime import datetime
from typing import Any, List, Optional

from libs.common.datetime_utils import EPOCH, ensure_datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from services.checkin_service.models.enums import (
    AccountabilityTier,
    AlertLevel,
    AlertType,
    CheckInState,
    LocationErrorReason,
    MemberStatus,
    WindowState,
)


def _optional_instant(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    return ensure_datetime(value)


class DocumentModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# ============================================================================
# DOMAIN DOCUMENTS
# ============================================================================


class GeoPoint(DocumentModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class EventLocation(DocumentModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class Assignment(DocumentModel):
    role_id: str
    member_id: Optional[str] = None
    trainee_id: Optional[str] = None

    def involves(self, member_id: str) -> bool:
        return member_id in (self.member_id, self.trainee_id)


class ServiceEvent(DocumentModel):
    id: str
    name: str = ""
    date: datetime = Field(default=EPOCH, validate_default=True)
    end_date: Optional[datetime] = None
    call_time: datetime = Field(default=EPOCH, validate_default=True)
    location: Optional[EventLocation] = None
    assignments: List[Assignment] = Field(default_factory=list)

    @field_validator("date", "call_time", mode="before")
    @classmethod
    def normalize_instant(cls, v: Any) -> datetime:
        return ensure_datetime(v)

    @field_validator("end_date", mode="before")
    @classmethod
    def normalize_end_date(cls, v: Any) -> Optional[datetime]:
        return _optional_instant(v)

    @field_validator("assignments", mode="before")
    @classmethod
    def default_assignments(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def ends_at(self) -> datetime:
        """When the event is over: ``end_date`` if set, else ``date``.

        An ``end_date`` earlier than ``date`` is clamped to ``date``.
        """
        if self.end_date is None:
            return self.date
        return max(self.end_date, self.date)

    def is_assigned(self, member_id: str) -> bool:
        return any(a.involves(member_id) for a in self.assignments)


class CheckIn(DocumentModel):
    event_id: str
    check_in_time: datetime = Field(default=EPOCH, validate_default=True)
    location: Optional[GeoPoint] = None
    unverified: bool = False
    late_reason: Optional[str] = None

    @field_validator("check_in_time", mode="before")
    @classmethod
    def normalize_instant(cls, v: Any) -> datetime:
        return ensure_datetime(v)


class TeamMember(DocumentModel):
    id: str
    name: str = ""
    status: MemberStatus = MemberStatus.ACTIVE
    check_ins: List[CheckIn] = Field(default_factory=list)

    @field_validator("check_ins", mode="before")
    @classmethod
    def default_check_ins(cls, v: Any) -> Any:
        return [] if v is None else v

    def check_in_for(self, event_id: str) -> Optional[CheckIn]:
        return next((ci for ci in self.check_ins if ci.event_id == event_id), None)

    def has_checked_in(self, event_id: str) -> bool:
        return self.check_in_for(event_id) is not None


# ============================================================================
# DERIVED VIEW MODELS
# ============================================================================


class AttendanceStats(BaseModel):
    total_assignments: int = 0
    on_time: int = 0
    early: int = 0
    late: int = 0
    no_show: int = 0
    on_time_percentage: float = 100.0
    reliability_score: float = 100.0
    current_streak: int = 0

    @property
    def total_checked_in(self) -> int:
        return self.on_time + self.early + self.late


class PerformanceAlert(BaseModel):
    type: AlertType
    level: AlertLevel
    message: str


class TimelinessBreakdown(BaseModel):
    """Team-wide arrival classification across all known check-ins."""

    early: int = 0
    on_time: int = 0
    late: int = 0


class ReliabilitySummary(BaseModel):
    """Active members bucketed by reliability score."""

    rockstar: int = 0  # 95+
    reliable: int = 0  # 85+
    inconsistent: int = 0  # 70+
    at_risk: int = 0


class MemberAttendanceResponse(BaseModel):
    member_id: str
    stats: AttendanceStats
    alerts: List[PerformanceAlert]
    tier: AccountabilityTier


class CheckInView(BaseModel):
    """What the check-in control shows for one (event, member) pair."""

    event_id: str
    member_id: str
    state: CheckInState
    message: str = ""
    window: WindowState
    is_late: bool = False
    can_check_in: bool = False
    opens_at: datetime
    closes_at: datetime


# ============================================================================
# REQUEST / RESPONSE SCHEMAS
# ============================================================================


class CheckInCreate(BaseModel):
    """Payload handed to the persistence collaborator."""

    check_in_time: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    late_reason: Optional[str] = None
    unverified: bool = False


class CheckInAttempt(BaseModel):
    """A member pressing "Check In".

    The client reports either the device position or the reason it could not
    get one.
    """

    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    location_error: Optional[LocationErrorReason] = None
    late_reason: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_coordinates_paired(self) -> "CheckInAttempt":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self


class CheckInResponse(BaseModel):
    id: uuid.UUID
    event_id: str
    member_id: str
    check_in_time: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    unverified: bool = False
    late_reason: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("check_in_time", "created_at", mode="before")
    @classmethod
    def normalize_instant(cls, v: Any) -> datetime:
        return ensure_datetime(v)
