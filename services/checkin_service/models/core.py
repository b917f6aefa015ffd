import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.checkin_service.models.enums import MemberStatus, enum_values
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Float, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# EVENT / MEMBER STORE (written by the scheduling side, read here)
# ============================================================================


class TeamMemberRecord(Base):
    """A schedulable team member."""

    __tablename__ = "team_members"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), default="")
    status: Mapped[MemberStatus] = mapped_column(
        SAEnum(
            MemberStatus,
            name="team_member_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=MemberStatus.ACTIVE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self):
        return f"<TeamMemberRecord {self.id}>"


class ServiceEventRecord(Base):
    """A scheduled service event with a call time and optional venue."""

    __tablename__ = "service_events"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), default="")
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    call_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    # Venue; geofencing is skipped when latitude/longitude are null
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    assignments: Mapped[list["EventAssignmentRecord"]] = relationship(
        back_populates="event", cascade="all, delete-orphan", lazy="selectin"
    )

    def __repr__(self):
        return f"<ServiceEventRecord {self.id} call={self.call_time}>"


class EventAssignmentRecord(Base):
    """A role on an event, filled by a member and optionally shadowed by a trainee."""

    __tablename__ = "event_assignments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[str] = mapped_column(
        ForeignKey("service_events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role_id: Mapped[str] = mapped_column(String(64), nullable=False)
    member_id: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, index=True
    )
    trainee_id: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, index=True
    )

    event: Mapped[ServiceEventRecord] = relationship(back_populates="assignments")


# ============================================================================
# CHECK-INS (appended by this service)
# ============================================================================


class CheckInRecord(Base):
    __tablename__ = "check_ins"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    event_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    member_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    check_in_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Set for admin-recorded check-ins that carry no device location
    unverified: Mapped[bool] = mapped_column(Boolean, default=False)
    late_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        UniqueConstraint("event_id", "member_id", name="uq_event_member_check_in"),
    )

    def __repr__(self):
        return f"<CheckInRecord Event={self.event_id} Member={self.member_id}>"
