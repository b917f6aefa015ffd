"""Persistence collaborator and read access to the event/member store."""

from collections import defaultdict
from typing import Optional, Protocol

from libs.common.datetime_utils import to_utc
from libs.common.logging import get_logger
from services.checkin_service.exceptions import DuplicateCheckIn, PersistenceFailure
from services.checkin_service.models import (
    CheckInRecord,
    ServiceEventRecord,
    TeamMemberRecord,
)
from services.checkin_service.schemas import (
    Assignment,
    CheckIn,
    CheckInCreate,
    EventLocation,
    GeoPoint,
    ServiceEvent,
    TeamMember,
)
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class CheckInStore(Protocol):
    async def append_check_in(
        self, event_id: str, member_id: str, payload: CheckInCreate
    ) -> CheckInRecord:
        """Store one check-in; raise ``PersistenceFailure`` when it cannot."""
        raise NotImplementedError


def _to_event(row: ServiceEventRecord) -> ServiceEvent:
    location = None
    if row.latitude is not None or row.longitude is not None or row.address:
        location = EventLocation(
            latitude=row.latitude, longitude=row.longitude, address=row.address
        )
    return ServiceEvent(
        id=row.id,
        name=row.name or "",
        date=row.date,
        end_date=row.end_date,
        call_time=row.call_time,
        location=location,
        assignments=[
            Assignment(
                role_id=a.role_id, member_id=a.member_id, trainee_id=a.trainee_id
            )
            for a in row.assignments
        ],
    )


def _to_check_in(row: CheckInRecord) -> CheckIn:
    location = None
    if row.latitude is not None and row.longitude is not None:
        location = GeoPoint(latitude=row.latitude, longitude=row.longitude)
    return CheckIn(
        event_id=row.event_id,
        check_in_time=row.check_in_time,
        location=location,
        unverified=bool(row.unverified),
        late_reason=row.late_reason,
    )


def _to_member(row: TeamMemberRecord, check_ins: list[CheckInRecord]) -> TeamMember:
    return TeamMember(
        id=row.id,
        name=row.name or "",
        status=row.status,
        check_ins=[_to_check_in(ci) for ci in check_ins],
    )


class SQLAlchemyCheckInStore:
    """Check-in store backed by the service database.

    One check-in per (event, member) is enforced by the
    ``uq_event_member_check_in`` constraint; a second insert surfaces as
    ``DuplicateCheckIn``.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append_check_in(
        self, event_id: str, member_id: str, payload: CheckInCreate
    ) -> CheckInRecord:
        record = CheckInRecord(
            event_id=event_id,
            member_id=member_id,
            check_in_time=to_utc(payload.check_in_time),
            latitude=payload.latitude,
            longitude=payload.longitude,
            unverified=payload.unverified,
            late_reason=payload.late_reason,
        )
        self.db.add(record)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            logger.info(
                "Duplicate check-in rejected for event=%s member=%s",
                event_id,
                member_id,
            )
            raise DuplicateCheckIn(event_id, member_id) from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.warning(
                "Failed to store check-in for event=%s member=%s",
                event_id,
                member_id,
                exc_info=True,
            )
            raise PersistenceFailure(
                "We couldn't save your check-in. Please try again."
            ) from exc

        await self.db.refresh(record)
        return record

    async def get_event(self, event_id: str) -> Optional[ServiceEvent]:
        row = (
            await self.db.execute(
                select(ServiceEventRecord).where(ServiceEventRecord.id == event_id)
            )
        ).scalar_one_or_none()
        return _to_event(row) if row else None

    async def list_events(self) -> list[ServiceEvent]:
        rows = (
            (
                await self.db.execute(
                    select(ServiceEventRecord).order_by(ServiceEventRecord.date)
                )
            )
            .scalars()
            .all()
        )
        return [_to_event(row) for row in rows]

    async def get_member(self, member_id: str) -> Optional[TeamMember]:
        row = (
            await self.db.execute(
                select(TeamMemberRecord).where(TeamMemberRecord.id == member_id)
            )
        ).scalar_one_or_none()
        if not row:
            return None

        check_ins = (
            (
                await self.db.execute(
                    select(CheckInRecord)
                    .where(CheckInRecord.member_id == member_id)
                    .order_by(CheckInRecord.check_in_time)
                )
            )
            .scalars()
            .all()
        )
        return _to_member(row, list(check_ins))

    async def list_members(self) -> list[TeamMember]:
        rows = (
            (await self.db.execute(select(TeamMemberRecord).order_by(TeamMemberRecord.id)))
            .scalars()
            .all()
        )
        check_ins = (
            (
                await self.db.execute(
                    select(CheckInRecord).order_by(CheckInRecord.check_in_time)
                )
            )
            .scalars()
            .all()
        )

        by_member: dict[str, list[CheckInRecord]] = defaultdict(list)
        for ci in check_ins:
            by_member[ci.member_id].append(ci)

        return [_to_member(row, by_member[row.id]) for row in rows]
