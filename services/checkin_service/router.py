"""Check-in and attendance endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, status
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.db.session import get_async_db
from services.checkin_service.exceptions import (
    AuthorizationError,
    DuplicateCheckIn,
    PersistenceFailure,
)
from services.checkin_service.schemas import (
    CheckInAttempt,
    CheckInResponse,
    CheckInView,
    MemberAttendanceResponse,
    ReliabilitySummary,
    ServiceEvent,
    TeamMember,
    TimelinessBreakdown,
)
from services.checkin_service.services import (
    CheckInGate,
    CheckInPolicy,
    CheckInStateMachine,
    ReportedLocationProvider,
    SQLAlchemyCheckInStore,
    calculate_attendance_stats,
    detect_performance_issues,
    rate_accountability,
    record_manual_check_in,
    summarize_team_reliability,
    summarize_timeliness,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/checkins", tags=["check-ins"])
settings = get_settings()


# ── Helpers ─────────────────────────────────────────────────────────


def get_store(db: AsyncSession = Depends(get_async_db)) -> SQLAlchemyCheckInStore:
    return SQLAlchemyCheckInStore(db)


async def get_is_admin(
    x_team_admin: Annotated[bool, Header()] = False,
) -> bool:
    """Admin flag resolved upstream and forwarded as a header."""
    return x_team_admin


async def _get_event(store: SQLAlchemyCheckInStore, event_id: str) -> ServiceEvent:
    event = await store.get_event(event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


async def _get_member(store: SQLAlchemyCheckInStore, member_id: str) -> TeamMember:
    member = await store.get_member(member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Team member not found")
    return member


def _build_machine(
    event: ServiceEvent,
    member: TeamMember,
    store: SQLAlchemyCheckInStore,
    attempt: CheckInAttempt | None = None,
) -> CheckInStateMachine:
    provider = (
        ReportedLocationProvider.from_attempt(attempt)
        if attempt
        else ReportedLocationProvider()
    )
    return CheckInStateMachine(
        event,
        member,
        location_provider=provider,
        store=store,
        gate=CheckInGate(CheckInPolicy.from_settings(settings)),
    )


# ── Check-in ────────────────────────────────────────────────────────


@router.get(
    "/events/{event_id}/members/{member_id}/status", response_model=CheckInView
)
async def get_check_in_status(
    event_id: str,
    member_id: str,
    store: SQLAlchemyCheckInStore = Depends(get_store),
):
    """Current state of the check-in control for a member."""
    event = await _get_event(store, event_id)
    member = await _get_member(store, member_id)
    return _build_machine(event, member, store).view(utc_now())


@router.post("/events/{event_id}/members/{member_id}", response_model=CheckInView)
async def check_in(
    event_id: str,
    member_id: str,
    attempt: CheckInAttempt,
    store: SQLAlchemyCheckInStore = Depends(get_store),
):
    """
    Run one check-in attempt with the position reported by the client.

    Rule violations come back as the resulting state and message rather than
    as HTTP errors.
    """
    event = await _get_event(store, event_id)
    member = await _get_member(store, member_id)

    now = utc_now()
    machine = _build_machine(event, member, store, attempt)
    await machine.start(now=now, late_reason=attempt.late_reason)
    return machine.view(now)


@router.post(
    "/events/{event_id}/members/{member_id}/manual",
    response_model=CheckInResponse,
    status_code=status.HTTP_201_CREATED,
)
async def manual_check_in(
    event_id: str,
    member_id: str,
    is_admin: Annotated[bool, Depends(get_is_admin)],
    store: SQLAlchemyCheckInStore = Depends(get_store),
):
    """Record an unverified check-in on a member's behalf (admin only)."""
    event = await _get_event(store, event_id)
    member = await _get_member(store, member_id)

    try:
        return await record_manual_check_in(
            store, event, member, now=utc_now(), is_admin=is_admin
        )
    except AuthorizationError as exc:
        raise HTTPException(status_code=403, detail=exc.message)
    except DuplicateCheckIn as exc:
        raise HTTPException(status_code=409, detail=exc.message)
    except PersistenceFailure as exc:
        raise HTTPException(status_code=503, detail=exc.message)


# ── Attendance ──────────────────────────────────────────────────────


@router.get("/members/{member_id}/stats", response_model=MemberAttendanceResponse)
async def get_member_attendance(
    member_id: str,
    store: SQLAlchemyCheckInStore = Depends(get_store),
):
    """Attendance stats, alerts and accountability tier for a member."""
    member = await _get_member(store, member_id)
    events = await store.list_events()

    stats = calculate_attendance_stats(
        member, events, utc_now(), settings.ARRIVAL_TOLERANCE_MINUTES
    )
    return MemberAttendanceResponse(
        member_id=member.id,
        stats=stats,
        alerts=detect_performance_issues(stats),
        tier=rate_accountability(stats.reliability_score),
    )


@router.get("/reports/timeliness", response_model=TimelinessBreakdown)
async def get_timeliness_report(
    store: SQLAlchemyCheckInStore = Depends(get_store),
):
    """Early / on-time / late split of every team check-in."""
    members = await store.list_members()
    events = await store.list_events()
    return summarize_timeliness(members, events, settings.ARRIVAL_TOLERANCE_MINUTES)


@router.get("/reports/reliability", response_model=ReliabilitySummary)
async def get_reliability_report(
    store: SQLAlchemyCheckInStore = Depends(get_store),
):
    """Active members bucketed by reliability score."""
    members = await store.list_members()
    events = await store.list_events()
    return summarize_team_reliability(
        members, events, utc_now(), settings.ARRIVAL_TOLERANCE_MINUTES
    )
