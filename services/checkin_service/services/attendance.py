"""Attendance statistics and reliability reporting.

Every function here is pure: the same members, events and ``now`` always give
the same result, so callers may recompute freely.
"""

from datetime import datetime
from typing import Iterable, Optional

from libs.common.datetime_utils import ensure_datetime, is_epoch
from services.checkin_service.models.enums import (
    AccountabilityTier,
    ArrivalClass,
    MemberStatus,
)
from services.checkin_service.schemas import (
    AttendanceStats,
    ReliabilitySummary,
    ServiceEvent,
    TeamMember,
    TimelinessBreakdown,
)

DEFAULT_TOLERANCE_MINUTES = 5
LATE_CREDIT = 0.5


def classify_arrival(
    check_in_time: datetime,
    call_time: datetime,
    tolerance_minutes: float = DEFAULT_TOLERANCE_MINUTES,
) -> ArrivalClass:
    """Early before -tolerance, late after +tolerance, on time in between (inclusive)."""
    diff_minutes = (
        ensure_datetime(check_in_time) - ensure_datetime(call_time)
    ).total_seconds() / 60
    if diff_minutes < -tolerance_minutes:
        return ArrivalClass.EARLY
    if diff_minutes <= tolerance_minutes:
        return ArrivalClass.ON_TIME
    return ArrivalClass.LATE


def past_assignments(
    member: TeamMember, events: Iterable[ServiceEvent], now: datetime
) -> list[ServiceEvent]:
    """Events the member was assigned to that ended before ``now``, most recent first."""
    now = ensure_datetime(now)
    past = [
        event
        for event in events
        if not is_epoch(event.ends_at)
        and ensure_datetime(event.ends_at) < now
        and event.is_assigned(member.id)
    ]
    return sorted(past, key=lambda e: ensure_datetime(e.date), reverse=True)


def calculate_attendance_stats(
    member: TeamMember,
    events: Iterable[ServiceEvent],
    now: datetime,
    tolerance_minutes: float = DEFAULT_TOLERANCE_MINUTES,
) -> AttendanceStats:
    """Classify each past assignment and derive the reliability score.

    A missing check-in is a no-show. Check-ins whose time, or whose event's
    call time, could not be read are left unclassified but still count as an
    assignment. Late arrivals earn half credit, no-shows none.
    """
    assignments = past_assignments(member, events, now)

    on_time = early = late = no_show = streak = 0
    streak_active = True

    for event in assignments:
        check_in = member.check_in_for(event.id)
        if check_in is None:
            no_show += 1
            streak_active = False
            continue

        if is_epoch(check_in.check_in_time) or is_epoch(event.call_time):
            continue

        arrival = classify_arrival(
            check_in.check_in_time, event.call_time, tolerance_minutes
        )
        if arrival == ArrivalClass.LATE:
            late += 1
            streak_active = False
            continue

        if arrival == ArrivalClass.EARLY:
            early += 1
        else:
            on_time += 1
        if streak_active:
            streak += 1

    total = len(assignments)
    punctual = on_time + early
    checked_in = punctual + late

    on_time_percentage = 100.0
    if checked_in > 0:
        on_time_percentage = punctual / checked_in * 100

    reliability_score = 100.0
    if total > 0:
        reliability_score = (punctual + late * LATE_CREDIT) / total * 100

    return AttendanceStats(
        total_assignments=total,
        on_time=on_time,
        early=early,
        late=late,
        no_show=no_show,
        on_time_percentage=on_time_percentage,
        reliability_score=reliability_score,
        current_streak=streak,
    )


def rate_accountability(reliability_score: float) -> AccountabilityTier:
    if reliability_score >= 90:
        return AccountabilityTier.ELITE
    if reliability_score >= 75:
        return AccountabilityTier.RELIABLE
    return AccountabilityTier.GROWING


def summarize_timeliness(
    members: Iterable[TeamMember],
    events: Iterable[ServiceEvent],
    tolerance_minutes: float = DEFAULT_TOLERANCE_MINUTES,
) -> TimelinessBreakdown:
    """Classify every team check-in whose event is known."""
    call_times = {event.id: event.call_time for event in events}
    breakdown = TimelinessBreakdown()

    for member in members:
        for check_in in member.check_ins:
            call_time: Optional[datetime] = call_times.get(check_in.event_id)
            if call_time is None:
                continue
            if is_epoch(check_in.check_in_time) or is_epoch(call_time):
                continue

            arrival = classify_arrival(
                check_in.check_in_time, call_time, tolerance_minutes
            )
            if arrival == ArrivalClass.EARLY:
                breakdown.early += 1
            elif arrival == ArrivalClass.ON_TIME:
                breakdown.on_time += 1
            else:
                breakdown.late += 1

    return breakdown


def summarize_team_reliability(
    members: Iterable[TeamMember],
    events: Iterable[ServiceEvent],
    now: datetime,
    tolerance_minutes: float = DEFAULT_TOLERANCE_MINUTES,
) -> ReliabilitySummary:
    """Bucket active members with at least one past assignment by reliability."""
    events = list(events)
    summary = ReliabilitySummary()

    for member in members:
        if member.status != MemberStatus.ACTIVE:
            continue
        stats = calculate_attendance_stats(member, events, now, tolerance_minutes)
        if stats.total_assignments == 0:
            continue

        if stats.reliability_score >= 95:
            summary.rockstar += 1
        elif stats.reliability_score >= 85:
            summary.reliable += 1
        elif stats.reliability_score >= 70:
            summary.inconsistent += 1
        else:
            summary.at_risk += 1

    return summary
