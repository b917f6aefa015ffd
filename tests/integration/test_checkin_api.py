"""Integration tests for check-in service endpoints."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from services.checkin_service.models import CheckInRecord
from tests.factories import (
    VENUE_LAT,
    VENUE_LON,
    CheckInFactory,
    ServiceEventFactory,
    TeamMemberFactory,
    offset_north,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _seed(db_session, *, call_time=None, **event_overrides):
    member = TeamMemberFactory.create(id="member-1")
    event = ServiceEventFactory.create(
        id="event-1",
        call_time=call_time or _now() + timedelta(minutes=10),
        assigned_member_ids=["member-1"],
        **event_overrides,
    )
    db_session.add_all([member, event])
    await db_session.commit()
    return event, member


async def _check_ins(db_session):
    return (await db_session.execute(select(CheckInRecord))).scalars().all()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "checkin"}


# ---------------------------------------------------------------------------
# GET /checkins/events/{event_id}/members/{member_id}/status
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_status_open_window(client, db_session):
    await _seed(db_session)

    response = await client.get("/checkins/events/event-1/members/member-1/status")

    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "idle"
    assert data["window"] == "open"
    assert data["can_check_in"] is True
    assert data["is_late"] is False


@pytest.mark.asyncio
@pytest.mark.integration
async def test_status_before_window(client, db_session):
    await _seed(db_session, call_time=_now() + timedelta(hours=3))

    response = await client.get("/checkins/events/event-1/members/member-1/status")

    data = response.json()
    assert data["window"] == "not_open"
    assert data["can_check_in"] is False
    assert data["message"] == "Check-in has not opened yet for this event."


@pytest.mark.asyncio
@pytest.mark.integration
async def test_status_already_checked_in(client, db_session):
    await _seed(db_session)
    db_session.add(CheckInFactory.create("event-1", "member-1"))
    await db_session.commit()

    response = await client.get("/checkins/events/event-1/members/member-1/status")

    data = response.json()
    assert data["state"] == "checked-in"
    assert data["can_check_in"] is False


@pytest.mark.asyncio
@pytest.mark.integration
async def test_status_unknown_event_or_member(client, db_session):
    await _seed(db_session)

    response = await client.get("/checkins/events/nope/members/member-1/status")
    assert response.status_code == 404
    assert response.json()["detail"] == "Event not found"

    response = await client.get("/checkins/events/event-1/members/nope/status")
    assert response.status_code == 404
    assert response.json()["detail"] == "Team member not found"


# ---------------------------------------------------------------------------
# POST /checkins/events/{event_id}/members/{member_id}
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_check_in_success(client, db_session):
    await _seed(db_session)

    response = await client.post(
        "/checkins/events/event-1/members/member-1",
        json={"latitude": VENUE_LAT, "longitude": VENUE_LON},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "checked-in"
    assert data["message"] == "Checked in successfully."

    records = await _check_ins(db_session)
    assert len(records) == 1
    assert records[0].member_id == "member-1"
    assert records[0].unverified is False


@pytest.mark.asyncio
@pytest.mark.integration
async def test_check_in_outside_geofence(client, db_session):
    await _seed(db_session)
    lat, lon = offset_north(VENUE_LAT, VENUE_LON, 250)

    response = await client.post(
        "/checkins/events/event-1/members/member-1",
        json={"latitude": lat, "longitude": lon},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "error"
    assert "250m away" in data["message"]
    assert data["can_check_in"] is True
    assert await _check_ins(db_session) == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_check_in_reported_location_error(client, db_session):
    await _seed(db_session)

    response = await client.post(
        "/checkins/events/event-1/members/member-1",
        json={"location_error": "permission_denied"},
    )

    data = response.json()
    assert data["state"] == "error"
    assert data["message"] == "User denied the request for Geolocation."


@pytest.mark.asyncio
@pytest.mark.integration
async def test_late_check_in_requires_reason(client, db_session):
    await _seed(db_session, call_time=_now() - timedelta(minutes=10))
    body = {"latitude": VENUE_LAT, "longitude": VENUE_LON}

    response = await client.post("/checkins/events/event-1/members/member-1", json=body)
    data = response.json()
    assert data["state"] == "idle"
    assert data["is_late"] is True
    assert "running late" in data["message"]
    assert await _check_ins(db_session) == []

    body["late_reason"] = "Traffic on I-35"
    response = await client.post("/checkins/events/event-1/members/member-1", json=body)
    assert response.json()["state"] == "checked-in"

    records = await _check_ins(db_session)
    assert records[0].late_reason == "Traffic on I-35"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_check_in_after_window_closed(client, db_session):
    await _seed(db_session, call_time=_now() - timedelta(hours=1))

    response = await client.post(
        "/checkins/events/event-1/members/member-1",
        json={"latitude": VENUE_LAT, "longitude": VENUE_LON, "late_reason": "sorry"},
    )

    data = response.json()
    assert data["state"] == "idle"
    assert data["window"] == "closed"
    assert data["message"] == "Check-in for this event has closed."


@pytest.mark.asyncio
@pytest.mark.integration
async def test_second_check_in_is_a_no_op(client, db_session):
    await _seed(db_session)
    body = {"latitude": VENUE_LAT, "longitude": VENUE_LON}

    await client.post("/checkins/events/event-1/members/member-1", json=body)
    response = await client.post("/checkins/events/event-1/members/member-1", json=body)

    assert response.json()["state"] == "checked-in"
    assert len(await _check_ins(db_session)) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_check_in_rejects_unpaired_coordinates(client, db_session):
    await _seed(db_session)

    response = await client.post(
        "/checkins/events/event-1/members/member-1", json={"latitude": VENUE_LAT}
    )

    assert response.status_code == 422


# ---------------------------------------------------------------------------
# POST /checkins/events/{event_id}/members/{member_id}/manual
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_manual_check_in_requires_admin(client, db_session):
    await _seed(db_session)

    response = await client.post("/checkins/events/event-1/members/member-1/manual")

    assert response.status_code == 403
    assert await _check_ins(db_session) == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_manual_check_in_by_admin(client, db_session):
    await _seed(db_session, call_time=_now() - timedelta(days=1))
    headers = {"X-Team-Admin": "true"}

    response = await client.post(
        "/checkins/events/event-1/members/member-1/manual", headers=headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["unverified"] is True
    assert data["latitude"] is None
    assert data["member_id"] == "member-1"

    response = await client.post(
        "/checkins/events/event-1/members/member-1/manual", headers=headers
    )
    assert response.status_code == 409


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_member_stats(client, db_session):
    member = TeamMemberFactory.create(id="member-1")
    db_session.add(member)

    base = _now() - timedelta(days=1)
    offsets = [-10, 2, 12, None]
    for week, offset in enumerate(offsets):
        call_time = base - timedelta(weeks=week)
        db_session.add(
            ServiceEventFactory.create(
                id=f"event-{week}",
                call_time=call_time,
                assigned_member_ids=["member-1"],
            )
        )
        if offset is not None:
            db_session.add(
                CheckInFactory.create(
                    f"event-{week}",
                    "member-1",
                    check_in_time=call_time + timedelta(minutes=offset),
                )
            )
    await db_session.commit()

    response = await client.get("/checkins/members/member-1/stats")

    assert response.status_code == 200
    data = response.json()
    stats = data["stats"]
    assert stats["total_assignments"] == 4
    assert (stats["early"], stats["on_time"], stats["late"], stats["no_show"]) == (
        1,
        1,
        1,
        1,
    )
    assert stats["reliability_score"] == pytest.approx(62.5)
    assert stats["current_streak"] == 2
    # 1 of 3 check-ins late crosses the 30% lateness threshold.
    assert [(a["type"], a["level"]) for a in data["alerts"]] == [
        ("lateness", "warning")
    ]
    assert data["tier"] == "growing"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_member_stats_without_history(client, db_session):
    db_session.add(TeamMemberFactory.create(id="member-1"))
    await db_session.commit()

    response = await client.get("/checkins/members/member-1/stats")

    data = response.json()
    assert data["stats"]["reliability_score"] == 100
    assert data["alerts"] == []
    assert data["tier"] == "elite"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_member_stats_unknown_member(client):
    response = await client.get("/checkins/members/nope/stats")

    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_team_reports(client, db_session):
    call_time = _now() - timedelta(days=2)
    db_session.add_all(
        [
            TeamMemberFactory.create(id="member-1"),
            TeamMemberFactory.create(id="member-2"),
            ServiceEventFactory.create(
                id="event-1",
                call_time=call_time,
                assigned_member_ids=["member-1", "member-2"],
            ),
            CheckInFactory.create(
                "event-1", "member-1", check_in_time=call_time - timedelta(minutes=20)
            ),
            CheckInFactory.create(
                "event-1", "member-2", check_in_time=call_time + timedelta(minutes=20)
            ),
        ]
    )
    await db_session.commit()

    response = await client.get("/checkins/reports/timeliness")
    assert response.status_code == 200
    assert response.json() == {"early": 1, "on_time": 0, "late": 1}

    response = await client.get("/checkins/reports/reliability")
    assert response.status_code == 200
    assert response.json() == {
        "rockstar": 1,
        "reliable": 0,
        "inconsistent": 0,
        "at_risk": 1,
    }
