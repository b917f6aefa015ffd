"""Per-session check-in flow for one (event, member) pair.

    idle -> locating -> checking-in -> checked-in
              |              |
              +--> error <---+        error -> idle (retry)

``checked-in`` is terminal. The machine starts there when the member already
holds a check-in for the event. Calls made while ``locating`` or
``checking-in`` are ignored, so one session never has two attempts in flight
for the same pair.
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional

from libs.common.datetime_utils import ensure_datetime, utc_now
from libs.common.logging import get_logger
from services.checkin_service.exceptions import (
    CheckInError,
    DuplicateCheckIn,
    GeofenceViolation,
    LocationUnavailable,
    MissingJustification,
    PersistenceFailure,
    WindowClosed,
)
from services.checkin_service.models.enums import CheckInState
from services.checkin_service.schemas import (
    CheckIn,
    CheckInCreate,
    CheckInView,
    GeoPoint,
    ServiceEvent,
    TeamMember,
)
from services.checkin_service.services.gate import CheckInGate
from services.checkin_service.services.location import LocationProvider
from services.checkin_service.services.store import CheckInStore

logger = get_logger(__name__)

BUSY_STATES = frozenset({CheckInState.LOCATING, CheckInState.CHECKING_IN})

UNKNOWN_ERROR_MESSAGE = "An unknown check-in error occurred."


class CheckInStateMachine:
    def __init__(
        self,
        event: ServiceEvent,
        member: TeamMember,
        *,
        location_provider: LocationProvider,
        store: CheckInStore,
        gate: Optional[CheckInGate] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.event = event
        self.member = member
        self._location_provider = location_provider
        self._store = store
        self._gate = gate or CheckInGate()
        self._clock = clock
        self._pending: Optional[asyncio.Future] = None

        if member.has_checked_in(event.id):
            self._state = CheckInState.CHECKED_IN
            self._message = "Checked in."
        else:
            self._state = CheckInState.IDLE
            self._message = ""

    @property
    def state(self) -> CheckInState:
        return self._state

    @property
    def message(self) -> str:
        return self._message

    @property
    def is_busy(self) -> bool:
        return self._state in BUSY_STATES

    def _transition(self, state: CheckInState, message: str = "") -> None:
        logger.debug(
            "check-in event=%s member=%s: %s -> %s",
            self.event.id,
            self.member.id,
            self._state.value,
            state.value,
        )
        self._state = state
        self._message = message

    def _fail(self, exc: CheckInError) -> CheckInState:
        logger.info(
            "check-in event=%s member=%s failed: %s",
            self.event.id,
            self.member.id,
            exc.message,
        )
        self._transition(CheckInState.ERROR, exc.message)
        return self._state

    def _now(self, now: Optional[datetime]) -> datetime:
        return self._clock() if now is None else ensure_datetime(now)

    def view(self, now: Optional[datetime] = None) -> CheckInView:
        decision = self._gate.evaluate(self.event, self._now(now))
        can_check_in = (
            self._state in (CheckInState.IDLE, CheckInState.ERROR) and decision.is_open
        )

        message = self._message
        if not message and self._state == CheckInState.IDLE and not decision.is_open:
            message = WindowClosed(
                decision.window, decision.opens_at, decision.closes_at
            ).message

        return CheckInView(
            event_id=self.event.id,
            member_id=self.member.id,
            state=self._state,
            message=message,
            window=decision.window,
            is_late=decision.is_late,
            can_check_in=can_check_in,
            opens_at=decision.opens_at,
            closes_at=decision.closes_at,
        )

    def retry(self) -> None:
        """Move ``error`` back to ``idle``."""
        if self._state == CheckInState.ERROR:
            self._transition(CheckInState.IDLE)

    def cancel(self) -> None:
        """Abandon a pending location request; nothing is persisted."""
        if self._state != CheckInState.LOCATING or self._pending is None:
            return
        pending, self._pending = self._pending, None
        pending.cancel()
        self._transition(CheckInState.IDLE)

    async def start(
        self, *, now: Optional[datetime] = None, late_reason: Optional[str] = None
    ) -> CheckInState:
        """Run one check-in attempt and return the resulting state.

        A late attempt (at or after the late threshold) needs a non-empty
        ``late_reason``; without one, or outside the check-in window, the
        machine stays ``idle`` and only the message changes.
        """
        if self.is_busy or self._state == CheckInState.CHECKED_IN:
            logger.debug(
                "check-in event=%s member=%s ignored in state %s",
                self.event.id,
                self.member.id,
                self._state.value,
            )
            return self._state

        self.retry()
        now = self._now(now)

        try:
            decision = self._gate.check_window(self.event, now)
            reason = self._gate.require_justification(decision, late_reason)
        except (WindowClosed, MissingJustification) as exc:
            self._message = exc.message
            return self._state

        self._transition(CheckInState.LOCATING, "Getting your location...")
        try:
            location = await self._locate()
        except LocationUnavailable as exc:
            return self._fail(exc)
        except asyncio.CancelledError:
            self._transition(CheckInState.IDLE)
            raise
        except Exception:
            logger.exception("Location provider failed for event=%s", self.event.id)
            self._transition(CheckInState.ERROR, UNKNOWN_ERROR_MESSAGE)
            return self._state

        if location is None:
            # Abandoned by cancel(); a newer attempt may own the state now.
            return self._state

        try:
            self._gate.check_geofence(self.event, location)
        except GeofenceViolation as exc:
            return self._fail(exc)

        return await self._persist(now, location, reason)

    def _release(self, pending: asyncio.Future) -> bool:
        """Drop ``pending`` if it is still current; False when it was abandoned."""
        if self._pending is not pending:
            return False
        self._pending = None
        return True

    async def _locate(self) -> Optional[GeoPoint]:
        pending = asyncio.ensure_future(self._location_provider.get_current_location())
        self._pending = pending
        try:
            location = await pending
        except (Exception, asyncio.CancelledError):
            if not self._release(pending):
                return None
            raise
        return location if self._release(pending) else None

    async def _persist(
        self, now: datetime, location: GeoPoint, reason: Optional[str]
    ) -> CheckInState:
        self._transition(CheckInState.CHECKING_IN, "Checking in...")
        # Stamped with the instant the gate judged, not the time of the write,
        # so a slow location fix cannot turn an on-time attempt into a late record.
        payload = CheckInCreate(
            check_in_time=now,
            latitude=location.latitude,
            longitude=location.longitude,
            late_reason=reason,
        )
        try:
            await self._store.append_check_in(self.event.id, self.member.id, payload)
        except DuplicateCheckIn as exc:
            self._transition(CheckInState.CHECKED_IN, exc.message)
            return self._state
        except PersistenceFailure as exc:
            return self._fail(exc)
        except asyncio.CancelledError:
            self._transition(CheckInState.IDLE)
            raise
        except Exception:
            logger.exception("Check-in store failed for event=%s", self.event.id)
            self._transition(CheckInState.ERROR, UNKNOWN_ERROR_MESSAGE)
            return self._state

        self.member.check_ins.append(
            CheckIn(
                event_id=self.event.id,
                check_in_time=now,
                location=location,
                late_reason=reason,
            )
        )
        self._transition(CheckInState.CHECKED_IN, "Checked in successfully.")
        return self._state
