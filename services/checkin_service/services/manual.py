"""Admin-recorded check-ins for members who could not check in themselves."""

from datetime import datetime

from libs.common.datetime_utils import ensure_datetime
from libs.common.logging import get_logger
from services.checkin_service.exceptions import AuthorizationError
from services.checkin_service.models import CheckInRecord
from services.checkin_service.schemas import CheckInCreate, ServiceEvent, TeamMember
from services.checkin_service.services.store import CheckInStore

logger = get_logger(__name__)


async def record_manual_check_in(
    store: CheckInStore,
    event: ServiceEvent,
    member: TeamMember,
    *,
    now: datetime,
    is_admin: bool,
) -> CheckInRecord:
    """Store a location-less check-in flagged ``unverified``.

    Window and geofence rules do not apply; the caller's admin flag does.
    """
    if not is_admin:
        raise AuthorizationError(
            "Only team admins can record a check-in on behalf of a member."
        )

    payload = CheckInCreate(check_in_time=ensure_datetime(now), unverified=True)
    record = await store.append_check_in(event.id, member.id, payload)
    logger.info(
        "Manual check-in recorded for event=%s member=%s", event.id, member.id
    )
    return record
