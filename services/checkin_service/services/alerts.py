"""Threshold rules turning attendance stats into advisory alerts."""

from dataclasses import dataclass

from services.checkin_service.models.enums import AlertLevel, AlertType
from services.checkin_service.schemas import AttendanceStats, PerformanceAlert


@dataclass(frozen=True)
class AlertThresholds:
    min_check_ins: int = 3
    late_ratio: float = 0.3
    critical_late: int = 5  # critical above this many late check-ins
    warning_no_shows: int = 2
    critical_no_shows: int = 3  # critical above this many no-shows


def detect_performance_issues(
    stats: AttendanceStats, thresholds: AlertThresholds = AlertThresholds()
) -> list[PerformanceAlert]:
    """Return lateness and no-show alerts, in that order."""
    alerts: list[PerformanceAlert] = []
    checked_in = stats.total_checked_in

    if (
        checked_in > 0
        and checked_in >= thresholds.min_check_ins
        and stats.late / checked_in > thresholds.late_ratio
    ):
        alerts.append(
            PerformanceAlert(
                type=AlertType.LATENESS,
                level=(
                    AlertLevel.CRITICAL
                    if stats.late > thresholds.critical_late
                    else AlertLevel.WARNING
                ),
                message=(
                    f"Punctuality alert: You've been late for {stats.late} "
                    "of your recent check-ins."
                ),
            )
        )

    if stats.no_show >= thresholds.warning_no_shows:
        alerts.append(
            PerformanceAlert(
                type=AlertType.NO_SHOWS,
                level=(
                    AlertLevel.CRITICAL
                    if stats.no_show > thresholds.critical_no_shows
                    else AlertLevel.WARNING
                ),
                message=(
                    f"Accountability alert: {stats.no_show} no-shows detected. "
                    "Please coordinate with your lead if you cannot attend."
                ),
            )
        )

    return alerts
