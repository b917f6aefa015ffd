"""Unit tests for lateness and no-show alerts."""

import pytest
from services.checkin_service.models import AlertLevel, AlertType
from services.checkin_service.schemas import AttendanceStats
from services.checkin_service.services.alerts import (
    AlertThresholds,
    detect_performance_issues,
)


def _stats(**counts) -> AttendanceStats:
    return AttendanceStats(**counts)


@pytest.mark.unit
def test_clean_record_has_no_alerts():
    assert detect_performance_issues(_stats(on_time=10)) == []


@pytest.mark.unit
def test_empty_record_has_no_alerts():
    assert detect_performance_issues(_stats()) == []


@pytest.mark.unit
def test_lateness_warning():
    alerts = detect_performance_issues(_stats(late=4, on_time=6))

    assert len(alerts) == 1
    assert alerts[0].type == AlertType.LATENESS
    assert alerts[0].level == AlertLevel.WARNING
    assert "late for 4" in alerts[0].message


@pytest.mark.unit
def test_lateness_critical_above_five():
    alerts = detect_performance_issues(_stats(late=6, on_time=4))

    assert alerts[0].level == AlertLevel.CRITICAL


@pytest.mark.unit
def test_lateness_needs_minimum_check_ins():
    # 2 of 2 late, but below the minimum sample size.
    assert detect_performance_issues(_stats(late=2)) == []


@pytest.mark.unit
def test_lateness_ratio_must_exceed_threshold():
    # Exactly 30% late does not alert.
    assert detect_performance_issues(_stats(late=3, on_time=5, early=2)) == []


@pytest.mark.unit
def test_early_arrivals_count_toward_sample():
    alerts = detect_performance_issues(_stats(late=1, early=2))

    assert [a.type for a in alerts] == [AlertType.LATENESS]


@pytest.mark.unit
@pytest.mark.parametrize(
    "no_show, level",
    [(2, AlertLevel.WARNING), (3, AlertLevel.WARNING), (4, AlertLevel.CRITICAL)],
)
def test_no_show_alert_levels(no_show, level):
    alerts = detect_performance_issues(_stats(no_show=no_show))

    assert len(alerts) == 1
    assert alerts[0].type == AlertType.NO_SHOWS
    assert alerts[0].level == level
    assert f"{no_show} no-shows" in alerts[0].message


@pytest.mark.unit
def test_single_no_show_is_tolerated():
    assert detect_performance_issues(_stats(no_show=1, on_time=5)) == []


@pytest.mark.unit
def test_lateness_alert_comes_before_no_shows():
    alerts = detect_performance_issues(_stats(late=6, on_time=1, no_show=5))

    assert [a.type for a in alerts] == [AlertType.LATENESS, AlertType.NO_SHOWS]
    assert all(a.level == AlertLevel.CRITICAL for a in alerts)


@pytest.mark.unit
def test_custom_thresholds():
    thresholds = AlertThresholds(min_check_ins=1, late_ratio=0.0, warning_no_shows=1)

    alerts = detect_performance_issues(_stats(late=1, no_show=1), thresholds)

    assert [a.type for a in alerts] == [AlertType.LATENESS, AlertType.NO_SHOWS]
