"""Tests for altitude/GSD bounds and waypoint validation"""

import logging
import math

import pytest

from photoplan.coordinate_frame import ENUPoint
from photoplan.errors import (
    InsufficientWaypointsError,
    InvalidParameterError,
    MalformedWaypointError,
    WaypointValidationError,
)
from photoplan.pattern_generator import Waypoint
from photoplan.validation_guard import (
    ClampWarning,
    ValidationGuard,
    ValidationLimits,
    ValidationStatus,
    validate_waypoints,
)


def _waypoints(*points, speed=5.0):
    return [Waypoint(position=ENUPoint(*p), speed=speed) for p in points]


@pytest.fixture
def guard():
    return ValidationGuard(ValidationLimits(altitude_max=120))


def test_altitude_below_minimum_is_clamped(guard, caplog):
    with caplog.at_level(logging.WARNING, logger="photoplan.validation_guard"):
        check = guard.check_altitude(3)

    assert check.value == 5
    assert check.requested == 3
    assert check.warning == ClampWarning.TOO_LOW
    assert check.clamped
    assert "clamped" in caplog.text


def test_altitude_above_maximum_is_clamped(guard):
    check = guard.check_altitude(150)

    assert check.value == 120
    assert check.warning == ClampWarning.TOO_HIGH


def test_altitude_in_range(guard):
    check = guard.check_altitude(60)

    assert check.value == 60
    assert check.warning == ClampWarning.OK
    assert not check.clamped


def test_default_altitude_range():
    guard = ValidationGuard()
    assert guard.check_altitude(500).warning == ClampWarning.OK
    assert guard.check_altitude(501).value == 500


def test_gsd_is_classified_not_clamped(guard):
    assert guard.check_gsd(1.6).warning == ClampWarning.OK

    coarse = guard.check_gsd(8.0)
    assert coarse.warning == ClampWarning.TOO_HIGH
    assert coarse.value == 8.0

    assert guard.check_gsd(0.05).warning == ClampWarning.TOO_LOW


def test_limits_must_be_ordered():
    with pytest.raises(InvalidParameterError):
        ValidationLimits(altitude_min=100, altitude_max=50)
    with pytest.raises(InvalidParameterError):
        ValidationLimits(gsd_min=5, gsd_max=1)


@pytest.mark.parametrize("waypoints", [None, [], _waypoints((0, 0, 10))])
def test_too_few_waypoints(waypoints):
    with pytest.raises(InsufficientWaypointsError):
        validate_waypoints(waypoints)


def test_malformed_waypoints():
    good = _waypoints((0, 0, 10))[0]

    with pytest.raises(MalformedWaypointError):
        validate_waypoints([good, Waypoint(position=None)])
    with pytest.raises(MalformedWaypointError):
        validate_waypoints([good, Waypoint(position=ENUPoint(math.nan, 0, 10))])
    with pytest.raises(MalformedWaypointError):
        validate_waypoints([good, Waypoint(position=(0, 0, 10))])
    with pytest.raises(WaypointValidationError):
        validate_waypoints([good, object()])


def test_valid_waypoints_pass():
    validate_waypoints(_waypoints((0, 0, 10), (10, 0, 10)))


def test_assess_clean_mission(guard):
    report = guard.assess_mission(_waypoints((0, 0, 60), (100, 0, 60)), gsd=1.6)

    assert report.status == ValidationStatus.OK
    assert report.can_fly
    assert report.issues == []
    assert report.metrics["waypoint_count"] == 2
    assert report.metrics["max_distance_from_origin"] == pytest.approx(100)


def test_assess_altitude_and_speed_warnings(guard):
    waypoints = _waypoints((0, 0, 3), (10, 0, 60)) + _waypoints((20, 0, 60), speed=20)
    report = guard.assess_mission(waypoints)

    assert report.status == ValidationStatus.WARNING
    assert report.can_fly
    assert len(report.issues) == 2
    assert report.altitude_checks[0].warning == ClampWarning.TOO_LOW
    assert report.metrics["max_speed"] == 20


def test_assess_gsd_warning(guard):
    report = guard.assess_mission(_waypoints((0, 0, 60), (10, 0, 60)), gsd=9.0)

    assert report.status == ValidationStatus.WARNING
    assert "GSD" in report.issues[0]


def test_assess_geofence_breach(guard):
    report = guard.assess_mission(_waypoints((0, 0, 60), (400, 400, 60)))

    assert report.status == ValidationStatus.ERROR
    assert not report.can_fly
    assert "geofence" in report.issues[0]
