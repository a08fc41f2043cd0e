#!/usr/bin/env python3
"""
Validation Guard for Generated Missions
Altitude/GSD bounds checking and waypoint structural validation
"""

import math
import logging
from typing import Dict, List, Optional, Sequence
from dataclasses import dataclass, field
from enum import Enum

from photoplan.errors import (
    InsufficientWaypointsError,
    InvalidParameterError,
    MalformedWaypointError,
)


class ClampWarning(Enum):
    """Where a value fell relative to its safe range"""
    OK = "ok"
    TOO_LOW = "too_low"
    TOO_HIGH = "too_high"


class ValidationStatus(Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationLimits:
    """Configurable safety limits"""
    # Altitude
    altitude_min: float = 5  # meters
    altitude_max: float = 500

    # Ground sampling distance
    gsd_min: float = 0.1  # cm/pixel
    gsd_max: float = 5.0

    # Flight
    max_speed: float = 15  # m/s
    geofence_radius: float = 500  # meters from origin

    def __post_init__(self):
        if self.altitude_min >= self.altitude_max:
            raise InvalidParameterError(
                f"altitude_min ({self.altitude_min}) must be below altitude_max ({self.altitude_max})")
        if self.gsd_min >= self.gsd_max:
            raise InvalidParameterError(
                f"gsd_min ({self.gsd_min}) must be below gsd_max ({self.gsd_max})")


@dataclass(frozen=True)
class BoundsCheck:
    """Requested value, the value to use, and why they differ"""
    requested: float
    value: float
    warning: ClampWarning

    @property
    def clamped(self) -> bool:
        return self.value != self.requested


@dataclass
class ValidationReport:
    """Mission validation report"""
    status: ValidationStatus
    issues: List[str]
    altitude_checks: List[BoundsCheck] = field(default_factory=list)
    metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def can_fly(self) -> bool:
        return self.status != ValidationStatus.ERROR


class ValidationGuard:
    """Checks generated missions against safety limits before they are handed back"""

    def __init__(self, limits: ValidationLimits = None):
        self.limits = limits or ValidationLimits()
        self.logger = logging.getLogger(__name__)

    def check_altitude(self, altitude: float) -> BoundsCheck:
        """Clamp altitude to the safe range, always reporting a clamp"""
        if altitude < self.limits.altitude_min:
            check = BoundsCheck(altitude, self.limits.altitude_min, ClampWarning.TOO_LOW)
        elif altitude > self.limits.altitude_max:
            check = BoundsCheck(altitude, self.limits.altitude_max, ClampWarning.TOO_HIGH)
        else:
            return BoundsCheck(altitude, altitude, ClampWarning.OK)

        self.logger.warning(f"Altitude {altitude:.1f}m clamped to {check.value:.1f}m "
                            f"({check.warning.value})")
        return check

    def check_gsd(self, gsd: float) -> BoundsCheck:
        """Classify a GSD against the configured range; GSD is derived, so it is never clamped"""
        if gsd < self.limits.gsd_min:
            warning = ClampWarning.TOO_LOW
        elif gsd > self.limits.gsd_max:
            warning = ClampWarning.TOO_HIGH
        else:
            warning = ClampWarning.OK

        if warning != ClampWarning.OK:
            self.logger.warning(f"GSD {gsd:.2f}cm/px outside "
                                f"[{self.limits.gsd_min}, {self.limits.gsd_max}]")
        return BoundsCheck(gsd, gsd, warning)

    def validate_waypoints(self, waypoints: Optional[Sequence]) -> None:
        """Raise unless there are at least 2 waypoints with finite positions"""
        if waypoints is None or len(waypoints) < 2:
            count = 0 if waypoints is None else len(waypoints)
            raise InsufficientWaypointsError(f"Mission needs at least 2 waypoints, got {count}")

        for index, waypoint in enumerate(waypoints):
            position = getattr(waypoint, "position", None)
            if position is None:
                raise MalformedWaypointError(f"Waypoint {index} has no position")

            try:
                coords = (float(position.east), float(position.north), float(position.up))
            except (AttributeError, TypeError, ValueError):
                raise MalformedWaypointError(f"Waypoint {index} position is unresolvable: {position!r}")

            if not all(math.isfinite(c) for c in coords):
                raise MalformedWaypointError(f"Waypoint {index} position is not finite: {coords}")

    def assess_mission(self, waypoints: Sequence, gsd: Optional[float] = None) -> ValidationReport:
        """Structural validation plus altitude, speed, geofence and (optionally) GSD checks"""
        self.validate_waypoints(waypoints)

        issues = []
        statuses = [ValidationStatus.OK]
        altitude_checks = []

        if gsd is not None:
            gsd_check = self.check_gsd(gsd)
            if gsd_check.warning != ClampWarning.OK:
                statuses.append(ValidationStatus.WARNING)
                issues.append(f"GSD {gsd:.2f}cm/px is {gsd_check.warning.value.replace('_', ' ')}")

        max_distance = 0.0
        max_speed = 0.0
        for index, waypoint in enumerate(waypoints):
            position = waypoint.position

            check = self.check_altitude(position.up)
            altitude_checks.append(check)
            if check.warning != ClampWarning.OK:
                statuses.append(ValidationStatus.WARNING)
                issues.append(f"Waypoint {index}: altitude {position.up:.1f}m is "
                              f"{check.warning.value.replace('_', ' ')}")

            distance = math.hypot(position.east, position.north)
            max_distance = max(max_distance, distance)
            if distance > self.limits.geofence_radius:
                statuses.append(ValidationStatus.ERROR)
                issues.append(f"Waypoint {index}: {distance:.0f}m from origin exceeds geofence")

            speed = getattr(waypoint, "speed", 0.0) or 0.0
            max_speed = max(max_speed, speed)
            if speed > self.limits.max_speed:
                statuses.append(ValidationStatus.WARNING)
                issues.append(f"Waypoint {index}: speed {speed:.1f}m/s exceeds {self.limits.max_speed}m/s")

        status = self._get_worst_status(statuses)
        if status != ValidationStatus.OK:
            self.logger.warning(f"Mission validation: {status.value} ({len(issues)} issues)")

        return ValidationReport(
            status=status,
            issues=issues,
            altitude_checks=altitude_checks,
            metrics={
                "waypoint_count": len(waypoints),
                "max_distance_from_origin": max_distance,
                "max_speed": max_speed,
            }
        )

    def _get_worst_status(self, statuses: List[ValidationStatus]) -> ValidationStatus:
        """Return the worst status from a list"""
        priority = {
            ValidationStatus.OK: 0,
            ValidationStatus.WARNING: 1,
            ValidationStatus.ERROR: 2
        }

        return max(statuses, key=lambda s: priority.get(s, 0))


def validate_waypoints(waypoints: Optional[Sequence]) -> None:
    """Structural validation with default limits"""
    ValidationGuard().validate_waypoints(waypoints)
