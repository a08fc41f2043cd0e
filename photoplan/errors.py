#!/usr/bin/env python3
"""
Error types raised by the planning engine
"""


class PlannerError(Exception):
    """Base class for all planning errors"""


class InvalidParameterError(PlannerError, ValueError):
    """Non-positive or out-of-domain numeric input to an optics or frame formula"""


class InvalidPatternError(PlannerError, ValueError):
    """Pattern-specific structural violation (too few segments, degenerate polygon, ...)"""


class WaypointValidationError(PlannerError):
    """Generated waypoint sequence failed post-generation checks"""


class InsufficientWaypointsError(WaypointValidationError):
    pass


class MalformedWaypointError(WaypointValidationError):
    pass


class OriginNotSetError(PlannerError, RuntimeError):
    """Coordinate conversion attempted before the takeoff origin exists"""


def require_positive(name: str, value) -> float:
    """Return value as float, raising InvalidParameterError unless it is > 0"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"{name} must be a number, got {value!r}")

    if not number > 0:
        raise InvalidParameterError(f"{name} must be strictly positive, got {value!r}")

    return number


def require_percentage(name: str, value) -> float:
    """Overlaps are percentages in [0, 100)"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidPatternError(f"{name} must be a number, got {value!r}")

    if not 0 <= number < 100:
        raise InvalidPatternError(f"{name} must be in [0, 100), got {value!r}")
    return number
