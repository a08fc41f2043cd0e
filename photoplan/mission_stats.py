#!/usr/bin/env python3
"""
Mission statistics: distance, flight time, coverage and image count
"""

import math
from typing import List, Optional, Sequence
from dataclasses import dataclass

import numpy as np

from photoplan.camera_optics import OpticsResult, compute_image_spacing
from photoplan.errors import require_positive
from photoplan.pattern_generator import SurveyParams, Waypoint, WaypointType, survey_polygon


@dataclass(frozen=True)
class MissionStats:
    """Derived mission statistics"""
    total_distance: float  # meters
    estimated_time: float  # seconds
    coverage_area: float  # square meters
    images_required: int
    batteries_required: Optional[int] = None


def total_distance(waypoints: Sequence[Waypoint]) -> float:
    """Sum of 3D distances between consecutive waypoints"""
    if len(waypoints) < 2:
        return 0.0

    points = np.array([(wp.position.east, wp.position.north, wp.position.up) for wp in waypoints])
    return float(np.linalg.norm(np.diff(points, axis=0), axis=1).sum())


def estimated_flight_time(waypoints: Sequence[Waypoint], speed: float,
                          hover_time_per_capture: float = 0.0) -> float:
    """Estimate total mission time in seconds"""
    speed = require_positive("speed", speed)

    total_time = total_distance(waypoints) / speed

    if hover_time_per_capture:
        captures = sum(1 for wp in waypoints if wp.type == WaypointType.CAPTURE)
        total_time += captures * hover_time_per_capture

    return total_time


def coverage_area(polygon: Sequence) -> float:
    """Area of the survey polygon in square meters"""
    return float(survey_polygon(polygon).area)


def effective_footprint(image_spacing: float, track_spacing: float) -> float:
    """New ground area contributed by each image once overlap is removed"""
    return require_positive("image_spacing", image_spacing) * \
        require_positive("track_spacing", track_spacing)


def images_required(polygon: Sequence, image_spacing: float, track_spacing: float) -> int:
    return math.ceil(coverage_area(polygon) / effective_footprint(image_spacing, track_spacing))


def batteries_required(estimated_time: float, battery_minutes: float) -> int:
    """Number of battery packs needed for the estimated flight time"""
    battery_minutes = require_positive("battery_minutes", battery_minutes)
    return max(1, math.ceil(estimated_time / 60 / battery_minutes))


def summarize_mission(waypoints: List[Waypoint], speed: float,
                      survey: Optional[SurveyParams] = None,
                      optics: Optional[OpticsResult] = None,
                      hover_time_per_capture: float = 0.0,
                      battery_minutes: Optional[float] = None) -> MissionStats:
    """
    Build MissionStats for a waypoint sequence.

    Coverage and image count come from the survey polygon and overlap
    spacing when both survey parameters and optics are given; other
    patterns report no area and count their capture waypoints.
    """
    distance = total_distance(waypoints)
    flight_time = estimated_flight_time(waypoints, speed, hover_time_per_capture)

    if survey is not None and optics is not None:
        image_spacing = compute_image_spacing(optics.footprint.width, survey.front_overlap_pct)
        track_spacing = compute_image_spacing(optics.footprint.height, survey.side_overlap_pct)
        area = coverage_area(survey.polygon)
        images = images_required(survey.polygon, image_spacing, track_spacing)
    else:
        area = 0.0
        images = sum(1 for wp in waypoints if wp.type == WaypointType.CAPTURE)

    batteries = None
    if battery_minutes:
        batteries = batteries_required(flight_time, battery_minutes)

    return MissionStats(
        total_distance=distance,
        estimated_time=flight_time,
        coverage_area=area,
        images_required=images,
        batteries_required=batteries
    )
