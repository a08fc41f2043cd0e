#!/usr/bin/env python3
"""
Flight Pattern Generator for Photogrammetry Missions
Generates ordered waypoint sequences for orbit, spiral, facade and survey patterns
"""

import math
import logging
from typing import Callable, ClassVar, FrozenSet, List, Optional, Sequence, Tuple, Union
from dataclasses import dataclass
from enum import Enum

import numpy as np
from shapely.geometry import LineString, Polygon
from shapely.geometry.polygon import orient
from shapely.validation import explain_validity

from photoplan.camera_optics import OpticsResult, compute_facade_camera_angle, compute_image_spacing
from photoplan.coordinate_frame import ENUPoint, Origin
from photoplan.errors import (
    InvalidParameterError,
    InvalidPatternError,
    OriginNotSetError,
    require_percentage,
    require_positive,
)


logger = logging.getLogger(__name__)

DEFAULT_SPEED = 5.0  # m/s
NADIR_PITCH = -90.0  # degrees


class PatternType(Enum):
    ORBIT = "orbit"
    SPIRAL = "spiral"
    FACADE = "facade"
    SURVEY = "survey"


class WaypointType(Enum):
    POSITION = "position"
    CAPTURE = "capture"
    RETURN = "return"


class CameraMode(Enum):
    CENTER = "center"
    FORWARD = "forward"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Waypoint:
    """A single mission waypoint in the local ENU frame"""
    position: ENUPoint
    type: WaypointType = WaypointType.CAPTURE
    heading: Optional[float] = None  # degrees, compass bearing
    gimbal_pitch: Optional[float] = None  # degrees, -90 = nadir
    speed: float = DEFAULT_SPEED  # m/s


@dataclass(frozen=True)
class OrbitParams:
    center: ENUPoint  # only east/north are used
    radius: float  # meters
    altitude: float  # meters above origin
    segments: int = 16
    orbit_count: int = 1
    vertical_shift_per_orbit: float = 0.0  # meters added per ring
    camera_mode: CameraMode = CameraMode.CENTER
    camera_angle: float = -45.0  # gimbal pitch for CameraMode.CUSTOM, -90 = nadir
    custom_heading: Optional[float] = None  # fixed yaw for CameraMode.CUSTOM
    gimbal_pitch: float = -45.0  # center and forward modes
    speed: float = DEFAULT_SPEED

    pattern_type: ClassVar[PatternType] = PatternType.ORBIT


@dataclass(frozen=True)
class SpiralParams:
    center: ENUPoint
    start_radius: float
    end_radius: float
    start_altitude: float
    end_altitude: float
    revolutions: float = 3
    segments: int = 60
    gimbal_pitch: float = -45.0
    speed: float = DEFAULT_SPEED

    pattern_type: ClassVar[PatternType] = PatternType.SPIRAL


@dataclass(frozen=True)
class FacadeParams:
    corners: Tuple[ENUPoint, ...]  # four footprint corners, face i runs corner i -> i+1
    height: float  # meters
    standoff_distance: float  # meters from the face
    vertical_spacing: Optional[float] = None  # derived from optics when omitted
    selected_faces: FrozenSet[int] = frozenset({0, 1, 2, 3})
    vertical_overlap_pct: float = 20.0
    aim_at_mid_height: bool = False  # tilt the gimbal toward mid-facade instead of level
    speed: float = DEFAULT_SPEED

    pattern_type: ClassVar[PatternType] = PatternType.FACADE


@dataclass(frozen=True)
class SurveyParams:
    polygon: Tuple[ENUPoint, ...]
    altitude: float
    front_overlap_pct: float = 75.0
    side_overlap_pct: float = 65.0
    flight_direction_deg: float = 0.0  # bearing of the flight lines
    wind_direction_deg: float = 0.0
    wind_speed: float = 0.0  # m/s
    terrain_following: bool = False
    safety_height: Optional[float] = None  # clearance over ground, defaults to altitude
    speed: float = DEFAULT_SPEED

    pattern_type: ClassVar[PatternType] = PatternType.SURVEY


PatternParams = Union[OrbitParams, SpiralParams, FacadeParams, SurveyParams]

# Ground elevation (meters MSL) at an (east, north) position
GroundHeightFn = Callable[[float, float], float]


@dataclass(frozen=True)
class WindPolicy:
    """When wind exceeds speed_threshold, survey lines run at crosswind_offset_deg to the wind"""
    speed_threshold: float = 3.0  # m/s
    crosswind_offset_deg: float = 90.0


def _require_origin(origin: Optional[Origin]) -> Origin:
    if origin is None:
        raise OriginNotSetError("Patterns can only be generated once the takeoff origin is set")
    return origin


def _require_positive(name: str, value) -> float:
    try:
        return require_positive(name, value)
    except InvalidParameterError as e:
        raise InvalidPatternError(str(e)) from e


def _bearing(d_east: float, d_north: float) -> float:
    """Compass bearing (0 = north, clockwise) of a horizontal vector"""
    return (math.degrees(math.atan2(d_east, d_north)) + 360) % 360


def _xy(vertex) -> Tuple[float, float]:
    if isinstance(vertex, ENUPoint):
        return (vertex.east, vertex.north)
    return (float(vertex[0]), float(vertex[1]))


def survey_polygon(vertices: Sequence) -> Polygon:
    """Build a validated, counter-clockwise shapely polygon from ENU vertices"""
    if vertices is None or len(vertices) < 3:
        raise InvalidPatternError("Survey polygon needs at least 3 vertices")

    polygon = Polygon([_xy(v) for v in vertices])
    if not polygon.is_valid:
        raise InvalidPatternError(f"Survey polygon is malformed: {explain_validity(polygon)}")
    if polygon.area <= 0:
        raise InvalidPatternError("Survey polygon has zero area")

    return orient(polygon, sign=1.0)


def generate_orbit(optics: Optional[OpticsResult], params: OrbitParams,
                   origin: Optional[Origin]) -> List[Waypoint]:
    """Generate closed circular rings around a center point"""
    _require_origin(origin)

    if params.segments < 3:
        raise InvalidPatternError(f"Orbit needs at least 3 segments, got {params.segments}")
    if params.orbit_count < 1:
        raise InvalidPatternError(f"Orbit count must be at least 1, got {params.orbit_count}")
    radius = _require_positive("radius", params.radius)
    altitude = _require_positive("altitude", params.altitude)
    speed = _require_positive("speed", params.speed)

    center = params.center
    angles = 2 * np.pi * np.arange(params.segments) / params.segments
    if params.camera_mode == CameraMode.CUSTOM:
        pitch = params.camera_angle
    else:
        pitch = params.gimbal_pitch

    waypoints = []
    for orbit in range(params.orbit_count):
        ring_altitude = altitude + orbit * params.vertical_shift_per_orbit
        if ring_altitude <= 0:
            raise InvalidPatternError(f"Orbit ring {orbit} descends to {ring_altitude:.1f}m")

        ring = []
        for angle in angles:
            east = center.east + radius * math.cos(angle)
            north = center.north + radius * math.sin(angle)

            if params.camera_mode == CameraMode.CENTER:
                heading = _bearing(center.east - east, center.north - north)
            elif params.camera_mode == CameraMode.FORWARD:
                # Counter-clockwise travel
                heading = _bearing(-math.sin(angle), math.cos(angle))
            else:
                heading = None if params.custom_heading is None else params.custom_heading % 360

            ring.append(Waypoint(
                position=ENUPoint(east=east, north=north, up=ring_altitude),
                type=WaypointType.CAPTURE,
                heading=heading,
                gimbal_pitch=pitch,
                speed=speed
            ))

        # Close the loop
        ring.append(ring[0])
        waypoints.extend(ring)

    logger.info(f"Generated {len(waypoints)} orbit waypoints "
                f"({params.orbit_count} x {params.segments} segments, r={radius:.1f}m)")
    return waypoints


def generate_spiral(optics: Optional[OpticsResult], params: SpiralParams,
                    origin: Optional[Origin]) -> List[Waypoint]:
    """Generate a spiral with radius and altitude interpolated linearly from start to end"""
    _require_origin(origin)

    if params.segments < 1:
        raise InvalidPatternError(f"Spiral needs at least 1 segment, got {params.segments}")
    revolutions = _require_positive("revolutions", params.revolutions)
    start_altitude = _require_positive("start_altitude", params.start_altitude)
    end_altitude = _require_positive("end_altitude", params.end_altitude)
    speed = _require_positive("speed", params.speed)
    if params.start_radius < 0 or params.end_radius < 0:
        raise InvalidPatternError("Spiral radii cannot be negative")
    if params.start_radius == 0 and params.end_radius == 0:
        raise InvalidPatternError("Spiral needs a non-zero radius")

    if params.segments < revolutions * 8:
        logger.warning(f"Spiral with {params.segments} segments over {revolutions} revolutions "
                       f"will look faceted; use at least {math.ceil(revolutions * 8)}")

    t = np.linspace(0.0, 1.0, params.segments + 1)
    angles = t * revolutions * 2 * np.pi
    radii = params.start_radius + (params.end_radius - params.start_radius) * t
    altitudes = start_altitude + (end_altitude - start_altitude) * t

    center = params.center
    waypoints = []
    for angle, radius, altitude in zip(angles, radii, altitudes):
        east = center.east + radius * math.cos(angle)
        north = center.north + radius * math.sin(angle)

        waypoints.append(Waypoint(
            position=ENUPoint(east=float(east), north=float(north), up=float(altitude)),
            type=WaypointType.CAPTURE,
            # From the angle so a point at the center still gets a heading
            heading=_bearing(-math.cos(angle), -math.sin(angle)),
            gimbal_pitch=params.gimbal_pitch,
            speed=speed
        ))

    logger.info(f"Generated {len(waypoints)} spiral waypoints over {revolutions} revolutions")
    return waypoints


def facade_vertical_spacing(optics: Optional[OpticsResult], params: FacadeParams) -> float:
    """Explicit vertical spacing, or footprint height at the standoff reduced by overlap"""
    if params.vertical_spacing is not None:
        return _require_positive("vertical_spacing", params.vertical_spacing)
    if optics is None:
        raise InvalidPatternError("Facade scan needs vertical_spacing or optics at the standoff distance")
    return compute_image_spacing(optics.footprint.height, params.vertical_overlap_pct)


def generate_facade(optics: Optional[OpticsResult], params: FacadeParams,
                    origin: Optional[Origin]) -> List[Waypoint]:
    """
    Generate zig-zag vertical passes in front of selected building faces.

    Each pass flies the full face width at one height; passes alternate
    direction so the end of one pass is directly below the start of the
    next. The camera faces the wall with a level gimbal, or tilted
    toward mid-facade when aim_at_mid_height is set.
    """
    _require_origin(origin)

    corners = list(params.corners)
    if len(corners) != 4:
        raise InvalidPatternError(f"Facade needs 4 corners, got {len(corners)}")
    height = _require_positive("height", params.height)
    standoff = _require_positive("standoff_distance", params.standoff_distance)
    speed = _require_positive("speed", params.speed)
    spacing = facade_vertical_spacing(optics, params)

    faces = sorted(params.selected_faces)
    if not faces:
        raise InvalidPatternError("No facade faces selected")
    for face in faces:
        if face not in range(4):
            raise InvalidPatternError(f"Face index {face} out of range 0-3")

    passes = math.ceil(height / spacing)
    pitch = compute_facade_camera_angle(height, standoff) if params.aim_at_mid_height else 0.0
    base = min(c.up for c in corners)
    footprint = np.array([_xy(c) for c in corners])
    centroid = footprint.mean(axis=0)

    waypoints = []
    for face in faces:
        start = footprint[face]
        end = footprint[(face + 1) % 4]

        vector = end - start
        length = np.linalg.norm(vector)
        if length < 1e-9:
            raise InvalidPatternError(f"Face {face} has zero length")

        unit = vector / length
        normal = np.array([-unit[1], unit[0]])  # rotate 90 degrees CCW
        if np.dot(normal, (start + end) / 2 - centroid) < 0:
            normal = -normal  # point away from the building

        a = start + normal * standoff
        b = end + normal * standoff
        heading = _bearing(-normal[0], -normal[1])

        for p in range(passes):
            altitude = min(base + (p + 0.5) * spacing, base + height)
            first, second = (a, b) if p % 2 == 0 else (b, a)

            for xy in (first, second):
                waypoints.append(Waypoint(
                    position=ENUPoint(east=float(xy[0]), north=float(xy[1]), up=float(altitude)),
                    type=WaypointType.CAPTURE,
                    heading=heading,
                    gimbal_pitch=pitch,
                    speed=speed
                ))

    logger.info(f"Generated {len(waypoints)} facade waypoints "
                f"({len(faces)} faces x {passes} passes, spacing {spacing:.2f}m)")
    return waypoints


def survey_heading(params: SurveyParams, wind_policy: Optional[WindPolicy] = None) -> float:
    """Bearing of the survey flight lines after applying the crosswind rule"""
    policy = wind_policy or WindPolicy()

    if params.wind_speed > policy.speed_threshold:
        bearing = (params.wind_direction_deg + policy.crosswind_offset_deg) % 360
        logger.info(f"Wind {params.wind_speed:.1f}m/s from {params.wind_direction_deg:.0f} deg; "
                    f"flight lines forced to {bearing:.0f} deg")
        return bearing

    return params.flight_direction_deg % 360


def _line_pieces(geometry, direction: np.ndarray) -> List[Tuple[np.ndarray, np.ndarray]]:
    """Split a clipped flight line into (start, end) pieces ordered along direction"""
    pieces = []
    for part in getattr(geometry, "geoms", [geometry]):
        if part.is_empty or part.geom_type != "LineString" or part.length < 1e-9:
            continue
        coords = np.array(part.coords)
        start, end = coords[0], coords[-1]
        if np.dot(end - start, direction) < 0:
            start, end = end, start
        pieces.append((start, end))

    pieces.sort(key=lambda piece: float(np.dot(piece[0], direction)))
    return pieces


def generate_survey(optics: Optional[OpticsResult], params: SurveyParams,
                    origin: Optional[Origin], ground_height: Optional[GroundHeightFn] = None,
                    wind_policy: Optional[WindPolicy] = None) -> List[Waypoint]:
    """
    Generate a boustrophedon area survey over a polygon.

    Flight lines are spaced by the footprint height reduced by side
    overlap and clipped to the polygon; capture points along each line
    are spaced by the footprint width reduced by front overlap. Lines
    alternate direction. With terrain following, each waypoint sits
    safety_height above ground_height(east, north) (meters MSL).
    """
    origin = _require_origin(origin)

    altitude = _require_positive("altitude", params.altitude)
    speed = _require_positive("speed", params.speed)
    front = require_percentage("front_overlap_pct", params.front_overlap_pct)
    side = require_percentage("side_overlap_pct", params.side_overlap_pct)
    if optics is None:
        raise InvalidPatternError("Survey needs optics computed at the survey altitude")
    if optics.altitude and abs(optics.altitude - altitude) > 1e-6:
        logger.warning(f"Optics computed for {optics.altitude:.1f}m but survey flies at "
                       f"{altitude:.1f}m; spacing will not match the requested overlap")

    if params.terrain_following and ground_height is None:
        raise InvalidPatternError("Terrain following needs a ground height source")
    clearance = altitude if params.safety_height is None else params.safety_height

    image_spacing = compute_image_spacing(optics.footprint.width, front)
    track_spacing = compute_image_spacing(optics.footprint.height, side)

    area = survey_polygon(params.polygon)
    bearing = survey_heading(params, wind_policy)

    direction = np.array([math.sin(math.radians(bearing)), math.cos(math.radians(bearing))])
    across = np.array([direction[1], -direction[0]])

    coords = np.array(area.exterior.coords)
    along = coords @ direction
    offsets = coords @ across

    line_count = max(1, math.ceil((offsets.max() - offsets.min()) / track_spacing))
    first_offset = (offsets.min() + offsets.max()) / 2 - (line_count - 1) * track_spacing / 2
    reach = (along.min() - 1.0, along.max() + 1.0)

    lines = []
    for k in range(line_count):
        offset = first_offset + k * track_spacing
        line = LineString([direction * reach[0] + across * offset,
                           direction * reach[1] + across * offset])
        pieces = _line_pieces(area.intersection(line), direction)
        if pieces:
            lines.append(pieces)

    if not lines:
        raise InvalidPatternError("Survey polygon produced no flight lines")

    waypoints = []
    for index, pieces in enumerate(lines):
        reverse = index % 2 == 1
        heading = (bearing + 180) % 360 if reverse else bearing
        if reverse:
            pieces = [(end, start) for start, end in reversed(pieces)]

        for start, end in pieces:
            length = float(np.linalg.norm(end - start))
            steps = max(1, math.ceil(length / image_spacing))

            for t in np.linspace(0.0, 1.0, steps + 1):
                east, north = start + (end - start) * t
                if params.terrain_following:
                    up = ground_height(float(east), float(north)) - origin.altitude + clearance
                else:
                    up = altitude

                waypoints.append(Waypoint(
                    position=ENUPoint(east=float(east), north=float(north), up=float(up)),
                    type=WaypointType.CAPTURE,
                    heading=heading,
                    gimbal_pitch=NADIR_PITCH,
                    speed=speed
                ))

    logger.info(f"Generated {len(waypoints)} survey waypoints on {len(lines)} lines "
                f"(bearing {bearing:.0f} deg, track spacing {track_spacing:.1f}m)")
    return waypoints


def generate_pattern(optics: Optional[OpticsResult], params: PatternParams,
                     origin: Optional[Origin], ground_height: Optional[GroundHeightFn] = None,
                     wind_policy: Optional[WindPolicy] = None) -> List[Waypoint]:
    """Generate waypoints for any pattern parameter variant"""
    if isinstance(params, OrbitParams):
        return generate_orbit(optics, params, origin)
    elif isinstance(params, SpiralParams):
        return generate_spiral(optics, params, origin)
    elif isinstance(params, FacadeParams):
        return generate_facade(optics, params, origin)
    elif isinstance(params, SurveyParams):
        return generate_survey(optics, params, origin, ground_height, wind_policy)
    else:
        raise InvalidPatternError(f"Unknown pattern parameters: {type(params).__name__}")
