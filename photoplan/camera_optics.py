#!/usr/bin/env python3
"""
Camera Optics Model for Photogrammetry Planning
Ground sampling distance, footprint, field of view and depth of field
from sensor/lens parameters and altitude
"""

import math
from typing import Optional, Tuple, Union
from dataclasses import dataclass, field

from photoplan.errors import InvalidParameterError, require_positive, require_percentage


# Circle of confusion per sensor class (mm)
DEFAULT_COC_FULL_FRAME = 0.030
SENSOR_CLASS_COC = {
    "Full Frame": 0.030,
    "APS-C": 0.020,
    "1-inch": 0.011,
    "1/2-inch": 0.006,
}
FULL_FRAME_WIDTH = 36.0  # mm


def circle_of_confusion_for_sensor(sensor_width: float, sensor_type: Optional[str] = None) -> float:
    """Circle of confusion (mm) for a sensor class, scaled from full frame otherwise"""
    if sensor_type in SENSOR_CLASS_COC:
        return SENSOR_CLASS_COC[sensor_type]

    scale = sensor_width / FULL_FRAME_WIDTH
    return min(DEFAULT_COC_FULL_FRAME, DEFAULT_COC_FULL_FRAME * scale)


@dataclass(frozen=True)
class CameraSpec:
    """Camera sensor and lens specification"""
    sensor_width: float  # mm
    focal_length: Union[float, Tuple[float, float]]  # mm, (min, max) for zoom lenses
    image_width: int  # pixels
    image_height: int  # pixels
    sensor_height: Optional[float] = None  # mm, derived from aspect_ratio when omitted
    aspect_ratio: Optional[float] = None  # width / height
    aperture: float = 2.8  # f-number
    circle_of_confusion: Optional[float] = None  # mm, derived from sensor class when omitted
    sensor_type: Optional[str] = None
    name: str = ""

    @property
    def effective_focal_length(self) -> float:
        """Prime focal length, or the midpoint of a zoom range"""
        if isinstance(self.focal_length, (tuple, list)):
            if len(self.focal_length) != 2:
                raise InvalidParameterError(
                    f"Zoom focal length must be (min, max), got {self.focal_length!r}")
            low, high = self.focal_length
            low = require_positive("focal_length min", low)
            high = require_positive("focal_length max", high)
            if low > high:
                raise InvalidParameterError(f"Zoom range is inverted: {self.focal_length!r}")
            return (low + high) / 2
        return require_positive("focal_length", self.focal_length)

    @property
    def effective_sensor_height(self) -> float:
        if self.sensor_height is not None:
            return require_positive("sensor_height", self.sensor_height)
        width = require_positive("sensor_width", self.sensor_width)
        if self.aspect_ratio is not None:
            return width / require_positive("aspect_ratio", self.aspect_ratio)
        # Fall back to the pixel aspect of the image
        return width * require_positive("image_height", self.image_height) / \
            require_positive("image_width", self.image_width)

    @property
    def coc(self) -> float:
        if self.circle_of_confusion is not None:
            return require_positive("circle_of_confusion", self.circle_of_confusion)
        return circle_of_confusion_for_sensor(self.sensor_width, self.sensor_type)


@dataclass(frozen=True)
class Footprint:
    """Ground coverage of a single image"""
    width: float  # meters
    height: float  # meters

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class DepthOfField:
    """Acceptably sharp range around the focus distance (meters)"""
    near_limit: float
    far_limit: float  # math.inf beyond the hyperfocal distance
    hyperfocal_distance: float

    @property
    def total(self) -> float:
        if math.isinf(self.far_limit):
            return math.inf
        return self.far_limit - self.near_limit


@dataclass(frozen=True)
class OpticsResult:
    """Derived optics for one camera at one altitude"""
    gsd: float  # cm/pixel
    footprint: Footprint
    horizontal_fov: float  # degrees
    vertical_fov: float  # degrees
    dof: DepthOfField
    altitude: float = field(default=0.0)  # meters the values were computed for
    focus_distance: float = field(default=0.0)


def compute_gsd(sensor_width: float, altitude: float, focal_length: float,
                image_width: float) -> float:
    """Ground sampling distance in cm/pixel"""
    sensor_width = require_positive("sensor_width", sensor_width)
    altitude = require_positive("altitude", altitude)
    focal_length = require_positive("focal_length", focal_length)
    image_width = require_positive("image_width", image_width)

    return sensor_width * altitude * 100 / (focal_length * image_width)


def compute_footprint(camera: CameraSpec, altitude: float) -> Footprint:
    """Calculate ground coverage of one image at given altitude"""
    altitude = require_positive("altitude", altitude)
    focal_length = camera.effective_focal_length
    sensor_width = require_positive("sensor_width", camera.sensor_width)

    return Footprint(
        width=sensor_width * altitude / focal_length,
        height=camera.effective_sensor_height * altitude / focal_length
    )


def compute_fov(sensor_dim: float, focal_length: float) -> float:
    """Field of view in degrees along one sensor axis"""
    sensor_dim = require_positive("sensor_dim", sensor_dim)
    focal_length = require_positive("focal_length", focal_length)

    return 2 * math.atan(sensor_dim / (2 * focal_length)) * (180 / math.pi)


def compute_dof(focal_length: float, aperture: float, focus_distance: float,
                circle_of_confusion: float) -> DepthOfField:
    """
    Depth of field limits for a focus distance.

    focal_length and circle_of_confusion are in mm, focus_distance in meters.
    The far limit is math.inf once the focus distance reaches the
    hyperfocal distance; callers format that for display.
    """
    f = require_positive("focal_length", focal_length)
    n = require_positive("aperture", aperture)
    c = require_positive("circle_of_confusion", circle_of_confusion)
    s = require_positive("focus_distance", focus_distance) * 1000  # mm

    hyperfocal = f * f / (n * c) + f

    near = s * (hyperfocal - f) / (hyperfocal + s - 2 * f)
    if s >= hyperfocal:
        far = math.inf
    else:
        far = s * (hyperfocal - f) / (hyperfocal - s) / 1000

    return DepthOfField(
        near_limit=near / 1000,
        far_limit=far,
        hyperfocal_distance=hyperfocal / 1000
    )


def compute_altitude_for_target_gsd(target_gsd: float, camera: CameraSpec) -> float:
    """Altitude (m) that yields target_gsd (cm/pixel); not clamped to safe limits"""
    target_gsd = require_positive("target_gsd", target_gsd)
    sensor_width = require_positive("sensor_width", camera.sensor_width)
    image_width = require_positive("image_width", camera.image_width)

    return target_gsd * camera.effective_focal_length * image_width / (sensor_width * 100)


def compute_facade_camera_angle(building_height: float, scan_distance: float) -> float:
    """Gimbal pitch (degrees, negative looks down) aiming at the middle of a facade"""
    building_height = require_positive("building_height", building_height)
    scan_distance = require_positive("scan_distance", scan_distance)

    return -math.degrees(math.atan2(building_height / 2, scan_distance))


def compute_image_spacing(footprint_dim: float, overlap_pct: float) -> float:
    """Distance between image centers for a footprint dimension and overlap percentage"""
    footprint_dim = require_positive("footprint_dim", footprint_dim)
    overlap = require_percentage("overlap_pct", overlap_pct)

    return footprint_dim * (1 - overlap / 100)


def compute_optics(camera: CameraSpec, altitude: float,
                   focus_distance: Optional[float] = None) -> OpticsResult:
    """Compute every optics value for a camera at an altitude (focus defaults to altitude)"""
    if focus_distance is None:
        focus_distance = altitude

    focal_length = camera.effective_focal_length
    sensor_height = camera.effective_sensor_height

    return OpticsResult(
        gsd=compute_gsd(camera.sensor_width, altitude, focal_length, camera.image_width),
        footprint=compute_footprint(camera, altitude),
        horizontal_fov=compute_fov(camera.sensor_width, focal_length),
        vertical_fov=compute_fov(sensor_height, focal_length),
        dof=compute_dof(focal_length, camera.aperture, focus_distance, camera.coc),
        altitude=altitude,
        focus_distance=focus_distance
    )
