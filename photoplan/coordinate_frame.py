#!/usr/bin/env python3
"""
Local East-North-Up reference frame anchored at the takeoff point

Conversions use a flat-earth local tangent-plane approximation on a
spherical earth. Error stays well below a meter for offsets of a few
hundred meters and grows quadratically with distance; the frame is not
valid beyond a few kilometers from the origin.
"""

import math
import logging
from typing import List, Optional, Sequence, Tuple
from dataclasses import dataclass
from enum import Enum

from photoplan.errors import InvalidParameterError, OriginNotSetError


EARTH_RADIUS = 6371000  # meters


class OriginStatus(Enum):
    """Outcome of an origin change request"""
    SET = "set"
    UNCHANGED = "unchanged"
    REJECTED = "rejected"
    INVALIDATED = "invalidated"


@dataclass(frozen=True)
class Origin:
    """Takeoff reference point"""
    lat: float  # degrees
    lon: float  # degrees
    altitude: float  # meters MSL


@dataclass(frozen=True)
class ENUPoint:
    """Position in meters relative to the mission origin"""
    east: float
    north: float
    up: float = 0.0

    def to_scene(self) -> Tuple[float, float, float]:
        """Visualization convention: x = East, y = Up, z = North"""
        return (self.east, self.up, self.north)

    @classmethod
    def from_scene(cls, x: float, y: float, z: float) -> "ENUPoint":
        return cls(east=x, north=z, up=y)

    def horizontal_distance(self, other: "ENUPoint") -> float:
        return math.hypot(other.east - self.east, other.north - self.north)

    def distance(self, other: "ENUPoint") -> float:
        return math.sqrt((other.east - self.east) ** 2 +
                         (other.north - self.north) ** 2 +
                         (other.up - self.up) ** 2)


@dataclass(frozen=True)
class Geodetic:
    lat: float
    lon: float
    alt: float  # meters MSL


def _check_latlon(lat: float, lon: float):
    if not -90 <= lat <= 90:
        raise InvalidParameterError(f"Latitude out of range: {lat}")
    if not -180 <= lon <= 180:
        raise InvalidParameterError(f"Longitude out of range: {lon}")


def _wrap_longitude(lon: float) -> float:
    """Normalize degrees into [-180, 180) across the antimeridian"""
    return (lon + 180) % 360 - 180


class CoordinateFrame:
    """Mission ENU frame; the origin is set once and only replaced explicitly"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._origin: Optional[Origin] = None
        self.revision = 0  # bumped on every re-origin

    @property
    def origin(self) -> Origin:
        if self._origin is None:
            raise OriginNotSetError("Takeoff origin has not been set")
        return self._origin

    @property
    def has_origin(self) -> bool:
        return self._origin is not None

    def set_origin(self, lat: float, lon: float, alt_msl: float = 0.0) -> OriginStatus:
        """Set the mission origin once; a different origin needs reset_origin()"""
        _check_latlon(lat, lon)
        requested = Origin(lat=lat, lon=lon, altitude=alt_msl)

        if self._origin is None:
            self._origin = requested
            self.revision += 1
            self.logger.info(f"Mission origin set: {lat:.7f}, {lon:.7f}, {alt_msl:.1f}m MSL")
            return OriginStatus.SET

        if requested == self._origin:
            return OriginStatus.UNCHANGED

        self.logger.warning(
            f"Origin already set to {self._origin}; refusing to overwrite with {requested}. "
            f"Use reset_origin() and regenerate waypoints."
        )
        return OriginStatus.REJECTED

    def reset_origin(self, lat: float, lon: float, alt_msl: float = 0.0) -> OriginStatus:
        """Replace the origin; every previously generated waypoint becomes invalid"""
        _check_latlon(lat, lon)
        self._origin = Origin(lat=lat, lon=lon, altitude=alt_msl)
        self.revision += 1
        self.logger.warning(
            f"Mission origin reset to {lat:.7f}, {lon:.7f} (revision {self.revision}); "
            f"existing waypoints must be regenerated"
        )
        return OriginStatus.INVALIDATED

    def to_enu(self, lat: float, lon: float, alt: float) -> ENUPoint:
        """Convert geodetic coordinates (alt in meters MSL) to ENU"""
        origin = self.origin
        _check_latlon(lat, lon)

        north = math.radians(lat - origin.lat) * EARTH_RADIUS
        d_lon = _wrap_longitude(lon - origin.lon)
        east = math.radians(d_lon) * EARTH_RADIUS * math.cos(math.radians(origin.lat))

        return ENUPoint(east=east, north=north, up=alt - origin.altitude)

    def to_geodetic(self, point: ENUPoint) -> Geodetic:
        """Convert an ENU point back to lat/lon/alt MSL"""
        origin = self.origin

        lat_offset = point.north / EARTH_RADIUS * 180 / math.pi
        lon_offset = point.east / (EARTH_RADIUS * math.cos(math.radians(origin.lat))) * 180 / math.pi

        return Geodetic(
            lat=origin.lat + lat_offset,
            lon=_wrap_longitude(origin.lon + lon_offset),
            alt=origin.altitude + point.up
        )

    def polygon_to_enu(self, vertices: Sequence[Tuple[float, float]]) -> List[ENUPoint]:
        """Normalize a drawn (lat, lon) polygon to ground-level ENU points"""
        origin = self.origin
        return [self.to_enu(lat, lon, origin.altitude) for lat, lon in vertices]
