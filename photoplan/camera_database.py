#!/usr/bin/env python3
"""
Camera presets for common survey drones
"""

from typing import Dict, List

from photoplan.camera_optics import CameraSpec
from photoplan.errors import InvalidParameterError


CAMERA_PRESETS: Dict[str, CameraSpec] = {
    "mavic2pro": CameraSpec(
        name="DJI Mavic 2 Pro (Hasselblad L1D-20c)",
        sensor_width=13.2,
        sensor_height=8.8,
        focal_length=10.26,
        image_width=5472,
        image_height=3648,
        aperture=2.8,
        sensor_type="1-inch"
    ),
    "mavic2zoom": CameraSpec(
        name="DJI Mavic 2 Zoom",
        sensor_width=6.17,
        sensor_height=4.55,
        focal_length=(4.5, 9.0),  # 2x optical zoom
        image_width=4000,
        image_height=3000,
        aperture=2.8,
        sensor_type="1/2-inch"
    ),
    "phantom4pro": CameraSpec(
        name="DJI Phantom 4 Pro",
        sensor_width=13.2,
        sensor_height=8.8,
        focal_length=8.8,
        image_width=5472,
        image_height=3648,
        aperture=2.8,
        sensor_type="1-inch"
    ),
    "phantom4rtk": CameraSpec(
        name="DJI Phantom 4 RTK",
        sensor_width=13.2,
        sensor_height=8.8,
        focal_length=8.8,
        image_width=5472,
        image_height=3648,
        aperture=2.8,
        sensor_type="1-inch"
    ),
    "mavic3e": CameraSpec(
        name="DJI Mavic 3 Enterprise",
        sensor_width=17.3,
        sensor_height=13.0,
        focal_length=12.29,
        image_width=5280,
        image_height=3956,
        aperture=2.8,
        sensor_type="4/3"
    ),
    "sony_a7r4_35mm": CameraSpec(
        name="Sony A7R IV, 35mm",
        sensor_width=35.7,
        sensor_height=23.8,
        focal_length=35.0,
        image_width=9504,
        image_height=6336,
        aperture=5.6,
        sensor_type="Full Frame"
    ),
}


def get_camera(preset: str) -> CameraSpec:
    """Look up a camera preset by key"""
    try:
        return CAMERA_PRESETS[preset]
    except KeyError:
        raise InvalidParameterError(
            f"Unknown camera preset: {preset!r} (available: {', '.join(list_cameras())})")


def list_cameras() -> List[str]:
    return sorted(CAMERA_PRESETS)
