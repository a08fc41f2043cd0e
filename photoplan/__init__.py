"""Photogrammetry flight-pattern and camera-optics engine"""

__version__ = "0.1.0"
