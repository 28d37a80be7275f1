"""
Field wall reconstruction from a single lidar sweep.

Finds the four boundary walls of the rectangular playing field around
the robot with a Hough transform, a rectangle matcher, and a vote
weighted refinement.

Usage:
    from field_walls import FieldWallFinder

    result = FieldWallFinder().find_in_scan(lidar.get_scan())
"""

from .params import DetectorParameters
from .perception import (
    DetectionFailure,
    DetectionResult,
    FieldWalls,
    HoughLine,
    Point,
    PolarLine,
    PolarPoint,
    WallLine,
    WallSource,
)
from .perception.wall_finder import FieldWallFinder

__version__ = "0.1.0"

__all__ = [
    "DetectorParameters",
    "DetectionFailure",
    "DetectionResult",
    "FieldWalls",
    "FieldWallFinder",
    "HoughLine",
    "Point",
    "PolarLine",
    "PolarPoint",
    "WallLine",
    "WallSource",
]
