"""
Perception Layer - Field geometry from lidar points.

- geometry: polar points/lines and the line algebra
- scan: conversion from raw lidar readings
- field_walls: FieldWalls and detection results
- wall_finder: FieldWallFinder, the per-scan pipeline (import it from
  field_walls or field_walls.perception.wall_finder)
"""

from .geometry import (
    Point,
    PolarPoint,
    PolarLine,
    smallest_angle_between,
    is_parallel,
    is_perpendicular,
    distance_center_with,
    intersect,
)
from .scan import (
    filter_points,
    point_from_fixed_point,
    points_from_fixed_point,
    points_from_scan,
)
from .field_walls import (
    DetectionFailure,
    DetectionResult,
    FieldWalls,
    HoughLine,
    MatchResult,
    WallLine,
    WallSource,
)

__all__ = [
    "Point",
    "PolarPoint",
    "PolarLine",
    "smallest_angle_between",
    "is_parallel",
    "is_perpendicular",
    "distance_center_with",
    "intersect",
    "filter_points",
    "point_from_fixed_point",
    "points_from_fixed_point",
    "points_from_scan",
    "DetectionFailure",
    "DetectionResult",
    "FieldWalls",
    "HoughLine",
    "MatchResult",
    "WallLine",
    "WallSource",
]
