"""
Scan ingestion - Convert raw scanner readings into PolarPoints.

The robot's lidar layer hands out scans as dict[angle_deg] -> distance_mm
with angles clockwise from forward (0 = forward, 90 = right). Older
packet decoding uses fixed-point millimeters and hundredths of a degree.
Both conventions stop here: everything past this module is meters and
counter-clockwise radians.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable

from .geometry import PolarPoint

logger = logging.getLogger(__name__)

MM_PER_METER = 1000.0
CENTIDEGREES_PER_DEGREE = 100.0


def _bearing_to_angle(bearing_deg: float) -> float:
    """Clockwise degrees from forward -> counter-clockwise radians in [-π, π]."""
    angle = -math.radians(bearing_deg)
    return math.atan2(math.sin(angle), math.cos(angle))


def points_from_scan(scan: dict[int, float]) -> list[PolarPoint]:
    """
    Convert a lidar scan dict into PolarPoints.

    Args:
        scan: Dict mapping angle (0-359, clockwise from forward) to distance (mm).

    Returns:
        Points in meters/radians, ordered by scan angle.
    """
    return [
        PolarPoint(
            distance=distance / MM_PER_METER,
            angle=_bearing_to_angle(angle_deg),
        )
        for angle_deg, distance in sorted(scan.items())
    ]


def point_from_fixed_point(distance_mm: int, angle_centidegrees: int) -> PolarPoint:
    """Decode one packet sample (mm, 0.01° clockwise) into a PolarPoint."""
    return PolarPoint(
        distance=distance_mm / MM_PER_METER,
        angle=_bearing_to_angle(angle_centidegrees / CENTIDEGREES_PER_DEGREE),
    )


def points_from_fixed_point(samples: Iterable[tuple[int, int]]) -> list[PolarPoint]:
    """Decode (distance_mm, angle_centidegrees) samples."""
    return [point_from_fixed_point(distance, angle) for distance, angle in samples]


def filter_points(points: Iterable[PolarPoint], min_range: float, max_range: float) -> list[PolarPoint]:
    """Keep finite points between min_range and max_range (inclusive)."""
    kept = []
    dropped_non_finite = 0
    for point in points:
        if not point.is_finite:
            dropped_non_finite += 1
            continue
        if min_range <= point.distance <= max_range:
            kept.append(point)

    if dropped_non_finite:
        logger.debug(f"Dropped {dropped_non_finite} non-finite samples")
    return kept
