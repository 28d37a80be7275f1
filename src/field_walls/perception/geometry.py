"""
Geometry kernel - Points and lines in the robot frame.

Conventions (used everywhere in this package):
- Units are meters and radians.
- Robot frame: +x forward, +y left, angles counter-clockwise from forward.
- A line is stored by its closest point to the robot: the set of points
  with x·cos(angle) + y·sin(angle) = distance. The canonical form keeps
  angle in [0, π) and lets distance carry the sign, so (ρ, θ) and
  (-ρ, θ + π) are the same line.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..config import EXACT_PARALLEL_TOLERANCE

HALF_TURN = math.pi
QUARTER_TURN = math.pi / 2


@dataclass(frozen=True)
class Point:
    """Cartesian point in the robot frame."""

    x: float  # m, forward
    y: float  # m, left

    def to_polar(self) -> PolarPoint:
        return PolarPoint(
            distance=math.hypot(self.x, self.y),
            angle=math.atan2(self.y, self.x),
        )

    def distance_to(self, other: Point) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class PolarPoint:
    """One range sample from the scanner."""

    distance: float  # m, >= 0
    angle: float  # rad, counter-clockwise from forward

    def to_cartesian(self) -> Point:
        return Point(
            x=self.distance * math.cos(self.angle),
            y=self.distance * math.sin(self.angle),
        )

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.distance) and math.isfinite(self.angle)


@dataclass(frozen=True)
class PolarLine:
    """Line given by its closest point to the origin (the robot)."""

    distance: float  # m, signed
    angle: float  # rad, in [0, π) once normalized

    def normalized(self) -> PolarLine:
        """Return the same line with angle in [0, π)."""
        angle = math.fmod(self.angle, 2 * HALF_TURN)
        if angle < 0:
            angle += 2 * HALF_TURN
        distance = self.distance
        if angle >= HALF_TURN:
            angle -= HALF_TURN
            distance = -distance
        # fmod can leave angle a hair below 2π, which then lands on π
        if angle >= HALF_TURN:
            angle = 0.0
            distance = -distance
        return PolarLine(distance=distance, angle=angle)

    def aligned_to(self, reference: PolarLine) -> PolarLine:
        """
        Return the twin of this line whose angle is closest to reference.

        The result may leave [0, π); it is meant for averaging lines
        around a wall that sits near the angle wrap.
        """
        distance = self.distance
        angle = self.angle
        while angle - reference.angle > QUARTER_TURN:
            angle -= HALF_TURN
            distance = -distance
        while reference.angle - angle > QUARTER_TURN:
            angle += HALF_TURN
            distance = -distance
        return PolarLine(distance=distance, angle=angle)

    def closest_point(self) -> Point:
        return Point(
            x=self.distance * math.cos(self.angle),
            y=self.distance * math.sin(self.angle),
        )

    def offset(self, delta: float) -> PolarLine:
        """Parallel line moved by delta along this line's normal."""
        return PolarLine(distance=self.distance + delta, angle=self.angle)

    def signed_distance_to(self, point: Point) -> float:
        """Offset of point from the line, measured along the line's normal."""
        return (
            point.x * math.cos(self.angle)
            + point.y * math.sin(self.angle)
            - self.distance
        )

    def contains(self, point: Point, tolerance: float = 1e-6) -> bool:
        return abs(self.signed_distance_to(point)) <= tolerance


def smallest_angle_between(a: PolarLine, b: PolarLine) -> float:
    """Acute angle between two undirected lines, in [0, π/2]."""
    alpha = math.fmod(abs(a.angle - b.angle), HALF_TURN)
    if alpha >= QUARTER_TURN:
        return HALF_TURN - alpha
    return alpha


def is_parallel(a: PolarLine, b: PolarLine, tolerance: float) -> bool:
    return smallest_angle_between(a, b) <= tolerance


def is_perpendicular(a: PolarLine, b: PolarLine, tolerance: float) -> bool:
    return abs(smallest_angle_between(a, b) - QUARTER_TURN) <= tolerance


def distance_center_with(a: PolarLine, b: PolarLine) -> float:
    """
    Distance between the closest-to-origin points of two lines.

    Only meaningful for roughly parallel lines, where it approximates
    the gap between them.
    """
    return a.closest_point().distance_to(b.closest_point())


def intersect(a: PolarLine, b: PolarLine) -> Point | None:
    """
    Intersection of two lines, or None when they are parallel.

    Solves
        x·cos(θa) + y·sin(θa) = ρa
        x·cos(θb) + y·sin(θb) = ρb
    with Cramer's rule on normalized lines. The determinant is
    sin(θb - θa), which the parallel check keeps away from zero.
    """
    if is_parallel(a, b, EXACT_PARALLEL_TOLERANCE):
        return None

    a = a.normalized()
    b = b.normalized()
    cos_a, sin_a = math.cos(a.angle), math.sin(a.angle)
    cos_b, sin_b = math.cos(b.angle), math.sin(b.angle)

    det = cos_a * sin_b - sin_a * cos_b
    if det == 0.0:
        return None

    x = (a.distance * sin_b - b.distance * sin_a) / det
    y = (cos_a * b.distance - cos_b * a.distance) / det
    return Point(x=x, y=y)
