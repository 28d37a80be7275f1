"""Synthetic scans of a rectangular field for the tests."""

import math
import os
import sys

import numpy as np

THIS_DIR = os.path.dirname(__file__)
SRC_DIR = os.path.join(os.path.dirname(THIS_DIR), "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from field_walls.config import FIELD_LENGTH, FIELD_WIDTH
from field_walls.perception.geometry import (
    Point,
    PolarLine,
    PolarPoint,
    smallest_angle_between,
)

# Field center in the robot frame, and the field's heading
CENTER = (0.2, -0.15)
HEADING = 0.3


def field_walls(center=CENTER, heading=HEADING, length=FIELD_LENGTH, width=FIELD_WIDTH):
    """
    Ground-truth walls, outward normals (distance > 0 for a robot inside).

    Keys: length_pos/length_neg are the walls `length` apart,
    width_pos/width_neg the walls `width` apart.
    """
    cx, cy = center
    walls = {}
    for name, offset, half in (
        ("length_pos", 0.0, length / 2),
        ("width_pos", math.pi / 2, width / 2),
        ("length_neg", math.pi, length / 2),
        ("width_neg", 3 * math.pi / 2, width / 2),
    ):
        angle = heading + offset
        distance = cx * math.cos(angle) + cy * math.sin(angle) + half
        walls[name] = PolarLine(distance=distance, angle=angle)
    return walls


def _other_half(name, length, width):
    return width / 2 if name.startswith("length") else length / 2


def rectangle_points(
    center=CENTER,
    heading=HEADING,
    points_per_wall=200,
    noise=0.02,
    skip=(),
    seed=7,
    length=FIELD_LENGTH,
    width=FIELD_WIDTH,
):
    """Points spread along each wall with isotropic gaussian noise."""
    rng = np.random.default_rng(seed)
    points = []
    for name, wall in field_walls(center, heading, length, width).items():
        if name in skip:
            continue
        half = _other_half(name, length, width)
        foot = wall.closest_point()
        # Middle of the wall segment: field center pushed out to the wall
        along = -(center[0] * math.sin(wall.angle)) + center[1] * math.cos(wall.angle)
        for s in rng.uniform(-half, half, size=points_per_wall):
            t = along + s
            x = foot.x - t * math.sin(wall.angle)
            y = foot.y + t * math.cos(wall.angle)
            dx, dy = rng.normal(0.0, noise, size=2) if noise > 0 else (0.0, 0.0)
            points.append(Point(x=x + dx, y=y + dy).to_polar())
    return points


def line_points(line, count=100, half_length=1.0):
    """Noise-free points spread evenly along a line."""
    foot = line.closest_point()
    return [
        Point(
            x=foot.x - t * math.sin(line.angle),
            y=foot.y + t * math.cos(line.angle),
        ).to_polar()
        for t in np.linspace(-half_length, half_length, count)
    ]


def ray_cast_scan(center=(0.103, 0.052), heading=0.0, step_deg=1):
    """
    Lidar-style scan dict: clockwise degrees -> distance in mm.

    One ray per step to the nearest wall, no noise.
    """
    walls = list(field_walls(center, heading).values())
    scan = {}
    for bearing in range(0, 360, step_deg):
        angle = -math.radians(bearing)
        best = math.inf
        for wall in walls:
            facing = math.cos(angle - wall.angle)
            if facing > 1e-9:
                best = min(best, wall.distance / facing)
        scan[bearing] = best * 1000.0
    return scan


def matching_truth(line, walls):
    """Ground-truth wall closest in angle and offset to line."""
    return min(
        walls.values(),
        key=lambda truth: (
            round(smallest_angle_between(line, truth), 2),
            abs(line.aligned_to(truth).distance - truth.distance),
        ),
    )


def line_error(line, truth):
    """(distance error m, angle error rad) between two lines."""
    aligned = line.aligned_to(truth)
    return abs(aligned.distance - truth.distance), smallest_angle_between(line, truth)


def polar(distance, angle):
    return PolarPoint(distance=distance, angle=angle)
