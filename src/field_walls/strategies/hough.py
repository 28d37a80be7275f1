"""
Hough transform - Vote for lines through the scan points.

Every point votes for each orientation θ in [0, π) on the line through
it with that normal: ρ = r·cos(φ - θ). Cells that collect enough votes
become line candidates.

Grid layout (rows = distance, columns = angle):
- row half_range is ρ = 0, rows above it positive ρ, rows below negative ρ
- column k is θ = k·angle_resolution; there is no column for π since it
  is column 0 with ρ negated
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from ..perception.field_walls import HoughLine
from ..perception.geometry import PolarLine, PolarPoint

logger = logging.getLogger(__name__)

VOTE_MAX = np.iinfo(np.uint16).max


@dataclass
class Accumulator:
    """Vote grid for one scan."""

    votes: np.ndarray  # uint16, shape (2 * half_range + 1, angle_buckets)
    distance_resolution: float
    angle_resolution: float
    max_range: float

    @property
    def half_range(self) -> int:
        return (self.votes.shape[0] - 1) // 2

    @property
    def distance_buckets(self) -> int:
        return self.votes.shape[0]

    @property
    def angle_buckets(self) -> int:
        return self.votes.shape[1]

    def wrap(self, distance_index: int, angle_index: int) -> tuple[int, int]:
        """
        Fold an angle index that left [0, angle_buckets) back in range.

        Crossing the angle boundary is a half turn, so the distance
        index is mirrored around the ρ = 0 row each time.
        """
        while angle_index < 0:
            angle_index += self.angle_buckets
            distance_index = 2 * self.half_range - distance_index
        while angle_index >= self.angle_buckets:
            angle_index -= self.angle_buckets
            distance_index = 2 * self.half_range - distance_index
        return distance_index, angle_index

    def in_range(self, distance_index: int) -> bool:
        return 0 <= distance_index < self.distance_buckets

    def bucket_of(self, line: PolarLine) -> tuple[int, int]:
        """Cell that a line falls into (distance index may be out of range)."""
        line = line.normalized()
        distance_index = self.half_range + int(round(line.distance / self.distance_resolution))
        angle_index = int(round(line.angle / self.angle_resolution))
        return self.wrap(distance_index, angle_index)

    def line_at(self, distance_index: int, angle_index: int) -> HoughLine:
        return HoughLine(
            distance=(distance_index - self.half_range) * self.distance_resolution,
            angle=angle_index * self.angle_resolution,
            weight=int(self.votes[distance_index, angle_index]),
            distance_index=distance_index,
            angle_index=angle_index,
        )

    def peak(self) -> HoughLine:
        """Strongest cell (first in scan order on ties)."""
        flat = int(np.argmax(self.votes))
        distance_index, angle_index = np.unravel_index(flat, self.votes.shape)
        return self.line_at(int(distance_index), int(angle_index))


def build_accumulator(
    points: Iterable[PolarPoint],
    distance_resolution: float,
    angle_resolution: float,
    max_range: float,
) -> Accumulator:
    """
    Cast every point's votes into a fresh accumulator.

    Points beyond max_range (or non-finite) are skipped. Counters
    saturate at the uint16 maximum.
    """
    half_range = int(round(max_range / distance_resolution))
    angle_buckets = int(round(math.pi / angle_resolution))

    samples = np.array(
        [(p.distance, p.angle) for p in points],
        dtype=np.float64,
    ).reshape(-1, 2)
    keep = np.isfinite(samples).all(axis=1) & (samples[:, 0] <= max_range)
    samples = samples[keep]

    counts = np.zeros((2 * half_range + 1, angle_buckets), dtype=np.int64)
    if len(samples):
        thetas = np.arange(angle_buckets) * angle_resolution
        rho = samples[:, 0:1] * np.cos(samples[:, 1:2] - thetas[np.newaxis, :])

        distance_index = half_range + np.rint(rho / distance_resolution).astype(np.int64)
        np.clip(distance_index, 0, 2 * half_range, out=distance_index)
        angle_index = np.broadcast_to(np.arange(angle_buckets), distance_index.shape)

        np.add.at(counts, (distance_index.ravel(), angle_index.ravel()), 1)

    votes = np.minimum(counts, VOTE_MAX).astype(np.uint16)
    logger.debug(f"Accumulated {len(samples)} points into {votes.shape[0]}x{votes.shape[1]} cells")
    return Accumulator(
        votes=votes,
        distance_resolution=distance_resolution,
        angle_resolution=angle_resolution,
        max_range=max_range,
    )


def extract_candidates(
    accumulator: Accumulator,
    min_votes: int,
    max_candidates: int | None = None,
) -> list[HoughLine]:
    """
    Turn cells with at least min_votes into lines, strongest first.

    Ties keep cell-scan (row-major) order. An empty list means no line
    was strong enough.
    """
    distance_indices, angle_indices = np.nonzero(accumulator.votes >= min_votes)
    candidates = [
        accumulator.line_at(int(d), int(a))
        for d, a in zip(distance_indices, angle_indices)
    ]
    candidates.sort(key=lambda line: line.weight, reverse=True)

    if max_candidates is not None and len(candidates) > max_candidates:
        logger.debug(f"Keeping {max_candidates} of {len(candidates)} candidates")
        candidates = candidates[:max_candidates]
    return candidates
