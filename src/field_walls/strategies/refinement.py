"""
Refinement strategies - Smooth chosen walls with nearby candidates.

A single accumulator cell is quantized to the grid. Averaging every
near-duplicate candidate around a wall, weighted by votes, gives a
better estimate than the winning cell alone.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..config import SIMILARITY_ANGLE, SIMILARITY_DISTANCE
from ..perception.field_walls import FieldWalls, HoughLine, WallLine
from ..perception.geometry import (
    PolarLine,
    distance_center_with,
    smallest_angle_between,
)


class RefinementStrategy(ABC):
    """Base class for wall refinement algorithms."""

    @abstractmethod
    def refine(self, walls: FieldWalls, pool: list[HoughLine]) -> FieldWalls:
        """
        Improve wall estimates using the matcher's candidate pool.

        Args:
            walls: Walls chosen by the matcher.
            pool: Candidate lines collected while matching.

        Returns:
            FieldWalls with the same provenance tags.
        """
        ...


class WeightedAverageRefinement(RefinementStrategy):
    """
    Replace each found wall with the vote-weighted mean of similar lines.

    A pool line is similar when it is within similarity_angle and its
    closest point is within similarity_distance of the wall's. Guessed
    walls have no candidates; they are moved along with their refined
    opposite wall so the field size is kept.
    """

    def __init__(self, similarity_angle: float = SIMILARITY_ANGLE, similarity_distance: float = SIMILARITY_DISTANCE):
        self.similarity_angle = similarity_angle
        self.similarity_distance = similarity_distance

    def refine(self, walls: FieldWalls, pool: list[HoughLine]) -> FieldWalls:
        width_1, width_2 = self._refine_pair(walls.width_1, walls.width_2, pool)
        length_1, length_2 = self._refine_pair(walls.length_1, walls.length_2, pool)
        return FieldWalls(
            width_1=width_1,
            width_2=width_2,
            length_1=length_1,
            length_2=length_2,
        )

    def _refine_pair(self, first: WallLine, second: WallLine, pool: list[HoughLine]) -> tuple[WallLine, WallLine]:
        if first.is_guessed:
            refined = self.refine_wall(second, pool)
            return _follow(first, second, refined), refined
        if second.is_guessed:
            refined = self.refine_wall(first, pool)
            return refined, _follow(second, first, refined)
        return self.refine_wall(first, pool), self.refine_wall(second, pool)

    def refine_wall(self, wall: WallLine, pool: list[HoughLine]) -> WallLine:
        total = 0
        distance_sum = 0.0
        angle_sum = 0.0
        for line in pool:
            if smallest_angle_between(wall.line, line) >= self.similarity_angle:
                continue
            if distance_center_with(wall.line, line) >= self.similarity_distance:
                continue
            aligned = line.aligned_to(wall.line)
            total += line.weight
            distance_sum += line.weight * aligned.distance
            angle_sum += line.weight * aligned.angle

        if total == 0:
            return wall

        mean = PolarLine(distance=distance_sum / total, angle=angle_sum / total)
        return WallLine(line=mean.normalized(), source=wall.source, weight=total)


def _follow(guessed: WallLine, before: WallLine, after: WallLine) -> WallLine:
    """Move a guessed wall so it keeps its offset from its refined opposite."""
    gap = guessed.line.aligned_to(before.line).distance - before.line.distance
    moved = after.line.aligned_to(before.line).offset(gap)
    return WallLine.guessed(moved)
