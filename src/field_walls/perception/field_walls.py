"""
Field walls - Output of one wall reconstruction.

FieldWalls is the rectangle found in a single scan. The localization
layer combines it with the known field geometry to get an absolute
robot pose; each scan produces a fresh value owned by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from .geometry import (
    Point,
    PolarLine,
    intersect,
    is_parallel,
    is_perpendicular,
)


@dataclass(frozen=True)
class HoughLine(PolarLine):
    """Line candidate read back from one accumulator cell."""

    weight: int = 0  # Votes in the cell
    distance_index: int = -1
    angle_index: int = -1

    @property
    def cell(self) -> tuple[int, int]:
        return (self.distance_index, self.angle_index)

    @property
    def line(self) -> PolarLine:
        return PolarLine(distance=self.distance, angle=self.angle)


class WallSource(Enum):
    """How a boundary line was obtained."""

    FOUND_AS_PARALLEL = auto()
    FOUND_AS_PERPENDICULAR = auto()
    GUESSED = auto()


@dataclass(frozen=True)
class WallLine:
    """One boundary line with its provenance."""

    line: PolarLine
    source: WallSource
    weight: int = 0  # Supporting votes, 0 for guessed walls

    @property
    def is_guessed(self) -> bool:
        return self.source is WallSource.GUESSED

    @classmethod
    def found(cls, line: HoughLine, source: WallSource) -> WallLine:
        return cls(line=line.line, source=source, weight=line.weight)

    @classmethod
    def guessed(cls, line: PolarLine) -> WallLine:
        return cls(line=line.normalized(), source=WallSource.GUESSED)


@dataclass(frozen=True)
class FieldWalls:
    """
    The four field boundaries seen from the robot.

    width_1/width_2 are the walls separated by the field width (the two
    long sides), length_1/length_2 the walls separated by the field
    length. Each pair is parallel and the pairs are perpendicular.
    """

    width_1: WallLine
    width_2: WallLine
    length_1: WallLine
    length_2: WallLine

    @property
    def walls(self) -> tuple[WallLine, WallLine, WallLine, WallLine]:
        return (self.width_1, self.width_2, self.length_1, self.length_2)

    @property
    def guessed(self) -> list[WallLine]:
        return [wall for wall in self.walls if wall.is_guessed]

    def is_consistent(self, parallel_tolerance: float, perpendicular_tolerance: float) -> bool:
        """Check both pairs are parallel and the pairs are perpendicular."""
        return (
            is_parallel(self.width_1.line, self.width_2.line, parallel_tolerance)
            and is_parallel(self.length_1.line, self.length_2.line, parallel_tolerance)
            and is_perpendicular(self.width_1.line, self.length_1.line, perpendicular_tolerance)
            and is_perpendicular(self.width_2.line, self.length_2.line, perpendicular_tolerance)
        )

    def contains_origin(self) -> bool:
        """True when the robot lies between the walls of both pairs."""
        return _between(self.width_1.line, self.width_2.line) and _between(
            self.length_1.line, self.length_2.line
        )

    def corners(self) -> list[Point]:
        """Width/length intersections, skipping any degenerate pair."""
        corners = []
        for width in (self.width_1, self.width_2):
            for length in (self.length_1, self.length_2):
                point = intersect(width.line, length.line)
                if point is not None:
                    corners.append(point)
        return corners


def _between(a: PolarLine, b: PolarLine) -> bool:
    return a.distance * b.aligned_to(a).distance < 0


class DetectionFailure(Enum):
    """Why a scan produced no FieldWalls. All are expected outcomes."""

    EMPTY_CANDIDATES = auto()  # No accumulator cell reached the vote threshold
    NO_QUADRUPLE_FOUND = auto()  # No 4-wall rectangle and fallback disabled
    FALLBACK_UNAVAILABLE = auto()  # Neither 4 walls nor a usable 3-wall trio


@dataclass
class MatchResult:
    """Matcher output, also carrying the line pool used for refinement."""

    walls: FieldWalls | None = None
    failure: DetectionFailure | None = None
    pool: list[HoughLine] = field(default_factory=list)
    used_fallback: bool = False


@dataclass
class DetectionResult:
    """
    Result of processing one scan.

    Exactly one of walls/failure is set. On failure the caller is
    expected to keep its last good FieldWalls and try the next scan.
    """

    walls: FieldWalls | None = None
    failure: DetectionFailure | None = None
    candidate_count: int = 0
    used_fallback: bool = False

    @property
    def ok(self) -> bool:
        return self.walls is not None
