"""
Wall matching strategies - Pick the field rectangle out of line candidates.

RectangleWallMatcher searches for two parallel pairs, one separated by
the field width and one by the field length, that are perpendicular to
each other. When one wall is hidden it falls back to three walls and
places the fourth from the known field size.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..config import (
    FIELD_LENGTH,
    FIELD_WIDTH,
    NEIGHBORHOOD_ANGLE_BUCKETS,
    NEIGHBORHOOD_DISTANCE_BUCKETS,
    PARALLEL_TOLERANCE,
    PERPENDICULAR_TOLERANCE,
    SEPARATION_RELATIVE_TOLERANCE,
)
from ..perception.field_walls import (
    DetectionFailure,
    FieldWalls,
    HoughLine,
    MatchResult,
    WallLine,
    WallSource,
)
from ..perception.geometry import (
    PolarLine,
    distance_center_with,
    is_parallel,
    is_perpendicular,
)
from .hough import Accumulator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WallPair:
    """Two parallel candidates whose gap matches a field dimension."""

    first: HoughLine
    second: HoughLine

    @property
    def weight(self) -> int:
        return self.first.weight + self.second.weight

    @property
    def lines(self) -> tuple[HoughLine, HoughLine]:
        return (self.first, self.second)

    @property
    def cells(self) -> frozenset[tuple[int, int]]:
        return frozenset((self.first.cell, self.second.cell))


class WallMatchingStrategy(ABC):
    """Base class for wall matching algorithms."""

    @abstractmethod
    def match(self, candidates: list[HoughLine], accumulator: Accumulator) -> MatchResult:
        """
        Choose the field walls among line candidates.

        Args:
            candidates: Lines from the accumulator, strongest first.
            accumulator: Grid the candidates were extracted from.

        Returns:
            MatchResult with walls, or with the failure reason.
        """
        ...


class RectangleWallMatcher(WallMatchingStrategy):
    """
    Match a rectangle of known size against Hough line candidates.

    Algorithm:
    1. For every candidate and both field dimensions, look for a
       parallel partner on the far side of the robot, in a small window
       of accumulator cells around where it should be
    2. Combine every width pair with every length pair whose lines are
       perpendicular; keep the combination with the largest
       sum(weight × distance), which favors strong, far (outer) walls
    3. Fallback: a pair plus one perpendicular line; the fourth wall is
       the perpendicular one moved across the field, away from the robot
    """

    def __init__(
        self,
        field_length: float = FIELD_LENGTH,
        field_width: float = FIELD_WIDTH,
        parallel_tolerance: float = PARALLEL_TOLERANCE,
        perpendicular_tolerance: float = PERPENDICULAR_TOLERANCE,
        separation_relative_tolerance: float = SEPARATION_RELATIVE_TOLERANCE,
        neighborhood_distance_buckets: int = NEIGHBORHOOD_DISTANCE_BUCKETS,
        neighborhood_angle_buckets: int = NEIGHBORHOOD_ANGLE_BUCKETS,
        allow_fallback: bool = True,
    ):
        self.field_length = field_length
        self.field_width = field_width
        self.parallel_tolerance = parallel_tolerance
        self.perpendicular_tolerance = perpendicular_tolerance
        self.separation_relative_tolerance = separation_relative_tolerance
        self.neighborhood_distance_buckets = neighborhood_distance_buckets
        self.neighborhood_angle_buckets = neighborhood_angle_buckets
        self.allow_fallback = allow_fallback

    def match(self, candidates: list[HoughLine], accumulator: Accumulator) -> MatchResult:
        if not candidates:
            return MatchResult(failure=DetectionFailure.EMPTY_CANDIDATES)

        index = {line.cell: line for line in candidates}
        width_pairs = self.collect_pairs(candidates, index, accumulator, self.field_width)
        length_pairs = self.collect_pairs(candidates, index, accumulator, self.field_length)
        pool = _pool_of(width_pairs + length_pairs)
        logger.debug(
            f"{len(candidates)} candidates -> "
            f"{len(width_pairs)} width pairs, {len(length_pairs)} length pairs"
        )

        walls = self.best_quadruple(width_pairs, length_pairs)
        if walls is not None:
            return MatchResult(walls=walls, pool=pool)

        if not self.allow_fallback:
            return MatchResult(failure=DetectionFailure.NO_QUADRUPLE_FOUND, pool=pool)

        logger.debug("No 4-wall rectangle, trying 3 walls")
        trio = self.best_trio(width_pairs, length_pairs, candidates)
        if trio is None:
            return MatchResult(failure=DetectionFailure.FALLBACK_UNAVAILABLE, pool=pool)

        walls, perpendicular_lines = trio
        return MatchResult(
            walls=walls,
            pool=_pool_of(width_pairs + length_pairs, extra=perpendicular_lines),
            used_fallback=True,
        )

    # =========================================================================
    # Pair collection
    # =========================================================================

    def collect_pairs(
        self,
        candidates: list[HoughLine],
        index: dict[tuple[int, int], HoughLine],
        accumulator: Accumulator,
        separation: float,
    ) -> list[WallPair]:
        """Find each candidate's partner at the given separation."""
        pairs = []
        seen = set()
        for line in candidates:
            partner = self.find_partner(line, index, accumulator, separation)
            if partner is None:
                continue
            pair = WallPair(first=line, second=partner)
            if pair.cells in seen:
                continue
            seen.add(pair.cells)
            pairs.append(pair)
        return pairs

    def find_partner(
        self,
        line: HoughLine,
        index: dict[tuple[int, int], HoughLine],
        accumulator: Accumulator,
        separation: float,
    ) -> HoughLine | None:
        """
        Strongest valid candidate around the expected parallel wall.

        The expected wall has the same angle and sits `separation` away
        on the other side of the robot. The search window wraps across
        the angle boundary.
        """
        if line.distance >= 0:
            expected = line.distance - separation
        else:
            expected = line.distance + separation
        center_d, center_a = accumulator.bucket_of(PolarLine(distance=expected, angle=line.angle))

        best = None
        for da in range(-self.neighborhood_angle_buckets, self.neighborhood_angle_buckets + 1):
            for dd in range(-self.neighborhood_distance_buckets, self.neighborhood_distance_buckets + 1):
                d, a = accumulator.wrap(center_d + dd, center_a + da)
                if not accumulator.in_range(d):
                    continue
                partner = index.get((d, a))
                if partner is None or partner.cell == line.cell:
                    continue
                if best is not None and partner.weight <= best.weight:
                    continue
                if self._is_partner(line, partner, separation):
                    best = partner
        return best

    def _is_partner(self, line: HoughLine, partner: HoughLine, separation: float) -> bool:
        if not is_parallel(line, partner, self.parallel_tolerance):
            return False
        gap = distance_center_with(line, partner)
        return abs(gap - separation) <= self.separation_relative_tolerance * separation

    # =========================================================================
    # Four walls
    # =========================================================================

    def best_quadruple(self, width_pairs: list[WallPair], length_pairs: list[WallPair]) -> FieldWalls | None:
        """Highest scoring perpendicular width/length combination."""
        best = None
        best_score = -math.inf
        for width in width_pairs:
            for length in length_pairs:
                if not is_perpendicular(width.first, length.first, self.perpendicular_tolerance):
                    continue
                score = _score(width.lines + length.lines)
                # Strict: equal scores keep the earlier (stronger) width pair
                if score > best_score:
                    best = (width, length)
                    best_score = score

        if best is None:
            return None

        width, length = best
        logger.debug(f"Rectangle found, score={best_score:.1f}")
        return FieldWalls(
            width_1=WallLine.found(width.first, WallSource.FOUND_AS_PARALLEL),
            width_2=WallLine.found(width.second, WallSource.FOUND_AS_PARALLEL),
            length_1=WallLine.found(length.first, WallSource.FOUND_AS_PERPENDICULAR),
            length_2=WallLine.found(length.second, WallSource.FOUND_AS_PERPENDICULAR),
        )

    # =========================================================================
    # Three walls
    # =========================================================================

    def best_trio(
        self,
        width_pairs: list[WallPair],
        length_pairs: list[WallPair],
        candidates: list[HoughLine],
    ) -> tuple[FieldWalls, list[HoughLine]] | None:
        """
        Lowest-weight pair + perpendicular line, with the fourth wall guessed.

        Returns the walls and every candidate perpendicular to the chosen
        pair and closer than the other field dimension, which refinement
        uses to average the observed side wall.
        """
        best = None
        best_weight = math.inf
        for pairs, is_width in ((width_pairs, True), (length_pairs, False)):
            other_dimension = self.field_length if is_width else self.field_width
            for pair in pairs:
                for line in candidates:
                    if not self._is_side_wall(pair, line, other_dimension):
                        continue
                    weight = pair.weight + line.weight
                    if weight < best_weight:
                        best = (pair, line, is_width)
                        best_weight = weight

        if best is None:
            return None

        pair, side, is_width = best
        other_dimension = self.field_length if is_width else self.field_width
        guessed = WallLine.guessed(guess_opposite_wall(side, other_dimension))
        logger.info(
            f"Guessed missing wall at {guessed.line.distance:.3f} m, "
            f"{math.degrees(guessed.line.angle):.1f} deg"
        )

        parallel = (
            WallLine.found(pair.first, WallSource.FOUND_AS_PARALLEL),
            WallLine.found(pair.second, WallSource.FOUND_AS_PARALLEL),
        )
        perpendicular = (WallLine.found(side, WallSource.FOUND_AS_PERPENDICULAR), guessed)
        if is_width:
            walls = FieldWalls(*parallel, *perpendicular)
        else:
            walls = FieldWalls(*perpendicular, *parallel)

        side_lines = [line for line in candidates if self._is_side_wall(pair, line, other_dimension)]
        return walls, side_lines

    def _is_side_wall(self, pair: WallPair, line: HoughLine, other_dimension: float) -> bool:
        # Closer than the field dimension, so the guessed wall lands across the robot
        return (
            line.cell not in pair.cells
            and abs(line.distance) < other_dimension
            and is_perpendicular(pair.first, line, self.perpendicular_tolerance)
        )


def guess_opposite_wall(wall: PolarLine, separation: float) -> PolarLine:
    """Parallel wall `separation` away, on the other side of the robot."""
    if wall.distance >= 0:
        return wall.offset(-separation)
    return wall.offset(separation)


def _score(lines: tuple[HoughLine, ...]) -> float:
    return sum(line.weight * abs(line.distance) for line in lines)


def _pool_of(pairs: list[WallPair], extra: list[HoughLine] | None = None) -> list[HoughLine]:
    """Unique lines from pairs (plus extra), in first-seen order."""
    pool = {}
    for pair in pairs:
        for line in pair.lines:
            pool.setdefault(line.cell, line)
    for line in extra or []:
        pool.setdefault(line.cell, line)
    return list(pool.values())
