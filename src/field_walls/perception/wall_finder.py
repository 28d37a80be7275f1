"""
Wall finder - Runs the full reconstruction for one scan.

The process:
1. Drop samples outside the usable lidar range
2. Vote into a Hough accumulator
3. Extract line candidates above the vote threshold
4. Match the field rectangle via WallMatchingStrategy
5. Smooth the chosen walls via RefinementStrategy
"""

import logging
import time
from typing import Iterable, Optional

from ..params import DetectorParameters
from ..strategies import (
    RectangleWallMatcher,
    RefinementStrategy,
    WallMatchingStrategy,
    WeightedAverageRefinement,
    build_accumulator,
    extract_candidates,
)
from .field_walls import DetectionFailure, DetectionResult
from .geometry import PolarPoint
from .scan import filter_points, points_from_scan

logger = logging.getLogger(__name__)


class FieldWallFinder:
    """
    Reconstructs the four field walls from a single lidar scan.

    Usage:
        finder = FieldWallFinder()

        # In control loop:
        result = finder.find_in_scan(lidar.get_scan())
        if result.ok:
            walls = result.walls

        # With custom parameters/strategies:
        finder = FieldWallFinder(
            params=DetectorParameters(min_vote_threshold=40),
            refinement=WeightedAverageRefinement(similarity_distance=0.1),
        )

    Nothing is kept between calls; every scan gets its own accumulator.
    """

    def __init__(
        self,
        params: Optional[DetectorParameters] = None,
        matcher: Optional[WallMatchingStrategy] = None,
        refinement: Optional[RefinementStrategy] = None,
    ):
        self.params = params or DetectorParameters()
        self.params.validate()
        self.matcher = matcher or RectangleWallMatcher(
            field_length=self.params.field_length,
            field_width=self.params.field_width,
            parallel_tolerance=self.params.parallel_tolerance,
            perpendicular_tolerance=self.params.perpendicular_tolerance,
            separation_relative_tolerance=self.params.separation_relative_tolerance,
            neighborhood_distance_buckets=self.params.neighborhood_distance_buckets,
            neighborhood_angle_buckets=self.params.neighborhood_angle_buckets,
            allow_fallback=self.params.allow_fallback,
        )
        self.refinement = refinement or WeightedAverageRefinement(
            similarity_angle=self.params.similarity_angle,
            similarity_distance=self.params.similarity_distance,
        )

    def find_in_scan(self, scan: dict[int, float]) -> DetectionResult:
        """
        Find walls in a lidar scan dict.

        Args:
            scan: Dict mapping angle (0-359, clockwise) to distance (mm).
        """
        return self.find(points_from_scan(scan))

    def find(self, points: Iterable[PolarPoint]) -> DetectionResult:
        """
        Find walls in one batch of points.

        Returns:
            DetectionResult with walls, or the reason detection failed.
        """
        params = self.params
        start = time.perf_counter()

        points = filter_points(points, params.min_range, params.max_range)

        accumulator = build_accumulator(
            points,
            distance_resolution=params.distance_resolution,
            angle_resolution=params.angle_resolution,
            max_range=params.max_range,
        )
        candidates = extract_candidates(
            accumulator,
            min_votes=params.min_vote_threshold,
            max_candidates=params.max_candidates,
        )
        logger.debug(
            f"{len(points)} points -> {len(candidates)} candidates "
            f"({_elapsed_ms(start):.1f} ms)"
        )

        if not candidates:
            logger.info("No line candidates in scan")
            return DetectionResult(failure=DetectionFailure.EMPTY_CANDIDATES)

        match = self.matcher.match(candidates, accumulator)
        if match.walls is None:
            logger.info(f"Wall detection failed: {match.failure.name}")
            return DetectionResult(
                failure=match.failure,
                candidate_count=len(candidates),
            )

        walls = self.refinement.refine(match.walls, match.pool)
        logger.debug(
            f"Walls found (fallback={match.used_fallback}) "
            f"in {_elapsed_ms(start):.1f} ms"
        )
        return DetectionResult(
            walls=walls,
            candidate_count=len(candidates),
            used_fallback=match.used_fallback,
        )


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0
