"""
Tunable detection parameters with JSON persistence.

One DetectorParameters instance configures a FieldWallFinder. Values
can be changed from a dict (e.g. a debug UI or a JSON file); the finder
reads them when it is built. Angles are stored in radians.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass
from pathlib import Path

from .config import (
    ANGLE_RESOLUTION,
    DISTANCE_RESOLUTION,
    FIELD_LENGTH,
    FIELD_WIDTH,
    LIDAR_MAX_DISTANCE,
    LIDAR_MIN_DISTANCE,
    MAX_CANDIDATES,
    MIN_VOTE_THRESHOLD,
    NEIGHBORHOOD_ANGLE_BUCKETS,
    NEIGHBORHOOD_DISTANCE_BUCKETS,
    PARALLEL_TOLERANCE,
    PERPENDICULAR_TOLERANCE,
    SEPARATION_RELATIVE_TOLERANCE,
    SIMILARITY_ANGLE,
    SIMILARITY_DISTANCE,
)

logger = logging.getLogger(__name__)


@dataclass
class DetectorParameters:
    """Wall detection parameters (meters, radians)."""

    # Hough accumulator
    distance_resolution: float = DISTANCE_RESOLUTION
    angle_resolution: float = ANGLE_RESOLUTION
    min_range: float = LIDAR_MIN_DISTANCE
    max_range: float = LIDAR_MAX_DISTANCE

    # Candidate extraction
    min_vote_threshold: int = MIN_VOTE_THRESHOLD
    max_candidates: int = MAX_CANDIDATES

    # Field (competition mat)
    field_length: float = FIELD_LENGTH
    field_width: float = FIELD_WIDTH

    # Matching
    parallel_tolerance: float = PARALLEL_TOLERANCE
    perpendicular_tolerance: float = PERPENDICULAR_TOLERANCE
    separation_relative_tolerance: float = SEPARATION_RELATIVE_TOLERANCE
    neighborhood_distance_buckets: int = NEIGHBORHOOD_DISTANCE_BUCKETS
    neighborhood_angle_buckets: int = NEIGHBORHOOD_ANGLE_BUCKETS
    allow_fallback: bool = True

    # Refinement
    similarity_angle: float = SIMILARITY_ANGLE
    similarity_distance: float = SIMILARITY_DISTANCE

    def update(self, **kwargs):
        """Update parameters from dict (e.g., from a JSON file)."""
        for key, value in kwargs.items():
            if hasattr(self, key):
                expected_type = type(getattr(self, key))
                try:
                    setattr(self, key, _coerce(expected_type, value))
                except (TypeError, ValueError):
                    logger.warning(f"Invalid value for {key}: {value}")

    def validate(self):
        """Raise ValueError if the parameters cannot produce a usable grid."""
        positive = (
            "distance_resolution",
            "angle_resolution",
            "max_range",
            "field_length",
            "field_width",
        )
        for name in positive:
            if not getattr(self, name) > 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

        if self.angle_resolution > math.pi / 2:
            raise ValueError(f"angle_resolution too coarse: {self.angle_resolution}")
        if not 0 <= self.min_range < self.max_range:
            raise ValueError(f"Invalid range [{self.min_range}, {self.max_range}]")
        if self.min_vote_threshold < 1:
            raise ValueError(f"min_vote_threshold must be >= 1, got {self.min_vote_threshold}")
        if self.max_candidates < 1:
            raise ValueError(f"max_candidates must be >= 1, got {self.max_candidates}")

        for name in ("field_length", "field_width"):
            if getattr(self, name) > 2 * self.max_range:
                raise ValueError(f"{name} cannot be seen within max_range={self.max_range}")

        non_negative = (
            "parallel_tolerance",
            "perpendicular_tolerance",
            "separation_relative_tolerance",
            "neighborhood_distance_buckets",
            "neighborhood_angle_buckets",
            "similarity_angle",
            "similarity_distance",
        )
        for name in non_negative:
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative, got {getattr(self, name)}")

    def save(self, path: Path):
        """Persist to JSON file."""
        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)
        logger.info(f"Parameters saved to {path}")

    @classmethod
    def load(cls, path: Path) -> DetectorParameters:
        """Load from JSON file, or return defaults."""
        path = Path(path)
        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                params = cls.from_dict(data)
                logger.info(f"Parameters loaded from {path}")
                return params
            except (OSError, TypeError, ValueError) as e:
                logger.warning(f"Failed to load {path}: {e}, using defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> DetectorParameters:
        params = cls()
        params.update(**data)
        return params

    def to_dict(self) -> dict:
        """Convert to dict for JSON."""
        return asdict(self)


def _coerce(expected_type: type, value):
    # bool("false") is True, so booleans need their own parsing
    if expected_type is bool and isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(value)
    return expected_type(value)
