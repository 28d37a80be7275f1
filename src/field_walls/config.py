"""
Configuration constants for field wall reconstruction.

All default tunables in one place. Units are SI (meters, radians);
angles are written in degrees where that reads better and converted
once here.
"""

import math

# =============================================================================
# FIELD GEOMETRY (m)
# =============================================================================

FIELD_LENGTH = 2.43
FIELD_WIDTH = 1.82

# =============================================================================
# LIDAR PROCESSING
# =============================================================================

LIDAR_MIN_DISTANCE = 0.09  # Ignore readings closer than this (robot body)
LIDAR_MAX_DISTANCE = 3.0  # Ignore readings further than this

# =============================================================================
# HOUGH TRANSFORM
# =============================================================================

DISTANCE_RESOLUTION = 0.01  # 1 cm per distance bucket
ANGLE_RESOLUTION = math.radians(1.0)  # 1 degree per angle bucket
MIN_VOTE_THRESHOLD = 30  # Cells with fewer votes are not lines
MAX_CANDIDATES = 4000  # Keep the matcher bounded on very dense scans

# =============================================================================
# WALL MATCHING
# =============================================================================

# Below this two lines cannot be intersected
EXACT_PARALLEL_TOLERANCE = 1e-9

PARALLEL_TOLERANCE = 0.2  # rad
PERPENDICULAR_TOLERANCE = 0.2  # rad (after subtracting a quarter turn)
SEPARATION_RELATIVE_TOLERANCE = 0.10  # Wall gap within ±10% of the field size

# Partner search window around the expected accumulator cell
NEIGHBORHOOD_DISTANCE_BUCKETS = 10
NEIGHBORHOOD_ANGLE_BUCKETS = 10

# =============================================================================
# REFINEMENT
# =============================================================================

SIMILARITY_ANGLE = math.radians(20.0)
SIMILARITY_DISTANCE = 0.20  # m
