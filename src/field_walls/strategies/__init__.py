"""
Swappable strategy implementations (Strategy pattern).

The Hough stage is plain functions; matching and refinement each have
an ABC and one implementation. Pass the desired implementation to
FieldWallFinder.
"""

from .hough import (
    Accumulator,
    build_accumulator,
    extract_candidates,
)
from .wall_matching import (
    WallMatchingStrategy,
    RectangleWallMatcher,
    WallPair,
    guess_opposite_wall,
)
from .refinement import (
    RefinementStrategy,
    WeightedAverageRefinement,
)
