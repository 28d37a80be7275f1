import math
import unittest

from field_fixtures import (
    field_walls,
    line_error,
    line_points,
    matching_truth,
    polar,
    ray_cast_scan,
    rectangle_points,
)

from field_walls import DetectionFailure, DetectorParameters, FieldWallFinder, WallSource
from field_walls.config import FIELD_LENGTH, FIELD_WIDTH
from field_walls.perception.geometry import Point, PolarLine

DISTANCE_TOLERANCE = 0.05
ANGLE_TOLERANCE = math.radians(3.0)


class TruthAssertions:
    def assert_matches_truth(self, walls, truth):
        for wall in walls:
            expected = matching_truth(wall.line, truth)
            distance_error, angle_error = line_error(wall.line, expected)
            self.assertLess(distance_error, DISTANCE_TOLERANCE, f"{wall} vs {expected}")
            self.assertLess(angle_error, ANGLE_TOLERANCE, f"{wall} vs {expected}")


class FieldWallFinderTests(TruthAssertions, unittest.TestCase):
    def setUp(self):
        self.finder = FieldWallFinder(params=DetectorParameters(min_vote_threshold=20))

    def test_clean_rectangle(self):
        result = self.finder.find(rectangle_points())

        self.assertTrue(result.ok)
        self.assertIsNone(result.failure)
        self.assertFalse(result.used_fallback)
        self.assertGreater(result.candidate_count, 0)

        walls = result.walls
        self.assertEqual(walls.guessed, [])
        self.assert_matches_truth(walls.walls, field_walls())
        self.assertTrue(walls.contains_origin())
        self.assertTrue(walls.is_consistent(0.2, 0.2))

        truth = field_walls()
        truth_width = (truth["width_pos"], truth["width_neg"])
        for wall in (walls.width_1, walls.width_2):
            self.assertIn(matching_truth(wall.line, truth), truth_width)

    def test_clean_rectangle_corners(self):
        walls = self.finder.find(rectangle_points()).walls
        corners = walls.corners()
        self.assertEqual(len(corners), 4)

        cx, cy = (0.2, -0.15)
        heading = 0.3
        expected = []
        for su in (-1, 1):
            for sv in (-1, 1):
                u, v = su * FIELD_LENGTH / 2, sv * FIELD_WIDTH / 2
                expected.append(Point(
                    x=cx + u * math.cos(heading) - v * math.sin(heading),
                    y=cy + u * math.sin(heading) + v * math.cos(heading),
                ))
        for corner in corners:
            nearest = min(corner.distance_to(p) for p in expected)
            self.assertLess(nearest, DISTANCE_TOLERANCE)

    def test_one_wall_occluded(self):
        result = self.finder.find(rectangle_points(skip=("length_neg",)))

        self.assertTrue(result.ok)
        self.assertTrue(result.used_fallback)
        walls = result.walls
        self.assertEqual(len(walls.guessed), 1)

        guessed = walls.length_2
        seen = walls.length_1
        self.assertIs(guessed.source, WallSource.GUESSED)
        self.assertIs(seen.source, WallSource.FOUND_AS_PERPENDICULAR)

        # Pure arithmetic: seen wall moved one field length across the robot
        aligned = guessed.line.aligned_to(seen.line)
        self.assertLess(seen.line.distance * aligned.distance, 0)
        expected = seen.line.distance - math.copysign(FIELD_LENGTH, seen.line.distance)
        self.assertLess(abs(aligned.distance - expected), 0.01)

        self.assert_matches_truth(walls.walls, field_walls())
        self.assertTrue(walls.contains_origin())

    def test_too_few_points(self):
        points = [polar(1.0, 0.3 * i) for i in range(12)]
        result = self.finder.find(points)
        self.assertFalse(result.ok)
        self.assertIsNone(result.walls)
        self.assertEqual(result.failure, DetectionFailure.EMPTY_CANDIDATES)
        self.assertEqual(result.candidate_count, 0)

    def test_no_points(self):
        result = self.finder.find([])
        self.assertEqual(result.failure, DetectionFailure.EMPTY_CANDIDATES)

    def test_sparse_scan_never_returns_bad_walls(self):
        for seed in range(5):
            points = rectangle_points(points_per_wall=12, seed=seed)
            result = self.finder.find(points)
            if result.ok:
                self.assertTrue(result.walls.is_consistent(0.2, 0.2))
            else:
                self.assertIn(
                    result.failure,
                    (
                        DetectionFailure.EMPTY_CANDIDATES,
                        DetectionFailure.NO_QUADRUPLE_FOUND,
                        DetectionFailure.FALLBACK_UNAVAILABLE,
                    ),
                )

    def test_no_fallback_parameter(self):
        finder = FieldWallFinder(params=DetectorParameters(min_vote_threshold=20, allow_fallback=False))
        result = finder.find(rectangle_points(skip=("width_pos",)))
        self.assertEqual(result.failure, DetectionFailure.NO_QUADRUPLE_FOUND)
        self.assertGreater(result.candidate_count, 0)

    def test_points_outside_range_are_ignored(self):
        points = rectangle_points() + [polar(0.05, a * 0.01) for a in range(300)]
        result = self.finder.find(points)
        self.assertTrue(result.ok)
        self.assertFalse(result.used_fallback)

    def test_native_scan_dict(self):
        finder = FieldWallFinder()
        result = finder.find_in_scan(ray_cast_scan())

        self.assertTrue(result.ok)
        self.assertFalse(result.used_fallback)
        self.assert_matches_truth(result.walls.walls, field_walls(center=(0.103, 0.052), heading=0.0))

    def test_invalid_parameters(self):
        with self.assertRaises(ValueError):
            FieldWallFinder(params=DetectorParameters(distance_resolution=0.0))


class DefaultParametersTests(TruthAssertions, unittest.TestCase):
    def setUp(self):
        self.finder = FieldWallFinder(params=DetectorParameters())

    def test_clean_rectangle(self):
        result = self.finder.find(rectangle_points())
        self.assertTrue(result.ok)
        self.assertFalse(result.used_fallback)
        self.assert_matches_truth(result.walls.walls, field_walls())
        self.assertTrue(result.walls.contains_origin())

    def test_one_wall_occluded(self):
        result = self.finder.find(rectangle_points(skip=("length_neg",)))
        self.assertTrue(result.ok)
        self.assertTrue(result.used_fallback)
        self.assertIs(result.walls.length_2.source, WallSource.GUESSED)
        self.assert_matches_truth(result.walls.walls, field_walls())
        self.assertTrue(result.walls.contains_origin())

    def test_line_beyond_the_field_is_ignored(self):
        truth = field_walls(center=(0.0, 0.0), heading=0.0)
        points = rectangle_points(center=(0.0, 0.0), heading=0.0, skip=("length_neg",))
        for distance in (2.5, 2.6, 2.8):
            with self.subTest(distance=distance):
                extra = line_points(PolarLine(distance=distance, angle=0.0), count=32)
                result = self.finder.find(points + extra)

                self.assertTrue(result.ok)
                self.assertTrue(result.used_fallback)
                self.assertTrue(result.walls.contains_origin())
                self.assertIs(result.walls.length_1.source, WallSource.FOUND_AS_PERPENDICULAR)
                self.assert_matches_truth(result.walls.walls, truth)


if __name__ == "__main__":
    unittest.main()
