#!/usr/bin/env python3
"""
Field wall finder - Command line entry point.

Usage:
    python -m field_walls scan.json                      # Find walls in a saved scan
    python -m field_walls scan.json --params params.json # With tuned parameters
    python -m field_walls scan.json --log-level DEBUG    # Show pipeline timings

The scan file is a JSON object mapping angle (degrees, clockwise from
forward) to distance (mm), as returned by the lidar driver's get_scan().
"""

import argparse
import json
import logging
import math
import sys

from .params import DetectorParameters
from .perception.wall_finder import FieldWallFinder


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Find field walls in a lidar scan")
    parser.add_argument("scan", help="JSON scan file (angle deg -> distance mm)")
    parser.add_argument(
        "--params",
        default=None,
        help="JSON parameters file (defaults used if missing)",
    )
    parser.add_argument(
        "--no-fallback",
        action="store_true",
        help="Require all four walls, never guess one",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    args = parser.parse_args(argv)

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    params = DetectorParameters.load(args.params) if args.params else DetectorParameters()
    if args.no_fallback:
        params.allow_fallback = False

    try:
        with open(args.scan) as f:
            raw = json.load(f)
        scan = {float(angle): float(distance) for angle, distance in raw.items()}
    except (OSError, ValueError, AttributeError) as e:
        logger.error(f"Cannot read scan {args.scan}: {e}")
        return 2

    try:
        finder = FieldWallFinder(params=params)
    except ValueError as e:
        logger.error(f"Invalid parameters: {e}")
        return 2

    result = finder.find_in_scan(scan)
    if not result.ok:
        print(f"FAILED: {result.failure.name} ({result.candidate_count} candidates)")
        return 1

    names = ("width_1", "width_2", "length_1", "length_2")
    for name, wall in zip(names, result.walls.walls):
        print(
            f"{name:9s} distance={wall.line.distance:+.3f} m  "
            f"angle={math.degrees(wall.line.angle):6.1f} deg  "
            f"{wall.source.name} (votes={wall.weight})"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
