"""
Uniform seeding policies.

UniformSeeder samples k distinct node positions uniformly at random.
BoundingBoxSeeder draws k random coordinates inside the bounding box of
the nodes; its centers are generally not node positions, so it is only
valid for the continuous candidate policy.
"""

import random
from typing import List

from stationplan.core.point import Point
from stationplan.core.problem import KMedianProblem
from stationplan.seeding.base import Seeder


class UniformSeeder(Seeder):
    """
    k distinct node positions, uniformly at random.

    When k exceeds the number of distinct positions (continuous policy
    only) every position is used once and the remaining centers repeat
    randomly chosen positions. Coincident centers are then resolved by the
    run's empty-cluster policy.
    """

    def _seed_impl(self, problem: KMedianProblem, rng: random.Random) -> List[Point]:
        positions = problem.distinct_positions
        k = problem.k

        if k <= len(positions):
            return [positions[i] for i in rng.sample(range(len(positions)), k)]

        centers = list(positions)
        rng.shuffle(centers)
        centers.extend(rng.choice(positions) for _ in range(k - len(positions)))
        return centers


class BoundingBoxSeeder(Seeder):
    """Random coordinates inside the nodes' bounding box."""

    discrete = False

    def _seed_impl(self, problem: KMedianProblem, rng: random.Random) -> List[Point]:
        lower, upper = problem.bounding_box()
        return [
            Point(tuple(rng.uniform(lo, hi) for lo, hi in zip(lower, upper)))
            for _ in range(problem.k)
        ]
