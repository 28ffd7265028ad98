"""
Seeding abstract base class.

A seeder picks the k initial centers a local-search run starts from.
Seeding quality materially affects which local optimum the run ends in,
so the method is always explicit configuration.

Seeders never touch the global random state: every call receives its own
random.Random, which is what makes a run reproducible from its seed and
lets restarts run side by side.
"""

import random
from abc import ABC, abstractmethod
from enum import Enum
from typing import List

from stationplan.core.errors import InvalidInputError
from stationplan.core.point import Point
from stationplan.core.problem import KMedianProblem


class SeedingMethod(Enum):
    """Initial center selection."""
    UNIFORM = "uniform"                # k distinct node positions at random
    FARTHEST_POINT = "farthest-point"  # Weighted farthest-point spread
    BOUNDING_BOX = "bounding-box"      # Random coordinates in the nodes' box


class Seeder(ABC):
    """
    Abstract base class for seeding policies.

    Subclasses implement _seed_impl and may assume k >= 1.
    """

    #: Whether every seeded center is a node position
    discrete = True

    def seed(self, problem: KMedianProblem, rng: random.Random) -> List[Point]:
        """
        Pick initial centers.

        Args:
            problem: Problem to seed
            rng: Random source owned by the calling run

        Returns:
            List of exactly problem.k centers

        Raises:
            InvalidInputError: If the seeder returns the wrong number of centers
        """
        centers = self._seed_impl(problem, rng)
        if len(centers) != problem.k:
            raise InvalidInputError(
                f"{type(self).__name__} returned {len(centers)} centers, expected {problem.k}"
            )
        return centers

    @abstractmethod
    def _seed_impl(self, problem: KMedianProblem, rng: random.Random) -> List[Point]:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
