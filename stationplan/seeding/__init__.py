"""
Seeding module - initial centers for local-search runs.

This module provides:
- SeedingMethod: Enum of the built-in policies
- Seeder: Abstract base class
- UniformSeeder: k distinct node positions uniformly at random
- FarthestPointSeeder: Weighted farthest-point spread
- BoundingBoxSeeder: Random coordinates in the nodes' bounding box
- make_seeder: Map a SeedingMethod to a seeder instance
"""

from stationplan.seeding.base import Seeder, SeedingMethod
from stationplan.seeding.farthest import FarthestPointSeeder
from stationplan.seeding.uniform import BoundingBoxSeeder, UniformSeeder


def make_seeder(method: SeedingMethod) -> Seeder:
    """Create the seeder for a seeding method."""
    if method == SeedingMethod.FARTHEST_POINT:
        return FarthestPointSeeder()
    if method == SeedingMethod.BOUNDING_BOX:
        return BoundingBoxSeeder()
    return UniformSeeder()


__all__ = [
    'SeedingMethod',
    'Seeder',
    'UniformSeeder',
    'FarthestPointSeeder',
    'BoundingBoxSeeder',
    'make_seeder',
]
