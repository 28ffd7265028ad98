"""
Shared pytest fixtures for stationplan tests.
"""

import random

import pytest

from stationplan.core.point import Point, ResourceNode
from stationplan.core.problem import KMedianProblem


def pytest_configure(config):
    """Add custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")


# Offsets of the five nodes in each cluster of the clustered instance
CROSS = [(0, 0), (1, 0), (0, 1), (-1, 0), (0, -1)]

# Cluster centers of the clustered instance
CLUSTER_CENTERS = [(0, 0), (100, 0), (0, 100)]


@pytest.fixture
def square_problem():
    """Four unit-weight nodes on the corners of a 10x10 square, k=1."""
    return KMedianProblem.from_coordinates(
        [(0, 0), (0, 10), (10, 0), (10, 10)],
        k=1,
        name="square",
    )


@pytest.fixture
def clustered_problem():
    """Three well separated crosses of five nodes each, k=3."""
    nodes = [
        ResourceNode(Point.of(cx + dx, cy + dy), name=f"c{ci}_{ni}")
        for ci, (cx, cy) in enumerate(CLUSTER_CENTERS)
        for ni, (dx, dy) in enumerate(CROSS)
    ]
    return KMedianProblem(nodes, k=3, name="clustered")


@pytest.fixture
def line_problem():
    """Ten unit-weight nodes on the x axis at 0..9, k=1."""
    return KMedianProblem.from_coordinates([(x, 0) for x in range(10)], k=1, name="line")


def make_random_problem(seed: int, n: int = 60, k: int = 4) -> KMedianProblem:
    """Random weighted instance in a 1000x1000 box."""
    rng = random.Random(seed)
    pairs = [
        ((rng.uniform(0, 1000), rng.uniform(0, 1000)), rng.choice([0.5, 1.0, 2.0]))
        for _ in range(n)
    ]
    return KMedianProblem.from_pairs(pairs, k=k, name=f"random_{seed}")


@pytest.fixture
def random_problem():
    """A reproducible random instance."""
    return make_random_problem(seed=11)


@pytest.fixture
def random_problem_factory():
    """Factory for reproducible random instances: factory(seed, n=60, k=4)."""
    return make_random_problem
