"""
Tests for the assignment step.

This module tests:
- Nearest-center selection and the lowest-index tie-break
- Assignment cost and per-cluster aggregates
- Empty cluster detection
"""

import math

import pytest

from stationplan.assignment import Assignment, assign, nearest_center
from stationplan.core.errors import InvalidInputError
from stationplan.core.metric import euclidean, manhattan
from stationplan.core.point import Point, ResourceNode


def nodes_at(*coords, weights=None):
    weights = weights or [1.0] * len(coords)
    return [ResourceNode(Point(tuple(c)), w) for c, w in zip(coords, weights)]


class TestNearestCenter:
    """Tests for nearest_center."""

    def test_picks_closest(self):
        centers = [Point.of(0, 0), Point.of(10, 0), Point.of(20, 0)]
        assert nearest_center(Point.of(12, 1), centers, euclidean) == (1, pytest.approx(math.hypot(2, 1)))

    def test_tie_goes_to_lowest_index(self):
        centers = [Point.of(10, 0), Point.of(0, 0)]
        index, d = nearest_center(Point.of(5, 0), centers, euclidean)
        assert index == 0
        assert d == 5.0

    def test_coincident_centers_lowest_index(self):
        centers = [Point.of(3, 3), Point.of(1, 1), Point.of(1, 1)]
        index, _ = nearest_center(Point.of(1, 1), centers, euclidean)
        assert index == 1


class TestAssign:
    """Tests for assign."""

    def test_labels_and_cost(self):
        nodes = nodes_at((0, 0), (1, 0), (10, 0), (11, 0), weights=[1.0, 2.0, 1.0, 3.0])
        a = assign(nodes, [Point.of(0, 0), Point.of(10, 0)], euclidean)

        assert a.labels == (0, 0, 1, 1)
        assert a.distances == (0.0, 1.0, 0.0, 1.0)
        assert a.cost == 5.0
        assert a.num_centers == 2

    def test_cost_uses_metric(self):
        nodes = nodes_at((0, 0), (3, 4))
        assert assign(nodes, [Point.of(0, 0)], euclidean).cost == 5.0
        assert assign(nodes, [Point.of(0, 0)], manhattan).cost == 7.0

    def test_ties_resolved_by_index(self):
        """A node equidistant from all centers goes to center 0."""
        nodes = nodes_at((5, 5))
        centers = [Point.of(0, 0), Point.of(10, 10), Point.of(0, 10), Point.of(10, 0)]
        assert assign(nodes, centers, euclidean).labels == (0,)

    def test_deterministic(self):
        nodes = nodes_at((0, 0), (4, 4), (7, 1), (2, 9))
        centers = [Point.of(1, 1), Point.of(6, 6)]
        assert assign(nodes, centers, euclidean) == assign(nodes, centers, euclidean)

    def test_no_centers(self):
        with pytest.raises(InvalidInputError):
            assign(nodes_at((0, 0)), [], euclidean)

    def test_zero_weight_contributes_nothing(self):
        nodes = nodes_at((0, 0), (100, 0), weights=[1.0, 0.0])
        assert assign(nodes, [Point.of(0, 0)], euclidean).cost == 0.0


class TestAssignmentAggregates:
    """Tests for the Assignment helpers."""

    @pytest.fixture
    def nodes(self):
        return nodes_at((0, 0), (2, 0), (10, 0), (12, 0), weights=[1.0, 2.0, 3.0, 4.0])

    @pytest.fixture
    def assignment(self, nodes):
        return assign(nodes, [Point.of(0, 0), Point.of(50, 50), Point.of(10, 0)], euclidean)

    def test_clusters(self, assignment):
        assert assignment.clusters() == [[0, 1], [], [2, 3]]

    def test_cluster_sizes(self, assignment):
        assert assignment.cluster_sizes() == [2, 0, 2]

    def test_empty_clusters(self, assignment):
        assert assignment.empty_clusters() == [1]

    def test_cluster_costs(self, assignment, nodes):
        assert assignment.cluster_costs(nodes) == [4.0, 0.0, 8.0]
        assert math.fsum(assignment.cluster_costs(nodes)) == assignment.cost

    def test_cluster_weights(self, assignment, nodes):
        assert assignment.cluster_weights(nodes) == [3.0, 0.0, 7.0]

    def test_frozen(self, assignment):
        with pytest.raises(AttributeError):
            assignment.cost = 0.0

    def test_is_assignment(self, assignment):
        assert isinstance(assignment, Assignment)
