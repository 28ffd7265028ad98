"""
Tests for the HiGHS lower bound.

This module tests:
- Trivial and oversized instances (no LP solved)
- LP relaxation value on small instances
- Halving for the continuous policy
- Solver integration (lower_bound and gap on the Solution)
"""

import math

import pytest

from stationplan.bounds import HIGHS_AVAILABLE, BoundStatus, compute_lower_bound
from stationplan.core.problem import KMedianProblem
from stationplan.solver import KMedianConfig, KMedianSolver
from stationplan.update import CandidatePolicy


SQUARE_CORNER_COST = 20.0 + 10.0 * math.sqrt(2)


class TestTrivialBounds:
    """Bounds that never reach HiGHS."""

    def test_k_covers_positions(self):
        problem = KMedianProblem.from_coordinates([(0, 0), (1, 1), (0, 0)], k=2)
        bound = compute_lower_bound(problem)
        assert bound.status == BoundStatus.TRIVIAL
        assert bound.value == 0.0
        assert bound.has_value
        assert bound.num_positions == 2

    def test_too_large(self, square_problem):
        bound = compute_lower_bound(square_problem, max_positions=2)
        assert bound.status == BoundStatus.TOO_LARGE
        assert bound.value is None
        assert not bound.has_value


@pytest.mark.skipif(not HIGHS_AVAILABLE, reason="HiGHS not installed")
class TestHiGHSBound:
    """LP relaxation bounds solved with HiGHS."""

    def test_square_discrete_is_tight(self, square_problem):
        bound = compute_lower_bound(square_problem, CandidatePolicy.DISCRETE)
        assert bound.status == BoundStatus.OPTIMAL
        assert bound.value == pytest.approx(SQUARE_CORNER_COST, rel=1e-6)
        assert bound.num_positions == 4

    def test_square_continuous_is_halved(self, square_problem):
        bound = compute_lower_bound(square_problem, CandidatePolicy.CONTINUOUS)
        assert bound.value == pytest.approx(bound.lp_objective / 2.0)
        assert bound.value <= 4 * math.sqrt(50)

    def test_duplicate_positions_merged(self):
        problem = KMedianProblem.from_coordinates([(0, 0), (0, 0), (10, 0), (30, 0)], k=1)
        bound = compute_lower_bound(problem)
        assert bound.num_positions == 3
        # (0, 0) costs 10 + 30 and (10, 0) costs 2*10 + 20
        assert bound.value == pytest.approx(40.0, rel=1e-6)

    def test_bound_below_local_search(self, clustered_problem):
        solution = KMedianSolver(
            clustered_problem, KMedianConfig(seeding="farthest-point", random_seed=0)
        ).solve()
        bound = compute_lower_bound(clustered_problem)
        assert bound.status == BoundStatus.OPTIMAL
        assert bound.value <= solution.cost + 1e-6

    def test_solver_attaches_bound(self, square_problem):
        config = KMedianConfig(random_seed=0, compute_lower_bound=True)
        solution = KMedianSolver(square_problem, config).solve()

        assert solution.lower_bound == pytest.approx(SQUARE_CORNER_COST, rel=1e-6)
        assert solution.gap == pytest.approx(0.0, abs=1e-6)
        assert solution.metadata["lower_bound_status"] == "OPTIMAL"
        assert "Lower bound:" in solution.summary()
