"""
Integration tests: end-to-end station placement.

These tests exercise the full pipeline (problem -> solver -> solution ->
report) on small hand-checkable layouts and on reproducible random
instances.
"""

import itertools
import math
import warnings

import pytest

from stationplan import (
    DegenerateClusterWarning,
    KMedianConfig,
    KMedianProblem,
    KMedianSolver,
    LocalSearch,
    NetworkMetric,
    Point,
    TerminationReason,
    build_report,
)
from stationplan.assignment import assign, nearest_center


# =============================================================================
# Hand-checkable layouts
# =============================================================================


class TestSquareLayout:
    """Four equal nodes on the corners of a square, one station."""

    @pytest.mark.parametrize("seeding", ["uniform", "farthest-point", "bounding-box"])
    def test_continuous_center(self, square_problem, seeding):
        config = KMedianConfig(candidate_policy="continuous", seeding=seeding, random_seed=4)
        solution = KMedianSolver(square_problem, config).solve()

        assert solution.is_converged
        center = solution.centers[0]
        assert center.x == pytest.approx(5.0, abs=1e-6)
        assert center.y == pytest.approx(5.0, abs=1e-6)
        assert solution.cost == pytest.approx(4 * 7.0710678, rel=1e-6)

    def test_pattern_search_center(self, square_problem):
        config = KMedianConfig(
            candidate_policy="continuous",
            continuous_method="pattern",
            random_seed=4,
        )
        solution = KMedianSolver(square_problem, config).solve()
        assert solution.cost == pytest.approx(4 * math.sqrt(50), rel=1e-6)

    def test_discrete_center_is_corner(self, square_problem):
        solution = KMedianSolver(square_problem, KMedianConfig(random_seed=4)).solve()
        assert solution.centers[0] in square_problem.distinct_positions
        assert solution.cost == pytest.approx(20.0 + 10.0 * math.sqrt(2))


class TestOneStationPerNode:
    """k equal to the number of distinct positions."""

    def test_discrete(self):
        coords = [(0, 0), (5, 1), (2, 8), (9, 9), (4, 4)]
        problem = KMedianProblem.from_coordinates(coords, k=5)
        solution = KMedianSolver(problem, KMedianConfig(random_seed=0)).solve()

        assert solution.cost == 0.0
        assert sorted(solution.labels) == [0, 1, 2, 3, 4]
        assert set(solution.centers) == set(problem.distinct_positions)

    def test_duplicates(self):
        problem = KMedianProblem.from_coordinates([(0, 0), (3, 3), (0, 0), (3, 3)], k=2)
        solution = KMedianSolver(problem, KMedianConfig(random_seed=0)).solve()
        assert solution.cost == 0.0

    def test_continuous_with_extra_stations(self):
        problem = KMedianProblem.from_coordinates([(0, 0), (3, 3)], k=4)
        config = KMedianConfig(candidate_policy="continuous", random_seed=0)
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", DegenerateClusterWarning)
            solution = KMedianSolver(problem, config).solve()
        assert solution.cost == 0.0
        assert solution.k == 4


class TestDegenerateSeeding:
    """Two centers seeded on the same coordinate."""

    @pytest.mark.parametrize("policy", ["retain", "reseed-farthest", "reseed-random"])
    def test_recovers(self, clustered_problem, policy):
        config = KMedianConfig(empty_cluster_policy=policy, random_seed=0)
        solver = KMedianSolver(clustered_problem, config)
        solver.set_initial_centers([(0, 0), (0, 0), (100, 0)])

        with pytest.warns(DegenerateClusterWarning):
            solution = solver.solve()

        assert solution.is_solved
        assert solution.k == 3
        assert len(solution.labels) == clustered_problem.num_nodes
        assert solution.cost == pytest.approx(clustered_problem.cost_of(solution.centers))

        if policy != "retain":
            assert 0 not in solution.assignment.cluster_sizes()

    def test_reseed_farthest_finds_all_clusters(self, clustered_problem):
        solver = KMedianSolver(clustered_problem, KMedianConfig(random_seed=0))
        solver.set_initial_centers([(0, 0), (0, 0), (100, 0)])

        with pytest.warns(DegenerateClusterWarning):
            solution = solver.solve()

        assert solution.is_converged
        assert solution.cost == pytest.approx(12.0)
        assert sorted(c.coords for c in solution.centers) == [(0.0, 0.0), (0.0, 100.0), (100.0, 0.0)]

    def test_warning_names_policy(self, clustered_problem):
        run = LocalSearch(clustered_problem, KMedianConfig())
        run.set_initial_centers([(0, 0), (0, 0), (100, 0)])
        with pytest.warns(DegenerateClusterWarning, match="reseed-farthest"):
            result = run.run()
        assert result.empty_cluster_events == 1


class TestRailNetwork:
    """Discrete placement under a shortest-path metric."""

    def test_two_towns(self):
        a, b, c = Point.of(0, 0), Point.of(1, 0), Point.of(2, 0)
        d, e, f = Point.of(50, 0), Point.of(51, 0), Point.of(52, 0)
        rails = NetworkMetric([
            (a, b, 1.0), (b, c, 1.0),
            (c, d, 100.0),
            (d, e, 1.0), (e, f, 1.0),
        ])
        problem = KMedianProblem.from_coordinates([a, b, c, d, e, f], k=2, metric=rails)

        config = KMedianConfig(seeding="farthest-point", restarts=3, random_seed=1)
        solution = KMedianSolver(problem, config).solve()

        assert set(solution.centers) == {b, e}
        assert solution.cost == 4.0


# =============================================================================
# Properties on random instances
# =============================================================================


SEEDS = [0, 1, 2, 3, 4]


class TestRandomInstances:
    """Invariants that hold for every run."""

    @pytest.mark.parametrize("seed", SEEDS)
    @pytest.mark.parametrize("policy", ["discrete", "continuous"])
    def test_cost_non_increasing(self, random_problem_factory, seed, policy):
        problem = random_problem_factory(seed)
        config = KMedianConfig(candidate_policy=policy, restarts=3, random_seed=seed)
        solution = KMedianSolver(problem, config).solve()

        for run in solution.runs:
            history = run.get_convergence_history()
            assert all(b <= a for a, b in zip(history, history[1:]))

    @pytest.mark.parametrize("seed", SEEDS)
    def test_every_node_on_nearest_station(self, random_problem_factory, seed):
        problem = random_problem_factory(seed)
        solution = KMedianSolver(problem, KMedianConfig(random_seed=seed)).solve()

        for node, label in zip(problem.nodes, solution.labels):
            index, _ = nearest_center(node.point, solution.centers, problem.distance)
            assert label == index

        expected = math.fsum(
            node.weight * problem.distance(node.point, solution.centers[label])
            for node, label in zip(problem.nodes, solution.labels)
        )
        assert solution.cost == pytest.approx(expected)

    @pytest.mark.parametrize("seed", SEEDS)
    @pytest.mark.parametrize("scope", ["cluster", "all"])
    def test_discrete_centers_are_node_positions(self, random_problem_factory, seed, scope):
        problem = random_problem_factory(seed)
        config = KMedianConfig(candidate_scope=scope, random_seed=seed)
        solution = KMedianSolver(problem, config).solve()
        assert set(solution.centers) <= set(problem.distinct_positions)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_assignment_deterministic(self, random_problem_factory, seed):
        problem = random_problem_factory(seed)
        solution = KMedianSolver(problem, KMedianConfig(random_seed=seed)).solve()

        again = assign(problem.nodes, solution.centers, problem.distance)
        assert again == solution.assignment

    @pytest.mark.parametrize("seed", SEEDS)
    def test_continuous_refines_discrete(self, random_problem_factory, seed):
        """A continuous run warm started from a discrete solution never does worse."""
        problem = random_problem_factory(seed)
        discrete = KMedianSolver(problem, KMedianConfig(random_seed=seed)).solve()

        solver = KMedianSolver(problem, KMedianConfig(candidate_policy="continuous", random_seed=seed))
        solver.set_initial_centers(discrete.centers)
        continuous = solver.solve()

        assert continuous.runs[0].cost <= discrete.cost

    def test_single_station_is_exact(self, random_problem_factory):
        """With k=1 and every position as candidate, one update is optimal."""
        problem = random_problem_factory(7, n=25, k=1)
        solution = KMedianSolver(problem, KMedianConfig(candidate_scope="all", random_seed=7)).solve()

        best = min(problem.cost_of([p]) for p in problem.distinct_positions)
        assert solution.cost == pytest.approx(best)

    def test_two_stations_against_brute_force(self, random_problem_factory):
        problem = random_problem_factory(8, n=10, k=2)
        config = KMedianConfig(seeding="farthest-point", restarts=10, random_seed=8)
        solution = KMedianSolver(problem, config).solve()

        best = min(
            problem.cost_of(list(pair))
            for pair in itertools.combinations(problem.distinct_positions, 2)
        )
        assert solution.cost >= best - 1e-9
        assert solution.cost <= problem.cost_of(solution.runs[0].centers) + 1e-9

    def test_more_restarts_never_worse(self, random_problem_factory):
        problem = random_problem_factory(12)
        few = KMedianSolver(problem, KMedianConfig(restarts=2, random_seed=12)).solve()
        many = KMedianSolver(problem, KMedianConfig(restarts=8, random_seed=12)).solve()
        # Restart seeds are a prefix of the same stream
        assert many.restart_costs()[:2] == few.restart_costs()
        assert many.cost <= few.cost

    def test_report_round_trip(self, random_problem):
        solution = KMedianSolver(random_problem, KMedianConfig(restarts=2, random_seed=0)).solve()
        report = build_report(random_problem, solution)

        assert report.total_cost == solution.cost
        assert sum(s.num_nodes for s in report.stations) == random_problem.num_nodes
        assert math.fsum(s.total_weight for s in report.stations) == pytest.approx(
            random_problem.total_weight
        )


@pytest.mark.slow
class TestLargerInstances:
    """Larger random instances with parallel restarts."""

    def test_parallel_restarts(self, random_problem_factory):
        problem = random_problem_factory(31, n=400, k=8)
        config = KMedianConfig(
            seeding="farthest-point",
            restarts=4,
            num_workers=2,
            random_seed=31,
        )
        solution = KMedianSolver(problem, config).solve()

        assert solution.num_restarts == 4
        assert solution.reason in (TerminationReason.CONVERGED, TerminationReason.ITERATION_LIMIT)
        assert solution.cost == min(solution.restart_costs())
        for run in solution.runs:
            history = run.get_convergence_history()
            assert all(b <= a for a, b in zip(history, history[1:]))

    def test_continuous_beats_or_matches_discrete_on_average(self, random_problem_factory):
        total_discrete = 0.0
        total_continuous = 0.0
        for seed in range(3):
            problem = random_problem_factory(100 + seed, n=200, k=5)
            discrete = KMedianSolver(problem, KMedianConfig(random_seed=seed)).solve()
            solver = KMedianSolver(problem, KMedianConfig(candidate_policy="continuous", random_seed=seed))
            solver.set_initial_centers(discrete.centers)
            continuous = solver.solve()
            total_discrete += discrete.cost
            total_continuous += continuous.cost
        assert total_continuous <= total_discrete
