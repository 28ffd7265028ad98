"""
Solver module - the k-median local-search driver.

This module provides:
- KMedianSolver: Multi-restart controller (best of R runs)
- LocalSearch: A single Seeding -> Iterating -> Converged run
- KMedianConfig: Configuration options
- EmptyClusterPolicy: Handling of centers with no assigned node
- Solution / RunResult / SearchIteration: Result data structures
- TerminationReason: Why a run stopped
- solve_k_median: One-call convenience function

Usage:
------
Basic usage:

    >>> from stationplan.solver import KMedianSolver, KMedianConfig
    >>> config = KMedianConfig(restarts=10, random_seed=42)
    >>> solver = KMedianSolver(problem, config)
    >>> solution = solver.solve()
    >>> if solution.hit_iteration_limit:
    ...     print("raise max_iterations")

With callbacks for monitoring:

    >>> def progress(run, iteration):
    ...     print(f"[{run.restart}] {iteration.iteration}: {iteration.cost:.2f}")
    ...     return True  # keep going
    >>> solver.add_callback(progress)

Configuration Options:
--------------------
- candidate_policy: discrete | continuous
- seeding: uniform | farthest-point | bounding-box
- empty_cluster_policy: retain | reseed-farthest | reseed-random
- max_iterations / min_improvement: Stopping rules per run
- restarts / random_seed / num_workers: Multi-restart control
- max_time: Wall-clock limit for the whole solve
"""

from stationplan.solver.solution import (
    RunResult,
    SearchIteration,
    Solution,
    TerminationReason,
)
from stationplan.solver.local_search import (
    EmptyClusterPolicy,
    KMedianConfig,
    KMedianSolver,
    LocalSearch,
    SearchCallback,
    solve_k_median,
)

__all__ = [
    # Main classes
    'KMedianSolver',
    'LocalSearch',
    'solve_k_median',

    # Configuration
    'KMedianConfig',
    'EmptyClusterPolicy',
    'SearchCallback',

    # Solution
    'Solution',
    'RunResult',
    'SearchIteration',
    'TerminationReason',
]
