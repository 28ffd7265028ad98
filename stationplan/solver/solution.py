"""
Local-search solution module.

This module defines the data structures for representing the results of
the k-median local search: one RunResult per restart and one Solution
holding the best run plus the history of all of them.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from stationplan.assignment import Assignment
from stationplan.core.point import Point


class TerminationReason(Enum):
    """
    Why a local-search run stopped.
    """
    CONVERGED = auto()         # Improvement fell below min_improvement
    ITERATION_LIMIT = auto()   # Iteration cap reached first
    TIME_LIMIT = auto()        # Wall-clock limit reached
    CANCELLED = auto()         # Callback or external stop signal
    NOT_SOLVED = auto()        # Not yet solved


@dataclass
class SearchIteration:
    """
    Information about a single assignment / center-update iteration.

    Attributes:
        iteration: Iteration number (1-based)
        cost: Total cost after the iteration's reassignment
        improvement: Cost decrease relative to the previous iteration
        centers_moved: Number of centers that changed position
        empty_clusters: Number of empty clusters resolved this iteration
        elapsed: Seconds since the run started
    """
    iteration: int
    cost: float
    improvement: float
    centers_moved: int
    empty_clusters: int = 0
    elapsed: float = 0.0


@dataclass
class RunResult:
    """
    Result of one Seeding -> Iterating -> Converged run.

    Attributes:
        restart: Restart index within the solve
        seed: Seed of the run's random source (None if unseeded)
        centers: Final centers (ordered, length k)
        assignment: Final nearest-center assignment
        cost: Final total cost
        initial_cost: Cost of the seeded centers
        iterations: Number of iterations performed
        reason: Termination reason
        history: Per-iteration records
        empty_cluster_events: Empty clusters resolved during the run
        solve_time: Seconds spent in the run
    """
    restart: int = 0
    seed: Optional[int] = None
    centers: List[Point] = field(default_factory=list)
    assignment: Optional[Assignment] = None
    cost: float = float('inf')
    initial_cost: float = float('inf')
    iterations: int = 0
    reason: TerminationReason = TerminationReason.NOT_SOLVED
    history: List[SearchIteration] = field(default_factory=list)
    empty_cluster_events: int = 0
    solve_time: float = 0.0

    @property
    def is_converged(self) -> bool:
        return self.reason == TerminationReason.CONVERGED

    def get_convergence_history(self) -> List[float]:
        """Cost after each iteration, preceded by the seeded cost."""
        return [self.initial_cost] + [it.cost for it in self.history]

    def __repr__(self) -> str:
        return (
            f"RunResult(restart={self.restart}, {self.reason.name}, "
            f"cost={self.cost:.4f}, iter={self.iterations})"
        )


@dataclass
class Solution:
    """
    Result of a k-median solve: the best of all restarts.

    Attributes:
        centers: Best centers found (ordered, length k)
        assignment: Nearest-center assignment for the best centers
        cost: Total weighted cost of the best run
        iterations: Iterations used by the best run
        reason: Termination reason of the best run
        best_restart: Index of the best run
        runs: All completed runs in restart order
        lower_bound: LP lower bound on the optimal cost (if computed)
        gap: Relative gap between cost and lower bound (if computed)
        total_time: Wall-clock seconds for the whole solve
        metadata: Additional info (configuration echo etc.)

    Example:
        >>> solution = solver.solve()
        >>> if solution.is_converged:
        ...     for i, c in enumerate(solution.centers):
        ...         print(f"  station {i}: {c}")
    """
    centers: List[Point] = field(default_factory=list)
    assignment: Optional[Assignment] = None
    cost: float = float('inf')
    iterations: int = 0
    reason: TerminationReason = TerminationReason.NOT_SOLVED
    best_restart: Optional[int] = None
    runs: List[RunResult] = field(default_factory=list)
    lower_bound: Optional[float] = None
    gap: Optional[float] = None
    total_time: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_runs(cls, runs: List[RunResult]) -> 'Solution':
        """
        Keep the cheapest run (ties go to the lowest restart index).

        Args:
            runs: Completed runs in any order
        """
        runs = sorted(runs, key=lambda r: r.restart)
        finished = [r for r in runs if r.assignment is not None]
        if not finished:
            return cls(runs=runs)

        best = min(finished, key=lambda r: (r.cost, r.restart))
        return cls(
            centers=list(best.centers),
            assignment=best.assignment,
            cost=best.cost,
            iterations=best.iterations,
            reason=best.reason,
            best_restart=best.restart,
            runs=runs,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def k(self) -> int:
        return len(self.centers)

    @property
    def is_solved(self) -> bool:
        return self.assignment is not None

    @property
    def is_converged(self) -> bool:
        """Best run stopped because the improvement threshold was met."""
        return self.reason == TerminationReason.CONVERGED

    @property
    def hit_iteration_limit(self) -> bool:
        """Best run was stopped by the iteration cap, not by convergence."""
        return self.reason == TerminationReason.ITERATION_LIMIT

    @property
    def labels(self) -> List[int]:
        """Center index for each node, in node order."""
        return list(self.assignment.labels) if self.assignment else []

    @property
    def num_restarts(self) -> int:
        return len(self.runs)

    @property
    def best_run(self) -> Optional[RunResult]:
        for run in self.runs:
            if run.restart == self.best_restart:
                return run
        return None

    # =========================================================================
    # Methods
    # =========================================================================

    def clusters(self) -> List[List[int]]:
        """Node indices grouped by center."""
        return self.assignment.clusters() if self.assignment else []

    def restart_costs(self) -> List[float]:
        """Final cost of each run, in restart order."""
        return [run.cost for run in self.runs]

    def get_convergence_history(self) -> List[float]:
        """Cost trajectory of the best run."""
        best = self.best_run
        return best.get_convergence_history() if best else []

    def summary(self) -> str:
        """
        Return a human-readable summary.

        Returns:
            Summary string
        """
        lines = [
            "k-median Solution:",
            f"  Termination: {self.reason.name}",
            f"  Cost: {self.cost:.6f}",
        ]

        if self.lower_bound is not None:
            lines.append(f"  Lower bound: {self.lower_bound:.6f}")
        if self.gap is not None:
            lines.append(f"  Gap: {self.gap:.4%}")

        lines.extend([
            "",
            f"  Stations: {self.k}",
            f"  Iterations: {self.iterations}",
            f"  Restarts: {self.num_restarts} (best: {self.best_restart})",
            f"  Total time: {self.total_time:.3f}s",
        ])

        if self.assignment is not None:
            lines.append("")
            sizes = self.assignment.cluster_sizes()
            for i, center in enumerate(self.centers):
                lines.append(f"  [{i}] {center!r}: {sizes[i]} nodes")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"Solution({self.reason.name}, cost={self.cost:.4f}, "
            f"k={self.k}, iter={self.iterations})"
        )
