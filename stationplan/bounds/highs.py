"""
HiGHS lower bound for the k-median problem.

The local search only guarantees a local optimum. To judge how far that
is from the best possible placement, this module solves the LP
relaxation of the classical discrete p-median model with HiGHS:

    min  sum_ij w_i d_ij x_ij
    s.t. sum_j x_ij = 1          for every position i
         x_ij <= y_j             for every pair (i, j)
         sum_j y_j = k
         0 <= x, y <= 1

Positions are the distinct node positions; nodes sharing a position are
merged by summing their weights. The LP optimum bounds the discrete
optimum from below. For the continuous policy it is halved: moving each
continuous center onto its nearest cluster member at most doubles the
cost, so the discrete optimum is at most twice the continuous one.

The model has m^2 + m columns for m distinct positions, so it is meant
for modest instances; max_positions guards against accidental huge
models.

Usage:
    >>> from stationplan.bounds import compute_lower_bound
    >>> bound = compute_lower_bound(problem, CandidatePolicy.DISCRETE)
    >>> bound.value
    34.14...
"""

import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Optional

try:
    import highspy
    HIGHS_AVAILABLE = True
except ImportError:
    HIGHS_AVAILABLE = False

from stationplan.core.point import Point
from stationplan.core.problem import KMedianProblem
from stationplan.update.base import CandidatePolicy


class BoundStatus(Enum):
    """Status of the lower-bound computation."""
    OPTIMAL = auto()      # LP solved to optimality
    TRIVIAL = auto()      # k covers every position, bound is 0
    TOO_LARGE = auto()    # Skipped: more positions than max_positions
    ERROR = auto()        # HiGHS did not reach optimality


@dataclass
class LowerBound:
    """
    Result of a lower-bound computation.

    Attributes:
        status: Computation status
        value: Lower bound on the optimal cost (None unless OPTIMAL/TRIVIAL)
        lp_objective: Raw LP optimum (before halving for continuous)
        num_positions: Distinct positions in the model
        solve_time: Seconds spent in HiGHS
    """
    status: BoundStatus
    value: Optional[float] = None
    lp_objective: Optional[float] = None
    num_positions: int = 0
    solve_time: float = 0.0

    @property
    def has_value(self) -> bool:
        return self.value is not None


def _aggregate_weights(problem: KMedianProblem) -> Dict[Point, float]:
    weights: Dict[Point, float] = {p: 0.0 for p in problem.distinct_positions}
    for node in problem.nodes:
        weights[node.point] += node.weight
    return weights


def compute_lower_bound(
    problem: KMedianProblem,
    policy: CandidatePolicy = CandidatePolicy.DISCRETE,
    max_positions: int = 400,
    verbosity: int = 0,
) -> LowerBound:
    """
    Compute an LP lower bound on the optimal k-median cost.

    Args:
        problem: The problem
        policy: Candidate policy the bound should hold for
        max_positions: Skip (TOO_LARGE) above this many distinct positions
        verbosity: HiGHS output level (0 = silent)

    Returns:
        LowerBound

    Raises:
        ImportError: If highspy is not installed
    """
    positions = list(problem.distinct_positions)
    m = len(positions)

    if problem.k >= m:
        return LowerBound(BoundStatus.TRIVIAL, value=0.0, lp_objective=0.0, num_positions=m)
    if m > max_positions:
        return LowerBound(BoundStatus.TOO_LARGE, num_positions=m)

    if not HIGHS_AVAILABLE:
        raise ImportError(
            "HiGHS is not available. Install it with: pip install highspy"
        )

    start = time.time()
    weights = _aggregate_weights(problem)

    h = highspy.Highs()
    h.setOptionValue('output_flag', verbosity > 0)
    h.setOptionValue('log_to_console', verbosity > 0)
    h.changeObjectiveSense(highspy.ObjSense.kMinimize)

    inf = highspy.kHighsInf

    # Rows 0..m-1: each position assigned exactly once
    for _ in range(m):
        h.addRow(1.0, 1.0, 0, [], [])

    # Rows m + i*m + j: x_ij - y_j <= 0
    for _ in range(m * m):
        h.addRow(-inf, 0.0, 0, [], [])

    # Last row: exactly k open positions
    card_row = m + m * m
    h.addRow(float(problem.k), float(problem.k), 0, [], [])

    # x_ij columns
    for i, p in enumerate(positions):
        for j, q in enumerate(positions):
            cost = weights[p] * problem.distance(p, q)
            h.addCol(cost, 0.0, 1.0, 2, [i, m + i * m + j], [1.0, 1.0])

    # y_j columns
    for j in range(m):
        indices: List[int] = [m + i * m + j for i in range(m)] + [card_row]
        values: List[float] = [-1.0] * m + [1.0]
        h.addCol(0.0, 0.0, 1.0, len(indices), indices, values)

    h.run()
    status = h.getModelStatus()
    solve_time = time.time() - start

    if status != highspy.HighsModelStatus.kOptimal:
        return LowerBound(BoundStatus.ERROR, num_positions=m, solve_time=solve_time)

    lp_objective = max(0.0, h.getInfo().objective_function_value)
    value = lp_objective / 2.0 if policy == CandidatePolicy.CONTINUOUS else lp_objective

    return LowerBound(
        BoundStatus.OPTIMAL,
        value=value,
        lp_objective=lp_objective,
        num_positions=m,
        solve_time=solve_time,
    )
