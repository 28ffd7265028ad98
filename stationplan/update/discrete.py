"""
Discrete median update.

The new center is the candidate position minimising the weighted sum of
distances to the cluster members. Candidates are either the positions of
the cluster's own members (CandidateScope.CLUSTER) or every distinct node
position of the problem (CandidateScope.ALL, more accurate but costlier).

Exact selection evaluates every candidate against every member, which is
O(m * c) distance evaluations for m members and c candidates. Since weights
are non-negative, a candidate's partial sum only grows, so evaluation stops
as soon as it exceeds the best total found so far.

Ties between candidates resolve to the lowest candidate index, even when
the incumbent is one of the tied candidates. Totals are computed with
math.fsum, which is independent of summation order, so symmetric
candidates tie exactly. Totals within the "comparison" tolerance of the
best also count as tied, but a tied candidate only replaces the incumbent
when its total is not higher. A tied move leaves the cost unchanged, so
the local search treats it as no improvement.
"""

import math
from typing import Callable, List, Optional, Sequence

from stationplan.config import config
from stationplan.core.point import Point, ResourceNode
from stationplan.update.base import CenterUpdate


class DiscreteMedianUpdate(CenterUpdate):
    """
    Median restricted to a discrete candidate set.

    Example:
        >>> update = DiscreteMedianUpdate(problem.distance)
        >>> update.update(members, incumbent=members[0].point)
        Point(5, 0)

    Args:
        distance: Metric
        candidates: Fixed candidate positions (CandidateScope.ALL); when
            None the members' own distinct positions are used
    """

    def __init__(
        self,
        distance: Callable[[Point, Point], float],
        candidates: Optional[Sequence[Point]] = None,
    ):
        super().__init__(distance)
        self._candidates = tuple(candidates) if candidates is not None else None
        self._num_evaluations = 0

    @property
    def candidates(self) -> Optional[Sequence[Point]]:
        """Fixed candidate set, or None when candidates come from the cluster."""
        return self._candidates

    @property
    def num_evaluations(self) -> int:
        """Distance evaluations spent on candidate scoring."""
        return self._num_evaluations

    def candidates_for(self, members: Sequence[ResourceNode]) -> List[Point]:
        """Candidate positions for a cluster, in candidate-index order."""
        if self._candidates is not None:
            return list(self._candidates)

        seen = {}
        for m in members:
            seen.setdefault(m.point, None)
        return list(seen)

    def _score(self, members: Sequence[ResourceNode], candidate: Point, bound: float) -> float:
        """Exact cost of a candidate, or inf once it provably exceeds bound."""
        running = 0.0
        terms = []
        for m in members:
            term = m.weight * self._distance(m.point, candidate)
            self._num_evaluations += 1
            running += term
            terms.append(term)
            if running > bound:
                return math.inf
        return math.fsum(terms)

    def accepts(self, candidate_cost: float, incumbent_cost: float) -> bool:
        """Take any candidate that does not raise the cluster cost."""
        return candidate_cost <= incumbent_cost

    def _update_impl(
        self,
        members: Sequence[ResourceNode],
        incumbent: Point,
        incumbent_cost: float,
    ) -> Optional[Point]:
        candidates = self.candidates_for(members)
        margin = config.get_tolerance("comparison") * max(1.0, incumbent_cost)

        costs = []
        best_cost = math.inf
        for candidate in candidates:
            # Pruning bound stays above anything that could tie the best
            bound = min(best_cost, incumbent_cost) + margin
            cost = self._score(members, candidate, bound)
            costs.append(cost)
            best_cost = min(best_cost, cost)

        if best_cost == math.inf:
            return None

        # Lowest candidate index among those tied with the best
        for candidate, cost in zip(candidates, costs):
            if cost <= best_cost + margin:
                return candidate
        return None
