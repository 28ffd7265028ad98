"""
Continuous median updates (geometric median).

Two refinement methods are provided:

WeiszfeldUpdate
    Weighted Weiszfeld iterations. Each step moves the estimate to the
    average of the members weighted by weight / distance. When the estimate
    coincides with a member the plain step divides by zero; in that case
    the Vardi-Zhang step is used instead, which either proves the estimate
    optimal or moves off the member. Distances below the configured
    "zero_distance" tolerance count as coincident. Euclidean metric only.

PatternSearchUpdate
    Compass search: try a step along +/- each axis, accept the first move
    that lowers the cost, halve the step when none does. Slower than
    Weiszfeld but works for any metric.

Both methods start from the cheaper of the incumbent and the members'
weighted centroid, and a result that is not strictly cheaper than the
incumbent is discarded by the base class.

References:
----------
- Weiszfeld, E. (1937). Sur le point pour lequel la somme des distances
  de n points donnes est minimum.
- Vardi, Y., & Zhang, C.-H. (2000). The multivariate L1-median and
  associated data depth. PNAS 97(4).
"""

import math
from typing import Callable, List, Optional, Sequence, Tuple

from stationplan.config import config
from stationplan.core.point import Point, ResourceNode
from stationplan.update.base import CenterUpdate


def weighted_centroid(members: Sequence[ResourceNode]) -> Optional[Point]:
    """Weighted mean position of the members (None if all weights are 0)."""
    total = math.fsum(m.weight for m in members)
    if total <= 0:
        return None
    dim = members[0].point.dim
    return Point(tuple(
        math.fsum(m.weight * m.point[d] for m in members) / total
        for d in range(dim)
    ))


class _ContinuousUpdate(CenterUpdate):
    """Shared start-point selection for continuous refinements."""

    def _start(
        self,
        members: Sequence[ResourceNode],
        incumbent: Point,
        incumbent_cost: float,
    ) -> Tuple[Point, float]:
        centroid = weighted_centroid(members)
        if centroid is not None:
            centroid_cost = self.cluster_cost(members, centroid)
            if centroid_cost < incumbent_cost:
                return centroid, centroid_cost
        return incumbent, incumbent_cost


class WeiszfeldUpdate(_ContinuousUpdate):
    """
    Geometric median by weighted Weiszfeld iterations.

    Args:
        distance: Euclidean metric (used to score the result)
        max_steps: Refinement steps per update
        tolerance: Stop when the estimate moves less than this
        epsilon: Distance below which the estimate coincides with a member
            (default: the global "zero_distance" tolerance)
    """

    def __init__(
        self,
        distance: Callable[[Point, Point], float],
        max_steps: int = 100,
        tolerance: Optional[float] = None,
        epsilon: Optional[float] = None,
    ):
        super().__init__(distance)
        self._max_steps = max_steps
        self._tolerance = tolerance if tolerance is not None else config.get_tolerance("refinement")
        self._epsilon = epsilon if epsilon is not None else config.get_tolerance("zero_distance")
        self._num_steps = 0
        self._num_coincident_steps = 0

    @property
    def num_steps(self) -> int:
        """Total Weiszfeld steps taken."""
        return self._num_steps

    @property
    def num_coincident_steps(self) -> int:
        """Steps where the estimate sat on a member (Vardi-Zhang branch)."""
        return self._num_coincident_steps

    def step(self, members: Sequence[ResourceNode], y: List[float]) -> Optional[List[float]]:
        """
        One Weiszfeld step from y.

        Returns:
            The next estimate, or None when y is already optimal
        """
        dim = len(y)
        numerator = [0.0] * dim
        pull = [0.0] * dim
        denominator = 0.0
        coincident_weight = 0.0

        for m in members:
            x = m.point.coords
            d = math.dist(x, y)
            if d <= self._epsilon:
                coincident_weight += m.weight
                continue
            w = m.weight / d
            denominator += w
            for i in range(dim):
                numerator[i] += w * x[i]
                pull[i] += w * (x[i] - y[i])

        if denominator <= 0.0:
            # Every member with weight sits on y
            return None

        target = [n / denominator for n in numerator]
        if coincident_weight <= 0.0:
            return target

        self._num_coincident_steps += 1
        r = math.hypot(*pull)
        if r <= coincident_weight:
            # Pull of the other members cannot overcome the coincident weight
            return None
        beta = coincident_weight / r
        return [(1.0 - beta) * t + beta * yi for t, yi in zip(target, y)]

    def _update_impl(
        self,
        members: Sequence[ResourceNode],
        incumbent: Point,
        incumbent_cost: float,
    ) -> Optional[Point]:
        start, _ = self._start(members, incumbent, incumbent_cost)
        y = list(start.coords)

        for _ in range(self._max_steps):
            self._num_steps += 1
            nxt = self.step(members, y)
            if nxt is None:
                break
            moved = math.dist(nxt, y)
            y = nxt
            if moved <= self._tolerance:
                break

        return Point(tuple(y))


class PatternSearchUpdate(_ContinuousUpdate):
    """
    Geometric median by compass search.

    Args:
        distance: Any metric
        max_polls: Polls per update (one poll tries every direction once)
        min_step: Stop once the step shrinks below this
        initial_step: First step length (default: half the largest extent
            of the members and the incumbent)
    """

    def __init__(
        self,
        distance: Callable[[Point, Point], float],
        max_polls: int = 100,
        min_step: Optional[float] = None,
        initial_step: Optional[float] = None,
    ):
        super().__init__(distance)
        self._max_polls = max_polls
        self._min_step = min_step if min_step is not None else config.get_tolerance("refinement")
        self._initial_step = initial_step
        self._num_polls = 0

    @property
    def num_polls(self) -> int:
        return self._num_polls

    def _initial_step_for(self, members: Sequence[ResourceNode], start: Point) -> float:
        if self._initial_step is not None:
            return self._initial_step
        points = [m.point for m in members] + [start]
        extent = max(
            max(p[d] for p in points) - min(p[d] for p in points)
            for d in range(start.dim)
        )
        return extent / 2.0

    def _update_impl(
        self,
        members: Sequence[ResourceNode],
        incumbent: Point,
        incumbent_cost: float,
    ) -> Optional[Point]:
        y, cost = self._start(members, incumbent, incumbent_cost)
        step = self._initial_step_for(members, y)
        dim = y.dim

        polls = 0
        while step > self._min_step and polls < self._max_polls:
            polls += 1
            moved = False
            for d in range(dim):
                for sign in (1.0, -1.0):
                    coords = list(y.coords)
                    coords[d] += sign * step
                    candidate = Point(tuple(coords))
                    candidate_cost = self.cluster_cost(members, candidate)
                    if self.improves(candidate_cost, cost):
                        y, cost = candidate, candidate_cost
                        moved = True
                        break
                if moved:
                    break
            if not moved:
                step *= 0.5

        self._num_polls += polls
        return y
