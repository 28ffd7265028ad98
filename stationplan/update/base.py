"""
Center-update abstract base class.

A center update takes one non-empty cluster and returns the position that
minimises the sum of weight * distance to its members. The two families
differ in where that position may lie:

- Discrete median: only at resource node positions (true k-median)
- Continuous median: anywhere (geometric median)

Incumbent rule:
--------------
Every update receives the cluster's current center (the incumbent) and
returns it unchanged unless accepts() takes the proposal. Continuous
updates require a strictly cheaper position. The discrete update also
takes an equal-cost candidate with a lower index. Either way the total
cost never increases from one iteration to the next.

Customization Guide:
-------------------
To create a custom update:

1. Subclass CenterUpdate
2. Implement _update_impl(members, incumbent, incumbent_cost)
3. Return a Point; the base class enforces the incumbent rule
4. Override accepts() to change which proposals replace the incumbent
"""

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional, Sequence

from stationplan.config import config
from stationplan.core.errors import InvalidInputError
from stationplan.core.point import Point, ResourceNode


class CandidatePolicy(Enum):
    """Where centers may be placed."""
    DISCRETE = "discrete"       # Only at resource node positions
    CONTINUOUS = "continuous"   # Anywhere in the space


class CandidateScope(Enum):
    """Candidate set for the discrete policy."""
    CLUSTER = "cluster"   # Positions of the cluster's own members
    ALL = "all"           # Every distinct node position in the problem


class ContinuousMethod(Enum):
    """Refinement method for the continuous policy."""
    AUTO = "auto"             # Weiszfeld for Euclidean, pattern search otherwise
    WEISZFELD = "weiszfeld"   # Weighted Weiszfeld iterations (Euclidean only)
    PATTERN = "pattern"       # Compass search with step halving (any metric)


class CenterUpdate(ABC):
    """
    Abstract base class for center-update steps.

    Lifecycle:
    ---------
    1. Create: update = DiscreteMedianUpdate(problem.distance)
    2. For each non-empty cluster: new_center = update.update(members, center)

    Attributes:
        distance: Metric used to evaluate cluster cost
        num_updates: Number of update() calls
        num_moves: Number of calls that returned a new position
    """

    def __init__(self, distance: Callable[[Point, Point], float]):
        self._distance = distance
        self._num_updates = 0
        self._num_moves = 0

    @property
    def distance(self) -> Callable[[Point, Point], float]:
        return self._distance

    @property
    def num_updates(self) -> int:
        return self._num_updates

    @property
    def num_moves(self) -> int:
        return self._num_moves

    def cluster_cost(self, members: Sequence[ResourceNode], center: Point) -> float:
        """Sum of weight * distance from the members to a center."""
        return math.fsum(m.weight * self._distance(m.point, center) for m in members)

    def improves(self, candidate_cost: float, incumbent_cost: float) -> bool:
        """Whether a candidate cost is strictly better than the incumbent's."""
        margin = config.get_tolerance("comparison") * max(1.0, abs(incumbent_cost))
        return candidate_cost < incumbent_cost - margin

    def accepts(self, candidate_cost: float, incumbent_cost: float) -> bool:
        """Whether a proposed center replaces the incumbent (default: improves)."""
        return self.improves(candidate_cost, incumbent_cost)

    def update(self, members: Sequence[ResourceNode], incumbent: Point) -> Point:
        """
        Compute the new center of a cluster.

        Args:
            members: Non-empty cluster
            incumbent: The cluster's current center

        Returns:
            The new center (the incumbent itself if the proposal is not accepted)

        Raises:
            InvalidInputError: If the cluster is empty
        """
        if not members:
            raise InvalidInputError("Center update requires a non-empty cluster")

        self._num_updates += 1
        incumbent_cost = self.cluster_cost(members, incumbent)
        candidate = self._update_impl(members, incumbent, incumbent_cost)

        if candidate is None or candidate == incumbent:
            return incumbent
        if not self.accepts(self.cluster_cost(members, candidate), incumbent_cost):
            return incumbent

        self._num_moves += 1
        return candidate

    @abstractmethod
    def _update_impl(
        self,
        members: Sequence[ResourceNode],
        incumbent: Point,
        incumbent_cost: float,
    ) -> Optional[Point]:
        """
        Propose a new center for the cluster.

        Returns:
            Proposed point, or None to keep the incumbent
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(updates={self._num_updates}, moves={self._num_moves})"
