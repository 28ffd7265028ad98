"""
Problem module - the container for a k-median instance.

KMedianProblem ties together:
- The resource nodes (weighted demand points)
- The number of stations k
- The distance metric

It is a container, not a solver. Solving is delegated to
stationplan.solver.KMedianSolver, which never mutates the problem.

Validation happens here, at construction, so a solve never starts on
input that cannot be solved: k must be a positive integer, there must be
at least one node, and all nodes must share one dimension. Point and
ResourceNode already reject non-finite coordinates and bad weights.

Usage:
    >>> problem = KMedianProblem.from_pairs(
    ...     [((0, 0), 1.0), ((0, 10), 1.0), ((10, 0), 2.0)],
    ...     k=2,
    ... )
    >>> problem.num_nodes
    3
"""

import math
from typing import Iterable, List, Optional, Sequence, Tuple

from stationplan.core.errors import InvalidInputError
from stationplan.core.metric import Metric, checked_metric, euclidean
from stationplan.core.point import Point, PointLike, ResourceNode, as_point


class KMedianProblem:
    """
    A weighted k-median instance.

    Attributes:
        nodes: Ordered tuple of ResourceNodes
        k: Number of stations to place
        metric: Distance function (validated on every call)
        name: Optional instance name

    Example:
        >>> nodes = [ResourceNode(Point.of(x, y)) for x, y in [(0, 0), (4, 0)]]
        >>> problem = KMedianProblem(nodes, k=1)
        >>> problem.cost_of([Point.of(2, 0)])
        4.0
    """

    def __init__(
        self,
        nodes: Sequence[ResourceNode],
        k: int,
        metric: Metric = euclidean,
        name: str = "",
    ):
        if isinstance(k, bool) or not isinstance(k, int):
            raise InvalidInputError(f"k must be an integer, got {k!r}")
        if k < 1:
            raise InvalidInputError(f"k must be at least 1, got {k}")

        nodes = tuple(nodes)
        if not nodes:
            raise InvalidInputError("At least one resource node is required")
        for node in nodes:
            if not isinstance(node, ResourceNode):
                raise InvalidInputError(f"Expected ResourceNode, got {type(node).__name__}")

        dims = {node.point.dim for node in nodes}
        if len(dims) > 1:
            raise InvalidInputError(f"Nodes have mixed dimensions: {sorted(dims)}")

        self._nodes = nodes
        self._k = k
        self._metric = metric
        self._distance = checked_metric(metric)
        self._name = name

        # Distinct positions in first-occurrence order
        seen = {}
        for node in nodes:
            seen.setdefault(node.point, None)
        self._distinct_positions: Tuple[Point, ...] = tuple(seen)

    @classmethod
    def from_pairs(
        cls,
        pairs: Iterable[Tuple[PointLike, float]],
        k: int,
        metric: Metric = euclidean,
        name: str = "",
    ) -> 'KMedianProblem':
        """
        Build a problem from (point, weight) pairs.

        Args:
            pairs: Iterable of (Point or coordinate sequence, weight)
            k: Number of stations
            metric: Distance function
            name: Optional instance name
        """
        nodes = [ResourceNode(as_point(p), w) for p, w in pairs]
        return cls(nodes, k, metric=metric, name=name)

    @classmethod
    def from_coordinates(
        cls,
        coordinates: Iterable[PointLike],
        k: int,
        weights: Optional[Sequence[float]] = None,
        metric: Metric = euclidean,
        name: str = "",
    ) -> 'KMedianProblem':
        """Build a problem from coordinates with optional weights (default 1)."""
        points = [as_point(c) for c in coordinates]
        if weights is None:
            weights = [1.0] * len(points)
        if len(weights) != len(points):
            raise InvalidInputError(
                f"Got {len(weights)} weights for {len(points)} coordinates"
            )
        return cls.from_pairs(zip(points, weights), k, metric=metric, name=name)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def nodes(self) -> Tuple[ResourceNode, ...]:
        return self._nodes

    @property
    def k(self) -> int:
        return self._k

    @property
    def metric(self) -> Metric:
        """The user-supplied metric (unwrapped)."""
        return self._metric

    @property
    def name(self) -> str:
        return self._name

    @property
    def num_nodes(self) -> int:
        return len(self._nodes)

    @property
    def dimension(self) -> int:
        return self._nodes[0].point.dim

    @property
    def positions(self) -> List[Point]:
        """Node positions in node order (duplicates kept)."""
        return [node.point for node in self._nodes]

    @property
    def distinct_positions(self) -> Tuple[Point, ...]:
        """Distinct node positions in first-occurrence order."""
        return self._distinct_positions

    @property
    def num_distinct_positions(self) -> int:
        return len(self._distinct_positions)

    @property
    def total_weight(self) -> float:
        return math.fsum(node.weight for node in self._nodes)

    # =========================================================================
    # Helpers
    # =========================================================================

    def distance(self, a: Point, b: Point) -> float:
        """Distance between two points under the problem's metric."""
        return self._distance(a, b)

    def cost_of(self, centers: Sequence[Point]) -> float:
        """
        Total weighted distance with every node served by its nearest center.

        Args:
            centers: Candidate station positions (at least one)
        """
        if not centers:
            raise InvalidInputError("At least one center is required")
        return math.fsum(
            node.weight * min(self._distance(node.point, c) for c in centers)
            for node in self._nodes
        )

    def bounding_box(self) -> Tuple[Point, Point]:
        """
        Axis-aligned bounding box of the node positions.

        Returns:
            (lower corner, upper corner)
        """
        dims = range(self.dimension)
        lower = Point(tuple(min(n.point[d] for n in self._nodes) for d in dims))
        upper = Point(tuple(max(n.point[d] for n in self._nodes) for d in dims))
        return lower, upper

    def validate_discrete(self) -> None:
        """
        Check that k stations fit on distinct node positions.

        Raises:
            InvalidInputError: If k exceeds the number of distinct positions
        """
        if self._k > self.num_distinct_positions:
            raise InvalidInputError(
                f"k={self._k} exceeds the {self.num_distinct_positions} distinct "
                f"node positions available to the discrete policy"
            )

    def with_k(self, k: int) -> 'KMedianProblem':
        """Return a copy of this problem with a different k."""
        return KMedianProblem(self._nodes, k, metric=self._metric, name=self._name)

    def __repr__(self) -> str:
        name = f"{self._name!r}, " if self._name else ""
        return f"KMedianProblem({name}nodes={self.num_nodes}, k={self._k})"
