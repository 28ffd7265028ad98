"""
Assignment step - partition resource nodes among the current centers.

Given k centers, every node is assigned to its nearest one. The result is
a pure function of the centers and the nodes: identical input always
produces identical labels and an identical cost.

Tie-break:
---------
When two or more centers are equidistant from a node, the node goes to
the lowest center index. Only a strictly smaller distance replaces the
current best, so the scan order alone decides ties.

Complexity is O(n * k) distance evaluations per call, which is the
dominant per-iteration cost of the local search for large n.
"""

import math
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

from stationplan.core.errors import InvalidInputError
from stationplan.core.point import Point, ResourceNode


@dataclass(frozen=True)
class Assignment:
    """
    Nearest-center assignment of every node.

    Attributes:
        labels: Center index for each node (node order)
        distances: Distance from each node to its center
        cost: Total weighted distance (sum of weight * distance)
        num_centers: Number of centers the nodes were assigned among

    Example:
        >>> a = assign(problem.nodes, [Point.of(0, 0), Point.of(10, 10)], problem.distance)
        >>> a.labels
        (0, 0, 1)
    """
    labels: Tuple[int, ...]
    distances: Tuple[float, ...]
    cost: float
    num_centers: int

    def clusters(self) -> List[List[int]]:
        """
        Node indices grouped by center.

        Returns:
            One list per center (possibly empty), in center order
        """
        groups: List[List[int]] = [[] for _ in range(self.num_centers)]
        for node_index, center in enumerate(self.labels):
            groups[center].append(node_index)
        return groups

    def cluster_sizes(self) -> List[int]:
        """Number of nodes assigned to each center."""
        sizes = [0] * self.num_centers
        for center in self.labels:
            sizes[center] += 1
        return sizes

    def empty_clusters(self) -> List[int]:
        """Indices of centers with no assigned node."""
        return [i for i, size in enumerate(self.cluster_sizes()) if size == 0]

    def cluster_costs(self, nodes: Sequence[ResourceNode]) -> List[float]:
        """Weighted cost contributed by each center's cluster."""
        parts: List[List[float]] = [[] for _ in range(self.num_centers)]
        for node, center, d in zip(nodes, self.labels, self.distances):
            parts[center].append(node.weight * d)
        return [math.fsum(p) for p in parts]

    def cluster_weights(self, nodes: Sequence[ResourceNode]) -> List[float]:
        """Total demand weight served by each center."""
        parts: List[List[float]] = [[] for _ in range(self.num_centers)]
        for node, center in zip(nodes, self.labels):
            parts[center].append(node.weight)
        return [math.fsum(p) for p in parts]


def nearest_center(
    point: Point,
    centers: Sequence[Point],
    distance: Callable[[Point, Point], float],
) -> Tuple[int, float]:
    """
    Find the nearest center to a point.

    Returns:
        (center index, distance); ties resolve to the lowest index
    """
    best_index = 0
    best_distance = distance(point, centers[0])
    for i in range(1, len(centers)):
        d = distance(point, centers[i])
        if d < best_distance:
            best_distance = d
            best_index = i
    return best_index, best_distance


def assign(
    nodes: Sequence[ResourceNode],
    centers: Sequence[Point],
    distance: Callable[[Point, Point], float],
) -> Assignment:
    """
    Assign every node to its nearest center.

    Args:
        nodes: Resource nodes in problem order
        centers: Current centers (at least one)
        distance: Metric used for the assignment

    Returns:
        Assignment with labels, per-node distances and total cost
    """
    if not centers:
        raise InvalidInputError("Cannot assign nodes to an empty set of centers")

    labels = []
    distances = []
    for node in nodes:
        index, d = nearest_center(node.point, centers, distance)
        labels.append(index)
        distances.append(d)

    cost = math.fsum(node.weight * d for node, d in zip(nodes, distances))

    return Assignment(
        labels=tuple(labels),
        distances=tuple(distances),
        cost=cost,
        num_centers=len(centers),
    )
