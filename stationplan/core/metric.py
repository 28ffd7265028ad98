"""
Metric module - pluggable distance functions.

A metric is any callable taking two Points and returning a non-negative
float. The solver only relies on symmetry and identity
(distance(a, a) == 0); the triangle inequality is assumed by the
convergence argument but is not verified at runtime.

This module provides:
- euclidean: Straight-line distance (default)
- manhattan: L1 distance
- chebyshev: L-infinity distance
- NetworkMetric: Shortest-path distance on a weighted graph (e.g. rails)
- checked_metric: Wrapper that rejects NaN / negative / infinite results

Usage:
    >>> from stationplan.core.metric import euclidean
    >>> euclidean(Point.of(0, 0), Point.of(3, 4))
    5.0

Rail network:
    >>> rails = NetworkMetric([
    ...     (Point.of(0, 0), Point.of(10, 0), 10.0),
    ...     (Point.of(10, 0), Point.of(10, 10), 12.5),
    ... ])
    >>> rails(Point.of(0, 0), Point.of(10, 10))
    22.5
"""

import heapq
import math
from typing import Callable, Dict, Iterable, List, Tuple

from stationplan.core.errors import InvalidInputError
from stationplan.core.point import Point


Metric = Callable[[Point, Point], float]


def euclidean(a: Point, b: Point) -> float:
    """Euclidean (L2) distance."""
    return math.dist(a.coords, b.coords)


def manhattan(a: Point, b: Point) -> float:
    """Manhattan (L1) distance."""
    return math.fsum(abs(p - q) for p, q in zip(a.coords, b.coords))


def chebyshev(a: Point, b: Point) -> float:
    """Chebyshev (L-infinity) distance."""
    return max(abs(p - q) for p, q in zip(a.coords, b.coords))


def is_euclidean(metric: Metric) -> bool:
    """Check whether a metric is the built-in Euclidean distance."""
    inner = getattr(metric, '__wrapped__', metric)
    return inner is euclidean


def is_vertex_only(metric: Metric) -> bool:
    """Check whether a metric is only defined between fixed vertices."""
    inner = getattr(metric, '__wrapped__', metric)
    return getattr(inner, 'vertex_only', False)


def checked_metric(metric: Metric) -> Metric:
    """
    Wrap a metric so invalid results fail fast.

    Args:
        metric: Any distance callable

    Returns:
        A callable with the same signature that raises InvalidInputError
        when the wrapped metric returns NaN, infinity or a negative value
    """
    if getattr(metric, '_checked', False):
        return metric

    def distance(a: Point, b: Point) -> float:
        d = metric(a, b)
        if not math.isfinite(d) or d < 0:
            raise InvalidInputError(
                f"Metric returned invalid distance {d!r} between {a!r} and {b!r}"
            )
        return d

    distance.__wrapped__ = metric  # type: ignore[attr-defined]
    distance._checked = True  # type: ignore[attr-defined]
    distance.__name__ = getattr(metric, '__name__', type(metric).__name__)
    return distance


class NetworkMetric:
    """
    Shortest-path distance over an undirected weighted graph.

    Vertices are Points, so resource nodes and candidate stations must sit
    on graph vertices. Shortest-path trees are computed lazily with
    Dijkstra's algorithm and memoised per source vertex.

    Attributes:
        num_vertices: Number of distinct vertices
        num_edges: Number of edges added

    Note:
        Only the discrete candidate policy is accepted. A continuous center
        is generally not a graph vertex.
    """

    vertex_only = True

    def __init__(self, edges: Iterable[Tuple[Point, Point, float]] = ()):
        self._adjacency: Dict[Point, List[Tuple[Point, float]]] = {}
        self._trees: Dict[Point, Dict[Point, float]] = {}
        self._num_edges = 0
        for a, b, length in edges:
            self.add_edge(a, b, length)

    @property
    def num_vertices(self) -> int:
        return len(self._adjacency)

    @property
    def num_edges(self) -> int:
        return self._num_edges

    def add_vertex(self, p: Point) -> None:
        """Add an isolated vertex (no-op if it exists)."""
        self._adjacency.setdefault(p, [])

    def add_edge(self, a: Point, b: Point, length: float) -> None:
        """
        Add an undirected edge.

        Args:
            a: First endpoint
            b: Second endpoint
            length: Edge length (finite, non-negative)
        """
        length = float(length)
        if not math.isfinite(length) or length < 0:
            raise InvalidInputError(f"Invalid edge length {length!r}")

        self._adjacency.setdefault(a, []).append((b, length))
        self._adjacency.setdefault(b, []).append((a, length))
        self._num_edges += 1
        self._trees.clear()

    def _shortest_paths(self, source: Point) -> Dict[Point, float]:
        tree = self._trees.get(source)
        if tree is not None:
            return tree

        dist: Dict[Point, float] = {source: 0.0}
        # Counter breaks ties so Points are never compared
        heap: List[Tuple[float, int, Point]] = [(0.0, 0, source)]
        counter = 1
        while heap:
            d, _, u = heapq.heappop(heap)
            if d > dist.get(u, math.inf):
                continue
            for v, length in self._adjacency[u]:
                nd = d + length
                if nd < dist.get(v, math.inf):
                    dist[v] = nd
                    heapq.heappush(heap, (nd, counter, v))
                    counter += 1

        self._trees[source] = dist
        return dist

    def __call__(self, a: Point, b: Point) -> float:
        if a == b:
            return 0.0
        for p in (a, b):
            if p not in self._adjacency:
                raise InvalidInputError(f"{p!r} is not a vertex of the network")

        d = self._shortest_paths(a).get(b)
        if d is None:
            raise InvalidInputError(f"No path between {a!r} and {b!r}")
        return d

    def __repr__(self) -> str:
        return f"NetworkMetric(vertices={self.num_vertices}, edges={self.num_edges})"
