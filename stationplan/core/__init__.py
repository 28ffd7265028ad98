"""
Core module - fundamental data structures for k-median station placement.

Components:
----------
- Point: Immutable coordinate
- ResourceNode: Weighted demand location
- Metric: Distance function contract and built-in metrics
- NetworkMetric: Shortest-path distance over a graph
- KMedianProblem: Container that defines a complete instance
- Errors: InvalidInputError, DegenerateClusterWarning
"""

from stationplan.core.errors import (
    DegenerateClusterWarning,
    InvalidInputError,
    StationPlanError,
)
from stationplan.core.metric import (
    Metric,
    NetworkMetric,
    chebyshev,
    checked_metric,
    euclidean,
    is_euclidean,
    is_vertex_only,
    manhattan,
)
from stationplan.core.point import Point, ResourceNode, as_point
from stationplan.core.problem import KMedianProblem

__all__ = [
    # Geometry
    "Point",
    "ResourceNode",
    "as_point",
    # Metrics
    "Metric",
    "NetworkMetric",
    "euclidean",
    "manhattan",
    "chebyshev",
    "checked_metric",
    "is_euclidean",
    "is_vertex_only",
    # Problem definition
    "KMedianProblem",
    # Errors
    "StationPlanError",
    "InvalidInputError",
    "DegenerateClusterWarning",
]
