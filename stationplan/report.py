"""
Report module - package a Solution for output and rendering layers.

Nothing here computes anything new: the report flattens the best
solution into plain records (stations, per-node assignments, totals) that
a map renderer, a file writer or a web handler can consume without
knowing about Points, Assignments or enums.

Usage:
    >>> report = build_report(problem, solution)
    >>> for station in report.stations:
    ...     print(station.index, station.position, station.total_weight)
    >>> payload = report.to_json(indent=2)
"""

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from stationplan.core.errors import InvalidInputError
from stationplan.core.problem import KMedianProblem
from stationplan.solver.solution import Solution


@dataclass
class StationRecord:
    """
    One placed station.

    Attributes:
        index: Station (center) index
        position: Coordinates
        num_nodes: Number of assigned resource nodes
        total_weight: Demand weight served
        cost: Weighted distance contributed by the station's cluster
    """
    index: int
    position: Tuple[float, ...]
    num_nodes: int
    total_weight: float
    cost: float


@dataclass
class NodeAssignment:
    """
    One resource node and the station serving it.

    Attributes:
        node: Node index in problem order
        name: Node name (if any)
        position: Node coordinates
        weight: Node weight
        station: Index of the serving station
        distance: Distance to the serving station
    """
    node: int
    name: Optional[str]
    position: Tuple[float, ...]
    weight: float
    station: int
    distance: float


@dataclass
class StationReport:
    """
    Flat view of a k-median Solution.

    Attributes:
        total_cost: Total weighted distance
        iterations: Iterations used by the best run
        termination_reason: Name of the best run's termination reason
        restarts: Number of completed restarts
        best_restart: Index of the best restart
        stations: One record per station
        assignments: One record per resource node
        lower_bound: LP lower bound (if computed)
        gap: Relative gap to the lower bound (if computed)
        problem_name: Name of the problem instance
    """
    total_cost: float
    iterations: int
    termination_reason: str
    restarts: int
    best_restart: Optional[int]
    stations: List[StationRecord] = field(default_factory=list)
    assignments: List[NodeAssignment] = field(default_factory=list)
    lower_bound: Optional[float] = None
    gap: Optional[float] = None
    problem_name: str = ""

    @property
    def converged(self) -> bool:
        return self.termination_reason == "CONVERGED"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain dicts and lists."""
        d = asdict(self)
        d["converged"] = self.converged
        return d

    def to_json(self, **kwargs) -> str:
        """Serialize to JSON (kwargs are passed to json.dumps)."""
        return json.dumps(self.to_dict(), **kwargs)

    def station_positions(self) -> List[Tuple[float, ...]]:
        return [s.position for s in self.stations]


def build_report(problem: KMedianProblem, solution: Solution) -> StationReport:
    """
    Build a StationReport from a solved problem.

    Args:
        problem: The problem that was solved
        solution: Its solution

    Returns:
        StationReport

    Raises:
        InvalidInputError: If the solution has no assignment or does not
            belong to the problem
    """
    assignment = solution.assignment
    if assignment is None:
        raise InvalidInputError("Cannot report an unsolved solution")
    if len(assignment.labels) != problem.num_nodes:
        raise InvalidInputError(
            f"Solution assigns {len(assignment.labels)} nodes, "
            f"problem has {problem.num_nodes}"
        )

    nodes = problem.nodes
    sizes = assignment.cluster_sizes()
    weights = assignment.cluster_weights(nodes)
    costs = assignment.cluster_costs(nodes)

    stations = [
        StationRecord(
            index=i,
            position=center.coords,
            num_nodes=sizes[i],
            total_weight=weights[i],
            cost=costs[i],
        )
        for i, center in enumerate(solution.centers)
    ]

    assignments = [
        NodeAssignment(
            node=i,
            name=node.name,
            position=node.point.coords,
            weight=node.weight,
            station=label,
            distance=d,
        )
        for i, (node, label, d) in enumerate(zip(nodes, assignment.labels, assignment.distances))
    ]

    return StationReport(
        total_cost=solution.cost,
        iterations=solution.iterations,
        termination_reason=solution.reason.name,
        restarts=solution.num_restarts,
        best_restart=solution.best_restart,
        stations=stations,
        assignments=assignments,
        lower_bound=solution.lower_bound,
        gap=solution.gap,
        problem_name=problem.name,
    )
