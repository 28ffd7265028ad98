"""
Update module - the center-update step of the local search.

Given one non-empty cluster, select the position minimising the weighted
sum of distances to its members.

This module provides:
- CenterUpdate: Abstract base class
- DiscreteMedianUpdate: Best candidate from a discrete set (true k-median)
- WeiszfeldUpdate: Geometric median for the Euclidean metric
- PatternSearchUpdate: Geometric median by compass search (any metric)
- make_center_update: Build the update a KMedianConfig asks for

Usage:
    >>> from stationplan.update import DiscreteMedianUpdate
    >>> update = DiscreteMedianUpdate(problem.distance)
    >>> new_center = update.update(members, incumbent)
"""

from stationplan.core.errors import InvalidInputError
from stationplan.core.metric import is_euclidean, is_vertex_only
from stationplan.core.problem import KMedianProblem
from stationplan.update.base import (
    CandidatePolicy,
    CandidateScope,
    CenterUpdate,
    ContinuousMethod,
)
from stationplan.update.continuous import (
    PatternSearchUpdate,
    WeiszfeldUpdate,
    weighted_centroid,
)
from stationplan.update.discrete import DiscreteMedianUpdate


def make_center_update(problem: KMedianProblem, config) -> CenterUpdate:
    """
    Create the center update selected by a solver configuration.

    Args:
        problem: The problem being solved
        config: KMedianConfig (candidate_policy, candidate_scope,
            continuous_method, refinement_steps, refinement_tolerance)

    Returns:
        A fresh CenterUpdate (one per run; updates keep counters)

    Raises:
        InvalidInputError: If the continuous policy is requested for a
            metric that is only defined between graph vertices
    """
    if config.candidate_policy == CandidatePolicy.DISCRETE:
        if config.candidate_scope == CandidateScope.ALL:
            return DiscreteMedianUpdate(problem.distance, problem.distinct_positions)
        return DiscreteMedianUpdate(problem.distance)

    if is_vertex_only(problem.metric):
        raise InvalidInputError(
            f"{type(problem.metric).__name__} is only defined between its vertices; "
            "use candidate_policy='discrete'"
        )

    method = config.continuous_method
    if method == ContinuousMethod.AUTO:
        method = ContinuousMethod.WEISZFELD if is_euclidean(problem.metric) else ContinuousMethod.PATTERN

    if method == ContinuousMethod.WEISZFELD:
        if not is_euclidean(problem.metric):
            raise InvalidInputError(
                "Weiszfeld refinement requires the Euclidean metric; "
                "use continuous_method='pattern' for other metrics"
            )
        return WeiszfeldUpdate(
            problem.distance,
            max_steps=config.refinement_steps,
            tolerance=config.refinement_tolerance,
        )

    return PatternSearchUpdate(
        problem.distance,
        max_polls=config.refinement_steps,
        min_step=config.refinement_tolerance,
    )


__all__ = [
    # Policies
    'CandidatePolicy',
    'CandidateScope',
    'ContinuousMethod',

    # Base class
    'CenterUpdate',

    # Implementations
    'DiscreteMedianUpdate',
    'WeiszfeldUpdate',
    'PatternSearchUpdate',
    'weighted_centroid',

    # Factory
    'make_center_update',
]
