"""
Errors and warnings raised by stationplan.

Invalid input is reported before any search starts. Degenerate clusters
(a center that ends up with no assigned nodes) are recovered during the
search and surfaced as a warning. Hitting the iteration cap is not an error
at all: it is a termination reason on the returned solution.
"""


class StationPlanError(Exception):
    """Base class for all stationplan errors."""


class InvalidInputError(StationPlanError, ValueError):
    """
    Raised when the problem or its configuration cannot be solved.

    Examples: k < 1, k larger than the number of distinct node positions
    under the discrete policy, non-finite coordinates, negative weights,
    or a metric returning NaN.
    """


class DegenerateClusterWarning(RuntimeWarning):
    """Emitted when a run had to resolve one or more empty clusters."""
