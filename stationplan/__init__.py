"""
stationplan: k-median station placement by local search

Places k stations so that the total weighted distance from every resource
node to its nearest station is as small as a multi-restart local search
can make it.
"""

__version__ = "0.1.0"

# Configuration
from stationplan.config import config, get_tolerance, set_tolerance

# Core classes - these are the main user-facing API
from stationplan.core import (
    DegenerateClusterWarning,
    InvalidInputError,
    KMedianProblem,
    NetworkMetric,
    Point,
    ResourceNode,
    StationPlanError,
    chebyshev,
    euclidean,
    manhattan,
)

# Assignment step
from stationplan.assignment import Assignment, assign

# Center update step
from stationplan.update import (
    CandidatePolicy,
    CandidateScope,
    CenterUpdate,
    ContinuousMethod,
    DiscreteMedianUpdate,
    PatternSearchUpdate,
    WeiszfeldUpdate,
)

# Seeding
from stationplan.seeding import (
    BoundingBoxSeeder,
    FarthestPointSeeder,
    Seeder,
    SeedingMethod,
    UniformSeeder,
)

# Local-search driver
from stationplan.solver import (
    EmptyClusterPolicy,
    KMedianConfig,
    KMedianSolver,
    LocalSearch,
    RunResult,
    SearchIteration,
    Solution,
    TerminationReason,
    solve_k_median,
)

# Reporting
from stationplan.report import StationReport, build_report

# Bounds
from stationplan.bounds import HIGHS_AVAILABLE, compute_lower_bound

__all__ = [
    # Version
    "__version__",
    # Configuration
    "config",
    "get_tolerance",
    "set_tolerance",
    # Core classes
    "Point",
    "ResourceNode",
    "KMedianProblem",
    "NetworkMetric",
    "euclidean",
    "manhattan",
    "chebyshev",
    # Errors
    "StationPlanError",
    "InvalidInputError",
    "DegenerateClusterWarning",
    # Assignment
    "Assignment",
    "assign",
    # Center update
    "CandidatePolicy",
    "CandidateScope",
    "ContinuousMethod",
    "CenterUpdate",
    "DiscreteMedianUpdate",
    "WeiszfeldUpdate",
    "PatternSearchUpdate",
    # Seeding
    "SeedingMethod",
    "Seeder",
    "UniformSeeder",
    "FarthestPointSeeder",
    "BoundingBoxSeeder",
    # Solver
    "KMedianSolver",
    "KMedianConfig",
    "LocalSearch",
    "EmptyClusterPolicy",
    "Solution",
    "RunResult",
    "SearchIteration",
    "TerminationReason",
    "solve_k_median",
    # Reporting
    "StationReport",
    "build_report",
    # Bounds
    "compute_lower_bound",
    "HIGHS_AVAILABLE",
]
