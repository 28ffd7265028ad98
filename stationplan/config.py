"""
Configuration module for stationplan.

This module provides library-wide settings: numerical tolerances used by
the center-update steps and the default number of parallel workers for
multi-restart solves. Per-solve options live in
stationplan.solver.KMedianConfig.

Configuration can be set via:
1. Environment variables (STATIONPLAN_*)
2. Programmatic API

Example:
    >>> from stationplan.config import config
    >>> config.get_tolerance("zero_distance")
    1e-12
    >>> config.set_tolerance("refinement", 1e-9)
"""

import os
from dataclasses import dataclass, field


def _get_default_num_workers() -> int:
    """Get the default worker count."""
    env_value = os.environ.get('STATIONPLAN_NUM_WORKERS')
    if env_value and env_value.isdigit() and int(env_value) > 0:
        return int(env_value)
    return 1


def _default_tolerances() -> dict[str, float]:
    return {
        # Distances below this count as coincident points
        "zero_distance": 1e-12,
        # Minimum cost decrease between iterations to keep searching
        "improvement": 1e-9,
        # Movement below which continuous refinement stops
        "refinement": 1e-7,
        # Relative margin for comparing a candidate with the incumbent
        "comparison": 1e-12,
    }


@dataclass
class StationPlanConfig:
    """
    Configuration for the stationplan library.

    Attributes:
        num_workers: Default number of workers for parallel restarts
        tolerances: Numerical tolerances for the local search
    """

    num_workers: int = field(default_factory=_get_default_num_workers)

    tolerances: dict[str, float] = field(default_factory=_default_tolerances)

    # =========================================================================
    # Tolerance helpers
    # =========================================================================

    def get_tolerance(self, name: str) -> float:
        """Get a tolerance value by name."""
        return self.tolerances.get(name, 1e-9)

    def set_tolerance(self, name: str, value: float) -> None:
        """Set a tolerance value."""
        self.tolerances[name] = value


# Global configuration instance
config = StationPlanConfig()


def get_tolerance(name: str) -> float:
    """Get a tolerance from the global configuration."""
    return config.get_tolerance(name)


def set_tolerance(name: str, value: float) -> None:
    """Set a tolerance on the global configuration."""
    config.set_tolerance(name, value)
