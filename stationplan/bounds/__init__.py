"""
Bounds module - certificates for the local-search solution quality.

This module provides:
- compute_lower_bound: LP relaxation bound of the p-median model (HiGHS)
- LowerBound, BoundStatus: Result types
- HIGHS_AVAILABLE: Whether highspy can be imported
"""

from stationplan.bounds.highs import (
    HIGHS_AVAILABLE,
    BoundStatus,
    LowerBound,
    compute_lower_bound,
)

__all__ = [
    'compute_lower_bound',
    'LowerBound',
    'BoundStatus',
    'HIGHS_AVAILABLE',
]
