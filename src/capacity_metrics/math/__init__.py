"""Pure math functions for time series transforms."""

from capacity_metrics.math.gaps import detect_gaps

__all__ = [
    "detect_gaps",
]
