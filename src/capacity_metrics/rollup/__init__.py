"""Gap detection and synthetic sample rollups."""

from capacity_metrics.rollup.extrapolate import extrapolate, interval_name_to_interval
from capacity_metrics.rollup.merge import create_synthetic_sample, merge_assoc_ids

__all__ = [
    "extrapolate",
    "interval_name_to_interval",
    "create_synthetic_sample",
    "merge_assoc_ids",
]
