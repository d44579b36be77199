"""Derived capacity/utilization columns."""

from capacity_metrics.derive.calculator import process_derived_columns
from capacity_metrics.derive.columns import DERIVED_COLS, DERIVED_COLS_BY_NAME

__all__ = [
    "process_derived_columns",
    "DERIVED_COLS",
    "DERIVED_COLS_BY_NAME",
]
