"""Vectorised gap detection. No domain knowledge.

[*group_cols, class_col, timestamp] samples
  → one row per gap: previous sample, next sample, gap length, fill point

These methods must *never* call collect()
"""

import polars as pl

# Module-private constants
_INTERVAL_COL = "_interval"
_PREV_COL = "previous"
_GAP_COL = "gap_seconds"
_FILL_COL = "fill_at"


def detect_gaps(
    df: pl.LazyFrame,
    timestamp_col: str,
    class_col: str,
    intervals: dict[str, int],
    group_cols: list[str],
) -> pl.LazyFrame:
    """Samples more than one nominal interval after the previous one in their class.

    Args:
        intervals: Nominal seconds per value of class_col. Every value must be mapped.

    Returns:
        [*group_cols, class_col, previous, timestamp, gap_seconds, fill_at]
    """
    over = [*group_cols, class_col]
    return (
        df.sort([*group_cols, timestamp_col])
        .with_columns(
            pl.col(timestamp_col).shift(1).over(over).alias(_PREV_COL),
            pl.col(class_col)
            .replace_strict(intervals, return_dtype=pl.Int64)
            .alias(_INTERVAL_COL),
        )
        .with_columns(
            (pl.col(timestamp_col) - pl.col(_PREV_COL))
            .dt.total_seconds()
            .alias(_GAP_COL)
        )
        .filter(pl.col(_GAP_COL) > pl.col(_INTERVAL_COL))
        .with_columns(
            (pl.col(_PREV_COL) + pl.duration(seconds=pl.col(_INTERVAL_COL))).alias(
                _FILL_COL
            )
        )
        .select(*over, _PREV_COL, timestamp_col, _GAP_COL, _FILL_COL)
    )
