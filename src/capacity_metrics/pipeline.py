"""Frame-level wrappers around the calculator and the gap scan.

STAGES:
    derive_samples         → derived columns attached to every collected sample
    add_missing_intervals  → one synthetic sample per gap, written to the store
    gap_report             → the same gaps as a frame, nothing written

Each entity/interval window is independent; callers may run windows in parallel
as long as one window is only processed by one worker at a time.
"""

import logging
from typing import Optional

import polars as pl

from capacity_metrics.constants import INTERVAL_SECONDS, Cols
from capacity_metrics.derive import process_derived_columns
from capacity_metrics.math import gaps
from capacity_metrics.models.domain import CapacityState, Entity
from capacity_metrics.rollup.extrapolate import CancelToken, extrapolate
from capacity_metrics.schemas import GapWindow, SampleModel
from capacity_metrics.state import CapacityStateProvider, FrameCapacityStateProvider
from capacity_metrics.store import SampleStore

logger = logging.getLogger(__name__)


class _FixedState:
    """Provider answering with one already looked-up state."""

    def __init__(self, state: CapacityState):
        self._state = state

    def state_for(self, entity: Entity, ts) -> CapacityState:
        return self._state


def entities_in(samples: pl.DataFrame | pl.LazyFrame) -> list[Entity]:
    """Distinct entities present in a sample frame."""
    pairs = (
        samples.lazy()
        .select(Cols.RESOURCE_TYPE, Cols.RESOURCE_ID)
        .unique()
        .sort([Cols.RESOURCE_TYPE, Cols.RESOURCE_ID])
        .collect()
    )
    return [Entity(kind, entity_id) for kind, entity_id in pairs.iter_rows()]


def derive_samples(
    samples: pl.DataFrame | pl.LazyFrame, provider: CapacityStateProvider
) -> pl.DataFrame:
    """Attach derived columns to every sample.

    The entity of each row is taken from its resource_type/resource_id.
    Normalized counters (e.g. a back-filled memory percentage) replace the raw ones.
    States from a FrameCapacityStateProvider are looked up for all rows in one join.
    """
    samples = SampleModel.validate(samples)
    if isinstance(samples, pl.LazyFrame):
        samples = samples.collect()

    states = None
    if isinstance(provider, FrameCapacityStateProvider):
        states = provider.states_for_samples(samples)

    rows = []
    for i, attrs in enumerate(samples.iter_rows(named=True)):
        entity = Entity(attrs[Cols.RESOURCE_TYPE], attrs[Cols.RESOURCE_ID])
        row_provider = provider if states is None else _FixedState(states[i])
        metrics, normalized = process_derived_columns(entity, attrs, row_provider)
        rows.append({**normalized, **metrics.as_dict()})

    logger.info("Derived columns for %d samples", len(rows))
    if not rows:
        return samples
    return pl.from_dicts(rows, infer_schema_length=None)


def add_missing_intervals(
    store: SampleStore,
    entity: Entity,
    window: GapWindow,
    cancel: Optional[CancelToken] = None,
) -> list[dict]:
    """Fill gaps in one entity's samples within window.

    Only samples of the window's interval class are scanned.
    """
    start, end = window.time_range
    samples = store.samples_for(entity, start, end, window.interval_name)
    logger.info(
        "Scanning %d %s samples of %s:%s between %s and %s",
        samples.height,
        window.interval_name,
        entity.kind,
        entity.id,
        start,
        end,
    )
    written = extrapolate(samples.iter_rows(named=True), store, cancel=cancel)
    logger.info(
        "Wrote %d synthetic samples for %s:%s", len(written), entity.kind, entity.id
    )
    return written


def gap_report(samples: pl.DataFrame | pl.LazyFrame, window: GapWindow) -> pl.LazyFrame:
    """Gaps add_missing_intervals would fill, one row per gap, for every entity."""
    samples = SampleModel.validate(samples.lazy())
    start, end = window.time_range
    samples = samples.filter(
        pl.col(Cols.TIMESTAMP).is_between(start, end),
        pl.col(Cols.CAPTURE_INTERVAL_NAME).eq(window.interval_name),
    )

    return gaps.detect_gaps(
        samples,
        Cols.TIMESTAMP,
        Cols.CAPTURE_INTERVAL_NAME,
        INTERVAL_SECONDS,
        [Cols.RESOURCE_TYPE, Cols.RESOURCE_ID],
    )
