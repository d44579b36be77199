"""Capacity state lookup for the derived-column calculator."""

import logging
from dataclasses import fields
from datetime import datetime
from typing import Protocol, runtime_checkable

import polars as pl

from capacity_metrics.constants import Cols
from capacity_metrics.models.domain import CapacityState, Entity
from capacity_metrics.schemas import CapacityStateModel

logger = logging.getLogger(__name__)

STATE_FIELDS = tuple(f.name for f in fields(CapacityState))

_ROW = "_row"
_MATCHED = "_matched"


@runtime_checkable
class CapacityStateProvider(Protocol):
    def state_for(self, entity: Entity, ts: datetime) -> CapacityState:
        """
        Must return the capacity state of entity as of ts.
        """
        raise NotImplementedError


class FrameCapacityStateProvider:
    """
    Capacity states held in a polars frame, one row per (entity, snapshot).

    A lookup returns the latest snapshot at or before ts. Entities without
    such a snapshot get an empty CapacityState.
    """

    def __init__(self, states: pl.DataFrame | pl.LazyFrame):
        states = CapacityStateModel.validate(states)
        if isinstance(states, pl.LazyFrame):
            states = states.collect()
        self._states = states.sort(
            [Cols.RESOURCE_TYPE, Cols.RESOURCE_ID, Cols.TIMESTAMP]
        )

    def state_for(self, entity: Entity, ts: datetime) -> CapacityState:
        rows = self._states.filter(
            pl.col(Cols.RESOURCE_TYPE).eq(entity.kind.value),
            pl.col(Cols.RESOURCE_ID).eq(entity.id),
            pl.col(Cols.TIMESTAMP) <= ts,
        )
        if rows.is_empty():
            logger.debug("No capacity state for %s:%s at %s", entity.kind, entity.id, ts)
            return CapacityState()

        row = rows.row(-1, named=True)
        return CapacityState(**{name: row.get(name) for name in STATE_FIELDS})

    def states_for_samples(self, samples: pl.DataFrame) -> list[CapacityState]:
        """State of every sample row in one as-of join, in row order.

        Same result as calling state_for once per row.
        """
        keys = [Cols.RESOURCE_TYPE, Cols.RESOURCE_ID]
        left = (
            samples.select(*keys, Cols.TIMESTAMP)
            .with_row_index(_ROW)
            .with_columns(pl.col(Cols.TIMESTAMP).dt.cast_time_unit("us"))
            .sort(Cols.TIMESTAMP)
        )
        right = self._states.with_columns(
            pl.col(Cols.TIMESTAMP).dt.cast_time_unit("us"),
            pl.lit(True).alias(_MATCHED),
        ).sort(Cols.TIMESTAMP)
        joined = left.join_asof(
            right, on=Cols.TIMESTAMP, by=keys, strategy="backward"
        ).sort(_ROW)

        present = [name for name in STATE_FIELDS if name in joined.columns]
        return [
            CapacityState(**{name: row[name] for name in present})
            if row[_MATCHED]
            else CapacityState()
            for row in joined.select(*present, _MATCHED).iter_rows(named=True)
        ]

