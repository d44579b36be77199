"""Derive capacity and utilization columns for one raw sample.

Each column in DERIVED_COLS is computed from the raw counters of the sample
and the capacity state of the entity at the sample's timestamp:

    AVAILABLE          total cpu/mem, only when usage counters were collected
    USED (cpu)         cpu_usage_rate_average% of total cpu
    USED (memory)      mem_usage_absolute_average% of total mem
    RATE               cpu mhz, derived like USED (cpu) when not collected
    LOGICAL_CPU_COUNT  numvcpus, only when cpu counters were collected
    everything else    copied from the capacity state

The raw mapping is never modified. When only derived_memory_used was collected
the memory percentage is back-filled into the returned normalized attrs.
"""

import logging
from typing import Mapping, Optional

from capacity_metrics.constants import VALID_PROCESS_TARGETS, Cols
from capacity_metrics.constants import EntityKind as E
from capacity_metrics.constants import MetricGroups as G
from capacity_metrics.constants import ValueKinds as K
from capacity_metrics.derive.columns import DERIVED_COLS
from capacity_metrics.exceptions import MissingAccessor, UnsupportedEntityKind
from capacity_metrics.models.domain import (
    CapacityState,
    ColumnDescriptor,
    DerivedMetricSet,
    Entity,
)
from capacity_metrics.state import CapacityStateProvider

logger = logging.getLogger(__name__)

_NO_ACCESSOR = object()


def process_derived_columns(
    entity: Entity,
    attrs: Mapping,
    provider: CapacityStateProvider,
    ts=None,
) -> tuple[DerivedMetricSet, dict]:
    """Derive columns for one sample.

    Args:
        entity: Subject of the sample.
        attrs: Raw counters; `timestamp` is used when ts is not given.
        provider: Capacity state lookup.
        ts: Timestamp to fetch capacity state for.

    Returns:
        (derived metrics, normalized copy of attrs)
    """
    if entity.kind not in VALID_PROCESS_TARGETS:
        raise UnsupportedEntityKind(
            f"entity {entity.kind}:{entity.id} is not one of "
            f"{', '.join(sorted(k.value for k in VALID_PROCESS_TARGETS))}"
        )

    if ts is None:
        ts = attrs.get(Cols.TIMESTAMP)
    state = provider.state_for(entity, ts)
    total_cpu = state.total_cpu or 0
    total_mem = state.total_mem or 0
    normalized = dict(attrs)
    result: dict[str, Optional[float]] = {}

    have_cpu_metrics = (
        normalized.get(Cols.CPU_USAGE_RATE) is not None
        or normalized.get(Cols.CPU_USAGE_MHZ) is not None
    )
    have_mem_metrics = (
        normalized.get(Cols.MEM_USAGE_PCT) is not None
        or normalized.get(Cols.DERIVED_MEMORY_USED) is not None
    )

    for col in DERIVED_COLS:
        # Aggregate services only carry vm counts
        if col.group == G.VM and entity.kind == E.SERVICE and col.kind != K.COUNT:
            continue

        if col.kind == K.AVAILABLE:
            # No "available" without collected usage values
            if col.group == G.CPU:
                if have_cpu_metrics and total_cpu > 0:
                    result[col.name] = total_cpu
            elif have_mem_metrics and total_mem > 0:
                result[col.name] = total_mem

        elif col.kind == K.ALLOCATED:
            value = _state_value(state, col, required=False)
            if value is not _NO_ACCESSOR:
                result[col.name] = value

        elif col.kind == K.USED:
            if col.group == G.CPU:
                used = _cpu_used(normalized, total_cpu)
                if used is not None:
                    result[col.name] = used
            elif col.group == G.MEMORY:
                pct = normalized.get(Cols.MEM_USAGE_PCT)
                if pct is None:
                    used_mb = normalized.get(Cols.DERIVED_MEMORY_USED)
                    if total_mem > 0 and used_mb is not None:
                        normalized[Cols.MEM_USAGE_PCT] = 100.0 / total_mem * used_mb
                elif total_mem != 0:
                    result[col.name] = pct / 100 * total_mem
            else:
                value = _state_value(state, col, required=False)
                if value is not _NO_ACCESSOR:
                    result[col.name] = value

        elif col.kind == K.RATE:
            if col.name == Cols.CPU_USAGE_MHZ and normalized.get(col.name) is None:
                used = _cpu_used(normalized, total_cpu)
                if used is not None:
                    result[col.name] = used

        elif col.kind in (K.RESERVED, K.COUNT):
            result[col.name] = _state_value(state, col, required=True)

        elif col.kind == K.LOGICAL_CPU_COUNT:
            if have_cpu_metrics and (state.numvcpus or 0) > 0:
                result[col.name] = state.numvcpus

        elif col.kind == K.SOCKETS:
            result[col.name] = state.host_sockets

    logger.debug(
        "Derived %d columns for %s:%s at %s", len(result), entity.kind, entity.id, ts
    )
    metrics = DerivedMetricSet(
        values=result,
        assoc_ids=state.assoc_ids,
        tag_names=state.tag_names,
        parent_host_id=state.parent_host_id,
        parent_storage_id=state.parent_storage_id,
        parent_ems_id=state.parent_ems_id,
        parent_ems_cluster_id=state.parent_ems_cluster_id,
    )
    return metrics, normalized


def _cpu_used(attrs: Mapping, total_cpu: float) -> Optional[float]:
    rate = attrs.get(Cols.CPU_USAGE_RATE)
    if total_cpu == 0 or rate is None:
        return None
    return rate / 100 * total_cpu


def _state_value(state: CapacityState, col: ColumnDescriptor, required: bool):
    if col.accessor is None or not hasattr(state, col.accessor):
        if required:
            raise MissingAccessor(
                f"{col.name}: capacity state has no field {col.accessor!r}"
            )
        return _NO_ACCESSOR
    return getattr(state, col.accessor)
