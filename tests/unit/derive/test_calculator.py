"""
Tests for capacity_metrics.derive.calculator

CONTRACT: (entity, raw attrs, provider[, ts]) → (DerivedMetricSet, normalized attrs)
  - entity kind outside the EntityKind tags raises UnsupportedEntityKind
  - AVAILABLE / USED(cpu) / RATE / LOGICAL_CPU_COUNT need collected cpu counters
  - Service entities only carry vm counts from the vm group
  - memory used: percentage → MB, or MB → percentage back-filled into normalized attrs
  - caller's attrs never modified
"""

from datetime import datetime

import pytest

from capacity_metrics.constants import EntityKind as E
from capacity_metrics.constants import MetricGroups as G
from capacity_metrics.constants import ValueKinds as K
from capacity_metrics.derive import calculator
from capacity_metrics.derive.calculator import process_derived_columns
from capacity_metrics.exceptions import MissingAccessor, UnsupportedEntityKind
from capacity_metrics.models.domain import CapacityState, ColumnDescriptor, Entity

TS = datetime(2024, 1, 1, 12, 0)

FULL_STATE = CapacityState(
    total_cpu=2000,
    total_mem=200,
    numvcpus=4,
    host_sockets=2,
    reserve_cpu=100,
    reserve_mem=64,
    host_count_on=3,
    host_count_off=1,
    host_count_total=4,
    vm_count_on=10,
    vm_count_off=2,
    vm_count_total=12,
    vm_allocated_disk_storage=500.0,
    vm_used_disk_storage=250.0,
    assoc_ids={"vms": {"on": [1, 2], "off": []}},
    tag_names="env/prod",
    parent_host_id="h1",
    parent_storage_id="s1",
    parent_ems_id="e1",
    parent_ems_cluster_id="c1",
)

CPU_ONLY_COLS = (
    "derived_cpu_available",
    "cpu_usagemhz_rate_average",
    "derived_vm_numvcpus",
)


class StubProvider:
    def __init__(self, state: CapacityState):
        self.state = state
        self.calls = []

    def state_for(self, entity, ts):
        self.calls.append((entity, ts))
        return self.state


def derive(attrs, state=FULL_STATE, kind=E.VM_OR_TEMPLATE, ts=None):
    return process_derived_columns(Entity(kind, "1"), attrs, StubProvider(state), ts)


# =============================================================================
# Entity kinds
# =============================================================================


def test_unsupported_entity_kind_raises():
    with pytest.raises(UnsupportedEntityKind, match="Storage"):
        derive({"timestamp": TS}, kind="Storage")


def test_entity_kind_coerced_from_tag():
    entity = Entity("VM/Template", "1")
    assert entity.kind is E.VM_OR_TEMPLATE
    assert entity == Entity(E.VM_OR_TEMPLATE, "1")
    assert str(entity.kind) == "VM/Template"


@pytest.mark.parametrize(
    "tag",
    [
        "VM/Template",
        "Container",
        "ContainerGroup",
        "ContainerNode",
        "ContainerProject",
        "ContainerReplicator",
        "ContainerService",
        "Host",
        "AvailabilityZone",
        "HostAggregate",
        "Cluster",
        "ManagementSystem",
        "Region",
        "Enterprise",
        "Service",
    ],
)
def test_every_entity_tag_is_processed(tag):
    metrics, _ = derive({"timestamp": TS, "cpu_usage_rate_average": 10.0}, kind=tag)
    assert metrics.values["derived_cpu_available"] == 2000
    assert metrics.values["derived_host_count_total"] == 4


@pytest.mark.parametrize("tag", ["VmOrTemplate", "EmsCluster", "MiqRegion", ""])
def test_other_tags_rejected(tag):
    with pytest.raises(UnsupportedEntityKind):
        derive({"timestamp": TS}, kind=tag)


@pytest.mark.parametrize("kind", [E.HOST, E.CLUSTER, E.CONTAINER_NODE, E.REGION])
def test_supported_entity_kinds_derive(kind):
    metrics, _ = derive({"timestamp": TS, "cpu_usage_rate_average": 10.0}, kind=kind)
    assert metrics.values["derived_cpu_available"] == 2000


# =============================================================================
# Timestamp
# =============================================================================


def test_state_fetched_at_sample_timestamp_by_default():
    provider = StubProvider(FULL_STATE)
    process_derived_columns(Entity(E.HOST, "1"), {"timestamp": TS}, provider)
    assert provider.calls[0][1] == TS


def test_explicit_timestamp_overrides_sample_timestamp():
    provider = StubProvider(FULL_STATE)
    other = datetime(2023, 6, 1)
    process_derived_columns(Entity(E.HOST, "1"), {"timestamp": TS}, provider, other)
    assert provider.calls[0][1] == other


# =============================================================================
# cpu
# =============================================================================


def test_no_cpu_metrics_omits_cpu_columns():
    metrics, _ = derive({"timestamp": TS, "mem_usage_absolute_average": 10.0})
    for col in CPU_ONLY_COLS:
        assert col not in metrics.values


def test_cpu_available_needs_positive_total():
    state = CapacityState(total_cpu=0, numvcpus=4)
    metrics, _ = derive({"timestamp": TS, "cpu_usage_rate_average": 50.0}, state)
    assert "derived_cpu_available" not in metrics.values
    assert "cpu_usagemhz_rate_average" not in metrics.values


def test_cpu_available_when_only_mhz_collected():
    metrics, _ = derive({"timestamp": TS, "cpu_usagemhz_rate_average": 300.0})
    assert metrics.values["derived_cpu_available"] == 2000


def test_rate_derived_from_percentage_when_not_collected():
    metrics, _ = derive({"timestamp": TS, "cpu_usage_rate_average": 50.0})
    assert metrics.values["cpu_usagemhz_rate_average"] == pytest.approx(1000.0)


def test_rate_not_derived_when_collected():
    metrics, _ = derive(
        {
            "timestamp": TS,
            "cpu_usage_rate_average": 50.0,
            "cpu_usagemhz_rate_average": 900.0,
        }
    )
    assert "cpu_usagemhz_rate_average" not in metrics.values


def test_logical_cpu_count_needs_cpu_metrics_and_vcpus():
    metrics, _ = derive({"timestamp": TS, "cpu_usage_rate_average": 5.0})
    assert metrics.values["derived_vm_numvcpus"] == 4

    no_vcpus = CapacityState(total_cpu=2000, numvcpus=0)
    metrics, _ = derive({"timestamp": TS, "cpu_usage_rate_average": 5.0}, no_vcpus)
    assert "derived_vm_numvcpus" not in metrics.values


def test_missing_totals_default_to_zero():
    metrics, _ = derive(
        {"timestamp": TS, "cpu_usage_rate_average": 5.0}, CapacityState()
    )
    assert "derived_cpu_available" not in metrics.values
    assert "cpu_usagemhz_rate_average" not in metrics.values


# =============================================================================
# memory
# =============================================================================


def test_memory_used_from_percentage():
    metrics, normalized = derive(
        {"timestamp": TS, "mem_usage_absolute_average": 25.0}
    )
    assert metrics.values["derived_memory_used"] == pytest.approx(50.0)
    assert normalized["mem_usage_absolute_average"] == 25.0


def test_memory_percentage_backfilled_from_used_mb():
    metrics, normalized = derive({"timestamp": TS, "derived_memory_used": 50})
    assert normalized["mem_usage_absolute_average"] == pytest.approx(25.0)
    assert normalized["derived_memory_used"] == 50
    assert "derived_memory_used" not in metrics.values


def test_memory_paths_agree_on_used_mb():
    _, normalized = derive({"timestamp": TS, "derived_memory_used": 50})
    metrics, _ = derive(normalized)
    assert metrics.values["derived_memory_used"] == pytest.approx(50.0)


def test_memory_backfill_leaves_caller_attrs_untouched():
    attrs = {"timestamp": TS, "derived_memory_used": 50}
    derive(attrs)
    assert "mem_usage_absolute_average" not in attrs


def test_memory_backfill_needs_positive_total():
    state = CapacityState(total_mem=0)
    metrics, normalized = derive({"timestamp": TS, "derived_memory_used": 50}, state)
    assert "mem_usage_absolute_average" not in normalized
    assert "derived_memory_available" not in metrics.values


def test_memory_available_needs_memory_metrics():
    metrics, _ = derive({"timestamp": TS, "cpu_usage_rate_average": 5.0})
    assert "derived_memory_available" not in metrics.values

    metrics, _ = derive({"timestamp": TS, "mem_usage_absolute_average": 5.0})
    assert metrics.values["derived_memory_available"] == 200


# =============================================================================
# State-backed columns
# =============================================================================


def test_state_columns_copied():
    metrics, _ = derive({"timestamp": TS})
    assert metrics.values["derived_cpu_reserved"] == 100
    assert metrics.values["derived_memory_reserved"] == 64
    assert metrics.values["derived_host_count_total"] == 4
    assert metrics.values["derived_vm_count_on"] == 10
    assert metrics.values["derived_host_sockets"] == 2
    assert metrics.values["derived_vm_allocated_disk_storage"] == 500.0
    assert metrics.values["derived_vm_used_disk_storage"] == 250.0


def test_state_columns_keep_none_values():
    """Computed from a state field without a value: present, but None."""
    metrics, _ = derive({"timestamp": TS}, CapacityState())
    assert "derived_vm_count_total" in metrics.values
    assert metrics.values["derived_vm_count_total"] is None


def test_ids_copied_from_state():
    metrics, _ = derive({"timestamp": TS})
    flat = metrics.as_dict()
    assert flat["assoc_ids"] == {"vms": {"on": [1, 2], "off": []}}
    assert flat["tag_names"] == "env/prod"
    assert flat["parent_host_id"] == "h1"
    assert flat["parent_ems_cluster_id"] == "c1"


def test_missing_accessor_for_count_raises(monkeypatch):
    bogus = ColumnDescriptor("derived_bogus_count", "bogus_count", G.HOST, K.COUNT)
    monkeypatch.setattr(calculator, "DERIVED_COLS", (bogus,))
    with pytest.raises(MissingAccessor, match="bogus_count"):
        derive({"timestamp": TS})


def test_missing_accessor_for_allocated_is_omitted(monkeypatch):
    bogus = ColumnDescriptor("derived_bogus", "bogus_storage", G.VM, K.ALLOCATED)
    monkeypatch.setattr(calculator, "DERIVED_COLS", (bogus,))
    metrics, _ = derive({"timestamp": TS})
    assert "derived_bogus" not in metrics.values


# =============================================================================
# Services
# =============================================================================


def test_service_skips_vm_columns_except_counts():
    metrics, _ = derive(
        {
            "timestamp": TS,
            "cpu_usage_rate_average": 50.0,
            "mem_usage_absolute_average": 25.0,
        },
        kind=E.SERVICE,
    )
    assert "derived_vm_numvcpus" not in metrics.values
    assert "derived_vm_allocated_disk_storage" not in metrics.values
    assert "derived_vm_used_disk_storage" not in metrics.values
    assert metrics.values["derived_vm_count_on"] == 10
    assert metrics.values["derived_vm_count_off"] == 2
    assert metrics.values["derived_vm_count_total"] == 12
    assert metrics.values["derived_cpu_available"] == 2000


# =============================================================================
# Result
# =============================================================================


def test_result_values_are_read_only():
    metrics, _ = derive({"timestamp": TS})
    with pytest.raises(TypeError):
        metrics.values["derived_cpu_reserved"] = 1


def test_same_inputs_same_output():
    attrs = {"timestamp": TS, "cpu_usage_rate_average": 12.5, "derived_memory_used": 20}
    first, first_norm = derive(attrs)
    second, second_norm = derive(attrs)
    assert first.as_dict() == second.as_dict()
    assert first_norm == second_norm
