"""
Constants defined in one place for reuse.
"""

from enum import Enum


class EntityKind(str, Enum):
    """Closed set of entities the derived-column calculator accepts."""

    VM_OR_TEMPLATE = "VM/Template"
    CONTAINER = "Container"
    CONTAINER_GROUP = "ContainerGroup"
    CONTAINER_NODE = "ContainerNode"
    CONTAINER_PROJECT = "ContainerProject"
    CONTAINER_REPLICATOR = "ContainerReplicator"
    CONTAINER_SERVICE = "ContainerService"
    HOST = "Host"
    AVAILABILITY_ZONE = "AvailabilityZone"
    HOST_AGGREGATE = "HostAggregate"
    CLUSTER = "Cluster"
    MANAGEMENT_SYSTEM = "ManagementSystem"
    REGION = "Region"
    ENTERPRISE = "Enterprise"
    SERVICE = "Service"

    def __str__(self) -> str:
        return self.value


VALID_PROCESS_TARGETS = frozenset(EntityKind)


class ValueKinds:
    AVAILABLE = "available"
    ALLOCATED = "allocated"
    USED = "used"
    RATE = "rate"
    RESERVED = "reserved"
    COUNT = "count"
    LOGICAL_CPU_COUNT = "numvcpus"
    SOCKETS = "sockets"


class MetricGroups:
    CPU = "cpu"
    MEMORY = "memory"
    HOST = "host"
    VM = "vm"


class IntervalNames:
    REALTIME = "realtime"
    HOURLY = "hourly"
    DAILY = "daily"


# Nominal spacing between two samples of the same interval class
INTERVAL_SECONDS = {
    IntervalNames.REALTIME: 20,
    IntervalNames.HOURLY: 60 * 60,
    IntervalNames.DAILY: 24 * 60 * 60,
}


class Cols:
    """Sample column names."""

    ID = "id"
    TIMESTAMP = "timestamp"
    CAPTURE_INTERVAL = "capture_interval"
    CAPTURE_INTERVAL_NAME = "capture_interval_name"
    RESOURCE_TYPE = "resource_type"
    RESOURCE_ID = "resource_id"
    ASSOC_IDS = "assoc_ids"
    TAG_NAMES = "tag_names"

    # Raw counters the calculator reads
    CPU_USAGE_RATE = "cpu_usage_rate_average"
    CPU_USAGE_MHZ = "cpu_usagemhz_rate_average"
    MEM_USAGE_PCT = "mem_usage_absolute_average"
    DERIVED_MEMORY_USED = "derived_memory_used"


# capture_interval of a sample made up to fill a gap
SYNTHETIC_CAPTURE_INTERVAL = 0

# Numeric columns averaged when two samples are merged into one
ROLLUP_COLS = (
    "cpu_ready_delta_summation",
    "cpu_system_delta_summation",
    "cpu_usage_rate_average",
    "cpu_usagemhz_rate_average",
    "cpu_used_delta_summation",
    "cpu_wait_delta_summation",
    "derived_cpu_available",
    "derived_cpu_reserved",
    "derived_host_count_off",
    "derived_host_count_on",
    "derived_host_count_total",
    "derived_host_sockets",
    "derived_memory_available",
    "derived_memory_reserved",
    "derived_memory_used",
    "derived_vm_allocated_disk_storage",
    "derived_vm_count_off",
    "derived_vm_count_on",
    "derived_vm_count_total",
    "derived_vm_numvcpus",
    "derived_vm_used_disk_storage",
    "disk_devicelatency_absolute_average",
    "disk_kernellatency_absolute_average",
    "disk_queuelatency_absolute_average",
    "disk_usage_rate_average",
    "mem_swapin_absolute_average",
    "mem_swapout_absolute_average",
    "mem_swapped_absolute_average",
    "mem_swaptarget_absolute_average",
    "mem_usage_absolute_average",
    "mem_vmmemctl_absolute_average",
    "mem_vmmemctltarget_absolute_average",
    "net_usage_rate_average",
)

ASSOC_KEYS = ("vms", "hosts")
