"""Derived column table: what each derived column reads and how it is computed."""

from capacity_metrics.constants import MetricGroups as G
from capacity_metrics.constants import ValueKinds as K
from capacity_metrics.models.domain import ColumnDescriptor

DERIVED_COLS = (
    ColumnDescriptor("derived_cpu_available", None, G.CPU, K.AVAILABLE),
    ColumnDescriptor("derived_cpu_reserved", "reserve_cpu", G.CPU, K.RESERVED),
    ColumnDescriptor("derived_host_count_off", "host_count_off", G.HOST, K.COUNT),
    ColumnDescriptor("derived_host_count_on", "host_count_on", G.HOST, K.COUNT),
    ColumnDescriptor("derived_host_count_total", "host_count_total", G.HOST, K.COUNT),
    ColumnDescriptor("derived_memory_available", None, G.MEMORY, K.AVAILABLE),
    ColumnDescriptor("derived_memory_reserved", "reserve_mem", G.MEMORY, K.RESERVED),
    ColumnDescriptor("derived_memory_used", None, G.MEMORY, K.USED),
    ColumnDescriptor("derived_host_sockets", None, G.HOST, K.SOCKETS),
    ColumnDescriptor(
        "derived_vm_allocated_disk_storage",
        "vm_allocated_disk_storage",
        G.VM,
        K.ALLOCATED,
    ),
    ColumnDescriptor("derived_vm_count_off", "vm_count_off", G.VM, K.COUNT),
    ColumnDescriptor("derived_vm_count_on", "vm_count_on", G.VM, K.COUNT),
    ColumnDescriptor("derived_vm_count_total", "vm_count_total", G.VM, K.COUNT),
    # Logical cpus; reports depend on the numvcpus name
    ColumnDescriptor("derived_vm_numvcpus", None, G.VM, K.LOGICAL_CPU_COUNT),
    ColumnDescriptor(
        "derived_vm_used_disk_storage", "vm_used_disk_storage", G.VM, K.USED
    ),
    # Charts read cpu used from here rather than from a derived_cpu_used column
    ColumnDescriptor("cpu_usagemhz_rate_average", None, G.CPU, K.RATE),
)

DERIVED_COLS_BY_NAME = {col.name: col for col in DERIVED_COLS}
