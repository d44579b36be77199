"""Records passed between the calculator, the rollup code and their callers."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from capacity_metrics.constants import EntityKind
from capacity_metrics.exceptions import UnsupportedEntityKind

AssocIds = dict[str, dict[str, list]]


@dataclass(frozen=True)
class Entity:
    """Subject of metrics: an EntityKind plus its id.

    kind may be given as its tag string, e.g. "VM/Template".
    """

    kind: EntityKind
    id: str

    def __post_init__(self):
        try:
            kind = EntityKind(self.kind)
        except ValueError:
            raise UnsupportedEntityKind(
                f"unsupported entity kind: [{self.kind}]"
            ) from None
        object.__setattr__(self, "kind", kind)


@dataclass(frozen=True)
class CapacityState:
    """Point-in-time capacity snapshot for one entity.

    Every field is optional; None means the provider had no value.
    """

    total_cpu: Optional[float] = None  # MHz
    total_mem: Optional[float] = None  # MB
    numvcpus: Optional[int] = None
    host_sockets: Optional[int] = None
    reserve_cpu: Optional[float] = None
    reserve_mem: Optional[float] = None
    host_count_on: Optional[int] = None
    host_count_off: Optional[int] = None
    host_count_total: Optional[int] = None
    vm_count_on: Optional[int] = None
    vm_count_off: Optional[int] = None
    vm_count_total: Optional[int] = None
    vm_allocated_disk_storage: Optional[float] = None
    vm_used_disk_storage: Optional[float] = None
    assoc_ids: Optional[AssocIds] = None
    tag_names: Optional[str] = None
    parent_host_id: Optional[str] = None
    parent_storage_id: Optional[str] = None
    parent_ems_id: Optional[str] = None
    parent_ems_cluster_id: Optional[str] = None


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    accessor: Optional[str]  # CapacityState field, if the kind reads one
    group: str
    kind: str


@dataclass(frozen=True)
class DerivedMetricSet:
    """Derived values for one sample plus ids copied from the capacity state.

    A column missing from `values` was not computed; a column mapped to None
    was computed from a state field that had no value.
    """

    values: Mapping[str, Optional[float]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    assoc_ids: Optional[AssocIds] = None
    tag_names: Optional[str] = None
    parent_host_id: Optional[str] = None
    parent_storage_id: Optional[str] = None
    parent_ems_id: Optional[str] = None
    parent_ems_cluster_id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def as_dict(self) -> dict:
        """Flatten into one mapping, the shape stored next to the sample."""
        return {
            **self.values,
            "assoc_ids": self.assoc_ids,
            "tag_names": self.tag_names,
            "parent_host_id": self.parent_host_id,
            "parent_storage_id": self.parent_storage_id,
            "parent_ems_id": self.parent_ems_id,
            "parent_ems_cluster_id": self.parent_ems_cluster_id,
        }
