"""Frame schemas for stage boundary validation."""

from dataclasses import dataclass
from datetime import datetime

import pandera.polars as pa
import polars as pl
from pandera.api.polars.model_config import BaseConfig

from capacity_metrics.constants import INTERVAL_SECONDS
from capacity_metrics.exceptions import UnknownIntervalClass


@dataclass(frozen=True)
class GapWindow:
    """One gap-filling run: interval class and time window (inclusive)."""

    interval_name: str
    time_range: tuple[datetime, datetime]

    def __post_init__(self):
        if self.interval_name not in INTERVAL_SECONDS:
            raise UnknownIntervalClass(
                f"unknown interval name: [{self.interval_name}]"
            )
        start, end = self.time_range
        if start > end:
            raise ValueError(f"time_range start after end: {start} > {end}")


class _OrderedModel(pa.DataFrameModel):
    """Base model that coerces column order to match schema.

    See https://github.com/unionai-oss/pandera/issues/1317
    """

    class Config(BaseConfig):
        strict = False
        ordered = True

    @classmethod
    def validate(cls, check_obj, *args, **kwargs):
        """Reorder schema columns to front, preserve extra columns, then validate."""
        schema_cols = list(cls.to_schema().columns.keys())
        all_cols = check_obj.collect_schema().names()
        present = [c for c in schema_cols if c in all_cols]
        extra_cols = [c for c in all_cols if c not in schema_cols]
        check_obj = check_obj.select(*present, *extra_cols)
        return super().validate(check_obj, *args, **kwargs)


class SampleModel(_OrderedModel):
    """Collected samples; counters ride along as extra columns."""

    timestamp: pl.Datetime
    capture_interval_name: str
    resource_type: str
    resource_id: str


class CapacityStateModel(_OrderedModel):
    """Capacity snapshots; CapacityState fields ride along as extra columns."""

    timestamp: pl.Datetime
    resource_type: str
    resource_id: str
