"""Sample retrieval and synthetic sample persistence."""

import logging
from datetime import datetime
from typing import Mapping, Optional, Protocol, runtime_checkable

import polars as pl

from capacity_metrics.constants import Cols
from capacity_metrics.models.domain import Entity
from capacity_metrics.schemas import SampleModel

logger = logging.getLogger(__name__)


@runtime_checkable
class SampleStore(Protocol):
    def samples_for(
        self,
        entity: Entity,
        start: datetime,
        end: datetime,
        interval_name: Optional[str] = None,
    ) -> pl.DataFrame:
        """
        Must return the entity's samples in [start, end], sorted by
        (timestamp, capture_interval_name). interval_name=None means all classes.
        """
        raise NotImplementedError

    def write(self, sample: Mapping) -> None:
        raise NotImplementedError


class FrameSampleStore:
    """
    Samples held in a polars frame. Written samples are kept apart from the
    collected ones and exposed through `written_frame()`.
    """

    def __init__(self, samples: pl.DataFrame | pl.LazyFrame):
        samples = SampleModel.validate(samples)
        if isinstance(samples, pl.LazyFrame):
            samples = samples.collect()
        self._samples = samples
        self.written: list[dict] = []

    def samples_for(
        self,
        entity: Entity,
        start: datetime,
        end: datetime,
        interval_name: Optional[str] = None,
    ) -> pl.DataFrame:
        predicates = [
            pl.col(Cols.RESOURCE_TYPE).eq(entity.kind.value),
            pl.col(Cols.RESOURCE_ID).eq(entity.id),
            pl.col(Cols.TIMESTAMP).is_between(start, end, closed="both"),
        ]
        if interval_name is not None:
            predicates.append(pl.col(Cols.CAPTURE_INTERVAL_NAME).eq(interval_name))
        return self._samples.filter(*predicates).sort(
            [Cols.TIMESTAMP, Cols.CAPTURE_INTERVAL_NAME]
        )

    def write(self, sample: Mapping) -> None:
        self.written.append(dict(sample))
        logger.debug("Stored synthetic sample at %s", sample[Cols.TIMESTAMP])

    def written_frame(self) -> pl.DataFrame:
        if not self.written:
            return self._samples.clear()
        return pl.from_dicts(self.written, infer_schema_length=None)
