"""Load a source's parquet inputs."""

import logging

import polars as pl

from capacity_metrics.exceptions import classify_source_data_error
from capacity_metrics.schemas import CapacityStateModel, SampleModel

logger = logging.getLogger(__name__)

SAMPLES_FILE = "samples.parquet"
STATES_FILE = "capacity_states.parquet"


def _load_parquet(path: str, model) -> pl.DataFrame:
    try:
        df = model.validate(pl.scan_parquet(path)).collect()
    except Exception as exc:
        raise classify_source_data_error(path, exc) from exc
    logger.debug("Loaded %d rows from %s", df.height, path)
    return df


def load_samples(data_dir: str) -> pl.DataFrame:
    return _load_parquet(f"{data_dir}/{SAMPLES_FILE}", SampleModel)


def load_capacity_states(data_dir: str) -> pl.DataFrame:
    return _load_parquet(f"{data_dir}/{STATES_FILE}", CapacityStateModel)
