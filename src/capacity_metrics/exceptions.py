import logging

import polars as pl


class CapacityMetricsError(Exception):
    pass


class UnsupportedEntityKind(CapacityMetricsError, TypeError):
    pass


class UnknownIntervalClass(CapacityMetricsError, ValueError):
    pass


class MissingAccessor(CapacityMetricsError, AttributeError):
    pass


class UnsortedSamplesError(CapacityMetricsError, ValueError):
    pass


class SampleWriteError(CapacityMetricsError):
    pass


class SourceDataError(CapacityMetricsError):
    pass


class SourceDataMissingError(SourceDataError):
    pass


def classify_source_data_error(path: str, exc: Exception) -> SourceDataError:
    message = str(exc).lower()

    if isinstance(exc, FileNotFoundError):
        return SourceDataMissingError(f"Missing parquet: {path}")

    if isinstance(exc, (OSError, pl.exceptions.PolarsError)):
        if any(
            marker in message
            for marker in ("not found", "no such file", "os error 2")
        ):
            return SourceDataMissingError(f"Missing parquet: {path}")

    return SourceDataError(f"Failed loading {path}: {exc}")


def log_source_data_error(
    logger: logging.Logger, source_key: str, exc: SourceDataError
) -> None:
    if isinstance(exc, SourceDataMissingError):
        logger.warning("[%s] missing required parquet: %s", source_key, exc)
        return
    logger.error("[%s] source data error: %s", source_key, exc)
