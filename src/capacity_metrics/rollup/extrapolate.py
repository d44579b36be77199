"""Fill missed collection cycles with one synthetic sample per gap.

Single pass over samples sorted by (timestamp, capture_interval_name), keeping
the last sample seen for each interval class. When the next sample of a class
arrives more than one nominal interval after the last one, a synthetic sample
is written at last + interval and the scan moves on. Longer gaps still get a
single point; nothing is backfilled beyond that.
"""

import logging
from datetime import timedelta
from typing import Iterable, Mapping, Optional, Protocol

from capacity_metrics.constants import INTERVAL_SECONDS, Cols
from capacity_metrics.exceptions import (
    SampleWriteError,
    UnknownIntervalClass,
    UnsortedSamplesError,
)
from capacity_metrics.rollup.merge import create_synthetic_sample

logger = logging.getLogger(__name__)


class SampleWriter(Protocol):
    def write(self, sample: Mapping) -> None: ...


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


def interval_name_to_interval(name: str) -> int:
    """Nominal interval in seconds for an interval class."""
    try:
        return INTERVAL_SECONDS[name]
    except KeyError:
        raise UnknownIntervalClass(f"unknown interval name: [{name}]") from None


def _seconds_between(earlier, later) -> float:
    """Seconds from earlier to later; datetimes or plain numbers of seconds."""
    delta = later - earlier
    if isinstance(delta, timedelta):
        return delta.total_seconds()
    return delta


def extrapolate(
    samples: Iterable[Mapping],
    writer: SampleWriter,
    cancel: Optional[CancelToken] = None,
) -> list[dict]:
    """Write one synthetic sample for every gap in samples.

    Args:
        samples: One metric source, sorted ascending by timestamp. Timestamps
            are datetimes or numbers of seconds.
        writer: Persists each synthetic sample; a failure aborts the scan.
        cancel: Checked before each sample, e.g. a threading.Event.

    Returns:
        Synthetic samples written, in scan order.
    """
    last_seen: dict[int, Mapping] = {}
    written: list[dict] = []

    for sample in samples:
        if cancel is not None and cancel.is_set():
            logger.info("Gap scan cancelled after %d synthetic samples", len(written))
            break

        interval = interval_name_to_interval(sample[Cols.CAPTURE_INTERVAL_NAME])
        last = last_seen.get(interval)
        if last is None:
            last_seen[interval] = sample
            continue

        gap = _seconds_between(last[Cols.TIMESTAMP], sample[Cols.TIMESTAMP])
        if gap < 0:
            raise UnsortedSamplesError(
                f"sample at {sample[Cols.TIMESTAMP]} follows {last[Cols.TIMESTAMP]}"
            )
        if gap <= interval:
            last_seen[interval] = sample
            continue

        synthetic = create_synthetic_sample(last, sample, interval)
        try:
            writer.write(synthetic)
        except Exception as exc:
            logger.error(
                "Failed writing synthetic sample at %s", synthetic[Cols.TIMESTAMP]
            )
            raise SampleWriteError(
                f"failed writing synthetic sample at {synthetic[Cols.TIMESTAMP]}: {exc}"
            ) from exc
        logger.info(
            "Filled %ds gap after %s with synthetic sample at %s",
            gap,
            last[Cols.TIMESTAMP],
            synthetic[Cols.TIMESTAMP],
        )
        written.append(synthetic)
        last_seen[interval] = sample

    return written
