"""Merge two time-adjacent samples into one synthetic sample."""

import copy
from datetime import datetime, timedelta
from typing import Iterable, Mapping

from capacity_metrics.constants import (
    ASSOC_KEYS,
    ROLLUP_COLS,
    SYNTHETIC_CAPTURE_INTERVAL,
    Cols,
)


def create_synthetic_sample(base: Mapping, next_sample: Mapping, interval: int) -> dict:
    """Sample one interval after base, halfway between base and next_sample.

    Timestamps may be datetimes or plain numbers of seconds.

    Starts from a copy of base without its id, flagged synthetic with
    capture_interval = 0. Rollup columns present in both samples are
    averaged; association ids present in both are unioned.
    """
    sample = {k: v for k, v in base.items() if k != Cols.ID}
    sample[Cols.TIMESTAMP] = _shift(base[Cols.TIMESTAMP], interval)
    sample[Cols.CAPTURE_INTERVAL] = SYNTHETIC_CAPTURE_INTERVAL
    if Cols.ASSOC_IDS in sample:
        sample[Cols.ASSOC_IDS] = copy.deepcopy(sample[Cols.ASSOC_IDS])

    for col in ROLLUP_COLS:
        if sample.get(col) is None or next_sample.get(col) is None:
            continue
        sample[col] = (sample[col] + next_sample[col]) / 2

    next_assoc = next_sample.get(Cols.ASSOC_IDS)
    if next_assoc is not None:
        merge_assoc_ids(sample.get(Cols.ASSOC_IDS), next_assoc)

    return sample


def _shift(ts, seconds: int):
    if isinstance(ts, datetime):
        return ts + timedelta(seconds=seconds)
    return ts + seconds


def merge_assoc_ids(target: dict | None, other: Mapping) -> None:
    """Union on/off id lists of other into target, key by key, in place.

    Keys that are empty or missing on either side are left as target has them.
    """
    if not target:
        return
    for key in ASSOC_KEYS:
        ours = target.get(key)
        theirs = other.get(key)
        if not ours or not theirs:
            continue
        ours["on"] = unique(ours.get("on") or [], theirs.get("on") or [])
        ours["off"] = unique(ours.get("off") or [], theirs.get("off") or [])


def unique(*id_lists: Iterable) -> list:
    """Concatenate and de-duplicate, keeping first-seen order. Always a list."""
    return list(dict.fromkeys(i for ids in id_lists for i in ids))
