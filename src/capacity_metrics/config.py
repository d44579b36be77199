from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from capacity_metrics.constants import INTERVAL_SECONDS


@dataclass(frozen=False)
class SourceConfig:
    key: str
    data_dir: Optional[str] = None
    interval_names: list[str] = field(default_factory=lambda: list(INTERVAL_SECONDS))


def load_config(path: str | Path) -> dict[str, SourceConfig]:
    data = yaml.safe_load(Path(path).read_text()) or {}
    sources: dict[str, SourceConfig] = {}
    for key, value in data.items():
        payload = dict(value or {})
        payload["key"] = key
        if payload.get("interval_names") is None:
            payload.pop("interval_names", None)
        unknown = set(payload.get("interval_names") or []) - set(INTERVAL_SECONDS)
        if unknown:
            raise ValueError(f"[{key}] unknown interval names: {sorted(unknown)}")
        sources[key] = SourceConfig(**payload)
    return sources


def get_config_for_source(path: str | Path, source_key: str) -> SourceConfig:
    return load_config(path)[source_key]
