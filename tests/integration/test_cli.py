"""CLI runs against parquet inputs on disk."""

import logging
from datetime import datetime, timedelta

import polars as pl

from capacity_metrics.cli import main

T0 = datetime(2024, 1, 1)


def setup_source(tmp_path):
    data_dir = tmp_path / "vcenter"
    data_dir.mkdir()
    pl.DataFrame(
        {
            "id": [1, 2],
            "timestamp": [T0, T0 + timedelta(hours=5)],
            "capture_interval_name": ["hourly", "hourly"],
            "capture_interval": [3600, 3600],
            "resource_type": ["Host", "Host"],
            "resource_id": ["h1", "h1"],
            "cpu_usage_rate_average": [10.0, 30.0],
        }
    ).write_parquet(data_dir / "samples.parquet")

    config = tmp_path / "sources.yml"
    config.write_text(f"vcenter:\n  data_dir: {data_dir}\n")
    return config


def window_args():
    return [
        "--interval",
        "hourly",
        "--start-date",
        "2024-01-01",
        "--end-date",
        "2024-01-02",
    ]


def test_extrapolate_writes_synthetic_parquet(tmp_path):
    config = setup_source(tmp_path)
    output = tmp_path / "out"

    main(["--config", str(config), "extrapolate", *window_args(), "--output", str(output)])

    synthetic = pl.read_parquet(output / "vcenter" / "synthetic.parquet")
    assert synthetic.height == 1
    assert synthetic["timestamp"][0] == T0 + timedelta(hours=1)
    assert synthetic["cpu_usage_rate_average"][0] == 20.0
    assert synthetic["capture_interval"][0] == 0


def test_gaps_logs_report(tmp_path, caplog):
    config = setup_source(tmp_path)

    with caplog.at_level(logging.INFO):
        main(["--config", str(config), "gaps", *window_args()])

    assert "[vcenter] 1 gaps" in caplog.text


def test_missing_source_data_skipped(tmp_path, caplog):
    config = tmp_path / "sources.yml"
    config.write_text(f"empty:\n  data_dir: {tmp_path / 'nothing'}\n")

    with caplog.at_level(logging.WARNING):
        main(["--config", str(config), "gaps", *window_args()])

    assert "[empty] missing required parquet" in caplog.text
