import argparse
import logging
from datetime import datetime
from pathlib import Path

import polars as pl

from capacity_metrics.config import SourceConfig, load_config
from capacity_metrics.constants import INTERVAL_SECONDS
from capacity_metrics.exceptions import SourceDataError, log_source_data_error
from capacity_metrics.loader import load_capacity_states, load_samples
from capacity_metrics.pipeline import (
    add_missing_intervals,
    derive_samples,
    entities_in,
    gap_report,
)
from capacity_metrics.schemas import GapWindow
from capacity_metrics.state import FrameCapacityStateProvider
from capacity_metrics.store import FrameSampleStore

logger = logging.getLogger(__name__)


def _add_shared_args(
    parser: argparse.ArgumentParser, default: object | None = None
) -> None:
    parser.add_argument(
        "--config",
        help="Path to etc/sources.yml",
        default=default,
    )
    parser.add_argument(
        "--source",
        action="append",
        help="Source key from etc/sources.yml (repeatable). Defaults to all sources.",
        default=default,
    )
    parser.add_argument(
        "--data-dir",
        help="Directory with samples.parquet. Overrides config.data_dir if set.",
        default=default,
    )


def _add_window_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--interval",
        required=True,
        choices=list(INTERVAL_SECONDS),
        help="Interval class to scan. realtime scans every class.",
    )
    parser.add_argument(
        "--start-date",
        required=True,
        help="Window start (ISO format).",
    )
    parser.add_argument(
        "--end-date",
        required=True,
        help="Window end (ISO format), inclusive.",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="capacity-metrics")
    _add_shared_args(parser)

    subparsers = parser.add_subparsers(dest="command", required=True)

    derive = subparsers.add_parser(
        "derive", help="Attach derived columns to collected samples"
    )
    _add_shared_args(derive, default=argparse.SUPPRESS)
    derive.add_argument(
        "--output",
        required=True,
        help="Output directory for derived parquet per source.",
    )

    extrapolate = subparsers.add_parser(
        "extrapolate", help="Write one synthetic sample per missed cycle"
    )
    _add_shared_args(extrapolate, default=argparse.SUPPRESS)
    _add_window_args(extrapolate)
    extrapolate.add_argument(
        "--output",
        required=True,
        help="Output directory for synthetic parquet per source.",
    )

    report = subparsers.add_parser("gaps", help="List missed cycles")
    _add_shared_args(report, default=argparse.SUPPRESS)
    _add_window_args(report)

    return parser.parse_args(argv)


def _window(args: argparse.Namespace) -> GapWindow:
    return GapWindow(
        interval_name=args.interval,
        time_range=(
            datetime.fromisoformat(args.start_date),
            datetime.fromisoformat(args.end_date),
        ),
    )


def derive_source(config: SourceConfig, output_base: Path) -> Path:
    samples = load_samples(config.data_dir)
    provider = FrameCapacityStateProvider(load_capacity_states(config.data_dir))
    derived = derive_samples(samples, provider)

    output_dir = output_base / config.key
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "derived.parquet"
    derived.write_parquet(output_path)
    return output_path


def extrapolate_source(
    config: SourceConfig, window: GapWindow, output_base: Path
) -> Path | None:
    if window.interval_name not in config.interval_names:
        logger.info("[%s] %s not configured; skipping", config.key, window.interval_name)
        return None

    samples = load_samples(config.data_dir)
    store = FrameSampleStore(samples)
    for entity in entities_in(samples):
        add_missing_intervals(store, entity, window)

    output_dir = output_base / config.key
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "synthetic.parquet"
    store.written_frame().write_parquet(output_path)
    return output_path


def report_source(config: SourceConfig, window: GapWindow) -> pl.DataFrame:
    return gap_report(load_samples(config.data_dir), window).collect()


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = parse_args(argv)

    if not args.config:
        raise SystemExit(f"Error: --config required for {args.command} command")

    sources_config = load_config(args.config)
    source_keys = args.source or list(sources_config.keys())
    window = _window(args) if args.command in ("extrapolate", "gaps") else None

    for source_key in source_keys:
        if source_key not in sources_config:
            raise SystemExit(f"Error: unknown source {source_key}")
        config = sources_config[source_key]
        if args.data_dir:
            config.data_dir = args.data_dir.rstrip("/")
        if not config.data_dir:
            raise SystemExit(f"Error: no data_dir for source {source_key}")

        try:
            if args.command == "derive":
                path = derive_source(config, Path(args.output))
                logger.info("[%s] wrote %s", source_key, path)
            elif args.command == "extrapolate":
                path = extrapolate_source(config, window, Path(args.output))
                if path is not None:
                    logger.info("[%s] wrote %s", source_key, path)
            elif args.command == "gaps":
                report = report_source(config, window)
                with pl.Config(tbl_cols=-1, tbl_rows=-1):
                    logger.info("[%s] %d gaps\n%s", source_key, report.height, report)
        except SourceDataError as exc:
            log_source_data_error(logger, source_key, exc)
            continue
        except Exception:
            logger.exception("[%s] unhandled exception", source_key)
            raise


if __name__ == "__main__":
    main()
