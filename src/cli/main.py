"""bootlog CLI entry points.

This module exposes commands for ingesting work manifests and
inspecting per-boot metadata records. It maps argparse commands onto
SDK calls.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

import yaml

from core.config import BootlogConfig
from core.errors import BootlogError
from core.types import IngestStatus
from ingest.pipeline import IngestPipelineRunner, default_pipeline_steps
from ingest.work_source import read_work_items
from ingest.worker_pool import ingest_work_items
from store.metadata_store import load_metadata_record, metadata_path, record_to_payload


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="bootlog", description="Boot session log ingestion")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_ingest_command(subparsers)
    _add_metadata_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the bootlog CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = BootlogConfig.from_env()
        if args.command == "ingest":
            return _run_ingest_command(config, args)
        if args.command == "metadata":
            return _run_metadata_command(config, args)
    except BootlogError as error:
        print(f"bootlog: {error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _run_ingest_command(config: BootlogConfig, args: argparse.Namespace) -> int:
    """Handle ingest command.

    Args:
        config: Runtime configuration.
        args: Parsed CLI args.

    Returns:
        Exit code, non-zero when any item did not complete.
    """
    if args.workers is not None:
        config = replace(config, max_workers=args.workers)
    if args.quarantine_dir:
        config = replace(config, quarantine_dir=Path(args.quarantine_dir).expanduser().resolve())
    work_items = read_work_items(Path(args.manifest))
    runner = IngestPipelineRunner(config, default_pipeline_steps(config))
    outcomes = ingest_work_items(work_items, runner, config.max_workers)
    for outcome in outcomes:
        print(
            f"{outcome.status.value}\t"
            f"{outcome.boot_id or '-'}\t"
            f"{outcome.bytes_appended}\t"
            f"{outcome.staging_path}"
        )
    all_completed = all(outcome.status is IngestStatus.COMPLETED for outcome in outcomes)
    return 0 if all_completed else 1


def _run_metadata_command(config: BootlogConfig, args: argparse.Namespace) -> int:
    """Handle metadata command.

    Args:
        config: Runtime configuration.
        args: Parsed CLI args.

    Returns:
        Exit code, 1 when no record exists.
    """
    record_path = metadata_path(Path(args.output_dir), args.boot_id, config.metadata_ext)
    record = load_metadata_record(record_path)
    if record is None:
        print(f"bootlog: no metadata record at {record_path}", file=sys.stderr)
        return 1
    print(yaml.safe_dump(record_to_payload(record), sort_keys=False), end="")
    return 0


def _add_ingest_command(subparsers: Any) -> None:
    """Register ingest subcommand."""
    parser = subparsers.add_parser("ingest", help="Ingest every work item of a JSONL manifest")
    parser.add_argument("manifest", help="JSONL work manifest path")
    parser.add_argument("--workers", type=_positive_int, help="Override BOOTLOG_WORKERS")
    parser.add_argument("--quarantine-dir", help="Override BOOTLOG_QUARANTINE_DIR")


def _add_metadata_command(subparsers: Any) -> None:
    """Register metadata subcommand."""
    parser = subparsers.add_parser("metadata", help="Print a boot id's metadata record")
    parser.add_argument("output_dir", help="Per-device output directory")
    parser.add_argument("boot_id", help="Boot identifier")


def _positive_int(raw_value: str) -> int:
    value = int(raw_value)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return value
