#!/usr/bin/env python3
"""Command line interface for log sync.

Usage:
    logsync run                       # Sync once using STP_* environment variables
    logsync run --config sync.yaml    # Sync once using a YAML config file
    logsync schedule --interval 300   # Sync every 5 minutes until interrupted
    logsync schedule --cron "*/10 * * * *"
    logsync diff old.log new.log      # Show the lines a sync would forward
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from .config import load_config
from .diff import compute_new_lines
from .errors import ConfigError, LogSyncError
from .handler import run_sync
from .logging_config import configure_logging
from .models import RunResult
from .scheduler import JobScheduler

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logsync",
        description="Ship new lines of a remote SFTP log file to Papertrail",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a single sync")
    run_parser.add_argument("--config", help="Path to a YAML config file (default: $STP_CONFIG)")

    schedule_parser = subparsers.add_parser("schedule", help="Run syncs periodically until interrupted")
    schedule_parser.add_argument("--config", help="Path to a YAML config file (default: $STP_CONFIG)")
    when = schedule_parser.add_mutually_exclusive_group()
    when.add_argument("--interval", type=int, help="Seconds between runs (default: schedule_interval setting)")
    when.add_argument("--cron", help="Five field cron expression")

    diff_parser = subparsers.add_parser("diff", help="Print the new lines between two local log files")
    diff_parser.add_argument("old", help="Previous log file contents")
    diff_parser.add_argument("new", help="Latest log file contents")

    return parser


def print_summary(result: RunResult) -> None:
    print("\n" + "=" * 50)
    print("LOG SYNC SUMMARY")
    print("=" * 50)
    print(f"Source: {result.source}")
    print(f"New lines: {result.new_line_count}")
    print(f"Lines forwarded: {result.lines_forwarded}")
    print(f"Snapshot saved: {'yes' if result.snapshot_saved else 'no'}")
    if result.baseline_established:
        print("No previous snapshot: baseline established")
    for warning in result.warnings:
        print(f"Warning: {warning}")


async def run_schedule(config_path: Optional[str], interval: Optional[int], cron: Optional[str]) -> None:
    # Validate once up front; every run loads the configuration fresh.
    config = load_config(config_path)

    async def scheduled_run() -> None:
        try:
            await run_sync(load_config(config_path))
        except LogSyncError as e:
            logger.error("Scheduled sync run failed", error=str(e), error_type=type(e).__name__)

    scheduler = JobScheduler()
    try:
        if cron:
            scheduler.add_cron_job("log_sync", scheduled_run, cron, description="Sync remote log file")
        else:
            scheduler.add_interval_job(
                "log_sync",
                scheduled_run,
                seconds=interval or config.schedule_interval,
                description="Sync remote log file",
                run_immediately=True,
            )
    except ValueError as e:
        raise ConfigError(f"Invalid schedule: {e}") from e

    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "diff":
        configure_logging(silent=True)
        old = Path(args.old).read_text(encoding="utf-8").strip()
        new = Path(args.new).read_text(encoding="utf-8").strip()
        batch = compute_new_lines(old, new)
        if batch:
            print(batch.text)
        return 0

    try:
        config = load_config(args.config)
        configure_logging(config.log_level, silent=config.silent, debug=config.debug)

        if args.command == "run":
            result = asyncio.run(run_sync(config))
            print_summary(result)
        else:
            asyncio.run(run_schedule(args.config, args.interval, args.cron))
    except LogSyncError as e:
        logger.error("Sync failed", error=str(e), error_type=type(e).__name__)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")

    return 0


if __name__ == "__main__":
    sys.exit(main())
