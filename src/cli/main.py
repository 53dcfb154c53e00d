"""Ratestream CLI entry points.
This module exposes the emit, persist, and init-db commands.
It maps argparse commands onto pipeline calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from dotenv import load_dotenv

from core.config import RatestreamConfig, parse_log_level
from core.errors import RatestreamError
from core.logging_config import configure_logging, get_logger
from core.shutdown import ShutdownSignal
from ingest.emitter import emit_source
from store.persister import persist_stream

_LOGGER = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="ratestream", description="CSV to Kafka to MySQL growth-rate pipeline"
    )
    parser.add_argument("--log-level", help="Override RATESTREAM_LOG_LEVEL for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_emit_command(subparsers)
    _add_persist_command(subparsers)
    _add_init_db_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the ratestream CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    load_dotenv(Path.cwd() / ".env")
    try:
        config = _build_config(args)
        configure_logging(config.log_level)
        if args.command == "emit":
            return _run_emit_command(config)
        if args.command == "persist":
            return _run_persist_command(config)
        if args.command == "init-db":
            return _run_init_db_command(config)
    except RatestreamError as error:
        _LOGGER.error("command_failed", command=args.command, error=str(error))
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(args: argparse.Namespace) -> RatestreamConfig:
    """Build config with optional CLI overrides.

    Args:
        args: Parsed CLI args.

    Returns:
        Configured runtime settings.
    """
    config = RatestreamConfig.from_env()
    if args.log_level:
        config = replace(config, log_level=parse_log_level(args.log_level))
    if getattr(args, "source", None):
        config = replace(config, source_path=Path(args.source).expanduser())
    if getattr(args, "checkpoint", None):
        config = replace(config, checkpoint_path=Path(args.checkpoint).expanduser())
    return config


def _run_emit_command(config: RatestreamConfig) -> int:
    """Handle emit command.

    Args:
        config: Runtime configuration.

    Returns:
        Exit code.
    """
    shutdown = ShutdownSignal()
    shutdown.install()
    summary = emit_source(config, shutdown=shutdown)
    if not summary.processed:
        print("unchanged")
        return 0
    print(f"sent={summary.sent_count}")
    print(f"rejected={summary.rejected_count}")
    print(f"failed={summary.failed_count}")
    print(f"checkpoint={summary.checkpoint if summary.checkpoint is not None else '-'}")
    return 130 if summary.interrupted else 0


def _run_persist_command(config: RatestreamConfig) -> int:
    """Handle persist command.

    Args:
        config: Runtime configuration.

    Returns:
        Exit code.
    """
    shutdown = ShutdownSignal()
    shutdown.install()
    summary = persist_stream(config, shutdown=shutdown)
    print(f"stored={summary.stored_count}")
    print(f"dropped={summary.dropped_count}")
    print(f"retried={summary.retry_count}")
    return 0


def _run_init_db_command(config: RatestreamConfig) -> int:
    """Handle init-db command.

    Args:
        config: Runtime configuration.

    Returns:
        Exit code.
    """
    from store.mysql_storage import MySqlRecordStorage

    storage = MySqlRecordStorage(config.database)
    storage.connect()
    try:
        storage.ensure_table()
    finally:
        storage.close()
    print(config.database.table)
    return 0


def _add_emit_command(subparsers: Any) -> None:
    """Register emit subcommand."""
    parser = subparsers.add_parser("emit", help="Publish new CSV rows to the topic")
    parser.add_argument("--source", help="Override RATESTREAM_SOURCE_PATH")
    parser.add_argument("--checkpoint", help="Override RATESTREAM_CHECKPOINT_PATH")


def _add_persist_command(subparsers: Any) -> None:
    """Register persist subcommand."""
    subparsers.add_parser(
        "persist",
        help="Consume the topic into MySQL until SIGINT or SIGTERM",
    )


def _add_init_db_command(subparsers: Any) -> None:
    """Register init-db subcommand."""
    subparsers.add_parser("init-db", help="Create the target table if missing")
