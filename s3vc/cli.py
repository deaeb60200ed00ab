# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Command line entry point.

Usage:
    s3vc [--config PATH] [--bucket NAME] [--dry-run] [--verbose] COMMAND

Commands:
    list    - List all buckets
    check   - Check lifecycle policies
    apply   - Apply the managed lifecycle policy
    clean   - Delete non-current versions of objects

Exit codes: 0 success, 1 a bucket failed or finished with errors,
2 usage or configuration error.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from typing import List

import structlog

from s3vc import __version__
from s3vc.config import CleanerConfig, CleanMode
from s3vc.core import (
    BucketOutcome,
    PolicyState,
    apply_lifecycle,
    check_lifecycle,
    clean_versions,
    initialize_state,
    list_buckets,
)
from s3vc.env import load_config
from s3vc.exceptions import ConfigurationError, S3VCError
from s3vc.reconciler import PolicyAction
from s3vc.report import RunReport, RunStatus

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

COMMANDS = ("list", "check", "apply", "clean")

_POLICY_STATE_TEXT = {
    PolicyState.MISSING: "No lifecycle policy",
    PolicyState.CORRECT: "Correct policy exists",
    PolicyState.MISCONFIGURED: "Policy exists but not configured properly",
}

_ACTION_TEXT = {
    PolicyAction.NO_CHANGE: "Policy already correct",
    PolicyAction.CREATED: "Successfully added lifecycle policy",
    PolicyAction.REPLACED: "Successfully updated lifecycle policy",
}


def configure_logging(verbose: bool = False) -> None:
    """Route structlog output to stderr with a console renderer."""
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="s3vc",
        description="Manage version lifecycle policies and prune non-current object versions.",
    )
    parser.add_argument("command", choices=COMMANDS, help="Command to run.")
    parser.add_argument("--config", default=None, help="Path to YAML config file.")
    parser.add_argument("--bucket", default=None, help="Specific bucket name to process.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Simulate cleanup without actual deletion.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> CleanerConfig:
    """Load config and apply command line overrides."""
    config = load_config(args.config)
    updates = {}
    if args.bucket:
        updates["bucket"] = args.bucket
    if args.dry_run:
        updates["mode"] = CleanMode.DRY_RUN
    return config.with_updates(**updates) if updates else config


def format_report(report: RunReport) -> str:
    """One human-readable summary line for a pruning run."""
    if report.dry_run:
        return (
            f"Bucket {report.bucket}: Dry run completed, planning to delete "
            f"{report.selected} non-current versions ({report.observed} versions scanned)"
        )
    if report.status == RunStatus.DEADLINE_EXCEEDED:
        return (
            f"Bucket {report.bucket}: Deadline exceeded after deleting "
            f"{report.removed}/{report.selected} versions"
        )
    if report.has_errors:
        return (
            f"Bucket {report.bucket}: Clean completed with errors "
            f"(deleted {report.removed}/{report.selected}, {len(report.failures)} failed)"
        )
    suffix = ", limit reached" if report.status == RunStatus.QUOTA_REACHED else ""
    return (
        f"Bucket {report.bucket}: Successfully deleted {report.removed} versions "
        f"({report.remaining} remaining{suffix})"
    )


def _print_outcomes(command: str, outcomes: List[BucketOutcome]) -> None:
    for outcome in outcomes:
        if outcome.error is not None:
            print(f"Bucket {outcome.bucket}: Error: {outcome.error}")
        elif command == "check":
            print(f"Bucket {outcome.bucket}: {_POLICY_STATE_TEXT[outcome.policy_state]}")
        elif command == "apply":
            print(f"Bucket {outcome.bucket}: {_ACTION_TEXT[outcome.action]}")
        elif outcome.skipped:
            print(f"Bucket {outcome.bucket} does not exist")
        else:
            print(format_report(outcome.report))


async def run(command: str, config: CleanerConfig) -> int:
    """Run ``command`` and return the process exit code."""
    state = initialize_state(config)

    if command == "list":
        buckets = await list_buckets(config, state)
        print("Available buckets:")
        for bucket in buckets:
            created = bucket.creation_date.strftime("%Y-%m-%d") if bucket.creation_date else "unknown"
            print(f"- {bucket.name} (created: {created})")
        return EXIT_OK

    if command == "check":
        outcomes = await check_lifecycle(config, state)
    elif command == "apply":
        outcomes = await apply_lifecycle(config, state)
    else:
        outcomes = await clean_versions(config, state)

    _print_outcomes(command, outcomes)
    return EXIT_OK if all(o.ok for o in outcomes) else EXIT_FAILURE


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    logger = structlog.get_logger()

    try:
        config = build_config(args)
    except ConfigurationError as e:
        logger.error("config_error", error=str(e))
        return EXIT_USAGE

    try:
        return asyncio.run(run(args.command, config))
    except S3VCError as e:
        logger.error("command_failed", command=args.command, error=str(e))
        return EXIT_FAILURE


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
