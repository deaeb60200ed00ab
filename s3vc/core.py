# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3VC Core - Orchestrator functions for the cleaner commands.

This module connects the storage adapter to the pure policy reconciler and
the pruning pipeline, one bucket at a time. A failure in one bucket is
recorded in its BucketOutcome and the remaining buckets still run.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, UTC
from enum import Enum
from typing import Any, Awaitable, Callable, List, TypedDict

import structlog

from s3vc.config import CleanerConfig
from s3vc.errors import explain_missing_bucket
from s3vc.exceptions import S3OperationError, S3VCError
from s3vc.pipeline import prune
from s3vc.reconciler import PolicyAction, evaluate, reconcile
from s3vc.report import RunReport
from s3vc.storage import BucketInfo, S3Storage, open_storage

logger = structlog.get_logger()


class PolicyState(str, Enum):
    """Result of checking a bucket's lifecycle configuration."""

    MISSING = "missing"
    CORRECT = "correct"
    MISCONFIGURED = "misconfigured"


@dataclass
class BucketOutcome:
    """Per-bucket result of a multi-bucket command."""

    bucket: str
    policy_state: PolicyState | None = None
    action: PolicyAction | None = None
    report: RunReport | None = None
    skipped: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        if self.error is not None:
            return False
        if self.report is not None:
            return not self.report.has_errors
        return True


@dataclass
class CleanerMetrics:
    """Totals across the cleanup runs made with one state."""

    total_runs: int
    last_run_at: datetime | None
    total_removed: int
    total_failures: int
    last_error: str | None


class CleanerState(TypedDict):
    """Runtime state shared by the cleaner commands."""

    s3_session: Any  # aiobotocore session
    last_run_at: datetime | None
    total_runs: int
    total_removed: int
    total_failures: int
    last_error: str | None


def initialize_state(config: CleanerConfig) -> CleanerState:
    """
    Initialize runtime state for cleaner operations.

    Args:
        config: Cleaner configuration

    Returns:
        Initialized CleanerState dictionary
    """
    from aiobotocore.session import get_session

    if not config.dry_run:
        logger.warning("execute_mode_enabled", max_objects_per_run=config.max_objects_per_run)

    return CleanerState(
        s3_session=get_session(),
        last_run_at=None,
        total_runs=0,
        total_removed=0,
        total_failures=0,
        last_error=None,
    )


# ============================================================================
# Single-bucket operations
# ============================================================================

async def check_bucket(storage: S3Storage, bucket: str) -> PolicyState:
    """Report whether ``bucket`` carries the managed lifecycle policy."""
    rules = await storage.get_lifecycle(bucket)
    if rules is None:
        return PolicyState.MISSING
    if evaluate(rules):
        return PolicyState.CORRECT
    return PolicyState.MISCONFIGURED


async def apply_bucket_policy(storage: S3Storage, bucket: str) -> PolicyAction:
    """
    Make sure ``bucket`` carries the managed lifecycle policy.

    Returns:
        The action taken; NO_CHANGE means nothing was written
    """
    current = await storage.get_lifecycle(bucket)
    result = reconcile(current)

    if result.changed:
        await storage.set_lifecycle(bucket, result.rules)

    logger.info(
        "lifecycle_policy_applied",
        bucket=bucket,
        action=result.action.value,
        rules=len(result.rules),
    )
    return result.action


async def clean_bucket(
    config: CleanerConfig,
    state: CleanerState,
    storage: S3Storage,
    bucket: str,
) -> RunReport | None:
    """
    Prune non-current versions of one bucket.

    Returns:
        RunReport, or None if the bucket does not exist
    """
    logger.info("bucket_clean_started", bucket=bucket)

    if not await storage.bucket_exists(bucket):
        logger.warning("bucket_not_found", bucket=bucket)
        return None

    report = await prune(
        config.prune_config_for(bucket),
        storage.list_versions(bucket),
        storage,
    )

    state["last_run_at"] = datetime.now(UTC)
    state["total_runs"] += 1
    state["total_removed"] += report.removed
    state["total_failures"] += len(report.failures)
    return report


# ============================================================================
# Multi-bucket commands
# ============================================================================

async def list_buckets(config: CleanerConfig, state: CleanerState) -> List[BucketInfo]:
    """List all buckets visible to the configured credentials."""
    async with open_storage(config, state["s3_session"]) as storage:
        return await storage.list_buckets()


async def _target_buckets(config: CleanerConfig, storage: S3Storage) -> List[str]:
    if config.bucket:
        return [config.bucket]
    return [b.name for b in await storage.list_buckets()]


async def _for_each_bucket(
    state: CleanerState,
    buckets: List[str],
    handler: Callable[[str], Awaitable[BucketOutcome]],
    concurrency: int = 1,
) -> List[BucketOutcome]:
    """Run ``handler`` per bucket, converting errors into outcomes."""
    semaphore = asyncio.Semaphore(concurrency)

    async def run_one(bucket: str) -> BucketOutcome:
        async with semaphore:
            try:
                return await handler(bucket)
            except S3VCError as e:
                state["last_error"] = str(e)
                logger.error("bucket_failed", bucket=bucket, error=str(e))
                return BucketOutcome(bucket=bucket, error=str(e))

    return list(await asyncio.gather(*(run_one(b) for b in buckets)))


async def check_lifecycle(
    config: CleanerConfig,
    state: CleanerState,
) -> List[BucketOutcome]:
    """Check the lifecycle policy of the configured bucket, or of every bucket."""
    async with open_storage(config, state["s3_session"]) as storage:
        buckets = await _target_buckets(config, storage)

        async def handler(bucket: str) -> BucketOutcome:
            policy_state = await check_bucket(storage, bucket)
            return BucketOutcome(bucket=bucket, policy_state=policy_state)

        return await _for_each_bucket(state, buckets, handler)


async def apply_lifecycle(
    config: CleanerConfig,
    state: CleanerState,
) -> List[BucketOutcome]:
    """
    Apply the managed lifecycle policy to the configured bucket, or to every bucket.

    Raises:
        S3OperationError: If an explicitly configured bucket does not exist
    """
    async with open_storage(config, state["s3_session"]) as storage:
        if config.bucket and not await storage.bucket_exists(config.bucket):
            raise S3OperationError(
                explain_missing_bucket(config.bucket),
                details={"bucket": config.bucket, "operation": "head_bucket"},
            )

        buckets = await _target_buckets(config, storage)

        async def handler(bucket: str) -> BucketOutcome:
            action = await apply_bucket_policy(storage, bucket)
            return BucketOutcome(bucket=bucket, action=action)

        return await _for_each_bucket(state, buckets, handler)


async def clean_versions(
    config: CleanerConfig,
    state: CleanerState,
) -> List[BucketOutcome]:
    """
    Prune non-current versions in the configured bucket, or in every bucket.

    Up to ``config.max_concurrent_buckets`` buckets are pruned at once; each
    bucket gets its own pipeline, quota and deadline.
    """
    async with open_storage(config, state["s3_session"]) as storage:
        buckets = await _target_buckets(config, storage)

        async def handler(bucket: str) -> BucketOutcome:
            report = await clean_bucket(config, state, storage, bucket)
            return BucketOutcome(bucket=bucket, report=report, skipped=report is None)

        return await _for_each_bucket(
            state,
            buckets,
            handler,
            concurrency=config.max_concurrent_buckets,
        )


def get_metrics(state: CleanerState) -> CleanerMetrics:
    """Get current cleaner metrics."""
    return CleanerMetrics(
        total_runs=state["total_runs"],
        last_run_at=state["last_run_at"],
        total_removed=state["total_removed"],
        total_failures=state["total_failures"],
        last_error=state["last_error"],
    )
