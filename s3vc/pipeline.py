# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3VC Pruning Pipeline - Bounded concurrent cleanup of non-current versions.

One run prunes one bucket with two asyncio tasks joined by a bounded queue:

1. The selection stage walks the version listing, counts every record,
   and enqueues prunable ones until the per-run quota is met.
2. The deletion stage drains the queue in batches and either deletes them
   (execute mode) or only reports them (dry-run).

A single deadline covers both stages. When it fires, anything still
queued is abandoned: it is neither counted as removed nor as failed.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, List

import structlog

from s3vc.classifier import ObjectVersion, is_prunable
from s3vc.config import PruneRunConfig
from s3vc.report import DeletionFailure, RunReport, resolve_status
from s3vc.storage import VersionStore

logger = structlog.get_logger()

# Closes the queue; never a valid ObjectVersion
_END_OF_STREAM = object()


@dataclass
class _RunCounters:
    """
    Per-run tallies shared by the two stages.

    observed, selected and quota_reached are written only by the selection
    stage; removed and failures only by the deletion stage.
    """

    observed: int = 0
    removed: int = 0
    quota_reached: bool = False
    selected: List[ObjectVersion] = field(default_factory=list)
    failures: List[DeletionFailure] = field(default_factory=list)


async def prune(
    config: PruneRunConfig,
    versions: AsyncIterator[ObjectVersion],
    store: VersionStore,
) -> RunReport:
    """
    Prune non-current versions of one bucket.

    Args:
        config: Per-bucket run settings (quota, deadline, dry-run)
        versions: Lazy version listing of ``config.bucket``
        store: Storage collaborator used for batch deletion

    Returns:
        RunReport describing what was observed, selected and removed

    Raises:
        S3OperationError: If the listing or a delete request fails as a whole
    """
    from ulid import ULID

    operation_id = str(ULID())
    log = logger.bind(
        bucket=config.bucket,
        operation_id=operation_id,
        dry_run=config.dry_run,
    )
    started = time.monotonic()

    log.info(
        "prune_started",
        max_objects=config.max_objects,
        timeout_seconds=config.timeout_seconds,
    )

    counters = _RunCounters()
    queue: asyncio.Queue = asyncio.Queue(maxsize=config.max_objects)

    selector = asyncio.create_task(_select_versions(config, versions, queue, counters, log))
    deleter = asyncio.create_task(_drain_and_delete(config, queue, store, counters, log))

    deadline = asyncio.timeout(config.timeout_seconds)
    deadline_exceeded = False
    try:
        async with deadline:
            await asyncio.gather(selector, deleter)
    except TimeoutError:
        # A TimeoutError raised by the storage client is not our deadline
        if not deadline.expired():
            raise
        deadline_exceeded = True
        log.warning(
            "prune_deadline_exceeded",
            timeout_seconds=config.timeout_seconds,
            abandoned=queue.qsize(),
        )
    finally:
        await _stop_stages(selector, deleter)

    status = resolve_status(
        deadline_exceeded=deadline_exceeded,
        quota_reached=counters.quota_reached,
        has_failures=bool(counters.failures),
    )
    report = RunReport(
        operation_id=operation_id,
        bucket=config.bucket,
        dry_run=config.dry_run,
        status=status,
        observed=counters.observed,
        removed=counters.removed,
        duration_seconds=time.monotonic() - started,
        selected_versions=tuple(counters.selected),
        failures=tuple(counters.failures),
    )

    log.info(
        "prune_completed",
        status=status.value,
        observed=report.observed,
        selected=report.selected,
        removed=report.removed,
        remaining=report.remaining,
        failures=len(report.failures),
        duration=report.duration_seconds,
    )
    return report


async def _select_versions(
    config: PruneRunConfig,
    versions: AsyncIterator[ObjectVersion],
    queue: asyncio.Queue,
    counters: _RunCounters,
    log: Any,
) -> None:
    """Selection stage: classify the listing and feed the queue up to the quota."""
    try:
        async for version in versions:
            counters.observed += 1
            if not is_prunable(version):
                continue

            # Blocks while the deletion stage catches up
            await queue.put(version)
            counters.selected.append(version)

            if len(counters.selected) >= config.max_objects:
                counters.quota_reached = True
                log.info(
                    "prune_quota_reached",
                    limit=config.max_objects,
                    observed=counters.observed,
                )
                break
    finally:
        await _close_listing(versions)

    await queue.put(_END_OF_STREAM)


async def _drain_and_delete(
    config: PruneRunConfig,
    queue: asyncio.Queue,
    store: VersionStore,
    counters: _RunCounters,
    log: Any,
) -> None:
    """Deletion stage: drain the queue in FIFO order, one batch at a time."""
    while True:
        item = await queue.get()
        if item is _END_OF_STREAM:
            return

        batch = [item]
        closed = False
        # Take whatever is already buffered without waiting for more
        while len(batch) < config.delete_batch_size:
            try:
                item = queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            if item is _END_OF_STREAM:
                closed = True
                break
            batch.append(item)

        await _process_batch(config, batch, store, counters, log)

        if closed:
            return


async def _process_batch(
    config: PruneRunConfig,
    batch: List[ObjectVersion],
    store: VersionStore,
    counters: _RunCounters,
    log: Any,
) -> None:
    if config.dry_run:
        for version in batch:
            log.debug(
                "version_would_be_deleted",
                key=version.key,
                version_id=version.version_id,
            )
        return

    failures = await store.delete_versions(config.bucket, batch)

    failed = set()
    for failure in failures:
        failed.add((failure.key, failure.version_id))
        log.error(
            "version_delete_failed",
            key=failure.key,
            version_id=failure.version_id,
            code=failure.code,
            error=failure.message,
        )

    counters.failures.extend(failures)
    counters.removed += sum(
        1 for v in batch if (v.key, v.version_id) not in failed
    )


async def _close_listing(versions: AsyncIterator[ObjectVersion]) -> None:
    """Release the listing (and its paginator) once selection stops reading."""
    aclose = getattr(versions, "aclose", None)
    if aclose is not None:
        await aclose()


async def _stop_stages(*tasks: asyncio.Task) -> None:
    """Cancel unfinished stages and wait for them to unwind."""
    for task in tasks:
        if not task.done():
            task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
