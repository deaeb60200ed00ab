# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for S3VC tests.

Provides in-memory storage fakes, version listing helpers, and test
configuration helpers.
"""

import asyncio
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, List, Sequence, Set, Tuple

import pytest
import structlog

from s3vc.classifier import ObjectVersion
from s3vc.config import PruneRunConfig
from s3vc.policy import LifecycleRuleSet
from s3vc.report import DeletionFailure
from s3vc.storage import BucketInfo

# Keep the environment from leaking real settings into config tests
_LEAKY_VARS = ("S3_BUCKET", "AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY")
for _name in list(os.environ):
    if _name.startswith("S3VC_") or _name in _LEAKY_VARS:
        del os.environ[_name]


def version(key: str, version_id: str, is_latest: bool = False) -> ObjectVersion:
    """Shorthand for building a version record."""
    return ObjectVersion(key=key, version_id=version_id, is_latest=is_latest)


async def listing(
    versions: Iterable[ObjectVersion],
    delay: float = 0.0,
) -> AsyncIterator[ObjectVersion]:
    """Async version listing, optionally pausing before each record."""
    for v in versions:
        if delay:
            await asyncio.sleep(delay)
        yield v


class FakeVersionStore:
    """
    Records delete_versions() calls and reports configured failures.

    Args:
        fail: (key, version_id) pairs reported back as failures
        delay: Seconds each delete call takes
    """

    def __init__(self, fail: Set[Tuple[str, str]] | None = None, delay: float = 0.0):
        self.fail = fail or set()
        self.delay = delay
        self.calls: List[List[ObjectVersion]] = []

    @property
    def deleted(self) -> List[ObjectVersion]:
        return [
            v for batch in self.calls for v in batch
            if (v.key, v.version_id) not in self.fail
        ]

    async def delete_versions(
        self,
        bucket: str,
        versions: Sequence[ObjectVersion],
    ) -> List[DeletionFailure]:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.calls.append(list(versions))
        return [
            DeletionFailure(
                key=v.key,
                version_id=v.version_id,
                code="AccessDenied",
                message="Access Denied",
            )
            for v in versions
            if (v.key, v.version_id) in self.fail
        ]


class FakeStorage(FakeVersionStore):
    """
    In-memory stand-in for S3Storage covering every call the core makes.

    Lifecycle rules are stored per bucket; a bucket missing from
    ``lifecycles`` has no configuration at all.
    """

    def __init__(
        self,
        versions: Dict[str, List[ObjectVersion]] | None = None,
        lifecycles: Dict[str, LifecycleRuleSet] | None = None,
        fail: Set[Tuple[str, str]] | None = None,
        broken_buckets: Set[str] | None = None,
    ):
        super().__init__(fail=fail)
        self.versions = versions or {}
        self.lifecycles = dict(lifecycles or {})
        self.broken_buckets = broken_buckets or set()
        self.set_calls: List[Tuple[str, LifecycleRuleSet]] = []

    def _check(self, bucket: str, operation: str) -> None:
        if bucket in self.broken_buckets:
            from s3vc.exceptions import S3OperationError

            raise S3OperationError(
                f"S3 {operation} failed: boom",
                details={"bucket": bucket, "operation": operation, "code": "InternalError"},
            )

    async def list_buckets(self) -> List[BucketInfo]:
        return [BucketInfo(name=name) for name in self.versions]

    async def bucket_exists(self, bucket: str) -> bool:
        return bucket in self.versions

    async def get_lifecycle(self, bucket: str) -> LifecycleRuleSet | None:
        self._check(bucket, "get_bucket_lifecycle_configuration")
        return self.lifecycles.get(bucket)

    async def set_lifecycle(self, bucket: str, rules: LifecycleRuleSet) -> None:
        self._check(bucket, "put_bucket_lifecycle_configuration")
        self.set_calls.append((bucket, rules))
        self.lifecycles[bucket] = rules

    async def list_versions(self, bucket: str) -> AsyncIterator[ObjectVersion]:
        self._check(bucket, "list_object_versions")
        for v in self.versions.get(bucket, []):
            yield v


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo structlog configuration made by cli.main()."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def fake_store() -> FakeVersionStore:
    return FakeVersionStore()


@pytest.fixture
def make_prune_config():
    """Factory for per-bucket run settings with test-friendly defaults."""

    def factory(**overrides) -> PruneRunConfig:
        settings = {
            "bucket": "test-bucket",
            "max_objects": 10,
            "timeout_seconds": None,
            "dry_run": False,
        }
        settings.update(overrides)
        return PruneRunConfig(**settings)

    return factory


@pytest.fixture
def patch_storage(monkeypatch):
    """Make s3vc.core open the given FakeStorage instead of a real client."""

    def install(storage: FakeStorage) -> FakeStorage:
        @asynccontextmanager
        async def fake_open_storage(config, session):
            yield storage

        monkeypatch.setattr("s3vc.core.open_storage", fake_open_storage)
        return storage

    return install
