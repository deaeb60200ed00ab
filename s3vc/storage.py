# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3VC Storage - aiobotocore adapter for the operations the cleaner needs.

Every call is made once: failures are wrapped in S3OperationError and
surfaced to the caller, never retried here. The one failure that is not an
error is a bucket without any lifecycle configuration, which is reported
as None by get_lifecycle().
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator, Iterable, List, Protocol, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from s3vc.classifier import ObjectVersion
from s3vc.config import MAX_DELETE_BATCH_SIZE, CleanerConfig
from s3vc.exceptions import LifecycleError, S3OperationError
from s3vc.policy import LifecycleRuleSet, rules_from_dicts, rules_to_dicts
from s3vc.report import DeletionFailure

NO_LIFECYCLE_CODE = "NoSuchLifecycleConfiguration"
NO_BUCKET_CODES = ("404", "NoSuchBucket", "NotFound")


@dataclass(frozen=True)
class BucketInfo:
    """A bucket returned by ListBuckets."""

    name: str
    creation_date: datetime | None = None


class VersionStore(Protocol):
    """Batch deletion contract used by the pruning pipeline."""

    async def delete_versions(
        self,
        bucket: str,
        versions: Sequence[ObjectVersion],
    ) -> List[DeletionFailure]:
        """
        Delete the given versions.

        Returns:
            One DeletionFailure per version that was not deleted
        """
        ...


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code", "Unknown")
    return type(exc).__name__


def _wrap(
    exc: Exception,
    operation: str,
    bucket: str | None = None,
    error_cls: type = S3OperationError,
) -> S3OperationError:
    return error_cls(
        f"S3 {operation} failed: {exc}",
        details={"bucket": bucket, "operation": operation, "code": _error_code(exc)},
    )


class S3Storage:
    """
    Storage collaborator backed by an aiobotocore S3 client.

    The client's lifetime is owned by the caller (see open_storage()).
    """

    def __init__(self, client: Any, list_page_size: int = 1000):
        self._client = client
        self._list_page_size = list_page_size

    async def list_buckets(self) -> List[BucketInfo]:
        try:
            response = await self._client.list_buckets()
        except (ClientError, BotoCoreError) as e:
            raise _wrap(e, "list_buckets") from e

        return [
            BucketInfo(name=b["Name"], creation_date=b.get("CreationDate"))
            for b in response.get("Buckets", [])
        ]

    async def bucket_exists(self, bucket: str) -> bool:
        try:
            await self._client.head_bucket(Bucket=bucket)
        except ClientError as e:
            if _error_code(e) in NO_BUCKET_CODES:
                return False
            raise _wrap(e, "head_bucket", bucket) from e
        except BotoCoreError as e:
            raise _wrap(e, "head_bucket", bucket) from e
        return True

    async def get_lifecycle(self, bucket: str) -> LifecycleRuleSet | None:
        """
        Read the bucket's lifecycle rules.

        Returns:
            The rules in stored order, or None when the bucket has no
            lifecycle configuration

        Raises:
            LifecycleError: For any other failure
        """
        try:
            response = await self._client.get_bucket_lifecycle_configuration(
                Bucket=bucket
            )
        except ClientError as e:
            if _error_code(e) == NO_LIFECYCLE_CODE:
                return None
            raise _wrap(e, "get_bucket_lifecycle_configuration", bucket, LifecycleError) from e
        except BotoCoreError as e:
            raise _wrap(e, "get_bucket_lifecycle_configuration", bucket, LifecycleError) from e

        return rules_from_dicts(response.get("Rules", []))

    async def set_lifecycle(self, bucket: str, rules: LifecycleRuleSet) -> None:
        try:
            await self._client.put_bucket_lifecycle_configuration(
                Bucket=bucket,
                LifecycleConfiguration={"Rules": rules_to_dicts(rules)},
            )
        except (ClientError, BotoCoreError) as e:
            raise _wrap(e, "put_bucket_lifecycle_configuration", bucket, LifecycleError) from e

    async def list_versions(self, bucket: str) -> AsyncIterator[ObjectVersion]:
        """
        Lazily list every object version and delete marker in the bucket.

        Pages are fetched on demand, so a consumer that stops early never
        requests the rest of the listing.
        """
        paginator = self._client.get_paginator("list_object_versions")
        try:
            async for page in paginator.paginate(
                Bucket=bucket,
                PaginationConfig={"PageSize": self._list_page_size},
            ):
                for entry in page.get("Versions", []):
                    yield ObjectVersion(
                        key=entry["Key"],
                        version_id=entry.get("VersionId", "null"),
                        is_latest=entry.get("IsLatest", False),
                    )
                for entry in page.get("DeleteMarkers", []):
                    yield ObjectVersion(
                        key=entry["Key"],
                        version_id=entry.get("VersionId", "null"),
                        is_latest=entry.get("IsLatest", False),
                        is_delete_marker=True,
                    )
        except (ClientError, BotoCoreError) as e:
            raise _wrap(e, "list_object_versions", bucket) from e

    async def delete_versions(
        self,
        bucket: str,
        versions: Sequence[ObjectVersion],
    ) -> List[DeletionFailure]:
        failures: List[DeletionFailure] = []
        for chunk in _chunks(versions, MAX_DELETE_BATCH_SIZE):
            try:
                response = await self._client.delete_objects(
                    Bucket=bucket,
                    Delete={
                        "Objects": [
                            {"Key": v.key, "VersionId": v.version_id} for v in chunk
                        ],
                        "Quiet": True,
                    },
                )
            except (ClientError, BotoCoreError) as e:
                raise _wrap(e, "delete_objects", bucket) from e

            for error in response.get("Errors", []):
                failures.append(
                    DeletionFailure(
                        key=error.get("Key", ""),
                        version_id=error.get("VersionId", ""),
                        code=error.get("Code", "Unknown"),
                        message=error.get("Message", ""),
                    )
                )
        return failures


def _chunks(items: Sequence[ObjectVersion], size: int) -> Iterable[Sequence[ObjectVersion]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


@asynccontextmanager
async def open_storage(config: CleanerConfig, session: Any) -> AsyncIterator[S3Storage]:
    """
    Create an S3 client from ``session`` and wrap it in S3Storage.

    Args:
        config: Connection settings
        session: aiobotocore session (see aiobotocore.session.get_session)
    """
    client_kwargs: dict = {
        "region_name": config.region,
        "use_ssl": config.use_ssl,
    }
    if config.endpoint_url:
        client_kwargs["endpoint_url"] = config.endpoint_url
    if config.access_key and config.secret_key:
        client_kwargs["aws_access_key_id"] = config.access_key
        client_kwargs["aws_secret_access_key"] = config.secret_key

    async with session.create_client("s3", **client_kwargs) as client:
        yield S3Storage(client)
