# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3VC Configuration - Immutable configuration data structures.

All configuration is frozen (immutable) after creation so that a run's
settings cannot change underneath it, and so that several buckets can be
processed concurrently from the same config value.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List
import re

# S3 DeleteObjects accepts at most this many keys per request
MAX_DELETE_BATCH_SIZE = 1000


class CleanMode(str, Enum):
    """Version cleanup execution mode."""

    DRY_RUN = "dry_run"  # Select and report only, no deletions
    EXECUTE = "execute"  # Delete selected versions


def parse_mode(value: object) -> CleanMode:
    """
    Convert a mode setting to CleanMode.

    Only CleanMode members and their string values are accepted, so YAML
    booleans such as `mode: yes` are rejected rather than coerced.

    Raises:
        ValueError: If the value names no mode
    """
    if isinstance(value, CleanMode):
        return value
    if isinstance(value, str):
        try:
            return CleanMode(value.strip().lower())
        except ValueError:
            pass
    raise ValueError(f"mode must be 'dry_run' or 'execute', got {value!r}")


def _validate_bucket_name(bucket: str) -> bool:
    """
    Validate S3 bucket name according to AWS rules.

    Rules:
    - 3-63 characters
    - Lowercase letters, numbers, hyphens
    - Must start and end with letter or number
    - No consecutive periods
    - Not formatted as IP address
    """
    if not bucket or len(bucket) < 3 or len(bucket) > 63:
        return False

    # Must be lowercase letters, numbers, hyphens, or periods
    if not re.match(r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$", bucket):
        return False

    # No consecutive periods
    if ".." in bucket:
        return False

    # Not IP address format
    if re.match(r"^\d+\.\d+\.\d+\.\d+$", bucket):
        return False

    return True


@dataclass(frozen=True)
class PruneRunConfig:
    """
    Settings for pruning a single bucket.

    Created once per bucket invocation and passed by value into the
    pruning pipeline.
    """

    bucket: str

    # Maximum number of versions selected for deletion in this run
    max_objects: int = 100

    # Deadline for the whole run; None disables it
    timeout_seconds: float | None = 300.0

    dry_run: bool = True

    # Versions sent per DeleteObjects request
    delete_batch_size: int = MAX_DELETE_BATCH_SIZE

    def __post_init__(self) -> None:
        errors: List[str] = []

        if not self.bucket:
            errors.append("bucket is required")
        if self.max_objects < 1:
            errors.append(f"max_objects must be >= 1, got {self.max_objects}")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            errors.append(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if not 1 <= self.delete_batch_size <= MAX_DELETE_BATCH_SIZE:
            errors.append(
                f"delete_batch_size must be 1-{MAX_DELETE_BATCH_SIZE}, "
                f"got {self.delete_batch_size}"
            )

        if errors:
            from s3vc.exceptions import ConfigurationError

            raise ConfigurationError(
                "Prune run configuration validation failed",
                details={"errors": errors},
            )


@dataclass(frozen=True)
class CleanerConfig:
    """
    Immutable configuration for the version cleaner.

    Connection settings plus the limits applied to every bucket run.
    """

    # S3-compatible endpoint (None uses AWS)
    endpoint_url: str | None = None

    # Static credentials (None falls back to the botocore credential chain)
    access_key: str | None = None
    secret_key: str | None = None

    # AWS region (default: us-east-1)
    region: str = "us-east-1"

    use_ssl: bool = True

    # Restrict commands to one bucket instead of all buckets
    bucket: str | None = None

    # Execution mode (default: dry_run for safety)
    mode: CleanMode = CleanMode.DRY_RUN

    # Maximum non-current versions deleted per bucket per run
    max_objects_per_run: int = 100

    # Deadline for one bucket's cleanup run
    run_timeout_seconds: float = 300.0

    # Buckets cleaned at the same time
    max_concurrent_buckets: int = 1

    # Versions sent per DeleteObjects request
    delete_batch_size: int = MAX_DELETE_BATCH_SIZE

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        # Validate bucket name
        if self.bucket is not None and not _validate_bucket_name(self.bucket):
            errors.append(f"Invalid bucket name: {self.bucket}")

        try:
            object.__setattr__(self, "mode", parse_mode(self.mode))
        except ValueError as e:
            errors.append(str(e))

        if self.max_objects_per_run < 1:
            errors.append(
                f"max_objects_per_run must be >= 1, got {self.max_objects_per_run}"
            )

        if self.run_timeout_seconds <= 0:
            errors.append(
                f"run_timeout_seconds must be > 0, got {self.run_timeout_seconds}"
            )

        if self.max_concurrent_buckets < 1:
            errors.append(
                f"max_concurrent_buckets must be >= 1, got {self.max_concurrent_buckets}"
            )

        if not 1 <= self.delete_batch_size <= MAX_DELETE_BATCH_SIZE:
            errors.append(
                f"delete_batch_size must be 1-{MAX_DELETE_BATCH_SIZE}, "
                f"got {self.delete_batch_size}"
            )

        # Credentials come as a pair
        if bool(self.access_key) != bool(self.secret_key):
            errors.append("access_key and secret_key must be set together")

        # Raise all errors at once
        if errors:
            from s3vc.exceptions import ConfigurationError

            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    @property
    def dry_run(self) -> bool:
        return self.mode == CleanMode.DRY_RUN

    def with_updates(self, **kwargs) -> "CleanerConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        from dataclasses import asdict

        current = asdict(self)
        current.update(kwargs)
        return CleanerConfig(**current)

    def prune_config_for(self, bucket: str) -> PruneRunConfig:
        """Build the per-bucket run settings for ``bucket``."""
        return PruneRunConfig(
            bucket=bucket,
            max_objects=self.max_objects_per_run,
            timeout_seconds=self.run_timeout_seconds,
            dry_run=self.dry_run,
            delete_batch_size=self.delete_batch_size,
        )
