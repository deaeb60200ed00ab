# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3VC Builder - Functional builder pattern for configuration.

This module provides pure functions for building CleanerConfig objects.
Each function takes a config dict and returns a new dict with the
modification applied (immutable updates).
"""

from typing import Any, Callable, Dict

from s3vc.config import MAX_DELETE_BATCH_SIZE, CleanerConfig, CleanMode, parse_mode


# Type alias for builder functions
ConfigDict = Dict[str, Any]
BuilderFunc = Callable[[ConfigDict], ConfigDict]


def create_empty_config() -> ConfigDict:
    """
    Create an initial empty configuration dictionary.

    Returns:
        Dict with default values for all configuration fields
    """
    return {
        "endpoint_url": None,
        "access_key": None,
        "secret_key": None,
        "region": "us-east-1",
        "use_ssl": True,
        "bucket": None,
        "mode": CleanMode.DRY_RUN,
        "max_objects_per_run": 100,
        "run_timeout_seconds": 300.0,
        "max_concurrent_buckets": 1,
        "delete_batch_size": MAX_DELETE_BATCH_SIZE,
    }


def with_endpoint(config: ConfigDict, endpoint_url: str, use_ssl: bool = True) -> ConfigDict:
    """
    Point the client at an S3-compatible endpoint (MinIO, Ceph, ...).

    Args:
        config: Current configuration dictionary
        endpoint_url: Endpoint URL, e.g. 'http://localhost:9000'
        use_ssl: Whether to use TLS

    Returns:
        New configuration dictionary with endpoint set
    """
    return {**config, "endpoint_url": endpoint_url, "use_ssl": use_ssl}


def with_credentials(config: ConfigDict, access_key: str, secret_key: str) -> ConfigDict:
    """Set static access credentials."""
    return {**config, "access_key": access_key, "secret_key": secret_key}


def with_region(config: ConfigDict, region: str) -> ConfigDict:
    """
    Set the AWS region.

    Args:
        config: Current configuration dictionary
        region: AWS region (e.g., 'us-east-1', 'eu-west-1')

    Returns:
        New configuration dictionary with region set
    """
    return {**config, "region": region}


def with_bucket(config: ConfigDict, bucket_name: str) -> ConfigDict:
    """
    Restrict commands to a single bucket.

    Args:
        config: Current configuration dictionary
        bucket_name: Name of the S3 bucket

    Returns:
        New configuration dictionary with bucket set
    """
    return {**config, "bucket": bucket_name}


def dry_run_mode(config: ConfigDict) -> ConfigDict:
    """
    Set mode to dry-run (select and report only, no deletions).

    This is the default mode. Use this explicitly for clarity.
    """
    return {**config, "mode": CleanMode.DRY_RUN}


def execute_mode(config: ConfigDict) -> ConfigDict:
    """
    Set mode to execute.

    WARNING: This enables actual deletion of non-current object versions!
    """
    return {**config, "mode": CleanMode.EXECUTE}


def with_max_objects_per_run(config: ConfigDict, max_objects: int) -> ConfigDict:
    """
    Set how many non-current versions one bucket run may delete.

    Args:
        config: Current configuration dictionary
        max_objects: Per-run quota

    Returns:
        New configuration dictionary with the quota set
    """
    if max_objects < 1:
        raise ValueError(f"max_objects_per_run must be >= 1, got {max_objects}")
    return {**config, "max_objects_per_run": max_objects}


def with_run_timeout(config: ConfigDict, seconds: float) -> ConfigDict:
    """Set the deadline for one bucket's cleanup run."""
    if seconds <= 0:
        raise ValueError(f"run_timeout_seconds must be > 0, got {seconds}")
    return {**config, "run_timeout_seconds": float(seconds)}


def with_max_concurrent_buckets(config: ConfigDict, max_buckets: int) -> ConfigDict:
    """
    Set the number of buckets cleaned at the same time.

    Args:
        config: Current configuration dictionary
        max_buckets: Maximum concurrent bucket runs

    Returns:
        New configuration dictionary with max_concurrent_buckets set
    """
    if max_buckets < 1:
        raise ValueError(f"max_concurrent_buckets must be >= 1, got {max_buckets}")
    return {**config, "max_concurrent_buckets": max_buckets}


def build_config(config_dict: ConfigDict) -> CleanerConfig:
    """
    Validate and build an immutable CleanerConfig from a configuration dictionary.

    Args:
        config_dict: Configuration dictionary built using builder functions

    Returns:
        Validated, immutable CleanerConfig instance

    Raises:
        ConfigurationError: If validation fails
    """
    return CleanerConfig(**config_dict)


def pipe(*funcs: BuilderFunc) -> BuilderFunc:
    """
    Compose multiple builder functions into a single function.

    This allows a more readable pipeline style:

        config = pipe(
            lambda c: with_endpoint(c, "http://localhost:9000", use_ssl=False),
            lambda c: with_max_objects_per_run(c, 500),
            execute_mode,
        )(create_empty_config())
    """

    def composed(config: ConfigDict) -> ConfigDict:
        result = config
        for func in funcs:
            result = func(result)
        return result

    return composed


def build_from_steps(*steps: BuilderFunc) -> CleanerConfig:
    """
    Build config by applying a sequence of builder functions.

    This is a convenience function that combines pipe() and build_config().
    """
    return build_config(pipe(*steps)(create_empty_config()))


def create_config(
    *,
    endpoint_url: str | None = None,
    access_key: str | None = None,
    secret_key: str | None = None,
    region: str = "us-east-1",
    use_ssl: bool = True,
    bucket: str | None = None,
    mode: str | CleanMode = "dry_run",
    max_objects_per_run: int = 100,
    run_timeout_seconds: float = 300.0,
    **kwargs: Any,
) -> CleanerConfig:
    """
    Create cleaner configuration from simple parameters.

    This is the recommended user-facing API for creating configurations.

    Args:
        endpoint_url: S3-compatible endpoint (default: AWS)
        access_key: Access key id (optional, pairs with secret_key)
        secret_key: Secret access key (optional, pairs with access_key)
        region: AWS region (default: "us-east-1")
        use_ssl: Use TLS for the endpoint (default: True)
        bucket: Restrict commands to this bucket (default: all buckets)
        mode: "dry_run" or "execute" (default: "dry_run"); anything else
              raises ValueError
        max_objects_per_run: Per-bucket deletion quota (default: 100)
        run_timeout_seconds: Per-bucket deadline (default: 300)
        **kwargs: Additional configuration options

    Returns:
        Validated, immutable CleanerConfig instance

    Example:
        config = create_config(
            endpoint_url="http://minio:9000",
            access_key="minioadmin",
            secret_key="minioadmin",
            use_ssl=False,
            mode="execute",
            max_objects_per_run=1000,
        )
    """
    config_dict = create_empty_config()

    if endpoint_url:
        config_dict = with_endpoint(config_dict, endpoint_url, use_ssl)
    else:
        config_dict["use_ssl"] = use_ssl

    if access_key or secret_key:
        config_dict["access_key"] = access_key
        config_dict["secret_key"] = secret_key

    if region:
        config_dict = with_region(config_dict, region)

    if bucket:
        config_dict = with_bucket(config_dict, bucket)

    config_dict = with_max_objects_per_run(config_dict, max_objects_per_run)
    config_dict = with_run_timeout(config_dict, run_timeout_seconds)

    # Unknown modes raise instead of falling back to dry-run
    if parse_mode(mode) == CleanMode.EXECUTE:
        config_dict = execute_mode(config_dict)
    else:
        config_dict = dry_run_mode(config_dict)

    # Apply any additional kwargs
    for key, value in kwargs.items():
        if key in config_dict:
            config_dict[key] = value

    return build_config(config_dict)
