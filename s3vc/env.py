# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment and file based configuration helpers, plus safety profiles.

These helpers are small, convenient wrappers around create_config() and
CleanerConfig.with_updates(). They make it easy to:

- Build a configuration from environment variables
- Load a YAML config file, with the environment filling any gaps
- Apply ready-made safety profiles
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import structlog
import yaml

from s3vc.builder import create_config
from s3vc.config import MAX_DELETE_BATCH_SIZE, CleanerConfig, CleanMode, parse_mode
from s3vc.errors import (
    explain_invalid_config_file,
    explain_invalid_int_env,
    explain_invalid_mode_env,
    explain_invalid_timeout_env,
    explain_missing_config_file,
)
from s3vc.exceptions import ConfigurationError

logger = structlog.get_logger()

DEFAULT_CONFIG_PATH = Path("config.yaml")


def _parse_mode(value: str | None) -> CleanMode:
    if not value:
        return CleanMode.DRY_RUN
    try:
        return parse_mode(value)
    except ValueError as exc:
        raise ConfigurationError(explain_invalid_mode_env(value)) from exc


def _parse_positive_int(name: str, value: str | None, default: int) -> int:
    if not value:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_int_env(name, value)) from exc
    if number < 1:
        raise ConfigurationError(explain_invalid_int_env(name, value))
    return number


def _parse_timeout(value: str | None, default: float) -> float:
    if not value:
        return default
    try:
        seconds = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_timeout_env(value)) from exc
    if seconds <= 0:
        raise ConfigurationError(explain_invalid_timeout_env(value))
    return seconds


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.lower() in ("1", "true", "yes", "on")


def _env_settings() -> Dict[str, Any]:
    """Read the known environment variables into create_config() kwargs."""
    return {
        "endpoint_url": os.getenv("S3VC_ENDPOINT") or None,
        "access_key": os.getenv("S3VC_ACCESS_KEY") or os.getenv("AWS_ACCESS_KEY_ID"),
        "secret_key": os.getenv("S3VC_SECRET_KEY") or os.getenv("AWS_SECRET_ACCESS_KEY"),
        "region": os.getenv("S3VC_REGION") or os.getenv("AWS_REGION", "us-east-1"),
        "use_ssl": _parse_bool(os.getenv("S3VC_USE_SSL"), True),
        "bucket": os.getenv("S3_BUCKET") or None,
        "mode": _parse_mode(os.getenv("S3VC_MODE")),
        "max_objects_per_run": _parse_positive_int(
            "S3VC_MAX_OBJECTS_PER_RUN", os.getenv("S3VC_MAX_OBJECTS_PER_RUN"), 100
        ),
        "run_timeout_seconds": _parse_timeout(os.getenv("S3VC_RUN_TIMEOUT"), 300.0),
        "max_concurrent_buckets": _parse_positive_int(
            "S3VC_MAX_CONCURRENT_BUCKETS", os.getenv("S3VC_MAX_CONCURRENT_BUCKETS"), 1
        ),
        "delete_batch_size": _parse_positive_int(
            "S3VC_DELETE_BATCH_SIZE",
            os.getenv("S3VC_DELETE_BATCH_SIZE"),
            MAX_DELETE_BATCH_SIZE,
        ),
    }


def create_config_from_env() -> CleanerConfig:
    """
    Create a CleanerConfig from environment variables.

    Optional environment variables:
        - S3VC_ENDPOINT: S3-compatible endpoint URL (default: AWS)
        - S3VC_ACCESS_KEY / AWS_ACCESS_KEY_ID: Access key id
        - S3VC_SECRET_KEY / AWS_SECRET_ACCESS_KEY: Secret access key
        - S3VC_REGION / AWS_REGION: Region (default: us-east-1)
        - S3VC_USE_SSL: 'true' | 'false' (default: true)
        - S3_BUCKET: Restrict commands to one bucket
        - S3VC_MODE: 'dry_run' | 'execute' (default: dry_run)
        - S3VC_MAX_OBJECTS_PER_RUN: Positive integer (default: 100)
        - S3VC_RUN_TIMEOUT: Per-bucket deadline in seconds (default: 300)
        - S3VC_MAX_CONCURRENT_BUCKETS: Buckets cleaned at once (default: 1)
        - S3VC_DELETE_BATCH_SIZE: Versions per DeleteObjects request, 1-1000
          (default: 1000)
    """
    return create_config(**_env_settings())


def _settings_from_file(data: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten the YAML layout into create_config() kwargs."""
    s3 = data.get("s3") or {}
    cleaner = data.get("cleaner") or {}
    if not isinstance(s3, dict) or not isinstance(cleaner, dict):
        raise ValueError("'s3' and 'cleaner' must be mappings")

    mapping = {
        "endpoint_url": s3.get("endpoint"),
        "access_key": s3.get("access_key"),
        "secret_key": s3.get("secret_key"),
        "region": s3.get("region"),
        "use_ssl": s3.get("use_ssl"),
        "bucket": cleaner.get("bucket"),
        "mode": cleaner.get("mode"),
        "max_objects_per_run": cleaner.get("max_objects_per_run"),
        "run_timeout_seconds": cleaner.get("run_timeout_seconds"),
        "max_concurrent_buckets": cleaner.get("max_concurrent_buckets"),
        "delete_batch_size": cleaner.get("delete_batch_size"),
    }
    settings = {k: v for k, v in mapping.items() if v is not None}
    if "mode" in settings:
        settings["mode"] = parse_mode(settings["mode"])
    return settings


def load_config(path: str | Path | None = None) -> CleanerConfig:
    """
    Load configuration from a YAML file, falling back to the environment.

    Values present in the file win over environment variables; anything the
    file omits is taken from the environment (see create_config_from_env).

    Example file:

        s3:
          endpoint: http://minio:9000
          access_key: minioadmin
          secret_key: minioadmin
          use_ssl: false
        cleaner:
          max_objects_per_run: 500
          run_timeout_seconds: 300

    Args:
        path: Explicit config file. When None, ./config.yaml is used if it
              exists, otherwise only the environment is read.

    Raises:
        ConfigurationError: If an explicit file is missing, unreadable or
            holds invalid values
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH

    if not config_path.is_file():
        if path is not None:
            raise ConfigurationError(explain_missing_config_file(str(config_path)))
        logger.info("config_file_not_found_using_env", path=str(config_path))
        return create_config_from_env()

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError("top level must be a mapping")
        file_settings = _settings_from_file(data)
    except (yaml.YAMLError, ValueError, OSError) as exc:
        raise ConfigurationError(
            explain_invalid_config_file(str(config_path), str(exc))
        ) from exc

    settings = _env_settings()
    settings.update(file_settings)
    logger.debug("config_file_loaded", path=str(config_path))

    try:
        return create_config(**settings)
    except (ValueError, TypeError) as exc:
        raise ConfigurationError(
            explain_invalid_config_file(str(config_path), str(exc))
        ) from exc


# ============================================================================
# Profiles
# ============================================================================

def safe_defaults(config: CleanerConfig) -> CleanerConfig:
    """
    Apply conservative, safety-first defaults.

    - Always use DRY_RUN mode
    - At most 100 versions per bucket run
    - One bucket at a time
    """

    return config.with_updates(
        mode=CleanMode.DRY_RUN,
        max_objects_per_run=min(config.max_objects_per_run, 100),
        max_concurrent_buckets=1,
    )


def aggressive_cleanup(config: CleanerConfig) -> CleanerConfig:
    """
    Apply a more aggressive cleanup profile.

    - EXECUTE mode (actual deletions)
    - At least 10000 versions per bucket run
    - At least 15 minutes per bucket run
    """

    return config.with_updates(
        mode=CleanMode.EXECUTE,
        max_objects_per_run=max(config.max_objects_per_run, 10000),
        run_timeout_seconds=max(config.run_timeout_seconds, 900.0),
    )
