# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Configuration tests: validation, builder, environment and YAML loading.
"""

from pathlib import Path

import pytest

from s3vc.builder import (
    build_from_steps,
    create_config,
    create_empty_config,
    execute_mode,
    with_endpoint,
    with_max_objects_per_run,
    with_run_timeout,
)
from s3vc.config import CleanerConfig, CleanMode, PruneRunConfig, parse_mode
from s3vc.env import (
    aggressive_cleanup,
    create_config_from_env,
    load_config,
    safe_defaults,
)
from s3vc.exceptions import ConfigurationError

ENV_VARS = (
    "S3VC_ENDPOINT",
    "S3VC_ACCESS_KEY",
    "S3VC_SECRET_KEY",
    "S3VC_REGION",
    "S3VC_USE_SSL",
    "S3VC_MODE",
    "S3VC_MAX_OBJECTS_PER_RUN",
    "S3VC_RUN_TIMEOUT",
    "S3VC_MAX_CONCURRENT_BUCKETS",
    "S3VC_DELETE_BATCH_SIZE",
    "S3_BUCKET",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_REGION",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ============================================================================
# CleanerConfig / PruneRunConfig
# ============================================================================

def test_defaults_are_safe():
    config = CleanerConfig()

    assert config.mode == CleanMode.DRY_RUN
    assert config.dry_run is True
    assert config.max_objects_per_run == 100
    assert config.run_timeout_seconds == 300.0


def test_validation_reports_all_errors_at_once():
    with pytest.raises(ConfigurationError) as exc_info:
        CleanerConfig(
            bucket="Bad_Bucket",
            max_objects_per_run=0,
            run_timeout_seconds=0,
            access_key="only-half",
        )

    errors = exc_info.value.details["errors"]
    assert len(errors) == 4
    assert any("Invalid bucket name" in e for e in errors)


@pytest.mark.parametrize("bucket", ["ab", "192.168.0.1", "a..b", "-abc", "UPPER"])
def test_invalid_bucket_names(bucket):
    with pytest.raises(ConfigurationError):
        CleanerConfig(bucket=bucket)


def test_with_updates_returns_new_validated_config():
    config = CleanerConfig()

    updated = config.with_updates(mode=CleanMode.EXECUTE, bucket="media-files")

    assert config.dry_run is True
    assert updated.dry_run is False
    assert updated.bucket == "media-files"
    with pytest.raises(ConfigurationError):
        config.with_updates(max_concurrent_buckets=0)


def test_prune_config_for_copies_limits():
    config = CleanerConfig(
        mode=CleanMode.EXECUTE,
        max_objects_per_run=7,
        run_timeout_seconds=12.5,
        delete_batch_size=50,
    )

    run = config.prune_config_for("media-files")

    assert run == PruneRunConfig(
        bucket="media-files",
        max_objects=7,
        timeout_seconds=12.5,
        dry_run=False,
        delete_batch_size=50,
    )


@pytest.mark.parametrize(
    "overrides",
    [
        {"bucket": ""},
        {"max_objects": 0},
        {"timeout_seconds": 0},
        {"delete_batch_size": 1001},
    ],
)
def test_prune_run_config_validation(overrides):
    settings = {"bucket": "b"}
    settings.update(overrides)

    with pytest.raises(ConfigurationError):
        PruneRunConfig(**settings)


def test_prune_run_config_allows_no_deadline():
    assert PruneRunConfig(bucket="b", timeout_seconds=None).timeout_seconds is None


# ============================================================================
# Builder
# ============================================================================

def test_builder_steps():
    config = build_from_steps(
        lambda c: with_endpoint(c, "http://minio:9000", use_ssl=False),
        lambda c: with_max_objects_per_run(c, 500),
        lambda c: with_run_timeout(c, 60),
        execute_mode,
    )

    assert config.endpoint_url == "http://minio:9000"
    assert config.use_ssl is False
    assert config.max_objects_per_run == 500
    assert config.run_timeout_seconds == 60.0
    assert config.mode == CleanMode.EXECUTE


def test_builder_rejects_bad_values():
    with pytest.raises(ValueError):
        with_max_objects_per_run(create_empty_config(), 0)
    with pytest.raises(ValueError):
        with_run_timeout(create_empty_config(), -1)


def test_create_config_mode_strings():
    assert create_config(mode="execute").mode == CleanMode.EXECUTE
    assert create_config(mode="dry_run").mode == CleanMode.DRY_RUN
    assert create_config(mode=CleanMode.EXECUTE).mode == CleanMode.EXECUTE


def test_create_config_extra_kwargs():
    config = create_config(max_concurrent_buckets=4, unknown_option=True)

    assert config.max_concurrent_buckets == 4


# ============================================================================
# Environment
# ============================================================================

def test_config_from_env(clean_env):
    clean_env.setenv("S3VC_ENDPOINT", "http://minio:9000")
    clean_env.setenv("S3VC_ACCESS_KEY", "key")
    clean_env.setenv("S3VC_SECRET_KEY", "secret")
    clean_env.setenv("S3VC_USE_SSL", "false")
    clean_env.setenv("S3VC_MODE", "execute")
    clean_env.setenv("S3VC_MAX_OBJECTS_PER_RUN", "250")
    clean_env.setenv("S3VC_RUN_TIMEOUT", "90")
    clean_env.setenv("S3_BUCKET", "media-files")

    config = create_config_from_env()

    assert config.endpoint_url == "http://minio:9000"
    assert config.access_key == "key"
    assert config.use_ssl is False
    assert config.mode == CleanMode.EXECUTE
    assert config.max_objects_per_run == 250
    assert config.run_timeout_seconds == 90.0
    assert config.bucket == "media-files"


def test_config_from_env_falls_back_to_aws_credentials(clean_env):
    clean_env.setenv("AWS_ACCESS_KEY_ID", "aws-key")
    clean_env.setenv("AWS_SECRET_ACCESS_KEY", "aws-secret")
    clean_env.setenv("AWS_REGION", "eu-west-1")

    config = create_config_from_env()

    assert config.access_key == "aws-key"
    assert config.region == "eu-west-1"
    assert config.dry_run is True


@pytest.mark.parametrize(
    "name, value",
    [
        ("S3VC_MODE", "delete-everything"),
        ("S3VC_MAX_OBJECTS_PER_RUN", "lots"),
        ("S3VC_MAX_OBJECTS_PER_RUN", "0"),
        ("S3VC_RUN_TIMEOUT", "-5"),
    ],
)
def test_invalid_env_values(clean_env, name, value):
    clean_env.setenv(name, value)

    with pytest.raises(ConfigurationError):
        create_config_from_env()


# ============================================================================
# YAML file
# ============================================================================

def test_load_config_file_overrides_env(clean_env, tmp_path: Path):
    clean_env.setenv("S3VC_MAX_OBJECTS_PER_RUN", "999")
    clean_env.setenv("S3VC_REGION", "eu-central-1")
    path = tmp_path / "cleaner.yaml"
    path.write_text(
        "s3:\n"
        "  endpoint: http://minio:9000\n"
        "  access_key: minioadmin\n"
        "  secret_key: minioadmin\n"
        "  use_ssl: false\n"
        "cleaner:\n"
        "  max_objects_per_run: 500\n"
        "  run_timeout_seconds: 120\n"
        "  max_concurrent_buckets: 3\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.endpoint_url == "http://minio:9000"
    assert config.use_ssl is False
    assert config.max_objects_per_run == 500
    assert config.run_timeout_seconds == 120.0
    assert config.max_concurrent_buckets == 3
    # Not in the file, so taken from the environment
    assert config.region == "eu-central-1"


def test_load_config_missing_explicit_file(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "nope.yaml")


def test_load_config_without_default_file_uses_env(clean_env, tmp_path: Path):
    clean_env.chdir(tmp_path)
    clean_env.setenv("S3VC_MAX_OBJECTS_PER_RUN", "42")

    config = load_config()

    assert config.max_objects_per_run == 42


def test_load_config_reads_default_file(clean_env, tmp_path: Path):
    clean_env.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("cleaner:\n  max_objects_per_run: 9\n")

    assert load_config().max_objects_per_run == 9


@pytest.mark.parametrize("content", ["s3: [unclosed", "- just\n- a list\n", "s3: 5\n"])
def test_load_config_rejects_malformed_files(tmp_path: Path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content)

    with pytest.raises(ConfigurationError):
        load_config(path)


# ============================================================================
# Profiles
# ============================================================================

def test_safe_defaults_profile():
    config = CleanerConfig(
        mode=CleanMode.EXECUTE,
        max_objects_per_run=5000,
        max_concurrent_buckets=8,
    )

    safe = safe_defaults(config)

    assert safe.dry_run is True
    assert safe.max_objects_per_run == 100
    assert safe.max_concurrent_buckets == 1


def test_aggressive_cleanup_profile():
    aggressive = aggressive_cleanup(CleanerConfig())

    assert aggressive.mode == CleanMode.EXECUTE
    assert aggressive.max_objects_per_run == 10000
    assert aggressive.run_timeout_seconds == 900.0


# ============================================================================
# Mode parsing
# ============================================================================

@pytest.mark.parametrize(
    "value, expected",
    [
        ("execute", CleanMode.EXECUTE),
        ("EXECUTE", CleanMode.EXECUTE),
        (" dry_run ", CleanMode.DRY_RUN),
        (CleanMode.DRY_RUN, CleanMode.DRY_RUN),
    ],
)
def test_parse_mode(value, expected):
    assert parse_mode(value) == expected


@pytest.mark.parametrize("value", [True, False, None, 1, "exectue", "yes"])
def test_parse_mode_rejects_other_values(value):
    with pytest.raises(ValueError):
        parse_mode(value)


def test_config_rejects_non_mode_values():
    with pytest.raises(ConfigurationError) as exc_info:
        CleanerConfig(mode=True)

    assert any("mode" in e for e in exc_info.value.details["errors"])


def test_config_coerces_mode_strings():
    config = CleanerConfig(mode="execute")

    assert config.mode is CleanMode.EXECUTE
    assert config.dry_run is False


def test_create_config_rejects_mode_typo():
    with pytest.raises(ValueError):
        create_config(mode="exectue")


@pytest.mark.parametrize("value", ["yes", "on", "true", "no", "exectue"])
def test_load_config_rejects_invalid_file_mode(clean_env, tmp_path: Path, value):
    path = tmp_path / "config.yaml"
    path.write_text(f"cleaner:\n  mode: {value}\n")

    with pytest.raises(ConfigurationError):
        load_config(path)


@pytest.mark.parametrize(
    "line",
    [
        "max_objects_per_run: 0",
        "max_objects_per_run: abc",
        "run_timeout_seconds: -1",
        "run_timeout_seconds: soon",
        "max_concurrent_buckets: many",
        "delete_batch_size: 5000",
    ],
)
def test_load_config_invalid_values_raise_configuration_error(clean_env, tmp_path: Path, line):
    path = tmp_path / "config.yaml"
    path.write_text(f"cleaner:\n  {line}\n")

    with pytest.raises(ConfigurationError):
        load_config(path)


def test_load_config_reads_delete_batch_size(clean_env, tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text("cleaner:\n  delete_batch_size: 250\n")

    assert load_config(path).delete_batch_size == 250


def test_env_concurrency_and_batch_size(clean_env):
    clean_env.setenv("S3VC_MAX_CONCURRENT_BUCKETS", "4")
    clean_env.setenv("S3VC_DELETE_BATCH_SIZE", "200")

    config = create_config_from_env()

    assert config.max_concurrent_buckets == 4
    assert config.delete_batch_size == 200


@pytest.mark.parametrize(
    "name, value",
    [
        ("S3VC_MAX_CONCURRENT_BUCKETS", "0"),
        ("S3VC_MAX_CONCURRENT_BUCKETS", "few"),
        ("S3VC_DELETE_BATCH_SIZE", "5000"),
    ],
)
def test_invalid_env_concurrency_and_batch_size(clean_env, name, value):
    clean_env.setenv(name, value)

    with pytest.raises(ConfigurationError):
        create_config_from_env()
