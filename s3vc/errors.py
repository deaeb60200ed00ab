# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for S3 Version Cleaner.

These helpers centralize wording for common configuration errors so that
all modules present consistent, actionable messages.
"""


def explain_invalid_mode_env(value: str | None) -> str:
    """
    Explain that S3VC_MODE is invalid.
    """

    return (
        f"Invalid S3VC_MODE value: {value!r}. "
        "Expected one of: 'dry_run' or 'execute'."
    )


def explain_invalid_int_env(name: str, value: str | None) -> str:
    """
    Explain that an integer environment variable is invalid.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        "It must be a positive integer."
    )


def explain_invalid_timeout_env(value: str | None) -> str:
    """
    Explain that S3VC_RUN_TIMEOUT is invalid.
    """

    return (
        f"Invalid S3VC_RUN_TIMEOUT value: {value!r}. "
        "It must be a positive number of seconds."
    )


def explain_missing_config_file(path: str) -> str:
    """
    Explain that an explicitly requested config file does not exist.
    """

    return (
        f"Config file {path!r} does not exist. "
        "Pass an existing YAML file with --config, or omit it to read "
        "./config.yaml and the S3VC_* environment variables."
    )


def explain_invalid_config_file(path: str, reason: str) -> str:
    """
    Explain that a config file could not be parsed.
    """

    return (
        f"Config file {path!r} could not be read: {reason}. "
        "Expected a YAML mapping with optional 's3' and 'cleaner' sections."
    )


def explain_missing_bucket(bucket: str) -> str:
    """
    Explain that a bucket passed with --bucket does not exist.
    """

    return (
        f"Bucket {bucket!r} does not exist or is not accessible "
        "with the configured credentials."
    )
