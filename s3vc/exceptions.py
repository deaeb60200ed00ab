# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3VC Exceptions - Custom exceptions for the s3vc package.
"""


class S3VCError(Exception):
    """Base exception for all S3VC errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(S3VCError):
    """Raised when configuration is invalid."""

    pass


class S3OperationError(S3VCError):
    """Raised when S3 operations fail."""

    pass


class LifecycleError(S3OperationError):
    """Raised when reading or writing a bucket lifecycle configuration fails."""

    pass
