# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3VC Run Report - Immutable summary of a pruning run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from s3vc.classifier import ObjectVersion


class RunStatus(str, Enum):
    """Terminal status of a pruning run."""

    CLEAN = "clean"
    QUOTA_REACHED = "quota_reached"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    COMPLETED_WITH_ERRORS = "completed_with_errors"


@dataclass(frozen=True)
class DeletionFailure:
    """A single version the storage backend refused to delete."""

    key: str
    version_id: str
    code: str
    message: str


@dataclass(frozen=True)
class RunReport:
    """Result of pruning one bucket."""

    operation_id: str  # ULID
    bucket: str
    dry_run: bool
    status: RunStatus
    observed: int
    removed: int
    duration_seconds: float
    selected_versions: Tuple[ObjectVersion, ...] = field(default_factory=tuple)
    failures: Tuple[DeletionFailure, ...] = field(default_factory=tuple)

    @property
    def selected(self) -> int:
        return len(self.selected_versions)

    @property
    def has_errors(self) -> bool:
        return bool(self.failures)

    @property
    def remaining(self) -> int:
        """Observed versions that were not selected in this run."""
        return self.observed - self.selected


def resolve_status(
    *,
    deadline_exceeded: bool,
    quota_reached: bool,
    has_failures: bool,
) -> RunStatus:
    """
    Pick the terminal status when several conditions co-occur.

    Precedence: deadline > quota > errors > clean.
    """
    if deadline_exceeded:
        return RunStatus.DEADLINE_EXCEEDED
    if quota_reached:
        return RunStatus.QUOTA_REACHED
    if has_failures:
        return RunStatus.COMPLETED_WITH_ERRORS
    return RunStatus.CLEAN
