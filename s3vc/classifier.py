# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3VC Version Classifier - Object version records and the prunable predicate.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ObjectVersion:
    """One entry of a bucket's version listing."""

    key: str
    version_id: str
    is_latest: bool
    is_delete_marker: bool = False


def is_prunable(version: ObjectVersion) -> bool:
    """A version can be pruned if it is not the current one for its key."""
    return not version.is_latest
