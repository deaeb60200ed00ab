# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3 Version Cleaner - Lifecycle policy reconciliation and version pruning.

Makes sure buckets carry a lifecycle rule that expires non-current object
versions, and prunes existing non-current versions in bounded, cancellable
runs with a dry-run mode that selects exactly what a real run would delete.
Package name: s3vc.
"""

__version__ = "0.1.0"

# Configuration creation (user-facing API)
from s3vc.builder import create_config
from s3vc.config import CleanerConfig, CleanMode, PruneRunConfig

# Pure policy logic
from s3vc.policy import MANAGED_RULE_ID, LifecycleRule, canonical_rule
from s3vc.reconciler import PolicyAction, ReconcileResult, evaluate, reconcile

# Pruning
from s3vc.classifier import ObjectVersion, is_prunable
from s3vc.pipeline import prune
from s3vc.report import DeletionFailure, RunReport, RunStatus

# Environment-based configuration and profiles (additional helpers)
from s3vc.env import (
    create_config_from_env,
    load_config,
    safe_defaults,
    aggressive_cleanup,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "create_config",
    "create_config_from_env",
    "load_config",
    "safe_defaults",
    "aggressive_cleanup",
    "CleanerConfig",
    "CleanMode",
    "PruneRunConfig",
    # Policy
    "MANAGED_RULE_ID",
    "LifecycleRule",
    "canonical_rule",
    "PolicyAction",
    "ReconcileResult",
    "evaluate",
    "reconcile",
    # Pruning
    "ObjectVersion",
    "is_prunable",
    "prune",
    "DeletionFailure",
    "RunReport",
    "RunStatus",
]
