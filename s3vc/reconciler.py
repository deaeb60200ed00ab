# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3VC Policy Reconciler - Decide and compute lifecycle policy edits.

Pure functions with no I/O. The caller is responsible for reading the
current configuration from storage (passing None when the bucket has no
lifecycle configuration at all) and for persisting the result.
"""

from dataclasses import dataclass
from enum import Enum

from s3vc.policy import (
    MANAGED_RULE_ID,
    LifecycleRuleSet,
    canonical_rule,
)


class PolicyAction(str, Enum):
    """Outcome of reconciling a bucket's lifecycle rules."""

    NO_CHANGE = "no_change"  # A canonical rule already exists
    CREATED = "created"  # Bucket had no lifecycle configuration
    REPLACED = "replaced"  # Managed rule removed (if present) and re-added


@dataclass(frozen=True)
class ReconcileResult:
    """Rule set to persist and the action that produced it."""

    rules: LifecycleRuleSet
    action: PolicyAction

    @property
    def changed(self) -> bool:
        return self.action != PolicyAction.NO_CHANGE


def evaluate(rules: LifecycleRuleSet) -> bool:
    """
    Check whether any rule in the set encodes the managed policy.

    The whole set is scanned: a canonical rule may live under a different
    identifier, so the managed identifier is not used to decide.
    """
    return any(rule.is_canonical() for rule in rules)


def remove_rules_by_id(rules: LifecycleRuleSet, rule_id: str) -> LifecycleRuleSet:
    """
    Return a new rule set without any rule carrying ``rule_id``.

    Survivors keep their relative order. The input is not modified.
    """
    return tuple(rule for rule in rules if rule.rule_id != rule_id)


def reconcile(rules: LifecycleRuleSet | None) -> ReconcileResult:
    """
    Compute the lifecycle rules a bucket should have.

    Args:
        rules: Current rules, or None when no configuration exists

    Returns:
        ReconcileResult with the rules to persist and the action taken
    """
    if rules is None:
        return ReconcileResult(rules=(canonical_rule(),), action=PolicyAction.CREATED)

    if evaluate(rules):
        return ReconcileResult(rules=rules, action=PolicyAction.NO_CHANGE)

    survivors = remove_rules_by_id(rules, MANAGED_RULE_ID)
    return ReconcileResult(
        rules=survivors + (canonical_rule(),),
        action=PolicyAction.REPLACED,
    )
