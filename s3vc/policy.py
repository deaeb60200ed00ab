# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3VC Policy Model - Lifecycle rule value types.

A bucket lifecycle configuration is modelled as an ordered tuple of
LifecycleRule values. Only the four fields that define the managed
retention policy are interpreted; everything else in a rule's wire
payload is carried through untouched so that rules this tool does not
own round-trip exactly as they were read.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Tuple

# Reserved identifier of the rule this tool manages
MANAGED_RULE_ID = "auto-clean-versions"

CANONICAL_NONCURRENT_DAYS = 1
CANONICAL_NEWER_NONCURRENT_VERSIONS = 1


class RuleStatus(str, Enum):
    """Lifecycle rule status as stored by S3."""

    ENABLED = "Enabled"
    DISABLED = "Disabled"


@dataclass(frozen=True)
class LifecycleRule:
    """
    A single bucket lifecycle rule.

    ``raw`` holds the payload the rule was parsed from. It is excluded from
    equality so two rules compare by their interpreted fields only.
    """

    rule_id: str
    status: RuleStatus = RuleStatus.ENABLED
    noncurrent_days: int | None = None
    newer_noncurrent_versions: int | None = None
    expired_object_delete_marker: bool = False
    raw: Dict[str, Any] | None = field(default=None, compare=False, repr=False)

    def is_canonical(self) -> bool:
        """Return True if this rule encodes the managed retention policy."""
        return (
            self.status == RuleStatus.ENABLED
            and self.noncurrent_days == CANONICAL_NONCURRENT_DAYS
            and self.newer_noncurrent_versions == CANONICAL_NEWER_NONCURRENT_VERSIONS
            and self.expired_object_delete_marker is True
        )

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "LifecycleRule":
        """
        Parse a rule from the boto3 ``LifecycleConfiguration.Rules`` shape.

        Args:
            payload: One item of the ``Rules`` list

        Returns:
            LifecycleRule keeping a private copy of the payload
        """
        noncurrent = payload.get("NoncurrentVersionExpiration") or {}
        expiration = payload.get("Expiration") or {}

        status_value = payload.get("Status", RuleStatus.DISABLED.value)
        try:
            status = RuleStatus(status_value)
        except ValueError:
            # Unknown status strings are never canonical
            status = RuleStatus.DISABLED

        return cls(
            rule_id=payload.get("ID", ""),
            status=status,
            noncurrent_days=noncurrent.get("NoncurrentDays"),
            newer_noncurrent_versions=noncurrent.get("NewerNoncurrentVersions"),
            expired_object_delete_marker=bool(
                expiration.get("ExpiredObjectDeleteMarker", False)
            ),
            raw=copy.deepcopy(payload),
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the rule to the boto3 wire shape.

        Rules that were parsed from storage return the payload they were read from.
        """
        if self.raw is not None:
            return copy.deepcopy(self.raw)

        payload: Dict[str, Any] = {
            "ID": self.rule_id,
            "Status": self.status.value,
            "Filter": {"Prefix": ""},
        }

        noncurrent: Dict[str, int] = {}
        if self.noncurrent_days is not None:
            noncurrent["NoncurrentDays"] = self.noncurrent_days
        if self.newer_noncurrent_versions is not None:
            noncurrent["NewerNoncurrentVersions"] = self.newer_noncurrent_versions
        if noncurrent:
            payload["NoncurrentVersionExpiration"] = noncurrent

        if self.expired_object_delete_marker:
            payload["Expiration"] = {"ExpiredObjectDeleteMarker": True}

        return payload


# Ordered rule set; a tuple so a caller's value can never be edited in place
LifecycleRuleSet = Tuple[LifecycleRule, ...]


def canonical_rule() -> LifecycleRule:
    """Build a fresh managed rule with the desired retention policy."""
    return LifecycleRule(
        rule_id=MANAGED_RULE_ID,
        status=RuleStatus.ENABLED,
        noncurrent_days=CANONICAL_NONCURRENT_DAYS,
        newer_noncurrent_versions=CANONICAL_NEWER_NONCURRENT_VERSIONS,
        expired_object_delete_marker=True,
    )


def rules_from_dicts(payloads: Iterable[Dict[str, Any]]) -> LifecycleRuleSet:
    """Parse the ``Rules`` list of a lifecycle configuration response."""
    return tuple(LifecycleRule.from_dict(p) for p in payloads)


def rules_to_dicts(rules: Iterable[LifecycleRule]) -> List[Dict[str, Any]]:
    """Serialize a rule set for ``put_bucket_lifecycle_configuration``."""
    return [rule.to_dict() for rule in rules]
