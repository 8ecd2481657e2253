"""Roadmap builder: phased remediation plan over open groups and chains."""

from __future__ import annotations

import logging
from collections import Counter
from fnmatch import fnmatchcase
from typing import Mapping, Sequence

from auditsynth.models.enums import Effort, Phase, Severity
from auditsynth.models.synthesis import (
    AttackChain,
    DedupGroup,
    RemediationItem,
    RiskScore,
)
from auditsynth.synthesis.store import FindingStore

logger = logging.getLogger(__name__)

SEVERITY_PHASE: dict[Severity, Phase] = {
    Severity.CRITICAL: Phase.IMMEDIATE,
    Severity.HIGH: Phase.SHORT_TERM,
    Severity.MEDIUM: Phase.MEDIUM_TERM,
    Severity.LOW: Phase.LONG_TERM,
    Severity.INFORMATIONAL: Phase.LONG_TERM,
}

# Category families, first match wins. Anything unlisted is a code fix.
EFFORT_FAMILIES: tuple[tuple[Effort, tuple[str, ...]], ...] = (
    (
        Effort.LOW,
        (
            "vulnerable_dependency",
            "unpinned_dependency",
            "missing_lockfile",
            "dependency_confusion",
            "typosquat*",
            "malicious_package",
            "*misconfiguration",
            "missing_security_headers",
            "insecure_cookie*",
            "missing_tls",
            "public_bucket",
            "metadata_exposure",
            "hardcoded_secret",
            "secret_*",
            "exposed_secret*",
            "long_lived_credentials",
        ),
    ),
    (
        Effort.HIGH,
        (
            "broken_access_control",
            "missing_authorization",
            "idor",
            "privilege_escalation",
            "authentication_bypass",
            "broken_authentication",
            "missing_mfa",
            "session_management",
            "overly_permissive_iam",
            "missing_network_segmentation",
            "lateral_movement",
            "excessive_agency",
            "insecure_design",
        ),
    ),
)
DEFAULT_EFFORT = Effort.MEDIUM


def effort_for_category(category: str) -> Effort:
    for effort, patterns in EFFORT_FAMILIES:
        if any(fnmatchcase(category, pattern) for pattern in patterns):
            return effort
    return DEFAULT_EFFORT


class RoadmapBuilder:
    """Assigns every open group and chain to exactly one remediation phase."""

    def __init__(self, store: FindingStore) -> None:
        self._store = store

    def build(
        self,
        groups: Sequence[DedupGroup],
        chains: Sequence[AttackChain],
        scores: Mapping[str, RiskScore],
    ) -> dict[Phase, list[RemediationItem]]:
        open_groups = [g for g in groups if not g.resolved]
        by_id = {g.id: g for g in open_groups}
        blast_radius = Counter(gid for chain in chains for gid in chain.group_ids)

        group_items = [self._group_item(g) for g in open_groups]
        immediate = {item.ref_id for item in group_items if item.phase == Phase.IMMEDIATE}
        chain_items = [
            self._chain_item(chain, by_id, immediate)
            for chain in chains
            if all(gid in by_id for gid in chain.group_ids)
        ]

        roadmap: dict[Phase, list[RemediationItem]] = {phase: [] for phase in Phase}
        for item in chain_items + group_items:
            roadmap[item.phase].append(item)

        def sort_key(item: RemediationItem):
            score = scores.get(item.ref_id)
            return (
                0 if item.kind == "chain" else 1,
                -item.severity.rank,
                -blast_radius.get(item.ref_id, 0),
                -(score.exposure if score else 1),
                item.ref_id,
            )

        for phase in roadmap:
            roadmap[phase].sort(key=sort_key)

        logger.debug(
            "Roadmap: %s",
            ", ".join(f"{phase.value}={len(items)}" for phase, items in roadmap.items()),
        )
        return roadmap

    def _group_item(self, group: DedupGroup) -> RemediationItem:
        canonical = self._store.lookup(group.canonical_id)
        label = canonical.title or canonical.category
        return RemediationItem(
            phase=SEVERITY_PHASE[group.severity],
            kind="finding",
            ref_id=group.id,
            finding_ids=list(group.member_ids),
            severity=group.severity,
            action=canonical.recommendation or f"Remediate {label}",
            effort=self._group_effort(group),
        )

    def _group_effort(self, group: DedupGroup) -> Effort:
        canonical = self._store.lookup(group.canonical_id)
        declared = canonical.attributes.get("remediation_effort")
        if isinstance(declared, str) and declared.lower() in {e.value for e in Effort}:
            return Effort(declared.lower())
        return effort_for_category(group.categories[0] if group.categories else "")

    def _chain_item(
        self,
        chain: AttackChain,
        groups: Mapping[str, DedupGroup],
        immediate: set[str],
    ) -> RemediationItem:
        # first step not already scheduled for immediate work, else the entry step
        index = next(
            (i for i, step in enumerate(chain.steps) if step.group_id not in immediate),
            0,
        )
        step = chain.steps[index]
        breaking = groups[step.group_id]
        canonical = self._store.lookup(breaking.canonical_id)
        label = canonical.title or canonical.category
        return RemediationItem(
            phase=SEVERITY_PHASE[chain.severity],
            kind="chain",
            ref_id=chain.id,
            finding_ids=list(chain.finding_ids),
            severity=chain.severity,
            action=f"Break '{chain.title}'",
            effort=self._group_effort(breaking),
            breaking_step=step.group_id,
            note=f"Fixing step {index + 1} ({label}: {step.description}) breaks this chain",
        )
