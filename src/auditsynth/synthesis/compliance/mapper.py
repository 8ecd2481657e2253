"""Compliance mapper.

Rolls dedup groups and attack chains up into a pass / fail / not_applicable
status for every control of every catalogued framework.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from auditsynth.models.enums import (
    AnalyzerSource,
    Component,
    ControlStatus,
    FrameworkType,
    Severity,
)
from auditsynth.models.finding import Finding
from auditsynth.models.synthesis import AttackChain, ControlResult, DedupGroup
from auditsynth.synthesis.compliance.mappings import (
    CONTROL_CATALOG,
    controls_for_categories,
    get_mapping_for_category,
)

logger = logging.getLogger(__name__)

FAIL_THRESHOLD = Severity.MEDIUM

# metadata key an analyzer attaches when it detected the component
COMPONENT_METADATA: dict[Component, str] = {
    Component.AI: "ai_architecture",
    Component.INFRASTRUCTURE: "infra_map",
    Component.SUPPLY_CHAIN: "dependency_inventory",
    Component.PAYMENT: "payment_flows",
}

COMPONENT_SOURCES: dict[Component, AnalyzerSource] = {
    Component.AI: AnalyzerSource.AI,
    Component.INFRASTRUCTURE: AnalyzerSource.INFRA,
    Component.SUPPLY_CHAIN: AnalyzerSource.SUPPLY_CHAIN,
}


def _declared(value: Any) -> bool:
    # {"detected": false} style blocks say the analyzer looked and found nothing
    if isinstance(value, Mapping):
        for key in ("detected", "present", "uses_ai"):
            if key in value:
                return bool(value[key])
    return bool(value)


def detect_components(
    metadata: Iterable[Mapping[str, Any]],
    findings: Iterable[Finding] = (),
) -> set[Component]:
    """Components present in the audited system.

    A component is present when any analyzer declared it in its metadata, or
    when its analyzer reported findings. Payment handling is also inferred
    from findings touching financial data.
    """
    present: set[Component] = set()
    for block in metadata:
        for component, key in COMPONENT_METADATA.items():
            if _declared(block.get(key)):
                present.add(component)
    for finding in findings:
        for component, source in COMPONENT_SOURCES.items():
            if finding.source == source:
                present.add(component)
        if str(finding.attributes.get("data_sensitivity", "")).lower() == "financial":
            present.add(Component.PAYMENT)
    return present


@dataclass
class _Reference:
    ref_id: str
    severity: Severity
    resolved: bool

    @property
    def failing(self) -> bool:
        return not self.resolved and self.severity.rank >= FAIL_THRESHOLD.rank


@dataclass
class ComplianceAssessment:
    """Per-framework control results plus categories with no mapping."""

    controls: dict[str, dict[str, ControlResult]] = field(default_factory=dict)
    unmapped_categories: list[str] = field(default_factory=list)

    def summary(self) -> dict[str, dict[str, int]]:
        counts: dict[str, dict[str, int]] = {}
        for framework, results in self.controls.items():
            tally = {status.value: 0 for status in ControlStatus}
            for result in results.values():
                tally[result.status.value] += 1
            counts[framework] = tally
        return counts

    def failing(self) -> list[tuple[str, str]]:
        return [
            (framework, control_id)
            for framework, results in self.controls.items()
            for control_id, result in results.items()
            if result.status == ControlStatus.FAIL
        ]


class ComplianceMapper:
    """Maps groups and chains onto the control catalog."""

    def __init__(self, frameworks: Sequence[FrameworkType] | None = None) -> None:
        self.frameworks = list(frameworks) if frameworks else list(CONTROL_CATALOG)

    def map(
        self,
        groups: Sequence[DedupGroup],
        chains: Sequence[AttackChain] = (),
        components: Iterable[Component] = (),
    ) -> ComplianceAssessment:
        present = set(components)
        references: dict[tuple[FrameworkType, str], list[_Reference]] = defaultdict(list)
        unmapped: dict[str, None] = {}
        by_id = {group.id: group for group in groups}

        for group in groups:
            for category in group.categories:
                if get_mapping_for_category(category) is None:
                    unmapped[category] = None
            ref = _Reference(group.id, group.severity, group.resolved)
            for key in controls_for_categories(group.categories):
                references[key].append(ref)

        for chain in chains:
            categories = [
                category
                for group_id in chain.group_ids
                if group_id in by_id
                for category in by_id[group_id].categories
            ]
            ref = _Reference(chain.id, chain.severity, False)
            for key in controls_for_categories(categories):
                references[key].append(ref)

        assessment = ComplianceAssessment(unmapped_categories=list(unmapped))
        for framework in self.frameworks:
            results: dict[str, ControlResult] = {}
            for control_id, control in CONTROL_CATALOG[framework].items():
                refs = references.get((framework, control_id), [])
                if any(ref.failing for ref in refs):
                    status = ControlStatus.FAIL
                elif (
                    not refs
                    and control.requires_component is not None
                    and control.requires_component not in present
                ):
                    status = ControlStatus.NOT_APPLICABLE
                else:
                    status = ControlStatus.PASS
                results[control_id] = ControlResult(
                    control_id=control_id,
                    name=control.name,
                    status=status,
                    referenced_by=list(dict.fromkeys(ref.ref_id for ref in refs)),
                )
            assessment.controls[framework.value] = results

        if assessment.unmapped_categories:
            logger.info(
                "Categories without compliance mapping: %s",
                ", ".join(assessment.unmapped_categories),
            )
        return assessment
