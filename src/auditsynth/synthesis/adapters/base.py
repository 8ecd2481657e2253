"""Base adapter: maps one analyzer output document onto the Finding schema.

Adapters only reshape data. They never drop or invent findings; validation
of the reshaped records happens in the finding store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from auditsynth.models.enums import AnalyzerSource
from auditsynth.models.report import AnalyzerReport
from auditsynth.synthesis.compliance.mapper import COMPONENT_METADATA
from auditsynth.synthesis.scoring.tables import SCORED_ATTRIBUTES

logger = logging.getLogger(__name__)

SEVERITY_ALIASES: dict[str, str] = {"info": "informational"}

# Attributes analyzers sometimes emit at the top level of a finding
LIFTED_ATTRIBUTES: frozenset[str] = SCORED_ATTRIBUTES | {"remediation_effort"}

FINDING_FIELDS = (
    "title",
    "description",
    "impact",
    "recommendation",
    "status",
)


@dataclass
class AdaptedReport:
    """Findings of one analyzer, reshaped for ingestion."""

    source: AnalyzerSource
    findings: list[dict[str, Any]] = field(default_factory=list)
    positive_observations: list[Any] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


class BaseAdapter:
    """Base class for all per-analyzer adapters."""

    source: AnalyzerSource
    prefix: str
    skill_names: tuple[str, ...] = ()
    # source-specific keys copied from the raw finding into attributes
    passthrough_attributes: tuple[str, ...] = ()

    def adapt(self, report: AnalyzerReport) -> AdaptedReport:
        findings = [self.adapt_finding(raw) for raw in report.findings]
        metadata = {
            key: report.metadata[key]
            for key in COMPONENT_METADATA.values()
            if key in report.metadata
        }
        logger.debug(
            "Adapted %d findings from %s analyzer", len(findings), self.source.value
        )
        return AdaptedReport(
            source=self.source,
            findings=findings,
            positive_observations=list(report.positive_observations),
            metadata=metadata,
        )

    def adapt_finding(self, raw: Any) -> Any:
        if not isinstance(raw, dict):
            # left for the store to reject with its position
            return raw

        finding: dict[str, Any] = {
            "id": self.namespace_id(raw.get("id")),
            "source": self.source.value,
            "severity": self.normalize_severity(raw.get("severity")),
            "category": raw.get("category"),
        }
        for name in FINDING_FIELDS:
            if raw.get(name) is not None:
                finding[name] = raw[name]
        if "recommendation" not in finding and raw.get("remediation"):
            finding["recommendation"] = raw["remediation"]

        location = self.location(raw)
        if location is not None:
            finding["location"] = location

        cwe = raw.get("cwe_ids", raw.get("cwe"))
        if cwe:
            finding["cwe_ids"] = [cwe] if isinstance(cwe, str) else list(cwe)

        finding["attributes"] = self.attributes(raw)
        return finding

    def namespace_id(self, finding_id: Any) -> Any:
        if isinstance(finding_id, str) and finding_id and not finding_id.startswith(self.prefix):
            return f"{self.prefix}{finding_id}"
        return finding_id

    def normalize_severity(self, severity: Any) -> Any:
        if isinstance(severity, str):
            value = severity.strip().lower()
            return SEVERITY_ALIASES.get(value, value)
        return severity

    def location(self, raw: dict[str, Any]) -> dict[str, Any] | None:
        loc = raw.get("location")
        if isinstance(loc, dict):
            file, line = loc.get("file"), loc.get("line")
        elif isinstance(loc, str):
            file, line = loc, raw.get("line")
        else:
            file, line = raw.get("file"), raw.get("line")
        if not file:
            return None
        return {"file": file, "line": line}

    def attributes(self, raw: dict[str, Any]) -> dict[str, Any]:
        attributes = dict(raw.get("attributes") or {})
        for key in LIFTED_ATTRIBUTES.union(self.passthrough_attributes):
            if key in raw and key not in attributes:
                attributes[key] = raw[key]
        return attributes
