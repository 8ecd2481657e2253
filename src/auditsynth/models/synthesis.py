"""Pydantic models for records derived during a synthesis run."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from auditsynth.models.enums import (
    AnalyzerSource,
    Confidence,
    ControlStatus,
    Effort,
    GapReason,
    Phase,
    Severity,
)


class DedupGroup(BaseModel):
    """Findings judged to describe the same underlying issue."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    canonical_id: str
    member_ids: list[str] = Field(..., min_length=1)
    severity: Severity
    categories: list[str] = Field(default_factory=list)
    sources: list[AnalyzerSource] = Field(default_factory=list)
    resolved: bool = False


class ChainStep(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    group_id: str
    description: str


class AttackChain(BaseModel):
    """Ordered escalation path across distinct dedup groups."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    template_id: str
    title: str
    steps: list[ChainStep] = Field(..., min_length=2)
    severity: Severity
    finding_ids: list[str] = Field(default_factory=list)

    @property
    def group_ids(self) -> list[str]:
        return [step.group_id for step in self.steps]


class RiskScore(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    likelihood: int = Field(..., ge=1, le=4)
    impact: int = Field(..., ge=1, le=4)
    exposure: int = Field(..., ge=1, le=4)
    composite: Severity
    confidence: Confidence
    defaulted: list[str] = Field(default_factory=list)


class ControlResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    control_id: str
    name: str
    status: ControlStatus
    referenced_by: list[str] = Field(default_factory=list)


class RemediationItem(BaseModel):
    model_config = ConfigDict(extra="forbid")

    phase: Phase
    kind: Literal["finding", "chain"]
    ref_id: str
    finding_ids: list[str] = Field(default_factory=list)
    severity: Severity
    action: str
    effort: Effort
    breaking_step: str | None = None
    note: str | None = None


class CoverageGap(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: AnalyzerSource
    reason: GapReason
    message: str = ""


class TopRisk(BaseModel):
    model_config = ConfigDict(extra="forbid")

    rank: int
    kind: Literal["finding", "chain"]
    ref_id: str
    title: str
    severity: Severity
    composite: Severity


class RiskSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    overall: Severity
    confidence: Confidence
    composite_max: Severity


class SynthesisStats(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total_findings: int
    unique_issues: int
    duplicates_merged: int
    by_severity: dict[str, int]
    attack_chains: int


class SynthesisReport(BaseModel):
    """Top-level output document. Field names are stable across runs."""

    model_config = ConfigDict(extra="forbid")

    run_id: str
    executive_summary: str
    risk_score: RiskSummary
    stats: SynthesisStats
    top_risks: list[TopRisk] = Field(default_factory=list)
    attack_chains: list[AttackChain] = Field(default_factory=list)
    compliance_status: dict[str, dict[str, ControlResult]] = Field(default_factory=dict)
    remediation_roadmap: dict[str, list[RemediationItem]] = Field(default_factory=dict)
    all_findings: list[dict[str, Any]] = Field(default_factory=list)
    positive_observations: list[Any] = Field(default_factory=list)
    coverage_gap: list[CoverageGap] = Field(default_factory=list)
    dedup_groups: list[DedupGroup] = Field(default_factory=list)
    risk_scores: dict[str, RiskScore] = Field(default_factory=dict)
    diagnostics: dict[str, Any] = Field(default_factory=dict)
