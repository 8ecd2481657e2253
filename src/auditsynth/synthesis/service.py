"""Synthesis service: runs the full pipeline and assembles the report.

adapters -> finding store -> deduplicator -> correlator -> scorer, compliance
mapper and roadmap builder over the deduplicated set -> report.

The run is pure: identical input yields an identical report, including the
run id. The service either returns a complete report or raises.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Sequence

from auditsynth.config import settings
from auditsynth.errors.exceptions import MissingAnalyzerOutput, ValidationError
from auditsynth.logging_config import run_context
from auditsynth.models.enums import AnalyzerSource, Confidence, GapReason, Severity
from auditsynth.models.report import AnalyzerReport
from auditsynth.models.synthesis import (
    AttackChain,
    CoverageGap,
    DedupGroup,
    RiskScore,
    RiskSummary,
    SynthesisReport,
    SynthesisStats,
    TopRisk,
)
from auditsynth.services.id_generator import generate_id
from auditsynth.synthesis.adapters import AdaptedReport, adapt_report
from auditsynth.synthesis.compliance import ComplianceMapper, detect_components
from auditsynth.synthesis.correlation import ChainCorrelator
from auditsynth.synthesis.dedup import Deduplicator, DedupResult
from auditsynth.synthesis.roadmap import RoadmapBuilder
from auditsynth.synthesis.scoring import RiskScorer
from auditsynth.synthesis.store import FindingStore

logger = logging.getLogger(__name__)


def overall_confidence(
    gaps: Sequence[CoverageGap],
    expected: Sequence[AnalyzerSource],
    group_scores: Sequence[RiskScore],
) -> Confidence:
    """Run confidence from analyzer coverage and per-group scoring confidence."""
    if not gaps:
        confidence = Confidence.HIGH
    elif len(gaps) * 2 >= len(expected):
        confidence = Confidence.LOW
    else:
        confidence = Confidence.MEDIUM
    low = sum(1 for score in group_scores if score.confidence == Confidence.LOW)
    if group_scores and low * 2 > len(group_scores):
        confidence = confidence.downgraded()
    return confidence


def merge_observations(reports: Iterable[AdaptedReport]) -> list[Any]:
    """Ordered union of positive observations, first occurrence wins."""
    seen: set[str] = set()
    merged: list[Any] = []
    for report in reports:
        for observation in report.positive_observations:
            key = json.dumps(observation, sort_keys=True, default=str)
            if key not in seen:
                seen.add(key)
                merged.append(observation)
    return merged


class SynthesisService:
    """Orchestrates one synthesis run."""

    def __init__(
        self,
        deduplicator: Deduplicator | None = None,
        correlator: ChainCorrelator | None = None,
        mapper: ComplianceMapper | None = None,
        top_risks_limit: int | None = None,
    ) -> None:
        self.deduplicator = deduplicator or Deduplicator()
        self.correlator = correlator or ChainCorrelator()
        self.mapper = mapper or ComplianceMapper()
        self.top_risks_limit = (
            settings.top_risks_limit if top_risks_limit is None else top_risks_limit
        )

    def synthesize(
        self,
        reports: Sequence[AdaptedReport | AnalyzerReport],
        expected_analyzers: Sequence[AnalyzerSource] | None = None,
        coverage_gaps: Sequence[MissingAnalyzerOutput] = (),
    ) -> SynthesisReport:
        """Build the synthesis report for one set of analyzer outputs.

        Args:
            reports: Analyzer documents, raw or already adapted.
            expected_analyzers: Analyzers the run should have heard from.
                Any of them without a report or gap record becomes a
                ``missing`` gap. Defaults to ``settings.expected_analyzers``.
            coverage_gaps: Gaps recorded while collecting outputs.

        Raises:
            ValidationError: invalid or duplicate findings, or a broken
                finding partition.
        """
        adapted = [
            r if isinstance(r, AdaptedReport) else adapt_report(r) for r in reports
        ]
        expected = list(
            settings.expected_analyzers if expected_analyzers is None else expected_analyzers
        )
        gaps = self._coverage_gaps(adapted, expected, coverage_gaps)

        store = FindingStore.ingest(
            finding for report in adapted for finding in report.findings
        )
        run_id = generate_id(
            "run_", *sorted(store.ids()), *(f"gap:{g.source.value}" for g in gaps)
        )

        with run_context(run_id):
            logger.info(
                "Synthesizing %d findings from %d analyzers (%d coverage gaps)",
                len(store),
                len(adapted),
                len(gaps),
            )
            return self._run(run_id, store, adapted, expected, gaps)

    def _run(
        self,
        run_id: str,
        store: FindingStore,
        adapted: list[AdaptedReport],
        expected: list[AnalyzerSource],
        gaps: list[CoverageGap],
    ) -> SynthesisReport:
        dedup = self.deduplicator.group(store.all())
        self._check_partition(store, dedup)
        groups = dedup.groups

        chains = self.correlator.correlate(groups)

        scorer = RiskScorer(store, groups)
        group_scores = {group.id: scorer.score(group) for group in groups}
        chain_scores = {chain.id: scorer.score(chain) for chain in chains}
        scores = {**group_scores, **chain_scores}

        components = detect_components([r.metadata for r in adapted], store.all())
        compliance = self.mapper.map(groups, chains, components)

        roadmap = RoadmapBuilder(store).build(groups, chains, scores)

        open_groups = [g for g in groups if not g.resolved]
        overall = Severity.highest(
            [g.severity for g in open_groups] + [c.severity for c in chains]
        )
        composite_max = Severity.highest(
            [group_scores[g.id].composite for g in open_groups]
            + [chain_scores[c.id].composite for c in chains]
        )
        confidence = overall_confidence(gaps, expected, list(group_scores.values()))

        top_risks = self._top_risks(store, open_groups, chains, scores)
        stats = SynthesisStats(
            total_findings=len(store),
            unique_issues=len(groups),
            duplicates_merged=dedup.duplicates_merged,
            by_severity={
                severity.value: sum(1 for g in groups if g.severity == severity)
                for severity in reversed(list(Severity))
            },
            attack_chains=len(chains),
        )

        report = SynthesisReport(
            run_id=run_id,
            executive_summary=self._executive_summary(
                overall, confidence, stats, len(adapted), top_risks,
                len(compliance.failing()), gaps,
            ),
            risk_score=RiskSummary(
                overall=overall, confidence=confidence, composite_max=composite_max
            ),
            stats=stats,
            top_risks=top_risks,
            attack_chains=chains,
            compliance_status=compliance.controls,
            remediation_roadmap={
                phase.value: items for phase, items in roadmap.items()
            },
            all_findings=self._all_findings(store, dedup, chains),
            positive_observations=merge_observations(adapted),
            coverage_gap=gaps,
            dedup_groups=groups,
            risk_scores=scores,
            diagnostics={
                "ambiguous_dedup_matches": [exc.to_dict() for exc in dedup.ambiguous],
                "unmapped_categories": compliance.unmapped_categories,
                "components": sorted(c.value for c in components),
                "compliance_summary": compliance.summary(),
                "analyzers": [r.source.value for r in adapted],
            },
        )
        logger.info(
            "Synthesis complete: overall=%s confidence=%s groups=%d chains=%d",
            overall.value,
            confidence.value,
            len(groups),
            len(chains),
        )
        return report

    # ----- helpers -----

    @staticmethod
    def _coverage_gaps(
        adapted: Sequence[AdaptedReport],
        expected: Sequence[AnalyzerSource],
        recorded: Sequence[MissingAnalyzerOutput],
    ) -> list[CoverageGap]:
        reported = {r.source for r in adapted}
        gaps: dict[AnalyzerSource, CoverageGap] = {}
        for exc in recorded:
            source = AnalyzerSource(exc.source)
            if source not in reported and source not in gaps:
                gaps[source] = CoverageGap(
                    source=source, reason=GapReason(exc.reason), message=exc.message
                )
        for source in expected:
            if source not in reported and source not in gaps:
                gaps[source] = CoverageGap(
                    source=source,
                    reason=GapReason.MISSING,
                    message=f"No report from analyzer '{source.value}'",
                )
        for gap in gaps.values():
            logger.warning("Coverage gap: %s (%s)", gap.source.value, gap.reason.value)
        return list(gaps.values())

    @staticmethod
    def _check_partition(store: FindingStore, dedup: DedupResult) -> None:
        members = [fid for group in dedup.groups for fid in group.member_ids]
        if len(members) != len(store) or set(members) != store.ids():
            raise ValidationError(
                "Dedup groups do not partition the finding set",
                details={
                    "findings": len(store),
                    "grouped": len(members),
                    "missing": sorted(store.ids() - set(members)),
                },
            )

    def _top_risks(
        self,
        store: FindingStore,
        groups: Sequence[DedupGroup],
        chains: Sequence[AttackChain],
        scores: dict[str, RiskScore],
    ) -> list[TopRisk]:
        candidates: list[tuple[str, str, str, Severity]] = [
            ("chain", chain.id, chain.title, chain.severity) for chain in chains
        ]
        for group in groups:
            canonical = store.lookup(group.canonical_id)
            candidates.append(
                ("finding", group.id, canonical.title or canonical.category, group.severity)
            )
        candidates.sort(
            key=lambda c: (
                -c[3].rank,
                -scores[c[1]].composite.rank,
                0 if c[0] == "chain" else 1,
                c[1],
            )
        )
        return [
            TopRisk(
                rank=rank,
                kind=kind,
                ref_id=ref_id,
                title=title,
                severity=severity,
                composite=scores[ref_id].composite,
            )
            for rank, (kind, ref_id, title, severity) in enumerate(
                candidates[: self.top_risks_limit], start=1
            )
        ]

    @staticmethod
    def _all_findings(
        store: FindingStore,
        dedup: DedupResult,
        chains: Sequence[AttackChain],
    ) -> list[dict[str, Any]]:
        group_of = dedup.group_of()
        canonical = {g.id: g.canonical_id for g in dedup.groups}
        chain_ids: dict[str, list[str]] = {}
        for chain in chains:
            for fid in chain.finding_ids:
                chain_ids.setdefault(fid, []).append(chain.id)

        records = []
        for finding in store.all():
            record = finding.model_dump(mode="json")
            group_id = group_of[finding.id]
            record["group_id"] = group_id
            record["duplicate_of"] = (
                None if canonical[group_id] == finding.id else canonical[group_id]
            )
            record["chain_ids"] = chain_ids.get(finding.id, [])
            records.append(record)
        return records

    @staticmethod
    def _executive_summary(
        overall: Severity,
        confidence: Confidence,
        stats: SynthesisStats,
        analyzer_count: int,
        top_risks: Sequence[TopRisk],
        failing_controls: int,
        gaps: Sequence[CoverageGap],
    ) -> str:
        parts = [
            f"Overall risk is {overall.value} ({confidence.value} confidence).",
            f"{stats.total_findings} findings from {analyzer_count} analyzers"
            f" reduce to {stats.unique_issues} unique issues"
            f" ({stats.duplicates_merged} duplicates merged)"
            f" and {stats.attack_chains} attack chains.",
        ]
        if top_risks:
            top = top_risks[0]
            parts.append(f"Most urgent: {top.title} ({top.severity.value}).")
        if failing_controls:
            parts.append(f"{failing_controls} compliance controls fail.")
        if gaps:
            parts.append(
                "Coverage gap: " + ", ".join(g.source.value for g in gaps) + "."
            )
        return " ".join(parts)
