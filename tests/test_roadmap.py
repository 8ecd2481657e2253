"""Roadmap builder tests."""

import pytest

from auditsynth.models.enums import Effort, Phase
from auditsynth.synthesis.correlation import ChainCorrelator
from auditsynth.synthesis.dedup import Deduplicator
from auditsynth.synthesis.roadmap import RoadmapBuilder, effort_for_category
from auditsynth.synthesis.scoring import RiskScorer
from auditsynth.synthesis.store import FindingStore


def _build(findings):
    store = FindingStore.ingest(findings)
    groups = Deduplicator().group(store.all()).groups
    chains = ChainCorrelator().correlate(groups)
    scorer = RiskScorer(store, groups)
    scores = {g.id: scorer.score(g) for g in groups}
    scores.update({c.id: scorer.score(c) for c in chains})
    return store, groups, chains, RoadmapBuilder(store).build(groups, chains, scores)


def _items(roadmap, phase, kind=None):
    return [i for i in roadmap[phase] if kind is None or i.kind == kind]


def test_all_phases_present_even_when_empty():
    _, _, _, roadmap = _build([])
    assert list(roadmap) == [Phase.IMMEDIATE, Phase.SHORT_TERM, Phase.MEDIUM_TERM, Phase.LONG_TERM]
    assert all(items == [] for items in roadmap.values())


@pytest.mark.parametrize(
    "severity,phase",
    [
        ("critical", Phase.IMMEDIATE),
        ("high", Phase.SHORT_TERM),
        ("medium", Phase.MEDIUM_TERM),
        ("low", Phase.LONG_TERM),
        ("informational", Phase.LONG_TERM),
    ],
)
def test_finding_phase_follows_severity(make_finding, severity, phase):
    _, groups, _, roadmap = _build([make_finding("BE-1", severity=severity, category="idor")])

    assert [i.ref_id for i in roadmap[phase]] == [groups[0].id]


def test_resolved_groups_are_excluded(make_finding):
    _, _, _, roadmap = _build([make_finding("BE-1", severity="critical", status="resolved")])

    assert all(items == [] for items in roadmap.values())


def test_chain_item_names_breaking_step(make_finding):
    findings = [
        make_finding("FE-1", source="frontend", severity="critical", category="xss", file="web/a.ts", line=3,
                     title="Stored XSS in comments"),
        make_finding("IAM-1", source="identity", severity="medium", category="session_management",
                     file="auth/session.py", line=9, title="Session not rotated"),
        make_finding("BE-1", severity="medium", category="idor", file="api/orders.py", line=20,
                     title="Order IDOR"),
    ]

    _, groups, chains, roadmap = _build(findings)

    assert len(chains) == 1
    chain_items = _items(roadmap, Phase.IMMEDIATE, "chain")
    assert len(chain_items) == 1
    item = chain_items[0]
    # the xss step is already immediate, so the session step is the one to break
    session_group = next(g for g in groups if g.canonical_id == "IAM-1")
    assert item.breaking_step == session_group.id
    assert "step 2" in item.note
    assert item.finding_ids == ["FE-1", "IAM-1", "BE-1"]
    assert item.effort == Effort.HIGH


def test_breaking_step_falls_back_to_first_when_all_immediate(make_finding):
    findings = [
        make_finding("FE-1", source="frontend", severity="critical", category="xss", file="a.ts", line=1),
        make_finding("IAM-1", source="identity", severity="critical", category="session_management", file="b.py", line=1),
        make_finding("BE-1", severity="critical", category="idor", file="c.py", line=1),
    ]

    _, groups, chains, roadmap = _build(findings)

    item = _items(roadmap, Phase.IMMEDIATE, "chain")[0]
    assert item.breaking_step == chains[0].steps[0].group_id


def test_chains_come_first_within_phase(make_finding):
    findings = [
        make_finding("DATA-1", source="data", severity="critical", category="sql_injection", file="x.py", line=1),
        make_finding("FE-1", source="frontend", severity="high", category="xss", file="a.ts", line=1),
        make_finding("IAM-1", source="identity", severity="medium", category="session_management", file="b.py", line=1),
        make_finding("BE-1", severity="medium", category="idor", file="c.py", line=1),
    ]

    _, _, _, roadmap = _build(findings)

    kinds = [i.kind for i in roadmap[Phase.IMMEDIATE]]
    assert kinds == ["chain", "finding"]


def test_ordering_by_blast_radius_then_exposure(make_finding):
    findings = [
        make_finding("BE-9", severity="high", category="missing_tls", file="z.py", line=1,
                     attributes={"network_reachability": "internet"}),
        make_finding("BE-8", severity="high", category="missing_tls", file="y.py", line=1,
                     attributes={"network_reachability": "localhost"}),
    ]

    _, groups, _, roadmap = _build(findings)

    order = [i.finding_ids[0] for i in roadmap[Phase.SHORT_TERM]]
    assert order == ["BE-9", "BE-8"]


def test_effort_from_declared_attribute(make_finding):
    _, _, _, roadmap = _build(
        [make_finding("BE-1", severity="high", category="idor", attributes={"remediation_effort": "Low"})]
    )

    assert roadmap[Phase.SHORT_TERM][0].effort == Effort.LOW


def test_invalid_declared_effort_falls_back_to_category(make_finding):
    _, _, _, roadmap = _build(
        [make_finding("BE-1", severity="high", category="idor", attributes={"remediation_effort": "huge"})]
    )

    assert roadmap[Phase.SHORT_TERM][0].effort == Effort.HIGH


@pytest.mark.parametrize(
    "category,effort",
    [
        ("vulnerable_dependency", Effort.LOW),
        ("cors_misconfiguration", Effort.LOW),
        ("hardcoded_secret", Effort.LOW),
        ("sql_injection", Effort.MEDIUM),
        ("something_new", Effort.MEDIUM),
        ("broken_access_control", Effort.HIGH),
        ("missing_mfa", Effort.HIGH),
    ],
)
def test_effort_table(category, effort):
    assert effort_for_category(category) == effort


def test_action_uses_recommendation(make_finding):
    _, _, _, roadmap = _build(
        [make_finding("BE-1", severity="low", category="xss", recommendation="Escape output")]
    )

    assert roadmap[Phase.LONG_TERM][0].action == "Escape output"
