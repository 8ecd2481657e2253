"""Risk scorer and composite table tests."""

from itertools import product

import pytest

from auditsynth.errors.exceptions import NotFoundError
from auditsynth.models.enums import Confidence, Severity
from auditsynth.models.synthesis import AttackChain, ChainStep
from auditsynth.synthesis.dedup import Deduplicator
from auditsynth.synthesis.scoring import COMPOSITE_TABLE, RiskScorer, composite_for
from auditsynth.synthesis.store import FindingStore


def test_missing_dimensions_default_to_one_with_low_confidence(make_finding):
    finding = make_finding("BE-1", attributes={"requires_auth": False})

    score = RiskScorer().score(finding)

    assert (score.likelihood, score.impact, score.exposure) == (3, 1, 1)
    assert score.defaulted == ["impact", "exposure"]
    assert score.confidence == Confidence.LOW
    assert score.composite == Severity.LOW


def test_one_defaulted_dimension_is_medium_confidence(make_finding):
    finding = make_finding(
        "BE-1", attributes={"requires_auth": False, "network_reachability": "internet"}
    )

    score = RiskScorer().score(finding)

    assert score.defaulted == ["impact"]
    assert score.confidence == Confidence.MEDIUM


def test_fully_attributed_finding(make_finding):
    finding = make_finding(
        "DATA-1",
        source="data",
        attributes={
            "requires_auth": "false",
            "data_sensitivity": "Financial",
            "network_reachability": "internet",
        },
    )

    score = RiskScorer().score(finding)

    assert (score.likelihood, score.impact, score.exposure) == (3, 4, 4)
    assert score.composite == Severity.CRITICAL
    assert score.confidence == Confidence.HIGH
    assert score.defaulted == []


def test_dimension_takes_max_recognized_factor(make_finding):
    finding = make_finding(
        "BE-1",
        attributes={
            "requires_auth": True,
            "exploit_maturity": "weaponized",
            "privilege_gained": "admin",
            "network_reachability": "internal",
        },
    )

    score = RiskScorer().score(finding)

    assert (score.likelihood, score.impact, score.exposure) == (4, 3, 2)


def test_unrecognized_values_are_ignored(make_finding):
    finding = make_finding(
        "BE-1",
        attributes={"network_reachability": "mars", "requires_auth": 7, "data_sensitivity": "pii"},
    )

    score = RiskScorer().score(finding)

    assert score.defaulted == ["likelihood", "exposure"]
    assert score.impact == 3


def test_group_merges_member_attributes(make_finding):
    findings = [
        make_finding("BE-1", file="a.py", line=1, attributes={"requires_auth": True}),
        make_finding(
            "FE-1", source="frontend", file="a.py", line=2,
            attributes={"requires_auth": False, "network_reachability": "internet"},
        ),
    ]
    store = FindingStore.ingest(findings)
    groups = Deduplicator().group(store.all()).groups

    score = RiskScorer(store, groups).score(groups[0])

    assert score.likelihood == 3
    assert score.exposure == 4
    assert score.defaulted == ["impact"]


def test_chain_takes_max_per_dimension(make_finding):
    findings = [
        make_finding("FE-1", source="frontend", category="xss", file="a.ts", line=1,
                     attributes={"network_reachability": "internet"}),
        make_finding("BE-1", category="idor", file="b.py", line=1,
                     attributes={"data_sensitivity": "health", "requires_auth": True}),
    ]
    store = FindingStore.ingest(findings)
    groups = Deduplicator().group(store.all()).groups
    chain = AttackChain(
        id="chain_test",
        template_id="t",
        title="t",
        steps=[ChainStep(group_id=g.id, description="s") for g in groups],
        severity=Severity.HIGH,
    )

    score = RiskScorer(store, groups).score(chain)

    assert (score.likelihood, score.impact, score.exposure) == (1, 4, 4)
    assert score.confidence == Confidence.HIGH


def test_chain_with_unknown_group_raises():
    chain = AttackChain(
        id="chain_test",
        template_id="t",
        title="t",
        steps=[ChainStep(group_id="grp_a", description="s"), ChainStep(group_id="grp_b", description="s")],
        severity=Severity.HIGH,
    )
    with pytest.raises(NotFoundError):
        RiskScorer().score(chain)


def test_group_scoring_requires_store(make_group):
    with pytest.raises(ValueError):
        RiskScorer().score(make_group("grp_a", ["xss"]))


def test_scoring_unknown_type_raises():
    with pytest.raises(TypeError):
        RiskScorer().score("BE-1")


# ----- composite table -----


def test_composite_table_is_complete():
    expected = set(product((1, 2, 3, 4), repeat=3))
    assert set(COMPOSITE_TABLE) == expected
    assert len(COMPOSITE_TABLE) == 64


@pytest.mark.parametrize(
    "levels,expected",
    [
        ((1, 1, 1), Severity.INFORMATIONAL),
        ((1, 1, 3), Severity.LOW),
        ((2, 2, 2), Severity.LOW),
        ((1, 2, 4), Severity.MEDIUM),
        ((3, 3, 2), Severity.MEDIUM),
        ((1, 4, 4), Severity.HIGH),
        ((3, 3, 3), Severity.HIGH),
        ((4, 3, 3), Severity.HIGH),
        ((3, 4, 4), Severity.CRITICAL),
        ((4, 4, 4), Severity.CRITICAL),
    ],
)
def test_composite_table_entries(levels, expected):
    assert composite_for(*levels) == expected


def test_composite_is_monotonic_in_every_dimension():
    for (l, i, e), severity in COMPOSITE_TABLE.items():
        for bumped in ((l + 1, i, e), (l, i + 1, e), (l, i, e + 1)):
            if bumped in COMPOSITE_TABLE:
                assert COMPOSITE_TABLE[bumped].rank >= severity.rank, (l, i, e)
