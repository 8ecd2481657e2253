"""Compliance mapper tests."""

from auditsynth.models.enums import Component, ControlStatus, FrameworkType
from auditsynth.models.synthesis import AttackChain, ChainStep
from auditsynth.synthesis.compliance import (
    CATEGORY_MAPPINGS,
    CONTROL_CATALOG,
    ComplianceMapper,
    detect_components,
    get_framework_controls,
)
from auditsynth.synthesis.compliance.mappings import controls_for_categories


def _status(assessment, framework, control_id):
    return assessment.controls[framework.value][control_id]


def test_every_control_reported_exactly_once(make_group):
    groups = [
        make_group("grp_xss", ["xss"], severity="high"),
        make_group("grp_unknown", ["something_new"], severity="critical"),
    ]

    assessment = ComplianceMapper().map(groups, [], set())

    assert set(assessment.controls) == {fw.value for fw in FrameworkType}
    for framework, controls in CONTROL_CATALOG.items():
        assert list(assessment.controls[framework.value]) == list(controls)
        for result in assessment.controls[framework.value].values():
            assert result.status in set(ControlStatus)


def test_empty_run_is_total(make_group):
    assessment = ComplianceMapper().map([], [], set())

    total = sum(len(c) for c in assessment.controls.values())
    assert total == sum(len(c) for c in CONTROL_CATALOG.values())


def test_open_medium_group_fails_control(make_group):
    group = make_group("grp_xss", ["xss"], severity="medium")

    assessment = ComplianceMapper().map([group], [], set())

    result = _status(assessment, FrameworkType.OWASP_TOP10, "A03")
    assert result.status == ControlStatus.FAIL
    assert result.referenced_by == ["grp_xss"]
    assert _status(assessment, FrameworkType.CIS, "CIS-16").status == ControlStatus.FAIL


def test_low_severity_group_passes(make_group):
    group = make_group("grp_xss", ["xss"], severity="low")

    assessment = ComplianceMapper().map([group], [], set())

    result = _status(assessment, FrameworkType.OWASP_TOP10, "A03")
    assert result.status == ControlStatus.PASS
    assert result.referenced_by == ["grp_xss"]


def test_resolved_group_passes(make_group):
    group = make_group("grp_xss", ["xss"], severity="critical", resolved=True)

    assessment = ComplianceMapper().map([group], [], set())

    assert _status(assessment, FrameworkType.OWASP_TOP10, "A03").status == ControlStatus.PASS


def test_unreferenced_control_without_component_is_not_applicable():
    assessment = ComplianceMapper().map([], [], set())

    assert _status(assessment, FrameworkType.OWASP_LLM, "LLM01").status == ControlStatus.NOT_APPLICABLE
    assert _status(assessment, FrameworkType.PCI_DSS, "6.2").status == ControlStatus.NOT_APPLICABLE
    # controls without a component requirement always apply
    assert _status(assessment, FrameworkType.OWASP_TOP10, "A01").status == ControlStatus.PASS


def test_present_component_makes_control_applicable():
    assessment = ComplianceMapper().map([], [], {Component.AI, Component.PAYMENT})

    assert _status(assessment, FrameworkType.OWASP_LLM, "LLM01").status == ControlStatus.PASS
    assert _status(assessment, FrameworkType.PCI_DSS, "6.2").status == ControlStatus.PASS


def test_referenced_control_is_applicable_without_component(make_group):
    group = make_group("grp_pi", ["prompt_injection"], severity="high", sources=["ai"])

    assessment = ComplianceMapper().map([group], [], set())

    assert _status(assessment, FrameworkType.OWASP_LLM, "LLM01").status == ControlStatus.FAIL


def test_chain_references_union_of_step_controls(make_group):
    groups = [
        make_group("grp_xss", ["xss"], severity="low", sources=["frontend"]),
        make_group("grp_idor", ["idor"], severity="low", sources=["backend"]),
    ]
    chain = AttackChain(
        id="chain_x",
        template_id="client_injection_to_data_access",
        title="t",
        steps=[ChainStep(group_id=g.id, description="s") for g in groups],
        severity="medium",
    )

    assessment = ComplianceMapper().map(groups, [chain], set())

    a03 = _status(assessment, FrameworkType.OWASP_TOP10, "A03")
    a01 = _status(assessment, FrameworkType.OWASP_TOP10, "A01")
    assert a03.referenced_by == ["grp_xss", "chain_x"]
    assert a01.referenced_by == ["grp_idor", "chain_x"]
    # the steps alone are low; the chain is medium and fails both
    assert a03.status == ControlStatus.FAIL
    assert a01.status == ControlStatus.FAIL


def test_unmapped_categories_are_reported(make_group):
    group = make_group("grp_new", ["quantum_tunnelling"], severity="high")

    assessment = ComplianceMapper().map([group], [], set())

    assert assessment.unmapped_categories == ["quantum_tunnelling"]


def test_summary_counts(make_group):
    assessment = ComplianceMapper(frameworks=[FrameworkType.SOC2]).map(
        [make_group("grp_xss", ["xss"], severity="high")], [], set()
    )

    summary = assessment.summary()["soc2"]
    assert summary["fail"] == 1
    assert sum(summary.values()) == len(get_framework_controls(FrameworkType.SOC2))
    assert assessment.failing() == [("soc2", "CC7.1")]


def test_every_mapped_control_exists_in_catalog():
    for category, mapping in CATEGORY_MAPPINGS.items():
        for framework, control_id in mapping.controls():
            assert control_id in CONTROL_CATALOG[framework], (category, control_id)


def test_controls_for_categories_is_ordered_and_unique():
    controls = controls_for_categories(["xss", "sql_injection"])
    assert len(controls) == len(set(controls))
    assert controls[0] == (FrameworkType.OWASP_TOP10, "A03")


# ----- component detection -----


def test_components_from_metadata():
    components = detect_components(
        [{"infra_map": {"provider": "aws"}}, {"payment_flows": ["checkout"]}]
    )
    assert components == {Component.INFRASTRUCTURE, Component.PAYMENT}


def test_declared_absent_component_is_ignored():
    assert detect_components([{"ai_architecture": {"detected": False}}]) == set()


def test_components_from_findings(make_finding):
    findings = [
        make_finding("AI-1", source="ai", category="prompt_injection"),
        make_finding("BE-1", attributes={"data_sensitivity": "financial"}),
    ]
    assert detect_components([], findings) == {Component.AI, Component.PAYMENT}
