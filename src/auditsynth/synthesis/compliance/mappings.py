"""Compliance framework mappings.

Maps normalized finding categories to specific framework controls for
OWASP Top 10 2021, OWASP LLM Top 10 2025, SOC 2, PCI DSS 4.0 and
CIS Controls v8. The tables are static: a category references exactly the
controls listed here, nothing is inferred.
"""

from dataclasses import dataclass, field
from typing import Any

from auditsynth.models.enums import Component, FrameworkType


@dataclass(frozen=True)
class FrameworkControl:
    """A single control from a compliance framework."""

    id: str
    name: str
    framework: FrameworkType
    description: str = ""
    requires_component: Component | None = None
    references: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "framework": self.framework.value,
            "description": self.description,
            "requires_component": (
                self.requires_component.value if self.requires_component else None
            ),
            "references": list(self.references),
        }


@dataclass(frozen=True)
class ComplianceMapping:
    """Controls referenced by one finding category."""

    category: str
    owasp_top10: list[str] = field(default_factory=list)
    owasp_llm: list[str] = field(default_factory=list)
    soc2: list[str] = field(default_factory=list)
    pci_dss: list[str] = field(default_factory=list)
    cis: list[str] = field(default_factory=list)
    cwe: list[str] = field(default_factory=list)

    def controls(self) -> list[tuple[FrameworkType, str]]:
        return (
            [(FrameworkType.OWASP_TOP10, c) for c in self.owasp_top10]
            + [(FrameworkType.OWASP_LLM, c) for c in self.owasp_llm]
            + [(FrameworkType.SOC2, c) for c in self.soc2]
            + [(FrameworkType.PCI_DSS, c) for c in self.pci_dss]
            + [(FrameworkType.CIS, c) for c in self.cis]
        )


def _controls(framework: FrameworkType, rows: list[tuple], component: Component | None = None):
    return {
        row[0]: FrameworkControl(
            id=row[0],
            name=row[1],
            framework=framework,
            description=row[2] if len(row) > 2 else "",
            requires_component=row[3] if len(row) > 3 else component,
        )
        for row in rows
    }


# OWASP Top 10 2021
OWASP_TOP10_CONTROLS: dict[str, FrameworkControl] = _controls(
    FrameworkType.OWASP_TOP10,
    [
        ("A01", "Broken Access Control", "Users act outside their intended permissions."),
        ("A02", "Cryptographic Failures", "Sensitive data exposed through missing or weak cryptography."),
        ("A03", "Injection", "Untrusted data interpreted as code or commands."),
        ("A04", "Insecure Design", "Missing or ineffective security controls by design."),
        ("A05", "Security Misconfiguration", "Insecure defaults, verbose errors, open cloud storage."),
        ("A06", "Vulnerable and Outdated Components", "Components with known vulnerabilities."),
        ("A07", "Identification and Authentication Failures", "Weak authentication and session handling."),
        ("A08", "Software and Data Integrity Failures", "Unverified updates, packages and pipelines."),
        ("A09", "Security Logging and Monitoring Failures", "Attacks go undetected."),
        ("A10", "Server-Side Request Forgery", "Server fetches attacker-supplied URLs."),
    ],
)

# OWASP LLM Top 10 2025
OWASP_LLM_CONTROLS: dict[str, FrameworkControl] = _controls(
    FrameworkType.OWASP_LLM,
    [
        ("LLM01", "Prompt Injection", "Crafted inputs manipulate model behaviour."),
        ("LLM02", "Sensitive Information Disclosure", "Sensitive data revealed in model output."),
        ("LLM03", "Supply Chain", "Compromised models, datasets or plugins."),
        ("LLM04", "Data and Model Poisoning", "Tampered training or fine-tuning data."),
        ("LLM05", "Improper Output Handling", "Model output used downstream without validation."),
        ("LLM06", "Excessive Agency", "Agents with too much capability or autonomy."),
        ("LLM07", "System Prompt Leakage", "System prompts reveal secrets or logic."),
        ("LLM08", "Vector and Embedding Weaknesses", "RAG and vector store weaknesses."),
        ("LLM09", "Misinformation", "False or misleading generated content."),
        ("LLM10", "Unbounded Consumption", "Resource exhaustion through model usage."),
    ],
    component=Component.AI,
)

# SOC 2 Trust Services Criteria (security subset)
SOC2_CONTROLS: dict[str, FrameworkControl] = _controls(
    FrameworkType.SOC2,
    [
        ("CC6.1", "Logical Access Security", "Access to information assets is restricted."),
        ("CC6.6", "Boundary Protection", "Threats from outside system boundaries are mitigated.", Component.INFRASTRUCTURE),
        ("CC6.7", "Data Transmission Protection", "Data in transit and at rest is protected."),
        ("CC7.1", "Vulnerability Detection", "Configuration changes and vulnerabilities are detected."),
        ("CC7.2", "Security Event Monitoring", "Anomalies are monitored and evaluated."),
        ("CC8.1", "Change Management", "Changes to software and infrastructure are authorized.", Component.SUPPLY_CHAIN),
    ],
)

# PCI DSS 4.0 (only in scope when the system handles payment data)
PCI_DSS_CONTROLS: dict[str, FrameworkControl] = _controls(
    FrameworkType.PCI_DSS,
    [
        ("3.5", "Protect Stored Account Data", "Stored account data is rendered unreadable."),
        ("4.2", "Strong Cryptography in Transit", "Cardholder data is encrypted over open networks."),
        ("6.2", "Secure Bespoke Software", "Custom software is developed securely."),
        ("6.3", "Vulnerability Management", "Security vulnerabilities are identified and addressed."),
        ("6.4", "Public-Facing Web Application Protection", "Web applications are protected against attacks."),
        ("7.2", "Access Control", "Access is assigned on least privilege."),
        ("8.3", "Strong Authentication", "Strong authentication is established for users."),
        ("10.2", "Audit Logging", "Audit logs record user activity."),
    ],
    component=Component.PAYMENT,
)

# CIS Critical Security Controls v8
CIS_CONTROLS: dict[str, FrameworkControl] = _controls(
    FrameworkType.CIS,
    [
        ("CIS-2", "Inventory and Control of Software Assets", "", Component.SUPPLY_CHAIN),
        ("CIS-3", "Data Protection"),
        ("CIS-4", "Secure Configuration of Enterprise Assets and Software", "", Component.INFRASTRUCTURE),
        ("CIS-5", "Account Management"),
        ("CIS-6", "Access Control Management"),
        ("CIS-7", "Continuous Vulnerability Management"),
        ("CIS-8", "Audit Log Management"),
        ("CIS-12", "Network Infrastructure Management", "", Component.INFRASTRUCTURE),
        ("CIS-16", "Application Software Security"),
    ],
)

CONTROL_CATALOG: dict[FrameworkType, dict[str, FrameworkControl]] = {
    FrameworkType.OWASP_TOP10: OWASP_TOP10_CONTROLS,
    FrameworkType.OWASP_LLM: OWASP_LLM_CONTROLS,
    FrameworkType.SOC2: SOC2_CONTROLS,
    FrameworkType.PCI_DSS: PCI_DSS_CONTROLS,
    FrameworkType.CIS: CIS_CONTROLS,
}


def _m(category: str, **refs: list[str]) -> tuple[str, ComplianceMapping]:
    return category, ComplianceMapping(category=category, **refs)


CATEGORY_MAPPINGS: dict[str, ComplianceMapping] = dict(
    [
        # Injection
        _m("xss", owasp_top10=["A03"], soc2=["CC7.1"], pci_dss=["6.2", "6.4"], cis=["CIS-16"], cwe=["CWE-79"]),
        _m("html_injection", owasp_top10=["A03"], cis=["CIS-16"], cwe=["CWE-80"]),
        _m("client_side_injection", owasp_top10=["A03"], cis=["CIS-16"], cwe=["CWE-79"]),
        _m("template_injection", owasp_top10=["A03"], pci_dss=["6.2"], cis=["CIS-16"], cwe=["CWE-1336"]),
        _m("sql_injection", owasp_top10=["A03"], soc2=["CC7.1"], pci_dss=["6.2", "6.4"], cis=["CIS-16"], cwe=["CWE-89"]),
        _m("command_injection", owasp_top10=["A03"], soc2=["CC7.1"], pci_dss=["6.2"], cis=["CIS-16"], cwe=["CWE-78"]),
        _m("code_injection", owasp_top10=["A03"], pci_dss=["6.2"], cis=["CIS-16"], cwe=["CWE-94"]),
        _m("remote_code_execution", owasp_top10=["A03"], soc2=["CC7.1"], pci_dss=["6.2"], cis=["CIS-16"], cwe=["CWE-94"]),
        _m("insecure_deserialization", owasp_top10=["A08"], pci_dss=["6.2"], cis=["CIS-16"], cwe=["CWE-502"]),
        _m("path_traversal", owasp_top10=["A01"], pci_dss=["6.2"], cis=["CIS-16"], cwe=["CWE-22"]),
        # Request forgery / redirects
        _m("csrf", owasp_top10=["A01"], pci_dss=["6.2"], cis=["CIS-16"], cwe=["CWE-352"]),
        _m("ssrf", owasp_top10=["A10"], soc2=["CC6.6"], pci_dss=["6.2"], cis=["CIS-16"], cwe=["CWE-918"]),
        _m("insecure_external_request", owasp_top10=["A10"], cis=["CIS-16"], cwe=["CWE-918"]),
        _m("open_redirect", owasp_top10=["A01"], cis=["CIS-16"], cwe=["CWE-601"]),
        # Access control
        _m("broken_access_control", owasp_top10=["A01"], soc2=["CC6.1"], pci_dss=["7.2"], cis=["CIS-6"], cwe=["CWE-284"]),
        _m("missing_authorization", owasp_top10=["A01"], soc2=["CC6.1"], pci_dss=["7.2"], cis=["CIS-6"], cwe=["CWE-862"]),
        _m("idor", owasp_top10=["A01"], soc2=["CC6.1"], pci_dss=["7.2"], cis=["CIS-6"], cwe=["CWE-639"]),
        _m("privilege_escalation", owasp_top10=["A01"], soc2=["CC6.1"], pci_dss=["7.2"], cis=["CIS-6"], cwe=["CWE-269"]),
        _m("excessive_data_access", owasp_top10=["A01"], soc2=["CC6.1"], cis=["CIS-3"], cwe=["CWE-213"]),
        _m("overly_permissive_iam", owasp_top10=["A01"], soc2=["CC6.1"], pci_dss=["7.2"], cis=["CIS-6"], cwe=["CWE-732"]),
        # Identity
        _m("authentication_bypass", owasp_top10=["A07"], soc2=["CC6.1"], pci_dss=["8.3"], cis=["CIS-6"], cwe=["CWE-287"]),
        _m("broken_authentication", owasp_top10=["A07"], soc2=["CC6.1"], pci_dss=["8.3"], cis=["CIS-6"], cwe=["CWE-287"]),
        _m("weak_password_policy", owasp_top10=["A07"], soc2=["CC6.1"], pci_dss=["8.3"], cis=["CIS-5"], cwe=["CWE-521"]),
        _m("missing_mfa", owasp_top10=["A07"], soc2=["CC6.1"], pci_dss=["8.3"], cis=["CIS-6"], cwe=["CWE-308"]),
        _m("session_management", owasp_top10=["A07"], soc2=["CC6.1"], pci_dss=["8.3"], cis=["CIS-16"], cwe=["CWE-384"]),
        _m("weak_token_validation", owasp_top10=["A07"], pci_dss=["8.3"], cis=["CIS-16"], cwe=["CWE-347"]),
        _m("token_exposure", owasp_top10=["A07"], soc2=["CC6.1"], cis=["CIS-16"], cwe=["CWE-522"]),
        _m("insecure_token_storage", owasp_top10=["A07"], cis=["CIS-16"], cwe=["CWE-922"]),
        _m("insecure_cookie", owasp_top10=["A05"], cis=["CIS-16"], cwe=["CWE-614"]),
        _m("long_lived_credentials", owasp_top10=["A07"], soc2=["CC6.1"], cis=["CIS-5"], cwe=["CWE-324"]),
        # Secrets and data
        _m("hardcoded_secret", owasp_top10=["A07"], soc2=["CC6.1"], pci_dss=["8.3"], cis=["CIS-16"], cwe=["CWE-798"]),
        _m("secret_exposure", owasp_top10=["A05"], soc2=["CC6.1"], cis=["CIS-3"], cwe=["CWE-200"]),
        _m("secret_in_history", owasp_top10=["A07"], soc2=["CC6.1"], cis=["CIS-3"], cwe=["CWE-540"]),
        _m("data_exposure", owasp_top10=["A02"], soc2=["CC6.1"], pci_dss=["3.5"], cis=["CIS-3"], cwe=["CWE-200"]),
        _m("pii_exposure", owasp_top10=["A02"], soc2=["CC6.1"], cis=["CIS-3"], cwe=["CWE-359"]),
        _m("unencrypted_storage", owasp_top10=["A02"], soc2=["CC6.7"], pci_dss=["3.5"], cis=["CIS-3"], cwe=["CWE-311"]),
        _m("weak_cryptography", owasp_top10=["A02"], soc2=["CC6.7"], pci_dss=["3.5", "4.2"], cis=["CIS-3"], cwe=["CWE-327"]),
        _m("missing_tls", owasp_top10=["A02"], soc2=["CC6.7"], pci_dss=["4.2"], cis=["CIS-3"], cwe=["CWE-319"]),
        _m("public_bucket", owasp_top10=["A01"], soc2=["CC6.1"], cis=["CIS-3"], cwe=["CWE-732"]),
        # Infrastructure
        _m("metadata_exposure", owasp_top10=["A05"], soc2=["CC6.6"], cis=["CIS-12"], cwe=["CWE-200"]),
        _m("unprotected_internal_endpoint", owasp_top10=["A05"], soc2=["CC6.6"], cis=["CIS-12"], cwe=["CWE-306"]),
        _m("missing_network_segmentation", owasp_top10=["A05"], soc2=["CC6.6"], cis=["CIS-12"], cwe=["CWE-923"]),
        _m("lateral_movement", owasp_top10=["A05"], soc2=["CC6.6"], cis=["CIS-12"]),
        _m("container_escape", owasp_top10=["A05"], soc2=["CC6.6"], cis=["CIS-4"], cwe=["CWE-250"]),
        _m("security_misconfiguration", owasp_top10=["A05"], soc2=["CC7.1"], cis=["CIS-4"], cwe=["CWE-16"]),
        _m("cors_misconfiguration", owasp_top10=["A05"], cis=["CIS-16"], cwe=["CWE-942"]),
        _m("missing_security_headers", owasp_top10=["A05"], cis=["CIS-16"], cwe=["CWE-693"]),
        _m("missing_rate_limiting", owasp_top10=["A04"], cis=["CIS-16"], cwe=["CWE-770"]),
        _m("missing_audit_logging", owasp_top10=["A09"], soc2=["CC7.2"], pci_dss=["10.2"], cis=["CIS-8"], cwe=["CWE-778"]),
        # Supply chain
        _m("vulnerable_dependency", owasp_top10=["A06"], soc2=["CC7.1"], pci_dss=["6.3"], cis=["CIS-7"], cwe=["CWE-1395"]),
        _m("dependency_confusion", owasp_top10=["A08"], soc2=["CC8.1"], pci_dss=["6.3"], cis=["CIS-2"], cwe=["CWE-427"]),
        _m("typosquatting", owasp_top10=["A08"], soc2=["CC8.1"], cis=["CIS-2"], cwe=["CWE-506"]),
        _m("malicious_package", owasp_top10=["A08"], soc2=["CC8.1"], cis=["CIS-2"], cwe=["CWE-506"]),
        _m("unpinned_dependency", owasp_top10=["A08"], soc2=["CC8.1"], cis=["CIS-2"], cwe=["CWE-1357"]),
        _m("missing_lockfile", owasp_top10=["A08"], soc2=["CC8.1"], cis=["CIS-2"]),
        _m("ci_cd_misconfiguration", owasp_top10=["A08"], soc2=["CC8.1"], cis=["CIS-4"]),
        # AI / LLM
        _m("prompt_injection", owasp_llm=["LLM01"], owasp_top10=["A03"], cwe=["CWE-74"]),
        _m("jailbreak", owasp_llm=["LLM01"], cwe=["CWE-74"]),
        _m("sensitive_information_disclosure", owasp_llm=["LLM02"], soc2=["CC6.1"], cwe=["CWE-200"]),
        _m("model_supply_chain", owasp_llm=["LLM03"], owasp_top10=["A08"], cwe=["CWE-1357"]),
        _m("data_model_poisoning", owasp_llm=["LLM04"], cwe=["CWE-1395"]),
        _m("improper_output_handling", owasp_llm=["LLM05"], owasp_top10=["A03"], cwe=["CWE-116"]),
        _m("excessive_agency", owasp_llm=["LLM06"], soc2=["CC6.1"], cwe=["CWE-269"]),
        _m("insecure_tool_use", owasp_llm=["LLM06"], cwe=["CWE-284"]),
        _m("unsafe_tool_invocation", owasp_llm=["LLM06"], cwe=["CWE-284"]),
        _m("insecure_plugin", owasp_llm=["LLM06", "LLM03"], cwe=["CWE-284"]),
        _m("tool_misuse", owasp_llm=["LLM06"]),
        _m("system_prompt_leakage", owasp_llm=["LLM07"], cwe=["CWE-200"]),
        _m("vector_embedding_weakness", owasp_llm=["LLM08"], cwe=["CWE-1395"]),
        _m("misinformation", owasp_llm=["LLM09"]),
        _m("unbounded_consumption", owasp_llm=["LLM10"], owasp_top10=["A04"], cwe=["CWE-770"]),
    ]
)


def get_framework_controls(framework: FrameworkType) -> dict[str, FrameworkControl]:
    """Get all controls for a framework."""
    return dict(CONTROL_CATALOG.get(framework, {}))


def get_mapping_for_category(category: str) -> ComplianceMapping | None:
    """Get the compliance mapping for a normalized category."""
    return CATEGORY_MAPPINGS.get(category)


def controls_for_categories(categories: list[str]) -> list[tuple[FrameworkType, str]]:
    """Ordered, de-duplicated controls referenced by any of ``categories``."""
    controls: dict[tuple[FrameworkType, str], None] = {}
    for category in categories:
        mapping = get_mapping_for_category(category)
        if mapping:
            controls.update(dict.fromkeys(mapping.controls()))
    return list(controls)
