"""Attack-chain template catalog.

Each template is an ordered list of steps. A step matches a dedup group when
one of the group's normalized categories matches one of the step's
fnmatch-style patterns and, if the step restricts sources, the group was
reported by one of them. The catalog is configuration: add templates here
without touching the correlator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatchcase

from auditsynth.models.enums import AnalyzerSource
from auditsynth.models.synthesis import DedupGroup

S = AnalyzerSource


@dataclass(frozen=True)
class TemplateStep:
    """One link in a chain template."""

    categories: tuple[str, ...]
    description: str
    sources: frozenset[AnalyzerSource] | None = None
    optional: bool = False

    def matches(self, group: DedupGroup) -> bool:
        if self.sources is not None and not self.sources.intersection(group.sources):
            return False
        return any(
            fnmatchcase(category, pattern)
            for category in group.categories
            for pattern in self.categories
        )


@dataclass(frozen=True)
class ChainTemplate:
    """An escalation path that chains distinct findings."""

    id: str
    title: str
    steps: tuple[TemplateStep, ...]
    severity_boost: int = 1
    references: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not 0 <= self.severity_boost <= 2:
            raise ValueError(f"{self.id}: severity_boost must be 0, 1 or 2")
        if len(self.steps) < 2:
            raise ValueError(f"{self.id}: a chain template needs at least two steps")
        if self.steps[0].optional:
            raise ValueError(f"{self.id}: the entry step cannot be optional")
        pattern_sets = [frozenset(step.categories) for step in self.steps]
        if len(set(pattern_sets)) != len(pattern_sets):
            raise ValueError(f"{self.id}: steps must use distinct category patterns")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "severity_boost": self.severity_boost,
            "steps": [
                {
                    "categories": list(step.categories),
                    "sources": sorted(s.value for s in step.sources) if step.sources else None,
                    "description": step.description,
                    "optional": step.optional,
                }
                for step in self.steps
            ],
            "references": list(self.references),
        }


CHAIN_TEMPLATES: tuple[ChainTemplate, ...] = (
    ChainTemplate(
        id="client_injection_to_data_access",
        title="Client-side injection to privileged data access",
        steps=(
            TemplateStep(
                categories=("xss", "dom_*", "html_injection", "client_side_injection", "template_injection"),
                description="Inject script into a victim's browser",
                sources=frozenset({S.FRONTEND, S.BACKEND}),
            ),
            TemplateStep(
                categories=("session_management", "token_exposure", "insecure_cookie*", "insecure_token_storage", "credential_theft"),
                description="Steal the victim's session token or credentials",
                sources=frozenset({S.IDENTITY, S.FRONTEND, S.BACKEND}),
            ),
            TemplateStep(
                categories=("broken_access_control", "privilege_escalation", "idor", "missing_authorization", "excessive_data_access"),
                description="Replay the stolen session to reach privileged data",
                sources=frozenset({S.BACKEND, S.DATA, S.IDENTITY}),
            ),
        ),
        severity_boost=1,
        references=("CWE-79", "CWE-384", "CWE-639"),
    ),
    ChainTemplate(
        id="ssrf_to_infra_compromise",
        title="Server-side request forgery to infrastructure compromise",
        steps=(
            TemplateStep(
                categories=("ssrf", "insecure_external_request", "unvalidated_url_fetch"),
                description="Coerce the server into requesting attacker-chosen URLs",
                sources=frozenset({S.BACKEND, S.AI, S.FRONTEND}),
            ),
            TemplateStep(
                categories=("metadata_exposure", "secret_exposure", "exposed_secret*", "unprotected_internal_endpoint"),
                description="Read cloud metadata or internal secrets through the forged request",
                sources=frozenset({S.INFRA, S.BACKEND}),
            ),
            TemplateStep(
                categories=("lateral_movement", "overly_permissive_iam", "missing_network_segmentation", "container_escape", "privilege_escalation"),
                description="Use harvested credentials to move laterally through the infrastructure",
                sources=frozenset({S.INFRA, S.IDENTITY}),
            ),
        ),
        severity_boost=2,
        references=("CWE-918", "CWE-522", "CWE-269"),
    ),
    ChainTemplate(
        id="prompt_injection_to_downstream_injection",
        title="Prompt injection to downstream injection through agent tools",
        steps=(
            TemplateStep(
                categories=("prompt_injection", "jailbreak", "system_prompt_leakage"),
                description="Override the model's instructions with attacker content",
                sources=frozenset({S.AI}),
            ),
            TemplateStep(
                categories=("excessive_agency", "unsafe_tool_*", "insecure_tool_use", "insecure_plugin", "tool_misuse"),
                description="Make the agent invoke an over-privileged tool",
                sources=frozenset({S.AI}),
            ),
            TemplateStep(
                categories=("sql_injection", "command_injection", "code_injection", "improper_output_handling"),
                description="Tool arguments reach an injectable sink (SQL, shell, eval)",
                sources=frozenset({S.BACKEND, S.DATA, S.AI}),
            ),
        ),
        severity_boost=1,
        references=("LLM01", "LLM06", "CWE-89"),
    ),
    ChainTemplate(
        id="leaked_secret_to_data_breach",
        title="Leaked credential to cloud data breach",
        steps=(
            TemplateStep(
                categories=("hardcoded_secret", "secret_exposure", "exposed_secret*", "secret_in_history"),
                description="Recover a credential from source, history or client bundle",
            ),
            TemplateStep(
                categories=("overly_permissive_iam", "missing_mfa", "long_lived_credentials"),
                description="The credential carries broad, unmonitored permissions",
                sources=frozenset({S.INFRA, S.IDENTITY}),
                optional=True,
            ),
            TemplateStep(
                categories=("data_exposure", "public_bucket", "unencrypted_storage", "pii_exposure"),
                description="Read or exfiltrate stored sensitive data",
                sources=frozenset({S.DATA, S.INFRA}),
            ),
        ),
        severity_boost=1,
        references=("CWE-798", "CWE-732"),
    ),
    ChainTemplate(
        id="dependency_to_exfiltration",
        title="Vulnerable dependency to code execution and exfiltration",
        steps=(
            TemplateStep(
                categories=("vulnerable_dependency", "dependency_confusion", "typosquat*", "malicious_package"),
                description="Attacker-controlled or vulnerable package is loaded",
                sources=frozenset({S.SUPPLY_CHAIN}),
            ),
            TemplateStep(
                categories=("remote_code_execution", "insecure_deserialization", "command_injection"),
                description="Package flaw yields code execution in the service",
            ),
            TemplateStep(
                categories=("data_exposure", "pii_exposure", "unencrypted_storage", "excessive_data_access"),
                description="Code execution reaches sensitive data stores",
                sources=frozenset({S.DATA, S.BACKEND}),
                optional=True,
            ),
        ),
        severity_boost=1,
        references=("CWE-1395", "CWE-502"),
    ),
    ChainTemplate(
        id="broken_auth_to_pii_exposure",
        title="Broken authentication to bulk PII exposure",
        steps=(
            TemplateStep(
                categories=("authentication_bypass", "broken_authentication", "weak_password_policy", "weak_token_validation"),
                description="Authenticate as another user or bypass login",
                sources=frozenset({S.IDENTITY, S.BACKEND}),
            ),
            TemplateStep(
                categories=("idor", "broken_access_control", "missing_authorization"),
                description="Enumerate other users' records via object references",
                sources=frozenset({S.BACKEND, S.IDENTITY, S.DATA}),
            ),
            TemplateStep(
                categories=("pii_exposure", "data_exposure", "excessive_data_access"),
                description="Records expose unminimized personal data",
                sources=frozenset({S.DATA, S.BACKEND}),
            ),
        ),
        severity_boost=1,
        references=("CWE-287", "CWE-639", "CWE-359"),
    ),
)


def get_template(template_id: str) -> ChainTemplate | None:
    for template in CHAIN_TEMPLATES:
        if template.id == template_id:
            return template
    return None
