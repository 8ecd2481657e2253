"""Shared test fixtures."""

import json

import pytest
from httpx import ASGITransport, AsyncClient

from auditsynth.models.finding import Finding
from auditsynth.models.synthesis import DedupGroup


@pytest.fixture
def make_finding():
    """Factory for Finding models with sensible defaults."""

    def _make(
        finding_id: str,
        source: str = "backend",
        severity: str = "medium",
        category: str = "xss",
        file: str | None = None,
        line: int | None = None,
        **fields,
    ) -> Finding:
        data = {
            "id": finding_id,
            "source": source,
            "severity": severity,
            "category": category,
            **fields,
        }
        if file is not None:
            data["location"] = {"file": file, "line": line}
        return Finding.model_validate(data)

    return _make


@pytest.fixture
def make_group():
    """Factory for single-purpose DedupGroup records."""

    def _make(
        group_id: str,
        categories: list[str],
        severity: str = "medium",
        sources: list[str] | None = None,
        members: list[str] | None = None,
        resolved: bool = False,
    ) -> DedupGroup:
        members = members or [f"{group_id}-f1"]
        return DedupGroup(
            id=group_id,
            canonical_id=members[0],
            member_ids=members,
            severity=severity,
            categories=categories,
            sources=sources or ["backend"],
            resolved=resolved,
        )

    return _make


@pytest.fixture
def sample_documents() -> dict[str, dict]:
    """One output document per analyzer, keyed by file name."""
    return {
        "frontend.json": {
            "skill": "frontend-security",
            "summary": "1 issue in 120 components",
            "stats": {"files_scanned": 120},
            "findings": [
                {
                    "id": "FE-001",
                    "severity": "medium",
                    "category": "stored-xss",
                    "title": "Stored XSS in comment renderer",
                    "location": {"file": "web/src/components/Comment.tsx", "line": 42},
                    "description": "User comment HTML is rendered through dangerouslySetInnerHTML without sanitization",
                    "recommendation": "Sanitize comment HTML with DOMPurify before rendering",
                    "attributes": {
                        "requires_auth": False,
                        "network_reachability": "internet",
                        "data_sensitivity": "internal",
                    },
                }
            ],
            "positive_observations": ["Content-Security-Policy header is set on all pages"],
        },
        "backend.json": {
            "skill": "backend-security",
            "summary": "3 issues",
            "stats": {"endpoints": 48},
            "findings": [
                {
                    "id": "001",
                    "severity": "high",
                    "category": "hardcoded_secrets",
                    "title": "Hardcoded Stripe API key",
                    "file": "api/config/settings.py",
                    "line": 12,
                    "description": "Stripe secret key literal committed in settings module",
                    "remediation_effort": "low",
                    "network_reachability": "internal",
                },
                {
                    "id": "002",
                    "severity": "medium",
                    "category": "session_fixation",
                    "title": "Session identifier not rotated after login",
                    "location": {"file": "api/auth/session.py", "line": 30},
                    "attributes": {"requires_auth": False, "network_reachability": "internet"},
                },
                {
                    "id": "003",
                    "severity": "medium",
                    "category": "idor",
                    "title": "Order lookup missing ownership check",
                    "location": {"file": "api/routes/orders.py", "line": 88},
                    "attributes": {
                        "requires_auth": True,
                        "data_sensitivity": "pii",
                        "network_reachability": "internet",
                    },
                },
            ],
            "positive_observations": [
                "Parameterized queries used throughout the ORM layer",
                "Content-Security-Policy header is set on all pages",
            ],
        },
        "data.json": {
            "skill": "data-security",
            "findings": [
                {
                    "id": "DATA-001",
                    "severity": "critical",
                    "category": "hardcoded_secret",
                    "title": "Hardcoded Stripe secret key",
                    "location": {"file": "api/config/settings.py", "line": 12},
                    "description": "Live Stripe secret key stored in settings module",
                    "attributes": {
                        "data_sensitivity": "financial",
                        "network_reachability": "internet",
                        "requires_auth": False,
                    },
                }
            ],
            "payment_flows": ["stripe-checkout"],
        },
        "identity.json": {
            "skill": "identity-security",
            "findings": [
                {
                    "id": "IAM-001",
                    "severity": "info",
                    "category": "missing_mfa",
                    "title": "Admin accounts lack MFA",
                }
            ],
        },
        "ai.json": {
            "skill": "ai-security",
            "findings": [],
            "ai_architecture": {"detected": False},
            "positive_observations": ["No LLM integrations detected"],
        },
        "infra.json": {
            "skill": "infra-security",
            "infra_map": {"provider": "aws", "regions": ["eu-west-1"]},
            "findings": [
                {
                    "id": "INFRA-001",
                    "severity": "low",
                    "category": "missing_tls",
                    "title": "Load balancer listener accepts plain HTTP",
                    "location": {"file": "infra/alb.tf", "line": 5},
                }
            ],
        },
        "supply-chain.json": {
            "skill": "supply-chain-security",
            "dependency_inventory": {"npm": 412},
            "findings": [
                {
                    "id": "SC-001",
                    "severity": "high",
                    "category": "vulnerable_dependency",
                    "title": "lodash 4.17.15 prototype pollution (CVE-2020-8203)",
                    "package": "lodash",
                    "version": "4.17.15",
                    "manifest": "web/package.json",
                    "attributes": {"exploit_maturity": "poc"},
                }
            ],
        },
    }


@pytest.fixture
def reports_dir(tmp_path, sample_documents):
    """Directory holding every sample analyzer document."""
    directory = tmp_path / "security-reports"
    directory.mkdir()
    for name, document in sample_documents.items():
        (directory / name).write_text(json.dumps(document), encoding="utf-8")
    return directory


@pytest.fixture
def app():
    """Create a test application instance."""
    from auditsynth.main import create_app

    return create_app()


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
