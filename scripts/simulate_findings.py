"""Simulate a full security review: seven domain analyzers run concurrently,
their outputs are written to a reports directory, and the synthesis engine
merges them into one report.

Usage:
    python scripts/simulate_findings.py [--reports-dir security-reports] [--slow infra]

Analyzers named with --slow never finish within the barrier timeout and show
up as coverage gaps in the resulting report.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from httpx import ASGITransport, AsyncClient

from auditsynth.main import create_app
from auditsynth.models.enums import AnalyzerSource
from auditsynth.synthesis import SynthesisService, collect_analyzer_outputs, write_report

# ── Simulated analyzer outputs ───────────────────────────────────────────

ANALYZER_OUTPUTS = {
    AnalyzerSource.FRONTEND: {
        "skill": "frontend-security",
        "summary": "2 issues across 214 components",
        "stats": {"files_scanned": 214},
        "findings": [
            {
                "id": "FE-001",
                "severity": "medium",
                "category": "dom-xss",
                "title": "Search term reflected through innerHTML",
                "location": {"file": "web/src/pages/Search.tsx", "line": 61},
                "description": "The search query is written to the results header via innerHTML.",
                "recommendation": "Render the query as text or sanitize it with DOMPurify.",
                "attributes": {"requires_auth": False, "network_reachability": "internet"},
            },
            {
                "id": "FE-002",
                "severity": "low",
                "category": "missing_sri",
                "title": "Third-party analytics script loaded without SRI",
                "location": {"file": "web/public/index.html", "line": 14},
            },
        ],
        "positive_observations": ["Strict Content-Security-Policy on all routes"],
    },
    AnalyzerSource.BACKEND: {
        "skill": "backend-security",
        "summary": "3 issues across 52 endpoints",
        "findings": [
            {
                "id": "001",
                "severity": "medium",
                "category": "session_fixation",
                "title": "Session id survives authentication",
                "file": "api/auth/session.py",
                "line": 88,
                "network_reachability": "internet",
                "requires_auth": False,
            },
            {
                "id": "002",
                "severity": "medium",
                "category": "idor",
                "title": "Invoice download skips ownership check",
                "location": "api/routes/invoices.py:140",
                "attributes": {
                    "requires_auth": True,
                    "data_sensitivity": "financial",
                    "network_reachability": "internet",
                },
                "remediation": "Scope invoice queries to the requesting tenant.",
            },
            {
                "id": "003",
                "severity": "high",
                "category": "hardcoded_secrets",
                "title": "Stripe secret key committed to settings",
                "file": "api/config/settings.py",
                "line": 19,
                "remediation_effort": "low",
            },
        ],
        "positive_observations": ["Parameterized queries used throughout the ORM layer"],
    },
    AnalyzerSource.DATA: {
        "skill": "data-security",
        "payment_flows": ["stripe-checkout", "invoice-export"],
        "findings": [
            {
                "id": "DATA-001",
                "severity": "critical",
                "category": "hardcoded_secret",
                "title": "Live Stripe key in application settings",
                "location": {"file": "api/config/settings.py", "line": 19},
                "attributes": {
                    "data_sensitivity": "financial",
                    "network_reachability": "internet",
                    "requires_auth": False,
                },
            }
        ],
    },
    AnalyzerSource.IDENTITY: {
        "skill": "identity-security",
        "findings": [
            {
                "id": "IAM-001",
                "severity": "high",
                "category": "missing_mfa",
                "title": "Administrative console has no second factor",
                "attributes": {"network_reachability": "internet", "blast_radius": "system"},
            }
        ],
    },
    AnalyzerSource.AI: {
        "skill": "ai-security",
        "ai_architecture": {"detected": False},
        "findings": [],
        "positive_observations": ["No LLM integrations detected"],
    },
    AnalyzerSource.INFRA: {
        "skill": "infra-security",
        "infra_map": {"provider": "aws", "regions": ["eu-west-1"]},
        "findings": [
            {
                "id": "INFRA-001",
                "severity": "medium",
                "category": "overly_permissive_iam",
                "title": "Task role grants s3:* on all buckets",
                "resource_file": "infra/iam.tf",
            }
        ],
    },
    AnalyzerSource.SUPPLY_CHAIN: {
        "skill": "supply-chain-security",
        "dependency_inventory": {"npm": 388, "pip": 64},
        "findings": [
            {
                "id": "SC-001",
                "severity": "high",
                "category": "vulnerable_dependency",
                "title": "jsonwebtoken 8.5.1 signature bypass (CVE-2022-23540)",
                "package": "jsonwebtoken",
                "version": "8.5.1",
                "manifest": "api/package.json",
                "attributes": {"exploit_maturity": "poc"},
            }
        ],
    },
}


def print_section(title: str) -> None:
    print()
    print("=" * 72)
    print(f"  {title}")
    print("=" * 72)


async def run_analyzer(source: AnalyzerSource, slow: set[str]) -> dict:
    """Stand-in for one domain analyzer finishing its scan."""
    await asyncio.sleep(3600 if source.value in slow else 0.05)
    return ANALYZER_OUTPUTS[source]


async def main(reports_dir: Path, slow: set[str], timeout: float) -> None:
    # ── Phase 1: run analyzers behind the join barrier ─────────────────
    print_section("PHASE 1: ANALYZERS")
    pending = {source: run_analyzer(source, slow) for source in ANALYZER_OUTPUTS}
    collected = await collect_analyzer_outputs(pending, timeout=timeout)
    for report in collected.reports:
        print(f"  [{report.source.value:12s}] {len(report.findings)} findings")
    for gap in collected.gaps:
        print(f"  [{gap.source:12s}] GAP ({gap.reason})")

    reports_dir.mkdir(parents=True, exist_ok=True)
    for report in collected.reports:
        path = reports_dir / f"{report.source.value}.json"
        path.write_text(json.dumps(ANALYZER_OUTPUTS[report.source], indent=2), encoding="utf-8")
    print(f"\n  Analyzer outputs written to {reports_dir}")

    # ── Phase 2: in-process synthesis ──────────────────────────────────
    print_section("PHASE 2: SYNTHESIS")
    report = SynthesisService().synthesize(
        collected.reports,
        expected_analyzers=list(ANALYZER_OUTPUTS),
        coverage_gaps=collected.gaps,
    )
    output = write_report(report, reports_dir / "synthesis.json")
    print(f"  Run:        {report.run_id}")
    print(f"  Overall:    {report.risk_score.overall.value} ({report.risk_score.confidence.value} confidence)")
    print(f"  Findings:   {report.stats.total_findings} -> {report.stats.unique_issues} unique")
    print(f"  Report:     {output}")
    print()
    print(f"  {report.executive_summary}")

    print()
    print("  Top risks:")
    for risk in report.top_risks:
        print(f"    {risk.rank}. [{risk.severity.value.upper():13s}] [{risk.kind:7s}] {risk.title[:50]}")

    print()
    print("  Attack chains:")
    for chain in report.attack_chains:
        print(f"    {chain.id} {chain.title} ({chain.severity.value})")
        for order, step in enumerate(chain.steps, start=1):
            print(f"      {order}. {step.group_id}: {step.description}")

    print()
    print("  Roadmap:")
    for phase, items in report.remediation_roadmap.items():
        print(f"    {phase}: {len(items)} items")
        for item in items:
            note = f" -- {item.note}" if item.note else ""
            print(f"      [{item.effort.value:6s}] {item.action}{note}")

    # ── Phase 3: same outputs through the HTTP API ─────────────────────
    print_section("PHASE 3: HTTP API")
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.post(
            "/api/v1/synthesis",
            json={
                "reports": [ANALYZER_OUTPUTS[r.source] for r in collected.reports],
                "expected_analyzers": [s.value for s in ANALYZER_OUTPUTS],
            },
        )
        r.raise_for_status()
        body = r.json()
        print(f"  POST /api/v1/synthesis -> {r.status_code} (trace {r.headers['X-Trace-Id']})")
        print(f"  Same run id as in-process: {body['run_id'] == report.run_id}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--reports-dir", type=Path, default=Path("security-reports"))
    parser.add_argument("--slow", nargs="*", default=[], choices=[s.value for s in AnalyzerSource])
    parser.add_argument("--timeout", type=float, default=2.0)
    args = parser.parse_args()
    asyncio.run(main(args.reports_dir, set(args.slow), args.timeout))
