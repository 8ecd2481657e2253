"""Analyzer output loading, collection barrier and report writing tests."""

import asyncio
import json

import pytest

from auditsynth.errors.exceptions import ValidationError
from auditsynth.models.enums import AnalyzerSource, GapReason
from auditsynth.synthesis.loader import (
    collect_analyzer_outputs,
    load_reports_from_dir,
    parse_report,
    write_report,
)
from auditsynth.synthesis.service import SynthesisService

ALL_SOURCES = list(AnalyzerSource)


def test_load_complete_directory(reports_dir):
    collected = load_reports_from_dir(reports_dir, expected=ALL_SOURCES)

    assert collected.gaps == []
    assert {r.source for r in collected.reports} == set(AnalyzerSource)


def test_adapters_namespace_ids_and_normalize_fields(reports_dir):
    collected = load_reports_from_dir(reports_dir, expected=ALL_SOURCES)
    by_source = {r.source: r for r in collected.reports}

    backend = by_source[AnalyzerSource.BACKEND].findings
    assert [f["id"] for f in backend] == ["BE-001", "BE-002", "BE-003"]
    assert backend[0]["location"] == {"file": "api/config/settings.py", "line": 12}
    assert backend[0]["attributes"] == {"remediation_effort": "low", "network_reachability": "internal"}

    identity = by_source[AnalyzerSource.IDENTITY].findings
    assert identity[0]["severity"] == "informational"
    assert "location" not in identity[0]

    supply_chain = by_source[AnalyzerSource.SUPPLY_CHAIN].findings
    assert supply_chain[0]["location"] == {"file": "web/package.json", "line": None}
    assert supply_chain[0]["attributes"]["package"] == "lodash"

    assert by_source[AnalyzerSource.DATA].metadata == {"payment_flows": ["stripe-checkout"]}


def test_missing_analyzer_file_becomes_gap(reports_dir):
    (reports_dir / "identity.json").unlink()

    collected = load_reports_from_dir(reports_dir, expected=ALL_SOURCES)

    assert [(g.source, g.reason) for g in collected.gaps] == [("identity", "missing")]


def test_malformed_json_becomes_gap(reports_dir):
    (reports_dir / "ai.json").write_text("{not json", encoding="utf-8")

    collected = load_reports_from_dir(reports_dir, expected=ALL_SOURCES)

    assert [(g.source, g.reason) for g in collected.gaps] == [("ai", "malformed")]


def test_envelope_schema_violation_becomes_gap(reports_dir):
    (reports_dir / "infra.json").write_text(json.dumps({"skill": "infra-security", "findings": "none"}))

    collected = load_reports_from_dir(reports_dir, expected=ALL_SOURCES)

    assert [(g.source, g.reason) for g in collected.gaps] == [("infra", "malformed")]


def test_malformed_sibling_does_not_shadow_valid_report(reports_dir):
    # backend-old.json sorts before backend.json
    (reports_dir / "backend-old.json").write_text("{not json", encoding="utf-8")

    collected = load_reports_from_dir(reports_dir, expected=ALL_SOURCES)

    assert collected.gaps == []
    assert AnalyzerSource.BACKEND in {r.source for r in collected.reports}


def test_malformed_file_is_a_gap_when_no_valid_sibling(reports_dir):
    (reports_dir / "backend.json").unlink()
    (reports_dir / "backend-old.json").write_text("{not json", encoding="utf-8")

    collected = load_reports_from_dir(reports_dir, expected=ALL_SOURCES)

    assert [(g.source, g.reason) for g in collected.gaps] == [("backend", "malformed")]


def test_unrecognized_files_are_skipped(reports_dir):
    (reports_dir / "notes.json").write_text(json.dumps({"hello": "world"}))

    collected = load_reports_from_dir(reports_dir, expected=ALL_SOURCES)

    assert collected.gaps == []
    assert len(collected.reports) == 7


def test_output_file_is_excluded(reports_dir):
    output = reports_dir / "synthesis.json"
    output.write_text("{}")

    collected = load_reports_from_dir(reports_dir, expected=ALL_SOURCES, exclude=[output])

    assert collected.gaps == []


def test_missing_directory_reports_every_expected_analyzer(tmp_path):
    collected = load_reports_from_dir(tmp_path / "absent", expected=ALL_SOURCES)

    assert collected.reports == []
    assert [g.source for g in collected.gaps] == [s.value for s in ALL_SOURCES]


def test_parse_report_rejects_invalid_envelope():
    with pytest.raises(ValidationError) as exc_info:
        parse_report({"findings": []})
    assert exc_info.value.details["schema"] == "analyzer-report"


def test_parse_report_requires_identifiable_source():
    with pytest.raises(ValidationError):
        parse_report({"skill": "mystery-scanner", "findings": []})


# ----- collection barrier -----


async def _produce(document, delay=0.0):
    await asyncio.sleep(delay)
    return document


async def _explode():
    raise RuntimeError("analyzer crashed")


@pytest.mark.asyncio
async def test_barrier_records_timeouts_and_failures(sample_documents):
    pending = {
        AnalyzerSource.FRONTEND: _produce(sample_documents["frontend.json"]),
        AnalyzerSource.BACKEND: _produce(sample_documents["backend.json"], delay=5),
        AnalyzerSource.DATA: _explode(),
        AnalyzerSource.AI: _produce({"findings": "broken"}),
    }

    collected = await collect_analyzer_outputs(pending, timeout=0.05)

    assert [r.source for r in collected.reports] == [AnalyzerSource.FRONTEND]
    assert [(g.source, g.reason) for g in collected.gaps] == [
        ("backend", GapReason.TIMEOUT.value),
        ("data", GapReason.FAILED.value),
        ("ai", GapReason.MALFORMED.value),
    ]


@pytest.mark.asyncio
async def test_barrier_tags_source_for_unlabelled_documents():
    pending = {AnalyzerSource.INFRA: _produce({"skill": "custom-infra-scan", "findings": []})}

    collected = await collect_analyzer_outputs(pending, timeout=1)

    assert [r.source for r in collected.reports] == [AnalyzerSource.INFRA]


@pytest.mark.asyncio
async def test_barrier_output_feeds_synthesis(sample_documents):
    pending = {
        AnalyzerSource.FRONTEND: _produce(sample_documents["frontend.json"]),
        AnalyzerSource.IDENTITY: _produce(sample_documents["identity.json"], delay=5),
    }

    collected = await collect_analyzer_outputs(pending, timeout=0.05)
    report = SynthesisService().synthesize(
        collected.reports,
        expected_analyzers=list(pending),
        coverage_gaps=collected.gaps,
    )

    assert [g.source for g in report.coverage_gap] == ["identity"]
    assert report.coverage_gap[0].reason == "timeout"


# ----- report writing -----


def test_write_report_round_trips(tmp_path, reports_dir):
    collected = load_reports_from_dir(reports_dir, expected=ALL_SOURCES)
    report = SynthesisService().synthesize(collected.reports, expected_analyzers=ALL_SOURCES)

    path = write_report(report, tmp_path / "out" / "synthesis.json")

    written = json.loads(path.read_text(encoding="utf-8"))
    assert written["run_id"] == report.run_id
    assert not list((tmp_path / "out").glob(".*.tmp"))


def test_failed_write_leaves_no_temp_file(tmp_path, reports_dir, monkeypatch):
    collected = load_reports_from_dir(reports_dir, expected=ALL_SOURCES)
    report = SynthesisService().synthesize(collected.reports, expected_analyzers=ALL_SOURCES)
    out_dir = tmp_path / "out"

    def failing_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("auditsynth.synthesis.loader.os.replace", failing_replace)

    with pytest.raises(OSError):
        write_report(report, out_dir / "synthesis.json")

    assert list(out_dir.iterdir()) == []
