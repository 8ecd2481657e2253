"""Analyzer output collection and report persistence.

Everything that touches the filesystem or waits on analyzers lives here; the
synthesis pipeline itself is pure.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Iterable, Mapping

from pydantic import ValidationError as PydanticValidationError

from auditsynth.errors.exceptions import MissingAnalyzerOutput, ValidationError
from auditsynth.models.enums import AnalyzerSource, GapReason
from auditsynth.models.report import AnalyzerReport
from auditsynth.models.synthesis import SynthesisReport
from auditsynth.schemas.validator import SchemaValidator
from auditsynth.synthesis.adapters import (
    AdaptedReport,
    adapt_report,
    source_from_filename,
)

logger = logging.getLogger(__name__)

_validator = SchemaValidator()


@dataclass
class CollectedOutputs:
    """Usable analyzer reports plus a gap record for each unusable one."""

    reports: list[AdaptedReport] = field(default_factory=list)
    gaps: list[MissingAnalyzerOutput] = field(default_factory=list)

    @property
    def sources(self) -> set[AnalyzerSource]:
        return {r.source for r in self.reports} | {
            AnalyzerSource(g.source) for g in self.gaps
        }


def parse_report(document: Any, filename: str | None = None) -> AdaptedReport:
    """Validate an analyzer document's envelope and adapt its findings.

    Raises:
        ValidationError: envelope does not match the analyzer-report schema
            or the producing analyzer cannot be identified.
    """
    _validator.validate(document, "analyzer-report")
    try:
        report = AnalyzerReport.model_validate(document)
    except PydanticValidationError as exc:
        raise ValidationError(
            "Analyzer report envelope is invalid",
            details={"filename": filename, "errors": [e["msg"] for e in exc.errors()]},
        ) from exc
    return adapt_report(report, filename)


def load_reports_from_dir(
    directory: str | Path,
    expected: Iterable[AnalyzerSource] = (),
    exclude: Iterable[str | Path] = (),
) -> CollectedOutputs:
    """Read every ``*.json`` analyzer document in ``directory``.

    Unreadable or malformed documents, and expected analyzers with no
    document at all, are returned as coverage gaps rather than raised.
    """
    directory = Path(directory)
    excluded = {Path(p).resolve() for p in exclude}
    collected = CollectedOutputs()
    if not directory.is_dir():
        logger.warning("Reports directory %s does not exist", directory)
        paths: list[Path] = []
    else:
        paths = sorted(p for p in directory.glob("*.json") if p.resolve() not in excluded)

    for path in paths:
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
            adapted = parse_report(document, path.name)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
            source = source_from_filename(path)
            if source is None:
                logger.warning("Skipping unrecognized report file %s: %s", path.name, exc)
                continue
            logger.warning("Analyzer output %s is malformed: %s", path.name, exc)
            collected.gaps.append(
                MissingAnalyzerOutput(source.value, GapReason.MALFORMED.value, f"{path.name}: {exc}")
            )
            continue
        if adapted.source in {r.source for r in collected.reports}:
            logger.warning(
                "Ignoring %s: a report for analyzer %s was already loaded",
                path.name,
                adapted.source.value,
            )
            continue
        logger.info("Loaded %d findings from %s", len(adapted.findings), path.name)
        collected.reports.append(adapted)
        # a usable report supersedes malformed siblings for the same analyzer
        collected.gaps = [g for g in collected.gaps if g.source != adapted.source.value]

    for source in expected:
        if source not in collected.sources:
            collected.gaps.append(
                MissingAnalyzerOutput(
                    source.value,
                    GapReason.MISSING.value,
                    f"No report from analyzer '{source.value}' in {directory}",
                )
            )
    return collected


async def _await_analyzer(
    source: AnalyzerSource,
    pending: Awaitable[Any],
    timeout: float,
) -> AdaptedReport | MissingAnalyzerOutput:
    try:
        document = await asyncio.wait_for(pending, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Analyzer %s timed out after %.1fs", source.value, timeout)
        return MissingAnalyzerOutput(source.value, GapReason.TIMEOUT.value)
    except Exception as exc:
        logger.warning("Analyzer %s failed: %s", source.value, exc)
        return MissingAnalyzerOutput(source.value, GapReason.FAILED.value, str(exc))

    if isinstance(document, dict) and "source" not in document:
        document = {**document, "source": source.value}
    try:
        adapted = parse_report(document)
    except ValidationError as exc:
        logger.warning("Analyzer %s returned a malformed report: %s", source.value, exc)
        return MissingAnalyzerOutput(source.value, GapReason.MALFORMED.value, exc.message)
    if adapted.source != source:
        return MissingAnalyzerOutput(
            source.value,
            GapReason.MALFORMED.value,
            f"Report claims source '{adapted.source.value}'",
        )
    return adapted


async def collect_analyzer_outputs(
    pending: Mapping[AnalyzerSource, Awaitable[Any]],
    timeout: float,
) -> CollectedOutputs:
    """Join barrier over concurrently running analyzers.

    Waits for every analyzer, each bounded by ``timeout`` seconds. Failures,
    timeouts and malformed documents become coverage gaps; nothing is retried.
    Results keep the order of ``pending``.
    """
    sources = list(pending)
    results = await asyncio.gather(
        *(_await_analyzer(source, pending[source], timeout) for source in sources)
    )
    collected = CollectedOutputs()
    for result in results:
        if isinstance(result, MissingAnalyzerOutput):
            collected.gaps.append(result)
        else:
            collected.reports.append(result)
    return collected


def write_report(report: SynthesisReport, path: str | Path) -> Path:
    """Write the synthesis report as JSON, replacing any previous file atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        tmp.write_text(
            json.dumps(report.model_dump(mode="json"), indent=2) + "\n",
            encoding="utf-8",
        )
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)
    logger.info("Wrote synthesis report to %s", path)
    return path
