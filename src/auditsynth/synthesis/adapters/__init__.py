"""Analyzer output adapters, one per domain analyzer."""

from __future__ import annotations

from pathlib import Path

from auditsynth.errors.exceptions import ValidationError
from auditsynth.models.enums import AnalyzerSource
from auditsynth.models.report import AnalyzerReport
from auditsynth.synthesis.adapters.base import AdaptedReport, BaseAdapter
from auditsynth.synthesis.adapters.domains import (
    AIAdapter,
    BackendAdapter,
    DataAdapter,
    FrontendAdapter,
    IdentityAdapter,
    InfraAdapter,
    SupplyChainAdapter,
)

AVAILABLE_ADAPTERS: dict[AnalyzerSource, type[BaseAdapter]] = {
    adapter.source: adapter
    for adapter in (
        FrontendAdapter,
        BackendAdapter,
        DataAdapter,
        IdentityAdapter,
        AIAdapter,
        InfraAdapter,
        SupplyChainAdapter,
    )
}


def get_adapter(source: AnalyzerSource) -> BaseAdapter:
    """Return an adapter instance for ``source``."""
    return AVAILABLE_ADAPTERS[source]()


def source_from_filename(filename: str | Path) -> AnalyzerSource | None:
    """Analyzer named by a report file, e.g. ``frontend.json`` or ``supply_chain-report.json``."""
    stem = Path(filename).stem.lower().replace("_", "-")
    for source in AnalyzerSource:
        if stem == source.value or stem.startswith(f"{source.value}-"):
            return source
    return None


def detect_source(report: AnalyzerReport, filename: str | None = None) -> AnalyzerSource:
    """Work out which analyzer produced ``report``.

    Checks the explicit ``source`` field, then the ``skill`` name, then the
    file name (``frontend.json``, ``supply-chain-report.json``, ...).

    Raises:
        ValidationError: if no analyzer can be identified.
    """
    if report.source is not None:
        return report.source
    skill = report.skill.strip().lower()
    for source, adapter in AVAILABLE_ADAPTERS.items():
        if skill in adapter.skill_names:
            return source
    source = source_from_filename(filename) if filename else None
    if source is not None:
        return source
    raise ValidationError(
        f"Cannot determine which analyzer produced skill '{report.skill}'",
        details={"skill": report.skill, "filename": filename},
    )


def adapt_report(report: AnalyzerReport, filename: str | None = None) -> AdaptedReport:
    return get_adapter(detect_source(report, filename)).adapt(report)


__all__ = [
    "AVAILABLE_ADAPTERS",
    "AdaptedReport",
    "BaseAdapter",
    "adapt_report",
    "detect_source",
    "get_adapter",
    "source_from_filename",
]
