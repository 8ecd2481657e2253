"""Synthesis engine: finding aggregation, attack chains, risk and compliance."""

from auditsynth.synthesis.dedup import Deduplicator, DedupResult
from auditsynth.synthesis.loader import (
    CollectedOutputs,
    collect_analyzer_outputs,
    load_reports_from_dir,
    write_report,
)
from auditsynth.synthesis.service import SynthesisService
from auditsynth.synthesis.store import FindingStore

__all__ = [
    "CollectedOutputs",
    "Deduplicator",
    "DedupResult",
    "FindingStore",
    "SynthesisService",
    "collect_analyzer_outputs",
    "load_reports_from_dir",
    "write_report",
]
