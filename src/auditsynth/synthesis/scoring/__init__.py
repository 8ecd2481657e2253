"""Risk scoring: factor tables and the composite lookup."""

from auditsynth.synthesis.scoring.scorer import RiskScorer, attribute_levels, build_score
from auditsynth.synthesis.scoring.tables import COMPOSITE_TABLE, composite_for

__all__ = [
    "RiskScorer",
    "attribute_levels",
    "build_score",
    "COMPOSITE_TABLE",
    "composite_for",
]
