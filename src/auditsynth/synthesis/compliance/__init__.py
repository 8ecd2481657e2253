"""Compliance framework mapping for synthesized findings."""

from auditsynth.synthesis.compliance.mapper import (
    ComplianceAssessment,
    ComplianceMapper,
    detect_components,
)
from auditsynth.synthesis.compliance.mappings import (
    CATEGORY_MAPPINGS,
    CONTROL_CATALOG,
    ComplianceMapping,
    FrameworkControl,
    get_framework_controls,
    get_mapping_for_category,
)

__all__ = [
    "ComplianceAssessment",
    "ComplianceMapper",
    "detect_components",
    "CATEGORY_MAPPINGS",
    "CONTROL_CATALOG",
    "ComplianceMapping",
    "FrameworkControl",
    "get_framework_controls",
    "get_mapping_for_category",
]
