"""Attack-chain correlation over dedup groups."""

from auditsynth.synthesis.correlation.correlator import ChainCorrelator
from auditsynth.synthesis.correlation.templates import (
    CHAIN_TEMPLATES,
    ChainTemplate,
    TemplateStep,
    get_template,
)

__all__ = [
    "ChainCorrelator",
    "CHAIN_TEMPLATES",
    "ChainTemplate",
    "TemplateStep",
    "get_template",
]
