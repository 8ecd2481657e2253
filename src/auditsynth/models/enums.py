"""String enums shared across the synthesis engine and its API."""

from enum import StrEnum


class Severity(StrEnum):
    """Finding severity, ordered from least to most severe.

    Ordering is by declaration position (see ``rank``), not by the string value.
    """

    INFORMATIONAL = "informational"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    def raised(self, levels: int) -> "Severity":
        """Return the severity ``levels`` steps higher, saturating at critical."""
        index = min(self.rank + levels, len(_SEVERITY_ORDER) - 1)
        return _SEVERITY_ORDER[index]

    @classmethod
    def highest(cls, severities) -> "Severity":
        """Max of an iterable of severities (informational when empty)."""
        result = cls.INFORMATIONAL
        for severity in severities:
            if severity.rank > result.rank:
                result = severity
        return result


_SEVERITY_ORDER: list[Severity] = list(Severity)


class AnalyzerSource(StrEnum):
    FRONTEND = "frontend"
    BACKEND = "backend"
    DATA = "data"
    IDENTITY = "identity"
    AI = "ai"
    INFRA = "infra"
    SUPPLY_CHAIN = "supply-chain"


# Canonical tie-break when duplicates share the top severity (first wins).
SOURCE_PRIORITY: tuple[AnalyzerSource, ...] = (
    AnalyzerSource.DATA,
    AnalyzerSource.IDENTITY,
    AnalyzerSource.BACKEND,
    AnalyzerSource.INFRA,
    AnalyzerSource.SUPPLY_CHAIN,
    AnalyzerSource.FRONTEND,
    AnalyzerSource.AI,
)


class FindingStatus(StrEnum):
    OPEN = "open"
    RESOLVED = "resolved"


class Confidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    def downgraded(self) -> "Confidence":
        if self == Confidence.HIGH:
            return Confidence.MEDIUM
        return Confidence.LOW


class ControlStatus(StrEnum):
    PASS = "pass"
    FAIL = "fail"
    NOT_APPLICABLE = "not_applicable"


class FrameworkType(StrEnum):
    """Compliance frameworks carried by the control catalog."""

    OWASP_TOP10 = "owasp_top10"
    OWASP_LLM = "owasp_llm"
    SOC2 = "soc2"
    PCI_DSS = "pci_dss"
    CIS = "cis_controls"


class Component(StrEnum):
    """System components a control may require to be applicable."""

    AI = "ai"
    INFRASTRUCTURE = "infrastructure"
    SUPPLY_CHAIN = "supply_chain"
    PAYMENT = "payment"


class Phase(StrEnum):
    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"
    MEDIUM_TERM = "medium_term"
    LONG_TERM = "long_term"


class Effort(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GapReason(StrEnum):
    """Why an expected analyzer output is missing from a run."""

    MISSING = "missing"
    MALFORMED = "malformed"
    FAILED = "failed"
    TIMEOUT = "timeout"
