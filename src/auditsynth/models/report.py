"""Pydantic models for analyzer input documents and synthesis requests."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from auditsynth.models.enums import AnalyzerSource


class AnalyzerReport(BaseModel):
    """One domain analyzer's output document.

    Extra keys are kept: analyzers attach domain metadata (``ai_architecture``,
    ``infra_map``, ...) next to the shared fields.
    """

    model_config = ConfigDict(extra="allow")

    skill: str
    source: AnalyzerSource | None = None
    summary: Any = None
    stats: dict[str, Any] = Field(default_factory=dict)
    findings: list[dict[str, Any]] = Field(default_factory=list)
    positive_observations: list[Any] = Field(default_factory=list)

    @property
    def metadata(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class SynthesisRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reports: list[AnalyzerReport] = Field(default_factory=list)
    expected_analyzers: list[AnalyzerSource] | None = None
