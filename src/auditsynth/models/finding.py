"""Pydantic model for the Finding entity."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from auditsynth.models.enums import AnalyzerSource, FindingStatus, Severity


class Location(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    file: str = Field(..., min_length=1)
    line: int | None = Field(None, ge=0)


class Finding(BaseModel):
    """A single issue reported by one domain analyzer.

    Frozen: the engine derives new records that reference findings by id and
    never mutates an ingested finding.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(..., min_length=1)
    source: AnalyzerSource
    severity: Severity
    category: str = Field(..., min_length=1)
    title: str = ""
    location: Location | None = None
    description: str = ""
    impact: str = ""
    recommendation: str = ""
    attributes: dict[str, Any] = Field(default_factory=dict)
    status: FindingStatus = FindingStatus.OPEN
    cwe_ids: list[str] = Field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.status == FindingStatus.RESOLVED
