"""Per-analyzer adapters."""

from __future__ import annotations

from typing import Any

from auditsynth.models.enums import AnalyzerSource
from auditsynth.synthesis.adapters.base import BaseAdapter


class FrontendAdapter(BaseAdapter):
    source = AnalyzerSource.FRONTEND
    prefix = "FE-"
    skill_names = ("frontend-security", "frontend-analyzer", "frontend")
    passthrough_attributes = ("component", "route")


class BackendAdapter(BaseAdapter):
    source = AnalyzerSource.BACKEND
    prefix = "BE-"
    skill_names = ("backend-security", "backend-analyzer", "backend", "api-security")
    passthrough_attributes = ("endpoint", "method")


class DataAdapter(BaseAdapter):
    source = AnalyzerSource.DATA
    prefix = "DATA-"
    skill_names = ("data-security", "data-analyzer", "data")
    passthrough_attributes = ("datastore", "table", "fields")


class IdentityAdapter(BaseAdapter):
    source = AnalyzerSource.IDENTITY
    prefix = "IAM-"
    skill_names = ("identity-security", "identity-analyzer", "identity", "iam-security", "auth-security")
    passthrough_attributes = ("provider", "flow")


class AIAdapter(BaseAdapter):
    source = AnalyzerSource.AI
    prefix = "AI-"
    skill_names = ("ai-security", "ai-analyzer", "ai", "llm-security")
    passthrough_attributes = ("model", "tool", "agent")


class InfraAdapter(BaseAdapter):
    """Infrastructure findings often point at a resource, not a source file."""

    source = AnalyzerSource.INFRA
    prefix = "INFRA-"
    skill_names = ("infra-security", "infra-analyzer", "infra", "infrastructure-security")
    passthrough_attributes = ("resource", "provider", "region")

    def location(self, raw: dict[str, Any]) -> dict[str, Any] | None:
        location = super().location(raw)
        if location is None and raw.get("resource_file"):
            return {"file": raw["resource_file"], "line": raw.get("line")}
        return location


class SupplyChainAdapter(BaseAdapter):
    """Dependency findings carry a package and, at most, its manifest."""

    source = AnalyzerSource.SUPPLY_CHAIN
    prefix = "SC-"
    skill_names = ("supply-chain-security", "supply-chain-analyzer", "supply-chain", "supply_chain", "dependency-security")
    passthrough_attributes = ("package", "version", "fixed_version", "ecosystem", "cve")

    def location(self, raw: dict[str, Any]) -> dict[str, Any] | None:
        location = super().location(raw)
        if location is None and raw.get("manifest"):
            # manifest-level finding, no line
            return {"file": raw["manifest"], "line": None}
        return location
