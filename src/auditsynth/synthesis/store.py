"""Finding store: the validated, immutable finding set of one synthesis run."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator

from pydantic import ValidationError as PydanticValidationError

from auditsynth.errors.exceptions import NotFoundError, ValidationError
from auditsynth.models.finding import Finding

logger = logging.getLogger(__name__)


def _coerce(raw: Finding | dict[str, Any], position: int) -> Finding:
    if isinstance(raw, Finding):
        return raw
    if not isinstance(raw, dict):
        raise ValidationError(
            f"Finding at position {position} is not an object",
            details={"position": position},
        )
    finding_id = raw.get("id") or f"<position {position}>"
    if raw.get("severity") in (None, ""):
        raise ValidationError(
            f"Finding '{finding_id}' has no severity",
            details={"id": finding_id, "field": "severity"},
        )
    try:
        return Finding.model_validate(raw)
    except PydanticValidationError as exc:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise ValidationError(
            f"Finding '{finding_id}' failed validation",
            details={"id": finding_id, "errors": errors},
        ) from exc


class FindingStore:
    """Normalized in-memory view of every ingested finding.

    Build with :meth:`ingest`; the store is read-only afterwards.
    """

    def __init__(self, findings: list[Finding]) -> None:
        self._findings = findings
        self._by_id = {f.id: f for f in findings}
        self._position = {f.id: i for i, f in enumerate(findings)}

    @classmethod
    def ingest(cls, findings: Iterable[Finding | dict[str, Any]]) -> FindingStore:
        """Validate and load findings.

        Raises:
            ValidationError: duplicate id, missing severity, or a value
                outside the severity enum (or any other schema violation).
        """
        loaded: list[Finding] = []
        seen: set[str] = set()
        for position, raw in enumerate(findings):
            finding = _coerce(raw, position)
            if finding.id in seen:
                raise ValidationError(
                    f"Duplicate finding id '{finding.id}'",
                    details={"id": finding.id, "source": finding.source.value},
                )
            seen.add(finding.id)
            loaded.append(finding)

        logger.debug("Ingested %d findings", len(loaded))
        return cls(loaded)

    def lookup(self, finding_id: str) -> Finding:
        try:
            return self._by_id[finding_id]
        except KeyError:
            raise NotFoundError("Finding", finding_id) from None

    def all(self) -> list[Finding]:
        """All findings in input order (ids are unique, so the id tie-break never fires)."""
        return sorted(self._findings, key=lambda f: (self._position[f.id], f.id))

    def position(self, finding_id: str) -> int:
        return self._position[finding_id]

    def ids(self) -> set[str]:
        return set(self._by_id)

    def __len__(self) -> int:
        return len(self._findings)

    def __contains__(self, finding_id: object) -> bool:
        return finding_id in self._by_id

    def __iter__(self) -> Iterator[Finding]:
        return iter(self.all())
