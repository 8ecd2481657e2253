"""Custom exception classes for the synthesis engine."""


class SynthesisError(Exception):
    """Base exception for auditsynth."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict:
        result = {"kind": self.code, "message": self.message}
        if self.details is not None:
            result["details"] = self.details
        return result


class ValidationError(SynthesisError):
    """Malformed or duplicate finding input. Fatal for the run."""

    def __init__(self, message: str, details=None):
        super().__init__("VALIDATION_ERROR", message, details, status_code=400)


class NotFoundError(SynthesisError):
    """Lookup of an unknown identifier."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            "NOT_FOUND",
            f"{resource} '{resource_id}' not found",
            details={"id": resource_id},
            status_code=404,
        )


class MissingAnalyzerOutput(SynthesisError):
    """An expected analyzer report is absent or unusable. Recorded, not fatal."""

    def __init__(self, source: str, reason: str, message: str = ""):
        self.source = source
        self.reason = reason
        super().__init__(
            "MISSING_ANALYZER_OUTPUT",
            message or f"No usable output from analyzer '{source}' ({reason})",
            details={"source": source, "reason": reason},
            status_code=422,
        )


class AmbiguousDedupMatch(SynthesisError):
    """Similarity between two findings is inconclusive; they stay separate."""

    def __init__(self, left_id: str, right_id: str, reason: str):
        self.left_id = left_id
        self.right_id = right_id
        self.reason = reason
        super().__init__(
            "AMBIGUOUS_DEDUP_MATCH",
            f"Inconclusive similarity between '{left_id}' and '{right_id}': {reason}",
            details={"ids": [left_id, right_id], "reason": reason},
            status_code=200,
        )
