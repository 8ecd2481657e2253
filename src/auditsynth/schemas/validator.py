"""Schema validation service using jsonschema library."""

import json
from functools import lru_cache
from pathlib import Path

import jsonschema

from auditsynth.errors.exceptions import ValidationError

SCHEMA_DIR = Path(__file__).resolve().parent

# Maps logical schema names to files in this package
SCHEMA_REGISTRY: dict[str, str] = {
    "analyzer-report": "analyzer-report.schema.json",
}


@lru_cache(maxsize=8)
def load_schema(schema_name: str) -> dict:
    """Load and cache a schema by its logical name."""
    path = SCHEMA_DIR / SCHEMA_REGISTRY[schema_name]
    return json.loads(path.read_text(encoding="utf-8"))


class SchemaValidator:
    """Validates JSON instances against the bundled JSON Schemas."""

    def errors(self, instance: object, schema_name: str) -> list[dict[str, str]]:
        """All violations of ``schema_name``, ordered by instance path."""
        schema = load_schema(schema_name)
        validator_cls = jsonschema.validators.validator_for(schema)
        violations = sorted(
            validator_cls(schema).iter_errors(instance),
            key=lambda err: list(map(str, err.absolute_path)),
        )
        return [
            {
                "path": "/".join(str(p) for p in err.absolute_path) or "<root>",
                "message": err.message,
            }
            for err in violations
        ]

    def validate(self, instance: object, schema_name: str) -> None:
        """Validate an instance against a named schema.

        Raises:
            KeyError: If schema_name not in registry.
            ValidationError: If validation fails, with every violation in details.
        """
        errors = self.errors(instance, schema_name)
        if errors:
            raise ValidationError(
                f"Document does not match schema '{schema_name}'",
                details={"schema": schema_name, "errors": errors},
            )
