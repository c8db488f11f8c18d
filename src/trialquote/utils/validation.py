"""Schema validation utilities."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema

SCHEMAS_DIR = Path(__file__).parent.parent / "schemas"


@lru_cache
def load_schema(schema_name: str) -> dict[str, Any]:
    """Load a bundled JSON schema by name."""
    schema_path = SCHEMAS_DIR / f"{schema_name}.schema.json"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")
    return json.loads(schema_path.read_text(encoding="utf-8"))


def validate_extraction_payload(data: Any) -> list[str]:
    """
    Validate a protocol extraction payload against its schema.

    Returns every validation error message (empty if valid). Problems are
    reported, not raised, because the reconciler still salvages whatever
    fields are usable.
    """
    schema = load_schema("protocol_extraction")
    validator = jsonschema.Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    return [
        f"{'/'.join(str(p) for p in error.absolute_path) or '<root>'}: {error.message}"
        for error in errors
    ]
