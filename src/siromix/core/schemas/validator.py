"""
Schema Validation Utilities

Validates the workspace JSON produced by the analysis stage
(`parsed.json`) before the export stage trusts it.

Two levels:
- Basic checks (always): required keys, option labels, answer labels,
  segment field types.
  Cheap and enough to catch hand-edited or truncated files.
- Strict mode: full JSON Schema validation with jsonschema against
  `parsed_document.schema.json`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

PARSED_SCHEMA_VERSION = 1

_SCHEMAS: dict[str, dict] = {}

_VALID_LABELS = ("A", "B", "C", "D", "E", "F")
_SEGMENT_TYPES = ("text", "image", "math")
# (required, optional) string fields per segment type
_SEGMENT_STRINGS = {
    "text": (("text",), ("raw_xml",)),
    "image": ((), ("asset_path", "raw_xml")),
    "math": (("omml",), ("raw_xml",)),
}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class SchemaError(Exception):
    """Raised when data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def validate_parsed_document(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate parsed document data.

    Args:
        data: Dictionary loaded from parsed.json
        strict: If True, also run full jsonschema validation

    Raises:
        SchemaError: If data is invalid
    """
    if not isinstance(data, dict) or "questions" not in data:
        raise SchemaError("Missing required field: questions", errors=["Missing field: questions"])

    version = data.get("schema_version", PARSED_SCHEMA_VERSION)
    if version != PARSED_SCHEMA_VERSION:
        raise SchemaError(
            f"Unsupported parsed schema version: {version} (expected {PARSED_SCHEMA_VERSION})",
            path="schema_version",
        )

    questions = data["questions"]
    if not isinstance(questions, list):
        raise SchemaError("questions must be a list", path="questions")

    for i, question in enumerate(questions):
        _validate_question(question, f"questions[{i}]")

    if strict:
        import jsonschema

        schema = _load_schema("parsed_document")
        try:
            jsonschema.validate(data, schema)
        except jsonschema.ValidationError as e:
            raise SchemaError(
                f"Schema validation failed: {e.message}",
                path=".".join(str(p) for p in e.absolute_path),
                errors=[e.message],
            ) from e


def _validate_question(data: Any, path: str) -> None:
    if not isinstance(data, dict):
        raise SchemaError("question must be an object", path=path)

    number = data.get("number")
    if not isinstance(number, int) or number < 0:
        raise SchemaError(
            f"Invalid number: {number!r} (must be non-negative integer)",
            path=f"{path}.number",
        )

    options = data.get("options")
    if not isinstance(options, list) or not options:
        raise SchemaError("options must be a non-empty list", path=f"{path}.options")

    labels = []
    for j, option in enumerate(options):
        label = option.get("label") if isinstance(option, dict) else None
        if label not in _VALID_LABELS:
            raise SchemaError(
                f"Invalid option label: {label!r}",
                path=f"{path}.options[{j}].label",
            )
        labels.append(label)
        _validate_segments(option.get("content", []), f"{path}.options[{j}].content")

    correct = data.get("correct_label", "")
    if correct and correct not in labels:
        raise SchemaError(
            f"correct_label {correct!r} is not one of {labels}",
            path=f"{path}.correct_label",
        )

    _validate_segments(data.get("stem", []), f"{path}.stem")


def _validate_segments(data: Any, path: str) -> None:
    if not isinstance(data, list):
        raise SchemaError("segments must be a list", path=path)
    for k, segment in enumerate(data):
        kind = segment.get("type") if isinstance(segment, dict) else None
        if kind not in _SEGMENT_TYPES:
            raise SchemaError(f"Invalid segment type: {kind!r}", path=f"{path}[{k}].type")

        required, optional = _SEGMENT_STRINGS[kind]
        for name in required + optional:
            value = segment.get(name)
            if value is None and name in optional:
                continue
            if not isinstance(value, str):
                raise SchemaError(f"{name} must be a string", path=f"{path}[{k}].{name}")

        if kind == "image":
            for name in ("width_emu", "height_emu"):
                value = segment.get(name, 0)
                # bool is an int subclass
                if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                    raise SchemaError(
                        f"{name} must be a non-negative integer: {value!r}",
                        path=f"{path}[{k}].{name}",
                    )
