"""
Serialization Utilities

JSON helpers for the workspace files shared between the analysis and
export stages.

- `serialize_*` / `deserialize_*` work on dictionaries
- `save_*` / `load_*` work on files (UTF-8, ensure_ascii=False so
  Vietnamese text stays readable in the workspace)
- All models have `to_dict()` and `from_dict()`; these functions add the
  schema version and run validation on the way in
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from ..models.mixed import MixedExam
from ..models.questions import ParsedDocument
from ..schemas.validator import PARSED_SCHEMA_VERSION, SchemaError, validate_parsed_document


# ─────────────────────────────────────────────────────────────────────────────
# Parsed Document
# ─────────────────────────────────────────────────────────────────────────────

def serialize_parsed_document(document: ParsedDocument) -> dict[str, Any]:
    """
    Serialize a ParsedDocument to a dictionary.

    The output passes `validate_parsed_document(strict=True)`.
    """
    data = document.to_dict()
    data["schema_version"] = PARSED_SCHEMA_VERSION
    return data


def deserialize_parsed_document(
    data: dict[str, Any],
    *,
    validate: bool = True,
    strict: bool = False,
) -> ParsedDocument:
    """
    Deserialize a ParsedDocument from a dictionary.

    Args:
        data: Dictionary from JSON
        validate: Whether to validate before building models
        strict: Use full jsonschema validation

    Raises:
        SchemaError: If validate=True and data is invalid
        ValueError, TypeError: If the models reject the data
    """
    if validate:
        validate_parsed_document(data, strict=strict)
    return ParsedDocument.from_dict(data)


def save_parsed_document(document: ParsedDocument, path: Path) -> None:
    """Save a ParsedDocument to a JSON file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(serialize_parsed_document(document), f, indent=2, ensure_ascii=False)


def load_parsed_document(path: Path, *, validate: bool = True, strict: bool = False) -> ParsedDocument:
    """
    Load a ParsedDocument from a JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist
        SchemaError: If the file is not valid JSON or fails validation
    """
    if not path.exists():
        raise FileNotFoundError(f"Parsed document not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise SchemaError(f"Invalid JSON: {e}", path=str(path), errors=[str(e)]) from e

    try:
        return deserialize_parsed_document(data, validate=validate, strict=strict)
    except (KeyError, TypeError, ValueError) as e:
        raise SchemaError(f"Error loading {path.name}: {e}", path=str(path), errors=[str(e)]) from e


# ─────────────────────────────────────────────────────────────────────────────
# Mixed Exams (JSONL, one variant per line)
# ─────────────────────────────────────────────────────────────────────────────

def save_mixed_exams(exams: Iterable[MixedExam], path: Path) -> None:
    """Save mixed variants to a JSONL file for later inspection."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for exam in exams:
            f.write(json.dumps(exam.to_dict(), ensure_ascii=False))
            f.write("\n")


def load_mixed_exams(path: Path) -> list[MixedExam]:
    """
    Load mixed variants from a JSONL file.

    Raises:
        FileNotFoundError: If file doesn't exist
        SchemaError: If any line cannot be parsed
    """
    if not path.exists():
        raise FileNotFoundError(f"Mixed exams file not found: {path}")

    exams = []
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                exams.append(MixedExam.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                raise SchemaError(
                    f"Error parsing line {line_no}: {e}",
                    path=str(path),
                    errors=[str(e)],
                ) from e
    return exams
