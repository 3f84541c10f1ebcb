"""
Schemas Package

JSON schema definitions and validation utilities.
"""

from .validator import (
    validate_parsed_document,
    SchemaError,
    PARSED_SCHEMA_VERSION,
)

__all__ = [
    "validate_parsed_document",
    "SchemaError",
    "PARSED_SCHEMA_VERSION",
]
