"""
Utils Package

Serialization and utility functions.
"""

from .serialization import (
    serialize_parsed_document,
    deserialize_parsed_document,
    save_parsed_document,
    load_parsed_document,
    save_mixed_exams,
    load_mixed_exams,
)

__all__ = [
    "serialize_parsed_document",
    "deserialize_parsed_document",
    "save_parsed_document",
    "load_parsed_document",
    "save_mixed_exams",
    "load_mixed_exams",
]
