"""
SiroMix Core Package

Shared data models and utilities. These models are the single source of
truth passed between the extractor (parse + validate) and the builder
(mix + write).

1. **Immutable Data Models**
   - Frozen dataclasses; validation returns a new document with correct
     labels filled in instead of mutating the parsed one.

2. **Raw Markup Kept Alongside Interpreted Fields**
   - Every segment stores the markup slice it came from so math can be
     written back verbatim.

3. **One Workspace Format**
   - `parsed.json` mirrors ParsedDocument and is the hand-off between the
     analysis and export stages.
"""

from .models import (
    ImageSegment,
    MathSegment,
    MixedExam,
    MixedOption,
    MixedQuestion,
    OptionItem,
    ParsedDocument,
    Question,
    TextSegment,
)

__all__ = [
    "ImageSegment",
    "MathSegment",
    "MixedExam",
    "MixedOption",
    "MixedQuestion",
    "OptionItem",
    "ParsedDocument",
    "Question",
    "TextSegment",
]
