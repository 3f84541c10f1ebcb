"""
Core Models Package

Immutable data models shared by the extractor and the builder.

All models in this package are frozen dataclasses with `to_dict()` /
`from_dict()` for the JSON workspace files. Segments keep the raw markup
they were read from next to their interpreted fields.
"""

from .segments import (
    DEFAULT_IMAGE_EMU,
    EMU_PER_INCH,
    ImageSegment,
    MathSegment,
    Segment,
    TextSegment,
    segment_from_dict,
    segments_text,
)
from .questions import OPTION_LABELS, OptionItem, ParsedDocument, Question
from .mixed import MixedExam, MixedOption, MixedQuestion, is_exam_code

__all__ = [
    "DEFAULT_IMAGE_EMU",
    "EMU_PER_INCH",
    "ImageSegment",
    "MathSegment",
    "Segment",
    "TextSegment",
    "segment_from_dict",
    "segments_text",
    "OPTION_LABELS",
    "OptionItem",
    "ParsedDocument",
    "Question",
    "MixedExam",
    "MixedOption",
    "MixedQuestion",
    "is_exam_code",
]
