"""
Module: extractor

Purpose:
    Analysis stage: reads a source exam .docx into a structured,
    answer-validated ParsedDocument saved in the workspace.

Key Functions:
    - analyze_docx(): Main entry point for analysis
    - parse(): markup + assets -> ParsedDocument
    - validate(): markup + document -> (document, errors)

Key Classes:
    - ExtractionConfig: Configuration for analysis settings
    - AnalysisResult: Container for analysis output

Dependencies:
    - lxml: Markup streaming
    - siromix.core.models: Data models
"""

from .assets import AssetExtractionError, ExtractedAsset, convert_legacy_images, extract_media
from .config import ExtractionConfig
from .parser import parse
from .pipeline import AnalysisResult, analyze_docx
from .reader import DocxReadError, read_document_xml
from .validation import (
    AnswerValidationError,
    LabeledOptionRuns,
    LabelRunStyle,
    ValidationErrorCode,
    detect_correct_label_for_question,
    validate,
)

__all__ = [
    "analyze_docx",
    "AnalysisResult",
    "AnswerValidationError",
    "AssetExtractionError",
    "convert_legacy_images",
    "detect_correct_label_for_question",
    "DocxReadError",
    "ExtractedAsset",
    "extract_media",
    "ExtractionConfig",
    "LabeledOptionRuns",
    "LabelRunStyle",
    "parse",
    "read_document_xml",
    "validate",
    "ValidationErrorCode",
]
