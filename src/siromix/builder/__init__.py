"""
Builder Module

Mixes analyzed questions into exam variants and writes them out as
.docx documents plus an .xlsx answer key.

Example:
    >>> from siromix.builder import ExportConfig, MixConfig, export_variants
    >>> config = ExportConfig(
    ...     workspace=Path("workspace"),
    ...     output_dir=Path("output"),
    ...     mix=MixConfig(variant_count=4),
    ... )
    >>> result = export_variants(config)
"""

from .config import DEFAULT_VARIANT_COUNT, ExportConfig, MixConfig
from .controller import ExportError, ExportResult, export_variants
from .mixing import MixError, generate_exam_codes, mix_exams, mix_variant, shuffle_options
from .output import ExamHeader, PageProfile, WriterError, write_answer_key, write_document, write_exam

__all__ = [
    "DEFAULT_VARIANT_COUNT",
    "ExamHeader",
    "ExportConfig",
    "ExportError",
    "ExportResult",
    "MixConfig",
    "MixError",
    "PageProfile",
    "WriterError",
    "export_variants",
    "generate_exam_codes",
    "mix_exams",
    "mix_variant",
    "shuffle_options",
    "write_answer_key",
    "write_document",
    "write_exam",
]
