"""
Module: builder.controller

Purpose:
    Orchestrate the export pipeline.
    Load -> Check answers -> Mix -> Write documents -> Write answer key

Key Functions:
    - export_variants(): Main entry point for exporting variants

Key Classes:
    - ExportResult: Complete export result
    - ExportError: Exception for export failures

Dependencies:
    - core.utils.serialization: Parsed document loading
    - builder.mixing: Variant mixing
    - builder.output: .docx and .xlsx writers

Used By:
    - scripts/mix_docx.py
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from siromix.core.models.mixed import MixedExam
from siromix.core.models.questions import ParsedDocument
from siromix.core.schemas.validator import SchemaError
from siromix.core.utils.serialization import load_parsed_document, save_mixed_exams

from .config import ExportConfig
from .mixing import MixError, mix_exams
from .output.answer_key import write_answer_key
from .output.docx_writer import WriterError, write_exam

logger = logging.getLogger(__name__)

METADATA_FILENAME = "export_metadata.json"


class ExportError(Exception):
    """Error during export pipeline."""
    pass


@dataclass(frozen=True)
class ExportResult:
    """
    Complete export result (immutable).

    Attributes:
        documents: One .docx per variant, in variant order
        answer_key: Answer-key workbook
        exams: The mixed variants
        metadata: Export metadata dictionary
        warnings: Any warnings during export

    Example:
        >>> result = export_variants(config)
        >>> [p.name for p in result.documents]
        ['De_123.docx', 'De_456.docx', 'De_789.docx', 'De_012.docx']
    """
    documents: tuple[Path, ...]
    answer_key: Path
    exams: tuple[MixedExam, ...]
    metadata: dict
    warnings: tuple[str, ...] = ()
    mixed_path: Optional[Path] = None


def export_variants(config: ExportConfig) -> ExportResult:
    """
    Export mixed variants of an analyzed document.

    Pipeline:
    1. Load parsed.json from the workspace
    2. Refuse if any question has no detected correct answer
    3. Mix variants (seeded, one code per variant)
    4. Write one .docx per variant
    5. Write the answer-key workbook
    6. Save variants and metadata

    Args:
        config: Export configuration

    Returns:
        ExportResult with paths and metadata

    Raises:
        ExportError: If any step fails
    """
    warnings: List[str] = []
    start_time = time.perf_counter()

    # 1. Load
    try:
        document = load_parsed_document(config.parsed_path)
    except FileNotFoundError as e:
        raise ExportError(f"No analyzed document in workspace: {config.parsed_path}") from e
    except SchemaError as e:
        raise ExportError(f"Failed to load parsed document: {e}") from e

    # 2. Answers
    missing = _unanswered_numbers(document)
    if missing:
        raise ExportError(
            f"Questions without a detected correct answer: {', '.join(map(str, missing))}"
        )
    logger.info(f"Loaded {len(document)} validated questions")

    # 3. Mix
    mix = config.mix
    try:
        exams = mix_exams(
            document.questions,
            mix.variant_count,
            mix.exam_codes,
            seed_multiplier=mix.seed_multiplier,
            max_workers=mix.max_workers,
        )
    except MixError as e:
        raise ExportError(f"Failed to mix variants: {e}") from e

    # 4. Documents
    if not config.assets_dir.is_dir():
        warnings.append(f"Assets directory missing: {config.assets_dir}")
    config.output_dir.mkdir(parents=True, exist_ok=True)
    documents: List[Path] = []
    try:
        for exam in exams:
            documents.append(
                write_exam(
                    exam,
                    config.assets_dir,
                    config.document_path(exam.exam_code),
                    header=config.header,
                    profile=config.profile,
                )
            )
        # 5. Answer key
        answer_key = write_answer_key(exams, document.original_answers, config.answer_key_path)
    except WriterError as e:
        raise ExportError(f"Failed to write output: {e}") from e

    # 6. Variants and metadata
    mixed_path = None
    try:
        if config.mixed_filename:
            mixed_path = config.output_dir / config.mixed_filename
            save_mixed_exams(exams, mixed_path)
        metadata = _build_metadata(config, document, exams, documents, answer_key)
        _write_metadata(config.output_dir, metadata)
    except OSError as e:
        raise ExportError(f"Failed to write metadata: {e}") from e

    elapsed = time.perf_counter() - start_time
    logger.info(f"Exported {len(exams)} variants to {config.output_dir} in {elapsed:.2f}s")

    return ExportResult(
        documents=tuple(documents),
        answer_key=answer_key,
        exams=tuple(exams),
        metadata=metadata,
        warnings=tuple(warnings),
        mixed_path=mixed_path,
    )


def _unanswered_numbers(document: ParsedDocument) -> List[int]:
    return [q.number for q in document.questions if not q.correct_label]


def _build_metadata(
    config: ExportConfig,
    document: ParsedDocument,
    exams: List[MixedExam],
    documents: List[Path],
    answer_key: Path,
) -> dict:
    """Summary of one export, ready for JSON serialization."""
    return {
        "generated_at": datetime.now().isoformat(timespec="seconds"),
        "source": str(config.parsed_path),
        "question_count": len(document),
        "variant_count": len(exams),
        "seed_multiplier": config.mix.seed_multiplier,
        "exam_codes": [exam.exam_code for exam in exams],
        "documents": [path.name for path in documents],
        "answer_key": answer_key.name,
    }


def _write_metadata(output_dir: Path, metadata: dict) -> None:
    metadata_path = output_dir / METADATA_FILENAME
    with open(metadata_path, "w", encoding="utf-8") as f:
        json.dump(metadata, f, indent=2, ensure_ascii=False)
    logger.debug(f"Wrote metadata to {metadata_path}")
