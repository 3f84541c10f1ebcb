"""
Module: extractor.pipeline

Purpose:
    Analysis pipeline orchestrator. Reads a source exam .docx, extracts
    its media, parses questions, validates the marked answers and saves
    the parsed document to the workspace for the export stage.

Key Functions:
    - analyze_docx(): Main entry point for analysis

Key Classes:
    - AnalysisResult: Container for analysis output

Dependencies:
    - extractor.reader, extractor.assets, extractor.parser,
      extractor.validation
    - siromix.core.utils.serialization: Workspace JSON

Used By:
    - builder.controller (via the persisted parsed.json)
    - scripts/mix_docx.py
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from siromix.core.models.questions import ParsedDocument
from siromix.core.schemas.validator import validate_parsed_document
from siromix.core.utils.serialization import save_parsed_document, serialize_parsed_document
from .assets import ExtractedAsset, convert_legacy_images, extract_media
from .config import ExtractionConfig
from .parser import parse
from .reader import read_document_xml
from .validation import AnswerValidationError, validate

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """
    Result of analyzing one source document.

    Attributes:
        document: Parsed document, correct labels filled where detected
        errors: One entry per question that failed answer validation
        assets: Extracted assets in document order
        parsed_path: Saved parsed.json
        assets_dir: Directory holding the extracted media
    """
    document: ParsedDocument
    errors: List[AnswerValidationError]
    assets: List[ExtractedAsset]
    parsed_path: Path
    assets_dir: Path
    warnings: List[str] = field(default_factory=list)

    @property
    def question_count(self) -> int:
        return len(self.document)

    @property
    def is_ready(self) -> bool:
        """True when every question has a detected answer."""
        return not self.errors and self.question_count > 0


def analyze_docx(
    source: Path,
    workspace: Path,
    config: Optional[ExtractionConfig] = None,
) -> AnalysisResult:
    """
    Analyze a source exam document into the workspace.

    Pipeline:
    1. Read word/document.xml
    2. Extract media in document order (optionally rasterize .wmf/.emf;
       all conversions finish before parsing starts)
    3. Parse questions, correlating images to assets by order
    4. Validate answer marks (all questions, no fail-fast)
    5. Save parsed.json

    Validation errors do not stop the pipeline; they are returned so the
    caller can report every failing question at once.

    Args:
        source: Source .docx
        workspace: Working directory (created if needed)
        config: Optional extraction configuration

    Returns:
        AnalysisResult

    Raises:
        DocxReadError: If the document cannot be read
        AssetExtractionError: If media extraction fails
    """
    config = config or ExtractionConfig()
    source = Path(source)
    workspace = Path(workspace)
    workspace.mkdir(parents=True, exist_ok=True)
    warnings: List[str] = []

    markup = read_document_xml(source)

    assets_dir = workspace / config.assets_dirname
    assets = extract_media(source, assets_dir, markup=markup)
    if config.convert_legacy_images:
        assets = convert_legacy_images(assets, config)
        unconverted = [a.file_name for a in assets if a.is_legacy and not a.converted_path]
        if unconverted:
            warnings.append(f"Not converted: {', '.join(sorted(set(unconverted)))}")

    document = parse(markup, assets)
    if not document.questions:
        warnings.append("No questions detected in document")

    document, errors = validate(markup, document)
    for error in errors:
        logger.warning(str(error))

    if config.strict_schema:
        validate_parsed_document(serialize_parsed_document(document), strict=True)

    parsed_path = workspace / config.parsed_filename
    save_parsed_document(document, parsed_path)
    logger.info(
        f"Analyzed {source.name}: {len(document)} questions, "
        f"{len(errors)} validation errors, saved {parsed_path.name}"
    )

    return AnalysisResult(
        document=document,
        errors=errors,
        assets=assets,
        parsed_path=parsed_path,
        assets_dir=assets_dir,
        warnings=warnings,
    )
