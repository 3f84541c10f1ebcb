"""
Module: builder.config

Purpose:
    Configuration dataclasses for mixing and exporting. Immutable
    configuration with validation on construction.

Key Classes:
    - MixConfig: Variant count, explicit codes, seed multiplier
    - ExportConfig: Workspace, output location and file names

Dependencies:
    - dataclasses (std)
    - pathlib (std)

Used By:
    - builder.controller: Export pipeline
    - scripts/mix_docx.py
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from siromix.core.models.mixed import is_exam_code
from .mixing.codes import MAX_DISTINCT_CODES
from .mixing.mixer import SEED_MULTIPLIER
from .output.header import ExamHeader
from .output.layout import DECREE_30_PROFILE, PageProfile

DEFAULT_VARIANT_COUNT = 4


@dataclass(frozen=True)
class MixConfig:
    """
    Mixing settings (immutable).

    Attributes:
        variant_count: Number of variants to produce (default 4)
        exam_codes: Explicit 3-digit codes, one per variant; generated when None
        seed_multiplier: Variant i is shuffled with seed i * seed_multiplier
        max_workers: Variants built concurrently when > 1

    Example:
        >>> MixConfig(variant_count=2, exam_codes=("101", "202"))
    """
    variant_count: int = DEFAULT_VARIANT_COUNT
    exam_codes: Optional[tuple[str, ...]] = None
    seed_multiplier: int = SEED_MULTIPLIER
    max_workers: int = 1

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not 1 <= self.variant_count <= MAX_DISTINCT_CODES:
            raise ValueError(
                f"variant_count must be between 1 and {MAX_DISTINCT_CODES}, got {self.variant_count}"
            )
        if self.exam_codes is not None:
            object.__setattr__(self, "exam_codes", tuple(self.exam_codes))
            if len(self.exam_codes) != self.variant_count:
                raise ValueError(
                    f"{len(self.exam_codes)} exam codes given for {self.variant_count} variants"
                )
            bad = [code for code in self.exam_codes if not is_exam_code(code)]
            if bad:
                raise ValueError(f"Exam codes must be 3 digits: {bad}")
        if self.seed_multiplier < 1:
            raise ValueError(f"seed_multiplier must be >= 1, got {self.seed_multiplier}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")


@dataclass(frozen=True)
class ExportConfig:
    """
    Export settings (immutable).

    Attributes:
        workspace: Analysis workspace holding parsed.json and assets/
        output_dir: Where the variant documents and answer key go
        mix: Mixing settings
        header: Exam header table printed on every variant (optional)
        profile: Page/font profile
        parsed_filename: Parsed document file inside the workspace
        assets_dirname: Media directory inside the workspace
        document_stem: Variant files are "{stem}_{code}.docx"
        answer_key_name: Answer-key workbook file name
        mixed_filename: Variants saved as JSON lines (None to skip)
    """
    workspace: Path
    output_dir: Path
    mix: MixConfig = MixConfig()
    header: Optional[ExamHeader] = None
    profile: PageProfile = DECREE_30_PROFILE
    parsed_filename: str = "parsed.json"
    assets_dirname: str = "assets"
    document_stem: str = "De"
    answer_key_name: str = "DapAn.xlsx"
    mixed_filename: Optional[str] = "mixed.jsonl"

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        object.__setattr__(self, "workspace", Path(self.workspace))
        object.__setattr__(self, "output_dir", Path(self.output_dir))
        if not self.document_stem:
            raise ValueError("document_stem must be non-empty")
        if not self.answer_key_name.lower().endswith(".xlsx"):
            raise ValueError(f"answer_key_name must end with .xlsx: {self.answer_key_name}")

    @property
    def parsed_path(self) -> Path:
        return self.workspace / self.parsed_filename

    @property
    def assets_dir(self) -> Path:
        return self.workspace / self.assets_dirname

    def document_path(self, exam_code: str) -> Path:
        return self.output_dir / f"{self.document_stem}_{exam_code}.docx"

    @property
    def answer_key_path(self) -> Path:
        return self.output_dir / self.answer_key_name
