"""
Module: builder.output.answer_key

Purpose:
    Answer-key workbook: one sheet per exam variant listing, for every
    displayed question, its correct answer and the question/answer it
    came from in the source document.

Key Functions:
    - write_answer_key(): Variants -> .xlsx
    - answer_rows(): Row values of one variant

Dependencies:
    - openpyxl: Workbook, cell styles, column widths

Used By:
    - builder.controller
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from siromix.core.models.mixed import MixedExam
from .docx_writer import WriterError

logger = logging.getLogger(__name__)

HEADERS = ("Câu hỏi", "Đáp án", "Câu gốc", "Đáp án gốc")
HEADER_FILL = "4F46E5"
COLUMN_WIDTH = 12


def sheet_title(exam_code: str) -> str:
    return f"Đề {exam_code}"


def answer_rows(exam: MixedExam, original_answers: Sequence[str]) -> list[tuple]:
    """
    (display number, answer, original number, original answer) per question.

    The original answer is looked up as original_answers[original_number - 1]
    and left blank when that index does not exist.
    """
    rows = []
    for question in exam.questions:
        index = question.original_number - 1
        original = original_answers[index] if 0 <= index < len(original_answers) else ""
        rows.append(
            (question.display_number, question.correct_answer, question.original_number, original)
        )
    return rows


def write_answer_key(
    variants: Sequence[MixedExam],
    original_answers: Sequence[str],
    output_path: Path,
) -> Path:
    """
    Write the answer-key workbook.

    Args:
        variants: Mixed exams, one sheet each in the given order
        original_answers: Correct labels of the source document indexed by
            question number - 1 (ParsedDocument.original_answers)
        output_path: Target .xlsx path

    Returns:
        output_path

    Raises:
        WriterError: If there is nothing to write or the file cannot be saved
    """
    output_path = Path(output_path)
    if not variants:
        raise WriterError(output_path, "no variants to write")

    workbook = Workbook()
    workbook.remove(workbook.active)
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill("solid", fgColor=HEADER_FILL)
    center = Alignment(horizontal="center", vertical="center")

    for exam in variants:
        sheet = workbook.create_sheet(title=sheet_title(exam.exam_code))
        sheet.append(list(HEADERS))
        for cell in sheet[1]:
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = center
        for row in answer_rows(exam, original_answers):
            sheet.append(list(row))
        for column in range(1, len(HEADERS) + 1):
            sheet.column_dimensions[get_column_letter(column)].width = COLUMN_WIDTH

    temp_path: Optional[Path] = None
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(suffix=".xlsx", dir=output_path.parent)
        os.close(fd)
        temp_path = Path(name)
        workbook.save(temp_path)
        temp_path.replace(output_path)
        temp_path = None
    except OSError as e:
        raise WriterError(output_path, f"cannot save workbook: {e}") from e
    finally:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)

    logger.info(f"Wrote answer key {output_path.name} ({len(variants)} sheets)")
    return output_path
