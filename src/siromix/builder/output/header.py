"""
Module: builder.output.header

Purpose:
    Standard exam header: a bordered two-column table placed before the
    first question. School and variant information on the left, exam
    information on the right.

Key Classes:
    - ExamHeader: Header metadata (immutable)

Dependencies:
    - lxml.etree (via builder.output.ooxml)

Used By:
    - builder.output.docx_writer
    - builder.config (ExportConfig.header)
"""

from __future__ import annotations

from dataclasses import dataclass

from lxml import etree

from .layout import DECREE_30_PROFILE, PageProfile, estimate_page_count, format_page_count
from .ooxml import add_paragraph, sub, text_run

_BORDER_SIDES = ("top", "left", "bottom", "right", "insideH", "insideV")


@dataclass(frozen=True)
class ExamHeader:
    """
    Exam header metadata (immutable).

    Attributes:
        school_name: e.g. "TRƯỜNG THCS NGUYỄN DU"
        exam_name: e.g. "KIỂM TRA GIỮA HỌC KỲ II"
        academic_year: e.g. "2024 - 2025"
        subject: e.g. "TOÁN"
        grade: e.g. "LỚP 7"
        duration_minutes: Working time; 0 leaves the value blank
        is_official: Print "ĐỀ CHÍNH THỨC"
        include_distribution_note: Print "(Không kể thời gian phát đề)"
    """

    school_name: str = ""
    exam_name: str = ""
    academic_year: str = ""
    subject: str = ""
    grade: str = ""
    duration_minutes: int = 0
    is_official: bool = True
    include_distribution_note: bool = True

    def __post_init__(self) -> None:
        if self.duration_minutes < 0:
            raise ValueError(f"duration_minutes must be non-negative: {self.duration_minutes}")

    @property
    def duration_text(self) -> str:
        return f"{self.duration_minutes} phút" if self.duration_minutes else ""

    def append_to(
        self,
        body: etree._Element,
        exam_code: str,
        question_count: int,
        profile: PageProfile = DECREE_30_PROFILE,
    ) -> etree._Element:
        """
        Append the header table (and a blank paragraph after it) to body.

        Returns:
            The w:tbl element
        """
        column = profile.text_width // 2
        table = sub(body, "w:tbl")
        props = sub(table, "w:tblPr")
        sub(props, "w:tblW", w_w=column * 2, w_type="dxa")
        borders = sub(props, "w:tblBorders")
        for side in _BORDER_SIDES:
            sub(borders, f"w:{side}", w_val="single", w_sz=4, w_space=0, w_color="000000")
        grid = sub(table, "w:tblGrid")
        sub(grid, "w:gridCol", w_w=column)
        sub(grid, "w:gridCol", w_w=column)

        row = sub(table, "w:tr")
        left = self._cell(row, column)
        right = self._cell(row, column)

        size = profile.font_size_header
        self._line(left, profile, self.school_name, bold=True, underline=True)
        self._line(left, profile, f"Mã đề thi: {exam_code}", bold=True)
        if self.is_official:
            self._line(left, profile, "ĐỀ CHÍNH THỨC", bold=True)
        pages = format_page_count(estimate_page_count(question_count, profile))
        paragraph = self._paragraph(left, profile)
        text_run(paragraph, "(Gồm ", profile, size=size)
        text_run(paragraph, pages, profile, size=size, bold=True)
        text_run(paragraph, " trang)", profile, size=size)

        self._line(right, profile, self.exam_name, bold=True)
        self._line(right, profile, f"Năm học: {self.academic_year}", bold=True)
        subject = ", ".join(part for part in (self.subject, self.grade) if part)
        self._line(right, profile, f"Tên môn: {subject}", bold=True)
        self._line(right, profile, f"Thời gian làm bài: {self.duration_text}", italic=True)
        if self.include_distribution_note:
            self._line(right, profile, "(Không kể thời gian phát đề)", italic=True)

        add_paragraph(body)
        return table

    @staticmethod
    def _cell(row: etree._Element, width: int) -> etree._Element:
        cell = sub(row, "w:tc")
        props = sub(cell, "w:tcPr")
        sub(props, "w:tcW", w_w=width, w_type="dxa")
        return cell

    @staticmethod
    def _paragraph(cell: etree._Element, profile: PageProfile) -> etree._Element:
        return add_paragraph(
            cell,
            align="center",
            line=profile.header_line_spacing,
            after=profile.header_spacing_after,
        )

    def _line(
        self,
        cell: etree._Element,
        profile: PageProfile,
        text: str,
        *,
        bold: bool = False,
        italic: bool = False,
        underline: bool = False,
    ) -> None:
        paragraph = self._paragraph(cell, profile)
        text_run(
            paragraph,
            text,
            profile,
            size=profile.font_size_header,
            bold=bold,
            italic=italic,
            underline=underline,
        )
