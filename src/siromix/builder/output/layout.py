"""
Module: builder.output.layout

Purpose:
    Page profile for generated exam documents. The default profile is
    the A4 layout of Vietnamese Decree 30/2020 on administrative
    documents: fixed paper size, margins and Times New Roman at 13pt.

Key Classes:
    - PageProfile: Immutable page/font settings (twips, half-points)

Key Functions:
    - estimate_page_count(): Rough page count for the exam header

Dependencies:
    - dataclasses (std)

Used By:
    - builder.output.docx_writer
    - builder.output.header
"""

from __future__ import annotations

import math
from dataclasses import dataclass

# 1 pt = 20 twips; 1 mm ~ 56.7 twips
TWIPS_PER_INCH = 1440


@dataclass(frozen=True)
class PageProfile:
    """
    Page and font settings (immutable).

    Attributes:
        page_width: A4 210mm in twips
        page_height: A4 297mm in twips
        margin_top: 20mm
        margin_bottom: 20mm
        margin_left: 30mm (binding side)
        margin_right: 15mm
        margin_header: 12.5mm
        margin_footer: 12.5mm
        font_name: Body font family
        font_size_body: Body size in half-points (26 = 13pt)
        font_size_page_number: Footer page number size in half-points
        font_size_header: Exam header table size in half-points
        header_line_spacing: Header paragraph line spacing (240 = single)
        header_spacing_after: Space after header paragraphs in twips
        option_indent: Left indent of option paragraphs in twips
        questions_per_page: Page estimate divisor for the exam header
    """

    page_width: int = 11906
    page_height: int = 16838
    margin_top: int = 1134
    margin_bottom: int = 1134
    margin_left: int = 1701
    margin_right: int = 851
    margin_header: int = 708
    margin_footer: int = 708

    font_name: str = "Times New Roman"
    font_size_body: int = 26
    font_size_page_number: int = 26
    font_size_header: int = 26
    header_line_spacing: int = 276
    header_spacing_after: int = 0

    option_indent: int = 720
    questions_per_page: int = 28

    def __post_init__(self) -> None:
        """Validate profile on construction."""
        if self.text_width <= 0:
            raise ValueError(f"Margins leave no text width: {self.text_width}")
        if self.font_size_body <= 0:
            raise ValueError(f"font_size_body must be positive: {self.font_size_body}")
        if self.questions_per_page <= 0:
            raise ValueError(f"questions_per_page must be positive: {self.questions_per_page}")

    @property
    def text_width(self) -> int:
        """Usable width between margins in twips."""
        return self.page_width - self.margin_left - self.margin_right


DECREE_30_PROFILE = PageProfile()


def estimate_page_count(question_count: int, profile: PageProfile = DECREE_30_PROFILE) -> int:
    """
    Estimate printed pages: ceil(questions / questions_per_page), at least 1.

    Example:
        >>> estimate_page_count(29)
        2
    """
    return max(1, math.ceil(question_count / profile.questions_per_page))


def format_page_count(pages: int) -> str:
    """Zero-padded page count as printed in the header ("02")."""
    return f"{pages:02d}"
