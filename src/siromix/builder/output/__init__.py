"""Document and answer-key writers."""

from .answer_key import HEADERS, answer_rows, sheet_title, write_answer_key
from .docx_writer import WriterError, write_document, write_exam
from .header import ExamHeader
from .layout import DECREE_30_PROFILE, PageProfile, estimate_page_count, format_page_count

__all__ = [
    "DECREE_30_PROFILE",
    "ExamHeader",
    "HEADERS",
    "PageProfile",
    "WriterError",
    "answer_rows",
    "estimate_page_count",
    "format_page_count",
    "sheet_title",
    "write_answer_key",
    "write_document",
    "write_exam",
]
