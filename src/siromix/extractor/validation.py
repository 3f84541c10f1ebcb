"""
Module: extractor.validation

Purpose:
    Answer validation. The correct option of each question is marked in
    the source only by the style of its label (underlined, or red text).
    This module collects the style facts of the runs that make up each
    option label and derives exactly one correct label per question.

    Only label runs count ("B." and a leading "#"), never runs of the
    option body, so an underlined word inside an answer does not mark it.

Key Functions:
    - is_label_marked_correct(): Style rule for one label
    - detect_correct_label_for_question(): One question's verdict
    - collect_label_runs(): Per-question label style facts from markup
    - validate(): Fill correct labels, report every failing question

Key Classes:
    - LabelRunStyle: Underline/color of one label run
    - LabeledOptionRuns: Label plus its run styles
    - ValidationErrorCode: E020 / E021
    - AnswerValidationError: Error value for one question

Dependencies:
    - extractor.classification

Used By:
    - extractor.pipeline
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence, Union

from siromix.core.models.questions import ParsedDocument, Question
from .classification import ParagraphKind, classify_paragraphs

logger = logging.getLogger(__name__)

CORRECT_COLOR = "FF0000"


class ValidationErrorCode(Enum):
    E020_CORRECT_MARK_MISSING = "E020_CORRECT_MARK_MISSING"
    E021_CORRECT_MARK_MULTIPLE = "E021_CORRECT_MARK_MULTIPLE"


@dataclass(frozen=True)
class LabelRunStyle:
    """Style facts of one run inside an option label."""
    underline: bool = False
    color: Optional[str] = None

    @property
    def is_marked(self) -> bool:
        if self.underline:
            return True
        return self.color is not None and self.color.upper() == CORRECT_COLOR


@dataclass(frozen=True)
class LabeledOptionRuns:
    """An option label with the styles of the runs that spell it."""
    label: str
    runs: tuple[LabelRunStyle, ...] = ()


@dataclass(frozen=True)
class AnswerValidationError:
    """
    Validation failure for one question.

    This is a value collected per question, not an exception; callers
    receive the complete list and decide what to do with it.
    """
    code: ValidationErrorCode
    question_number: int

    @property
    def message(self) -> str:
        if self.code is ValidationErrorCode.E020_CORRECT_MARK_MISSING:
            return f"Question {self.question_number}: no option label is marked as correct"
        return f"Question {self.question_number}: more than one option label is marked as correct"

    def to_dict(self) -> dict:
        return {"code": self.code.value, "question_number": self.question_number}

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


def is_label_marked_correct(runs: Iterable[LabelRunStyle]) -> bool:
    """True if any run of the label is underlined or colored FF0000."""
    return any(run.is_marked for run in runs)


def detect_correct_label_for_question(
    question_number: int,
    options: Sequence[LabeledOptionRuns],
) -> Union[str, AnswerValidationError]:
    """
    Decide the correct label of one question.

    Returns:
        The single marked label, or an AnswerValidationError with
        E020_CORRECT_MARK_MISSING (none marked) or
        E021_CORRECT_MARK_MULTIPLE (two or more labels marked)
    """
    marked: list[str] = []
    for option in options:
        if is_label_marked_correct(option.runs) and option.label not in marked:
            marked.append(option.label)

    if not marked:
        return AnswerValidationError(ValidationErrorCode.E020_CORRECT_MARK_MISSING, question_number)
    if len(marked) > 1:
        return AnswerValidationError(ValidationErrorCode.E021_CORRECT_MARK_MULTIPLE, question_number)
    return marked[0]


def collect_label_runs(markup: str) -> list[tuple[int, list[LabeledOptionRuns]]]:
    """
    Walk the markup with the parser's rules and gather label run styles.

    Returns one (question number, options) entry per question the parser
    keeps, in the same order, so entries line up with
    ParsedDocument.questions.
    """
    groups: list[tuple[int, list[LabeledOptionRuns]]] = []
    current: Optional[tuple[int, list[LabeledOptionRuns]]] = None

    for paragraph in classify_paragraphs(markup):
        if paragraph.kind is ParagraphKind.QUESTION:
            if current is not None and current[1]:
                groups.append(current)
            current = (paragraph.number, [])
        elif paragraph.kind is ParagraphKind.OPTIONS and current is not None:
            seen = {option.label for option in current[1]}
            for split in paragraph.options:
                if split.label in seen:
                    continue
                seen.add(split.label)
                styles = tuple(
                    LabelRunStyle(underline=run.style.underline, color=run.style.color)
                    for run in paragraph.label_runs(split)
                )
                current[1].append(LabeledOptionRuns(label=split.label, runs=styles))

    if current is not None and current[1]:
        groups.append(current)
    return groups


def validate(
    markup: str,
    document: ParsedDocument,
) -> tuple[ParsedDocument, list[AnswerValidationError]]:
    """
    Detect the correct label of every question.

    Does not stop at the first failure: every question gets a verdict.

    Args:
        markup: The same markup the document was parsed from
        document: Parser output

    Returns:
        (document with correct labels filled where detected, errors)

    Raises:
        ValueError: If the markup does not yield the document's questions
    """
    groups = collect_label_runs(markup)
    if len(groups) != len(document.questions):
        raise ValueError(
            f"Markup has {len(groups)} questions with options, document has {len(document.questions)}"
        )

    questions: list[Question] = []
    errors: list[AnswerValidationError] = []
    for question, (_, options) in zip(document.questions, groups):
        verdict = detect_correct_label_for_question(question.number, options)
        if isinstance(verdict, AnswerValidationError):
            errors.append(verdict)
            questions.append(question)
        else:
            questions.append(question.with_correct_label(verdict))

    if errors:
        logger.warning(f"{len(errors)} of {len(questions)} questions failed answer validation")
    else:
        logger.info(f"All {len(questions)} questions have exactly one marked answer")
    return ParsedDocument(questions=tuple(questions)), errors
