"""
Module: mixed

Purpose:
    Provides MixedOption, MixedQuestion and MixedExam - one shuffled exam
    variant as produced by the mixer and consumed read-only by the writers.

Key Functions:
    - MixedExam.to_questions(): Convert to the Question shape for writing
    - is_exam_code(): Three-ASCII-digit check shared with the mixer

Dependencies:
    - dataclasses (std)
    - .questions, .segments

Used By:
    - builder.mixing.mixer
    - builder.output.docx_writer
    - builder.output.answer_key
"""

from __future__ import annotations

from dataclasses import dataclass

from .questions import OPTION_LABELS, OptionItem, Question
from .segments import Segment, segment_from_dict


def is_exam_code(code: str) -> bool:
    """True for exactly three ASCII digits."""
    return isinstance(code, str) and len(code) == 3 and code.isascii() and code.isdigit()


@dataclass(frozen=True)
class MixedOption:
    """
    Option after shuffling.

    Attributes:
        label: New label by shuffled position
        original_label: Label in the source question
        content: Segments copied verbatim from the source option
    """

    label: str
    original_label: str
    content: tuple[Segment, ...] = ()

    def __post_init__(self) -> None:
        if self.label not in OPTION_LABELS:
            raise ValueError(f"Option label must be one of A-F: {self.label!r}")

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "original_label": self.original_label,
            "content": [s.to_dict() for s in self.content],
        }

    @classmethod
    def from_dict(cls, data: dict) -> MixedOption:
        return cls(
            label=data["label"],
            original_label=data["original_label"],
            content=tuple(segment_from_dict(s) for s in data.get("content", [])),
        )


@dataclass(frozen=True)
class MixedQuestion:
    """
    Question after shuffling.

    Attributes:
        original_number: Number in the source document
        display_number: 1-based position inside the variant
        stem: Segments copied verbatim
        options: Shuffled, relabeled options
        correct_answer: Correct label after relabeling
    """

    original_number: int
    display_number: int
    stem: tuple[Segment, ...]
    options: tuple[MixedOption, ...]
    correct_answer: str

    def __post_init__(self) -> None:
        if self.display_number < 1:
            raise ValueError(f"display_number must be >= 1: {self.display_number}")

    def to_question(self) -> Question:
        """Question shape for the writer: display number, unlocked options."""
        return Question(
            number=self.display_number,
            stem=self.stem,
            options=tuple(
                OptionItem(label=o.label, locked=False, content=o.content)
                for o in self.options
            ),
            correct_label=self.correct_answer,
        )

    def to_dict(self) -> dict:
        return {
            "original_number": self.original_number,
            "display_number": self.display_number,
            "stem": [s.to_dict() for s in self.stem],
            "options": [o.to_dict() for o in self.options],
            "correct_answer": self.correct_answer,
        }

    @classmethod
    def from_dict(cls, data: dict) -> MixedQuestion:
        return cls(
            original_number=data["original_number"],
            display_number=data["display_number"],
            stem=tuple(segment_from_dict(s) for s in data.get("stem", [])),
            options=tuple(MixedOption.from_dict(o) for o in data.get("options", [])),
            correct_answer=data.get("correct_answer", ""),
        )


@dataclass(frozen=True)
class MixedExam:
    """
    One shuffled exam variant (immutable).

    Attributes:
        exam_code: Three ASCII digits, e.g. "132"
        questions: Questions in display order
    """

    exam_code: str
    questions: tuple[MixedQuestion, ...]

    def __post_init__(self) -> None:
        if not is_exam_code(self.exam_code):
            raise ValueError(f"exam_code must be 3 digits: {self.exam_code!r}")

    def to_questions(self) -> list[Question]:
        return [q.to_question() for q in self.questions]

    def to_dict(self) -> dict:
        return {
            "exam_code": self.exam_code,
            "questions": [q.to_dict() for q in self.questions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> MixedExam:
        return cls(
            exam_code=data["exam_code"],
            questions=tuple(MixedQuestion.from_dict(q) for q in data.get("questions", [])),
        )
