"""
Module: questions

Purpose:
    Provides OptionItem, Question and ParsedDocument - the structured
    model the parser builds from a source exam document. Immutable; the
    answer validator produces a new document with correct labels filled
    in rather than mutating the parsed one.

Key Functions:
    - Question.with_correct_label(label): Copy with the detected answer
    - Question.get_option(label): Find an option by label
    - ParsedDocument.original_answers: Correct labels by original index
    - to_dict() / from_dict(): Serialization

Dependencies:
    - dataclasses (std)
    - .segments

Used By:
    - extractor.parser
    - extractor.validation
    - builder.mixing.mixer
    - builder.output.docx_writer
    - core.utils.serialization
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import cached_property
from typing import Optional

from .segments import Segment, segment_from_dict

OPTION_LABELS = ("A", "B", "C", "D", "E", "F")


@dataclass(frozen=True)
class OptionItem:
    """
    One answer option of a question (immutable).

    Attributes:
        label: Option label, one of A-F
        locked: Label carried the legacy '#' marker (informational only,
            NOT the correct-answer signal)
        content: Ordered segments after the label

    Example:
        >>> OptionItem("B", locked=True, content=(TextSegment("4"),))
    """

    label: str
    locked: bool = False
    content: tuple[Segment, ...] = ()

    def __post_init__(self) -> None:
        """Validate option on construction."""
        if self.label not in OPTION_LABELS:
            raise ValueError(f"Option label must be one of A-F: {self.label!r}")

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "locked": self.locked,
            "content": [s.to_dict() for s in self.content],
        }

    @classmethod
    def from_dict(cls, data: dict) -> OptionItem:
        return cls(
            label=data["label"],
            locked=data.get("locked", False),
            content=tuple(segment_from_dict(s) for s in data.get("content", [])),
        )


@dataclass(frozen=True)
class Question:
    """
    Complete multiple-choice question (immutable).

    Attributes:
        number: Question number as written in the source ("Câu 3." -> 3)
        stem: Ordered segments of the question text, prefix stripped
        options: Options in source order
        correct_label: Detected correct label; "" until validation

    Invariants:
        - option labels are unique within the question
        - correct_label is "" or the label of one of the options
    """

    number: int
    stem: tuple[Segment, ...] = ()
    options: tuple[OptionItem, ...] = ()
    correct_label: str = ""

    def __post_init__(self) -> None:
        """Validate question on construction."""
        if self.number < 0:
            raise ValueError(f"Question number must be non-negative: {self.number}")
        labels = [o.label for o in self.options]
        if len(labels) != len(set(labels)):
            raise ValueError(f"Duplicate option labels in question {self.number}: {labels}")
        if self.correct_label and self.correct_label not in labels:
            raise ValueError(
                f"correct_label {self.correct_label!r} is not an option of question {self.number}"
            )

    @cached_property
    def labels(self) -> tuple[str, ...]:
        """Option labels in source order."""
        return tuple(o.label for o in self.options)

    def get_option(self, label: str) -> Optional[OptionItem]:
        """Find an option by label, or None."""
        for option in self.options:
            if option.label == label:
                return option
        return None

    def with_correct_label(self, label: str) -> Question:
        """Return a copy with correct_label set."""
        return replace(self, correct_label=label)

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "stem": [s.to_dict() for s in self.stem],
            "options": [o.to_dict() for o in self.options],
            "correct_label": self.correct_label,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Question:
        return cls(
            number=data["number"],
            stem=tuple(segment_from_dict(s) for s in data.get("stem", [])),
            options=tuple(OptionItem.from_dict(o) for o in data.get("options", [])),
            correct_label=data.get("correct_label", ""),
        )

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        return (
            f"Question(number={self.number}, options={''.join(self.labels)}, "
            f"correct={self.correct_label or '-'})"
        )


@dataclass(frozen=True)
class ParsedDocument:
    """
    Ordered questions parsed from one source document (immutable).

    Invariants:
        - every question has at least one option (the parser discards
          option-less questions before building the document)
    """

    questions: tuple[Question, ...] = ()

    def __post_init__(self) -> None:
        """Validate document on construction."""
        empty = [q.number for q in self.questions if not q.options]
        if empty:
            raise ValueError(f"Questions without options cannot be stored: {empty}")

    @property
    def is_validated(self) -> bool:
        """True when every question carries a correct label."""
        return all(q.correct_label for q in self.questions)

    @property
    def original_answers(self) -> list[str]:
        """
        Correct labels indexed by original question number - 1.

        Gaps in the source numbering are filled with "".
        """
        size = max((q.number for q in self.questions), default=0)
        answers = [""] * size
        for q in self.questions:
            if q.number >= 1:
                answers[q.number - 1] = q.correct_label
        return answers

    def to_dict(self) -> dict:
        return {"questions": [q.to_dict() for q in self.questions]}

    @classmethod
    def from_dict(cls, data: dict) -> ParsedDocument:
        return cls(questions=tuple(Question.from_dict(q) for q in data.get("questions", [])))

    def __len__(self) -> int:
        return len(self.questions)
