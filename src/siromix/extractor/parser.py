"""
Module: extractor.parser

Purpose:
    Builds a ParsedDocument from the classified paragraph stream with a
    three-state machine (no question / in stem / in options).

Key Functions:
    - parse(): markup + asset list -> ParsedDocument

Key Classes:
    - ParserState: NO_QUESTION / IN_STEM / IN_OPTIONS

Dependencies:
    - extractor.classification
    - siromix.core.models

Used By:
    - extractor.pipeline
    - tests
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Sequence

from siromix.core.models.questions import OptionItem, ParsedDocument, Question
from siromix.core.models.segments import Segment
from .assets import ExtractedAsset
from .classification import ClassifiedParagraph, ParagraphKind, classify_paragraphs
from .segments import AssetCursor

logger = logging.getLogger(__name__)


class ParserState(Enum):
    NO_QUESTION = "no_question"
    IN_STEM = "in_stem"
    IN_OPTIONS = "in_options"


class _OpenOption:
    def __init__(self, label: str, locked: bool, content: Sequence[Segment]):
        self.label = label
        self.locked = locked
        self.content: list[Segment] = list(content)

    def freeze(self) -> OptionItem:
        return OptionItem(label=self.label, locked=self.locked, content=tuple(self.content))


class _OpenQuestion:
    def __init__(self, number: int, stem: Sequence[Segment]):
        self.number = number
        self.stem: list[Segment] = list(stem)
        self.options: list[_OpenOption] = []

    def has_label(self, label: str) -> bool:
        return any(option.label == label for option in self.options)

    def freeze(self) -> Question:
        return Question(
            number=self.number,
            stem=tuple(self.stem),
            options=tuple(option.freeze() for option in self.options),
        )


class _DocumentBuilder:
    """Paragraph-by-paragraph state machine."""

    def __init__(self) -> None:
        self.state = ParserState.NO_QUESTION
        self.current: Optional[_OpenQuestion] = None
        self.questions: list[Question] = []

    def feed(self, paragraph: ClassifiedParagraph) -> None:
        if paragraph.kind is ParagraphKind.QUESTION:
            self._finalize()
            self.current = _OpenQuestion(paragraph.number, paragraph.segments)
            self.state = ParserState.IN_STEM
            return

        if self.state is ParserState.NO_QUESTION:
            if paragraph.kind is ParagraphKind.OPTIONS:
                logger.debug("Options paragraph outside any question ignored")
            return

        if paragraph.kind is ParagraphKind.OPTIONS:
            for split in paragraph.options:
                if self.current.has_label(split.label):
                    # Keep the content, drop the repeated label
                    logger.warning(
                        f"Question {self.current.number}: repeated option label "
                        f"{split.label!r} merged into the previous option"
                    )
                    self.current.options[-1].content.extend(split.content)
                    continue
                self.current.options.append(_OpenOption(split.label, split.locked, split.content))
                self.state = ParserState.IN_OPTIONS
        elif self.state is ParserState.IN_OPTIONS:
            self.current.options[-1].content.extend(paragraph.segments)
        else:
            self.current.stem.extend(paragraph.segments)

    def _finalize(self) -> None:
        if self.current is None:
            return
        if self.current.options:
            self.questions.append(self.current.freeze())
        else:
            logger.warning(f"Question {self.current.number} has no options and was discarded")
        self.current = None
        self.state = ParserState.NO_QUESTION

    def finish(self) -> ParsedDocument:
        self._finalize()
        return ParsedDocument(questions=tuple(self.questions))


def parse(markup: str, assets: Sequence[ExtractedAsset] = ()) -> ParsedDocument:
    """
    Parse document markup into questions.

    Paragraph rules:
    - "Câu N." / "Question N." closes the open question and opens a new
      one; the rest of the paragraph is its stem
    - "A." ... "F." (optionally "#A.") adds one option per label while a
      question is open; several labels may share a paragraph
    - anything else continues the last open option, or the stem if the
      question has no option yet

    A question is kept only if it has at least one option. Images are
    matched to `assets` strictly by order of appearance across the whole
    document.

    Args:
        markup: word/document.xml content
        assets: Order-stable extracted assets (one per image reference)

    Returns:
        ParsedDocument with empty correct labels

    Example:
        >>> doc = parse(markup_of(["Câu 1. 2+2=?", "A. 3", "#B. 4", "C. 5"]))
        >>> doc.questions[0].labels
        ('A', 'B', 'C')
    """
    cursor = AssetCursor(assets)
    builder = _DocumentBuilder()
    for paragraph in classify_paragraphs(markup, cursor):
        builder.feed(paragraph)
    document = builder.finish()

    if cursor.remaining:
        logger.warning(f"{cursor.remaining} extracted assets were not matched to any image")
    logger.info(f"Parsed {len(document)} questions")
    return document
