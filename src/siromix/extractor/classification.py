"""
Module: extractor.classification

Purpose:
    Paragraph classification. Matches the plain-text projection of a
    paragraph against the question and option patterns and cuts the
    paragraph's segments at the matched character offsets.

    All offsets are code-point offsets into the projection, never byte
    offsets, so multi-byte text ("Câu", "Đáp án") is cut cleanly.

Key Functions:
    - classify_paragraph(): Classify one extracted paragraph
    - classify_paragraphs(): Stream classified paragraphs from markup
    - find_option_labels(): Option label matches in a projection
    - slice_segments(): Segments covering a projection range

Key Classes:
    - ParagraphKind: QUESTION / OPTIONS / CONTINUATION
    - ClassifiedParagraph: Classification plus cut segments
    - OptionSplit: One option cut from an options paragraph

Dependencies:
    - re (std)
    - extractor.segments

Used By:
    - extractor.parser
    - extractor.validation
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from siromix.core.models.segments import ImageSegment, MathSegment, Segment, TextSegment
from .markup import iter_paragraphs
from .segments import AssetCursor, ParagraphContent, RunSpan, extract_paragraph

QUESTION_RE = re.compile(r"^(Câu|Question)\s+(\d+)\.")
OPTION_START_RE = re.compile(r"^(#?)([A-F])\.")
# Later labels on the same line must follow whitespace ("C. 5  D. 6")
OPTION_NEXT_RE = re.compile(r"(?<=\s)(#?)([A-F])\.")


class ParagraphKind(Enum):
    QUESTION = "question"
    OPTIONS = "options"
    CONTINUATION = "continuation"


@dataclass(frozen=True)
class OptionSplit:
    """
    One option cut out of an options paragraph.

    Attributes:
        label: A-F
        locked: Label carried the legacy '#' marker
        label_start: Projection offset of the label's first character
        label_end: Projection offset just past the label's '.'
        content: Segments after the label, up to the next label
    """
    label: str
    locked: bool
    label_start: int
    label_end: int
    content: tuple[Segment, ...]


@dataclass(frozen=True)
class ClassifiedParagraph:
    """
    A paragraph after classification.

    For QUESTION paragraphs `number` is set and `segments` is the stem
    with the "Câu N." prefix removed. For OPTIONS paragraphs `options`
    holds one entry per label. For CONTINUATION paragraphs `segments`
    holds the paragraph unchanged.
    """
    kind: ParagraphKind
    content: ParagraphContent
    number: Optional[int] = None
    segments: tuple[Segment, ...] = ()
    options: tuple[OptionSplit, ...] = ()

    def label_runs(self, option: OptionSplit) -> list[RunSpan]:
        """Runs overlapping the option's label, '#' and '.' included."""
        return [
            run for run in self.content.runs
            if run.start < option.label_end and run.end > option.label_start
        ]


def find_option_labels(projection: str) -> list[re.Match]:
    """
    Option label matches in a paragraph projection.

    The first label must open the paragraph. Later labels must follow
    whitespace and come later in the alphabet than the previous one, so
    "C. Blood group A. donors" stays a single option.
    """
    first = OPTION_START_RE.match(projection)
    if first is None:
        return []
    matches = [first]
    for match in OPTION_NEXT_RE.finditer(projection, first.end()):
        if match.group(2) > matches[-1].group(2):
            matches.append(match)
    return matches


def classify_paragraph(content: ParagraphContent) -> ClassifiedParagraph:
    """Classify one extracted paragraph and cut its segments."""
    projection = content.projection
    total = len(projection)

    question = QUESTION_RE.match(projection)
    if question is not None:
        return ClassifiedParagraph(
            kind=ParagraphKind.QUESTION,
            content=content,
            number=int(question.group(2)),
            segments=slice_segments(content, 0, total, question.end()),
        )

    labels = find_option_labels(projection)
    if labels:
        options = []
        for index, match in enumerate(labels):
            end = labels[index + 1].start() if index + 1 < len(labels) else total
            options.append(
                OptionSplit(
                    label=match.group(2),
                    locked=bool(match.group(1)),
                    label_start=match.start(),
                    label_end=match.end(),
                    content=slice_segments(content, match.start(), end, match.end()),
                )
            )
        return ClassifiedParagraph(
            kind=ParagraphKind.OPTIONS,
            content=content,
            options=tuple(options),
        )

    return ClassifiedParagraph(
        kind=ParagraphKind.CONTINUATION,
        content=content,
        segments=tuple(content.segments),
    )


def classify_paragraphs(
    markup: str,
    cursor: Optional[AssetCursor] = None,
) -> Iterator[ClassifiedParagraph]:
    """Stream classified paragraphs of a document in order."""
    for paragraph in iter_paragraphs(markup):
        yield classify_paragraph(extract_paragraph(paragraph, cursor))


def slice_segments(
    content: ParagraphContent,
    start: int,
    end: int,
    skip_to: Optional[int] = None,
) -> tuple[Segment, ...]:
    """
    Segments covering the projection range [start, end).

    Text before `skip_to` (a stripped label or question prefix) is
    dropped; images and math in that range are kept. Text cut at either
    edge is trimmed there, and text left empty disappears.
    """
    cut = start if skip_to is None else skip_to
    total = len(content.projection)
    result: list[Segment] = []

    for segment, (seg_start, seg_end) in zip(content.segments, content.spans):
        if isinstance(segment, TextSegment):
            lo, hi = max(seg_start, cut), min(seg_end, end)
            if hi <= lo:
                continue
            if lo == seg_start and hi == seg_end:
                result.append(segment)
                continue
            text = content.projection[lo:hi]
            if lo != seg_start:
                text = text.lstrip()
            if hi != seg_end:
                text = text.rstrip()
            if text:
                result.append(TextSegment(text=text, raw_xml=_runs_markup(content, lo, hi)))
        elif isinstance(segment, ImageSegment):
            if start <= seg_start < end or seg_start == end == total:
                result.append(segment)
        elif isinstance(segment, MathSegment):
            if start <= seg_start < end:
                result.append(segment)

    return tuple(result)


def _runs_markup(content: ParagraphContent, lo: int, hi: int) -> str:
    parts: list[str] = []
    for run in content.runs:
        if run.start < hi and run.end > lo and (not parts or parts[-1] != run.raw_xml):
            parts.append(run.raw_xml)
    return "".join(parts)

