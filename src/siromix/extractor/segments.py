"""
Module: extractor.segments

Purpose:
    Segment extraction for one paragraph. Turns the paragraph's inline
    items into ordered Text/Math/Image segments, builds the flattened
    plain-text projection used for classification, and records where
    each segment and each text run sits inside that projection.

Key Functions:
    - extract_paragraph(): Segments + projection of one paragraph
    - image_dimensions_emu(): Display size of a drawing/object element

Key Classes:
    - AssetCursor: Order-stable cursor over extracted assets, owned by
      one parse call and shared by all of its paragraphs
    - ParagraphContent: Extraction result for one paragraph
    - RunSpan: Projection range of one text run plus its style facts

Dependencies:
    - lxml.etree (via extractor.markup)
    - siromix.core.models: Segment types

Used By:
    - extractor.classification
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from lxml import etree

from siromix.core.models.segments import (
    DEFAULT_IMAGE_EMU,
    ImageSegment,
    MathSegment,
    Segment,
    TextSegment,
)
from .assets import ExtractedAsset
from .markup import A_NS, V_NS, WP_NS, Inline, RunStyle, iter_inline, run_style, to_markup, w

logger = logging.getLogger(__name__)

# EMU per unit
_EMU_PER_UNIT = {
    "emu": 1,
    "pt": 12700,
    "in": 914400,
    "cm": 360000,
    "mm": 36000,
    "px": 9525,
    "pc": 152400,
}
EMU_PER_TWIP = 635

_VML_SHAPES = tuple(f"{{{V_NS}}}{name}" for name in ("shape", "rect", "image"))
_STYLE_LENGTH_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*([a-z]*)\s*$", re.IGNORECASE)


class AssetCursor:
    """
    Advancing cursor over the extracted asset list.

    The list order encodes first appearance in the source document; the
    cursor never reorders it. One cursor is created per parse call and
    threaded through every paragraph, so image N in the document gets
    asset N no matter which paragraph it sits in.

    Example:
        >>> cursor = AssetCursor(assets)
        >>> cursor.next_path()
        '/ws/assets/image1.png'
    """

    def __init__(self, assets: Sequence[ExtractedAsset] = ()):
        self._assets = tuple(assets)
        self._position = 0
        self._exhausted_logged = False

    @property
    def position(self) -> int:
        return self._position

    @property
    def remaining(self) -> int:
        return len(self._assets) - self._position

    def next(self) -> Optional[ExtractedAsset]:
        """Consume the next asset, or None once the list is exhausted."""
        if self._position >= len(self._assets):
            if not self._exhausted_logged:
                logger.warning(
                    f"Asset list exhausted after {len(self._assets)} entries; "
                    f"further images get an empty asset path"
                )
                self._exhausted_logged = True
            return None
        asset = self._assets[self._position]
        self._position += 1
        return asset

    def next_path(self) -> str:
        asset = self.next()
        return asset.resolved_path if asset is not None else ""


@dataclass(frozen=True)
class RunSpan:
    """Projection range [start, end) covered by one text run."""
    start: int
    end: int
    style: RunStyle
    raw_xml: str = ""


@dataclass
class ParagraphContent:
    """
    Extraction result for one paragraph.

    Attributes:
        segments: Ordered segments
        spans: Projection range of each segment; images have an empty
            range at the position they occupy
        projection: Flattened plain text used for classification
        runs: Projection ranges of the text runs, in order
    """
    segments: list[Segment] = field(default_factory=list)
    spans: list[tuple[int, int]] = field(default_factory=list)
    projection: str = ""
    runs: list[RunSpan] = field(default_factory=list)

    def append(self, segment: Segment, start: int, end: int) -> None:
        self.segments.append(segment)
        self.spans.append((start, end))


class _PendingText:
    """Consecutive text runs waiting to be flushed as one TextSegment."""

    def __init__(self) -> None:
        self.items: list[tuple[etree._Element, str]] = []

    def __bool__(self) -> bool:
        return bool(self.items)

    def add(self, run: etree._Element, text: str) -> None:
        self.items.append((run, text))

    def pop_whitespace_run(self) -> Optional[etree._Element]:
        """Remove and return the last run if it only carries whitespace."""
        if self.items and not self.items[-1][1].strip():
            run, _ = self.items.pop()
            return run
        return None


def extract_paragraph(
    paragraph: etree._Element,
    cursor: Optional[AssetCursor] = None,
) -> ParagraphContent:
    """
    Extract ordered segments and the plain-text projection of a paragraph.

    Projection rules:
    - text segments contribute their (trimmed) text verbatim
    - a math segment contributes one placeholder space
    - an image contributes a space only when the projection so far ends
      in a non-space character

    Args:
        paragraph: w:p element
        cursor: Asset cursor shared across the document. None leaves
            every image path empty without consuming anything.

    Returns:
        ParagraphContent for the paragraph
    """
    content = ParagraphContent()
    pending = _PendingText()

    for item in iter_inline(paragraph):
        if item.kind == "text":
            pending.add(item.element, item.text)
        elif item.kind == "math":
            _emit_math(content, pending, item)
        elif item.kind == "image":
            _flush_text(content, pending)
            _emit_image(content, item, cursor)

    _flush_text(content, pending)
    return content


def _flush_text(content: ParagraphContent, pending: _PendingText) -> None:
    if not pending:
        return

    merged = "".join(text for _, text in pending.items)
    stripped = merged.strip()
    if stripped:
        lead = len(merged) - len(merged.lstrip())
        start = len(content.projection)
        end = start + len(stripped)

        offset = start - lead
        seen: list[etree._Element] = []
        for run, text in pending.items:
            run_start = max(offset, start)
            run_end = min(offset + len(text), end)
            offset += len(text)
            if run_end > run_start:
                content.runs.append(RunSpan(run_start, run_end, run_style(run), to_markup(run)))
            if not seen or seen[-1] is not run:
                seen.append(run)

        raw = "".join(to_markup(run) for run in seen)
        content.append(TextSegment(text=stripped, raw_xml=raw), start, end)
        content.projection += stripped

    pending.items.clear()


def _emit_math(content: ParagraphContent, pending: _PendingText, item: Inline) -> None:
    space_run = pending.pop_whitespace_run()
    _flush_text(content, pending)

    omml = to_markup(item.element)
    raw = (to_markup(space_run) + omml) if space_run is not None else omml
    start = len(content.projection)
    content.projection += " "
    content.append(MathSegment(omml=omml, raw_xml=raw), start, start + 1)


def _emit_image(content: ParagraphContent, item: Inline, cursor: Optional[AssetCursor]) -> None:
    position = len(content.projection)
    if content.projection and not content.projection[-1].isspace():
        content.projection += " "

    asset_path = cursor.next_path() if cursor is not None else ""
    width, height = image_dimensions_emu(item.element)
    segment = ImageSegment(
        asset_path=asset_path,
        raw_xml=to_markup(item.element),
        width_emu=width,
        height_emu=height,
    )
    content.append(segment, position, position)


# ─────────────────────────────────────────────────────────────────────────────
# Image dimensions
# ─────────────────────────────────────────────────────────────────────────────

def image_dimensions_emu(element: etree._Element) -> tuple[int, int]:
    """
    Display size of an image element in EMU.

    Sources, first match wins:
    1. wp:extent cx/cy (DrawingML inline/anchor, EMU)
    2. a:ext cx/cy (shape transform, EMU)
    3. VML style width/height (pt, in, cm, mm, px, pc; unitless is px)
    4. w:object w:dxaOrig/w:dyaOrig (twips)

    Falls back to one square inch.
    """
    for finder in (_extent_size, _xfrm_size, _vml_size, _object_size):
        size = finder(element)
        if size is not None:
            return size
    logger.debug("No image dimensions found, using the 1in x 1in default")
    return DEFAULT_IMAGE_EMU, DEFAULT_IMAGE_EMU


def _emu_pair(cx: Optional[str], cy: Optional[str]) -> Optional[tuple[int, int]]:
    try:
        width, height = int(cx), int(cy)
    except (TypeError, ValueError):
        return None
    if width <= 0 or height <= 0:
        return None
    return width, height


def _extent_size(element: etree._Element) -> Optional[tuple[int, int]]:
    for extent in element.iter(f"{{{WP_NS}}}extent"):
        size = _emu_pair(extent.get("cx"), extent.get("cy"))
        if size is not None:
            return size
    return None


def _xfrm_size(element: etree._Element) -> Optional[tuple[int, int]]:
    for ext in element.iter(f"{{{A_NS}}}ext"):
        size = _emu_pair(ext.get("cx"), ext.get("cy"))
        if size is not None:
            return size
    return None


def _vml_size(element: etree._Element) -> Optional[tuple[int, int]]:
    for shape in element.iter(*_VML_SHAPES):
        style = _parse_style(shape.get("style", ""))
        width = _length_to_emu(style.get("width"))
        height = _length_to_emu(style.get("height"))
        if width and height:
            return width, height
    return None


def _object_size(element: etree._Element) -> Optional[tuple[int, int]]:
    if element.tag != w("object"):
        return None
    try:
        width = float(element.get(w("dxaOrig"), ""))
        height = float(element.get(w("dyaOrig"), ""))
    except ValueError:
        return None
    if width <= 0 or height <= 0:
        return None
    return round(width * EMU_PER_TWIP), round(height * EMU_PER_TWIP)


def _parse_style(style: str) -> dict[str, str]:
    """Parse a CSS-like "width:12pt;height:3cm" attribute."""
    result = {}
    for declaration in style.split(";"):
        name, sep, value = declaration.partition(":")
        if sep:
            result[name.strip().lower()] = value.strip()
    return result


def _length_to_emu(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    match = _STYLE_LENGTH_RE.match(value)
    if not match:
        return None
    number = float(match.group(1))
    unit = match.group(2).lower() or "px"
    factor = _EMU_PER_UNIT.get(unit)
    if factor is None or number <= 0:
        return None
    return round(number * factor)
