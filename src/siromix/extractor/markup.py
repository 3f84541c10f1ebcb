"""
Module: extractor.markup

Purpose:
    Streaming reader over WordprocessingML markup. Yields body paragraphs
    in document order and, inside a paragraph, the inline items the
    parser cares about (text runs, math, images) in reading order.

    Both the segment extractor and the asset extractor walk paragraphs
    through iter_inline(), so an image counted by one is always counted
    by the other and the order-based asset correlation holds.

Key Functions:
    - iter_paragraphs(): Paragraph elements, best effort on broken input
    - iter_inline(): Ordered Inline items of one paragraph
    - run_text(): Text carried by a run
    - run_style(): Underline/color facts of a run
    - image_rel_id(): Relationship id of an image-bearing element
    - to_markup(): Serialize an element without its tail

Key Classes:
    - Inline: (kind, element, text) item
    - RunStyle: Underline/color facts

Dependencies:
    - lxml.etree: iterparse with recover mode

Used By:
    - extractor.segments
    - extractor.assets
"""

from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass
from io import BytesIO
from typing import Iterator, NamedTuple, Optional

from lxml import etree

logger = logging.getLogger(__name__)

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
M_NS = "http://schemas.openxmlformats.org/officeDocument/2006/math"
R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
WP_NS = "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing"
A_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
PIC_NS = "http://schemas.openxmlformats.org/drawingml/2006/picture"
V_NS = "urn:schemas-microsoft-com:vml"
O_NS = "urn:schemas-microsoft-com:office:office"
MC_NS = "http://schemas.openxmlformats.org/markup-compatibility/2006"
XML_NS = "http://www.w3.org/XML/1998/namespace"


def w(tag: str) -> str:
    return f"{{{W_NS}}}{tag}"


def m(tag: str) -> str:
    return f"{{{M_NS}}}{tag}"


W_P = w("p")
W_R = w("r")
W_T = w("t")
W_VAL = w("val")

MATH_TAGS = frozenset({m("oMath"), m("oMathPara")})
IMAGE_TAGS = frozenset({w("drawing"), w("object"), w("pict")})

# Elements whose children are read as if they were direct paragraph content
_CONTAINER_TAGS = frozenset({
    w("hyperlink"),
    w("ins"),
    w("moveTo"),
    w("smartTag"),
    w("customXml"),
    w("sdt"),
    w("sdtContent"),
    w("fldSimple"),
    w("dir"),
    w("bdo"),
})
_MC_ALTERNATE = f"{{{MC_NS}}}AlternateContent"
_MC_CHOICE = f"{{{MC_NS}}}Choice"
_MC_FALLBACK = f"{{{MC_NS}}}Fallback"

_RUN_TEXT = {
    w("tab"): "\t",
    w("br"): " ",
    w("cr"): " ",
    w("noBreakHyphen"): "-",
    w("softHyphen"): "",
}

_BLIP_EMBED = f"{{{R_NS}}}embed"
_IMAGEDATA_ID = f"{{{R_NS}}}id"


class Inline(NamedTuple):
    """
    One inline item of a paragraph.

    kind is "text" (element is the run, text its decoded content),
    "math" (element is m:oMath/m:oMathPara) or "image" (element is the
    w:drawing/w:object/w:pict carrying an image relationship).
    """
    kind: str
    element: etree._Element
    text: str = ""


@dataclass(frozen=True)
class RunStyle:
    """Visual facts of one run that matter for answer marking."""
    underline: bool = False
    color: Optional[str] = None


def iter_paragraphs(markup: str) -> Iterator[etree._Element]:
    """
    Yield body paragraphs in document order.

    Paragraphs nested inside another paragraph (text boxes) are skipped.
    Each element is cleared after the consumer advances, so callers must
    finish with a paragraph before requesting the next one.

    Malformed markup is read best effort: recover mode repairs what it
    can, and an unrecoverable error ends the stream with a warning after
    the paragraphs already read.
    """
    if not markup or not markup.strip():
        return

    source = BytesIO(markup.encode("utf-8"))
    events = etree.iterparse(
        source,
        events=("end",),
        tag=W_P,
        recover=True,
        huge_tree=True,
        remove_blank_text=False,
    )
    count = 0
    try:
        for _, element in events:
            if _has_paragraph_ancestor(element):
                continue
            count += 1
            yield element
            element.clear(keep_tail=True)
    except etree.XMLSyntaxError as e:
        logger.warning(f"Markup ended unexpectedly after {count} paragraphs: {e}")


def _has_paragraph_ancestor(element: etree._Element) -> bool:
    parent = element.getparent()
    while parent is not None:
        if parent.tag == W_P:
            return True
        parent = parent.getparent()
    return False


def iter_inline(parent: etree._Element) -> Iterator[Inline]:
    """Yield the ordered inline items of a paragraph (or container)."""
    for child in parent:
        tag = child.tag
        if not isinstance(tag, str):
            continue
        if tag == W_R:
            yield from _iter_run(child)
        elif tag in MATH_TAGS:
            yield Inline("math", child)
        elif tag in _CONTAINER_TAGS:
            yield from iter_inline(child)
        elif tag == _MC_ALTERNATE:
            branch = _alternate_branch(child)
            if branch is not None:
                yield from iter_inline(branch)
        # w:pPr, w:del, bookmarks, proofErr, comments: no content


def _iter_run(run: etree._Element) -> Iterator[Inline]:
    parts: list[str] = []
    for child in run:
        tag = child.tag
        if not isinstance(tag, str):
            continue
        if tag == W_T:
            parts.append(_t_text(child))
        elif tag in _RUN_TEXT:
            parts.append(_RUN_TEXT[tag])
        elif tag in MATH_TAGS or _is_image_element(child) or tag == _MC_ALTERNATE:
            if tag == _MC_ALTERNATE:
                branch = _alternate_branch(child)
                inner = [c for c in branch if _is_image_element(c)] if branch is not None else []
                if not inner:
                    continue
                targets = inner
            else:
                targets = [child]
            if parts:
                yield Inline("text", run, _normalize("".join(parts)))
                parts = []
            for target in targets:
                yield Inline("math" if target.tag in MATH_TAGS else "image", target)
        elif tag in IMAGE_TAGS:
            logger.debug(f"Skipping {etree.QName(tag).localname} without an image relationship")
    if parts:
        yield Inline("text", run, _normalize("".join(parts)))


def _alternate_branch(element: etree._Element) -> Optional[etree._Element]:
    """First mc:Choice, else mc:Fallback."""
    choice = element.find(_MC_CHOICE)
    if choice is not None:
        return choice
    return element.find(_MC_FALLBACK)


def _t_text(element: etree._Element) -> str:
    text = element.text or ""
    if not text and element.get(f"{{{XML_NS}}}space") == "preserve":
        return " "
    return text


def _normalize(text: str) -> str:
    return unicodedata.normalize("NFC", text)


def run_text(run: etree._Element) -> str:
    """Decoded text of a run, ignoring embedded images and math."""
    return "".join(item.text for item in _iter_run(run) if item.kind == "text")


def run_style(run: etree._Element) -> RunStyle:
    """
    Read underline and color from a run's properties.

    Underline counts when w:u is present with any value other than "none".
    Color is the raw w:color/@w:val (e.g. "FF0000" or "auto").
    """
    props = run.find(w("rPr"))
    if props is None:
        return RunStyle()
    underline_el = props.find(w("u"))
    underline = underline_el is not None and underline_el.get(W_VAL, "single") != "none"
    color_el = props.find(w("color"))
    color = color_el.get(W_VAL) if color_el is not None else None
    return RunStyle(underline=underline, color=color)


def image_rel_id(element: etree._Element) -> Optional[str]:
    """
    Relationship id of the picture inside a drawing/object/VML element.

    DrawingML pictures reference it through a:blip/@r:embed, VML
    pictures and OLE previews through v:imagedata/@r:id.
    """
    for blip in element.iter(f"{{{A_NS}}}blip"):
        rid = blip.get(_BLIP_EMBED)
        if rid:
            return rid
    for imagedata in element.iter(f"{{{V_NS}}}imagedata"):
        rid = imagedata.get(_IMAGEDATA_ID)
        if rid:
            return rid
    return None


def _is_image_element(element: etree._Element) -> bool:
    return element.tag in IMAGE_TAGS and image_rel_id(element) is not None


def to_markup(element: etree._Element) -> str:
    """Serialize an element with its namespace declarations, without tail text."""
    return etree.tostring(element, encoding="unicode", with_tail=False)
