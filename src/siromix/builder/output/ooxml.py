"""
Module: builder.output.ooxml

Purpose:
    Small lxml helpers for building WordprocessingML parts: namespace
    map, qualified names, formatted runs and paragraphs, fragment
    parsing for carried-over markup, and part serialization.

Key Functions:
    - qn(): "w:rPr" -> "{namespace}rPr"
    - text_run(): Run with font, size and emphasis
    - add_paragraph(): Paragraph with alignment/indent/spacing
    - parse_fragment(): Elements of a raw markup slice
    - serialize_part(): Bytes with XML declaration

Dependencies:
    - lxml.etree

Used By:
    - builder.output.docx_writer
    - builder.output.header
"""

from __future__ import annotations

from typing import Optional

from lxml import etree

from .layout import PageProfile

NSMAP = {
    "w": "http://schemas.openxmlformats.org/wordprocessingml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "m": "http://schemas.openxmlformats.org/officeDocument/2006/math",
    "wp": "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing",
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
    "pic": "http://schemas.openxmlformats.org/drawingml/2006/picture",
    "v": "urn:schemas-microsoft-com:vml",
    "o": "urn:schemas-microsoft-com:office:office",
    "w10": "urn:schemas-microsoft-com:office:word",
    "mc": "http://schemas.openxmlformats.org/markup-compatibility/2006",
}
XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"
PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
CONTENT_TYPES_NS = "http://schemas.openxmlformats.org/package/2006/content-types"

_FRAGMENT_ROOT = "fragment"


def qn(name: str) -> str:
    """Qualified (Clark) name for a prefixed tag or attribute."""
    prefix, _, local = name.partition(":")
    return f"{{{NSMAP[prefix]}}}{local}"


def sub(parent: etree._Element, name: str, **attrs: str) -> etree._Element:
    """SubElement with prefixed tag and prefixed attribute names (w_val -> w:val)."""
    element = etree.SubElement(parent, qn(name))
    for key, value in attrs.items():
        element.set(qn(key.replace("_", ":", 1)), str(value))
    return element


def run_properties(
    run: etree._Element,
    profile: PageProfile,
    *,
    size: Optional[int] = None,
    bold: bool = False,
    italic: bool = False,
    underline: bool = False,
) -> etree._Element:
    props = sub(run, "w:rPr")
    font = profile.font_name
    sub(props, "w:rFonts", w_ascii=font, w_hAnsi=font, w_cs=font, w_eastAsia=font)
    if bold:
        sub(props, "w:b")
    if italic:
        sub(props, "w:i")
    sub(props, "w:sz", w_val=size or profile.font_size_body)
    if underline:
        sub(props, "w:u", w_val="single")
    return props


def text_run(
    parent: etree._Element,
    text: str,
    profile: PageProfile,
    *,
    size: Optional[int] = None,
    bold: bool = False,
    italic: bool = False,
    underline: bool = False,
) -> etree._Element:
    """Append a formatted text run; markup characters are escaped on output."""
    run = sub(parent, "w:r")
    run_properties(run, profile, size=size, bold=bold, italic=italic, underline=underline)
    t = sub(run, "w:t")
    t.set(XML_SPACE, "preserve")
    t.text = text
    return run


def add_paragraph(
    parent: etree._Element,
    *,
    align: Optional[str] = None,
    indent_left: Optional[int] = None,
    line: Optional[int] = None,
    after: Optional[int] = None,
) -> etree._Element:
    paragraph = sub(parent, "w:p")
    if align is None and indent_left is None and line is None and after is None:
        return paragraph
    props = sub(paragraph, "w:pPr")
    if line is not None or after is not None:
        spacing = sub(props, "w:spacing")
        if line is not None:
            spacing.set(qn("w:line"), str(line))
            spacing.set(qn("w:lineRule"), "auto")
        if after is not None:
            spacing.set(qn("w:after"), str(after))
    if indent_left is not None:
        sub(props, "w:ind", w_left=indent_left)
    if align is not None:
        sub(props, "w:jc", w_val=align)
    return paragraph


def parse_fragment(markup: str) -> list[etree._Element]:
    """
    Parse a raw markup slice (one or more sibling elements).

    The common WordprocessingML prefixes are declared around the slice
    so fragments that rely on inherited declarations still parse.

    Raises:
        etree.XMLSyntaxError: If the slice is not well-formed
    """
    declarations = " ".join(f'xmlns:{prefix}="{uri}"' for prefix, uri in NSMAP.items())
    wrapper = f"<{_FRAGMENT_ROOT} {declarations}>{markup}</{_FRAGMENT_ROOT}>"
    root = etree.fromstring(wrapper.encode("utf-8"))
    return [child for child in root if isinstance(child.tag, str)]


def serialize_part(root: etree._Element) -> bytes:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)
