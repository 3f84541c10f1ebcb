"""
Module: builder.output.docx_writer

Purpose:
    Writes questions (one mixed variant) to a complete .docx package:
    content types, relationships, document body, style defaults, a
    footer with a PAGE field, section properties from the page profile,
    and every referenced image embedded once under word/media.

Key Functions:
    - write_document(): Questions -> .docx
    - write_exam(): MixedExam -> .docx (display numbers, exam code header)

Key Classes:
    - WriterError: Any failure while assembling the package

Dependencies:
    - lxml.etree: Part construction
    - PIL: Image size probing when the segment carries no size
    - zipfile (std)

Used By:
    - builder.controller
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from lxml import etree
from PIL import Image

from siromix.core.models.mixed import MixedExam
from siromix.core.models.questions import OptionItem, Question
from siromix.core.models.segments import (
    DEFAULT_IMAGE_EMU,
    ImageSegment,
    MathSegment,
    Segment,
    TextSegment,
)
from .header import ExamHeader
from .layout import DECREE_30_PROFILE, PageProfile
from .ooxml import (
    CONTENT_TYPES_NS,
    NSMAP,
    PKG_REL_NS,
    add_paragraph,
    parse_fragment,
    qn,
    run_properties,
    serialize_part,
    sub,
    text_run,
)

logger = logging.getLogger(__name__)

# 96 DPI
EMU_PER_PIXEL = 9525

_REL_TYPES = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
_PIC_URI = "http://schemas.openxmlformats.org/drawingml/2006/picture"

_MAIN_CT = "application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"
_STYLES_CT = "application/vnd.openxmlformats-officedocument.wordprocessingml.styles+xml"
_FOOTER_CT = "application/vnd.openxmlformats-officedocument.wordprocessingml.footer+xml"

IMAGE_CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "emf": "image/x-emf",
    "wmf": "image/x-wmf",
}

_STYLES_REL_ID = "rId1"
_FOOTER_REL_ID = "rId2"

_QUESTION_PREFIX_RE = re.compile(r"^(Câu|Question)\s+\d+\.")


class WriterError(Exception):
    """Raised when a document package cannot be assembled or written."""

    def __init__(self, path: Path, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


@dataclass(frozen=True)
class _EmbeddedImage:
    rel_id: str
    source: Path
    target: str
    extension: str
    width_emu: int
    height_emu: int


class _ImageRegistry:
    """One relationship id and one media part per distinct image file."""

    def __init__(self, assets_dir: Optional[Path]):
        self._assets_dir = assets_dir
        self._by_path: dict[Path, _EmbeddedImage] = {}
        self._doc_pr_id = 0

    @property
    def images(self) -> list[_EmbeddedImage]:
        return list(self._by_path.values())

    def resolve(self, asset_path: str) -> Optional[Path]:
        """Locate an asset: as given, under assets_dir, or by name in assets_dir."""
        if not asset_path:
            return None
        path = Path(asset_path)
        candidates = [path] if path.is_absolute() else []
        if self._assets_dir is not None:
            candidates += [self._assets_dir / path, self._assets_dir / path.name]
        if not path.is_absolute():
            candidates.append(path)
        for candidate in candidates:
            if candidate.is_file():
                return candidate.resolve()
        return None

    def register(self, path: Path) -> _EmbeddedImage:
        image = self._by_path.get(path)
        if image is None:
            index = len(self._by_path) + 1
            extension = path.suffix.lower().lstrip(".") or "png"
            width, height = _measure_size_emu(path)
            image = _EmbeddedImage(
                rel_id=f"rId{index + 2}",
                source=path,
                target=f"media/image{index}.{extension}",
                extension=extension,
                width_emu=width,
                height_emu=height,
            )
            self._by_path[path] = image
        return image

    def next_doc_pr_id(self) -> int:
        self._doc_pr_id += 1
        return self._doc_pr_id


def _measure_size_emu(path: Path) -> tuple[int, int]:
    """Pixel size of an image file at 96 DPI, or one square inch."""
    try:
        with Image.open(path) as image:
            width, height = image.size
    except (OSError, ValueError) as e:
        logger.debug(f"Cannot measure {path.name}: {e}")
        return DEFAULT_IMAGE_EMU, DEFAULT_IMAGE_EMU
    if width <= 0 or height <= 0:
        return DEFAULT_IMAGE_EMU, DEFAULT_IMAGE_EMU
    return width * EMU_PER_PIXEL, height * EMU_PER_PIXEL


# ─────────────────────────────────────────────────────────────────────────────
# Document body
# ─────────────────────────────────────────────────────────────────────────────

class _BodyWriter:
    def __init__(self, registry: _ImageRegistry, profile: PageProfile):
        self.registry = registry
        self.profile = profile

    def question(self, body: etree._Element, question: Question) -> None:
        paragraph = add_paragraph(body)
        if not _starts_with(question.stem, _QUESTION_PREFIX_RE):
            text_run(paragraph, f"Câu {question.number}. ", self.profile, bold=True)
        self.segments(paragraph, question.stem)

        for option in question.options:
            self.option(body, option)

        add_paragraph(body)

    def option(self, body: etree._Element, option: OptionItem) -> None:
        paragraph = add_paragraph(body, indent_left=self.profile.option_indent)
        label_re = re.compile(rf"^#?{option.label}\.")
        if not _starts_with(option.content, label_re):
            prefix = f"#{option.label}. " if option.locked else f"{option.label}. "
            text_run(paragraph, prefix, self.profile, bold=True)
        self.segments(paragraph, option.content)

    def segments(self, paragraph: etree._Element, segments: Sequence[Segment]) -> None:
        for segment in segments:
            if isinstance(segment, TextSegment):
                if segment.text:
                    text_run(paragraph, segment.text, self.profile)
            elif isinstance(segment, MathSegment):
                # Carried over verbatim; placed as paragraph content
                for element in parse_fragment(segment.payload):
                    paragraph.append(element)
            elif isinstance(segment, ImageSegment):
                self.image(paragraph, segment)

    def image(self, paragraph: etree._Element, segment: ImageSegment) -> None:
        path = self.registry.resolve(segment.asset_path)
        if path is None:
            name = Path(segment.asset_path).name if segment.asset_path else "unknown"
            logger.warning(f"Image not found, writing placeholder: {segment.asset_path!r}")
            text_run(paragraph, f"[Image not found: {name}]", self.profile)
            return

        image = self.registry.register(path)
        if segment.width_emu > 0 and segment.height_emu > 0:
            width, height = segment.width_emu, segment.height_emu
        else:
            width, height = image.width_emu, image.height_emu
        self._drawing(paragraph, image, width, height)

    def _drawing(self, paragraph: etree._Element, image: _EmbeddedImage, cx: int, cy: int) -> None:
        doc_pr_id = self.registry.next_doc_pr_id()
        name = f"Picture {doc_pr_id}"

        run = sub(paragraph, "w:r")
        drawing = sub(run, "w:drawing")
        inline = sub(drawing, "wp:inline")
        for side in ("distT", "distB", "distL", "distR"):
            inline.set(side, "0")
        extent = sub(inline, "wp:extent")
        extent.set("cx", str(cx))
        extent.set("cy", str(cy))
        effect = sub(inline, "wp:effectExtent")
        for side in ("l", "t", "r", "b"):
            effect.set(side, "0")
        doc_pr = sub(inline, "wp:docPr")
        doc_pr.set("id", str(doc_pr_id))
        doc_pr.set("name", name)
        frame = sub(inline, "wp:cNvGraphicFramePr")
        sub(frame, "a:graphicFrameLocks").set("noChangeAspect", "1")

        graphic = sub(inline, "a:graphic")
        data = sub(graphic, "a:graphicData")
        data.set("uri", _PIC_URI)
        pic = sub(data, "pic:pic")
        nv = sub(pic, "pic:nvPicPr")
        c_nv = sub(nv, "pic:cNvPr")
        c_nv.set("id", "0")
        c_nv.set("name", Path(image.target).name)
        sub(nv, "pic:cNvPicPr")
        fill = sub(pic, "pic:blipFill")
        sub(fill, "a:blip", r_embed=image.rel_id)
        sub(sub(fill, "a:stretch"), "a:fillRect")
        shape = sub(pic, "pic:spPr")
        xfrm = sub(shape, "a:xfrm")
        offset = sub(xfrm, "a:off")
        offset.set("x", "0")
        offset.set("y", "0")
        ext = sub(xfrm, "a:ext")
        ext.set("cx", str(cx))
        ext.set("cy", str(cy))
        geometry = sub(shape, "a:prstGeom")
        geometry.set("prst", "rect")
        sub(geometry, "a:avLst")

    def section(self, body: etree._Element) -> None:
        profile = self.profile
        sect = sub(body, "w:sectPr")
        sub(sect, "w:footerReference", w_type="default", r_id=_FOOTER_REL_ID)
        sub(sect, "w:pgSz", w_w=profile.page_width, w_h=profile.page_height)
        sub(
            sect,
            "w:pgMar",
            w_top=profile.margin_top,
            w_right=profile.margin_right,
            w_bottom=profile.margin_bottom,
            w_left=profile.margin_left,
            w_header=profile.margin_header,
            w_footer=profile.margin_footer,
            w_gutter=0,
        )
        sub(sect, "w:cols", w_space=708)
        sub(sect, "w:titlePg")


def _starts_with(segments: Sequence[Segment], pattern: re.Pattern) -> bool:
    if not segments or not isinstance(segments[0], TextSegment):
        return False
    return pattern.match(segments[0].text) is not None


# ─────────────────────────────────────────────────────────────────────────────
# Package parts
# ─────────────────────────────────────────────────────────────────────────────

def _document_part(
    questions: Sequence[Question],
    writer: _BodyWriter,
    header: Optional[ExamHeader],
    exam_code: str,
) -> bytes:
    document = etree.Element(qn("w:document"), nsmap=NSMAP)
    body = sub(document, "w:body")
    if header is not None:
        header.append_to(body, exam_code, len(questions), writer.profile)
    for question in questions:
        writer.question(body, question)
    writer.section(body)
    return serialize_part(document)


def _styles_part(profile: PageProfile) -> bytes:
    styles = etree.Element(qn("w:styles"), nsmap={"w": NSMAP["w"]})
    defaults = sub(styles, "w:docDefaults")
    run_defaults = sub(defaults, "w:rPrDefault")
    holder = etree.Element("holder")
    props = run_properties(holder, profile)
    run_defaults.append(props)
    return serialize_part(styles)


def _footer_part(profile: PageProfile) -> bytes:
    footer = etree.Element(qn("w:ftr"), nsmap={"w": NSMAP["w"]})
    paragraph = add_paragraph(footer, align="center")
    size = profile.font_size_page_number

    begin = sub(paragraph, "w:r")
    run_properties(begin, profile, size=size)
    sub(begin, "w:fldChar", w_fldCharType="begin")

    instr_run = sub(paragraph, "w:r")
    run_properties(instr_run, profile, size=size)
    instr = sub(instr_run, "w:instrText")
    instr.set("{http://www.w3.org/XML/1998/namespace}space", "preserve")
    instr.text = " PAGE "

    end = sub(paragraph, "w:r")
    run_properties(end, profile, size=size)
    sub(end, "w:fldChar", w_fldCharType="end")
    return serialize_part(footer)


def _content_types_part(images: Sequence[_EmbeddedImage]) -> bytes:
    types = etree.Element(f"{{{CONTENT_TYPES_NS}}}Types", nsmap={None: CONTENT_TYPES_NS})

    def default(extension: str, content_type: str) -> None:
        el = etree.SubElement(types, f"{{{CONTENT_TYPES_NS}}}Default")
        el.set("Extension", extension)
        el.set("ContentType", content_type)

    def override(part: str, content_type: str) -> None:
        el = etree.SubElement(types, f"{{{CONTENT_TYPES_NS}}}Override")
        el.set("PartName", part)
        el.set("ContentType", content_type)

    default("rels", "application/vnd.openxmlformats-package.relationships+xml")
    default("xml", "application/xml")
    for extension in sorted({image.extension for image in images}):
        default(extension, IMAGE_CONTENT_TYPES.get(extension, "application/octet-stream"))
    override("/word/document.xml", _MAIN_CT)
    override("/word/styles.xml", _STYLES_CT)
    override("/word/footer1.xml", _FOOTER_CT)
    return serialize_part(types)


def _relationships_part(entries: Sequence[tuple[str, str, str]]) -> bytes:
    rels = etree.Element(f"{{{PKG_REL_NS}}}Relationships", nsmap={None: PKG_REL_NS})
    for rel_id, rel_type, target in entries:
        el = etree.SubElement(rels, f"{{{PKG_REL_NS}}}Relationship")
        el.set("Id", rel_id)
        el.set("Type", f"{_REL_TYPES}/{rel_type}")
        el.set("Target", target)
    return serialize_part(rels)


# ─────────────────────────────────────────────────────────────────────────────
# Entry points
# ─────────────────────────────────────────────────────────────────────────────

def write_document(
    questions: Sequence[Question],
    assets_dir: Optional[Path],
    output_path: Path,
    *,
    exam_code: str = "",
    header: Optional[ExamHeader] = None,
    profile: PageProfile = DECREE_30_PROFILE,
) -> Path:
    """
    Write questions to a .docx file.

    Question and option prefixes ("Câu N. ", "A. ") are added as bold
    runs unless the first segment already carries them. An image whose
    file cannot be found becomes the text "[Image not found: name]".

    The package is assembled in a temporary file next to output_path and
    moved into place only when complete.

    Args:
        questions: Questions in output order (numbers are printed as-is)
        assets_dir: Directory used to resolve relative asset paths
        output_path: Target .docx path
        exam_code: Printed in the header table
        header: Optional exam header table
        profile: Page/font profile

    Returns:
        output_path

    Raises:
        WriterError: If any part cannot be built or the file cannot be written
    """
    output_path = Path(output_path)
    registry = _ImageRegistry(Path(assets_dir) if assets_dir is not None else None)
    writer = _BodyWriter(registry, profile)

    try:
        document = _document_part(questions, writer, header, exam_code)
    except (etree.XMLSyntaxError, ValueError) as e:
        raise WriterError(output_path, f"cannot build document body: {e}") from e

    images = registry.images
    document_rels = [
        (_STYLES_REL_ID, "styles", "styles.xml"),
        (_FOOTER_REL_ID, "footer", "footer1.xml"),
    ] + [(image.rel_id, "image", image.target) for image in images]

    temp_path: Optional[Path] = None
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(suffix=".docx", dir=output_path.parent)
        os.close(fd)
        temp_path = Path(name)

        with zipfile.ZipFile(temp_path, "w", zipfile.ZIP_DEFLATED) as archive:
            archive.writestr("[Content_Types].xml", _content_types_part(images))
            archive.writestr(
                "_rels/.rels",
                _relationships_part([("rId1", "officeDocument", "word/document.xml")]),
            )
            archive.writestr("word/document.xml", document)
            archive.writestr("word/_rels/document.xml.rels", _relationships_part(document_rels))
            archive.writestr("word/styles.xml", _styles_part(profile))
            archive.writestr("word/footer1.xml", _footer_part(profile))
            for image in images:
                archive.write(image.source, f"word/{image.target}")

        temp_path.replace(output_path)
        temp_path = None
    except OSError as e:
        raise WriterError(output_path, f"cannot write package: {e}") from e
    finally:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)

    logger.info(
        f"Wrote {output_path.name}: {len(questions)} questions, {len(images)} images"
    )
    return output_path


def write_exam(
    exam: MixedExam,
    assets_dir: Optional[Path],
    output_path: Path,
    *,
    header: Optional[ExamHeader] = None,
    profile: PageProfile = DECREE_30_PROFILE,
) -> Path:
    """Write one mixed variant (display numbers, unlocked options)."""
    return write_document(
        exam.to_questions(),
        assets_dir,
        output_path,
        exam_code=exam.exam_code,
        header=header,
        profile=profile,
    )
