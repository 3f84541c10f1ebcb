"""
Module: segments

Purpose:
    Provides the Segment tagged union - the atomic ordered content unit
    inside a question stem or option. Each variant carries its interpreted
    fields plus the raw markup it was read from, so writers can reproduce
    the original content verbatim where that matters (math).

Key Classes:
    - TextSegment: Plain text run(s)
    - ImageSegment: Inline image correlated to an extracted asset
    - MathSegment: Inline OMML expression (opaque payload)

Key Functions:
    - segment_from_dict(): Deserialize any segment variant
    - segments_text(): Plain-text projection used by tests and previews

Dependencies:
    - dataclasses (std)

Used By:
    - core.models.questions
    - core.models.mixed
    - extractor.segments
    - builder.output.docx_writer
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, Union

# 1 inch = 914400 EMU
EMU_PER_INCH = 914400
DEFAULT_IMAGE_EMU = EMU_PER_INCH


@dataclass(frozen=True)
class TextSegment:
    """
    Text content (immutable).

    Attributes:
        text: Interpreted text, already trimmed by the extractor
        raw_xml: Original markup of the enclosing run(s)
    """

    kind: ClassVar[str] = "text"

    text: str
    raw_xml: str = ""

    def to_dict(self) -> dict:
        return {"type": self.kind, "text": self.text, "raw_xml": self.raw_xml}

    @classmethod
    def from_dict(cls, data: dict) -> TextSegment:
        return cls(text=data["text"], raw_xml=data.get("raw_xml", ""))


@dataclass(frozen=True)
class ImageSegment:
    """
    Inline image or embedded object (immutable).

    Attributes:
        asset_path: Path of the correlated extracted asset ("" if none was left)
        raw_xml: Original drawing/object markup
        width_emu: Display width parsed from the element geometry
        height_emu: Display height parsed from the element geometry

    Invariants:
        - width_emu and height_emu are non-negative (0 means "unknown")
    """

    kind: ClassVar[str] = "image"

    asset_path: str
    raw_xml: str = ""
    width_emu: int = DEFAULT_IMAGE_EMU
    height_emu: int = DEFAULT_IMAGE_EMU

    def __post_init__(self) -> None:
        if self.width_emu < 0 or self.height_emu < 0:
            raise ValueError(
                f"Image dimensions must be non-negative: {self.width_emu}x{self.height_emu}"
            )

    def to_dict(self) -> dict:
        return {
            "type": self.kind,
            "asset_path": self.asset_path,
            "raw_xml": self.raw_xml,
            "width_emu": self.width_emu,
            "height_emu": self.height_emu,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ImageSegment:
        return cls(
            asset_path=data.get("asset_path", ""),
            raw_xml=data.get("raw_xml", ""),
            width_emu=data.get("width_emu", DEFAULT_IMAGE_EMU),
            height_emu=data.get("height_emu", DEFAULT_IMAGE_EMU),
        )


@dataclass(frozen=True)
class MathSegment:
    """
    Inline math expression (immutable).

    The OMML is never interpreted; it is carried as an opaque payload.

    Attributes:
        omml: The math element markup on its own
        raw_xml: omml plus the whitespace-only run immediately before it, if any
    """

    kind: ClassVar[str] = "math"

    omml: str
    raw_xml: str = ""

    @property
    def payload(self) -> str:
        """Markup to write back: the original slice when known."""
        return self.raw_xml or self.omml

    def to_dict(self) -> dict:
        return {"type": self.kind, "omml": self.omml, "raw_xml": self.raw_xml}

    @classmethod
    def from_dict(cls, data: dict) -> MathSegment:
        return cls(omml=data["omml"], raw_xml=data.get("raw_xml", ""))


Segment = Union[TextSegment, ImageSegment, MathSegment]

_SEGMENT_TYPES = {cls.kind: cls for cls in (TextSegment, ImageSegment, MathSegment)}


def segment_from_dict(data: dict[str, Any]) -> Segment:
    """
    Deserialize a segment of any variant.

    Raises:
        ValueError: If the "type" tag is unknown
    """
    kind = data.get("type")
    try:
        cls = _SEGMENT_TYPES[kind]
    except KeyError:
        raise ValueError(f"Unknown segment type: {kind!r}") from None
    return cls.from_dict(data)


def segments_text(segments: Iterable[Segment]) -> str:
    """
    Join the text of all text segments with single spaces.

    Math and images contribute nothing. Used for previews and for
    content comparisons that must ignore markup.
    """
    return " ".join(s.text for s in segments if isinstance(s, TextSegment) and s.text)
