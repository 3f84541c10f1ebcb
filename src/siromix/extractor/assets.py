"""
Module: extractor.assets

Purpose:
    Asset source. Copies the images referenced by the main document out
    of the .docx container and returns them as an order-stable list, one
    entry per image reference in reading order. Optionally rasterizes
    legacy vector formats (.wmf/.emf) with an external command.

Key Functions:
    - extract_media(): Media files in document order
    - convert_legacy_images(): Concurrent conversion, fully joined

Key Classes:
    - ExtractedAsset: One image reference
    - AssetExtractionError: I/O failure while extracting

Dependencies:
    - zipfile, subprocess, concurrent.futures (std)
    - lxml.etree: Relationship and document parsing

Used By:
    - extractor.pipeline
    - extractor.segments (AssetCursor consumes the list)
"""

from __future__ import annotations

import logging
import posixpath
import subprocess
import zipfile
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Sequence

from lxml import etree

from .config import LEGACY_IMAGE_EXTENSIONS, ExtractionConfig
from .markup import image_rel_id, iter_inline, iter_paragraphs
from .reader import DOCUMENT_PART, DocxReadError, read_part

logger = logging.getLogger(__name__)

RELS_PART = "word/_rels/document.xml.rels"
_PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"


class AssetExtractionError(Exception):
    """Raised when media cannot be extracted from a container."""

    def __init__(self, path: Path, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


@dataclass(frozen=True)
class ExtractedAsset:
    """
    One image reference of the source document.

    Attributes:
        file_name: Media file name inside the container ("image1.png")
        absolute_path: Extracted file on disk ("" if the part was missing)
        converted_path: Rasterized copy for legacy formats, if converted
    """
    file_name: str
    absolute_path: str
    converted_path: Optional[str] = None

    @property
    def resolved_path(self) -> str:
        """Path writers should use: the converted copy when present."""
        return self.converted_path or self.absolute_path

    @property
    def is_legacy(self) -> bool:
        return Path(self.file_name).suffix.lower() in LEGACY_IMAGE_EXTENSIONS


def extract_media(
    docx_path: Path,
    assets_dir: Path,
    markup: Optional[str] = None,
) -> list[ExtractedAsset]:
    """
    Extract every image referenced by the main document.

    The returned list has one entry per image element, in the order the
    parser will meet them, so the same file appears once per reference.
    Each distinct media part is written to assets_dir only once.

    Args:
        docx_path: Source .docx
        assets_dir: Destination directory (created if needed)
        markup: Already-read document markup, to avoid reading it twice

    Returns:
        Order-stable list of ExtractedAsset

    Raises:
        AssetExtractionError: If the container or a media part cannot be
            read, or a file cannot be written
    """
    docx_path = Path(docx_path)
    assets_dir = Path(assets_dir)

    try:
        with zipfile.ZipFile(docx_path) as archive:
            if markup is None:
                markup = read_part(archive, DOCUMENT_PART, docx_path).decode("utf-8-sig")
            targets = _read_image_targets(archive, docx_path)
            assets_dir.mkdir(parents=True, exist_ok=True)
            assets = _extract_in_document_order(archive, markup, targets, assets_dir)
    except DocxReadError as e:
        raise AssetExtractionError(docx_path, str(e)) from e
    except (OSError, zipfile.BadZipFile, UnicodeDecodeError) as e:
        raise AssetExtractionError(docx_path, f"media extraction failed: {e}") from e

    logger.info(
        f"Extracted {len({a.file_name for a in assets})} media files "
        f"({len(assets)} references) from {docx_path.name}"
    )
    return assets


def _read_image_targets(archive: zipfile.ZipFile, docx_path: Path) -> dict[str, Optional[str]]:
    """
    Map relationship id -> part name inside the container.

    External targets map to None.
    """
    if RELS_PART not in archive.namelist():
        return {}
    root = etree.fromstring(read_part(archive, RELS_PART, docx_path))
    targets: dict[str, Optional[str]] = {}
    for rel in root.iter(f"{{{_PKG_REL_NS}}}Relationship"):
        rid = rel.get("Id")
        target = rel.get("Target", "")
        if not rid:
            continue
        if rel.get("TargetMode") == "External":
            targets[rid] = None
        elif target.startswith("/"):
            targets[rid] = target.lstrip("/")
        else:
            targets[rid] = posixpath.normpath(posixpath.join("word", target))
    return targets


def _extract_in_document_order(
    archive: zipfile.ZipFile,
    markup: str,
    targets: dict[str, Optional[str]],
    assets_dir: Path,
) -> list[ExtractedAsset]:
    names = set(archive.namelist())
    written: dict[str, str] = {}
    assets: list[ExtractedAsset] = []

    for paragraph in iter_paragraphs(markup):
        for item in iter_inline(paragraph):
            if item.kind != "image":
                continue
            rid = image_rel_id(item.element)
            part = targets.get(rid)
            file_name = posixpath.basename(part) if part else (rid or "")

            if part is None or part not in names:
                logger.warning(f"Image relationship {rid!r} has no embedded media part")
                assets.append(ExtractedAsset(file_name=file_name, absolute_path=""))
                continue

            if part not in written:
                dest = assets_dir / file_name
                dest.write_bytes(archive.read(part))
                written[part] = str(dest.resolve())
            assets.append(ExtractedAsset(file_name=file_name, absolute_path=written[part]))

    return assets


def convert_legacy_images(
    assets: Sequence[ExtractedAsset],
    config: Optional[ExtractionConfig] = None,
) -> list[ExtractedAsset]:
    """
    Rasterize .wmf/.emf assets with the configured external command.

    One task per distinct convertible file runs on a thread pool; every
    task is joined before returning, so the list handed to the parser is
    final. A failed or timed-out conversion is logged and leaves that
    asset's converted_path empty.

    Args:
        assets: Extracted assets in document order
        config: Converter command, worker count and timeout

    Returns:
        New list, same order and length, with converted_path filled in
        where conversion succeeded
    """
    config = config or ExtractionConfig()
    legacy = sorted({a.absolute_path for a in assets if a.is_legacy and a.absolute_path})
    if not legacy:
        return list(assets)

    converted: dict[str, Optional[str]] = {}
    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        futures: dict[str, Future] = {
            path: executor.submit(_convert_one, Path(path), config) for path in legacy
        }
        for path, future in futures.items():
            try:
                converted[path] = future.result()
            except Exception as e:
                logger.error(f"Conversion failed for {Path(path).name}: {e}")
                converted[path] = None

    done = sum(1 for value in converted.values() if value)
    logger.info(f"Converted {done}/{len(legacy)} legacy images")

    return [
        replace(a, converted_path=converted.get(a.absolute_path)) if a.is_legacy else a
        for a in assets
    ]


def _convert_one(source: Path, config: ExtractionConfig) -> Optional[str]:
    output = source.with_suffix(".png")
    command = [
        part.format(input=str(source), outdir=str(source.parent), output=str(output))
        for part in config.converter_command
    ]
    try:
        subprocess.run(
            command,
            check=True,
            capture_output=True,
            timeout=config.conversion_timeout_s,
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"Conversion timed out after {config.conversion_timeout_s}s: {source.name}")
        return None
    except (subprocess.CalledProcessError, OSError) as e:
        logger.warning(f"Conversion command failed for {source.name}: {e}")
        return None

    if not output.exists():
        logger.warning(f"Converter produced no output for {source.name}")
        return None
    return str(output)
