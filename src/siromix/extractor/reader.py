"""
Module: extractor.reader

Purpose:
    Markup source. Reads the main document part of a .docx container as
    a UTF-8 string.

Key Functions:
    - read_document_xml(): Return word/document.xml as text
    - read_part(): Raw bytes of any package part

Key Classes:
    - DocxReadError: Any zip/I/O/decoding failure, with the file path

Dependencies:
    - zipfile (std)

Used By:
    - extractor.pipeline
    - extractor.assets
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path

logger = logging.getLogger(__name__)

DOCUMENT_PART = "word/document.xml"


class DocxReadError(Exception):
    """Raised when a .docx container or one of its parts cannot be read."""

    def __init__(self, path: Path, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


def read_part(archive: zipfile.ZipFile, name: str, path: Path) -> bytes:
    """
    Read one part from an open container.

    Raises:
        DocxReadError: If the part is missing or unreadable
    """
    try:
        return archive.read(name)
    except KeyError as e:
        raise DocxReadError(path, f"missing part {name}") from e
    except (OSError, zipfile.BadZipFile) as e:
        raise DocxReadError(path, f"cannot read part {name}: {e}") from e


def read_document_xml(docx_path: Path) -> str:
    """
    Read the main document markup from a .docx file.

    Args:
        docx_path: Path to the .docx container

    Returns:
        Decoded markup of word/document.xml

    Raises:
        DocxReadError: If the file is missing, not a zip container, lacks
            the document part, or is not valid UTF-8
    """
    docx_path = Path(docx_path)
    try:
        with zipfile.ZipFile(docx_path) as archive:
            data = read_part(archive, DOCUMENT_PART, docx_path)
    except (OSError, zipfile.BadZipFile) as e:
        raise DocxReadError(docx_path, f"cannot open container: {e}") from e

    try:
        markup = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DocxReadError(docx_path, f"{DOCUMENT_PART} is not valid UTF-8: {e}") from e

    logger.debug(f"Read {len(markup)} characters of markup from {docx_path.name}")
    return markup
