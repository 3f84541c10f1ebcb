import pytest
import sys
import zipfile
from pathlib import Path
from xml.sax.saxutils import escape

from PIL import Image

# Add src to sys.path so we can import siromix
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())


NAMESPACES = {
    "w": "http://schemas.openxmlformats.org/wordprocessingml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "m": "http://schemas.openxmlformats.org/officeDocument/2006/math",
    "wp": "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing",
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
    "pic": "http://schemas.openxmlformats.org/drawingml/2006/picture",
    "v": "urn:schemas-microsoft-com:vml",
    "o": "urn:schemas-microsoft-com:office:office",
    "mc": "http://schemas.openxmlformats.org/markup-compatibility/2006",
}


class Wml:
    """Builds WordprocessingML snippets for tests."""

    ns = NAMESPACES

    def run(self, text: str, *, underline: bool = False, color: str = None, u_val: str = "single") -> str:
        props = ""
        if underline:
            props += f'<w:u w:val="{u_val}"/>'
        if color:
            props += f'<w:color w:val="{color}"/>'
        rpr = f"<w:rPr>{props}</w:rPr>" if props else ""
        return f'<w:r>{rpr}<w:t xml:space="preserve">{escape(text)}</w:t></w:r>'

    def para(self, *content: str) -> str:
        return "<w:p>" + "".join(content) + "</w:p>"

    def text(self, text: str) -> str:
        """Paragraph holding a single plain run."""
        return self.para(self.run(text))

    def math(self, symbol: str = "x") -> str:
        return f"<m:oMath><m:r><m:t>{escape(symbol)}</m:t></m:r></m:oMath>"

    def drawing(self, rel_id: str, cx: int = 1828800, cy: int = 914400) -> str:
        return (
            "<w:r><w:drawing><wp:inline>"
            f'<wp:extent cx="{cx}" cy="{cy}"/>'
            '<wp:docPr id="1" name="Picture 1"/>'
            f'<a:graphic><a:graphicData uri="{self.ns["pic"]}"><pic:pic>'
            f'<pic:blipFill><a:blip r:embed="{rel_id}"/></pic:blipFill>'
            "</pic:pic></a:graphicData></a:graphic>"
            "</wp:inline></w:drawing></w:r>"
        )

    def vml_image(self, rel_id: str, style: str = "width:72pt;height:36pt") -> str:
        return (
            f'<w:r><w:pict><v:shape style="{style}">'
            f'<v:imagedata r:id="{rel_id}"/>'
            "</v:shape></w:pict></w:r>"
        )

    def document(self, *paragraphs: str) -> str:
        declarations = " ".join(f'xmlns:{p}="{uri}"' for p, uri in self.ns.items())
        return (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            f"<w:document {declarations}><w:body>" + "".join(paragraphs) + "</w:body></w:document>"
        )

    def lines(self, *texts: str) -> str:
        """Document with one plain paragraph per text."""
        return self.document(*(self.text(t) for t in texts))


def write_docx(path: Path, markup: str, media: dict = None, rels: dict = None) -> Path:
    """
    Write a minimal .docx container.

    Args:
        markup: word/document.xml content
        media: {"image1.png": bytes} stored under word/media/
        rels: {"rId5": "media/image1.png"} image relationships
    """
    rel_ns = "http://schemas.openxmlformats.org/package/2006/relationships"
    image_type = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/image"
    entries = "".join(
        f'<Relationship Id="{rid}" Type="{image_type}" Target="{target}"/>'
        for rid, target in (rels or {}).items()
    )
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr(
            "[Content_Types].xml",
            '<?xml version="1.0" encoding="UTF-8"?>'
            '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
            '<Default Extension="xml" ContentType="application/xml"/></Types>',
        )
        archive.writestr("word/document.xml", markup)
        archive.writestr(
            "word/_rels/document.xml.rels",
            f'<?xml version="1.0" encoding="UTF-8"?><Relationships xmlns="{rel_ns}">{entries}</Relationships>',
        )
        for name, data in (media or {}).items():
            archive.writestr(f"word/media/{name}", data)
    return path


# Common test fixtures
@pytest.fixture
def wml() -> Wml:
    """WordprocessingML snippet builder."""
    return Wml()


@pytest.fixture
def make_docx(tmp_path: Path):
    """Factory writing a minimal .docx into tmp_path."""
    def _make(markup: str, media: dict = None, rels: dict = None, name: str = "source.docx") -> Path:
        return write_docx(tmp_path / name, markup, media, rels)
    return _make


@pytest.fixture
def sample_image(tmp_path: Path):
    """Create a simple test image."""
    img = Image.new("RGB", (200, 100), color="white")
    img_path = tmp_path / "sample.png"
    img.save(img_path)
    return img_path


@pytest.fixture
def sample_image_bytes(sample_image: Path) -> bytes:
    return sample_image.read_bytes()
