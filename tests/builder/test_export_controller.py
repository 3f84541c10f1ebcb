"""
Tests for the export controller and its configuration.
"""

import json
from pathlib import Path

import pytest

from siromix.builder import ExportConfig, ExportError, MixConfig, export_variants
from siromix.builder.controller import METADATA_FILENAME, _build_metadata
from siromix.core.models import ImageSegment, OptionItem, ParsedDocument, Question, TextSegment
from siromix.core.utils import load_mixed_exams, save_parsed_document


def _document(answered=True, image_path=""):
    questions = []
    for n in (1, 2, 3):
        stem = [TextSegment(f"Câu hỏi số {n}")]
        if image_path and n == 2:
            stem.append(ImageSegment(asset_path=image_path))
        questions.append(
            Question(
                number=n,
                stem=tuple(stem),
                options=tuple(OptionItem(label, content=(TextSegment(f"{n}{label}"),)) for label in "ABCD"),
                correct_label="C" if answered or n != 2 else "",
            )
        )
    return ParsedDocument(questions=tuple(questions))


@pytest.fixture
def workspace(tmp_path: Path, sample_image: Path) -> Path:
    ws = tmp_path / "ws"
    (ws / "assets").mkdir(parents=True)
    image = ws / "assets" / "image1.png"
    image.write_bytes(sample_image.read_bytes())
    save_parsed_document(_document(image_path=str(image)), ws / "parsed.json")
    return ws


class TestMixConfig:
    """Tests for MixConfig validation."""

    def test_init_when_defaults_then_four_variants(self):
        config = MixConfig()
        assert config.variant_count == 4
        assert config.exam_codes is None
        assert config.seed_multiplier == 1000

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"variant_count": 0}, "variant_count"),
            ({"variant_count": 901}, "variant_count"),
            ({"variant_count": 2, "exam_codes": ["123"]}, "exam codes given"),
            ({"variant_count": 1, "exam_codes": ["1a3"]}, "3 digits"),
            ({"seed_multiplier": 0}, "seed_multiplier"),
        ],
    )
    def test_init_when_invalid_then_raises_error(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            MixConfig(**kwargs)

    def test_init_when_codes_list_then_stored_as_tuple(self):
        assert MixConfig(variant_count=1, exam_codes=["101"]).exam_codes == ("101",)


class TestExportConfig:
    """Tests for ExportConfig."""

    def test_paths_when_built_then_follow_names(self, tmp_path: Path):
        config = ExportConfig(workspace=str(tmp_path / "ws"), output_dir=str(tmp_path / "out"))

        assert config.parsed_path == tmp_path / "ws" / "parsed.json"
        assert config.assets_dir == tmp_path / "ws" / "assets"
        assert config.document_path("123") == tmp_path / "out" / "De_123.docx"
        assert config.answer_key_path == tmp_path / "out" / "DapAn.xlsx"

    def test_init_when_answer_key_not_xlsx_then_raises_error(self, tmp_path: Path):
        with pytest.raises(ValueError, match="xlsx"):
            ExportConfig(workspace=tmp_path, output_dir=tmp_path, answer_key_name="key.csv")


class TestExportVariants:
    """Tests for export_variants()."""

    def test_export_when_codes_given_then_documents_and_key_written(self, workspace: Path, tmp_path: Path):
        out = tmp_path / "out"
        config = ExportConfig(
            workspace=workspace,
            output_dir=out,
            mix=MixConfig(variant_count=2, exam_codes=("135", "246")),
        )

        result = export_variants(config)

        assert [p.name for p in result.documents] == ["De_135.docx", "De_246.docx"]
        assert all(p.is_file() for p in result.documents)
        assert result.answer_key == out / "DapAn.xlsx"
        assert result.answer_key.is_file()
        assert [e.exam_code for e in result.exams] == ["135", "246"]
        assert load_mixed_exams(result.mixed_path) == list(result.exams)

    def test_export_when_done_then_metadata_written(self, workspace: Path, tmp_path: Path):
        config = ExportConfig(workspace=workspace, output_dir=tmp_path / "out", mix=MixConfig(variant_count=3))

        result = export_variants(config)

        saved = json.loads((tmp_path / "out" / METADATA_FILENAME).read_text(encoding="utf-8"))
        assert saved["variant_count"] == 3
        assert saved["question_count"] == 3
        assert saved["exam_codes"] == [e.exam_code for e in result.exams]
        assert saved == result.metadata

    def test_export_when_question_unanswered_then_refuses(self, tmp_path: Path):
        ws = tmp_path / "ws"
        save_parsed_document(_document(answered=False), ws / "parsed.json")
        out = tmp_path / "out"

        with pytest.raises(ExportError, match="2"):
            export_variants(ExportConfig(workspace=ws, output_dir=out))
        assert not out.exists()

    def test_export_when_workspace_empty_then_raises_export_error(self, tmp_path: Path):
        with pytest.raises(ExportError, match="No analyzed document"):
            export_variants(ExportConfig(workspace=tmp_path / "ws", output_dir=tmp_path / "out"))

    def test_export_when_parsed_file_corrupt_then_raises_export_error(self, tmp_path: Path):
        ws = tmp_path / "ws"
        ws.mkdir()
        (ws / "parsed.json").write_text("{", encoding="utf-8")

        with pytest.raises(ExportError, match="Failed to load"):
            export_variants(ExportConfig(workspace=ws, output_dir=tmp_path / "out"))

    def test_export_when_segment_field_mistyped_then_raises_export_error(self, tmp_path: Path):
        ws = tmp_path / "ws"
        save_parsed_document(_document(), ws / "parsed.json")
        data = json.loads((ws / "parsed.json").read_text(encoding="utf-8"))
        data["questions"][0]["stem"] = [{"type": "image", "asset_path": "x.png", "width_emu": "10"}]
        (ws / "parsed.json").write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(ExportError, match="width_emu"):
            export_variants(ExportConfig(workspace=ws, output_dir=tmp_path / "out"))

    def test_export_when_assets_dir_missing_then_warning(self, tmp_path: Path):
        ws = tmp_path / "ws"
        save_parsed_document(_document(), ws / "parsed.json")

        result = export_variants(
            ExportConfig(workspace=ws, output_dir=tmp_path / "out", mix=MixConfig(variant_count=1))
        )

        assert any("Assets directory missing" in w for w in result.warnings)

    def test_build_metadata_when_called_then_lists_files(self, workspace: Path, tmp_path: Path):
        config = ExportConfig(workspace=workspace, output_dir=tmp_path / "out")
        document = _document()

        metadata = _build_metadata(config, document, [], [tmp_path / "out" / "De_1.docx"], tmp_path / "k.xlsx")

        assert metadata["documents"] == ["De_1.docx"]
        assert metadata["answer_key"] == "k.xlsx"
        assert "generated_at" in metadata
