"""
Unit Tests for parsed.json Validation

Tests basic structural checks and strict jsonschema validation.
"""

import pytest

from siromix.core.schemas import SchemaError, validate_parsed_document


def _valid() -> dict:
    return {
        "schema_version": 1,
        "questions": [
            {
                "number": 1,
                "stem": [{"type": "text", "text": "2+2=?", "raw_xml": ""}],
                "options": [
                    {"label": "A", "locked": False, "content": [{"type": "text", "text": "3"}]},
                    {"label": "B", "locked": True, "content": [{"type": "math", "omml": "<m:oMath/>"}]},
                ],
                "correct_label": "B",
            }
        ],
    }


class TestValidateParsedDocument:
    """Tests for validate_parsed_document()."""

    def test_validate_when_valid_then_no_error(self):
        validate_parsed_document(_valid())
        validate_parsed_document(_valid(), strict=True)

    def test_validate_when_questions_missing_then_raises_error(self):
        with pytest.raises(SchemaError, match="questions"):
            validate_parsed_document({"schema_version": 1})

    def test_validate_when_version_unsupported_then_path_is_version(self):
        data = _valid()
        data["schema_version"] = 99

        with pytest.raises(SchemaError) as exc:
            validate_parsed_document(data)
        assert exc.value.path == "schema_version"

    def test_validate_when_negative_number_then_path_points_to_field(self):
        data = _valid()
        data["questions"][0]["number"] = -4

        with pytest.raises(SchemaError) as exc:
            validate_parsed_document(data)
        assert exc.value.path == "questions[0].number"

    def test_validate_when_no_options_then_raises_error(self):
        data = _valid()
        data["questions"][0]["options"] = []

        with pytest.raises(SchemaError, match="non-empty"):
            validate_parsed_document(data)

    def test_validate_when_correct_label_unknown_then_raises_error(self):
        data = _valid()
        data["questions"][0]["correct_label"] = "D"

        with pytest.raises(SchemaError) as exc:
            validate_parsed_document(data)
        assert exc.value.path == "questions[0].correct_label"

    def test_validate_when_segment_type_unknown_then_path_points_to_segment(self):
        data = _valid()
        data["questions"][0]["stem"][0]["type"] = "table"

        with pytest.raises(SchemaError) as exc:
            validate_parsed_document(data)
        assert exc.value.path == "questions[0].stem[0].type"

    def test_validate_when_text_lacks_field_then_path_points_to_field(self):
        data = _valid()
        del data["questions"][0]["stem"][0]["text"]

        with pytest.raises(SchemaError) as exc:
            validate_parsed_document(data)
        assert exc.value.path == "questions[0].stem[0].text"

    @pytest.mark.parametrize(
        "segment, field",
        [
            ({"type": "image", "asset_path": "x.png", "width_emu": "10"}, "width_emu"),
            ({"type": "image", "asset_path": "x.png", "height_emu": -1}, "height_emu"),
            ({"type": "image", "asset_path": "x.png", "width_emu": True}, "width_emu"),
            ({"type": "image", "asset_path": 7}, "asset_path"),
            ({"type": "math", "omml": ["<m:oMath/>"]}, "omml"),
            ({"type": "text", "text": "x", "raw_xml": 0}, "raw_xml"),
        ],
    )
    def test_validate_when_segment_field_mistyped_then_path_points_to_field(self, segment, field):
        data = _valid()
        data["questions"][0]["options"][0]["content"] = [segment]

        with pytest.raises(SchemaError) as exc:
            validate_parsed_document(data)
        assert exc.value.path == f"questions[0].options[0].content[0].{field}"

    def test_validate_when_image_fields_omitted_then_no_error(self):
        data = _valid()
        data["questions"][0]["stem"].append({"type": "image"})

        validate_parsed_document(data)
        validate_parsed_document(data, strict=True)
