"""
Unit Tests for Paragraph Classification and the Parser

Tests question/option detection, option splitting and the parser state
machine.
"""

import logging

import pytest

from siromix.core.models import ImageSegment, MathSegment, TextSegment, segments_text
from siromix.extractor.assets import ExtractedAsset
from siromix.extractor.classification import (
    ParagraphKind,
    classify_paragraphs,
    find_option_labels,
)
from siromix.extractor.parser import ParserState, _DocumentBuilder, parse


def _kinds(markup):
    return [p.kind for p in classify_paragraphs(markup)]


class TestClassification:
    """Tests for classify_paragraph()."""

    @pytest.mark.parametrize(
        "text, number",
        [("Câu 1. 2+2=?", 1), ("Question 12. Why?", 12), ("Câu  7.", 7)],
    )
    def test_classify_when_question_prefix_then_question_with_number(self, wml, text, number):
        paragraph = next(iter(classify_paragraphs(wml.lines(text))))

        assert paragraph.kind is ParagraphKind.QUESTION
        assert paragraph.number == number

    def test_classify_when_question_then_prefix_stripped_from_stem(self, wml):
        paragraph = next(iter(classify_paragraphs(wml.lines("Câu 10. Đáp án đúng là gì?"))))

        assert segments_text(paragraph.segments) == "Đáp án đúng là gì?"

    @pytest.mark.parametrize("text", ["Câu1. x", "câu 1. x", "Answer A. yes", "1. x", "G. x"])
    def test_classify_when_no_prefix_then_continuation(self, wml, text):
        assert _kinds(wml.lines(text)) == [ParagraphKind.CONTINUATION]

    def test_classify_when_several_labels_on_line_then_split(self, wml):
        paragraph = next(iter(classify_paragraphs(wml.lines("A. 3    B. 4\tC. 5  #D. 6"))))

        assert paragraph.kind is ParagraphKind.OPTIONS
        assert [o.label for o in paragraph.options] == ["A", "B", "C", "D"]
        assert [segments_text(o.content) for o in paragraph.options] == ["3", "4", "5", "6"]
        assert [o.locked for o in paragraph.options] == [False, False, False, True]

    def test_find_labels_when_earlier_letter_inside_text_then_not_split(self):
        labels = find_option_labels("C. Blood group A. donors")

        assert [m.group(2) for m in labels] == ["C"]

    def test_find_labels_when_label_not_after_whitespace_then_not_split(self):
        assert len(find_option_labels("A. x.B. y")) == 1

    def test_classify_when_label_split_across_runs_then_offsets_by_character(self, wml):
        markup = wml.document(wml.para(wml.run("#"), wml.run("B"), wml.run(". Hà Nội")))
        paragraph = next(iter(classify_paragraphs(markup)))

        option = paragraph.options[0]
        assert (option.label_start, option.label_end) == (0, 3)
        assert len(paragraph.label_runs(option)) == 3
        assert segments_text(option.content) == "Hà Nội"


class TestParse:
    """Tests for parse()."""

    def test_parse_when_basic_example_then_one_question_four_options(self, wml):
        markup = wml.lines("Câu 1. 2+2=?", "A. 3", "#B. 4", "C. 5", "D. 6")

        document = parse(markup)

        assert len(document) == 1
        question = document.questions[0]
        assert question.number == 1
        assert segments_text(question.stem) == "2+2=?"
        assert question.labels == ("A", "B", "C", "D")
        assert question.get_option("B").locked
        assert segments_text(question.get_option("B").content) == "4"
        assert question.correct_label == ""

    def test_parse_when_no_question_yet_then_options_ignored(self, wml):
        document = parse(wml.lines("A. stray", "Câu 1. q", "A. x"))

        assert document.questions[0].labels == ("A",)
        assert segments_text(document.questions[0].get_option("A").content) == "x"

    def test_parse_when_question_has_no_options_then_discarded(self, wml, caplog):
        with caplog.at_level(logging.WARNING):
            document = parse(wml.lines("Câu 1. no options", "Câu 2. q", "A. x"))

        assert [q.number for q in document.questions] == [2]
        assert "no options" in caplog.text

    def test_parse_when_continuation_then_appended_to_stem_or_last_option(self, wml):
        markup = wml.lines("Câu 1. line one", "line two", "A. x", "B. y", "more of y")

        question = parse(markup).questions[0]

        assert segments_text(question.stem) == "line one line two"
        assert segments_text(question.get_option("B").content) == "y more of y"

    def test_parse_when_label_repeated_then_merged_into_previous_option(self, wml):
        question = parse(wml.lines("Câu 1. q", "A. x", "B. y", "B. z")).questions[0]

        assert question.labels == ("A", "B")
        assert segments_text(question.get_option("B").content) == "y z"

    def test_parse_when_numbering_has_gaps_then_numbers_kept(self, wml):
        document = parse(wml.lines("Câu 3. a", "A. x", "Câu 9. b", "A. y"))

        assert [q.number for q in document.questions] == [3, 9]

    def test_parse_when_images_and_math_then_segments_in_order(self, wml):
        markup = wml.document(
            wml.para(wml.run("Câu 1. Tính"), wml.run(" "), wml.math("x"), wml.drawing("rId7")),
            wml.text("A. 1"),
            wml.para(wml.run("B. "), wml.drawing("rId8")),
        )
        assets = [
            ExtractedAsset("image1.png", "/ws/assets/image1.png"),
            ExtractedAsset("image2.png", "/ws/assets/image2.png"),
        ]

        question = parse(markup, assets).questions[0]

        assert [type(s) for s in question.stem] == [TextSegment, MathSegment, ImageSegment]
        assert question.stem[2].asset_path == "/ws/assets/image1.png"
        option_b = question.get_option("B").content
        assert [type(s) for s in option_b] == [ImageSegment]
        assert option_b[0].asset_path == "/ws/assets/image2.png"

    def test_parse_when_empty_markup_then_empty_document(self):
        assert len(parse("")) == 0


class TestDocumentBuilder:
    """Tests for the parser state transitions."""

    def test_feed_when_paragraphs_arrive_then_state_follows_structure(self, wml):
        markup = wml.lines("Lời dặn", "Câu 1. Hỏi", "thêm", "A. x", "tiếp", "Câu 2. Hỏi", "B. y")
        builder = _DocumentBuilder()
        states = []

        for paragraph in classify_paragraphs(markup):
            builder.feed(paragraph)
            states.append(builder.state)

        assert states == [
            ParserState.NO_QUESTION,
            ParserState.IN_STEM,
            ParserState.IN_STEM,
            ParserState.IN_OPTIONS,
            ParserState.IN_OPTIONS,
            ParserState.IN_STEM,
            ParserState.IN_OPTIONS,
        ]
        document = builder.finish()
        assert builder.state is ParserState.NO_QUESTION
        assert segments_text(document.questions[0].stem) == "Hỏi thêm"
        assert segments_text(document.questions[0].options[0].content) == "x tiếp"
