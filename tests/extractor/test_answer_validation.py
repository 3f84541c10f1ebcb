"""
Unit Tests for Answer Validation

Tests correct-answer detection from the style of option label runs.
"""

import pytest

from siromix.extractor.parser import parse
from siromix.extractor.validation import (
    AnswerValidationError,
    LabeledOptionRuns,
    LabelRunStyle,
    ValidationErrorCode,
    collect_label_runs,
    detect_correct_label_for_question,
    is_label_marked_correct,
    validate,
)


def _option(wml, label, body, **style):
    """Option paragraph whose label run carries `style`."""
    return wml.para(wml.run(f"{label}.", **style), wml.run(f" {body}"))


class TestLabelRule:
    """Tests for the per-label style rule."""

    @pytest.mark.parametrize(
        "style, expected",
        [
            (LabelRunStyle(underline=True), True),
            (LabelRunStyle(color="FF0000"), True),
            (LabelRunStyle(color="ff0000"), True),
            (LabelRunStyle(color="C00000"), False),
            (LabelRunStyle(color="auto"), False),
            (LabelRunStyle(), False),
        ],
    )
    def test_is_marked_when_style_given_then_matches_rule(self, style, expected):
        assert is_label_marked_correct([style]) is expected

    def test_detect_when_one_marked_then_returns_label(self):
        options = [
            LabeledOptionRuns("A", (LabelRunStyle(),)),
            LabeledOptionRuns("B", (LabelRunStyle(), LabelRunStyle(underline=True))),
        ]

        assert detect_correct_label_for_question(1, options) == "B"

    def test_detect_when_none_marked_then_e020(self):
        verdict = detect_correct_label_for_question(4, [LabeledOptionRuns("A", (LabelRunStyle(),))])

        assert isinstance(verdict, AnswerValidationError)
        assert verdict.code is ValidationErrorCode.E020_CORRECT_MARK_MISSING
        assert verdict.question_number == 4

    def test_detect_when_two_marked_then_e021(self):
        options = [
            LabeledOptionRuns("A", (LabelRunStyle(underline=True),)),
            LabeledOptionRuns("C", (LabelRunStyle(color="FF0000"),)),
        ]

        verdict = detect_correct_label_for_question(2, options)

        assert verdict.code is ValidationErrorCode.E021_CORRECT_MARK_MULTIPLE
        assert verdict.to_dict() == {"code": "E021_CORRECT_MARK_MULTIPLE", "question_number": 2}
        assert str(verdict).startswith("E021_CORRECT_MARK_MULTIPLE")


class TestValidate:
    """Tests for validate() on document markup."""

    def _markup(self, wml, *option_paragraphs):
        return wml.document(wml.text("Câu 1. 2+2=?"), *option_paragraphs)

    def test_validate_when_label_underlined_then_correct_label_set(self, wml):
        markup = self._markup(
            wml,
            _option(wml, "A", "3"),
            _option(wml, "#B", "4", underline=True),
            _option(wml, "C", "5"),
        )

        document, errors = validate(markup, parse(markup))

        assert errors == []
        assert document.questions[0].correct_label == "B"
        assert document.is_validated

    def test_validate_when_label_red_then_correct_label_set(self, wml):
        markup = self._markup(wml, _option(wml, "A", "3", color="FF0000"), _option(wml, "B", "4"))

        document, errors = validate(markup, parse(markup))

        assert document.questions[0].correct_label == "A"

    def test_validate_when_only_body_underlined_then_not_marked(self, wml):
        body_marked = wml.para(wml.run("A. "), wml.run("3", underline=True))
        markup = self._markup(wml, body_marked, _option(wml, "B", "4"))

        document, errors = validate(markup, parse(markup))

        assert [e.code for e in errors] == [ValidationErrorCode.E020_CORRECT_MARK_MISSING]
        assert document.questions[0].correct_label == ""

    def test_validate_when_underline_none_then_not_marked(self, wml):
        markup = self._markup(wml, _option(wml, "A", "3", underline=True, u_val="none"))

        _, errors = validate(markup, parse(markup))

        assert errors[0].code is ValidationErrorCode.E020_CORRECT_MARK_MISSING

    def test_validate_when_options_share_paragraph_then_each_label_checked(self, wml):
        shared = wml.para(
            wml.run("A. 3  "),
            wml.run("B.", underline=True),
            wml.run(" 4  C. 5"),
        )
        markup = self._markup(wml, shared)

        document, errors = validate(markup, parse(markup))

        assert errors == []
        assert document.questions[0].correct_label == "B"

    def test_validate_when_several_questions_fail_then_all_reported(self, wml):
        markup = wml.document(
            wml.text("Câu 1. a"),
            _option(wml, "A", "x"),
            wml.text("Câu 2. b"),
            _option(wml, "A", "x", underline=True),
            _option(wml, "B", "y", color="FF0000"),
            wml.text("Câu 3. c"),
            _option(wml, "A", "x", underline=True),
        )

        document, errors = validate(markup, parse(markup))

        assert [(e.code, e.question_number) for e in errors] == [
            (ValidationErrorCode.E020_CORRECT_MARK_MISSING, 1),
            (ValidationErrorCode.E021_CORRECT_MARK_MULTIPLE, 2),
        ]
        assert [q.correct_label for q in document.questions] == ["", "", "A"]

    def test_collect_when_label_repeated_then_first_kept(self, wml):
        markup = self._markup(wml, _option(wml, "A", "x"), _option(wml, "A", "y", underline=True))

        groups = collect_label_runs(markup)

        assert len(groups) == 1
        number, options = groups[0]
        assert number == 1
        assert [o.label for o in options] == ["A"]
        assert not is_label_marked_correct(options[0].runs)

    def test_validate_when_document_from_other_markup_then_raises_error(self, wml):
        markup = self._markup(wml, _option(wml, "A", "x"))
        other = parse(wml.lines("Câu 1. a", "A. x", "Câu 2. b", "A. y"))

        with pytest.raises(ValueError, match="questions"):
            validate(markup, other)
