"""Tests for answer option synthesis and repair policies."""

from qbank.schemas.question import QuestionOption, QuestionType
from qbank.services.importer.options import (
    enforce_single_correct,
    repair_missing_correct_answer,
    split_options,
    synthesize_options,
)


def _pairs(options):
    return [(o.text, o.is_correct) for o in options]


class TestTrueFalse:
    def test_true_marks_true(self):
        options = synthesize_options({"correctAnswer": "TRUE"}, QuestionType.TRUE_FALSE)
        assert _pairs(options) == [("True", True), ("False", False)]

    def test_anything_else_marks_false(self):
        for answer in ("false", "", None, "yes", "maybe"):
            options = synthesize_options({"correctAnswer": answer}, QuestionType.TRUE_FALSE)
            assert _pairs(options) == [("True", False), ("False", True)]

    def test_declared_options_ignored(self):
        raw = {"options": "Yes,No,Maybe", "correctAnswer": "true"}
        options = synthesize_options(raw, QuestionType.TRUE_FALSE)
        assert [o.text for o in options] == ["True", "False"]

    def test_json_boolean_answer(self):
        options = synthesize_options({"correctAnswer": True}, QuestionType.TRUE_FALSE)
        assert _pairs(options) == [("True", True), ("False", False)]


class TestChoiceOptions:
    def test_comma_string_trimmed_and_matched(self):
        raw = {"options": " 3 , 4,5 ", "correctAnswer": " 4 "}
        options = synthesize_options(raw, QuestionType.SINGLE_CHOICE)
        assert _pairs(options) == [("3", False), ("4", True), ("5", False)]

    def test_array_options(self):
        raw = {"options": ["red", "green", "blue"], "correctAnswer": "blue"}
        options = synthesize_options(raw, QuestionType.MULTIPLE_CHOICE)
        assert _pairs(options) == [("red", False), ("green", False), ("blue", True)]

    def test_match_is_exact_not_case_insensitive(self):
        raw = {"options": "Paris,London", "correctAnswer": "paris"}
        options = synthesize_options(raw, QuestionType.SINGLE_CHOICE, repair=False)
        assert not any(o.is_correct for o in options)

    def test_explicit_flags_in_objects(self):
        raw = {
            "options": [
                {"text": "2", "isCorrect": True},
                {"text": "3", "isCorrect": True},
                {"text": "4", "isCorrect": False},
            ],
        }
        options = synthesize_options(raw, QuestionType.MULTIPLE_CHOICE)
        assert _pairs(options) == [("2", True), ("3", True), ("4", False)]

    def test_missing_options_gives_empty_list(self):
        assert synthesize_options({"correctAnswer": "x"}, QuestionType.SINGLE_CHOICE) == []

    def test_single_choice_duplicate_match_keeps_first(self):
        raw = {"options": "4,4,5", "correctAnswer": "4"}
        options = synthesize_options(raw, QuestionType.SINGLE_CHOICE)
        assert _pairs(options) == [("4", True), ("4", False), ("5", False)]

    def test_multiple_choice_duplicate_match_keeps_both(self):
        raw = {"options": "4,4,5", "correctAnswer": "4"}
        options = synthesize_options(raw, QuestionType.MULTIPLE_CHOICE)
        assert _pairs(options) == [("4", True), ("4", True), ("5", False)]


class TestRepairPolicy:
    def test_fallback_marks_first(self):
        raw = {"options": "a,b,c", "correctAnswer": "z"}
        options = synthesize_options(raw, QuestionType.MULTIPLE_CHOICE)
        assert _pairs(options) == [("a", True), ("b", False), ("c", False)]

    def test_fallback_disabled(self):
        raw = {"options": "a,b,c", "correctAnswer": "z"}
        options = synthesize_options(raw, QuestionType.MULTIPLE_CHOICE, repair=False)
        assert not any(o.is_correct for o in options)

    def test_repair_leaves_answered_and_empty_lists(self):
        answered = [QuestionOption(text="a"), QuestionOption(text="b", is_correct=True)]
        assert _pairs(repair_missing_correct_answer(answered)) == [("a", False), ("b", True)]
        assert repair_missing_correct_answer([]) == []

    def test_enforce_single_correct(self):
        options = [
            QuestionOption(text="a"),
            QuestionOption(text="b", is_correct=True),
            QuestionOption(text="c", is_correct=True),
        ]
        assert _pairs(enforce_single_correct(options)) == [("a", False), ("b", True), ("c", False)]


def test_split_options_drops_blank_and_non_list_values():
    assert split_options("a,,b, ") == [("a", False), ("b", False)]
    assert split_options(None) == []
    assert split_options(42) == []
    assert split_options([1, None, "x"]) == [("1", False), ("x", False)]
