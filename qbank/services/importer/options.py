"""Answer option synthesis for imported records.

Turns the loosely-typed ``options`` / ``correctAnswer`` fields of a raw record into
the option list its question type requires. The repair heuristics are kept as
separate policy functions so each can be tested and switched off on its own.
"""

from collections.abc import Mapping
from typing import Any

from qbank.core.logging import get_logger
from qbank.schemas.question import FALSE_TEXT, TRUE_TEXT, QuestionOption, QuestionType

logger = get_logger(__name__)

OPTIONS_FIELD = "options"
CORRECT_ANSWER_FIELD = "correctAnswer"
OPTION_SEPARATOR = ","


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return TRUE_TEXT if value else FALSE_TEXT
    return str(value).strip()


def split_options(raw_options: Any) -> list[tuple[str, bool]]:
    """
    Normalize a raw options field into (text, explicitly_correct) pairs.

    Accepts a list (of strings or {text, isCorrect} objects) or a single
    comma-joined string. Texts are trimmed; blank entries are dropped.
    """
    if isinstance(raw_options, str):
        items: list[Any] = raw_options.split(OPTION_SEPARATOR)
    elif isinstance(raw_options, list):
        items = raw_options
    else:
        return []

    pairs: list[tuple[str, bool]] = []
    for item in items:
        if isinstance(item, Mapping):
            text = _as_text(item.get("text"))
            flagged = item.get("isCorrect") is True
        else:
            text = _as_text(item)
            flagged = False
        if text:
            pairs.append((text, flagged))
    return pairs


def repair_missing_correct_answer(options: list[QuestionOption]) -> list[QuestionOption]:
    """Mark the first option correct when none is. Empty lists are left alone."""
    if options and not any(o.is_correct for o in options):
        options[0] = options[0].model_copy(update={"is_correct": True})
        logger.info("Forced first option correct", extra={"first_option": options[0].text})
    return options


def enforce_single_correct(options: list[QuestionOption]) -> list[QuestionOption]:
    """Keep only the first correct option (single-answer questions)."""
    seen = False
    result = []
    for option in options:
        if option.is_correct and seen:
            option = option.model_copy(update={"is_correct": False})
        elif option.is_correct:
            seen = True
        result.append(option)
    return result


def true_false_options(correct_answer: Any) -> list[QuestionOption]:
    """Fixed True/False pair; anything other than 'true' marks False correct."""
    is_true = _as_text(correct_answer).lower() == "true"
    return [
        QuestionOption(text=TRUE_TEXT, is_correct=is_true),
        QuestionOption(text=FALSE_TEXT, is_correct=not is_true),
    ]


def synthesize_options(
    raw: Mapping[str, Any],
    question_type: QuestionType,
    repair: bool = True,
) -> list[QuestionOption]:
    """
    Build the type-correct option list for a raw record.

    Args:
        raw: Raw imported record
        question_type: Already-normalized question type
        repair: Apply the first-option fallback when nothing is marked correct

    Returns:
        Options with correctness flags set. May be empty for choice questions
        whose raw options field was empty.
    """
    if question_type == QuestionType.TRUE_FALSE:
        return true_false_options(raw.get(CORRECT_ANSWER_FIELD))

    correct_answer = _as_text(raw.get(CORRECT_ANSWER_FIELD))
    options = [
        QuestionOption(text=text, is_correct=flagged or text == correct_answer)
        for text, flagged in split_options(raw.get(OPTIONS_FIELD))
    ]

    if repair:
        options = repair_missing_correct_answer(options)
    if question_type == QuestionType.SINGLE_CHOICE:
        options = enforce_single_correct(options)
    return options
