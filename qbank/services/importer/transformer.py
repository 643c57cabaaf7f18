"""Validation and transformation of raw records into questions."""

import math
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from qbank.core.config import settings
from qbank.core.errors import RecordError, ValidationError
from qbank.core.logging import get_logger
from qbank.schemas.question import Difficulty, QuestionCreate, QuestionType
from qbank.services.importer.options import synthesize_options
from qbank.services.importer.parser import RawRecord

logger = get_logger(__name__)

DEFAULT_MARKS = 1
REQUIRED_FIELDS = ("content", "type")


def default_marks(value: Any) -> int | float:
    """Parse marks; anything unparseable, non-finite or not positive becomes 1."""
    if value is None or isinstance(value, bool):
        return DEFAULT_MARKS
    try:
        marks = float(str(value).strip())
    except ValueError:
        return DEFAULT_MARKS
    if not math.isfinite(marks) or marks <= 0:
        return DEFAULT_MARKS
    return int(marks) if marks.is_integer() else marks


def default_difficulty(value: Any) -> Difficulty:
    """Case-insensitive difficulty; missing or unknown values become medium."""
    if value is None:
        return Difficulty.MEDIUM
    try:
        return Difficulty(str(value).strip().lower())
    except ValueError:
        return Difficulty.MEDIUM


def normalize_type(value: Any) -> QuestionType | None:
    if value is None:
        return None
    try:
        return QuestionType(str(value).strip().lower())
    except ValueError:
        return None


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


class QuestionTransformer:
    """Turn a decoded batch into questions, all or nothing."""

    def __init__(self, repair_missing_correct: bool | None = None, max_rows: int | None = None):
        """
        Initialize transformer.

        Args:
            repair_missing_correct: Apply first-option fallback (defaults to settings)
            max_rows: Largest accepted batch (defaults to settings)
        """
        if repair_missing_correct is None:
            repair_missing_correct = settings.IMPORT_REPAIR_MISSING_CORRECT
        self.repair_missing_correct = repair_missing_correct
        self.max_rows = max_rows or settings.IMPORT_MAX_ROWS

    def transform(self, raw_records: Sequence[RawRecord]) -> list[QuestionCreate]:
        """
        Validate and transform every raw record.

        Args:
            raw_records: Output of ImportParser.parse

        Returns:
            Questions in input order

        Raises:
            ValidationError: If any record is invalid; no questions are returned
        """
        if len(raw_records) > self.max_rows:
            raise ValidationError(
                [
                    RecordError(
                        self.max_rows,
                        RecordError.LIMIT_EXCEEDED,
                        f"Import row count exceeds maximum allowed ({self.max_rows})",
                    )
                ]
            )

        questions: list[QuestionCreate] = []
        errors: list[RecordError] = []
        for index, raw in enumerate(raw_records):
            result = self.transform_record(index, raw)
            if isinstance(result, QuestionCreate):
                questions.append(result)
            else:
                errors.extend(result)

        if errors:
            logger.warning(
                "Import batch rejected",
                extra={
                    "records": len(raw_records),
                    "first_index": errors[0].index,
                    "error_count": len(errors),
                },
            )
            raise ValidationError(errors)

        logger.info("Import batch transformed", extra={"records": len(questions)})
        return questions

    def transform_record(self, index: int, raw: Any) -> QuestionCreate | list[RecordError]:
        """Transform one record, or return the problems that prevent it."""
        if not isinstance(raw, Mapping):
            return [
                RecordError(index, RecordError.INVALID_RECORD, "Record must be an object")
            ]

        errors: list[RecordError] = []
        content = _text(raw.get("content"))
        raw_type = _text(raw.get("type"))
        for field, value in (("content", content), ("type", raw_type)):
            if not value:
                errors.append(
                    RecordError(
                        index,
                        RecordError.MISSING_REQUIRED,
                        f"Required field '{field}' is missing or empty",
                        field,
                    )
                )
        question_type = normalize_type(raw_type)
        if raw_type and question_type is None:
            errors.append(
                RecordError(
                    index,
                    RecordError.INVALID_TYPE,
                    f"Invalid type '{raw_type}', must be one of "
                    + ", ".join(t.value for t in QuestionType),
                    "type",
                )
            )
        if errors:
            return errors

        try:
            options = synthesize_options(raw, question_type, repair=self.repair_missing_correct)
            if not options:
                return [
                    RecordError(index, RecordError.INVALID_OPTIONS, "No options provided", "options")
                ]
            if not any(o.is_correct for o in options):
                return [
                    RecordError(
                        index,
                        RecordError.INVALID_OPTIONS,
                        "No option matches the correct answer",
                        "correctAnswer",
                    )
                ]

            explanation = _text(raw.get("explanation")) or None
            return QuestionCreate(
                content=content,
                type=question_type,
                marks=default_marks(raw.get("marks")),
                difficulty=default_difficulty(raw.get("difficulty")),
                category=_text(raw.get("category")),
                options=options,
                explanation=explanation,
            )
        except PydanticValidationError as e:
            return [
                RecordError(
                    index,
                    RecordError.INVALID_RECORD,
                    err.get("msg", "Invalid value"),
                    ".".join(str(loc) for loc in err.get("loc", ())) or None,
                )
                for err in e.errors()
            ]
