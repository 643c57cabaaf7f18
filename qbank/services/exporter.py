"""Question export to the external CSV/JSON exchange format.

The exchange format carries one correct answer per row, so a multiple-choice
question with several correct options loses all but the first on export.
"""

import csv
import io
import json
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from qbank.core.logging import get_logger
from qbank.schemas.question import FileFormat, QuestionBase

logger = get_logger(__name__)

EXPORT_COLUMNS = [
    "content",
    "type",
    "options",
    "correctAnswer",
    "marks",
    "difficulty",
    "category",
]

MEDIA_TYPES = {
    FileFormat.CSV: "text/csv",
    FileFormat.JSON: "application/json",
}

# Two-row template shown to operators as the expected import shape
DEMO_ROWS: list[dict[str, Any]] = [
    {
        "content": "What is the capital of France?",
        "type": "single_choice",
        "options": "Paris,London,Berlin,Madrid",
        "correctAnswer": "Paris",
        "marks": 1,
        "difficulty": "easy",
        "category": "General Knowledge",
    },
    {
        "content": "React is a library, not a framework.",
        "type": "true_false",
        "options": "True,False",
        "correctAnswer": "True",
        "marks": 2,
        "difficulty": "medium",
        "category": "Tech",
    },
]


@dataclass(frozen=True)
class ExportedFile:
    """File materialized in memory, ready for delivery."""

    filename: str
    media_type: str
    content: bytes

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


def to_export_row(question: QuestionBase) -> dict[str, Any]:
    """Flatten one question into an exchange-format row."""
    correct = question.correct_options()
    return {
        "content": question.content,
        "type": question.type.value,
        "options": ",".join(o.text for o in question.options),
        "correctAnswer": correct[0].text if correct else "",
        "marks": question.marks,
        "difficulty": question.difficulty.value,
        "category": question.category,
    }


def render_rows(rows: Sequence[dict[str, Any]], file_format: FileFormat) -> bytes:
    if file_format == FileFormat.JSON:
        return json.dumps(list(rows), indent=2, ensure_ascii=False).encode("utf-8")

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")


def export_questions(
    questions: Sequence[QuestionBase],
    file_format: FileFormat | str,
    filename: str | None = None,
) -> ExportedFile:
    """
    Serialize questions for download.

    Args:
        questions: Records to export, in order
        file_format: "csv" or "json"
        filename: Override the timestamped default name

    Returns:
        ExportedFile with rendered content
    """
    fmt = FileFormat.normalize(file_format)
    rows = [to_export_row(q) for q in questions]
    if filename is None:
        filename = f"exported_questions_{int(time.time() * 1000)}.{fmt.value}"

    logger.info("Questions exported", extra={"format": fmt.value, "records": len(rows)})
    return ExportedFile(
        filename=filename,
        media_type=MEDIA_TYPES[fmt],
        content=render_rows(rows, fmt),
    )


def export_demo(file_format: FileFormat | str) -> ExportedFile:
    """Render the fixed demonstration dataset."""
    fmt = FileFormat.normalize(file_format)
    return ExportedFile(
        filename=f"questions_demo.{fmt.value}",
        media_type=MEDIA_TYPES[fmt],
        content=render_rows(DEMO_ROWS, fmt),
    )
