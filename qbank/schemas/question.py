"""Pydantic schemas for the question bank."""

from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PositiveFloat,
    PositiveInt,
    field_validator,
    model_validator,
)

# Validation caps (input hardening)
CONTENT_MAX_LENGTH = 4000
EXPLANATION_MAX_LENGTH = 12000
OPTION_MAX_LENGTH = 500

TRUE_TEXT = "True"
FALSE_TEXT = "False"


class QuestionType(str, Enum):
    """Supported question types."""

    MULTIPLE_CHOICE = "multiple_choice"
    SINGLE_CHOICE = "single_choice"
    TRUE_FALSE = "true_false"


class Difficulty(str, Enum):
    """Question difficulty levels."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class FileFormat(str, Enum):
    """Supported import/export file formats."""

    CSV = "csv"
    JSON = "json"

    @classmethod
    def normalize(cls, value: "FileFormat | str") -> "FileFormat":
        """Case-insensitive lookup. Raises ValueError for unknown formats."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


class QuestionOption(BaseModel):
    """One answer option."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: str
    is_correct: bool = Field(default=False, alias="isCorrect")


class QuestionBase(BaseModel):
    """Base schema for question (shared fields). No length caps: stored rows are taken as-is."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    content: str = Field(..., description="Question stem")
    type: QuestionType
    marks: PositiveInt | PositiveFloat = Field(default=1)
    difficulty: Difficulty = Field(default=Difficulty.MEDIUM)
    category: str = Field(default="")
    options: list[QuestionOption] = Field(default_factory=list)
    explanation: str | None = Field(None)

    @field_validator("category", mode="before")
    @classmethod
    def null_category_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    def correct_options(self) -> list[QuestionOption]:
        return [o for o in self.options if o.is_correct]

    def to_payload(self) -> dict[str, Any]:
        """Wire shape expected by the question store (no id, camelCase flags)."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"id"},
        )


class QuestionCreate(QuestionBase):
    """Question ready to be persisted. Enforces length caps and option invariants per type."""

    content: str = Field(..., max_length=CONTENT_MAX_LENGTH, description="Question stem")
    explanation: str | None = Field(None, max_length=EXPLANATION_MAX_LENGTH)

    @field_validator("options")
    @classmethod
    def cap_option_length(cls, v: list[QuestionOption]) -> list[QuestionOption]:
        for option in v:
            if len(option.text) > OPTION_MAX_LENGTH:
                raise ValueError(f"option text exceeds {OPTION_MAX_LENGTH} characters")
        return v

    @model_validator(mode="after")
    def check_invariants(self) -> "QuestionCreate":
        if not self.content.strip():
            raise ValueError("content must be non-empty")
        if not self.options:
            raise ValueError("options must be non-empty")

        correct = len(self.correct_options())
        if self.type == QuestionType.TRUE_FALSE:
            texts = [o.text for o in self.options]
            if texts != [TRUE_TEXT, FALSE_TEXT]:
                raise ValueError("true_false options must be exactly 'True', 'False'")
            if correct != 1:
                raise ValueError("true_false requires exactly one correct option")
        elif self.type == QuestionType.SINGLE_CHOICE:
            if correct != 1:
                raise ValueError("single_choice requires exactly one correct option")
        elif correct < 1:
            raise ValueError("multiple_choice requires at least one correct option")
        return self


class QuestionOut(QuestionBase):
    """Question as returned by the question store."""

    id: str | None = Field(default=None, validation_alias=AliasChoices("_id", "id"))
