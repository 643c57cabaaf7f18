"""Application-specific exceptions with stable error codes."""

from typing import Any


class QuestionBankError(Exception):
    """Base error with standardized error code."""

    code = "QUESTION_BANK_ERROR"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | list[Any] | None = None,
        code: str | None = None,
    ):
        """Initialize error."""
        super().__init__(message)
        self.message = message
        self.details = details
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for notifications and logs."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ParseError(QuestionBankError):
    """Uploaded file could not be decoded in its declared format."""

    code = "PARSE_ERROR"


class RecordError:
    """Validation failure for a single raw record."""

    # Error codes (stable)
    MISSING_REQUIRED = "MISSING_REQUIRED"
    INVALID_TYPE = "INVALID_TYPE"
    INVALID_OPTIONS = "INVALID_OPTIONS"
    INVALID_RECORD = "INVALID_RECORD"
    LIMIT_EXCEEDED = "LIMIT_EXCEEDED"

    def __init__(self, index: int, code: str, message: str, field: str | None = None):
        """
        Initialize record error.

        Args:
            index: 0-based position of the record in the decoded batch
            code: Error code (stable identifier)
            message: Human-readable message
            field: Field name that failed validation
        """
        self.index = index
        self.code = code
        self.message = message
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "code": self.code,
            "message": self.message,
            "field": self.field,
        }

    def __repr__(self) -> str:
        return f"RecordError(index={self.index}, code={self.code!r}, field={self.field!r})"


class ValidationError(QuestionBankError):
    """Decoded batch contains records that cannot become questions.

    The whole batch is rejected; ``index`` is the first offending position and
    ``errors`` holds every problem found.
    """

    code = "VALIDATION_ERROR"

    def __init__(self, errors: list[RecordError]):
        if not errors:
            raise ValueError("ValidationError requires at least one RecordError")
        self.errors = errors
        self.index = errors[0].index
        first = errors[0]
        message = f"Record {first.index}: {first.message}"
        if len(errors) > 1:
            message += f" (and {len(errors) - 1} more)"
        super().__init__(message, details=[e.to_dict() for e in errors])


class RemoteError(QuestionBankError):
    """The question store rejected or failed to service a request."""

    code = "REMOTE_ERROR"

    def __init__(self, message: str, status_code: int | None = None, details: Any | None = None):
        super().__init__(message, details=details)
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class PreviewStateError(QuestionBankError):
    """Illegal import preview transition."""

    code = "PREVIEW_STATE"
