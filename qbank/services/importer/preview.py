"""Import preview: holds a transformed batch until the operator confirms or cancels."""

from enum import Enum
from typing import Protocol

from qbank.core.errors import PreviewStateError, RemoteError
from qbank.core.logging import get_logger
from qbank.schemas.question import QuestionCreate

logger = get_logger(__name__)


class PreviewState(str, Enum):
    """Import preview state."""

    IDLE = "IDLE"
    PREVIEWING = "PREVIEWING"
    COMMITTING = "COMMITTING"


class BulkCreator(Protocol):
    async def bulk_create(self, questions: list[QuestionCreate]) -> None: ...


class ImportPreview:
    """
    State machine for one pending import.

    IDLE -> PREVIEWING (open) -> COMMITTING (commit) -> IDLE on success,
    back to PREVIEWING on remote failure. cancel() discards from PREVIEWING.
    """

    def __init__(self):
        self.state = PreviewState.IDLE
        self.batch: list[QuestionCreate] = []
        self.last_error: str | None = None

    @property
    def is_open(self) -> bool:
        return self.state != PreviewState.IDLE

    @property
    def is_empty(self) -> bool:
        """Batch shown but holds zero questions (distinct from nothing shown)."""
        return self.state == PreviewState.PREVIEWING and not self.batch

    @property
    def can_confirm(self) -> bool:
        return self.state == PreviewState.PREVIEWING and bool(self.batch)

    def open(self, batch: list[QuestionCreate]) -> None:
        """Show a freshly transformed batch, replacing any pending one."""
        if self.state == PreviewState.COMMITTING:
            raise PreviewStateError("Cannot open a new preview while a commit is in flight")
        self.batch = list(batch)
        self.last_error = None
        self.state = PreviewState.PREVIEWING
        logger.info("Import preview opened", extra={"records": len(self.batch)})

    def cancel(self) -> None:
        if self.state == PreviewState.COMMITTING:
            raise PreviewStateError("Cannot cancel while a commit is in flight")
        self._reset()
        logger.info("Import preview cancelled")

    async def commit(self, store: BulkCreator) -> int:
        """
        Send the whole batch in one bulk-create call.

        Returns:
            Number of questions committed

        Raises:
            PreviewStateError: If not previewing or the batch is empty
            RemoteError: If the store fails; the batch is kept for retry
        """
        if self.state != PreviewState.PREVIEWING:
            raise PreviewStateError(f"Cannot commit from state {self.state.value}")
        if not self.batch:
            raise PreviewStateError("Cannot commit an empty import batch")

        self.state = PreviewState.COMMITTING
        try:
            await store.bulk_create(self.batch)
        except RemoteError as e:
            self.state = PreviewState.PREVIEWING
            self.last_error = e.message
            logger.warning(
                "Import commit failed",
                extra={"records": len(self.batch), "status_code": e.status_code},
            )
            raise
        except BaseException:
            self.state = PreviewState.PREVIEWING
            raise

        count = len(self.batch)
        self._reset()
        logger.info("Import committed", extra={"records": count})
        return count

    def _reset(self) -> None:
        self.batch = []
        self.last_error = None
        self.state = PreviewState.IDLE
