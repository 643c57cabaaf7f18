"""Question bank controller: list, import, export and bulk operations."""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from qbank.core.config import settings
from qbank.core.errors import ParseError, PreviewStateError, RemoteError, ValidationError
from qbank.core.logging import get_logger
from qbank.remote.question_store import NO_FILTER, QuestionStoreClient
from qbank.schemas.question import FileFormat, QuestionCreate, QuestionOut
from qbank.services.exporter import ExportedFile, export_demo, export_questions
from qbank.services.importer import ImportParser, ImportPreview, QuestionTransformer
from qbank.services.notifications import Notifier
from qbank.services.selection import BulkSelectionManager

logger = get_logger(__name__)

# Scalar fields a bulk edit may change; options stay per-question
EDITABLE_FIELDS = ("content", "marks", "difficulty", "category", "explanation")


@dataclass
class QuestionFilters:
    """Server-side list filters; empty or 'all' means no constraint."""

    search: str = ""
    type: str = NO_FILTER
    difficulty: str = NO_FILTER


@dataclass
class BulkDeleteResult:
    requested: int
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class QuestionBankController:
    """
    Composition root for the question bank screen.

    Errors from parsing, validation and the remote store are turned into
    notifications; every method leaves the controller in a stable state.
    """

    def __init__(
        self,
        store: QuestionStoreClient,
        notifier: Notifier | None = None,
        parser: ImportParser | None = None,
        transformer: QuestionTransformer | None = None,
        selection: BulkSelectionManager | None = None,
        preview: ImportPreview | None = None,
        delete_concurrency: int | None = None,
    ):
        self.store = store
        self.notifier = notifier or Notifier()
        self.parser = parser or ImportParser()
        self.transformer = transformer or QuestionTransformer()
        self.selection = selection or BulkSelectionManager()
        self.preview = preview or ImportPreview()
        self.delete_concurrency = delete_concurrency or settings.BULK_DELETE_CONCURRENCY

        self.filters = QuestionFilters()
        self.questions: list[QuestionOut] = []
        self.bin_count = 0
        self.loading = False

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    async def refresh(self) -> list[QuestionOut]:
        """Re-fetch the list with current filters. Clears the selection on success."""
        self.loading = True
        try:
            questions = await self.store.list_questions(
                search=self.filters.search,
                type=self.filters.type,
                difficulty=self.filters.difficulty,
            )
        except RemoteError as e:
            self.notifier.error(f"Failed to load questions: {e.message}")
            return self.questions
        finally:
            self.loading = False

        self.questions = questions
        self.selection.on_list_refreshed(questions)
        return self.questions

    async def apply_filters(
        self,
        search: str | None = None,
        type: str | None = None,
        difficulty: str | None = None,
    ) -> list[QuestionOut]:
        if search is not None:
            self.filters.search = search
        if type is not None:
            self.filters.type = type
        if difficulty is not None:
            self.filters.difficulty = difficulty
        return await self.refresh()

    async def refresh_bin_count(self) -> int:
        try:
            self.bin_count = await self.store.bin_count()
        except RemoteError as e:
            logger.warning("Bin count unavailable", extra={"error": e.message})
        return self.bin_count

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_file(self, file_content: bytes | str, file_format: FileFormat | str) -> bool:
        """Parse and transform an uploaded file, then open the preview."""
        try:
            raw_records = self.parser.parse(file_content, file_format)
            batch = self.transformer.transform(raw_records)
            self.preview.open(batch)
        except (ParseError, ValidationError, PreviewStateError) as e:
            self.notifier.error(f"Validation failed: {e.message}")
            return False

        if self.preview.is_empty:
            self.notifier.warning("No valid questions found to import.")
        return True

    async def confirm_import(self) -> bool:
        """Send the previewed batch to the store, then re-fetch the list."""
        try:
            count = await self.preview.commit(self.store)
        except PreviewStateError as e:
            self.notifier.warning(e.message)
            return False
        except RemoteError as e:
            self.notifier.error(f"Import failed: {e.message}")
            return False

        self.notifier.success(f"Successfully imported {count} questions")
        await self.refresh()
        return True

    def cancel_import(self) -> None:
        try:
            self.preview.cancel()
        except PreviewStateError as e:
            self.notifier.warning(e.message)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_selection(self, file_format: FileFormat | str) -> ExportedFile | None:
        selected = self.selection.get()
        if not selected:
            return None
        return export_questions(selected, file_format)

    def export_demo(self, file_format: FileFormat | str) -> ExportedFile:
        return export_demo(file_format)

    # ------------------------------------------------------------------
    # Edit
    # ------------------------------------------------------------------

    async def save_question(self, question: QuestionCreate, question_id: str | None = None) -> bool:
        """Create a question, or replace the one with ``question_id``."""
        try:
            if question_id is None:
                await self.store.create_question(question)
            else:
                await self.store.update_question(question_id, question)
        except RemoteError as e:
            self.notifier.error(f"Failed to save question: {e.message}")
            return False

        if question_id is None:
            self.notifier.success("Question created successfully")
        else:
            self.notifier.success("Question updated successfully")
        await self.refresh()
        return True

    async def bulk_update_selection(self, changes: Mapping[str, Any]) -> bool:
        """
        Apply the same field changes to every selected question in one request.

        Args:
            changes: Field name to new value; only EDITABLE_FIELDS are accepted

        Returns:
            True if the store accepted the batch. The list is re-fetched, which
            clears the selection.
        """
        selected = self.selection.get()
        if not selected:
            self.notifier.warning("No questions selected")
            return False

        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            self.notifier.error(f"Cannot bulk edit: {', '.join(unknown)}")
            return False
        if "content" in changes and not str(changes["content"] or "").strip():
            self.notifier.error("Validation failed: content must be non-empty")
            return False

        try:
            edited = [QuestionOut.model_validate({**q.model_dump(), **changes}) for q in selected]
        except PydanticValidationError as e:
            err = e.errors()[0]
            field_name = ".".join(str(loc) for loc in err.get("loc", ()))
            self.notifier.error(f"Validation failed: {field_name}: {err.get('msg')}")
            return False

        try:
            await self.store.bulk_update(edited)
        except RemoteError as e:
            self.notifier.error(f"Failed to save changes: {e.message}")
            return False

        logger.info(
            "Bulk update finished",
            extra={"records": len(edited), "fields": sorted(changes)},
        )
        self.notifier.success("All questions updated successfully")
        await self.refresh()
        return True

    # ------------------------------------------------------------------
    # Delete / recycle bin
    # ------------------------------------------------------------------

    async def bulk_delete(self) -> BulkDeleteResult | None:
        """
        Delete every selected question, at most ``delete_concurrency`` at a time.

        Deletes are independent: ids that succeed stay deleted when others fail.
        """
        ids = self.selection.ids()
        if not ids:
            return None

        semaphore = asyncio.Semaphore(self.delete_concurrency)

        async def _delete(question_id: str) -> tuple[str, str | None]:
            async with semaphore:
                try:
                    await self.store.delete_question(question_id)
                except RemoteError as e:
                    return question_id, e.message
                return question_id, None

        result = BulkDeleteResult(requested=len(ids))
        for question_id, error in await asyncio.gather(*(_delete(qid) for qid in ids)):
            if error is None:
                result.succeeded.append(question_id)
            else:
                result.failed[question_id] = error

        logger.info(
            "Bulk delete finished",
            extra={
                "requested": result.requested,
                "succeeded": len(result.succeeded),
                "failed": len(result.failed),
            },
        )
        if result.ok:
            self.notifier.success(f"{result.requested} questions moved to recycle bin")
        else:
            self.notifier.error(
                f"Failed to delete {len(result.failed)} of {result.requested} questions"
            )

        await asyncio.gather(self.refresh(), self.refresh_bin_count())
        return result

    async def delete_question(self, question_id: str) -> bool:
        try:
            await self.store.delete_question(question_id)
        except RemoteError as e:
            self.notifier.error(f"Failed to delete: {e.message}")
            return False

        self.notifier.success("Question moved to recycle bin")
        await asyncio.gather(self.refresh(), self.refresh_bin_count())
        return True

    async def list_bin(self) -> list[QuestionOut]:
        try:
            return await self.store.list_bin()
        except RemoteError as e:
            self.notifier.error(f"Failed to load recycle bin items: {e.message}")
            return []

    async def restore_question(self, question_id: str) -> bool:
        try:
            await self.store.restore_question(question_id)
        except RemoteError as e:
            self.notifier.error(f"Failed to restore item: {e.message}")
            return False

        self.notifier.success("Item restored successfully")
        await asyncio.gather(self.refresh(), self.refresh_bin_count())
        return True

    async def delete_permanently(self, question_id: str) -> bool:
        try:
            await self.store.delete_permanently(question_id)
        except RemoteError as e:
            self.notifier.error(f"Failed to delete item permanently: {e.message}")
            return False

        self.notifier.success("Item permanently deleted")
        await self.refresh_bin_count()
        return True
