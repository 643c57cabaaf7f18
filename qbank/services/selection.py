"""Selection set over the currently displayed question list."""

from collections.abc import Iterable

from qbank.core.logging import get_logger
from qbank.schemas.question import QuestionOut

logger = get_logger(__name__)


class BulkSelectionManager:
    """
    Track which rows of the current list are checked.

    Every list fetch bumps ``generation`` and empties the selection. Grid events
    may carry the generation they were rendered for; events from an older
    generation are dropped so bulk operations never act on rows no longer shown.
    """

    def __init__(self):
        self.generation = 0
        self._rows: dict[str, QuestionOut] = {}
        self._selected: set[str] = set()

    def on_list_refreshed(self, questions: Iterable[QuestionOut]) -> int:
        """Adopt a freshly fetched list; returns the new generation."""
        self.generation += 1
        self._rows = {q.id: q for q in questions if q.id}
        self._selected = set()
        return self.generation

    def _is_stale(self, generation: int | None) -> bool:
        if generation is not None and generation != self.generation:
            logger.debug(
                "Ignoring selection event from stale list",
                extra={"event_generation": generation, "generation": self.generation},
            )
            return True
        return False

    def toggle(self, question_id: str, selected: bool | None = None, generation: int | None = None) -> bool:
        """Flip (or set) one row; returns whether it is selected afterwards."""
        if self._is_stale(generation) or question_id not in self._rows:
            return False
        if selected is None:
            selected = question_id not in self._selected
        if selected:
            self._selected.add(question_id)
        else:
            self._selected.discard(question_id)
        return selected

    def set_selected(self, question_ids: Iterable[str], generation: int | None = None) -> int:
        """Replace the selection with the grid's selected rows."""
        if self._is_stale(generation):
            return self.count()
        self._selected = {qid for qid in question_ids if qid in self._rows}
        return self.count()

    def select_all(self) -> int:
        self._selected = set(self._rows)
        return self.count()

    def clear(self) -> None:
        self._selected = set()

    def count(self) -> int:
        return len(self._selected)

    def ids(self) -> list[str]:
        """Selected ids in list order."""
        return [qid for qid in self._rows if qid in self._selected]

    def get(self) -> list[QuestionOut]:
        """Selected records in list order."""
        return [self._rows[qid] for qid in self.ids()]
