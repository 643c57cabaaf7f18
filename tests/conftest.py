"""Pytest configuration and shared fixtures."""

import itertools
from collections.abc import Callable
from typing import Any

import pytest

from qbank.core.errors import RemoteError
from qbank.schemas.question import QuestionBase, QuestionOut
from qbank.services.notifications import Notifier
from qbank.services.question_bank import QuestionBankController

# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)


class FakeQuestionStore:
    """In-memory stand-in for the remote question store with failure injection."""

    def __init__(self, questions: list[QuestionOut] | None = None):
        self.questions: dict[str, QuestionOut] = {q.id: q for q in questions or []}
        self.bin: dict[str, QuestionOut] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_delete_ids: set[str] = set()
        self.fail_bulk_create: str | None = None
        self.fail_list: str | None = None
        self.fail_bulk_update: str | None = None
        self._ids = itertools.count(1000)

    async def __aenter__(self) -> "FakeQuestionStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    async def list_questions(self, search=None, type=None, difficulty=None) -> list[QuestionOut]:
        self.calls.append(("list", {"search": search, "type": type, "difficulty": difficulty}))
        if self.fail_list:
            raise RemoteError(self.fail_list, status_code=500)
        rows = list(self.questions.values())
        if type and type != "all":
            rows = [q for q in rows if q.type.value == type]
        if difficulty and difficulty != "all":
            rows = [q for q in rows if q.difficulty.value == difficulty]
        if search:
            rows = [q for q in rows if search.lower() in q.content.lower()]
        return rows

    async def bulk_create(self, questions: list[QuestionBase]) -> None:
        self.calls.append(("bulk_create", [q.to_payload() for q in questions]))
        if self.fail_bulk_create:
            raise RemoteError(self.fail_bulk_create, status_code=400)
        for q in questions:
            question_id = f"q{next(self._ids)}"
            self.questions[question_id] = QuestionOut(id=question_id, **q.model_dump())

    async def create_question(self, question: QuestionBase) -> QuestionOut:
        self.calls.append(("create", question.to_payload()))
        question_id = f"q{next(self._ids)}"
        self.questions[question_id] = QuestionOut(id=question_id, **question.model_dump())
        return self.questions[question_id]

    async def update_question(self, question_id: str, question: QuestionBase) -> QuestionOut:
        self.calls.append(("update", (question_id, question.to_payload())))
        if question_id not in self.questions:
            raise RemoteError("Question not found", status_code=404)
        self.questions[question_id] = QuestionOut(id=question_id, **question.model_dump())
        return self.questions[question_id]

    async def bulk_update(self, questions: list[QuestionOut]) -> None:
        self.calls.append(("bulk_update", [q.id for q in questions]))
        if self.fail_bulk_update:
            raise RemoteError(self.fail_bulk_update, status_code=400)
        for q in questions:
            self.questions[q.id] = q

    async def delete_question(self, question_id: str) -> None:
        self.calls.append(("delete", question_id))
        if question_id in self.fail_delete_ids:
            raise RemoteError("Question is referenced by an exam", status_code=409)
        if question_id not in self.questions:
            raise RemoteError("Question not found", status_code=404)
        self.bin[question_id] = self.questions.pop(question_id)

    async def bin_count(self) -> int:
        self.calls.append(("bin_count", None))
        return len(self.bin)

    async def list_bin(self) -> list[QuestionOut]:
        self.calls.append(("list_bin", None))
        return list(self.bin.values())

    async def restore_question(self, question_id: str) -> None:
        self.calls.append(("restore", question_id))
        if question_id not in self.bin:
            raise RemoteError("Question not found", status_code=404)
        self.questions[question_id] = self.bin.pop(question_id)

    async def delete_permanently(self, question_id: str) -> None:
        self.calls.append(("delete_permanently", question_id))
        if question_id not in self.bin:
            raise RemoteError("Question not found", status_code=404)
        del self.bin[question_id]

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def make_question() -> Callable[..., QuestionOut]:
    """Factory for stored questions."""

    def _make(
        question_id: str,
        content: str | None = None,
        type: str = "single_choice",
        options: list[tuple[str, bool]] | None = None,
        **fields: Any,
    ) -> QuestionOut:
        if options is None:
            options = [("A", True), ("B", False), ("C", False)]
        return QuestionOut(
            id=question_id,
            content=content or f"Question {question_id}",
            type=type,
            options=[{"text": text, "isCorrect": correct} for text, correct in options],
            **fields,
        )

    return _make


@pytest.fixture
def store(make_question) -> FakeQuestionStore:
    """Store seeded with five questions q1..q5."""
    return FakeQuestionStore(
        [
            make_question("q1", "2+2=?", options=[("3", False), ("4", True)], difficulty="easy"),
            make_question("q2", "Sky is blue", type="true_false",
                          options=[("True", True), ("False", False)]),
            make_question("q3", "Pick primes", type="multiple_choice",
                          options=[("2", True), ("3", True), ("4", False)], difficulty="hard"),
            make_question("q4", "Capital of France", options=[("Paris", True), ("Rome", False)]),
            make_question("q5", "Largest ocean", options=[("Pacific", True), ("Indian", False)],
                          category="Geography"),
        ]
    )


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def controller(store, notifier) -> QuestionBankController:
    return QuestionBankController(store, notifier=notifier, delete_concurrency=2)
