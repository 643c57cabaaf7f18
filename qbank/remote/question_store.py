"""HTTP client for the remote question store."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from qbank.core.config import settings
from qbank.core.errors import RemoteError
from qbank.core.logging import get_logger
from qbank.schemas.question import QuestionBase, QuestionOut

logger = get_logger(__name__)

NO_FILTER = "all"


def _error_message(response: httpx.Response) -> str:
    """Server message verbatim when the body carries one."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    text = response.text.strip()
    return text or f"Request failed with status {response.status_code}"


class QuestionStoreClient:
    """Async client for /questions endpoints. Every failure surfaces as RemoteError."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {
            "Content-Type": "application/json",
            "X-Requested-With": "XMLHttpRequest",
        }
        token = token if token is not None else settings.API_TOKEN
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> QuestionStoreClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Question store timeout", extra={"method": method, "path": path})
            raise RemoteError(f"Request timed out: {method} {path}") from e
        except httpx.HTTPError as e:
            logger.warning(
                "Question store unreachable",
                extra={"method": method, "path": path, "error": str(e)},
            )
            raise RemoteError(str(e) or type(e).__name__) from e

        if resp.is_error:
            message = _error_message(resp)
            logger.warning(
                "Question store error",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": resp.status_code,
                    "error": message,
                },
            )
            raise RemoteError(message, status_code=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteError("Invalid JSON in response", status_code=resp.status_code) from e

    def _parse_questions(self, data: Any) -> list[QuestionOut]:
        if isinstance(data, dict):
            data = data.get("data", [])
        if not isinstance(data, list):
            raise RemoteError("Expected a list of questions")

        questions = []
        for row in data:
            try:
                questions.append(QuestionOut.model_validate(row))
            except PydanticValidationError as e:
                logger.warning(
                    "Skipping malformed question row",
                    extra={
                        "row_id": row.get("_id") if isinstance(row, dict) else None,
                        "error_count": e.error_count(),
                    },
                )
        return questions

    # ------------------------------------------------------------------
    # Question list
    # ------------------------------------------------------------------

    async def list_questions(
        self,
        search: str | None = None,
        type: str | None = None,
        difficulty: str | None = None,
    ) -> list[QuestionOut]:
        """GET /questions with optional filters; absent or 'all' means no constraint."""
        params = {}
        for key, value in (("search", search), ("type", type), ("difficulty", difficulty)):
            if value is not None and hasattr(value, "value"):
                value = value.value
            if value and value != NO_FILTER:
                params[key] = value
        data = await self._request("GET", "/questions", params=params)
        return self._parse_questions(data)

    async def create_question(self, question: QuestionBase) -> QuestionOut | None:
        data = await self._request("POST", "/questions", json=question.to_payload())
        return QuestionOut.model_validate(data) if isinstance(data, dict) else None

    async def update_question(self, question_id: str, question: QuestionBase) -> QuestionOut | None:
        data = await self._request("PUT", f"/questions/{question_id}", json=question.to_payload())
        return QuestionOut.model_validate(data) if isinstance(data, dict) else None

    async def delete_question(self, question_id: str) -> None:
        """Soft delete (moves the question to the recycle bin)."""
        await self._request("DELETE", f"/questions/{question_id}")

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    async def bulk_create(self, questions: Sequence[QuestionBase]) -> None:
        """POST /questions/bulk with the whole batch in one call."""
        await self._request("POST", "/questions/bulk", json=[q.to_payload() for q in questions])

    async def bulk_update(self, questions: Sequence[QuestionOut]) -> None:
        payload = []
        for q in questions:
            item = q.to_payload()
            item["_id"] = q.id
            payload.append(item)
        await self._request("PUT", "/questions/bulk-update", json=payload)

    # ------------------------------------------------------------------
    # Recycle bin
    # ------------------------------------------------------------------

    async def bin_count(self) -> int:
        data = await self._request("GET", "/questions/bin/count")
        if not isinstance(data, dict):
            raise RemoteError("Expected an object with 'count'")
        try:
            return int(data.get("count", 0))
        except (TypeError, ValueError) as e:
            raise RemoteError(f"Invalid bin count: {data.get('count')!r}") from e

    async def list_bin(self) -> list[QuestionOut]:
        data = await self._request("GET", "/questions/bin/all")
        return self._parse_questions(data)

    async def restore_question(self, question_id: str) -> None:
        await self._request("PUT", f"/questions/restore/{question_id}")

    async def delete_permanently(self, question_id: str) -> None:
        await self._request("DELETE", f"/questions/permanent/{question_id}")
