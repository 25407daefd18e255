import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from studymate.domain.constants import DEFAULT_API_URL, REQUEST_TIMEOUT
from studymate.domain.session.errors import ApiError, AuthenticationError, NotFoundError
from studymate.domain.session.models import ItemKind, ItemSet, NoteSummary, ResultSnapshot
from studymate.domain.session.ports import StudyApi

from . import payloads

T = TypeVar("T")


class StudyApiAdapter(StudyApi):
    """Adapter for the study-assistant REST API (JSON over HTTP)."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        token: str | None = None,
        timeout: float = REQUEST_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize with the API base URL and an optional bearer token."""
        self.logger = logging.getLogger(__name__)
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self.logger.debug(f"StudyApiAdapter initialized with base_url={self.base_url}")

    async def __aenter__(self) -> "StudyApiAdapter":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # StudyApi
    # ------------------------------------------------------------------

    async def list_notes(self) -> list[NoteSummary]:
        data = await self._request("GET", "/notes")
        return self._decode(payloads.parse_notes, data)

    async def fetch_items(self, kind: ItemKind, note_id: str) -> ItemSet:
        if kind is ItemKind.FLASHCARD:
            data = await self._request("GET", f"/flashcards/note/{note_id}")
            return self._decode(payloads.parse_flashcard_set, note_id, data)
        data = await self._request("GET", f"/quiz/note/{note_id}")
        return self._decode(payloads.parse_quiz, note_id, data)

    async def generate_items(self, kind: ItemKind, note_id: str, count: int) -> ItemSet:
        if kind is ItemKind.FLASHCARD:
            data = await self._request(
                "POST", f"/flashcards/generate/{note_id}", json={"count": count}
            )
            return self._decode(payloads.parse_flashcard_set, note_id, data)
        data = await self._request(
            "POST", f"/quiz/generate/{note_id}", json={"questionCount": count}
        )
        return self._decode(payloads.parse_quiz, note_id, data)

    async def record_review(self, item_id: str, is_correct: bool) -> None:
        await self._request("PUT", f"/flashcards/{item_id}/review", json={"isCorrect": is_correct})

    async def submit_quiz(
        self, quiz_id: str, selections: list[int], elapsed_seconds: int
    ) -> ResultSnapshot:
        data = await self._request(
            "POST",
            f"/quiz/{quiz_id}/submit",
            json=payloads.submission_payload(selections, elapsed_seconds),
        )
        return self._decode(payloads.parse_submission, data, elapsed_seconds)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> Any:
        # Reuse one client for the adapter's lifetime
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)

        url = f"{self.base_url}{path}"
        try:
            resp = await self._client.request(method, url, json=json, headers=self._headers())
        except httpx.HTTPError as e:
            self.logger.error(f"Study API call {method} {path} failed: {e}")
            raise ApiError(f"Could not reach the study API: {e}") from e

        if resp.status_code == 401:
            # The token is no longer accepted; drop it so the user signs in again
            self.token = None
            self.logger.warning("Study API rejected the token; sign in again")
            raise AuthenticationError(self._error_message(resp), status_code=401)
        if resp.status_code == 404:
            raise NotFoundError(self._error_message(resp), status_code=404)
        if resp.is_error:
            message = self._error_message(resp)
            self.logger.error(f"Study API call {method} {path} returned {resp.status_code}: {message}")
            raise ApiError(message, status_code=resp.status_code)

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(f"Study API returned invalid JSON for {path}") from e

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"HTTP {resp.status_code} {resp.reason_phrase}".strip()

    def _decode(self, parser: Callable[..., T], *args: Any) -> T:
        try:
            return parser(*args)
        except (ValueError, TypeError, IndexError) as e:
            self.logger.error(f"Malformed study API response: {e}")
            raise ApiError(f"Malformed response from the study API: {e}") from e
