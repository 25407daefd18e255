"""
Ports (interfaces) for the session layer.

These define the contracts that infrastructure adapters must implement.
The session controller depends on these abstractions, not on a concrete
HTTP client.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

from .models import ItemKind, ItemSet, NoteSummary, ResultSnapshot

NotificationLevel = Literal["info", "success", "error"]


class StudyApi(ABC):
    """
    Port for the remote study-assistant API.

    Implementations:
        - StudyApiAdapter: JSON over HTTP with httpx.
    """

    @abstractmethod
    async def list_notes(self) -> list[NoteSummary]:
        """Return the notes available to the current user."""
        pass

    @abstractmethod
    async def fetch_items(self, kind: ItemKind, note_id: str) -> ItemSet:
        """
        Fetch the existing items of the given kind for a note.

        An empty item set is a valid answer and is distinct from a missing note.

        Raises:
            NotFoundError: The note (or its item set) does not exist.
            ApiError: Any other remote failure.
        """
        pass

    @abstractmethod
    async def generate_items(self, kind: ItemKind, note_id: str, count: int) -> ItemSet:
        """
        Ask the API to generate a fresh item set for a note.

        Args:
            kind: Flashcards or quiz questions.
            note_id: The note to generate from.
            count: Requested number of items.

        Returns:
            The newly created, ordered item set.
        """
        pass

    @abstractmethod
    async def record_review(self, item_id: str, is_correct: bool) -> None:
        """Record one flashcard review outcome. The result is an acknowledgment only."""
        pass

    @abstractmethod
    async def submit_quiz(
        self, quiz_id: str, selections: list[int], elapsed_seconds: int
    ) -> ResultSnapshot:
        """
        Submit a full quiz attempt.

        Returns:
            The authoritative score, per-question correctness and explanations.
        """
        pass

    async def aclose(self) -> None:
        """Release any underlying connections. No-op by default."""
        return None


@dataclass(frozen=True)
class Notification:
    """A transient, user-visible message."""

    level: NotificationLevel
    message: str
    error: Exception | None = None


class Notifier(ABC):
    """Port for surfacing transient notifications to the user."""

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        pass
