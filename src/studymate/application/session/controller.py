"""
Session controller: the assessment state machine.

One controller drives either a flashcard review or a quiz attempt. It owns
the response tracker and the cursor, borrows items from the item store, and
routes every mutation through the operations below.

States::

    empty --load/generate--> in_progress --submit (quiz)--> completed
    completed --restart--> empty            (quiz: a fresh generate is required)
    in_progress --restart--> in_progress    (flashcards: counts are kept)

Remote side effects:
    - Flashcard reviews are two-phase. The local update (apply_review) always
      succeeds; the remote acknowledgment (acknowledge_review) may fail
      independently and never reverts it.
    - Quiz submission is authoritative remotely. Local state changes only once
      the server has returned the result.
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any

from studymate.domain.constants import DEFAULT_FLASHCARD_COUNT, DEFAULT_QUIZ_QUESTION_COUNT
from studymate.domain.session.errors import (
    ActionInProgressError,
    ApiError,
    GenerationError,
    IncompleteSubmissionError,
    LoadError,
    NotFoundError,
    OutOfRangeError,
    RecordReviewError,
    SessionStateError,
    SubmissionError,
)
from studymate.domain.session.models import (
    Item,
    ItemKind,
    ItemSet,
    Response,
    ResultSnapshot,
    ReviewOutcome,
    SessionStatus,
)
from studymate.domain.session.ports import Notification, Notifier, StudyApi

from ..notifications import LoggingNotifier
from .cursor import SessionCursor
from .item_store import ItemStore
from .response_tracker import ResponseTracker
from .scoring import ScoringEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewReceipt:
    """
    Outcome of one flashcard review.

    ``attempt_count`` and ``correct_count`` reflect the local update, which
    stands even when ``acknowledged`` is False.
    """

    item_index: int
    item_id: str
    outcome: ReviewOutcome
    attempt_count: int
    correct_count: int
    advanced: bool
    acknowledged: bool = False
    error: RecordReviewError | None = None


class SessionController:
    """
    Orchestrates item store, response tracker, cursor and scoring for one session.

    Args:
        api: The remote study API (port).
        kind: Flashcard review or quiz.
        notifier: Where transient user-visible notifications go.
        store: Item store to borrow items from; one is created if omitted.
        scoring: Custom scoring engine; uses default if not provided.
        clock: Returns the current epoch time in seconds.
        default_count: Item count requested by generate() when none is given.
        advance_on_review: Move to the next card after a flashcard review.
    """

    def __init__(
        self,
        api: StudyApi,
        kind: ItemKind,
        notifier: Notifier | None = None,
        *,
        store: ItemStore | None = None,
        scoring: ScoringEngine | None = None,
        clock: Callable[[], float] = time.time,
        default_count: int | None = None,
        advance_on_review: bool = True,
    ):
        self._api = api
        self.kind = kind
        self._notifier = notifier or LoggingNotifier()
        self._store = store or ItemStore(api, kind)
        self._scoring = scoring or ScoringEngine()
        self._clock = clock
        if default_count is None:
            default_count = (
                DEFAULT_FLASHCARD_COUNT if kind is ItemKind.FLASHCARD else DEFAULT_QUIZ_QUESTION_COUNT
            )
        self.default_count = default_count
        self.advance_on_review = advance_on_review

        self._tracker = ResponseTracker()
        self._cursor = SessionCursor()
        self._status = SessionStatus.EMPTY
        self._note_id: str | None = None
        self._started_at: float | None = None
        self._revealed = False
        self._result: ResultSnapshot | None = None

        # Per-action busy flags
        self._loading = False
        self._submitting = False
        self._reviews_in_flight: set[str] = set()
        self._closed = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def note_id(self) -> str | None:
        return self._note_id

    @property
    def items(self) -> tuple[Item, ...]:
        return self._store.items

    @property
    def responses(self) -> tuple[Response, ...]:
        return self._tracker.responses

    @property
    def cursor(self) -> int | None:
        return self._cursor.position

    @property
    def current_item(self) -> Item | None:
        if self._cursor.position is None:
            return None
        return self.items[self._cursor.position]

    @property
    def current_response(self) -> Response | None:
        if self._cursor.position is None:
            return None
        return self._tracker.get(self._cursor.position)

    @property
    def is_revealed(self) -> bool:
        """Whether the current flashcard is showing its answer side."""
        return self._revealed

    @property
    def result(self) -> ResultSnapshot | None:
        return self._result

    @property
    def started_at(self) -> float | None:
        return self._started_at

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def is_closed(self) -> bool:
        return self._closed

    def is_review_in_flight(self, index: int | None = None) -> bool:
        if index is None:
            return bool(self._reviews_in_flight)
        if not 0 <= index < len(self.items):
            raise OutOfRangeError(f"Item index {index} out of range for {len(self.items)} items")
        return self.items[index].id in self._reviews_in_flight

    def progress_percent(self) -> float | None:
        if self._cursor.position is None:
            return None
        return self._scoring.progress_percent(self._cursor.position, len(self.items))

    def accuracy_percent(self, index: int | None = None) -> int | None:
        """Accuracy of one card this session (current card by default)."""
        if index is None:
            index = self._cursor.position
        if index is None:
            return None
        response = self._tracker.get(index)
        return self._scoring.accuracy_percent(response.correct_count, response.attempt_count)

    def overall_accuracy_percent(self) -> int:
        return self._scoring.accuracy_percent(
            self._tracker.total_correct(), self._tracker.total_attempts()
        )

    def elapsed_seconds(self, now: float | None = None) -> int | None:
        if self._started_at is None:
            return None
        return self._scoring.elapsed_seconds(self._started_at, self._clock() if now is None else now)

    def mastered_count(self) -> int:
        return self._scoring.mastered_count(self.items)

    def all_answered(self) -> bool:
        return self._tracker.all_answered()

    def unanswered_indices(self) -> list[int]:
        return self._tracker.unanswered_indices()

    # ------------------------------------------------------------------
    # Populating
    # ------------------------------------------------------------------

    async def load(self, note_id: str) -> SessionStatus:
        """
        Load the existing items for a note and start a session on them.

        Returns:
            The resulting status: EMPTY when the note has no items.

        Raises:
            LoadError, NotFoundError: The session keeps its previous state.
        """
        self._ensure_open()
        self._ensure_idle_for_population()
        self._loading = True
        try:
            item_set = await self._store.load(note_id)
        except (LoadError, NotFoundError) as e:
            if not self._closed:
                self._notify("error", str(e), e)
            raise
        finally:
            self._loading = False

        if self._closed:
            logger.debug(f"Discarding items for note {note_id}: session closed")
            return self._status
        return self._start(item_set)

    async def generate(self, note_id: str, count: int | None = None) -> SessionStatus:
        """
        Generate a fresh item set for a note and start a session on it.

        Raises:
            GenerationError: The session keeps its previous state.
        """
        self._ensure_open()
        self._ensure_idle_for_population()
        count = self.default_count if count is None else count
        if count <= 0:
            raise ValueError(f"count must be positive, got {count}")

        self._loading = True
        try:
            item_set = await self._store.generate(note_id, count)
        except GenerationError as e:
            if not self._closed:
                self._notify("error", str(e), e)
            raise
        finally:
            self._loading = False

        if self._closed:
            logger.debug(f"Discarding generated items for note {note_id}: session closed")
            return self._status
        status = self._start(item_set)
        label = "Flashcards" if self.kind is ItemKind.FLASHCARD else "Quiz"
        self._notify("success", f"{label} generated successfully!")
        return status

    def _start(self, item_set: ItemSet) -> SessionStatus:
        count = len(item_set)
        self._note_id = item_set.note_id
        self._tracker.initialize(count)
        self._cursor.reset(count)
        self._revealed = False
        self._result = None

        if count == 0:
            self._status = SessionStatus.EMPTY
            self._started_at = None
            logger.info(f"No {self.kind.value} items for note {item_set.note_id}")
            return self._status

        self._status = SessionStatus.IN_PROGRESS
        self._started_at = self._clock()
        self._mark_viewed()
        logger.debug(f"Started {self.kind.value} session on {count} items")
        return self._status

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def advance(self) -> bool:
        return self._after_move(self._cursor.advance())

    def retreat(self) -> bool:
        return self._after_move(self._cursor.retreat())

    def jump_to(self, index: int) -> bool:
        """
        Move straight to an item.

        Raises:
            OutOfRangeError: ``index`` is outside the loaded items.
        """
        return self._after_move(self._cursor.jump_to(index))

    def _after_move(self, moved: bool) -> bool:
        if moved:
            self._revealed = False
            self._mark_viewed()
        return moved

    def _mark_viewed(self) -> None:
        # Quiz questions show everything there is to see on first view.
        if self.kind is ItemKind.QUIZ and self._cursor.position is not None:
            self._tracker.set_revealed(self._cursor.position, True)

    # ------------------------------------------------------------------
    # Flashcards
    # ------------------------------------------------------------------

    def flip(self) -> bool:
        """Toggle the current card between question and answer side."""
        self._require_kind(ItemKind.FLASHCARD, "flip")
        if self._cursor.position is None:
            return False
        self._revealed = not self._revealed
        if self._revealed:
            self._tracker.set_revealed(self._cursor.position, True)
        return self._revealed

    def apply_review(self, outcome: ReviewOutcome) -> ReviewReceipt:
        """
        Local phase of a review: record it and optionally move on.

        Always succeeds for a valid in-progress flashcard session.
        """
        self._require_kind(ItemKind.FLASHCARD, "review")
        self._require_status(SessionStatus.IN_PROGRESS, "review")
        index = self._cursor.position
        item = self.items[index]
        if item.id in self._reviews_in_flight:
            raise ActionInProgressError(f"A review of card {index + 1} is still being recorded")

        response = self._tracker.record_review(index, outcome)
        advanced = False
        if self.advance_on_review:
            if self._cursor.at_end:
                self._notify("success", "You've reviewed all flashcards!")
            else:
                advanced = self.advance()

        return ReviewReceipt(
            item_index=index,
            item_id=item.id,
            outcome=outcome,
            attempt_count=response.attempt_count,
            correct_count=response.correct_count,
            advanced=advanced,
        )

    async def acknowledge_review(self, item: Item, outcome: ReviewOutcome) -> RecordReviewError | None:
        """
        Remote phase of a review.

        Failures are reported as a notification and returned, never raised,
        and never roll back the local phase.
        """
        self._reviews_in_flight.add(item.id)
        try:
            await self._api.record_review(item.id, outcome.is_correct)
        except ApiError as e:
            error = RecordReviewError(f"Failed to record review: {e.message}")
            error.__cause__ = e
            if not self._closed:
                self._notify("error", str(error), error)
            return error
        finally:
            self._reviews_in_flight.discard(item.id)
        return None

    async def review(self, outcome: ReviewOutcome) -> ReviewReceipt:
        """Review the current card: local update first, then remote acknowledgment."""
        receipt = self.apply_review(outcome)
        item = self.items[receipt.item_index]
        error = await self.acknowledge_review(item, outcome)
        return ReviewReceipt(
            item_index=receipt.item_index,
            item_id=receipt.item_id,
            outcome=receipt.outcome,
            attempt_count=receipt.attempt_count,
            correct_count=receipt.correct_count,
            advanced=receipt.advanced,
            acknowledged=error is None,
            error=error,
        )

    # ------------------------------------------------------------------
    # Quiz
    # ------------------------------------------------------------------

    def select_choice(self, choice_index: int) -> None:
        """Select (or change) the answer to the current question."""
        self._require_kind(ItemKind.QUIZ, "select an answer")
        self._require_status(SessionStatus.IN_PROGRESS, "select an answer")
        if self._submitting:
            raise ActionInProgressError("The quiz is being submitted")
        item = self.current_item
        if not 0 <= choice_index < len(item.choices):
            raise OutOfRangeError(
                f"Choice {choice_index} out of range for {len(item.choices)} options"
            )
        self._tracker.record_selection(self._cursor.position, choice_index)

    async def submit(self) -> ResultSnapshot:
        """
        Submit the quiz.

        The server's answer is the result: nothing changes locally until it
        arrives, and nothing changes at all if it fails.

        Raises:
            IncompleteSubmissionError: Some questions are unanswered.
            ActionInProgressError: A submission is already in flight.
            SubmissionError: The remote submission failed.
        """
        self._require_kind(ItemKind.QUIZ, "submit")
        self._ensure_open()
        if self._status is SessionStatus.COMPLETED:
            raise SessionStateError("This quiz has already been submitted")
        self._require_status(SessionStatus.IN_PROGRESS, "submit")
        if self._submitting:
            raise ActionInProgressError("The quiz is already being submitted")

        unanswered = self._tracker.unanswered_indices()
        if unanswered:
            error = IncompleteSubmissionError(unanswered)
            self._notify("error", str(error), error)
            raise error

        quiz_id = self._store.source_id
        if quiz_id is None:
            raise SubmissionError("The quiz has no remote id and cannot be submitted")

        selections = self._tracker.selections()
        elapsed = self.elapsed_seconds()
        local_score = self._local_score(selections)

        self._submitting = True
        try:
            result = await self._api.submit_quiz(quiz_id, selections, elapsed)
        except ApiError as e:
            error = SubmissionError(f"Failed to submit quiz: {e.message}")
            if not self._closed:
                self._notify("error", str(error), error)
            raise error from e
        finally:
            self._submitting = False

        if self._closed:
            logger.debug(f"Discarding result of quiz {quiz_id}: session closed")
            return result

        if local_score is not None and not math.isclose(local_score, result.score, abs_tol=0.01):
            logger.warning(
                f"Server score {result.score:.2f} differs from local score {local_score:.2f} "
                f"for quiz {quiz_id}; using server score"
            )
        self._result = result
        self._status = SessionStatus.COMPLETED
        self._notify("success", f"Quiz completed! Score: {result.score:.0f}%")
        return result

    def _local_score(self, selections: list[int | None]) -> float | None:
        correct_indexes = [item.correct_choice_index for item in self.items]
        if any(c is None for c in correct_indexes):
            return None
        return self._scoring.session_score(selections, correct_indexes)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def restart(self) -> SessionStatus:
        """
        Start over.

        Quiz: discards the quiz and its result; a fresh generate() is needed.
        Flashcards: same cards from the first one, cumulative counts kept.
        """
        self._ensure_open()
        if self.kind is ItemKind.QUIZ:
            if self._submitting:
                raise ActionInProgressError("The quiz is being submitted")
            self._store.clear()
            self._tracker.initialize(0)
            self._cursor.reset(0)
            self._result = None
            self._started_at = None
            self._status = SessionStatus.EMPTY
            return self._status

        if self._status is SessionStatus.EMPTY:
            return self._status
        self._tracker.reset_outcomes()
        self._cursor.reset(len(self.items))
        self._revealed = False
        return self._status

    def close(self) -> None:
        """Release the session. Late remote results are discarded."""
        self._closed = True

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Plain-data view of the session for presentation layers."""
        current = self.current_item
        response = self.current_response
        return {
            "kind": self.kind.value,
            "status": self._status.value,
            "note_id": self._note_id,
            "cursor": self._cursor.position,
            "total": len(self.items),
            "progress_percent": self.progress_percent(),
            "elapsed_seconds": self.elapsed_seconds(),
            "revealed": self._revealed,
            "current_item": _public_item(current, self._answer_visible()) if current else None,
            "current_response": asdict(response) if response else None,
            "accuracy_percent": self.accuracy_percent(),
            "mastered_count": self.mastered_count(),
            "answered": self._tracker.answered_indices() if self.kind is ItemKind.QUIZ else [],
            "unanswered": self._tracker.unanswered_indices() if self.kind is ItemKind.QUIZ else [],
            "is_submitting": self._submitting,
            "result": asdict(self._result) if self._result else None,
        }

    def _answer_visible(self) -> bool:
        # Quiz answers stay hidden until the submitted result exists
        if self.kind is ItemKind.QUIZ:
            return self._result is not None
        return self._revealed

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _notify(self, level: str, message: str, error: Exception | None = None) -> None:
        self._notifier.notify(Notification(level=level, message=message, error=error))

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionStateError("The session has been closed")

    def _ensure_idle_for_population(self) -> None:
        if self._loading:
            raise ActionInProgressError("Items are already being loaded")
        if self._submitting:
            raise ActionInProgressError("The quiz is being submitted")

    def _require_kind(self, kind: ItemKind, action: str) -> None:
        if self.kind is not kind:
            raise SessionStateError(f"Cannot {action} in a {self.kind.value} session")

    def _require_status(self, status: SessionStatus, action: str) -> None:
        if self._status is not status:
            raise SessionStateError(f"Cannot {action} while the session is {self._status.value}")


def _public_item(item: Item, revealed: bool) -> dict[str, Any]:
    data = asdict(item)
    if not revealed:
        data["reveal"] = None
        data["correct_choice_index"] = None
    return data
