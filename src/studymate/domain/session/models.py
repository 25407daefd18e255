"""
Domain models for assessment sessions.

Flashcard review and quiz taking share one item/response model, tagged by
``ItemKind``. These are pure data structures with no I/O.
"""

from dataclasses import dataclass, field
from enum import Enum


class ItemKind(str, Enum):
    FLASHCARD = "flashcard"
    QUIZ = "quiz"


class ReviewOutcome(str, Enum):
    """User-asserted result of reviewing a flashcard."""

    CORRECT = "correct"
    INCORRECT = "incorrect"

    @property
    def is_correct(self) -> bool:
        return self is ReviewOutcome.CORRECT


class SessionStatus(str, Enum):
    EMPTY = "empty"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Item:
    """
    One assessable unit: a flashcard or a quiz question.

    Attributes:
        id: Opaque identifier assigned by the remote API.
        kind: Flashcard or quiz question.
        prompt: Question text / front of the card.
        reveal: Answer text / back of the card.
        choices: Selectable options (quiz only, empty for flashcards).
        correct_choice_index: Index into ``choices`` when the server exposes it.
        difficulty: Optional easy/medium/hard tag, display only.
        review_count: Server-side review history (flashcards).
        correct_count: Server-side correct history (flashcards).
        mastered: Whether the server considers the card mastered.
    """

    id: str
    kind: ItemKind
    prompt: str
    reveal: str = ""
    choices: tuple[str, ...] = ()
    correct_choice_index: int | None = None
    difficulty: str | None = None

    review_count: int = 0
    correct_count: int = 0
    mastered: bool = False


@dataclass(frozen=True)
class ItemSet:
    """
    The ordered items held by an item store for one note.

    ``source_id`` is the remote quiz id needed for submission; flashcards
    have none.
    """

    note_id: str
    kind: ItemKind
    items: tuple[Item, ...] = ()
    source_id: str | None = None

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class Response:
    """
    Per-item interaction state within a session.

    ``attempt_count`` and ``correct_count`` are cumulative for flashcards;
    a quiz judges each question exactly once, at submission.
    """

    item_index: int
    selected_choice_index: int | None = None
    review_outcome: ReviewOutcome | None = None
    is_revealed: bool = False
    attempt_count: int = 0
    correct_count: int = 0

    @property
    def is_answered(self) -> bool:
        return self.selected_choice_index is not None


@dataclass(frozen=True)
class QuestionResult:
    """Authoritative per-question outcome returned by quiz submission."""

    prompt: str
    choices: tuple[str, ...]
    selected_choice_index: int | None
    correct_choice_index: int | None
    is_correct: bool
    explanation: str | None = None


@dataclass(frozen=True)
class ResultSnapshot:
    """
    Immutable record of a submitted quiz.

    Attributes:
        score: Percentage (0-100), not rounded.
        correct_count: Number of correctly answered questions.
        total_questions: Number of questions in the quiz.
        elapsed_seconds: Time taken, as reported back by the server.
        questions: Per-question correctness and explanations.
    """

    score: float
    correct_count: int
    total_questions: int
    elapsed_seconds: int
    questions: tuple[QuestionResult, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class NoteSummary:
    id: str
    title: str
