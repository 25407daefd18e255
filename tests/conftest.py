import asyncio
import logging

import pytest

from studymate.application.notifications import CollectingNotifier
from studymate.application.session.controller import SessionController
from studymate.domain.session.errors import NotFoundError
from studymate.domain.session.models import (
    Item,
    ItemKind,
    ItemSet,
    NoteSummary,
    QuestionResult,
    ResultSnapshot,
)
from studymate.domain.session.ports import StudyApi


def make_flashcards(count, prefix="card", **overrides):
    return [
        Item(
            id=f"{prefix}-{i}",
            kind=ItemKind.FLASHCARD,
            prompt=f"Question {i}?",
            reveal=f"Answer {i}",
            difficulty="easy",
            **overrides,
        )
        for i in range(count)
    ]


def make_quiz_questions(correct_indexes, quiz_id="quiz-1"):
    return [
        Item(
            id=f"{quiz_id}:{i}",
            kind=ItemKind.QUIZ,
            prompt=f"Quiz question {i}?",
            reveal=f"Option {correct}",
            choices=("Option 0", "Option 1", "Option 2", "Option 3"),
            correct_choice_index=correct,
        )
        for i, correct in enumerate(correct_indexes)
    ]


class FakeStudyApi(StudyApi):
    """In-memory stand-in for the remote study API."""

    def __init__(self):
        self.notes = [NoteSummary(id="note-1", title="Cell Biology")]
        self.flashcards: dict[str, list[Item]] = {}
        self.quizzes: dict[str, ItemSet] = {}
        self.quiz_correct_indexes = [1, 0, 2]
        self.failures: dict[str, Exception] = {}
        self.gate: asyncio.Event | None = None

        self.reviews: list[tuple[str, bool]] = []
        self.submissions: list[tuple[str, list[int], int]] = []
        self.generate_calls: list[tuple[ItemKind, str, int]] = []
        self.closed = False

        self._quiz_items: dict[str, list[Item]] = {}
        self._quiz_seq = 0

    async def _checkpoint(self, op):
        if self.gate is not None:
            await self.gate.wait()
        if op in self.failures:
            raise self.failures[op]

    async def list_notes(self):
        await self._checkpoint("notes")
        return list(self.notes)

    async def fetch_items(self, kind, note_id):
        await self._checkpoint("fetch")
        if kind is ItemKind.FLASHCARD:
            if note_id not in self.flashcards:
                raise NotFoundError("Note not found", status_code=404)
            return ItemSet(note_id=note_id, kind=kind, items=tuple(self.flashcards[note_id]))
        if note_id not in self.quizzes:
            raise NotFoundError("Quiz not found", status_code=404)
        return self.quizzes[note_id]

    async def generate_items(self, kind, note_id, count):
        self.generate_calls.append((kind, note_id, count))
        await self._checkpoint("generate")
        if kind is ItemKind.FLASHCARD:
            cards = make_flashcards(count, prefix=f"gen-{len(self.generate_calls)}")
            self.flashcards[note_id] = cards
            return ItemSet(note_id=note_id, kind=kind, items=tuple(cards))

        self._quiz_seq += 1
        quiz_id = f"quiz-{self._quiz_seq}"
        correct = [self.quiz_correct_indexes[i % len(self.quiz_correct_indexes)] for i in range(count)]
        items = make_quiz_questions(correct, quiz_id=quiz_id)
        self._quiz_items[quiz_id] = items
        return ItemSet(note_id=note_id, kind=kind, items=tuple(items), source_id=quiz_id)

    async def record_review(self, item_id, is_correct):
        await self._checkpoint("review")
        self.reviews.append((item_id, is_correct))

    async def submit_quiz(self, quiz_id, selections, elapsed_seconds):
        self.submissions.append((quiz_id, list(selections), elapsed_seconds))
        await self._checkpoint("submit")
        items = self._quiz_items[quiz_id]
        questions = tuple(
            QuestionResult(
                prompt=item.prompt,
                choices=item.choices,
                selected_choice_index=selected,
                correct_choice_index=item.correct_choice_index,
                is_correct=selected == item.correct_choice_index,
                explanation=f"Because option {item.correct_choice_index}.",
            )
            for item, selected in zip(items, selections, strict=True)
        )
        correct = sum(1 for q in questions if q.is_correct)
        return ResultSnapshot(
            score=correct / len(items) * 100,
            correct_count=correct,
            total_questions=len(items),
            elapsed_seconds=elapsed_seconds,
            questions=questions,
        )

    async def aclose(self):
        self.closed = True


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def tick(self, seconds):
        self.now += seconds


@pytest.fixture
def fake_api():
    return FakeStudyApi()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return CollectingNotifier()


@pytest.fixture
def flashcard_session(fake_api, notifier, clock):
    return SessionController(fake_api, ItemKind.FLASHCARD, notifier, clock=clock)


@pytest.fixture
def quiz_session(fake_api, notifier, clock):
    return SessionController(fake_api, ItemKind.QUIZ, notifier, clock=clock)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def flashcard_factory():
    return make_flashcards


@pytest.fixture
def quiz_factory():
    return make_quiz_questions


@pytest.fixture(autouse=True)
def release_run_log_handlers():
    """Close per-run log files opened by setup_logging during a test."""
    yield
    logger = logging.getLogger("studymate")
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
            handler.close()
