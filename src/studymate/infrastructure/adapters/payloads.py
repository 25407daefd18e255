"""
Translation between the study API's JSON payloads and domain models.

The API speaks camelCase documents with Mongo-style ``_id`` keys. Missing
required fields raise ValueError; the adapter turns that into an ApiError.
"""

from typing import Any

from studymate.domain.session.models import (
    Item,
    ItemKind,
    ItemSet,
    NoteSummary,
    QuestionResult,
    ResultSnapshot,
)


def _require(data: dict[str, Any], key: str, what: str) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be an object, got {type(data).__name__}")
    if key not in data or data[key] is None:
        raise ValueError(f"{what} is missing required '{key}' field")
    return data[key]


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)


def parse_note(data: dict[str, Any]) -> NoteSummary:
    return NoteSummary(
        id=str(_require(data, "_id", "note")),
        title=str(data.get("title") or "Untitled"),
    )


def parse_notes(data: dict[str, Any]) -> list[NoteSummary]:
    return [parse_note(n) for n in _require(data, "notes", "notes response")]


def parse_flashcard(data: dict[str, Any]) -> Item:
    return Item(
        id=str(_require(data, "_id", "flashcard")),
        kind=ItemKind.FLASHCARD,
        prompt=str(_require(data, "question", "flashcard")),
        reveal=str(data.get("answer") or ""),
        difficulty=data.get("difficulty"),
        review_count=int(data.get("reviewCount") or 0),
        correct_count=int(data.get("correctCount") or 0),
        mastered=bool(data.get("mastered", False)),
    )


def parse_flashcard_set(note_id: str, data: dict[str, Any]) -> ItemSet:
    cards = _require(data, "flashcards", "flashcards response")
    return ItemSet(
        note_id=note_id,
        kind=ItemKind.FLASHCARD,
        items=tuple(parse_flashcard(c) for c in cards),
    )


def parse_quiz_question(quiz_id: str, index: int, data: dict[str, Any]) -> Item:
    options = tuple(str(o) for o in _require(data, "options", "quiz question"))
    correct = _optional_int(data.get("correctAnswer"))
    reveal = options[correct] if correct is not None and 0 <= correct < len(options) else ""
    return Item(
        # Questions are embedded in the quiz document and may not carry ids
        id=str(data.get("_id") or f"{quiz_id}:{index}"),
        kind=ItemKind.QUIZ,
        prompt=str(_require(data, "question", "quiz question")),
        reveal=reveal,
        choices=options,
        correct_choice_index=correct,
        difficulty=data.get("difficulty"),
    )


def parse_quiz(note_id: str, data: dict[str, Any]) -> ItemSet:
    quiz = _require(data, "quiz", "quiz response")
    quiz_id = str(_require(quiz, "_id", "quiz"))
    questions = _require(quiz, "questions", "quiz")
    return ItemSet(
        note_id=note_id,
        kind=ItemKind.QUIZ,
        items=tuple(parse_quiz_question(quiz_id, i, q) for i, q in enumerate(questions)),
        source_id=quiz_id,
    )


def parse_question_result(data: dict[str, Any]) -> QuestionResult:
    return QuestionResult(
        prompt=str(_require(data, "question", "question result")),
        choices=tuple(str(o) for o in data.get("options") or ()),
        selected_choice_index=_optional_int(data.get("userAnswer")),
        correct_choice_index=_optional_int(data.get("correctAnswer")),
        is_correct=bool(data.get("isCorrect", False)),
        explanation=data.get("explanation") or None,
    )


def parse_submission(data: dict[str, Any], elapsed_seconds: int) -> ResultSnapshot:
    """
    Build the result snapshot from a quiz submission response.

    ``elapsed_seconds`` is used when the server does not echo ``timeTaken``.
    """
    score = float(_require(data, "score", "submission response"))
    quiz = data.get("quiz") or {}
    if not isinstance(quiz, dict):
        raise ValueError(f"submitted quiz must be an object, got {type(quiz).__name__}")
    questions = tuple(parse_question_result(q) for q in quiz.get("questions") or ())
    total = _optional_int(data.get("totalQuestions"))
    time_taken = _optional_int(quiz.get("timeTaken"))
    return ResultSnapshot(
        score=score,
        correct_count=int(_require(data, "correctCount", "submission response")),
        total_questions=total if total is not None else len(questions),
        elapsed_seconds=time_taken if time_taken is not None else elapsed_seconds,
        questions=questions,
    )


def submission_payload(selections: list[int], elapsed_seconds: int) -> dict[str, Any]:
    return {"answers": list(selections), "timeTaken": elapsed_seconds}
