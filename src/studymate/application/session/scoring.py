"""
Scoring engine for deriving progress and accuracy from session state.

This is a pure computation module with no I/O.
"""

import math
from collections.abc import Sequence
from typing import Literal

from studymate.domain.constants import HIGH_SCORE_THRESHOLD, MEDIUM_SCORE_THRESHOLD
from studymate.domain.session.errors import EmptySessionError
from studymate.domain.session.models import Item

ScoreBand = Literal["high", "medium", "low"]


def _round_half_up(value: float) -> int:
    # Halves round up: 12.5 -> 13
    return int(math.floor(value + 0.5))


class ScoringEngine:
    """
    Computes derived metrics from responses and items.

    Stateless and side-effect free.
    """

    def progress_percent(self, cursor: int, total: int) -> float:
        """
        Position-based progress: (cursor + 1) / total * 100.

        Undefined for zero items.
        """
        if total <= 0:
            raise EmptySessionError("progress is undefined for an empty session")
        return (cursor + 1) / total * 100

    def accuracy_percent(self, correct: int, attempts: int) -> int:
        """
        Per-card accuracy, rounded to a whole percent.

        A card that was never reviewed has 0% accuracy.
        """
        if attempts == 0:
            return 0
        return _round_half_up(correct / attempts * 100)

    def correct_count(
        self, selections: Sequence[int | None], correct_indexes: Sequence[int | None]
    ) -> int:
        return sum(
            1
            for selected, correct in zip(selections, correct_indexes, strict=True)
            if selected is not None and selected == correct
        )

    def session_score(
        self, selections: Sequence[int | None], correct_indexes: Sequence[int | None]
    ) -> float:
        """
        Quiz score as an unrounded percentage of correctly answered questions.

        Rounding is left to the display layer.
        """
        if not correct_indexes:
            raise EmptySessionError("score is undefined for an empty quiz")
        return self.correct_count(selections, correct_indexes) / len(correct_indexes) * 100

    def elapsed_seconds(self, started_at: float, now: float) -> int:
        """Whole seconds between two epoch timestamps (in seconds)."""
        return int(math.floor(now - started_at))

    def mastered_count(self, items: Sequence[Item]) -> int:
        return sum(1 for item in items if item.mastered)


def score_band(score: float) -> ScoreBand:
    """Classify a quiz score the way the results screen colours it."""
    if score >= HIGH_SCORE_THRESHOLD:
        return "high"
    if score >= MEDIUM_SCORE_THRESHOLD:
        return "medium"
    return "low"


def format_duration(seconds: int) -> str:
    """Format seconds as m:ss."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"
