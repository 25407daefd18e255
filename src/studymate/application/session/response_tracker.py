"""
Response tracker: per-item response state for one session.

Responses are keyed by item position and are always fully initialized,
never partially populated.
"""

from studymate.domain.session.errors import OutOfRangeError
from studymate.domain.session.models import Response, ReviewOutcome


class ResponseTracker:
    """Owns the mutable Response of every item in a session."""

    def __init__(self) -> None:
        self._responses: list[Response] = []

    def __len__(self) -> int:
        return len(self._responses)

    @property
    def responses(self) -> tuple[Response, ...]:
        return tuple(self._responses)

    def get(self, index: int) -> Response:
        self._check_index(index)
        return self._responses[index]

    def initialize(self, item_count: int) -> None:
        """
        Create exactly ``item_count`` unanswered responses.

        Any previously tracked responses are discarded.
        """
        if item_count < 0:
            raise ValueError(f"item_count must be >= 0, got {item_count}")
        self._responses = [Response(item_index=i) for i in range(item_count)]

    # ---------- Quiz ----------

    def record_selection(self, index: int, choice_index: int) -> None:
        """Set (or overwrite) the selected choice. Does not count as an attempt."""
        self.get(index).selected_choice_index = choice_index

    def all_answered(self) -> bool:
        return all(r.selected_choice_index is not None for r in self._responses)

    def answered_indices(self) -> list[int]:
        return [r.item_index for r in self._responses if r.selected_choice_index is not None]

    def unanswered_indices(self) -> list[int]:
        return [r.item_index for r in self._responses if r.selected_choice_index is None]

    def selections(self) -> list[int | None]:
        return [r.selected_choice_index for r in self._responses]

    # ---------- Flashcards ----------

    def record_review(self, index: int, outcome: ReviewOutcome) -> Response:
        """
        Record one review attempt.

        Every call is a new attempt: counters always increase, repeated
        outcomes are not collapsed.
        """
        response = self.get(index)
        response.review_outcome = outcome
        response.attempt_count += 1
        if outcome.is_correct:
            response.correct_count += 1
        return response

    def set_revealed(self, index: int, revealed: bool) -> None:
        self.get(index).is_revealed = revealed

    def reset_outcomes(self) -> None:
        """Clear outcomes and reveal flags while keeping cumulative counts."""
        for response in self._responses:
            response.review_outcome = None
            response.is_revealed = False

    def total_attempts(self) -> int:
        return sum(r.attempt_count for r in self._responses)

    def total_correct(self) -> int:
        return sum(r.correct_count for r in self._responses)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._responses):
            raise OutOfRangeError(
                f"Response index {index} out of range for {len(self._responses)} items"
            )
