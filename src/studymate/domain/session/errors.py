"""
Error taxonomy for StudyMate.

Transport errors come from the remote API adapter; session errors are raised
by the session layer. None of them is fatal: every one is surfaced to the
user as a notification and the session stays usable.
"""


class StudyMateError(Exception):
    """Base class for all StudyMate errors."""


# ---------- Remote API ----------


class ApiError(StudyMateError):
    """A remote API call failed (transport error or non-2xx status)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(ApiError):
    """The requested note or item set does not exist."""


class AuthenticationError(ApiError):
    """The API rejected the configured token; the user must sign in again."""


# ---------- Session ----------


class SessionError(StudyMateError):
    """Base class for errors raised by the session layer."""


class LoadError(SessionError):
    """Fetching items failed. The session stays empty; the user may retry."""


class GenerationError(SessionError):
    """AI generation of items failed. The session stays empty."""


class IncompleteSubmissionError(SessionError):
    """A quiz was submitted before every question had an answer."""

    def __init__(self, unanswered: list[int]):
        self.unanswered = list(unanswered)
        numbers = ", ".join(str(i + 1) for i in self.unanswered)
        super().__init__(f"Please answer all questions before submitting (unanswered: {numbers})")


class SubmissionError(SessionError):
    """The remote quiz submission failed. The session stays in progress."""


class RecordReviewError(SessionError):
    """The remote API did not acknowledge a flashcard review.

    Local review progress is kept regardless.
    """


class OutOfRangeError(SessionError, IndexError):
    """An item or choice index is outside the valid range."""


class ActionInProgressError(SessionError):
    """The same action is already waiting on the remote API."""


class SessionStateError(SessionError):
    """The operation is not valid for the session's kind or status."""


class EmptySessionError(SessionError, ValueError):
    """A metric that is undefined for zero items was requested."""
