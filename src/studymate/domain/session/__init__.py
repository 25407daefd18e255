# Domain Session Package
from .errors import (
    ActionInProgressError,
    ApiError,
    AuthenticationError,
    EmptySessionError,
    GenerationError,
    IncompleteSubmissionError,
    LoadError,
    NotFoundError,
    OutOfRangeError,
    RecordReviewError,
    SessionError,
    SessionStateError,
    StudyMateError,
    SubmissionError,
)
from .models import (
    Item,
    ItemKind,
    ItemSet,
    NoteSummary,
    QuestionResult,
    Response,
    ResultSnapshot,
    ReviewOutcome,
    SessionStatus,
)
from .ports import Notification, Notifier, StudyApi

__all__ = [
    "Item",
    "ItemKind",
    "ItemSet",
    "NoteSummary",
    "QuestionResult",
    "Response",
    "ResultSnapshot",
    "ReviewOutcome",
    "SessionStatus",
    "Notification",
    "Notifier",
    "StudyApi",
    "StudyMateError",
    "ApiError",
    "NotFoundError",
    "AuthenticationError",
    "SessionError",
    "LoadError",
    "GenerationError",
    "IncompleteSubmissionError",
    "SubmissionError",
    "RecordReviewError",
    "OutOfRangeError",
    "ActionInProgressError",
    "SessionStateError",
    "EmptySessionError",
]
