# Application Session Package
from .controller import ReviewReceipt, SessionController
from .cursor import SessionCursor
from .item_store import ItemStore
from .response_tracker import ResponseTracker
from .scoring import ScoringEngine, format_duration, score_band

__all__ = [
    "ItemStore",
    "ResponseTracker",
    "SessionCursor",
    "ScoringEngine",
    "SessionController",
    "ReviewReceipt",
    "format_duration",
    "score_band",
]
