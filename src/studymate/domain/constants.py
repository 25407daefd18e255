"""Centralized constants for the StudyMate application.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Remote API / HTTP ----------
DEFAULT_API_URL = "http://localhost:5000/api"
REQUEST_TIMEOUT = 30.0

# ---------- Generation ----------
DEFAULT_FLASHCARD_COUNT = 10
DEFAULT_QUIZ_QUESTION_COUNT = 5

# ---------- Scoring ----------
HIGH_SCORE_THRESHOLD = 80.0
MEDIUM_SCORE_THRESHOLD = 60.0

# ---------- HTTP session server ----------
DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 8777
DEFAULT_SESSION_TTL_SECONDS = 3600.0
