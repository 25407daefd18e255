import logging
import time
from collections.abc import Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field
from ulid import ULID

from studymate.application.config import AppConfig, resolve_config
from studymate.application.factory import build_session, get_study_api
from studymate.application.notifications import CollectingNotifier, LoggingNotifier
from studymate.application.session.controller import SessionController
from studymate.consts import VERSION
from studymate.domain.constants import DEFAULT_SESSION_TTL_SECONDS
from studymate.domain.session.errors import (
    ActionInProgressError,
    ApiError,
    AuthenticationError,
    GenerationError,
    IncompleteSubmissionError,
    LoadError,
    NotFoundError,
    OutOfRangeError,
    SessionStateError,
    SubmissionError,
)
from studymate.domain.session.models import ItemKind, ReviewOutcome
from studymate.domain.session.ports import StudyApi

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("studymate.server")


@dataclass
class RegisteredSession:
    controller: SessionController
    notifier: CollectingNotifier
    api: StudyApi
    last_used: float = 0.0


class SessionRegistry:
    """
    In-memory sessions, one controller per session id.

    Sessions untouched for ``ttl_seconds`` are closed and dropped on the next
    add() or get(). A session waiting on the remote API is never evicted.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, RegisteredSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def add(self, entry: RegisteredSession) -> str:
        await self.evict_idle()
        session_id = str(ULID())
        entry.last_used = self._clock()
        self._sessions[session_id] = entry
        return session_id

    async def get(self, session_id: str) -> RegisteredSession:
        await self.evict_idle()
        entry = self._sessions.get(session_id)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
        entry.last_used = self._clock()
        return entry

    async def evict_idle(self) -> list[str]:
        cutoff = self._clock() - self.ttl_seconds
        expired = [
            session_id
            for session_id, entry in self._sessions.items()
            if entry.last_used < cutoff and not _is_busy(entry.controller)
        ]
        for session_id in expired:
            logger.info(f"Session {session_id}: idle for over {self.ttl_seconds:.0f}s, closing")
            await self.remove(session_id)
        return expired

    async def remove(self, session_id: str) -> None:
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            return
        entry.controller.close()
        await entry.api.aclose()

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.remove(session_id)


def _is_busy(controller: SessionController) -> bool:
    return controller.is_loading or controller.is_submitting or controller.is_review_in_flight()


sessions = SessionRegistry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    sessions.ttl_seconds = resolve_config().session_ttl_seconds
    logger.info(f"StudyMate Server v{VERSION} starting up...")
    yield
    # Shutdown
    await sessions.close_all()
    logger.info("StudyMate Server shutting down...")


app = FastAPI(
    title="StudyMate Server",
    description="Flashcard review and quiz sessions for the StudyMate web client.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_config() -> AppConfig:
    return resolve_config()


def get_api(config: Annotated[AppConfig, Depends(get_config)]) -> StudyApi:
    return get_study_api(config)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float
    active_sessions: int


class CreateSessionRequest(BaseModel):
    kind: ItemKind
    note_id: str
    generate: bool = False
    count: int | None = Field(default=None, gt=0)


class GenerateRequest(BaseModel):
    count: int | None = Field(default=None, gt=0)


class JumpRequest(BaseModel):
    index: int


class SelectRequest(BaseModel):
    choice_index: int


class ReviewRequest(BaseModel):
    outcome: ReviewOutcome


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _drain(entry: RegisteredSession) -> list[dict[str, str]]:
    return [{"level": n.level, "message": n.message} for n in entry.notifier.drain()]


def _view(session_id: str, entry: RegisteredSession, **extra: Any) -> dict[str, Any]:
    return {
        "session_id": session_id,
        "session": entry.controller.snapshot(),
        "notifications": _drain(entry),
        **extra,
    }


def _http_error(e: Exception, entry: RegisteredSession | None) -> HTTPException:
    detail: dict[str, Any] = {"message": str(e)}
    if entry is not None:
        detail["notifications"] = _drain(entry)

    if isinstance(e, OutOfRangeError):
        return HTTPException(status_code=422, detail=detail)
    if isinstance(e, IncompleteSubmissionError):
        detail["unanswered"] = e.unanswered
        return HTTPException(status_code=409, detail=detail)
    if isinstance(e, ActionInProgressError | SessionStateError):
        return HTTPException(status_code=409, detail=detail)
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=detail)
    if isinstance(e.__cause__, AuthenticationError) or isinstance(e, AuthenticationError):
        return HTTPException(status_code=401, detail=detail)
    return HTTPException(status_code=502, detail=detail)


_SESSION_ERRORS = (
    OutOfRangeError,
    IncompleteSubmissionError,
    ActionInProgressError,
    SessionStateError,
    NotFoundError,
    LoadError,
    GenerationError,
    SubmissionError,
    ApiError,
)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(
        status="ok",
        version=VERSION,
        uptime_seconds=time.time() - start_time,
        active_sessions=len(sessions),
    )


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/notes")
async def list_notes(api: Annotated[StudyApi, Depends(get_api)]):
    """List the notes available for study."""
    try:
        notes = await api.list_notes()
    except ApiError as e:
        raise _http_error(e, None) from e
    finally:
        await api.aclose()
    return {"notes": [{"id": n.id, "title": n.title} for n in notes]}


@app.post("/sessions", status_code=201)
async def create_session(
    req: CreateSessionRequest,
    config: Annotated[AppConfig, Depends(get_config)],
    api: Annotated[StudyApi, Depends(get_api)],
):
    """Start a flashcard or quiz session for a note."""
    notifier = CollectingNotifier(forward_to=LoggingNotifier())
    controller = build_session(api, req.kind, config, notifier)
    entry = RegisteredSession(controller=controller, notifier=notifier, api=api)
    session_id = await sessions.add(entry)
    logger.info(f"Session {session_id}: {req.kind.value} for note {req.note_id}")

    try:
        if req.generate:
            await controller.generate(req.note_id, req.count)
        else:
            await controller.load(req.note_id)
    except _SESSION_ERRORS as e:
        error = _http_error(e, entry)
        await sessions.remove(session_id)
        raise error from e
    return _view(session_id, entry)


@app.get("/sessions/{session_id}")
async def get_session(session_id: str):
    return _view(session_id, await sessions.get(session_id))


@app.delete("/sessions/{session_id}")
async def close_session(session_id: str):
    await sessions.get(session_id)
    await sessions.remove(session_id)
    return {"session_id": session_id, "closed": True}


@app.post("/sessions/{session_id}/generate")
async def regenerate(session_id: str, req: GenerateRequest):
    """Replace the session's items with a freshly generated set."""
    entry = await sessions.get(session_id)
    note_id = entry.controller.note_id
    if note_id is None:
        raise HTTPException(status_code=409, detail={"message": "Session has no note"})
    try:
        await entry.controller.generate(note_id, req.count)
    except _SESSION_ERRORS as e:
        raise _http_error(e, entry) from e
    return _view(session_id, entry)


@app.post("/sessions/{session_id}/advance")
async def advance(session_id: str):
    entry = await sessions.get(session_id)
    entry.controller.advance()
    return _view(session_id, entry)


@app.post("/sessions/{session_id}/retreat")
async def retreat(session_id: str):
    entry = await sessions.get(session_id)
    entry.controller.retreat()
    return _view(session_id, entry)


@app.post("/sessions/{session_id}/jump")
async def jump(session_id: str, req: JumpRequest):
    entry = await sessions.get(session_id)
    try:
        entry.controller.jump_to(req.index)
    except _SESSION_ERRORS as e:
        raise _http_error(e, entry) from e
    return _view(session_id, entry)


@app.post("/sessions/{session_id}/flip")
async def flip(session_id: str):
    entry = await sessions.get(session_id)
    try:
        entry.controller.flip()
    except _SESSION_ERRORS as e:
        raise _http_error(e, entry) from e
    return _view(session_id, entry)


@app.post("/sessions/{session_id}/review")
async def review(session_id: str, req: ReviewRequest):
    """Record a flashcard review. Remote failures are reported, not raised."""
    entry = await sessions.get(session_id)
    try:
        receipt = await entry.controller.review(req.outcome)
    except _SESSION_ERRORS as e:
        raise _http_error(e, entry) from e
    return _view(
        session_id,
        entry,
        review={
            "item_index": receipt.item_index,
            "attempt_count": receipt.attempt_count,
            "correct_count": receipt.correct_count,
            "advanced": receipt.advanced,
            "acknowledged": receipt.acknowledged,
            "error": str(receipt.error) if receipt.error else None,
        },
    )


@app.post("/sessions/{session_id}/select")
async def select(session_id: str, req: SelectRequest):
    entry = await sessions.get(session_id)
    try:
        entry.controller.select_choice(req.choice_index)
    except _SESSION_ERRORS as e:
        raise _http_error(e, entry) from e
    return _view(session_id, entry)


@app.post("/sessions/{session_id}/submit")
async def submit(session_id: str):
    entry = await sessions.get(session_id)
    try:
        await entry.controller.submit()
    except _SESSION_ERRORS as e:
        raise _http_error(e, entry) from e
    return _view(session_id, entry)


@app.post("/sessions/{session_id}/restart")
async def restart(session_id: str):
    entry = await sessions.get(session_id)
    try:
        entry.controller.restart()
    except _SESSION_ERRORS as e:
        raise _http_error(e, entry) from e
    return _view(session_id, entry)
