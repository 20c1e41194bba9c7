import logging
import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date, datetime
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from cardwise.application.config import resolve_config
from cardwise.application.factory import (
    get_card_repository,
    get_session_manager,
    get_stats_service,
)
from cardwise.application.session_manager import SessionManager
from cardwise.application.stats import StudyStatsService
from cardwise.consts import VERSION
from cardwise.domain.errors import (
    CardwiseError,
    NoCardsAvailable,
    SessionAlreadyActive,
    SessionContractError,
    SessionNotFound,
)
from cardwise.domain.scheduling.models import (
    QueueCaps,
    QueueFilter,
    Rating,
    SessionHistoryEntry,
    StudyMode,
    StudySession,
)
from cardwise.domain.scheduling.ports import CardRepository

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cardwise.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"cardwise server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("cardwise server shutting down...")


app = FastAPI(
    title="cardwise server",
    description="Spaced-repetition scheduling and study sessions over HTTP.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


@lru_cache
def get_repository() -> CardRepository:
    return get_card_repository(resolve_config())


@lru_cache
def get_manager() -> SessionManager:
    """One manager per process: it holds the active sessions in memory."""
    return get_session_manager(resolve_config(), card_repo=get_repository())


def get_stats() -> StudyStatsService:
    return get_stats_service(resolve_config(), card_repo=get_repository())


def _now() -> datetime:
    return datetime.now().astimezone()


def _http_error(e: CardwiseError) -> HTTPException:
    if isinstance(e, (NoCardsAvailable, SessionNotFound)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, SessionAlreadyActive):
        return HTTPException(
            status_code=409,
            detail={"message": str(e), "active_session_id": e.session.id},
        )
    if isinstance(e, SessionContractError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


# ---------- Schemas ----------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class QueueRequest(BaseModel):
    mode: StudyMode = StudyMode.DAILY
    profile_id: str | None = None
    application_id: str | None = None
    max_review: int | None = Field(default=None, ge=0)
    max_new: int | None = Field(default=None, ge=0)


class StartSessionRequest(QueueRequest):
    # If None, the queue is built from the repository.
    queue: list[str] | None = None


class ReviewRequest(BaseModel):
    card_id: str
    rating: int = Field(ge=int(Rating.AGAIN), le=int(Rating.PERFECT))


class SessionResponse(BaseModel):
    id: str
    profile_id: str
    mode: str
    status: str
    queue: list[str]
    current_index: int
    current_card_id: str | None
    cards_reviewed: int
    cards_remaining: int
    ratings: dict[str, int]
    average_rating: float
    started_at: datetime

    @classmethod
    def of(cls, session: StudySession) -> "SessionResponse":
        return cls(
            id=session.id,
            profile_id=session.profile_id,
            mode=session.mode.value,
            status=session.status.value,
            queue=session.queue,
            current_index=session.current_index,
            current_card_id=session.current_card_id,
            cards_reviewed=session.cards_reviewed,
            cards_remaining=session.cards_remaining,
            ratings={r.name.lower(): n for r, n in session.ratings_histogram.items()},
            average_rating=session.average_rating,
            started_at=session.started_at,
        )


class ReviewResponse(BaseModel):
    session: SessionResponse
    interval_days: int
    repetitions: int
    ease_factor: float
    due_at: datetime


class HistoryEntryResponse(BaseModel):
    session_id: str
    mode: str
    cards_reviewed: int
    ratings: dict[str, int]
    started_at: datetime
    ended_at: datetime
    duration_seconds: int
    average_rating: float

    @classmethod
    def of(cls, entry: SessionHistoryEntry) -> "HistoryEntryResponse":
        return cls(
            session_id=entry.session_id,
            mode=entry.mode.value,
            cards_reviewed=entry.cards_reviewed,
            ratings={r.name.lower(): n for r, n in entry.ratings_histogram.items()},
            started_at=entry.started_at,
            ended_at=entry.ended_at,
            duration_seconds=entry.duration_seconds,
            average_rating=entry.average_rating,
        )


class ProgressResponse(BaseModel):
    profile_id: str
    total_cards_studied: int
    current_streak: int
    longest_streak: int
    last_study_date: date | None
    sessions_completed: int
    total_study_time_minutes: int
    average_rating: float


def _queue_inputs(req: QueueRequest) -> tuple[QueueFilter, QueueCaps, str]:
    config = resolve_config()
    profile_id = req.profile_id or config.profile_id
    caps = config.caps_for(req.mode)
    caps = QueueCaps(
        max_review=caps.max_review if req.max_review is None else req.max_review,
        max_new=caps.max_new if req.max_new is None else req.max_new,
    )
    return QueueFilter(profile_id=profile_id, application_id=req.application_id), caps, profile_id


# ---------- Endpoints ----------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/queue")
def build_queue(req: QueueRequest, manager: SessionManager = Depends(get_manager)):
    """Preview the queue a session would start with."""
    card_filter, caps, _ = _queue_inputs(req)
    try:
        return {"queue": manager.build_queue(card_filter, caps, _now())}
    except CardwiseError as e:
        logger.error(f"Queue build failed: {e}")
        raise _http_error(e) from e


@app.post("/sessions", response_model=SessionResponse)
def start_session(req: StartSessionRequest, manager: SessionManager = Depends(get_manager)):
    card_filter, caps, profile_id = _queue_inputs(req)
    now = _now()
    try:
        queue = req.queue if req.queue is not None else manager.build_queue(card_filter, caps, now)
        session = manager.start_session(queue, req.mode, now, profile_id=profile_id)
    except CardwiseError as e:
        raise _http_error(e) from e
    return SessionResponse.of(session)


@app.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, manager: SessionManager = Depends(get_manager)):
    try:
        return SessionResponse.of(manager.get_session(session_id))
    except CardwiseError as e:
        raise _http_error(e) from e


@app.post("/sessions/{session_id}/reviews", response_model=ReviewResponse)
def record_review(
    session_id: str, req: ReviewRequest, manager: SessionManager = Depends(get_manager)
):
    try:
        session = manager.get_session(session_id)
        state = manager.record_review(session, req.card_id, Rating(req.rating), _now())
    except CardwiseError as e:
        raise _http_error(e) from e
    return ReviewResponse(
        session=SessionResponse.of(session),
        interval_days=state.interval_days,
        repetitions=state.repetitions,
        ease_factor=state.ease_factor,
        due_at=state.due_at,
    )


@app.post("/sessions/{session_id}/end", response_model=HistoryEntryResponse)
def end_session(session_id: str, manager: SessionManager = Depends(get_manager)):
    try:
        session = manager.get_session(session_id)
        entry = manager.end_session(session, _now())
    except CardwiseError as e:
        raise _http_error(e) from e
    return HistoryEntryResponse.of(entry)


@app.post("/sessions/{session_id}/abandon", response_model=SessionResponse)
def abandon_session(session_id: str, manager: SessionManager = Depends(get_manager)):
    try:
        session = manager.get_session(session_id)
        manager.abandon_session(session, _now())
    except CardwiseError as e:
        raise _http_error(e) from e
    return SessionResponse.of(session)


@app.get("/progress/{profile_id}", response_model=ProgressResponse)
def get_progress(profile_id: str, manager: SessionManager = Depends(get_manager)):
    record = manager.get_progress(profile_id)
    return ProgressResponse(
        profile_id=record.profile_id,
        total_cards_studied=record.total_cards_studied,
        current_streak=record.current_streak,
        longest_streak=record.longest_streak,
        last_study_date=record.last_study_date,
        sessions_completed=record.sessions_completed,
        total_study_time_minutes=record.total_study_time_minutes,
        average_rating=record.average_rating,
    )


@app.get("/history/{profile_id}", response_model=list[HistoryEntryResponse])
def get_history(
    profile_id: str, limit: int = 10, manager: SessionManager = Depends(get_manager)
):
    return [HistoryEntryResponse.of(e) for e in manager.recent_sessions(profile_id, limit)]


@app.post("/stats")
def get_stats_endpoint(req: QueueRequest, service: StudyStatsService = Depends(get_stats)):
    """
    Mastery/due counts and readiness for the filtered cards.
    """
    card_filter, _, _ = _queue_inputs(req)
    now = _now()
    try:
        stats = service.get_study_stats(card_filter, now)
        readiness = service.get_readiness_score(card_filter, now)
    except CardwiseError as e:
        logger.error(f"Stats failed: {e}", exc_info=True)
        raise _http_error(e) from e
    return {**asdict(stats), "readiness": readiness}
