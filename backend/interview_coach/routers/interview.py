"""Interview API endpoints: chat turns, progress summary and reset."""

import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from interview_coach.config import settings
from interview_coach.models.base import get_db
from interview_coach.services.interview_orchestrator import InterviewOrchestrator
from interview_coach.services.interview_state import (
    ChatRequest,
    ChatResponse,
    SummaryResponse,
    WireModel,
)
from interview_coach.services.kv_store import SessionStoreError, SqlKeyValueStore
from interview_coach.services.session_store import SessionStore
from interview_coach.services.structured_output import StructuredOutputResolver
from interview_coach.services.text_generator import TextGenerator, get_text_generator

logger = logging.getLogger(__name__)
router = APIRouter(tags=["interview"])

# Text generator shared across requests; None means unavailable
_text_generator: TextGenerator | None = None
_text_generator_loaded = False


def get_shared_text_generator() -> TextGenerator | None:
    global _text_generator, _text_generator_loaded
    if not _text_generator_loaded:
        _text_generator = get_text_generator(settings)
        _text_generator_loaded = True
    return _text_generator


def get_orchestrator(
    db: AsyncSession = Depends(get_db),
    generator: TextGenerator | None = Depends(get_shared_text_generator),
) -> InterviewOrchestrator:
    """Wire the orchestrator for one request on the request's DB session."""
    store = SessionStore(SqlKeyValueStore(db), settings)
    resolver = StructuredOutputResolver(
        generator,
        max_attempts=settings.structured_output_max_attempts,
    )
    return InterviewOrchestrator(store, resolver, settings)


class ResetRequest(WireModel):
    """Request to reset a session."""

    session_id: str | None = None


class ResetResponse(BaseModel):
    """Acknowledgement of a reset."""

    ok: bool


def _require_session_id(session_id: str | None) -> str:
    session_id = (session_id or "").strip()
    if not session_id:
        raise HTTPException(status_code=400, detail="Missing sessionId")
    return session_id


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest | None = Body(default=None),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> ChatResponse:
    """
    Handle one interview chat turn.

    Slash-commands, question requests and answers all go through this endpoint.
    A missing sessionId starts a new session.
    """
    try:
        return await orchestrator.handle_chat(request or ChatRequest())
    except SessionStoreError as e:
        logger.error(f"[Interview] Failed to handle chat: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to handle chat: {str(e)}")


@router.post("/reset", response_model=ResetResponse)
async def reset_session(
    request: ResetRequest | None = Body(default=None),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> ResetResponse:
    """
    Reset all state of a session.
    """
    session_id = _require_session_id(request.session_id if request else None)
    try:
        await orchestrator.reset(session_id)
    except SessionStoreError as e:
        logger.error(f"[Interview] Failed to reset session: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to reset session: {str(e)}")
    return ResetResponse(ok=True)


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    session_id: str | None = Query(default=None, alias="sessionId"),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> SummaryResponse:
    """
    Get the progress summary for a session.
    """
    session_id = _require_session_id(session_id)
    try:
        return await orchestrator.summary(session_id)
    except SessionStoreError as e:
        logger.error(f"[Interview] Failed to load summary: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to load summary: {str(e)}")
