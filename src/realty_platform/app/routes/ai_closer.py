"""AI closer API routes: conversational buyer qualification."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from realty_platform.agents.closer_agent import AiCloserAgent
from realty_platform.agents.qualification_agent import QualificationAgent
from realty_platform.domain.schemas import (
    AiCloserMessageRequest,
    AiCloserMessageResponse,
    AiCloserSessionResponse,
    AiCloserStartRequest,
    AiCloserStartResponse,
)
from realty_platform.infra.database import get_db
from realty_platform.services.ai_closer_service import (
    AiCloserService,
    ConcurrentUpdateError,
    SessionNotFoundError,
    UpstreamError,
)
from realty_platform.services.session_state_machine import InvalidTransitionError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/ai-closer", tags=["ai-closer"])


# ---------------------------------------------------------------------------
# Dependencies (overridden in tests)
# ---------------------------------------------------------------------------


def get_closer_agent() -> AiCloserAgent:
    return AiCloserAgent()


def get_qualification_agent() -> QualificationAgent:
    return QualificationAgent()


def get_ai_closer_service(
    db: AsyncSession = Depends(get_db),
    closer_agent: AiCloserAgent = Depends(get_closer_agent),
    qualifier: QualificationAgent = Depends(get_qualification_agent),
) -> AiCloserService:
    return AiCloserService(db, closer_agent=closer_agent, qualifier=qualifier)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/start", response_model=AiCloserStartResponse)
async def start_session(
    body: AiCloserStartRequest,
    service: AiCloserService = Depends(get_ai_closer_service),
):
    """Open a session with the buyer's first message."""
    try:
        session, turns = await service.start_session(body.message, user_id=body.user_id)
    except UpstreamError as e:
        logger.error("AI closer start failed: %s", e)
        raise HTTPException(status_code=502, detail="Failed to start AI conversation")
    return {"session_id": session.id, "messages": turns}


@router.post("/{session_id}/message", response_model=AiCloserMessageResponse)
async def send_message(
    session_id: str,
    body: AiCloserMessageRequest,
    service: AiCloserService = Depends(get_ai_closer_service),
):
    """Continue a session. ``qualification`` is set once the buyer was scored this turn."""
    try:
        turns, qualification = await service.send_message(session_id, body.message)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=e.reason)
    except ConcurrentUpdateError:
        raise HTTPException(status_code=409, detail="Session was updated by another request, retry")
    except UpstreamError as e:
        logger.error("AI closer message failed for session %s: %s", session_id, e)
        raise HTTPException(status_code=502, detail="Failed to process message")
    return {"messages": turns, "qualification": qualification}


@router.post("/{session_id}/abandon", response_model=AiCloserSessionResponse)
async def abandon_session(
    session_id: str,
    service: AiCloserService = Depends(get_ai_closer_service),
):
    """Close an active session without a qualification."""
    try:
        return await service.abandon_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=e.reason)
    except ConcurrentUpdateError:
        raise HTTPException(status_code=409, detail="Session was updated by another request, retry")


@router.get("/sessions", response_model=list[AiCloserSessionResponse])
async def list_sessions(service: AiCloserService = Depends(get_ai_closer_service)):
    """Return every session, newest first."""
    return await service.list_sessions()


@router.get("/session/{session_id}", response_model=AiCloserSessionResponse)
async def get_session(
    session_id: str,
    service: AiCloserService = Depends(get_ai_closer_service),
):
    """Return the full session record."""
    try:
        return await service.get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
