"""AI closer session management.

Runs the conversational qualification flow: every message appends a
user turn and the agent's reply to the stored history, and once the
conversation reaches ``QUALIFICATION_MIN_TURNS`` turns each further message
also asks the qualifier to classify the buyer.

Reply generation failures surface to the caller. Qualification failures
are logged and skipped; the threshold check fires again on the next turn.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from realty_platform.agents.closer_agent import AiCloserAgent
from realty_platform.agents.qualification_agent import QualificationAgent
from realty_platform.app.config import get_settings
from realty_platform.domain.enums import QualificationOutcome, SessionStatus, TurnRole
from realty_platform.domain.models import AiCloserSession
from realty_platform.domain.schemas import QualificationResult
from realty_platform.services.session_state_machine import (
    can_transition,
    ensure_messageable,
    validate_transition,
)

logger = logging.getLogger(__name__)

# 4 user + 4 assistant turns
QUALIFICATION_MIN_TURNS = 8


class SessionNotFoundError(Exception):
    """Raised when a session id does not exist."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class UpstreamError(Exception):
    """Raised when the reply-generation provider fails."""


class ConcurrentUpdateError(Exception):
    """Raised when another request updated the session first."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} was modified concurrently")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def make_turn(role: TurnRole, content: str) -> dict:
    """Build a stored conversation turn."""
    return {"role": role.value, "content": content, "timestamp": _now().isoformat()}


class AiCloserService:
    """Starts, continues and closes AI closer sessions."""

    def __init__(
        self,
        db: AsyncSession,
        closer_agent: Optional[AiCloserAgent] = None,
        qualifier: Optional[QualificationAgent] = None,
    ):
        self.db = db
        self.closer_agent = closer_agent or AiCloserAgent()
        self.qualifier = qualifier or QualificationAgent()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_session(self, session_id: str) -> AiCloserSession:
        """Return the session or raise SessionNotFoundError."""
        result = await self.db.execute(
            select(AiCloserSession).where(AiCloserSession.id == session_id)
        )
        session = result.scalar_one_or_none()
        if not session:
            raise SessionNotFoundError(session_id)
        return session

    async def list_sessions(self) -> list[AiCloserSession]:
        """Return every session, newest first."""
        result = await self.db.execute(
            select(AiCloserSession).order_by(AiCloserSession.created_at.desc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------

    async def start_session(
        self, message: str, user_id: Optional[str] = None
    ) -> tuple[AiCloserSession, list[dict]]:
        """Open a session with the buyer's first message.

        Raises:
            UpstreamError: the agent could not produce a reply. No session
                is persisted in that case.

        Returns:
            Tuple of (new session, [user turn, assistant turn]).
        """
        user_turn = make_turn(TurnRole.USER, message)
        result = await self.closer_agent.reply([], message)
        if not result.ok:
            raise UpstreamError(result.error)
        assistant_turn = make_turn(TurnRole.ASSISTANT, result.data)

        now = _now()
        session = AiCloserSession(
            id=str(uuid.uuid4()),
            user_id=user_id or get_settings().guest_user_id,
            session_history=[user_turn, assistant_turn],
            status=SessionStatus.ACTIVE.value,
            extracted_needs={},
            created_at=now,
            updated_at=now,
        )
        self.db.add(session)
        await self.db.commit()

        logger.info("Started AI closer session %s for user %s", session.id, session.user_id)
        return session, [user_turn, assistant_turn]

    async def send_message(
        self, session_id: str, message: str
    ) -> tuple[list[dict], Optional[QualificationResult]]:
        """Append a buyer message and the agent's reply to a session.

        Raises:
            SessionNotFoundError: unknown ``session_id``.
            InvalidTransitionError: the session was abandoned.
            UpstreamError: reply generation failed; nothing is persisted.
            ConcurrentUpdateError: another request wrote the session first.

        Returns:
            Tuple of ([user turn, assistant turn], qualification or None).
        """
        session = await self.get_session(session_id)
        ensure_messageable(session.status)

        history = list(session.session_history or [])
        user_turn = make_turn(TurnRole.USER, message)
        result = await self.closer_agent.reply(history, message)
        if not result.ok:
            raise UpstreamError(result.error)
        assistant_turn = make_turn(TurnRole.ASSISTANT, result.data)

        new_history = history + [user_turn, assistant_turn]

        qualification = None
        if len(new_history) >= QUALIFICATION_MIN_TURNS:
            qualification = await self._try_qualify(session_id, new_history)

        session.session_history = new_history
        session.updated_at = _now()
        if qualification is not None:
            self._apply_qualification(session, qualification)

        await self._commit(session_id)

        logger.debug(
            "Session %s now has %d turns (status=%s)",
            session_id, len(new_history), session.status,
        )
        return [user_turn, assistant_turn], qualification

    async def abandon_session(self, session_id: str) -> AiCloserSession:
        """Mark an active session as abandoned.

        Raises:
            SessionNotFoundError: unknown ``session_id``.
            InvalidTransitionError: the session is already terminal.
        """
        session = await self.get_session(session_id)
        validate_transition(session.status, SessionStatus.ABANDONED)
        session.status = SessionStatus.ABANDONED.value
        session.updated_at = _now()
        await self._commit(session_id)
        logger.info("Session %s abandoned", session_id)
        return session

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _try_qualify(
        self, session_id: str, history: list[dict]
    ) -> Optional[QualificationResult]:
        try:
            return await self.qualifier.qualify(history)
        except Exception as e:
            logger.warning("Qualification skipped for session %s: %s", session_id, e)
            return None

    def _apply_qualification(
        self, session: AiCloserSession, qualification: QualificationResult
    ) -> None:
        session.qualification_score = qualification.qualification_score
        session.extracted_needs = qualification.extracted_needs.model_dump(
            by_alias=True, mode="json"
        )
        session.outcome = qualification.outcome.value

        if (
            qualification.outcome == QualificationOutcome.QUALIFIED
            and can_transition(session.status, SessionStatus.COMPLETED)
        ):
            session.status = SessionStatus.COMPLETED.value
            logger.info(
                "Session %s completed: buyer qualified with score %s",
                session.id, qualification.qualification_score,
            )

    async def _commit(self, session_id: str) -> None:
        try:
            await self.db.commit()
        except StaleDataError as exc:
            await self.db.rollback()
            raise ConcurrentUpdateError(session_id) from exc
