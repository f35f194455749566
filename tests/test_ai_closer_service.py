"""Tests for AiCloserService: session lifecycle, qualification trigger and races."""

import pytest
from sqlalchemy import func, select, text

from realty_platform.agents.base import AgentResult
from realty_platform.agents.qualification_agent import QualificationError
from realty_platform.domain.enums import QualificationOutcome, SessionStatus
from realty_platform.domain.models import AiCloserSession
from realty_platform.domain.schemas import BudgetRange, ExtractedNeeds, QualificationResult
from realty_platform.services.ai_closer_service import (
    QUALIFICATION_MIN_TURNS,
    AiCloserService,
    ConcurrentUpdateError,
    SessionNotFoundError,
    UpstreamError,
)
from realty_platform.services.session_state_machine import InvalidTransitionError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _qualification(outcome=QualificationOutcome.QUALIFIED, score=85) -> QualificationResult:
    return QualificationResult(
        qualification_score=score,
        extracted_needs=ExtractedNeeds(
            budget=BudgetRange(min=1_000_000, max=2_000_000),
            location=["Riyadh"],
            property_type=["villa"],
            urgency="high",
        ),
        outcome=outcome,
    )


@pytest.fixture
def service(db_session, closer_agent_mock, qualifier_mock):
    return AiCloserService(db_session, closer_agent=closer_agent_mock, qualifier=qualifier_mock)


async def _session_count(db_session) -> int:
    result = await db_session.execute(select(func.count()).select_from(AiCloserSession))
    return result.scalar_one()


async def _advance_to(service, session_id, total_turns):
    """Send messages until the session history reaches ``total_turns``."""
    session = await service.get_session(session_id)
    while len(session.session_history) < total_turns:
        await service.send_message(session_id, "Tell me more")
        session = await service.get_session(session_id)


# ===================================================================
# Starting sessions
# ===================================================================


class TestStartSession:

    async def test_start_returns_user_and_assistant_turns(self, service):
        session, turns = await service.start_session("Hi, I'm looking for a villa")

        assert [t["role"] for t in turns] == ["user", "assistant"]
        assert turns[0]["content"] == "Hi, I'm looking for a villa"
        assert turns[1]["content"] == "Assistant reply 1"
        assert all(t["timestamp"] for t in turns)
        assert session.session_history == turns
        assert session.status == SessionStatus.ACTIVE
        assert session.outcome is None
        assert session.qualification_score is None
        assert session.extracted_needs == {}

    async def test_start_defaults_to_guest_user(self, service):
        session, _ = await service.start_session("Hello")
        assert session.user_id == "guest-user"

    async def test_start_keeps_given_user(self, service):
        session, _ = await service.start_session("Hello", user_id="user-42")
        assert session.user_id == "user-42"

    async def test_session_ids_are_unique(self, service):
        first, _ = await service.start_session("Hello")
        second, _ = await service.start_session("Hello again")
        assert first.id != second.id

    async def test_upstream_failure_persists_nothing(self, service, closer_agent_mock, db_session):
        closer_agent_mock.reply.side_effect = None
        closer_agent_mock.reply.return_value = AgentResult.failure("model unavailable")

        with pytest.raises(UpstreamError):
            await service.start_session("Hello")
        assert await _session_count(db_session) == 0


# ===================================================================
# Sending messages
# ===================================================================


class TestSendMessage:

    async def test_message_appends_two_turns(self, service, qualifier_mock):
        session, _ = await service.start_session("Hello")

        turns, qualification = await service.send_message(session.id, "Budget is 2M")

        assert [t["role"] for t in turns] == ["user", "assistant"]
        assert turns[0]["content"] == "Budget is 2M"
        assert qualification is None
        stored = await service.get_session(session.id)
        assert len(stored.session_history) == 4
        assert stored.session_history[-2:] == turns
        qualifier_mock.qualify.assert_not_awaited()

    async def test_agent_receives_prior_history(self, service, closer_agent_mock):
        session, start_turns = await service.start_session("Hello")
        await service.send_message(session.id, "Second")

        history_arg, message_arg = closer_agent_mock.reply.await_args.args
        assert history_arg == start_turns
        assert message_arg == "Second"

    async def test_unknown_session_raises_and_creates_nothing(self, service, db_session, closer_agent_mock):
        with pytest.raises(SessionNotFoundError):
            await service.send_message("does-not-exist", "Hello")
        assert await _session_count(db_session) == 0
        closer_agent_mock.reply.assert_not_awaited()

    async def test_upstream_failure_leaves_history_unchanged(self, service, closer_agent_mock):
        session, _ = await service.start_session("Hello")
        closer_agent_mock.reply.side_effect = None
        closer_agent_mock.reply.return_value = AgentResult.failure("timeout")

        with pytest.raises(UpstreamError):
            await service.send_message(session.id, "Are you there?")

        stored = await service.get_session(session.id)
        assert len(stored.session_history) == 2


# ===================================================================
# Qualification trigger
# ===================================================================


class TestQualificationTrigger:

    async def test_not_called_below_threshold(self, service, qualifier_mock):
        session, _ = await service.start_session("Hello")
        await _advance_to(service, session.id, QUALIFICATION_MIN_TURNS - 2)
        qualifier_mock.qualify.assert_not_awaited()

    async def test_called_once_when_history_reaches_threshold(self, service, qualifier_mock):
        qualifier_mock.qualify.return_value = _qualification(QualificationOutcome.NEEDS_FOLLOWUP, 55)
        session, _ = await service.start_session("Hello")
        await _advance_to(service, session.id, QUALIFICATION_MIN_TURNS - 2)

        turns, qualification = await service.send_message(session.id, "My budget is 2M")

        qualifier_mock.qualify.assert_awaited_once()
        (history_arg,) = qualifier_mock.qualify.await_args.args
        assert len(history_arg) == QUALIFICATION_MIN_TURNS
        assert history_arg[-2:] == turns
        assert qualification.qualification_score == 55

    async def test_called_on_every_turn_after_threshold(self, service, qualifier_mock):
        qualifier_mock.qualify.return_value = _qualification(QualificationOutcome.NEEDS_FOLLOWUP, 55)
        session, _ = await service.start_session("Hello")
        await _advance_to(service, session.id, QUALIFICATION_MIN_TURNS + 4)
        assert qualifier_mock.qualify.await_count == 3

    async def test_qualified_outcome_completes_session(self, service, qualifier_mock):
        qualifier_mock.qualify.return_value = _qualification(QualificationOutcome.QUALIFIED, 85)
        session, _ = await service.start_session("Hello")
        await _advance_to(service, session.id, QUALIFICATION_MIN_TURNS)

        stored = await service.get_session(session.id)
        assert stored.status == SessionStatus.COMPLETED
        assert stored.outcome == QualificationOutcome.QUALIFIED
        assert stored.qualification_score == 85
        assert stored.extracted_needs["location"] == ["Riyadh"]
        assert stored.extracted_needs["propertyType"] == ["villa"]
        assert stored.extracted_needs["budget"] == {"min": 1_000_000, "max": 2_000_000}

    async def test_not_qualified_keeps_session_active(self, service, qualifier_mock):
        qualifier_mock.qualify.return_value = _qualification(QualificationOutcome.NOT_QUALIFIED, 20)
        session, _ = await service.start_session("Hello")
        await _advance_to(service, session.id, QUALIFICATION_MIN_TURNS)

        stored = await service.get_session(session.id)
        assert stored.status == SessionStatus.ACTIVE
        assert stored.outcome == QualificationOutcome.NOT_QUALIFIED
        assert stored.qualification_score == 20

    async def test_completed_session_never_moves_back(self, service, qualifier_mock):
        qualifier_mock.qualify.return_value = _qualification(QualificationOutcome.QUALIFIED, 85)
        session, _ = await service.start_session("Hello")
        await _advance_to(service, session.id, QUALIFICATION_MIN_TURNS)

        qualifier_mock.qualify.return_value = _qualification(QualificationOutcome.NEEDS_FOLLOWUP, 50)
        turns, qualification = await service.send_message(session.id, "Actually, not sure")

        assert len(turns) == 2
        assert qualification.outcome == QualificationOutcome.NEEDS_FOLLOWUP
        stored = await service.get_session(session.id)
        assert stored.status == SessionStatus.COMPLETED
        assert stored.outcome == QualificationOutcome.NEEDS_FOLLOWUP
        assert len(stored.session_history) == QUALIFICATION_MIN_TURNS + 2

    async def test_qualifier_failure_keeps_turns_and_prior_fields(self, service, qualifier_mock):
        qualifier_mock.qualify.return_value = _qualification(QualificationOutcome.NOT_QUALIFIED, 30)
        session, _ = await service.start_session("Hello")
        await _advance_to(service, session.id, QUALIFICATION_MIN_TURNS)

        qualifier_mock.qualify.side_effect = QualificationError("provider down")
        turns, qualification = await service.send_message(session.id, "Still there?")

        assert qualification is None
        assert len(turns) == 2
        stored = await service.get_session(session.id)
        assert len(stored.session_history) == QUALIFICATION_MIN_TURNS + 2
        assert stored.qualification_score == 30
        assert stored.outcome == QualificationOutcome.NOT_QUALIFIED
        assert stored.status == SessionStatus.ACTIVE

    async def test_qualifier_failure_retries_next_turn(self, service, qualifier_mock):
        qualifier_mock.qualify.side_effect = [
            RuntimeError("boom"),
            _qualification(QualificationOutcome.QUALIFIED, 90),
        ]
        session, _ = await service.start_session("Hello")
        await _advance_to(service, session.id, QUALIFICATION_MIN_TURNS)

        stored = await service.get_session(session.id)
        assert stored.qualification_score is None
        assert stored.status == SessionStatus.ACTIVE

        await service.send_message(session.id, "One more thing")
        stored = await service.get_session(session.id)
        assert stored.qualification_score == 90
        assert stored.status == SessionStatus.COMPLETED


# ===================================================================
# Abandoning sessions
# ===================================================================


class TestAbandonSession:

    async def test_abandon_active_session(self, service):
        session, _ = await service.start_session("Hello")
        abandoned = await service.abandon_session(session.id)
        assert abandoned.status == SessionStatus.ABANDONED

    async def test_abandoned_session_rejects_messages(self, service, closer_agent_mock):
        session, _ = await service.start_session("Hello")
        await service.abandon_session(session.id)

        with pytest.raises(InvalidTransitionError):
            await service.send_message(session.id, "Wait, come back")
        assert closer_agent_mock.reply.await_count == 1

    async def test_abandon_twice_rejected(self, service):
        session, _ = await service.start_session("Hello")
        await service.abandon_session(session.id)
        with pytest.raises(InvalidTransitionError):
            await service.abandon_session(session.id)

    async def test_abandon_unknown_session(self, service):
        with pytest.raises(SessionNotFoundError):
            await service.abandon_session("nope")


# ===================================================================
# Concurrent writers
# ===================================================================


class TestConcurrentUpdate:

    async def test_stale_version_raises_conflict(self, service, closer_agent_mock, db_session):
        session, _ = await service.start_session("Hello")
        session_id = session.id

        async def _reply_while_someone_else_writes(history, message):
            # Another writer commits a new version between our read and our write
            await db_session.execute(
                text("UPDATE ai_closer_sessions SET version = version + 1 WHERE id = :id"),
                {"id": session_id},
            )
            return AgentResult.success("Racing reply")

        closer_agent_mock.reply.side_effect = _reply_while_someone_else_writes

        with pytest.raises(ConcurrentUpdateError):
            await service.send_message(session_id, "Hello again")

        db_session.expunge_all()
        stored = await service.get_session(session_id)
        assert len(stored.session_history) == 2


# ===================================================================
# Listing
# ===================================================================


class TestListSessions:

    async def test_list_returns_all_sessions(self, service):
        first, _ = await service.start_session("One")
        second, _ = await service.start_session("Two")
        sessions = await service.list_sessions()
        assert {s.id for s in sessions} == {first.id, second.id}

    async def test_list_empty(self, service):
        assert await service.list_sessions() == []
