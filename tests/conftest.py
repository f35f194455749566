"""Shared test infrastructure for the realty platform test suite.

Provides:
- db_session: async SQLite in-memory session with all tables created
- closer_agent_mock / qualifier_mock: AI agents with canned responses
- api_client: HTTPX AsyncClient bound to the app with DB + agents overridden
- make_user / make_developer / make_property / make_buyer_profile: row factories
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Import Base first, then models to register all tables
from realty_platform.infra.database import Base

import realty_platform.domain.models  # noqa: F401

from realty_platform.agents.base import AgentResult
from realty_platform.agents.closer_agent import AiCloserAgent
from realty_platform.agents.qualification_agent import QualificationAgent
from realty_platform.domain.models import BuyerProfile, Developer, Property, User


# ---------------------------------------------------------------------------
# Database session fixture
# ---------------------------------------------------------------------------

@pytest.fixture
async def db_session():
    """Async SQLite in-memory session with all tables created.

    Creates a fresh engine + tables for each test, yields a session,
    then rolls back and tears down.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


# ---------------------------------------------------------------------------
# Agent mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def closer_agent_mock():
    """AiCloserAgent whose reply() always succeeds with a canned answer.

    Each call is numbered so tests can tell replies apart.
    """
    mock = MagicMock(spec=AiCloserAgent)
    counter = {"n": 0}

    async def _reply(history, message):
        counter["n"] += 1
        return AgentResult.success(data=f"Assistant reply {counter['n']}")

    mock.reply = AsyncMock(side_effect=_reply)
    return mock


@pytest.fixture
def qualifier_mock():
    """QualificationAgent whose qualify() must be configured per test."""
    mock = MagicMock(spec=QualificationAgent)
    mock.qualify = AsyncMock()
    return mock


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------

@pytest.fixture
async def api_client(db_session, closer_agent_mock, qualifier_mock):
    """HTTPX client for the full app with DB and AI agents overridden."""
    from realty_platform.app.main import app
    from realty_platform.app.routes.ai_closer import get_closer_agent, get_qualification_agent
    from realty_platform.infra.database import get_db

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_closer_agent] = lambda: closer_agent_mock
    app.dependency_overrides[get_qualification_agent] = lambda: qualifier_mock

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_user(db_session):
    """Factory that creates a User row."""
    async def _factory(name: str = "Ahmed Hassan", email: str | None = None) -> User:
        user = User(
            id=str(uuid.uuid4()),
            name=name,
            email=email or f"{uuid.uuid4().hex[:8]}@example.com",
            role="client",
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _factory


@pytest.fixture
def make_developer(db_session):
    """Factory that creates a Developer row."""
    async def _factory(company_name: str = "Elite Properties", trust_score: float = 80.0) -> Developer:
        developer = Developer(
            id=str(uuid.uuid4()),
            name="Test Developer",
            company_name=company_name,
            email=f"{uuid.uuid4().hex[:8]}@dev.example.com",
            trust_score=trust_score,
        )
        db_session.add(developer)
        await db_session.flush()
        return developer

    return _factory


@pytest.fixture
def make_property(db_session, make_developer):
    """Factory that creates a Property (and its Developer when not given).

    Usage:
        prop = await make_property(city="Riyadh", price=2_000_000)
    """
    async def _factory(
        city: str = "Riyadh",
        property_type: str = "apartment",
        price: float = 1_000_000,
        size: float = 150,
        developer: Developer | None = None,
        title: str = "Test Property",
    ) -> Property:
        developer = developer or await make_developer()
        prop = Property(
            id=str(uuid.uuid4()),
            title=title,
            city=city,
            property_type=property_type,
            price=price,
            size=size,
            developer_id=developer.id,
        )
        db_session.add(prop)
        await db_session.flush()
        return prop

    return _factory


@pytest.fixture
def make_buyer_profile(db_session):
    """Factory that creates a BuyerProfile row for ``user_id``."""
    async def _factory(user_id: str, **fields) -> BuyerProfile:
        defaults = {
            "risk_tolerance": "medium",
            "urgency_level": "medium",
            "price_sensitivity": "medium",
            "preferred_cities": [],
            "preferred_types": [],
        }
        defaults.update(fields)
        profile = BuyerProfile(id=str(uuid.uuid4()), user_id=user_id, **defaults)
        db_session.add(profile)
        await db_session.flush()
        return profile

    return _factory
