"""
Test configuration and fixtures
"""
import os
from datetime import timedelta
from typing import AsyncGenerator, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("PAIRING_SCHEDULER_ENABLED", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from coffee_pairing.core.config import Settings
from coffee_pairing.core.database import Base, build_engine, get_db
from coffee_pairing.core.timeutils import utcnow
from coffee_pairing.models.organization import Organization
from coffee_pairing.models.pairing import PairingPeriod, PairingPeriodStatus, Pairing, PairingStatus
from coffee_pairing.models.user import User, UserRole
from coffee_pairing.services.background import TaskDispatcher
from coffee_pairing.services.mailer import ConsoleMailer
from coffee_pairing.services.pairing_hooks import PairingHooks
from coffee_pairing.services.pairing_service import OrganizationLocks, PairingService


# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    """Create a fresh in-memory database per test."""
    engine = build_engine(TEST_DATABASE_URL, enforce_foreign_keys=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    """Create test session maker."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults, independent of the process environment."""
    return Settings(
        DATABASE_URL=TEST_DATABASE_URL,
        SECRET_KEY="test-secret-key",
        PAIRING_SCHEDULER_ENABLED=False,
        EMAIL_BACKEND="console",
    )


@pytest.fixture
def dispatcher() -> TaskDispatcher:
    return TaskDispatcher()


@pytest.fixture
def mailer() -> ConsoleMailer:
    return ConsoleMailer()


@pytest.fixture
def hooks(session_maker, dispatcher, mailer, test_settings) -> PairingHooks:
    return PairingHooks(session_maker, dispatcher=dispatcher, mailer=mailer, config=test_settings)


@pytest.fixture
def pairing_service(session_maker, hooks, test_settings) -> PairingService:
    return PairingService(
        session_maker,
        hooks=hooks,
        locks=OrganizationLocks(),
        config=test_settings,
    )


@pytest.fixture
def make_organization(db_session):
    """Factory creating a committed organization."""
    async def _create(code: str = "ACME", name: Optional[str] = None) -> Organization:
        org = Organization(code=code, name=name or f"{code} Inc")
        db_session.add(org)
        await db_session.commit()
        return org

    return _create


@pytest.fixture
def make_users(db_session):
    """Factory creating committed users in an organization."""
    async def _create(
        organization: Organization,
        count: int,
        prefix: str = "user",
        role: UserRole = UserRole.USER,
        **fields,
    ) -> list[User]:
        users = []
        for index in range(1, count + 1):
            user = User(
                organization_id=organization.id,
                email=f"{prefix}{index}@{organization.code.lower()}.example.com",
                first_name=f"{prefix.title()}{index}",
                last_name="Tester",
                role=role,
                **fields,
            )
            db_session.add(user)
            users.append(user)
        await db_session.commit()
        return users

    return _create


@pytest.fixture
def make_closed_period(db_session):
    """Factory for a past, closed period holding the given pairs."""
    async def _create(
        organization: Organization,
        pairs: list[tuple[int, int]],
        days_ago: int = 21,
        length_days: int = 21,
    ) -> PairingPeriod:
        start = utcnow() - timedelta(days=days_ago)
        period = PairingPeriod(
            organization_id=organization.id,
            start_date=start,
            end_date=start + timedelta(days=length_days),
            status=PairingPeriodStatus.CLOSED,
        )
        db_session.add(period)
        await db_session.flush()
        for user_a_id, user_b_id in pairs:
            db_session.add(
                Pairing(
                    period_id=period.id,
                    organization_id=organization.id,
                    user_a_id=user_a_id,
                    user_b_id=user_b_id,
                    status=PairingStatus.MET,
                )
            )
        await db_session.commit()
        return period

    return _create


@pytest.fixture
async def client(session_maker, pairing_service) -> AsyncGenerator[AsyncClient, None]:
    """Create test client bound to the test database."""
    from coffee_pairing.main import app
    from coffee_pairing.api.deps import get_pairing_service

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_pairing_service] = lambda: pairing_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()
