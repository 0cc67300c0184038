"""Pytest configuration and shared fixtures for all tests."""

import os

# Minimal environment for Settings; must be set before any engine import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_commission_engine.db")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("RATE_CACHE_TTL_SECONDS", "0")
os.environ.setdefault("CLASSIFICATION_CONCURRENCY", "2")

from datetime import UTC, date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from commission_engine.config.database import (
    create_engine_from_url,
    create_session_factory,
)
from commission_engine.models import (
    Base,
    Lead,
    Property,
    ReferenceSource,
    Referral,
    Status,
    User,
    Viewing,
)


def utc(year: int, month: int, day: int, hour: int = 12) -> datetime:
    """Timezone-aware UTC datetime."""
    return datetime(year, month, day, hour, tzinfo=UTC)


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    session.refresh = AsyncMock()
    return session


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh file-backed SQLite database with all tables."""
    engine = create_engine_from_url(
        f"sqlite+aiosqlite:///{tmp_path / 'commission_engine.db'}"
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


class Seeder:
    """Inserts collaborator rows and referrals, committing each one."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory
        self._statuses: dict[str, int] = {}

    async def _add(self, entity):
        async with self.session_factory() as session:
            session.add(entity)
            await session.commit()
            await session.refresh(entity)
        return entity

    async def user(self, name: str, user_code: str | None = None) -> User:
        return await self._add(User(name=name, user_code=user_code))

    async def status(self, code: str, name: str | None = None) -> int:
        if code not in self._statuses:
            status = await self._add(Status(code=code, name=name or code.title()))
            self._statuses[code] = status.id
        return self._statuses[code]

    async def source(self, name: str) -> ReferenceSource:
        return await self._add(ReferenceSource(source_name=name))

    async def lead(
        self,
        agent_id: int | None,
        when: datetime | None = None,
        source_id: int | None = None,
    ) -> Lead:
        return await self._add(
            Lead(
                customer_name="Customer",
                agent_id=agent_id,
                reference_source_id=source_id,
                date=when or utc(2025, 3, 10),
            )
        )

    async def property(
        self,
        agent_id: int | None,
        price: str | Decimal | None = None,
        closed: date | None = None,
        status: str = "available",
        owner_id: int | None = None,
        created_at: datetime | None = None,
    ) -> Property:
        return await self._add(
            Property(
                reference_number="REF",
                agent_id=agent_id,
                owner_id=owner_id,
                status_id=await self.status(status),
                price=Decimal(price) if price is not None else None,
                closed_date=closed,
                created_at=created_at or utc(2024, 12, 1),
            )
        )

    async def sale(
        self,
        agent_id: int,
        price: str,
        closed: date,
        status: str = "sold",
        owner_id: int | None = None,
    ) -> Property:
        return await self.property(
            agent_id,
            price=price,
            closed=closed,
            status=status,
            owner_id=owner_id,
        )

    async def viewing(self, agent_id: int, when: date) -> Viewing:
        return await self._add(Viewing(agent_id=agent_id, viewing_date=when))

    async def referral(
        self,
        subject_id: int,
        referrer_id: int | None,
        when: datetime,
        subject_type: str = "property",
        external: bool = False,
        status: str = "pending",
    ) -> Referral:
        return await self._add(
            Referral(
                subject_type=subject_type,
                subject_id=subject_id,
                referrer_id=referrer_id,
                name="Referrer",
                kind="employee",
                date=when,
                external=external,
                status=status,
            )
        )

    async def reload(self, referral_id: int) -> Referral:
        async with self.session_factory() as session:
            return await session.get(Referral, referral_id)


@pytest.fixture
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)
