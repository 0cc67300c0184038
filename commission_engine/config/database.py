"""
Database engine and session factory.

One async engine per process; callers open sessions from async_session_maker.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from commission_engine.config.settings import settings


def create_engine_from_url(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine, enabling pre-ping for server databases."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def create_session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the given engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine: AsyncEngine = create_engine_from_url(
    settings.database_url, echo=settings.database_echo
)

async_session_maker = create_session_factory(engine)
