"""
Database Connection Module
Handles the SQLAlchemy async engine used by the SQL collaborators.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from quickserve.core.config import get_settings

settings = get_settings()

ORDER_SEQUENCE_NAME = "orders"


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine, sizing the pool only for server databases."""
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=5,  # Connection pool size
        max_overflow=10  # Extra connections when pool is full
    )


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False  # Objects remain accessible after commit
    )


engine = build_engine(settings.database_url, echo=settings.debug)

# Session factory - creates new database sessions
async_session_maker = build_session_maker(engine)


# Base class for all our models
class Base(DeclarativeBase):
    pass


async def init_db(bind: AsyncEngine = engine) -> None:
    """
    Create all tables and the order number sequence row.
    Called once at application startup.
    """
    # Tables register themselves on Base.metadata when imported
    from quickserve.models import OrderSequence

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with build_session_maker(bind)() as session, session.begin():
        result = await session.execute(
            select(OrderSequence).where(OrderSequence.name == ORDER_SEQUENCE_NAME)
        )
        if result.scalar_one_or_none() is None:
            session.add(OrderSequence(name=ORDER_SEQUENCE_NAME, value=0))
