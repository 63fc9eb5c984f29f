from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings
from src.tc_common.errors import AppError, TransactionFailureError


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models across modules."""

    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run a unit of work: commit on success, roll back everything on error.

    Business errors (AppError) propagate unchanged after the rollback.
    Driver/database errors are rolled back and re-raised as TransactionFailureError
    so no SQL text leaks into API responses.
    """
    try:
        yield db
        await db.commit()
    except AppError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        raise TransactionFailureError() from exc
    except Exception:
        await db.rollback()
        raise
