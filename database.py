# database.py
"""
SQLAlchemy asyncio engine and session management.

This module provides:
- Async engine configured from DATABASE_URL (SQLite via aiosqlite by default)
- Session factory for dependency injection
- Connection utilities

Usage:
     from database import get_session

     # In FastAPI routes:
     @router.get("/items")
     async def get_items(db: AsyncSession = Depends(get_session)):
          return (await db.execute(select(Item))).scalars().all()
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from config import DATABASE_URL, SQL_ECHO
from errors import MedLedgerError, StorageError

logger = logging.getLogger(__name__)


def build_engine(url: str = DATABASE_URL, echo: bool = SQL_ECHO, **kwargs) -> AsyncEngine:
     """Create an async engine; pool sizing only applies to server databases."""
     kwargs["echo"] = echo
     if not url.startswith("sqlite") and "poolclass" not in kwargs:
          kwargs.update(
               pool_size=5,
               max_overflow=10,
               pool_timeout=30,
               pool_recycle=1800,  # Recycle connections after 30 minutes
               pool_pre_ping=True,
          )
     return create_async_engine(url, **kwargs)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
     return async_sessionmaker(
          bind=bind,
          autoflush=False,
          expire_on_commit=False,
     )


# Create SQLAlchemy engine
engine = build_engine()

# Session factory
SessionLocal = build_session_factory(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
     """
     FastAPI dependency that provides a database session.

     Domain errors roll the session back and propagate unchanged;
     driver errors are re-raised as StorageError.

     Yields:
          AsyncSession: SQLAlchemy database session
     """
     async with get_session_context() as session:
          yield session


@asynccontextmanager
async def get_session_context(factory: async_sessionmaker = None) -> AsyncGenerator[AsyncSession, None]:
     """
     Context manager for database sessions (for use outside FastAPI routes).

     Usage:
          async with get_session_context() as db:
               users = (await db.execute(select(User))).scalars().all()

     Yields:
          AsyncSession: SQLAlchemy database session
     """
     session = (factory or SessionLocal)()
     try:
          yield session
          await session.commit()
     except MedLedgerError:
          await session.rollback()
          raise
     except SQLAlchemyError as e:
          await session.rollback()
          logger.error(f"Database error: {e}")
          raise StorageError(f"Storage failure: {e.__class__.__name__}") from e
     except BaseException:
          await session.rollback()
          raise
     finally:
          await session.close()


async def init_db(bind: AsyncEngine = None) -> None:
     """
     Initialize database tables.

     Creates all tables defined in the models if they don't exist.
     For production, use Alembic migrations instead.
     """
     from models import Base
     async with (bind or engine).begin() as conn:
          await conn.run_sync(Base.metadata.create_all)


async def check_connection(bind: AsyncEngine = None) -> bool:
     """
     Test database connectivity.

     Returns:
          bool: True if connection successful, False otherwise
     """
     try:
          async with (bind or engine).connect() as conn:
               await conn.execute(text("SELECT 1"))
          return True
     except (SQLAlchemyError, OSError) as e:
          logger.error(f"Database connection failed: {e}")
          return False
