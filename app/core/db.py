# app/core/db.py

"""
Database engines and sessions.

Report routes run plain SQL on the synchronous engine. Synchronisation
services, routers that write and the Celery tasks use the asyncpg engine.
"""

from contextlib import asynccontextmanager

from sqlalchemy import MetaData, create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Names for indexes and constraints declared without an explicit name
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_N_name)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))

# --- Reports (sync) ---

engine = create_engine(
    settings.db_url,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)
SessionLocal = sessionmaker(bind=engine, class_=Session, autoflush=False)


def get_db():
    """
    Read-only session for report queries. Nothing is committed, the
    transaction is rolled back when the request ends.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


# --- Synchronisation (async) ---

async_engine = create_async_engine(
    settings.async_db_url,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)
AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def async_session_scope():
    """
    Async session committed when the block finishes without error and
    rolled back otherwise. Services may commit earlier on their own.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error("Async DB transaction rolled back", error_message=str(e))
            raise


async def get_async_db():
    """FastAPI dependency around ``async_session_scope``"""
    async with async_session_scope() as session:
        yield session
