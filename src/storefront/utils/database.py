# src/storefront/utils/database.py
import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from config.settings import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL


def _engine_kwargs(url: str) -> dict:
    # SQLite (tests / local runs) has no server-side pool to size
    if url.startswith("sqlite"):
        return {"echo": settings.DB_ECHO, "poolclass": NullPool}
    return {
        "echo": settings.DB_ECHO,                    # Logs all SQL queries if True
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "connect_args": {"timeout": settings.DB_TIMEOUT},
        "pool_pre_ping": True,                       # Validate connections before use
    }


# Create the asynchronous engine with connection pooling and timeout handling
try:
    engine = create_async_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))
    logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))
except SQLAlchemyError as e:
    logger.error("Error creating database engine: %s", e)
    raise

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,  # Don't expire objects after commit
)

# Base class for SQLAlchemy ORM models
Base = declarative_base()


async def init_models() -> None:
    """Create missing tables (local runs / tests; production uses migrations)."""
    # model modules register their tables on Base.metadata
    from src.storefront.models import admin_user, menu  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_models() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# Dependency to retrieve a database session in FastAPI
# Ensures the session is properly closed after use
async def get_db():
    try:
        async with AsyncSessionLocal() as session:
            yield session
    except IntegrityError:
        # rendered as 400 by the app error handler
        raise
    except SQLAlchemyError as e:
        logger.error("Error while interacting with the database: %s", e)
        raise HTTPException(status_code=500, detail="Database operation failed")
