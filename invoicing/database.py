from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import text
import structlog

from invoicing.config import settings
from invoicing.errors import ConfigError

logger = structlog.get_logger()


class Base(DeclarativeBase):
    pass


_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _get_db_url() -> str:
    """Strip sslmode from URL since asyncpg uses connect_args for SSL."""
    url = settings.DATABASE_URL
    url = url.replace("?sslmode=require", "").replace("&sslmode=require", "")
    return url


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"echo": settings.DEBUG}
    kwargs = {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": 30,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
        "echo": settings.DEBUG,
    }
    if settings.DB_SSL_REQUIRED:
        kwargs["connect_args"] = {"ssl": "require"}
    return kwargs


def get_engine() -> AsyncEngine:
    """Create the engine on first use; a missing DATABASE_URL is a config error."""
    global _engine
    if _engine is None:
        url = _get_db_url()
        if not url:
            logger.error("database_url_missing")
            raise ConfigError()
        _engine = create_async_engine(url, **_engine_kwargs(url))
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(), class_=AsyncSession, expire_on_commit=False
        )
    return _session_factory


async def get_db():
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db():
    if not settings.DATABASE_URL:
        logger.warning("database_url_missing")
        return
    async with get_engine().begin() as conn:
        await conn.execute(text("SELECT 1"))
        logger.info("db_connected")


async def close_db():
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("db_disconnected")
    _engine = None
    _session_factory = None
