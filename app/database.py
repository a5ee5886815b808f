import asyncio
import functools
import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings
from app.errors import StoreError

logger = logging.getLogger(__name__)

engine = create_async_engine(get_settings().database_url, pool_pre_ping=True)
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


async def init_db() -> None:
    """Create any missing tables."""
    # register the mapped classes on Base.metadata
    from app.models import todo  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database tables ready")


def bounded(method):
    """Run a service coroutine under the configured store deadline.

    The owning object must expose ``settings.db_timeout``. A timeout or any
    SQLAlchemy error is logged with its cause and re-raised as ``StoreError``;
    nothing is retried.
    """

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        timeout = self.settings.db_timeout
        try:
            return await asyncio.wait_for(method(self, *args, **kwargs), timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.error("%s exceeded the %.1fs store deadline", method.__qualname__, timeout)
            raise StoreError() from exc
        except SQLAlchemyError as exc:
            logger.error("%s store error: %s", method.__qualname__, exc)
            raise StoreError() from exc

    return wrapper
