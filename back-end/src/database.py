import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Awaitable, TypeVar

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

from settings import settings
from utilities.exceptions import PersistenceTimeout


logger = logging.getLogger(__name__)

T = TypeVar("T")

async_engine = create_async_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)


async def guarded(awaitable: Awaitable[T], timeout: float | None = None) -> T:
    """
    Await a persistence call with the configured timeout.

    A call that does not finish in time raises PersistenceTimeout, which the
    API reports as a retryable 503.
    """
    if timeout is None:
        timeout = settings.PERSISTENCE_TIMEOUT_SECONDS
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        logger.warning("Persistence call exceeded %.2fs", timeout)
        raise PersistenceTimeout()


async def create_db_and_tables() -> None:
    # registers the table models on SQLModel.metadata
    import models.relational_models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_db_and_tables()
    logger.info("Database ready")
    yield
    await async_engine.dispose()
