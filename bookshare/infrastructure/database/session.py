"""
Database Engine and Session Management

The Database object owns the async engine and session factory. One instance
is built per application in the lifespan and shared through app.state.

STAGE-DB: Persistence
"""

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from bookshare.core.exceptions import PersistenceError
from bookshare.core.logging.logger import get_logger
from bookshare.infrastructure.database.models import Base

logger = get_logger(__name__)


def _is_in_memory_sqlite(url: str) -> bool:
    if not url.startswith("sqlite"):
        return False
    return ":memory:" in url or url.split("://", 1)[-1] in ("", "/")


class Database:
    """
    Async SQLAlchemy engine wrapper.

    Usage:
        db = Database("sqlite+aiosqlite:///./bookshare.db")
        await db.create_all()

        async with db.session() as session:
            ...

        await db.dispose()
    """

    def __init__(self, url: str, echo: bool = False):
        engine_kwargs = {}
        if _is_in_memory_sqlite(url):
            # One shared connection, otherwise every checkout sees an empty database
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}

        self._url = url
        self._engine = create_async_engine(url, echo=echo, **engine_kwargs)
        self._sessionmaker = async_sessionmaker(self._engine, expire_on_commit=False)

        logger.info("Database engine created", stage="DB.0", dialect=self._engine.dialect.name)

    @property
    def engine(self):
        return self._engine

    async def create_all(self) -> None:
        """
        Create missing tables.

        STAGE-DB.1: Schema bootstrap (no migrations)
        """
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready", stage="DB.1")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; it is closed (and rolled back if uncommitted) on exit."""
        async with self._sessionmaker() as session:
            yield session

    async def ping(self) -> bool:
        """Run a trivial query; used by the readiness check."""
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database ping failed", stage="DB.H", error=str(e))
            return False

    async def dispose(self) -> None:
        """
        STAGE-DB.2: Engine cleanup
        """
        await self._engine.dispose()
        logger.info("Database engine disposed", stage="DB.2")


@contextmanager
def store_errors(message: str, expose: bool = False, **details) -> Iterator[None]:
    """
    Translate SQLAlchemy failures into PersistenceError.

    With ``expose`` the driver message becomes the response ``details`` text.

    Usage:
        with store_errors("Failed to fetch books"):
            total, rows = await repo.count_and_page(query)
    """
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(message, stage="DB.E", error=str(e), error_type=type(e).__name__, **details)
        error = PersistenceError.from_exception(e, message, **details)
        if expose:
            error.public_details = str(e)
        raise error from e
