import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from core.config import settings
from core.exceptions import ConflictError, StorageError

logger = logging.getLogger(__name__)


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    SQLite connections get foreign key enforcement switched on; the
    PostgreSQL path gets the configured pool sizing.
    """
    options = {"echo": settings.database_echo}
    if not database_url.startswith("sqlite"):
        options["pool_size"] = settings.database_pool_size
        options["max_overflow"] = settings.database_max_overflow
    options.update(kwargs)

    engine = create_async_engine(database_url, **options)
    if engine.dialect.name == "sqlite":
        enable_sqlite_foreign_keys(engine.sync_engine)
    return engine


def enable_sqlite_foreign_keys(sync_engine: Engine) -> None:
    # Listen for the 'connect' event to turn on FK enforcement per connection
    @event.listens_for(sync_engine, "connect")
    def connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


logger.info("Configuring database engine for %s", settings.database_url.split("://")[0])

db_engine = build_engine(settings.database_url)


# Create async session maker to be used throughout the application
AsyncSessionLocal = async_sessionmaker(
    db_engine, class_=AsyncSession, expire_on_commit=False
)


# Base class for declarative models
class Base(DeclarativeBase):
    pass


# Dependency to get DB session
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Commit everything done inside the block, or roll all of it back.

    Any exception raised inside the block (including cancellation)
    rolls back the session and propagates unchanged.
    """
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise


@asynccontextmanager
async def transaction(
    session: AsyncSession,
    failure_message: str = "Storage operation failed",
    conflict_message: str | None = None,
) -> AsyncIterator[AsyncSession]:
    """
    Unit of work that translates persistence failures into domain errors.

    Args:
        session: Session to commit or roll back
        failure_message: Message of the StorageError raised on failure
        conflict_message: When set, unique violations raise ConflictError
            with this message instead of StorageError

    Raises:
        ConflictError: On an integrity violation, if conflict_message is set
        StorageError: On any other SQLAlchemy failure, chained from it
    """
    try:
        async with unit_of_work(session):
            yield session
    except IntegrityError as exc:
        if conflict_message is None:
            logger.error("%s: %s", failure_message, exc.orig)
            raise StorageError(failure_message) from exc
        logger.warning("%s: %s", conflict_message, exc.orig)
        raise ConflictError(conflict_message) from exc
    except SQLAlchemyError as exc:
        logger.error("%s: %s", failure_message, exc)
        raise StorageError(failure_message) from exc


# Function to initialize the database (create tables, etc.)
async def init_db():
    # Make sure every model is registered on the metadata
    import database.models  # noqa: F401

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Function to close database connections
async def close_db():
    """Close database engine and connections."""
    await db_engine.dispose()
