"""Database connection and session management."""
from datetime import datetime, timezone

from sqlalchemy import DateTime, event, text
from sqlalchemy.engine import Dialect
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from program_tracker.config.settings import get_settings
from program_tracker.core.logging import get_logger

logger = get_logger(__name__)

settings = get_settings()

SQLITE_BUSY_TIMEOUT_MS = 30000


class UTCDateTime(TypeDecorator):
    """Stores instants as naive UTC and loads them back as aware UTC datetimes.

    SQLite has no timezone-aware column type, so normalising on the way in
    keeps comparisons against local day windows consistent on every backend.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("UTCDateTime columns require timezone-aware datetimes")
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect: Dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_primary_engine(url: str | None = None) -> AsyncEngine:
    """Create the database engine."""
    url = url or settings.database_url
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=settings.debug, future=True)
        _configure_sqlite_connections(engine)
        return engine
    return create_async_engine(
        url,
        echo=settings.debug,
        future=True,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=30,
        pool_recycle=300,
        pool_pre_ping=True,
    )


def _configure_sqlite_connections(engine: AsyncEngine) -> None:
    """Both pragmas are per connection, so set them on every pooled connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
        cursor.close()


def create_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = create_primary_engine()

async_session_maker = create_session_maker(engine)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


async def get_db() -> AsyncSession:
    """Dependency that provides a database session per request."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(bind: AsyncEngine | None = None):
    """Initialize database tables."""
    # Models must be registered on Base.metadata before create_all
    import program_tracker.models  # noqa: F401

    bind = bind or engine

    # Enable WAL mode for SQLite to support concurrent access
    if bind.url.get_backend_name() == "sqlite" and bind.url.database not in (None, "", ":memory:"):
        async with bind.connect() as conn:
            await conn.execute(text("PRAGMA journal_mode=WAL"))
            await conn.commit()

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized", backend=bind.url.get_backend_name())


async def close_all_engines():
    """Dispose of the engine's connection pool."""
    await engine.dispose()
