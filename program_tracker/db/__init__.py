"""Database package."""
from program_tracker.db.database import (
    Base,
    UTCDateTime,
    async_session_maker,
    close_all_engines,
    create_primary_engine,
    create_session_maker,
    engine,
    get_db,
    init_db,
    utcnow,
)

__all__ = [
    "Base",
    "UTCDateTime",
    "async_session_maker",
    "close_all_engines",
    "create_primary_engine",
    "create_session_maker",
    "engine",
    "get_db",
    "init_db",
    "utcnow",
]
