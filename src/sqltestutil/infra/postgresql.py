"""Query-level probes against a provisioned Postgres instance.

Each call builds a throwaway engine without pooling so that every probe
opens a fresh connection and closes it before returning.
"""

import logging

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

logger = logging.getLogger(__name__)


def _create_engine(dsn: str, connect_timeout: float) -> AsyncEngine:
    # postgres:// is accepted by libpq and asyncpg but not as a SQLAlchemy dialect name
    url = make_url(dsn).set(drivername="postgresql+asyncpg")
    return create_async_engine(
        url,
        poolclass=NullPool,
        connect_args={"timeout": connect_timeout},
    )


async def query_scalar(dsn: str, query: str = "SELECT 1", connect_timeout: float = 5.0):
    """Open a connection, run a single-value query and close the connection."""
    engine = _create_engine(dsn, connect_timeout)
    try:
        async with engine.connect() as conn:
            return await conn.scalar(text(query))
    finally:
        await engine.dispose()


async def ping(dsn: str, connect_timeout: float = 5.0) -> None:
    """Raise if the database at dsn cannot be reached."""
    engine = _create_engine(dsn, connect_timeout)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    finally:
        await engine.dispose()
