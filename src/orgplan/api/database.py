"""
Request-scoped database access for the API.

Services commit their own transactions. The session scope here rolls back
whatever a failed request left pending, so an assignment row never outlives
a request that failed before its workload increment was committed.
"""

from typing import Generator

from fastapi import HTTPException
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from orgplan.platform.logging import get_logger
from orgplan.storage.postgres_adapter import PostgresAdapter, PostgresConfig

logger = get_logger(__name__)

_postgres_adapter: PostgresAdapter | None = None


def get_postgres_adapter() -> PostgresAdapter:
    """Process-wide adapter, built from the POSTGRES_* settings on first use."""
    global _postgres_adapter
    if not _postgres_adapter:
        _postgres_adapter = PostgresAdapter(PostgresConfig())
    return _postgres_adapter


def get_db() -> Generator[Session, None, None]:
    """
    Yield a session for one request.

    An unreachable database surfaces as 503 rather than a bare 500, both when
    the pool was never connected and when the connection drops mid-request.
    """
    adapter = get_postgres_adapter()
    try:
        with adapter.get_session() as session:
            yield session
    except (ConnectionError, OperationalError) as e:
        logger.error("Database unavailable", error=str(e))
        raise HTTPException(status_code=503, detail="Database unavailable")


def close_postgres_adapter() -> None:
    global _postgres_adapter
    if _postgres_adapter:
        _postgres_adapter.close()
        _postgres_adapter = None
