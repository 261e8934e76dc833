"""Engine and session management for chat storage.

DuckDB backs local development and tests; PostgreSQL backs production.
One engine per process, created on first use and torn down by ``reset_engine``.
"""

import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from chatvault.domain.errors import DatabaseConnectionError

from .models import Base

logger = logging.getLogger(__name__)

DEFAULT_DB_URL = "duckdb:///data/chatvault.db"
DUCKDB_PREFIX = "duckdb:///"

# chatvault/modules/chat_history/database.py -> repository root
_PROJECT_ROOT = Path(__file__).resolve().parents[3]

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def _prepare_duckdb_url(db_url: str) -> str:
    """Anchor relative DuckDB files at the repository root and create their directory."""
    location = db_url[len(DUCKDB_PREFIX):]
    if location == ":memory:":
        return db_url
    db_file = Path(location)
    if not db_file.is_absolute():
        db_file = _PROJECT_ROOT / db_file
    db_file.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Chat database file: %s", db_file)
    return f"{DUCKDB_PREFIX}{db_file}"


def _engine_options(db_url: str) -> Dict[str, Any]:
    if db_url.startswith("postgresql"):
        # Pooled connections, checked before use so a DB restart is survivable
        return {"pool_size": 5, "max_overflow": 10, "pool_pre_ping": True}
    return {}


def _redact(db_url: str) -> str:
    return db_url.split("@")[-1] if "@" in db_url else db_url


def get_engine(db_url: Optional[str] = None) -> Engine:
    """Return the process-wide engine, creating it for ``db_url`` on first call.

    ``db_url`` falls back to CHAT_DB_URL and then to a local DuckDB file.
    """
    global _engine
    if _engine is None:
        url = db_url or os.environ.get("CHAT_DB_URL") or DEFAULT_DB_URL
        if url.startswith(DUCKDB_PREFIX):
            url = _prepare_duckdb_url(url)
        _engine = create_engine(url, **_engine_options(url))
        logger.info("Chat database engine created: %s", _redact(url))
    return _engine


def get_session_factory(engine: Optional[Engine] = None) -> sessionmaker:
    """Return the shared ``sessionmaker``; objects stay usable after commit."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=engine or get_engine(), expire_on_commit=False)
    return _session_factory


def init_database(db_url: Optional[str] = None) -> Engine:
    """Create missing tables. Production schemas are managed by the alembic migrations."""
    engine = get_engine(db_url)
    Base.metadata.create_all(engine)
    logger.info("Chat tables verified")
    return engine


def calculate_backoff_delay(
    attempt: int,
    base_interval: float,
    max_interval: float,
    multiplier: float,
) -> float:
    """Delay before retry number ``attempt`` (1-based), capped at ``max_interval``."""
    delay = base_interval * (multiplier ** (attempt - 1))
    return min(delay, max_interval)


def connect_with_retry(
    db_url: Optional[str] = None,
    max_retries: int = 5,
    base_interval: float = 1.0,
    max_interval: float = 30.0,
    multiplier: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Engine:
    """Initialize the database, retrying with bounded exponential backoff.

    Raises:
        DatabaseConnectionError: after ``max_retries`` failed attempts. The
            caller is expected to let this terminate the process.
    """
    last_error: Optional[Exception] = None
    for attempt in range(1, max_retries + 1):
        try:
            engine = init_database(db_url)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            if attempt > 1:
                logger.info("Connected to chat database on attempt %d", attempt)
            return engine
        except SQLAlchemyError as e:
            last_error = e
            reset_engine()
            if attempt == max_retries:
                break
            delay = calculate_backoff_delay(attempt, base_interval, max_interval, multiplier)
            logger.warning(
                "Chat database connection attempt %d/%d failed: %s; retrying in %.1fs",
                attempt, max_retries, e, delay,
            )
            sleep(delay)

    logger.error("Chat database unreachable after %d attempts", max_retries)
    raise DatabaseConnectionError(
        f"Could not connect to chat database after {max_retries} attempts: {last_error}",
        code="DB_UNAVAILABLE",
    )


def reset_engine() -> None:
    """Dispose the shared engine so the next call builds a fresh one."""
    global _engine, _session_factory
    engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        engine.dispose()
