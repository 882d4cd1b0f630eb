# =======================================================================================
# campus_visitor/database.py - Database Management
# =======================================================================================
import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import QueuePool, StaticPool

from .config import config
from . import schema

logger = logging.getLogger(__name__)

AFTER_COMMIT_KEY = "campus_visitor.after_commit"


def after_commit(conn: Connection, callback: Callable[[], None]) -> None:
    """Defer ``callback`` until the transaction on ``conn`` commits."""
    callbacks = conn.info.get(AFTER_COMMIT_KEY)
    if callbacks is None:
        # Not opened through DatabaseManager; nothing to wait for
        callback()
        return
    callbacks.append(callback)


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # In-memory SQLite lives on a single connection shared by every thread
        kwargs = {"connect_args": {"check_same_thread": False}, "future": True}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        isolation_level="READ COMMITTED",
        future=True,
    )


class DatabaseManager:
    """Manages the entity store connection and transactions."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or config.DB_URL
        self.engine: Engine = _build_engine(self.url)
        # One writer at a time: every transaction runs under this lock
        self._lock = threading.Lock()

    @contextmanager
    def get_connection(self) -> Iterator[Connection]:
        """
        Run one serialized transaction; commit on success, roll back on error.

        Callbacks registered with ``after_commit`` run once the commit has
        succeeded, outside the lock. A rollback discards them.
        """
        callbacks: List[Callable[[], None]] = []
        with self._lock:
            with self.engine.begin() as conn:
                conn.info[AFTER_COMMIT_KEY] = callbacks
                try:
                    yield conn
                finally:
                    conn.info.pop(AFTER_COMMIT_KEY, None)
        for callback in callbacks:
            callback()

    def fetch_one(self, query: str, params: dict = None):
        """Fetch a single result."""
        with self.get_connection() as conn:
            result = conn.execute(text(query), params or {})
            return result.mappings().first()

    def init_schema(self) -> None:
        """Create tables and load reference data if the store is empty."""
        with self.get_connection() as conn:
            schema.create_tables(conn)
            if not conn.execute(text("SELECT COUNT(*) FROM departments")).scalar():
                schema.seed(conn)
                logger.info("Seeded departments, faculty and security staff")

    def reset(self) -> None:
        """Drop everything and start from seed data again."""
        with self.get_connection() as conn:
            schema.drop_tables(conn)
        self.init_schema()

# Global database instance
db_manager = DatabaseManager()
