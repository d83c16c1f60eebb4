"""SQLite connection pool used by :class:`~photodeck.backend.database.PhotoDatabase`.

Gateway calls run on worker threads via :func:`asyncio.to_thread`, so each
call borrows a connection from the pool instead of sharing a single one.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from queue import Empty, Queue
from typing import Any, List, Optional, Sequence, Tuple

from ..errors import BackendError

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Thread-safe pool of SQLite connections for a single database file."""

    def __init__(self, db_path: str | Path, pool_size: int = 4) -> None:
        self._db_path = str(db_path)
        self._pool_size = pool_size
        self._pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self._lock = threading.Lock()
        self._initialized = False
        self._total_connections = 0

    @property
    def db_path(self) -> str:
        return self._db_path

    def _init_pool(self) -> None:
        with self._lock:
            if self._initialized:
                return

            for _ in range(self._pool_size):
                self._pool.put(self._create_connection())
                self._total_connections += 1

            self._initialized = True
            logger.debug(
                "Initialized connection pool for %s with %d connections",
                self._db_path,
                self._total_connections,
            )

    def _create_connection(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,
                timeout=10.0,
            )
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute("PRAGMA foreign_keys=ON")
            conn.row_factory = sqlite3.Row
            return conn
        except sqlite3.Error as exc:
            logger.error("Failed to create database connection: %s", exc)
            raise BackendError(f"Failed to open database {self._db_path}: {exc}") from exc

    def acquire(self, timeout: float = 5.0) -> sqlite3.Connection:
        """Borrow a connection, waiting up to *timeout* seconds."""

        if not self._initialized:
            self._init_pool()

        try:
            return self._pool.get(timeout=timeout)
        except Empty as exc:
            logger.warning("Connection pool exhausted (timeout after %.1fs)", timeout)
            raise BackendError("Failed to acquire database connection") from exc

    def release(self, conn: Optional[sqlite3.Connection]) -> None:
        if conn is None:
            return
        # Uncommitted work never leaks into the next borrower.
        conn.rollback()
        self._pool.put(conn, block=False)

    def execute_query(self, query: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        """Run a SELECT and return every row."""

        conn = self.acquire()
        try:
            return conn.execute(query, tuple(params)).fetchall()
        finally:
            self.release(conn)

    def execute_write(self, query: str, params: Sequence[Any] = ()) -> Tuple[int, int]:
        """Run a single write statement and return ``(lastrowid, rowcount)``."""

        conn = self.acquire()
        try:
            cursor = conn.execute(query, tuple(params))
            conn.commit()
            return int(cursor.lastrowid or 0), cursor.rowcount
        except Exception:
            conn.rollback()
            raise
        finally:
            self.release(conn)

    def execute_transaction(self, queries: Sequence[Tuple[str, Sequence[Any]]]) -> None:
        """Execute several statements inside one transaction."""

        conn = self.acquire()
        try:
            for query, params in queries:
                conn.execute(query, tuple(params))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self.release(conn)

    def shutdown(self) -> None:
        """Close every pooled connection."""

        with self._lock:
            if not self._initialized:
                return

            closed_count = 0
            while not self._pool.empty():
                try:
                    conn = self._pool.get(block=False)
                except Empty:
                    break
                conn.close()
                closed_count += 1

            self._initialized = False
            self._total_connections = 0
            logger.info("Closed %d connections from pool", closed_count)


__all__ = ["ConnectionPool"]
