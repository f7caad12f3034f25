"""
Kuzu connection manager.

Provides thread-safe access to the embedded Kuzu database: the database
object is opened lazily once per application, and every query runs on its
own short-lived connection.
"""

import os
import time
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, List, Optional

import kuzu  # type: ignore

logger = logging.getLogger(__name__)

# Logging controls
_QUERY_LOG_ENABLED = os.getenv('KUZU_QUERY_LOG', 'false').lower() in ('1', 'true', 'on', 'yes')
try:
    _SLOW_QUERY_MS = int(os.getenv('KUZU_SLOW_QUERY_MS', '150'))
except ValueError:
    _SLOW_QUERY_MS = 150


class KuzuManager:
    """
    Thread-safe Kuzu database manager.

    - Lazy, lock-protected database initialization
    - Connection-per-operation to avoid shared connection state
    - Connection bookkeeping for the health endpoint and debugging
    """

    def __init__(self, database_path: str):
        self.database_path = database_path
        self._lock = threading.RLock()
        self._database: Optional[kuzu.Database] = None
        self._is_initialized = False
        self._connection_count = 0
        self._total_connections_created = 0
        self._last_access_time: Optional[datetime] = None
        self._initialization_time: Optional[datetime] = None
        logger.info(f"KuzuManager created for database: {self.database_path}")

    def _get_thread_info(self) -> Dict[str, Any]:
        thread = threading.current_thread()
        return {'thread_id': threading.get_ident(), 'thread_name': thread.name}

    def _initialize_database(self) -> None:
        if self._is_initialized:
            return
        start_time = time.time()
        parent = os.path.dirname(self.database_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        try:
            self._database = kuzu.Database(self.database_path)
        except Exception as e:
            logger.error(f"Failed to open Kuzu database at {self.database_path}: {e}")
            raise
        self._is_initialized = True
        self._initialization_time = datetime.now(timezone.utc)
        logger.info(f"Kuzu database initialized in {time.time() - start_time:.3f}s")

    @contextmanager
    def get_connection(self, operation: str = "unknown") -> Generator[kuzu.Connection, None, None]:
        """
        Yield a fresh connection, closing it afterwards.

        Example:
            with manager.get_connection(operation="post_search") as conn:
                result = conn.execute("MATCH (p:Post) RETURN p.title")
        """
        thread_info = self._get_thread_info()
        with self._lock:
            if not self._is_initialized:
                self._initialize_database()
            if self._database is None:
                raise RuntimeError("Kuzu database not properly initialized")
            connection = kuzu.Connection(self._database)
            self._connection_count += 1
            self._total_connections_created += 1
            connection_id = self._total_connections_created
            self._last_access_time = datetime.now(timezone.utc)
            logger.debug(f"[THREAD-{thread_info['thread_id']}:{thread_info['thread_name']}] "
                         f"Created connection #{connection_id} for operation '{operation}'")

        try:
            yield connection
        except Exception as e:
            logger.error(f"[THREAD-{thread_info['thread_id']}:{thread_info['thread_name']}] "
                         f"Error during Kuzu operation '{operation}': {e}")
            raise
        finally:
            with self._lock:
                connection.close()
                self._connection_count -= 1
                logger.debug(f"[THREAD-{thread_info['thread_id']}:{thread_info['thread_name']}] "
                             f"Closed connection #{connection_id} for operation '{operation}'")

    def execute(self, query: str, params: Optional[Dict[str, Any]] = None,
                operation: str = "query") -> List[Dict[str, Any]]:
        """
        Run a query and return its rows as dicts keyed by column name.

        Rows are fully consumed before the connection closes.
        """
        if _QUERY_LOG_ENABLED:
            logger.info(f"[KUZU] execute op='{operation}' q='{' '.join(query.split())[:120]}'")
        with self.get_connection(operation=operation) as conn:
            t0 = time.time()
            result = conn.execute(query, params or {})
            if isinstance(result, list):
                result = result[-1] if result else None
            rows: List[Dict[str, Any]] = []
            if result is not None:
                columns = result.get_column_names()
                while result.has_next():
                    rows.append(dict(zip(columns, result.get_next())))
            elapsed_ms = (time.time() - t0) * 1000
            if _QUERY_LOG_ENABLED or elapsed_ms >= _SLOW_QUERY_MS:
                logger.info(f"[KUZU] op='{operation}' done in {elapsed_ms:.1f}ms ({len(rows)} rows)")
            return rows

    def scalar(self, query: str, params: Optional[Dict[str, Any]] = None,
               operation: str = "scalar") -> Any:
        """Run a query and return the first column of the first row."""
        rows = self.execute(query, params, operation=operation)
        if not rows:
            return None
        return next(iter(rows[0].values()))

    def next_id(self, table: str) -> int:
        """Allocate the next positive integer id for a node table."""
        value = self.scalar(
            "MERGE (c:IdCounter {counter_name: $counter_name}) "
            "ON CREATE SET c.current_value = 1 "
            "ON MATCH SET c.current_value = c.current_value + 1 "
            "RETURN c.current_value",
            {'counter_name': table},
            operation=f"next_id:{table}",
        )
        return int(value)

    def get_health_status(self) -> Dict[str, Any]:
        """Connection metrics for the health check."""
        with self._lock:
            return {
                'is_initialized': self._is_initialized,
                'database_path': self.database_path,
                'initialization_time': self._initialization_time.isoformat() if self._initialization_time else None,
                'last_access_time': self._last_access_time.isoformat() if self._last_access_time else None,
                'active_connections': self._connection_count,
                'total_connections_created': self._total_connections_created,
            }

    def close(self) -> None:
        """Release the database handle."""
        with self._lock:
            if self._database is not None:
                self._database.close()
            self._database = None
            self._is_initialized = False


def get_kuzu_manager() -> KuzuManager:
    """Return the manager bound to the current Flask application."""
    from flask import current_app
    return current_app.extensions['kuzu_manager']
