# ============================================================================
# DATABASE ACCESS BOUNDARY
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Infrastructure - Minimal data-access capability
# PURPOSE: execute / query contract consumed by the schema engine and repositories
# CREATED: 14 OCT 2026
# ============================================================================
"""
Database Access Boundary

The schema engine never owns a connection or a transaction. It is handed a
DbAccess and calls two operations:

    execute(statement, params) -> affected rows
    query(statement, params)   -> list of dict rows

Implementations:
- SqliteDbAccess: one shared sqlite3 connection, serialized by a lock
- PostgreSQLRepository (infrastructure.postgresql): psycopg connections

Usage:
    db = create_db_access(options)
    rows = db.query("SELECT 1 AS one")
"""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from core.contracts import Dialect

logger = logging.getLogger(__name__)

Params = Optional[Union[Mapping[str, Any], Sequence[Any]]]


class DbAccess(ABC):
    """Data-access capability handed to the schema engine and repositories."""

    dialect: Dialect

    @abstractmethod
    def execute(self, statement, params: Params = None) -> int:
        """Run a statement, return the affected row count."""

    @abstractmethod
    def query(self, statement, params: Params = None) -> List[Dict[str, Any]]:
        """Run a query, return every row as a dict."""

    def query_one(self, statement, params: Params = None) -> Optional[Dict[str, Any]]:
        rows = self.query(statement, params)
        return rows[0] if rows else None

    def placeholder(self, name: str) -> str:
        """Named parameter marker in this dialect's paramstyle."""
        if self.dialect is Dialect.POSTGRES:
            return f"%({name})s"
        return f":{name}"

    def close(self) -> None:
        pass


class SqliteDbAccess(DbAccess):
    """
    SQLite access over a single shared connection.

    The connection runs in autocommit mode (each DDL/DML statement commits on
    its own) and is shared across threads behind a lock, so ":memory:"
    databases behave like files for the lifetime of this object.
    """

    dialect = Dialect.SQLITE

    def __init__(self, database: str = ":memory:", timeout: float = 30.0):
        self.database = database
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(
            database,
            timeout=timeout,
            check_same_thread=False,
            isolation_level=None,
        )
        self._conn.row_factory = sqlite3.Row
        logger.debug(f"SQLite connection opened: {database}")

    def execute(self, statement, params: Params = None) -> int:
        with self._lock:
            cursor = self._conn.execute(statement, params if params is not None else ())
            try:
                return cursor.rowcount
            finally:
                cursor.close()

    def query(self, statement, params: Params = None) -> List[Dict[str, Any]]:
        with self._lock:
            cursor = self._conn.execute(statement, params if params is not None else ())
            try:
                return [dict(row) for row in cursor.fetchall()]
            finally:
                cursor.close()

    def close(self) -> None:
        with self._lock:
            self._conn.close()
        logger.debug(f"SQLite connection closed: {self.database}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def create_db_access(options) -> DbAccess:
    """
    Build the DbAccess for the configured mode.

    Args:
        options: core.config.DatabaseOptions
    """
    dialect = Dialect.parse(options.current_mode)
    if dialect is Dialect.POSTGRES:
        from infrastructure.postgresql import PostgreSQLRepository
        return PostgreSQLRepository(connection_string=options.connection_string or None)
    return SqliteDbAccess(options.connection_string)


__all__ = [
    "DbAccess",
    "SqliteDbAccess",
    "create_db_access",
    "Params",
]
