# ============================================================================
# POSTGRESQL CONNECTION INFRASTRUCTURE
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Infrastructure - PostgreSQL connection handling
# PURPOSE: DbAccess implementation for PostgreSQL deployments
# CREATED: 14 OCT 2026
# ============================================================================
"""
PostgreSQL Connection Infrastructure

Provides the DbAccess capability for PostgreSQL:
- Connection string from configuration, DATABASE_URL or POSTGRES_* variables
- Context managers for safe resource management
- Accepts plain SQL text and psycopg.sql.Composed statements

Connection Priority:
1. Explicit connection string (database.connection_string)
2. DATABASE_URL
3. POSTGRES_HOST / POSTGRES_DB / POSTGRES_USER / POSTGRES_PASSWORD
"""

import os
import logging
import threading
from typing import Any, Dict, List, Optional
from contextlib import contextmanager

import psycopg
from psycopg.rows import dict_row

from core.contracts import Dialect
from infrastructure.db_access import DbAccess, Params

logger = logging.getLogger(__name__)


class PostgreSQLRepository(DbAccess):
    """
    PostgreSQL data access.

    Every execute() runs in its own connection and commits on success, so
    each DDL statement is durable before the next one starts.

    Usage:
        repo = PostgreSQLRepository()
        with repo.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
    """

    dialect = Dialect.POSTGRES

    def __init__(self, connection_string: Optional[str] = None):
        """
        Initialize PostgreSQL repository.

        Args:
            connection_string: Optional explicit connection string
        """
        self._conn_string = connection_string
        self._conn_string_lock = threading.Lock()

    @property
    def conn_string(self) -> str:
        """Get or build connection string (lazy, thread-safe)."""
        if self._conn_string is None:
            with self._conn_string_lock:
                if self._conn_string is None:
                    self._conn_string = self._build_connection_string()
        return self._conn_string

    def _build_connection_string(self) -> str:
        """Build connection string from the environment."""
        if url := os.environ.get("DATABASE_URL"):
            return url

        host = os.environ.get("POSTGRES_HOST")
        port = os.environ.get("POSTGRES_PORT", "5432")
        database = os.environ.get("POSTGRES_DB")

        if not host or not database:
            raise ValueError(
                "Database connection not configured. "
                "Set database.connection_string, DATABASE_URL, or POSTGRES_HOST and POSTGRES_DB."
            )

        user = os.environ.get("POSTGRES_USER", "postgres")
        password = os.environ.get("POSTGRES_PASSWORD", "")
        sslmode = os.environ.get("POSTGRES_SSLMODE", "prefer")

        logger.debug(f"Password connection string built for {database}")
        return f"postgresql://{user}:{password}@{host}:{port}/{database}?sslmode={sslmode}"

    @contextmanager
    def get_connection(self):
        """
        Context manager for PostgreSQL connections.

        Yields:
            psycopg connection with dict_row factory
        """
        conn = None
        try:
            logger.debug("Connecting to PostgreSQL...")
            conn = psycopg.connect(self.conn_string, row_factory=dict_row)
            logger.debug("PostgreSQL connection established")
            yield conn

        except psycopg.Error as e:
            logger.error(f"PostgreSQL connection error: {e}")
            if conn:
                conn.rollback()
            raise

        finally:
            if conn:
                conn.close()

    @contextmanager
    def get_cursor(self, conn=None):
        """
        Context manager for PostgreSQL cursors.

        Args:
            conn: Optional existing connection (caller controls the transaction)
        """
        if conn:
            with conn.cursor() as cursor:
                yield cursor
        else:
            with self.get_connection() as conn:
                with conn.cursor() as cursor:
                    yield cursor
                    conn.commit()

    def execute(self, statement, params: Params = None) -> int:
        """Execute a statement, return affected rows."""
        with self.get_cursor() as cur:
            cur.execute(statement, params)
            return cur.rowcount

    def query(self, statement, params: Params = None) -> List[Dict[str, Any]]:
        """Execute a query and fetch all rows."""
        with self.get_cursor() as cur:
            cur.execute(statement, params)
            return list(cur.fetchall())


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "PostgreSQLRepository",
]
