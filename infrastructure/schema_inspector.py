# ============================================================================
# SCHEMA INSPECTOR
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Infrastructure - Live catalog reads
# PURPOSE: Report which tables exist and the live shape of their columns
# CREATED: 14 OCT 2026
# ============================================================================
"""
Schema Inspector

Read-only catalog queries. Results are never cached: every call hits the
catalog, since the schema may have changed between runs.

    table_exists(name) -> bool
    get_columns(name)  -> List[LiveColumnInfo]   (empty for unknown tables)

Driver errors are wrapped in SchemaInspectionError.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import List

from core.contracts import Dialect
from core.errors import SchemaInspectionError
from core.schema.descriptors import LiveColumnInfo
from infrastructure.db_access import DbAccess

logger = logging.getLogger(__name__)


class SchemaInspector(ABC):
    """Catalog reader for one dialect."""

    dialect: Dialect

    def __init__(self, db: DbAccess):
        self.db = db

    @contextmanager
    def _error_context(self, operation: str, table: str):
        try:
            yield
        except SchemaInspectionError:
            raise
        except Exception as e:
            logger.error(f"{operation} failed for {table}: {e}")
            raise SchemaInspectionError(
                f"{operation} failed for {table}: {e}", table=table, operation=operation
            ) from e

    @abstractmethod
    def table_exists(self, name: str) -> bool:
        ...

    @abstractmethod
    def get_columns(self, name: str) -> List[LiveColumnInfo]:
        ...


class SqliteSchemaInspector(SchemaInspector):
    """sqlite_master + pragma_table_info."""

    dialect = Dialect.SQLITE

    TABLE_EXISTS_QUERY = "SELECT 1 AS found FROM sqlite_master WHERE type = 'table' AND name = ?"
    COLUMNS_QUERY = "SELECT cid, name, type, \"notnull\", dflt_value, pk FROM pragma_table_info(?) ORDER BY cid"

    def table_exists(self, name: str) -> bool:
        with self._error_context("table lookup", name):
            row = self.db.query_one(self.TABLE_EXISTS_QUERY, (name,))
        return row is not None

    def get_columns(self, name: str) -> List[LiveColumnInfo]:
        with self._error_context("column inspection", name):
            rows = self.db.query(self.COLUMNS_QUERY, (name,))
        return [
            LiveColumnInfo(
                name=row["name"],
                declared_type=row["type"] or "",
                not_null=bool(row["notnull"]),
                is_primary_key=bool(row["pk"]),
                extra={"default": row["dflt_value"], "pk_position": row["pk"]},
            )
            for row in rows
        ]


class PostgresSchemaInspector(SchemaInspector):
    """information_schema restricted to current_schema()."""

    dialect = Dialect.POSTGRES

    TABLE_EXISTS_QUERY = """
        SELECT 1 AS found
        FROM information_schema.tables
        WHERE table_schema = current_schema() AND table_name = %s
    """
    COLUMNS_QUERY = """
        SELECT
            c.column_name AS name,
            c.data_type AS declared_type,
            c.is_nullable = 'NO' AS not_null,
            c.column_default AS column_default,
            EXISTS (
                SELECT 1
                FROM information_schema.table_constraints tc
                JOIN information_schema.key_column_usage kcu
                  ON tc.constraint_name = kcu.constraint_name
                 AND tc.table_schema = kcu.table_schema
                 AND tc.table_name = kcu.table_name
                WHERE tc.constraint_type = 'PRIMARY KEY'
                  AND tc.table_schema = c.table_schema
                  AND tc.table_name = c.table_name
                  AND kcu.column_name = c.column_name
            ) AS is_primary_key
        FROM information_schema.columns c
        WHERE c.table_schema = current_schema() AND c.table_name = %s
        ORDER BY c.ordinal_position
    """

    def table_exists(self, name: str) -> bool:
        with self._error_context("table lookup", name):
            row = self.db.query_one(self.TABLE_EXISTS_QUERY, (name,))
        return row is not None

    def get_columns(self, name: str) -> List[LiveColumnInfo]:
        with self._error_context("column inspection", name):
            rows = self.db.query(self.COLUMNS_QUERY, (name,))
        return [
            LiveColumnInfo(
                name=row["name"],
                declared_type=row["declared_type"] or "",
                not_null=bool(row["not_null"]),
                is_primary_key=bool(row["is_primary_key"]),
                extra={"default": row.get("column_default")},
            )
            for row in rows
        ]


def get_schema_inspector(db: DbAccess) -> SchemaInspector:
    """Inspector matching the DbAccess dialect."""
    if Dialect.parse(db.dialect) is Dialect.POSTGRES:
        return PostgresSchemaInspector(db)
    return SqliteSchemaInspector(db)


__all__ = [
    "SchemaInspector",
    "SqliteSchemaInspector",
    "PostgresSchemaInspector",
    "get_schema_inspector",
]
