# ============================================================================
# SCHEMA ERRORS
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core - Error taxonomy for schema bootstrap
# PURPOSE: Fatal startup errors and the non-fatal drift record
# CREATED: 12 OCT 2026
# ============================================================================
"""
Schema Error Taxonomy

Fatal (propagate to the startup caller, application never becomes ready):
- ConfigurationError: bad declarations (duplicate names, zero columns)
- SchemaInspectionError: catalog query failed
- DdlExecutionError: CREATE / ALTER rejected by the database
- ReconciliationCancelled: cancel event observed between tables

Non-fatal:
- SchemaDriftWarning: declared column exists live with a different shape.
  Logged and collected, never raised.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


class SchemaError(Exception):
    """Base exception for schema bootstrap failures."""

    def __init__(self, message: str, table: str = None, operation: str = None):
        self.table = table
        self.operation = operation
        super().__init__(message)


class ConfigurationError(SchemaError):
    """Declared schema is invalid (duplicate names, zero columns, missing types)."""


class SchemaInspectionError(SchemaError):
    """Database catalog could not be read."""


class DdlExecutionError(SchemaError):
    """A CREATE or ALTER statement was rejected by the database."""

    def __init__(self, message: str, table: str, statement: str):
        self.statement = statement
        super().__init__(message, table=table, operation="ddl")


class ReconciliationCancelled(SchemaError):
    """Startup was cancelled before every table was reconciled."""


@dataclass(frozen=True)
class SchemaDriftWarning:
    """
    Mismatch between a declared column and its live shape.

    Attributes:
        table: Table name
        column: Column name
        differences: Names of the mismatched attributes
            ('type', 'not_null', 'primary_key')
        declared: Declared values keyed by attribute
        live: Live values keyed by attribute
    """
    table: str
    column: str
    differences: Tuple[str, ...]
    declared: Dict[str, Any] = field(default_factory=dict)
    live: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "column": self.column,
            "differences": list(self.differences),
            "declared": self.declared,
            "live": self.live,
        }

    def __str__(self) -> str:
        parts = [
            f"{name}: declared={self.declared.get(name)!r} live={self.live.get(name)!r}"
            for name in self.differences
        ]
        return f"{self.table}.{self.column} ({'; '.join(parts)})"


__all__ = [
    "SchemaError",
    "ConfigurationError",
    "SchemaInspectionError",
    "DdlExecutionError",
    "ReconciliationCancelled",
    "SchemaDriftWarning",
]
