# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Infrastructure - Database access and schema bootstrap
# PURPOSE: Catalog inspection, reconciliation and startup orchestration
# CREATED: 14 OCT 2026
# ============================================================================
"""
Infrastructure module for Atheon.

Provides:
- DbAccess / SqliteDbAccess / PostgreSQLRepository: execute and query
- SchemaInspector: live catalog reads
- SchemaReconciler: per-table create / add column / drift detection
- DatabaseInitializer: startup workflow over every declared table

Usage:
    from infrastructure import DatabaseInitializer, create_db_access

    db = create_db_access(options)
    result = DatabaseInitializer(db, options).initialize_schema()
"""

from infrastructure.db_access import DbAccess, SqliteDbAccess, create_db_access
from infrastructure.locking import LockNotAcquired, TableLockRegistry
from infrastructure.schema_inspector import (
    PostgresSchemaInspector,
    SchemaInspector,
    SqliteSchemaInspector,
    get_schema_inspector,
)
from infrastructure.schema_reconciler import SchemaReconciler, TablePlan, TableReconcileResult
from infrastructure.database_initializer import (
    DatabaseInitializer,
    InitializationResult,
    StepResult,
    initialize_database,
)

__all__ = [
    # Database access
    "DbAccess",
    "SqliteDbAccess",
    "create_db_access",
    # Locking
    "TableLockRegistry",
    "LockNotAcquired",
    # Inspection
    "SchemaInspector",
    "SqliteSchemaInspector",
    "PostgresSchemaInspector",
    "get_schema_inspector",
    # Reconciliation
    "SchemaReconciler",
    "TablePlan",
    "TableReconcileResult",
    # Initialization
    "DatabaseInitializer",
    "InitializationResult",
    "StepResult",
    "initialize_database",
]
