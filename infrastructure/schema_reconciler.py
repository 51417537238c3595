# ============================================================================
# SCHEMA RECONCILER
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Infrastructure - Declared vs live schema reconciliation
# PURPOSE: Create missing tables, add missing columns, report drift
# CREATED: 15 OCT 2026
# ============================================================================
"""
Schema Reconciler

Additive-only reconciliation of one declared table against the live database:

1. Table missing        -> one CREATE TABLE with every declared column
2. Column missing       -> one ALTER TABLE ... ADD COLUMN per column
3. Column shape differs -> SchemaDriftWarning (logged, never repaired)
4. Live-only columns    -> left untouched

plan() computes the statements and drift without executing anything.
reconcile() holds the table's startup lock, logs drift and executes the plan.

Usage:
    reconciler = SchemaReconciler(db, get_schema_inspector(db))
    result = reconciler.reconcile(table_descriptor)
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.contracts import Dialect
from core.errors import DdlExecutionError, SchemaDriftWarning
from core.logging import ComponentType, get_logger, log_context
from core.schema.ddl_utils import (
    AddColumn,
    CreateTable,
    DdlStatement,
    normalize_type,
    primary_key_implies_not_null,
)
from core.schema.descriptors import ColumnDescriptor, LiveColumnInfo, TableDescriptor
from infrastructure.db_access import DbAccess
from infrastructure.locking import TableLockRegistry, process_locks
from infrastructure.schema_inspector import SchemaInspector

logger = get_logger(__name__, ComponentType.RECONCILER)


# ============================================================================
# RESULTS
# ============================================================================

@dataclass
class TablePlan:
    """Statements and drift for one table, computed but not executed."""
    table: TableDescriptor
    action: str  # 'create', 'alter', 'none'
    statements: List[DdlStatement] = field(default_factory=list)
    drift: List[SchemaDriftWarning] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not self.statements


@dataclass
class TableReconcileResult:
    """Outcome of reconciling one table."""
    table: str
    action: str
    statements: List[str] = field(default_factory=list)
    statement_kinds: List[str] = field(default_factory=list)
    drift: List[SchemaDriftWarning] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def added_columns(self) -> int:
        return self.statement_kinds.count(AddColumn.kind)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "action": self.action,
            "statements": self.statements,
            "drift": [d.to_dict() for d in self.drift],
            "duration_ms": round(self.duration_ms, 2),
        }


# ============================================================================
# DRIFT DETECTION
# ============================================================================

def compare_column(
    table: str,
    column: ColumnDescriptor,
    live: LiveColumnInfo,
    dialect: Dialect,
) -> Optional[SchemaDriftWarning]:
    """
    Compare a declared column with its live counterpart.

    Returns:
        SchemaDriftWarning listing every mismatched attribute, or None
    """
    declared_type = column.sql_type(dialect)
    declared_not_null = column.not_null or (
        column.primary_key and primary_key_implies_not_null(dialect)
    )

    declared = {
        "type": declared_type,
        "not_null": declared_not_null,
        "primary_key": column.primary_key,
    }
    actual = {
        "type": live.declared_type,
        "not_null": live.not_null,
        "primary_key": live.is_primary_key,
    }

    differences = []
    if normalize_type(declared_type, dialect) != normalize_type(live.declared_type, dialect):
        differences.append("type")
    if declared_not_null != live.not_null:
        differences.append("not_null")
    if column.primary_key != live.is_primary_key:
        differences.append("primary_key")

    if not differences:
        return None

    return SchemaDriftWarning(
        table=table,
        column=column.name,
        differences=tuple(differences),
        declared=declared,
        live=actual,
    )


# ============================================================================
# RECONCILER
# ============================================================================

class SchemaReconciler:
    """
    Reconciles declared tables against the live database, one table at a time.

    Args:
        db: Database access used to execute DDL
        inspector: Catalog reader for the same database
        dialect: Target dialect (defaults to the DbAccess dialect)
        locks: Startup lock registry (defaults to the process-wide registry)
    """

    def __init__(
        self,
        db: DbAccess,
        inspector: SchemaInspector,
        dialect: Optional[Dialect] = None,
        locks: Optional[TableLockRegistry] = None,
    ):
        self.db = db
        self.inspector = inspector
        self.dialect = Dialect.parse(dialect or db.dialect)
        self.locks = locks if locks is not None else process_locks

    def plan(self, table: TableDescriptor) -> TablePlan:
        """Compute the statements and drift for a table without executing anything."""
        if not self.inspector.table_exists(table.name):
            # Render once so missing dialect types fail before any DDL runs
            statement = CreateTable(table)
            statement.describe(self.dialect)
            return TablePlan(table=table, action="create", statements=[statement])

        live_columns = {c.name: c for c in self.inspector.get_columns(table.name)}

        plan = TablePlan(table=table, action="none")
        for column in table.columns:
            live = live_columns.get(column.name)
            if live is None:
                statement = AddColumn(table, column)
                statement.describe(self.dialect)
                plan.statements.append(statement)
                continue

            drift = compare_column(table.name, column, live, self.dialect)
            if drift is not None:
                plan.drift.append(drift)

        if plan.statements:
            plan.action = "alter"
        return plan

    def reconcile(self, table: TableDescriptor) -> TableReconcileResult:
        """
        Bring one table up to its declared shape.

        Raises:
            LockNotAcquired: table is already being reconciled
            SchemaInspectionError: catalog could not be read
            DdlExecutionError: CREATE or ALTER rejected by the database
        """
        start = time.monotonic()

        with self.locks.table_lock(table.name), log_context(
            table=table.name,
            dialect=self.dialect.value,
            operation="reconcile",
        ):
            plan = self.plan(table)

            for drift in plan.drift:
                self._report_drift(drift)

            result = TableReconcileResult(table=table.name, action=plan.action, drift=list(plan.drift))
            for statement in plan.statements:
                self._execute(table, statement)
                result.statements.append(statement.describe(self.dialect))
                result.statement_kinds.append(statement.kind)

            result.duration_ms = (time.monotonic() - start) * 1000

            if plan.action == "create":
                logger.info(f"Created table {table.name} ({len(table.columns)} columns)")
            elif plan.action == "alter":
                logger.info(f"Added {len(plan.statements)} column(s) to {table.name}")
            else:
                logger.debug(f"Table {table.name} is up to date")

        return result

    def _execute(self, table: TableDescriptor, statement: DdlStatement) -> None:
        text = statement.describe(self.dialect)
        logger.debug(f"Executing: {text}")
        try:
            self.db.execute(statement.render(self.dialect))
        except Exception as e:
            logger.error(f"DDL failed for {table.name}: {e}")
            raise DdlExecutionError(
                f"{statement.kind} failed for {table.name}: {e}",
                table=table.name,
                statement=text,
            ) from e

    def _report_drift(self, drift: SchemaDriftWarning) -> None:
        logger.warning(
            f"Schema drift on {drift}",
            extra={
                "event": "schema_drift",
                "column": drift.column,
                "differences": list(drift.differences),
                "declared": drift.declared,
                "live": drift.live,
            },
        )


__all__ = [
    "SchemaReconciler",
    "TablePlan",
    "TableReconcileResult",
    "compare_column",
]
