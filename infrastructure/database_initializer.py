# ============================================================================
# DATABASE INITIALIZER - INFRASTRUCTURE AS CODE
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Infrastructure - Startup schema bootstrap orchestrator
# PURPOSE: Register codecs, collect declared tables, reconcile them all
# CREATED: 15 OCT 2026
# ============================================================================
"""
DatabaseInitializer - Infrastructure as Code for Atheon.

Standardized startup workflow, run once before the host accepts traffic:
1. Value codec registration
2. Declared schema collection (static configuration tables, then models)
3. Reconciliation of every declared table (create / add columns / drift)

Pydantic models and the `database.tables` configuration section are the
SINGLE SOURCE OF TRUTH for schema. Reconciliation is additive only and safe
to run any number of times.

Fatal errors (ConfigurationError, SchemaInspectionError, DdlExecutionError,
ReconciliationCancelled) propagate to the caller. Drift is collected in the
result and never aborts startup.

Usage:
    # Sync (for scripts/CLI)
    initializer = DatabaseInitializer(db, options)
    result = initializer.initialize_schema()

    # Async (for the FastAPI lifespan)
    result = await initializer.initialize_schema_async()

    # Dry run (show DDL without executing)
    plans = initializer.plan_schema()
"""

import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel

from core.config.database import DatabaseOptions
from core.contracts import Dialect
from core.errors import ConfigurationError, ReconciliationCancelled, SchemaDriftWarning
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from core.schema.codecs import ValueCodecRegistry, register_default_codecs
from core.schema.descriptors import TableDescriptor
from core.schema.extractor import MetadataExtractor, collect_tables
from infrastructure.db_access import DbAccess
from infrastructure.locking import TableLockRegistry, process_locks
from infrastructure.schema_inspector import get_schema_inspector
from infrastructure.schema_reconciler import SchemaReconciler, TablePlan, TableReconcileResult

logger = get_logger(__name__, ComponentType.BOOTSTRAP)


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass
class StepResult:
    """Result of a single initialization step."""
    name: str
    status: str  # 'success', 'skipped'
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class InitializationResult:
    """Complete result of schema initialization."""
    dialect: str
    timestamp: str
    success: bool = False
    steps: List[StepResult] = field(default_factory=list)
    tables: List[TableReconcileResult] = field(default_factory=list)
    drift: List[SchemaDriftWarning] = field(default_factory=list)

    @property
    def statements_executed(self) -> int:
        return sum(len(t.statements) for t in self.tables)

    @property
    def tables_created(self) -> List[str]:
        return [t.table for t in self.tables if t.action == "create"]

    @property
    def tables_altered(self) -> List[str]:
        return [t.table for t in self.tables if t.action == "alter"]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "dialect": self.dialect,
            "timestamp": self.timestamp,
            "success": self.success,
            "steps": [
                {
                    "name": s.name,
                    "status": s.status,
                    "message": s.message,
                    "details": s.details,
                }
                for s in self.steps
            ],
            "tables": [t.to_dict() for t in self.tables],
            "drift": [d.to_dict() for d in self.drift],
            "summary": {
                "tables": len(self.tables),
                "created": len(self.tables_created),
                "altered": len(self.tables_altered),
                "statements": self.statements_executed,
                "drift": len(self.drift),
            },
        }


# ============================================================================
# DATABASE INITIALIZER
# ============================================================================

class DatabaseInitializer:
    """
    Schema bootstrap orchestrator.

    Args:
        db: Database access (never owned: the caller closes it)
        options: Bound database configuration (defaults to the dialect of db).
            Its dialect must match the dialect of db.
        manifest: Models contributing tables (defaults to core.models.SCHEMA_MODELS)
        registry: Value codec registry populated during startup
        extractor: Metadata extractor (defaults to one covering every dialect)
        locks: Startup lock registry (defaults to the process-wide registry)

    Raises:
        ConfigurationError: options and db target different dialects
    """

    def __init__(
        self,
        db: DbAccess,
        options: Optional[DatabaseOptions] = None,
        manifest: Optional[Iterable[Type[BaseModel]]] = None,
        registry: Optional[ValueCodecRegistry] = None,
        extractor: Optional[MetadataExtractor] = None,
        locks: Optional[TableLockRegistry] = None,
    ):
        if manifest is None:
            from core.models import SCHEMA_MODELS
            manifest = SCHEMA_MODELS

        db_dialect = Dialect.parse(db.dialect)
        if options is None:
            options = DatabaseOptions(current_mode=db_dialect)
        elif options.dialect is not db_dialect:
            raise ConfigurationError(
                f"Configured mode {options.dialect.value} does not match the "
                f"{db_dialect.value} database",
                operation="initialize_schema",
            )

        self.db = db
        self.options = options
        self.dialect = db_dialect
        self.manifest = manifest
        self.registry = registry if registry is not None else ValueCodecRegistry()
        self.extractor = extractor or MetadataExtractor()
        self.locks = locks if locks is not None else process_locks

        self.reconciler = SchemaReconciler(
            db,
            get_schema_inspector(db),
            dialect=self.dialect,
            locks=self.locks,
        )

    # ========================================================================
    # DECLARED SCHEMA
    # ========================================================================

    def collect_declared_tables(self) -> List[TableDescriptor]:
        """
        Every declared table: static configuration first, then models.

        Raises:
            ConfigurationError: duplicate tables, zero columns, bad markers
        """
        return collect_tables(
            self.extractor.from_config(self.options.tables),
            self.extractor.from_models(self.manifest),
        )

    def plan_schema(self) -> List[TablePlan]:
        """Planned statements and drift for every declared table. Executes nothing."""
        return [self.reconciler.plan(table) for table in self.collect_declared_tables()]

    # ========================================================================
    # SYNC OPERATIONS
    # ========================================================================

    def initialize_schema(self, cancel_event: Optional[threading.Event] = None) -> InitializationResult:
        """
        Run the full startup workflow.

        Args:
            cancel_event: Checked between tables; when set, the remaining
                tables are skipped and ReconciliationCancelled is raised

        Returns:
            InitializationResult with per-table outcomes and collected drift
        """
        result = InitializationResult(
            dialect=self.dialect.value,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

        logger.info("=" * 70)
        logger.info("ATHEON - SCHEMA INITIALIZATION")
        logger.info(f"   Dialect: {self.dialect.value}")
        logger.info(f"   Workers: {self.options.max_workers}")
        logger.info("=" * 70)

        with log_context(dialect=self.dialect.value, operation="initialize_schema"):
            result.steps.append(self._register_codecs())

            tables = self.collect_declared_tables()
            result.steps.append(StepResult(
                name="collect_tables",
                status="success",
                message=f"Collected {len(tables)} declared tables",
                details={"tables": [t.name for t in tables]},
            ))

            start = time.monotonic()
            if self.options.max_workers > 1 and len(tables) > 1:
                outcomes = self._reconcile_parallel(tables, cancel_event)
            else:
                outcomes = self._reconcile_sequential(tables, cancel_event)

            result.tables.extend(outcomes)
            for outcome in outcomes:
                result.drift.extend(outcome.drift)

            result.steps.append(StepResult(
                name="reconcile_tables",
                status="success",
                message=f"Executed {result.statements_executed} statements",
                details={
                    "created": result.tables_created,
                    "altered": result.tables_altered,
                    "drift": len(result.drift),
                    "duration_ms": round((time.monotonic() - start) * 1000, 2),
                },
            ))

        result.success = True

        summary = result.to_dict()["summary"]
        logger.info("=" * 70)
        logger.info("INITIALIZATION COMPLETE")
        logger.info(
            f"   Tables: {summary['tables']} ({summary['created']} created, "
            f"{summary['altered']} altered)"
        )
        if result.drift:
            logger.warning(f"   Drift: {len(result.drift)} column(s) differ from their declaration")
        logger.info("=" * 70)

        log_checkpoint("schema_initialized", summary)
        return result

    def _register_codecs(self) -> StepResult:
        if len(self.registry):
            return StepResult(
                name="register_codecs",
                status="skipped",
                message=f"{len(self.registry)} codecs already registered",
            )
        register_default_codecs(self.registry)
        return StepResult(
            name="register_codecs",
            status="success",
            message=f"Registered {len(self.registry)} value codecs",
        )

    def _check_cancelled(self, cancel_event: Optional[threading.Event], table: str) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.warning(f"Schema initialization cancelled before {table}")
            raise ReconciliationCancelled(
                f"Schema initialization cancelled before {table}",
                table=table,
                operation="initialize_schema",
            )

    def _reconcile_sequential(
        self,
        tables: List[TableDescriptor],
        cancel_event: Optional[threading.Event],
    ) -> List[TableReconcileResult]:
        outcomes = []
        for table in tables:
            self._check_cancelled(cancel_event, table.name)
            outcomes.append(self.reconciler.reconcile(table))
        return outcomes

    def _reconcile_parallel(
        self,
        tables: List[TableDescriptor],
        cancel_event: Optional[threading.Event],
    ) -> List[TableReconcileResult]:
        """Distinct tables in parallel; the first failure propagates."""
        dialect = self.dialect.value

        def run(table: TableDescriptor) -> TableReconcileResult:
            self._check_cancelled(cancel_event, table.name)
            with log_context(dialect=dialect, operation="initialize_schema"):
                return self.reconciler.reconcile(table)

        with ThreadPoolExecutor(
            max_workers=self.options.max_workers,
            thread_name_prefix="schema-reconcile",
        ) as executor:
            futures = [executor.submit(run, table) for table in tables]
            try:
                return [future.result() for future in futures]
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

    # ========================================================================
    # ASYNC OPERATIONS (for the API lifespan)
    # ========================================================================

    async def initialize_schema_async(
        self,
        cancel_event: Optional[threading.Event] = None,
    ) -> InitializationResult:
        """Run initialize_schema on a worker thread so the event loop stays free."""
        return await asyncio.to_thread(self.initialize_schema, cancel_event)


# ============================================================================
# CONVENIENCE FUNCTION
# ============================================================================

def initialize_database(
    db: DbAccess,
    options: Optional[DatabaseOptions] = None,
    cancel_event: Optional[threading.Event] = None,
) -> InitializationResult:
    """
    Initialize the schema with the default manifest and codec registry.

    Convenience function for deployment scripts.
    """
    initializer = DatabaseInitializer(db, options)
    return initializer.initialize_schema(cancel_event=cancel_event)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    'DatabaseInitializer',
    'InitializationResult',
    'StepResult',
    'initialize_database',
]
