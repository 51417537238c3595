# ============================================================================
# STARTUP LOCKING
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Infrastructure - Concurrency control for schema bootstrap
# PURPOSE: At most one reconciler per table for the duration of startup
# CREATED: 14 OCT 2026
# ============================================================================
"""
Startup Locking

Tables may be reconciled in parallel, but a single table must never be
reconciled by two concurrent callers. Bootstrap is short-lived and runs
once, so in-process locks keyed by table name are enough.

Locks are non-blocking: a second caller for a table that is already being
reconciled gets LockNotAcquired instead of waiting and re-running the same
DDL.

Every reconciler in the process shares process_locks unless it is handed
its own registry, so two initializers never reconcile the same table at once.

Usage:
    with process_locks.table_lock("Guilds"):
        reconcile(...)
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict

logger = logging.getLogger(__name__)


class LockNotAcquired(Exception):
    """Raised when a table is already being reconciled by another caller."""

    def __init__(self, table: str):
        self.table = table
        super().__init__(f"Table {table} is already being reconciled")


class TableLockRegistry:
    """One lock per table name, created on first use."""

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, table: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(table)
            if lock is None:
                lock = threading.Lock()
                self._locks[table] = lock
            return lock

    def try_acquire(self, table: str) -> bool:
        acquired = self._lock_for(table).acquire(blocking=False)
        if acquired:
            logger.debug(f"Acquired startup lock for {table}")
        return acquired

    def release(self, table: str) -> None:
        self._lock_for(table).release()
        logger.debug(f"Released startup lock for {table}")

    def is_locked(self, table: str) -> bool:
        return self._lock_for(table).locked()

    @contextmanager
    def table_lock(self, table: str):
        """
        Hold the table's lock for the duration of the block.

        Raises:
            LockNotAcquired: another caller holds the lock
        """
        if not self.try_acquire(table):
            raise LockNotAcquired(table)
        try:
            yield
        finally:
            self.release(table)



process_locks = TableLockRegistry()


__all__ = [
    "TableLockRegistry",
    "LockNotAcquired",
    "process_locks",
]
