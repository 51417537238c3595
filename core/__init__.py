# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core module initialization
# PURPOSE: Export contracts, errors and schema utilities
# CREATED: 12 OCT 2026
# ============================================================================

from core.contracts import Dialect, Int64, UInt32
from core.errors import (
    ConfigurationError,
    DdlExecutionError,
    ReconciliationCancelled,
    SchemaDriftWarning,
    SchemaError,
    SchemaInspectionError,
)
from core.schema import MetadataExtractor, TableDescriptor, ColumnDescriptor

__all__ = [
    # Contracts
    "Dialect",
    "Int64",
    "UInt32",
    # Errors
    "SchemaError",
    "ConfigurationError",
    "SchemaInspectionError",
    "DdlExecutionError",
    "ReconciliationCancelled",
    "SchemaDriftWarning",
    # Schema
    "MetadataExtractor",
    "TableDescriptor",
    "ColumnDescriptor",
]
