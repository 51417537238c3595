# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core - Configuration
# PURPOSE: Centralized configuration management
# CREATED: 13 OCT 2026
# ============================================================================
"""
Configuration Module

Provides the bound database section (dialect, connection, static tables).
"""

from core.config.database import (
    ColumnConfig,
    TableConfig,
    DatabaseOptions,
    load_database_options,
)

__all__ = [
    "ColumnConfig",
    "TableConfig",
    "DatabaseOptions",
    "load_database_options",
]
