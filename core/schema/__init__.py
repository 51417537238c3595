# ============================================================================
# SCHEMA MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core - Declared schema, DDL builders and value codecs
# PURPOSE: Everything needed to describe and render the schema; no database I/O
# CREATED: 12 OCT 2026
# ============================================================================

from core.schema.descriptors import ColumnDescriptor, TableDescriptor, LiveColumnInfo
from core.schema.annotations import AutoColumn
from core.schema.ddl_utils import (
    AddColumn,
    ColumnDefinition,
    CreateTable,
    DdlStatement,
    PrimaryKeyClause,
    TYPE_MAPS,
    format_column,
    format_column_without_primary_key,
    get_sql_type,
    normalize_type,
)
from core.schema.extractor import MetadataExtractor, TableManifest, collect_tables
from core.schema.codecs import ValueCodecRegistry, build_default_registry, register_default_codecs

__all__ = [
    # Descriptors
    "ColumnDescriptor",
    "TableDescriptor",
    "LiveColumnInfo",
    "AutoColumn",
    # DDL
    "AddColumn",
    "ColumnDefinition",
    "CreateTable",
    "DdlStatement",
    "PrimaryKeyClause",
    "TYPE_MAPS",
    "format_column",
    "format_column_without_primary_key",
    "get_sql_type",
    "normalize_type",
    # Extraction
    "MetadataExtractor",
    "TableManifest",
    "collect_tables",
    # Codecs
    "ValueCodecRegistry",
    "build_default_registry",
    "register_default_codecs",
]
