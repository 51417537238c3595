# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Foundation - Core enums and shared type aliases
# PURPOSE: Dialect keys, integer width aliases, Destiny definition kinds
# CREATED: 12 OCT 2026
# EXPORTS: Dialect, Int64, UInt32, DestinyDefinitionKind and markers
# DEPENDENCIES: enum, annotated_types
# ============================================================================
"""
Base contracts shared by the schema engine and the storage layer.

Dialect values are the keys of each column's per-dialect type map, both in
model annotations and in the `database.tables` configuration section.
"""

from enum import Enum
from typing import Annotated

from annotated_types import Ge, Le


# ============================================================================
# DIALECTS
# ============================================================================

class Dialect(str, Enum):
    """Supported database engines."""
    SQLITE = "sqlite"
    POSTGRES = "postgres"

    @classmethod
    def parse(cls, value) -> "Dialect":
        """Accept enum members and case-insensitive names ('Sqlite', 'postgresql')."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key in ("postgresql", "pg"):
            key = cls.POSTGRES.value
        return cls(key)


# ============================================================================
# INTEGER WIDTHS
# ============================================================================
# Python has a single int; the bounds keep Bungie hashes (uint32) and
# membership / clan ids (int64) apart in codec keys and validation.

Int64 = Annotated[int, Ge(-(2 ** 63)), Le(2 ** 63 - 1)]
UInt32 = Annotated[int, Ge(0), Le(2 ** 32 - 1)]


# ============================================================================
# DESTINY DEFINITION KINDS
# ============================================================================

class DestinyDefinitionKind(str, Enum):
    """Manifest definition families that guilds can track."""
    METRIC = "metric"
    RECORD = "record"
    COLLECTIBLE = "collectible"
    PROGRESSION = "progression"


class DestinyDefinition:
    """Marker base for definition kinds used to parameterize track settings."""
    kind: DestinyDefinitionKind


class DestinyMetricDefinition(DestinyDefinition):
    kind = DestinyDefinitionKind.METRIC


class DestinyRecordDefinition(DestinyDefinition):
    kind = DestinyDefinitionKind.RECORD


class DestinyCollectibleDefinition(DestinyDefinition):
    kind = DestinyDefinitionKind.COLLECTIBLE


class DestinyProgressionDefinition(DestinyDefinition):
    kind = DestinyDefinitionKind.PROGRESSION


__all__ = [
    "Dialect",
    "Int64",
    "UInt32",
    "DestinyDefinitionKind",
    "DestinyDefinition",
    "DestinyMetricDefinition",
    "DestinyRecordDefinition",
    "DestinyCollectibleDefinition",
    "DestinyProgressionDefinition",
]
