# ============================================================================
# SCHEMA DESCRIPTORS
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core - Declared and live schema shapes
# PURPOSE: TableDescriptor / ColumnDescriptor / LiveColumnInfo value objects
# CREATED: 12 OCT 2026
# EXPORTS: ColumnDescriptor, TableDescriptor, LiveColumnInfo
# ============================================================================
"""
Schema Descriptors

Declared shapes are derived once at startup (from models or configuration)
and never persisted; only the DDL they produce is. Live shapes are fetched
from the database catalog on every inspection and discarded afterwards.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from core.contracts import Dialect
from core.errors import ConfigurationError

DefaultLiteral = Union[str, int, float, bool, None]


@dataclass(frozen=True)
class ColumnDescriptor:
    """
    Declared shape of one column.

    Attributes:
        name: Column name, unique within its table
        types: Dialect key -> SQL type string. One descriptor can target
            several engines without change.
        not_null: Render NOT NULL
        primary_key: Member of the table's primary key
        default: Optional literal rendered as DEFAULT
    """
    name: str
    types: Mapping[str, str]
    not_null: bool = False
    primary_key: bool = False
    default: DefaultLiteral = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ConfigurationError("Column name must not be empty")
        # Freeze the type map and normalize dialect keys
        normalized = {}
        for key, value in dict(self.types).items():
            try:
                normalized[Dialect.parse(key).value] = value
            except ValueError:
                raise ConfigurationError(
                    f"Column '{self.name}' uses unknown dialect key '{key}'"
                ) from None
        object.__setattr__(self, "types", _FrozenTypeMap(normalized))

    def sql_type(self, dialect: Union[Dialect, str]) -> str:
        """Type string for a dialect; missing entries are configuration errors."""
        key = Dialect.parse(dialect).value
        sql_type = self.types.get(key)
        if not sql_type:
            raise ConfigurationError(
                f"Column '{self.name}' declares no type for dialect '{key}' "
                f"(declared: {sorted(self.types)})"
            )
        return sql_type


@dataclass(frozen=True)
class TableDescriptor:
    """Declared shape of one table: name plus ordered columns."""
    name: str
    columns: Tuple[ColumnDescriptor, ...]
    source: str = "model"

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ConfigurationError("Table name must not be empty")

        columns = tuple(self.columns)
        object.__setattr__(self, "columns", columns)

        if not columns:
            raise ConfigurationError(
                f"Table '{self.name}' declares no columns", table=self.name
            )

        seen = set()
        for column in columns:
            if column.name in seen:
                raise ConfigurationError(
                    f"Table '{self.name}' declares column '{column.name}' more than once",
                    table=self.name,
                )
            seen.add(column.name)

    @property
    def primary_key(self) -> Tuple[ColumnDescriptor, ...]:
        return tuple(c for c in self.columns if c.primary_key)

    @property
    def has_composite_key(self) -> bool:
        return len(self.primary_key) > 1

    def column(self, name: str) -> Optional[ColumnDescriptor]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    @classmethod
    def from_columns(
        cls,
        name: str,
        columns: Sequence[ColumnDescriptor],
        source: str = "model",
    ) -> "TableDescriptor":
        return cls(name=name, columns=tuple(columns), source=source)


@dataclass(frozen=True)
class LiveColumnInfo:
    """The database's own report of an existing column."""
    name: str
    declared_type: str
    not_null: bool
    is_primary_key: bool
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)


class _FrozenTypeMap(dict):
    """Read-only dict so frozen descriptors stay hashable and immutable."""

    def _readonly(self, *args, **kwargs):
        raise TypeError("Column type map is immutable")

    __setitem__ = _readonly
    __delitem__ = _readonly
    update = _readonly
    pop = _readonly
    popitem = _readonly
    clear = _readonly
    setdefault = _readonly

    def __hash__(self):
        return hash(tuple(sorted(self.items())))


__all__ = [
    "ColumnDescriptor",
    "TableDescriptor",
    "LiveColumnInfo",
    "DefaultLiteral",
]
