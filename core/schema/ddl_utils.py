# ============================================================================
# DDL UTILITIES
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core - DDL builder and column formatter
# PURPOSE: Render CREATE TABLE / ADD COLUMN per dialect with central quoting
# CREATED: 12 OCT 2026
# EXPORTS: ColumnDefinition, PrimaryKeyClause, CreateTable, AddColumn,
#          format_column, format_column_without_primary_key, TYPE_MAPS
# DEPENDENCIES: psycopg
# ============================================================================
"""
DDL Utilities - Statement Builders.

Every statement the reconciler issues is one of a few tagged variants:

    ColumnDefinition   "name" TYPE [NOT NULL] [DEFAULT x] [PRIMARY KEY]
    PrimaryKeyClause   PRIMARY KEY ("a", "b")
    CreateTable        CREATE TABLE "t" (<columns>[, <composite key>])
    AddColumn          ALTER TABLE "t" ADD COLUMN <column>

Identifiers are escaped in exactly one place per dialect:
- SQLite: double quotes, embedded quotes doubled. Rendered as str.
- PostgreSQL: psycopg.sql.Identifier. Rendered as sql.Composed.

describe() gives ANSI text (valid for both engines) for logs and errors.

Usage:
    stmt = CreateTable(table)
    db.execute(stmt.render(Dialect.SQLITE))
"""

import re
from datetime import datetime
from typing import Dict, List, Sequence, Union

from psycopg import sql

from core.contracts import Dialect
from core.errors import ConfigurationError
from core.schema.descriptors import ColumnDescriptor, DefaultLiteral, TableDescriptor

Rendered = Union[str, sql.Composed]


# ============================================================================
# TYPE MAPPING
# ============================================================================

TYPE_MAPS: Dict[Dialect, Dict[type, str]] = {
    Dialect.SQLITE: {
        str: "TEXT",
        int: "INTEGER",
        float: "REAL",
        bool: "INTEGER",
        datetime: "TEXT",
        dict: "TEXT",
        list: "TEXT",
        set: "TEXT",
    },
    Dialect.POSTGRES: {
        str: "TEXT",
        int: "BIGINT",
        float: "DOUBLE PRECISION",
        bool: "BOOLEAN",
        datetime: "TIMESTAMPTZ",
        dict: "JSONB",
        list: "JSONB",
        set: "JSONB",
    },
}

# Catalog spellings -> canonical names used when comparing live vs declared
_POSTGRES_TYPE_ALIASES = {
    "int": "integer",
    "int4": "integer",
    "serial": "integer",
    "int8": "bigint",
    "bigserial": "bigint",
    "int2": "smallint",
    "varchar": "character varying",
    "char": "character",
    "bool": "boolean",
    "float8": "double precision",
    "float4": "real",
    "timestamptz": "timestamp with time zone",
    "timestamp": "timestamp without time zone",
    "json": "json",
}

_TYPE_PATTERN = re.compile(
    r"^[A-Za-z][A-Za-z0-9_ ]*(\(\s*\d+\s*(,\s*\d+\s*)?\))?(\[\])?$"
)


def get_sql_type(python_type: type, dialect: Dialect) -> str:
    """
    Map a Python type to a dialect type string.

    Containers and unknown types (pydantic models, codec-backed values)
    fall back to the dialect's JSON text type.
    """
    type_map = TYPE_MAPS[Dialect.parse(dialect)]
    if python_type in type_map:
        return type_map[python_type]
    return type_map[dict]


def normalize_type(declared_type: str, dialect: Dialect) -> str:
    """Canonical, case-insensitive form of a type for drift comparison."""
    text = " ".join((declared_type or "").split()).lower()
    if Dialect.parse(dialect) is Dialect.POSTGRES:
        # information_schema.data_type carries no length/precision
        text = re.sub(r"\s*\(.*\)", "", text)
        text = _POSTGRES_TYPE_ALIASES.get(text, text)
    return text


def primary_key_implies_not_null(dialect: Dialect) -> bool:
    """PostgreSQL forces NOT NULL on key columns; SQLite does not."""
    return Dialect.parse(dialect) is Dialect.POSTGRES


# ============================================================================
# QUOTING
# ============================================================================

def quote_identifier(name: str) -> str:
    """ANSI identifier quoting (SQLite and PostgreSQL share the rule)."""
    return '"' + name.replace('"', '""') + '"'


def _literal_text(value: DefaultLiteral, dialect: Dialect) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        if Dialect.parse(dialect) is Dialect.POSTGRES:
            return "TRUE" if value else "FALSE"
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return repr(value)
    return "'" + str(value).replace("'", "''") + "'"


def _checked_type(column: ColumnDescriptor, dialect: Dialect) -> str:
    sql_type = column.sql_type(dialect).strip()
    if not _TYPE_PATTERN.match(sql_type):
        raise ConfigurationError(
            f"Column '{column.name}' has an invalid {Dialect.parse(dialect).value} type: {sql_type!r}"
        )
    return sql_type


# ============================================================================
# STATEMENT BUILDERS
# ============================================================================

class ColumnDefinition:
    """One column definition, with or without the inline PRIMARY KEY marker."""

    def __init__(self, column: ColumnDescriptor, include_primary_key: bool = True):
        self.column = column
        self.include_primary_key = include_primary_key

    def _parts(self, dialect: Dialect) -> List[str]:
        parts = [_checked_type(self.column, dialect)]
        if self.column.not_null:
            parts.append("NOT NULL")
        if self.column.default is not None:
            parts.append(f"DEFAULT {_literal_text(self.column.default, dialect)}")
        if self.include_primary_key and self.column.primary_key:
            parts.append("PRIMARY KEY")
        return parts

    def describe(self, dialect: Dialect = Dialect.SQLITE) -> str:
        return " ".join([quote_identifier(self.column.name)] + self._parts(dialect))

    def render(self, dialect: Dialect) -> Rendered:
        dialect = Dialect.parse(dialect)
        if dialect is Dialect.POSTGRES:
            composed = [sql.Identifier(self.column.name), sql.SQL(_checked_type(self.column, dialect))]
            if self.column.not_null:
                composed.append(sql.SQL("NOT NULL"))
            if self.column.default is not None:
                composed.append(sql.SQL("DEFAULT {}").format(sql.Literal(self.column.default)))
            if self.include_primary_key and self.column.primary_key:
                composed.append(sql.SQL("PRIMARY KEY"))
            return sql.SQL(" ").join(composed)
        return self.describe(dialect)


class PrimaryKeyClause:
    """Composite key clause: PRIMARY KEY ("a", "b")."""

    def __init__(self, column_names: Sequence[str]):
        self.column_names = list(column_names)

    def describe(self, dialect: Dialect = Dialect.SQLITE) -> str:
        return "PRIMARY KEY ({})".format(", ".join(quote_identifier(c) for c in self.column_names))

    def render(self, dialect: Dialect) -> Rendered:
        if Dialect.parse(dialect) is Dialect.POSTGRES:
            return sql.SQL("PRIMARY KEY ({})").format(
                sql.SQL(", ").join(sql.Identifier(c) for c in self.column_names)
            )
        return self.describe(dialect)


class DdlStatement:
    """Base for executable statements; `kind` tags the variant."""

    kind = "ddl"

    def __init__(self, table: TableDescriptor):
        self.table = table

    def describe(self, dialect: Dialect = Dialect.SQLITE) -> str:
        raise NotImplementedError

    def render(self, dialect: Dialect) -> Rendered:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.describe()}>"


class CreateTable(DdlStatement):
    """
    CREATE TABLE with every declared column.

    More than one key column emits one composite PRIMARY KEY clause and no
    inline markers; a single key column keeps its inline marker.
    """

    kind = "create"

    def _elements(self):
        composite = self.table.has_composite_key
        elements = [
            ColumnDefinition(column, include_primary_key=not composite)
            for column in self.table.columns
        ]
        if composite:
            elements.append(PrimaryKeyClause([c.name for c in self.table.primary_key]))
        return elements

    def describe(self, dialect: Dialect = Dialect.SQLITE) -> str:
        body = ", ".join(e.describe(dialect) for e in self._elements())
        return f"CREATE TABLE {quote_identifier(self.table.name)} ({body})"

    def render(self, dialect: Dialect) -> Rendered:
        dialect = Dialect.parse(dialect)
        if dialect is Dialect.POSTGRES:
            return sql.SQL("CREATE TABLE {} ({})").format(
                sql.Identifier(self.table.name),
                sql.SQL(", ").join(e.render(dialect) for e in self._elements()),
            )
        return self.describe(dialect)


class AddColumn(DdlStatement):
    """ALTER TABLE ... ADD COLUMN for exactly one column, rendered as in CREATE."""

    kind = "alter_add_column"

    def __init__(self, table: TableDescriptor, column: ColumnDescriptor):
        super().__init__(table)
        self.column = column

    def describe(self, dialect: Dialect = Dialect.SQLITE) -> str:
        return "ALTER TABLE {} ADD COLUMN {}".format(
            quote_identifier(self.table.name),
            ColumnDefinition(self.column).describe(dialect),
        )

    def render(self, dialect: Dialect) -> Rendered:
        dialect = Dialect.parse(dialect)
        if dialect is Dialect.POSTGRES:
            return sql.SQL("ALTER TABLE {} ADD COLUMN {}").format(
                sql.Identifier(self.table.name),
                ColumnDefinition(self.column).render(dialect),
            )
        return self.describe(dialect)


# ============================================================================
# FORMATTER
# ============================================================================

def format_column(column: ColumnDescriptor, dialect: Dialect) -> str:
    """Column definition text including the inline PRIMARY KEY marker."""
    return ColumnDefinition(column, include_primary_key=True).describe(dialect)


def format_column_without_primary_key(column: ColumnDescriptor, dialect: Dialect) -> str:
    """Column definition text for tables using a composite key clause."""
    return ColumnDefinition(column, include_primary_key=False).describe(dialect)


__all__ = [
    "TYPE_MAPS",
    "get_sql_type",
    "normalize_type",
    "primary_key_implies_not_null",
    "quote_identifier",
    "ColumnDefinition",
    "PrimaryKeyClause",
    "DdlStatement",
    "CreateTable",
    "AddColumn",
    "format_column",
    "format_column_without_primary_key",
]
