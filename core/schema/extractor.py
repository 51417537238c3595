# ============================================================================
# METADATA EXTRACTOR
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core - Declared schema from models and configuration
# PURPOSE: Turn pydantic models and static table config into TableDescriptors
# CREATED: 12 OCT 2026
# EXPORTS: MetadataExtractor, TableManifest
# DEPENDENCIES: pydantic
# ============================================================================
"""
Metadata Extractor.

Pydantic models are the single source of truth for model-driven tables.

Model Metadata Convention:
    - __sql_table__: Table name (required to opt in)
    - __sql_primary_key__: Optional key column(s), string or list; an
      alternative to AutoColumn(primary_key=True)
    - Fields opt in with Annotated[..., AutoColumn(...)]

Models are never discovered by scanning modules. They are listed in an
explicit TableManifest (see core.models.SCHEMA_MODELS).

Usage:
    extractor = MetadataExtractor()
    tables = extractor.from_models(SCHEMA_MODELS)
    tables += extractor.from_config(options.tables)
"""

import enum
import logging
from datetime import datetime
from typing import (
    Annotated, Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type, Union,
    get_args, get_origin,
)

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from core.contracts import Dialect
from core.errors import ConfigurationError
from core.schema.annotations import AutoColumn
from core.schema.ddl_utils import get_sql_type
from core.schema.descriptors import ColumnDescriptor, TableDescriptor

logger = logging.getLogger(__name__)

_NONE_TYPE = type(None)


# ============================================================================
# TYPE HELPERS
# ============================================================================

def unwrap_optional(annotation: Any) -> Any:
    """Strip Optional[...] (Union with None) from an annotation."""
    if get_origin(annotation) is Union:
        args = [a for a in get_args(annotation) if a is not _NONE_TYPE]
        if len(args) == 1:
            return args[0]
    return annotation


def is_optional(annotation: Any) -> bool:
    return get_origin(annotation) is Union and _NONE_TYPE in get_args(annotation)


def base_python_type(annotation: Any) -> Any:
    """
    Reduce an annotation to the Python type used for SQL type mapping.

    Optional and Annotated wrappers are removed, generic containers reduce to
    their origin (Set[int] -> set), enums reduce to their value type.
    """
    annotation = unwrap_optional(annotation)
    if get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
        annotation = unwrap_optional(annotation)

    origin = get_origin(annotation)
    if origin is not None:
        return origin

    if isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        for candidate in (str, int):
            if issubclass(annotation, candidate):
                return candidate
        return str

    if isinstance(annotation, type) and issubclass(annotation, bool):
        return bool
    if isinstance(annotation, type) and issubclass(annotation, datetime):
        return datetime
    return annotation


def _find_marker(field_info: FieldInfo) -> Optional[AutoColumn]:
    for item in field_info.metadata:
        if isinstance(item, AutoColumn):
            return item
    return None


# ============================================================================
# MANIFEST
# ============================================================================

class TableManifest:
    """
    Explicit list of schema contributors.

    Replaces module scanning: each model is registered once, either by
    listing it at construction or with register() (usable as a decorator).
    """

    def __init__(self, models: Iterable[Type[BaseModel]] = ()):
        self._models: List[Type[BaseModel]] = []
        for model in models:
            self.register(model)

    def register(self, model: Type[BaseModel]) -> Type[BaseModel]:
        if model not in self._models:
            self._models.append(model)
        return model

    def __iter__(self):
        return iter(list(self._models))

    def __len__(self) -> int:
        return len(self._models)

    def __contains__(self, model) -> bool:
        return model in self._models


# ============================================================================
# EXTRACTOR
# ============================================================================

class MetadataExtractor:
    """
    Produce TableDescriptors from models and static configuration.

    Every descriptor carries a type for each configured dialect so the same
    declaration can target SQLite and PostgreSQL.
    """

    def __init__(self, dialects: Sequence[Dialect] = (Dialect.SQLITE, Dialect.POSTGRES)):
        self.dialects = tuple(Dialect.parse(d) for d in dialects)

    # =========================================================================
    # MODEL METADATA
    # =========================================================================

    @staticmethod
    def get_model_metadata(model: Type[BaseModel]) -> Dict[str, Any]:
        """
        Extract SQL metadata from a model.

        Looks for __sql_* attributes (Python mangles them to _ClassName__sql_*
        inside class bodies, so both spellings are checked).

        Returns:
            Dict with table and primary_key (always a list)
        """
        def get_attr(name: str, default=None):
            mangled = f"_{model.__name__}__{name}"
            return getattr(model, mangled, getattr(model, f"__{name}", default))

        metadata = {
            "table": get_attr("sql_table__"),
            "primary_key": get_attr("sql_primary_key__", []) or [],
        }

        if isinstance(metadata["primary_key"], str):
            metadata["primary_key"] = [metadata["primary_key"]]

        return metadata

    def column_for_field(
        self,
        field_name: str,
        field_info: FieldInfo,
        key_names: Sequence[str] = (),
    ) -> Optional[ColumnDescriptor]:
        """ColumnDescriptor for an opted-in field, None for plain fields."""
        marker = _find_marker(field_info)
        if marker is None:
            return None

        column_name = marker.name or field_name
        python_type = base_python_type(field_info.annotation)

        types = {dialect.value: get_sql_type(python_type, dialect) for dialect in self.dialects}
        for key, value in marker.types.items():
            types[Dialect.parse(key).value] = value

        not_null = marker.not_null
        if not_null is None:
            not_null = not is_optional(field_info.annotation)

        primary_key = marker.primary_key or column_name in key_names or field_name in key_names

        return ColumnDescriptor(
            name=column_name,
            types=types,
            not_null=not_null,
            primary_key=primary_key,
            default=marker.default,
        )

    def extract(self, model: Type[BaseModel]) -> TableDescriptor:
        """
        Build the TableDescriptor for one model.

        Raises:
            ConfigurationError: missing __sql_table__, no opted-in fields,
                duplicate column names
        """
        meta = self.get_model_metadata(model)
        table_name = meta["table"]

        if not table_name:
            raise ConfigurationError(f"Model {model.__name__} missing __sql_table__ attribute")

        columns = []
        for field_name, field_info in model.model_fields.items():
            column = self.column_for_field(field_name, field_info, meta["primary_key"])
            if column is not None:
                columns.append(column)

        column_map = self.column_map(model)
        key_columns = [c.name for c in columns if c.primary_key]
        declared_keys = set(key_columns) | {column_map[name] for name in key_columns}
        unknown_keys = [k for k in meta["primary_key"] if k not in declared_keys]
        if unknown_keys:
            raise ConfigurationError(
                f"Model {model.__name__} lists primary key column(s) {unknown_keys} "
                f"that are not opted-in columns",
                table=table_name,
            )

        logger.debug(f"Extracted table {table_name} ({len(columns)} columns) from {model.__name__}")
        return TableDescriptor.from_columns(table_name, columns, source=f"model:{model.__name__}")

    def column_map(self, model: Type[BaseModel]) -> Dict[str, str]:
        """Column name -> field name for every opted-in field of a model."""
        mapping = {}
        for field_name, field_info in model.model_fields.items():
            marker = _find_marker(field_info)
            if marker is not None:
                mapping[marker.name or field_name] = field_name
        return mapping

    def from_models(self, models: Iterable[Type[BaseModel]]) -> List[TableDescriptor]:
        return [self.extract(model) for model in models]

    # =========================================================================
    # STATIC CONFIGURATION
    # =========================================================================

    def from_config(self, tables: Mapping[str, Any]) -> List[TableDescriptor]:
        """
        Descriptors for configuration-driven tables, taken as given.

        Args:
            tables: Table name -> TableConfig (core.config.database)
        """
        result = []
        for table_name, table_config in tables.items():
            columns = [
                ColumnDescriptor(
                    name=column.name,
                    types=dict(column.type),
                    not_null=column.not_null,
                    primary_key=column.primary_key,
                    default=column.default,
                )
                for column in table_config.columns
            ]
            result.append(TableDescriptor.from_columns(table_name, columns, source="config"))
        return result


def collect_tables(*sources: Iterable[TableDescriptor]) -> List[TableDescriptor]:
    """
    Merge descriptor sources, rejecting duplicate table names.

    Raises:
        ConfigurationError: the same table is declared twice
    """
    seen: Dict[str, TableDescriptor] = {}
    for source in sources:
        for table in source:
            if table.name in seen:
                raise ConfigurationError(
                    f"Table '{table.name}' is declared by both "
                    f"{seen[table.name].source} and {table.source}",
                    table=table.name,
                )
            seen[table.name] = table
    return list(seen.values())


__all__ = [
    "MetadataExtractor",
    "TableManifest",
    "collect_tables",
    "base_python_type",
    "unwrap_optional",
    "is_optional",
]
