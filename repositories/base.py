# ============================================================================
# BASE REPOSITORY - ERROR HANDLING AND ROW MAPPING PATTERNS
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Repository - Base repository patterns
# PURPOSE: Error handling, parameter binding and row materialization
# CREATED: 16 OCT 2026
# ============================================================================
"""
Base Repository Patterns

Common infrastructure for every storage consumer:
- Consistent error handling with a context manager
- Parameter binding: registered complex types become JSON text through the
  value codec registry; datetimes become ISO text on SQLite
- Row materialization: columns are mapped back to model fields by their
  AutoColumn names and decoded through the same registry
- Dialect-aware SQL composition: psycopg.sql on PostgreSQL, quoted text on
  SQLite, named placeholders in the dialect's paramstyle
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar, Union

from psycopg import sql
from pydantic import BaseModel, TypeAdapter

from core.contracts import Dialect
from core.schema.codecs import ValueCodecRegistry, build_default_registry
from core.schema.ddl_utils import quote_identifier
from core.schema.extractor import MetadataExtractor
from infrastructure.db_access import DbAccess

logger = logging.getLogger(__name__)

TModel = TypeVar("TModel", bound=BaseModel)
Fragment = Union[str, sql.Composable]


class RepositoryError(Exception):
    """Base exception for repository operations."""

    def __init__(self, message: str, operation: str = None, entity_id: str = None):
        self.operation = operation
        self.entity_id = entity_id
        super().__init__(message)


class BaseRepository:
    """
    Base repository with common patterns.

    Args:
        db: Database access shared with the schema engine
        registry: Value codec registry (defaults to the standard registrations)
        extractor: Metadata extractor used for column -> field maps
    """

    def __init__(
        self,
        db: DbAccess,
        registry: Optional[ValueCodecRegistry] = None,
        extractor: Optional[MetadataExtractor] = None,
    ):
        self.db = db
        self.dialect = Dialect.parse(db.dialect)
        self.registry = registry if registry is not None else build_default_registry()
        self.extractor = extractor or MetadataExtractor()
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.debug(f"{self.__class__.__name__} initialized ({self.dialect.value})")

    @contextmanager
    def _error_context(self, operation: str, entity_id: Optional[Any] = None):
        """
        Context manager for consistent error handling.

        All exceptions are logged with context and re-raised as
        RepositoryError.

        Example:
            with self._error_context("guild upsert", guild_id):
                self.db.execute(query, params)
        """
        try:
            yield
        except RepositoryError:
            raise
        except Exception as e:
            error_msg = f"{operation} failed"
            if entity_id is not None:
                error_msg += f" for {entity_id}"
            error_msg += f": {e}"
            self.logger.error(error_msg)
            raise RepositoryError(
                error_msg,
                operation=operation,
                entity_id=str(entity_id) if entity_id is not None else None,
            ) from e

    # =========================================================================
    # SQL COMPOSITION
    # =========================================================================

    def _ident(self, name: str) -> Fragment:
        if self.dialect is Dialect.POSTGRES:
            return sql.Identifier(name)
        return quote_identifier(name)

    def _join(self, fragments: Iterable[Fragment]) -> Fragment:
        fragments = list(fragments)
        if self.dialect is Dialect.POSTGRES:
            return sql.SQL(", ").join(fragments)
        return ", ".join(fragments)

    def _idents(self, names: Iterable[str]) -> Fragment:
        return self._join(self._ident(n) for n in names)

    def _placeholder(self, name: str) -> Fragment:
        if self.dialect is Dialect.POSTGRES:
            return sql.Placeholder(name)
        return self.db.placeholder(name)

    def _placeholders(self, names: Iterable[str]) -> Fragment:
        return self._join(self._placeholder(n) for n in names)

    def _assignments(self, columns: Iterable[str]) -> Fragment:
        """"col" = excluded."col" for an upsert's DO UPDATE SET list."""
        if self.dialect is Dialect.POSTGRES:
            return sql.SQL(", ").join(
                sql.SQL("{} = EXCLUDED.{}").format(sql.Identifier(c), sql.Identifier(c))
                for c in columns
            )
        return ", ".join(f"{quote_identifier(c)} = excluded.{quote_identifier(c)}" for c in columns)

    def _sql(self, template: str, **fragments: Fragment):
        """Fill {name} slots of a statement template with composed fragments."""
        if self.dialect is Dialect.POSTGRES:
            return sql.SQL(template).format(**fragments)
        return template.format(**fragments)

    # =========================================================================
    # BINDING AND MATERIALIZATION
    # =========================================================================

    def _bind_value(self, annotation: Any, value: Any) -> Any:
        """Python value -> driver parameter."""
        if value is None:
            return None
        if self.registry.is_registered(annotation):
            return self.registry.encode(annotation, value)
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, datetime) and self.dialect is Dialect.SQLITE:
            return value.isoformat()
        return value

    def _decode_value(self, annotation: Any, value: Any) -> Any:
        """Column value -> field value (raw values are validated by the model)."""
        if not self.registry.is_registered(annotation):
            return value
        if value is None or isinstance(value, (str, bytes)):
            return self.registry.decode(annotation, value)
        # JSONB columns arrive already parsed
        return TypeAdapter(annotation).validate_python(value)

    def _model_params(self, instance: BaseModel) -> Dict[str, Any]:
        """Bound parameters keyed by field name for every column of a model."""
        model = type(instance)
        params = {}
        for field_name in self.extractor.column_map(model).values():
            annotation = model.model_fields[field_name].annotation
            params[field_name] = self._bind_value(annotation, getattr(instance, field_name))
        return params

    def _row_to_model(self, model: Type[TModel], row: Dict[str, Any]) -> TModel:
        """Materialize a row into a model, ignoring columns it does not declare."""
        column_map = self.extractor.column_map(model)
        values = {}
        for column, value in row.items():
            field_name = column_map.get(column)
            if field_name is None:
                continue
            annotation = model.model_fields[field_name].annotation
            values[field_name] = self._decode_value(annotation, value)
        return model.model_validate(values)

    def _rows_to_models(self, model: Type[TModel], rows: List[Dict[str, Any]]) -> List[TModel]:
        return [self._row_to_model(model, row) for row in rows]

    def _table_name(self, model: Type[BaseModel]) -> str:
        return self.extractor.get_model_metadata(model)["table"]


__all__ = [
    "BaseRepository",
    "RepositoryError",
]
