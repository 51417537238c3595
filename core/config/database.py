# ============================================================================
# DATABASE CONFIGURATION
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core - Database options and static table configuration
# PURPOSE: Bind the `database` configuration section (YAML + env overrides)
# CREATED: 13 OCT 2026
# ============================================================================
"""
Database Configuration

Shape of the `database` section:

    database:
      current_mode: sqlite
      connection_string: atheon.db
      max_workers: 1
      tables:
        Settings:
          columns:
            - name: Key
              type: {sqlite: TEXT, postgres: TEXT}
              notNull: true
              primaryKey: true

Environment overrides:
- DATABASE_CONFIG: path of the YAML file
- DATABASE_MODE: dialect key (sqlite / postgres)
- DATABASE_CONNECTION: connection string (file path for SQLite)
- SCHEMA_MAX_WORKERS: tables reconciled in parallel
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.contracts import Dialect
from core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "database.yaml"


class ColumnConfig(BaseModel):
    """One statically configured column."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    type: Dict[str, str] = Field(description="Dialect key -> SQL type")
    not_null: bool = Field(default=False, alias="notNull")
    primary_key: bool = Field(default=False, alias="primaryKey")
    default: Optional[Union[bool, int, float, str]] = None


class TableConfig(BaseModel):
    """One statically configured table (no corresponding model)."""

    model_config = ConfigDict(frozen=True)

    columns: List[ColumnConfig] = Field(default_factory=list)


class DatabaseOptions(BaseModel):
    """Bound `database` configuration section."""

    model_config = ConfigDict(populate_by_name=True)

    current_mode: Dialect = Field(default=Dialect.SQLITE, alias="currentMode")
    connection_string: str = Field(default="atheon.db", alias="connectionString")
    max_workers: int = Field(default=1, ge=1, le=32, alias="maxWorkers")
    tables: Dict[str, TableConfig] = Field(default_factory=dict)

    @field_validator("current_mode", mode="before")
    @classmethod
    def _parse_mode(cls, value):
        return Dialect.parse(value)

    @property
    def dialect(self) -> Dialect:
        return self.current_mode

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> "DatabaseOptions":
        """
        Validate a raw `database` section.

        Raises:
            ConfigurationError: invalid shape or values
        """
        try:
            return cls.model_validate(data or {})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid database configuration: {e}") from e

    def with_env_overrides(self, environ: Optional[Dict[str, str]] = None) -> "DatabaseOptions":
        """
        Apply DATABASE_MODE / DATABASE_CONNECTION / SCHEMA_MAX_WORKERS.

        The merged values are validated again, so overrides obey the same
        bounds as the file.

        Raises:
            ConfigurationError: override fails validation
        """
        env = os.environ if environ is None else environ
        updates: Dict[str, Any] = {}

        if env.get("DATABASE_MODE"):
            try:
                updates["current_mode"] = Dialect.parse(env["DATABASE_MODE"])
            except ValueError:
                raise ConfigurationError(f"Unknown DATABASE_MODE: {env['DATABASE_MODE']}") from None
        if env.get("DATABASE_CONNECTION"):
            updates["connection_string"] = env["DATABASE_CONNECTION"]
        if env.get("SCHEMA_MAX_WORKERS"):
            try:
                updates["max_workers"] = int(env["SCHEMA_MAX_WORKERS"])
            except ValueError:
                raise ConfigurationError(
                    f"SCHEMA_MAX_WORKERS must be an integer: {env['SCHEMA_MAX_WORKERS']}"
                ) from None

        if not updates:
            return self
        try:
            return type(self).model_validate({**self.model_dump(), **updates})
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid environment override ({', '.join(sorted(updates))}): {e}"
            ) from e


def load_database_options(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> DatabaseOptions:
    """
    Load DatabaseOptions from YAML, then apply environment overrides.

    Args:
        path: YAML file. Defaults to DATABASE_CONFIG, then config/database.yaml.
            A missing default file yields built-in defaults; a missing
            explicit file is an error.
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ConfigurationError: unreadable file or invalid section
    """
    env = os.environ if environ is None else environ
    explicit = path or env.get("DATABASE_CONFIG")
    config_path = Path(explicit) if explicit else DEFAULT_CONFIG_PATH

    data: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path) as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read database configuration {config_path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Database configuration {config_path} must be a mapping")
        data = raw.get("database", raw)
        logger.debug(f"Loaded database configuration from {config_path}")
    elif explicit:
        raise ConfigurationError(f"Database configuration file not found: {config_path}")

    return DatabaseOptions.from_mapping(data).with_env_overrides(env)


__all__ = [
    "ColumnConfig",
    "TableConfig",
    "DatabaseOptions",
    "load_database_options",
    "DEFAULT_CONFIG_PATH",
]
