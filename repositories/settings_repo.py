# ============================================================================
# SETTINGS STORAGE
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Repository - Key/value application settings
# PURPOSE: Database access for the configuration-declared Settings table
# CREATED: 16 OCT 2026
# ============================================================================
"""
Settings Storage

Key/value rows in the Settings table. The table has no model: it is declared
in the `database.tables` configuration section and reconciled at startup
like any other table.

Values are text. Typed values go through the value codec registry when
their type is registered, and through a pydantic TypeAdapter otherwise.
"""

from typing import Any, Optional

from pydantic import TypeAdapter

from repositories.base import BaseRepository

SETTINGS_TABLE = "Settings"


class SettingsStorage(BaseRepository):
    """Repository for the Settings key/value table."""

    table_name = SETTINGS_TABLE

    def get(self, key: str, annotation: Any = None, default: Any = None) -> Any:
        """
        Read a setting.

        Args:
            key: Setting key
            annotation: Decode the stored JSON text into this type;
                None returns the raw text
            default: Returned when the key is absent
        """
        query = self._sql(
            "SELECT {value} FROM {table} WHERE {key} = {setting_key}",
            table=self._ident(self.table_name),
            key=self._ident("Key"),
            value=self._ident("Value"),
            setting_key=self._placeholder("setting_key"),
        )
        with self._error_context("setting lookup", key):
            row = self.db.query_one(query, {"setting_key": key})

        if row is None:
            return default
        text = row["Value"]
        if annotation is None:
            return text
        if self.registry.is_registered(annotation):
            return self.registry.decode(annotation, text)
        if text is None:
            return default
        return TypeAdapter(annotation).validate_json(text)

    def set(self, key: str, value: Any, annotation: Any = None) -> None:
        """Insert or replace a setting."""
        query = self._sql(
            "INSERT INTO {table} ({key}, {value}) VALUES ({setting_key}, {setting_value}) "
            "ON CONFLICT ({key}) DO UPDATE SET {assignments}",
            table=self._ident(self.table_name),
            key=self._ident("Key"),
            value=self._ident("Value"),
            setting_key=self._placeholder("setting_key"),
            setting_value=self._placeholder("setting_value"),
            assignments=self._assignments(["Value"]),
        )
        params = {"setting_key": key, "setting_value": self._encode(value, annotation)}
        with self._error_context("setting update", key):
            self.db.execute(query, params)
        self.logger.debug(f"Stored setting {key}")

    def delete(self, key: str) -> bool:
        query = self._sql(
            "DELETE FROM {table} WHERE {key} = {setting_key}",
            table=self._ident(self.table_name),
            key=self._ident("Key"),
            setting_key=self._placeholder("setting_key"),
        )
        with self._error_context("setting delete", key):
            return self.db.execute(query, {"setting_key": key}) > 0

    def _encode(self, value: Any, annotation: Any) -> Optional[str]:
        if value is None:
            return None
        if annotation is not None and self.registry.is_registered(annotation):
            return self.registry.encode(annotation, value)
        if annotation is None and isinstance(value, str):
            return value
        adapter = TypeAdapter(annotation if annotation is not None else type(value))
        return adapter.dump_json(value).decode("utf-8")


__all__ = ["SettingsStorage", "SETTINGS_TABLE"]
