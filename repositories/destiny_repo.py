# ============================================================================
# DESTINY REPOSITORY
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Repository - Guild settings and clan storage
# PURPOSE: Database access for the Guilds and Clans tables
# CREATED: 16 OCT 2026
# ============================================================================
"""
Destiny Repository

Storage used by the Discord and scanner layers:
- Guild settings: list, get, upsert, delete
- Clans: upsert, get, ids by tracking state

Rows are materialized into the same pydantic models that declare the schema,
so a column added to a model is reconciled at startup and read back here
without further changes.
"""

from typing import List, Optional

from core.models import DestinyClan, DiscordGuildSettings
from repositories.base import BaseRepository


class DestinyRepository(BaseRepository):
    """Repository for guild settings and clans."""

    # =========================================================================
    # GUILD SETTINGS
    # =========================================================================

    def get_all_guild_settings(self) -> List[DiscordGuildSettings]:
        """Every stored guild."""
        query = self._sql(
            "SELECT * FROM {table}",
            table=self._ident(self._table_name(DiscordGuildSettings)),
        )
        with self._error_context("guild settings listing"):
            rows = self.db.query(query)
        return self._rows_to_models(DiscordGuildSettings, rows)

    def get_guild_settings(self, guild_id: int) -> Optional[DiscordGuildSettings]:
        """Settings for one guild, None when the guild is unknown."""
        query = self._sql(
            "SELECT * FROM {table} WHERE {key} = {guild_id}",
            table=self._ident(self._table_name(DiscordGuildSettings)),
            key=self._ident("GuildId"),
            guild_id=self._placeholder("guild_id"),
        )
        with self._error_context("guild settings lookup", guild_id):
            row = self.db.query_one(query, {"guild_id": guild_id})
        return self._row_to_model(DiscordGuildSettings, row) if row else None

    def upsert_guild_settings(self, settings: DiscordGuildSettings) -> None:
        """Insert the guild or overwrite every column of its existing row."""
        self._upsert(settings, key_column="GuildId", operation="guild settings upsert",
                     entity_id=settings.guild_id)
        self.logger.info(f"Saved settings for guild {settings.guild_id}")

    def delete_guild_settings(self, guild_id: int) -> bool:
        """
        Remove a guild.

        Returns:
            True if a row was deleted
        """
        query = self._sql(
            "DELETE FROM {table} WHERE {key} = {guild_id}",
            table=self._ident(self._table_name(DiscordGuildSettings)),
            key=self._ident("GuildId"),
            guild_id=self._placeholder("guild_id"),
        )
        with self._error_context("guild settings delete", guild_id):
            deleted = self.db.execute(query, {"guild_id": guild_id})
        if deleted:
            self.logger.info(f"Deleted settings for guild {guild_id}")
        return deleted > 0

    # =========================================================================
    # CLANS
    # =========================================================================

    def get_clan_ids(self, is_tracking: bool) -> List[int]:
        """Ids of clans whose IsTracking flag matches."""
        query = self._sql(
            "SELECT {key} FROM {table} WHERE {flag} = {is_tracking} ORDER BY {key}",
            table=self._ident(self._table_name(DestinyClan)),
            key=self._ident("ClanId"),
            flag=self._ident("IsTracking"),
            is_tracking=self._placeholder("is_tracking"),
        )
        with self._error_context("clan id listing"):
            rows = self.db.query(query, {"is_tracking": is_tracking})
        return [row["ClanId"] for row in rows]

    def get_clan(self, clan_id: int) -> Optional[DestinyClan]:
        query = self._sql(
            "SELECT * FROM {table} WHERE {key} = {clan_id}",
            table=self._ident(self._table_name(DestinyClan)),
            key=self._ident("ClanId"),
            clan_id=self._placeholder("clan_id"),
        )
        with self._error_context("clan lookup", clan_id):
            row = self.db.query_one(query, {"clan_id": clan_id})
        return self._row_to_model(DestinyClan, row) if row else None

    def upsert_clan(self, clan: DestinyClan) -> None:
        self._upsert(clan, key_column="ClanId", operation="clan upsert", entity_id=clan.clan_id)
        self.logger.info(f"Saved clan {clan.clan_id} ({clan.clan_name})")

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _upsert(self, instance, key_column: str, operation: str, entity_id) -> None:
        model = type(instance)
        column_map = self.extractor.column_map(model)
        columns = list(column_map)
        updated = [c for c in columns if c != key_column]

        query = self._sql(
            "INSERT INTO {table} ({columns}) VALUES ({values}) "
            "ON CONFLICT ({key}) DO UPDATE SET {assignments}",
            table=self._ident(self._table_name(model)),
            columns=self._idents(columns),
            values=self._placeholders(column_map[c] for c in columns),
            key=self._ident(key_column),
            assignments=self._assignments(updated),
        )
        with self._error_context(operation, entity_id):
            self.db.execute(query, self._model_params(instance))


__all__ = ["DestinyRepository"]
