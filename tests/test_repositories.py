# ============================================================================
# REPOSITORY TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Tests - Storage consumers over reconciled tables
# PURPOSE: Verify guild, clan and settings storage on SQLite
# CREATED: 18 OCT 2026
# ============================================================================
"""
Repository Tests

Covers:
1. Guild settings upsert / get / list / delete
2. NULL complex columns materialize as empty values
3. Clan storage and tracking queries
4. Settings key/value storage (raw and typed)
5. RepositoryError wrapping
6. PostgreSQL query composition (mocked database)

Run with:
    pytest tests/test_repositories.py -v
"""

import json
from datetime import datetime, timezone
from typing import Dict, List
from unittest.mock import MagicMock

import pytest
from psycopg import sql

from core.config.database import load_database_options
from core.contracts import Dialect
from core.models import DestinyClan, DiscordGuildSettings
from infrastructure.database_initializer import DatabaseInitializer
from infrastructure.db_access import SqliteDbAccess
from repositories import DestinyRepository, RepositoryError, SettingsStorage


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def db():
    """In-memory database with every declared table reconciled."""
    access = SqliteDbAccess(":memory:")
    options = load_database_options(environ={"DATABASE_CONNECTION": ":memory:"})
    DatabaseInitializer(access, options).initialize_schema()
    yield access
    access.close()


@pytest.fixture
def repo(db):
    return DestinyRepository(db)


@pytest.fixture
def settings(db):
    return SettingsStorage(db)


# ============================================================================
# GUILD SETTINGS
# ============================================================================

class TestGuildSettings:
    def test_upsert_and_get(self, repo):
        guild = DiscordGuildSettings.create_default(1001, "Iron Banner")
        guild.tracked_metrics.track(1765255052)
        guild.tracked_metrics.is_reported = True

        repo.upsert_guild_settings(guild)
        loaded = repo.get_guild_settings(1001)

        assert loaded.model_dump() == guild.model_dump()
        assert loaded.tracked_metrics.tracked_hashes == {1765255052}
        assert loaded.clans == set()

    def test_empty_set_stored_as_json_array(self, db, repo):
        repo.upsert_guild_settings(DiscordGuildSettings.create_default(1001))

        raw = db.query_one('SELECT "Clans" FROM "Guilds" WHERE "GuildId" = 1001')
        assert raw["Clans"] == "[]"

    def test_large_clan_ids_preserved(self, db, repo):
        guild = DiscordGuildSettings(guild_id=1001, clans={4611686018467000000, 881267})
        repo.upsert_guild_settings(guild)

        raw = db.query_one('SELECT "Clans" FROM "Guilds" WHERE "GuildId" = 1001')
        assert sorted(json.loads(raw["Clans"])) == [881267, 4611686018467000000]
        assert repo.get_guild_settings(1001).clans == {4611686018467000000, 881267}

    def test_null_columns_read_as_empty(self, db, repo):
        db.execute('INSERT INTO "Guilds" ("GuildId") VALUES (2002)')

        loaded = repo.get_guild_settings(2002)

        assert loaded.guild_name is None
        assert loaded.clans == set()
        assert loaded.tracked_records.tracked_hashes == set()
        assert loaded.tracked_records.is_reported is False
        assert loaded.system_reports_enabled is False

    def test_upsert_overwrites_existing_row(self, repo):
        repo.upsert_guild_settings(DiscordGuildSettings.create_default(1001, "Old"))

        updated = DiscordGuildSettings(
            guild_id=1001,
            guild_name="New",
            system_reports_enabled=True,
            clans={42},
        )
        repo.upsert_guild_settings(updated)

        loaded = repo.get_guild_settings(1001)
        assert loaded.guild_name == "New"
        assert loaded.system_reports_enabled is True
        assert loaded.clans == {42}
        assert len(repo.get_all_guild_settings()) == 1

    def test_unknown_guild(self, repo):
        assert repo.get_guild_settings(404) is None

    def test_list_and_delete(self, repo):
        for guild_id in (1, 2, 3):
            repo.upsert_guild_settings(DiscordGuildSettings.create_default(guild_id))

        assert {g.guild_id for g in repo.get_all_guild_settings()} == {1, 2, 3}
        assert repo.delete_guild_settings(2) is True
        assert repo.delete_guild_settings(2) is False
        assert {g.guild_id for g in repo.get_all_guild_settings()} == {1, 3}

    def test_live_only_columns_ignored(self, db, repo):
        db.execute('ALTER TABLE "Guilds" ADD COLUMN "Legacy" TEXT')
        db.execute('INSERT INTO "Guilds" ("GuildId", "Legacy") VALUES (7, \'x\')')

        assert repo.get_guild_settings(7).guild_id == 7


# ============================================================================
# CLANS
# ============================================================================

class TestClans:
    def test_upsert_and_get(self, repo):
        joined = datetime(2024, 6, 4, 17, 0, tzinfo=timezone.utc)
        clan = DestinyClan(clan_id=881267, clan_name="Atheon Fan Club", clan_callsign="AFC",
                           joined_on=joined)
        repo.upsert_clan(clan)

        loaded = repo.get_clan(881267)
        assert loaded.clan_name == "Atheon Fan Club"
        assert loaded.joined_on == joined
        assert loaded.is_tracking is True
        assert loaded.clan_level == 1

    def test_unknown_clan(self, repo):
        assert repo.get_clan(1) is None

    def test_clan_ids_by_tracking_state(self, repo):
        repo.upsert_clan(DestinyClan(clan_id=3, clan_name="c"))
        repo.upsert_clan(DestinyClan(clan_id=1, clan_name="a"))
        repo.upsert_clan(DestinyClan(clan_id=2, clan_name="b", is_tracking=False))

        assert repo.get_clan_ids(is_tracking=True) == [1, 3]
        assert repo.get_clan_ids(is_tracking=False) == [2]

    def test_tracking_flag_update(self, repo):
        repo.upsert_clan(DestinyClan(clan_id=1, clan_name="a"))
        repo.upsert_clan(DestinyClan(clan_id=1, clan_name="a", is_tracking=False))

        assert repo.get_clan_ids(is_tracking=True) == []


# ============================================================================
# SETTINGS
# ============================================================================

class TestSettingsStorage:
    def test_raw_text(self, settings):
        settings.set("motd", "Eyes up, Guardian")
        assert settings.get("motd") == "Eyes up, Guardian"

    def test_missing_key_returns_default(self, settings):
        assert settings.get("missing") is None
        assert settings.get("missing", default="fallback") == "fallback"

    def test_overwrite(self, settings):
        settings.set("motd", "a")
        settings.set("motd", "b")
        assert settings.get("motd") == "b"

    def test_registered_type(self, db, settings):
        settings.set("aliases", {"vog": "Vault of Glass"}, annotation=Dict[str, str])

        raw = db.query_one('SELECT "Value" FROM "Settings" WHERE "Key" = \'aliases\'')
        assert json.loads(raw["Value"]) == {"vog": "Vault of Glass"}
        assert settings.get("aliases", Dict[str, str]) == {"vog": "Vault of Glass"}

    def test_unregistered_type_uses_json(self, settings):
        settings.set("order", [3, 1, 2], annotation=List[int])
        assert settings.get("order", List[int]) == [3, 1, 2]

    def test_delete(self, settings):
        settings.set("motd", "a")
        assert settings.delete("motd") is True
        assert settings.delete("motd") is False
        assert settings.get("motd") is None


# ============================================================================
# ERRORS AND DIALECTS
# ============================================================================

class TestRepositoryErrors:
    def test_missing_table_wrapped(self):
        empty = SqliteDbAccess(":memory:")
        try:
            with pytest.raises(RepositoryError) as exc_info:
                DestinyRepository(empty).get_guild_settings(1)
        finally:
            empty.close()

        assert exc_info.value.operation == "guild settings lookup"
        assert exc_info.value.entity_id == "1"
        assert exc_info.value.__cause__ is not None


class TestPostgresComposition:
    @pytest.fixture
    def pg(self):
        db = MagicMock()
        db.dialect = Dialect.POSTGRES
        db.query.return_value = []
        db.query_one.return_value = None
        return db

    def test_queries_are_composed(self, pg):
        assert DestinyRepository(pg).get_guild_settings(1) is None

        statement, params = pg.query_one.call_args.args
        assert isinstance(statement, sql.Composed)
        assert params == {"guild_id": 1}

    def test_upsert_params_keyed_by_field(self, pg):
        DestinyRepository(pg).upsert_guild_settings(DiscordGuildSettings(guild_id=9, clans={1}))

        statement, params = pg.execute.call_args.args
        assert isinstance(statement, sql.Composed)
        assert params["guild_id"] == 9
        assert json.loads(params["clans"]) == [1]
        assert params["system_reports_enabled"] is False
