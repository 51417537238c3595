# ============================================================================
# METADATA EXTRACTOR TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Tests - Declared schema extraction
# PURPOSE: Verify model and configuration driven TableDescriptors
# CREATED: 17 OCT 2026
# ============================================================================
"""
Metadata Extractor Tests

Covers:
1. Model-driven tables (AutoColumn markers, derived types, nullability)
2. __sql_primary_key__ composite keys
3. Configuration-driven tables
4. Rejection of bad declarations (missing table name, duplicates)
5. TableManifest registration

Run with:
    pytest tests/test_extractor.py -v
"""

from datetime import datetime
from typing import Annotated, ClassVar, Dict, List, Optional, Set

import pytest
from pydantic import BaseModel

from core.config.database import ColumnConfig, TableConfig
from core.contracts import Dialect
from core.errors import ConfigurationError
from core.models import SCHEMA_MODELS, DestinyClanMember, DiscordGuildSettings
from core.schema.annotations import AutoColumn
from core.schema.descriptors import ColumnDescriptor, TableDescriptor
from core.schema.extractor import (
    MetadataExtractor,
    TableManifest,
    base_python_type,
    collect_tables,
)


@pytest.fixture
def extractor():
    return MetadataExtractor()


# ============================================================================
# TYPE HELPERS
# ============================================================================

class TestBasePythonType:
    def test_optional_unwrapped(self):
        assert base_python_type(Optional[int]) is int

    def test_annotated_unwrapped(self):
        assert base_python_type(Annotated[int, "meta"]) is int

    def test_generic_reduces_to_origin(self):
        assert base_python_type(Set[int]) is set
        assert base_python_type(Dict[str, str]) is dict
        assert base_python_type(List[int]) is list

    def test_datetime(self):
        assert base_python_type(Optional[datetime]) is datetime


# ============================================================================
# MODEL-DRIVEN TABLES
# ============================================================================

class TestGuildsTable:
    def test_table_name_and_column_order(self, extractor):
        table = extractor.extract(DiscordGuildSettings)
        assert table.name == "Guilds"
        assert [c.name for c in table.columns] == [
            "GuildId",
            "GuildName",
            "DefaultReportChannel",
            "TrackedMetrics",
            "TrackedRecords",
            "TrackedCollectibles",
            "TrackedProgressions",
            "SystemReportsEnabled",
            "SystemReportsOverrideChannel",
            "Clans",
        ]

    def test_primary_key(self, extractor):
        table = extractor.extract(DiscordGuildSettings)
        guild_id = table.column("GuildId")
        assert guild_id.primary_key
        assert guild_id.not_null
        assert guild_id.sql_type(Dialect.SQLITE) == "INTEGER"
        assert guild_id.sql_type(Dialect.POSTGRES) == "BIGINT"
        assert [c.name for c in table.primary_key] == ["GuildId"]

    def test_optional_fields_are_nullable(self, extractor):
        table = extractor.extract(DiscordGuildSettings)
        assert not table.column("GuildName").not_null
        assert table.column("GuildName").sql_type(Dialect.SQLITE) == "TEXT"

    def test_json_columns(self, extractor):
        table = extractor.extract(DiscordGuildSettings)
        clans = table.column("Clans")
        assert not clans.not_null
        assert clans.sql_type(Dialect.SQLITE) == "TEXT"
        assert clans.sql_type(Dialect.POSTGRES) == "JSONB"
        assert table.column("TrackedMetrics").sql_type(Dialect.POSTGRES) == "JSONB"

    def test_bool_default(self, extractor):
        column = extractor.extract(DiscordGuildSettings).column("SystemReportsEnabled")
        assert column.not_null
        assert column.default is False
        assert column.sql_type(Dialect.SQLITE) == "INTEGER"
        assert column.sql_type(Dialect.POSTGRES) == "BOOLEAN"

    def test_column_map(self, extractor):
        mapping = extractor.column_map(DiscordGuildSettings)
        assert mapping["GuildId"] == "guild_id"
        assert mapping["Clans"] == "clans"
        assert len(mapping) == 10


class TestCompositeKey:
    def test_sql_primary_key_classvar(self, extractor):
        table = extractor.extract(DestinyClanMember)
        assert table.name == "ClanMembers"
        assert [c.name for c in table.primary_key] == ["ClanId", "MembershipId"]
        assert table.has_composite_key

    def test_primary_key_may_name_fields(self, extractor):
        class Link(BaseModel):
            __sql_table__: ClassVar[str] = "Links"
            __sql_primary_key__: ClassVar[List[str]] = ["left_id", "right_id"]

            left_id: Annotated[int, AutoColumn("LeftId")]
            right_id: Annotated[int, AutoColumn("RightId")]

        table = extractor.extract(Link)
        assert [c.name for c in table.primary_key] == ["LeftId", "RightId"]

    def test_unknown_primary_key_rejected(self, extractor):
        class Broken(BaseModel):
            __sql_table__: ClassVar[str] = "Broken"
            __sql_primary_key__: ClassVar[str] = "Missing"

            id: Annotated[int, AutoColumn("Id")]

        with pytest.raises(ConfigurationError, match="Missing"):
            extractor.extract(Broken)


class TestMarkers:
    def test_type_override_wins(self, extractor):
        class Override(BaseModel):
            __sql_table__: ClassVar[str] = "Overrides"

            code: Annotated[str, AutoColumn("Code", types={"sqlite": "VARCHAR(8)"})]

        column = extractor.extract(Override).column("Code")
        assert column.sql_type(Dialect.SQLITE) == "VARCHAR(8)"
        assert column.sql_type(Dialect.POSTGRES) == "TEXT"

    def test_explicit_not_null_wins(self, extractor):
        class Explicit(BaseModel):
            __sql_table__: ClassVar[str] = "Explicit"

            id: Annotated[int, AutoColumn("Id", primary_key=True)]
            note: Annotated[Optional[str], AutoColumn("Note", not_null=True)] = None

        assert extractor.extract(Explicit).column("Note").not_null

    def test_unmarked_fields_are_not_columns(self, extractor):
        class Partial(BaseModel):
            __sql_table__: ClassVar[str] = "Partial"

            id: Annotated[int, AutoColumn("Id", primary_key=True)]
            runtime_only: Optional[str] = None

        table = extractor.extract(Partial)
        assert [c.name for c in table.columns] == ["Id"]

    def test_column_name_defaults_to_field_name(self, extractor):
        class Plain(BaseModel):
            __sql_table__: ClassVar[str] = "Plain"

            value: Annotated[int, AutoColumn()]

        assert extractor.extract(Plain).columns[0].name == "value"


class TestRejectedModels:
    def test_missing_table_name(self, extractor):
        class NoTable(BaseModel):
            id: Annotated[int, AutoColumn("Id")]

        with pytest.raises(ConfigurationError, match="__sql_table__"):
            extractor.extract(NoTable)

    def test_zero_columns(self, extractor):
        class NoColumns(BaseModel):
            __sql_table__: ClassVar[str] = "NoColumns"
            value: int = 0

        with pytest.raises(ConfigurationError, match="no columns"):
            extractor.extract(NoColumns)

    def test_duplicate_column_names(self, extractor):
        class Dupes(BaseModel):
            __sql_table__: ClassVar[str] = "Dupes"

            first: Annotated[int, AutoColumn("Value")]
            second: Annotated[int, AutoColumn("Value")]

        with pytest.raises(ConfigurationError, match="more than once"):
            extractor.extract(Dupes)


# ============================================================================
# CONFIGURATION-DRIVEN TABLES
# ============================================================================

class TestFromConfig:
    def test_taken_as_given(self, extractor):
        tables = {
            "Settings": TableConfig(columns=[
                ColumnConfig(name="Key", type={"sqlite": "TEXT"}, notNull=True, primaryKey=True),
                ColumnConfig(name="Value", type={"sqlite": "TEXT"}),
            ])
        }
        (table,) = extractor.from_config(tables)

        assert table.name == "Settings"
        assert table.source == "config"
        key = table.column("Key")
        assert key.not_null and key.primary_key
        assert key.sql_type(Dialect.SQLITE) == "TEXT"
        assert not table.column("Value").not_null

    def test_empty_table_rejected(self, extractor):
        with pytest.raises(ConfigurationError):
            extractor.from_config({"Empty": TableConfig(columns=[])})


# ============================================================================
# COLLECTION AND MANIFEST
# ============================================================================

class TestCollectTables:
    def test_duplicate_table_names_rejected(self):
        first = TableDescriptor.from_columns(
            "Guilds", [ColumnDescriptor("Id", {"sqlite": "INTEGER"})], source="config"
        )
        second = TableDescriptor.from_columns(
            "Guilds", [ColumnDescriptor("Id", {"sqlite": "INTEGER"})], source="model:X"
        )
        with pytest.raises(ConfigurationError, match="Guilds"):
            collect_tables([first], [second])

    def test_sources_merged_in_order(self):
        a = TableDescriptor.from_columns("A", [ColumnDescriptor("Id", {"sqlite": "INTEGER"})])
        b = TableDescriptor.from_columns("B", [ColumnDescriptor("Id", {"sqlite": "INTEGER"})])
        assert [t.name for t in collect_tables([a], [b])] == ["A", "B"]


class TestTableManifest:
    def test_default_manifest(self, extractor):
        names = {t.name for t in extractor.from_models(SCHEMA_MODELS)}
        assert names == {"Guilds", "Clans", "ClanMembers", "DestinyProfiles"}

    def test_register_as_decorator(self):
        manifest = TableManifest()

        @manifest.register
        class Registered(BaseModel):
            __sql_table__: ClassVar[str] = "Registered"
            id: Annotated[int, AutoColumn("Id", primary_key=True)]

        assert Registered in manifest
        assert len(manifest) == 1

    def test_register_is_idempotent(self):
        manifest = TableManifest([DiscordGuildSettings])
        manifest.register(DiscordGuildSettings)
        assert list(manifest) == [DiscordGuildSettings]
