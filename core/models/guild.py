# ============================================================================
# GUILD SETTINGS MODEL
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core model - Discord guild configuration
# PURPOSE: Per-guild report channel, tracked definitions and linked clans
# CREATED: 13 OCT 2026
# EXPORTS: DiscordGuildSettings
# DEPENDENCIES: pydantic
# ============================================================================
"""
Discord Guild Settings Model

Table: Guilds (one row per Discord guild the bot is installed in)

Tracked definition settings and the linked clan set are JSON text columns
encoded through the value codec registry.
"""

from typing import Annotated, ClassVar, Optional, Set

from pydantic import BaseModel, Field

from core.contracts import (
    DestinyCollectibleDefinition,
    DestinyMetricDefinition,
    DestinyProgressionDefinition,
    DestinyRecordDefinition,
    Int64,
)
from core.models.track_settings import DefinitionTrackSettings
from core.schema.annotations import AutoColumn


class DiscordGuildSettings(BaseModel):
    """
    Settings for one Discord guild.

    Maps to: Guilds table
    Primary Key: GuildId
    """

    # =========================================================================
    # SQL DDL METADATA
    # =========================================================================
    __sql_table__: ClassVar[str] = "Guilds"

    guild_id: Annotated[Int64, AutoColumn("GuildId", primary_key=True)]
    guild_name: Annotated[Optional[str], AutoColumn("GuildName")] = None
    default_report_channel: Annotated[Optional[int], AutoColumn("DefaultReportChannel")] = None

    tracked_metrics: Annotated[
        DefinitionTrackSettings[DestinyMetricDefinition],
        AutoColumn("TrackedMetrics", not_null=False),
    ] = Field(default_factory=DefinitionTrackSettings[DestinyMetricDefinition])
    tracked_records: Annotated[
        DefinitionTrackSettings[DestinyRecordDefinition],
        AutoColumn("TrackedRecords", not_null=False),
    ] = Field(default_factory=DefinitionTrackSettings[DestinyRecordDefinition])
    tracked_collectibles: Annotated[
        DefinitionTrackSettings[DestinyCollectibleDefinition],
        AutoColumn("TrackedCollectibles", not_null=False),
    ] = Field(default_factory=DefinitionTrackSettings[DestinyCollectibleDefinition])
    tracked_progressions: Annotated[
        DefinitionTrackSettings[DestinyProgressionDefinition],
        AutoColumn("TrackedProgressions", not_null=False),
    ] = Field(default_factory=DefinitionTrackSettings[DestinyProgressionDefinition])

    system_reports_enabled: Annotated[
        bool, AutoColumn("SystemReportsEnabled", default=False)
    ] = False
    system_reports_override_channel: Annotated[
        Optional[int], AutoColumn("SystemReportsOverrideChannel")
    ] = None

    clans: Annotated[Set[Int64], AutoColumn("Clans", not_null=False)] = Field(default_factory=set)

    @classmethod
    def create_default(cls, guild_id: int, guild_name: Optional[str] = None) -> "DiscordGuildSettings":
        """Settings for a newly joined guild."""
        return cls(guild_id=guild_id, guild_name=guild_name)


__all__ = ['DiscordGuildSettings']
