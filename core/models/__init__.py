# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Model exports
# PURPOSE: Central export point and schema manifest for all table models
# CREATED: 13 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

Models define SQL metadata via the __sql_table__ ClassVar and AutoColumn
field markers. SCHEMA_MODELS is the explicit list of models that contribute
tables; adding a table model means adding it here.
"""

from core.models.clan import DestinyClan, DestinyClanMember
from core.models.guild import DiscordGuildSettings
from core.models.profile import DestinyProfile, DestinyProgressionSnapshot, DestinyRecordSnapshot
from core.models.track_settings import DefinitionTrackSettings
from core.schema.extractor import TableManifest

SCHEMA_MODELS = TableManifest([
    DiscordGuildSettings,
    DestinyClan,
    DestinyClanMember,
    DestinyProfile,
])

__all__ = [
    # Guilds
    "DiscordGuildSettings",
    "DefinitionTrackSettings",
    # Clans
    "DestinyClan",
    "DestinyClanMember",
    # Profiles
    "DestinyProfile",
    "DestinyRecordSnapshot",
    "DestinyProgressionSnapshot",
    # Manifest
    "SCHEMA_MODELS",
]
