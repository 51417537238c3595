# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core - Database access layer
# PURPOSE: Storage consumers of the reconciled schema
# CREATED: 16 OCT 2026
# ============================================================================
"""
Repositories Module

Provides database access for guild settings, clans and application
settings. Every repository shares the DbAccess and value codec registry used
at startup.

Usage:
    from repositories import DestinyRepository

    repo = DestinyRepository(db, registry)
    settings = repo.get_guild_settings(guild_id)
"""

from .base import BaseRepository, RepositoryError
from .destiny_repo import DestinyRepository
from .settings_repo import SettingsStorage, SETTINGS_TABLE

__all__ = [
    "BaseRepository",
    "RepositoryError",
    "DestinyRepository",
    "SettingsStorage",
    "SETTINGS_TABLE",
]
