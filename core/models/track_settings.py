# ============================================================================
# DEFINITION TRACK SETTINGS MODEL
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core model - Per-guild tracking preferences
# PURPOSE: Generic wrapper for tracked Destiny definition hashes
# CREATED: 13 OCT 2026
# EXPORTS: DefinitionTrackSettings
# DEPENDENCIES: pydantic
# ============================================================================
"""
Definition Track Settings

One settings object per definition family (metrics, records, collectibles,
progressions). Stored as JSON text in a single column of the Guilds table.
"""

from typing import Generic, Optional, Set, TypeVar

from pydantic import BaseModel, Field

from core.contracts import DestinyDefinition, UInt32

TDefinition = TypeVar("TDefinition", bound=DestinyDefinition)


class DefinitionTrackSettings(BaseModel, Generic[TDefinition]):
    """
    Tracked definition hashes for one definition family.

    Parameterize per family, e.g. DefinitionTrackSettings[DestinyMetricDefinition].
    """

    tracked_hashes: Set[UInt32] = Field(
        default_factory=set,
        description="Definition hashes the guild reports on"
    )
    is_reported: bool = Field(
        default=False,
        description="Whether this family is included in scheduled reports"
    )
    override_report_channel: Optional[int] = Field(
        default=None,
        description="Channel id used instead of the guild default"
    )

    def track(self, definition_hash: int) -> None:
        self.tracked_hashes.add(definition_hash)

    def untrack(self, definition_hash: int) -> None:
        self.tracked_hashes.discard(definition_hash)


__all__ = ['DefinitionTrackSettings']
