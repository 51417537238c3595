# ============================================================================
# DESTINY PROFILE MODEL
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core model - Scanned player profiles
# PURPOSE: Per-player progress snapshot keyed by Bungie definition hashes
# CREATED: 13 OCT 2026
# EXPORTS: DestinyProfile, DestinyRecordSnapshot, DestinyProgressionSnapshot
# DEPENDENCIES: pydantic
# ============================================================================
"""
Destiny Profile Model

Table: DestinyProfiles

Record and progression snapshots are stored as JSON mappings keyed by the
definition hash (uint32). They are compared between scans to detect
completions worth reporting.
"""

from datetime import datetime
from typing import Annotated, ClassVar, Dict, Optional, Set

from pydantic import BaseModel, Field

from core.contracts import Int64, UInt32
from core.schema.annotations import AutoColumn


class DestinyRecordSnapshot(BaseModel):
    """State of one triumph/record at scan time."""

    state: int = 0
    completed_count: Optional[int] = None
    objectives: Dict[UInt32, int] = Field(
        default_factory=dict,
        description="Objective hash -> progress value"
    )

    def is_completed(self) -> bool:
        # RecordState.ObjectiveNotCompleted
        return not (self.state & 4)


class DestinyProgressionSnapshot(BaseModel):
    """State of one progression (rank track, season pass) at scan time."""

    level: int = 0
    level_cap: int = 0
    progress_to_next_level: int = 0
    current_progress: int = 0
    current_reset_count: Optional[int] = None


class DestinyProfile(BaseModel):
    """
    Latest scanned state of one Destiny profile.

    Maps to: DestinyProfiles table
    Primary Key: MembershipId
    """

    __sql_table__: ClassVar[str] = "DestinyProfiles"

    membership_id: Annotated[Int64, AutoColumn("MembershipId", primary_key=True)]
    membership_type: Annotated[int, AutoColumn("MembershipType")]
    name: Annotated[Optional[str], AutoColumn("Name")] = None
    clan_id: Annotated[Optional[Int64], AutoColumn("ClanId")] = None
    date_last_played: Annotated[Optional[datetime], AutoColumn("DateLastPlayed")] = None
    minutes_played_total: Annotated[int, AutoColumn("MinutesPlayedTotal", default=0)] = 0
    records: Annotated[
        Dict[UInt32, DestinyRecordSnapshot], AutoColumn("Records", not_null=False)
    ] = Field(default_factory=dict)
    progressions: Annotated[
        Dict[UInt32, DestinyProgressionSnapshot], AutoColumn("Progressions", not_null=False)
    ] = Field(default_factory=dict)
    collectibles: Annotated[Set[UInt32], AutoColumn("Collectibles", not_null=False)] = Field(
        default_factory=set
    )

    # Runtime only, never persisted
    scan_error: Optional[str] = None


__all__ = ['DestinyProfile', 'DestinyRecordSnapshot', 'DestinyProgressionSnapshot']
