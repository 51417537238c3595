# ============================================================================
# CLAN MODELS
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core model - Destiny clans and their members
# PURPOSE: Tracked clan rows and clan membership links
# CREATED: 13 OCT 2026
# EXPORTS: DestinyClan, DestinyClanMember
# DEPENDENCIES: pydantic
# ============================================================================
"""
Clan Models

- DestinyClan: Clans table, one row per Bungie group id
- DestinyClanMember: ClanMembers table, composite key (ClanId, MembershipId)
"""

from datetime import datetime
from typing import Annotated, ClassVar, List, Optional

from pydantic import BaseModel

from core.contracts import Int64
from core.schema.annotations import AutoColumn


class DestinyClan(BaseModel):
    """
    A Bungie clan known to the scanner.

    Maps to: Clans table
    Primary Key: ClanId
    """

    __sql_table__: ClassVar[str] = "Clans"

    clan_id: Annotated[Int64, AutoColumn("ClanId", primary_key=True)]
    clan_name: Annotated[str, AutoColumn("ClanName")]
    clan_callsign: Annotated[Optional[str], AutoColumn("ClanCallsign")] = None
    clan_level: Annotated[int, AutoColumn("ClanLevel", default=1)] = 1
    member_count: Annotated[int, AutoColumn("MemberCount", default=0)] = 0
    is_tracking: Annotated[bool, AutoColumn("IsTracking", default=True)] = True
    joined_on: Annotated[Optional[datetime], AutoColumn("JoinedOn")] = None
    last_scan: Annotated[Optional[datetime], AutoColumn("LastScan")] = None
    should_rescan: Annotated[bool, AutoColumn("ShouldRescan", default=False)] = False


class DestinyClanMember(BaseModel):
    """
    Membership of a Destiny profile in a clan.

    Maps to: ClanMembers table
    Primary Key: (ClanId, MembershipId)
    """

    __sql_table__: ClassVar[str] = "ClanMembers"
    __sql_primary_key__: ClassVar[List[str]] = ["ClanId", "MembershipId"]

    clan_id: Annotated[Int64, AutoColumn("ClanId")]
    membership_id: Annotated[Int64, AutoColumn("MembershipId")]
    join_date: Annotated[Optional[datetime], AutoColumn("JoinDate")] = None
    is_clan_member: Annotated[bool, AutoColumn("IsClanMember", default=True)] = True


__all__ = ['DestinyClan', 'DestinyClanMember']
