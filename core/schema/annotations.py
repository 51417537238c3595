# ============================================================================
# SCHEMA ANNOTATIONS
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core - Column opt-in markers for pydantic models
# PURPOSE: AutoColumn marker carried in Annotated[...] field metadata
# CREATED: 12 OCT 2026
# ============================================================================
"""
Column Markers.

A model opts in to schema generation with the `__sql_table__` ClassVar. Each
field opts in by carrying an AutoColumn inside its Annotated metadata:

    class DestinyClan(BaseModel):
        __sql_table__: ClassVar[str] = "Clans"

        clan_id: Annotated[int, AutoColumn("ClanId", primary_key=True)]
        clan_name: Annotated[Optional[str], AutoColumn("ClanName")]

Fields without a marker are plain model fields and never become columns.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from core.schema.descriptors import DefaultLiteral


@dataclass(frozen=True)
class AutoColumn:
    """
    Opt-in column metadata for a model field.

    Attributes:
        name: Column name (defaults to the field name)
        types: Per-dialect type overrides, e.g. {"sqlite": "TEXT"}.
            Dialects not listed are derived from the annotation.
        not_null: Explicit nullability. None means "NOT NULL unless the
            annotation is Optional".
        primary_key: Member of the table's primary key
        default: Optional DEFAULT literal
    """
    name: Optional[str] = None
    types: Dict[str, str] = field(default_factory=dict, hash=False)
    not_null: Optional[bool] = None
    primary_key: bool = False
    default: DefaultLiteral = None


__all__ = ["AutoColumn"]
