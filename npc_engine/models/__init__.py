"""
npc_engine/models/ -- Pydantic v2 models for the NPC configuration engine.

Submodules:
    schema      Catalog entries, field schemas and variant descriptors.
    documents   Stored document shapes (zone document, position).
"""

from npc_engine.models.documents import Position, ZoneDocument
from npc_engine.models.schema import (
    CatalogEntry,
    EntityTypeDescriptor,
    FieldSchema,
    ValueTag,
    parse_value_tag,
)

__all__ = [
    "CatalogEntry",
    "EntityTypeDescriptor",
    "FieldSchema",
    "Position",
    "ValueTag",
    "ZoneDocument",
    "parse_value_tag",
]
