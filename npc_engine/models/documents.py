"""
npc_engine/models/documents.py -- Stored document shapes.

``ZoneDocument`` is the per-scope file written by the JSON persistence
backend.  Records themselves stay plain dicts so that variant-specific
fields survive untouched; only the envelope is modelled.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

ZONE_DOCUMENT_VERSION = "1.0.0"


class Position(BaseModel):
    """Map coordinates in pixels."""

    model_config = ConfigDict(extra="allow", allow_inf_nan=False)

    x: Union[int, float] = 0
    y: Union[int, float] = 0


class ZoneDocument(BaseModel):
    """All NPC records of one scope (zone)."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    zone: str
    version: str = ZONE_DOCUMENT_VERSION
    last_updated: str = Field(default="", alias="lastUpdated")
    description: str = ""
    npcs: list[dict[str, Any]] = Field(default_factory=list)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)
