"""
npc_engine/models/schema.py -- Pydantic v2 models for the variant catalog.

Three layers:

    CatalogEntry            Raw catalog entry for one variant, as shipped
                            with the engine or delivered by the Persistence
                            Service.  Accepts the camelCase keys used by the
                            game server's admin tooling.
    FieldSchema             Resolved description of a single field.
    EntityTypeDescriptor    Everything the editor knows about one variant:
                            sections, field schemas, required fields and
                            the configuration-step checklist.

Descriptors are frozen; the registry hands the same instances to every
caller.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ValueTag(str, Enum):
    """Value-type tag of a field."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SEQUENCE = "ordered-sequence"
    MAPPING = "keyed-mapping"
    SELECTION = "selection"


# Catalog spelling (admin tooling) -> ValueTag
_CATALOG_TYPE_ALIASES = {
    "string": ValueTag.STRING,
    "number": ValueTag.NUMBER,
    "boolean": ValueTag.BOOLEAN,
    "array": ValueTag.SEQUENCE,
    "object": ValueTag.MAPPING,
    "select": ValueTag.SELECTION,
}

# ValueTag -> JSON Schema "type".  ``null`` is always accepted because an
# unset optional field is stored as None by the form logic; presence is
# checked separately.
_JSON_TYPES = {
    ValueTag.STRING: ["string", "null"],
    ValueTag.NUMBER: ["number", "null"],
    ValueTag.BOOLEAN: ["boolean", "null"],
    ValueTag.SEQUENCE: ["array", "null"],
    ValueTag.MAPPING: ["object", "null"],
    ValueTag.SELECTION: ["string", "null"],
}


def parse_value_tag(raw: Any) -> ValueTag:
    """Convert a catalog type name (``array``, ``object``...) to a ValueTag."""
    if isinstance(raw, ValueTag):
        return raw
    if raw in _CATALOG_TYPE_ALIASES:
        return _CATALOG_TYPE_ALIASES[raw]
    return ValueTag(raw)


# ------------------------------------------------------------------
# Field schema
# ------------------------------------------------------------------

class FieldSchema(BaseModel):
    """Resolved description of one field of one variant."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    tag: ValueTag
    label: str = ""
    required: bool = False
    default: Any = None
    options: tuple[str, ...] = ()
    help: str = ""
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    @property
    def is_sequence(self) -> bool:
        return self.tag is ValueTag.SEQUENCE

    def json_schema(self) -> dict:
        """JSON Schema fragment checking this field's value-type tag."""
        fragment: dict[str, Any] = {"type": list(_JSON_TYPES[self.tag])}
        if self.label:
            fragment["title"] = self.label
        return fragment

    def empty_value(self) -> Any:
        """Fresh value used when the field is first materialised."""
        if self.tag is ValueTag.SEQUENCE:
            return []
        if self.tag is ValueTag.MAPPING:
            return {}
        if isinstance(self.default, (list, dict)):
            return type(self.default)(self.default)
        return self.default


# ------------------------------------------------------------------
# Catalog entry (input format)
# ------------------------------------------------------------------

class CatalogEntry(BaseModel):
    """One variant as described by a catalog document.

    ``fields`` may be given in the nested admin-tooling shape
    (``{"required": [...], "optional": [...]}``); it is flattened into
    ``required`` / ``optional`` before validation.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    description: str = ""
    sections: list[str] = Field(default_factory=list)
    required: list[str] = Field(default_factory=list)
    optional: list[str] = Field(default_factory=list)
    field_groups: dict[str, list[str]] = Field(default_factory=dict, alias="fieldGroups")
    field_types: dict[str, str] = Field(default_factory=dict, alias="fieldTypes")
    select_options: dict[str, list[str]] = Field(default_factory=dict, alias="selectOptions")
    config_required: list[str] = Field(default_factory=list, alias="configRequired")

    @model_validator(mode="before")
    @classmethod
    def _flatten_fields(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("fields"), dict):
            data = dict(data)
            nested = data.pop("fields")
            data.setdefault("required", nested.get("required", []))
            data.setdefault("optional", nested.get("optional", []))
        return data


# ------------------------------------------------------------------
# Descriptor
# ------------------------------------------------------------------

class EntityTypeDescriptor(BaseModel):
    """Shape of one variant: sections, fields and required subsets."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    variant: str
    display_name: str
    description: str = ""
    sections: tuple[str, ...]
    section_fields: dict[str, tuple[str, ...]]
    fields: dict[str, FieldSchema]
    required: tuple[str, ...]
    config_required: tuple[str, ...] = ()

    def field(self, name: str) -> Optional[FieldSchema]:
        return self.fields.get(name)

    def is_required(self, name: str) -> bool:
        return name in self.required

    def fields_in(self, section: str) -> list[FieldSchema]:
        """Field schemas of *section*, in display order."""
        return [self.fields[n] for n in self.section_fields.get(section, ()) if n in self.fields]

    def sequence_fields(self) -> tuple[str, ...]:
        return tuple(n for n, f in self.fields.items() if f.is_sequence)

    def json_schema(self) -> dict:
        """JSON Schema (draft 2020-12) checking the value-type tag of every field."""
        return {
            "$schema": "https://json-schema.org/draft/2020-12/schema",
            "title": self.display_name,
            "type": "object",
            "properties": {name: f.json_schema() for name, f in self.fields.items()},
        }
