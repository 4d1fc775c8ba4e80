"""
npc_engine/field_resolver.py -- Dotted field paths on draft records.

A path such as ``battleConfig.teamId`` or ``destinations.0.mapId`` is split
on ``.``; digit segments index into lists.  Reads never raise on a miss.
Writes are total: missing intermediate mappings are created.  Only a
malformed path (empty, non-string, empty segment) raises, with
:class:`~npc_engine.errors.PathResolutionError`, which is distinct from
the field simply being absent.

The plain functions work on any nested dict.  :class:`FieldResolver` adds
the record's variant schema on top, so that a missing sequence field reads
as an empty list rather than as absent.

Usage::

    from npc_engine.field_resolver import FieldResolver

    resolver = FieldResolver()
    resolver.set(draft, "position.x", 10)
    resolver.get(draft, "shopConfig.discountPercent")
    resolver.resolve(draft, "questsToGive")     # [] when missing
"""

from __future__ import annotations

from typing import Any, Optional

from npc_engine.errors import PathResolutionError
from npc_engine.registry import TypeRegistry
from npc_engine.utils import clone

_MISSING = object()


# ------------------------------------------------------------------
# Path parsing
# ------------------------------------------------------------------

def parse_path(path: Any) -> list[str]:
    """Split *path* into segments.

    Raises
    ------
    PathResolutionError
        If *path* is not a non-empty string or has an empty segment
        (``"a..b"``, ``".a"``, ``"a."``).
    """
    if not isinstance(path, str):
        raise PathResolutionError(path, "path must be a string")
    if not path:
        raise PathResolutionError(path, "path is empty")
    segments = path.split(".")
    if any(not s for s in segments):
        raise PathResolutionError(path)
    return segments


def _step(current: Any, segment: str) -> Any:
    if isinstance(current, dict):
        return current.get(segment, _MISSING)
    if isinstance(current, list) and segment.isdigit():
        index = int(segment)
        if index < len(current):
            return current[index]
    return _MISSING


# ------------------------------------------------------------------
# Plain path operations
# ------------------------------------------------------------------

def get_path(record: dict, path: str, default: Any = None) -> Any:
    """Value at *path*, or *default* as soon as a segment is missing."""
    current: Any = record
    for segment in parse_path(path):
        current = _step(current, segment)
        if current is _MISSING:
            return default
    return current


def has_path(record: dict, path: str) -> bool:
    current: Any = record
    for segment in parse_path(path):
        current = _step(current, segment)
        if current is _MISSING:
            return False
    return True


def set_path(record: dict, path: str, value: Any) -> None:
    """Assign *value* at *path*, creating intermediate containers as needed.

    A value that cannot hold the next segment (a scalar, ``None``, or a
    list followed by a non-digit segment) is replaced by a mapping.  Lists
    are indexed by digit segments; an index past the end pads the list
    with ``None`` up to that index.
    """
    segments = parse_path(path)
    if not isinstance(record, dict):
        raise PathResolutionError(path, "target record is not a mapping")
    current: Any = record
    for segment, following in zip(segments, segments[1:]):
        nxt = _step(current, segment)
        if not isinstance(nxt, dict) and not (isinstance(nxt, list) and following.isdigit()):
            nxt = {}
            _assign(current, segment, nxt)
        current = nxt
    _assign(current, segments[-1], value)


def delete_path(record: dict, path: str) -> bool:
    """Remove the value at *path*.  Returns ``False`` if nothing was there."""
    segments = parse_path(path)
    parent = record if len(segments) == 1 else get_path(record, ".".join(segments[:-1]))
    last = segments[-1]
    if isinstance(parent, dict) and last in parent:
        del parent[last]
        return True
    if isinstance(parent, list) and last.isdigit() and int(last) < len(parent):
        del parent[int(last)]
        return True
    return False


def _assign(container: Any, segment: str, value: Any) -> None:
    # a list container is only reached through a digit segment
    if isinstance(container, list):
        index = int(segment)
        if index >= len(container):
            container.extend([None] * (index - len(container) + 1))
        container[index] = value
    else:
        container[segment] = value


# ------------------------------------------------------------------
# Schema-aware resolver
# ------------------------------------------------------------------

class FieldResolver:
    """Path operations that know the variant schema of the record.

    Parameters
    ----------
    registry : TypeRegistry, optional
        Variant registry (default: the compiled-in catalog).
    """

    def __init__(self, registry: Optional[TypeRegistry] = None):
        self.registry = registry or TypeRegistry.default()

    get = staticmethod(get_path)
    set = staticmethod(set_path)
    has = staticmethod(has_path)
    delete = staticmethod(delete_path)

    def is_sequence_field(self, record: dict, path: str) -> bool:
        segments = parse_path(path)
        if len(segments) != 1:
            return False
        schema = self.registry.field_schema(record.get("type"), segments[0])
        return schema is not None and schema.is_sequence

    def resolve(self, record: dict, path: str, default: Any = None) -> Any:
        """Like :meth:`get`, but a missing sequence field reads as ``[]``."""
        value = get_path(record, path, _MISSING)
        if value is _MISSING or value is None:
            if self.is_sequence_field(record, path):
                return []
            return default if value is _MISSING else value
        return value

    def with_sequences(self, record: dict) -> dict:
        """Deep copy of *record* where every sequence field of its variant exists."""
        copy = clone(record)
        for name in self.registry.sequence_fields(record.get("type")):
            if copy.get(name) is None:
                copy[name] = []
        return copy

    def ensure_sequences(self, record: dict) -> dict:
        """In-place version of :meth:`with_sequences`."""
        for name in self.registry.sequence_fields(record.get("type")):
            if record.get(name) is None:
                record[name] = []
        return record
