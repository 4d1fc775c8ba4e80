"""
npc_engine/errors.py -- Exception types raised by the configuration engine.

Validation findings are returned as data (see ``npc_engine.validator``) and
never raised.  The classes here cover contract violations and failures at
the persistence boundary only.
"""

from __future__ import annotations


class NpcEditorError(Exception):
    """Base class for all engine errors."""


class UnknownVariantError(NpcEditorError, KeyError):
    """A variant id that is not in the registry was passed to the factory."""

    def __init__(self, variant):
        self.variant = variant
        super().__init__(f"Unknown NPC variant: {variant!r}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return self.args[0]


class PathResolutionError(NpcEditorError, ValueError):
    """A malformed field path (empty, or with an empty segment)."""

    def __init__(self, path, reason: str = "empty path segment"):
        self.path = path
        super().__init__(f"Malformed field path {path!r}: {reason}")


class FieldValueError(NpcEditorError, ValueError):
    """Raw form input that cannot be coerced to the field's value type."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class ImmutableFieldError(NpcEditorError):
    """Attempt to edit a field the form logic never writes (``id``, ``type``)."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Field '{path}' cannot be edited")


class PersistenceFailure(NpcEditorError):
    """The Persistence Service could not complete a request.

    Parameters
    ----------
    operation : str
        Short name of the failed call (``"list"``, ``"save"``, ``"delete"``).
    message : str
        Human-readable cause.
    """

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")
