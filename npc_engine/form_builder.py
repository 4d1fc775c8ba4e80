"""
npc_engine/form_builder.py -- Headless form logic for NPC drafts.

Builds the section/field layout of a draft from its variant descriptor and
applies user input to the draft.  No widgets are created here; a UI layer
renders :class:`FormSection` objects and turns input events into
:class:`EditCommand` objects.

Every edit goes through the same path:

    1. The target path is checked (``id`` and ``type`` are never editable).
    2. The raw input is coerced to the field's value-type tag.
    3. The value is written with the field resolver (nested writes create
       intermediate mappings).
    4. The whole draft is re-validated.
    5. Change listeners are called with ``(path, value, result)``.

Usage::

    from npc_engine.form_builder import EditCommand, FormBuilder

    form = FormBuilder()
    outcome = form.apply(draft, EditCommand("interactionRadius", "64"))
    outcome.result.valid
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pydantic import ValidationError

from npc_engine.errors import FieldValueError, ImmutableFieldError
from npc_engine.field_resolver import FieldResolver, parse_path
from npc_engine.models.documents import Position
from npc_engine.models.schema import FieldSchema, ValueTag
from npc_engine.registry import TypeRegistry, section_title
from npc_engine.templates import position_preset
from npc_engine.utils import is_number
from npc_engine.validator import Severity, ValidationResult, Validator

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = ("id", "type")
BASIC_SECTION_FIELDS = ("name", "position", "sprite", "direction")

_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}

ChangeListener = Callable[[str, Any, ValidationResult], None]


@dataclass
class FormField:
    """One rendered input."""
    path: str
    label: str
    tag: ValueTag
    required: bool = False
    options: tuple[str, ...] = ()
    help: str = ""
    value: Any = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None


@dataclass
class FormSection:
    key: str
    title: str
    fields: list[FormField] = field(default_factory=list)


@dataclass(frozen=True)
class EditCommand:
    """A single-field edit: *raw_value* is what the user typed or picked."""
    path: str
    raw_value: Any


@dataclass
class EditOutcome:
    path: str
    value: Any
    result: ValidationResult


class FormBuilder:
    """Form layout and edit application for one editor.

    Parameters
    ----------
    registry : TypeRegistry, optional
    resolver : FieldResolver, optional
    validator : Validator, optional
        Collaborators; each defaults to one built on *registry*.
    """

    def __init__(self, registry: Optional[TypeRegistry] = None,
                 resolver: Optional[FieldResolver] = None,
                 validator: Optional[Validator] = None):
        self.registry = registry or TypeRegistry.default()
        self.resolver = resolver or FieldResolver(self.registry)
        self.validator = validator or Validator(self.registry)
        self._listeners: list[ChangeListener] = []

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register *listener*; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, path: str, value: Any, result: ValidationResult) -> None:
        for listener in list(self._listeners):
            try:
                listener(path, value, result)
            except Exception:
                logger.exception("Change listener failed for %s", path)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def build(self, draft: dict) -> list[FormSection]:
        """Sections and fields for *draft*'s variant, with current values.

        A draft without a known variant gets only the basic section.
        Position is rendered as two number inputs, ``position.x`` and
        ``position.y``.
        """
        desc = self.registry.describe(draft.get("type"))
        if desc is None:
            keys: tuple[str, ...] = ("basic",)
        else:
            keys = desc.sections

        sections = []
        for key in keys:
            section = FormSection(key=key, title=section_title(key))
            names = self.registry.section_fields(draft.get("type"), key)
            if not names and key == "basic":
                names = BASIC_SECTION_FIELDS
            for name in names:
                schema = self.registry.field_schema(draft.get("type"), name)
                if schema is None:
                    continue
                if name == "position":
                    section.fields.extend(self._position_fields(draft, schema))
                else:
                    section.fields.append(self._form_field(draft, name, schema))
            sections.append(section)
        return sections

    def _form_field(self, draft: dict, path: str, schema: FieldSchema) -> FormField:
        return FormField(
            path=path,
            label=schema.label,
            tag=schema.tag,
            required=schema.required,
            options=schema.options,
            help=schema.help,
            value=self.resolver.resolve(draft, path, schema.default),
            minimum=schema.minimum,
            maximum=schema.maximum,
        )

    def _position_fields(self, draft: dict, schema: FieldSchema) -> list[FormField]:
        return [
            FormField(path=f"position.{axis}", label=f"{schema.label} {axis.upper()}",
                      tag=ValueTag.NUMBER, required=schema.required, help=schema.help,
                      value=self.resolver.get(draft, f"position.{axis}", 0))
            for axis in ("x", "y")
        ]

    # ------------------------------------------------------------------
    # Coercion
    # ------------------------------------------------------------------

    def tag_for(self, draft: dict, path: str) -> Optional[ValueTag]:
        """Value-type tag for *path*.

        Top-level fields use their schema.  Nested paths have no schema of
        their own; ``position.x``/``position.y`` are numbers, and any other
        nested value keeps the type it currently has.
        """
        segments = parse_path(path)
        if len(segments) == 1:
            schema = self.registry.field_schema(draft.get("type"), path)
            return schema.tag if schema else None
        if segments[0] == "position" and len(segments) == 2:
            return ValueTag.NUMBER
        current = self.resolver.get(draft, path)
        if isinstance(current, bool):
            return ValueTag.BOOLEAN
        if isinstance(current, (int, float)):
            return ValueTag.NUMBER
        if isinstance(current, list):
            return ValueTag.SEQUENCE
        if isinstance(current, dict):
            return ValueTag.MAPPING
        return None

    def coerce(self, draft: dict, path: str, raw: Any) -> Any:
        """Convert raw input for *path* to a stored value.

        Raises
        ------
        FieldValueError
            If *raw* cannot be read as the field's value type.
        """
        tag = self.tag_for(draft, path)
        if tag is None:
            return raw
        if tag is ValueTag.NUMBER:
            value = _to_number(path, raw)
            if value is None and path in ("position.x", "position.y"):
                return 0
            return value
        if tag is ValueTag.BOOLEAN:
            return _to_bool(path, raw)
        if tag is ValueTag.SEQUENCE:
            return _to_sequence(path, raw)
        if tag is ValueTag.MAPPING:
            return _to_mapping(path, raw)
        if tag is ValueTag.SELECTION:
            options = self.registry.options_for(draft.get("type"), path)
            if raw in (None, ""):
                return None
            if options and raw not in options:
                raise FieldValueError(path, f"{raw!r} is not one of {', '.join(options)}")
            return raw
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise FieldValueError(path, "expected text")
        return raw

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def apply(self, draft: dict, command: EditCommand) -> EditOutcome:
        """Coerce, write, validate and notify.

        Raises
        ------
        ImmutableFieldError
            If the command targets ``id`` or ``type``.
        FieldValueError
            If the raw value cannot be coerced; the draft is unchanged.
        """
        self._check_editable(command.path)
        value = self.coerce(draft, command.path, command.raw_value)
        return self._write(draft, command.path, value)

    def add_item(self, draft: dict, path: str, item: Any = "") -> EditOutcome:
        """Append *item* to the sequence at *path* (created if missing)."""
        self._check_editable(path)
        items = list(self.resolver.resolve(draft, path) or [])
        items.append(item)
        return self._write(draft, path, items)

    def remove_item(self, draft: dict, path: str, index: int) -> EditOutcome:
        self._check_editable(path)
        items = list(self.resolver.resolve(draft, path) or [])
        if not 0 <= index < len(items):
            raise FieldValueError(path, f"no item at index {index}")
        del items[index]
        return self._write(draft, path, items)

    def set_position(self, draft: dict, x: Any, y: Any) -> EditOutcome:
        try:
            position = Position.model_validate({"x": x, "y": y})
        except ValidationError as exc:
            raise FieldValueError("position", "x and y must be numbers") from exc
        current = draft.get("position") if isinstance(draft.get("position"), dict) else {}
        value = {**current, "x": position.x, "y": position.y}
        return self._write(draft, "position", value)

    def apply_preset(self, draft: dict, preset: str) -> EditOutcome:
        """Move the NPC to a named placement preset (``center``, ``entrance``...)."""
        try:
            coords = position_preset(preset)
        except KeyError as exc:
            raise FieldValueError("position", str(exc)) from exc
        return self.set_position(draft, coords["x"], coords["y"])

    def _check_editable(self, path: str) -> None:
        if parse_path(path)[0] in IMMUTABLE_FIELDS:
            raise ImmutableFieldError(path)

    def _write(self, draft: dict, path: str, value: Any) -> EditOutcome:
        self.resolver.set(draft, path, value)
        result = self.validator.validate(draft)
        logger.debug("Field %s changed (%d errors)", path, len(result.errors))
        self._emit(path, value, result)
        return EditOutcome(path=path, value=value, result=result)

    # ------------------------------------------------------------------
    # Preview and JSON helpers
    # ------------------------------------------------------------------

    def json_preview(self, draft: dict) -> str:
        return json.dumps(self.resolver.with_sequences(draft), indent=2, ensure_ascii=False)

    @staticmethod
    def format_json(text: str, path: str = "") -> str:
        """Pretty-print JSON typed into a mapping field.

        Raises
        ------
        FieldValueError
            If *text* is not valid JSON.
        """
        try:
            return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
        except json.JSONDecodeError as exc:
            raise FieldValueError(path or "json", f"invalid JSON: {exc.msg}") from exc

    @staticmethod
    def field_errors(result: ValidationResult, path: str) -> list[str]:
        """Error messages to show next to the input for *path*."""
        return [f.message for f in result.findings_for(path) if f.severity is Severity.ERROR]


# ------------------------------------------------------------------
# Coercion helpers
# ------------------------------------------------------------------

def _to_number(path: str, raw: Any):
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise FieldValueError(path, "expected a number")
    number = None
    if isinstance(raw, (int, float)):
        number = raw
    elif isinstance(raw, str):
        text = raw.strip()
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                pass
    if number is None:
        raise FieldValueError(path, f"expected a number, got {raw!r}")
    if not is_number(number):
        raise FieldValueError(path, f"expected a finite number, got {raw!r}")
    return number


def _to_bool(path: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    raise FieldValueError(path, f"expected true or false, got {raw!r}")


def _to_sequence(path: str, raw: Any) -> list:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("["):
            value = _parse_json(path, text)
            if not isinstance(value, list):
                raise FieldValueError(path, "expected a list")
            return value
        return [part.strip() for part in text.split(",") if part.strip()]
    raise FieldValueError(path, f"expected a list, got {raw!r}")


def _to_mapping(path: str, raw: Any) -> dict:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    if isinstance(raw, str):
        value = _parse_json(path, raw)
        if not isinstance(value, dict):
            raise FieldValueError(path, "expected a JSON object")
        return value
    raise FieldValueError(path, f"expected a mapping, got {raw!r}")


def _parse_json(path: str, text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise FieldValueError(path, f"invalid JSON: {exc.msg}") from exc
