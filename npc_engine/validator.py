"""
npc_engine/validator.py -- Multi-pass NPC record validator.

Runs four passes in a fixed order and collects every finding:

    Pass 1: Basic fields (id, name, type, position, sprite)
    Pass 2: Common fields (direction, interaction radius, cooldown, flags)
    Pass 3: Variant fields -- required population, value-type tags
            (jsonschema), selection options, per-variant business rules,
            quest overlap, economic values and reference formats
    Pass 4: Suggestions

Pass 3 and 4 only run for a known variant; an unknown ``type`` produces a
single error instead.  Findings are data: ``validate()`` never raises and
keeps no state between calls, so validating an unmodified record twice
returns equal results.

Usage::

    from npc_engine.validator import Validator

    result = Validator().validate(record)
    if not result.valid:
        print(result.format_human())
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

import jsonschema

from npc_engine.registry import (
    BASIC_REQUIRED,
    COMMON_BOOLEAN_FIELDS,
    COMMON_FIELDS,
    DIRECTIONS,
    INTERACTION_RADIUS_RANGE,
    EntityVariant,
    TypeRegistry,
)
from npc_engine.models.schema import ValueTag
from npc_engine.utils import is_number, is_populated
from npc_engine.variant_rules import VARIANT_RULES

logger = logging.getLogger(__name__)

NAME_LENGTH = (2, 50)
MAX_COORDINATE = 2000
MAX_COOLDOWN_SECONDS = 3600
ECONOMIC_FIELDS = frozenset({"cost", "entryFee", "price", "money"})
MAX_ECONOMIC_VALUE = 1_000_000
IMAGE_SUFFIXES = (".png", ".gif", ".jpg", ".jpeg", ".webp")
SPRITE_STEM_RE = re.compile(r"^[A-Za-z0-9_-]+$")
TRANSLATION_ID_RE = re.compile(r"^npc\.[a-z_]+\.[a-z_]+\.[a-z_]+\.\d+$")

# Variants for which quests are suggested when none are configured.
_QUEST_SUGGESTED = (EntityVariant.DIALOGUE, EntityVariant.MERCHANT, EntityVariant.SERVICE)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    SUGGESTION = "suggestion"


@dataclass(frozen=True)
class ValidationFinding:
    """A single validation finding, attached to a field path."""
    field: str
    message: str
    severity: Severity

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message, "severity": self.severity.value}


@dataclass
class ValidationResult:
    """All findings of one ``validate()`` call."""
    findings: list[ValidationFinding] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationFinding]:
        return [f for f in self.findings if f.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationFinding]:
        return [f for f in self.findings if f.severity is Severity.WARNING]

    @property
    def suggestions(self) -> list[ValidationFinding]:
        return [f for f in self.findings if f.severity is Severity.SUGGESTION]

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def total(self) -> int:
        return len(self.findings)

    @property
    def error_fields(self) -> set[str]:
        """Fields that have errors (for highlighting)."""
        return {f.field for f in self.errors if f.field}

    def findings_for(self, field_path: str) -> list[ValidationFinding]:
        """Findings on *field_path* or anything nested below it."""
        prefix = field_path + "."
        return [f for f in self.findings
                if f.field == field_path or f.field.startswith(prefix)]

    def format_human(self) -> str:
        """Format for display to the user."""
        if self.valid and not self.warnings:
            return "Validation passed."
        parts = []
        for label, items in (("error", self.errors), ("warning", self.warnings)):
            if not items:
                continue
            parts.append(f"{len(items)} {label}(s):")
            for item in items:
                prefix = f"  [{item.field}] " if item.field else "  "
                parts.append(f"{prefix}{item.message}")
        return "\n".join(parts)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": [f.to_dict() for f in self.errors],
            "warnings": [f.to_dict() for f in self.warnings],
            "suggestions": [f.to_dict() for f in self.suggestions],
            "total": self.total,
        }


class _Collector:
    """Accumulates findings for one validation run."""

    def __init__(self):
        self.findings: list[ValidationFinding] = []

    def error(self, field_path: str, message: str) -> None:
        self.findings.append(ValidationFinding(field_path, message, Severity.ERROR))

    def warning(self, field_path: str, message: str) -> None:
        self.findings.append(ValidationFinding(field_path, message, Severity.WARNING))

    def suggest(self, field_path: str, message: str) -> None:
        self.findings.append(ValidationFinding(field_path, message, Severity.SUGGESTION))

    def result(self) -> ValidationResult:
        return ValidationResult(list(self.findings))


# ------------------------------------------------------------------
# Batch results
# ------------------------------------------------------------------

@dataclass
class BatchEntry:
    index: int
    record_id: Any
    result: ValidationResult


@dataclass
class BatchSummary:
    """Outcome of validating a whole scope."""
    entries: list[BatchEntry] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def valid(self) -> int:
        return sum(1 for e in self.entries if e.result.valid)

    @property
    def invalid(self) -> int:
        return self.total - self.valid

    @property
    def total_errors(self) -> int:
        return sum(len(e.result.errors) for e in self.entries)

    @property
    def total_warnings(self) -> int:
        return sum(len(e.result.warnings) for e in self.entries)

    def invalid_entries(self) -> list[BatchEntry]:
        return [e for e in self.entries if not e.result.valid]


# ------------------------------------------------------------------
# Validator
# ------------------------------------------------------------------

class Validator:
    """Stateless multi-pass validator.

    Parameters
    ----------
    registry : TypeRegistry, optional
        Variant registry (default: the compiled-in catalog).
    """

    def __init__(self, registry: Optional[TypeRegistry] = None):
        self.registry = registry or TypeRegistry.default()
        self._schema_validators: dict[EntityVariant, jsonschema.Draft202012Validator] = {}

    def validate(self, record: Any) -> ValidationResult:
        report = _Collector()
        if not isinstance(record, dict):
            report.error("", "NPC record must be a mapping")
            return report.result()

        self._basic_pass(record, report)
        self._common_pass(record, report)

        variant = EntityVariant.parse(record.get("type"))
        if variant is None:
            if isinstance(record.get("type"), str) and is_populated(record.get("type")):
                report.error("type", f"Unknown NPC type: {record.get('type')!r}")
            return report.result()

        self._variant_pass(record, variant, report)
        self._suggestion_pass(record, variant, report)
        return report.result()

    def quick_validate(self, record: Any) -> bool:
        """Basic fields plus the variant's required fields; errors only."""
        if not isinstance(record, dict):
            return False
        report = _Collector()
        self._basic_pass(record, report)
        variant = EntityVariant.parse(record.get("type"))
        if variant is None:
            return False
        self._required_fields(record, variant, report)
        return report.result().valid

    def validate_batch(self, records: Iterable[Any]) -> BatchSummary:
        summary = BatchSummary()
        for index, record in enumerate(records):
            record_id = record.get("id") if isinstance(record, dict) else None
            summary.entries.append(BatchEntry(index, record_id, self.validate(record)))
        logger.debug(
            "Validated %d records: %d invalid, %d errors, %d warnings",
            summary.total, summary.invalid, summary.total_errors, summary.total_warnings,
        )
        return summary

    # ------------------------------------------------------------------
    # Pass 1: basic fields
    # ------------------------------------------------------------------

    def _basic_pass(self, record: dict, report: _Collector) -> None:
        for name in BASIC_REQUIRED:
            if not is_populated(record.get(name)):
                report.error(name, f"Missing required field: {name}")

        record_id = record.get("id")
        if record_id is not None and not (
            (isinstance(record_id, int) and not isinstance(record_id, bool))
            or (isinstance(record_id, str) and record_id.strip())
        ):
            report.error("id", "id must be an integer or a non-empty string")

        name = record.get("name")
        if is_populated(name):
            if not isinstance(name, str):
                report.error("name", "Name must be text")
            else:
                if len(name.strip()) < NAME_LENGTH[0]:
                    report.error("name", f"Name must be at least {NAME_LENGTH[0]} characters")
                if len(name) > NAME_LENGTH[1]:
                    report.warning("name", f"Name is very long (>{NAME_LENGTH[1]} characters)")

        npc_type = record.get("type")
        if npc_type is not None and not isinstance(npc_type, str):
            report.error("type", "type must be a variant id string")

        position = record.get("position")
        if position is not None:
            if not isinstance(position, dict) or not (
                is_number(position.get("x")) and is_number(position.get("y"))
            ):
                report.error("position", "Invalid position (x and y must be numbers)")
            else:
                x, y = position["x"], position["y"]
                if x < 0 or y < 0:
                    report.warning("position", "Negative position")
                if x > MAX_COORDINATE or y > MAX_COORDINATE:
                    report.warning("position", f"Position is very far out (>{MAX_COORDINATE}px)")

        sprite = record.get("sprite")
        if sprite is not None and sprite != "":
            if not isinstance(sprite, str):
                report.error("sprite", "Sprite must be a file name")
            else:
                if any(ch.isspace() for ch in sprite):
                    report.error("sprite", "Sprite file name must not contain whitespace")
                if not sprite.lower().endswith(IMAGE_SUFFIXES):
                    report.warning("sprite", "Sprite should be an image file (.png, .gif, ...)")

    # ------------------------------------------------------------------
    # Pass 2: common fields
    # ------------------------------------------------------------------

    def _common_pass(self, record: dict, report: _Collector) -> None:
        direction = record.get("direction")
        if direction is not None and direction not in DIRECTIONS:
            report.error("direction", f"Invalid direction: {direction!r}")

        radius = record.get("interactionRadius")
        low, high = INTERACTION_RADIUS_RANGE
        if radius is not None and (not is_number(radius) or not low <= radius <= high):
            report.error(
                "interactionRadius",
                f"Interaction radius must be between {low} and {high} pixels",
            )

        cooldown = record.get("cooldownSeconds")
        if cooldown is not None:
            if not is_number(cooldown) or cooldown < 0:
                report.error("cooldownSeconds", "Cooldown must be a non-negative number")
            elif cooldown > MAX_COOLDOWN_SECONDS:
                report.warning("cooldownSeconds", "Very long cooldown (over an hour)")

        for name in COMMON_BOOLEAN_FIELDS:
            value = record.get(name)
            if value is not None and not isinstance(value, bool):
                report.error(name, f"'{name}' must be true or false")

    # ------------------------------------------------------------------
    # Pass 3: variant fields
    # ------------------------------------------------------------------

    def _variant_pass(self, record: dict, variant: EntityVariant, report: _Collector) -> None:
        self._required_fields(record, variant, report)
        self._value_tags(record, variant, report)
        self._selection_options(record, variant, report)
        VARIANT_RULES[variant](record, report)
        self._quest_overlap(record, report)
        self._economics(record, "", report)
        self._references(record, report)

    def _required_fields(self, record: dict, variant: EntityVariant,
                         report: _Collector) -> None:
        desc = self.registry.describe(variant)
        for name in desc.required:
            if name in BASIC_REQUIRED:
                continue
            if not is_populated(record.get(name)):
                report.error(name, f"Required field for {variant.value}: {name}")

    def _schema_validator(self, variant: EntityVariant) -> jsonschema.Draft202012Validator:
        if variant not in self._schema_validators:
            schema = self.registry.json_schema(variant)
            self._schema_validators[variant] = jsonschema.Draft202012Validator(schema)
        return self._schema_validators[variant]

    def _value_tags(self, record: dict, variant: EntityVariant, report: _Collector) -> None:
        # Common fields have their own checks in passes 1 and 2.
        subject = {k: v for k, v in record.items() if k not in COMMON_FIELDS}
        desc = self.registry.describe(variant)
        errors = sorted(
            self._schema_validator(variant).iter_errors(subject),
            key=lambda e: [str(p) for p in e.absolute_path],
        )
        for err in errors:
            name = str(err.absolute_path[0]) if err.absolute_path else ""
            schema = desc.field(name)
            expected = schema.tag.value if schema else "a different type"
            report.error(name, f"Wrong value type for '{name}': expected {expected}")

    def _selection_options(self, record: dict, variant: EntityVariant,
                           report: _Collector) -> None:
        desc = self.registry.describe(variant)
        for name, schema in desc.fields.items():
            if schema.tag is not ValueTag.SELECTION or name in COMMON_FIELDS:
                continue
            value = record.get(name)
            if isinstance(value, str) and value and schema.options and value not in schema.options:
                report.warning(name, f"Unrecognised {name}: {value!r}")

    def _quest_overlap(self, record: dict, report: _Collector) -> None:
        to_give = record.get("questsToGive")
        to_end = record.get("questsToEnd")
        if not isinstance(to_give, list) or not isinstance(to_end, list):
            return
        overlap = [q for q in to_give if q in to_end]
        if overlap:
            report.warning(
                "questsToGive",
                "Quests listed both to give and to end: " + ", ".join(map(str, overlap)),
            )

    def _economics(self, value: Any, path: str, report: _Collector) -> None:
        if isinstance(value, dict):
            items: Iterable = value.items()
        elif isinstance(value, list):
            items = enumerate(value)
        else:
            return
        for key, child in items:
            child_path = f"{path}.{key}" if path else str(key)
            if key in ECONOMIC_FIELDS and is_number(child):
                if child < 0:
                    report.error(child_path, f"Negative economic value: {child_path}")
                elif child > MAX_ECONOMIC_VALUE:
                    report.warning(child_path,
                                   f"Very high economic value: {child_path} ({child})")
            else:
                self._economics(child, child_path, report)

    def _references(self, record: dict, report: _Collector) -> None:
        sprite = record.get("sprite")
        if (isinstance(sprite, str) and sprite.lower().endswith(IMAGE_SUFFIXES)
                and not any(ch.isspace() for ch in sprite)):
            stem = sprite.rsplit(".", 1)[0]
            if not SPRITE_STEM_RE.match(stem):
                report.warning(
                    "sprite",
                    "Non-standard sprite file name (use letters, digits, '_' and '-' only)",
                )

        for name, value in record.items():
            if name == "dialogueIds" or name.endswith("DialogueIds"):
                self._translation_ids(value, name, report)

    def _translation_ids(self, value: Any, path: str, report: _Collector) -> None:
        if isinstance(value, list):
            for index, item in enumerate(value):
                if isinstance(item, str) and item.startswith("npc."):
                    if not TRANSLATION_ID_RE.match(item):
                        report.warning(f"{path}.{index}",
                                       f"Non-standard translation id: {item}")
        elif isinstance(value, dict):
            for key, child in value.items():
                self._translation_ids(child, f"{path}.{key}", report)

    # ------------------------------------------------------------------
    # Pass 4: suggestions
    # ------------------------------------------------------------------

    def _suggestion_pass(self, record: dict, variant: EntityVariant,
                         report: _Collector) -> None:
        if (variant is EntityVariant.DIALOGUE and is_populated(record.get("dialogueIds"))
                and not record.get("conditionalDialogueIds")):
            report.suggest("conditionalDialogueIds",
                           "Add conditional dialogues for a more immersive NPC")

        if variant in _QUEST_SUGGESTED and not is_populated(record.get("questsToGive")):
            report.suggest("questsToGive", "Consider adding quests for more interactions")

        if variant is not EntityVariant.HEALER and not record.get("spawnConditions"):
            report.suggest("spawnConditions", "Add spawn conditions to make the NPC more dynamic")

        if variant is EntityVariant.MERCHANT:
            hours = record.get("businessHours")
            if not (isinstance(hours, dict) and hours.get("enabled")):
                report.suggest("businessHours", "Add business hours for more realism")

        if record.get("direction") is None:
            report.suggest("direction", "Set the direction the NPC faces (defaults to south)")


def validate(record: Any) -> ValidationResult:
    """Validate *record* against the compiled-in catalog."""
    return Validator().validate(record)
