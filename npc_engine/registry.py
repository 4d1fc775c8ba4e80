"""
npc_engine/registry.py -- Variant catalog and type registry.

The twelve NPC variants form a closed enum.  Every per-variant table in
the engine (catalog, templates, business rules) is checked against the
enum at import time with :func:`ensure_exhaustive`, so adding a variant
without filling in every table fails immediately instead of surfacing as
a missing-key lookup in the editor.

The registry is a pure lookup: ``describe()`` returns ``None`` for an
unrecognised variant and callers report that as a validation finding.

Usage::

    from npc_engine.registry import EntityVariant, TypeRegistry

    registry = TypeRegistry.default()
    desc = registry.describe("merchant")
    desc.required          # ('name', 'type', 'position', 'sprite', 'shopType')
    registry.json_schema(EntityVariant.MERCHANT)
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Iterator, Mapping, Optional

from pydantic import ValidationError

from npc_engine.models.schema import (
    CatalogEntry,
    EntityTypeDescriptor,
    FieldSchema,
    ValueTag,
    parse_value_tag,
)

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Variants
# ------------------------------------------------------------------

class EntityVariant(str, Enum):
    """The twelve NPC variants."""

    DIALOGUE = "dialogue"
    MERCHANT = "merchant"
    TRAINER = "trainer"
    HEALER = "healer"
    GYM_LEADER = "gym_leader"
    TRANSPORT = "transport"
    SERVICE = "service"
    MINIGAME = "minigame"
    RESEARCHER = "researcher"
    GUILD = "guild"
    EVENT = "event"
    QUEST_MASTER = "quest_master"

    @classmethod
    def parse(cls, value: Any) -> Optional["EntityVariant"]:
        """Return the variant for *value*, or ``None`` if it is not one."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


def ensure_exhaustive(table: Mapping, what: str) -> None:
    """Raise ``RuntimeError`` unless *table* has exactly one key per variant."""
    keys = set(table)
    expected = set(EntityVariant)
    missing = expected - keys
    extra = keys - expected
    if missing or extra:
        raise RuntimeError(
            f"{what} does not cover EntityVariant exactly "
            f"(missing={sorted(v.value for v in missing)}, extra={sorted(map(str, extra))})"
        )


# ------------------------------------------------------------------
# Common and shared fields
# ------------------------------------------------------------------

DIRECTIONS = ("north", "south", "east", "west")

# Universally required; checked by the basic validation pass.
BASIC_REQUIRED = ("id", "name", "type", "position", "sprite")

INTERACTION_RADIUS_RANGE = (16, 128)

COMMON_FIELDS: dict[str, dict[str, Any]] = {
    "id": {"tag": "number", "label": "ID", "help": "Generated once when the NPC is created"},
    "name": {"tag": "string", "label": "Name"},
    "type": {"tag": "selection", "label": "Type", "options": tuple(v.value for v in EntityVariant)},
    "position": {"tag": "object", "label": "Position",
                 "help": "Map coordinates of the NPC, in pixels"},
    "sprite": {"tag": "string", "label": "Sprite",
               "help": "Sprite image file name (e.g. guide.png)"},
    "direction": {"tag": "select", "label": "Direction", "options": DIRECTIONS,
                  "default": "south", "help": "Direction the NPC initially faces"},
    "interactionRadius": {"tag": "number", "label": "Interaction Radius", "default": 32,
                          "minimum": INTERACTION_RADIUS_RANGE[0],
                          "maximum": INTERACTION_RADIUS_RANGE[1],
                          "help": "Interaction radius in pixels"},
    "canWalkAway": {"tag": "boolean", "label": "Can Walk Away", "default": True,
                    "help": "Whether the player may walk away mid-interaction"},
    "autoFacePlayer": {"tag": "boolean", "label": "Auto Face Player", "default": True,
                       "help": "Whether the NPC turns to face the player"},
    "repeatable": {"tag": "boolean", "label": "Repeatable", "default": True,
                   "help": "Whether the interaction can be repeated"},
    "cooldownSeconds": {"tag": "number", "label": "Cooldown (seconds)", "default": 0,
                        "minimum": 0, "help": "Delay between interactions, in seconds"},
}

COMMON_BOOLEAN_FIELDS = ("canWalkAway", "autoFacePlayer", "repeatable")

# Fields any variant may carry, with their tags.
SHARED_FIELD_TYPES = {
    "dialogueIds": "array",
    "dialogueId": "string",
    "conditionalDialogueIds": "object",
    "questsToGive": "array",
    "questsToEnd": "array",
    "questRequirements": "object",
    "questDialogueIds": "object",
    "spawnConditions": "object",
}

FIELD_LABELS = {
    "dialogueIds": "Dialogue IDs",
    "dialogueId": "Main Dialogue ID",
    "conditionalDialogueIds": "Conditional Dialogues",
    "questsToGive": "Quests to Give",
    "questsToEnd": "Quests to End",
    "questRequirements": "Quest Requirements",
    "questDialogueIds": "Quest Dialogues",
    "spawnConditions": "Spawn Conditions",
    "zoneInfo": "Zone Information",
    "shopId": "Shop ID",
    "shopType": "Shop Type",
    "shopConfig": "Shop Configuration",
    "shopDialogueIds": "Shop Dialogues",
    "businessHours": "Business Hours",
    "accessRestrictions": "Access Restrictions",
    "trainerId": "Trainer ID",
    "trainerClass": "Trainer Class",
    "trainerRank": "Trainer Rank",
    "trainerTitle": "Trainer Title",
    "battleConfig": "Battle Configuration",
    "battleDialogueIds": "Battle Dialogues",
    "battleConditions": "Battle Conditions",
    "rebattle": "Rematch",
    "visionConfig": "Vision Configuration",
    "progressionFlags": "Progression Flags",
    "healerConfig": "Healing Configuration",
    "healerDialogueIds": "Healer Dialogues",
    "gymConfig": "Gym Configuration",
    "gymDialogueIds": "Gym Dialogues",
    "challengeConditions": "Challenge Conditions",
    "gymRewards": "Gym Rewards",
    "rematchConfig": "Rematch Configuration",
    "transportConfig": "Transport Configuration",
    "transportDialogueIds": "Transport Dialogues",
    "serviceConfig": "Service Configuration",
    "availableServices": "Available Services",
    "serviceDialogueIds": "Service Dialogues",
    "minigameConfig": "Minigame Configuration",
    "contestDialogueIds": "Contest Dialogues",
    "researchConfig": "Research Configuration",
    "researchServices": "Research Services",
    "researchDialogueIds": "Research Dialogues",
    "guildConfig": "Guild Configuration",
    "guildDialogueIds": "Guild Dialogues",
    "eventConfig": "Event Configuration",
    "eventDialogueIds": "Event Dialogues",
    "questMasterConfig": "Quest Master Configuration",
    "questMasterDialogueIds": "Quest Master Dialogues",
    "questRankSystem": "Quest Rank System",
}

FIELD_HELP = {
    "dialogueIds": "Translation ids of the dialogue lines, resolved client-side",
    "shopId": "Unique identifier of the shop",
    "trainerId": "Unique identifier of the trainer",
    "questsToGive": "Quests this NPC can hand out",
    "questsToEnd": "Quests this NPC can complete",
    "spawnConditions": "Conditions under which the NPC appears",
    "destinations": "Each destination needs a mapId and a mapName",
}

SECTION_TITLES = {
    "basic": "Basic Information",
    "dialogues": "Dialogues",
    "shop": "Shop",
    "business": "Business Hours",
    "access": "Access Restrictions",
    "trainer": "Trainer",
    "battle": "Battle",
    "rewards": "Rewards",
    "vision": "Vision and Detection",
    "healing": "Healing",
    "services": "Services",
    "restrictions": "Restrictions",
    "gym": "Gym",
    "challenge": "Challenge Conditions",
    "rematch": "Rematch",
    "transport": "Transport",
    "destinations": "Destinations",
    "schedule": "Schedule",
    "weather": "Weather Restrictions",
    "service": "Service",
    "minigame": "Minigame",
    "activities": "Activities",
    "research": "Research",
    "pokemon": "Accepted Pokemon",
    "guild": "Guild",
    "recruitment": "Recruitment",
    "ranks": "Ranks",
    "event": "Event",
    "period": "Event Period",
    "progress": "Progress",
    "questmaster": "Quest Master",
    "quests": "Quests",
    "conditions": "Conditions",
    "interaction": "Interaction",
}

_BASIC_SECTION = ["name", "position", "sprite", "direction"]
_INTERACTION_SECTION = ["interactionRadius", "canWalkAway", "autoFacePlayer",
                        "repeatable", "cooldownSeconds"]
_QUEST_SECTION = ["questsToGive", "questsToEnd", "questRequirements", "questDialogueIds"]


# ------------------------------------------------------------------
# Compiled-in catalog
# ------------------------------------------------------------------

BUILTIN_CATALOG: dict[EntityVariant, dict[str, Any]] = {
    EntityVariant.DIALOGUE: {
        "name": "Guide / Information",
        "description": "Gives information and directions to players",
        "sections": ["basic", "dialogues", "quests", "conditions", "interaction"],
        "required": ["name", "type", "position", "sprite", "dialogueIds"],
        "optional": ["direction", "conditionalDialogueIds", "zoneInfo", "questsToGive",
                     "questsToEnd", "questRequirements", "questDialogueIds", "spawnConditions"],
        "fieldGroups": {
            "dialogues": ["dialogueIds", "dialogueId", "conditionalDialogueIds", "zoneInfo"],
            "quests": _QUEST_SECTION,
            "conditions": ["spawnConditions"],
        },
        "fieldTypes": {"zoneInfo": "object"},
        "configRequired": ["dialogueIds"],
    },
    EntityVariant.MERCHANT: {
        "name": "Merchant / Shop",
        "description": "Sells items and runs a shop",
        "sections": ["basic", "shop", "business", "access", "dialogues", "quests", "interaction"],
        # shopId is gated by the configuration step; the validator only warns.
        "required": ["name", "type", "position", "sprite", "shopType"],
        "optional": ["direction", "shopId", "shopConfig", "shopDialogueIds", "businessHours",
                     "accessRestrictions", "questsToGive", "questsToEnd"],
        "fieldGroups": {
            "shop": ["shopId", "shopType", "shopConfig"],
            "business": ["businessHours"],
            "access": ["accessRestrictions"],
            "dialogues": ["dialogueIds", "shopDialogueIds"],
            "quests": _QUEST_SECTION,
        },
        "fieldTypes": {
            "shopId": "string",
            "shopType": "select",
            "shopConfig": "object",
            "shopDialogueIds": "object",
            "businessHours": "object",
            "accessRestrictions": "object",
        },
        "selectOptions": {
            "shopType": ["pokemart", "department_store", "specialty", "black_market",
                         "auction_house"],
        },
        "configRequired": ["shopId", "shopType"],
    },
    EntityVariant.TRAINER: {
        "name": "Trainer / Battle",
        "description": "Challenges the player to a battle",
        "sections": ["basic", "trainer", "battle", "rewards", "vision", "dialogues", "quests",
                     "interaction"],
        "required": ["name", "type", "position", "sprite", "trainerId", "trainerClass",
                     "battleConfig"],
        "optional": ["direction", "trainerRank", "trainerTitle", "rewards", "rebattle",
                     "visionConfig", "battleConditions", "progressionFlags"],
        "fieldGroups": {
            "trainer": ["trainerId", "trainerClass", "trainerRank", "trainerTitle"],
            "battle": ["battleConfig", "battleConditions", "progressionFlags"],
            "rewards": ["rewards", "rebattle"],
            "vision": ["visionConfig"],
            "dialogues": ["battleDialogueIds"],
            "quests": ["questsToGive", "questsToEnd", "questRequirements"],
        },
        "fieldTypes": {
            "trainerId": "string",
            "trainerClass": "select",
            "trainerRank": "number",
            "trainerTitle": "string",
            "battleConfig": "object",
            "rewards": "object",
            "rebattle": "object",
            "visionConfig": "object",
            "battleConditions": "object",
            "progressionFlags": "object",
            "battleDialogueIds": "object",
        },
        "selectOptions": {
            "trainerClass": ["youngster", "lass", "bug_catcher", "fisherman", "hiker", "biker",
                             "sailor", "rocket_grunt"],
        },
        "configRequired": ["trainerId", "trainerClass", "battleConfig.teamId"],
    },
    EntityVariant.HEALER: {
        "name": "Healer / Pokemon Center",
        "description": "Heals the player's team",
        "sections": ["basic", "healing", "services", "restrictions", "dialogues", "quests",
                     "interaction"],
        "required": ["name", "type", "position", "sprite", "healerConfig"],
        "optional": ["direction", "healerDialogueIds", "additionalServices",
                     "serviceRestrictions", "questsToGive"],
        "fieldGroups": {
            "healing": ["healerConfig"],
            "services": ["additionalServices"],
            "restrictions": ["serviceRestrictions"],
            "dialogues": ["healerDialogueIds"],
            "quests": ["questsToGive", "questsToEnd"],
        },
        "fieldTypes": {
            "healerConfig": "object",
            "healerDialogueIds": "object",
            "additionalServices": "object",
            "serviceRestrictions": "object",
        },
        "configRequired": ["healerConfig"],
    },
    EntityVariant.GYM_LEADER: {
        "name": "Gym Leader",
        "description": "Runs a gym and awards badges",
        "sections": ["basic", "gym", "battle", "challenge", "rewards", "rematch", "dialogues",
                     "quests", "interaction"],
        # challengeConditions is recommended, not required.
        "required": ["name", "type", "position", "sprite", "gymConfig", "battleConfig"],
        "optional": ["direction", "challengeConditions", "gymDialogueIds", "gymRewards",
                     "rematchConfig", "questsToGive", "questsToEnd"],
        "fieldGroups": {
            "gym": ["gymConfig"],
            "battle": ["battleConfig"],
            "challenge": ["challengeConditions"],
            "rewards": ["gymRewards"],
            "rematch": ["rematchConfig"],
            "dialogues": ["gymDialogueIds"],
            "quests": ["questsToGive", "questsToEnd"],
        },
        "fieldTypes": {
            "gymConfig": "object",
            "battleConfig": "object",
            "challengeConditions": "object",
            "gymDialogueIds": "object",
            "gymRewards": "object",
            "rematchConfig": "object",
        },
        "configRequired": ["gymConfig.gymId", "gymConfig.badgeId", "gymConfig.gymType",
                           "battleConfig"],
    },
    EntityVariant.TRANSPORT: {
        "name": "Transport / Travel",
        "description": "Carries the player to other zones",
        "sections": ["basic", "transport", "destinations", "schedule", "weather", "dialogues",
                     "quests", "interaction"],
        "required": ["name", "type", "position", "sprite", "transportConfig", "destinations"],
        "optional": ["direction", "schedules", "weatherRestrictions", "transportDialogueIds",
                     "questsToGive"],
        "fieldGroups": {
            "transport": ["transportConfig"],
            "destinations": ["destinations"],
            "schedule": ["schedules"],
            "weather": ["weatherRestrictions"],
            "dialogues": ["transportDialogueIds"],
            "quests": ["questsToGive", "questsToEnd"],
        },
        "fieldTypes": {
            "transportConfig": "object",
            "destinations": "array",
            "schedules": "array",
            "weatherRestrictions": "object",
            "transportDialogueIds": "object",
        },
        "configRequired": ["transportConfig", "destinations"],
    },
    EntityVariant.SERVICE: {
        "name": "Specialised Service",
        "description": "Offers special services (name rater, move deleter...)",
        "sections": ["basic", "service", "restrictions", "dialogues", "quests", "interaction"],
        "required": ["name", "type", "position", "sprite", "serviceConfig", "availableServices"],
        "optional": ["direction", "serviceDialogueIds", "serviceRestrictions", "questsToGive",
                     "questsToEnd"],
        "fieldGroups": {
            "service": ["serviceConfig", "availableServices"],
            "restrictions": ["serviceRestrictions"],
            "dialogues": ["serviceDialogueIds"],
            "quests": ["questsToGive", "questsToEnd"],
        },
        "fieldTypes": {
            "serviceConfig": "object",
            "availableServices": "array",
            "serviceDialogueIds": "object",
            "serviceRestrictions": "object",
        },
        "configRequired": ["serviceConfig", "availableServices"],
    },
    EntityVariant.MINIGAME: {
        "name": "Minigame / Contest",
        "description": "Hosts contests, minigames and competitions",
        "sections": ["basic", "minigame", "activities", "rewards", "schedule", "dialogues",
                     "quests", "interaction"],
        "required": ["name", "type", "position", "sprite", "minigameConfig"],
        "optional": ["direction", "contestCategories", "contestRewards", "contestSchedule",
                     "contestDialogueIds", "questsToGive"],
        "fieldGroups": {
            "minigame": ["minigameConfig"],
            "activities": ["contestCategories"],
            "rewards": ["contestRewards"],
            "schedule": ["contestSchedule"],
            "dialogues": ["contestDialogueIds"],
            "quests": ["questsToGive", "questsToEnd"],
        },
        "fieldTypes": {
            "minigameConfig": "object",
            "contestCategories": "array",
            "contestRewards": "object",
            "contestSchedule": "object",
            "contestDialogueIds": "object",
        },
        "configRequired": ["minigameConfig"],
    },
    EntityVariant.RESEARCHER: {
        "name": "Researcher / Professor",
        "description": "Pokedex evaluation, breeding and research services",
        "sections": ["basic", "research", "services", "pokemon", "rewards", "dialogues",
                     "quests", "interaction"],
        "required": ["name", "type", "position", "sprite", "researchConfig", "researchServices"],
        "optional": ["direction", "acceptedPokemon", "researchDialogueIds", "researchRewards",
                     "questsToGive"],
        "fieldGroups": {
            "research": ["researchConfig"],
            "services": ["researchServices"],
            "pokemon": ["acceptedPokemon"],
            "rewards": ["researchRewards"],
            "dialogues": ["researchDialogueIds"],
            "quests": ["questsToGive", "questsToEnd"],
        },
        "fieldTypes": {
            "researchConfig": "object",
            "researchServices": "array",
            "acceptedPokemon": "object",
            "researchDialogueIds": "object",
            "researchRewards": "object",
        },
        "configRequired": ["researchConfig", "researchServices"],
    },
    EntityVariant.GUILD: {
        "name": "Guild / Faction",
        "description": "Represents a guild, faction or organisation",
        "sections": ["basic", "guild", "recruitment", "services", "ranks", "dialogues",
                     "quests", "interaction"],
        "required": ["name", "type", "position", "sprite", "guildConfig",
                     "recruitmentRequirements"],
        "optional": ["direction", "guildServices", "guildDialogueIds", "rankSystem",
                     "questsToGive"],
        "fieldGroups": {
            "guild": ["guildConfig"],
            "recruitment": ["recruitmentRequirements"],
            "services": ["guildServices"],
            "ranks": ["rankSystem"],
            "dialogues": ["guildDialogueIds"],
            "quests": ["questsToGive", "questsToEnd"],
        },
        "fieldTypes": {
            "guildConfig": "object",
            "recruitmentRequirements": "object",
            "guildServices": "array",
            "guildDialogueIds": "object",
            "rankSystem": "object",
        },
        "configRequired": ["guildConfig.guildId", "guildConfig.guildName",
                           "recruitmentRequirements"],
    },
    EntityVariant.EVENT: {
        "name": "Special Event",
        "description": "Temporary, seasonal or special event NPC",
        "sections": ["basic", "event", "period", "activities", "progress", "dialogues",
                     "quests", "conditions", "interaction"],
        "required": ["name", "type", "position", "sprite", "eventConfig", "eventPeriod"],
        "optional": ["direction", "eventActivities", "eventDialogueIds", "globalProgress",
                     "questsToGive", "spawnConditions"],
        "fieldGroups": {
            "event": ["eventConfig"],
            "period": ["eventPeriod"],
            "activities": ["eventActivities"],
            "progress": ["globalProgress"],
            "dialogues": ["eventDialogueIds"],
            "quests": ["questsToGive", "questsToEnd"],
            "conditions": ["spawnConditions"],
        },
        "fieldTypes": {
            "eventConfig": "object",
            "eventPeriod": "object",
            "eventActivities": "array",
            "eventDialogueIds": "object",
            "globalProgress": "object",
        },
        "configRequired": ["eventConfig", "eventPeriod"],
    },
    EntityVariant.QUEST_MASTER: {
        "name": "Quest Master",
        "description": "Hands out epic quests and tracks progression",
        "sections": ["basic", "questmaster", "quests", "ranks", "rewards", "dialogues",
                     "conditions", "interaction"],
        "required": ["name", "type", "position", "sprite", "questMasterConfig"],
        "optional": ["direction", "questMasterDialogueIds", "questRankSystem", "epicRewards",
                     "specialConditions", "questsToGive"],
        "fieldGroups": {
            "questmaster": ["questMasterConfig"],
            "quests": ["questsToGive", "questsToEnd", "questRequirements"],
            "ranks": ["questRankSystem"],
            "rewards": ["epicRewards"],
            "dialogues": ["questMasterDialogueIds"],
            "conditions": ["specialConditions"],
        },
        "fieldTypes": {
            "questMasterConfig": "object",
            "questMasterDialogueIds": "object",
            "questRankSystem": "object",
            "epicRewards": "object",
            "specialConditions": "object",
        },
        "configRequired": ["questMasterConfig"],
    },
}

ensure_exhaustive(BUILTIN_CATALOG, "BUILTIN_CATALOG")


# ------------------------------------------------------------------
# Descriptor construction
# ------------------------------------------------------------------

_CAMEL_SPLIT = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def humanize_field_name(name: str) -> str:
    """``shopDialogueIds`` -> ``Shop Dialogue Ids``."""
    words = _CAMEL_SPLIT.sub(" ", name).replace("_", " ").split()
    return " ".join(w[:1].upper() + w[1:] for w in words)


def _common_schema(name: str, required: bool) -> FieldSchema:
    meta = COMMON_FIELDS[name]
    return FieldSchema(
        name=name,
        tag=parse_value_tag(meta["tag"]),
        label=meta.get("label", humanize_field_name(name)),
        required=required,
        default=meta.get("default"),
        options=tuple(meta.get("options", ())),
        help=meta.get("help", ""),
        minimum=meta.get("minimum"),
        maximum=meta.get("maximum"),
    )


def build_descriptor(variant: EntityVariant, entry: CatalogEntry) -> EntityTypeDescriptor:
    """Resolve a catalog entry into a descriptor.

    Every field mentioned anywhere in the entry (required, optional, field
    groups, config checklist) gets a :class:`FieldSchema`.  Fields with no
    declared type fall back to the shared table and then to ``string``.
    A field's ``required`` flag is set when the validator requires it or
    when the configuration step checks it.
    """
    config_roots = {path.split(".", 1)[0] for path in entry.config_required}
    required = tuple(dict.fromkeys(entry.required))

    # Section layout: basic first, interaction last, variant groups between.
    section_fields: dict[str, tuple[str, ...]] = {}
    sections = list(dict.fromkeys(entry.sections or ["basic"]))
    if "basic" not in sections:
        sections.insert(0, "basic")
    if "interaction" not in sections:
        sections.append("interaction")
    for section in sections:
        if section == "basic":
            names = _BASIC_SECTION
        elif section == "interaction":
            names = _INTERACTION_SECTION
        else:
            names = entry.field_groups.get(section, [])
        section_fields[section] = tuple(dict.fromkeys(names))

    ordered: list[str] = list(COMMON_FIELDS)
    for names in section_fields.values():
        ordered.extend(names)
    ordered.extend(entry.required)
    ordered.extend(entry.optional)
    ordered.extend(p.split(".", 1)[0] for p in entry.config_required)

    fields: dict[str, FieldSchema] = {}
    for name in dict.fromkeys(ordered):
        is_required = name in required or name in config_roots
        if name in COMMON_FIELDS:
            fields[name] = _common_schema(name, is_required)
            continue
        raw_tag = entry.field_types.get(name) or SHARED_FIELD_TYPES.get(name, "string")
        tag = parse_value_tag(raw_tag)
        options = tuple(entry.select_options.get(name, ()))
        if options and tag is ValueTag.STRING:
            tag = ValueTag.SELECTION
        fields[name] = FieldSchema(
            name=name,
            tag=tag,
            label=FIELD_LABELS.get(name, humanize_field_name(name)),
            required=is_required,
            options=options,
            help=FIELD_HELP.get(name, ""),
        )

    return EntityTypeDescriptor(
        variant=variant.value,
        display_name=entry.name,
        description=entry.description,
        sections=tuple(sections),
        section_fields=section_fields,
        fields=fields,
        required=required,
        config_required=tuple(entry.config_required),
    )


# ------------------------------------------------------------------
# TypeRegistry
# ------------------------------------------------------------------

class TypeRegistry:
    """Read-only lookup of variant descriptors.

    Parameters
    ----------
    descriptors : Mapping[EntityVariant, EntityTypeDescriptor]
        One descriptor per variant.  Must cover the enum exactly.
    """

    _default: Optional["TypeRegistry"] = None

    def __init__(self, descriptors: Mapping[EntityVariant, EntityTypeDescriptor]):
        ensure_exhaustive(descriptors, "TypeRegistry descriptors")
        self._descriptors = dict(descriptors)
        self._schema_cache: dict[EntityVariant, dict] = {}

    @classmethod
    def default(cls) -> "TypeRegistry":
        """Registry built from the compiled-in catalog (cached)."""
        if cls._default is None:
            cls._default = cls({
                variant: build_descriptor(variant, CatalogEntry.model_validate(raw))
                for variant, raw in BUILTIN_CATALOG.items()
            })
        return cls._default

    @classmethod
    def from_catalog(cls, data: Mapping[str, Any]) -> "TypeRegistry":
        """Build a registry from a catalog document.

        Entries are keyed by variant id.  Unknown variant ids are ignored,
        and variants that are missing or fail validation keep their
        compiled-in description.
        """
        builtin = cls.default()._descriptors
        descriptors = dict(builtin)
        for key, raw in (data or {}).items():
            variant = EntityVariant.parse(key)
            if variant is None:
                logger.warning("Ignoring catalog entry for unknown variant %r", key)
                continue
            try:
                entry = CatalogEntry.model_validate(raw)
                descriptors[variant] = build_descriptor(variant, entry)
            except (ValidationError, ValueError) as exc:
                logger.warning(
                    "Catalog entry for %s is invalid, keeping built-in description: %s",
                    variant.value, exc,
                )
        return cls(descriptors)

    # -- lookups -----------------------------------------------------------

    def describe(self, variant: Any) -> Optional[EntityTypeDescriptor]:
        """Descriptor for *variant*, or ``None`` if it is not a known variant."""
        parsed = EntityVariant.parse(variant)
        if parsed is None:
            return None
        return self._descriptors[parsed]

    def variants(self) -> list[EntityVariant]:
        return list(EntityVariant)

    def is_known(self, variant: Any) -> bool:
        return EntityVariant.parse(variant) is not None

    def field_schema(self, variant: Any, name: str) -> Optional[FieldSchema]:
        """Schema of *name* for *variant*; common fields resolve for any variant."""
        desc = self.describe(variant)
        if desc is not None:
            return desc.field(name)
        if name in COMMON_FIELDS:
            return _common_schema(name, name in BASIC_REQUIRED)
        return None

    def sections(self, variant: Any) -> tuple[str, ...]:
        desc = self.describe(variant)
        return desc.sections if desc else ()

    def section_fields(self, variant: Any, section: str) -> tuple[str, ...]:
        desc = self.describe(variant)
        if desc is None:
            return ()
        return desc.section_fields.get(section, ())

    def sequence_fields(self, variant: Any) -> tuple[str, ...]:
        desc = self.describe(variant)
        return desc.sequence_fields() if desc else ()

    def json_schema(self, variant: Any) -> Optional[dict]:
        """JSON Schema for *variant*'s value-type tags, or ``None`` if unknown."""
        parsed = EntityVariant.parse(variant)
        if parsed is None:
            return None
        if parsed not in self._schema_cache:
            self._schema_cache[parsed] = self._descriptors[parsed].json_schema()
        return self._schema_cache[parsed]

    def options_for(self, variant: Any, name: str) -> tuple[str, ...]:
        schema = self.field_schema(variant, name)
        return schema.options if schema else ()

    def display_names(self) -> dict[str, str]:
        """Variant id -> display name, in enum order."""
        return {v.value: self._descriptors[v].display_name for v in EntityVariant}

    def __iter__(self) -> Iterator[EntityTypeDescriptor]:
        return iter(self._descriptors[v] for v in EntityVariant)


def section_title(section: str) -> str:
    return SECTION_TITLES.get(section, humanize_field_name(section))
