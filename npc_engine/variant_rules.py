"""
npc_engine/variant_rules.py -- Business rules for each NPC variant.

One rule function per variant, dispatched through :data:`VARIANT_RULES`
(checked for exhaustiveness at import).  Rules only inspect nested content
and identifier formats; presence and value-type tags of the variant's
required fields are checked generically by the validator before the rule
runs, so a rule never repeats a "missing field" error.

A rule receives the record and a collector with ``error``, ``warning`` and
``suggest`` methods, each taking ``(field, message)``.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Callable

from npc_engine.field_resolver import has_path
from npc_engine.registry import EntityVariant, ensure_exhaustive
from npc_engine.utils import is_number, is_populated

IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_-]+$")
TIME_OF_DAY_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

DISCOUNT_RANGE = (0, 90)
LEVEL_CAP_RANGE = (1, 100)
MAX_SIGHT_RANGE = 200

# Merchant shop shapes that predate the top-level shopId field.
LEGACY_SHOP_PATHS = (
    ("shop", "the top-level 'shop' block"),
    ("shopConfig.items", "an inline item list in shopConfig"),
    ("shopConfig.shopId", "a shopId inside shopConfig"),
)


# ------------------------------------------------------------------
# Shared checks
# ------------------------------------------------------------------

def check_identifier(report, field: str, value: Any) -> None:
    """Whitespace in an identifier is an error; other odd characters warn."""
    if not isinstance(value, str) or not value:
        return
    if any(ch.isspace() for ch in value):
        report.error(field, f"'{field}' must not contain whitespace (got {value!r})")
    elif not IDENTIFIER_RE.match(value):
        report.warning(
            field,
            f"'{field}' should only use letters, digits, '_' and '-' (got {value!r})",
        )


def _mapping(record: dict, name: str) -> dict:
    value = record.get(name)
    return value if isinstance(value, dict) else {}


def _parse_datetime(value: Any):
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


# ------------------------------------------------------------------
# Per-variant rules
# ------------------------------------------------------------------

def check_dialogue(record: dict, report) -> None:
    conditional = record.get("conditionalDialogueIds")
    if not isinstance(conditional, dict):
        return
    for condition, entry in conditional.items():
        if isinstance(entry, list):
            if not all(isinstance(item, str) for item in entry):
                report.error(
                    f"conditionalDialogueIds.{condition}",
                    f"Condition '{condition}' must list dialogue ids as strings",
                )
        elif isinstance(entry, dict):
            if not entry.get("condition") or not entry.get("dialogueId"):
                report.error(
                    f"conditionalDialogueIds.{condition}",
                    f"Condition '{condition}' is incomplete (needs 'condition' and 'dialogueId')",
                )
        else:
            report.error(
                f"conditionalDialogueIds.{condition}",
                f"Condition '{condition}' must be a list of dialogue ids or a mapping",
            )


def check_merchant(record: dict, report) -> None:
    shop_id = record.get("shopId")
    if not is_populated(shop_id):
        report.warning("shopId", "No shopId set; the shop will be treated as generic")
    else:
        check_identifier(report, "shopId", shop_id)

    config = _mapping(record, "shopConfig")
    discount = config.get("discountPercent")
    if is_number(discount) and not DISCOUNT_RANGE[0] <= discount <= DISCOUNT_RANGE[1]:
        report.error(
            "shopConfig.discountPercent",
            f"Discount must be between {DISCOUNT_RANGE[0]} and {DISCOUNT_RANGE[1]}%",
        )

    hours = _mapping(record, "businessHours")
    if hours.get("enabled"):
        if not hours.get("openTime") or not hours.get("closeTime"):
            report.error("businessHours", "Opening and closing times are required")
        else:
            for key in ("openTime", "closeTime"):
                value = hours[key]
                if not isinstance(value, str) or not TIME_OF_DAY_RE.match(value):
                    report.warning(f"businessHours.{key}", f"'{key}' should use HH:MM")

    check_legacy_shop(record, report)


def check_legacy_shop(record: dict, report) -> None:
    """Report superseded shop-configuration shapes on a merchant record."""
    for path, description in LEGACY_SHOP_PATHS:
        if has_path(record, path):
            report.warning(path, f"Superseded shop format: {description}")
            report.suggest(
                path,
                "Migrate to the current format: put the shop reference in the "
                "top-level 'shopId' and keep shop settings in 'shopConfig'",
            )


def check_trainer(record: dict, report) -> None:
    check_identifier(report, "trainerId", record.get("trainerId"))

    battle = record.get("battleConfig")
    if isinstance(battle, dict):
        if not is_populated(battle.get("teamId")):
            report.error("battleConfig.teamId", "A team id is required in the battle configuration")
        else:
            check_identifier(report, "battleConfig.teamId", battle.get("teamId"))
        cap = battle.get("levelCap")
        if cap is not None and (not is_number(cap)
                                or not LEVEL_CAP_RANGE[0] <= cap <= LEVEL_CAP_RANGE[1]):
            report.error(
                "battleConfig.levelCap",
                f"Level cap must be between {LEVEL_CAP_RANGE[0]} and {LEVEL_CAP_RANGE[1]}",
            )

    sight = _mapping(record, "visionConfig").get("sightRange")
    if is_number(sight) and sight > MAX_SIGHT_RANGE:
        report.warning("visionConfig.sightRange",
                       f"Very long sight range (>{MAX_SIGHT_RANGE}px)")


def check_healer(record: dict, report) -> None:
    config = _mapping(record, "healerConfig")
    cost = config.get("cost")
    if is_number(cost) and cost > 0 and not config.get("currency"):
        report.warning("healerConfig.currency", "Paid healing should name a currency")


def check_gym_leader(record: dict, report) -> None:
    gym = record.get("gymConfig")
    if isinstance(gym, dict):
        if not is_populated(gym.get("gymId")) or not is_populated(gym.get("badgeId")):
            report.error("gymConfig", "Gym id and badge id are required")
        if not is_populated(gym.get("gymType")):
            report.error("gymConfig.gymType", "Gym type (Pokemon type) is required")
        check_identifier(report, "gymConfig.gymId", gym.get("gymId"))
        check_identifier(report, "gymConfig.badgeId", gym.get("badgeId"))

    if not is_populated(record.get("challengeConditions")):
        report.warning("challengeConditions", "Challenge conditions are recommended for a gym leader")


def check_transport(record: dict, report) -> None:
    destinations = record.get("destinations")
    if not isinstance(destinations, list):
        return
    for index, dest in enumerate(destinations):
        field = f"destinations.{index}"
        if not isinstance(dest, dict):
            report.error(field, f"Destination {index + 1} must be a mapping")
            continue
        if not dest.get("mapId") or not dest.get("mapName"):
            report.error(field, f"Destination {index + 1}: mapId and mapName are required")


def check_service(record: dict, report) -> None:
    max_uses = _mapping(record, "serviceConfig").get("maxUsesPerDay")
    if is_number(max_uses) and max_uses < 0:
        report.error("serviceConfig.maxUsesPerDay", "Max uses per day cannot be negative")

    services = record.get("availableServices")
    if isinstance(services, list):
        for index, service in enumerate(services):
            if isinstance(service, dict) and not service.get("serviceId"):
                report.error(f"availableServices.{index}",
                             f"Service {index + 1} needs a serviceId")


def check_minigame(record: dict, report) -> None:
    participants = _mapping(record, "minigameConfig").get("maxParticipants")
    if is_number(participants) and participants < 1:
        report.error("minigameConfig.maxParticipants", "At least one participant is required")


def check_researcher(record: dict, report) -> None:
    services = record.get("researchServices")
    if isinstance(services, list):
        for index, service in enumerate(services):
            if isinstance(service, dict) and not service.get("serviceId"):
                report.error(f"researchServices.{index}",
                             f"Research service {index + 1} needs a serviceId")


def check_guild(record: dict, report) -> None:
    guild = record.get("guildConfig")
    if isinstance(guild, dict):
        if not is_populated(guild.get("guildId")) or not is_populated(guild.get("guildName")):
            report.error("guildConfig", "Guild id and guild name are required")
        check_identifier(report, "guildConfig.guildId", guild.get("guildId"))


def check_event(record: dict, report) -> None:
    period = _mapping(record, "eventPeriod")
    start_raw, end_raw = period.get("startDate"), period.get("endDate")
    if start_raw and end_raw:
        start, end = _parse_datetime(start_raw), _parse_datetime(end_raw)
        if start is None or end is None:
            report.warning("eventPeriod", "Event dates should be ISO-8601 timestamps")
        elif (start.tzinfo is None) != (end.tzinfo is None):
            report.warning("eventPeriod", "Start and end dates mix local and UTC times")
        elif start >= end:
            report.error("eventPeriod", "End date must be after the start date")

    spawn = record.get("spawnConditions")
    if isinstance(spawn, dict):
        flags = spawn.get("requiredFlags") or []
        if "event_active" not in flags:
            report.suggest("spawnConditions",
                           "Add 'event_active' to the required flags of an event NPC")


def check_quest_master(record: dict, report) -> None:
    if not is_populated(record.get("questsToGive")):
        report.warning("questsToGive", "A quest master should have quests to give")


VARIANT_RULES: dict[EntityVariant, Callable[[dict, Any], None]] = {
    EntityVariant.DIALOGUE: check_dialogue,
    EntityVariant.MERCHANT: check_merchant,
    EntityVariant.TRAINER: check_trainer,
    EntityVariant.HEALER: check_healer,
    EntityVariant.GYM_LEADER: check_gym_leader,
    EntityVariant.TRANSPORT: check_transport,
    EntityVariant.SERVICE: check_service,
    EntityVariant.MINIGAME: check_minigame,
    EntityVariant.RESEARCHER: check_researcher,
    EntityVariant.GUILD: check_guild,
    EntityVariant.EVENT: check_event,
    EntityVariant.QUEST_MASTER: check_quest_master,
}

ensure_exhaustive(VARIANT_RULES, "VARIANT_RULES")
