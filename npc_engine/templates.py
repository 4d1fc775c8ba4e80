"""
npc_engine/templates.py -- Default record template for every variant.

Templates are the documented default sub-configuration a new draft starts
from.  They are never handed out directly: :func:`template_for` returns a
deep copy, so a draft can be mutated freely without touching the stored
template.

Also provides the placement presets and per-variant sprite suggestions
used by the form logic.
"""

from __future__ import annotations

from typing import Any

from npc_engine.registry import EntityVariant, ensure_exhaustive
from npc_engine.utils import clone

DEFAULT_POSITION = {"x": 100, "y": 100}

POSITION_PRESETS = {
    "center": {"x": 400, "y": 300},
    "top_left": {"x": 100, "y": 100},
    "top_right": {"x": 700, "y": 100},
    "bottom_left": {"x": 100, "y": 500},
    "bottom_right": {"x": 700, "y": 500},
    "entrance": {"x": 400, "y": 50},
    "exit": {"x": 400, "y": 550},
}


def _quest_lines(prefix: str) -> dict[str, list[str]]:
    return {
        "questOffer": [f"{prefix}.quest_offer.1"],
        "questInProgress": [f"{prefix}.quest_progress.1"],
        "questComplete": [f"{prefix}.quest_complete.1"],
    }


def _restrictions(min_level: int = 1, **extra: Any) -> dict[str, Any]:
    block: dict[str, Any] = {
        "minPlayerLevel": min_level,
        "maxPlayerLevel": None,
        "requiredBadges": [],
        "requiredFlags": [],
        "forbiddenFlags": [],
    }
    block.update(extra)
    return block


def _interaction(radius: int, walk_away: bool, cooldown: int) -> dict[str, Any]:
    return {
        "interactionRadius": radius,
        "canWalkAway": walk_away,
        "autoFacePlayer": True,
        "repeatable": True,
        "cooldownSeconds": cooldown,
    }


def _battle_config(team_id: str, level_cap: int, allow_items: bool, rules: list[str]) -> dict:
    return {
        "teamId": team_id,
        "battleType": "single",
        "allowItems": allow_items,
        "allowSwitching": True,
        "levelCap": level_cap,
        "customRules": rules,
        "weatherCondition": None,
        "terrainCondition": None,
    }


# ------------------------------------------------------------------
# Templates
# ------------------------------------------------------------------

TEMPLATES: dict[EntityVariant, dict[str, Any]] = {
    EntityVariant.DIALOGUE: {
        "name": "Guide Marcel",
        "position": {"x": 100, "y": 100},
        "sprite": "guide_tourist.png",
        "direction": "south",
        "dialogueIds": ["npc.dialogue.guide.welcome.1", "npc.dialogue.guide.info.1"],
        "dialogueId": "npc.dialogue.guide.main",
        "conditionalDialogueIds": {
            "firstVisit": ["npc.dialogue.guide.first.1"],
            "hasPokedex": ["npc.dialogue.guide.pokedex.1"],
        },
        "zoneInfo": {"zoneName": "current_zone", "connections": [], "wildPokemon": []},
        "questsToGive": [],
        "questsToEnd": [],
        "questRequirements": {},
        "questDialogueIds": _quest_lines("npc.dialogue.guide"),
        **_interaction(48, True, 0),
        "spawnConditions": {
            "timeOfDay": ["morning", "day", "evening"],
            "weather": None,
            "minPlayerLevel": 1,
            "maxPlayerLevel": None,
            "requiredFlags": [],
            "forbiddenFlags": [],
        },
    },
    EntityVariant.MERCHANT: {
        "name": "Merchant Julie",
        "position": {"x": 200, "y": 100},
        "sprite": "shopkeeper_female.png",
        "direction": "west",
        "shopId": "basic_shop",
        "shopType": "pokemart",
        "dialogueIds": ["npc.merchant.shopkeeper.welcome.1"],
        "shopDialogueIds": {
            "shopOpen": ["npc.merchant.shopkeeper.shop_open.1"],
            "shopClose": ["npc.merchant.shopkeeper.shop_close.1"],
            "noMoney": ["npc.merchant.shopkeeper.no_money.1"],
            "purchaseSuccess": ["npc.merchant.shopkeeper.purchase_success.1"],
            "stockEmpty": ["npc.merchant.shopkeeper.stock_empty.1"],
        },
        "shopConfig": {
            "currency": "gold",
            "discountPercent": 0,
            "memberDiscount": 0,
            "vipDiscount": 0,
            "restockHours": 24,
            "limitedStock": False,
            "bulkDiscounts": {"enabled": False, "threshold": 10, "discountPercent": 10},
            "loyaltyProgram": {"enabled": False, "pointsPerGold": 1, "rewardThresholds": []},
        },
        "accessRestrictions": _restrictions(
            requiredItems=[], vipOnly=False, guildOnly=False, membershipRequired=False,
        ),
        "businessHours": {
            "enabled": False,
            "openTime": "08:00",
            "closeTime": "20:00",
            "closedDays": [],
            "closedMessageId": "npc.merchant.shopkeeper.closed",
        },
        "questsToGive": [],
        "questsToEnd": [],
        "questRequirements": {},
        "questDialogueIds": _quest_lines("npc.merchant.shopkeeper"),
        **_interaction(32, False, 0),
    },
    EntityVariant.TRAINER: {
        "name": "Trainer Thomas",
        "position": {"x": 300, "y": 100},
        "sprite": "youngster_thomas.png",
        "direction": "north",
        "trainerId": "youngster_thomas_001",
        "trainerClass": "youngster",
        "trainerRank": 1,
        "trainerTitle": "Rookie Trainer",
        "battleConfig": _battle_config("youngster_team_basic", 15, True,
                                       ["no_legendary", "max_level_15"]),
        "battleDialogueIds": {
            "preBattle": ["npc.trainer.youngster.pre_battle.1"],
            "defeat": ["npc.trainer.youngster.defeat.1"],
            "victory": ["npc.trainer.youngster.victory.1"],
            "rematch": ["npc.trainer.youngster.rematch.1"],
        },
        "rewards": {
            "money": {"base": 500, "perPokemonLevel": 50, "bonus": 100, "multiplier": 1.0},
            "experience": {"enabled": True, "multiplier": 1.2, "bonusExp": 100},
            "items": [
                {"itemId": "potion", "quantity": 2, "chance": 100},
                {"itemId": "poke_ball", "quantity": 1, "chance": 50},
            ],
        },
        "rebattle": {
            "enabled": True,
            "cooldownHours": 24,
            "rematchTeamId": "youngster_team_advanced",
            "increasedRewards": True,
            "maxRebattles": 0,
            "scalingDifficulty": True,
        },
        "visionConfig": {
            "sightRange": 96,
            "sightAngle": 90,
            "chaseRange": 128,
            "returnToPosition": True,
            "blockMovement": True,
        },
        "battleConditions": {
            "minPlayerLevel": 3,
            "maxPlayerLevel": 20,
            "requiredBadges": [],
            "requiredFlags": ["has_pokemon"],
            "forbiddenFlags": [],
        },
        "progressionFlags": {
            "onDefeat": ["defeated_trainer"],
            "onVictory": ["lost_to_trainer"],
            "onFirstMeeting": ["met_trainer"],
        },
        "questsToGive": [],
        "questsToEnd": [],
        **_interaction(32, False, 5),
    },
    EntityVariant.HEALER: {
        "name": "Nurse Joy",
        "position": {"x": 400, "y": 100},
        "sprite": "nurse_joy.png",
        "direction": "south",
        "healerConfig": {
            "healingType": "pokemon_center",
            "cost": 0,
            "currency": "gold",
            "instantHealing": True,
            "healFullTeam": True,
            "removeStatusEffects": True,
            "restorePP": True,
        },
        "healerDialogueIds": {
            "welcome": ["npc.healer.joy.welcome.1"],
            "offerHealing": ["npc.healer.joy.offer_healing.1"],
            "healingStart": ["npc.healer.joy.healing_start.1"],
            "healingComplete": ["npc.healer.joy.healing_complete.1"],
            "alreadyHealthy": ["npc.healer.joy.already_healthy.1"],
            "noPokemon": ["npc.healer.joy.no_pokemon.1"],
        },
        "additionalServices": {
            "pcAccess": True,
            "pokemonStorage": True,
            "tradeCenter": False,
            "moveReminder": False,
            "pokemonDaycare": False,
        },
        "serviceRestrictions": {
            "minPlayerLevel": 1,
            "maxUsesPerDay": 0,
            "cooldownBetweenUses": 0,
            "requiredFlags": [],
            "forbiddenFlags": [],
        },
        "questsToGive": [],
        "questsToEnd": [],
        **_interaction(40, False, 1),
    },
    EntityVariant.GYM_LEADER: {
        "name": "Leader Lt. Surge",
        "position": {"x": 500, "y": 100},
        "sprite": "gym_leader_surge.png",
        "direction": "south",
        "gymConfig": {
            "gymId": "electric_gym",
            "gymType": "electric",
            "gymLevel": 3,
            "badgeId": "thunder_badge",
            "badgeName": "Thunder Badge",
            "gymPuzzle": "none",
            "requiredBadges": [],
        },
        "battleConfig": _battle_config("gym_leader_team", 25, False, ["gym_battle_rules"]),
        "gymDialogueIds": {
            "firstChallenge": ["npc.gym.leader.first_challenge.1"],
            "preBattle": ["npc.gym.leader.pre_battle.1"],
            "defeat": ["npc.gym.leader.defeat.1"],
            "victory": ["npc.gym.leader.victory.1"],
            "badgeAwarded": ["npc.gym.leader.badge_awarded.1"],
            "alreadyDefeated": ["npc.gym.leader.already_defeated.1"],
        },
        "challengeConditions": _restrictions(
            20, forbiddenFlags=["badge_obtained"], minimumPokemon=3, maximumPokemon=6,
        ),
        "gymRewards": {
            "badge": {
                "badgeId": "thunder_badge",
                "tmReward": "tm24_thunderbolt",
                "pokemonObeyLevel": 30,
            },
            "money": {"base": 2500, "multiplier": 1.5},
            "items": [{"itemId": "tm24", "quantity": 1, "chance": 100}],
        },
        "rematchConfig": {
            "enabled": False,
            "cooldownDays": 7,
            "rematchTeamId": "gym_leader_elite_team",
            "levelIncrease": 10,
            "newRewards": True,
        },
        "questsToGive": [],
        "questsToEnd": [],
        **_interaction(48, False, 0),
    },
    EntityVariant.TRANSPORT: {
        "name": "Captain Briney",
        "position": {"x": 600, "y": 100},
        "sprite": "captain_briney.png",
        "direction": "west",
        "transportConfig": {
            "transportType": "boat",
            "vehicleId": "basic_boat",
            "capacity": 10,
            "travelTime": 300,
        },
        "destinations": [
            {
                "mapId": "other_zone",
                "mapName": "Destination Zone",
                "cost": 500,
                "currency": "gold",
                "travelTime": 300,
                "requiredFlags": [],
                "forbiddenFlags": [],
            },
        ],
        "schedules": [
            {
                "departTime": "10:00",
                "arrivalTime": "10:30",
                "destination": "other_zone",
                "daysOfWeek": ["monday", "wednesday", "friday"],
            },
        ],
        "transportDialogueIds": {
            "welcome": ["npc.transport.captain.welcome.1"],
            "destinations": ["npc.transport.captain.destinations.1"],
            "confirmTravel": ["npc.transport.captain.confirm_travel.1"],
            "boarding": ["npc.transport.captain.boarding.1"],
            "departure": ["npc.transport.captain.departure.1"],
            "arrival": ["npc.transport.captain.arrival.1"],
            "noMoney": ["npc.transport.captain.no_money.1"],
        },
        "weatherRestrictions": {
            "enabled": False,
            "forbiddenWeather": ["storm"],
            "delayWeather": ["rain"],
            "delayMessageId": "npc.transport.captain.weather_delay.1",
        },
        "questsToGive": [],
        "questsToEnd": [],
        **_interaction(40, True, 2),
    },
    EntityVariant.SERVICE: {
        "name": "Name Rater Bob",
        "position": {"x": 700, "y": 100},
        "sprite": "name_rater.png",
        "direction": "south",
        "serviceConfig": {
            "serviceType": "name_rater",
            "cost": 200,
            "currency": "gold",
            "instantService": True,
            "maxUsesPerDay": 5,
        },
        "availableServices": [
            {
                "serviceId": "rename_pokemon",
                "serviceName": "Rename Pokemon",
                "cost": 200,
                "requirements": {"originalTrainer": True, "minFriendship": 0},
            },
        ],
        "serviceDialogueIds": {
            "welcome": ["npc.service.name_rater.welcome.1"],
            "serviceOffer": ["npc.service.name_rater.service_offer.1"],
            "serviceStart": ["npc.service.name_rater.service_start.1"],
            "serviceComplete": ["npc.service.name_rater.service_complete.1"],
            "noMoney": ["npc.service.name_rater.no_money.1"],
            "notEligible": ["npc.service.name_rater.not_eligible.1"],
        },
        "serviceRestrictions": {
            "minPlayerLevel": 5,
            "maxUsesPerDay": 5,
            "cooldownBetweenUses": 300,
            "requiredFlags": [],
            "forbiddenFlags": [],
        },
        "questsToGive": [],
        "questsToEnd": [],
        **_interaction(32, False, 1),
    },
    EntityVariant.MINIGAME: {
        "name": "Contest Judge Marina",
        "position": {"x": 800, "y": 100},
        "sprite": "contest_judge.png",
        "direction": "west",
        "minigameConfig": {
            "minigameType": "pokemon_contest",
            "contestCategory": "beauty",
            "entryFee": 1000,
            "currency": "gold",
            "maxParticipants": 4,
            "duration": 300,
        },
        "contestCategories": [
            {
                "categoryId": "beauty",
                "categoryName": "Beauty Contest",
                "requiredStat": "beauty",
                "entryFee": 1000,
                "minLevel": 10,
            },
        ],
        "contestRewards": {
            "first": {"money": 5000, "items": [{"itemId": "contest_ribbon", "quantity": 1}]},
            "participation": {"money": 500, "items": [{"itemId": "pokeblock", "quantity": 3}]},
        },
        "contestDialogueIds": {
            "welcome": ["npc.minigame.contest.welcome.1"],
            "rules": ["npc.minigame.contest.rules.1"],
            "entry": ["npc.minigame.contest.entry.1"],
            "contestStart": ["npc.minigame.contest.contest_start.1"],
            "results": ["npc.minigame.contest.results.1"],
            "noMoney": ["npc.minigame.contest.no_money.1"],
        },
        "contestSchedule": {
            "enabled": False,
            "startTimes": ["14:00"],
            "registrationDeadline": 300,
            "waitingRoom": False,
        },
        "questsToGive": [],
        "questsToEnd": [],
        **_interaction(40, True, 2),
    },
    EntityVariant.RESEARCHER: {
        "name": "Professor Willow",
        "position": {"x": 900, "y": 100},
        "sprite": "professor_willow.png",
        "direction": "south",
        "researchConfig": {
            "researchType": "pokedex",
            "specialization": "general",
            "researchLevel": 1,
            "acceptDonations": True,
        },
        "researchServices": [
            {
                "serviceId": "pokedex_evaluation",
                "serviceName": "Pokedex Evaluation",
                "cost": 0,
                "requirements": {"minPokedexEntries": 10},
            },
        ],
        "acceptedPokemon": {
            "forResearch": ["all"],
            "forBreeding": [],
            "forAnalysis": ["owned_by_player"],
            "restrictions": {"noLegendary": True, "minLevel": 5, "maxLevel": 100},
        },
        "researchDialogueIds": {
            "welcome": ["npc.researcher.professor.welcome.1"],
            "services": ["npc.researcher.professor.services.1"],
            "pokedexCheck": ["npc.researcher.professor.pokedex_check.1"],
            "researchComplete": ["npc.researcher.professor.research_complete.1"],
            "notEligible": ["npc.researcher.professor.not_eligible.1"],
        },
        "researchRewards": {
            "pokedexMilestones": {
                "50": {"items": [{"itemId": "exp_share", "quantity": 1}]},
                "100": {"items": [{"itemId": "master_ball", "quantity": 1}]},
            },
            "researchContribution": {"perPokemon": 100, "rareBonus": 500},
        },
        "questsToGive": [],
        "questsToEnd": [],
        **_interaction(48, True, 3),
    },
    EntityVariant.GUILD: {
        "name": "Guild Recruiter",
        "position": {"x": 1000, "y": 100},
        "sprite": "guild_recruiter.png",
        "direction": "west",
        "guildConfig": {
            "guildId": "basic_guild",
            "guildName": "Basic Guild",
            "factionType": "neutral",
            "recruitmentOpen": True,
            "maxMembers": 100,
        },
        "recruitmentRequirements": _restrictions(
            10, alignmentRequired=None, minimumReputation=0,
        ),
        "guildServices": [
            {"serviceId": "guild_access", "serviceName": "Guild Access", "memberRankRequired": 1},
        ],
        "guildDialogueIds": {
            "recruitment": ["npc.guild.recruiter.recruitment.1"],
            "welcome": ["npc.guild.recruiter.welcome.1"],
            "services": ["npc.guild.recruiter.services.1"],
            "rejected": ["npc.guild.recruiter.rejected.1"],
        },
        "rankSystem": {
            "ranks": [
                {"rankId": 1, "rankName": "Member", "requirements": {"reputation": 0}},
                {"rankId": 2, "rankName": "Officer", "requirements": {"reputation": 100}},
            ],
            "promotionRewards": {},
        },
        "questsToGive": [],
        "questsToEnd": [],
        **_interaction(40, True, 5),
    },
    EntityVariant.EVENT: {
        "name": "Event Coordinator",
        "position": {"x": 1100, "y": 100},
        "sprite": "event_coordinator.png",
        "direction": "south",
        "eventConfig": {
            "eventId": "basic_event",
            "eventType": "seasonal",
            "eventStatus": "active",
            "globalEvent": False,
        },
        "eventPeriod": {
            "startDate": "2025-01-01T00:00:00Z",
            "endDate": "2025-12-31T23:59:59Z",
            "timezone": "UTC",
            "earlyAccess": {"enabled": False, "startDate": None, "requiredFlags": []},
        },
        "eventActivities": [
            {
                "activityId": "basic_activity",
                "activityName": "Basic Activity",
                "participationFee": 0,
                "rewards": {
                    "participation": {"items": [{"itemId": "event_token", "quantity": 1}]},
                },
            },
        ],
        "eventDialogueIds": {
            "welcome": ["npc.event.coordinator.welcome.1"],
            "activities": ["npc.event.coordinator.activities.1"],
            "registration": ["npc.event.coordinator.registration.1"],
            "results": ["npc.event.coordinator.results.1"],
            "eventEnded": ["npc.event.coordinator.event_ended.1"],
        },
        "globalProgress": {
            "enabled": False,
            "targetGoal": 1000,
            "currentProgress": 0,
            "progressType": "participation",
            "rewards": {},
        },
        "questsToGive": [],
        "questsToEnd": [],
        "spawnConditions": {
            "timeOfDay": None,
            "weather": None,
            "minPlayerLevel": 1,
            "maxPlayerLevel": None,
            "requiredFlags": ["event_active"],
            "forbiddenFlags": [],
            "dateRange": {"start": "2025-01-01", "end": "2025-12-31"},
        },
        **_interaction(50, True, 2),
    },
    EntityVariant.QUEST_MASTER: {
        "name": "Quest Master Sage",
        "position": {"x": 1200, "y": 100},
        "sprite": "quest_master_sage.png",
        "direction": "west",
        "questMasterConfig": {
            "masterId": "basic_quest_master",
            "specialization": "general",
            "questTier": "normal",
            "maxActiveQuests": 3,
        },
        "questsToGive": [],
        "questsToEnd": [],
        "questRequirements": {},
        "questMasterDialogueIds": {
            "welcome": ["npc.quest_master.sage.welcome.1"],
            "questsAvailable": ["npc.quest_master.sage.quests_available.1"],
            "questOffer": ["npc.quest_master.sage.quest_offer.1"],
            "questAccepted": ["npc.quest_master.sage.quest_accepted.1"],
            "questInProgress": ["npc.quest_master.sage.quest_progress.1"],
            "questComplete": ["npc.quest_master.sage.quest_complete.1"],
            "notReady": ["npc.quest_master.sage.not_ready.1"],
        },
        "questRankSystem": {
            "ranks": [
                {"rankId": 1, "rankName": "Novice", "questsRequired": 5},
                {"rankId": 2, "rankName": "Adept", "questsRequired": 15},
            ],
            "rankRewards": {},
        },
        "epicRewards": {},
        "specialConditions": {
            "timeRestrictions": {"enabled": False},
            "weatherRequirements": {"enabled": False},
            "playerAlignment": {"required": None, "minKarma": 0},
        },
        **_interaction(64, True, 0),
    },
}

ensure_exhaustive(TEMPLATES, "TEMPLATES")

SUGGESTED_SPRITES: dict[EntityVariant, list[str]] = {
    EntityVariant.DIALOGUE: ["guide_tourist.png", "villager_male.png", "villager_female.png",
                             "elder.png"],
    EntityVariant.MERCHANT: ["shopkeeper_male.png", "shopkeeper_female.png", "mart_clerk.png",
                             "vendor.png"],
    EntityVariant.TRAINER: ["youngster.png", "lass.png", "bug_catcher.png", "fisherman.png",
                            "hiker.png"],
    EntityVariant.HEALER: ["nurse_joy.png", "doctor.png", "healer.png"],
    EntityVariant.GYM_LEADER: ["gym_leader_brock.png", "gym_leader_misty.png",
                               "gym_leader_surge.png"],
    EntityVariant.TRANSPORT: ["captain.png", "pilot.png", "sailor.png", "driver.png"],
    EntityVariant.SERVICE: ["name_rater.png", "move_deleter.png", "technician.png"],
    EntityVariant.MINIGAME: ["contest_judge.png", "game_master.png", "referee.png"],
    EntityVariant.RESEARCHER: ["professor_oak.png", "professor_willow.png", "scientist.png"],
    EntityVariant.GUILD: ["team_rocket_grunt.png", "guild_member.png", "faction_leader.png"],
    EntityVariant.EVENT: ["event_coordinator.png", "festival_host.png", "celebrant.png"],
    EntityVariant.QUEST_MASTER: ["quest_master_sage.png", "wise_man.png",
                                 "adventure_guide.png"],
}

ensure_exhaustive(SUGGESTED_SPRITES, "SUGGESTED_SPRITES")


# ------------------------------------------------------------------
# Accessors
# ------------------------------------------------------------------

def template_for(variant: EntityVariant) -> dict[str, Any]:
    """Deep copy of *variant*'s template, without ``id`` and with ``type`` set."""
    record = clone(TEMPLATES[variant])
    record["type"] = variant.value
    return record


def template_fields(variant: EntityVariant) -> tuple[str, ...]:
    """Top-level field names a fresh draft of *variant* carries."""
    return ("id", "type", *TEMPLATES[variant].keys())


def suggested_sprites(variant: EntityVariant) -> list[str]:
    return list(SUGGESTED_SPRITES[variant])


def position_preset(name: str) -> dict[str, int]:
    """Copy of a named placement preset.

    Raises
    ------
    KeyError
        If *name* is not a known preset.
    """
    if name not in POSITION_PRESETS:
        raise KeyError(f"Unknown position preset: {name!r}")
    return dict(POSITION_PRESETS[name])
