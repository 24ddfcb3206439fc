"""Active skills: player-triggered abilities paid for with energy, mana and
stock, gated by player level, researched technologies and other skills."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Mapping

from idle_empire.world.resources import ResourceBundle

SCALE_PER_LEVEL = 0.25
COOLDOWN_CUT_PER_LEVEL = 0.1
MIN_COOLDOWN_SHARE = 0.5
ENERGY_CUT_PER_LEVEL = 0.05
MIN_ENERGY_SHARE = 0.7
USE_EXPERIENCE = 10


class SkillCategory(Enum):
    ECONOMY = "ECONOMY"
    MILITARY = "MILITARY"
    MAGIC = "MAGIC"
    UTILITY = "UTILITY"
    ULTIMATE = "ULTIMATE"


class SkillEffectType(Enum):
    PRODUCTION_MULTIPLIER = "PRODUCTION_MULTIPLIER"
    INSTANT_PRODUCTION = "INSTANT_PRODUCTION"
    COST_REDUCTION = "COST_REDUCTION"
    COMBAT_BUFF = "COMBAT_BUFF"
    DEFENSE_BUFF = "DEFENSE_BUFF"
    COMPLETE_MILITARY_CONSTRUCTION = "COMPLETE_MILITARY_CONSTRUCTION"
    MILITARY_BUILD_BOOST = "MILITARY_BUILD_BOOST"
    RESTORE_MANA = "RESTORE_MANA"
    MANA_REGEN_BOOST = "MANA_REGEN_BOOST"
    BUILDING_ENCHANTMENT = "BUILDING_ENCHANTMENT"
    TIME_MULTIPLIER = "TIME_MULTIPLIER"
    EXPLORATION_INSIGHT = "EXPLORATION_INSIGHT"
    REVEAL_SECRETS = "REVEAL_SECRETS"
    ULTIMATE_BOOST = "ULTIMATE_BOOST"


@dataclass(frozen=True, slots=True)
class SkillEffect:
    type: SkillEffectType
    value: float
    duration_seconds: int = 0
    target: str = ""


@dataclass(frozen=True, slots=True)
class SkillSpec:
    key: str
    name: str
    description: str
    category: SkillCategory
    required_level: int
    required_techs: tuple[str, ...]
    prerequisites: tuple[str, ...]
    cooldown_seconds: int
    energy_cost: int
    mana_cost: int
    resource_costs: ResourceBundle
    effects: tuple[SkillEffect, ...]
    duration_seconds: int
    max_level: int


@dataclass(slots=True)
class PlayerSkill:
    """One empire's progress on a skill."""

    key: str
    level: int = 1
    unlocked: bool = False
    unlocked_at: datetime | None = None
    cooldown_expires_at: datetime | None = None
    last_used_at: datetime | None = None
    times_used: int = 0
    experience: int = 0

    def on_cooldown(self, now: datetime) -> bool:
        return self.cooldown_expires_at is not None and now < self.cooldown_expires_at


@dataclass(slots=True)
class ActiveSkillEffect:
    """A timed effect left behind by a skill use.

    ``expires_at`` is ``None`` for effects that wait for a trigger (the next
    combat, the next explorations) instead of a clock.
    """

    skill_key: str
    type: SkillEffectType
    value: float
    started_at: datetime
    expires_at: datetime | None
    province_id: str | None = None
    consumed: bool = False

    def is_active(self, now: datetime) -> bool:
        if self.consumed or now < self.started_at:
            return False
        return self.expires_at is None or now < self.expires_at


def _effect(type: SkillEffectType, value: float, duration: int = 0, target: str = "") -> SkillEffect:
    return SkillEffect(type=type, value=float(value), duration_seconds=int(duration), target=target)


def _skill(
    key: str,
    name: str,
    *,
    description: str,
    category: SkillCategory,
    required_level: int,
    cooldown_seconds: int,
    effects: Iterable[SkillEffect],
    required_techs: Iterable[str] = (),
    prerequisites: Iterable[str] = (),
    energy_cost: int = 0,
    mana_cost: int = 0,
    resource_costs: Mapping[str, int] | None = None,
    duration_seconds: int = 0,
    max_level: int = 1,
) -> SkillSpec:
    return SkillSpec(
        key=key,
        name=name,
        description=description,
        category=category,
        required_level=int(required_level),
        required_techs=tuple(required_techs),
        prerequisites=tuple(prerequisites),
        cooldown_seconds=int(cooldown_seconds),
        energy_cost=int(energy_cost),
        mana_cost=int(mana_cost),
        resource_costs=ResourceBundle(dict(resource_costs or {})),
        effects=tuple(effects),
        duration_seconds=int(duration_seconds),
        max_level=int(max_level),
    )


def skill_registry() -> dict[str, SkillSpec]:
    T = SkillEffectType
    skills = [
        _skill(
            "HARVEST_BOOST",
            "Harvest Blessing",
            description="Dramatically boost resource production in all provinces for 5 minutes",
            category=SkillCategory.ECONOMY,
            required_level=5,
            required_techs=("AGRICULTURE_2",),
            cooldown_seconds=300,
            energy_cost=20,
            effects=(_effect(T.PRODUCTION_MULTIPLIER, 2.5, 300, "ALL_PROVINCES"),),
            duration_seconds=300,
            max_level=5,
        ),
        _skill(
            "INSTANT_COLLECT",
            "Instant Collection",
            description="Immediately collect 2 hours worth of resources from all provinces",
            category=SkillCategory.ECONOMY,
            required_level=8,
            required_techs=("TRADE_1",),
            cooldown_seconds=600,
            energy_cost=30,
            resource_costs={"gold": 100},
            effects=(_effect(T.INSTANT_PRODUCTION, 2, target="ALL_PROVINCES"),),
            max_level=3,
        ),
        _skill(
            "MARKET_MANIPULATION",
            "Market Manipulation",
            description="Reduce all construction and research costs by 30% for 10 minutes",
            category=SkillCategory.ECONOMY,
            required_level=12,
            required_techs=("TRADE_1", "SCHOLARSHIP"),
            prerequisites=("INSTANT_COLLECT",),
            cooldown_seconds=900,
            energy_cost=40,
            mana_cost=10,
            resource_costs={"gold": 200, "influence": 50},
            effects=(_effect(T.COST_REDUCTION, 0.3, 600, "ALL_ACTIONS"),),
            duration_seconds=600,
            max_level=3,
        ),
        _skill(
            "BATTLE_FURY",
            "Battle Fury",
            description="Next combat has +50% damage and +25% defense for 30 seconds",
            category=SkillCategory.MILITARY,
            required_level=10,
            required_techs=("MILITARY_2",),
            cooldown_seconds=180,
            energy_cost=25,
            resource_costs={"influence": 20},
            effects=(
                _effect(T.COMBAT_BUFF, 1.5, 30, "NEXT_COMBAT"),
                _effect(T.DEFENSE_BUFF, 1.25, 30, "NEXT_COMBAT"),
            ),
            duration_seconds=30,
            max_level=4,
        ),
        _skill(
            "RALLY_TROOPS",
            "Rally the Troops",
            description="Instantly complete current military construction and boost next 3 military builds",
            category=SkillCategory.MILITARY,
            required_level=15,
            required_techs=("MILITARY_2", "ENGINEERING"),
            prerequisites=("BATTLE_FURY",),
            cooldown_seconds=1200,
            energy_cost=50,
            resource_costs={"gold": 300, "influence": 100},
            effects=(
                _effect(T.COMPLETE_MILITARY_CONSTRUCTION, 1, target="CURRENT"),
                _effect(T.MILITARY_BUILD_BOOST, 0.5, 1800, "NEXT_3_BUILDS"),
            ),
            max_level=2,
        ),
        _skill(
            "MANA_SURGE",
            "Mana Surge",
            description="Instantly restore 50 Mana and increase Mana regeneration by 100% for 5 minutes",
            category=SkillCategory.MAGIC,
            required_level=8,
            required_techs=("ARCANE_STUDIES",),
            cooldown_seconds=240,
            resource_costs={"gold": 50},
            effects=(
                _effect(T.RESTORE_MANA, 50, target="SELF"),
                _effect(T.MANA_REGEN_BOOST, 2, 300, "SELF"),
            ),
            duration_seconds=300,
            max_level=3,
        ),
        _skill(
            "ENCHANT_BUILDINGS",
            "Enchant Buildings",
            description="Enchant all buildings in a province for +75% efficiency for 15 minutes",
            category=SkillCategory.MAGIC,
            required_level=20,
            required_techs=("ARCANE_STUDIES",),
            prerequisites=("MANA_SURGE",),
            cooldown_seconds=1800,
            mana_cost=80,
            resource_costs={"gold": 500},
            effects=(_effect(T.BUILDING_ENCHANTMENT, 1.75, 900, "SELECTED_PROVINCE"),),
            duration_seconds=900,
            max_level=3,
        ),
        _skill(
            "TIME_ACCELERATION",
            "Time Acceleration",
            description="Speed up all construction and research by 300% for 2 minutes",
            category=SkillCategory.UTILITY,
            required_level=18,
            required_techs=("ARCANE_STUDIES",),
            cooldown_seconds=2400,
            energy_cost=60,
            mana_cost=100,
            resource_costs={"gold": 1000, "influence": 200},
            effects=(_effect(T.TIME_MULTIPLIER, 4, 120, "ALL_TASKS"),),
            duration_seconds=120,
            max_level=2,
        ),
        _skill(
            "DIVINE_INSIGHT",
            "Divine Insight",
            description="Reveal all hidden events and bonuses in the next 3 exploration attempts",
            category=SkillCategory.UTILITY,
            required_level=12,
            required_techs=("SCHOLARSHIP",),
            cooldown_seconds=720,
            energy_cost=35,
            mana_cost=25,
            resource_costs={"influence": 75},
            effects=(
                _effect(T.EXPLORATION_INSIGHT, 3, target="EXPLORATION"),
                _effect(T.REVEAL_SECRETS, 1, target="HIDDEN_EVENTS"),
            ),
            max_level=3,
        ),
        _skill(
            "EMPIRE_ASCENSION",
            "Empire Ascension",
            description="ULTIMATE: Boost ALL empire activities by 500% for 1 minute. Long cooldown.",
            category=SkillCategory.ULTIMATE,
            required_level=25,
            required_techs=("ARCANE_STUDIES", "MILITARY_2", "TRADE_1"),
            prerequisites=("TIME_ACCELERATION", "ENCHANT_BUILDINGS", "RALLY_TROOPS"),
            cooldown_seconds=7200,
            energy_cost=100,
            mana_cost=200,
            resource_costs={"gold": 5000, "food": 1000, "stone": 1000, "iron": 1000, "influence": 500},
            effects=(_effect(T.ULTIMATE_BOOST, 6, 60, "ENTIRE_EMPIRE"),),
            duration_seconds=60,
            max_level=1,
        ),
    ]
    return {skill.key: skill for skill in skills}


__all__ = [
    "ActiveSkillEffect",
    "PlayerSkill",
    "SkillCategory",
    "SkillEffect",
    "SkillEffectType",
    "SkillSpec",
    "USE_EXPERIENCE",
    "skill_registry",
]
