from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, Iterable, Mapping

from idle_empire.errors import ConfigurationError
from idle_empire.world.balance import BalanceTables, default_tables
from idle_empire.world.buildings import BuildingKind
from idle_empire.world.resources import ResourceBundle, ResourceKind
from idle_empire.world.technologies import TechnologySpec


class StackingRule(Enum):
    MULTIPLICATIVE = "MULTIPLICATIVE"
    ADDITIVE = "ADDITIVE"
    REDUCTION = "REDUCTION"
    EVENT = "EVENT"


@dataclass(frozen=True, slots=True)
class TechnologyBonus:
    farm_production: float = 1.0
    mine_production: float = 1.0
    quarry_production: float = 1.0
    marketplace_production: float = 1.0
    barracks_efficiency: float = 1.0
    academy_efficiency: float = 1.0
    military_efficiency: float = 1.0
    alchemical_production: float = 1.0
    all_production: float = 1.0
    construction_speed: float = 1.0
    research_speed: float = 1.0
    combat_bonus: float = 1.0
    raid_defense: float = 1.0
    population_growth: float = 1.0
    population_capacity: float = 1.0
    influence_generation: float = 1.0
    governor_xp_bonus: float = 1.0
    trade_bonus: float = 0.0
    plague_prevention: float = 1.0
    combat_casualties: float = 1.0
    food_events: float = 1.0
    resource_events: float = 1.0
    magical_events: float = 1.0
    unlock_advanced_buildings: bool = False
    monumental_projects: bool = False
    economic_victory: bool = False
    military_victory: bool = False
    scientific_victory: bool = False


IDENTITY_BONUS = TechnologyBonus()

FIELD_RULES: Dict[str, StackingRule] = {
    "farm_production": StackingRule.MULTIPLICATIVE,
    "mine_production": StackingRule.MULTIPLICATIVE,
    "quarry_production": StackingRule.MULTIPLICATIVE,
    "marketplace_production": StackingRule.MULTIPLICATIVE,
    "barracks_efficiency": StackingRule.MULTIPLICATIVE,
    "academy_efficiency": StackingRule.MULTIPLICATIVE,
    "military_efficiency": StackingRule.MULTIPLICATIVE,
    "alchemical_production": StackingRule.MULTIPLICATIVE,
    "all_production": StackingRule.MULTIPLICATIVE,
    "construction_speed": StackingRule.MULTIPLICATIVE,
    "research_speed": StackingRule.MULTIPLICATIVE,
    "combat_bonus": StackingRule.MULTIPLICATIVE,
    "raid_defense": StackingRule.MULTIPLICATIVE,
    "population_growth": StackingRule.MULTIPLICATIVE,
    "population_capacity": StackingRule.MULTIPLICATIVE,
    "influence_generation": StackingRule.MULTIPLICATIVE,
    "governor_xp_bonus": StackingRule.MULTIPLICATIVE,
    "trade_bonus": StackingRule.ADDITIVE,
    "plague_prevention": StackingRule.REDUCTION,
    "combat_casualties": StackingRule.REDUCTION,
    "food_events": StackingRule.EVENT,
    "resource_events": StackingRule.EVENT,
    "magical_events": StackingRule.EVENT,
}

# Technology effect key -> bonus field. Gold output has no dedicated building
# multiplier, so gold effects widen all production.
EFFECT_FIELDS: Dict[str, str] = {
    "food_production": "farm_production",
    "gold_production": "all_production",
    "iron_production": "mine_production",
    "stone_production": "quarry_production",
    "marketplace_production": "marketplace_production",
    "barracks_efficiency": "barracks_efficiency",
    "academy_efficiency": "academy_efficiency",
    "military_efficiency": "military_efficiency",
    "alchemical_production": "alchemical_production",
    "construction_speed": "construction_speed",
    "influence_production": "influence_generation",
    "all_production": "all_production",
    "research_speed": "research_speed",
    "population_growth": "population_growth",
    "population_capacity": "population_capacity",
    "trade_bonus": "trade_bonus",
    "combat_bonus": "combat_bonus",
    "raid_defense": "raid_defense",
    "governor_xp_bonus": "governor_xp_bonus",
    "plague_prevention": "plague_prevention",
    "combat_casualties": "combat_casualties",
    "food_events": "food_events",
    "resource_events": "resource_events",
    "magical_events": "magical_events",
}

UNLOCK_FLAGS: Dict[str, str] = {
    "advanced_buildings": "unlock_advanced_buildings",
    "monumental_projects": "monumental_projects",
    "economic_victory": "economic_victory",
    "military_victory": "military_victory",
    "scientific_victory": "scientific_victory",
}


@dataclass(frozen=True, slots=True)
class Synergy:
    name: str
    requires: frozenset[str]
    multipliers: Mapping[str, float] = field(default_factory=dict)
    additives: Mapping[str, float] = field(default_factory=dict)


SYNERGIES: tuple[Synergy, ...] = (
    Synergy("agriculture_medicine", frozenset({"AGRICULTURE_2", "MEDICINE"}), {"population_growth": 1.2}),
    Synergy("military_engineering", frozenset({"MILITARY_2", "ENGINEERING"}), {"raid_defense": 1.3}),
    Synergy("trade_scholarship", frozenset({"TRADE_2", "SCHOLARSHIP"}), {"influence_generation": 1.25}),
    Synergy(
        "all_tier1",
        frozenset({"AGRICULTURE_1", "MINING_1", "CONSTRUCTION_1", "TRADE_1", "MILITARY_1"}),
        {"all_production": 1.1},
    ),
    Synergy(
        "economic_mastery",
        frozenset({"AGRICULTURE_3", "INDUSTRIAL_MINING", "EMPIRE_TRADE"}),
        {"all_production": 1.2},
        {"trade_bonus": 0.15},
    ),
)

BUILDING_BONUS_FIELDS: Dict[BuildingKind, str] = {
    BuildingKind.FARM: "farm_production",
    BuildingKind.MINE: "mine_production",
    BuildingKind.QUARRY: "quarry_production",
    BuildingKind.MARKETPLACE: "marketplace_production",
    BuildingKind.BARRACKS: "barracks_efficiency",
    BuildingKind.ACADEMY: "academy_efficiency",
    BuildingKind.SMITHY: "military_efficiency",
}


def _apply_modifier(values: Dict[str, object], bonus_field: str, amount: float) -> None:
    rule = FIELD_RULES[bonus_field]
    if rule is StackingRule.ADDITIVE:
        values[bonus_field] = float(values[bonus_field]) + amount
    else:
        # Multiplicative, reduction and event fields all stack by product;
        # reductions are read as "lower is better".
        values[bonus_field] = float(values[bonus_field]) * amount


def active_synergies(keys: Iterable[str]) -> list[Synergy]:
    present = set(keys)
    return [synergy for synergy in SYNERGIES if synergy.requires <= present]


def compose_technology_bonus(
    researched_keys: Iterable[str],
    *,
    tables: BalanceTables | None = None,
) -> TechnologyBonus:
    """Fold the researched technologies into a single bonus bundle.

    Keys are de-duplicated and applied in sorted order so the floating-point
    result does not depend on how the caller ordered them. Unknown keys are
    skipped.
    """

    registry = (tables or default_tables()).technologies
    keys = sorted(set(researched_keys))
    values: Dict[str, object] = {f.name: getattr(IDENTITY_BONUS, f.name) for f in fields(TechnologyBonus)}

    for key in keys:
        spec = registry.get(key)
        if spec is None:
            continue
        for effect in sorted(spec.modifiers):
            bonus_field = EFFECT_FIELDS.get(effect)
            if bonus_field is None:
                continue
            _apply_modifier(values, bonus_field, float(spec.modifiers[effect]))
        for unlock in spec.unlocks:
            flag = UNLOCK_FLAGS.get(unlock)
            if flag is not None:
                values[flag] = True

    for synergy in active_synergies(key for key in keys if key in registry):
        for bonus_field, factor in synergy.multipliers.items():
            values[bonus_field] = float(values[bonus_field]) * factor
        for bonus_field, amount in synergy.additives.items():
            values[bonus_field] = float(values[bonus_field]) + amount

    return TechnologyBonus(**values)  # type: ignore[arg-type]


def building_multiplier(bonus: TechnologyBonus, kind: BuildingKind) -> float:
    bonus_field = BUILDING_BONUS_FIELDS.get(kind)
    return float(getattr(bonus, bonus_field)) if bonus_field else 1.0


def apply_building_bonus(
    rates: Mapping[ResourceKind, float],
    kind: BuildingKind,
    bonus: TechnologyBonus,
) -> Dict[ResourceKind, float]:
    multiplier = building_multiplier(bonus, kind)
    result: Dict[ResourceKind, float] = {}
    for resource, rate in rates.items():
        value = float(rate) * multiplier
        value *= bonus.all_production
        if value > 0:
            value *= 1.0 + bonus.trade_bonus
        result[resource] = value
    return result


@dataclass(frozen=True, slots=True)
class ResearchQuote:
    tech_key: str
    cost: ResourceBundle
    hours: int


def research_cost(
    tech_key: str,
    bonus: TechnologyBonus = IDENTITY_BONUS,
    *,
    tables: BalanceTables | None = None,
) -> ResearchQuote:
    spec = (tables or default_tables()).technologies.get(tech_key)
    if spec is None:
        raise ConfigurationError(f"Unknown technology: {tech_key!r}")
    hours = math.ceil(spec.research_hours / max(bonus.research_speed, 1e-9))
    return ResearchQuote(tech_key=tech_key, cost=ResourceBundle(dict(spec.cost)), hours=int(hours))


def available_technologies(
    researched_keys: Iterable[str],
    *,
    tables: BalanceTables | None = None,
) -> list[TechnologySpec]:
    researched = set(researched_keys)
    registry = (tables or default_tables()).technologies
    available = [
        spec
        for key, spec in registry.items()
        if key not in researched and all(prereq in researched for prereq in spec.prerequisites)
    ]
    return sorted(available, key=lambda spec: (spec.tier, spec.category))


@dataclass(frozen=True, slots=True)
class TechTreeBranch:
    tier: int
    category: str
    technologies: tuple[TechnologySpec, ...]


def technology_tree(*, tables: BalanceTables | None = None) -> list[TechTreeBranch]:
    grouped: Dict[tuple[int, str], list[TechnologySpec]] = {}
    for spec in (tables or default_tables()).technologies.values():
        grouped.setdefault((spec.tier, spec.category), []).append(spec)
    return [
        TechTreeBranch(tier=tier, category=category, technologies=tuple(specs))
        for (tier, category), specs in sorted(grouped.items(), key=lambda item: item[0])
    ]


__all__ = [
    "BUILDING_BONUS_FIELDS",
    "EFFECT_FIELDS",
    "FIELD_RULES",
    "IDENTITY_BONUS",
    "ResearchQuote",
    "SYNERGIES",
    "StackingRule",
    "Synergy",
    "TechTreeBranch",
    "TechnologyBonus",
    "active_synergies",
    "apply_building_bonus",
    "available_technologies",
    "building_multiplier",
    "compose_technology_bonus",
    "research_cost",
    "technology_tree",
]
