from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from idle_empire.world.resources import ResourceBundle, ResourceKind


@dataclass(frozen=True, slots=True)
class TechnologySpec:
    key: str
    name: str
    description: str
    tier: int
    category: str
    research_hours: float
    cost: Mapping[ResourceKind, int]
    prerequisites: tuple[str, ...] = ()
    modifiers: Mapping[str, float] = field(default_factory=dict)
    unlocks: tuple[str, ...] = ()


def _tech(
    key: str,
    name: str,
    *,
    description: str,
    tier: int,
    category: str,
    research_hours: float,
    cost: Mapping[str, int],
    prerequisites: Iterable[str] | None = None,
    modifiers: Mapping[str, float] | None = None,
    unlocks: Iterable[str] | None = None,
) -> TechnologySpec:
    return TechnologySpec(
        key=key,
        name=name,
        description=description,
        tier=int(tier),
        category=category,
        research_hours=float(research_hours),
        cost=ResourceBundle(dict(cost)).amounts,
        prerequisites=tuple(prerequisites or ()),
        modifiers=dict(modifiers or {}),
        unlocks=tuple(unlocks or ()),
    )


def technology_registry() -> dict[str, TechnologySpec]:
    techs = [
        # Tier 1
        _tech(
            "AGRICULTURE_1",
            "Agricultural Techniques",
            description="+25% food production from farms",
            tier=1,
            category="ECONOMY",
            research_hours=2,
            cost={"gold": 200, "influence": 10},
            modifiers={"food_production": 1.25},
        ),
        _tech(
            "MINING_1",
            "Mining Techniques",
            description="+20% gold and iron production",
            tier=1,
            category="ECONOMY",
            research_hours=3,
            cost={"gold": 300, "stone": 100, "influence": 15},
            modifiers={"gold_production": 1.2, "iron_production": 1.2},
        ),
        _tech(
            "CONSTRUCTION_1",
            "Advanced Construction",
            description="-25% construction time",
            tier=1,
            category="INFRASTRUCTURE",
            research_hours=4,
            cost={"gold": 400, "stone": 200, "influence": 20},
            modifiers={"construction_speed": 1.33},
        ),
        _tech(
            "MILITARY_1",
            "Military Organization",
            description="+30% influence, +10% combat strength",
            tier=1,
            category="MILITARY",
            research_hours=5,
            cost={"gold": 500, "iron": 150, "influence": 25},
            prerequisites=("CONSTRUCTION_1",),
            modifiers={"influence_production": 1.3, "combat_bonus": 1.1},
        ),
        _tech(
            "TRADE_1",
            "Trade Networks",
            description="+40% gold production from all sources",
            tier=1,
            category="ECONOMY",
            research_hours=6,
            cost={"gold": 600, "influence": 30},
            prerequisites=("MINING_1",),
            modifiers={"gold_production": 1.4},
        ),
        # Tier 2
        _tech(
            "AGRICULTURE_2",
            "Crop Rotation",
            description="+50% food production from farms",
            tier=2,
            category="ECONOMY",
            research_hours=8,
            cost={"gold": 800, "food": 200, "influence": 40},
            prerequisites=("AGRICULTURE_1",),
            modifiers={"food_production": 1.5},
        ),
        _tech(
            "MINING_2",
            "Deep Shafts",
            description="+60% gold and iron production",
            tier=2,
            category="ECONOMY",
            research_hours=10,
            cost={"gold": 1200, "stone": 400, "iron": 200, "influence": 50},
            prerequisites=("MINING_1",),
            modifiers={"gold_production": 1.6, "iron_production": 1.6},
        ),
        _tech(
            "ENGINEERING",
            "Engineering",
            description="+40% construction speed, +20% quarry output",
            tier=2,
            category="INFRASTRUCTURE",
            research_hours=12,
            cost={"gold": 1000, "stone": 500, "influence": 60},
            prerequisites=("CONSTRUCTION_1",),
            modifiers={"construction_speed": 1.4, "stone_production": 1.2},
        ),
        _tech(
            "MILITARY_2",
            "Professional Army",
            description="+100% influence from military buildings, +25% combat strength",
            tier=2,
            category="MILITARY",
            research_hours=14,
            cost={"gold": 1500, "iron": 600, "influence": 80},
            prerequisites=("MILITARY_1",),
            modifiers={"influence_production": 2.0, "combat_bonus": 1.25},
        ),
        _tech(
            "SCHOLARSHIP",
            "Scholarship",
            description="+25% research speed",
            tier=2,
            category="SCIENCE",
            research_hours=16,
            cost={"gold": 1000, "stone": 300, "influence": 100},
            prerequisites=("CONSTRUCTION_1",),
            modifiers={"research_speed": 1.25, "academy_efficiency": 1.2},
        ),
        _tech(
            "MEDICINE",
            "Medicine",
            description="Fewer casualties and plagues, +10% population growth",
            tier=2,
            category="SCIENCE",
            research_hours=12,
            cost={"gold": 900, "food": 300, "influence": 60},
            prerequisites=("AGRICULTURE_1",),
            modifiers={"population_growth": 1.1, "plague_prevention": 0.7, "combat_casualties": 0.85},
        ),
        _tech(
            "TRADE_2",
            "Merchant Guilds",
            description="+10% trade bonus, +25% marketplace output",
            tier=2,
            category="ECONOMY",
            research_hours=12,
            cost={"gold": 1400, "influence": 70},
            prerequisites=("TRADE_1",),
            modifiers={"trade_bonus": 0.1, "marketplace_production": 1.25},
        ),
        _tech(
            "FORTIFICATION",
            "Fortification",
            description="+30% raid defense",
            tier=2,
            category="MILITARY",
            research_hours=10,
            cost={"gold": 900, "stone": 700, "influence": 50},
            prerequisites=("CONSTRUCTION_1",),
            modifiers={"raid_defense": 1.3, "barracks_efficiency": 1.15},
        ),
        # Tier 3
        _tech(
            "AGRICULTURE_3",
            "Irrigation Works",
            description="+40% food production, larger population capacity",
            tier=3,
            category="ECONOMY",
            research_hours=20,
            cost={"gold": 2000, "food": 600, "stone": 800, "influence": 120},
            prerequisites=("AGRICULTURE_2",),
            modifiers={"food_production": 1.4, "population_capacity": 1.25},
        ),
        _tech(
            "INDUSTRIAL_MINING",
            "Industrial Mining",
            description="+50% mine output",
            tier=3,
            category="ECONOMY",
            research_hours=22,
            cost={"gold": 2500, "stone": 800, "iron": 600, "influence": 140},
            prerequisites=("MINING_2",),
            modifiers={"iron_production": 1.5, "all_production": 1.05},
        ),
        _tech(
            "EMPIRE_TRADE",
            "Imperial Trade Routes",
            description="+20% trade bonus; opens the path to economic victory",
            tier=3,
            category="ECONOMY",
            research_hours=24,
            cost={"gold": 3000, "influence": 200},
            prerequisites=("TRADE_2",),
            modifiers={"trade_bonus": 0.2},
            unlocks=("economic_victory",),
        ),
        _tech(
            "ARCHITECTURE",
            "Architecture",
            description="Unlocks advanced buildings and monumental projects",
            tier=3,
            category="INFRASTRUCTURE",
            research_hours=24,
            cost={"gold": 2500, "stone": 1500, "influence": 150},
            prerequisites=("ENGINEERING",),
            modifiers={"construction_speed": 1.2},
            unlocks=("advanced_buildings", "monumental_projects"),
        ),
        _tech(
            "WAR_COLLEGE",
            "War College",
            description="+20% combat strength, faster governor learning",
            tier=3,
            category="MILITARY",
            research_hours=26,
            cost={"gold": 2800, "iron": 1200, "influence": 180},
            prerequisites=("MILITARY_2", "FORTIFICATION"),
            modifiers={"combat_bonus": 1.2, "governor_xp_bonus": 1.25, "military_efficiency": 1.15},
            unlocks=("military_victory",),
        ),
        _tech(
            "ARCANE_STUDIES",
            "Arcane Studies",
            description="Harness mana; more magical events",
            tier=3,
            category="SCIENCE",
            research_hours=28,
            cost={"gold": 2200, "influence": 220, "mana": 50},
            prerequisites=("SCHOLARSHIP",),
            modifiers={"research_speed": 1.2, "magical_events": 1.5, "alchemical_production": 1.3},
            unlocks=("scientific_victory",),
        ),
    ]
    return {tech.key: tech for tech in techs}


__all__ = ["TechnologySpec", "technology_registry"]
