from __future__ import annotations

from dataclasses import dataclass

from idle_empire.runtime.tech_bonus import TechnologyBonus, compose_technology_bonus
from idle_empire.world.balance import BalanceTables, default_tables
from idle_empire.world.buildings import BuildingKind
from idle_empire.world.empire import Province
from idle_empire.world.governors import Personality, get_personality_profile
from idle_empire.world.resources import ResourceKind

BASE_PREPARATION = 0.1
MILITIA_SHARE = 0.1
GARRISON_PER_BARRACKS_LEVEL = 25
BARRACKS_BONUS_PER_LEVEL = 15
SMITHY_BONUS_PER_LEVEL = 10
GOLD_PER_RESERVE = 100


@dataclass(frozen=True, slots=True)
class DefenseForce:
    wall_level: int = 0
    watchtowers: int = 0
    garrison_size: int = 0
    militia_size: int = 0
    barracks_bonus: float = 0.0
    smithy_bonus: float = 0.0
    governor_bonus: float = 0.0
    governor_name: str = ""
    governor_personality: Personality | None = None
    governor_loyalty: int = 0
    population_morale: float = 50.0
    strategic_reserves: int = 0
    preparation_bonus: float = BASE_PREPARATION
    tactical_bonus: float = 0.0
    combat_multiplier: float = 1.0
    casualty_modifier: float = 1.0
    xp_multiplier: float = 1.0

    @property
    def nominal_size(self) -> int:
        return int(self.garrison_size) + int(self.militia_size)

    @property
    def has_governor(self) -> bool:
        return self.governor_personality is not None


def _clamp(lo: float, hi: float, value: float) -> float:
    return max(lo, min(hi, float(value)))


def calculate_defense_force(
    province: Province,
    bonus: TechnologyBonus | None = None,
    *,
    researched: set[str] | None = None,
    tables: BalanceTables | None = None,
) -> DefenseForce:
    """Aggregate a province's buildings, population and governor into a defense force."""

    tables = tables or default_tables()
    if bonus is None:
        bonus = compose_technology_bonus(researched or (), tables=tables)

    population = province.stock.get(ResourceKind.POPULATION)
    barracks = province.building_level(BuildingKind.BARRACKS)
    smithy = province.building_level(BuildingKind.SMITHY)

    governor = province.governor
    governor_bonus = 0.0
    preparation = BASE_PREPARATION
    tactical = 0.0
    if governor is not None:
        profile = get_personality_profile(governor.personality, tables.personalities)
        loyalty_factor = governor.loyalty / 100.0
        experience_factor = min(1.5, 1.0 + governor.xp / 2000.0)
        governor_bonus = profile.combat_leadership * loyalty_factor * experience_factor
        preparation = profile.preparation_bonus
        tactical = profile.tactical_bonus

    return DefenseForce(
        wall_level=province.building_level(BuildingKind.WALLS),
        watchtowers=province.building_level(BuildingKind.WATCHTOWER),
        garrison_size=barracks * GARRISON_PER_BARRACKS_LEVEL,
        militia_size=int(population * MILITIA_SHARE),
        barracks_bonus=float(barracks * BARRACKS_BONUS_PER_LEVEL) * bonus.barracks_efficiency,
        smithy_bonus=float(smithy * SMITHY_BONUS_PER_LEVEL) * bonus.military_efficiency,
        governor_bonus=governor_bonus,
        governor_name=governor.name if governor is not None else "",
        governor_personality=governor.personality if governor is not None else None,
        governor_loyalty=governor.loyalty if governor is not None else 0,
        population_morale=_clamp(0.0, 100.0, province.morale + population / 20.0),
        strategic_reserves=province.stock.get(ResourceKind.GOLD) // GOLD_PER_RESERVE,
        preparation_bonus=preparation,
        tactical_bonus=tactical,
        combat_multiplier=bonus.combat_bonus * bonus.raid_defense,
        casualty_modifier=bonus.combat_casualties,
        xp_multiplier=bonus.governor_xp_bonus,
    )


__all__ = ["DefenseForce", "calculate_defense_force"]
