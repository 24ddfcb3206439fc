"""Idle production: resources accrued between two settlement timestamps.

The hourly rate starts from a flat baseline, adds every building's
per-level output (after its technology multipliers), applies the governor's
personality modifiers and finally the empire-wide population and influence
bonuses. Deltas are the floored product of rate and elapsed hours.

Timed skill boosts add the extra output of their boosted rates over the part
of the settlement window they overlap. Concurrent boosts stack additively.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Mapping, Sequence

from idle_empire.runtime.tech_bonus import TechnologyBonus, apply_building_bonus, compose_technology_bonus
from idle_empire.world.balance import BalanceTables, default_tables
from idle_empire.world.buildings import BuildingInstance, BuildingKind
from idle_empire.world.governors import Personality, get_personality_profile
from idle_empire.world.resources import ResourceBundle, ResourceKind


@dataclass(frozen=True, slots=True)
class ProductionResult:
    deltas: Dict[ResourceKind, int]
    hourly_rates: Dict[ResourceKind, float]
    elapsed_hours: float

    def delta(self, kind: ResourceKind) -> int:
        return self.deltas.get(kind, 0)


@dataclass(frozen=True, slots=True)
class ProductionBoost:
    """A production multiplier active between two instants.

    ``buildings_only`` boosts building output before personality modifiers;
    otherwise the final rate of ``resource`` (or of every resource) is scaled.
    """

    multiplier: float
    starts_at: datetime
    ends_at: datetime
    buildings_only: bool = False
    resource: ResourceKind | None = None

    def overlap_hours(self, start: datetime, end: datetime) -> float:
        return elapsed_hours(max(start, self.starts_at), min(end, self.ends_at))


def elapsed_hours(last_tick: datetime, now: datetime) -> float:
    """Hours between ``last_tick`` and ``now``; clock skew reads as zero."""

    return max(0.0, (now - last_tick).total_seconds() / 3600.0)


def _instances(buildings: Iterable[BuildingInstance] | Mapping[BuildingKind, BuildingInstance]) -> list[BuildingInstance]:
    if isinstance(buildings, Mapping):
        return list(buildings.values())
    return list(buildings)


def hourly_rates(
    buildings: Iterable[BuildingInstance] | Mapping[BuildingKind, BuildingInstance],
    personality: Personality | str | None,
    researched_keys: Iterable[str] = (),
    *,
    bonus: TechnologyBonus | None = None,
    tables: BalanceTables | None = None,
    building_multiplier: float = 1.0,
) -> Dict[ResourceKind, float]:
    tables = tables or default_tables()
    if bonus is None:
        bonus = compose_technology_bonus(researched_keys, tables=tables)

    rates: Dict[ResourceKind, float] = {kind: 0.0 for kind in ResourceKind}
    for kind, amount in tables.baseline_production.items():
        rates[kind] += float(amount)

    for building in _instances(buildings):
        table = tables.building_production.get(building.kind)
        if not table:
            continue
        boosted = apply_building_bonus(table, building.kind, bonus)
        for kind, rate in boosted.items():
            rates[kind] += rate * building.level * building_multiplier

    if personality is not None:
        profile = get_personality_profile(personality, tables.personalities)
        for kind in ResourceKind:
            rates[kind] *= float(profile.production_modifiers.get(kind, 1.0))

    rates[ResourceKind.POPULATION] *= bonus.population_growth
    rates[ResourceKind.INFLUENCE] *= bonus.influence_generation
    return rates


def _boost_extra(
    boost: ProductionBoost,
    rates: Mapping[ResourceKind, float],
    buildings: list[BuildingInstance],
    personality: Personality | str | None,
    researched_keys: Sequence[str],
    tables: BalanceTables | None,
) -> Dict[ResourceKind, float]:
    if boost.buildings_only:
        boosted = hourly_rates(
            buildings,
            personality,
            researched_keys,
            tables=tables,
            building_multiplier=boost.multiplier,
        )
        return {kind: boosted[kind] - rates[kind] for kind in rates}
    return {
        kind: rate * (boost.multiplier - 1.0) if boost.resource in (None, kind) else 0.0
        for kind, rate in rates.items()
    }


def calculate_production(
    buildings: Iterable[BuildingInstance] | Mapping[BuildingKind, BuildingInstance],
    personality: Personality | str | None,
    last_tick: datetime,
    researched_keys: Iterable[str],
    now: datetime,
    *,
    tables: BalanceTables | None = None,
    boosts: Iterable[ProductionBoost] = (),
) -> ProductionResult:
    hours = elapsed_hours(last_tick, now)
    instances = _instances(buildings)
    researched = sorted(researched_keys)
    rates = hourly_rates(instances, personality, researched, tables=tables)
    totals = {kind: rate * hours for kind, rate in rates.items()}
    for boost in boosts:
        overlap = boost.overlap_hours(last_tick, now)
        if overlap <= 0:
            continue
        for kind, extra in _boost_extra(boost, rates, instances, personality, researched, tables).items():
            totals[kind] += extra * overlap
    deltas = {kind: int(math.floor(total)) for kind, total in totals.items()}
    return ProductionResult(deltas=deltas, hourly_rates=rates, elapsed_hours=hours)


def settle_stock(stock: ResourceBundle, result: ProductionResult) -> ResourceBundle:
    """Apply ``result`` to ``stock`` in place; upkeep never drives a resource below zero."""

    for kind in ResourceKind:
        stock.apply_delta(kind, result.delta(kind))
    return stock


__all__ = [
    "ProductionBoost",
    "ProductionResult",
    "calculate_production",
    "elapsed_hours",
    "hourly_rates",
    "settle_stock",
]
