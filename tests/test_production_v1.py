from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

from idle_empire.runtime.production import ProductionBoost, calculate_production, elapsed_hours, settle_stock
from idle_empire.world.balance import BalanceTables
from idle_empire.world.buildings import BuildingInstance, BuildingKind
from idle_empire.world.governors import Personality
from idle_empire.world.resources import ResourceBundle, ResourceKind

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_conservative_farm_example():
    farms = [BuildingInstance(BuildingKind.FARM, 3)]

    result = calculate_production(farms, Personality.CONSERVATIVE, T0, set(), T0 + timedelta(hours=2))

    assert result.elapsed_hours == 2.0
    assert result.delta(ResourceKind.FOOD) == math.floor((25 + 3 * 50) * 1.2 * 2.0)


def test_clock_skew_reads_as_zero_elapsed():
    farms = [BuildingInstance(BuildingKind.FARM, 2)]

    result = calculate_production(farms, None, T0, set(), T0 - timedelta(hours=5))

    assert elapsed_hours(T0, T0 - timedelta(hours=5)) == 0.0
    assert result.elapsed_hours == 0.0
    assert all(delta == 0 for delta in result.deltas.values())


def test_non_negative_rates_never_yield_negative_deltas():
    buildings = {
        BuildingKind.FARM: BuildingInstance(BuildingKind.FARM, 4),
        BuildingKind.MINE: BuildingInstance(BuildingKind.MINE, 2),
        BuildingKind.MARKETPLACE: BuildingInstance(BuildingKind.MARKETPLACE, 1),
    }

    result = calculate_production(buildings, Personality.MERCHANT, T0, {"MINING_1"}, T0 + timedelta(minutes=95))

    for kind, rate in result.hourly_rates.items():
        if rate >= 0:
            assert result.delta(kind) >= 0


def test_repeated_calls_are_identical():
    buildings = [BuildingInstance(BuildingKind.QUARRY, 3), BuildingInstance(BuildingKind.ACADEMY, 1)]
    now = T0 + timedelta(hours=7, minutes=13)

    first = calculate_production(buildings, Personality.EXPLORER, T0, {"ENGINEERING", "CONSTRUCTION_1"}, now)
    second = calculate_production(buildings, Personality.EXPLORER, T0, {"CONSTRUCTION_1", "ENGINEERING"}, now)

    assert first == second


def test_technology_multiplies_building_output():
    farms = [BuildingInstance(BuildingKind.FARM, 3)]

    result = calculate_production(farms, None, T0, {"AGRICULTURE_1"}, T0 + timedelta(hours=1))

    assert result.delta(ResourceKind.FOOD) == 212


def test_upkeep_is_clamped_when_settled():
    barracks = [BuildingInstance(BuildingKind.BARRACKS, 5)]
    stock = ResourceBundle.of(food=30)

    result = calculate_production(barracks, None, T0, set(), T0 + timedelta(hours=2))
    settle_stock(stock, result)

    assert result.delta(ResourceKind.FOOD) == -50
    assert stock.get(ResourceKind.FOOD) == 0
    assert stock.get(ResourceKind.INFLUENCE) == result.delta(ResourceKind.INFLUENCE)


def test_swapped_tables_change_rates():
    tables = BalanceTables(baseline_production={ResourceKind.FOOD: 0.0}, building_production={})
    farms = [BuildingInstance(BuildingKind.FARM, 3)]

    result = calculate_production(farms, None, T0, set(), T0 + timedelta(hours=10), tables=tables)

    assert all(delta == 0 for delta in result.deltas.values())


def test_boost_only_pays_for_its_overlap():
    farms = [BuildingInstance(BuildingKind.FARM, 1)]
    half_hour = ProductionBoost(2.0, T0 + timedelta(minutes=30), T0 + timedelta(hours=5))

    result = calculate_production(farms, None, T0, set(), T0 + timedelta(hours=1), boosts=[half_hour])

    assert result.delta(ResourceKind.FOOD) == math.floor(75 + 75 * 0.5)
    assert result.hourly_rates[ResourceKind.FOOD] == 75.0


def test_expired_boost_adds_nothing():
    farms = [BuildingInstance(BuildingKind.FARM, 1)]
    stale = ProductionBoost(3.0, T0 - timedelta(hours=2), T0 - timedelta(hours=1))

    boosted = calculate_production(farms, None, T0, set(), T0 + timedelta(hours=1), boosts=[stale])
    plain = calculate_production(farms, None, T0, set(), T0 + timedelta(hours=1))

    assert boosted == plain


def test_building_boost_leaves_baseline_alone():
    farms = [BuildingInstance(BuildingKind.FARM, 1)]
    enchant = ProductionBoost(1.75, T0, T0 + timedelta(hours=1), buildings_only=True)

    result = calculate_production(farms, None, T0, set(), T0 + timedelta(hours=1), boosts=[enchant])

    assert result.delta(ResourceKind.FOOD) == math.floor(25 + 50 * 1.75)


def test_resource_boost_targets_one_resource():
    farms = [BuildingInstance(BuildingKind.FARM, 1)]
    regen = ProductionBoost(2.0, T0, T0 + timedelta(hours=1), resource=ResourceKind.MANA)

    result = calculate_production(farms, None, T0, set(), T0 + timedelta(hours=1), boosts=[regen])

    assert result.delta(ResourceKind.MANA) == 2
    assert result.delta(ResourceKind.FOOD) == 75
