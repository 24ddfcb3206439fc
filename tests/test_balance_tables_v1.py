from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from idle_empire.errors import ConfigurationError
from idle_empire.runtime.production import calculate_production
from idle_empire.world.balance import apply_overrides, default_tables, load_balance_tables
from idle_empire.world.buildings import BuildingInstance, BuildingKind, building_upgrade_cost
from idle_empire.world.governors import Personality
from idle_empire.world.resources import ResourceKind

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _write(tmp_path, payload) -> str:
    path = tmp_path / "balance.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_json_overlay_retunes_production(tmp_path):
    tables = load_balance_tables(
        _write(tmp_path, {"baseline_production": {"food": 0}, "building_production": {"FARM": {"food": 60}}})
    )
    farms = [BuildingInstance(BuildingKind.FARM, 2)]

    result = calculate_production(farms, None, T0, set(), T0 + timedelta(hours=1), tables=tables)

    assert result.delta(ResourceKind.FOOD) == 120
    assert default_tables().baseline_production[ResourceKind.FOOD] == 25.0
    assert default_tables().building_production[BuildingKind.FARM][ResourceKind.FOOD] == 50.0


def test_building_overrides_feed_cost_lookup(tmp_path):
    tables = load_balance_tables(_write(tmp_path, {"buildings": {"FARM": {"build_hours": 2, "cost": {"gold": 90}}}}))

    quote = building_upgrade_cost(BuildingKind.FARM, 0, registry=tables.buildings)

    assert quote.cost.as_dict() == {"gold": 90}
    assert quote.hours == 2.0


def test_modifier_overrides_merge():
    tables = apply_overrides(default_tables(), {"technologies": {"MINING_1": {"modifiers": {"iron_production": 2.0}}}})

    modifiers = tables.technologies["MINING_1"].modifiers
    assert modifiers == {"gold_production": 1.2, "iron_production": 2.0}


def test_personality_overrides():
    tables = apply_overrides(default_tables(), {"personalities": {"merchant": {"building_priorities": {"SMITHY": 9}}}})

    priorities = tables.personalities[Personality.MERCHANT].building_priorities
    assert priorities[BuildingKind.SMITHY] == 9
    assert priorities[BuildingKind.MARKETPLACE] == 10


def test_enemy_and_event_overrides():
    tables = apply_overrides(
        default_tables(),
        {"enemies": {"WOLF_PACK": {"spawn_weight": 5}}, "events": {"ANCIENT_CACHE": {"weight": 30}}},
    )

    assert tables.enemies["WOLF_PACK"].spawn_weight == 5
    assert tables.events["ANCIENT_CACHE"].spawn_weight == pytest.approx(30.0)
    assert default_tables().enemies["WOLF_PACK"].spawn_weight == 20.0


def test_unknown_entries_raise_configuration_error():
    with pytest.raises(ConfigurationError):
        apply_overrides(default_tables(), {"technologies": {"TIME_TRAVEL": {"research_hours": 1}}})
    with pytest.raises(ConfigurationError):
        apply_overrides(default_tables(), {"buildings": {"CATHEDRAL": {"build_hours": 1}}})
    with pytest.raises(ConfigurationError):
        apply_overrides(default_tables(), {"personalities": {"CONSERVATIVE": {"building_priorities": {"CASTLE": 50}}}})
    with pytest.raises(ConfigurationError):
        apply_overrides(default_tables(), {"personalities": {"CONSERVATIVE": {"research_priorities": {"NOPE": 50}}}})
    with pytest.raises(ConfigurationError):
        apply_overrides(default_tables(), {"technologies": {"MINING_2": {"prerequisites": ["NOPE"]}}})
    with pytest.raises(ConfigurationError):
        apply_overrides(default_tables(), {"skills": {"FIREBALL": {"energy_cost": 1}}})


def test_malformed_documents_raise_value_error(tmp_path):
    with pytest.raises(ValueError):
        apply_overrides(default_tables(), {"weather": {}})
    with pytest.raises(ValueError):
        apply_overrides(default_tables(), {"buildings": {"FARM": {"colour": "red"}}})
    with pytest.raises(ValueError):
        apply_overrides(default_tables(), {"baseline_production": {"unobtainium": 3}})
    with pytest.raises(ValueError):
        load_balance_tables(_write(tmp_path, [1, 2, 3]))


def test_skill_overrides():
    tables = apply_overrides(
        default_tables(),
        {"skills": {"HARVEST_BOOST": {"energy_cost": 15, "resource_costs": {"gold": 10}, "required_techs": []}}},
    )

    harvest = tables.skills["HARVEST_BOOST"]
    assert harvest.energy_cost == 15
    assert harvest.resource_costs.as_dict() == {"gold": 10}
    assert harvest.required_techs == ()
    assert default_tables().skills["HARVEST_BOOST"].energy_cost == 20
