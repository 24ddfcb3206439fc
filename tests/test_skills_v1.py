from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from idle_empire.errors import ConfigurationError, InsufficientResourcesError, SkillUnavailableError
from idle_empire.runtime.session import EmpireSession, SessionConfig
from idle_empire.runtime.skills import (
    active_effect_value,
    check_skill_requirements,
    consume_combat_buffs,
    get_skill,
    production_boosts,
    prune_skill_effects,
    scale_skill,
    unlock_skill,
    use_skill,
)
from idle_empire.world.buildings import BuildingKind
from idle_empire.world.empire import ConstructionTask, Empire, RaidEvent, make_province
from idle_empire.world.resources import ResourceKind
from idle_empire.world.skills import PlayerSkill, SkillEffectType

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)

QUIET = SessionConfig(governor_act_chance=0.0, raid_chance=0.0, max_concurrent_events=0)


def _empire(stock=None, *, buildings=None, researched=(), skills=()) -> Empire:
    empire = Empire(empire_id="empire:test", researched=set(researched))
    province = make_province("a", "Capital", buildings=buildings or {"FARM": 1}, stock=dict(stock or {}))
    province.last_production_at = T0
    empire.add_province(province)
    for key in skills:
        empire.skills[key] = PlayerSkill(key=key, unlocked=True)
    return empire


def test_level_scaling_and_caps():
    harvest = get_skill("HARVEST_BOOST")

    third = scale_skill(harvest, 3)
    assert third.effects[0].value == pytest.approx(3.75)
    assert third.cooldown_seconds == pytest.approx(240.0)
    assert third.energy_cost == 18

    capped = scale_skill(harvest, 10)
    assert capped.level == harvest.max_level == 5
    assert capped.effects[0].value == pytest.approx(5.0)
    assert capped.cooldown_seconds == pytest.approx(180.0)
    assert capped.energy_cost == 16


def test_requirements_list_everything_missing():
    check = check_skill_requirements("MARKET_MANIPULATION", 1, [], [])

    assert not check.can_unlock
    assert check.missing == (
        "Level 12 required",
        "Technology: TRADE_1",
        "Technology: SCHOLARSHIP",
        "Skill: Instant Collection",
    )
    assert check_skill_requirements("MARKET_MANIPULATION", 12, ["TRADE_1", "SCHOLARSHIP"], ["INSTANT_COLLECT"]).can_unlock


def test_unknown_skill_raises():
    with pytest.raises(ConfigurationError):
        check_skill_requirements("FIREBALL", 99, [], [])
    with pytest.raises(ConfigurationError):
        use_skill(_empire(), "FIREBALL", T0)


def test_unlock_needs_level_and_technology():
    empire = _empire(buildings={"FARM": 10, "MINE": 10})
    assert empire.player_level() == 5

    with pytest.raises(SkillUnavailableError):
        unlock_skill(empire, "HARVEST_BOOST", T0)

    empire.researched.add("AGRICULTURE_2")
    skill = unlock_skill(empire, "HARVEST_BOOST", T0)
    assert skill.unlocked and skill.unlocked_at == T0
    assert empire.unlocked_skills() == {"HARVEST_BOOST"}

    with pytest.raises(SkillUnavailableError):
        unlock_skill(empire, "HARVEST_BOOST", T0)


def test_use_pays_energy_and_starts_cooldown():
    empire = _empire({"energy": 100}, skills=["HARVEST_BOOST"])

    activation = use_skill(empire, "HARVEST_BOOST", T0)

    assert empire.provinces["a"].stock.get(ResourceKind.ENERGY) == 80
    assert activation.resources_used.as_dict() == {"energy": 20}
    assert [effect.type for effect in activation.effects] == [SkillEffectType.PRODUCTION_MULTIPLIER]
    assert activation.effects[0].expires_at == T0 + timedelta(seconds=300)

    skill = empire.skills["HARVEST_BOOST"]
    assert skill.times_used == 1 and skill.experience == 10
    with pytest.raises(SkillUnavailableError):
        use_skill(empire, "HARVEST_BOOST", T0 + timedelta(seconds=60))
    use_skill(empire, "HARVEST_BOOST", T0 + timedelta(seconds=300))
    assert empire.provinces["a"].stock.get(ResourceKind.ENERGY) == 60


def test_locked_or_unaffordable_skill_is_refused():
    empire = _empire({"energy": 5})

    with pytest.raises(SkillUnavailableError):
        use_skill(empire, "HARVEST_BOOST", T0)

    empire.skills["HARVEST_BOOST"] = PlayerSkill(key="HARVEST_BOOST", unlocked=True)
    with pytest.raises(InsufficientResourcesError):
        use_skill(empire, "HARVEST_BOOST", T0)
    assert empire.provinces["a"].stock.get(ResourceKind.ENERGY) == 5
    assert empire.skills["HARVEST_BOOST"].cooldown_expires_at is None


def test_instant_collect_grants_two_hours_of_output():
    empire = _empire({"gold": 100, "energy": 30}, skills=["INSTANT_COLLECT"])
    province = empire.provinces["a"]

    activation = use_skill(empire, "INSTANT_COLLECT", T0)

    assert province.stock.get(ResourceKind.FOOD) == 150
    assert province.stock.get(ResourceKind.GOLD) == 40
    assert activation.resources_granted.get(ResourceKind.FOOD) == 150
    assert province.last_production_at == T0


def test_mana_surge_restores_and_boosts_regeneration():
    empire = _empire({"gold": 50}, skills=["MANA_SURGE"])
    empire.add_province(make_province("b", "Outpost"))

    use_skill(empire, "MANA_SURGE", T0)

    assert empire.provinces["a"].stock.get(ResourceKind.MANA) == 50
    assert empire.provinces["b"].stock.get(ResourceKind.MANA) == 0
    boosts = production_boosts(empire, "b")
    assert len(boosts) == 1
    assert boosts[0].resource is ResourceKind.MANA and boosts[0].multiplier == 2.0


def test_enchantment_reaches_only_its_province():
    empire = _empire({"gold": 500, "mana": 80}, skills=["ENCHANT_BUILDINGS"])
    empire.add_province(make_province("b", "Outpost"))

    use_skill(empire, "ENCHANT_BUILDINGS", T0, province_id="b")

    assert production_boosts(empire, "a") == []
    (boost,) = production_boosts(empire, "b")
    assert boost.buildings_only and boost.multiplier == 1.75


def test_rally_rushes_only_military_construction():
    empire = _empire({"gold": 300, "influence": 100, "energy": 50}, skills=["RALLY_TROOPS"])
    province = empire.provinces["a"]
    later = T0 + timedelta(hours=3)
    province.constructions.append(ConstructionTask("c1", "a", BuildingKind.BARRACKS, 1, started_at=T0, completes_at=later))
    province.constructions.append(ConstructionTask("c2", "a", BuildingKind.FARM, 2, started_at=T0, completes_at=later))

    activation = use_skill(empire, "RALLY_TROOPS", T0)

    assert activation.constructions_rushed == ["c1"]
    assert province.constructions[0].completes_at == T0
    assert province.constructions[1].completes_at == later


def test_combat_buffs_are_spent_once():
    empire = _empire({"influence": 20, "energy": 25}, skills=["BATTLE_FURY"])
    use_skill(empire, "BATTLE_FURY", T0)

    assert consume_combat_buffs(empire, T0 + timedelta(hours=2)) == pytest.approx(1.875)
    assert consume_combat_buffs(empire, T0 + timedelta(hours=2)) == 1.0
    assert prune_skill_effects(empire, T0) == 2
    assert empire.skill_effects == []


def test_session_pays_out_boost_then_prunes_it():
    plain = _empire({"energy": 100})
    boosted = _empire({"energy": 100}, skills=["HARVEST_BOOST"])
    plain_session = EmpireSession(plain, seed=1, clock=lambda: T0, cfg=QUIET)
    boosted_session = EmpireSession(boosted, seed=1, clock=lambda: T0, cfg=QUIET)

    boosted_session.use_skill("HARVEST_BOOST")
    plain_session.tick(T0 + timedelta(hours=1))
    boosted_session.tick(T0 + timedelta(hours=1))

    gain = boosted.provinces["a"].stock.get(ResourceKind.FOOD) - plain.provinces["a"].stock.get(ResourceKind.FOOD)
    assert gain == pytest.approx(75 * 1.5 * 300 / 3600, abs=1)
    assert boosted.skill_effects == []
    assert boosted_session.event_ring.of_type("SKILL_USED")[0]["skill"] == "HARVEST_BOOST"
    assert boosted_session.metrics.counter("skills.used") == 1


def test_session_raid_spends_battle_fury():
    empire = _empire({"influence": 20, "energy": 25, "population": 200}, skills=["BATTLE_FURY"])
    empire.provinces["a"].raids.append(
        RaidEvent("raid:1", "a", "WOLF_PACK", spawned_at=T0, arrives_at=T0 + timedelta(minutes=15))
    )
    session = EmpireSession(empire, seed=3, clock=lambda: T0, cfg=QUIET)

    session.use_skill("BATTLE_FURY")
    session.tick(T0 + timedelta(minutes=20))

    assert session.metrics.counter("skills.combat_buffs_spent") == 1
    assert empire.skill_effects == []


def test_recorded_effects_are_queryable_until_they_lapse():
    empire = _empire({"gold": 200, "influence": 50, "energy": 40, "mana": 10}, skills=["MARKET_MANIPULATION"])

    use_skill(empire, "MARKET_MANIPULATION", T0)

    assert active_effect_value(empire, SkillEffectType.COST_REDUCTION, T0 + timedelta(minutes=5)) == pytest.approx(0.3)
    assert active_effect_value(empire, SkillEffectType.COST_REDUCTION, T0 + timedelta(minutes=10)) == 0.0
    assert active_effect_value(empire, SkillEffectType.TIME_MULTIPLIER, T0) == 0.0
