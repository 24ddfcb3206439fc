from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from idle_empire.errors import ConfigurationError
from idle_empire.runtime.events import (
    apply_event_resolution,
    calculate_event_chance,
    can_afford_choice,
    create_event_instance,
    eligible_events,
    event_weight,
    process_event_choice,
)
from idle_empire.runtime.tech_bonus import compose_technology_bonus
from idle_empire.world.balance import default_tables
from idle_empire.world.empire import Empire, make_province
from idle_empire.world.governors import Governor, Personality
from idle_empire.world.resources import ResourceBundle, ResourceKind

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _seed_empire(*, provinces: int = 1, **province_kwargs):
    empire = Empire(empire_id="empire:test")
    first = empire.add_province(make_province("p1", "Capital", **province_kwargs))
    for idx in range(2, provinces + 1):
        empire.add_province(make_province(f"p{idx}", f"Colony {idx}"))
    return empire, first


def _event(key: str):
    return default_tables().events[key]


def test_base_event_chance():
    empire, province = _seed_empire()

    assert calculate_event_chance(province, empire) == pytest.approx(0.15)


def test_event_chance_is_capped():
    governor = Governor(name="Lyra", personality=Personality.EXPLORER)
    empire, province = _seed_empire(provinces=4, level=4, threat=6, governor=governor)

    assert calculate_event_chance(province, empire) == pytest.approx(0.4)


def test_conservative_governor_lowers_chance():
    governor = Governor(name="Lyra", personality=Personality.CONSERVATIVE)
    empire, province = _seed_empire(governor=governor)

    assert calculate_event_chance(province, empire) == pytest.approx(0.12)


def test_eligibility_requires_buildings_and_provinces():
    empire, province = _seed_empire()
    keys = {event.key for event in eligible_events(province, empire)}

    assert keys == {"ANCIENT_CACHE", "FERTILE_SOIL", "WAREHOUSE_FIRE", "PLAGUE_OUTBREAK", "BARBARIAN_SCOUTS"}

    empire, province = _seed_empire(provinces=2, buildings={"MARKETPLACE": 1, "ACADEMY": 1, "MINE": 2})
    keys = {event.key for event in eligible_events(province, empire)}
    assert {"MERCHANT_CARAVAN", "ROYAL_ENVOY", "MANA_SPRING", "CRYSTAL_DISCOVERY"} <= keys


def test_choice_processing_merges_cost_and_gains():
    resolution = process_event_choice("preserve_site", _event("ANCIENT_CACHE"), random.Random(0))

    assert resolution.resource_changes == {ResourceKind.GOLD: 100, ResourceKind.INFLUENCE: 100}
    assert resolution.governor_xp_gain == 150
    assert resolution.schedule_followup is False


def test_unknown_choice_raises():
    with pytest.raises(ConfigurationError):
        process_event_choice("flee", _event("ANCIENT_CACHE"), random.Random(0))


def test_followup_roll_uses_choice_chance():
    event = _event("BARBARIAN_SCOUTS")
    rng = random.Random(8)

    rolls = [process_event_choice("ignore_scouts", event, rng).schedule_followup for _ in range(2_000)]

    assert 0.55 < sum(rolls) / len(rolls) < 0.65


def test_affordability_lists_missing_resources():
    event = _event("ANCIENT_CACHE")
    stock = ResourceBundle.of(gold=100)

    poor = can_afford_choice("preserve_site", event, stock)
    assert not poor.can_afford
    assert [(m.resource, m.needed, m.have) for m in poor.missing] == [(ResourceKind.GOLD, 300, 100)]

    assert can_afford_choice("take_all", event, stock).can_afford


def test_choice_requirements_checked_against_province():
    empire, province = _seed_empire(stock={"influence": 500})

    check = can_afford_choice("magical_intervention", _event("WAREHOUSE_FIRE"), province.stock, province=province, empire=empire)

    assert check.missing == ()
    assert check.requirements_met is False
    assert check.can_afford is False


def test_applying_losses_never_goes_negative():
    governor = Governor(name="Lyra", personality=Personality.MERCHANT, loyalty=5)
    _, province = _seed_empire(stock={"food": 100}, governor=governor)

    resolution = process_event_choice("let_burn", _event("WAREHOUSE_FIRE"), random.Random(0))
    apply_event_resolution(province, resolution)

    assert province.stock.get(ResourceKind.FOOD) == 0
    assert all(qty >= 0 for qty in province.stock.amounts.values())
    assert governor.loyalty == 0


def test_arcane_research_boosts_artifact_weight():
    mana_spring = _event("MANA_SPRING")

    assert event_weight(mana_spring) == pytest.approx(0.9)
    assert event_weight(mana_spring, compose_technology_bonus({"ARCANE_STUDIES"})) == pytest.approx(1.35)


def test_event_instances_expire_after_a_day():
    instance = create_event_instance(_event("FERTILE_SOIL"), "p1", T0, "event:1")

    assert instance.expires_at == T0 + timedelta(hours=24)
    assert not instance.resolved
