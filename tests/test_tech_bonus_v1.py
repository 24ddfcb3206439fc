from __future__ import annotations

import pytest

from idle_empire.errors import ConfigurationError
from idle_empire.runtime.tech_bonus import (
    IDENTITY_BONUS,
    active_synergies,
    available_technologies,
    compose_technology_bonus,
    research_cost,
    technology_tree,
)
from idle_empire.world.resources import ResourceKind

TIER_ONE = ["AGRICULTURE_1", "MINING_1", "CONSTRUCTION_1", "TRADE_1", "MILITARY_1"]


def test_empty_set_yields_identity_bundle():
    bonus = compose_technology_bonus(set())

    assert bonus == IDENTITY_BONUS
    assert bonus.all_production == 1.0
    assert bonus.trade_bonus == 0.0
    assert bonus.economic_victory is False


def test_composition_is_order_independent():
    forward = compose_technology_bonus(["AGRICULTURE_1", "MINING_1", "MEDICINE"])
    backward = compose_technology_bonus(["MEDICINE", "MINING_1", "AGRICULTURE_1"])

    assert forward == backward


def test_composition_is_deterministic():
    keys = {"MILITARY_1", "CONSTRUCTION_1", "FORTIFICATION"}

    assert compose_technology_bonus(keys) == compose_technology_bonus(set(keys))


def test_unknown_keys_are_ignored():
    assert compose_technology_bonus(["NOT_A_TECH"]) == IDENTITY_BONUS


def test_multiplicative_fields_stack_by_product():
    bonus = compose_technology_bonus(["AGRICULTURE_1", "AGRICULTURE_2"])

    assert bonus.farm_production == pytest.approx(1.25 * 1.5)


def test_additive_fields_stack_by_sum():
    bonus = compose_technology_bonus(["TRADE_2", "EMPIRE_TRADE"])

    assert bonus.trade_bonus == pytest.approx(0.3)
    assert bonus.economic_victory is True


def test_reduction_fields_shrink_toward_zero():
    bonus = compose_technology_bonus(["MEDICINE"])

    assert bonus.plague_prevention == pytest.approx(0.7)
    assert bonus.combat_casualties == pytest.approx(0.85)


def test_tier_one_synergy_widens_all_production():
    bonus = compose_technology_bonus(TIER_ONE)

    assert [s.name for s in active_synergies(TIER_ONE)] == ["all_tier1"]
    assert bonus.all_production == pytest.approx(1.2 * 1.4 * 1.1)


def test_pair_synergy_applies_after_base_stacking():
    bonus = compose_technology_bonus(["AGRICULTURE_1", "AGRICULTURE_2", "MEDICINE"])

    assert bonus.population_growth == pytest.approx(1.1 * 1.2)


def test_research_cost_applies_research_speed():
    faster = compose_technology_bonus(["SCHOLARSHIP"])

    quote = research_cost("MILITARY_2", faster)

    assert quote.hours == 12
    assert quote.cost.get(ResourceKind.IRON) == 600


def test_research_cost_unknown_key_raises():
    with pytest.raises(ConfigurationError):
        research_cost("TIME_TRAVEL")
    with pytest.raises(KeyError):
        research_cost("TIME_TRAVEL")


def test_available_technologies_respect_prerequisites():
    first = {spec.key for spec in available_technologies(set())}
    assert first == {"AGRICULTURE_1", "MINING_1", "CONSTRUCTION_1"}

    after = {spec.key for spec in available_technologies({"CONSTRUCTION_1"})}
    assert "CONSTRUCTION_1" not in after
    assert {"MILITARY_1", "ENGINEERING", "SCHOLARSHIP", "FORTIFICATION"} <= after


def test_technology_tree_groups_by_tier_and_category():
    tree = technology_tree()

    assert [(branch.tier, branch.category) for branch in tree] == sorted(
        (branch.tier, branch.category) for branch in tree
    )
    assert sum(len(branch.technologies) for branch in tree) == 19
