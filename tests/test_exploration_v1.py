from __future__ import annotations

import random

import pytest

from idle_empire.errors import ConfigurationError
from idle_empire.runtime.exploration import (
    calculate_exploration_success_chance,
    colonization_cost,
    exploration_cost,
    generate_governor_candidates,
    generate_territory,
)
from idle_empire.world.balance import BalanceTables, default_tables
from idle_empire.world.resources import ResourceBundle, ResourceKind
from idle_empire.world.territories import GOVERNOR_NAMES


def _territory(difficulty: int):
    territory = generate_territory(random.Random(1))
    territory.difficulty = difficulty
    territory.exploration_cost = exploration_cost(difficulty)
    return territory


def test_territory_generation_is_reproducible():
    assert generate_territory(random.Random(11)) == generate_territory(random.Random(11))


def test_generated_territory_within_ranges():
    for seed in range(100):
        territory = generate_territory(random.Random(seed))
        spec = default_tables().territories[territory.type]

        assert 3 <= territory.difficulty <= 8
        assert 1 <= len(territory.features) <= 3
        assert set(territory.features) <= set(spec.features)
        assert territory.name in spec.names
        for kind, value in territory.multipliers.items():
            base = spec.multipliers[kind]
            assert base * 0.8 <= value <= base * 1.2
        assert territory.exploration_cost == exploration_cost(territory.difficulty)


def test_empty_territory_pool_raises():
    with pytest.raises(ConfigurationError):
        generate_territory(random.Random(0), tables=BalanceTables(territories={}))


def test_costs_scale_with_difficulty():
    assert exploration_cost(3).as_dict() == {"gold": 600, "food": 300, "influence": 30}
    assert colonization_cost(4).get(ResourceKind.POPULATION) == 90
    assert colonization_cost(4).get(ResourceKind.STONE) == 800


def test_success_chance_falls_with_difficulty():
    easy = _territory(3)
    hard = _territory(8)
    purse = ResourceBundle.of(gold=1_600, food=800, influence=80)

    assert calculate_exploration_success_chance(purse, easy).success_chance == pytest.approx(0.84)
    assert calculate_exploration_success_chance(purse, hard).success_chance == pytest.approx(0.44)


def test_abundance_raises_success_chance_up_to_cap():
    territory = _territory(3)
    wealthy = ResourceBundle.of(gold=6_000, food=6_000, influence=100)

    odds = calculate_exploration_success_chance(wealthy, territory)

    assert odds.can_afford
    assert odds.success_chance == pytest.approx(0.95)


def test_unaffordable_exploration_reports_missing():
    territory = _territory(5)

    odds = calculate_exploration_success_chance(ResourceBundle.of(gold=10), territory)

    assert not odds.can_afford
    assert odds.success_chance == 0.0
    assert {m.resource for m in odds.missing} == {ResourceKind.GOLD, ResourceKind.FOOD, ResourceKind.INFLUENCE}


def test_governor_candidates():
    candidates = generate_governor_candidates(random.Random(5), count=3)

    assert len(candidates) == 3
    for candidate in candidates:
        assert candidate.governor.name in GOVERNOR_NAMES
        assert 40 <= candidate.governor.loyalty <= 79
        assert 0 <= candidate.governor.xp <= 199
        assert candidate.description
