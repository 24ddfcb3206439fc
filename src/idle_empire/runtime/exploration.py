from __future__ import annotations

import math
import random
from dataclasses import dataclass

from idle_empire.errors import ConfigurationError
from idle_empire.runtime.events import MissingResource
from idle_empire.runtime.selection import select_territory_type
from idle_empire.world.balance import BalanceTables
from idle_empire.world.governors import PERSONALITY_PROFILES, Governor, Personality
from idle_empire.world.resources import ResourceBundle, ResourceKind
from idle_empire.world.territories import GOVERNOR_NAMES, Territory

MIN_DIFFICULTY = 3
MAX_DIFFICULTY = 8


def exploration_cost(difficulty: int) -> ResourceBundle:
    return ResourceBundle(
        {
            ResourceKind.GOLD: 200 * difficulty,
            ResourceKind.FOOD: 100 * difficulty,
            ResourceKind.INFLUENCE: 10 * difficulty,
        }
    )


def colonization_cost(difficulty: int) -> ResourceBundle:
    return ResourceBundle(
        {
            ResourceKind.GOLD: 500 * difficulty,
            ResourceKind.FOOD: 300 * difficulty,
            ResourceKind.STONE: 200 * difficulty,
            ResourceKind.IRON: 100 * difficulty,
            ResourceKind.POPULATION: 50 + difficulty * 10,
            ResourceKind.INFLUENCE: 25 * difficulty,
        }
    )


def _jitter(rng: random.Random) -> float:
    return 0.8 + rng.random() * 0.4


def generate_territory(rng: random.Random, *, tables: BalanceTables | None = None) -> Territory:
    """Roll a territory: weighted type, difficulty 3-8, 1-3 features and ±20% multipliers."""

    spec = select_territory_type(rng, tables=tables)
    if spec is None:
        raise ConfigurationError("Territory pool is empty")

    name = rng.choice(spec.names)
    description = rng.choice(spec.descriptions)
    difficulty = rng.randint(MIN_DIFFICULTY, MAX_DIFFICULTY)
    feature_count = rng.randint(1, min(3, len(spec.features)))
    features = rng.sample(list(spec.features), feature_count)
    multipliers = {kind: base * _jitter(rng) for kind, base in spec.multipliers.items()}
    capacity = math.floor(spec.population_capacity * _jitter(rng))

    return Territory(
        territory_id=f"territory:{rng.getrandbits(48):012x}",
        name=name,
        type=spec.type,
        difficulty=difficulty,
        multipliers=multipliers,
        population_capacity=capacity,
        features=features,
        exploration_cost=exploration_cost(difficulty),
        colonization_cost=colonization_cost(difficulty),
        description=description,
    )


@dataclass(frozen=True, slots=True)
class ExplorationOdds:
    success_chance: float
    can_afford: bool
    missing: tuple[MissingResource, ...] = ()


def calculate_exploration_success_chance(resources: ResourceBundle, territory: Territory) -> ExplorationOdds:
    missing = tuple(
        MissingResource(resource=kind, needed=qty, have=resources.get(kind))
        for kind, qty in territory.exploration_cost.amounts.items()
        if resources.get(kind) < qty
    )
    if missing:
        return ExplorationOdds(success_chance=0.0, can_afford=False, missing=missing)

    chance = max(0.3, 1.0 - (territory.difficulty - 1) * 0.08)
    abundance = resources.total()
    if abundance > 5000:
        chance += 0.1
    if abundance > 10000:
        chance += 0.1
    return ExplorationOdds(success_chance=min(0.95, chance), can_afford=True)


@dataclass(frozen=True, slots=True)
class GovernorCandidate:
    governor: Governor
    description: str


def generate_governor_candidates(rng: random.Random, count: int = 3) -> list[GovernorCandidate]:
    personalities = list(Personality)
    candidates: list[GovernorCandidate] = []
    for _ in range(max(0, int(count))):
        personality = rng.choice(personalities)
        governor = Governor(
            name=rng.choice(GOVERNOR_NAMES),
            personality=personality,
            loyalty=rng.randint(40, 79),
            xp=rng.randint(0, 199),
        )
        candidates.append(
            GovernorCandidate(governor=governor, description=PERSONALITY_PROFILES[personality].description)
        )
    return candidates


__all__ = [
    "ExplorationOdds",
    "GovernorCandidate",
    "calculate_exploration_success_chance",
    "colonization_cost",
    "exploration_cost",
    "generate_governor_candidates",
    "generate_territory",
]
