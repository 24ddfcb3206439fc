from __future__ import annotations

import random
from typing import Callable, Iterable, Sequence, TypeVar

from idle_empire.world.balance import BalanceTables, default_tables
from idle_empire.world.enemies import EnemyForce, is_enemy_eligible
from idle_empire.world.events import GameEvent
from idle_empire.world.resources import ResourceBundle
from idle_empire.world.territories import TerritoryTypeSpec

T = TypeVar("T")


def _spawn_weight(entry: object) -> float:
    return float(getattr(entry, "spawn_weight", 0.0))


def select_weighted(
    pool: Iterable[T],
    eligibility: Callable[[T], bool] | None,
    rng: random.Random,
    *,
    weight: Callable[[T], float] = _spawn_weight,
) -> T | None:
    """Draw one eligible entry with probability proportional to its weight.

    Returns ``None`` when nothing is eligible or the eligible weights sum to
    zero; an all-zero pool has nothing to draw in proportion to, so no entry is
    picked rather than an arbitrary first or last one. Zero-weight entries are
    never returned, including on the floating-point fallback.
    """

    eligible: list[tuple[T, float]] = []
    for entry in pool:
        if eligibility is not None and not eligibility(entry):
            continue
        eligible.append((entry, max(0.0, float(weight(entry)))))
    if not eligible:
        return None
    total = sum(w for _, w in eligible)
    if total <= 0:
        return None

    remaining = rng.random() * total
    for entry, w in eligible:
        if w <= 0:
            continue
        remaining -= w
        if remaining <= 0:
            return entry
    return next(entry for entry, w in reversed(eligible) if w > 0)


def eligible_enemies(
    *,
    province_level: int,
    threat: float,
    resources: ResourceBundle,
    tables: BalanceTables | None = None,
) -> list[EnemyForce]:
    pool = (tables or default_tables()).enemies.values()
    return [
        enemy
        for enemy in pool
        if is_enemy_eligible(enemy, province_level=province_level, threat=threat, resources=resources)
    ]


def select_enemy(
    rng: random.Random,
    *,
    province_level: int,
    threat: float,
    resources: ResourceBundle,
    tables: BalanceTables | None = None,
) -> EnemyForce | None:
    pool = eligible_enemies(province_level=province_level, threat=threat, resources=resources, tables=tables)
    return select_weighted(pool, None, rng)


def select_event(
    events: Sequence[GameEvent],
    rng: random.Random,
    *,
    eligibility: Callable[[GameEvent], bool] | None = None,
) -> GameEvent | None:
    return select_weighted(events, eligibility, rng)


def select_territory_type(
    rng: random.Random,
    *,
    tables: BalanceTables | None = None,
) -> TerritoryTypeSpec | None:
    return select_weighted((tables or default_tables()).territories.values(), None, rng)


__all__ = [
    "eligible_enemies",
    "select_enemy",
    "select_event",
    "select_territory_type",
    "select_weighted",
]
