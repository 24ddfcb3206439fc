from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Sequence

from idle_empire.errors import ConfigurationError
from idle_empire.world.resources import ResourceBundle, ResourceKind


class BuildingKind(Enum):
    FARM = "FARM"
    MINE = "MINE"
    QUARRY = "QUARRY"
    BARRACKS = "BARRACKS"
    MARKETPLACE = "MARKETPLACE"
    ACADEMY = "ACADEMY"
    SMITHY = "SMITHY"
    WALLS = "WALLS"
    WATCHTOWER = "WATCHTOWER"


def building_from_key(key: object) -> BuildingKind | None:
    if isinstance(key, BuildingKind):
        return key
    if not isinstance(key, str):
        return None
    try:
        return BuildingKind[key.strip().upper()]
    except KeyError:
        return None


@dataclass(slots=True)
class BuildingInstance:
    kind: BuildingKind
    level: int = 1

    def __post_init__(self) -> None:
        resolved = building_from_key(self.kind)
        if resolved is None:
            raise ConfigurationError(f"Unknown building type: {self.kind!r}")
        self.kind = resolved
        if int(self.level) < 1:
            raise ValueError(f"Building level must be positive, got {self.level}")
        self.level = int(self.level)


@dataclass(frozen=True, slots=True)
class BuildingSpec:
    kind: BuildingKind
    build_hours: float
    cost: Mapping[ResourceKind, int]
    min_province_level: int = 0
    required_buildings: Mapping[BuildingKind, int] = field(default_factory=dict)
    required_tech: tuple[str, ...] = ()


# Upgrade scaling is applied in tiers of five levels; levels past the last
# tier keep using the final step.
COST_TIER_STEPS: tuple[float, ...] = (1.3, 1.4, 1.6, 2.0, 2.5)
TIME_TIER_STEPS: tuple[float, ...] = (1.1, 1.15, 1.2, 1.4, 1.8)
LEVELS_PER_TIER = 5


def _spec(
    kind: BuildingKind,
    *,
    build_hours: float,
    cost: Mapping[str, int],
    min_province_level: int = 0,
    required_buildings: Mapping[BuildingKind, int] | None = None,
    required_tech: Iterable[str] | None = None,
) -> BuildingSpec:
    return BuildingSpec(
        kind=kind,
        build_hours=float(build_hours),
        cost=ResourceBundle(dict(cost)).amounts,
        min_province_level=int(min_province_level),
        required_buildings=dict(required_buildings or {}),
        required_tech=tuple(required_tech or ()),
    )


def building_registry() -> dict[BuildingKind, BuildingSpec]:
    specs = [
        _spec(BuildingKind.FARM, build_hours=0.5, cost={"gold": 100, "stone": 50}),
        _spec(BuildingKind.MINE, build_hours=1, cost={"gold": 150, "stone": 100}),
        _spec(BuildingKind.QUARRY, build_hours=1, cost={"gold": 120, "food": 50}),
        _spec(
            BuildingKind.BARRACKS,
            build_hours=2,
            cost={"gold": 200, "stone": 150, "iron": 50},
            min_province_level=1,
        ),
        _spec(
            BuildingKind.MARKETPLACE,
            build_hours=3,
            cost={"gold": 300, "stone": 200, "iron": 100},
            min_province_level=2,
        ),
        _spec(
            BuildingKind.ACADEMY,
            build_hours=4,
            cost={"gold": 500, "stone": 300, "iron": 200},
            min_province_level=3,
            required_buildings={BuildingKind.MARKETPLACE: 1},
        ),
        _spec(
            BuildingKind.SMITHY,
            build_hours=2.5,
            cost={"gold": 250, "stone": 100, "iron": 120},
            min_province_level=2,
            required_buildings={BuildingKind.BARRACKS: 1},
        ),
        _spec(
            BuildingKind.WALLS,
            build_hours=3,
            cost={"gold": 150, "stone": 400},
            min_province_level=1,
        ),
        _spec(
            BuildingKind.WATCHTOWER,
            build_hours=1.5,
            cost={"gold": 120, "stone": 150, "iron": 30},
            min_province_level=1,
        ),
    ]
    return {spec.kind: spec for spec in specs}


def _rates(**values: float) -> dict[ResourceKind, float]:
    return {ResourceKind(key): float(value) for key, value in values.items()}


# Per level, per hour. Negative entries are upkeep.
BUILDING_PRODUCTION: dict[BuildingKind, dict[ResourceKind, float]] = {
    BuildingKind.FARM: _rates(food=50, population=5),
    BuildingKind.MINE: _rates(gold=30, iron=25),
    BuildingKind.QUARRY: _rates(gold=10, stone=40),
    BuildingKind.BARRACKS: _rates(food=-10, influence=15),
    BuildingKind.MARKETPLACE: _rates(gold=80, influence=10),
    BuildingKind.ACADEMY: _rates(influence=8, mana=4),
    BuildingKind.SMITHY: _rates(gold=5, iron=-5, energy=6),
}


def tiered_multiplier(level: int, steps: Sequence[float], *, tier_size: int = LEVELS_PER_TIER) -> float:
    multiplier = 1.0
    remaining = max(0, int(level))
    for idx, step in enumerate(steps):
        if remaining <= 0:
            break
        span = remaining if idx == len(steps) - 1 else min(tier_size, remaining)
        multiplier *= math.pow(step, span)
        remaining -= span
    return multiplier


@dataclass(frozen=True, slots=True)
class UpgradeQuote:
    kind: BuildingKind
    target_level: int
    cost: ResourceBundle
    hours: float


def building_upgrade_cost(
    kind: BuildingKind | str,
    current_level: int,
    *,
    registry: Mapping[BuildingKind, BuildingSpec] | None = None,
    construction_speed: float = 1.0,
) -> UpgradeQuote:
    """Cost and duration of raising ``kind`` from ``current_level`` to the next level."""

    resolved = building_from_key(kind)
    specs = registry if registry is not None else building_registry()
    spec = specs.get(resolved) if resolved is not None else None
    if spec is None:
        raise ConfigurationError(f"Unknown building type: {kind!r}")

    cost_multiplier = tiered_multiplier(current_level, COST_TIER_STEPS)
    time_multiplier = tiered_multiplier(current_level, TIME_TIER_STEPS)
    cost = ResourceBundle({res: math.ceil(qty * cost_multiplier) for res, qty in spec.cost.items()})
    hours = spec.build_hours * time_multiplier / max(construction_speed, 1e-9)
    return UpgradeQuote(kind=spec.kind, target_level=int(current_level) + 1, cost=cost, hours=hours)


def requirements_met(
    spec: BuildingSpec,
    *,
    province_level: int,
    building_levels: Mapping[BuildingKind, int],
    researched: Iterable[str] = (),
) -> bool:
    if province_level < spec.min_province_level:
        return False
    for required, level in spec.required_buildings.items():
        if building_levels.get(required, 0) < level:
            return False
    researched_set = set(researched)
    return all(tech in researched_set for tech in spec.required_tech)


__all__ = [
    "BUILDING_PRODUCTION",
    "BuildingInstance",
    "BuildingKind",
    "BuildingSpec",
    "COST_TIER_STEPS",
    "TIME_TIER_STEPS",
    "UpgradeQuote",
    "building_from_key",
    "building_registry",
    "building_upgrade_cost",
    "requirements_met",
    "tiered_multiplier",
]
