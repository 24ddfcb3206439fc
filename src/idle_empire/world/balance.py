"""Swappable game-balance tables.

Every engine takes an optional ``tables=`` keyword; passing a different
:class:`BalanceTables` retunes the game without touching engine code.
``load_balance_tables`` overlays a JSON document onto the defaults, e.g.::

    {
      "baseline_production": {"gold": 30},
      "building_production": {"FARM": {"food": 60}},
      "buildings": {"FARM": {"build_hours": 0.75, "cost": {"gold": 90}}},
      "technologies": {"AGRICULTURE_1": {"modifiers": {"food_production": 1.3}}},
      "personalities": {"MERCHANT": {"building_priorities": {"MARKETPLACE": 9}}},
      "enemies": {"WOLF_PACK": {"spawn_weight": 5}},
      "events": {"ANCIENT_CACHE": {"weight": 30}},
      "skills": {"HARVEST_BOOST": {"energy_cost": 15}}
    }
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from idle_empire.errors import ConfigurationError
from idle_empire.world.buildings import (
    BUILDING_PRODUCTION,
    BuildingKind,
    BuildingSpec,
    building_from_key,
    building_registry,
)
from idle_empire.world.enemies import EnemyForce, enemy_registry
from idle_empire.world.events import GameEvent, event_registry
from idle_empire.world.governors import (
    PERSONALITY_PROFILES,
    Personality,
    PersonalityProfile,
    personality_from_key,
)
from idle_empire.world.resources import ResourceBundle, ResourceKind, resource_from_key
from idle_empire.world.skills import SkillSpec, skill_registry
from idle_empire.world.technologies import TechnologySpec, technology_registry
from idle_empire.world.territories import TerritoryType, TerritoryTypeSpec, territory_registry

BASELINE_PRODUCTION: Dict[ResourceKind, float] = {
    ResourceKind.GOLD: 20.0,
    ResourceKind.FOOD: 25.0,
    ResourceKind.STONE: 10.0,
    ResourceKind.IRON: 5.0,
    ResourceKind.POPULATION: 2.0,
    ResourceKind.INFLUENCE: 5.0,
    ResourceKind.MANA: 1.0,
    ResourceKind.ENERGY: 3.0,
}


@dataclass(slots=True)
class BalanceTables:
    baseline_production: Dict[ResourceKind, float] = field(default_factory=lambda: dict(BASELINE_PRODUCTION))
    building_production: Dict[BuildingKind, Dict[ResourceKind, float]] = field(
        default_factory=lambda: {kind: dict(rates) for kind, rates in BUILDING_PRODUCTION.items()}
    )
    buildings: Dict[BuildingKind, BuildingSpec] = field(default_factory=building_registry)
    technologies: Dict[str, TechnologySpec] = field(default_factory=technology_registry)
    personalities: Dict[Personality, PersonalityProfile] = field(default_factory=lambda: dict(PERSONALITY_PROFILES))
    enemies: Dict[str, EnemyForce] = field(default_factory=enemy_registry)
    events: Dict[str, GameEvent] = field(default_factory=event_registry)
    territories: Dict[TerritoryType, TerritoryTypeSpec] = field(default_factory=territory_registry)
    skills: Dict[str, SkillSpec] = field(default_factory=skill_registry)


_DEFAULT_TABLES: BalanceTables | None = None


def default_tables() -> BalanceTables:
    """Shared default tables. Callers must not mutate the returned value."""

    global _DEFAULT_TABLES
    if _DEFAULT_TABLES is None:
        _DEFAULT_TABLES = BalanceTables()
    return _DEFAULT_TABLES


def _rates(raw: Mapping[str, Any], base: Mapping[ResourceKind, float] | None = None) -> Dict[ResourceKind, float]:
    rates = dict(base or {})
    for key, value in raw.items():
        kind = resource_from_key(key)
        if kind is None:
            raise ValueError(f"Unknown resource in balance override: {key!r}")
        rates[kind] = float(value)
    return rates


def _cost(raw: Mapping[str, Any]) -> Dict[ResourceKind, int]:
    for key in raw:
        if resource_from_key(key) is None:
            raise ValueError(f"Unknown resource in balance override: {key!r}")
    return ResourceBundle(dict(raw)).amounts


def _patch(spec: Any, overrides: Mapping[str, Any], converters: Mapping[str, Any]) -> Any:
    allowed = {f.name for f in fields(spec)}
    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in allowed:
            raise ValueError(f"Unknown field {key!r} for {type(spec).__name__}")
        convert = converters.get(key)
        changes[key] = convert(value, getattr(spec, key)) if convert else value
    return replace(spec, **changes)


def _building_key(key: str) -> BuildingKind:
    kind = building_from_key(key)
    if kind is None:
        raise ConfigurationError(f"Unknown building type: {key!r}")
    return kind


def _priorities(raw: Mapping[str, Any], base: Mapping[BuildingKind, int]) -> Dict[BuildingKind, int]:
    merged = dict(base)
    for key, value in raw.items():
        merged[_building_key(key)] = int(value)
    return merged


def _tech_keys(keys: Any, technologies: Mapping[str, TechnologySpec]) -> tuple[str, ...]:
    for key in keys:
        if key not in technologies:
            raise ConfigurationError(f"Unknown technology: {key!r}")
    return tuple(keys)


def apply_overrides(tables: BalanceTables, payload: Mapping[str, Any]) -> BalanceTables:
    """Return a new :class:`BalanceTables` with ``payload`` layered on top."""

    known = {f.name for f in fields(BalanceTables)} - {"territories"}
    unknown = set(payload) - known
    if unknown:
        raise ValueError(f"Unknown balance sections: {sorted(unknown)}")

    result = BalanceTables(
        baseline_production=dict(tables.baseline_production),
        building_production={kind: dict(rates) for kind, rates in tables.building_production.items()},
        buildings=dict(tables.buildings),
        technologies=dict(tables.technologies),
        personalities=dict(tables.personalities),
        enemies=dict(tables.enemies),
        events=dict(tables.events),
        territories=dict(tables.territories),
        skills=dict(tables.skills),
    )

    result.baseline_production = _rates(payload.get("baseline_production", {}), result.baseline_production)

    for key, rates in payload.get("building_production", {}).items():
        kind = _building_key(key)
        result.building_production[kind] = _rates(rates, result.building_production.get(kind))

    for key, overrides in payload.get("buildings", {}).items():
        kind = _building_key(key)
        result.buildings[kind] = _patch(
            result.buildings[kind],
            overrides,
            {
                "cost": lambda value, _old: _cost(value),
                "build_hours": lambda value, _old: float(value),
                "required_buildings": lambda value, _old: {_building_key(k): int(v) for k, v in value.items()},
                "required_tech": lambda value, _old: _tech_keys(value, result.technologies),
            },
        )

    for key, overrides in payload.get("technologies", {}).items():
        if key not in result.technologies:
            raise ConfigurationError(f"Unknown technology: {key!r}")
        result.technologies[key] = _patch(
            result.technologies[key],
            overrides,
            {
                "cost": lambda value, _old: _cost(value),
                "research_hours": lambda value, _old: float(value),
                "prerequisites": lambda value, _old: _tech_keys(value, result.technologies),
                "modifiers": lambda value, old: {**old, **{k: float(v) for k, v in value.items()}},
                "unlocks": lambda value, _old: tuple(value),
            },
        )

    for key, overrides in payload.get("personalities", {}).items():
        personality = personality_from_key(key)
        if personality is None or personality not in result.personalities:
            raise ConfigurationError(f"Unknown governor personality: {key!r}")
        result.personalities[personality] = _patch(
            result.personalities[personality],
            overrides,
            {
                "building_priorities": _priorities,
                "research_priorities": lambda value, old: {
                    **old,
                    **{key: int(value[key]) for key in _tech_keys(value, result.technologies)},
                },
                "production_modifiers": _rates,
            },
        )

    for key, overrides in payload.get("enemies", {}).items():
        if key not in result.enemies:
            raise ConfigurationError(f"Unknown enemy force: {key!r}")
        result.enemies[key] = _patch(
            result.enemies[key],
            overrides,
            {
                "victory_rewards": lambda value, _old: ResourceBundle(dict(value)),
                "defeat_penalties": lambda value, _old: ResourceBundle(dict(value)),
            },
        )

    for key, overrides in payload.get("events", {}).items():
        if key not in result.events:
            raise ConfigurationError(f"Unknown event: {key!r}")
        result.events[key] = _patch(result.events[key], overrides, {"weight": lambda value, _old: float(value)})

    for key, overrides in payload.get("skills", {}).items():
        if key not in result.skills:
            raise ConfigurationError(f"Unknown skill: {key!r}")
        result.skills[key] = _patch(
            result.skills[key],
            overrides,
            {
                "required_level": lambda value, _old: int(value),
                "required_techs": lambda value, _old: _tech_keys(value, result.technologies),
                "cooldown_seconds": lambda value, _old: int(value),
                "energy_cost": lambda value, _old: int(value),
                "mana_cost": lambda value, _old: int(value),
                "resource_costs": lambda value, _old: ResourceBundle(_cost(value)),
            },
        )

    return result


def load_balance_tables(path: Path | str, *, base: BalanceTables | None = None) -> BalanceTables:
    with open(path, "r", encoding="utf-8") as fp:
        payload = json.load(fp)
    if not isinstance(payload, Mapping):
        raise ValueError("Balance override document must be a JSON object")
    return apply_overrides(base or default_tables(), payload)


__all__ = [
    "BASELINE_PRODUCTION",
    "BalanceTables",
    "apply_overrides",
    "default_tables",
    "load_balance_tables",
]
