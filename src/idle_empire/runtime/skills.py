"""Active skill engine: requirement checks, level scaling, unlocking and use.

A skill's effect values grow 25% per level above the first. Its cooldown
shrinks 10% per level, down to half the base. Its energy cost shrinks 5% per
level, down to 70%. Using a skill pays energy, mana and stock from the empire
as a whole and leaves timed effects on ``Empire.skill_effects``. Production and
combat read those effects back through :func:`production_boosts` and
:func:`consume_combat_buffs`.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Iterable

from idle_empire.errors import ConfigurationError, InsufficientResourcesError, SkillUnavailableError
from idle_empire.runtime.production import ProductionBoost, calculate_production, settle_stock
from idle_empire.world.balance import BalanceTables, default_tables
from idle_empire.world.buildings import BuildingKind
from idle_empire.world.empire import Empire
from idle_empire.world.resources import ResourceBundle, ResourceKind
from idle_empire.world.skills import (
    COOLDOWN_CUT_PER_LEVEL,
    ENERGY_CUT_PER_LEVEL,
    MIN_COOLDOWN_SHARE,
    MIN_ENERGY_SHARE,
    SCALE_PER_LEVEL,
    USE_EXPERIENCE,
    ActiveSkillEffect,
    PlayerSkill,
    SkillEffect,
    SkillEffectType,
    SkillSpec,
)

MILITARY_BUILDINGS = frozenset(
    {BuildingKind.BARRACKS, BuildingKind.WALLS, BuildingKind.WATCHTOWER, BuildingKind.SMITHY}
)

# Effects that wait for a trigger rather than running out on the clock.
_TRIGGERED = frozenset(
    {SkillEffectType.COMBAT_BUFF, SkillEffectType.DEFENSE_BUFF, SkillEffectType.EXPLORATION_INSIGHT}
)


@dataclass(frozen=True, slots=True)
class ScaledSkill:
    spec: SkillSpec
    level: int
    effects: tuple[SkillEffect, ...]
    cooldown_seconds: float
    energy_cost: int
    mana_cost: int
    resource_costs: ResourceBundle

    def total_cost(self) -> ResourceBundle:
        cost = self.resource_costs.copy()
        cost.add(ResourceKind.ENERGY, self.energy_cost)
        cost.add(ResourceKind.MANA, self.mana_cost)
        return cost


@dataclass(frozen=True, slots=True)
class SkillRequirementCheck:
    can_unlock: bool
    missing: tuple[str, ...] = ()


@dataclass(slots=True)
class SkillActivation:
    skill_key: str
    level: int
    used_at: datetime
    cooldown_expires_at: datetime
    resources_used: ResourceBundle
    effects: list[ActiveSkillEffect] = field(default_factory=list)
    resources_granted: ResourceBundle = field(default_factory=ResourceBundle)
    constructions_rushed: list[str] = field(default_factory=list)


def get_skill(key: str, *, tables: BalanceTables | None = None) -> SkillSpec:
    spec = (tables or default_tables()).skills.get(key)
    if spec is None:
        raise ConfigurationError(f"Unknown skill: {key!r}")
    return spec


def scale_skill(spec: SkillSpec, level: int) -> ScaledSkill:
    level = max(1, min(int(level), spec.max_level))
    steps = level - 1
    effects = tuple(replace(effect, value=effect.value * (1.0 + steps * SCALE_PER_LEVEL)) for effect in spec.effects)
    cooldown = max(
        spec.cooldown_seconds * (1.0 - steps * COOLDOWN_CUT_PER_LEVEL),
        spec.cooldown_seconds * MIN_COOLDOWN_SHARE,
    )
    energy = max(
        spec.energy_cost * (1.0 - steps * ENERGY_CUT_PER_LEVEL),
        spec.energy_cost * MIN_ENERGY_SHARE,
    )
    return ScaledSkill(
        spec=spec,
        level=level,
        effects=effects,
        cooldown_seconds=cooldown,
        energy_cost=int(math.ceil(energy)),
        mana_cost=spec.mana_cost,
        resource_costs=spec.resource_costs.copy(),
    )


def check_skill_requirements(
    key: str,
    player_level: int,
    researched: Iterable[str],
    unlocked_skills: Iterable[str],
    *,
    tables: BalanceTables | None = None,
) -> SkillRequirementCheck:
    tables = tables or default_tables()
    spec = get_skill(key, tables=tables)
    researched = set(researched)
    unlocked = set(unlocked_skills)

    missing: list[str] = []
    if player_level < spec.required_level:
        missing.append(f"Level {spec.required_level} required")
    for tech in spec.required_techs:
        if tech not in researched:
            missing.append(f"Technology: {tech}")
    for prereq in spec.prerequisites:
        if prereq not in unlocked:
            prereq_spec = tables.skills.get(prereq)
            missing.append(f"Skill: {prereq_spec.name if prereq_spec is not None else prereq}")
    return SkillRequirementCheck(can_unlock=not missing, missing=tuple(missing))


def unlock_skill(empire: Empire, key: str, now: datetime, *, tables: BalanceTables | None = None) -> PlayerSkill:
    tables = tables or default_tables()
    get_skill(key, tables=tables)
    current = empire.skills.get(key)
    if current is not None and current.unlocked:
        raise SkillUnavailableError(f"Skill {key!r} is already unlocked")

    check = check_skill_requirements(
        key,
        empire.player_level(),
        empire.researched,
        empire.unlocked_skills(),
        tables=tables,
    )
    if not check.can_unlock:
        raise SkillUnavailableError(f"Requirements not met for {key!r}: {', '.join(check.missing)}")

    skill = current or PlayerSkill(key=key)
    skill.unlocked = True
    skill.unlocked_at = now
    empire.skills[key] = skill
    return skill


def _effect_expiry(now: datetime, seconds: int) -> datetime | None:
    return now + timedelta(seconds=seconds) if seconds > 0 else None


def _instant_production(
    empire: Empire,
    hours: float,
    now: datetime,
    tables: BalanceTables,
    province_ids: list[str],
) -> ResourceBundle:
    granted = ResourceBundle()
    for province_id in province_ids:
        province = empire.provinces[province_id]
        personality = province.governor.personality if province.governor is not None else None
        result = calculate_production(
            province.buildings,
            personality,
            now - timedelta(hours=hours),
            empire.researched,
            now,
            tables=tables,
        )
        settle_stock(province.stock, result)
        for kind, qty in result.deltas.items():
            if qty > 0:
                granted.add(kind, qty)
    return granted


def use_skill(
    empire: Empire,
    key: str,
    now: datetime,
    *,
    province_id: str | None = None,
    tables: BalanceTables | None = None,
) -> SkillActivation:
    """Pay for and trigger an unlocked skill.

    ``province_id`` targets province-scoped effects (building enchantment,
    rushed military construction); without it they apply empire-wide, and the
    enchantment falls back to the first province.
    """

    tables = tables or default_tables()
    spec = get_skill(key, tables=tables)
    skill = empire.skills.get(key)
    if skill is None or not skill.unlocked:
        raise SkillUnavailableError(f"Skill {key!r} is not unlocked")
    if skill.on_cooldown(now):
        remaining = math.ceil((skill.cooldown_expires_at - now).total_seconds())
        raise SkillUnavailableError(f"Skill {key!r} on cooldown for {remaining} seconds")
    if province_id is not None and province_id not in empire.provinces:
        raise ConfigurationError(f"Unknown province: {province_id!r}")

    scaled = scale_skill(spec, skill.level)
    cost = scaled.total_cost()
    if not empire.deduct(cost):
        raise InsufficientResourcesError(f"Not enough resources to use {spec.name}: need {cost.as_dict()}")

    ordered = sorted(empire.provinces)
    targets = [province_id] if province_id is not None else ordered
    activation = SkillActivation(
        skill_key=key,
        level=scaled.level,
        used_at=now,
        cooldown_expires_at=now + timedelta(seconds=scaled.cooldown_seconds),
        resources_used=cost,
    )

    for effect in scaled.effects:
        seconds = effect.duration_seconds or spec.duration_seconds
        if effect.type is SkillEffectType.INSTANT_PRODUCTION:
            granted = _instant_production(empire, effect.value, now, tables, targets)
            activation.resources_granted = activation.resources_granted.merged(granted)
            continue
        if effect.type is SkillEffectType.RESTORE_MANA:
            if targets:
                amount = int(math.floor(effect.value))
                empire.provinces[targets[0]].stock.add(ResourceKind.MANA, amount)
                activation.resources_granted.add(ResourceKind.MANA, amount)
            continue
        if effect.type is SkillEffectType.COMPLETE_MILITARY_CONSTRUCTION:
            for target in targets:
                for task in empire.provinces[target].constructions:
                    if not task.completed and task.building in MILITARY_BUILDINGS and task.completes_at > now:
                        task.completes_at = now
                        activation.constructions_rushed.append(task.task_id)
            continue

        scoped = None
        if effect.type is SkillEffectType.BUILDING_ENCHANTMENT and ordered:
            scoped = province_id or ordered[0]
        expires = None if effect.type in _TRIGGERED else _effect_expiry(now, seconds)
        if expires is None:
            # Untimed effects refresh instead of stacking across uses.
            for stale in empire.skill_effects:
                if stale.skill_key == key and stale.type is effect.type and stale.expires_at is None:
                    stale.consumed = True
        active = ActiveSkillEffect(
            skill_key=key,
            type=effect.type,
            value=effect.value,
            started_at=now,
            expires_at=expires,
            province_id=scoped,
        )
        empire.skill_effects.append(active)
        activation.effects.append(active)

    skill.cooldown_expires_at = activation.cooldown_expires_at
    skill.last_used_at = now
    skill.times_used += 1
    skill.experience += USE_EXPERIENCE
    return activation


def production_boosts(empire: Empire, province_id: str) -> list[ProductionBoost]:
    """Clock-bound production effects that reach ``province_id``."""

    boosts: list[ProductionBoost] = []
    for effect in empire.skill_effects:
        if effect.consumed or effect.expires_at is None:
            continue
        if effect.province_id is not None and effect.province_id != province_id:
            continue
        if effect.type in (SkillEffectType.PRODUCTION_MULTIPLIER, SkillEffectType.ULTIMATE_BOOST):
            boosts.append(ProductionBoost(effect.value, effect.started_at, effect.expires_at))
        elif effect.type is SkillEffectType.BUILDING_ENCHANTMENT:
            boosts.append(ProductionBoost(effect.value, effect.started_at, effect.expires_at, buildings_only=True))
        elif effect.type is SkillEffectType.MANA_REGEN_BOOST:
            boosts.append(
                ProductionBoost(effect.value, effect.started_at, effect.expires_at, resource=ResourceKind.MANA)
            )
    return boosts


def consume_combat_buffs(empire: Empire, now: datetime) -> float:
    """Multiplier for the next combat; the buffs that supplied it are spent."""

    multiplier = 1.0
    for effect in empire.skill_effects:
        if effect.type not in (SkillEffectType.COMBAT_BUFF, SkillEffectType.DEFENSE_BUFF):
            continue
        if effect.is_active(now):
            multiplier *= effect.value
            effect.consumed = True
    return multiplier


def active_effect_value(empire: Empire, effect_type: SkillEffectType, now: datetime) -> float:
    """Strongest live value of ``effect_type``, or 0.0 when none is active."""

    values = [effect.value for effect in empire.skill_effects if effect.type is effect_type and effect.is_active(now)]
    return max(values, default=0.0)


def prune_skill_effects(empire: Empire, now: datetime, *, horizon: datetime | None = None) -> int:
    """Drop spent effects and clock effects that ended before ``horizon``.

    ``horizon`` defaults to ``now``. Pass the oldest unsettled production
    timestamp so boosts survive until every province has been paid for them.
    """

    cutoff = horizon or now
    kept = [
        effect
        for effect in empire.skill_effects
        if not effect.consumed and (effect.expires_at is None or effect.expires_at > cutoff)
    ]
    dropped = len(empire.skill_effects) - len(kept)
    empire.skill_effects = kept
    return dropped


__all__ = [
    "MILITARY_BUILDINGS",
    "ScaledSkill",
    "SkillActivation",
    "SkillRequirementCheck",
    "active_effect_value",
    "check_skill_requirements",
    "consume_combat_buffs",
    "get_skill",
    "production_boosts",
    "prune_skill_effects",
    "scale_skill",
    "unlock_skill",
    "use_skill",
]
