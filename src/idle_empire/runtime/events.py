from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict

from idle_empire.runtime.selection import select_weighted
from idle_empire.runtime.tech_bonus import IDENTITY_BONUS, TechnologyBonus
from idle_empire.world.balance import BalanceTables, default_tables
from idle_empire.world.empire import ActiveEvent, Empire, Province
from idle_empire.world.events import EventRequirements, EventType, GameEvent
from idle_empire.world.governors import get_personality_profile
from idle_empire.world.resources import ResourceBundle, ResourceKind

BASE_EVENT_CHANCE = 0.15
MAX_EVENT_CHANCE = 0.4
EVENT_LIFETIME = timedelta(hours=24)


@dataclass(frozen=True, slots=True)
class MissingResource:
    resource: ResourceKind
    needed: int
    have: int


@dataclass(frozen=True, slots=True)
class ChoiceAffordability:
    can_afford: bool
    missing: tuple[MissingResource, ...] = ()
    requirements_met: bool = True


@dataclass(frozen=True, slots=True)
class EventResolution:
    event_key: str
    choice_id: str
    resource_changes: Dict[ResourceKind, int]
    governor_loyalty_change: int
    governor_xp_gain: int
    message: str
    schedule_followup: bool


def calculate_event_chance(
    province: Province,
    empire: Empire,
    *,
    tables: BalanceTables | None = None,
) -> float:
    tables = tables or default_tables()
    chance = BASE_EVENT_CHANCE
    if province.level > 3:
        chance += 0.05
    if province.threat > 5:
        chance += 0.1
    if province.governor is not None:
        chance += get_personality_profile(province.governor.personality, tables.personalities).event_chance_shift
    if len(empire.provinces) > 3:
        chance += 0.08
    return max(0.0, min(MAX_EVENT_CHANCE, chance))


def requirements_satisfied(requirements: EventRequirements, province: Province, empire: Empire) -> bool:
    if len(empire.provinces) < requirements.min_provinces:
        return False
    for kind, level in requirements.min_buildings.items():
        if province.building_level(kind) < level:
            return False
    for kind, amount in requirements.min_resources.items():
        if province.stock.get(kind) < amount:
            return False
    if requirements.personalities:
        if province.governor is None or province.governor.personality not in requirements.personalities:
            return False
    return True


def eligible_events(
    province: Province,
    empire: Empire,
    *,
    tables: BalanceTables | None = None,
) -> list[GameEvent]:
    pool = (tables or default_tables()).events.values()
    return [event for event in pool if requirements_satisfied(event.requirements, province, empire)]


def event_weight(event: GameEvent, bonus: TechnologyBonus = IDENTITY_BONUS) -> float:
    weight = event.spawn_weight
    if event.type is EventType.ARTIFACT:
        weight *= bonus.magical_events
    elif event.type is EventType.DISCOVERY:
        weight *= bonus.resource_events
    return weight


def select_random_event(
    province: Province,
    empire: Empire,
    rng: random.Random,
    *,
    tables: BalanceTables | None = None,
    bonus: TechnologyBonus = IDENTITY_BONUS,
) -> GameEvent | None:
    pool = eligible_events(province, empire, tables=tables)
    return select_weighted(pool, None, rng, weight=lambda event: event_weight(event, bonus))


def can_afford_choice(
    choice_id: str,
    event: GameEvent,
    stock: ResourceBundle,
    *,
    province: Province | None = None,
    empire: Empire | None = None,
) -> ChoiceAffordability:
    choice = event.choice(choice_id)
    missing = tuple(
        MissingResource(resource=kind, needed=qty, have=stock.get(kind))
        for kind, qty in choice.cost.amounts.items()
        if stock.get(kind) < qty
    )
    met = True
    if province is not None and empire is not None:
        met = requirements_satisfied(choice.requirements, province, empire)
    return ChoiceAffordability(can_afford=not missing and met, missing=missing, requirements_met=met)


def process_event_choice(choice_id: str, event: GameEvent, rng: random.Random) -> EventResolution:
    """Net resource changes (cost plus outcome) for picking ``choice_id``.

    Raises ``ConfigurationError`` for a choice the event does not offer.
    """

    choice = event.choice(choice_id)
    outcome = choice.outcome
    changes: Dict[ResourceKind, int] = {}
    for kind, qty in choice.cost.amounts.items():
        changes[kind] = changes.get(kind, 0) - qty
    for kind, qty in outcome.resources.items():
        changes[kind] = changes.get(kind, 0) + qty

    return EventResolution(
        event_key=event.key,
        choice_id=choice.choice_id,
        resource_changes=changes,
        governor_loyalty_change=outcome.governor_loyalty,
        governor_xp_gain=outcome.governor_xp,
        message=outcome.message,
        schedule_followup=outcome.followup_chance > rng.random(),
    )


def apply_event_resolution(province: Province, resolution: EventResolution) -> Province:
    for kind in ResourceKind:
        province.stock.apply_delta(kind, resolution.resource_changes.get(kind, 0))
    if province.governor is not None:
        province.governor.adjust_loyalty(resolution.governor_loyalty_change)
        province.governor.gain_xp(resolution.governor_xp_gain)
    return province


def create_event_instance(event: GameEvent, province_id: str, now: datetime, instance_id: str) -> ActiveEvent:
    return ActiveEvent(
        instance_id=instance_id,
        event_key=event.key,
        province_id=province_id,
        spawned_at=now,
        expires_at=now + EVENT_LIFETIME,
    )


__all__ = [
    "ChoiceAffordability",
    "EVENT_LIFETIME",
    "EventResolution",
    "MissingResource",
    "apply_event_resolution",
    "calculate_event_chance",
    "can_afford_choice",
    "create_event_instance",
    "eligible_events",
    "event_weight",
    "process_event_choice",
    "requirements_satisfied",
    "select_random_event",
]
