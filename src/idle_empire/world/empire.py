"""Mutable empire snapshot: provinces, their buildings and governors, and the
construction, research, raid, event and skill records the session advances."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable

from idle_empire.world.buildings import BuildingInstance, BuildingKind
from idle_empire.world.governors import Governor
from idle_empire.world.resources import ResourceBundle
from idle_empire.world.skills import ActiveSkillEffect, PlayerSkill

MAX_MORALE = 100


@dataclass(slots=True)
class ConstructionTask:
    task_id: str
    province_id: str
    building: BuildingKind
    target_level: int
    started_at: datetime
    completes_at: datetime
    completed: bool = False


@dataclass(slots=True)
class ResearchTask:
    task_id: str
    tech_key: str
    province_id: str
    started_at: datetime
    completes_at: datetime
    completed: bool = False


@dataclass(slots=True)
class RaidEvent:
    raid_id: str
    province_id: str
    enemy_key: str
    spawned_at: datetime
    arrives_at: datetime
    resolved: bool = False
    result: Any = None


@dataclass(slots=True)
class ActiveEvent:
    instance_id: str
    event_key: str
    province_id: str
    spawned_at: datetime
    expires_at: datetime
    resolved: bool = False
    choice_id: str | None = None


@dataclass(slots=True)
class Province:
    province_id: str
    name: str
    level: int = 1
    threat: float = 0.0
    morale: int = 50
    stock: ResourceBundle = field(default_factory=ResourceBundle)
    buildings: Dict[BuildingKind, BuildingInstance] = field(default_factory=dict)
    governor: Governor | None = None
    last_production_at: datetime | None = None
    constructions: list[ConstructionTask] = field(default_factory=list)
    events: list[ActiveEvent] = field(default_factory=list)
    raids: list[RaidEvent] = field(default_factory=list)
    last_event_at: datetime | None = None
    last_raid_at: datetime | None = None

    def building_level(self, kind: BuildingKind) -> int:
        instance = self.buildings.get(kind)
        return instance.level if instance is not None else 0

    def building_levels(self) -> Dict[BuildingKind, int]:
        return {kind: instance.level for kind, instance in self.buildings.items()}

    def set_building(self, kind: BuildingKind | str, level: int) -> BuildingInstance:
        instance = BuildingInstance(kind=kind, level=level)  # type: ignore[arg-type]
        self.buildings[instance.kind] = instance
        return instance

    def raise_building(self, kind: BuildingKind, target_level: int) -> BuildingInstance:
        current = self.building_level(kind)
        return self.set_building(kind, max(current, int(target_level)))

    def is_constructing(self, kind: BuildingKind) -> bool:
        return any(task.building == kind and not task.completed for task in self.constructions)

    def pending_raids(self) -> list[RaidEvent]:
        return [raid for raid in self.raids if not raid.resolved]

    def open_events(self) -> list[ActiveEvent]:
        return [event for event in self.events if not event.resolved]

    def adjust_morale(self, delta: int) -> int:
        self.morale = max(0, min(MAX_MORALE, self.morale + int(delta)))
        return self.morale


@dataclass(slots=True)
class Empire:
    empire_id: str
    name: str = ""
    provinces: Dict[str, Province] = field(default_factory=dict)
    researched: set[str] = field(default_factory=set)
    research: list[ResearchTask] = field(default_factory=list)
    skills: Dict[str, PlayerSkill] = field(default_factory=dict)
    skill_effects: list[ActiveSkillEffect] = field(default_factory=list)

    def add_province(self, province: Province) -> Province:
        self.provinces[province.province_id] = province
        return province

    def iter_provinces(self) -> Iterable[Province]:
        for province_id in sorted(self.provinces):
            yield self.provinces[province_id]

    def total_resources(self) -> ResourceBundle:
        total = ResourceBundle()
        for province in self.iter_provinces():
            total = total.merged(province.stock)
        return total

    def player_level(self) -> int:
        """One level per five building levels across the empire, starting at 1."""

        levels = sum(instance.level for province in self.iter_provinces() for instance in province.buildings.values())
        return max(1, levels // 5 + 1)

    def unlocked_skills(self) -> set[str]:
        return {key for key, skill in self.skills.items() if skill.unlocked}

    def researching(self) -> set[str]:
        return {task.tech_key for task in self.research if not task.completed}

    def deduct(self, cost: ResourceBundle) -> bool:
        """Pay ``cost`` out of the provinces' stock in province-id order.

        Returns ``False`` without touching any stock when the empire as a whole
        cannot cover the cost.
        """

        if not self.total_resources().can_afford(cost):
            return False
        for kind, qty in cost.amounts.items():
            remaining = qty
            for province in self.iter_provinces():
                if remaining <= 0:
                    break
                remaining -= province.stock.remove(kind, remaining)
        return True


def make_province(
    province_id: str,
    name: str,
    *,
    level: int = 1,
    buildings: Dict[Any, int] | None = None,
    stock: Dict[Any, int] | None = None,
    governor: Governor | None = None,
    threat: float = 0.0,
) -> Province:
    province = Province(
        province_id=province_id,
        name=name,
        level=int(level),
        threat=float(threat),
        stock=ResourceBundle(dict(stock or {})),
        governor=governor,
    )
    for key, level_value in (buildings or {}).items():
        province.set_building(key, level_value)
    return province


__all__ = [
    "ActiveEvent",
    "ConstructionTask",
    "Empire",
    "MAX_MORALE",
    "Province",
    "RaidEvent",
    "ResearchTask",
    "make_province",
]
