"""Explicit simulation session driving the periodic tick.

The session owns its clock, its seeded random streams and its telemetry, and
assumes it is the only writer of the empire snapshot it was given. One
``tick`` runs, in order:

1. expire unanswered events and finish due construction and research;
2. settle idle production for every province;
3. resolve raids whose arrival time has passed, each exactly once;
4. roll new events and raids for provinces that are off cooldown;
5. let governors act, paying for and starting what they choose.

Skills are player-triggered through ``unlock_skill`` and ``use_skill``; their
production boosts are paid out during settlement and their combat buffs are
spent by the next raid.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict

from idle_empire.errors import ConfigurationError, InsufficientResourcesError, RaidAlreadyResolvedError
from idle_empire.runtime.combat import CombatConfig, CombatResult, apply_combat_result, resolve_combat
from idle_empire.runtime.defense import calculate_defense_force
from idle_empire.runtime.events import (
    EventResolution,
    apply_event_resolution,
    calculate_event_chance,
    can_afford_choice,
    create_event_instance,
    process_event_choice,
    select_random_event,
)
from idle_empire.runtime.governor_ai import (
    BuildDecision,
    GovernorConfig,
    GovernorDecision,
    ResearchDecision,
    award_decision_experience,
    decide_governor_action,
)
from idle_empire.runtime.production import ProductionResult, calculate_production, settle_stock
from idle_empire.runtime.rng_service import RNGService
from idle_empire.runtime.selection import select_enemy
from idle_empire.runtime.skills import (
    SkillActivation,
    consume_combat_buffs,
    production_boosts,
    prune_skill_effects,
    unlock_skill,
    use_skill,
)
from idle_empire.runtime.tech_bonus import TechnologyBonus, compose_technology_bonus
from idle_empire.runtime.telemetry import EventRing, Metrics, record_event
from idle_empire.runtime.timers import finish_time, is_task_complete
from idle_empire.world.balance import BalanceTables, default_tables
from idle_empire.world.empire import ConstructionTask, Empire, Province, RaidEvent, ResearchTask
from idle_empire.world.skills import PlayerSkill


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class SessionConfig:
    raid_chance: float = 0.3
    spawn_dampener: float = 0.7
    event_cooldown_hours: float = 4.0
    raid_cooldown_hours: float = 6.0
    max_concurrent_events: int = 1
    raid_prep_minutes_min: int = 10
    raid_prep_minutes_max: int = 29
    governor_act_chance: float = 0.3
    build_loyalty_gain: tuple[int, int] = (1, 5)
    research_loyalty_gain: tuple[int, int] = (2, 4)
    event_ring_capacity: int = 200


@dataclass(slots=True)
class TickReport:
    now: datetime
    completed_constructions: list[ConstructionTask] = field(default_factory=list)
    completed_research: list[ResearchTask] = field(default_factory=list)
    production: Dict[str, ProductionResult] = field(default_factory=dict)
    raids_resolved: list[RaidEvent] = field(default_factory=list)
    raids_spawned: list[RaidEvent] = field(default_factory=list)
    events_spawned: list[str] = field(default_factory=list)
    events_expired: list[str] = field(default_factory=list)
    decisions: Dict[str, GovernorDecision] = field(default_factory=dict)


class EmpireSession:
    def __init__(
        self,
        empire: Empire,
        seed: int = 0,
        clock: Callable[[], datetime] | None = None,
        cfg: SessionConfig | None = None,
        *,
        tables: BalanceTables | None = None,
        governor_cfg: GovernorConfig | None = None,
        combat_cfg: CombatConfig | None = None,
    ) -> None:
        self.empire = empire
        self.seed = int(seed)
        self.clock = clock or _utcnow
        self.cfg = cfg or SessionConfig()
        self.tables = tables or default_tables()
        self.governor_cfg = governor_cfg or GovernorConfig()
        self.combat_cfg = combat_cfg or CombatConfig()
        self.rng = RNGService(seed=self.seed)
        self.metrics = Metrics()
        self.event_ring = EventRing(capacity=self.cfg.event_ring_capacity)
        self.now: datetime | None = None
        self._serial = 0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _next_id(self, prefix: str) -> str:
        self._serial += 1
        return f"{prefix}:{self._serial}"

    def bonus(self) -> TechnologyBonus:
        return compose_technology_bonus(self.empire.researched, tables=self.tables)

    def province(self, province_id: str) -> Province:
        try:
            return self.empire.provinces[province_id]
        except KeyError as exc:
            raise ConfigurationError(f"Unknown province: {province_id!r}") from exc

    # ------------------------------------------------------------------
    # Tick phases
    # ------------------------------------------------------------------

    def _expire_events(self, now: datetime, report: TickReport) -> None:
        for province in self.empire.iter_provinces():
            for event in province.open_events():
                if now >= event.expires_at:
                    event.resolved = True
                    event.choice_id = "AUTO_EXPIRED"
                    report.events_expired.append(event.instance_id)
                    self.metrics.inc("events.expired")

    def _complete_tasks(self, now: datetime, report: TickReport) -> None:
        for province in self.empire.iter_provinces():
            for task in province.constructions:
                if task.completed or not is_task_complete(task.completes_at, now):
                    continue
                task.completed = True
                province.raise_building(task.building, task.target_level)
                report.completed_constructions.append(task)
                self.metrics.inc("construction.completed")
                record_event(
                    self,
                    {
                        "type": "CONSTRUCTION_COMPLETED",
                        "province_id": province.province_id,
                        "building": task.building.value,
                        "level": task.target_level,
                    },
                )
            province.constructions = [task for task in province.constructions if not task.completed]

        for task in self.empire.research:
            if task.completed or not is_task_complete(task.completes_at, now):
                continue
            task.completed = True
            self.empire.researched.add(task.tech_key)
            report.completed_research.append(task)
            self.metrics.inc("research.completed")
            record_event(self, {"type": "RESEARCH_COMPLETED", "tech_key": task.tech_key})
        self.empire.research = [task for task in self.empire.research if not task.completed]

    def _settle_production(self, now: datetime, report: TickReport) -> None:
        for province in self.empire.iter_provinces():
            last = province.last_production_at
            if last is None:
                province.last_production_at = now
                continue
            personality = province.governor.personality if province.governor is not None else None
            result = calculate_production(
                province.buildings,
                personality,
                last,
                self.empire.researched,
                now,
                tables=self.tables,
                boosts=production_boosts(self.empire, province.province_id),
            )
            settle_stock(province.stock, result)
            report.production[province.province_id] = result
            if now > last:
                province.last_production_at = now
        self.metrics.set_gauge("empire.total_resources", self.empire.total_resources().total())

    def resolve_raid(self, raid: RaidEvent) -> CombatResult:
        """Settle ``raid`` against its province's current defenses.

        Raises ``RaidAlreadyResolvedError`` when the raid was settled before.
        """

        if raid.resolved:
            raise RaidAlreadyResolvedError(f"Raid {raid.raid_id} has already been resolved")
        province = self.province(raid.province_id)
        enemy = self.tables.enemies.get(raid.enemy_key)
        if enemy is None:
            raise ConfigurationError(f"Unknown enemy force: {raid.enemy_key!r}")

        defense = calculate_defense_force(province, self.bonus(), tables=self.tables)
        buff = consume_combat_buffs(self.empire, self.now or raid.arrives_at)
        if buff != 1.0:
            defense = replace(defense, combat_multiplier=defense.combat_multiplier * buff)
            self.metrics.inc("skills.combat_buffs_spent")
        rng = self.rng.stream("combat", scope={"raid": raid.raid_id})
        result = resolve_combat(enemy, defense, rng, cfg=self.combat_cfg, tables=self.tables)
        apply_combat_result(province, result)
        raid.resolved = True
        raid.result = result

        self.metrics.inc(f"raids.{result.outcome.value.lower()}")
        record_event(
            self,
            {
                "type": "RAID_RESOLVED",
                "raid_id": raid.raid_id,
                "province_id": province.province_id,
                "enemy": enemy.key,
                "outcome": result.outcome.value,
                "certainty": round(result.victory_certainty, 4),
            },
        )
        return result

    def _resolve_due_raids(self, now: datetime, report: TickReport) -> None:
        for province in self.empire.iter_provinces():
            for raid in province.pending_raids():
                if now >= raid.arrives_at:
                    self.resolve_raid(raid)
                    report.raids_resolved.append(raid)

    def _off_cooldown(self, last: datetime | None, now: datetime, hours: float) -> bool:
        return last is None or now - last >= timedelta(hours=hours)

    def _spawn(self, now: datetime, report: TickReport) -> None:
        bonus = self.bonus()
        for province in self.empire.iter_provinces():
            scope = {"province": province.province_id, "at": now.isoformat()}
            chance = calculate_event_chance(province, self.empire, tables=self.tables) * self.cfg.spawn_dampener
            if self.rng.rand("spawn.roll", scope=scope) >= chance:
                continue

            if self.rng.rand("spawn.kind", scope=scope) < self.cfg.raid_chance:
                raid = self._spawn_raid(province, now, scope)
                if raid is not None:
                    report.raids_spawned.append(raid)
                continue

            if len(province.open_events()) >= self.cfg.max_concurrent_events:
                continue
            if not self._off_cooldown(province.last_event_at, now, self.cfg.event_cooldown_hours):
                continue
            event = select_random_event(
                province,
                self.empire,
                self.rng.stream("spawn.event", scope=scope),
                tables=self.tables,
                bonus=bonus,
            )
            if event is None:
                continue
            instance = create_event_instance(event, province.province_id, now, self._next_id("event"))
            province.events.append(instance)
            province.last_event_at = now
            report.events_spawned.append(instance.instance_id)
            self.metrics.inc("events.spawned")
            record_event(
                self,
                {"type": "EVENT_SPAWNED", "province_id": province.province_id, "event": event.key},
            )

    def _spawn_raid(self, province: Province, now: datetime, scope: dict[str, object]) -> RaidEvent | None:
        if province.pending_raids() or not self._off_cooldown(province.last_raid_at, now, self.cfg.raid_cooldown_hours):
            return None
        enemy = select_enemy(
            self.rng.stream("spawn.enemy", scope=scope),
            province_level=province.level,
            threat=province.threat,
            resources=province.stock,
            tables=self.tables,
        )
        if enemy is None:
            return None
        prep = self.rng.randint(
            "spawn.raid_prep",
            self.cfg.raid_prep_minutes_min,
            self.cfg.raid_prep_minutes_max,
            scope=scope,
        )
        raid = RaidEvent(
            raid_id=self._next_id("raid"),
            province_id=province.province_id,
            enemy_key=enemy.key,
            spawned_at=now,
            arrives_at=now + timedelta(minutes=prep),
        )
        province.raids.append(raid)
        province.last_raid_at = now
        self.metrics.inc("raids.spawned")
        record_event(
            self,
            {"type": "RAID_DETECTED", "province_id": province.province_id, "enemy": enemy.key, "raid_id": raid.raid_id},
        )
        return raid

    def _governors_act(self, now: datetime, report: TickReport) -> None:
        for province in self.empire.iter_provinces():
            governor = province.governor
            if governor is None:
                continue
            scope = {"province": province.province_id, "at": now.isoformat()}
            if self.rng.rand("governor.act", scope=scope) >= self.cfg.governor_act_chance:
                continue

            bonus = self.bonus()
            decision = decide_governor_action(
                province,
                self.empire,
                tables=self.tables,
                cfg=self.governor_cfg,
                bonus=bonus,
            )
            report.decisions[province.province_id] = decision

            if isinstance(decision, BuildDecision):
                if not province.stock.can_afford(decision.cost):
                    continue
                province.stock.apply_cost(decision.cost)
                province.constructions.append(
                    ConstructionTask(
                        task_id=self._next_id("construction"),
                        province_id=province.province_id,
                        building=decision.building,
                        target_level=decision.target_level,
                        started_at=now,
                        completes_at=finish_time(now, decision.hours),
                    )
                )
                low, high = self.cfg.build_loyalty_gain
            elif isinstance(decision, ResearchDecision):
                if not self.empire.deduct(decision.cost):
                    continue
                self.empire.research.append(
                    ResearchTask(
                        task_id=self._next_id("research"),
                        tech_key=decision.tech_key,
                        province_id=province.province_id,
                        started_at=now,
                        completes_at=finish_time(now, decision.hours),
                    )
                )
                low, high = self.cfg.research_loyalty_gain
            else:
                self.metrics.inc("governor.waits")
                continue

            award_decision_experience(governor, decision, cfg=self.governor_cfg, xp_multiplier=bonus.governor_xp_bonus)
            governor.adjust_loyalty(self.rng.randint("governor.loyalty", low, high, scope=scope))
            self.metrics.inc(f"governor.{decision.kind.value.lower()}")
            record_event(
                self,
                {
                    "type": "GOVERNOR_DECISION",
                    "province_id": province.province_id,
                    "kind": decision.kind.value,
                    "reason": decision.reason,
                    "score": round(decision.priority_score, 4),
                },
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def tick(self, now: datetime | None = None) -> TickReport:
        now = now or self.clock()
        self.now = now
        report = TickReport(now=now)
        self._expire_events(now, report)
        self._complete_tasks(now, report)
        self._settle_production(now, report)
        self._resolve_due_raids(now, report)
        self._spawn(now, report)
        self._governors_act(now, report)
        prune_skill_effects(self.empire, now)
        self.metrics.inc("session.ticks")
        return report

    def resolve_event(self, province_id: str, instance_id: str, choice_id: str) -> EventResolution:
        province = self.province(province_id)
        instance = next((ev for ev in province.open_events() if ev.instance_id == instance_id), None)
        if instance is None:
            raise ConfigurationError(f"No open event {instance_id!r} in province {province_id!r}")
        event = self.tables.events.get(instance.event_key)
        if event is None:
            raise ConfigurationError(f"Unknown event: {instance.event_key!r}")

        affordability = can_afford_choice(choice_id, event, province.stock, province=province, empire=self.empire)
        if not affordability.can_afford:
            raise InsufficientResourcesError(f"Cannot take choice {choice_id!r} for event {event.key!r}")

        resolution = process_event_choice(choice_id, event, self.rng.stream("event.choice", scope={"event": instance_id}))
        apply_event_resolution(province, resolution)
        instance.resolved = True
        instance.choice_id = choice_id
        self.metrics.inc("events.resolved")
        record_event(
            self,
            {
                "type": "EVENT_RESOLVED",
                "province_id": province_id,
                "event": event.key,
                "choice": choice_id,
                "followup": resolution.schedule_followup,
            },
        )
        return resolution

    def unlock_skill(self, key: str, now: datetime | None = None) -> PlayerSkill:
        now = now or self.now or self.clock()
        skill = unlock_skill(self.empire, key, now, tables=self.tables)
        self.metrics.inc("skills.unlocked")
        record_event(self, {"type": "SKILL_UNLOCKED", "skill": key, "at": now.isoformat()})
        return skill

    def use_skill(self, key: str, province_id: str | None = None, now: datetime | None = None) -> SkillActivation:
        now = now or self.now or self.clock()
        if province_id is not None:
            self.province(province_id)
        activation = use_skill(self.empire, key, now, province_id=province_id, tables=self.tables)
        self.metrics.inc("skills.used")
        record_event(
            self,
            {
                "type": "SKILL_USED",
                "at": now.isoformat(),
                "skill": key,
                "level": activation.level,
                "province_id": province_id,
                "cost": activation.resources_used.as_dict(),
            },
        )
        return activation


__all__ = ["EmpireSession", "SessionConfig", "TickReport"]
