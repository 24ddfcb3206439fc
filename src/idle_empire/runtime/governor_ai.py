"""Rule-based governor decisions.

One call scores every building in the governor's priority table and, when the
empire is wealthy enough, every technology in its research table, then
returns the single best candidate. The function is advisory: paying for the
choice and creating the construction or research record is the caller's job.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from idle_empire.errors import ConfigurationError
from idle_empire.runtime.tech_bonus import TechnologyBonus, compose_technology_bonus, research_cost
from idle_empire.world.balance import BalanceTables, default_tables
from idle_empire.world.buildings import BuildingKind, building_upgrade_cost, requirements_met
from idle_empire.world.empire import Empire, Province
from idle_empire.world.governors import MAX_XP, Governor, Personality, get_personality_profile
from idle_empire.world.resources import ResourceBundle, ResourceKind


class DecisionKind(Enum):
    BUILD = "BUILD"
    RESEARCH = "RESEARCH"
    WAIT = "WAIT"


@dataclass(slots=True)
class GovernorConfig:
    research_abundance_threshold: int = 500
    research_dampener: float = 0.7
    min_loyalty_modifier: float = 0.3
    max_experience_modifier: float = 1.5
    experience_scale: float = 1000.0
    first_build_bonus: float = 1.5
    first_build_min_priority: int = 8
    diminishing_start_level: int = 5
    diminishing_factor: float = 0.8
    build_xp_bonus: int = 20
    research_xp_bonus: int = 30


@dataclass(frozen=True, slots=True)
class BuildDecision:
    building: BuildingKind
    priority_score: float
    reason: str
    target_level: int = 1
    cost: ResourceBundle = field(default_factory=ResourceBundle)
    hours: float = 0.0

    @property
    def kind(self) -> DecisionKind:
        return DecisionKind.BUILD

    @property
    def priority(self) -> int:
        return math.ceil(self.priority_score)


@dataclass(frozen=True, slots=True)
class ResearchDecision:
    tech_key: str
    priority_score: float
    reason: str
    cost: ResourceBundle = field(default_factory=ResourceBundle)
    hours: float = 0.0

    @property
    def kind(self) -> DecisionKind:
        return DecisionKind.RESEARCH

    @property
    def priority(self) -> int:
        return math.ceil(self.priority_score)


@dataclass(frozen=True, slots=True)
class WaitDecision:
    reason: str = "no affordable action"

    @property
    def kind(self) -> DecisionKind:
        return DecisionKind.WAIT

    @property
    def priority_score(self) -> float:
        return 0.0

    @property
    def priority(self) -> int:
        return 0


GovernorDecision = Union[BuildDecision, ResearchDecision, WaitDecision]


def affordability_score(cost: ResourceBundle, stock: ResourceBundle) -> float:
    """0-100 comfort score for paying ``cost`` out of ``stock``.

    Each required resource scores 100 at twice the requirement or more and
    falls linearly to 0 at exactly the requirement; a single shortfall makes
    the whole score 0. An empty cost scores 0.
    """

    items = [(kind, qty) for kind, qty in cost.amounts.items() if qty > 0]
    if not items:
        return 0.0
    total = 0.0
    for kind, qty in items:
        available = stock.get(kind)
        if available < qty:
            return 0.0
        if available >= 2 * qty:
            total += 100.0
        else:
            total += 100.0 * (available - qty) / qty
    return total / len(items)


def _modifiers(governor: Governor, cfg: GovernorConfig) -> tuple[float, float]:
    loyalty_mod = max(cfg.min_loyalty_modifier, governor.loyalty / 100.0)
    experience_mod = min(cfg.max_experience_modifier, 1.0 + governor.xp / cfg.experience_scale)
    return loyalty_mod, experience_mod


def _label(personality: Personality) -> str:
    return personality.value.lower()


def decide_governor_action(
    province: Province,
    empire: Empire,
    *,
    tables: BalanceTables | None = None,
    cfg: GovernorConfig | None = None,
    bonus: TechnologyBonus | None = None,
) -> GovernorDecision:
    tables = tables or default_tables()
    cfg = cfg or GovernorConfig()
    governor = province.governor
    if governor is None:
        return WaitDecision(reason="no governor assigned")
    if bonus is None:
        bonus = compose_technology_bonus(empire.researched, tables=tables)

    profile = get_personality_profile(governor.personality, tables.personalities)
    loyalty_mod, experience_mod = _modifiers(governor, cfg)
    levels = province.building_levels()

    best: GovernorDecision = WaitDecision()
    best_score = 0.0

    for kind, base_priority in profile.building_priorities.items():
        spec = tables.buildings.get(kind)
        if spec is None:
            raise ConfigurationError(f"Unknown building type in priorities: {kind!r}")
        if province.is_constructing(kind):
            continue
        if not requirements_met(
            spec,
            province_level=province.level,
            building_levels=levels,
            researched=empire.researched,
        ):
            continue

        current_level = levels.get(kind, 0)
        quote = building_upgrade_cost(
            kind,
            current_level,
            registry=tables.buildings,
            construction_speed=bonus.construction_speed,
        )
        affordability = affordability_score(quote.cost, province.stock)
        if affordability <= 0:
            continue

        score = base_priority * loyalty_mod * experience_mod
        if current_level == 0 and base_priority >= cfg.first_build_min_priority:
            score *= cfg.first_build_bonus
        if current_level > cfg.diminishing_start_level:
            score *= math.pow(cfg.diminishing_factor, current_level - cfg.diminishing_start_level)
        score *= affordability / 100.0

        if score > best_score:
            best_score = score
            best = BuildDecision(
                building=kind,
                priority_score=score,
                reason=(
                    f"{_label(governor.personality)}: {kind.value.lower()} level {current_level + 1} "
                    f"(Priority: {base_priority}, Affordable: {affordability:.1f}%)"
                ),
                target_level=quote.target_level,
                cost=quote.cost,
                hours=quote.hours,
            )

    empire_stock = empire.total_resources()
    if empire_stock.total() > cfg.research_abundance_threshold:
        in_progress = empire.researching()
        for tech_key, base_priority in profile.research_priorities.items():
            spec = tables.technologies.get(tech_key)
            if spec is None:
                raise ConfigurationError(f"Unknown technology in priorities: {tech_key!r}")
            if tech_key in empire.researched or tech_key in in_progress:
                continue
            if any(prereq not in empire.researched for prereq in spec.prerequisites):
                continue

            quote = research_cost(tech_key, bonus, tables=tables)
            affordability = affordability_score(quote.cost, empire_stock)
            if affordability <= 0:
                continue

            score = base_priority * loyalty_mod * experience_mod * cfg.research_dampener
            score *= affordability / 100.0
            if score > best_score:
                best_score = score
                best = ResearchDecision(
                    tech_key=tech_key,
                    priority_score=score,
                    reason=(
                        f"{_label(governor.personality)}: Research {spec.name} "
                        f"(Priority: {base_priority}, Affordable: {affordability:.1f}%)"
                    ),
                    cost=quote.cost,
                    hours=float(quote.hours),
                )

    return best


def award_decision_experience(
    governor: Governor,
    decision: GovernorDecision,
    *,
    cfg: GovernorConfig | None = None,
    xp_multiplier: float = 1.0,
) -> int:
    """Grant XP for a carried-out decision and return the governor's new total."""

    cfg = cfg or GovernorConfig()
    if decision.kind is DecisionKind.WAIT:
        return governor.xp
    gain = math.floor(decision.priority * 10)
    gain += cfg.build_xp_bonus if decision.kind is DecisionKind.BUILD else cfg.research_xp_bonus
    gain = math.floor(gain * max(0.0, xp_multiplier))
    governor.gain_xp(gain)
    return min(MAX_XP, governor.xp)


def _loyalty_text(loyalty: int) -> str:
    if loyalty > 80:
        return "Extremely loyal and motivated."
    if loyalty > 60:
        return "Loyal and reliable."
    if loyalty > 40:
        return "Moderately loyal."
    return "Loyalty is wavering."


def governor_report(province: Province) -> str:
    governor = province.governor
    if governor is None:
        return f"{province.name} has no governor."

    stock = province.stock
    personality = governor.personality
    if personality is Personality.CONSERVATIVE:
        food = stock.get(ResourceKind.FOOD)
        if food > 1000:
            status = "Food reserves are excellent. Provincial stability is high."
        elif food < 200:
            status = "Food situation is concerning. Focusing on agricultural development."
        else:
            status = "Food production is stable. Maintaining steady growth."
        suggestion = "Recommends building defensive structures and maintaining food security."
    elif personality is Personality.AGGRESSIVE:
        if province.building_level(BuildingKind.BARRACKS) > 2:
            status = "Military infrastructure is developing well. Ready for expansion."
        else:
            status = "Military capabilities need improvement. Prioritizing barracks construction."
        suggestion = "Suggests aggressive expansion and military buildup."
    elif personality is Personality.MERCHANT:
        gold = stock.get(ResourceKind.GOLD)
        if gold > 2000:
            status = "Trade is flourishing! Gold reserves are excellent."
        elif gold < 300:
            status = "Economic situation needs attention. Focusing on gold production."
        else:
            status = "Trade networks are developing steadily."
        suggestion = "Advocates for marketplace expansion and trade route development."
    else:
        if province.building_level(BuildingKind.ACADEMY) > 1:
            status = "Research capabilities are advancing. Knowledge expansion continues."
        else:
            status = "Seeking new knowledge and opportunities for advancement."
        suggestion = "Recommends investment in research and exploration technologies."

    return f"**{governor.name} ({_label(personality)})**: {status} {suggestion} {_loyalty_text(governor.loyalty)}"


__all__ = [
    "BuildDecision",
    "DecisionKind",
    "GovernorConfig",
    "GovernorDecision",
    "ResearchDecision",
    "WaitDecision",
    "affordability_score",
    "award_decision_experience",
    "decide_governor_action",
    "governor_report",
]
