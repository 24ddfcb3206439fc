"""Stochastic raid resolution.

Attack power is ``strength + 0.5 * cunning``; defense power is the weighted
garrison, militia, building and governor contributions scaled by the
technology combat multiplier. Their ratio plus the situational bonuses gives
a defense score, and a logistic curve turns that score into the defender's
victory certainty ``c``. The outcome is drawn, not thresholded: draws are
most likely when ``c`` is near one half, so even matchups sometimes end in a
stalemate or an upset.

The engine reads ``rng.random()`` exactly six times per call, in this order:
weather, luck, surprise, outcome, defender casualty variance, enemy casualty
variance.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from enum import Enum

from idle_empire.runtime.defense import DefenseForce
from idle_empire.world.balance import BalanceTables, default_tables
from idle_empire.world.empire import Province
from idle_empire.world.enemies import EnemyForce
from idle_empire.world.resources import ResourceBundle, ResourceKind


class CombatOutcome(Enum):
    VICTORY = "VICTORY"
    DEFEAT = "DEFEAT"
    DRAW = "DRAW"


@dataclass(slots=True)
class CombatConfig:
    garrison_weight: float = 0.8
    militia_weight: float = 0.4
    toughness_weight: float = 0.25
    base_terrain: float = 0.2
    wall_bonus: float = 0.15
    watchtower_bonus: float = 0.1
    certainty_steepness: float = 4.0
    certainty_pivot: float = 1.05
    draw_band: float = 0.3
    casualty_variance: float = 0.2
    victory_loss_reduction: float = 0.7
    draw_reward_share: float = 0.3
    draw_penalty_share: float = 0.6
    infrastructure_share: float = 0.1
    weather_span: float = 0.1
    luck_span: float = 0.15
    surprise_span: float = 0.1


DEFENDER_CASUALTY_RATE = {
    CombatOutcome.VICTORY: 0.3,
    CombatOutcome.DRAW: 0.6,
    CombatOutcome.DEFEAT: 1.0,
}
ENEMY_CASUALTY_RATE = {
    CombatOutcome.VICTORY: 1.0,
    CombatOutcome.DRAW: 0.6,
    CombatOutcome.DEFEAT: 0.3,
}
INFRASTRUCTURE_RATE = {
    CombatOutcome.VICTORY: 0.1,
    CombatOutcome.DRAW: 0.3,
    CombatOutcome.DEFEAT: 0.6,
}


@dataclass(frozen=True, slots=True)
class CombatFactors:
    attack_power: float
    defense_power: float
    strength_ratio: float
    terrain_bonus: float
    preparation_bonus: float
    leadership_bonus: float
    morale_bonus: float
    equipment_bonus: float
    tactical_bonus: float
    weather_effect: float
    luck_factor: float
    surprise_factor: float

    @property
    def defense_score(self) -> float:
        return (
            self.strength_ratio
            + self.terrain_bonus
            + self.preparation_bonus
            + self.leadership_bonus
            + self.morale_bonus
            + self.equipment_bonus
            + self.tactical_bonus
            + self.weather_effect
            + self.luck_factor
            + self.surprise_factor
        )


@dataclass(frozen=True, slots=True)
class CombatResult:
    outcome: CombatOutcome
    victory_certainty: float
    decisiveness: float
    defender_casualties: int
    enemy_casualties: int
    infrastructure_damage: int
    resources_gained: ResourceBundle = field(default_factory=ResourceBundle)
    resources_lost: ResourceBundle = field(default_factory=ResourceBundle)
    governor_xp_gain: int = 0
    governor_loyalty_change: int = 0
    population_morale_change: int = 0
    battle_report: str = ""
    factors: CombatFactors | None = None


def defense_power(defense: DefenseForce, cfg: CombatConfig | None = None) -> float:
    cfg = cfg or CombatConfig()
    raw = (
        defense.garrison_size * cfg.garrison_weight
        + defense.militia_size * cfg.militia_weight
        + defense.barracks_bonus
        + defense.smithy_bonus
        + defense.governor_bonus
    )
    return max(0.0, raw * defense.combat_multiplier)


def calculate_combat_factors(
    enemy: EnemyForce,
    defense: DefenseForce,
    rng: random.Random,
    *,
    cfg: CombatConfig | None = None,
) -> CombatFactors:
    cfg = cfg or CombatConfig()
    attack = enemy.attack_power
    power = defense_power(defense, cfg)
    ratio = power / max(1.0, attack + cfg.toughness_weight * enemy.toughness)

    weather = (rng.random() - 0.5) * cfg.weather_span
    luck = (rng.random() - 0.5) * cfg.luck_span
    surprise = rng.random() * cfg.surprise_span

    return CombatFactors(
        attack_power=attack,
        defense_power=power,
        strength_ratio=ratio,
        terrain_bonus=cfg.base_terrain + defense.wall_level * cfg.wall_bonus + defense.watchtowers * cfg.watchtower_bonus,
        preparation_bonus=defense.preparation_bonus,
        leadership_bonus=defense.governor_bonus / 100.0,
        morale_bonus=(defense.population_morale - 50.0) / 200.0,
        equipment_bonus=defense.smithy_bonus / 100.0 + defense.strategic_reserves / 1000.0,
        tactical_bonus=defense.tactical_bonus,
        weather_effect=weather,
        luck_factor=luck,
        surprise_factor=surprise,
    )


def victory_certainty(factors: CombatFactors, cfg: CombatConfig | None = None) -> float:
    cfg = cfg or CombatConfig()
    if factors.defense_power <= 0:
        return 0.0
    if factors.attack_power <= 0:
        return 1.0
    exponent = -cfg.certainty_steepness * (factors.defense_score - cfg.certainty_pivot)
    # exp overflows for hopeless matchups; those are certain defeats anyway.
    if exponent > 700:
        return 0.0
    return 1.0 / (1.0 + math.exp(exponent))


def _draw_outcome(certainty: float, roll: float, cfg: CombatConfig) -> CombatOutcome:
    p_draw = cfg.draw_band * 4.0 * certainty * (1.0 - certainty)
    p_victory = certainty * (1.0 - p_draw)
    if roll < p_victory:
        return CombatOutcome.VICTORY
    if roll < p_victory + p_draw:
        return CombatOutcome.DRAW
    return CombatOutcome.DEFEAT


def _variance(roll: float, spread: float) -> float:
    return 1.0 + (roll - 0.5) * 2.0 * spread


def _battle_report(
    enemy: EnemyForce,
    defense: DefenseForce,
    outcome: CombatOutcome,
    factors: CombatFactors,
    decisiveness: float,
    tables: BalanceTables,
) -> str:
    commander = defense.governor_name or "your governor"
    decisive = decisiveness > 0.7
    close = decisiveness < 0.3

    parts = [f"{enemy.name} approached your province with {enemy.strength:g} strength."]
    if factors.preparation_bonus > 0.2:
        parts.append(f"Thanks to excellent preparation by {commander}, your defenses were ready.")
    elif factors.surprise_factor > 0.05:
        parts.append("The attack caught some defenders off-guard, but your forces quickly rallied.")

    profile = tables.personalities.get(defense.governor_personality) if defense.has_governor else None
    if profile is not None:
        parts.append(profile.battle_line.format(governor=commander))
    else:
        parts.append("Your forces engaged the enemy with determination.")

    if outcome is CombatOutcome.VICTORY:
        if decisive:
            parts.append("The battle was a decisive victory! Your superior strategy and preparation overwhelmed the attackers.")
        elif close:
            parts.append("After fierce fighting, your defenders emerged victorious, though the battle was hard-fought.")
        else:
            parts.append("Your forces achieved victory through solid combat effectiveness.")
    elif outcome is CombatOutcome.DRAW:
        parts.append(
            "The battle ended in a costly stalemate. Both sides withdrew after heavy fighting, "
            "with neither achieving their objectives."
        )
    else:
        if decisive:
            parts.append("Despite brave resistance, your forces were overwhelmed by superior enemy numbers and tactics.")
        elif close:
            parts.append(
                "The defenders fought valiantly but were ultimately forced to retreat. The defeat was narrow but costly."
            )
        else:
            parts.append("Your defenses proved insufficient against the enemy assault.")

    if factors.weather_effect > 0.03:
        parts.append("Favorable weather conditions aided the defense.")
    elif factors.weather_effect < -0.03:
        parts.append("Poor weather hindered defensive operations.")
    return " ".join(parts)


def resolve_combat(
    enemy: EnemyForce,
    defense: DefenseForce,
    rng: random.Random,
    *,
    cfg: CombatConfig | None = None,
    tables: BalanceTables | None = None,
) -> CombatResult:
    cfg = cfg or CombatConfig()
    tables = tables or default_tables()

    factors = calculate_combat_factors(enemy, defense, rng, cfg=cfg)
    certainty = victory_certainty(factors, cfg)
    outcome = _draw_outcome(certainty, rng.random(), cfg)
    defender_roll = rng.random()
    enemy_roll = rng.random()

    if outcome is CombatOutcome.VICTORY:
        decisiveness = certainty
    elif outcome is CombatOutcome.DEFEAT:
        decisiveness = 1.0 - certainty
    else:
        decisiveness = 0.5

    attack_effective = factors.attack_power + cfg.toughness_weight * enemy.toughness
    total_power = attack_effective + factors.defense_power
    attacker_share = attack_effective / total_power if total_power > 0 else 0.5

    size = defense.nominal_size
    defender_casualties = math.floor(
        size
        * DEFENDER_CASUALTY_RATE[outcome]
        * attacker_share
        * _variance(defender_roll, cfg.casualty_variance)
        * defense.casualty_modifier
    )
    defender_casualties = max(0, min(size, defender_casualties))

    enemy_size = int(enemy.strength)
    enemy_casualties = math.floor(
        enemy_size
        * ENEMY_CASUALTY_RATE[outcome]
        * (1.0 - attacker_share)
        * _variance(enemy_roll, cfg.casualty_variance)
    )
    enemy_casualties = max(0, min(enemy_size, enemy_casualties))

    infrastructure = math.floor(enemy.strength * cfg.infrastructure_share * INFRASTRUCTURE_RATE[outcome])

    if outcome is CombatOutcome.VICTORY:
        gained = enemy.victory_rewards.scaled(0.5 + 0.5 * decisiveness)
        lost = enemy.defeat_penalties.scaled(1.0 - cfg.victory_loss_reduction * certainty)
    elif outcome is CombatOutcome.DRAW:
        gained = enemy.victory_rewards.scaled(cfg.draw_reward_share)
        lost = enemy.defeat_penalties.scaled(cfg.draw_penalty_share)
    else:
        gained = ResourceBundle()
        lost = enemy.defeat_penalties.copy()
        lost.add(ResourceKind.STONE, infrastructure)

    xp_gain = 0
    loyalty_change = 0
    if defense.has_governor:
        if outcome is CombatOutcome.VICTORY:
            xp_gain = math.floor(enemy.threat_level * 25 + certainty * 50)
            loyalty_change = math.floor(2 + certainty * 3)
        elif outcome is CombatOutcome.DRAW:
            xp_gain = enemy.threat_level * 15
            loyalty_change = 1
        else:
            xp_gain = enemy.threat_level * 10
            loyalty_change = -2 - math.floor(decisiveness * 2)
        xp_gain = max(0, math.floor(xp_gain * defense.xp_multiplier))

    if outcome is CombatOutcome.VICTORY:
        morale_change = math.floor(5 + certainty * 10)
    elif outcome is CombatOutcome.DRAW:
        morale_change = -1
    else:
        morale_change = math.floor(-5 - decisiveness * 8)

    return CombatResult(
        outcome=outcome,
        victory_certainty=certainty,
        decisiveness=decisiveness,
        defender_casualties=int(defender_casualties),
        enemy_casualties=int(enemy_casualties),
        infrastructure_damage=int(infrastructure),
        resources_gained=gained,
        resources_lost=lost,
        governor_xp_gain=int(xp_gain),
        governor_loyalty_change=int(loyalty_change),
        population_morale_change=int(morale_change),
        battle_report=_battle_report(enemy, defense, outcome, factors, decisiveness, tables),
        factors=factors,
    )


def apply_combat_result(province: Province, result: CombatResult) -> Province:
    """Fold a combat result into the province; stock and governor stay within bounds."""

    for kind, qty in result.resources_gained.amounts.items():
        province.stock.add(kind, qty)
    province.stock.apply_cost(result.resources_lost)
    province.adjust_morale(result.population_morale_change)
    if province.governor is not None:
        province.governor.gain_xp(result.governor_xp_gain)
        province.governor.adjust_loyalty(result.governor_loyalty_change)
    return province


__all__ = [
    "CombatConfig",
    "CombatFactors",
    "CombatOutcome",
    "CombatResult",
    "apply_combat_result",
    "calculate_combat_factors",
    "defense_power",
    "resolve_combat",
    "victory_certainty",
]
