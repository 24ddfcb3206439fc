from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping

from idle_empire.errors import ConfigurationError
from idle_empire.world.resources import ResourceBundle, ResourceKind, resource_from_key

RESOURCE_ATTRACTION_THRESHOLD = 500


class EnemyType(Enum):
    BARBARIAN_SCOUTS = "BARBARIAN_SCOUTS"
    BARBARIAN_WARRIORS = "BARBARIAN_WARRIORS"
    BARBARIAN_HORDE = "BARBARIAN_HORDE"
    BEAST_PACK = "BEAST_PACK"
    RIVAL_SPIES = "RIVAL_SPIES"
    BANDIT_GANG = "BANDIT_GANG"
    CULTIST_SECT = "CULTIST_SECT"


@dataclass(frozen=True, slots=True)
class EnemyForce:
    key: str
    name: str
    type: EnemyType
    strength: float
    toughness: float
    speed: float
    cunning: float
    threat_level: int
    min_province_level: int
    spawn_weight: float
    victory_rewards: ResourceBundle
    defeat_penalties: ResourceBundle
    min_threat: float | None = None
    max_threat: float | None = None
    near_resources: tuple[ResourceKind, ...] = ()
    description: str = ""

    @property
    def attack_power(self) -> float:
        return float(self.strength) + 0.5 * float(self.cunning)


def _enemy(
    key: str,
    name: str,
    type: EnemyType,
    *,
    strength: float,
    toughness: float,
    speed: float,
    cunning: float,
    threat_level: int,
    min_province_level: int,
    spawn_weight: float,
    rewards: Mapping[str, int],
    penalties: Mapping[str, int],
    min_threat: float | None = None,
    max_threat: float | None = None,
    near_resources: Iterable[str] = (),
    description: str = "",
) -> EnemyForce:
    attractions = tuple(kind for kind in (resource_from_key(res) for res in near_resources) if kind is not None)
    return EnemyForce(
        key=key,
        name=name,
        type=type,
        strength=float(strength),
        toughness=float(toughness),
        speed=float(speed),
        cunning=float(cunning),
        threat_level=int(threat_level),
        min_province_level=int(min_province_level),
        spawn_weight=float(spawn_weight),
        victory_rewards=ResourceBundle(dict(rewards)),
        defeat_penalties=ResourceBundle(dict(penalties)),
        min_threat=min_threat,
        max_threat=max_threat,
        near_resources=attractions,
        description=description,
    )


def enemy_registry() -> dict[str, EnemyForce]:
    enemies = [
        _enemy(
            "BARBARIAN_SCOUTS",
            "Barbarian Scout Party",
            EnemyType.BARBARIAN_SCOUTS,
            strength=25, toughness=20, speed=80, cunning=40,
            threat_level=2, min_province_level=1, spawn_weight=25,
            rewards={"gold": 150, "iron": 50, "influence": 25},
            penalties={"food": 300, "gold": 200, "population": 20},
            min_threat=5, max_threat=30,
            description="A small group of scouts testing your defenses.",
        ),
        _enemy(
            "BARBARIAN_RAIDERS",
            "Barbarian Raiding Party",
            EnemyType.BARBARIAN_WARRIORS,
            strength=55, toughness=50, speed=60, cunning=65,
            threat_level=5, min_province_level=2, spawn_weight=15,
            rewards={"gold": 400, "iron": 150, "stone": 100, "influence": 75},
            penalties={"food": 600, "gold": 500, "stone": 200, "population": 50, "influence": 30},
            min_threat=15, max_threat=60, near_resources=("gold", "iron"),
            description="Seasoned warriors seeking plunder.",
        ),
        _enemy(
            "BARBARIAN_WARBAND",
            "Barbarian Warband",
            EnemyType.BARBARIAN_HORDE,
            strength=85, toughness=75, speed=40, cunning=55,
            threat_level=8, min_province_level=3, spawn_weight=5,
            rewards={"gold": 1000, "iron": 400, "stone": 300, "influence": 200, "population": 30},
            penalties={"food": 1200, "gold": 800, "stone": 500, "iron": 300, "population": 100, "influence": 75},
            min_threat=40, near_resources=("gold", "population"),
            description="A massive horde with siege equipment.",
        ),
        _enemy(
            "WOLF_PACK",
            "Dire Wolf Pack",
            EnemyType.BEAST_PACK,
            strength=40, toughness=35, speed=90, cunning=70,
            threat_level=3, min_province_level=1, spawn_weight=20,
            rewards={"food": 200, "iron": 25, "influence": 15},
            penalties={"food": 400, "population": 30, "gold": 100},
            min_threat=10, max_threat=40, near_resources=("food",),
            description="Unnaturally large wolves driven from their territory.",
        ),
        _enemy(
            "SHADOW_BEASTS",
            "Shadow Beast Incursion",
            EnemyType.BEAST_PACK,
            strength=65, toughness=60, speed=75, cunning=85,
            threat_level=6, min_province_level=2, spawn_weight=8,
            rewards={"influence": 150, "gold": 300, "iron": 100, "mana": 40},
            penalties={"population": 60, "influence": 50, "food": 300, "mana": 30},
            min_threat=20, near_resources=("influence", "mana"),
            description="Creatures from the dark places, drawn to magical energy.",
        ),
        _enemy(
            "BANDIT_GANG",
            "Desperate Bandits",
            EnemyType.BANDIT_GANG,
            strength=35, toughness=25, speed=70, cunning=80,
            threat_level=3, min_province_level=1, spawn_weight=18,
            rewards={"gold": 250, "iron": 75, "influence": 20},
            penalties={"gold": 400, "food": 200, "stone": 150},
            min_threat=8, max_threat=35, near_resources=("gold",),
            description="Outlaws who prefer quick strikes over prolonged battles.",
        ),
        _enemy(
            "RIVAL_SPIES",
            "Rival Empire Agents",
            EnemyType.RIVAL_SPIES,
            strength=20, toughness=30, speed=95, cunning=95,
            threat_level=4, min_province_level=2, spawn_weight=12,
            rewards={"influence": 100, "gold": 200, "iron": 50},
            penalties={"influence": 100, "gold": 300, "population": 15},
            min_threat=15, near_resources=("influence", "gold"),
            description="Infiltrators seeking to steal secrets and sabotage progress.",
        ),
        _enemy(
            "CULTIST_INFILTRATORS",
            "Cult of the Void",
            EnemyType.CULTIST_SECT,
            strength=30, toughness=40, speed=50, cunning=90,
            threat_level=5, min_province_level=2, spawn_weight=10,
            rewards={"influence": 120, "gold": 300, "population": 20},
            penalties={"population": 80, "influence": 75, "food": 250},
            min_threat=25, near_resources=("influence", "population"),
            description="Fanatics promising dark power.",
        ),
        _enemy(
            "NECROMANCER_LEGION",
            "Undead Legion",
            EnemyType.CULTIST_SECT,
            strength=75, toughness=90, speed=30, cunning=60,
            threat_level=9, min_province_level=3, spawn_weight=3,
            rewards={"influence": 250, "gold": 600, "iron": 200, "stone": 400},
            penalties={"population": 150, "food": 800, "influence": 100, "gold": 400},
            min_threat=50, near_resources=("population", "influence"),
            description="The walking dead, led by a powerful necromancer.",
        ),
    ]
    return {enemy.key: enemy for enemy in enemies}


def get_enemy(key: str, registry: Mapping[str, EnemyForce] | None = None) -> EnemyForce:
    table = registry if registry is not None else enemy_registry()
    try:
        return table[key]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown enemy force: {key!r}") from exc


def is_enemy_eligible(
    enemy: EnemyForce,
    *,
    province_level: int,
    threat: float,
    resources: ResourceBundle,
    attraction_threshold: int = RESOURCE_ATTRACTION_THRESHOLD,
) -> bool:
    if province_level < enemy.min_province_level:
        return False
    if enemy.min_threat is not None and threat < enemy.min_threat:
        return False
    if enemy.max_threat is not None and threat > enemy.max_threat:
        return False
    if enemy.near_resources:
        return any(resources.get(kind) > attraction_threshold for kind in enemy.near_resources)
    return True


__all__ = [
    "EnemyForce",
    "EnemyType",
    "RESOURCE_ATTRACTION_THRESHOLD",
    "enemy_registry",
    "get_enemy",
    "is_enemy_eligible",
]
