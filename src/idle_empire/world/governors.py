"""Governor records and the fixed per-personality behaviour profiles."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping

from idle_empire.errors import ConfigurationError
from idle_empire.world.buildings import BuildingKind
from idle_empire.world.resources import ResourceKind

MAX_LOYALTY = 100
MAX_XP = 10_000


class Personality(Enum):
    CONSERVATIVE = "CONSERVATIVE"
    AGGRESSIVE = "AGGRESSIVE"
    MERCHANT = "MERCHANT"
    EXPLORER = "EXPLORER"


def personality_from_key(key: object) -> Personality | None:
    if isinstance(key, Personality):
        return key
    if not isinstance(key, str):
        return None
    try:
        return Personality[key.strip().upper()]
    except KeyError:
        return None


@dataclass(slots=True)
class Governor:
    name: str
    personality: Personality
    loyalty: int = 50
    xp: int = 0

    def __post_init__(self) -> None:
        resolved = personality_from_key(self.personality)
        if resolved is None:
            raise ConfigurationError(f"Unknown governor personality: {self.personality!r}")
        self.personality = resolved
        self.loyalty = max(0, min(MAX_LOYALTY, int(self.loyalty)))
        self.xp = max(0, min(MAX_XP, int(self.xp)))

    def adjust_loyalty(self, delta: int) -> int:
        self.loyalty = max(0, min(MAX_LOYALTY, self.loyalty + int(delta)))
        return self.loyalty

    def gain_xp(self, amount: int) -> int:
        self.xp = max(0, min(MAX_XP, self.xp + max(0, int(amount))))
        return self.xp


@dataclass(frozen=True)
class PersonalityProfile:
    """Everything that varies by governor personality.

    Priority tables are ordered: when two candidates score the same, the one
    listed first wins.
    """

    personality: Personality
    label: str
    description: str
    building_priorities: Mapping[BuildingKind, int]
    research_priorities: Mapping[str, int]
    production_modifiers: Mapping[ResourceKind, float]
    combat_leadership: float  # base governor bonus at full loyalty
    preparation_bonus: float
    tactical_bonus: float
    event_chance_shift: float
    battle_line: str


def _mods(**values: float) -> Dict[ResourceKind, float]:
    return {ResourceKind(key): float(value) for key, value in values.items()}


PERSONALITY_PROFILES: Dict[Personality, PersonalityProfile] = {
    Personality.CONSERVATIVE: PersonalityProfile(
        personality=Personality.CONSERVATIVE,
        label="Conservative",
        description="A cautious leader focused on stability and defense.",
        building_priorities={
            BuildingKind.FARM: 10,
            BuildingKind.QUARRY: 8,
            BuildingKind.BARRACKS: 6,
            BuildingKind.MINE: 5,
            BuildingKind.MARKETPLACE: 3,
            BuildingKind.ACADEMY: 2,
            BuildingKind.WALLS: 7,
            BuildingKind.WATCHTOWER: 4,
            BuildingKind.SMITHY: 3,
        },
        research_priorities={
            "AGRICULTURE_1": 10,
            "CONSTRUCTION_1": 8,
            "MINING_1": 6,
            "TRADE_1": 4,
            "MILITARY_1": 3,
            "AGRICULTURE_2": 7,
            "FORTIFICATION": 6,
            "MEDICINE": 5,
        },
        production_modifiers=_mods(
            gold=1.1, food=1.2, stone=1.0, iron=0.9, population=1.1, influence=0.95, mana=1.0, energy=1.05
        ),
        combat_leadership=25.0,
        preparation_bonus=0.25,
        tactical_bonus=0.15,
        event_chance_shift=-0.03,
        battle_line="{governor} employed proven defensive tactics, holding strong positions.",
    ),
    Personality.AGGRESSIVE: PersonalityProfile(
        personality=Personality.AGGRESSIVE,
        label="Aggressive",
        description="A bold commander eager to expand the empire's reach.",
        building_priorities={
            BuildingKind.BARRACKS: 10,
            BuildingKind.MINE: 8,
            BuildingKind.ACADEMY: 6,
            BuildingKind.FARM: 5,
            BuildingKind.QUARRY: 4,
            BuildingKind.MARKETPLACE: 2,
            BuildingKind.SMITHY: 7,
            BuildingKind.WALLS: 3,
            BuildingKind.WATCHTOWER: 3,
        },
        research_priorities={
            "MILITARY_1": 10,
            "CONSTRUCTION_1": 8,
            "MINING_1": 6,
            "AGRICULTURE_1": 4,
            "TRADE_1": 2,
            "MILITARY_2": 9,
            "FORTIFICATION": 7,
            "WAR_COLLEGE": 8,
        },
        production_modifiers=_mods(
            gold=0.9, food=0.95, stone=1.0, iron=1.3, population=0.9, influence=1.2, mana=0.9, energy=1.1
        ),
        combat_leadership=40.0,
        preparation_bonus=0.15,
        tactical_bonus=0.1,
        event_chance_shift=0.05,
        battle_line="{governor} led a bold counter-attack, meeting the enemy head-on.",
    ),
    Personality.MERCHANT: PersonalityProfile(
        personality=Personality.MERCHANT,
        label="Merchant",
        description="A shrewd trader who sees profit in every opportunity.",
        building_priorities={
            BuildingKind.MARKETPLACE: 10,
            BuildingKind.MINE: 9,
            BuildingKind.FARM: 6,
            BuildingKind.QUARRY: 5,
            BuildingKind.ACADEMY: 4,
            BuildingKind.BARRACKS: 2,
            BuildingKind.WATCHTOWER: 3,
            BuildingKind.WALLS: 2,
            BuildingKind.SMITHY: 1,
        },
        research_priorities={
            "TRADE_1": 10,
            "MINING_1": 9,
            "AGRICULTURE_1": 6,
            "CONSTRUCTION_1": 5,
            "MILITARY_1": 2,
            "TRADE_2": 9,
            "MINING_2": 7,
            "EMPIRE_TRADE": 8,
        },
        production_modifiers=_mods(
            gold=1.4, food=1.0, stone=1.1, iron=1.0, population=1.05, influence=1.1, mana=1.0, energy=1.0
        ),
        combat_leadership=15.0,
        preparation_bonus=0.12,
        tactical_bonus=0.05,
        event_chance_shift=0.0,
        battle_line="{governor} coordinated hired mercenaries alongside the local militia.",
    ),
    Personality.EXPLORER: PersonalityProfile(
        personality=Personality.EXPLORER,
        label="Explorer",
        description="A curious scholar seeking knowledge and new frontiers.",
        building_priorities={
            BuildingKind.ACADEMY: 10,
            BuildingKind.MINE: 7,
            BuildingKind.MARKETPLACE: 6,
            BuildingKind.FARM: 5,
            BuildingKind.QUARRY: 4,
            BuildingKind.BARRACKS: 3,
            BuildingKind.WATCHTOWER: 5,
            BuildingKind.SMITHY: 2,
            BuildingKind.WALLS: 2,
        },
        research_priorities={
            "CONSTRUCTION_1": 10,
            "MINING_1": 8,
            "AGRICULTURE_1": 7,
            "TRADE_1": 6,
            "MILITARY_1": 4,
            "SCHOLARSHIP": 9,
            "ENGINEERING": 7,
            "ARCANE_STUDIES": 8,
        },
        production_modifiers=_mods(
            gold=1.15, food=1.0, stone=1.2, iron=1.15, population=0.95, influence=1.3, mana=1.2, energy=0.95
        ),
        combat_leadership=20.0,
        preparation_bonus=0.2,
        tactical_bonus=0.2,
        event_chance_shift=0.1,
        battle_line="{governor} used clever tactical maneuvers to outflank the attackers.",
    ),
}


def get_personality_profile(
    personality: Personality | str,
    profiles: Mapping[Personality, PersonalityProfile] | None = None,
) -> PersonalityProfile:
    """Return the profile for ``personality`` or raise ``ConfigurationError``."""

    table = profiles if profiles is not None else PERSONALITY_PROFILES
    resolved = personality_from_key(personality)
    try:
        return table[resolved]  # type: ignore[index]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown governor personality: {personality!r}") from exc


__all__ = [
    "Governor",
    "MAX_LOYALTY",
    "MAX_XP",
    "PERSONALITY_PROFILES",
    "Personality",
    "PersonalityProfile",
    "get_personality_profile",
    "personality_from_key",
]
