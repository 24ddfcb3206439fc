from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Mapping

from idle_empire.errors import ConfigurationError
from idle_empire.world.buildings import BuildingKind, building_from_key
from idle_empire.world.governors import Personality
from idle_empire.world.resources import ResourceBundle, ResourceKind, resource_from_key


class EventType(Enum):
    DISCOVERY = "DISCOVERY"
    DISASTER = "DISASTER"
    TRADE = "TRADE"
    BARBARIAN = "BARBARIAN"
    POLITICAL = "POLITICAL"
    ARTIFACT = "ARTIFACT"


class Rarity(Enum):
    COMMON = "COMMON"
    UNCOMMON = "UNCOMMON"
    RARE = "RARE"
    LEGENDARY = "LEGENDARY"


class ImpactType(Enum):
    IMMEDIATE = "IMMEDIATE"
    TEMPORARY = "TEMPORARY"
    PERMANENT = "PERMANENT"


RARITY_WEIGHTS: Dict[Rarity, float] = {
    Rarity.COMMON: 1.0,
    Rarity.UNCOMMON: 0.6,
    Rarity.RARE: 0.3,
    Rarity.LEGENDARY: 0.1,
}


@dataclass(frozen=True, slots=True)
class EventRequirements:
    min_provinces: int = 0
    min_buildings: Mapping[BuildingKind, int] = field(default_factory=dict)
    min_resources: Mapping[ResourceKind, int] = field(default_factory=dict)
    personalities: tuple[Personality, ...] = ()


@dataclass(frozen=True, slots=True)
class EventOutcome:
    message: str
    # Signed: negative entries are losses.
    resources: Mapping[ResourceKind, int] = field(default_factory=dict)
    governor_loyalty: int = 0
    governor_xp: int = 0
    followup_chance: float = 0.0


@dataclass(frozen=True, slots=True)
class EventChoice:
    choice_id: str
    text: str
    outcome: EventOutcome
    cost: ResourceBundle = field(default_factory=ResourceBundle)
    requirements: EventRequirements = field(default_factory=EventRequirements)


@dataclass(frozen=True, slots=True)
class GameEvent:
    key: str
    type: EventType
    title: str
    description: str
    rarity: Rarity
    impact: ImpactType
    weight: float
    choices: tuple[EventChoice, ...]
    requirements: EventRequirements = field(default_factory=EventRequirements)
    duration_hours: float | None = None

    @property
    def spawn_weight(self) -> float:
        return float(self.weight) * RARITY_WEIGHTS[self.rarity]

    def choice(self, choice_id: str) -> EventChoice:
        for option in self.choices:
            if option.choice_id == choice_id:
                return option
        raise ConfigurationError(f"Invalid choice {choice_id!r} for event {self.key!r}")


def _signed(raw: Mapping[str, int] | None) -> Dict[ResourceKind, int]:
    result: Dict[ResourceKind, int] = {}
    for key, qty in (raw or {}).items():
        kind = resource_from_key(key)
        if kind is not None:
            result[kind] = result.get(kind, 0) + int(qty)
    return result


def _requires(
    *,
    min_provinces: int = 0,
    buildings: Mapping[str, int] | None = None,
    resources: Mapping[str, int] | None = None,
    personalities: Iterable[Personality] = (),
) -> EventRequirements:
    return EventRequirements(
        min_provinces=min_provinces,
        min_buildings={building_from_key(k): int(v) for k, v in (buildings or {}).items()},
        min_resources=ResourceBundle(dict(resources or {})).amounts,
        personalities=tuple(personalities),
    )


def _choice(
    choice_id: str,
    text: str,
    message: str,
    *,
    cost: Mapping[str, int] | None = None,
    gains: Mapping[str, int] | None = None,
    loyalty: int = 0,
    xp: int = 0,
    followup: float = 0.0,
    requirements: EventRequirements | None = None,
) -> EventChoice:
    return EventChoice(
        choice_id=choice_id,
        text=text,
        cost=ResourceBundle(dict(cost or {})),
        requirements=requirements or EventRequirements(),
        outcome=EventOutcome(
            message=message,
            resources=_signed(gains),
            governor_loyalty=loyalty,
            governor_xp=xp,
            followup_chance=followup,
        ),
    )


def event_registry() -> dict[str, GameEvent]:
    events = [
        GameEvent(
            key="ANCIENT_CACHE",
            type=EventType.DISCOVERY,
            title="Ancient Cache Discovery",
            description="Workers uncovered a storage chamber from a forgotten civilization.",
            rarity=Rarity.COMMON,
            impact=ImpactType.IMMEDIATE,
            weight=15,
            choices=(
                _choice("take_all", "Take Everything", "Your province prospers from the ancient riches!",
                        gains={"gold": 800, "stone": 200, "influence": 50}),
                _choice("preserve_site", "Preserve for Study",
                        "Archaeological study brings knowledge and prestige to your empire.",
                        cost={"gold": 300}, gains={"gold": 400, "influence": 100}, xp=150),
            ),
        ),
        GameEvent(
            key="FERTILE_SOIL",
            type=EventType.DISCOVERY,
            title="Fertile Soil Discovery",
            description="A patch of exceptionally fertile land has been found.",
            rarity=Rarity.COMMON,
            impact=ImpactType.TEMPORARY,
            weight=20,
            duration_hours=24,
            choices=(
                _choice("plant_crops", "Plant Immediate Crops", "Rapid farming yields abundant food supplies!",
                        cost={"gold": 200, "population": 10}, gains={"food": 1200}),
                _choice("develop_farmland", "Develop Permanent Farmland",
                        "New farmland will boost food production for the next day!",
                        cost={"gold": 500, "stone": 300}, gains={"food": 600}),
            ),
        ),
        GameEvent(
            key="WAREHOUSE_FIRE",
            type=EventType.DISASTER,
            title="Warehouse Fire",
            description="A fire has broken out in the main storage facility.",
            rarity=Rarity.UNCOMMON,
            impact=ImpactType.IMMEDIATE,
            weight=8,
            choices=(
                _choice("fight_fire", "Organize Fire Brigade",
                        "Citizens rally together! Some resources lost but community bonds strengthen.",
                        cost={"population": 20, "gold": 300},
                        gains={"food": -500, "stone": -200, "iron": -100}, loyalty=5),
                _choice("let_burn", "Let it Burn",
                        "Heavy losses sustained. Your governor questions the lack of action.",
                        gains={"food": -800, "stone": -400, "iron": -300, "gold": -200}, loyalty=-10),
                _choice("magical_intervention", "Seek Magical Aid",
                        "Ancient knowledge saves the day! Minimal losses through mystical intervention.",
                        cost={"influence": 100}, gains={"food": -100}, xp=100,
                        requirements=_requires(buildings={"ACADEMY": 1})),
            ),
        ),
        GameEvent(
            key="PLAGUE_OUTBREAK",
            type=EventType.DISASTER,
            title="Disease Outbreak",
            description="A mysterious illness spreads through the province.",
            rarity=Rarity.RARE,
            impact=ImpactType.TEMPORARY,
            weight=4,
            duration_hours=12,
            choices=(
                _choice("quarantine", "Strict Quarantine",
                        "Quarantine contains the outbreak but at great cost to productivity.",
                        gains={"population": -100, "food": -300}),
                _choice("herbal_remedies", "Traditional Medicine",
                        "Traditional remedies prove effective. Governor gains respect for wisdom.",
                        cost={"gold": 400}, gains={"population": -50}, loyalty=10),
            ),
        ),
        GameEvent(
            key="MERCHANT_CARAVAN",
            type=EventType.TRADE,
            title="Merchant Caravan Arrival",
            description="A wealthy caravan offers exotic goods and trade relations.",
            rarity=Rarity.COMMON,
            impact=ImpactType.IMMEDIATE,
            weight=12,
            requirements=_requires(buildings={"MARKETPLACE": 1}),
            choices=(
                _choice("luxury_trade", "Trade for Luxury Goods",
                        "Exotic trade goods boost your prestige across the empire!",
                        cost={"gold": 600, "food": 300}, gains={"influence": 150, "iron": 200}),
                _choice("bulk_trade", "Bulk Resource Exchange", "Profitable trade strengthens your treasury!",
                        cost={"stone": 500}, gains={"gold": 1000, "food": 400}),
                _choice("establish_route", "Establish Trade Route",
                        "New trade route established! Merchants will return regularly.",
                        cost={"gold": 800, "influence": 50}, gains={"gold": 300}, followup=0.3),
            ),
        ),
        GameEvent(
            key="BARBARIAN_SCOUTS",
            type=EventType.BARBARIAN,
            title="Barbarian Scouts Spotted",
            description="Strange figures watch the province from the hills.",
            rarity=Rarity.UNCOMMON,
            impact=ImpactType.IMMEDIATE,
            weight=10,
            choices=(
                _choice("military_response", "Show of Force",
                        "Your military display discourages barbarian interest.",
                        cost={"gold": 200}, gains={"influence": 75}, xp=50,
                        requirements=_requires(buildings={"BARRACKS": 1})),
                _choice("diplomatic_approach", "Peaceful Contact",
                        "Diplomatic gifts establish uneasy peace. The barbarians withdraw... for now.",
                        cost={"food": 300, "gold": 150}, gains={"influence": 25}),
                _choice("ignore_scouts", "Ignore Them",
                        "The scouts observe your province and disappear.", followup=0.6),
            ),
        ),
        GameEvent(
            key="ROYAL_ENVOY",
            type=EventType.POLITICAL,
            title="Royal Envoy",
            description="An envoy from a neighbouring court asks for an audience.",
            rarity=Rarity.UNCOMMON,
            impact=ImpactType.IMMEDIATE,
            weight=6,
            requirements=_requires(min_provinces=2),
            choices=(
                _choice("host_feast", "Host a Feast", "The envoy leaves impressed by your hospitality.",
                        cost={"food": 400, "gold": 200}, gains={"influence": 180}, loyalty=3),
                _choice("send_away", "Send Them Away", "The envoy departs, offended.",
                        gains={"influence": -40}),
            ),
        ),
        GameEvent(
            key="MANA_SPRING",
            type=EventType.ARTIFACT,
            title="Mana Spring",
            description="A spring glowing with raw magic bubbles up near the academy.",
            rarity=Rarity.RARE,
            impact=ImpactType.PERMANENT,
            weight=3,
            requirements=_requires(buildings={"ACADEMY": 1}),
            choices=(
                _choice("tap_spring", "Tap the Spring", "Mages bottle the spring's power.",
                        cost={"energy": 50}, gains={"mana": 300}, xp=80),
                _choice("seal_spring", "Seal It Away", "The spring is sealed; the people feel safer.",
                        gains={"influence": 60}, loyalty=5),
            ),
        ),
        GameEvent(
            key="CRYSTAL_DISCOVERY",
            type=EventType.ARTIFACT,
            title="Mysterious Crystal",
            description="Miners discovered a crystal pulsing with otherworldly energy.",
            rarity=Rarity.LEGENDARY,
            impact=ImpactType.PERMANENT,
            weight=2,
            requirements=_requires(buildings={"MINE": 2}),
            choices=(
                _choice("study_crystal", "Scientific Study",
                        "Crystal study reveals ancient mining techniques!",
                        cost={"gold": 1000, "influence": 100}, gains={"influence": 200}, xp=300,
                        requirements=_requires(buildings={"ACADEMY": 1})),
                _choice("display_crystal", "Create Monument",
                        "The crystal monument inspires your people and attracts visitors!",
                        cost={"stone": 800, "gold": 500}, gains={"influence": 300}, loyalty=15),
            ),
        ),
    ]
    return {event.key: event for event in events}


__all__ = [
    "EventChoice",
    "EventOutcome",
    "EventRequirements",
    "EventType",
    "GameEvent",
    "ImpactType",
    "RARITY_WEIGHTS",
    "Rarity",
    "event_registry",
]
