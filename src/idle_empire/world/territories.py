from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping

from idle_empire.world.resources import ResourceBundle, ResourceKind


class TerritoryType(Enum):
    FERTILE_PLAINS = "FERTILE_PLAINS"
    MOUNTAIN_REGION = "MOUNTAIN_REGION"
    FOREST_LANDS = "FOREST_LANDS"
    COASTAL_AREA = "COASTAL_AREA"
    DESERT_OASIS = "DESERT_OASIS"
    ANCIENT_RUINS = "ANCIENT_RUINS"


@dataclass(frozen=True, slots=True)
class TerritoryTypeSpec:
    type: TerritoryType
    multipliers: Mapping[ResourceKind, float]
    population_capacity: int
    spawn_weight: float
    features: tuple[str, ...]
    names: tuple[str, ...]
    descriptions: tuple[str, ...]


@dataclass(slots=True)
class Territory:
    territory_id: str
    name: str
    type: TerritoryType
    difficulty: int
    multipliers: Dict[ResourceKind, float]
    population_capacity: int
    features: list[str]
    exploration_cost: ResourceBundle
    colonization_cost: ResourceBundle
    description: str = ""
    notes: dict[str, object] = field(default_factory=dict)


def _multipliers(gold: float, food: float, stone: float, iron: float, influence: float) -> Dict[ResourceKind, float]:
    return {
        ResourceKind.GOLD: gold,
        ResourceKind.FOOD: food,
        ResourceKind.STONE: stone,
        ResourceKind.IRON: iron,
        ResourceKind.INFLUENCE: influence,
    }


def territory_registry() -> dict[TerritoryType, TerritoryTypeSpec]:
    specs = [
        TerritoryTypeSpec(
            type=TerritoryType.FERTILE_PLAINS,
            multipliers=_multipliers(1.0, 1.5, 0.8, 0.9, 1.0),
            population_capacity=120,
            spawn_weight=20,
            features=(
                "Rich soil perfect for agriculture",
                "Natural grazing lands",
                "Abundant fresh water sources",
                "Fertile river delta",
            ),
            names=(
                "Verdant Valley", "Golden Fields", "Harvest Plains", "Greenvale",
                "Abundant Meadows", "Fertile Crescent", "Bountiful Lands",
            ),
            descriptions=(
                "Vast plains stretch as far as the eye can see, with soil so rich it seems to glow.",
                "Rolling hills covered in wild grasses sway gently in the wind.",
                "A river delta creates perfect conditions for abundant crops.",
            ),
        ),
        TerritoryTypeSpec(
            type=TerritoryType.MOUNTAIN_REGION,
            multipliers=_multipliers(1.2, 0.7, 1.8, 1.6, 1.1),
            population_capacity=80,
            spawn_weight=18,
            features=(
                "Rich mineral deposits",
                "Natural stone quarries",
                "Defensive mountain passes",
                "Rare metal veins",
            ),
            names=(
                "Iron Peaks", "Stone Crown", "Mineral Heights", "Rocky Spires",
                "Golden Summit", "Granite Range", "Ore Mountains",
            ),
            descriptions=(
                "Towering peaks hide vast mineral wealth within their stone hearts.",
                "Ancient mountains reveal glinting veins of precious metals.",
                "Rocky cliffs provide natural fortification and abundant stone.",
            ),
        ),
        TerritoryTypeSpec(
            type=TerritoryType.FOREST_LANDS,
            multipliers=_multipliers(1.0, 1.1, 1.0, 1.0, 1.0),
            population_capacity=100,
            spawn_weight=22,
            features=(
                "Dense timber resources",
                "Natural hunting grounds",
                "Hidden clearings",
                "Medicinal herbs",
            ),
            names=(
                "Whispering Woods", "Ancient Grove", "Deepwood", "Timberlands",
                "Silverleaf Forest", "Elderwood", "Mystic Thicket",
            ),
            descriptions=(
                "Ancient trees form a canopy so thick that sunlight barely reaches the forest floor.",
                "Peaceful groves hide countless resources and natural wonders.",
                "Dense woodlands offer balanced resources and natural beauty.",
            ),
        ),
        TerritoryTypeSpec(
            type=TerritoryType.COASTAL_AREA,
            multipliers=_multipliers(1.3, 1.2, 0.9, 0.8, 1.4),
            population_capacity=110,
            spawn_weight=16,
            features=(
                "Natural harbors",
                "Trade wind advantages",
                "Rich fishing waters",
                "Salt deposits",
            ),
            names=(
                "Golden Coast", "Harbor Bay", "Trade Winds", "Azure Shores",
                "Merchant's Haven", "Salt Flats", "Pearl Waters",
            ),
            descriptions=(
                "A pristine coastline where merchant ships can dock safely in natural harbors.",
                "Rich fishing waters and trade winds make this an ideal commercial center.",
                "Sandy beaches hide valuable salt deposits and pearl beds.",
            ),
        ),
        TerritoryTypeSpec(
            type=TerritoryType.DESERT_OASIS,
            multipliers=_multipliers(1.5, 0.6, 1.1, 1.3, 1.2),
            population_capacity=70,
            spawn_weight=12,
            features=(
                "Rare gem deposits",
                "Precious metal veins",
                "Ancient trade routes",
                "Exotic spices",
            ),
            names=(
                "Mirage Springs", "Desert Jewel", "Sandstone Oasis", "Golden Dunes",
                "Caravan Rest", "Emerald Springs", "Nomad's Haven",
            ),
            descriptions=(
                "A life-giving oasis in the harsh desert, rumored to contain rare treasures.",
                "Ancient caravan routes converge at this vital water source.",
                "Harsh conditions hide incredible wealth for those brave enough to claim it.",
            ),
        ),
        TerritoryTypeSpec(
            type=TerritoryType.ANCIENT_RUINS,
            multipliers=_multipliers(1.1, 0.8, 1.4, 1.1, 1.6),
            population_capacity=90,
            spawn_weight=12,
            features=(
                "Archaeological treasures",
                "Ancient knowledge",
                "Mystical artifacts",
                "Historical significance",
            ),
            names=(
                "Lost Citadel", "Forgotten Temple", "Ancient Sanctum", "Ruined Palace",
                "Mysterious Stones", "Scholar's Dream", "Artifact Valley",
            ),
            descriptions=(
                "Crumbling ruins hint at a once-great civilization that ruled these lands.",
                "Ancient stones whisper secrets of forgotten knowledge and lost technologies.",
                "Archaeological wonders wait to be discovered among weathered monuments.",
            ),
        ),
    ]
    return {spec.type: spec for spec in specs}


GOVERNOR_NAMES: tuple[str, ...] = (
    "Gaius Maximus", "Julia Victrix", "Marcus Aurelius", "Livia Fortuna",
    "Titus Valerius", "Claudia Magna", "Lucius Rex", "Octavia Prima",
    "Alexandros", "Theodora", "Nikias", "Helena", "Demetrius", "Sophia",
    "Aldric Stormwind", "Elara Brightblade", "Thane Ironforge", "Lyra Goldmane",
    "Gareth Stoneheart", "Aria Swiftarrow", "Magnus Brightshield", "Sera Nightwhisper",
)


__all__ = [
    "GOVERNOR_NAMES",
    "Territory",
    "TerritoryType",
    "TerritoryTypeSpec",
    "territory_registry",
]
