from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Mapping


class ResourceKind(Enum):
    GOLD = "gold"
    FOOD = "food"
    STONE = "stone"
    IRON = "iron"
    POPULATION = "population"
    INFLUENCE = "influence"
    MANA = "mana"
    ENERGY = "energy"


_ALIASES = {"pop": ResourceKind.POPULATION}


def resource_from_key(key: object) -> ResourceKind | None:
    if isinstance(key, ResourceKind):
        return key
    if not isinstance(key, str):
        return None
    if "." in key:
        key = key.split(".")[-1]
    lowered = key.strip().lower()
    if lowered in _ALIASES:
        return _ALIASES[lowered]
    try:
        return ResourceKind(lowered)
    except ValueError:
        return None


def normalize_amounts(raw: Mapping[object, object] | None) -> Dict[ResourceKind, int]:
    """Coerce a loosely keyed mapping into non-negative integer amounts.

    Unknown keys and values that are not numbers are dropped; duplicate keys
    (``"pop"`` and ``"population"``) are summed.
    """

    amounts: Dict[ResourceKind, int] = {}
    for key, qty in (raw or {}).items():
        kind = resource_from_key(key)
        if kind is None:
            continue
        try:
            amount = int(qty)
        except (TypeError, ValueError):
            continue
        if amount <= 0:
            continue
        amounts[kind] = amounts.get(kind, 0) + amount
    return amounts


@dataclass(slots=True)
class ResourceBundle:
    amounts: Dict[ResourceKind, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.amounts = normalize_amounts(self.amounts)

    @classmethod
    def of(cls, **amounts: int) -> "ResourceBundle":
        return cls(dict(amounts))

    def __iter__(self) -> Iterator[ResourceKind]:
        return iter(kind for kind in ResourceKind if self.amounts.get(kind, 0) > 0)

    def __bool__(self) -> bool:
        return any(qty > 0 for qty in self.amounts.values())

    def get(self, kind: ResourceKind | str) -> int:
        resolved = resource_from_key(kind)
        if resolved is None:
            return 0
        return int(self.amounts.get(resolved, 0))

    def add(self, kind: ResourceKind, qty: int) -> None:
        if qty <= 0:
            return
        self.amounts[kind] = self.get(kind) + int(qty)

    def remove(self, kind: ResourceKind, qty: int) -> int:
        """Remove up to ``qty`` units and return how many were actually taken."""

        if qty <= 0:
            return 0
        current = self.get(kind)
        new_value = max(0, current - int(qty))
        if new_value:
            self.amounts[kind] = new_value
        else:
            self.amounts.pop(kind, None)
        return current - new_value

    def apply_delta(self, kind: ResourceKind, delta: int) -> None:
        if delta >= 0:
            self.add(kind, delta)
        else:
            self.remove(kind, -delta)

    def can_afford(self, cost: "ResourceBundle" | Mapping[ResourceKind, int]) -> bool:
        items = cost.amounts if isinstance(cost, ResourceBundle) else cost
        return all(self.get(kind) >= int(qty) for kind, qty in items.items())

    def apply_cost(self, cost: "ResourceBundle" | Mapping[ResourceKind, int]) -> None:
        items = cost.amounts if isinstance(cost, ResourceBundle) else cost
        for kind, qty in items.items():
            self.remove(kind, int(qty))

    def merged(self, other: "ResourceBundle") -> "ResourceBundle":
        combined = ResourceBundle(dict(self.amounts))
        for kind, qty in other.amounts.items():
            combined.add(kind, qty)
        return combined

    def scaled(self, factor: float) -> "ResourceBundle":
        if factor <= 0:
            return ResourceBundle()
        return ResourceBundle({kind: math.floor(qty * factor) for kind, qty in self.amounts.items()})

    def total(self) -> int:
        return sum(self.amounts.values())

    def copy(self) -> "ResourceBundle":
        return ResourceBundle(dict(self.amounts))

    def as_dict(self) -> dict[str, int]:
        return {kind.value: self.amounts[kind] for kind in ResourceKind if kind in self.amounts}


__all__ = [
    "ResourceBundle",
    "ResourceKind",
    "normalize_amounts",
    "resource_from_key",
]
