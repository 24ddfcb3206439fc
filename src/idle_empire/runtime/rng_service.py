"""Seeded random streams.

Each draw site asks for a stream by key (``"raid.spawn"``, ``"combat"``) and
an optional scope (``{"province": "p1"}``). The stream's seed is a SHA-256 of
the session seed, the key, the canonical scope and a per-stream draw index,
so adding a new draw site never shifts the numbers an existing one sees.
"""
from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from hashlib import sha256
from typing import Mapping, Sequence, TypeVar

T = TypeVar("T")


def _canonical_scope(scope: Mapping[str, object] | None) -> str:
    if not scope:
        return "{}"
    return json.dumps({str(k): v for k, v in scope.items()}, sort_keys=True, separators=(",", ":"), default=str)


@dataclass(slots=True)
class RNGConfig:
    salt: str = "idle-empire-rng-v1"
    audit_enabled: bool = True
    max_audit_streams: int = 128


@dataclass(slots=True)
class RNGService:
    seed: int
    config: RNGConfig = field(default_factory=RNGConfig)
    draws: dict[str, int] = field(default_factory=dict)
    audit: dict[str, int] = field(default_factory=dict)

    def _stream_name(self, stream_key: str, scope_json: str) -> str:
        return f"{stream_key}|{scope_json}"

    def _seed_for(self, name: str, index: int) -> int:
        blob = f"{self.config.salt}|{self.seed}|{name}|{index}".encode()
        return int.from_bytes(sha256(blob).digest()[:8], "big")

    def stream(self, stream_key: str, *, scope: Mapping[str, object] | None = None) -> random.Random:
        """Return a fresh ``random.Random`` for the next draw on this stream."""

        name = self._stream_name(stream_key, _canonical_scope(scope))
        index = self.draws.get(name, 0)
        self.draws[name] = index + 1
        if self.config.audit_enabled and self.config.max_audit_streams > 0:
            if stream_key not in self.audit and len(self.audit) >= self.config.max_audit_streams:
                # Evict first; the stream just drawn is always kept.
                quietest = min(self.audit.items(), key=lambda item: (item[1], item[0]))[0]
                self.audit.pop(quietest)
            self.audit[stream_key] = self.audit.get(stream_key, 0) + 1
        return random.Random(self._seed_for(name, index))

    def rand(self, stream_key: str, *, scope: Mapping[str, object] | None = None) -> float:
        return self.stream(stream_key, scope=scope).random()

    def randint(self, stream_key: str, a: int, b: int, *, scope: Mapping[str, object] | None = None) -> int:
        return self.stream(stream_key, scope=scope).randint(a, b)

    def choice(self, stream_key: str, seq: Sequence[T], *, scope: Mapping[str, object] | None = None) -> T:
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return self.stream(stream_key, scope=scope).choice(seq)

    def signature(self) -> str:
        payload = json.dumps(sorted(self.draws.items()), separators=(",", ":"))
        return sha256(payload.encode()).hexdigest()[:16]

    def audit_summary(self) -> list[tuple[str, int]]:
        return sorted(self.audit.items(), key=lambda pair: (-pair[1], pair[0]))


__all__ = ["RNGConfig", "RNGService"]
