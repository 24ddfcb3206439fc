"""Exception types raised by the simulation core."""

from __future__ import annotations


class IdleEmpireError(Exception):
    """Base class for every error raised by :mod:`idle_empire`."""


class ConfigurationError(IdleEmpireError, KeyError):
    """A lookup referenced a building, technology or pool entry that is not configured."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class RaidAlreadyResolvedError(IdleEmpireError, RuntimeError):
    """A raid was handed to combat resolution after it had already been settled."""


class InsufficientResourcesError(IdleEmpireError, ValueError):
    """A player-initiated action was requested without the stock to pay for it."""


class SkillUnavailableError(IdleEmpireError, RuntimeError):
    """A skill was unlocked or used while locked, on cooldown or missing its requirements."""


__all__ = [
    "ConfigurationError",
    "IdleEmpireError",
    "InsufficientResourcesError",
    "RaidAlreadyResolvedError",
    "SkillUnavailableError",
]
