"""Idle empire simulation core public façade."""

from .errors import ConfigurationError, IdleEmpireError, InsufficientResourcesError, RaidAlreadyResolvedError
from .runtime.session import EmpireSession, SessionConfig, TickReport
from .world.balance import BalanceTables, default_tables, load_balance_tables
from .world.buildings import BuildingKind
from .world.empire import Empire, Province, make_province
from .world.governors import Governor, Personality
from .world.resources import ResourceBundle, ResourceKind

__all__ = [
    "BalanceTables",
    "BuildingKind",
    "ConfigurationError",
    "Empire",
    "EmpireSession",
    "Governor",
    "IdleEmpireError",
    "InsufficientResourcesError",
    "Personality",
    "Province",
    "RaidAlreadyResolvedError",
    "ResourceBundle",
    "ResourceKind",
    "SessionConfig",
    "TickReport",
    "default_tables",
    "load_balance_tables",
    "make_province",
]
