"""Runtime systems: production, research bonuses, governor AI, combat, skills and the session tick."""

from .combat import CombatConfig, CombatOutcome, CombatResult, resolve_combat
from .defense import DefenseForce, calculate_defense_force
from .governor_ai import GovernorConfig, decide_governor_action
from .production import ProductionResult, calculate_production
from .rng_service import RNGService
from .session import EmpireSession, SessionConfig, TickReport
from .skills import SkillActivation, check_skill_requirements, scale_skill, use_skill
from .tech_bonus import IDENTITY_BONUS, TechnologyBonus, compose_technology_bonus

__all__ = [
    "CombatConfig",
    "CombatOutcome",
    "CombatResult",
    "DefenseForce",
    "EmpireSession",
    "GovernorConfig",
    "IDENTITY_BONUS",
    "ProductionResult",
    "RNGService",
    "SessionConfig",
    "SkillActivation",
    "TechnologyBonus",
    "TickReport",
    "calculate_defense_force",
    "calculate_production",
    "check_skill_requirements",
    "compose_technology_bonus",
    "decide_governor_action",
    "resolve_combat",
    "scale_skill",
    "use_skill",
]
