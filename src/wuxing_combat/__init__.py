"""
Wuxing combat package root.

A deterministic, turn-based combat core built on the five-element cycle.
Presentation, input and persistence live outside this package; the engine
only consumes combatant snapshots and produces battle events.
"""

__version__ = "0.1.0"

from .config import BattleConfig, CombatTuning
from .core.rng import RNG
from .elements import Element, ElementLevel, Relation, relation
from .errors import (
    EngineStateError,
    RegistryError,
    SnapshotError,
    UnknownSkillError,
    UnknownTriggerError,
    WuxingCombatError,
)
from .combat.combatant import Combatant, StatusKind
from .combat.log import BattleEvent, EventType
from .combat.engine import BattleEngine, BattleResult, EngineState, RoundResult

__all__ = [
    "__version__",
    "BattleConfig",
    "CombatTuning",
    "RNG",
    "Element",
    "ElementLevel",
    "Relation",
    "relation",
    "WuxingCombatError",
    "RegistryError",
    "UnknownSkillError",
    "UnknownTriggerError",
    "SnapshotError",
    "EngineStateError",
    "Combatant",
    "StatusKind",
    "BattleEvent",
    "EventType",
    "BattleEngine",
    "BattleResult",
    "EngineState",
    "RoundResult",
]
