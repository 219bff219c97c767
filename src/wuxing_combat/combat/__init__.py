"""Combat model: combatants, damage math, turn order and the event log.

The engine and status processor live in ``combat.engine`` and
``combat.status`` and are imported from there directly.
"""

from .combatant import Combatant, StatusEntry, StatusKind
from .damage import DamageBreakdown, DamageCalculator, HitModifiers, assemble_damage
from .log import BattleEvent, BattleLog, EventType
from .turn_order import TurnOrderResolver, effective_speed, sort_by_speed

__all__ = [
    "Combatant",
    "StatusEntry",
    "StatusKind",
    "DamageBreakdown",
    "DamageCalculator",
    "HitModifiers",
    "assemble_damage",
    "BattleEvent",
    "BattleLog",
    "EventType",
    "TurnOrderResolver",
    "effective_speed",
    "sort_by_speed",
]
