"""
Hook registry for attribute skills and elemental passives.

Hooks are small pure functions registered per (key, phase) with a decorator:

    @skill_hook("ruidu", SkillTrigger.ON_ATTACK)
    def ruidu(ctx: HookContext) -> Delta:
        return {"crit_rate": ctx.value}

A hook reads its context and returns a delta mapping field names of the
phase's effect type to contributions. The pipeline folds the deltas of every
matching hook into a single effect object: numbers add, flags OR together and
lists concatenate. Hooks never touch combatants or draw random numbers.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..combat.combatant import Combatant, StatusKind
from ..config import CombatTuning
from ..errors import RegistryError
from .registry import SkillTrigger

logger = logging.getLogger(__name__)

Delta = Mapping[str, Any]


@dataclass(frozen=True)
class HookContext:
    """Read-only view handed to a hook.

    Attributes:
        owner: Combatant owning the skill or passive.
        opponent: The other party of the current exchange, if any.
        phase: Phase being resolved.
        name: Display name of the skill or passive.
        level: Effective level (skill 1..10, passive 1..5).
        value: Per-level primary value.
        secondary: Per-level secondary value (passives only).
        tuning: Active combat tuning.
        extra: Phase-specific facts (critical, dodged, damage_taken).
    """

    owner: Combatant
    opponent: Optional[Combatant]
    phase: SkillTrigger
    name: str
    level: int
    value: float
    tuning: CombatTuning
    secondary: float = 0
    extra: Mapping[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.extra.get(key, default)


@dataclass(frozen=True)
class Proc:
    """A chance to apply a status, rolled later by the status processor."""

    kind: StatusKind
    chance: float
    source_name: str


# =============================================================================
# Effect types, one per phase
# =============================================================================


@dataclass
class Effects:
    """Base accumulator; see the module docstring for folding rules."""

    def fold(self, delta: Delta) -> None:
        for key, value in delta.items():
            if key not in {f.name for f in fields(self)}:
                raise RegistryError(f"{type(self).__name__} has no field {key!r}")
            current = getattr(self, key)
            if isinstance(current, list):
                current.extend(value if isinstance(value, (list, tuple)) else [value])
            elif isinstance(current, bool):
                setattr(self, key, current or bool(value))
            else:
                setattr(self, key, current + value)


@dataclass
class InitModifiers(Effects):
    max_hp_flat: int = 0
    attack_percent: float = 0
    defense_percent: float = 0
    regen_percent: float = 0
    regen_doubles_when_low: bool = False


@dataclass
class TurnStartEffects(Effects):
    heals: List[Tuple[str, float]] = field(default_factory=list)


@dataclass
class AttackModifiers(Effects):
    crit_rate: float = 0
    crit_damage: float = 0
    hit_rate: float = 0
    ignore_defense_percent: float = 0
    damage_percent: float = 0
    execute_damage: float = 0


@dataclass
class DefendModifiers(Effects):
    dodge_rate: float = 0
    block_rate: float = 0
    damage_reduction: float = 0
    low_hp_reduction: float = 0


@dataclass
class AfterAttackEffects(Effects):
    procs: List[Proc] = field(default_factory=list)


@dataclass
class AfterDefendEffects(Effects):
    reflect_percent: float = 0
    reflect_by: List[str] = field(default_factory=list)
    heal_percent: float = 0
    heal_by: List[str] = field(default_factory=list)
    charge: bool = False
    charge_percent: float = 0
    procs: List[Proc] = field(default_factory=list)


@dataclass
class LethalProtection(Effects):
    guaranteed_by: List[str] = field(default_factory=list)
    survive_chance: float = 0
    chance_by: List[str] = field(default_factory=list)
    revive_percent: float = 0
    revive_by: List[str] = field(default_factory=list)

    @property
    def guaranteed(self) -> bool:
        return bool(self.guaranteed_by)


@dataclass
class AoeStrike(Effects):
    skill_id: str = ""
    skill_name: str = ""
    damage_percent: float = 0
    apply_slow: bool = False
    apply_burning: bool = False
    lifesteal_percent: float = 0
    per_extra_target_percent: float = 0


EFFECT_TYPES: Dict[SkillTrigger, type] = {
    SkillTrigger.BATTLE_INIT: InitModifiers,
    SkillTrigger.TURN_START: TurnStartEffects,
    SkillTrigger.ON_ATTACK: AttackModifiers,
    SkillTrigger.ON_DEFEND: DefendModifiers,
    SkillTrigger.AFTER_ATTACK: AfterAttackEffects,
    SkillTrigger.AFTER_DEFEND: AfterDefendEffects,
    SkillTrigger.ON_LOW_HP: LethalProtection,
    SkillTrigger.AOE_ATTACK: AoeStrike,
}


# =============================================================================
# Registry
# =============================================================================

Hook = Callable[[HookContext], Delta]


class HookRegistry:
    """Maps (key, phase) to exactly one hook function."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._hooks: Dict[Tuple[str, SkillTrigger], Hook] = {}

    def register(self, key: str, phase: SkillTrigger, fn: Hook) -> None:
        phase = SkillTrigger.parse(phase)
        if (key, phase) in self._hooks:
            raise RegistryError(f"Duplicate {self.name} hook for {key!r} at {phase.value}")
        self._hooks[(key, phase)] = fn

    def get(self, key: str, phase: SkillTrigger) -> Optional[Hook]:
        return self._hooks.get((key, phase))

    def has(self, key: str) -> bool:
        return any(k == key for k, _ in self._hooks)

    def keys(self) -> List[str]:
        seen: Dict[str, None] = {}
        for k, _ in self._hooks:
            seen.setdefault(k, None)
        return list(seen)

    def __len__(self) -> int:
        return len(self._hooks)


SKILL_HOOKS = HookRegistry("skill")
PASSIVE_HOOKS = HookRegistry("passive")


def skill_hook(skill_id: str, *phases: SkillTrigger):
    """Register the decorated function as ``skill_id``'s hook for each phase."""

    def decorator(func: Hook) -> Hook:
        for phase in phases:
            SKILL_HOOKS.register(skill_id, phase, func)

        @functools.wraps(func)
        def wrapper(ctx: HookContext) -> Delta:
            return func(ctx)

        return wrapper

    return decorator


def passive_hook(kind: str, *phases: SkillTrigger):
    """Register the decorated function as a passive's hook for each phase."""
    key = getattr(kind, "value", kind)

    def decorator(func: Hook) -> Hook:
        for phase in phases:
            PASSIVE_HOOKS.register(key, phase, func)

        @functools.wraps(func)
        def wrapper(ctx: HookContext) -> Delta:
            return func(ctx)

        return wrapper

    return decorator


__all__ = [
    "Delta",
    "HookContext",
    "Proc",
    "Effects",
    "InitModifiers",
    "TurnStartEffects",
    "AttackModifiers",
    "DefendModifiers",
    "AfterAttackEffects",
    "AfterDefendEffects",
    "LethalProtection",
    "AoeStrike",
    "EFFECT_TYPES",
    "HookRegistry",
    "SKILL_HOOKS",
    "PASSIVE_HOOKS",
    "skill_hook",
    "passive_hook",
]
