"""
Single resolution pipeline for attribute skills and elemental passives.

Every phase is resolved the same way: take the owner's compiled skill levels,
keep the skills whose trigger matches the phase, run each one's hook and fold
the deltas, then do the same for the owner's unlocked passives.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from ..combat.combatant import Combatant
from ..config import CombatTuning
from ..core.rng import RNG
from ..errors import RegistryError
from . import effects as _effects  # noqa: F401  (registers hooks)
from .hooks import (
    EFFECT_TYPES,
    PASSIVE_HOOKS,
    SKILL_HOOKS,
    AoeStrike,
    Effects,
    HookContext,
    InitModifiers,
)
from .passives import PASSIVES, active_passives
from .registry import MAX_SKILL_LEVEL, SkillRegistry, SkillTrigger, resolve_registry

logger = logging.getLogger(__name__)

# Low-hp skills contribute on both sides of an exchange.
PHASE_TRIGGERS: Dict[SkillTrigger, frozenset] = {
    SkillTrigger.ON_ATTACK: frozenset({SkillTrigger.ON_ATTACK, SkillTrigger.ON_LOW_HP}),
    SkillTrigger.ON_DEFEND: frozenset({SkillTrigger.ON_DEFEND, SkillTrigger.ON_LOW_HP}),
}

# At most one AOE fires per turn; checked in this order.
AOE_ORDER = ("liekongzhan", "hanchao", "jingji", "fentian", "dilie")


def compile_skill_levels(
    skill_ids: Iterable[str],
    element_levels: Mapping[Any, int],
    registry: Optional[SkillRegistry] = None,
) -> Dict[str, int]:
    """Effective level per equipped skill.

    Duplicates of the same id stack: ``min(10, element_level + copies - 1)``.
    Skills whose element level is 0 are dropped. Raises UnknownSkillError
    for ids the registry does not define.
    """
    registry = resolve_registry(registry)
    counts: Dict[str, int] = {}
    for skill_id in skill_ids:
        registry.get(skill_id)
        counts[skill_id] = counts.get(skill_id, 0) + 1

    levels: Dict[str, int] = {}
    for skill_id, copies in counts.items():
        element_level = int(element_levels.get(registry.get(skill_id).element, 0))
        if element_level <= 0:
            logger.debug("Dropping skill %s: element level is 0", skill_id)
            continue
        levels[skill_id] = min(MAX_SKILL_LEVEL, element_level + copies - 1)
    return levels


class SkillPipeline:
    """Resolve skill and passive hooks for one phase into an effect object.

    Usage:
        pipeline = SkillPipeline(registry, tuning)
        mods = pipeline.resolve(SkillTrigger.ON_ATTACK, attacker, defender)
        mods.crit_rate
    """

    def __init__(self, registry: Optional[SkillRegistry] = None, tuning: Optional[CombatTuning] = None) -> None:
        self.registry = resolve_registry(registry)
        self.tuning = tuning or CombatTuning.default()
        missing = [sid for sid in self.registry.ids() if not SKILL_HOOKS.has(sid)]
        if missing:
            raise RegistryError(f"Skills without hooks: {', '.join(sorted(missing))}")

    def compile(self, combatant: Combatant) -> Dict[str, int]:
        combatant.skill_levels = compile_skill_levels(
            combatant.attribute_skills, combatant.element_levels, self.registry
        )
        logger.debug("Compiled skills for %s: %s", combatant.id, combatant.skill_levels)
        return combatant.skill_levels

    def resolve(
        self,
        phase: SkillTrigger,
        owner: Combatant,
        opponent: Optional[Combatant] = None,
        **extra: Any,
    ) -> Effects:
        """Fold every matching skill and passive hook for ``phase``.

        Raises:
            UnknownTriggerError: ``phase`` is not a known trigger.
            UnknownSkillError: the owner carries a skill the registry lacks.
        """
        phase = SkillTrigger.parse(phase)
        if phase is SkillTrigger.AOE_ATTACK:
            raise RegistryError("AOE skills are resolved through roll_aoe()")
        result = EFFECT_TYPES[phase]()
        triggers = PHASE_TRIGGERS.get(phase, frozenset({phase}))

        for skill_id, level in owner.skill_levels.items():
            definition = self.registry.get(skill_id)
            if definition.trigger not in triggers:
                continue
            hook = SKILL_HOOKS.get(skill_id, phase)
            if hook is None:
                continue
            ctx = HookContext(
                owner=owner,
                opponent=opponent,
                phase=phase,
                name=definition.name,
                level=level,
                value=definition.value_at(level),
                tuning=self.tuning,
                extra=extra,
            )
            result.fold(hook(ctx))

        for kind, level in active_passives(owner):
            hook = PASSIVE_HOOKS.get(kind.value, phase)
            if hook is None:
                continue
            tier = PASSIVES[kind]
            ctx = HookContext(
                owner=owner,
                opponent=opponent,
                phase=phase,
                name=tier.name,
                level=level,
                value=tier.values[level - 1],
                secondary=tier.secondary[level - 1],
                tuning=self.tuning,
                extra=extra,
            )
            result.fold(hook(ctx))
        return result

    def init_modifiers(self, owner: Combatant) -> InitModifiers:
        return self.resolve(SkillTrigger.BATTLE_INIT, owner)

    def roll_aoe(self, owner: Combatant, rng: RNG) -> Optional[AoeStrike]:
        """Roll the owner's AOE skills in fixed order; the first success fires."""
        for skill_id in AOE_ORDER:
            level = owner.skill_level(skill_id)
            if level <= 0:
                continue
            definition = self.registry.get(skill_id)
            if not rng.chance(definition.value_at(level)):
                continue
            strike = AoeStrike(skill_id=skill_id, skill_name=definition.name)
            hook = SKILL_HOOKS.get(skill_id, SkillTrigger.AOE_ATTACK)
            if hook is not None:
                strike.fold(
                    hook(
                        HookContext(
                            owner=owner,
                            opponent=None,
                            phase=SkillTrigger.AOE_ATTACK,
                            name=definition.name,
                            level=level,
                            value=definition.value_at(level),
                            tuning=self.tuning,
                        )
                    )
                )
            logger.debug("%s triggers AOE %s", owner.id, skill_id)
            return strike
        return None


__all__ = ["SkillPipeline", "compile_skill_levels", "AOE_ORDER", "PHASE_TRIGGERS"]
