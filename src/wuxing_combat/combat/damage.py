from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from fractions import Fraction
from typing import Optional

from ..config import CombatRules, MasteryRules
from ..elements import (
    CONQUER_FLOOR,
    ElementLevel,
    Relation,
    conquer_bonus,
    conquer_resistance,
    relation_between,
)
from .combatant import Combatant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DamageBreakdown:
    """Details of a computed elemental damage roll.

    Attributes:
        base: max(attack - defense, 1) after debuff and ignore-defense.
        percent: Elemental multiplier in percent; negative for generate.
        relation: Elemental relation between the two affinities.
        final: Signed result. Positive damages the target, negative heals it.
    """

    base: int
    percent: float
    relation: Relation
    final: int

    @property
    def multiplier(self) -> float:
        return self.percent / 100

    @property
    def is_heal(self) -> bool:
        return self.final < 0


class DamageCalculator:
    """Convert attack/defense plus elemental affinities into a signed amount.

    The formula is:
      base = max(attack - defense, 1)
      neutral:  x (1 + 0.05 * (La - Ld))
      conquer:  x (1 + max(0.10, bonus[La] - resist[Ld]))  (+0.30 with mastery)
      generate: x -(0.5 + 0.05 * (La - Ld))                (x1.5 with mastery)

    Percentages are kept as integers so results floor exactly.
    """

    def __init__(self, mastery: Optional[MasteryRules] = None) -> None:
        self.mastery = mastery or MasteryRules()

    @staticmethod
    def base_damage(attack: int, defense: int) -> int:
        return max(int(attack) - int(defense), 1)

    def elemental_percent(
        self,
        attack_affinity: Optional[ElementLevel],
        defense_affinity: Optional[ElementLevel],
        attacker_mastery: bool = False,
    ) -> tuple[int, int, Relation]:
        """Return (percent, mastery_scale_percent, relation).

        ``percent`` is signed; ``mastery_scale_percent`` is an extra scale
        applied on top of it (100 when no scaling applies).
        """
        if attack_affinity is None or defense_affinity is None:
            return 100, 100, Relation.NEUTRAL

        rel = relation_between(attack_affinity, defense_affinity)
        diff = attack_affinity.level - defense_affinity.level

        if rel is Relation.CONQUER:
            bonus = max(CONQUER_FLOOR, conquer_bonus(attack_affinity.level) - conquer_resistance(defense_affinity.level))
            if attacker_mastery:
                bonus += self.mastery.conquer_bonus
            return 100 + bonus, 100, rel
        if rel is Relation.GENERATE:
            scale = 100 + self.mastery.generate_bonus if attacker_mastery else 100
            return -(50 + 5 * diff), scale, rel
        return 100 + 5 * diff, 100, rel

    def compute_stats(
        self,
        attack: int,
        defense: int,
        attack_affinity: Optional[ElementLevel] = None,
        defense_affinity: Optional[ElementLevel] = None,
        attacker_mastery: bool = False,
        ignore_defense: int = 0,
    ) -> DamageBreakdown:
        """Compute a breakdown from raw numbers.

        Args:
            attack: Effective attack of the attacker.
            defense: Defense of the defender.
            attack_affinity: Attacker's offensive affinity, if any.
            defense_affinity: Defender's defensive affinity, if any.
            attacker_mastery: Whether the attacker holds elemental mastery.
            ignore_defense: Flat defense removed before subtraction.
        """
        effective_defense = max(0, int(defense) - max(0, int(ignore_defense)))
        base = self.base_damage(attack, effective_defense)
        percent, scale, rel = self.elemental_percent(attack_affinity, defense_affinity, attacker_mastery)

        if percent < 0:
            final = -((base * -percent * scale) // 10000)
        else:
            final = (base * percent * scale) // 10000

        breakdown = DamageBreakdown(base=base, percent=percent * scale / 100, relation=rel, final=final)
        logger.debug(
            "Damage calc atk=%s def=%s ignore=%s -> base=%d relation=%s percent=%.1f final=%d",
            attack,
            defense,
            ignore_defense,
            base,
            rel.value,
            breakdown.percent,
            final,
        )
        return breakdown

    def compute(self, attacker: Combatant, defender: Combatant, ignore_defense: int = 0) -> DamageBreakdown:
        """Compute the elemental damage of ``attacker`` hitting ``defender``."""
        attack = max(1, attacker.attack - attacker.attack_debuff)
        return self.compute_stats(
            attack,
            defender.defense,
            attacker.attack_element,
            defender.defense_element,
            attacker.has_mastery,
            ignore_defense,
        )


@dataclass(frozen=True)
class HitModifiers:
    """Everything that scales a landed single-target hit after the elemental step.

    Percent fields are plain percentages (25 means +25%).
    """

    critical: bool = False
    crit_damage: float = 0
    legacy_multiplier: float = 1
    damage_percent: float = 0
    flat_bonus: float = 0
    charge_percent: float = 0
    blocked: bool = False
    damage_reduction: float = 0
    low_hp_reduction: float = 0


def _frac(value: float) -> Fraction:
    return Fraction(str(value))


def assemble_damage(base: int, mods: HitModifiers, rules: Optional[CombatRules] = None) -> int:
    """Apply hit modifiers to a positive elemental result, in fixed order.

    crit, percentage boosts, flat bonuses, charge, block, flat reduction,
    low-hp reduction; the result is floored and never drops below 1.
    Exact rationals keep the result independent of float rounding.
    """
    rules = rules or CombatRules()
    d = Fraction(base)
    if mods.critical:
        d *= _frac(rules.crit_base_multiplier) + _frac(mods.crit_damage) / 100
    if mods.legacy_multiplier > 1:
        d *= _frac(mods.legacy_multiplier)
    if mods.damage_percent:
        d *= 1 + _frac(mods.damage_percent) / 100
    d += _frac(mods.flat_bonus)
    if mods.charge_percent:
        d *= 1 + _frac(mods.charge_percent) / 100
    if mods.blocked:
        d *= _frac(rules.block_factor)
    d *= 1 - min(Fraction(100), _frac(mods.damage_reduction)) / 100
    d *= 1 - min(Fraction(100), _frac(mods.low_hp_reduction)) / 100
    return max(1, math.floor(d))


__all__ = ["DamageBreakdown", "DamageCalculator", "HitModifiers", "assemble_damage"]
