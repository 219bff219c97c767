"""
Elemental affinity passives.

Each element unlocks a ladder of passives as its summed equipment level rises
(levels above 5 use the level-5 tier). Values are indexed by level 1..5; a
tier whose ``min_level`` is not reached contributes nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from ..elements import Element
from ..combat.combatant import Combatant

logger = logging.getLogger(__name__)


class PassiveKind(str, Enum):
    METAL_PENETRATE = "metal_penetrate"
    METAL_BLEED = "metal_bleed"
    WOOD_REGEN = "wood_regen"
    WOOD_SURVIVE = "wood_survive"
    WOOD_REVIVE = "wood_revive"
    WATER_SLOW = "water_slow"
    WATER_FREEZE = "water_freeze"
    WATER_SHATTER = "water_shatter"
    FIRE_BURN = "fire_burn"
    FIRE_STACK = "fire_stack"
    FIRE_EXPLODE = "fire_explode"
    FIRE_EMBER = "fire_ember"
    EARTH_REDUCE = "earth_reduce"
    EARTH_REFLECT = "earth_reflect"
    EARTH_IMMUNE = "earth_immune"
    EARTH_REVENGE = "earth_revenge"


@dataclass(frozen=True)
class PassiveTier:
    """One rung of an element's passive ladder.

    Attributes:
        kind: Passive identifier.
        name: Display name carried on events.
        element: Element whose level unlocks the tier.
        min_level: Lowest affinity level at which the tier is active.
        values: Primary value per level 1..5 (meaning depends on the kind).
        secondary: Optional second value per level 1..5.
    """

    kind: PassiveKind
    name: str
    element: Element
    min_level: int
    values: Tuple[float, ...] = (0, 0, 0, 0, 0)
    secondary: Tuple[float, ...] = (0, 0, 0, 0, 0)
    description: str = ""


PASSIVES: Dict[PassiveKind, PassiveTier] = {
    # metal
    PassiveKind.METAL_PENETRATE: PassiveTier(
        PassiveKind.METAL_PENETRATE, "破金", Element.METAL, 1,
        values=(10, 20, 35, 50, 70),
        description="Ignore a percentage of the target's defense.",
    ),
    PassiveKind.METAL_BLEED: PassiveTier(
        PassiveKind.METAL_BLEED, "裂伤", Element.METAL, 3,
        values=(0, 0, 25, 30, 40),
        secondary=(0, 0, 2, 2, 3),
        description="Chance to inflict a bleed stack (secondary: max-hp % per stack).",
    ),
    # wood
    PassiveKind.WOOD_REGEN: PassiveTier(
        PassiveKind.WOOD_REGEN, "生机", Element.WOOD, 1,
        values=(3, 5, 8, 11, 15),
        secondary=(0, 0, 0, 1, 1),
        description="Regenerate max-hp % each turn (secondary: doubled when low).",
    ),
    PassiveKind.WOOD_SURVIVE: PassiveTier(
        PassiveKind.WOOD_SURVIVE, "不朽", Element.WOOD, 3,
        description="Survive the first lethal hit of each round with 1 HP.",
    ),
    PassiveKind.WOOD_REVIVE: PassiveTier(
        PassiveKind.WOOD_REVIVE, "涅槃", Element.WOOD, 5,
        description="Revive once per battle.",
    ),
    # water
    PassiveKind.WATER_SLOW: PassiveTier(
        PassiveKind.WATER_SLOW, "寒息", Element.WATER, 1,
        values=(15, 20, 25, 30, 35),
        secondary=(0, 0, 15, 15, 15),
        description="Chance to slow on hit (secondary: damage % against slowed targets).",
    ),
    PassiveKind.WATER_FREEZE: PassiveTier(
        PassiveKind.WATER_FREEZE, "冰封", Element.WATER, 4,
        values=(0, 0, 0, 10, 15),
        description="Chance to freeze on hit; frozen targets skip their next turn.",
    ),
    PassiveKind.WATER_SHATTER: PassiveTier(
        PassiveKind.WATER_SHATTER, "冰碎", Element.WATER, 5,
        values=(0, 0, 0, 0, 10),
        description="Thawing deals max-hp % damage.",
    ),
    # fire
    PassiveKind.FIRE_BURN: PassiveTier(
        PassiveKind.FIRE_BURN, "灼烧", Element.FIRE, 1,
        values=(20, 25, 30, 35, 40),
        secondary=(3, 3, 3, 4, 5),
        description="Chance to burn on hit (secondary: max-hp % per stack per turn).",
    ),
    PassiveKind.FIRE_STACK: PassiveTier(
        PassiveKind.FIRE_STACK, "烈焰", Element.FIRE, 3,
        description="Burn stacks up to 3.",
    ),
    PassiveKind.FIRE_EXPLODE: PassiveTier(
        PassiveKind.FIRE_EXPLODE, "引爆", Element.FIRE, 4,
        values=(0, 0, 0, 20, 35),
        description="Burn at 3 stacks explodes for max-hp %.",
    ),
    PassiveKind.FIRE_EMBER: PassiveTier(
        PassiveKind.FIRE_EMBER, "余烬", Element.FIRE, 5,
        description="Explosions leave embers: fire damage taken +50%.",
    ),
    # earth
    PassiveKind.EARTH_REDUCE: PassiveTier(
        PassiveKind.EARTH_REDUCE, "坚韧", Element.EARTH, 1,
        values=(10, 15, 20, 30, 45),
        description="Damage taken reduced by %.",
    ),
    PassiveKind.EARTH_REFLECT: PassiveTier(
        PassiveKind.EARTH_REFLECT, "反震", Element.EARTH, 3,
        values=(0, 0, 15, 25, 40),
        description="Reflect % of damage taken.",
    ),
    PassiveKind.EARTH_IMMUNE: PassiveTier(
        PassiveKind.EARTH_IMMUNE, "不动", Element.EARTH, 4,
        description="Immune to slow and freeze while above 70% HP.",
    ),
    PassiveKind.EARTH_REVENGE: PassiveTier(
        PassiveKind.EARTH_REVENGE, "蓄力", Element.EARTH, 5,
        values=(0, 0, 0, 0, 100),
        description="After 3 hits taken, the next attack deals +100%.",
    ),
}


def passive_level(combatant: Combatant, kind: PassiveKind) -> int:
    """Affinity level driving ``kind`` for this combatant, or 0 if locked."""
    tier = PASSIVES[kind]
    level = combatant.passive_level(tier.element)
    return level if level >= tier.min_level else 0


def has_passive(combatant: Combatant, kind: PassiveKind) -> bool:
    return passive_level(combatant, kind) > 0


def passive_value(combatant: Combatant, kind: PassiveKind, secondary: bool = False) -> float:
    level = passive_level(combatant, kind)
    if level == 0:
        return 0
    table = PASSIVES[kind].secondary if secondary else PASSIVES[kind].values
    return table[level - 1]


def active_passives(combatant: Combatant) -> List[Tuple[PassiveKind, int]]:
    """Unlocked passives in declaration order with their driving level."""
    out: List[Tuple[PassiveKind, int]] = []
    for kind in PASSIVES:
        level = passive_level(combatant, kind)
        if level:
            out.append((kind, level))
    return out


def passive_name(kind: PassiveKind) -> str:
    return PASSIVES[kind].name


__all__ = [
    "PassiveKind",
    "PassiveTier",
    "PASSIVES",
    "passive_level",
    "has_passive",
    "passive_value",
    "active_passives",
    "passive_name",
]
