"""
The five elements (Wuxing) and the static tables keyed off them.

Two directed 5-cycles define how elements interact:

- conquer:  metal -> wood -> earth -> water -> fire -> metal
- generate: metal -> water -> wood -> fire -> earth -> metal

An attack along a conquer edge deals bonus damage; an attack along a generate
edge heals the defender instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

logger = logging.getLogger(__name__)

MIN_AFFINITY_LEVEL = 1
MAX_AFFINITY_LEVEL = 5


class Element(str, Enum):
    METAL = "metal"
    WOOD = "wood"
    WATER = "water"
    FIRE = "fire"
    EARTH = "earth"


class Relation(str, Enum):
    CONQUER = "conquer"
    GENERATE = "generate"
    NEUTRAL = "neutral"


CONQUERS: Dict[Element, Element] = {
    Element.METAL: Element.WOOD,
    Element.WOOD: Element.EARTH,
    Element.EARTH: Element.WATER,
    Element.WATER: Element.FIRE,
    Element.FIRE: Element.METAL,
}

GENERATES: Dict[Element, Element] = {
    Element.METAL: Element.WATER,
    Element.WATER: Element.WOOD,
    Element.WOOD: Element.FIRE,
    Element.FIRE: Element.EARTH,
    Element.EARTH: Element.METAL,
}

# Fire is fastest, earth slowest.
SPEED_MODIFIER: Dict[Element, int] = {
    Element.FIRE: 2,
    Element.METAL: 1,
    Element.WOOD: 0,
    Element.WATER: -1,
    Element.EARTH: -2,
}

# Tie-break order when effective speeds are equal. No affinity ranks at 0.
SPEED_PRIORITY: Dict[Element, int] = {
    Element.FIRE: 5,
    Element.METAL: 4,
    Element.WOOD: 3,
    Element.WATER: 2,
    Element.EARTH: 1,
}

# Conquer bonus by attacker level and resistance by defender level, in percent.
CONQUER_BONUS = (20, 30, 40, 55, 75)
CONQUER_RESISTANCE = (10, 15, 20, 25, 30)
CONQUER_FLOOR = 10


def clamp_level(level: int) -> int:
    """Clamp an affinity level into 1..5."""
    return max(MIN_AFFINITY_LEVEL, min(MAX_AFFINITY_LEVEL, int(level)))


@dataclass(frozen=True)
class ElementLevel:
    """An (element, level) affinity pair. Level is clamped to 1..5."""

    element: Element
    level: int = 1

    def __post_init__(self) -> None:
        element = Element(self.element)
        level = clamp_level(self.level)
        if level != self.level:
            logger.warning("Affinity level %s out of range; clamped to %d.", self.level, level)
        object.__setattr__(self, "element", element)
        object.__setattr__(self, "level", level)

    def to_dict(self) -> Dict[str, object]:
        return {"element": self.element.value, "level": self.level}


def relation(attacker: Element, defender: Element) -> Relation:
    """Return how an attack of element ``attacker`` interacts with ``defender``."""
    if CONQUERS[attacker] is defender:
        return Relation.CONQUER
    if GENERATES[attacker] is defender:
        return Relation.GENERATE
    return Relation.NEUTRAL


def relation_between(attacker: Optional[ElementLevel], defender: Optional[ElementLevel]) -> Relation:
    """Relation of two optional affinities; a missing side is pure physical."""
    if attacker is None or defender is None:
        return Relation.NEUTRAL
    return relation(attacker.element, defender.element)


def conquer_bonus(attacker_level: int) -> int:
    return CONQUER_BONUS[clamp_level(attacker_level) - 1]


def conquer_resistance(defender_level: int) -> int:
    return CONQUER_RESISTANCE[clamp_level(defender_level) - 1]


def speed_modifier(affinity: Optional[ElementLevel]) -> int:
    return SPEED_MODIFIER[affinity.element] if affinity else 0


def speed_priority(affinity: Optional[ElementLevel]) -> int:
    return SPEED_PRIORITY[affinity.element] if affinity else 0


__all__ = [
    "Element",
    "ElementLevel",
    "Relation",
    "CONQUERS",
    "GENERATES",
    "SPEED_MODIFIER",
    "SPEED_PRIORITY",
    "CONQUER_BONUS",
    "CONQUER_RESISTANCE",
    "CONQUER_FLOOR",
    "clamp_level",
    "relation",
    "relation_between",
    "conquer_bonus",
    "conquer_resistance",
    "speed_modifier",
    "speed_priority",
]
