from __future__ import annotations

import logging
from typing import Iterable, List

from ..elements import speed_modifier, speed_priority
from .combatant import Combatant, StatusKind

logger = logging.getLogger(__name__)


def effective_speed(combatant: Combatant) -> int:
    """Base speed plus the element modifier, minus any active slow.

    The slow reduction is a floored percentage of the modified speed.
    """
    speed = combatant.speed + speed_modifier(combatant.attack_element)
    slowed = combatant.status(StatusKind.SLOWED)
    if slowed is not None and speed > 0:
        speed -= int(speed * slowed.value // 100)
    return speed


class TurnOrderResolver:
    """Deterministic speed-based turn order for one round.

    Features:
    - Orders living combatants by effective speed, descending.
    - Breaks ties by element priority (fire highest, no affinity lowest).
    - Remaining ties keep input order (Python's sort is stable).
    - Never consults randomness: identical inputs yield identical order.
    """

    @staticmethod
    def _sort_key(combatant: Combatant):
        # Python sorts ascending, so invert both keys for descending order
        return (-effective_speed(combatant), -speed_priority(combatant.attack_element))

    def order(self, combatants: Iterable[Combatant]) -> List[Combatant]:
        alive = [c for c in combatants if c.alive]
        ordered = sorted(alive, key=self._sort_key)
        logger.debug(
            "Turn order: %s",
            [(c.id, effective_speed(c)) for c in ordered],
        )
        return ordered


def sort_by_speed(combatants: Iterable[Combatant]) -> List[Combatant]:
    return TurnOrderResolver().order(combatants)


__all__ = ["effective_speed", "TurnOrderResolver", "sort_by_speed"]
