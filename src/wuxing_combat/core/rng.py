from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class RNG:
    """
    Deterministic-friendly RNG wrapper around random.Random.

    Every random decision the engine makes (trigger rolls, dodge/block/crit,
    target selection) is drawn from one instance of this class, so a fixed
    seed reproduces an identical event sequence. Never touches Python's
    global RNG.
    """

    seed: Optional[int] = None

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)

    def random(self) -> float:
        """Return the next random float in the range [0.0, 1.0)."""
        return self._rng.random()

    def percent(self) -> float:
        """Return the next random float in the range [0.0, 100.0)."""
        return self._rng.random() * 100

    def chance(self, percent: float) -> bool:
        """Roll against a percentage. Values <= 0 never succeed and consume no draw."""
        if percent <= 0:
            return False
        return self.percent() < percent

    def choice(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[int(self._rng.random() * len(seq))]

    def state(self):
        """Return the internal PRNG state for debugging or persistence."""
        return self._rng.getstate()

    def set_state(self, state) -> None:
        """Restore the internal PRNG state."""
        self._rng.setstate(state)
