from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from ..elements import MAX_AFFINITY_LEVEL, Element, ElementLevel

if TYPE_CHECKING:
    from ..skills.legacy import LegacySkill

logger = logging.getLogger(__name__)

ALL_ELEMENTS_COUNT = len(Element)


class StatusKind(str, Enum):
    BLEEDING = "bleeding"
    BURNING = "burning"
    SLOWED = "slowed"
    FROZEN = "frozen"
    REGENERATION = "regeneration"
    CHARGE = "charge"
    EMBERS = "embers"
    SURVIVED_LETHAL = "survived_lethal"
    REVIVED = "revived"


# Statuses an elemental-mastery holder is immune to.
NEGATIVE_STATUSES = frozenset(
    {StatusKind.BLEEDING, StatusKind.BURNING, StatusKind.SLOWED, StatusKind.FROZEN, StatusKind.EMBERS}
)
# Statuses blocked by earth control immunity while above the hp threshold.
CONTROL_STATUSES = frozenset({StatusKind.SLOWED, StatusKind.FROZEN})


@dataclass
class StatusEntry:
    """One entry of a combatant's status map.

    Attributes:
        stacks: Stack count (1 for non-stacking effects).
        turns_left: Remaining turns, or None when the effect lasts for the battle.
        value: Kind-specific magnitude (per-stack %, speed reduction %, regen %).
        source_id: Id of the combatant that applied the effect, if any.
        params: Extra kind-specific parameters (e.g. burn explode %, regen doubling).
    """

    stacks: int = 1
    turns_left: Optional[int] = None
    value: float = 0.0
    source_id: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stacks": self.stacks,
            "turns_left": self.turns_left,
            "value": self.value,
            "source_id": self.source_id,
            "params": dict(self.params),
        }


AffinityLike = Union[ElementLevel, Mapping[str, Any], None]


def _coerce_affinity(value: AffinityLike) -> Optional[ElementLevel]:
    if value is None or isinstance(value, ElementLevel):
        return value
    return ElementLevel(element=Element(value["element"]), level=int(value.get("level", 1)))


@dataclass
class Combatant:
    """One participant for the duration of one battle.

    Attributes:
        id: Stable identifier referenced by events.
        name: Display name used in logs.
        max_hp: Maximum hit points (clamped to >= 1).
        hp: Current hit points (clamped to [0, max_hp]); defaults to max_hp.
        attack, defense, speed: Base stats (negatives clamp to 0).
        is_player: True for the controlled side.
        attack_element, defense_element: Optional offensive/defensive affinity.
        element_levels: Summed equipped level per element; derived from the
            affinities when not given.
        attribute_skills: Equipped attribute skill ids, duplicates included.
        legacy_skills: Equipment-attached trigger skills.
        relic_elements: Elements of the equipped relics.
        has_mastery: True when the relics span all five elements.
        skill_levels: Compiled effective skill levels, filled at initialization.
        attack_debuff: Temporary attack reduction, cleared on the owner's turn.
        statuses: Status map keyed by kind.
    """

    id: str
    name: str
    max_hp: int
    hp: Optional[int] = None
    attack: int = 0
    defense: int = 0
    speed: int = 0
    is_player: bool = False
    attack_element: Optional[ElementLevel] = None
    defense_element: Optional[ElementLevel] = None
    element_levels: Dict[Element, int] = field(default_factory=dict)
    attribute_skills: List[str] = field(default_factory=list)
    legacy_skills: List["LegacySkill"] = field(default_factory=list)
    relic_elements: List[Element] = field(default_factory=list)
    has_mastery: bool = False
    skill_levels: Dict[str, int] = field(default_factory=dict)
    attack_debuff: int = 0
    statuses: Dict[StatusKind, StatusEntry] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Combatant.id must be a non-empty string")
        self.name = self.name or str(self.id)

        self.max_hp = int(self.max_hp)
        if self.max_hp <= 0:
            logger.warning("Non-positive max_hp %d for %s; clamping to 1.", self.max_hp, self.id)
            self.max_hp = 1
        self.hp = self.max_hp if self.hp is None else int(self.hp)
        self.hp = max(0, min(self.hp, self.max_hp))

        self.attack, self.defense, self.speed = int(self.attack), int(self.defense), int(self.speed)
        if self.attack < 0 or self.defense < 0 or self.speed < 0:
            logger.warning("Negative attack/defense/speed detected for %s; clamping to zero.", self.id)
            self.attack = max(0, self.attack)
            self.defense = max(0, self.defense)
            self.speed = max(0, self.speed)

        self.attack_element = _coerce_affinity(self.attack_element)
        self.defense_element = _coerce_affinity(self.defense_element)

        levels: Dict[Element, int] = {}
        for element, level in (self.element_levels or {}).items():
            levels[Element(element)] = max(0, int(level))
        # Derived levels follow the affinities on update(); explicit ones stick.
        self._levels_derived = not levels
        if not levels:
            for affinity in (self.attack_element, self.defense_element):
                if affinity is not None:
                    levels[affinity.element] = max(levels.get(affinity.element, 0), affinity.level)
        self.element_levels = levels

        self.relic_elements = [Element(e) for e in self.relic_elements]
        if len(set(self.relic_elements)) >= ALL_ELEMENTS_COUNT:
            self.has_mastery = True
        self.has_mastery = bool(self.has_mastery)
        self.attribute_skills = list(self.attribute_skills)

    def update(self, **changes: Any) -> None:
        """Overwrite fields in place and re-run normalization.

        Current hp and statuses are kept; hp is only clamped to the new max.
        """
        fixed = {"id", "hp", "statuses", "skill_levels"} & set(changes)
        if fixed:
            raise ValueError(f"Combatant fields cannot be updated: {sorted(fixed)}")
        hp = self.hp
        if "relic_elements" in changes and "has_mastery" not in changes:
            self.has_mastery = False
        affinity_changed = "attack_element" in changes or "defense_element" in changes
        if affinity_changed and "element_levels" not in changes and self._levels_derived:
            self.element_levels = {}
        for key, value in changes.items():
            setattr(self, key, value)
        self.hp = hp
        self.__post_init__()

    # --------------- Vitals ---------------

    @property
    def alive(self) -> bool:
        return self.hp > 0

    @property
    def hp_ratio(self) -> float:
        return self.hp / self.max_hp

    def set_hp(self, value: int) -> int:
        """Set hp, clamped to [0, max_hp]. Returns the new hp."""
        self.hp = max(0, min(int(value), self.max_hp))
        return self.hp

    def set_max_hp(self, value: int) -> None:
        """Change max hp, keeping current hp inside the new bound."""
        self.max_hp = max(1, int(value))
        self.set_hp(self.hp)

    def damage(self, amount: int) -> int:
        """Apply damage, clamping hp to zero. Returns the hp actually lost."""
        if amount <= 0:
            return 0
        before = self.hp
        self.set_hp(self.hp - amount)
        return before - self.hp

    def heal(self, amount: int) -> int:
        """Heal up to max hp. Returns the hp actually restored."""
        if amount <= 0:
            return 0
        before = self.hp
        self.set_hp(self.hp + amount)
        return self.hp - before

    # --------------- Affinity helpers ---------------

    def passive_level(self, element: Element) -> int:
        """Affinity level (0..5) used to pick elemental passive tiers."""
        return min(MAX_AFFINITY_LEVEL, self.element_levels.get(element, 0))

    def skill_level(self, skill_id: str) -> int:
        return self.skill_levels.get(skill_id, 0)

    # --------------- Status map ---------------

    def status(self, kind: StatusKind) -> Optional[StatusEntry]:
        return self.statuses.get(kind)

    def has_status(self, kind: StatusKind) -> bool:
        return kind in self.statuses

    def set_status(self, kind: StatusKind, entry: StatusEntry) -> StatusEntry:
        self.statuses[kind] = entry
        return entry

    def clear_status(self, kind: StatusKind) -> Optional[StatusEntry]:
        return self.statuses.pop(kind, None)

    @property
    def charge_stacks(self) -> int:
        entry = self.statuses.get(StatusKind.CHARGE)
        return entry.stacks if entry else 0

    @property
    def frozen(self) -> bool:
        return StatusKind.FROZEN in self.statuses

    # --------------- Copy / export ---------------

    def copy(self) -> "Combatant":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "hp": self.hp,
            "max_hp": self.max_hp,
            "attack": self.attack,
            "defense": self.defense,
            "speed": self.speed,
            "is_player": self.is_player,
            "attack_element": self.attack_element.to_dict() if self.attack_element else None,
            "defense_element": self.defense_element.to_dict() if self.defense_element else None,
            "element_levels": {e.value: lvl for e, lvl in self.element_levels.items()},
            "has_mastery": self.has_mastery,
            "skill_levels": dict(self.skill_levels),
            "statuses": {k.value: v.to_dict() for k, v in self.statuses.items()},
        }

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"Combatant(id={self.id!r}, hp={self.hp}/{self.max_hp}, atk={self.attack}, def={self.defense}, spd={self.speed})"


__all__ = [
    "Combatant",
    "StatusKind",
    "StatusEntry",
    "NEGATIVE_STATUSES",
    "CONTROL_STATUSES",
]
