from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import BattleConfig
from ..elements import MAX_AFFINITY_LEVEL, MIN_AFFINITY_LEVEL, Element, ElementLevel
from ..errors import SnapshotError
from ..skills.legacy import LegacySkill, LegacyTrigger
from .combatant import Combatant

logger = logging.getLogger(__name__)


class AffinitySnapshot(BaseModel):
    """Offensive or defensive elemental assignment."""

    element: Element
    level: int = Field(1, description="Affinity level, clamped to 1..5")

    @field_validator("level", mode="before")
    @classmethod
    def clamp_level(cls, v: Any) -> int:
        level = int(v)
        clamped = max(MIN_AFFINITY_LEVEL, min(MAX_AFFINITY_LEVEL, level))
        if clamped != level:
            logger.warning("Affinity level %d out of range; clamping to %d", level, clamped)
        return clamped

    def to_level(self) -> ElementLevel:
        return ElementLevel(self.element, self.level)


class LegacySkillSnapshot(BaseModel):
    """Equipment-attached trigger skill as it appears in encounter files."""

    model_config = ConfigDict(extra="forbid")

    id: str
    name: str = ""
    trigger: LegacyTrigger = LegacyTrigger.PASSIVE
    trigger_chance: float = Field(1.0, ge=0.0, le=1.0)
    damage: int = 0
    heal: int = 0
    self_damage: int = 0
    attack_bonus: int = 0
    defense_bonus: int = 0
    damage_multiplier: float = 0
    ignore_defense: int = 0
    dodge: bool = False
    freezes: Optional[bool] = None
    description: str = ""

    def to_skill(self) -> LegacySkill:
        data = self.model_dump(exclude_none=True)
        data["name"] = self.name or self.id
        return LegacySkill.from_dict(data)


class CombatantSnapshot(BaseModel):
    """Validated input record for one combatant."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    name: str = ""
    max_hp: int = Field(1, description="Maximum hp, clamped to >= 1")
    hp: Optional[int] = Field(default=None, description="Current hp; defaults to max_hp")
    attack: int = 0
    defense: int = 0
    speed: int = 0
    is_player: bool = False
    attack_element: Optional[AffinitySnapshot] = None
    defense_element: Optional[AffinitySnapshot] = None
    element_levels: Dict[Element, int] = Field(default_factory=dict)
    attribute_skills: List[str] = Field(default_factory=list)
    legacy_skills: List[LegacySkillSnapshot] = Field(default_factory=list)
    relic_elements: List[Element] = Field(default_factory=list)
    has_mastery: bool = False

    @field_validator("max_hp")
    @classmethod
    def clamp_max_hp(cls, v: int) -> int:
        if v < 1:
            logger.warning("Non-positive max_hp %d; clamping to 1", v)
        return max(1, v)

    @field_validator("attack", "defense", "speed")
    @classmethod
    def clamp_stat(cls, v: int) -> int:
        if v < 0:
            logger.warning("Negative stat %d; clamping to 0", v)
        return max(0, v)

    @field_validator("element_levels")
    @classmethod
    def clamp_element_levels(cls, v: Dict[Element, int]) -> Dict[Element, int]:
        return {e: max(0, int(lvl)) for e, lvl in (v or {}).items()}

    def to_combatant(self) -> Combatant:
        return Combatant(
            id=self.id,
            name=self.name or self.id,
            max_hp=self.max_hp,
            hp=self.hp,
            attack=self.attack,
            defense=self.defense,
            speed=self.speed,
            is_player=self.is_player,
            attack_element=self.attack_element.to_level() if self.attack_element else None,
            defense_element=self.defense_element.to_level() if self.defense_element else None,
            element_levels=dict(self.element_levels),
            attribute_skills=list(self.attribute_skills),
            legacy_skills=[s.to_skill() for s in self.legacy_skills],
            relic_elements=list(self.relic_elements),
            has_mastery=self.has_mastery,
        )


class BattleConfigSnapshot(BaseModel):
    allow_equipment_change: bool = True
    is_pvp: bool = False

    def to_config(self) -> BattleConfig:
        return BattleConfig(allow_equipment_change=self.allow_equipment_change, is_pvp=self.is_pvp)


class EncounterSnapshot(BaseModel):
    """A complete encounter file: combatants, flags and an optional seed."""

    model_config = ConfigDict(extra="forbid")

    combatants: List[CombatantSnapshot] = Field(..., min_length=1)
    config: BattleConfigSnapshot = Field(default_factory=BattleConfigSnapshot)
    seed: Optional[int] = None


CombatantLike = Union[Combatant, CombatantSnapshot, Mapping[str, Any]]


def load_combatant(item: CombatantLike) -> Combatant:
    if isinstance(item, Combatant):
        return item.copy()
    if isinstance(item, CombatantSnapshot):
        return item.to_combatant()
    try:
        return CombatantSnapshot.model_validate(dict(item)).to_combatant()
    except ValidationError as exc:
        raise SnapshotError(f"Invalid combatant {item.get('id', '<unknown>')!r}", exc.errors()) from exc


def load_combatants(items: Iterable[CombatantLike]) -> List[Combatant]:
    """Turn mixed inputs into fresh Combatant instances (inputs are never shared)."""
    return [load_combatant(item) for item in items]


def load_encounter(data: Union[Path, str, Mapping[str, Any]]) -> EncounterSnapshot:
    """Validate an encounter from a YAML file path or an already-parsed mapping."""
    if isinstance(data, (str, Path)):
        path = Path(data)
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        logger.info("Loaded encounter from %s", path)
    else:
        raw = dict(data)
    try:
        return EncounterSnapshot.model_validate(raw)
    except ValidationError as exc:
        raise SnapshotError("Invalid encounter", exc.errors()) from exc


__all__ = [
    "AffinitySnapshot",
    "LegacySkillSnapshot",
    "CombatantSnapshot",
    "BattleConfigSnapshot",
    "EncounterSnapshot",
    "load_combatant",
    "load_combatants",
    "load_encounter",
]
