"""
Equipment-attached trigger skills.

These predate the attribute-skill table and are kept as a separate, simpler
subsystem: each skill carries its own numbers instead of a per-level table.
Trigger chances are fractions in [0, 1].
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..core.rng import RNG
from ..errors import UnknownTriggerError

logger = logging.getLogger(__name__)

# Skill id whose on-defend trigger freezes the attacker unless ``freezes`` says otherwise.
FREEZING_SKILL_ID = "skill_xuanbing"


class LegacyTrigger(str, Enum):
    PASSIVE = "passive"
    ON_HIT = "on_hit"
    ON_DEFEND = "on_defend"
    BATTLE_START = "battle_start"
    BATTLE_END = "battle_end"

    @classmethod
    def parse(cls, value: Any) -> "LegacyTrigger":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            raise UnknownTriggerError(f"Unknown legacy skill trigger: {value!r}") from exc


@dataclass(frozen=True)
class LegacySkill:
    id: str
    name: str
    trigger: LegacyTrigger
    trigger_chance: float = 1.0
    damage: int = 0
    heal: int = 0
    self_damage: int = 0
    attack_bonus: int = 0
    defense_bonus: int = 0
    damage_multiplier: float = 0
    ignore_defense: int = 0
    dodge: bool = False
    freezes: bool = False
    description: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LegacySkill":
        skill_id = str(data["id"])
        return cls(
            id=skill_id,
            name=str(data.get("name", skill_id)),
            trigger=LegacyTrigger.parse(data.get("trigger", LegacyTrigger.PASSIVE)),
            trigger_chance=float(data.get("trigger_chance", 1.0)),
            damage=int(data.get("damage", 0)),
            heal=int(data.get("heal", 0)),
            self_damage=int(data.get("self_damage", 0)),
            attack_bonus=int(data.get("attack_bonus", 0)),
            defense_bonus=int(data.get("defense_bonus", 0)),
            damage_multiplier=float(data.get("damage_multiplier", 0)),
            ignore_defense=int(data.get("ignore_defense", 0)),
            dodge=bool(data.get("dodge", False)),
            freezes=bool(data.get("freezes", skill_id == FREEZING_SKILL_ID)),
            description=str(data.get("description", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "trigger": self.trigger.value,
            "trigger_chance": self.trigger_chance,
            "damage": self.damage,
            "heal": self.heal,
            "self_damage": self.self_damage,
            "attack_bonus": self.attack_bonus,
            "defense_bonus": self.defense_bonus,
            "damage_multiplier": self.damage_multiplier,
            "ignore_defense": self.ignore_defense,
            "dodge": self.dodge,
            "freezes": self.freezes,
        }


@dataclass
class OnHitResult:
    triggered: List[str] = field(default_factory=list)
    damage_multiplier: float = 1.0
    bonus_damage: int = 0
    heal_amount: int = 0


@dataclass
class OnDefendResult:
    triggered: List[str] = field(default_factory=list)
    dodged: bool = False
    attack_debuff: int = 0
    freeze_attacker: bool = False
    freeze_source: Optional[str] = None


def _rolls(skill: LegacySkill, rng: RNG) -> bool:
    if skill.trigger_chance >= 1:
        return True
    if skill.trigger_chance <= 0:
        return False
    return rng.random() < skill.trigger_chance


def skills_for(skills: List[LegacySkill], trigger: LegacyTrigger) -> List[LegacySkill]:
    return [s for s in skills if s.trigger is trigger]


def passive_bonuses(skills: List[LegacySkill]) -> Tuple[int, int]:
    """Flat (attack, defense) granted by passive skills."""
    attack = sum(s.attack_bonus for s in skills_for(skills, LegacyTrigger.PASSIVE))
    defense = sum(s.defense_bonus for s in skills_for(skills, LegacyTrigger.PASSIVE))
    return attack, defense


def ignore_defense(skills: List[LegacySkill]) -> int:
    return sum(s.ignore_defense for s in skills_for(skills, LegacyTrigger.PASSIVE))


def passive_self_damage(skills: List[LegacySkill]) -> Optional[Tuple[int, str]]:
    """First passive self-damage as (amount, skill name), if any."""
    for s in skills_for(skills, LegacyTrigger.PASSIVE):
        if s.self_damage > 0:
            return s.self_damage, s.name
    return None


def roll_on_hit(skills: List[LegacySkill], rng: RNG) -> OnHitResult:
    """Roll the attacker's on-hit skills. The largest multiplier above 1 wins."""
    result = OnHitResult()
    for s in skills_for(skills, LegacyTrigger.ON_HIT):
        if not _rolls(s, rng):
            continue
        result.triggered.append(s.name)
        if s.damage_multiplier > 1:
            result.damage_multiplier = max(result.damage_multiplier, s.damage_multiplier)
        result.bonus_damage += s.damage
        result.heal_amount += s.heal
    return result


def roll_on_defend(skills: List[LegacySkill], rng: RNG) -> OnDefendResult:
    """Roll the defender's on-defend skills. A dodge stops further processing."""
    result = OnDefendResult()
    for s in skills_for(skills, LegacyTrigger.ON_DEFEND):
        if not _rolls(s, rng):
            continue
        result.triggered.append(s.name)
        if s.dodge:
            result.dodged = True
            return result
        if s.attack_bonus < 0:
            result.attack_debuff = max(result.attack_debuff, -s.attack_bonus)
        if s.freezes:
            result.freeze_attacker = True
            result.freeze_source = s.name
    return result


__all__ = [
    "LegacyTrigger",
    "LegacySkill",
    "OnHitResult",
    "OnDefendResult",
    "FREEZING_SKILL_ID",
    "skills_for",
    "passive_bonuses",
    "ignore_defense",
    "passive_self_damage",
    "roll_on_hit",
    "roll_on_defend",
]
