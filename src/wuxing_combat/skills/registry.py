from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import yaml

from ..elements import Element
from ..errors import RegistryError, UnknownSkillError, UnknownTriggerError

logger = logging.getLogger(__name__)

MIN_SKILL_LEVEL = 1
MAX_SKILL_LEVEL = 10


class SkillTrigger(str, Enum):
    """Phases at which an attribute skill is consulted."""

    BATTLE_INIT = "battle_init"
    TURN_START = "turn_start"
    ON_ATTACK = "on_attack"
    AFTER_ATTACK = "after_attack"
    ON_DEFEND = "on_defend"
    AFTER_DEFEND = "after_defend"
    ON_LOW_HP = "on_low_hp"
    AOE_ATTACK = "aoe_attack"

    @classmethod
    def parse(cls, value: Any) -> "SkillTrigger":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            raise UnknownTriggerError(f"Unknown trigger phase: {value!r}") from exc


@dataclass(frozen=True)
class SkillDefinition:
    """Read-only definition of one attribute skill.

    Attributes:
        id: Stable identifier referenced by combatants.
        name: Display name carried on skill_triggered events.
        element: Element whose summed level drives the skill's effective level.
        trigger: Phase at which the skill is consulted.
        values: Ten per-level numbers, index 0 is level 1.
    """

    id: str
    name: str
    element: Element
    trigger: SkillTrigger
    values: Tuple[float, ...]
    description: str = ""

    def value_at(self, level: int) -> float:
        """Per-level value; level is clamped into 1..10."""
        clamped = max(MIN_SKILL_LEVEL, min(MAX_SKILL_LEVEL, int(level)))
        return self.values[clamped - 1]


class SkillRegistry:
    """Static catalog of skill definitions addressed by id.

    Loaded once from a YAML table and never mutated afterwards, so one
    instance can be shared by any number of engines.
    """

    _PKG = "wuxing_combat.skills.data"
    _FILE = "skills.yaml"

    def __init__(self, definitions: Iterable[SkillDefinition]) -> None:
        self._by_id: Dict[str, SkillDefinition] = {}
        for d in definitions:
            if d.id in self._by_id:
                raise RegistryError(f"Duplicate skill id in registry: {d.id!r}")
            self._by_id[d.id] = d
        logger.debug("Skill registry holds %d definitions", len(self._by_id))

    # --------------- Loading ---------------

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "SkillRegistry":
        entries = (data or {}).get("skills")
        if not isinstance(entries, list):
            raise RegistryError("Skill table must contain a 'skills' list")
        return cls(cls._parse_entry(e) for e in entries)

    @classmethod
    def from_yaml(cls, path: Path) -> "SkillRegistry":
        with Path(path).open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded skill table from %s", path)
        return cls.from_mapping(data)

    @classmethod
    def load_default(cls) -> "SkillRegistry":
        with resources.files(cls._PKG).joinpath(cls._FILE).open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_mapping(data)

    @staticmethod
    def _parse_entry(entry: Dict[str, Any]) -> SkillDefinition:
        try:
            skill_id = str(entry["id"])
            values = tuple(entry["values"])
        except (KeyError, TypeError) as exc:
            raise RegistryError(f"Malformed skill entry: {entry!r}") from exc
        if len(values) != MAX_SKILL_LEVEL:
            raise RegistryError(f"Skill {skill_id!r} must define {MAX_SKILL_LEVEL} level values, got {len(values)}")
        try:
            element = Element(entry.get("element"))
        except ValueError as exc:
            raise RegistryError(f"Skill {skill_id!r} has unknown element {entry.get('element')!r}") from exc
        try:
            trigger = SkillTrigger.parse(entry.get("trigger"))
        except UnknownTriggerError as exc:
            raise RegistryError(f"Skill {skill_id!r}: {exc}") from exc
        return SkillDefinition(
            id=skill_id,
            name=str(entry.get("name", skill_id)),
            element=element,
            trigger=trigger,
            values=values,
            description=str(entry.get("description", "")),
        )

    # --------------- Lookup ---------------

    def get(self, skill_id: str) -> SkillDefinition:
        try:
            return self._by_id[skill_id]
        except KeyError:
            raise UnknownSkillError(skill_id) from None

    def value(self, skill_id: str, level: int) -> float:
        return self.get(skill_id).value_at(level)

    def by_trigger(self, trigger: SkillTrigger) -> List[SkillDefinition]:
        trigger = SkillTrigger.parse(trigger)
        return [d for d in self._by_id.values() if d.trigger is trigger]

    def by_element(self, element: Element) -> List[SkillDefinition]:
        return [d for d in self._by_id.values() if d.element is Element(element)]

    def __contains__(self, skill_id: object) -> bool:
        return skill_id in self._by_id

    def __iter__(self) -> Iterator[SkillDefinition]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def ids(self) -> List[str]:
        return list(self._by_id.keys())


@lru_cache(maxsize=1)
def default_registry() -> SkillRegistry:
    """Shared registry built from the packaged skill table."""
    return SkillRegistry.load_default()


def resolve_registry(registry: Optional[SkillRegistry]) -> SkillRegistry:
    return registry if registry is not None else default_registry()


__all__ = [
    "SkillTrigger",
    "SkillDefinition",
    "SkillRegistry",
    "default_registry",
    "resolve_registry",
    "MIN_SKILL_LEVEL",
    "MAX_SKILL_LEVEL",
]
