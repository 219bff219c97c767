"""Attribute skills, elemental passives and legacy equipment skills."""

from .registry import (
    MAX_SKILL_LEVEL,
    MIN_SKILL_LEVEL,
    SkillDefinition,
    SkillRegistry,
    SkillTrigger,
    default_registry,
)
from .legacy import LegacySkill, LegacyTrigger
from .passives import PASSIVES, PassiveKind, passive_level, passive_value
from .hooks import HookContext, Proc, passive_hook, skill_hook
from .pipeline import AOE_ORDER, SkillPipeline, compile_skill_levels

__all__ = [
    "MAX_SKILL_LEVEL",
    "MIN_SKILL_LEVEL",
    "SkillDefinition",
    "SkillRegistry",
    "SkillTrigger",
    "default_registry",
    "LegacySkill",
    "LegacyTrigger",
    "PASSIVES",
    "PassiveKind",
    "passive_level",
    "passive_value",
    "HookContext",
    "Proc",
    "passive_hook",
    "skill_hook",
    "AOE_ORDER",
    "SkillPipeline",
    "compile_skill_levels",
]
