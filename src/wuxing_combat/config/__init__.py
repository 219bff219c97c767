from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BattleConfig:
    """Per-encounter flags owned by the surrounding game logic.

    The engine never branches on these; it only carries them so callers can
    read them back from the engine they built.
    """

    allow_equipment_change: bool = True
    is_pvp: bool = False


@dataclass
class CombatRules:
    crit_base_multiplier: float = 1.5
    block_factor: float = 0.5
    execute_threshold: float = 0.3
    low_hp_defense_threshold: float = 0.3
    low_hp_attack_threshold: float = 0.5
    regen_low_hp_threshold: float = 0.3
    control_immunity_threshold: float = 0.7


@dataclass
class MasteryRules:
    conquer_bonus: int = 30
    generate_bonus: int = 50
    regen_percent: int = 5


@dataclass
class BurnRules:
    per_stack_percent: int = 3
    turns: int = 2
    explode_percent: int = 15
    ember_bonus: int = 50


@dataclass
class SlowRules:
    turns: int = 1
    percent: int = 30


@dataclass
class ReviveRules:
    percent: int = 50


@dataclass
class AoeRules:
    lifesteal_percent: int = 30
    per_extra_target_percent: int = 15


@dataclass
class CombatTuning:
    combat: CombatRules = field(default_factory=CombatRules)
    mastery: MasteryRules = field(default_factory=MasteryRules)
    burn: BurnRules = field(default_factory=BurnRules)
    slow: SlowRules = field(default_factory=SlowRules)
    revive: ReviveRules = field(default_factory=ReviveRules)
    aoe: AoeRules = field(default_factory=AoeRules)

    @staticmethod
    def _load_yaml(path: Path) -> dict:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def _deep_merge(cls, base: dict, overlay: dict) -> dict:
        merged = dict(base)
        for k, v in (overlay or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                merged[k] = cls._deep_merge(base[k], v)
            else:
                merged[k] = v
        return merged

    @classmethod
    def _from_dict(cls, data: dict) -> "CombatTuning":
        return CombatTuning(
            combat=CombatRules(**data.get("combat", {})),
            mastery=MasteryRules(**data.get("mastery", {})),
            burn=BurnRules(**data.get("burn", {})),
            slow=SlowRules(**data.get("slow", {})),
            revive=ReviveRules(**data.get("revive", {})),
            aoe=AoeRules(**data.get("aoe", {})),
        )

    @classmethod
    def default(cls) -> "CombatTuning":
        return cls()

    @classmethod
    def load(cls, user_path: Optional[Path] = None) -> "CombatTuning":
        """Load tuning from the packaged defaults and an optional user override file.

        If user_path is provided and exists, its values are overlaid onto the defaults.
        """
        try:
            with resources.files("wuxing_combat.config").joinpath("tuning.yaml").open("r", encoding="utf-8") as f:
                default_data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning("Default tuning not found; falling back to dataclass defaults.")
            default_data = dataclasses.asdict(CombatTuning())

        user_data = {}
        if user_path is not None:
            if user_path.exists():
                user_data = cls._load_yaml(user_path)
                logger.info("Loaded user tuning from %s", user_path)
            else:
                logger.warning("User tuning file not found: %s", user_path)

        merged = cls._deep_merge(default_data, user_data)
        tuning = cls._from_dict(merged)
        logger.debug("Tuning merged: %s", tuning)
        return tuning

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


__all__ = [
    "BattleConfig",
    "CombatRules",
    "MasteryRules",
    "BurnRules",
    "SlowRules",
    "ReviveRules",
    "AoeRules",
    "CombatTuning",
]
