from __future__ import annotations

from pathlib import Path

from wuxing_combat.config import CombatTuning


def test_packaged_defaults_match_dataclass_defaults():
    assert CombatTuning.load().to_dict() == CombatTuning.default().to_dict()


def test_user_file_is_deep_merged(tmp_path: Path):
    user = tmp_path / "tuning.yaml"
    user.write_text("combat:\n  block_factor: 0.25\nburn:\n  turns: 4\n", encoding="utf-8")
    tuning = CombatTuning.load(user)
    assert tuning.combat.block_factor == 0.25
    assert tuning.combat.crit_base_multiplier == 1.5
    assert tuning.burn.turns == 4
    assert tuning.burn.explode_percent == 15


def test_missing_user_file_falls_back_to_defaults(tmp_path: Path):
    tuning = CombatTuning.load(tmp_path / "nope.yaml")
    assert tuning.to_dict() == CombatTuning().to_dict()


def test_deep_merge_does_not_mutate_inputs():
    base = {"a": {"x": 1, "y": 2}}
    overlay = {"a": {"y": 3}, "b": 4}
    merged = CombatTuning._deep_merge(base, overlay)
    assert merged == {"a": {"x": 1, "y": 3}, "b": 4}
    assert base == {"a": {"x": 1, "y": 2}}
