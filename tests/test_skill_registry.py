from __future__ import annotations

from pathlib import Path

import pytest

from wuxing_combat.elements import Element
from wuxing_combat.errors import RegistryError, UnknownSkillError, UnknownTriggerError
from wuxing_combat.skills.registry import SkillRegistry, SkillTrigger, default_registry


def test_default_table_has_thirty_skills():
    reg = default_registry()
    assert len(reg) == 30
    for element in Element:
        assert len(reg.by_element(element)) == 6
    assert len(reg.by_trigger(SkillTrigger.AOE_ATTACK)) == 5


def test_default_registry_is_shared():
    assert default_registry() is default_registry()


def test_lookup_and_level_clamping():
    reg = default_registry()
    ruidu = reg.get("ruidu")
    assert ruidu.element is Element.METAL
    assert ruidu.trigger is SkillTrigger.ON_ATTACK
    assert reg.value("ruidu", 1) == 5
    assert reg.value("ruidu", 10) == 33
    assert reg.value("ruidu", 0) == 5
    assert reg.value("ruidu", 42) == 33


def test_unknown_skill_raises():
    with pytest.raises(UnknownSkillError) as exc:
        default_registry().get("nope")
    assert exc.value.skill_id == "nope"
    assert "nope" not in default_registry()


def test_trigger_parse():
    assert SkillTrigger.parse("on_defend") is SkillTrigger.ON_DEFEND
    with pytest.raises(UnknownTriggerError):
        SkillTrigger.parse("on_sneeze")


def _entry(**overrides):
    entry = {"id": "x", "name": "X", "element": "fire", "trigger": "on_attack", "values": list(range(1, 11))}
    entry.update(overrides)
    return entry


@pytest.mark.parametrize(
    "entry",
    [
        _entry(values=[1, 2, 3]),
        _entry(element="aether"),
        _entry(trigger="whenever"),
        {"name": "missing id"},
    ],
)
def test_malformed_entries_are_rejected(entry):
    with pytest.raises(RegistryError):
        SkillRegistry.from_mapping({"skills": [entry]})


def test_duplicate_ids_are_rejected():
    with pytest.raises(RegistryError):
        SkillRegistry.from_mapping({"skills": [_entry(), _entry()]})


def test_table_without_skills_list_is_rejected():
    with pytest.raises(RegistryError):
        SkillRegistry.from_mapping({"version": 1})


def test_from_yaml(tmp_path: Path):
    p = tmp_path / "skills.yaml"
    p.write_text(
        "skills:\n"
        "  - id: test\n"
        "    name: Test\n"
        "    element: earth\n"
        "    trigger: on_defend\n"
        "    values: [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]\n",
        encoding="utf-8",
    )
    reg = SkillRegistry.from_yaml(p)
    assert reg.ids() == ["test"]
    assert reg.get("test").element is Element.EARTH
