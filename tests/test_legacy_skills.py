from __future__ import annotations

import pytest

from wuxing_combat.core.rng import RNG
from wuxing_combat.errors import UnknownTriggerError
from wuxing_combat.skills.legacy import (
    LegacySkill,
    LegacyTrigger,
    ignore_defense,
    passive_bonuses,
    passive_self_damage,
    roll_on_defend,
    roll_on_hit,
)


def skill(skill_id: str, trigger: str, **kw) -> LegacySkill:
    return LegacySkill.from_dict({"id": skill_id, "name": skill_id.upper(), "trigger": trigger, **kw})


def test_from_dict_defaults_and_round_trip_fields():
    s = skill("s1", "on_hit", damage_multiplier=2)
    assert s.trigger is LegacyTrigger.ON_HIT
    assert s.trigger_chance == 1.0
    assert s.to_dict()["damage_multiplier"] == 2.0
    assert not s.freezes


def test_unknown_trigger_is_rejected():
    with pytest.raises(UnknownTriggerError):
        skill("bad", "whenever")


def test_freezing_skill_id_freezes_by_default():
    assert skill("skill_xuanbing", "on_defend").freezes
    assert not skill("skill_xuanbing", "on_defend", freezes=False).freezes
    assert skill("custom", "on_defend", freezes=True).freezes


def test_passive_bonuses_sum():
    skills = [
        skill("p1", "passive", attack_bonus=3, defense_bonus=1),
        skill("p2", "passive", attack_bonus=2, ignore_defense=4),
        skill("h1", "on_hit", attack_bonus=100),
    ]
    assert passive_bonuses(skills) == (5, 1)
    assert ignore_defense(skills) == 4


def test_first_passive_self_damage_wins():
    skills = [
        skill("p0", "passive"),
        skill("p1", "passive", self_damage=3),
        skill("p2", "passive", self_damage=9),
    ]
    assert passive_self_damage(skills) == (3, "P1")
    assert passive_self_damage([]) is None


def test_certain_skills_draw_nothing():
    rng = RNG(5)
    state = rng.state()
    result = roll_on_hit([skill("h", "on_hit", trigger_chance=1.0, damage=2)], rng)
    assert result.triggered == ["H"]
    assert rng.state() == state


def test_on_hit_takes_largest_multiplier_and_sums_the_rest():
    skills = [
        skill("a", "on_hit", damage_multiplier=1.5, damage=2, heal=1),
        skill("b", "on_hit", damage_multiplier=2.0, damage=3),
        skill("never", "on_hit", trigger_chance=0, damage=100),
    ]
    result = roll_on_hit(skills, RNG(1))
    assert result.damage_multiplier == 2.0
    assert result.bonus_damage == 5
    assert result.heal_amount == 1
    assert result.triggered == ["A", "B"]


def test_dodge_stops_on_defend_processing():
    skills = [
        skill("dodge", "on_defend", dodge=True),
        skill("skill_xuanbing", "on_defend"),
    ]
    result = roll_on_defend(skills, RNG(1))
    assert result.dodged
    assert not result.freeze_attacker
    assert result.triggered == ["DODGE"]


def test_on_defend_debuff_and_freeze():
    skills = [
        skill("weaken", "on_defend", attack_bonus=-3),
        skill("weaker", "on_defend", attack_bonus=-5),
        skill("skill_xuanbing", "on_defend"),
    ]
    result = roll_on_defend(skills, RNG(1))
    assert not result.dodged
    assert result.attack_debuff == 5
    assert result.freeze_attacker
    assert result.freeze_source == "SKILL_XUANBING"
