from __future__ import annotations

import pytest

from wuxing_combat.combat.combatant import Combatant, StatusKind
from wuxing_combat.core.rng import RNG
from wuxing_combat.elements import Element
from wuxing_combat.errors import RegistryError, UnknownSkillError, UnknownTriggerError
from wuxing_combat.skills.hooks import (
    AfterDefendEffects,
    AttackModifiers,
    HookRegistry,
    LethalProtection,
    Proc,
)
from wuxing_combat.skills.pipeline import SkillPipeline, compile_skill_levels
from wuxing_combat.skills.registry import SkillRegistry, SkillTrigger


class AlwaysRNG(RNG):
    def chance(self, percent: float) -> bool:
        return percent > 0


class NeverRNG(RNG):
    def chance(self, percent: float) -> bool:
        return False


def fighter(cid="a", skills=(), levels=None, **kw) -> Combatant:
    kw.setdefault("max_hp", 100)
    c = Combatant(id=cid, name=cid, attribute_skills=list(skills), element_levels=levels or {}, **kw)
    return c


@pytest.fixture
def pipeline(tuning) -> SkillPipeline:
    return SkillPipeline(tuning=tuning)


def test_duplicate_copies_raise_effective_level():
    levels = compile_skill_levels(["ruidu", "ruidu", "ruidu"], {Element.METAL: 2})
    assert levels == {"ruidu": 4}


def test_effective_level_is_capped_at_ten():
    assert compile_skill_levels(["ruidu"] * 3, {Element.METAL: 9}) == {"ruidu": 10}


def test_skills_without_element_level_are_dropped():
    assert compile_skill_levels(["lingdong", "ruidu"], {Element.METAL: 1}) == {"ruidu": 1}


def test_unknown_skill_id_raises():
    with pytest.raises(UnknownSkillError):
        compile_skill_levels(["ruidu", "made_up"], {Element.METAL: 1})


def test_attack_phase_folds_skills_and_passives(pipeline):
    a = fighter(skills=["ruidu", "pojia", "fengmang"], levels={Element.METAL: 2})
    pipeline.compile(a)
    mods = pipeline.resolve(SkillTrigger.ON_ATTACK, a, fighter("d"))
    assert isinstance(mods, AttackModifiers)
    assert mods.crit_rate == 8
    assert mods.crit_damage == 15
    # pojia level 2 plus the metal passive at level 2
    assert mods.ignore_defense_percent == 28


def test_low_hp_skills_join_the_attack_phase(pipeline):
    a = fighter(skills=["numu"], levels={Element.WOOD: 1}, hp=40)
    pipeline.compile(a)
    assert pipeline.resolve("on_attack", a, fighter("d")).damage_percent == 5
    a.set_hp(100)
    assert pipeline.resolve("on_attack", a, fighter("d")).damage_percent == 0


def test_conditional_hook_reads_extra_facts(pipeline):
    d = fighter(skills=["fanzhen", "xushi"], levels={Element.EARTH: 1})
    pipeline.compile(d)
    quiet = pipeline.resolve(SkillTrigger.AFTER_DEFEND, d, fighter("a"), damage_taken=0)
    assert isinstance(quiet, AfterDefendEffects)
    assert quiet.reflect_percent == 0 and not quiet.charge

    hit = pipeline.resolve(SkillTrigger.AFTER_DEFEND, d, fighter("a"), damage_taken=10)
    assert hit.reflect_percent == 5
    assert hit.reflect_by == ["反震"]
    assert hit.charge and hit.charge_percent == 8


def test_after_attack_collects_procs(pipeline):
    a = fighter(skills=["liaoyuan"], levels={Element.FIRE: 1})
    pipeline.compile(a)
    effects = pipeline.resolve(SkillTrigger.AFTER_ATTACK, a, fighter("d"))
    assert [(p.kind, p.chance) for p in effects.procs] == [
        (StatusKind.BURNING, 10),
        (StatusKind.BURNING, 20),
    ]


def test_init_modifiers(pipeline):
    c = fighter(skills=["genji", "jianbi"], levels={Element.WOOD: 4, Element.EARTH: 1})
    pipeline.compile(c)
    mods = pipeline.init_modifiers(c)
    assert mods.max_hp_flat == 70
    assert mods.defense_percent == 5
    assert mods.regen_percent == 11
    assert mods.regen_doubles_when_low


def test_lethal_protection_from_wood_passives(pipeline):
    c = fighter(levels={Element.WOOD: 5})
    protection = pipeline.resolve(SkillTrigger.ON_LOW_HP, c)
    assert isinstance(protection, LethalProtection)
    assert protection.guaranteed
    assert protection.revive_percent == 50


def test_unknown_phase_raises(pipeline):
    with pytest.raises(UnknownTriggerError):
        pipeline.resolve("on_sneeze", fighter())


def test_aoe_is_not_resolved_as_a_phase(pipeline):
    with pytest.raises(RegistryError):
        pipeline.resolve(SkillTrigger.AOE_ATTACK, fighter())


def test_aoe_rolls_in_fixed_order(pipeline):
    c = fighter(skills=["dilie", "liekongzhan"], levels={Element.METAL: 1, Element.EARTH: 1})
    pipeline.compile(c)
    strike = pipeline.roll_aoe(c, AlwaysRNG(0))
    assert strike.skill_id == "liekongzhan"
    assert strike.damage_percent == 70
    assert pipeline.roll_aoe(c, NeverRNG(0)) is None
    assert pipeline.roll_aoe(fighter(), AlwaysRNG(0)) is None


def test_aoe_strike_carries_tuned_values(pipeline):
    c = fighter(skills=["dilie"], levels={Element.EARTH: 1})
    pipeline.compile(c)
    strike = pipeline.roll_aoe(c, AlwaysRNG(0))
    assert strike.damage_percent == 60
    assert strike.per_extra_target_percent == 15


def test_registry_entries_need_hooks():
    extra = SkillRegistry.from_mapping(
        {
            "skills": [
                {
                    "id": "unhooked",
                    "name": "Unhooked",
                    "element": "fire",
                    "trigger": "on_attack",
                    "values": list(range(10)),
                }
            ]
        }
    )
    with pytest.raises(RegistryError):
        SkillPipeline(registry=extra)


def test_duplicate_hook_registration_raises():
    hooks = HookRegistry("test")
    hooks.register("x", SkillTrigger.ON_ATTACK, lambda ctx: {})
    with pytest.raises(RegistryError):
        hooks.register("x", "on_attack", lambda ctx: {})
    assert hooks.has("x") and len(hooks) == 1


def test_fold_rules():
    effects = AfterDefendEffects()
    effects.fold({"reflect_percent": 5, "reflect_by": ["a"], "charge": True})
    effects.fold({"reflect_percent": 10, "reflect_by": ["b"], "charge": False, "procs": [Proc(StatusKind.BURNING, 5, "x")]})
    assert effects.reflect_percent == 15
    assert effects.reflect_by == ["a", "b"]
    assert effects.charge
    assert len(effects.procs) == 1
    with pytest.raises(RegistryError):
        effects.fold({"crit_rate": 5})
