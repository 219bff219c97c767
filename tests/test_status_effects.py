from __future__ import annotations

import pytest

from wuxing_combat.combat.combatant import Combatant, StatusEntry, StatusKind
from wuxing_combat.combat.log import BattleLog, EventType
from wuxing_combat.combat.status import MAX_BLEED_STACKS, StatusProcessor
from wuxing_combat.config import CombatTuning
from wuxing_combat.core.rng import RNG
from wuxing_combat.elements import Element
from wuxing_combat.skills.hooks import Proc
from wuxing_combat.skills.pipeline import SkillPipeline


@pytest.fixture
def processor(tuning: CombatTuning) -> StatusProcessor:
    return StatusProcessor(RNG(1), BattleLog(), tuning, SkillPipeline(tuning=tuning))


def unit(cid: str, levels=None, **kw) -> Combatant:
    kw.setdefault("max_hp", 100)
    return Combatant(id=cid, name=cid, element_levels=levels or {}, **kw)


def test_bleed_stacks_are_capped(processor):
    source = unit("src", {Element.METAL: 3})
    target = unit("tgt")
    for _ in range(8):
        assert processor.apply(source, target, StatusKind.BLEEDING)
    entry = target.status(StatusKind.BLEEDING)
    assert entry.stacks == MAX_BLEED_STACKS
    assert entry.turns_left is None


def test_non_stacking_burn_refreshes_duration(processor):
    source = unit("src", {Element.FIRE: 1})
    target = unit("tgt")
    processor.apply(source, target, StatusKind.BURNING)
    target.status(StatusKind.BURNING).turns_left = 1
    processor.apply(source, target, StatusKind.BURNING)
    processor.apply(source, target, StatusKind.BURNING)
    entry = target.status(StatusKind.BURNING)
    assert entry.stacks == 1
    assert entry.turns_left == 2


def test_stacking_burn_explodes_at_three(processor):
    source = unit("src", {Element.FIRE: 3})
    target = unit("tgt")
    processor.apply(source, target, StatusKind.BURNING)
    processor.apply(source, target, StatusKind.BURNING)
    assert target.status(StatusKind.BURNING).stacks == 2
    processor.apply(source, target, StatusKind.BURNING)

    assert not target.has_status(StatusKind.BURNING)
    explosions = processor.log.of_type(EventType.BURN_EXPLODE)
    assert len(explosions) == 1
    # fire 3 has no explode tier yet, so the tuned default (15%) applies
    assert explosions[0].value == 15
    assert target.hp == 85
    assert not target.has_status(StatusKind.EMBERS)


def test_level_five_burn_leaves_embers(processor):
    source = unit("src", {Element.FIRE: 5})
    target = unit("tgt")
    for _ in range(3):
        processor.apply(source, target, StatusKind.BURNING)
    assert processor.log.of_type(EventType.BURN_EXPLODE)[0].value == 35
    embers = target.status(StatusKind.EMBERS)
    assert embers is not None and embers.value == 50
    assert embers.turns_left is None


def test_mastery_grants_negative_status_immunity(processor):
    source = unit("src", {Element.FIRE: 5, Element.METAL: 5})
    target = unit("tgt", has_mastery=True)
    for kind in (StatusKind.BLEEDING, StatusKind.BURNING, StatusKind.SLOWED, StatusKind.FROZEN):
        assert not processor.apply(source, target, kind)
    assert not target.statuses
    assert not processor.log.of_type(EventType.STATUS_APPLIED)


def test_immune_target_consumes_no_roll(processor):
    target = unit("tgt", has_mastery=True)
    state = processor.rng.state()
    assert not processor.apply_proc(unit("src"), target, Proc(StatusKind.SLOWED, 100, "test"))
    assert processor.rng.state() == state


def test_earth_control_immunity_depends_on_hp(processor):
    source = unit("src")
    target = unit("tgt", {Element.EARTH: 4})
    assert not processor.apply(source, target, StatusKind.SLOWED)
    assert not processor.apply(source, target, StatusKind.FROZEN)
    # bleed is not a control effect
    assert processor.apply(source, target, StatusKind.BLEEDING)
    target.set_hp(50)
    assert processor.apply(source, target, StatusKind.SLOWED)


def test_tick_bleed_and_burn_damage(processor):
    target = unit("tgt")
    target.set_status(StatusKind.BLEEDING, StatusEntry(stacks=2, value=2, source_id="src"))
    target.set_status(StatusKind.BURNING, StatusEntry(stacks=1, turns_left=2, value=3, source_id="src"))
    processor.tick(target)
    damage = processor.log.of_type(EventType.STATUS_DAMAGE)
    assert [(e.status_type, e.value) for e in damage] == [("bleeding", 4), ("burning", 3)]
    assert target.hp == 93
    assert target.status(StatusKind.BURNING).turns_left == 1
    processor.tick(target)
    assert not target.has_status(StatusKind.BURNING)
    assert target.status(StatusKind.BLEEDING).stacks == 2


def test_tick_damage_is_at_least_one(processor):
    target = unit("tgt", max_hp=10)
    target.set_status(StatusKind.BLEEDING, StatusEntry(stacks=1, value=2))
    processor.tick(target)
    assert target.hp == 9


def test_slow_expires_after_its_turns(processor):
    target = unit("tgt")
    processor.apply(unit("src"), target, StatusKind.SLOWED)
    assert target.status(StatusKind.SLOWED).turns_left == 1
    processor.tick(target)
    assert not target.has_status(StatusKind.SLOWED)


def test_regeneration_doubles_when_low(processor):
    target = unit("tgt", hp=20)
    processor.install_regeneration(target, 10, True)
    processor.tick(target)
    assert target.hp == 40
    heal = processor.log.of_type(EventType.STATUS_HEAL)[0]
    assert heal.value == 20 and heal.status_type == "regeneration"


def test_mastery_regenerates_each_turn(processor):
    target = unit("tgt", hp=50, has_mastery=True)
    processor.tick(target)
    assert target.hp == 55


def test_turn_start_skill_heals(processor):
    target = unit("tgt", hp=50)
    target.skill_levels = {"shengji": 1}
    processor.tick(target)
    heal = processor.log.of_type(EventType.STATUS_HEAL)[0]
    assert heal.value == 2 and heal.skill_name == "生机"
    assert not processor.log.of_type(EventType.HEAL)


def test_turn_start_skill_heal_is_at_least_one(processor):
    target = unit("tgt", max_hp=40, hp=20)
    target.skill_levels = {"shengji": 1}
    processor.tick(target)
    assert target.hp == 21
    heal = processor.log.of_type(EventType.STATUS_HEAL)[0]
    assert (heal.value, heal.skill_name) == (1, "生机")


def test_survive_lethal_fires_once_per_round(processor):
    target = unit("tgt", {Element.WOOD: 3})
    assert processor.deal_damage(target, 500, "enemy") == 100
    assert target.hp == 1
    assert len(processor.log.of_type(EventType.SURVIVE_LETHAL)) == 1

    processor.deal_damage(target, 500, "enemy")
    assert not target.alive
    assert len(processor.log.of_type(EventType.SURVIVE_LETHAL)) == 1
    assert processor.log.of_type(EventType.DEATH)[0].target_id == "tgt"


def test_survive_protection_resets_next_round(processor):
    target = unit("tgt", {Element.WOOD: 3})
    processor.deal_damage(target, 500, "enemy")
    processor.clear_round_flags([target])
    processor.deal_damage(target, 500, "enemy")
    assert target.hp == 1
    assert len(processor.log.of_type(EventType.SURVIVE_LETHAL)) == 2


def test_revive_fires_once_per_battle(processor):
    target = unit("tgt", {Element.WOOD: 5})
    processor.deal_damage(target, 500, "enemy")  # protection
    processor.deal_damage(target, 500, "enemy")  # revive
    assert target.hp == 50
    assert len(processor.log.of_type(EventType.REVIVE)) == 1

    processor.clear_round_flags([target])
    processor.deal_damage(target, 500, "enemy")  # protection again (new round)
    processor.deal_damage(target, 500, "enemy")  # no second revive
    assert not target.alive
    assert len(processor.log.of_type(EventType.REVIVE)) == 1
    assert len(processor.log.of_type(EventType.DEATH)) == 1


def test_plain_combatant_dies(processor):
    target = unit("tgt")
    processor.deal_damage(target, 100, "enemy")
    assert processor.log.of_type(EventType.DEATH)[0].actor_id == "enemy"
    assert processor.deal_damage(target, 10, "enemy") == 0


def test_charge_stacks_cap_and_consume(processor):
    c = unit("c")
    for _ in range(4):
        processor.add_charge(c, 10)
    assert c.charge_stacks == 3
    assert processor.consume_charge(c) == 30
    assert c.charge_stacks == 0
    assert processor.consume_charge(c) == 0


def test_revenge_adds_bonus_at_full_charge(processor):
    c = unit("c", {Element.EARTH: 5})
    for _ in range(3):
        processor.add_charge(c, 0)
    assert processor.consume_charge(c) == 100


def test_water_five_freeze_shatters_on_thaw(processor):
    source = unit("src", {Element.WATER: 5})
    target = unit("tgt")
    processor.apply(source, target, StatusKind.FROZEN)
    assert target.frozen
    processor.thaw(target)
    assert not target.frozen
    assert processor.log.of_type(EventType.FROZEN_SKIP)[0].actor_id == "tgt"
    shatter = processor.log.of_type(EventType.FREEZE_SHATTER)[0]
    assert shatter.value == 10 and shatter.actor_id == "src"
    assert target.hp == 90


def test_plain_freeze_only_skips(processor):
    target = unit("tgt")
    processor.apply(unit("src"), target, StatusKind.FROZEN)
    processor.thaw(target)
    assert not processor.log.of_type(EventType.FREEZE_SHATTER)
    assert target.hp == 100
