from __future__ import annotations

import pytest

from wuxing_combat.combat.combatant import Combatant, StatusEntry, StatusKind
from wuxing_combat.elements import Element, ElementLevel


def test_construction_clamps_bad_values():
    c = Combatant(id="x", name="", max_hp=0, attack=-5, defense=-1, speed=-3)
    assert c.max_hp == 1
    assert c.hp == 1
    assert (c.attack, c.defense, c.speed) == (0, 0, 0)
    assert c.name == "x"


def test_hp_defaults_to_max_and_is_clamped():
    assert Combatant(id="a", name="A", max_hp=40).hp == 40
    assert Combatant(id="b", name="B", max_hp=40, hp=99).hp == 40
    assert Combatant(id="c", name="C", max_hp=40, hp=-4).hp == 0


def test_empty_id_is_rejected():
    with pytest.raises(ValueError):
        Combatant(id="", name="nobody", max_hp=1)


def test_damage_and_heal_report_actual_change():
    c = Combatant(id="a", name="A", max_hp=20, hp=5)
    assert c.damage(8) == 5
    assert c.hp == 0 and not c.alive
    assert c.heal(50) == 20
    assert c.hp == 20
    assert c.damage(0) == 0
    assert c.heal(-3) == 0


def test_set_max_hp_clamps_current_hp():
    c = Combatant(id="a", name="A", max_hp=20)
    c.set_max_hp(12)
    assert c.hp == 12
    c.set_max_hp(30)
    assert c.hp == 12


def test_element_levels_default_to_affinities():
    c = Combatant(
        id="a",
        name="A",
        max_hp=10,
        attack_element={"element": "fire", "level": 3},
        defense_element=ElementLevel(Element.EARTH, 2),
    )
    assert c.element_levels == {Element.FIRE: 3, Element.EARTH: 2}
    assert c.passive_level(Element.FIRE) == 3
    assert c.passive_level(Element.WATER) == 0


def test_passive_level_caps_at_five():
    c = Combatant(id="a", name="A", max_hp=10, element_levels={"wood": 9})
    assert c.element_levels[Element.WOOD] == 9
    assert c.passive_level(Element.WOOD) == 5


def test_relics_spanning_all_elements_grant_mastery():
    c = Combatant(id="a", name="A", max_hp=10, relic_elements=[e.value for e in Element])
    assert c.has_mastery
    partial = Combatant(id="b", name="B", max_hp=10, relic_elements=["fire", "water"])
    assert not partial.has_mastery


def test_update_keeps_hp_and_statuses():
    c = Combatant(id="a", name="A", max_hp=50, hp=20, attack=5)
    c.set_status(StatusKind.BLEEDING, StatusEntry(stacks=2, value=2))
    c.update(attack=9, speed=4, max_hp=60)
    assert c.hp == 20
    assert c.attack == 9 and c.speed == 4 and c.max_hp == 60
    assert c.status(StatusKind.BLEEDING).stacks == 2
    with pytest.raises(ValueError):
        c.update(hp=50)


def test_copy_is_independent():
    c = Combatant(id="a", name="A", max_hp=10)
    dup = c.copy()
    dup.damage(5)
    dup.set_status(StatusKind.FROZEN, StatusEntry())
    assert c.hp == 10
    assert not c.statuses


def test_to_dict_exports_statuses():
    c = Combatant(id="a", name="A", max_hp=10, attack_element=ElementLevel(Element.FIRE, 2))
    c.set_status(StatusKind.BURNING, StatusEntry(stacks=1, turns_left=2, value=3))
    data = c.to_dict()
    assert data["attack_element"] == {"element": "fire", "level": 2}
    assert data["statuses"]["burning"]["turns_left"] == 2
