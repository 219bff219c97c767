from __future__ import annotations

import itertools

import pytest

from wuxing_combat.elements import (
    Element,
    ElementLevel,
    Relation,
    conquer_bonus,
    conquer_resistance,
    relation,
    relation_between,
    speed_modifier,
    speed_priority,
)


def test_relation_graph_is_never_symmetric():
    for a, b in itertools.product(Element, Element):
        if relation(a, b) is Relation.CONQUER:
            assert relation(b, a) is not Relation.CONQUER
        if relation(a, b) is Relation.GENERATE:
            assert relation(b, a) is not Relation.GENERATE


@pytest.mark.parametrize(
    "attacker, defender, expected",
    [
        (Element.METAL, Element.WOOD, Relation.CONQUER),
        (Element.WOOD, Element.EARTH, Relation.CONQUER),
        (Element.EARTH, Element.WATER, Relation.CONQUER),
        (Element.WATER, Element.FIRE, Relation.CONQUER),
        (Element.FIRE, Element.METAL, Relation.CONQUER),
        (Element.METAL, Element.WATER, Relation.GENERATE),
        (Element.WATER, Element.WOOD, Relation.GENERATE),
        (Element.WOOD, Element.FIRE, Relation.GENERATE),
        (Element.FIRE, Element.EARTH, Relation.GENERATE),
        (Element.EARTH, Element.METAL, Relation.GENERATE),
        (Element.FIRE, Element.FIRE, Relation.NEUTRAL),
        (Element.METAL, Element.FIRE, Relation.NEUTRAL),
    ],
)
def test_relation_table(attacker, defender, expected):
    assert relation(attacker, defender) is expected


def test_each_element_conquers_and_generates_exactly_one_other():
    for a in Element:
        rels = [relation(a, b) for b in Element]
        assert rels.count(Relation.CONQUER) == 1
        assert rels.count(Relation.GENERATE) == 1


def test_missing_affinity_is_neutral():
    assert relation_between(None, ElementLevel(Element.FIRE, 3)) is Relation.NEUTRAL
    assert relation_between(ElementLevel(Element.FIRE, 3), None) is Relation.NEUTRAL


def test_element_level_is_clamped():
    assert ElementLevel(Element.FIRE, 9).level == 5
    assert ElementLevel(Element.FIRE, 0).level == 1
    assert ElementLevel("water", 2).element is Element.WATER


def test_conquer_tables():
    assert [conquer_bonus(lvl) for lvl in range(1, 6)] == [20, 30, 40, 55, 75]
    assert [conquer_resistance(lvl) for lvl in range(1, 6)] == [10, 15, 20, 25, 30]


def test_speed_modifiers_and_priorities():
    assert speed_modifier(ElementLevel(Element.FIRE)) == 2
    assert speed_modifier(ElementLevel(Element.EARTH)) == -2
    assert speed_modifier(None) == 0
    assert speed_priority(ElementLevel(Element.FIRE)) > speed_priority(ElementLevel(Element.METAL))
    assert speed_priority(ElementLevel(Element.EARTH)) > speed_priority(None)
