"""Tests for visibility filtering of the item tree."""

import pytest
from formlogic.engine import VisibilityEngine
from formlogic.expressions import parse_logic
from formlogic.interpreter import LogicEvaluator
from formlogic.model import Item, ItemType

SHOW_IF_YES = parse_logic({"==": {"0": {"var": "show"}, "1": "yes"}})


@pytest.fixture
def engine():
    return VisibilityEngine(LogicEvaluator())


@pytest.fixture
def items():
    return [
        Item(link_id="show", type=ItemType.STRING, text="Show?"),
        Item(link_id="conditional", type=ItemType.STRING, text="Conditional", visible_if=SHOW_IF_YES),
        Item(
            link_id="group",
            type=ItemType.GROUP,
            text="Group",
            items=[
                Item(link_id="always", type=ItemType.STRING, text="Always"),
                Item(link_id="nested-conditional", type=ItemType.STRING, text="Nested", visible_if=SHOW_IF_YES),
            ],
        ),
    ]


class TestIsVisible:
    def test_no_expression_is_visible(self, engine):
        assert engine.is_visible(Item(link_id="a", type=ItemType.STRING, text="A"), {})

    def test_expression_truthiness(self, engine):
        item = Item(link_id="a", type=ItemType.STRING, text="A", visible_if=parse_logic({"var": "flag"}))
        assert engine.is_visible(item, {"flag": 1})
        assert not engine.is_visible(item, {"flag": 0})
        assert not engine.is_visible(item, {})

    def test_malformed_expression_hides(self, engine):
        item = Item(link_id="a", type=ItemType.STRING, text="A", visible_if=parse_logic({"nope": {}}))
        assert not engine.is_visible(item, {})


class TestGetVisibleItems:
    def test_hidden_items_dropped_at_every_level(self, engine, items):
        visible = engine.get_visible_items(items, {"show": "no"})
        assert [i.link_id for i in visible] == ["show", "group"]
        assert [i.link_id for i in visible[1].items] == ["always"]

    def test_all_visible(self, engine, items):
        visible = engine.get_visible_items(items, {"show": "yes"})
        assert [i.link_id for i in visible] == ["show", "conditional", "group"]
        assert [i.link_id for i in visible[2].items] == ["always", "nested-conditional"]

    def test_group_with_all_children_hidden_is_kept_empty(self, engine):
        group = Item(
            link_id="group",
            type=ItemType.GROUP,
            text="Group",
            items=[Item(link_id="child", type=ItemType.STRING, text="Child", visible_if=SHOW_IF_YES)],
        )
        visible = engine.get_visible_items([group], {})
        assert len(visible) == 1
        assert visible[0].items == []

    def test_input_tree_not_modified(self, engine, items):
        engine.get_visible_items(items, {"show": "no"})
        assert len(items[2].items) == 2

    def test_idempotent(self, engine, items):
        context = {"show": "no"}
        assert engine.get_visible_items(items, context) == engine.get_visible_items(items, context)
