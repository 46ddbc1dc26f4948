"""
Tests for the core questionnaire model objects.

These tests verify:
    - Item type lookup
    - Tree retrieval on questionnaires and responses
    - Immutability of model values
"""

from dataclasses import FrozenInstanceError

import pytest
from formlogic.model import (
    Answer,
    Item,
    ItemType,
    Questionnaire,
    QuestionnaireResponse,
    ResponseItem,
)


@pytest.fixture
def questionnaire():
    return Questionnaire(
        id="q-1",
        title="Nested",
        items=[
            Item(link_id="intro", type=ItemType.DISPLAY, text="Intro"),
            Item(link_id="outer", type=ItemType.GROUP, text="Outer", items=[
                Item(link_id="inner", type=ItemType.GROUP, text="Inner", items=[
                    Item(link_id="leaf", type=ItemType.STRING, text="Leaf"),
                ]),
                Item(link_id="sibling", type=ItemType.INTEGER, text="Sibling"),
            ]),
            Item(link_id="last", type=ItemType.BOOLEAN, text="Last"),
        ],
    )


class TestItemType:
    """Test ItemType lookup."""

    @pytest.mark.parametrize("name", ["GROUP", "group", "Group"])
    def test_case_insensitive(self, name):
        """Should accept any casing of the type name."""
        assert ItemType.from_string(name) is ItemType.GROUP

    def test_open_choice(self):
        assert ItemType.from_string("open_choice") is ItemType.OPEN_CHOICE

    def test_unknown(self):
        """Should reject names outside the closed set."""
        with pytest.raises(ValueError, match="Unknown item type: SLIDER"):
            ItemType.from_string("SLIDER")


class TestItem:
    def test_defaults(self):
        item = Item(link_id="a", type=ItemType.STRING, text="A")
        assert not item.required
        assert not item.repeats
        assert item.visible_if is None
        assert item.answer_options == []
        assert item.validations == []
        assert item.items == []

    def test_frozen(self):
        item = Item(link_id="a", type=ItemType.STRING, text="A")
        with pytest.raises(FrozenInstanceError):
            item.required = True


class TestQuestionnaire:
    """Test tree retrieval on a questionnaire."""

    def test_iter_items_depth_first(self, questionnaire):
        """Groups come before their children, siblings in order."""
        assert [i.link_id for i in questionnaire.iter_items()] == [
            "intro", "outer", "inner", "leaf", "sibling", "last",
        ]

    def test_get_item_nested(self, questionnaire):
        assert questionnaire.get_item("leaf").text == "Leaf"

    def test_get_item_missing(self, questionnaire):
        assert questionnaire.get_item("nope") is None

    def test_get_item_first_match(self):
        questionnaire = Questionnaire(id="q", title="Dup", items=[
            Item(link_id="x", type=ItemType.STRING, text="First"),
            Item(link_id="x", type=ItemType.STRING, text="Second"),
        ])
        assert questionnaire.get_item("x").text == "First"


class TestQuestionnaireResponse:
    def test_find_item_nested(self):
        response = QuestionnaireResponse(
            id="r", questionnaire_id="q", authored="2026-01-01T00:00:00+00:00",
            items=[ResponseItem("outer", items=[ResponseItem("leaf", answers=[Answer("x")])])],
        )
        assert response.find_item("leaf").answers == [Answer("x")]
        assert response.find_item("nope") is None

    def test_frozen(self):
        response = QuestionnaireResponse(id="r", questionnaire_id="q", authored="now")
        with pytest.raises(FrozenInstanceError):
            response.items = []
