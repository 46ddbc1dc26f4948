"""
Visibility: prunes the item tree down to what is currently shown.
"""

from dataclasses import replace
from typing import Any, List, Mapping

from formlogic.interpreter import LogicEvaluator
from formlogic.model import Item
from formlogic.truthiness import is_truthy


class VisibilityEngine:
    def __init__(self, evaluator: LogicEvaluator):
        self._evaluator = evaluator

    def is_visible(self, item: Item, data_context: Mapping[str, Any]) -> bool:
        """An item without a visibility expression is always visible."""
        if item.visible_if is None:
            return True
        return is_truthy(self._evaluator.evaluate(item.visible_if, data_context))

    def get_visible_items(self, items: List[Item], data_context: Mapping[str, Any]) -> List[Item]:
        """
        Return a new tree holding only visible items.

        A visible group whose children are all hidden is kept, with an
        empty child list. The input items are never modified.
        """
        visible: List[Item] = []
        for item in items:
            if not self.is_visible(item, data_context):
                continue
            if item.items:
                item = replace(item, items=self.get_visible_items(item.items, data_context))
            visible.append(item)
        return visible
