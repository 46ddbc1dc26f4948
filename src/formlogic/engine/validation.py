"""
Validation: required answers and rule checks over visible items.
"""

from collections import ChainMap
from typing import Any, Dict, List, Mapping, Optional

from formlogic.interpreter import LogicEvaluator
from formlogic.model import Answer, Item, ResponseItem, ValidationError
from formlogic.truthiness import is_truthy

from .visibility import VisibilityEngine

REQUIRED_SUFFIX = ".required"


class ValidationEngine:
    """
    Hidden items are skipped entirely: they never report errors, and a
    hidden required item is not required.
    """

    def __init__(self, evaluator: LogicEvaluator):
        self._evaluator = evaluator
        self._visibility = VisibilityEngine(evaluator)

    def validate_response(
        self,
        items: List[Item],
        response_items: List[ResponseItem],
        data_context: Mapping[str, Any],
        path: Optional[List[str]] = None,
    ) -> List[ValidationError]:
        """
        Validate one level of the tree and recurse into groups.

        Args:
            items: Questionnaire items at this level
            response_items: Response items at the same level
            data_context: Flat context (answers + calculated values)
            path: linkIds leading to this level

        Returns:
            ValidationError list, in item order
        """
        response_map = {ri.link_id: ri for ri in reversed(response_items)}
        return self._validate_level(items, response_map, data_context, path or [])

    def _validate_level(
        self,
        items: List[Item],
        response_map: Dict[str, ResponseItem],
        data_context: Mapping[str, Any],
        path: List[str],
    ) -> List[ValidationError]:
        errors: List[ValidationError] = []

        for item in items:
            if not self._visibility.is_visible(item, data_context):
                continue

            response_item = response_map.get(item.link_id)
            current_path = path + [item.link_id]

            if item.required and (response_item is None or not response_item.answers):
                errors.append(
                    ValidationError(
                        link_id=item.link_id,
                        path=current_path,
                        message=f"{item.text}{REQUIRED_SUFFIX}",
                        item_text=item.text,
                    )
                )

            for rule in item.validations:
                if not is_truthy(self._evaluator.evaluate(rule.expression, data_context)):
                    errors.append(
                        ValidationError(
                            link_id=item.link_id,
                            path=current_path,
                            message=rule.message,
                            item_text=item.text,
                        )
                    )

            if item.items and item.repeats:
                errors.extend(self._validate_instances(item, response_item, data_context, current_path))
            elif item.items:
                nested = response_item.items if response_item is not None else []
                nested_map = {ri.link_id: ri for ri in reversed(nested)}
                errors.extend(self._validate_level(item.items, nested_map, data_context, current_path))

        return errors

    def _validate_instances(
        self,
        group: Item,
        response_item: Optional[ResponseItem],
        data_context: Mapping[str, Any],
        path: List[str],
    ) -> List[ValidationError]:
        # A repeating group's answer is an array with one object per instance.
        # Each instance is validated with its own keys layered over the context.
        errors: List[ValidationError] = []
        if response_item is None or not response_item.answers:
            return errors

        instances = response_item.answers[0].value
        if not isinstance(instances, list):
            return errors

        for index, instance in enumerate(instances):
            if not isinstance(instance, dict):
                continue
            instance_context = ChainMap(instance, data_context)
            instance_map = {
                child.link_id: ResponseItem(link_id=child.link_id, answers=[Answer(instance[child.link_id])])
                for child in group.items
                if instance.get(child.link_id) is not None
            }
            errors.extend(self._validate_level(group.items, instance_map, instance_context, path + [str(index)]))
        return errors
