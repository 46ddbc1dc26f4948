"""
Data context construction.

Flattens a hierarchical response into the flat variable map rules are
evaluated against. Nesting does not namespace keys: a child's linkId
binds directly next to its parent's.
"""

from typing import Any, Dict, List

from formlogic.model import QuestionnaireResponse, ResponseItem


def _native(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _native(child) for key, child in value.items()}
    if isinstance(value, (list, tuple)):
        return [_native(child) for child in value]
    return value


def _flatten(items: List[ResponseItem], context: Dict[str, Any]) -> None:
    for item in items:
        if item.answers:
            values = [_native(answer.value) for answer in item.answers]
            context[item.link_id] = values[0] if len(values) == 1 else values
        elif item.items:
            _flatten(item.items, context)


def build_data_context(response: QuestionnaireResponse) -> Dict[str, Any]:
    """
    Build the flat variable map for a response.

    A single answer binds its value directly (scalar, list or object),
    several answers bind a list of values. An unanswered item with
    nested items contributes its children instead.

    Returns:
        A new dict the caller may extend (calculated values are
        written into it).
    """
    context: Dict[str, Any] = {}
    _flatten(response.items, context)
    return context
