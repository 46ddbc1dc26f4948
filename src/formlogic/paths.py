"""
Dotted-path lookup over responses and plain data.

    resolve_path(response, "subject.id")
    resolve_path(response, "items.0.linkId")
    resolve_path({"a": {"b": 1}}, "a.b")

Any segment that cannot be resolved short-circuits to None.
"""

from typing import Any, Callable, Dict, Mapping, Optional

from formlogic.model import Answer, QuestionnaireResponse, ResponseItem, Subject

_RESPONSE_FIELDS: Dict[str, Callable[[QuestionnaireResponse], Any]] = {
    "id": lambda r: r.id,
    "questionnaireId": lambda r: r.questionnaire_id,
    "authored": lambda r: r.authored,
    "subject": lambda r: r.subject,
    "items": lambda r: r.items,
}

_SUBJECT_FIELDS: Dict[str, Callable[[Subject], Any]] = {
    "id": lambda s: s.id,
    "type": lambda s: s.type,
}

_RESPONSE_ITEM_FIELDS: Dict[str, Callable[[ResponseItem], Any]] = {
    "linkId": lambda i: i.link_id,
    "answers": lambda i: i.answers,
    "items": lambda i: i.items,
}

_ANSWER_FIELDS: Dict[str, Callable[[Answer], Any]] = {
    "value": lambda a: a.value,
}


def _step(current: Any, part: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(part)
    if isinstance(current, QuestionnaireResponse):
        getter = _RESPONSE_FIELDS.get(part)
    elif isinstance(current, Subject):
        getter = _SUBJECT_FIELDS.get(part)
    elif isinstance(current, ResponseItem):
        getter = _RESPONSE_ITEM_FIELDS.get(part)
    elif isinstance(current, Answer):
        getter = _ANSWER_FIELDS.get(part)
    elif isinstance(current, (list, tuple)):
        if not part.isdigit() or int(part) >= len(current):
            return None
        return current[int(part)]
    else:
        return None
    return getter(current) if getter is not None else None


def resolve_path(root: Any, path: str) -> Optional[Any]:
    """
    Walk `root` one dot-separated segment at a time.

    Args:
        root: A QuestionnaireResponse, Subject, mapping or list
        path: e.g. "subject.type"

    Returns:
        The value found, or None if any segment is missing
    """
    if root is None:
        return None

    current = root
    for part in path.split("."):
        current = _step(current, part)
        if current is None:
            break
    return current
