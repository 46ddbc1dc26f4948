"""
Serialization helpers for questionnaires and responses.

Provides JSON/YAML round-trip via an intermediate dict representation
using the camelCase wire keys of the questionnaire document format
(linkId, visibleIf, answerOptions, calculatedValues, ...).

Loading is strict: a document that breaks the model's invariants
raises DocumentLoadError instead of producing a half-valid model.
"""
from __future__ import annotations

import json
import logging
import warnings
from pathlib import Path
from typing import Any, Dict, List

import yaml

from formlogic.expressions import logic_to_json, parse_logic
from formlogic.model import (
    Answer,
    AnswerOption,
    CalculatedValue,
    Item,
    ItemType,
    Questionnaire,
    QuestionnaireResponse,
    ResponseItem,
    Subject,
    Translations,
    ValidationError,
    ValidationRule,
)

logger = logging.getLogger(__name__)


class DocumentLoadError(Exception):
    """Raised when a questionnaire or response document cannot be loaded."""
    pass


def _require(d: Any, key: str, what: str) -> Any:
    if not isinstance(d, dict):
        raise DocumentLoadError(f"{what} must be an object, got {type(d).__name__}")
    if key not in d or d[key] is None:
        raise DocumentLoadError(f"{what} is missing required field '{key}'")
    return d[key]


# =============================================================================
# QUESTIONNAIRE
# =============================================================================

def answer_option_to_dict(o: AnswerOption) -> Dict[str, Any]:
    return {"code": o.code, "display": o.display}


def answer_option_from_dict(d: Dict[str, Any]) -> AnswerOption:
    return AnswerOption(
        code=str(_require(d, "code", "Answer option")),
        display=str(_require(d, "display", "Answer option")),
    )


def validation_rule_to_dict(r: ValidationRule) -> Dict[str, Any]:
    return {"message": r.message, "expression": logic_to_json(r.expression)}


def validation_rule_from_dict(d: Dict[str, Any]) -> ValidationRule:
    message = _require(d, "message", "Validation rule")
    return ValidationRule(message=message, expression=parse_logic(_require(d, "expression", "Validation rule")))


def calculated_value_to_dict(c: CalculatedValue) -> Dict[str, Any]:
    return {"name": c.name, "expression": logic_to_json(c.expression)}


def calculated_value_from_dict(d: Dict[str, Any]) -> CalculatedValue:
    name = _require(d, "name", "Calculated value")
    return CalculatedValue(name=name, expression=parse_logic(_require(d, "expression", "Calculated value")))


def item_to_dict(i: Item) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "linkId": i.link_id,
        "type": i.type.value,
        "text": i.text,
        "required": i.required,
        "repeats": i.repeats,
        "answerOptions": [answer_option_to_dict(o) for o in i.answer_options],
        "validations": [validation_rule_to_dict(r) for r in i.validations],
        "items": [item_to_dict(child) for child in i.items],
    }
    if i.visible_if is not None:
        d["visibleIf"] = logic_to_json(i.visible_if)
    return d


def item_from_dict(d: Dict[str, Any]) -> Item:
    link_id = _require(d, "linkId", "Item")
    what = f"Item '{link_id}'"
    try:
        item_type = ItemType.from_string(_require(d, "type", what))
    except ValueError as e:
        raise DocumentLoadError(f"{what}: {e}")

    visible_if = d.get("visibleIf")
    item = Item(
        link_id=link_id,
        type=item_type,
        text=_require(d, "text", what),
        required=bool(d.get("required", False)),
        repeats=bool(d.get("repeats", False)),
        visible_if=parse_logic(visible_if) if visible_if is not None else None,
        answer_options=[answer_option_from_dict(o) for o in d.get("answerOptions") or []],
        validations=[validation_rule_from_dict(r) for r in d.get("validations") or []],
        items=[item_from_dict(child) for child in d.get("items") or []],
    )

    if item.repeats and item.type != ItemType.GROUP:
        warnings.warn(f"{what} repeats but is not a GROUP", UserWarning)
    if item.items and item.type != ItemType.GROUP:
        warnings.warn(f"{what} has child items but is not a GROUP", UserWarning)

    return item


def translations_to_dict(t: Translations | None) -> Dict[str, Any] | None:
    if t is None:
        return None
    return {"defaultLocale": t.default_locale, "sources": dict(t.sources)}


def translations_from_dict(d: Dict[str, Any] | None) -> Translations | None:
    if d is None:
        return None
    return Translations(
        default_locale=_require(d, "defaultLocale", "Translations"),
        sources=dict(d.get("sources") or {}),
    )


def _check_unique_link_ids(q: Questionnaire) -> None:
    seen = set()
    duplicates = set()
    for item in q.iter_items():
        if item.link_id in seen:
            duplicates.add(item.link_id)
        seen.add(item.link_id)
    if duplicates:
        raise DocumentLoadError(f"Duplicate linkIds: {sorted(duplicates)}")


def questionnaire_to_dict(q: Questionnaire) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": q.id,
        "title": q.title,
        "calculatedValues": [calculated_value_to_dict(c) for c in q.calculated_values],
        "items": [item_to_dict(i) for i in q.items],
    }
    if q.version is not None:
        d["version"] = q.version
    if q.description is not None:
        d["description"] = q.description
    if q.translations is not None:
        d["translations"] = translations_to_dict(q.translations)
    if q.extraction_template is not None:
        d["extractionTemplate"] = q.extraction_template
    return d


def questionnaire_from_dict(d: Dict[str, Any]) -> Questionnaire:
    """
    Build a Questionnaire from its decoded document.

    Raises:
        DocumentLoadError: On missing fields, unknown item types
                           or duplicate linkIds
    """
    items = _require(d, "items", "Questionnaire")
    if not isinstance(items, list):
        raise DocumentLoadError("Questionnaire 'items' must be a list")

    q = Questionnaire(
        id=str(_require(d, "id", "Questionnaire")),
        title=_require(d, "title", "Questionnaire"),
        items=[item_from_dict(i) for i in items],
        version=d.get("version"),
        description=d.get("description"),
        translations=translations_from_dict(d.get("translations")),
        calculated_values=[calculated_value_from_dict(c) for c in d.get("calculatedValues") or []],
        extraction_template=d.get("extractionTemplate"),
    )
    _check_unique_link_ids(q)
    logger.debug("Loaded questionnaire %s with %d top-level items", q.id, len(q.items))
    return q


def questionnaire_to_json(q: Questionnaire) -> str:
    return json.dumps(questionnaire_to_dict(q), sort_keys=True)


def questionnaire_from_json(s: str) -> Questionnaire:
    try:
        d = json.loads(s)
    except json.JSONDecodeError as e:
        raise DocumentLoadError(f"Invalid questionnaire JSON: {e}")
    return questionnaire_from_dict(d)


def questionnaire_to_yaml(q: Questionnaire) -> str:
    return yaml.safe_dump(questionnaire_to_dict(q))


def questionnaire_from_yaml(s: str) -> Questionnaire:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise DocumentLoadError(f"Invalid questionnaire YAML: {e}")
    return questionnaire_from_dict(d)


def load_questionnaire(filepath: str | Path) -> Questionnaire:
    """
    Load a questionnaire from a .json, .yaml or .yml file.

    Raises:
        FileNotFoundError: If file doesn't exist
        DocumentLoadError: If the document is invalid
    """
    path = Path(filepath)
    content = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        return questionnaire_from_yaml(content)
    return questionnaire_from_json(content)


# =============================================================================
# RESPONSE
# =============================================================================

def subject_to_dict(s: Subject | None) -> Dict[str, Any] | None:
    if s is None:
        return None
    return {"id": s.id, "type": s.type}


def subject_from_dict(d: Dict[str, Any] | None) -> Subject | None:
    if d is None:
        return None
    return Subject(id=_require(d, "id", "Subject"), type=_require(d, "type", "Subject"))


def answer_to_dict(a: Answer) -> Dict[str, Any]:
    return {"value": a.value}


def response_item_to_dict(i: ResponseItem) -> Dict[str, Any]:
    return {
        "linkId": i.link_id,
        "answers": [answer_to_dict(a) for a in i.answers],
        "items": [response_item_to_dict(child) for child in i.items],
    }


def response_item_from_dict(d: Dict[str, Any]) -> ResponseItem:
    answers: List[Answer] = []
    for a in d.get("answers") or []:
        if not isinstance(a, dict) or "value" not in a:
            raise DocumentLoadError(f"Answer for '{d.get('linkId')}' must be an object with a 'value'")
        answers.append(Answer(a["value"]))
    return ResponseItem(
        link_id=_require(d, "linkId", "Response item"),
        answers=answers,
        items=[response_item_from_dict(child) for child in d.get("items") or []],
    )


def response_to_dict(r: QuestionnaireResponse) -> Dict[str, Any]:
    return {
        "id": r.id,
        "questionnaireId": r.questionnaire_id,
        "authored": r.authored,
        "subject": subject_to_dict(r.subject),
        "items": [response_item_to_dict(i) for i in r.items],
    }


def response_from_dict(d: Dict[str, Any]) -> QuestionnaireResponse:
    return QuestionnaireResponse(
        id=str(_require(d, "id", "Response")),
        questionnaire_id=str(_require(d, "questionnaireId", "Response")),
        authored=_require(d, "authored", "Response"),
        subject=subject_from_dict(d.get("subject")),
        items=[response_item_from_dict(i) for i in d.get("items") or []],
    )


def response_to_json(r: QuestionnaireResponse, indent: int | None = None) -> str:
    return json.dumps(response_to_dict(r), indent=indent)


def response_from_json(s: str) -> QuestionnaireResponse:
    try:
        d = json.loads(s)
    except json.JSONDecodeError as e:
        raise DocumentLoadError(f"Invalid response JSON: {e}")
    return response_from_dict(d)


def validation_error_to_dict(e: ValidationError) -> Dict[str, Any]:
    return {"linkId": e.link_id, "path": list(e.path), "message": e.message, "itemText": e.item_text}
