"""
Extraction: projects a response into an arbitrary output document.

The template is plain JSON. Any object carrying a "source" key is a
source mapping and is replaced by a live value:

    {"source": "answer", "linkId": "full-name"}
    {"source": "calculatedValue", "name": "bmi"}
    {"source": "metadata", "path": "subject.id"}

Everything else is copied through, recursing into objects and arrays.
Extraction is best effort: anything unresolvable becomes null.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from formlogic.model import Answer, QuestionnaireResponse, ResponseItem, Subject
from formlogic.paths import resolve_path
from formlogic.serialization import answer_to_dict, response_item_to_dict, response_to_dict, subject_to_dict

logger = logging.getLogger(__name__)

SOURCE_KEY = "source"
SOURCE_ANSWER = "answer"
SOURCE_CALCULATED_VALUE = "calculatedValue"
SOURCE_METADATA = "metadata"

_MODEL_ENCODERS = {
    QuestionnaireResponse: response_to_dict,
    ResponseItem: response_item_to_dict,
    Subject: subject_to_dict,
    Answer: answer_to_dict,
}


def to_json_value(value: Any) -> Any:
    """Convert an extracted value into plain JSON-compatible data."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    if isinstance(value, Mapping):
        return {str(k): to_json_value(v) for k, v in value.items()}
    encoder = _MODEL_ENCODERS.get(type(value))
    if encoder is not None:
        return encoder(value)
    return str(value)


def _text(mapping: Mapping[str, Any], key: str) -> Optional[str]:
    value = mapping.get(key)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


class ExtractionEngine:
    def extract(
        self,
        response: QuestionnaireResponse,
        template: Any,
        calculated_values: Mapping[str, Any],
        answer_map: Mapping[str, Any],
    ) -> Any:
        """
        Fill `template` from the response.

        Args:
            response: Source of "metadata" mappings
            template: Output document shape
            calculated_values: Source of "calculatedValue" mappings
            answer_map: Flat data context, source of "answer" mappings

        Returns:
            A new JSON-compatible document; the template is not modified
        """
        return self._process(template, response, calculated_values, answer_map)

    def _process(self, node: Any, response, calculated_values, answer_map) -> Any:
        if isinstance(node, dict):
            if SOURCE_KEY in node:
                return self._from_source(node, response, calculated_values, answer_map)
            return {key: self._process(value, response, calculated_values, answer_map) for key, value in node.items()}
        if isinstance(node, list):
            return [self._process(value, response, calculated_values, answer_map) for value in node]
        return node

    def _from_source(self, mapping: Dict[str, Any], response, calculated_values, answer_map) -> Any:
        source = _text(mapping, SOURCE_KEY)

        if source == SOURCE_ANSWER:
            link_id = _text(mapping, "linkId")
            return to_json_value(answer_map.get(link_id)) if link_id is not None else None

        if source == SOURCE_CALCULATED_VALUE:
            name = _text(mapping, "name")
            return to_json_value(calculated_values.get(name)) if name is not None else None

        if source == SOURCE_METADATA:
            path = _text(mapping, "path")
            return to_json_value(resolve_path(response, path)) if path is not None else None

        logger.debug("Unknown extraction source %r resolves to null", mapping.get(SOURCE_KEY))
        return None
