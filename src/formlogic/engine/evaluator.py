"""
Questionnaire-bound facade over the rule engines.
"""

from typing import Any, Dict, List, Optional

from formlogic.context import build_data_context
from formlogic.interpreter import LogicEvaluator
from formlogic.model import Item, Questionnaire, QuestionnaireResponse, ValidationError

from .calculated_values import CalculatedValuesEngine
from .extraction import ExtractionEngine
from .validation import ValidationEngine
from .visibility import VisibilityEngine


class QuestionnaireEvaluator:
    """
    Runs every engine for one questionnaire.

    Each call rebuilds the data context from the response it is given,
    so results are a pure function of (questionnaire, response).
    """

    def __init__(self, questionnaire: Questionnaire, logic_evaluator: Optional[LogicEvaluator] = None):
        self.questionnaire = questionnaire
        logic_evaluator = logic_evaluator or LogicEvaluator()
        self._calculated_values = CalculatedValuesEngine(logic_evaluator)
        self._visibility = VisibilityEngine(logic_evaluator)
        self._validation = ValidationEngine(logic_evaluator)
        self._extraction = ExtractionEngine()

    def build_data_context(self, response: QuestionnaireResponse) -> Dict[str, Any]:
        """Answers plus calculated values, as seen by visibility and validation rules."""
        data_context = build_data_context(response)
        self._calculated_values.evaluate(self.questionnaire.calculated_values, data_context)
        return data_context

    def calculate_values(self, response: QuestionnaireResponse) -> Dict[str, Any]:
        return self._calculated_values.evaluate(self.questionnaire.calculated_values, build_data_context(response))

    def get_visible_items(self, response: QuestionnaireResponse) -> List[Item]:
        return self._visibility.get_visible_items(self.questionnaire.items, self.build_data_context(response))

    def validate_response(
        self, response: QuestionnaireResponse, items: Optional[List[Item]] = None
    ) -> List[ValidationError]:
        """
        Validate the response.

        Args:
            items: Restrict validation to these top-level items;
                   None validates the whole tree
        """
        return self._validation.validate_response(
            items=self.questionnaire.items if items is None else items,
            response_items=response.items,
            data_context=self.build_data_context(response),
        )

    def extract_data(self, response: QuestionnaireResponse) -> Optional[Any]:
        """Fill the extraction template; None when the questionnaire has none."""
        template = self.questionnaire.extraction_template
        if template is None:
            return None
        data_context = build_data_context(response)
        calculated_values = self._calculated_values.evaluate(self.questionnaire.calculated_values, data_context)
        return self._extraction.extract(
            response=response,
            template=template,
            calculated_values=calculated_values,
            answer_map=data_context,
        )
