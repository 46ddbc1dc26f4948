"""
Calculated values: ordered named expressions over the answers.
"""

import logging
from typing import Any, Dict, List

from formlogic.interpreter import LogicEvaluator
from formlogic.model import CalculatedValue

logger = logging.getLogger(__name__)


class CalculatedValuesEngine:
    def __init__(self, evaluator: LogicEvaluator):
        self._evaluator = evaluator

    def evaluate(self, calculated_values: List[CalculatedValue], data_context: Dict[str, Any]) -> Dict[str, Any]:
        """
        Evaluate each calculated value in declaration order.

        Every result is written back into `data_context` before the next
        expression runs, so {"var": "bmi"} works in any later entry.
        Order is never re-sorted by dependency.

        Returns:
            name -> result
        """
        results: Dict[str, Any] = {}
        for calc in calculated_values:
            result = self._evaluator.evaluate(calc.expression, data_context)
            results[calc.name] = result
            data_context[calc.name] = result
            logger.debug("Calculated %s = %r", calc.name, result)
        return results
