"""Rule engines layered on the interpreter."""

from .calculated_values import CalculatedValuesEngine
from .evaluator import QuestionnaireEvaluator
from .extraction import ExtractionEngine
from .validation import ValidationEngine
from .visibility import VisibilityEngine

__all__ = [
    "CalculatedValuesEngine",
    "ExtractionEngine",
    "QuestionnaireEvaluator",
    "ValidationEngine",
    "VisibilityEngine",
]
