"""
Interpreter for the questionnaire rule language.

Evaluates an Expression tree (or raw JSON logic, parsed on the fly)
against a flat data context of answers and calculated values.

FAIL-SOFT CONTRACT:
    evaluate() never raises. Unknown operators, type mismatches,
    division by zero and missing variables all resolve to None or a
    falsy default, so one malformed rule cannot break a whole form.

Arithmetic is always performed in floating point: {"+": {"0": 5, "1": 3}}
evaluates to 8.0.
"""

import copy
import logging
import math
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from formlogic.expressions import (
    Expression,
    Literal,
    Operation,
    Operator,
    UnaryExpression,
    UnknownOperation,
    VariableReference,
    parse_logic,
)
from formlogic.truthiness import is_truthy

logger = logging.getLogger(__name__)

Args = Optional[Tuple[Expression, ...]]
Context = Mapping[str, Any]


def as_number(value: Any) -> Optional[float]:
    """Numeric view of a value; booleans and non-numbers give None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return float(value)
    except OverflowError:
        return None


def finite_or_none(value: float) -> Optional[float]:
    """Overflowed arithmetic resolves to null, like over-range inputs."""
    return value if math.isfinite(value) else None


def values_equal(left: Any, right: Any) -> bool:
    """Structural equality where a boolean never equals a number."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


class LogicEvaluator:
    """
    Stateless evaluator; one instance can be shared by every engine.
    """

    def __init__(self) -> None:
        self._operations: Dict[Operator, Callable[[Args, Context], Any]] = {
            Operator.EQUALS: self._equals,
            Operator.NOT_EQUALS: self._not_equals,
            Operator.GREATER_THAN: self._comparison(lambda a, b: a > b),
            Operator.GREATER_EQUAL: self._comparison(lambda a, b: a >= b),
            Operator.LESS_THAN: self._comparison(lambda a, b: a < b),
            Operator.LESS_EQUAL: self._comparison(lambda a, b: a <= b),
            Operator.AND: self._and,
            Operator.OR: self._or,
            Operator.IF: self._if,
            Operator.ADD: self._add,
            Operator.SUBTRACT: self._subtract,
            Operator.MULTIPLY: self._multiply,
            Operator.DIVIDE: self._divide,
            Operator.MODULO: self._modulo,
        }

    def evaluate(self, logic: Any, context: Context) -> Any:
        """
        Evaluate a rule.

        Args:
            logic: Expression AST or raw JSON logic
            context: Flat map of variable name -> value

        Returns:
            The rule result (None, bool, float, str, list or dict)
        """
        try:
            return self._evaluate(parse_logic(logic), context)
        except (ArithmeticError, RecursionError, TypeError, ValueError) as exc:
            logger.warning("Rule evaluation failed, resolving to null: %r", exc)
            return None

    def _evaluate(self, expr: Expression, context: Context) -> Any:
        if isinstance(expr, Literal):
            return copy.deepcopy(expr.value)

        if isinstance(expr, VariableReference):
            if expr.name is None:
                return None
            return context.get(expr.name)

        if isinstance(expr, UnaryExpression):
            return not is_truthy(self._evaluate(expr.operand, context))

        if isinstance(expr, Operation):
            return self._operations[expr.operator](expr.args, context)

        if isinstance(expr, UnknownOperation):
            logger.debug("Unknown operator %r evaluates to null", expr.name)
        return None

    def _number(self, arg: Expression, context: Context) -> Optional[float]:
        return as_number(self._evaluate(arg, context))

    # =========================================================================
    # COMPARISON
    # =========================================================================

    def _equals(self, args: Args, context: Context) -> bool:
        if args is None or len(args) < 2:
            return False
        return values_equal(self._evaluate(args[0], context), self._evaluate(args[1], context))

    def _not_equals(self, args: Args, context: Context) -> bool:
        return not self._equals(args, context)

    def _comparison(self, compare: Callable[[float, float], bool]) -> Callable[[Args, Context], bool]:
        def evaluate(args: Args, context: Context) -> bool:
            if args is None or len(args) < 2:
                return False
            left = self._number(args[0], context)
            if left is None:
                return False
            right = self._number(args[1], context)
            if right is None:
                return False
            return compare(left, right)

        return evaluate

    # =========================================================================
    # LOGIC
    # =========================================================================

    def _and(self, args: Args, context: Context) -> bool:
        if not args:
            return False
        return all(is_truthy(self._evaluate(arg, context)) for arg in args)

    def _or(self, args: Args, context: Context) -> bool:
        if not args:
            return False
        return any(is_truthy(self._evaluate(arg, context)) for arg in args)

    def _if(self, args: Args, context: Context) -> Any:
        if args is None:
            return None

        i = 0
        while i < len(args):
            # Trailing odd argument is the else branch
            if i + 1 >= len(args):
                return self._evaluate(args[i], context)
            if is_truthy(self._evaluate(args[i], context)):
                return self._evaluate(args[i + 1], context)
            i += 2

        return None

    # =========================================================================
    # ARITHMETIC
    # =========================================================================

    def _add(self, args: Args, context: Context) -> Optional[float]:
        if args is None:
            return None
        total = 0.0
        for arg in args:
            value = self._number(arg, context)
            total += value if value is not None else 0.0
        return finite_or_none(total)

    def _subtract(self, args: Args, context: Context) -> Optional[float]:
        if not args:
            return None

        first = self._number(args[0], context)
        if first is None:
            return None
        if len(args) == 1:
            return finite_or_none(-first)

        result = first
        for arg in args[1:]:
            value = self._number(arg, context)
            result -= value if value is not None else 0.0
        return finite_or_none(result)

    def _multiply(self, args: Args, context: Context) -> Optional[float]:
        if args is None:
            return None
        product = 1.0
        for arg in args:
            value = self._number(arg, context)
            product *= value if value is not None else 1.0
        return finite_or_none(product)

    def _operands(self, args: Args, context: Context) -> Optional[Tuple[float, float]]:
        if args is None or len(args) < 2:
            return None
        left = self._number(args[0], context)
        if left is None:
            return None
        right = self._number(args[1], context)
        if right is None or right == 0.0:
            return None
        return left, right

    def _divide(self, args: Args, context: Context) -> Optional[float]:
        operands = self._operands(args, context)
        if operands is None:
            return None
        return finite_or_none(operands[0] / operands[1])

    def _modulo(self, args: Args, context: Context) -> Optional[float]:
        operands = self._operands(args, context)
        if operands is None:
            return None
        # Remainder takes the sign of the dividend
        return math.fmod(operands[0], operands[1])
