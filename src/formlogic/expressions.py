"""
Expression System for questionnaire rules

Visibility conditions, validation rules and calculated values arrive as
JSON logic documents. They are parsed ONCE into an Abstract Syntax Tree
and evaluated from the tree afterwards.

JSON encoding:
    An object with exactly one key is an operation:
        {"<operator>": <arguments>}
    Arguments are a positional object, NOT a list:
        {"+": {"0": {"var": "weight"}, "1": 10}}
    Anything else is a literal value.

ARCHITECTURAL RULE:
    Parsing never fails. A malformed operation is still parsed,
    it simply evaluates to its operator's fail-soft default.
"""

import copy
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple


class Expression(ABC):
    """
    Base class for all AST expressions.

    Structure only. Evaluation belongs in the interpreter layer.
    """
    pass


class Operator(Enum):
    """
    Operators taking a positional argument object.

    The set is closed. Names outside it parse as UnknownOperation.
    """

    # Comparison operators
    EQUALS = "=="
    NOT_EQUALS = "!="
    GREATER_THAN = ">"
    GREATER_EQUAL = ">="
    LESS_THAN = "<"
    LESS_EQUAL = "<="

    # Logical operators
    AND = "and"
    OR = "or"
    IF = "if"

    # Arithmetic operators
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"


class UnaryOperator(Enum):
    """
    Operators taking a single expression as argument.
    """
    NOT = "!"


VAR_KEY = "var"


@dataclass(frozen=True)
class Literal(Expression):
    """
    A constant value.

    Examples:
        - 18
        - 1.75
        - "yes"
        - True
        - [1, 2, 3]
        - {"code": "a", "display": "A"}

    Arrays and objects are data, not code: operations nested inside
    a literal are NOT evaluated.
    """

    value: Any


@dataclass(frozen=True)
class VariableReference(Expression):
    """
    Looks up a name in the data context.

    Names are answer linkIds or calculated value names.
    A reference whose argument was not a scalar has name None
    and always evaluates to null.
    """

    name: Optional[str]


@dataclass(frozen=True)
class UnaryExpression(Expression):
    """
    Example:
        {"!": {"var": "has-diabetes"}}

    Becomes:
        UnaryExpression(
            operator=UnaryOperator.NOT,
            operand=VariableReference("has-diabetes")
        )
    """

    operator: UnaryOperator
    operand: Expression


@dataclass(frozen=True)
class Operation(Expression):
    """
    An n-ary operation over positional arguments.

    Example:
        {"/": {"0": {"var": "weight"}, "1": {"*": {"0": {"var": "height"}, "1": {"var": "height"}}}}}

    Properties:
        operator: Operator enum
        args: Parsed arguments in positional order.
              None when the argument was not a positional object.
        raw_args: The original argument when args is None, kept for
                  lossless re-serialization.
    """

    operator: Operator
    args: Optional[Tuple[Expression, ...]]
    raw_args: Any = None


@dataclass(frozen=True)
class UnknownOperation(Expression):
    """
    An operation whose name is outside the supported set.

    Always evaluates to null.
    """

    name: str
    raw_args: Any = None


_OPERATORS_BY_SYMBOL = {op.value: op for op in Operator}


def _variable_name(arg: Any) -> Optional[str]:
    if isinstance(arg, bool):
        return "true" if arg else "false"
    if isinstance(arg, (str, int, float)):
        return str(arg)
    return None


def _positional(args: Dict[str, Any]) -> List[Any]:
    # "10" sorts after "9" even when the document was written with sorted keys
    if all(isinstance(key, str) and key.isdigit() for key in args):
        return [args[key] for key in sorted(args, key=int)]
    return list(args.values())


def parse_logic(node: Any) -> Expression:
    """
    Parse a JSON logic document into an Expression tree.

    Args:
        node: Decoded JSON (dict, list, str, number, bool or None).
              An Expression is returned unchanged.

    Returns:
        Expression AST
    """
    if isinstance(node, Expression):
        return node

    if isinstance(node, dict) and len(node) == 1:
        name, args = next(iter(node.items()))

        if name == VAR_KEY:
            return VariableReference(_variable_name(args))

        if name == UnaryOperator.NOT.value:
            return UnaryExpression(UnaryOperator.NOT, parse_logic(args))

        operator = _OPERATORS_BY_SYMBOL.get(name)
        if operator is None:
            return UnknownOperation(name, copy.deepcopy(args))

        if isinstance(args, dict):
            return Operation(operator, tuple(parse_logic(arg) for arg in _positional(args)))
        return Operation(operator, None, raw_args=copy.deepcopy(args))

    return Literal(copy.deepcopy(node))


def logic_to_json(expr: Optional[Expression]) -> Any:
    """Inverse of parse_logic; positional arguments are re-keyed "0", "1", ..."""
    if expr is None:
        return None
    if isinstance(expr, Literal):
        return copy.deepcopy(expr.value)
    if isinstance(expr, VariableReference):
        return {VAR_KEY: expr.name}
    if isinstance(expr, UnaryExpression):
        return {expr.operator.value: logic_to_json(expr.operand)}
    if isinstance(expr, Operation):
        if expr.args is None:
            return {expr.operator.value: copy.deepcopy(expr.raw_args)}
        return {
            expr.operator.value: {str(index): logic_to_json(arg) for index, arg in enumerate(expr.args)}
        }
    if isinstance(expr, UnknownOperation):
        return {expr.name: copy.deepcopy(expr.raw_args)}
    raise TypeError(f"Unsupported Expression type: {type(expr)}")


def _children(expr: Expression) -> Tuple[Expression, ...]:
    if isinstance(expr, UnaryExpression):
        return (expr.operand,)
    if isinstance(expr, Operation) and expr.args is not None:
        return expr.args
    return ()


def referenced_variables(expr: Optional[Expression]) -> Set[str]:
    """Collect every variable name an expression reads."""
    if expr is None:
        return set()
    if isinstance(expr, VariableReference):
        return {expr.name} if expr.name is not None else set()

    names: Set[str] = set()
    for child in _children(expr):
        names |= referenced_variables(child)
    return names


def unknown_operators(expr: Optional[Expression]) -> Set[str]:
    """Collect operator names that will silently evaluate to null."""
    if expr is None:
        return set()
    if isinstance(expr, UnknownOperation):
        return {expr.name}

    names: Set[str] = set()
    for child in _children(expr):
        names |= unknown_operators(child)
    return names


def expression_depth(expr: Optional[Expression]) -> int:
    """Nesting depth of operations; a bare literal or variable has depth 0."""
    if expr is None:
        return 0
    children = _children(expr)
    if not isinstance(expr, (Operation, UnaryExpression, UnknownOperation)):
        return 0
    return 1 + max((expression_depth(child) for child in children), default=0)
