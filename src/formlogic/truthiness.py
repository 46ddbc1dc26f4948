"""
Canonical boolean coercion for rule results.

Used wherever a rule result must become a yes/no decision:
visibility, validation, `and`/`or`/`!`/`if` in the interpreter.
"""

from typing import Any


def is_truthy(value: Any) -> bool:
    """
    Coerce a rule result to a boolean.

        None            -> False
        bool            -> itself
        int / float     -> value != 0
        str             -> non-empty
        list/tuple/set  -> non-empty
        anything else   -> True  (objects included, even when empty)
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return len(value) > 0
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) > 0
    return True
