"""Tests for canonical boolean coercion."""

import pytest
from formlogic.truthiness import is_truthy


@pytest.mark.parametrize("value,expected", [
    (None, False),
    (True, True),
    (False, False),
    (0, False),
    (0.0, False),
    (-1, True),
    (0.5, True),
    ("", False),
    ("no", True),
    ([], False),
    ([0], True),
    ((), False),
    (set(), False),
    ({}, True),
    ({"a": 1}, True),
    (object(), True),
])
def test_is_truthy(value, expected):
    assert is_truthy(value) is expected
