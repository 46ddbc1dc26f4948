"""Tests for ordered calculated value evaluation."""

import pytest
from formlogic.engine import CalculatedValuesEngine
from formlogic.expressions import parse_logic
from formlogic.interpreter import LogicEvaluator
from formlogic.model import CalculatedValue


@pytest.fixture
def engine():
    return CalculatedValuesEngine(LogicEvaluator())


def calc(name, document):
    return CalculatedValue(name=name, expression=parse_logic(document))


def test_later_values_see_earlier_results(engine):
    values = [
        calc("a", {"+": {"0": {"var": "x"}, "1": 1}}),
        calc("b", {"*": {"0": {"var": "a"}, "1": 2}}),
    ]
    context = {"x": 1}
    assert engine.evaluate(values, context) == {"a": 2.0, "b": 4.0}


def test_results_written_back_into_context(engine):
    context = {"x": 1}
    engine.evaluate([calc("a", {"+": {"0": {"var": "x"}, "1": 1}})], context)
    assert context == {"x": 1, "a": 2.0}


def test_order_is_not_resorted(engine):
    """A value referencing a later one sees null at evaluation time."""
    values = [
        calc("b", {"*": {"0": {"var": "a"}, "1": 2}}),
        calc("a", 3),
    ]
    assert engine.evaluate(values, {}) == {"b": 2.0, "a": 3}


def test_failed_expression_binds_none(engine):
    values = [calc("ratio", {"/": {"0": 1, "1": 0}})]
    context = {}
    assert engine.evaluate(values, context) == {"ratio": None}
    assert "ratio" in context


def test_bmi(engine):
    values = [calc("bmi", {"/": {"0": {"var": "weight"}, "1": {"*": {"0": {"var": "height"}, "1": {"var": "height"}}}}})]
    result = engine.evaluate(values, {"weight": 80.5, "height": 1.8})
    assert result["bmi"] == pytest.approx(24.845679012345678, abs=1e-4)
