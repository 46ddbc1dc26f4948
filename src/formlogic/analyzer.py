"""
Questionnaire Analyzer: early diagnostics for form definitions.

This module provides lightweight analysis of Questionnaire objects:
    - Item inventory
    - Variable references that can never resolve
    - Calculated value ordering problems
    - Unknown operators (which silently evaluate to null)
    - Expression complexity metrics
    - Validation coverage

IMPORTANT: Analysis is read-only. It does NOT modify the questionnaire,
and none of its findings stop the engine from running.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Set

from formlogic.expressions import Expression, expression_depth, referenced_variables, unknown_operators
from formlogic.model import Item, ItemType, Questionnaire


def _extracted_calculated_values(node: Any) -> Set[str]:
    """Names pulled by {"source": "calculatedValue"} mappings in a template."""
    if isinstance(node, dict):
        if node.get("source") == "calculatedValue" and isinstance(node.get("name"), str):
            return {node["name"]}
        node = list(node.values())
    if isinstance(node, list):
        names: Set[str] = set()
        for child in node:
            names |= _extracted_calculated_values(child)
        return names
    return set()


@dataclass
class QuestionnaireReport:
    """Analysis report for a questionnaire."""

    questionnaire_id: str
    total_items: int = 0
    total_groups: int = 0
    repeating_groups: int = 0
    required_items: int = 0
    total_calculated_values: int = 0

    # Identity
    duplicate_link_ids: Set[str] = field(default_factory=set)

    # Variable usage
    variable_usage: Dict[str, int] = field(default_factory=dict)
    undefined_variables: Set[str] = field(default_factory=set)
    forward_references: Dict[str, Set[str]] = field(default_factory=dict)
    unused_calculated_values: Set[str] = field(default_factory=set)
    unknown_operators: Set[str] = field(default_factory=set)

    # Expression complexity
    max_expression_depth: int = 0
    avg_expression_depth: float = 0.0

    # Coverage metrics
    items_with_visibility: int = 0
    items_with_validation: int = 0
    validation_coverage_percent: float = 0.0

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_questionnaire(questionnaire: Questionnaire, max_depth: int = 5) -> QuestionnaireReport:
    """
    Perform diagnostics on a Questionnaire.

    Args:
        questionnaire: Definition to inspect
        max_depth: Expression depth above which a warning is raised

    Returns a QuestionnaireReport with metrics and warnings.
    """
    report = QuestionnaireReport(questionnaire_id=questionnaire.id)
    items = list(questionnaire.iter_items())

    # =========================================================================
    # 1. INVENTORY
    # =========================================================================

    report.total_items = len(items)
    report.total_groups = sum(1 for i in items if i.type == ItemType.GROUP)
    report.repeating_groups = sum(1 for i in items if i.type == ItemType.GROUP and i.repeats)
    report.required_items = sum(1 for i in items if i.required)
    report.total_calculated_values = len(questionnaire.calculated_values)

    link_id_counts = Counter(i.link_id for i in items)
    report.duplicate_link_ids = {link_id for link_id, n in link_id_counts.items() if n > 1}

    # =========================================================================
    # 2. VARIABLE ANALYSIS
    # =========================================================================

    link_ids: Set[str] = set(link_id_counts)
    # Children of repeating groups are answered inside the group's array,
    # so their linkIds never appear in the data context. They are only
    # defined for expressions evaluated within one instance.
    for item in items:
        if item.repeats:
            for child in item.items:
                link_ids.discard(child.link_id)

    calculated_names = [c.name for c in questionnaire.calculated_values]
    usage: Dict[str, int] = defaultdict(int)
    expressions: List[Expression] = []
    undefined: Set[str] = set()

    def record(expr: Optional[Expression], scope: FrozenSet[str] = frozenset()) -> None:
        if expr is None:
            return
        expressions.append(expr)
        names = referenced_variables(expr)
        for name in names:
            usage[name] += 1
        undefined.update(names - link_ids - set(calculated_names) - scope)
        report.unknown_operators.update(unknown_operators(expr))

    def record_items(level: List[Item], scope: FrozenSet[str]) -> None:
        for item in level:
            record(item.visible_if, scope)
            for rule in item.validations:
                record(rule.expression, scope)
            child_scope = (scope | {child.link_id for child in item.items}) if item.repeats else scope
            record_items(item.items, child_scope)

    defined_so_far: Set[str] = set()
    for calc in questionnaire.calculated_values:
        names = referenced_variables(calc.expression)
        later = {n for n in names if n in calculated_names and n not in defined_so_far}
        if later:
            report.forward_references[calc.name] = later
        record(calc.expression)
        defined_so_far.add(calc.name)

    record_items(questionnaire.items, frozenset())

    report.variable_usage = dict(usage)
    report.undefined_variables = undefined
    report.unused_calculated_values = (
        set(calculated_names) - set(usage) - _extracted_calculated_values(questionnaire.extraction_template)
    )

    # =========================================================================
    # 3. EXPRESSION COMPLEXITY
    # =========================================================================

    depths = [expression_depth(e) for e in expressions]
    if depths:
        report.max_expression_depth = max(depths)
        report.avg_expression_depth = sum(depths) / len(depths)

    # =========================================================================
    # 4. COVERAGE METRICS
    # =========================================================================

    answerable = [i for i in items if i.type not in (ItemType.DISPLAY, ItemType.GROUP)]
    report.items_with_visibility = sum(1 for i in items if i.visible_if is not None)
    report.items_with_validation = sum(1 for i in answerable if i.validations)
    if answerable:
        report.validation_coverage_percent = (report.items_with_validation / len(answerable)) * 100

    # =========================================================================
    # 5. WARNING FLAGS
    # =========================================================================

    if report.duplicate_link_ids:
        report.add_warning(f"Duplicate linkIds: {', '.join(sorted(report.duplicate_link_ids))}")

    if report.undefined_variables:
        report.add_warning(
            f"Undefined variable references: {', '.join(sorted(report.undefined_variables))}"
        )

    for name, refs in sorted(report.forward_references.items()):
        report.add_warning(
            f"Calculated value {name} references later values: {', '.join(sorted(refs))}"
        )

    if report.unused_calculated_values:
        report.add_warning(
            f"Calculated values never used: {', '.join(sorted(report.unused_calculated_values))}"
        )

    if report.unknown_operators:
        report.add_warning(f"Unknown operators: {', '.join(sorted(report.unknown_operators))}")

    if report.max_expression_depth > max_depth:
        report.add_warning(f"High expression complexity: max depth {report.max_expression_depth}")

    return report
