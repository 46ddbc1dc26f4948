#!/usr/bin/env python3
"""
Demo: fill in the patient vitals form and watch the state change.

Shows the full session workflow:
1. Build the questionnaire and a manager
2. Subscribe to state snapshots
3. Answer questions (including a conditional follow-up)
4. Export the response and the extracted document
"""

import json

from formlogic.analyzer import analyze_questionnaire
from formlogic.examples import build_vitals_questionnaire
from formlogic.log import setup_logging_from_settings
from formlogic.serialization import response_to_json, validation_error_to_dict
from formlogic.state import QuestionnaireManager


def print_state(state):
    print(f"   visible: {[item.link_id for item in state.visible_items]}")
    print(f"   calculated: {state.calculated_values}")
    print(f"   errors: {[e.message for e in state.validation_errors]}")
    print(f"   valid: {state.is_valid}")


def main():
    setup_logging_from_settings()
    questionnaire = build_vitals_questionnaire()

    print("=" * 80)
    print(f"SESSION DEMO: {questionnaire.title}")
    print("=" * 80)

    report = analyze_questionnaire(questionnaire)
    print(f"\n0. ANALYSIS: {report.total_items} items, {len(report.warnings)} warning(s)")
    for warning in report.warnings:
        print(f"   - {warning}")

    manager = QuestionnaireManager(questionnaire)

    print("\n1. INITIAL STATE")
    print_state(manager.state)

    print("\n2. ANSWERING...")
    manager.update_answer("full-name", "Jane Smith")
    manager.update_answer("age", 42)
    manager.update_answer("weight", 80.5)
    manager.update_answer("height", 1.8)
    manager.update_answer("medications", [
        {"medication-name": "Metformin", "medication-dosage": "500mg"},
    ])
    print_state(manager.state)

    print("\n3. CONDITIONAL FOLLOW-UP")
    manager.update_answer("has-diabetes", True)
    print_state(manager.state)
    manager.update_answer("diabetes-type", "type-2")
    print_state(manager.state)

    print("\n4. EXPORT")
    print("   errors on demand:", [validation_error_to_dict(e) for e in manager.validate()])
    print(response_to_json(manager.get_response(), indent=2))
    print(json.dumps(manager.extract_data(), indent=2))


if __name__ == "__main__":
    main()
