"""
Example questionnaire builder: a patient vitals form.

Exercises every engine feature:
    - required items and a range validation rule (age)
    - a BMI calculated value feeding a second calculated value
    - a conditional follow-up (diabetes type, shown only when has-diabetes)
    - a repeating medication group stored as one array answer
    - an extraction template using all three source kinds
"""
from formlogic.expressions import parse_logic
from formlogic.model import (
    AnswerOption,
    CalculatedValue,
    Item,
    ItemType,
    Questionnaire,
    ValidationRule,
)


def build_vitals_questionnaire() -> Questionnaire:
    # bmi = weight / (height * height)
    bmi = parse_logic({
        "/": {
            "0": {"var": "weight"},
            "1": {"*": {"0": {"var": "height"}, "1": {"var": "height"}}},
        }
    })
    # bmi-category = if bmi < 18.5 "underweight" elif bmi < 25 "normal" else "overweight"
    bmi_category = parse_logic({
        "if": {
            "0": {"==": {"0": {"var": "bmi"}, "1": None}},
            "1": None,
            "2": {"<": {"0": {"var": "bmi"}, "1": 18.5}},
            "3": "underweight",
            "4": {"<": {"0": {"var": "bmi"}, "1": 25}},
            "5": "normal",
            "6": "overweight",
        }
    })

    # Validation: age unanswered OR 0 <= age <= 130
    age_range = ValidationRule(
        message="age.range",
        expression=parse_logic({
            "or": {
                "0": {"==": {"0": {"var": "age"}, "1": None}},
                "1": {
                    "and": {
                        "0": {">=": {"0": {"var": "age"}, "1": 0}},
                        "1": {"<=": {"0": {"var": "age"}, "1": 130}},
                    }
                },
            }
        }),
    )

    items = [
        Item(link_id="patient-info", type=ItemType.DISPLAY, text="Patient Information"),
        Item(link_id="full-name", type=ItemType.TEXT, text="Full Name", required=True),
        Item(link_id="age", type=ItemType.INTEGER, text="Age (years)", required=True, validations=[age_range]),
        Item(
            link_id="vitals",
            type=ItemType.GROUP,
            text="Vital Signs",
            items=[
                Item(link_id="weight", type=ItemType.DECIMAL, text="Weight (kg)", required=True),
                Item(link_id="height", type=ItemType.DECIMAL, text="Height (m)", required=True),
            ],
        ),
        Item(
            link_id="medications",
            type=ItemType.GROUP,
            text="Current Medications",
            repeats=True,
            items=[
                Item(link_id="medication-name", type=ItemType.TEXT, text="Medication Name", required=True),
                Item(link_id="medication-dosage", type=ItemType.TEXT, text="Dosage", required=True),
            ],
        ),
        Item(link_id="has-diabetes", type=ItemType.BOOLEAN, text="Has Diabetes"),
        Item(
            link_id="diabetes-type",
            type=ItemType.CHOICE,
            text="Diabetes Type",
            required=True,
            visible_if=parse_logic({"==": {"0": {"var": "has-diabetes"}, "1": True}}),
            answer_options=[
                AnswerOption(code="type-1", display="Type 1"),
                AnswerOption(code="type-2", display="Type 2"),
            ],
        ),
    ]

    extraction_template = {
        "resourceType": "Observation",
        "patient": {
            "name": {"source": "answer", "linkId": "full-name"},
            "age": {"source": "answer", "linkId": "age"},
        },
        "vitals": [
            {"code": "weight", "value": {"source": "answer", "linkId": "weight"}},
            {"code": "height", "value": {"source": "answer", "linkId": "height"}},
            {"code": "bmi", "value": {"source": "calculatedValue", "name": "bmi"}},
        ],
        "bmiCategory": {"source": "calculatedValue", "name": "bmi-category"},
        "medications": {"source": "answer", "linkId": "medications"},
        "responseId": {"source": "metadata", "path": "id"},
        "authored": {"source": "metadata", "path": "authored"},
    }

    return Questionnaire(
        id="patient-vitals",
        title="Patient Vitals Form",
        description="Collect patient vital signs and medical history",
        version="1.0.0",
        items=items,
        calculated_values=[
            CalculatedValue(name="bmi", expression=bmi),
            CalculatedValue(name="bmi-category", expression=bmi_category),
        ],
        extraction_template=extraction_template,
    )
