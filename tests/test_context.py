"""
Tests for data context construction and dotted-path resolution.
"""

from formlogic.context import build_data_context
from formlogic.model import Answer, QuestionnaireResponse, ResponseItem, Subject
from formlogic.paths import resolve_path


def make_response(items, subject=None):
    return QuestionnaireResponse(
        id="resp-1",
        questionnaire_id="q-1",
        authored="2026-01-01T00:00:00+00:00",
        subject=subject,
        items=items,
    )


class TestBuildDataContext:
    def test_single_answer_binds_scalar(self):
        response = make_response([ResponseItem("age", answers=[Answer(42)])])
        assert build_data_context(response) == {"age": 42}

    def test_multiple_answers_bind_list(self):
        response = make_response([ResponseItem("colors", answers=[Answer("red"), Answer("blue")])])
        assert build_data_context(response) == {"colors": ["red", "blue"]}

    def test_unanswered_items_are_absent(self):
        response = make_response([ResponseItem("age")])
        assert build_data_context(response) == {}

    def test_nested_items_flatten_without_namespace(self):
        response = make_response([
            ResponseItem("vitals", items=[
                ResponseItem("weight", answers=[Answer(80.5)]),
                ResponseItem("height", answers=[Answer(1.8)]),
            ]),
        ])
        assert build_data_context(response) == {"weight": 80.5, "height": 1.8}

    def test_repeating_group_array_binds_as_list_of_objects(self):
        instances = [{"medication-name": "Aspirin"}, {"medication-name": "Metformin"}]
        response = make_response([ResponseItem("medications", answers=[Answer(instances)])])
        context = build_data_context(response)
        assert context == {"medications": instances}

    def test_context_is_a_copy(self):
        """Writing into the context never touches the response."""
        instances = [{"medication-name": "Aspirin"}]
        response = make_response([ResponseItem("medications", answers=[Answer(instances)])])
        context = build_data_context(response)
        context["medications"][0]["medication-name"] = "changed"
        context["bmi"] = 24.0
        assert response.items[0].answers[0].value == [{"medication-name": "Aspirin"}]

    def test_answered_group_ignores_nested_items(self):
        response = make_response([
            ResponseItem("group", answers=[Answer("x")], items=[ResponseItem("child", answers=[Answer(1)])]),
        ])
        assert build_data_context(response) == {"group": "x"}

    def test_scalar_array_answer_kept_whole(self):
        response = make_response([ResponseItem("symptoms", answers=[Answer(["cough", "fever"])])])
        assert build_data_context(response) == {"symptoms": ["cough", "fever"]}


class TestResolvePath:
    def test_response_fields(self):
        response = make_response([], subject=Subject(id="patient-7", type="Patient"))
        assert resolve_path(response, "id") == "resp-1"
        assert resolve_path(response, "questionnaireId") == "q-1"
        assert resolve_path(response, "authored") == "2026-01-01T00:00:00+00:00"
        assert resolve_path(response, "subject.id") == "patient-7"
        assert resolve_path(response, "subject.type") == "Patient"

    def test_missing_subject(self):
        response = make_response([])
        assert resolve_path(response, "subject.id") is None

    def test_unknown_field(self):
        assert resolve_path(make_response([]), "nope") is None
        assert resolve_path(make_response([]), "id.length") is None

    def test_items_by_index(self):
        response = make_response([ResponseItem("age", answers=[Answer(42)])])
        assert resolve_path(response, "items.0.linkId") == "age"
        assert resolve_path(response, "items.0.answers.0.value") == 42
        assert resolve_path(response, "items.5.linkId") is None
        assert resolve_path(response, "items.first") is None

    def test_mappings(self):
        assert resolve_path({"a": {"b": 1}}, "a.b") == 1
        assert resolve_path({"a": {"b": 1}}, "a.c") is None

    def test_none_root(self):
        assert resolve_path(None, "id") is None
