import pytest
from pydantic import ValidationError
from unittest.mock import MagicMock

from common.custom_exceptions.chart_analysis_error import LLMServiceError
from core.interfaces.QuizQuestion import QuizRequest
from core.use_cases.training.quiz_generator import generate_quiz_questions


def question(index, **overrides):
    q = {
        "id": f"q{index}",
        "questionText": f"Question {index}?",
        "options": [{"value": "a", "text": "Yes"}, {"value": "b", "text": "No"}, {"value": "c", "text": "Maybe"}],
        "correctAnswer": "a",
        "explanation": "Because.",
    }
    q.update(overrides)
    return q


@pytest.fixture
def client():
    return MagicMock()


class TestGenerateQuizQuestions:

    def test_returns_questions(self, client):
        client.complete_json.return_value = {"questions": [question(1), question(2)]}

        questions = generate_quiz_questions(client, QuizRequest(topic="Risk Management", numQuestions=2))

        assert [q.id for q in questions] == ["q1", "q2"]
        assert questions[0].correctAnswer == "a"
        prompt = client.complete_json.call_args.args[0]
        assert '"Risk Management"' in prompt
        assert "English" in prompt

    def test_prompt_uses_language(self, client):
        client.complete_json.return_value = {"questions": [question(1)]}
        generate_quiz_questions(client, QuizRequest(topic="Basics", numQuestions=1, language="Arabic"))
        assert "in the Arabic language" in client.complete_json.call_args.args[0]

    @pytest.mark.parametrize("bad_id", [None, "", "   ", 7])
    def test_missing_id_gets_fallback(self, client, bad_id):
        client.complete_json.return_value = {"questions": [question(1), question(2, id=bad_id)]}

        questions = generate_quiz_questions(client, QuizRequest(topic="Basics", numQuestions=2))

        assert [q.id for q in questions] == ["q1", "gen_q2"]

    @pytest.mark.parametrize("broken", [
        question(2, correctAnswer="d"),
        question(2, options=[{"value": "a", "text": "Yes"}, {"value": "b", "text": "No"}]),
        question(2, options=[{"value": v, "text": v} for v in "abcde"]),
        question(2, options=[{"value": "a", "text": "1"}, {"value": "a", "text": "2"}, {"value": "b", "text": "3"}]),
        question(2, questionText=""),
        "What is a doji?",
    ])
    def test_invalid_questions_are_dropped(self, client, broken):
        client.complete_json.return_value = {"questions": [question(1), broken, question(3)]}

        questions = generate_quiz_questions(client, QuizRequest(topic="Basics", numQuestions=3))

        assert [q.id for q in questions] == ["q1", "q3"]

    def test_truncates_to_requested_count(self, client):
        client.complete_json.return_value = {"questions": [question(i) for i in range(1, 6)]}
        questions = generate_quiz_questions(client, QuizRequest(topic="Basics", numQuestions=3))
        assert [q.id for q in questions] == ["q1", "q2", "q3"]

    @pytest.mark.parametrize("answer", [None, {}, {"questions": "none"}, {"questions": []}, {"questions": [question(1, correctAnswer="z")]}])
    def test_unusable_answer_raises(self, client, answer):
        client.complete_json.return_value = answer
        with pytest.raises(LLMServiceError):
            generate_quiz_questions(client, QuizRequest(topic="Basics"))


class TestQuizRequest:

    def test_defaults(self):
        request = QuizRequest(topic="  Technical Analysis ")
        assert request.topic == "Technical Analysis"
        assert request.numQuestions == 5
        assert request.language == "English"

    @pytest.mark.parametrize("payload", [
        {"topic": "   "},
        {"topic": "Basics", "numQuestions": 0},
        {"topic": "Basics", "numQuestions": 11},
    ])
    def test_rejects_invalid(self, payload):
        with pytest.raises(ValidationError):
            QuizRequest(**payload)
