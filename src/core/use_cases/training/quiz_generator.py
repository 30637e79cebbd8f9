from typing import Any, List

from pydantic import ValidationError

from common.custom_exceptions.chart_analysis_error import LLMServiceError
from common.logger import logger
from core.interfaces.QuizQuestion import QuizQuestion, QuizRequest
from core.services.llm_client import LLMClient
from core.services.prompts import build_quiz_prompt


def _with_fallback_id(question: Any, index: int) -> Any:
    if not isinstance(question, dict):
        return question
    question_id = question.get("id")
    if not isinstance(question_id, str) or not question_id.strip():
        return {**question, "id": f"gen_q{index + 1}"}
    return question


def generate_quiz_questions(client: LLMClient, request: QuizRequest) -> List[QuizQuestion]:
    """
    Generate multiple-choice questions on a trading topic.

    Questions that do not validate (wrong option count, an answer that is not one
    of the options, missing text) are dropped individually; at most
    `request.numQuestions` are returned.

    Raises:
        LLMServiceError: the call failed or no question survived validation.
    """
    prompt = build_quiz_prompt(request.topic, request.numQuestions, request.language)
    raw = client.complete_json(prompt, flow="generate_quiz_questions")
    questions = raw.get("questions") if raw else None
    if not isinstance(questions, list):
        raise LLMServiceError("Quiz generation is unavailable", detail="The AI service returned no questions")

    valid: List[QuizQuestion] = []
    for index, question in enumerate(questions):
        try:
            valid.append(QuizQuestion.model_validate(_with_fallback_id(question, index)))
        except ValidationError as e:
            logger.warning(f"Dropping malformed quiz question #{index + 1} on '{request.topic}': {e.error_count()} error(s)")

    if not valid:
        raise LLMServiceError("Quiz generation is unavailable", detail="The AI service returned no valid questions")
    if len(valid) < request.numQuestions:
        logger.info(f"Generated {len(valid)} of {request.numQuestions} requested questions on '{request.topic}'")
    return valid[:request.numQuestions]
