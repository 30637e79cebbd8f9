# src/presentation/api/routes/training.py
from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from core.interfaces.QuizQuestion import QuizRequest, QuizResponse
from core.services.llm_client import LLMClient
from core.use_cases.training.quiz_generator import generate_quiz_questions
from presentation.api.middleware.security import limiter, analysis_rate_limit
from presentation.api.routes.analysis import get_llm_client
from presentation.api.schemas.analysis import ErrorResponse

router = APIRouter(tags=["Training"])


@router.post("/training/quiz", response_model=QuizResponse, responses={503: {"model": ErrorResponse}})
@limiter.limit(analysis_rate_limit)
async def generate_quiz(
    request: Request,
    quiz_request: QuizRequest,
    client: LLMClient = Depends(get_llm_client),
):
    questions = await run_in_threadpool(generate_quiz_questions, client, quiz_request)
    return QuizResponse(questions=questions)
