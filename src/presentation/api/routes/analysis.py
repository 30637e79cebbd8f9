# src/presentation/api/routes/analysis.py
import base64
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Request, UploadFile
from starlette.concurrency import run_in_threadpool

from common.config.settings import get_settings
from common.custom_exceptions.chart_analysis_error import LLMServiceError
from common.logger import logger
from core.interfaces.PredictionRequest import PredictionRequest, TranslationRequest, TranslationResponse, UserLevel
from core.interfaces.PredictionResult import PredictionResult
from core.interfaces.StrategySession import StrategySession
from core.services.llm_client import LLMClient
from core.use_cases.market_analysis.chart_analysis import (
    ChartAnalysis,
    analyze_chart,
    predict_market_trend,
    translate_text,
)
from core.use_cases.market_analysis.prediction_reconciler import reconcile
from core.use_cases.market_analysis.strategy_session import generate_strategy_session
from presentation.api.middleware.security import limiter, analysis_rate_limit
from presentation.api.schemas.analysis import ALLOWED_IMAGE_TYPES, ErrorResponse

# Initialize FastAPI router
router = APIRouter(tags=["Chart Analysis"])


# --- Helper function for dependency injection ---
def get_llm_client() -> LLMClient:
    """Dependency injector for the LLM client."""
    try:
        return LLMClient()
    except ValueError as e:
        logger.error(f"LLM client is not configured: {e}")
        raise LLMServiceError("AI service is not configured", detail=str(e))


def to_data_uri(content: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"


@router.post(
    "/analysis/chart",
    response_model=ChartAnalysis,
    responses={422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
@limiter.limit(analysis_rate_limit)
async def analyze_chart_image(
    request: Request,
    file: UploadFile = File(..., description="Screenshot or photo of a trading chart"),
    user_level: Optional[UserLevel] = Form(None),
    user_defined_entry: Optional[str] = Form(None),
    user_defined_stop_loss: Optional[str] = Form(None),
    user_defined_take_profit: Optional[str] = Form(None),
    client: LLMClient = Depends(get_llm_client),
):
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=415, detail=f"Unsupported image type: {file.content_type}")

    max_bytes = get_settings().max_upload_bytes
    content = await file.read(max_bytes + 1)
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(content) > max_bytes:
        raise HTTPException(status_code=413, detail=f"Image exceeds the {max_bytes} byte limit")

    logger.info(f"Received chart {file.filename} ({len(content)} bytes, {file.content_type})")
    return await run_in_threadpool(
        analyze_chart,
        client,
        to_data_uri(content, file.content_type),
        user_level=user_level,
        user_defined_entry=user_defined_entry,
        user_defined_stop_loss=user_defined_stop_loss,
        user_defined_take_profit=user_defined_take_profit,
        chart_file_name=file.filename,
    )


@router.post("/analysis/predict", response_model=PredictionResult)
@limiter.limit(analysis_rate_limit)
async def predict_trend(
    request: Request,
    prediction_request: PredictionRequest,
    client: LLMClient = Depends(get_llm_client),
):
    return await run_in_threadpool(predict_market_trend, client, prediction_request)


@router.post("/analysis/reconcile", response_model=PredictionResult)
async def reconcile_prediction(candidate: Optional[Any] = Body(None)) -> Dict[str, Any]:
    """Normalise a prediction produced by the client's own LLM call."""
    return reconcile(candidate)


@router.post("/translate", response_model=TranslationResponse)
@limiter.limit(analysis_rate_limit)
async def translate(
    request: Request,
    translation_request: TranslationRequest,
    client: LLMClient = Depends(get_llm_client),
):
    translated = await run_in_threadpool(
        translate_text, client, translation_request.textToTranslate, translation_request.targetLanguageCode
    )
    return TranslationResponse(translatedText=translated)


@router.post("/analysis/strategy", response_model=StrategySession, responses={503: {"model": ErrorResponse}})
@limiter.limit(analysis_rate_limit)
async def strategy_session(
    request: Request,
    prediction: PredictionResult,
    client: LLMClient = Depends(get_llm_client),
):
    return await run_in_threadpool(generate_strategy_session, client, prediction)
