import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from common.custom_exceptions.chart_analysis_error import (
    ChartExtractionError,
    ChartNotRecognizedError,
    ImageQualityError,
    LLMServiceError,
)
from common.logger import logger
from core.interfaces.PredictionRequest import PredictionRequest
from core.interfaces.PredictionResult import PredictionResult
from core.services.llm_client import LLMClient
from core.services.prompts import (
    LANGUAGE_NAMES,
    build_extraction_prompt,
    build_prediction_prompt,
    build_translation_prompt,
)
from core.use_cases.market_analysis.prediction_reconciler import reconcile


class ChartExtraction(BaseModel):
    isTradingChart: bool
    imageQualitySufficient: bool = True
    extractedData: Optional[str] = None
    warningMessage: Optional[str] = None
    qualityWarningMessage: Optional[str] = None


class ChartAnalysis(BaseModel):
    id: str
    extractedData: str
    prediction: PredictionResult
    createdAt: str
    chartFileName: Optional[str] = None


def extract_chart_data(client: LLMClient, chart_image_data_uri: str) -> ChartExtraction:
    """Ask the vision model whether the image is a trading chart and what it shows."""
    raw = client.complete_json(build_extraction_prompt(), image_data_uri=chart_image_data_uri, flow="extract_chart_data")
    if raw is None:
        raise LLMServiceError("Chart data extraction is unavailable", detail="The AI service returned no usable answer")

    # Some models return the chart description as an object instead of a JSON string
    if isinstance(raw.get("extractedData"), (dict, list)):
        raw = {**raw, "extractedData": json.dumps(raw["extractedData"])}

    try:
        return ChartExtraction.model_validate(raw)
    except ValidationError as e:
        logger.error(f"Malformed chart extraction answer: {e}")
        raise LLMServiceError("Chart data extraction is unavailable", detail="The AI service returned a malformed answer")


def predict_market_trend(client: LLMClient, request: PredictionRequest) -> Dict[str, Any]:
    """
    Run the prediction prompt and reconcile whatever comes back.

    Never raises because of the LLM: a failed call reaches the reconciler as None
    and produces the default prediction.
    """
    prompt = build_prediction_prompt(
        request.extractedData,
        user_level=request.userLevel,
        user_defined_entry=request.userDefinedEntry,
        user_defined_stop_loss=request.userDefinedStopLoss,
        user_defined_take_profit=request.userDefinedTakeProfit,
    )
    candidate = client.complete_json(prompt, flow="predict_market_trend")
    return reconcile(candidate)


def analyze_chart(client: LLMClient, chart_image_data_uri: str, user_level: Optional[str] = None,
                  user_defined_entry: Optional[str] = None, user_defined_stop_loss: Optional[str] = None,
                  user_defined_take_profit: Optional[str] = None,
                  chart_file_name: Optional[str] = None) -> ChartAnalysis:
    """
    Full pipeline for an uploaded chart: extraction, checks, then prediction.

    Raises:
        LLMServiceError: the extraction call failed.
        ChartNotRecognizedError: the image is not a trading chart.
        ImageQualityError: the chart cannot be read reliably.
        ChartExtractionError: no chart data could be extracted.
    """
    analysis_id = str(uuid.uuid4())
    logger.info(f"[Analysis:{analysis_id}] Extracting chart data from {chart_file_name or 'uploaded image'}")

    extraction = extract_chart_data(client, chart_image_data_uri)

    if not extraction.isTradingChart:
        raise ChartNotRecognizedError(
            "Invalid image",
            detail=extraction.warningMessage or "Uploaded image is not a financial trading chart.",
        )
    if not extraction.imageQualitySufficient:
        raise ImageQualityError(
            "Poor image quality",
            detail=extraction.qualityWarningMessage or "Image quality insufficient for analysis.",
        )
    if not extraction.extractedData or not extraction.extractedData.strip():
        raise ChartExtractionError("Data extraction failed", detail="Could not extract data from the chart.")

    logger.info(f"[Analysis:{analysis_id}] Chart data extracted, requesting prediction (level={user_level or 'intermediate'})")
    prediction = predict_market_trend(client, PredictionRequest(
        extractedData=extraction.extractedData,
        userLevel=user_level,
        userDefinedEntry=user_defined_entry,
        userDefinedStopLoss=user_defined_stop_loss,
        userDefinedTakeProfit=user_defined_take_profit,
    ))

    return ChartAnalysis(
        id=analysis_id,
        extractedData=extraction.extractedData,
        prediction=PredictionResult.model_validate(prediction),
        createdAt=datetime.now(timezone.utc).isoformat(),
        chartFileName=chart_file_name,
    )


def translate_text(client: LLMClient, text: str, target_language_code: str) -> str:
    if not text.strip():
        return ""

    language_name = LANGUAGE_NAMES.get(target_language_code, target_language_code)
    if language_name == "English":
        return text

    output = client.complete_json(build_translation_prompt(text, language_name), flow="translate_text")
    if not output or not isinstance(output.get("translatedText"), str):
        logger.error(f"Translation to {language_name} failed or returned an unexpected shape. Returning original text.")
        return text
    return output["translatedText"]
