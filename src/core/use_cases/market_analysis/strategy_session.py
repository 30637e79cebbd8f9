import json

from pydantic import ValidationError

from common.custom_exceptions.chart_analysis_error import LLMServiceError
from common.logger import logger
from core.interfaces.PredictionResult import PredictionResult
from core.interfaces.StrategySession import StrategySession
from core.services.llm_client import LLMClient
from core.services.prompts import build_strategy_prompt


def generate_strategy_session(client: LLMClient, prediction: PredictionResult) -> StrategySession:
    """
    Distill a reconciled prediction into a primary signal, risks, an action plan
    and a psychological briefing.

    Unlike the prediction flow there is no safe default to fall back on, so an
    unusable answer is an error.

    Raises:
        LLMServiceError: the call failed or the answer does not fit StrategySession.
    """
    prompt = build_strategy_prompt(json.dumps(prediction.model_dump(exclude_none=True), indent=2))
    raw = client.complete_json(prompt, flow="generate_strategy_session")
    if raw is None:
        raise LLMServiceError("Strategy session is unavailable", detail="The AI service returned no usable answer")

    try:
        return StrategySession.model_validate(raw)
    except ValidationError as e:
        logger.error(f"Malformed strategy session answer: {e}")
        raise LLMServiceError("Strategy session is unavailable", detail="The AI service returned a malformed answer")
