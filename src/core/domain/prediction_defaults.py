from types import MappingProxyType
from typing import Any, Dict, Mapping

MANDATORY_DISCLAIMER = (
    "This analysis is based on the provided chart data for educational and informational purposes only "
    "and should not be considered financial advice. Trading financial markets involves significant risk of loss. "
    "Always conduct your own thorough research and consult with a qualified financial advisor before making any "
    "trading decisions. Past performance is not indicative of future results. "
    "Predictions are probabilistic, not guaranteed."
)

# Fallback used for every field the LLM omits or gets wrong. Read-only all the way
# down; callers must go through get_default_prediction() for a mutable copy.
_DEFAULT_PREDICTION = {
    "trendPrediction": "neutral",
    "confidence": 0.1,
    "riskLevel": "high",
    "opportunityScore": 0.1,
    "tradingRecommendation": "avoid",
    "trendAnalysis": {
        "direction": "Neutral",
        "candleCountBasis": 5,
        "trendlineDescription": "Trend analysis details were not explicitly provided by the AI or are inconclusive based on current data.",
    },
    "candlestickAnalysis": {
        "patterns": [],
        "summary": "Candlestick analysis summary not provided by AI or patterns are inconclusive.",
    },
    "volumeAndMomentum": {
        "volumeStatus": "Missing",
        "volumeInterpretation": "Volume data or interpretation not provided by AI or insufficient for analysis.",
        "rsiEstimate": "RSI not determinable from the provided data.",
        "macdEstimate": "MACD not determinable from the provided data.",
    },
    "suggestedEntryPoints": ["Entry levels are speculative due to unclear signals."],
    "takeProfitLevels": ["Take profit levels are speculative."],
    "stopLossLevels": ["Stop loss levels are speculative."],
    "riskRewardDetails": {
        "tradeAssessment": "Neutral",
        "assessmentReasoning": "Risk/reward assessment could not be reliably performed.",
    },
    "explanationSummary": "Analysis limited by data quality or conflicting signals.",
    "fullScientificAnalysis": "The AI model did not provide a full scientific analysis. " + MANDATORY_DISCLAIMER,
    "islamicFinanceConsiderations": (
        "General Islamic finance principles encourage avoiding excessive uncertainty (Gharar) and transactions "
        "resembling gambling (Qimar). Patience (Sabr) is a virtue, especially when waiting for clear trading signals."
    ),
    "rewardRiskRatio": None,
    "keyIndicators": [],
    "volatilityLevel": "normal",
}


def freeze(value: Any) -> Any:
    """Recursively turn dicts into read-only mappings and lists into tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Deep copy of a (possibly frozen) prediction as plain dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    return value


DEFAULT_PREDICTION = freeze(_DEFAULT_PREDICTION)


def get_default_prediction() -> Dict[str, Any]:
    """Return a fresh, fully-valid prediction that is safe to mutate."""
    return thaw(DEFAULT_PREDICTION)
