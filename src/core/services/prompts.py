from typing import Optional

from core.domain.prediction_defaults import MANDATORY_DISCLAIMER

DEFAULT_USER_LEVEL = "intermediate"

LANGUAGE_NAMES = {
    'en': 'English',
    'es': 'Spanish',
    'fr': 'French',
    'ar': 'Arabic',
    'de': 'German',
    'ja': 'Japanese',
    'zh-CN': 'Simplified Chinese',
}

_USER_LEVEL_GUIDANCE = {
    "beginner": (
        "Use simple terms and explain any jargon you use (e.g. what a moving average is). "
        "Focus heavily on risk management, be very cautious in suggestions and encourage paper trading."
    ),
    "intermediate": "Assume familiarity with common terms and indicators. Provide a balanced, practical analysis.",
    "advanced": (
        "Use precise technical language, discuss nuanced patterns or indicators where the data supports them, "
        "and explore alternative scenarios."
    ),
}


def build_extraction_prompt() -> str:
    """Prompt for the vision call that checks the image and describes the chart as JSON."""
    return (
        "You are an expert data extraction specialist for financial trading charts.\n\n"
        "First decide whether the attached image is a financial trading chart (stock, forex, crypto, "
        "commodities; candlesticks, bars or lines plotting price over time).\n\n"
        "If it IS a trading chart:\n"
        "1. Set 'isTradingChart' to true.\n"
        "2. Set 'imageQualitySufficient' to false if the chart is too blurry, cropped or small to read "
        "price action, and explain why in 'qualityWarningMessage'. Otherwise set it to true.\n"
        "3. Put a DETAILED JSON string in 'extractedData' describing everything visible: instrument and "
        "timeframe if shown, the recent candles (OHLC or descriptions allowing inference), volume bars, "
        "price scale, visible indicators (moving averages, RSI, MACD, Bollinger Bands) with their "
        "readings, trendlines and drawn levels.\n\n"
        "If it is NOT a trading chart:\n"
        "1. Set 'isTradingChart' to false and 'extractedData' to null.\n"
        "2. Explain in 'warningMessage' that this application only analyzes financial trading charts.\n\n"
        "Respond with a single JSON object with the keys: isTradingChart, imageQualitySufficient, "
        "extractedData, warningMessage, qualityWarningMessage."
    )


def build_prediction_prompt(extracted_data: str, user_level: Optional[str] = None,
                            user_defined_entry: Optional[str] = None,
                            user_defined_stop_loss: Optional[str] = None,
                            user_defined_take_profit: Optional[str] = None) -> str:
    """
    Build the expert-analyst prompt for the trend prediction call.

    The level-specific guidance falls back to 'intermediate' for a missing or
    unknown level. User-defined levels are only mentioned when given.
    """
    level = user_level if user_level in _USER_LEVEL_GUIDANCE else DEFAULT_USER_LEVEL

    user_levels = ""
    if user_defined_entry:
        user_levels += f"- User Defined Entry: {user_defined_entry}\n"
    if user_defined_stop_loss:
        user_levels += f"- User Defined Stop Loss: {user_defined_stop_loss}\n"
    if user_defined_take_profit:
        user_levels += f"- User Defined Take Profit: {user_defined_take_profit}\n"

    return (
        "You are an EXPERT-LEVEL financial technical analyst, a master of chart interpretation, who is also "
        "knowledgeable in the principles of Islamic finance. Provide a comprehensive, cautious and trustworthy "
        "assessment. The extracted chart data below is your SOLE source of truth.\n\n"
        "Input Data:\n"
        f"- Extracted Chart Data (JSON describing visual elements): {extracted_data}\n"
        f"- User Trading Experience: {level}\n"
        f"{user_levels}\n"
        "Your output MUST be a single JSON object. All fields are mandatory unless marked optional.\n\n"
        "1. Primary Prediction & Overall Assessment:\n"
        "   - trendPrediction: 'up', 'down', 'sideways' or 'neutral'.\n"
        "   - confidence: 0.0-1.0, justified by signal convergence.\n"
        "   - riskLevel: 'low', 'medium' or 'high'.\n"
        "   - opportunityScore: 0.0-1.0, based on clarity, R:R and confirmation.\n"
        "   - tradingRecommendation: 'buy', 'hold', 'avoid' or 'neutral', aligned with trendPrediction.\n"
        "   - volatilityLevel (optional): 'low', 'normal', 'high' or 'extreme'.\n"
        "2. trendAnalysis: direction ('Uptrend', 'Downtrend', 'Sideways', 'Neutral') over the last 5-10 "
        "candles, candleCountBasis (integer, at least 5) and trendlineDescription.\n"
        "3. candlestickAnalysis: patterns (2-4 significant recent patterns, each with name, implications, "
        "candleCount and isStatisticallyWeakOrNeutral) and a short summary.\n"
        "4. volumeAndMomentum: volumeStatus ('Present - Adequate', 'Present - Low', 'Present - High', "
        "'Missing', 'Not Applicable'), volumeInterpretation, rsiEstimate and macdEstimate.\n"
        "5. Trading Levels & Risk/Reward:\n"
        "   - suggestedEntryPoints, takeProfitLevels, stopLossLevels: arrays with at least one specific, "
        "justified price level each.\n"
        "   - Aim the take profit at a high-reward technical target (e.g. 3:1 R:R); if it is unlikely, say so.\n"
        "   - rewardRiskRatio (optional): {reward, risk} with risk of at least 1, based on the primary levels "
        "or the user-defined levels when provided.\n"
        "   - riskRewardDetails: tradeAssessment ('Good', 'Medium', 'Bad', 'Neutral') and "
        "assessmentReasoning.\n"
        "6. islamicFinanceConsiderations: at least 3-4 sentences of principle-based guidance (not a fatwa) on "
        "avoiding Qimar (gambling) and Gharar (excessive uncertainty), the virtue of Sabr (patience) and the "
        "prohibition of Riba, related to this chart. Never declare an asset Halal or Haram.\n"
        "7. Explanation:\n"
        "   - explanationSummary: 1-3 sentences, at most 250 characters.\n"
        "   - fullScientificAnalysis: an extensive explanation referencing the extracted data, discussing "
        "probabilities, alternatives and limiting factors.\n"
        f"   - Tailor the language to the user's level: {_USER_LEVEL_GUIDANCE[level]}\n"
        f"   - ALWAYS conclude fullScientificAnalysis with: \"{MANDATORY_DISCLAIMER}\"\n\n"
        "If the data is insufficient for any point, say so in fullScientificAnalysis and give conservative "
        "suggestions."
    )


def build_translation_prompt(text: str, target_language_name: str) -> str:
    return (
        "You are a translation service. Translate the text below from English into "
        f"{target_language_name}. Keep numbers, tickers and price levels unchanged.\n"
        'Respond with a single JSON object: {"translatedText": "<translation>"}. '
        "If you cannot translate it, return the original text in the same JSON format.\n\n"
        f"Text:\n{text}"
    )


def build_strategy_prompt(analysis_json: str) -> str:
    """Prompt that distills a full prediction into a strategy session."""
    return (
        "You are an elite trading strategist and psychologist. Distill the dense technical market analysis "
        "below into a clear, actionable \"Strategy Session\" that gives the trader clarity, a concrete plan "
        "and the psychological fortitude to execute it.\n\n"
        f"Input Analysis:\n```json\n{analysis_json}\n```\n\n"
        "1. primarySignal: the single most dominant technical reason for the recommendation, as "
        "{title, description} with a one-sentence description.\n"
        "2. conflictingSignals: the top 1-3 risk factors or signals that challenge the primary signal, "
        "each {title, description}.\n"
        "3. actionPlan: 3-5 steps turning the suggested entry, stop-loss and take-profit levels into a plan, "
        "each {step (1, 2, 3...), instruction, rationale}.\n"
        "4. psychologicalBriefing: {title, advice, islamicPrinciple}. The advice targets the emotions this "
        "specific setup provokes (greed, fear, impatience).\n"
        "5. islamicPrinciple: {name, application} where name is exactly one of 'Sabr (Patience)' (waiting "
        "for a pullback), 'Tawakkul (Trust in Allah)' (high risk after due diligence), 'Shukr (Gratitude)' "
        "(a successful trade) or 'Ihsan (Excellence)' (a complex setup needing careful execution).\n\n"
        "Respond with a single JSON object with the keys: primarySignal, conflictingSignals, actionPlan, "
        "psychologicalBriefing."
    )


def build_quiz_prompt(topic: str, num_questions: int, language: str) -> str:
    return (
        "You are an expert quiz generator specializing in financial trading topics.\n"
        f"Generate {num_questions} multiple-choice questions about \"{topic}\" in the {language} language.\n\n"
        "For each question provide:\n"
        f"1. \"id\": a unique identifier (\"q1\", \"q2\", ... \"q{num_questions}\").\n"
        "2. \"questionText\": the question itself.\n"
        "3. \"options\": 3 to 4 answer choices, each with a unique \"value\" ('a', 'b', 'c', 'd') and \"text\".\n"
        "4. \"correctAnswer\": the \"value\" of the single correct option.\n"
        "5. \"explanation\": a concise explanation of the correct answer.\n\n"
        "Questions must be clear and relevant, with plausible distractors.\n"
        'Respond with a single JSON object: {"questions": [<question objects>]}.'
    )
