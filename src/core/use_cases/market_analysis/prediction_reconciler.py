"""
Turns the partially trustworthy JSON an LLM returns for a chart prediction into a
prediction that always satisfies the PredictionResult invariants.

Every field is taken from the candidate only when it passes its own predicate,
otherwise the default value stays in place. Nothing in here raises: a candidate
that is None, not a dict, or full of junk simply yields the defaults.
"""
import math
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from common.logger import logger
from common.monitoring.metrics import PREDICTION_FIELD_REJECTIONS
from core.domain.prediction_defaults import DEFAULT_PREDICTION, MANDATORY_DISCLAIMER, thaw

TREND_PREDICTIONS = frozenset({'up', 'down', 'sideways', 'neutral'})
RISK_LEVELS = frozenset({'low', 'medium', 'high'})
TRADING_RECOMMENDATIONS = frozenset({'buy', 'hold', 'avoid', 'neutral'})
TREND_DIRECTIONS = frozenset({'Uptrend', 'Downtrend', 'Sideways', 'Neutral'})
VOLUME_STATUSES = frozenset({'Present - Adequate', 'Present - Low', 'Present - High', 'Missing', 'Not Applicable'})
TRADE_ASSESSMENTS = frozenset({'Good', 'Medium', 'Bad', 'Neutral'})
INDICATOR_SENTIMENTS = frozenset({'positive', 'negative', 'neutral'})
VOLATILITY_LEVELS = frozenset({'low', 'normal', 'high', 'extreme'})

EXPLANATION_SUMMARY_MAX_LENGTH = 250
MIN_TREND_CANDLE_COUNT = 5
MIN_PATTERN_CANDLE_COUNT = 1

_MISSING = object()


# --- Predicates ---

def _is_number(value: Any) -> bool:
    # bool is an int subclass; True must not pass as confidence 1.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # JSON integers have no size limit; ones beyond float range are not usable numbers
        return False


def _is_number_in_range(value: Any, low: Optional[float] = None, high: Optional[float] = None) -> bool:
    if not _is_number(value):
        return False
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def _is_enum_member(value: Any, allowed: Iterable[str]) -> bool:
    return isinstance(value, str) and value in allowed


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def _is_non_empty_string_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0 and all(_is_non_empty_string(item) for item in value)


def _floor_at_least(value: Any, minimum: int) -> Optional[int]:
    """Floor a numeric value, or None if it is not numeric or floors below `minimum`."""
    if not _is_number(value):
        return None
    floored = math.floor(value)
    return floored if floored >= minimum else None


def _is_valid_pattern(pattern: Any) -> bool:
    return (
        isinstance(pattern, dict)
        and _is_non_empty_string(pattern.get('name'))
        and _is_non_empty_string(pattern.get('implications'))
        and _floor_at_least(pattern.get('candleCount'), MIN_PATTERN_CANDLE_COUNT) is not None
        and isinstance(pattern.get('isStatisticallyWeakOrNeutral'), bool)
    )


def _is_valid_key_indicator(indicator: Any) -> bool:
    return (
        isinstance(indicator, dict)
        and _is_non_empty_string(indicator.get('name'))
        and _is_non_empty_string(indicator.get('value'))
    )


def _is_valid_reward_risk_ratio(ratio: Any) -> bool:
    return (
        isinstance(ratio, dict)
        and _is_number_in_range(ratio.get('reward'), low=0)
        and _is_number_in_range(ratio.get('risk'), low=1)
    )


# --- Normalisers for accepted values ---

def _clean_pattern(pattern: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'name': pattern['name'],
        'implications': pattern['implications'],
        'candleCount': _floor_at_least(pattern['candleCount'], MIN_PATTERN_CANDLE_COUNT),
        'isStatisticallyWeakOrNeutral': pattern['isStatisticallyWeakOrNeutral'],
    }


def _clean_key_indicator(indicator: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {'name': indicator['name'], 'value': indicator['value']}
    if _is_enum_member(indicator.get('sentiment'), INDICATOR_SENTIMENTS):
        cleaned['sentiment'] = indicator['sentiment']
    return cleaned


# --- Merge helpers ---

def _reject(path: str, value: Any) -> None:
    if value is _MISSING:
        return
    logger.debug(f"Prediction field '{path}' rejected, keeping default (got {type(value).__name__})")
    PREDICTION_FIELD_REJECTIONS.labels(field=path).inc()


def _merge_field(
    target: Dict[str, Any],
    source: Mapping[str, Any],
    key: str,
    predicate: Callable[[Any], bool],
    path: str,
    transform: Callable[[Any], Any] = lambda value: value,
) -> None:
    value = source.get(key, _MISSING)
    if value is not _MISSING and predicate(value):
        target[key] = transform(value)
    else:
        _reject(path, value)


def _merge_enum(target, source, key, allowed, path):
    _merge_field(target, source, key, lambda v: _is_enum_member(v, allowed), path)


def _merge_string(target, source, key, path):
    _merge_field(target, source, key, _is_non_empty_string, path)


def _nested(candidate: Mapping[str, Any], key: str) -> Optional[Mapping[str, Any]]:
    value = candidate.get(key, _MISSING)
    if isinstance(value, dict):
        return value
    _reject(key, value)
    return None


def _merge_trend_analysis(result: Dict[str, Any], candidate: Mapping[str, Any]) -> None:
    source = _nested(candidate, 'trendAnalysis')
    if source is None:
        return
    target = result['trendAnalysis']
    _merge_enum(target, source, 'direction', TREND_DIRECTIONS, 'trendAnalysis.direction')
    _merge_field(
        target, source, 'candleCountBasis',
        lambda v: _floor_at_least(v, MIN_TREND_CANDLE_COUNT) is not None,
        'trendAnalysis.candleCountBasis',
        transform=lambda v: _floor_at_least(v, MIN_TREND_CANDLE_COUNT),
    )
    _merge_string(target, source, 'trendlineDescription', 'trendAnalysis.trendlineDescription')


def _merge_candlestick_analysis(result: Dict[str, Any], candidate: Mapping[str, Any]) -> None:
    source = _nested(candidate, 'candlestickAnalysis')
    if source is None:
        return
    target = result['candlestickAnalysis']
    patterns = source.get('patterns', _MISSING)
    if isinstance(patterns, list):
        target['patterns'] = [_clean_pattern(p) for p in patterns if _is_valid_pattern(p)]
        if len(target['patterns']) != len(patterns):
            logger.debug(f"Dropped {len(patterns) - len(target['patterns'])} malformed candlestick pattern(s)")
    else:
        _reject('candlestickAnalysis.patterns', patterns)
    _merge_string(target, source, 'summary', 'candlestickAnalysis.summary')


def _merge_volume_and_momentum(result: Dict[str, Any], candidate: Mapping[str, Any]) -> None:
    source = _nested(candidate, 'volumeAndMomentum')
    if source is None:
        return
    target = result['volumeAndMomentum']
    _merge_enum(target, source, 'volumeStatus', VOLUME_STATUSES, 'volumeAndMomentum.volumeStatus')
    for key in ('volumeInterpretation', 'rsiEstimate', 'macdEstimate'):
        _merge_string(target, source, key, f'volumeAndMomentum.{key}')


def _merge_risk_reward_details(result: Dict[str, Any], candidate: Mapping[str, Any]) -> None:
    source = _nested(candidate, 'riskRewardDetails')
    if source is None:
        return
    target = result['riskRewardDetails']
    _merge_enum(target, source, 'tradeAssessment', TRADE_ASSESSMENTS, 'riskRewardDetails.tradeAssessment')
    _merge_string(target, source, 'assessmentReasoning', 'riskRewardDetails.assessmentReasoning')


def _ensure_disclaimer(result: Dict[str, Any]) -> None:
    analysis = result['fullScientificAnalysis']
    if MANDATORY_DISCLAIMER not in analysis:
        result['fullScientificAnalysis'] = f"{analysis.strip()} {MANDATORY_DISCLAIMER}".strip()


def reconcile(candidate: Any, defaults: Mapping[str, Any] = DEFAULT_PREDICTION) -> Dict[str, Any]:
    """
    Merge a candidate prediction from the LLM over a fully valid set of defaults.

    Args:
        candidate: The JSON-parsed LLM output. None (or anything that is not a dict)
            means the upstream call produced nothing usable.
        defaults: A prediction that already satisfies every invariant.

    Returns:
        A new dict shaped like PredictionResult. Neither argument is mutated.
    """
    result = thaw(defaults)

    if not isinstance(candidate, dict):
        if candidate is not None:
            logger.warning(f"Prediction candidate is a {type(candidate).__name__}, not an object. Using defaults.")
        else:
            logger.warning("No prediction candidate received. Using defaults.")
        return result

    _merge_enum(result, candidate, 'trendPrediction', TREND_PREDICTIONS, 'trendPrediction')
    _merge_field(result, candidate, 'confidence', lambda v: _is_number_in_range(v, 0, 1), 'confidence')
    _merge_enum(result, candidate, 'riskLevel', RISK_LEVELS, 'riskLevel')
    _merge_field(result, candidate, 'opportunityScore', lambda v: _is_number_in_range(v, 0, 1), 'opportunityScore')
    _merge_enum(result, candidate, 'tradingRecommendation', TRADING_RECOMMENDATIONS, 'tradingRecommendation')

    _merge_trend_analysis(result, candidate)
    _merge_candlestick_analysis(result, candidate)
    _merge_volume_and_momentum(result, candidate)

    # All-or-nothing: one blank level discards the whole list.
    for key in ('suggestedEntryPoints', 'takeProfitLevels', 'stopLossLevels'):
        _merge_field(result, candidate, key, _is_non_empty_string_list, key, transform=list)

    _merge_risk_reward_details(result, candidate)

    _merge_field(
        result, candidate, 'explanationSummary',
        lambda v: _is_non_empty_string(v) and _is_non_empty_string(v[:EXPLANATION_SUMMARY_MAX_LENGTH]),
        'explanationSummary',
        transform=lambda v: v[:EXPLANATION_SUMMARY_MAX_LENGTH],
    )
    _merge_string(result, candidate, 'fullScientificAnalysis', 'fullScientificAnalysis')
    _merge_string(result, candidate, 'islamicFinanceConsiderations', 'islamicFinanceConsiderations')

    _ensure_disclaimer(result)

    _merge_field(
        result, candidate, 'rewardRiskRatio', _is_valid_reward_risk_ratio, 'rewardRiskRatio',
        transform=lambda v: {'reward': float(v['reward']), 'risk': float(v['risk'])},
    )
    key_indicators = candidate.get('keyIndicators', _MISSING)
    if isinstance(key_indicators, list):
        result['keyIndicators'] = [_clean_key_indicator(k) for k in key_indicators if _is_valid_key_indicator(k)]
    else:
        _reject('keyIndicators', key_indicators)
    _merge_enum(result, candidate, 'volatilityLevel', VOLATILITY_LEVELS, 'volatilityLevel')

    return result
