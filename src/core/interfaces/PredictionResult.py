from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal

from core.domain.prediction_defaults import MANDATORY_DISCLAIMER

TrendPrediction = Literal['up', 'down', 'sideways', 'neutral']
RiskLevel = Literal['low', 'medium', 'high']
TradingRecommendation = Literal['buy', 'hold', 'avoid', 'neutral']
TrendDirection = Literal['Uptrend', 'Downtrend', 'Sideways', 'Neutral']
VolumeStatus = Literal['Present - Adequate', 'Present - Low', 'Present - High', 'Missing', 'Not Applicable']
TradeAssessment = Literal['Good', 'Medium', 'Bad', 'Neutral']
IndicatorSentiment = Literal['positive', 'negative', 'neutral']
VolatilityLevel = Literal['low', 'normal', 'high', 'extreme']


class TrendAnalysisDetails(BaseModel):
    direction: TrendDirection
    candleCountBasis: int = Field(..., ge=5, description="Number of recent candles the trend assessment is based on")
    trendlineDescription: str = Field(..., min_length=1)


class CandlestickPatternInfo(BaseModel):
    name: str
    implications: str
    candleCount: int = Field(..., ge=1)
    isStatisticallyWeakOrNeutral: bool


class CandlestickAnalysis(BaseModel):
    patterns: List[CandlestickPatternInfo] = []
    summary: str


class VolumeAndMomentumInfo(BaseModel):
    volumeStatus: VolumeStatus
    volumeInterpretation: str
    rsiEstimate: str
    macdEstimate: str


class RiskRewardAnalysis(BaseModel):
    tradeAssessment: TradeAssessment
    assessmentReasoning: str


class RewardRiskRatio(BaseModel):
    reward: float = Field(..., ge=0)
    risk: float = Field(..., ge=1)


class KeyIndicator(BaseModel):
    name: str
    value: str
    sentiment: Optional[IndicatorSentiment] = None


# PredictionResult is the trusted shape handed to clients; everything the LLM
# returns goes through the reconciler before it is validated against this.
class PredictionResult(BaseModel):
    trendPrediction: TrendPrediction
    confidence: float = Field(..., ge=0, le=1)
    riskLevel: RiskLevel
    opportunityScore: float = Field(..., ge=0, le=1)
    tradingRecommendation: TradingRecommendation

    trendAnalysis: TrendAnalysisDetails
    candlestickAnalysis: CandlestickAnalysis
    volumeAndMomentum: VolumeAndMomentumInfo

    suggestedEntryPoints: List[str] = Field(..., min_length=1)
    takeProfitLevels: List[str] = Field(..., min_length=1)
    stopLossLevels: List[str] = Field(..., min_length=1)

    riskRewardDetails: RiskRewardAnalysis

    explanationSummary: str = Field(..., max_length=250)
    fullScientificAnalysis: str = Field(..., min_length=1)
    islamicFinanceConsiderations: Optional[str] = None

    rewardRiskRatio: Optional[RewardRiskRatio] = None
    keyIndicators: Optional[List[KeyIndicator]] = None
    volatilityLevel: Optional[VolatilityLevel] = None

    @field_validator('suggestedEntryPoints', 'takeProfitLevels', 'stopLossLevels')
    @classmethod
    def validate_levels(cls, v):
        if any(not level.strip() for level in v):
            raise ValueError('Trading levels must be non-empty strings')
        return v

    @field_validator('fullScientificAnalysis')
    @classmethod
    def validate_disclaimer(cls, v):
        if MANDATORY_DISCLAIMER not in v:
            raise ValueError('fullScientificAnalysis must contain the mandatory disclaimer')
        return v
