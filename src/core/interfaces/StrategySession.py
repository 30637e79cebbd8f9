from pydantic import BaseModel, Field
from typing import List, Literal

IslamicPrincipleName = Literal['Sabr (Patience)', 'Shukr (Gratitude)', 'Tawakkul (Trust in Allah)', 'Ihsan (Excellence)']


class Signal(BaseModel):
    title: str = Field(..., min_length=1)
    description: str


class ActionStep(BaseModel):
    step: int = Field(..., ge=1)
    instruction: str = Field(..., min_length=1)
    rationale: str


class IslamicPrinciple(BaseModel):
    name: IslamicPrincipleName
    application: str


class PsychologicalBriefing(BaseModel):
    title: str
    advice: str
    islamicPrinciple: IslamicPrinciple


# Distilled, actionable view of a reconciled PredictionResult
class StrategySession(BaseModel):
    primarySignal: Signal
    conflictingSignals: List[Signal] = Field(..., min_length=1, max_length=3)
    actionPlan: List[ActionStep] = Field(..., min_length=3, max_length=5)
    psychologicalBriefing: PsychologicalBriefing
