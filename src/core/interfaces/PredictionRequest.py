from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal

UserLevel = Literal['beginner', 'intermediate', 'advanced']


class PredictionRequest(BaseModel):
    extractedData: str = Field(..., description="JSON description of the chart produced by the extraction step")
    userLevel: Optional[UserLevel] = None
    userDefinedEntry: Optional[str] = None
    userDefinedStopLoss: Optional[str] = None
    userDefinedTakeProfit: Optional[str] = None

    @field_validator('extractedData')
    @classmethod
    def validate_extracted_data(cls, v):
        if not v.strip():
            raise ValueError('extractedData must not be empty')
        return v


class TranslationRequest(BaseModel):
    textToTranslate: str
    targetLanguageCode: str = Field(..., min_length=2, description='ISO 639-1 code, e.g. "es", "ar", "zh-CN"')


class TranslationResponse(BaseModel):
    translatedText: str
