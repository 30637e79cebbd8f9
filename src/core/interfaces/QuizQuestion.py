from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List


class QuizOption(BaseModel):
    value: str = Field(..., min_length=1, description="Short option identifier, e.g. 'a'")
    text: str = Field(..., min_length=1)


class QuizQuestion(BaseModel):
    id: str
    questionText: str = Field(..., min_length=1)
    options: List[QuizOption] = Field(..., min_length=3, max_length=4)
    correctAnswer: str
    explanation: str

    @field_validator('options')
    @classmethod
    def validate_unique_options(cls, v):
        if len({option.value for option in v}) != len(v):
            raise ValueError('Option values must be unique within a question')
        return v

    @model_validator(mode='after')
    def validate_correct_answer(self):
        if self.correctAnswer not in {option.value for option in self.options}:
            raise ValueError('correctAnswer must be the value of one of the options')
        return self


class QuizRequest(BaseModel):
    topic: str = Field(..., min_length=1, description='e.g. "Technical Analysis", "Trading Basics"')
    numQuestions: int = Field(5, ge=1, le=10)
    language: str = Field("English", min_length=1)

    @field_validator('topic')
    @classmethod
    def validate_topic(cls, v):
        if not v.strip():
            raise ValueError('topic must not be empty')
        return v.strip()


class QuizResponse(BaseModel):
    questions: List[QuizQuestion]
