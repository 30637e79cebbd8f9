# src/presentation/api/schemas/analysis.py
from pydantic import BaseModel, Field
from typing import Optional

ALLOWED_IMAGE_TYPES = {"image/png", "image/jpeg", "image/webp", "image/gif"}


class ErrorResponse(BaseModel):
    """Body returned for chart analysis failures"""
    error: str = Field(..., description="Short error title (e.g., Invalid image)")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
