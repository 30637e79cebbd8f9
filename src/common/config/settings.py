import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

load_dotenv()

REQUIRED_ENV_VARS = ["LLM_API_KEY", "LLM_API_URL"]


@dataclass(frozen=True)
class Settings:
    llm_api_key: str
    llm_api_url: str
    llm_model: str
    llm_vision_model: str
    llm_timeout_seconds: float
    max_upload_bytes: int
    analysis_rate_limit: str
    rate_limit_storage_uri: str


@lru_cache()
def get_settings() -> Settings:
    """Read the service configuration from the environment (and `.env`, if present)."""
    model = os.getenv("LLM_MODEL", "google/gemini-2.0-flash-001")
    return Settings(
        llm_api_key=os.getenv("LLM_API_KEY", ""),
        llm_api_url=os.getenv("LLM_API_URL", ""),
        llm_model=model,
        llm_vision_model=os.getenv("LLM_VISION_MODEL", model),
        llm_timeout_seconds=float(os.getenv("LLM_TIMEOUT_SECONDS", "60")),
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))),
        analysis_rate_limit=os.getenv("ANALYSIS_RATE_LIMIT", "10/minute"),
        rate_limit_storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
    )


def missing_required_env() -> List[str]:
    return [env for env in REQUIRED_ENV_VARS if not os.getenv(env)]
