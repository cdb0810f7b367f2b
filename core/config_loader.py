import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _csv(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [part.strip() for part in raw.split(",") if part.strip()]


class Settings(BaseModel):
    DATABASE_URL: str = "sqlite:///./fieldops.db"
    BACKEND_CORS_ORIGINS: List[str] = Field(default_factory=list)
    LOG_LEVEL: str = "INFO"

    # slot search
    SEARCH_GRANULARITY_MINUTES: int = Field(30, ge=5, le=240)
    SEARCH_DEFAULT_DAYS: int = Field(14, ge=1)
    SEARCH_MAX_DAYS: int = Field(30, ge=1)
    SEARCH_MAX_RESULTS: int = Field(10, ge=1)
    SEARCH_SUGGESTED_COUNT: int = Field(3, ge=0)
    SEARCH_DEADLINE_SECONDS: float = Field(5.0, gt=0)

    # utilization
    FULL_CAPACITY_HOURS_PER_WEEK: float = Field(40.0, gt=0)
    UTILIZATION_FALLBACK_PERCENT: float = Field(50.0, ge=0, le=100)


def load_settings() -> Settings:
    values = {
        key: os.environ[key]
        for key in Settings.model_fields
        if key != "BACKEND_CORS_ORIGINS" and os.getenv(key)
    }
    values["BACKEND_CORS_ORIGINS"] = _csv("BACKEND_CORS_ORIGINS")
    return Settings(**values)


settings = load_settings()
