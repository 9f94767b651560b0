# config.py
# Runtime settings, read from the environment (and .env, if present).
# Invalid values fail loudly at startup instead of mid-query.

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "anthropic/claude-sonnet-4.5"


class Settings(BaseModel):
    """Everything run.py needs to wire an Agent."""

    api_key: str | None = Field(default=None, description="OPENROUTER_API_KEY")
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    max_steps: int = Field(default=3, ge=1)
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> "Settings":
        load_dotenv(dotenv_path)
        overrides = {
            "api_key": os.getenv("OPENROUTER_API_KEY"),
            "base_url": os.getenv("TOOL_GATE_BASE_URL"),
            "model": os.getenv("TOOL_GATE_MODEL"),
            "max_steps": os.getenv("TOOL_GATE_MAX_STEPS"),
            "log_level": os.getenv("TOOL_GATE_LOG_LEVEL"),
        }
        return cls.model_validate({key: value for key, value in overrides.items() if value is not None})
