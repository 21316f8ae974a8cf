from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_BASE_URL: str = "https://localhost:5001/api"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    MESSAGE_PAGE_SIZE: int = 50
    SEARCH_DEBOUNCE_SECONDS: float = 0.3
    AUTO_SELECT_FIRST_CONVERSATION: bool = False

    SESSION_BACKEND: Literal["memory", "redis"] = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    SESSION_KEY_PREFIX: str = "chat_client:session"

    LOG_LEVEL: str = "INFO"

    @field_validator("API_BASE_URL")
    @classmethod
    def _absolute_https(cls, value: str) -> str:
        if not value.startswith("https://"):
            raise ValueError("API_BASE_URL must be absolute (https://...)")
        return value.rstrip("/")

    @field_validator("SEARCH_DEBOUNCE_SECONDS", "HTTP_TIMEOUT_SECONDS")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
