from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Diagram Grader"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    # Any OpenAI-compatible chat completions endpoint works; Gemini's is the default.
    LLM_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    LLM_API_KEY: str | None = None
    GEMINI_API_KEY: str | None = None
    MODEL_DEFAULT: str = "gemini-1.5-pro"
    MODEL_GRADER: str | None = None
    LLM_TIMEOUT_SECONDS: float = 60.0

    UPSTASH_REDIS_REST_URL: str | None = None
    UPSTASH_REDIS_REST_TOKEN: str | None = None
    GRADE_QUOTA: int = 5
    GRADE_WINDOW_SECONDS: int = 3600
    GRADE_RATE_LIMIT_PREFIX: str = "grade"

    @property
    def rate_limit_configured(self) -> bool:
        url = self.UPSTASH_REDIS_REST_URL
        return bool(url and self.UPSTASH_REDIS_REST_TOKEN and url.startswith("https://"))


settings = Settings()  # type: ignore
