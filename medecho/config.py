"""Settings for MedEcho, read from the environment and an optional .env file."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Every knob the API, CLI and intake assistant read.

    Field names double as environment variable names (case-insensitive),
    e.g. ``DATABASE_URL`` or ``SLOT_STEP_MINUTES``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/medecho.db",
        description="Async SQLAlchemy URL of the clinic database",
    )

    # Clinic calendar
    slot_step_minutes: int = Field(default=30, ge=1, description="Length of one bookable slot")
    clinic_timezone: str = Field(
        default="UTC",
        description="Timezone that decides the clinic's 'today' and reminder lead times",
    )
    reminder_lead_hours: int = Field(
        default=24,
        ge=1,
        description="Appointments starting within this many hours produce a reminder",
    )

    # Intake assistant: self-hosted model first, Claude when it is down
    local_llm_base_url: str = Field(
        default="http://localhost:8000/v1",
        description="Base URL of the OpenAI-compatible server hosting the intake model",
    )
    local_llm_model: str = Field(default="meta-llama/Llama-3.1-8B-Instruct")
    local_llm_timeout: int = Field(default=60, description="Seconds before a local request is abandoned")
    anthropic_api_key: str = Field(default="", description="Leave empty to run without a cloud fallback")
    anthropic_model: str = Field(default="claude-sonnet-4-20250514")
    max_retries: int = Field(default=3, ge=1, description="Attempts per backend before falling back")

    # Sessions
    jwt_secret: str = Field(default="change-me", description="HMAC key for access tokens")
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 12 * 60
    cookie_secure: bool = Field(default=False, description="Only send the session cookie over HTTPS")

    # HTTP server
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    cors_origins: list[str] = Field(default=["http://localhost:3000", "http://localhost:5173"])
    debug_mode: bool = Field(default=False, description="Include exception text in 500 responses")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def has_anthropic_key(self) -> bool:
        return bool(self.anthropic_api_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()
