"""Application settings using Pydantic BaseSettings."""

import logging
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Tabula Analyst"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_VALID_LOG_LEVELS}, got '{v}'")
        return upper

    @model_validator(mode="after")
    def validate_limits_positive(self) -> "Settings":
        for field_name in (
            "agent_max_steps",
            "agent_max_tokens",
            "dataset_type_sample_size",
            "dataset_max_rows",
            "provider_timeout",
        ):
            value = getattr(self, field_name)
            if value <= 0:
                raise ValueError(f"{field_name} must be positive, got {value}")
        return self

    @model_validator(mode="after")
    def warn_wildcard_origins(self) -> "Settings":
        if self.allowed_origins == ["*"]:
            logging.getLogger(__name__).warning(
                "allowed_origins is set to ['*'], consider restricting in production"
            )
        return self

    # Anthropic
    anthropic_api_key: str | None = None

    # Analyst Agent
    agent_model: str = "claude-sonnet-4-5"
    agent_max_tokens: int = 4096
    agent_temperature: float = 0.0
    agent_max_steps: int = 100
    parallel_tool_calls: bool = True
    sql_dialect: str = "SQLite"

    # Provider retries (429 / timeouts)
    provider_timeout: float = 120.0
    provider_max_retries: int = 3
    provider_retry_delay: float = 2.0
    retry_backoff_factor: float = 2.0

    # Datasets
    dataset_type_sample_size: int = 20
    dataset_max_rows: int = 5000

    # CORS
    allowed_origins: list[str] = ["*"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
