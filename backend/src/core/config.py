"""Configuration settings using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    environment: Literal["development", "production"] = "development"
    api_docs_enabled: bool | None = None
    log_level: str = "INFO"

    # Required to scrape /api/metrics in production
    metrics_token: str | None = None

    # Assessment storage
    storage_backend: Literal["memory", "database"] = "memory"
    database_url: str | None = None

    # "Saving..." indicator stays on for this long after a save
    save_indicator_seconds: float = 1.0

    # CORS
    cors_allow_origins: list[str] = ["http://localhost:3000"]
    cors_allow_methods: list[str] = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    cors_allow_headers: list[str] = [
        "Accept",
        "Authorization",
        "Content-Type",
        "X-Request-ID",
        "X-Metrics-Token",
    ]
    cors_allow_credentials: bool = True

    # Rate limiting (production-only safeguard)
    rate_limit_ai_per_minute: int = 30
    rate_limit_reports_per_minute: int = 10

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        mode="before",
    )
    @classmethod
    def _parse_csv_lists(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    # Answer enhancement service
    enhancement_base_url: str = "http://localhost:8000"
    enhancement_timeout_seconds: float = 30.0

    # Project / audit directory
    project_directory_base_url: str = "http://localhost:8000"
    project_directory_timeout_seconds: float = 10.0

    # Narrative recommendations (LLM)
    llm_provider: str = "anthropic"
    anthropic_api_key: str | None = None
    llm_model: str = "claude-3-sonnet-20240229"
    llm_enabled: bool = True
    llm_max_output_tokens: int = 2048
    llm_max_input_tokens: int = 12000
    llm_temperature: float = 0.3

    # Reports
    report_template_path: str | None = None

    @model_validator(mode="after")
    def _validate_production_settings(self) -> Settings:
        if self.environment != "production":
            return self

        if self.storage_backend == "memory":
            raise ValueError("STORAGE_BACKEND=memory is not allowed in production")

        if any(x == "*" for x in self.cors_allow_origins):
            raise ValueError("CORS_ALLOW_ORIGINS cannot contain '*' in production")
        if any(x == "*" for x in self.cors_allow_methods):
            raise ValueError("CORS_ALLOW_METHODS cannot contain '*' in production")
        if any(x == "*" for x in self.cors_allow_headers):
            raise ValueError("CORS_ALLOW_HEADERS cannot contain '*' in production")

        return self

    @model_validator(mode="after")
    def _validate_storage_backend(self) -> Settings:
        if self.storage_backend == "database" and not self.database_url:
            raise ValueError("DATABASE_URL is required when STORAGE_BACKEND=database")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
