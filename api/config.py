"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Google Cloud signal sources (PageSpeed, Safe Browsing, Places, Vision,
    # Natural Language, CrUX all share one key)
    google_api_key: str = ""
    signal_timeout_seconds: float = 30.0
    pagespeed_timeout_seconds: float = 60.0  # Lighthouse runs are slow
    signal_locale: str = "pt-BR"
    page_text_max_chars: int = 5000

    # Generation engine
    generation_provider: Literal["gemini", "openrouter", "mock"] = "gemini"
    gemini_model: str = "gemini-2.0-flash"
    openrouter_api_key: str | None = None
    openrouter_model: str = "google/gemini-2.0-flash-001"
    generation_timeout_seconds: float = 90.0
    generation_temperature: float = 0.7
    generation_max_tokens: int = 4096

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.env == "test"

    @property
    def generation_api_key(self) -> str:
        """API key for the configured generation provider."""
        if self.generation_provider == "openrouter":
            return self.openrouter_api_key or ""
        return self.google_api_key

    @property
    def generation_model(self) -> str:
        """Model name for the configured generation provider."""
        if self.generation_provider == "openrouter":
            return self.openrouter_model
        return self.gemini_model


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
