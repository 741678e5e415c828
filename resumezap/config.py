"""
Configuration settings management with environment variable support.
"""

from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    """Service settings, read from RESUMEZAP_* variables and .env."""

    model_config = SettingsConfigDict(
        env_prefix="RESUMEZAP_",
        env_file=".env",
        extra="ignore",
    )

    # AI provider
    anthropic_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ANTHROPIC_API_KEY", "RESUMEZAP_ANTHROPIC_API_KEY"),
    )
    anthropic_url: str = "https://api.anthropic.com/v1/messages"
    anthropic_version: str = "2023-06-01"
    model: str = "claude-3-sonnet-20240229"
    max_tokens: int = 4000
    request_timeout: float = 120.0

    # Storage
    database_url: str = "sqlite:///./resumezap.db"

    # HTTP
    web_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Uploads
    max_upload_bytes: int = 10 * 1024 * 1024
    min_upload_bytes: int = 1024

    # Plans
    enforce_usage_limits: bool = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
