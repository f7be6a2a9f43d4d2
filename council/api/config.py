"""Configuration management using pydantic-settings."""

from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import Field, field_validator
from pathlib import Path
from typing import Annotated, List, Optional
import os


def _default_cors_origins() -> List[str]:
    """Build CORS defaults, honoring FRONTEND_PORT when set."""
    frontend_port = os.getenv("FRONTEND_PORT", "").strip()
    origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    if frontend_port:
        origins = [
            f"http://localhost:{frontend_port}",
            f"http://127.0.0.1:{frontend_port}",
            *origins,
        ]
    return origins


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Advisor personas (None = config/local/advisors_config.yaml)
    advisors_config_path: Optional[Path] = None

    # Model provider (OpenAI-compatible endpoint)
    openai_api_key: str = ""
    openai_base_url: Optional[str] = None
    synthesis_model_id: str = "gpt-4o"
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    llm_timeout_seconds: float = 120.0

    # Brain Trust behaviour
    brain_trust_addendum_enabled: bool = True

    # CORS Configuration
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=_default_cors_origins)

    # Logging
    log_level: str = "INFO"
    logs_dir: Path = Path("logs")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value):
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return str(value).strip().upper() or "INFO"


# Global settings instance
settings = Settings()
