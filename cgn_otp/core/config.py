from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    PROJECT_NAME: str = "CGN OTP"

    REDIS_URL: str = Field(..., min_length=1)
    REDIS_PORT: Optional[int] = Field(default=None, ge=1, le=65535)
    REDIS_PASSWORD: Optional[str] = Field(default=None, min_length=1)
    REDIS_TLS_ENABLED: bool = False
    REDIS_CLUSTER_ENABLED: bool = False

    OTP_TTL_IN_SECONDS: int = Field(default=600, ge=1)

    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE_PATH: Optional[str] = None
    ENVIRONMENT: str = Field(default="development")

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return str(value).strip().upper()

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


load_dotenv(ENV_FILE)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
