"""Application settings and configuration."""

from typing import Literal

from pydantic import Field, field_validator  # type: ignore
from pydantic_settings import BaseSettings, SettingsConfigDict  # type: ignore


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ENV: Literal["dev", "staging", "prod", "test"] = Field(default="dev")
    PROJECT_NAME: str = Field(default="Question Bank Admin")

    # Remote question store
    API_BASE_URL: str = Field(default="http://localhost:5000/api")
    API_TOKEN: str | None = Field(default=None)
    HTTP_TIMEOUT_SECONDS: float = Field(default=15.0, gt=0)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")

    # Import
    IMPORT_ENCODING: str = Field(default="utf-8")
    IMPORT_CSV_DELIMITER: str = Field(default=",", min_length=1, max_length=1)
    IMPORT_MAX_ROWS: int = Field(default=5000, ge=1)
    IMPORT_REPAIR_MISSING_CORRECT: bool = Field(default=True)

    # Bulk operations
    BULK_DELETE_CONCURRENCY: int = Field(default=8, ge=1)

    @field_validator("API_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so paths can be joined with a leading slash."""
        return v.rstrip("/")

    def __init__(self, **kwargs):
        """Validate settings on initialization."""
        super().__init__(**kwargs)
        # Fail fast in production if critical vars are missing
        if self.ENV == "prod":
            if not self.API_TOKEN:
                raise ValueError("API_TOKEN must be set in production")
            if not self.API_BASE_URL.startswith("https://"):
                raise ValueError("API_BASE_URL must use https in production")


# Global settings instance
settings = Settings()
