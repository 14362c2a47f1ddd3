# plainweb/settings.py
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings for the PlainWeb accessibility audit service.
    Automatically loaded from environment variables and an optional .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    APP_NAME: str = "PlainWeb Accessibility Audit"
    LOG_LEVEL: str = "INFO"

    # Database URL: Postgres in production or local SQLite fallback
    DATABASE_URL: str = Field(default="sqlite:///./plainweb.db")
    CACHE_MAX_AGE_DAYS: int = 7

    # ── AUDIT RUNNER ─────────────────────────────────────────────────────────
    AUDIT_BACKEND: str = Field(default="lighthouse", description="'lighthouse' or 'pagespeed'")
    AUDIT_TIMEOUT: float = 120.0
    CHROME_PATH: str = "google-chrome"
    LIGHTHOUSE_BIN: str = "lighthouse"
    CHROME_FLAGS: List[str] = Field(
        default_factory=lambda: [
            "--headless",
            "--no-sandbox",
            "--disable-gpu",
            "--disable-dev-shm-usage",
        ]
    )
    PSI_API_KEY: str = ""
    PSI_STRATEGY: str = "mobile"

    # ── AI (Gemini for owner summaries and developer guides) ─────────────────
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "models/gemini-1.5-flash"
    LLM_TIMEOUT: float = 30.0

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def normalize_postgres_url(cls, v: str) -> str:
        """
        Converts old-style postgres URLs from 'postgres://' to 'postgresql://'.
        """
        v = (v or "").strip().strip('"').strip("'")
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @field_validator("AUDIT_BACKEND")
    @classmethod
    def check_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("lighthouse", "pagespeed"):
            raise ValueError("AUDIT_BACKEND must be 'lighthouse' or 'pagespeed'")
        return v

    @property
    def generation_enabled(self) -> bool:
        return bool(self.GEMINI_API_KEY)


# Cached singleton to avoid repeated instantiation
@lru_cache()
def get_settings() -> Settings:
    return Settings()
