# survey_insights/core/config.py
from __future__ import annotations
from pathlib import Path
from functools import lru_cache
from pydantic import ValidationError as SettingsValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from survey_insights.core.errors import ConfigurationError

PROJECT_DIR = Path(__file__).resolve().parents[2]
ENV_FILE = PROJECT_DIR / ".env"

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # App
    APP_NAME: str = "Survey Insights API"
    ENV: str = "dev"
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    # Store: both are required, the service does not start without them
    DATABASE_URL: str
    JWT_SECRET: str

    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60

    STORE_TIMEOUT_SECONDS: int = 10
    READ_RETRY_ATTEMPTS: int = 2
    AUTO_CREATE_TABLES: bool = False

    CORS_ORIGINS: str = ""

    # AI analysis (OpenAI-compatible endpoint)
    OPENAI_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENAI_API_KEY: str | None = None
    MODEL_NAME: str = "openai/gpt-4o"

    STATISTICS_WINDOW_DAYS: int = 90

    @property
    def cors_list(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def db_url(self) -> str:
        """
        URL for SQLAlchemy. Forces sslmode=require for Supabase hosts.
        """
        url = (self.DATABASE_URL or "").strip()
        if not url:
            raise ConfigurationError("DATABASE_URL is empty")
        if ("supabase.co" in url or "supabase.com" in url) and "sslmode=" not in url:
            sep = "&" if "?" in url else "?"
            url = f"{url}{sep}sslmode=require"
        return url

    @property
    def is_sqlite(self) -> bool:
        return self.db_url.startswith("sqlite")

    @classmethod
    def load(cls, **overrides) -> "Settings":
        """
        Loads settings and turns a missing or malformed variable into a
        ConfigurationError.
        """
        try:
            settings = cls(**overrides)
        except SettingsValidationError as e:
            missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
            raise ConfigurationError(
                "Invalid or missing configuration: " + ", ".join(missing),
                details={"fields": missing},
            ) from e
        if not settings.DATABASE_URL.strip() or not settings.JWT_SECRET.strip():
            raise ConfigurationError("DATABASE_URL and JWT_SECRET must not be empty")
        return settings

@lru_cache
def get_settings() -> Settings:
    return Settings.load()
