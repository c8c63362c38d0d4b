"""Application settings loaded from the environment and `.env`.

All tunables (database URLs, token lifetime, OpenAI access, daily AI
quotas) live here so services never read `os.environ` directly.
"""

from functools import lru_cache
from typing import Dict, List

from pydantic_settings import BaseSettings

from core.exceptions import ConfigurationError
from core.logger import get_logger

logger = get_logger("core.config")

DEFAULT_JWT_SECRET = "change-me"


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///nutrition.db"
    READ_DATABASE_URL: str = ""

    JWT_SECRET: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    SESSION_EXPIRES_DAYS: int = 7
    AUTH_COOKIE_NAME: str = "auth_token"
    COOKIE_SECURE: bool = False

    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o"
    OPENAI_TIMEOUT_SECONDS: float = 120.0

    AI_DAILY_LIMIT_FREE: int = 2
    AI_DAILY_LIMIT_BASIC: int = 5
    AI_DAILY_LIMIT_PREMIUM: int = 20

    QUOTA_RESET_JOB_ENABLED: bool = True
    CORS_ORIGINS: str = "*"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def write_database_url(self) -> str:
        return _normalize_db_url(self.DATABASE_URL)

    @property
    def read_database_url(self) -> str:
        return _normalize_db_url(self.READ_DATABASE_URL or self.DATABASE_URL)

    @property
    def ai_enabled(self) -> bool:
        return bool(self.OPENAI_API_KEY.strip())

    @property
    def ai_daily_limits(self) -> Dict[str, int]:
        return {
            "FREE": self.AI_DAILY_LIMIT_FREE,
            "BASIC": self.AI_DAILY_LIMIT_BASIC,
            "PREMIUM": self.AI_DAILY_LIMIT_PREMIUM,
        }

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


def _normalize_db_url(url: str) -> str:
    # Heroku-style URLs are not accepted by SQLAlchemy 2.x
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


@lru_cache
def get_settings() -> Settings:
    return Settings()


def check_settings(settings: Settings) -> None:
    """Fail fast on settings the service cannot run with.

    Raises:
        ConfigurationError: If a required value is empty or out of range.
    """
    if not settings.JWT_SECRET:
        raise ConfigurationError("JWT_SECRET must not be empty", config_key="JWT_SECRET")
    if settings.SESSION_EXPIRES_DAYS < 1:
        raise ConfigurationError("SESSION_EXPIRES_DAYS must be at least 1", config_key="SESSION_EXPIRES_DAYS")
    for tier, limit in settings.ai_daily_limits.items():
        if limit < 0:
            raise ConfigurationError(f"AI_DAILY_LIMIT_{tier} must not be negative", config_key=f"AI_DAILY_LIMIT_{tier}")
    if settings.JWT_SECRET == DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET is the built-in default; set it in the environment")
    if not settings.ai_enabled:
        logger.warning("OPENAI_API_KEY is not set; meal plans and analyses will use fallback content")
