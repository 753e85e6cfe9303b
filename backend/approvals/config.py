"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./approvals.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Local calendar used for "today", quota years and audit timestamps
    PORTAL_TIMEZONE: str = "Africa/Cairo"

    CASUAL_LEAVE_CEILING_DAYS: int = 7
    LOAN_CEILING_YEARS: int = 10
    SIMILARITY_MIN_LENGTH: int = 5
    DEFAULT_LAB_NAME: str = "Central Postgraduate Lab"

    class Config:
        env_file = ".env"


settings = Settings()
