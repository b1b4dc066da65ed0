from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = "sqlite:///./seolnk.db"

    # Reporting windows
    DEFAULT_WINDOW_DAYS: int = 30
    CHART_DAYS: int = 14
    MAX_WINDOW_DAYS: int = 365
    REPORT_TIMEZONE: str = "UTC"  # IANA name, used for daily buckets

    # Leaderboards
    TOP_LIMIT: int = 5
    RECENT_LIMIT: int = 10
    BIO_RECENT_LIMIT: int = 50

    # Geo lookup for rotator clicks
    GEO_LOOKUP_ENABLED: bool = True
    GEO_LOOKUP_TIMEOUT: float = 2.0

    # Rate Limiting
    RATE_LIMIT_TRACK_PER_MINUTE: int = 120

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(env_file=".env")


settings = Settings()
