"""
Application configuration using Pydantic Settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/reels.db"

    # Redis (rate limiting)
    REDIS_URL: str = "redis://localhost:6379"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 4000

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:5174",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:5174",
    ]
    CORS_ORIGIN_REGEX: str = r"^chrome-extension://.*$"

    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_TRANSCRIPTION_MODEL: str = "whisper-1"
    OPENAI_SUMMARY_MODEL: str = "gpt-4o-mini"
    OPENAI_TIMEOUT_SECONDS: float = 120.0
    OPENAI_MAX_RETRIES: int = 2

    # Media tooling
    SCRATCH_DIR: str = "/tmp/instasave"
    SCRATCH_RETENTION_HOURS: int = 6
    SCRATCH_SWEEP_INTERVAL_MINUTES: int = 60
    YT_DLP_BINARY: str = "yt-dlp"
    FFMPEG_BINARY: str = "ffmpeg"
    DOWNLOAD_TIMEOUT_SECONDS: float = 180.0
    AUDIO_EXTRACTION_TIMEOUT_SECONDS: float = 120.0
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024

    # Instagram cookies for yt-dlp (file path wins over browser)
    INSTAGRAM_COOKIES_PATH: Optional[str] = None
    INSTAGRAM_COOKIES_BROWSER: Optional[str] = None
    INSTAGRAM_COOKIES_CLEAR: bool = False

    AUTO_CREATE_DB_SCHEMA: bool = True
    ANALYZE_RATE_LIMIT_PER_HOUR: int = 60

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()


def require_openai_api_key() -> str:
    """Return configured OpenAI API key or raise a configuration error."""
    api_key = (settings.OPENAI_API_KEY or "").strip()
    if not api_key:
        raise ValueError("OPENAI_API_KEY is not configured")
    return api_key
