from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Every field has a default so the board runs with no configuration.
    """

    # env_file is only used as fallback, env vars take precedence
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    # Durable backend; when unreachable at startup the in-memory store is used
    DATABASE_URL: str = "sqlite:///./ventspace.db"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Origins allowed to call the API from a browser (JSON list in env)
    CORS_ORIGINS: List[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"

    # Real-time subscribers: events queued per connection before drops start
    SUBSCRIBER_QUEUE_SIZE: int = 100


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every request.
    """
    return Settings()


# Global settings instance
settings = get_settings()
