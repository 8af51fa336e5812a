"""Runtime configuration helpers.

Classes:
    Settings: Pydantic settings model capturing environment-driven defaults.

Functions:
    get_settings(): Return a cached Settings instance for dependency injection.
"""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Job Relevance Filter API"
    database_url: str = "sqlite+aiosqlite:///./data/job_filter.db"
    log_level: str = "INFO"
    openai_api_key: SecretStr | None = None
    openai_embedding_model: str = "text-embedding-3-small"
    openai_timeout_seconds: float = Field(default=5.0, gt=0.0)
    retry_attempts: int = Field(default=5, ge=0)
    retry_base_delay_seconds: float = Field(default=0.6, ge=0.0)
    retry_max_delay_seconds: float = Field(default=8.0, ge=0.0)
    retry_jitter_ratio: float = Field(default=0.4, ge=0.0, le=1.0)
    positive_only_threshold: float = 0.3
    embedding_concurrency: int = Field(default=4, ge=1)
    default_user_id: str = "default"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
