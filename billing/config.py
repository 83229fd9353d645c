# billing/config.py
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from BILLING_* environment variables or a .env file."""

    app_name: str = Field(default="store-billing-bridge", description="Application name")
    log_level: str = Field(default="INFO", description="Logging level")

    # None queues store callbacks until run_pending() is called
    store_latency: Optional[float] = Field(
        default=0.05, description="Seconds before the emulated store answers"
    )

    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8085, description="API port")
    base_url: str = Field(default="http://127.0.0.1:8085", description="Where SDK clients connect")

    model_config = SettingsConfigDict(
        env_prefix="BILLING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
