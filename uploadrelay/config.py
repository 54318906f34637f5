from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "uploadrelay"
    app_env: str = "dev"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    discord_webhook_url: str | None = None
    webhook_timeout_seconds: float = 5.0

    # Shared secret for the x-api-key header on the integrated upload route
    upload_api_key: str | None = None

    uploadthing_secret: str | None = None
    uploadthing_api_url: str = "https://api.uploadthing.com"
    uploadthing_timeout_seconds: float = 60.0

    description_max_length: int = 1024
    delete_after_hours: int = 24

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
