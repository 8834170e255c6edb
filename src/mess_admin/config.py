"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    menu_path: str = "menu.json"
    timezone: str = "UTC"
    log_level: str = "INFO"
    mess_capacity: int = 600
    initial_query_timeout_seconds: float = 10.0
    dashboard_user_key: str | None = "admin"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
