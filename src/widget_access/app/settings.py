from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    # flat = easy env overrides (APP_NAME, APP_LOG_LEVEL, ...)
    name: str = "Widget Access Service"
    version: str = "0.1.0"
    log_level: Optional[str] = None
    log_format: Optional[Literal["plain", "json"]] = None
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_app_settings(**kwargs) -> AppSettings:
    # Only forward explicit values so field defaults still apply
    filtered = {k: v for k, v in kwargs.items() if v is not None}
    return AppSettings(**filtered)
