from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from widget_access.app import pick


class ApiConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="API_", extra="ignore")

    base_prefix: str = "/api"
    # comma separated
    cors_origins: str = "http://localhost:3000"
    viewer_header: str = "X-Viewer-Id"
    request_timeout_seconds: float = pick(prod=30.0, nonprod=15.0)

    @field_validator("base_prefix")
    @classmethod
    def _normalize_prefix(cls, v: str) -> str:
        v = "/" + v.strip("/")
        return "" if v == "/" else v

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_api_config(**kwargs) -> ApiConfig:
    return ApiConfig(**kwargs)
