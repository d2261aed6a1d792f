from __future__ import annotations

import os
from dataclasses import dataclass


def getenv(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name, default)
    return v


@dataclass
class Settings:
    # Service
    service_name: str = getenv("SERVICE_NAME", "quotecraft-api") or "quotecraft-api"
    service_env: str = getenv("SERVICE_ENV", "dev") or "dev"
    log_level: str = getenv("LOG_LEVEL", "INFO") or "INFO"
    log_format: str = getenv("LOG_FORMAT", "json") or "json"  # json or text

    # Generative model (Gemini REST API)
    gemini_api_key: str | None = getenv("GEMINI_API_KEY")
    gemini_model: str = getenv("GEMINI_MODEL", "gemini-2.0-flash-lite") or "gemini-2.0-flash-lite"
    gemini_base_url: str = (
        getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
        or "https://generativelanguage.googleapis.com/v1beta"
    )
    # Bounded so an unresponsive upstream degrades to fallback instead of hanging
    gemini_timeout: float = float(getenv("GEMINI_TIMEOUT", "20") or "20")

    # Stock photo providers
    unsplash_access_key: str | None = getenv("UNSPLASH_ACCESS_KEY")
    pexels_api_key: str | None = getenv("PEXELS_API_KEY")
    stock_photo_timeout: float = float(getenv("STOCK_PHOTO_TIMEOUT", "10") or "10")

    # HTTP client pool
    http_max_connections: int = int(getenv("HTTP_MAX_CONNECTIONS", "100") or "100")

    # Security & policy
    cors_allow_origins: str | None = getenv("CORS_ALLOW_ORIGINS")

    @property
    def is_production(self) -> bool:
        return self.service_env in ["prod", "production"]


settings = Settings()
