"""Environment-driven settings for the CRM console."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    api_url: str = "http://localhost:3000/api"
    api_token: str | None = None
    api_timeout: float = 15.0
    page_size: int = 20
    settings_cache_ttl: float = 300.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        token = (os.getenv("CRM_API_TOKEN") or "").strip()
        return cls(
            api_url=(os.getenv("CRM_API_URL") or cls.api_url).rstrip("/"),
            api_token=token or None,
            api_timeout=_env_float("CRM_API_TIMEOUT", cls.api_timeout),
            page_size=max(1, _env_int("CRM_PAGE_SIZE", cls.page_size)),
            settings_cache_ttl=max(0.0, _env_float("CRM_SETTINGS_CACHE_TTL", cls.settings_cache_ttl)),
            log_level=(os.getenv("CRM_LOG_LEVEL") or cls.log_level).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
