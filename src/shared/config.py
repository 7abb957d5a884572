"""Client configuration — read once from the environment (and an optional .env file).

Usage:
    from shared.config import get_settings

    settings = get_settings()
    settings.api_url  # "http://localhost:8080/api"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[2]


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value is not None and value.strip() != "":
            return value.strip()
    return default


def _get_int(*keys: str, default: int) -> int:
    value = _get_env(*keys)
    return default if value is None else int(value)


def _get_float(*keys: str, default: float) -> float:
    value = _get_env(*keys)
    return default if value is None else float(value)


@dataclass(frozen=True)
class Settings:
    api_url: str = "http://localhost:8080/api"
    ws_url: str = "http://localhost:8080/ws"
    backend: str = "http"  # "http" or "fake"
    currency: str = "VND"
    request_timeout: float = 10.0
    cooking_countdown_seconds: int = 30
    countdown_tick_seconds: float = 1.0

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            api_url=_get_env("STOREFRONT_API_URL", default=cls.api_url).rstrip("/"),
            ws_url=_get_env("STOREFRONT_WS_URL", default=cls.ws_url),
            backend=_get_env("STOREFRONT_BACKEND", default=cls.backend).lower(),
            currency=_get_env("STOREFRONT_CURRENCY", default=cls.currency).upper(),
            request_timeout=_get_float("STOREFRONT_REQUEST_TIMEOUT", default=cls.request_timeout),
            cooking_countdown_seconds=_get_int("COOKING_COUNTDOWN_SECONDS", default=cls.cooking_countdown_seconds),
            countdown_tick_seconds=_get_float("COUNTDOWN_TICK_SECONDS", default=cls.countdown_tick_seconds),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading `.env` on first use."""
    global _settings
    if _settings is None:
        load_dotenv(dotenv_path=ROOT_DIR / ".env")
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings (useful for testing)."""
    global _settings
    _settings = None
