from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    app_name: str = "Weather Voice Announcer"
    app_version: str = "1.0.0"
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5"
    openweather_api_key: str = ""
    forecast_slot_limit: int = 40
    request_timeout_seconds: float = 12.0
    backend_url: str = "http://localhost:3001"
    speech_rate: int = 175
    log_level: str = "INFO"
    log_format: str = "text"
    frontend_origins: tuple[str, ...] = ("http://localhost:3000", "http://127.0.0.1:3000")


def get_settings() -> Settings:
    origins_raw = os.getenv("FRONTEND_ORIGINS", "").strip()
    slot_limit_raw = os.getenv("FORECAST_SLOT_LIMIT", "").strip()
    timeout_raw = os.getenv("REQUEST_TIMEOUT_SECONDS", "").strip()
    speech_rate_raw = os.getenv("SPEECH_RATE", "").strip()
    log_format_raw = os.getenv("LOG_FORMAT", "").strip().lower()

    parsed_origins = tuple(item.strip() for item in origins_raw.split(",") if item.strip())

    try:
        slot_limit = int(slot_limit_raw) if slot_limit_raw else 40
    except ValueError:
        slot_limit = 40

    try:
        timeout_seconds = float(timeout_raw) if timeout_raw else 12.0
    except ValueError:
        timeout_seconds = 12.0

    try:
        speech_rate = int(speech_rate_raw) if speech_rate_raw else 175
    except ValueError:
        speech_rate = 175

    return Settings(
        openweather_base_url=os.getenv("OPENWEATHER_BASE_URL", "").strip().rstrip("/")
        or Settings.openweather_base_url,
        openweather_api_key=os.getenv("OPENWEATHER_API_KEY", "").strip(),
        forecast_slot_limit=min(40, max(1, slot_limit)),
        request_timeout_seconds=max(1.0, timeout_seconds),
        backend_url=os.getenv("BACKEND_URL", "").strip().rstrip("/") or Settings.backend_url,
        speech_rate=max(50, speech_rate),
        log_level=os.getenv("LOG_LEVEL", "").strip().upper() or Settings.log_level,
        log_format=log_format_raw if log_format_raw in {"text", "json"} else Settings.log_format,
        frontend_origins=parsed_origins or Settings.frontend_origins,
    )
