"""
Environment configuration — single source of truth for all settings.

Uses pydantic-settings for type-safe config with .env file support.
Crisis-pipeline credentials have no defaults; they are validated once at
startup by ``load_alert_config`` and frozen into an ``AlertConfig``.

Usage:
    from backend.app.core.config import settings, load_alert_config
    alert_config = load_alert_config(settings)
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.app.core.errors import ConfigurationError


class Settings(BaseSettings):
    """
    Application-wide settings loaded from environment variables or .env file.

    Precedence: env var > .env file > default value
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ──
    APP_NAME: str = "Zenith Crisis Alert API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | staging | production
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"  # DEBUG | INFO | WARNING | ERROR | CRITICAL

    # ── Server ──
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    RELOAD: bool = False  # honoured only when ENVIRONMENT=development

    # ── CORS ──
    # Exact origins, or one "*" standing for a single subdomain label.
    CORS_ORIGINS: List[str] = [
        "http://localhost:8080",
        "http://localhost:5173",
        "http://localhost:3000",
        "https://zenith-frontend-1.netlify.app",
        "https://*.netlify.app",
        "https://zenith-main.vercel.app",
        "https://www.zenith-landing.tech",
        "https://zenith-ai.tech",
    ]

    # ── Messaging provider (Twilio) ──
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None
    TWILIO_WHATSAPP_NUMBER: Optional[str] = None
    TWILIO_API_BASE_URL: str = "https://api.twilio.com"
    MESSAGING_TIMEOUT_SECONDS: float = 15.0

    # Comma-separated E.164 numbers
    EMERGENCY_RECIPIENTS: Optional[str] = None

    # ── Location ──
    GEOLOCATION_TIMEOUT_MS: int = 10_000
    FALLBACK_LATITUDE: float = 21.082225
    FALLBACK_LONGITUDE: float = 80.006333

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


settings = get_settings()


# ═══════════════════════════════════════════════════════════════════════════
# Immutable crisis-pipeline configuration
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AlertConfig:
    """
    Validated, read-only configuration for the alert pipeline.

    Built once at startup and injected into the dispatcher and
    orchestrator; pipeline code never reads ``settings`` directly.
    """
    account_sid: str
    auth_token: str
    sms_sender: str
    whatsapp_sender: str
    recipients: Tuple[str, ...]
    api_base_url: str = "https://api.twilio.com"
    timeout_seconds: float = 15.0
    geolocation_timeout_ms: int = 10_000
    fallback_latitude: float = 21.082225
    fallback_longitude: float = 80.006333


_REQUIRED_VARS = (
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "TWILIO_PHONE_NUMBER",
    "TWILIO_WHATSAPP_NUMBER",
    "EMERGENCY_RECIPIENTS",
)


def parse_recipients(raw: Optional[str]) -> Tuple[str, ...]:
    """Split a comma-separated recipient list, dropping blanks."""
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def load_alert_config(cfg: Optional[Settings] = None) -> AlertConfig:
    """
    Validate settings and freeze them into an ``AlertConfig``.

    Raises
    ------
    ConfigurationError
        If any credential, sender address or the recipient list is missing.
    """
    cfg = cfg or get_settings()

    missing = [name for name in _REQUIRED_VARS if not getattr(cfg, name)]
    recipients = parse_recipients(cfg.EMERGENCY_RECIPIENTS)
    if not recipients and "EMERGENCY_RECIPIENTS" not in missing:
        missing.append("EMERGENCY_RECIPIENTS")

    if missing:
        raise ConfigurationError(
            "Missing required messaging configuration",
            missing=missing,
        )

    return AlertConfig(
        account_sid=cfg.TWILIO_ACCOUNT_SID,
        auth_token=cfg.TWILIO_AUTH_TOKEN,
        sms_sender=cfg.TWILIO_PHONE_NUMBER,
        whatsapp_sender=cfg.TWILIO_WHATSAPP_NUMBER,
        recipients=recipients,
        api_base_url=cfg.TWILIO_API_BASE_URL,
        timeout_seconds=cfg.MESSAGING_TIMEOUT_SECONDS,
        geolocation_timeout_ms=cfg.GEOLOCATION_TIMEOUT_MS,
        fallback_latitude=cfg.FALLBACK_LATITUDE,
        fallback_longitude=cfg.FALLBACK_LONGITUDE,
    )
