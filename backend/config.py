"""
Configuration management for the Binary Craft orders API.

Loads settings from .env via pydantic-settings.

Notes:
    - promo_codes is a comma-separated catalog, parsed once by pricing.PromoCatalog
    - order_status_policy selects the Status Controller transition table
    - validate_production_settings() enforces a JWT secret and strict CORS in production
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/binary_craft.db"

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"

    # ── Auth (JWT) ──────────────────────────────────────────────────
    jwt_secret: str = ""
    jwt_issuer: str = "binary-craft-api"
    jwt_access_ttl_minutes: int = 60 * 24

    # ── Pricing ─────────────────────────────────────────────────────
    # CODE:PERCENT:<0-100> or CODE:AMOUNT:<value>, comma-separated
    promo_codes: str = "BINARY10:PERCENT:10"
    currency: str = "BDT"

    # ── Orders ──────────────────────────────────────────────────────
    order_status_policy: str = "unconstrained"  # "unconstrained" | "strict"
    default_payment_method: str = "cod"
    order_rate_limit_requests: int = 20
    order_rate_limit_window_seconds: int = 60

    # ── Notifications (best-effort order confirmation) ──────────────
    notification_webhook_url: str = ""
    notification_timeout_seconds: float = 5.0

    # ── Read retries (server-side, data store) ──────────────────────
    read_retry_attempts: int = 3
    read_retry_backoff_seconds: float = 0.2

    # ── Storefront client defaults ──────────────────────────────────
    api_base_url: str = "http://localhost:8000"
    api_timeout_seconds: float = 10.0
    api_max_retries: int = 2
    api_backoff_seconds: float = 0.5

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup. Raises ValueError in production,
        only logs warnings elsewhere.
        """
        if self.order_status_policy not in ("unconstrained", "strict"):
            raise ValueError(
                f"ORDER_STATUS_POLICY must be 'unconstrained' or 'strict', "
                f"got '{self.order_status_policy}'"
            )

        from services.pricing import PromoCatalog
        PromoCatalog.from_setting(self.promo_codes)  # raises ValueError on a bad entry

        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if not self.jwt_secret:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "It is used to verify access tokens on every order endpoint."
                )
            if self.notification_webhook_url.startswith("http://"):
                raise ValueError(
                    "NOTIFICATION_WEBHOOK_URL must use https in production."
                )
            logger.info("Production settings validated")
        else:
            warnings = []
            if not self.jwt_secret:
                warnings.append("JWT_SECRET is empty (authenticated endpoints will fail)")
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            if self.order_status_policy == "unconstrained":
                warnings.append("ORDER_STATUS_POLICY=unconstrained (any status may be set)")
            for w in warnings:
                logger.warning(w)


# Global settings instance
settings = Settings()
