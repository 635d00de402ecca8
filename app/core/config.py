"""
Application settings.

Settings are read from the environment once, at process start, and the
resulting object is handed to services explicitly.
"""
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


@dataclass(frozen=True)
class Settings:
    # ✅ Database
    database_url: str = "sqlite:///./urotrack.db"

    # ✅ Security
    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    frontend_url: str = "http://localhost:3000"
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])

    # ✅ Stripe
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_price_id_pro: Optional[str] = "price_123_plano_pro"
    stripe_price_id_enterprise: Optional[str] = "price_456_plano_enterprise"

    # ✅ Asaas
    asaas_api_key: Optional[str] = None
    asaas_api_url: str = "https://sandbox.asaas.com/api/v3"
    asaas_webhook_token: Optional[str] = None

    # ✅ n8n automation
    n8n_secret_key: Optional[str] = None

    # ✅ Email
    postmark_server_token: Optional[str] = None
    email_sender: str = "urotrack@clinicauroonco.com.br"

    log_level: str = "INFO"
    run_migrations: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        origins = _env("CORS_ORIGINS")
        return cls(
            database_url=_env("DATABASE_URL", cls.database_url),
            secret_key=_env("SECRET_KEY", cls.secret_key),
            algorithm=_env("ALGORITHM", cls.algorithm),
            access_token_expire_minutes=int(_env("ACCESS_TOKEN_EXPIRE_MINUTES", "60")),
            frontend_url=_env("FRONTEND_URL", cls.frontend_url).rstrip("/"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] if origins else ["http://localhost:3000"],
            stripe_secret_key=_env("STRIPE_SECRET_KEY"),
            stripe_webhook_secret=_env("STRIPE_WEBHOOK_SECRET"),
            stripe_price_id_pro=_env("STRIPE_PRICE_ID_PRO", cls.stripe_price_id_pro),
            stripe_price_id_enterprise=_env("STRIPE_PRICE_ID_ENTERPRISE", cls.stripe_price_id_enterprise),
            asaas_api_key=_env("ASAAS_API_KEY"),
            asaas_api_url=_env("ASAAS_API_URL", cls.asaas_api_url).rstrip("/"),
            asaas_webhook_token=_env("ASAAS_WEBHOOK_TOKEN"),
            n8n_secret_key=_env("N8N_SECRET_KEY"),
            postmark_server_token=_env("POSTMARK_SERVER_TOKEN"),
            email_sender=_env("EMAIL_SENDER", cls.email_sender),
            log_level=_env("LOG_LEVEL", cls.log_level),
            run_migrations=_env("RUN_MIGRATIONS", "0") == "1",
        )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, built on first use."""
    return Settings.from_env()
