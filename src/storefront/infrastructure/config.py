"""Runtime configuration, read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

_TRUE = {"1", "true", "yes", "on"}


def _flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./storefront.db"
    debug: bool = False
    app_url: str = "http://localhost:8000"
    currency: str = "IDR"

    xendit_secret_key: str = ""
    xendit_webhook_token: str = ""
    xendit_base_url: str = "https://api.xendit.co"
    xendit_timeout_seconds: float = 10.0
    invoice_duration_seconds: int = 86400

    # Also put stock back when a payment fails or expires at the provider,
    # not only when the customer cancels the order.
    release_stock_on_payment_failure: bool = True

    log_level: str = "INFO"
    log_json: bool = True

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if env is None else env
        defaults = cls()
        return cls(
            database_url=env.get("STOREFRONT_DATABASE_URL", defaults.database_url),
            debug=_flag(env, "STOREFRONT_DEBUG", defaults.debug),
            app_url=env.get("STOREFRONT_APP_URL", defaults.app_url),
            currency=env.get("STOREFRONT_CURRENCY", defaults.currency),
            xendit_secret_key=env.get("XENDIT_SECRET_KEY", defaults.xendit_secret_key),
            xendit_webhook_token=env.get("XENDIT_WEBHOOK_TOKEN", defaults.xendit_webhook_token),
            xendit_base_url=env.get("XENDIT_BASE_URL", defaults.xendit_base_url),
            xendit_timeout_seconds=float(
                env.get("XENDIT_TIMEOUT_SECONDS", defaults.xendit_timeout_seconds)
            ),
            invoice_duration_seconds=int(
                env.get("XENDIT_INVOICE_DURATION", defaults.invoice_duration_seconds)
            ),
            release_stock_on_payment_failure=_flag(
                env,
                "STOREFRONT_RELEASE_STOCK_ON_PAYMENT_FAILURE",
                defaults.release_stock_on_payment_failure,
            ),
            log_level=env.get("STOREFRONT_LOG_LEVEL", defaults.log_level).upper(),
            log_json=_flag(env, "STOREFRONT_LOG_JSON", defaults.log_json),
        )
