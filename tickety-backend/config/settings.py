"""
Runtime settings.

Values are read from the environment once, at application start. A `.env`
file in the tickety-backend directory is loaded first if present.

Environment variables required:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_SERVICE_ROLE_KEY: Service role key (server side only, bypasses RLS)
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_CONNECT_WEBHOOK_SECRET: Signing secret of the Connect webhook endpoint

Optional:
- STRIPE_API_TIMEOUT_SECONDS (default: 10)
- STRIPE_MAX_RETRIES (default: 2)
- SUPABASE_TIMEOUT_SECONDS (default: 10)
- BALANCE_FETCH_TIMEOUT_SECONDS (default: 15)
- WEBHOOK_TOLERANCE_SECONDS (default: 300)
- DEFAULT_CURRENCY (default: usd)
- LOG_LEVEL (default: INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: str
    supabase_key: str
    stripe_secret_key: str
    stripe_webhook_secret: str
    stripe_api_timeout_seconds: float = 10.0
    stripe_max_retries: int = 2
    supabase_timeout_seconds: float = 10.0
    balance_fetch_timeout_seconds: float = 15.0
    webhook_tolerance_seconds: int = 300
    default_currency: str = "usd"
    log_level: str = "INFO"


def _require(env: Mapping[str, str], name: str, hint: str) -> str:
    value = env.get(name)
    if not value:
        raise RuntimeError(f"Missing environment variable: {name}. Set {name} to {hint}.")
    return value


def _number(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from `env` (defaults to os.environ after loading .env).

    Raises:
        RuntimeError: a required variable is missing or a number is malformed
    """

    if env is None:
        env_path = Path(__file__).parent.parent / ".env"
        load_dotenv(dotenv_path=env_path)
        env = os.environ

    return Settings(
        supabase_url=_require(env, "SUPABASE_URL", "your Supabase project URL"),
        supabase_key=_require(env, "SUPABASE_SERVICE_ROLE_KEY", "your Supabase service role key"),
        stripe_secret_key=_require(env, "STRIPE_SECRET_KEY", "your Stripe secret key"),
        stripe_webhook_secret=_require(
            env, "STRIPE_CONNECT_WEBHOOK_SECRET", "the signing secret of the Connect webhook endpoint"
        ),
        stripe_api_timeout_seconds=_number(env, "STRIPE_API_TIMEOUT_SECONDS", 10.0),
        stripe_max_retries=int(_number(env, "STRIPE_MAX_RETRIES", 2)),
        supabase_timeout_seconds=_number(env, "SUPABASE_TIMEOUT_SECONDS", 10.0),
        balance_fetch_timeout_seconds=_number(env, "BALANCE_FETCH_TIMEOUT_SECONDS", 15.0),
        webhook_tolerance_seconds=int(_number(env, "WEBHOOK_TOLERANCE_SECONDS", 300)),
        default_currency=(env.get("DEFAULT_CURRENCY") or "usd").lower(),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
    )
