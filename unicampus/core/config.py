from functools import lru_cache
import json
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


NKWA_SANDBOX_URL = "https://api.pay.staging.mynkwa.com"
NKWA_PRODUCTION_URL = "https://api.pay.mynkwa.com"


def parse_cors_origins(value: str) -> list[str]:
    if not value:
        return []

    parsed: list[str]
    raw = value.strip()
    if raw.startswith("["):
        try:
            items = json.loads(raw)
            parsed = [str(item).strip() for item in items if str(item).strip()]
        except (TypeError, ValueError):
            parsed = []
    else:
        parsed = [origin.strip() for origin in raw.split(",") if origin.strip()]

    # Preserve order and remove duplicates.
    return list(dict.fromkeys(parsed))


def normalize_public_key(value: str) -> str:
    # Env files often carry PEM blocks with literal "\n" or indented lines.
    text = (value or "").strip().replace("\\n", "\n")
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return "\n".join(lines) + "\n" if lines else ""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = "UniCampus Admin"
    environment: str = "development"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Security (tokens are issued by the identity provider)
    secret_key: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Database
    database_url: str
    db_pool_size: int = 5
    db_max_overflow: int = 5
    db_pool_timeout: int = 15
    db_pool_recycle: int = 1200
    db_pool_pre_ping: bool = True

    # Nkwa Pay
    nkwa_api_key: str
    nkwa_environment: str = "sandbox"  # sandbox|production
    nkwa_base_url: Optional[str] = None
    nkwa_public_key: str
    nkwa_webhook_url: str
    nkwa_timeout_seconds: int = 15
    nkwa_test_mode: bool = False

    # Subscription plan
    subscription_amount: int = 399
    subscription_currency: str = "XAF"
    subscription_period_days: int = 30

    # Push notifications
    push_provider: str = "console"  # console|fcm
    firebase_credentials_path: Optional[str] = None
    push_timeout_seconds: int = 10

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"
    auto_create_tables: bool = False
    rate_limit_enabled: bool = True

    @property
    def nkwa_api_base_url(self) -> str:
        if self.nkwa_base_url:
            return self.nkwa_base_url.rstrip("/")
        if (self.nkwa_environment or "").lower() == "production":
            return NKWA_PRODUCTION_URL
        return NKWA_SANDBOX_URL

    @property
    def nkwa_public_key_pem(self) -> str:
        return normalize_public_key(self.nkwa_public_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()
