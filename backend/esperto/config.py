from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./esperto.db"

    # Application
    environment: str = "development"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    # JWT session tokens
    jwt_secret_key: str = "jwt-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Clerk (user sync webhooks, signed with svix)
    clerk_webhook_secret: str | None = None

    # Stripe (for subscriptions)
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None
    stripe_price_premium: str | None = None  # price_xxx from Stripe dashboard
    stripe_price_pro: str | None = None
    stripe_price_empresarial: str | None = None

    # Email (optional)
    sendgrid_api_key: str | None = None
    from_email: str = "alertas@oesperto.com.br"

    # Redis
    redis_url: str = "redis://localhost:6379"

    # Frontend URL (for redirects)
    frontend_url: str = "http://localhost:5173"

    # Contribution policy
    price_outlier_threshold: float = 0.5  # relative deviation from the daily mean
    offer_retention_days: int = 30

    # Rate limiting defaults
    rate_limit_max_attempts: int = 10
    rate_limit_window_minutes: int = 60
    rate_limit_block_minutes: int = 30

    # Background jobs
    scheduler_enabled: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
