# storefront/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Postgres connection string; sqlite works for local dev)
      - JWT_SECRET (HS256 signing secret for access tokens)

    Optional:
      - SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY (product image uploads)
      - SMTP_* (read by core/email_client.py for password reset mails)
    """

    PROJECT_NAME: str = "Perfume Storefront API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str
    DB_ECHO: bool = False

    # Access tokens (issued by /auth/login and /auth/signup)
    JWT_SECRET: str
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Guest cart cookie
    CART_COOKIE_NAME: str = "cart_session"
    CART_COOKIE_MAX_AGE: int = 60 * 60 * 24 * 30
    CART_COOKIE_SECURE: bool = False

    # Password reset
    PASSWORD_RESET_TTL_MINUTES: int = 60
    FRONTEND_URL: str = "http://localhost:3000"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Supabase Storage (product images)
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    SUPABASE_BUCKET: str = "assets"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
