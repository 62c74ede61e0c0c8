import logging

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_SECRET_KEY = "change-me-in-production"


class Settings(BaseSettings):
    # Application settings
    app_name: str = "Site CMS"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./sitecms.db"

    # Security settings
    secret_key: str = DEFAULT_SECRET_KEY
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    auth_cookie_name: str = "authToken"
    admin_login_path: str = "/admin/login"

    # Tenancy
    default_site_id: str = "default"

    # Pagination
    pagination_default_limit: int = 20
    pagination_max_limit: int = 100

    # Webhooks
    webhook_timeout_seconds: int = 10

    # Rate limits (slowapi syntax)
    login_rate_limit: str = "10/minute"
    form_rate_limit: str = "5/minute"

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # CORS settings
    allowed_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()

if settings.secret_key == DEFAULT_SECRET_KEY and settings.is_production:
    logger.warning("SECRET_KEY is using the default value; set it in the environment")
