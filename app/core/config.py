# app/core/config.py

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """
    Environment driven settings for the API, the Celery worker and the migrations.
    Values are read from the process environment first, then from ``.env``.
    """

    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", case_sensitive=False
    )

    environment: str
    allowed_cors_urls: str
    api_prefix: str = "/api"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # --- PostgreSQL ---
    db_host: str
    db_user: str
    db_password: str
    db_database: str
    db_port: int = 5432
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # --- Redis (Celery broker and results) ---
    redis_host: str
    redis_port: str
    redis_username: Optional[str] = None
    redis_password: Optional[str] = None

    # --- Caldén Oil ---
    api_base_url: str
    api_token: Optional[str] = None
    vendor_timeout: float = 30.0

    # --- MaxTracker ---
    maxtracker_api_base_url: Optional[str] = None
    maxtracker_api_token: Optional[str] = None

    # --- Auth ---
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720
    refresh_token_expire_days: int = 7

    # --- Synchronisation ---
    sync_retry_attempts: int = 50
    sync_retry_delay: float = 5.0
    sync_request_pause: float = 0.5
    closures_default_start: str = "2023-01-01"
    history_start_date: str = "2020-01-01"
    history_period_pause: float = 1.0

    default_empresa_id: int = 1
    scheduler_timezone: str = "America/Argentina/Buenos_Aires"

    def _database_url(self, driver: str) -> str:
        return URL.create(
            drivername=driver,
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_database,
        ).render_as_string(hide_password=False)

    @property
    def db_url(self) -> str:
        return self._database_url("postgresql+psycopg2")

    @property
    def async_db_url(self) -> str:
        return self._database_url("postgresql+asyncpg")

    @property
    def cors_origins(self) -> List[str]:
        """Comma separated ``ALLOWED_CORS_URLS`` as a list"""
        return [url.strip() for url in self.allowed_cors_urls.split(",") if url.strip()]

    @property
    def redis_url(self) -> str:
        credentials = ""
        if self.redis_password:
            credentials = f"{self.redis_username or ''}:{self.redis_password}@"
        return f"redis://{credentials}{self.redis_host}:{self.redis_port}"

    @property
    def celery_broker(self) -> str:
        return f"{self.redis_url}/1"

    @property
    def celery_backend(self) -> str:
        return f"{self.redis_url}/2"


settings = Settings()
