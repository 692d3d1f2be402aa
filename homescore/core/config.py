from typing import Optional
from urllib.parse import quote_plus

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Project Information
    PROJECT_NAME: str = "HomeScore"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "homescore"
    POSTGRES_PASSWORD: str = "homescore"
    POSTGRES_DB: str = "homescore"
    SQLALCHEMY_DATABASE_URI: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    INIT_DB_ON_STARTUP: bool = False

    # Redis / Celery
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: Optional[str] = None
    CELERY_RESULT_BACKEND: Optional[str] = None
    WORKER_CONCURRENCY: int = 4
    JOB_DEDUPE_TTL_SECONDS: int = 15 * 60
    SNAPSHOT_CAPTURE_INTERVAL_SECONDS: int = 7 * 24 * 60 * 60

    # Reports
    RISK_REPORT_STALE_MINUTES: int = 30
    FINANCIAL_REPORT_STALE_MINUTES: int = 30
    DEFAULT_SNAPSHOT_WEEKS: int = 26
    HISTORY_SNAPSHOT_WEEKS: int = 52

    # Metrics
    METRICS_ENABLED: bool = True

    model_config = SettingsConfigDict(env_file=".env", env_prefix="HOMESCORE_", extra="ignore")

    @model_validator(mode="after")
    def assemble_db_connection(self) -> "Settings":
        if not self.SQLALCHEMY_DATABASE_URI:
            self.SQLALCHEMY_DATABASE_URI = (
                f"postgresql://{quote_plus(self.POSTGRES_USER)}:{quote_plus(self.POSTGRES_PASSWORD)}"
                f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
            )
        return self

    @property
    def broker_url(self) -> str:
        return self.CELERY_BROKER_URL or self.REDIS_URL


settings = Settings()
