from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Tiffin Billing"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DATABASE_DSN: str = "sqlite:////tmp/tiffin_billing.db"

    # Serialize SQLite writers so balance re-reads happen under the write lock
    SQLITE_IMMEDIATE_TRANSACTIONS: bool = True

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    LOG_LEVEL: str = "INFO"

    # Idempotency-Key records older than this may be purged
    IDEMPOTENCY_MAX_AGE_HOURS: int = 24

    @property
    def is_sqlite(self) -> bool:
        return self.APP_DATABASE_DSN.startswith("sqlite")


settings = Settings()
