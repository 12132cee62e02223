from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    APP_NAME: str = "cardledger"
    ENV: str = "dev"

    # SQLite file next to apps/backend so the path does not depend on the CWD
    _default_db_path = Path(__file__).resolve().parents[2] / "db.sqlite3"
    DATABASE_URL: str = f"sqlite:///{_default_db_path}"

    CORS_ORIGINS: list[str] = ["*"]
    # "today" for auto-pay, open invoice and recurrence horizon is evaluated here
    TIMEZONE: str = "America/Sao_Paulo"
    LOG_LEVEL: str = "INFO"

    RECURRENCE_HORIZON_MONTHS: int = 12
    MAX_INSTALLMENTS: int = 60
    DEFAULT_PAGE_SIZE: int = 100
    MAX_PAGE_SIZE: int = 500

    model_config = SettingsConfigDict(env_file=(".env",), env_prefix="LEDGER_", case_sensitive=False)


settings = Settings()
