from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "vetbilling"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DATABASE_DSN: str = "sqlite:////tmp/vetbilling.db"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Exchange rate (USD -> Bs)
    EXCHANGE_RATE_URL: str = "https://ve.dolarapi.com/v1/dolares/oficial"
    EXCHANGE_RATE_CACHE_SECONDS: int = 3600
    EXCHANGE_RATE_DEFAULT: Decimal = Decimal("36.50")  # used when no rate was ever fetched
    EXCHANGE_RATE_TIMEOUT_SECONDS: float = 5.0
    EXCHANGE_RATE_MANUAL: Decimal | None = None


settings = Settings()
