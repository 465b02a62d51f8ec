from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RESTOPOS_", env_file=".env", extra="ignore")

    # Sales tax applied to new orders
    tax_rate: Decimal = Decimal("0.0825")
    # Max difference tolerated between order total and payment amount
    currency_epsilon: Decimal = Decimal("0.01")

    database_url: str = "sqlite+aiosqlite:///restopos.db"

    log_level: str = "INFO"
    log_json: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
