from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Storefront settings, read from ``STOREFRONT_*`` variables or ``.env``."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    # Storage
    DATA_DIR: Path = Path("data")

    # Checkout
    CURRENCY: str = "INR"
    SHIPPING_COST: Decimal = Decimal("99")
    FREE_SHIPPING_THRESHOLD: Decimal = Decimal("2999")

    # Returns
    RETURN_WINDOW_DAYS: int = 7

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("SHIPPING_COST", "FREE_SHIPPING_THRESHOLD")
    @classmethod
    def non_negative_amount(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("RETURN_WINDOW_DAYS")
    @classmethod
    def non_negative_window(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v


@lru_cache
def get_settings() -> StoreSettings:
    """
    Return the process-wide settings instance, cached.
    """
    return StoreSettings()
