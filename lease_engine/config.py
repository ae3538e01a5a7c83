"""
Configuration management using Pydantic Settings
"""
from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from LEASE_ENGINE_* variables or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="LEASE_ENGINE_",
        env_file=".env",
        extra="ignore",
    )

    # Application
    app_name: str = "lease-engine"
    log_level: str = Field(default="INFO", description="Logging level")
    allowed_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
        description="Allowed CORS origins (comma-separated)",
    )

    # Discount rate defaults (percentages)
    home_currency: str = Field(default="BRL", description="Currency with no FX risk adjustment")
    default_base_rate: Decimal = Field(default=Decimal("10.5"), description="Reference rate when none is supplied")
    default_credit_spread: Decimal = Field(default=Decimal("2.0"), description="Credit spread when none is supplied")
    currency_risk_adjustment: Decimal = Field(
        default=Decimal("0.5"),
        description="Added to the incremental borrowing rate for foreign-currency contracts",
    )

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
