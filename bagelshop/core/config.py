"""Bagel Shop API Configuration"""

from decimal import Decimal
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

DEV_SECRET_KEY = "dev-secret-change-me-before-deploying-anywhere"


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SHOP_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Bagel Shop API"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8001

    # Token signing
    secret_key: str = DEV_SECRET_KEY
    cart_token_ttl_seconds: int = 3600
    login_token_ttl_seconds: int = 86400
    token_purge_interval_seconds: int = 60

    # Pricing
    tax_rate: Decimal = Decimal("0")
    currency: str = "usd"

    # "attach" consumes a promo use when it is applied to a cart,
    # "finalize" consumes it when the paid order is created
    promo_usage_accounting: Literal["attach", "finalize"] = "attach"

    # Payments
    webhook_secret: str = "whsec-dev-change-me"

    # Storefront links used in emails
    storefront_url: str = "http://localhost:3000"

    @property
    def using_dev_secret(self) -> bool:
        """Check if the development signing secret is still in use"""
        return self.secret_key == DEV_SECRET_KEY


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
