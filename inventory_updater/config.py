"""Inventory updater configuration."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-driven settings for the inventory updater."""

    shopify_webhook_secret: str = ""
    shopify_shop_domain: str = ""
    shopify_access_token: str = ""
    shopify_api_version: str = "2023-10"
    # Unset -> first location Shopify returns for the inventory item
    shopify_location_id: int | None = None

    host: str = "0.0.0.0"
    port: int = 3000
    http_timeout: float = 30.0

    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 30.0

    skip_duplicate_creates: bool = True
    enable_test_endpoints: bool = True

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def shopify_configured(self) -> bool:
        return bool(self.shopify_shop_domain and self.shopify_access_token)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (read once)."""
    return Settings()
