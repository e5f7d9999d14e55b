"""Shopify Admin API access: HTTP client, inventory adjustments, retries."""

from inventory_updater.shopify.client import InventoryClient, ShopifyClient
from inventory_updater.shopify.retry import RetryPolicy, retry_with_backoff

__all__ = ["InventoryClient", "RetryPolicy", "ShopifyClient", "retry_with_backoff"]
