"""Shopify Admin REST API client for inventory adjustments.

Adjusting stock for a variant takes two lookups and one mutation:
variant -> inventory item -> inventory levels (per location) -> adjust.
Every HTTP call goes through the retry policy, but the adjust POST is only
resent when Shopify cannot have applied it. The inventory layer turns the
remaining failures into the service's error taxonomy.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from inventory_updater.errors import (
    AdjustmentError,
    NoInventoryLevelError,
    ResolutionError,
    UnexpectedError,
)
from inventory_updater.models import InventoryAdjustment
from inventory_updater.shopify.retry import RetryPolicy

logger = logging.getLogger(__name__)

# Errors raised by a Shopify call that count as a failed request
_REQUEST_ERRORS = (httpx.HTTPError, ValueError)


def describe_error(exc: Exception) -> str:
    """Human-readable message for a failed Shopify call."""
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        try:
            body = json.dumps(response.json())
        except ValueError:
            body = response.text
        return f"Shopify API Error: {response.status_code} - {body}"
    return str(exc) or type(exc).__name__


class ShopifyClient:
    """Authenticated JSON client for one shop's versioned admin API."""

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: str = "2023-10",
        timeout: float = 30.0,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.shop_domain = shop_domain
        self.api_version = api_version
        self._access_token = access_token
        self._timeout = timeout
        self._transport = transport
        self._http: httpx.Client | None = None
        policy = retry_policy or RetryPolicy()
        self._request = policy.wrap(self._send)
        # POSTs here mutate stock, so a resend could apply them twice
        self._mutate = policy.wrap(self._send, idempotent=False)

    @classmethod
    def from_settings(
        cls, settings, transport: httpx.BaseTransport | None = None
    ) -> ShopifyClient:
        return cls(
            shop_domain=settings.shopify_shop_domain,
            access_token=settings.shopify_access_token,
            api_version=settings.shopify_api_version,
            timeout=settings.http_timeout,
            retry_policy=RetryPolicy.from_settings(settings),
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}"

    def _client(self) -> httpx.Client:
        if not self.shop_domain:
            raise UnexpectedError("SHOPIFY_SHOP_DOMAIN is not configured")
        if self._http is None:
            self._http = httpx.Client(
                base_url=self.base_url,
                headers={
                    "X-Shopify-Access-Token": self._access_token,
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._http

    def _send(self, method: str, path: str, **kwargs: Any) -> dict:
        response = self._client().request(method, path, **kwargs)
        response.raise_for_status()
        if not response.content:
            return {}
        return response.json()

    def get(self, path: str, params: dict | None = None) -> dict:
        return self._request("GET", path, params=params)

    def post(self, path: str, payload: dict) -> dict:
        return self._mutate("POST", path, json=payload)

    def get_shop(self) -> dict:
        return self.get("/shop.json").get("shop") or {}

    def get_variant(self, variant_id: int | str) -> dict:
        return self.get(f"/variants/{variant_id}.json").get("variant") or {}

    def get_inventory_levels(self, inventory_item_id: int | str) -> list[dict]:
        data = self.get(
            "/inventory_levels.json",
            params={"inventory_item_ids": str(inventory_item_id)},
        )
        return data.get("inventory_levels") or []

    def adjust_inventory_level(
        self, location_id: int | str, inventory_item_id: int | str, delta: int
    ) -> dict:
        return self.post(
            "/inventory_levels/adjust.json",
            {
                "location_id": location_id,
                "inventory_item_id": inventory_item_id,
                "available_adjustment": delta,
            },
        )

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
            self._http = None


class InventoryClient:
    """Applies signed stock adjustments to variants.

    Args:
        shopify: Client for the shop's admin API.
        location_id: Location to adjust. When None, the first location
            Shopify returns for the inventory item is used.
    """

    def __init__(self, shopify: ShopifyClient, location_id: int | str | None = None):
        self.shopify = shopify
        self.location_id = location_id

    def adjust(self, variant_id: int | str, delta: int) -> InventoryAdjustment:
        """Adjust the available stock of one variant by delta.

        Raises:
            ResolutionError: variant or inventory level lookup failed.
            NoInventoryLevelError: no inventory level to adjust.
            AdjustmentError: Shopify rejected the adjustment.
        """
        try:
            variant = self.shopify.get_variant(variant_id)
        except _REQUEST_ERRORS as e:
            raise ResolutionError(
                f"Variant lookup failed for variant {variant_id}: {describe_error(e)}",
                variant_id,
            ) from e

        inventory_item_id = variant.get("inventory_item_id")
        if not inventory_item_id:
            raise ResolutionError(
                f"Variant {variant_id} has no inventory item", variant_id
            )

        try:
            levels = self.shopify.get_inventory_levels(inventory_item_id)
        except _REQUEST_ERRORS as e:
            raise ResolutionError(
                f"Inventory level lookup failed for variant {variant_id}: {describe_error(e)}",
                variant_id,
            ) from e

        if not levels:
            raise NoInventoryLevelError(
                f"No inventory levels found for variant {variant_id}", variant_id
            )

        level = self._select_level(levels, variant_id)
        location_id = level["location_id"]
        available = level.get("available")
        logger.info("Current inventory for variant %s: %s", variant_id, available)

        try:
            self.shopify.adjust_inventory_level(location_id, inventory_item_id, delta)
        except _REQUEST_ERRORS as e:
            raise AdjustmentError(
                f"Inventory adjustment failed for variant {variant_id}: {describe_error(e)}",
                variant_id,
            ) from e

        logger.info("Inventory adjusted by %+d for variant %s", delta, variant_id)
        return InventoryAdjustment(
            variant_id=variant_id,
            inventory_item_id=inventory_item_id,
            location_id=location_id,
            delta=delta,
            available_before=available,
        )

    def _select_level(self, levels: list[dict], variant_id: int | str) -> dict:
        if self.location_id is None:
            return levels[0]
        for level in levels:
            if str(level.get("location_id")) == str(self.location_id):
                return level
        raise NoInventoryLevelError(
            f"Variant {variant_id} is not stocked at location {self.location_id}",
            variant_id,
        )
