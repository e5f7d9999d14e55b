"""Shared fixtures for the inventory updater test suite.

FakeShop stands in for the Shopify Admin REST API behind an
httpx.MockTransport, so the real ShopifyClient code runs end to end.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import re

import httpx
import pytest
from fastapi.testclient import TestClient

from inventory_updater.app import create_app
from inventory_updater.config import Settings
from inventory_updater.shopify.client import ShopifyClient
from inventory_updater.tracking import InMemoryOrderTracker

WEBHOOK_SECRET = "test-secret"
SHOP_DOMAIN = "test-shop.myshopify.com"

_VARIANT_PATH = re.compile(r"/admin/api/[^/]+/variants/([^/]+)\.json")


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Compute a valid Shopify webhook signature."""
    digest = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


class FakeShop:
    """In-memory Shopify store answering admin API requests."""

    def __init__(self) -> None:
        # variant id -> inventory item id
        self.variants: dict[str, int] = {"55": 5500, "66": 6600, "77": 7700}
        # inventory item id -> levels
        self.levels: dict[int, list[dict]] = {
            5500: [{"location_id": 1, "inventory_item_id": 5500, "available": 10}],
            6600: [
                {"location_id": 1, "inventory_item_id": 6600, "available": 4},
                {"location_id": 2, "inventory_item_id": 6600, "available": 9},
            ],
            7700: [],
        }
        self.requests: list[httpx.Request] = []
        self.adjustments: list[dict] = []
        # path suffix -> queued status codes to answer with
        self._failures: dict[str, list[int]] = {}

    def fail(self, path_suffix: str, status: int, times: int = 100) -> None:
        self._failures[path_suffix] = [status] * times

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        for suffix, statuses in self._failures.items():
            if path.endswith(suffix) and statuses:
                return httpx.Response(statuses.pop(0), json={"errors": "Simulated failure"})

        if path.endswith("/shop.json"):
            return httpx.Response(
                200, json={"shop": {"name": "Test Shop", "domain": "shop.example.com"}}
            )

        match = _VARIANT_PATH.fullmatch(path)
        if match:
            variant_id = match.group(1)
            if variant_id not in self.variants:
                return httpx.Response(404, json={"errors": "Not Found"})
            return httpx.Response(
                200,
                json={"variant": {"id": int(variant_id), "inventory_item_id": self.variants[variant_id]}},
            )

        if path.endswith("/inventory_levels.json"):
            item_id = int(request.url.params["inventory_item_ids"])
            return httpx.Response(200, json={"inventory_levels": self.levels.get(item_id, [])})

        if path.endswith("/inventory_levels/adjust.json"):
            payload = json.loads(request.content)
            self.adjustments.append(payload)
            return httpx.Response(200, json={"inventory_level": payload})

        return httpx.Response(404, json={"errors": "Not Found"})

    def deltas(self) -> dict[int, int]:
        """Net adjustment per inventory item."""
        net: dict[int, int] = {}
        for adj in self.adjustments:
            item = adj["inventory_item_id"]
            net[item] = net.get(item, 0) + adj["available_adjustment"]
        return net


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        shopify_webhook_secret=WEBHOOK_SECRET,
        shopify_shop_domain=SHOP_DOMAIN,
        shopify_access_token="shpat_test",
        retry_max_attempts=0,
    )


@pytest.fixture()
def shop() -> FakeShop:
    return FakeShop()


@pytest.fixture()
def shopify(settings, shop) -> ShopifyClient:
    client = ShopifyClient.from_settings(settings, transport=httpx.MockTransport(shop.handle))
    yield client
    client.close()


@pytest.fixture()
def tracker() -> InMemoryOrderTracker:
    return InMemoryOrderTracker()


@pytest.fixture()
def app(settings, shopify, tracker):
    return create_app(settings, shopify=shopify, tracker=tracker)


@pytest.fixture()
def client(app):
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def post_webhook(client):
    """POST a signed webhook: post_webhook(event_name, payload, signature=None)."""

    def _post(event_name: str, payload: dict, signature: str | None = None, body: bytes | None = None):
        raw = body if body is not None else json.dumps(payload).encode()
        sig = signature if signature is not None else sign(raw)
        return client.post(
            f"/webhooks/{event_name}",
            content=raw,
            headers={"X-Shopify-Hmac-Sha256": sig, "Content-Type": "application/json"},
        )

    return _post
