"""FastAPI application factory for the inventory updater."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from inventory_updater import __version__
from inventory_updater.api import SERVICE_NAME, router, test_router
from inventory_updater.config import Settings, get_settings
from inventory_updater.errors import InventoryUpdaterError
from inventory_updater.processor import LifecycleEventProcessor
from inventory_updater.shopify.client import InventoryClient, ShopifyClient
from inventory_updater.tracking import InMemoryOrderTracker, OrderTracker
from inventory_updater.webhooks.dispatcher import WebhookDispatcher
from inventory_updater.webhooks.handlers import register_webhook_routes

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the root logger."""
    root = logging.getLogger()
    if not any(getattr(h, "_inventory_updater", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._inventory_updater = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level.upper())


def error_response_handler(request: Request, exc: InventoryUpdaterError):
    """Translate service errors to HTTP responses.

    Webhook callers get a bare status line, everyone else a JSON error.
    """
    if request.url.path.startswith("/webhooks/"):
        text = exc.message if exc.status_code < 500 else "Internal Server Error"
        return PlainTextResponse(text, status_code=exc.status_code)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


def _log_startup(settings: Settings) -> None:
    base = f"http://localhost:{settings.port}"
    logger.info("%s running on port %d", SERVICE_NAME, settings.port)
    logger.info("Webhook endpoints:")
    logger.info("  - Order Created: %s/webhooks/order-created", base)
    logger.info("  - Order Cancelled: %s/webhooks/order-cancelled", base)
    logger.info("  - Order Fulfilled: %s/webhooks/order-fulfilled", base)
    logger.info("Health check: %s/health", base)
    logger.info("Test connection: %s/test-connection", base)
    if not settings.shopify_configured:
        logger.warning("SHOPIFY_SHOP_DOMAIN / SHOPIFY_ACCESS_TOKEN not set — API calls will fail")
    if not settings.shopify_webhook_secret:
        logger.warning("SHOPIFY_WEBHOOK_SECRET not set — all webhooks will be rejected")


def create_app(
    settings: Settings | None = None,
    shopify: ShopifyClient | None = None,
    tracker: OrderTracker | None = None,
) -> FastAPI:
    """Build the app and wire its collaborators onto app.state.

    Args:
        settings: Defaults to the environment settings.
        shopify: Defaults to a client built from settings.
        tracker: Defaults to a fresh in-memory tracker.
    """
    settings = settings or get_settings()
    shopify = shopify or ShopifyClient.from_settings(settings)
    tracker = tracker if tracker is not None else InMemoryOrderTracker()

    processor = LifecycleEventProcessor(
        InventoryClient(shopify, location_id=settings.shopify_location_id),
        tracker,
        skip_duplicate_creates=settings.skip_duplicate_creates,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _log_startup(settings)
        yield
        shopify.close()
        logger.info("%s stopped", SERVICE_NAME)

    app = FastAPI(title=SERVICE_NAME, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.shopify = shopify
    app.state.tracker = tracker
    app.state.processor = processor
    app.state.dispatcher = WebhookDispatcher(processor)

    app.add_exception_handler(InventoryUpdaterError, error_response_handler)

    register_webhook_routes(app)
    app.include_router(router)
    if settings.enable_test_endpoints:
        app.include_router(test_router)

    return app
