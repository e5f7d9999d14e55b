"""Webhook HTTP handlers — FastAPI routes for Shopify order webhooks.

Each handler:
1. Reads raw body (needed for HMAC verification)
2. Verifies the Shopify signature (dependency, runs before the handler)
3. Dispatches the order to the lifecycle processor off the event loop
4. Returns 200 "OK" once the event was processed, even if some line items
   failed to adjust (failures are logged, Shopify must not retry)

Security contract:
- Return 401 only for signature failures
- Never return error details to the webhook caller (info disclosure)
- Log all webhook activity for audit trail
"""

from __future__ import annotations

import asyncio
import logging
import time

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse

from inventory_updater.errors import AuthenticationError
from inventory_updater.models import LifecycleEvent
from inventory_updater.webhooks.verification import verify_webhook

logger = logging.getLogger(__name__)

# Webhook receive counter for monitoring (in-memory)
_webhook_counts: dict[str, int] = {}


def _log_webhook(event_name: str, order_id: str, status: str) -> None:
    """Audit log for webhook activity."""
    _webhook_counts[event_name] = _webhook_counts.get(event_name, 0) + 1
    logger.info(
        "WEBHOOK_AUDIT event=%s order=%s status=%s count=%d",
        event_name,
        order_id,
        status,
        _webhook_counts[event_name],
    )


async def verified_body(request: Request) -> bytes:
    """Raw request body, only if its Shopify signature checks out."""
    body = await request.body()
    headers = {k.lower(): v for k, v in request.headers.items()}
    secret = request.app.state.settings.shopify_webhook_secret
    if not verify_webhook(body, headers, secret):
        logger.warning("Unauthorized webhook request: %s", request.url.path)
        _log_webhook(request.url.path.rsplit("/", 1)[-1], "unknown", "signature_failed")
        raise AuthenticationError("Unauthorized")
    logger.debug("Webhook verified successfully")
    return body


async def _handle_webhook(request: Request, event: LifecycleEvent, body: bytes) -> PlainTextResponse:
    """Process a verified webhook. 200 on success, 500 on any failure."""
    start = time.time()
    dispatcher = request.app.state.dispatcher

    try:
        result = await asyncio.to_thread(dispatcher.dispatch, event.value, body)
    except Exception:
        logger.exception("Error processing %s webhook", event.value)
        _log_webhook(event.value, "unknown", "failed")
        return PlainTextResponse("Internal Server Error", status_code=500)

    _log_webhook(event.value, result.order_id, result.action.value)
    if result.failed:
        logger.warning(
            "Order %s: %d of %d line item adjustments failed",
            result.order_id,
            result.failed,
            len(result.line_results),
        )

    elapsed_ms = (time.time() - start) * 1000
    logger.debug("Webhook processed in %.1fms: %s", elapsed_ms, event.value)
    return PlainTextResponse("OK", status_code=200)


router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/order-created")
async def order_created(request: Request, body: bytes = Depends(verified_body)):
    """Deduct stock for a new order."""
    return await _handle_webhook(request, LifecycleEvent.ORDER_CREATED, body)


@router.post("/order-cancelled")
async def order_cancelled(request: Request, body: bytes = Depends(verified_body)):
    """Restore stock for a cancelled order this service deducted."""
    return await _handle_webhook(request, LifecycleEvent.ORDER_CANCELLED, body)


@router.post("/order-fulfilled")
async def order_fulfilled(request: Request, body: bytes = Depends(verified_body)):
    """Compensate Shopify's fulfillment deduction for an order this service deducted."""
    return await _handle_webhook(request, LifecycleEvent.ORDER_FULFILLED, body)


def register_webhook_routes(app: FastAPI) -> None:
    """Register webhook endpoint routes on the FastAPI app."""
    app.include_router(router)
    logger.info(
        "Webhook routes registered: /webhooks/{order-created,order-cancelled,order-fulfilled}"
    )
