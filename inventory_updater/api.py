"""Operational routes — health, Shopify connectivity, manual test orders."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone

import pydantic
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from inventory_updater.errors import ValidationError
from inventory_updater.models import TestOrderRequest
from inventory_updater.shopify.client import describe_error

logger = logging.getLogger(__name__)

SERVICE_NAME = "Shopify Inventory Updater"

router = APIRouter(tags=["operational"])
test_router = APIRouter(prefix="/test", tags=["test"])


@router.get("/health")
async def health():
    """Liveness check (no Shopify call)."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/test-connection")
async def test_connection(request: Request):
    """Verify the Shopify credentials by fetching the shop record."""
    shopify = request.app.state.shopify
    try:
        shop = await asyncio.to_thread(shopify.get_shop)
    except Exception as e:
        logger.warning("Shopify connection test failed: %s", describe_error(e))
        return JSONResponse(
            {"status": "failed", "error": describe_error(e)},
            status_code=500,
        )
    return {"status": "connected", "shop": shop.get("name"), "domain": shop.get("domain")}


@test_router.post("/process-order")
async def process_test_order(request: Request):
    """Deduct stock for a simulated order, bypassing signatures and tracking."""
    try:
        payload = json.loads(await request.body() or b"{}")
        order = TestOrderRequest.model_validate(payload)
    except (ValueError, pydantic.ValidationError):
        raise ValidationError("orderId and lineItems are required") from None

    processor = request.app.state.processor
    try:
        result = await asyncio.to_thread(
            processor.process_test_order, order.orderId, order.lineItems
        )
    except Exception as e:
        logger.error("Test order processing failed: %s", e)
        return JSONResponse({"error": str(e)}, status_code=500)

    return {
        "status": "success",
        "message": f"Test order {result.order_id} processed successfully",
    }
