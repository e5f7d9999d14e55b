"""Webhook event dispatcher — routes order webhooks to the lifecycle processor.

Events are named either by route (``order-created``) or by Shopify topic
(``orders/create``); both resolve to the same LifecycleEvent.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import pydantic

from inventory_updater.errors import ValidationError
from inventory_updater.models import LifecycleEvent, Order, ProcessingResult
from inventory_updater.processor import LifecycleEventProcessor

logger = logging.getLogger(__name__)

# Shopify webhook topic -> lifecycle event
_SHOPIFY_TOPIC_MAP: dict[str, LifecycleEvent] = {
    "orders/create": LifecycleEvent.ORDER_CREATED,
    "orders/cancelled": LifecycleEvent.ORDER_CANCELLED,
    "orders/fulfilled": LifecycleEvent.ORDER_FULFILLED,
}


def resolve_event(name: str) -> LifecycleEvent:
    """Map a route name or Shopify topic to a lifecycle event."""
    if name in _SHOPIFY_TOPIC_MAP:
        return _SHOPIFY_TOPIC_MAP[name]
    try:
        return LifecycleEvent(name)
    except ValueError:
        raise ValidationError(f"Unknown webhook event: {name}") from None


def parse_order(body: bytes | dict[str, Any]) -> Order:
    """Parse a webhook body into an Order."""
    try:
        payload = json.loads(body) if isinstance(body, (bytes, str)) else body
        return Order.model_validate(payload)
    except (ValueError, pydantic.ValidationError) as e:
        raise ValidationError(f"Invalid order payload: {e}") from e


class WebhookDispatcher:
    """Routes named order events to the lifecycle processor."""

    def __init__(self, processor: LifecycleEventProcessor):
        self.processor = processor

    def dispatch(self, event_name: str, body: bytes | dict[str, Any]) -> ProcessingResult:
        event = resolve_event(event_name)
        order = parse_order(body)
        logger.info("Dispatching %s for order %s (%s)", event.value, order.key, order.label)
        return self.processor.process(event, order)
