"""Tests for webhook event routing and order parsing."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from inventory_updater.errors import ValidationError
from inventory_updater.models import LifecycleEvent, Order
from inventory_updater.webhooks.dispatcher import (
    WebhookDispatcher,
    parse_order,
    resolve_event,
)


class TestResolveEvent:
    """Route names and Shopify topics map to lifecycle events."""

    @pytest.mark.parametrize(
        "name, event",
        [
            ("order-created", LifecycleEvent.ORDER_CREATED),
            ("order-cancelled", LifecycleEvent.ORDER_CANCELLED),
            ("order-fulfilled", LifecycleEvent.ORDER_FULFILLED),
            ("orders/create", LifecycleEvent.ORDER_CREATED),
            ("orders/cancelled", LifecycleEvent.ORDER_CANCELLED),
            ("orders/fulfilled", LifecycleEvent.ORDER_FULFILLED),
        ],
    )
    def test_known_events(self, name, event):
        assert resolve_event(name) is event

    def test_unknown_event(self):
        with pytest.raises(ValidationError):
            resolve_event("orders/paid")


class TestParseOrder:
    """Webhook bodies parse into Orders, ignoring unmodelled fields."""

    def test_parses_shopify_payload(self):
        body = json.dumps({
            "id": 1001,
            "order_number": 1,
            "email": "buyer@example.com",
            "line_items": [{"variant_id": 55, "quantity": 2, "title": "Tee", "price": "9.99"}],
        }).encode()
        order = parse_order(body)
        assert order.key == "1001"
        assert order.line_items[0].variant_id == 55
        assert order.line_items[0].quantity == 2

    def test_string_id(self):
        assert parse_order({"id": "gid-1", "line_items": []}).key == "gid-1"

    def test_missing_line_items_defaults_empty(self):
        assert parse_order({"id": 1}).line_items == []

    def test_label_prefers_order_number(self):
        assert parse_order({"id": 1, "name": "#1001", "order_number": 1001}).label == "1001"

    def test_invalid_json(self):
        with pytest.raises(ValidationError):
            parse_order(b"{not json")

    def test_missing_id(self):
        with pytest.raises(ValidationError):
            parse_order({"line_items": []})

    def test_non_positive_quantity(self):
        with pytest.raises(ValidationError):
            parse_order({"id": 1, "line_items": [{"variant_id": 55, "quantity": 0}]})


class TestWebhookDispatcher:
    """dispatch() hands the parsed order to the processor."""

    def test_dispatches_to_processor(self):
        processor = MagicMock()
        WebhookDispatcher(processor).dispatch("order-fulfilled", {"id": 1001, "line_items": []})
        event, order = processor.process.call_args[0]
        assert event is LifecycleEvent.ORDER_FULFILLED
        assert isinstance(order, Order)
        assert order.key == "1001"

    def test_bad_payload_never_reaches_processor(self):
        processor = MagicMock()
        with pytest.raises(ValidationError):
            WebhookDispatcher(processor).dispatch("order-created", b"[]")
        processor.process.assert_not_called()
