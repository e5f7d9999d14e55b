"""Lifecycle event processor — decides what each order event does to stock.

State per order id: Untracked -> Tracked (creation deduction) -> Untracked
(cancellation restores, fulfillment compensates Shopify's own deduction).

Failure contract:
- Each line item is adjusted independently; any error on one is logged and
  recorded, the remaining line items still run
- The order transitions regardless of line item failures, so tracking
  state never depends on which exception a client raised
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from inventory_updater.errors import InventoryUpdaterError
from inventory_updater.models import (
    Action,
    LifecycleEvent,
    LineItem,
    LineItemResult,
    Order,
    ProcessingResult,
    TestLineItem,
)
from inventory_updater.shopify.client import InventoryClient
from inventory_updater.tracking import OrderTracker

logger = logging.getLogger(__name__)

# Action taken on a tracked order for each terminal event
_TERMINAL_ACTIONS = {
    LifecycleEvent.ORDER_CANCELLED: Action.RESTORED,
    LifecycleEvent.ORDER_FULFILLED: Action.COMPENSATED,
}


class LifecycleEventProcessor:
    """Drives inventory adjustments for order lifecycle events.

    Args:
        inventory: Client that applies per-variant adjustments.
        tracker: Store of orders awaiting a terminal event.
        skip_duplicate_creates: Ignore order-created for an order that is
            already tracked (Shopify redelivers webhooks).
    """

    def __init__(
        self,
        inventory: InventoryClient,
        tracker: OrderTracker,
        skip_duplicate_creates: bool = True,
    ):
        self.inventory = inventory
        self.tracker = tracker
        self.skip_duplicate_creates = skip_duplicate_creates

    def process(self, event: LifecycleEvent, order: Order) -> ProcessingResult:
        """Apply one lifecycle event to one order."""
        with self.tracker.lock(order.key):
            if event is LifecycleEvent.ORDER_CREATED:
                return self._on_created(order)
            return self._on_terminal(event, order)

    def _on_created(self, order: Order) -> ProcessingResult:
        event = LifecycleEvent.ORDER_CREATED
        if self.skip_duplicate_creates and self.tracker.is_tracked(order.key):
            logger.info("Order %s already deducted, ignoring redelivery", order.key)
            return ProcessingResult(order.key, event, Action.SKIPPED_DUPLICATE)

        logger.info(
            "Processing order %s with %d items", order.key, len(order.line_items)
        )
        self.tracker.mark_tracked(order.key)
        results = self._adjust_all(order, sign=-1, verb="deduct")
        return ProcessingResult(order.key, event, Action.DEDUCTED, results)

    def _on_terminal(self, event: LifecycleEvent, order: Order) -> ProcessingResult:
        if not self.tracker.is_tracked(order.key):
            logger.info(
                "Order %s was not processed by this service, skipping %s",
                order.key,
                event.value,
            )
            return ProcessingResult(order.key, event, Action.SKIPPED_UNTRACKED)

        action = _TERMINAL_ACTIONS[event]
        verb = "restore" if action is Action.RESTORED else "compensate"
        results = self._adjust_all(order, sign=1, verb=verb)
        self.tracker.unmark(order.key)
        logger.info("Order %s %s", order.key, action.value)
        return ProcessingResult(order.key, event, action, results)

    def _adjust_all(self, order: Order, sign: int, verb: str) -> list[LineItemResult]:
        results = []
        for item in _stocked_items(order.line_items, order.key):
            delta = sign * item.quantity
            try:
                self.inventory.adjust(item.variant_id, delta)
            except InventoryUpdaterError as e:
                logger.error(
                    "Failed to %s inventory for variant %s: %s",
                    verb,
                    item.variant_id,
                    e.message,
                )
                results.append(LineItemResult(item.variant_id, delta, False, e.message))
                continue
            except Exception as e:
                logger.exception(
                    "Unexpected error trying to %s inventory for variant %s",
                    verb,
                    item.variant_id,
                )
                results.append(LineItemResult(item.variant_id, delta, False, str(e)))
                continue
            logger.info(
                "%s inventory for variant %s: %+d", verb.capitalize(), item.variant_id, delta
            )
            results.append(LineItemResult(item.variant_id, delta, True))
        return results

    def process_test_order(
        self, order_id: int | str, line_items: Iterable[TestLineItem]
    ) -> ProcessingResult:
        """Deduct stock for a simulated order without tracking it.

        The first failing line item aborts the run and its error propagates.
        """
        logger.info("Testing order processing: %s", order_id)
        results = []
        for item in line_items:
            delta = -item.quantity
            self.inventory.adjust(item.variant_id, delta)
            logger.info("Test: updated inventory for variant %s: %+d", item.variant_id, delta)
            results.append(LineItemResult(item.variant_id, delta, True))
        return ProcessingResult(str(order_id), None, Action.TESTED, results)


def _stocked_items(line_items: Iterable[LineItem], order_key: str) -> Iterable[LineItem]:
    for item in line_items:
        if item.variant_id is None:
            logger.warning("Order %s: skipping line item without variant", order_key)
            continue
        yield item
