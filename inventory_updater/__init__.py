"""Shopify inventory updater.

Keeps Shopify stock counts accurate as orders move through their lifecycle.
Inventory is deducted when an order is created and restored (cancellation)
or compensated (fulfillment, where Shopify deducts a second time) when the
order reaches a terminal event.
"""

__version__ = "1.0.0"
