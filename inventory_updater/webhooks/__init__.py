"""Webhook inbound system.

Receives Shopify order lifecycle webhooks. Each webhook is
signature-verified, then dispatched to the lifecycle processor.
"""
