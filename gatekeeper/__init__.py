"""Webhook Gatekeeper - token-guarded relay for a private webhook endpoint."""

__version__ = "1.0.0"
