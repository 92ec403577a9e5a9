"""
Webhook handlers for LUNARA.
Processes Stripe payment events for checkout settlement.
"""
from .stripe import stripe_webhook_bp, StripeWebhookHandler

__all__ = [
    'stripe_webhook_bp',
    'StripeWebhookHandler',
]
