"""
Stripe integration service for storefront checkout.
Handles checkout sessions, points-discount coupons and webhook verification.
"""
import json
import stripe
from typing import Optional, List, Dict, Any
from flask import current_app

from ..utils.exceptions import ConfigurationError, GatewayError, SignatureError, ValidationError


class StripeService:
    """Service for Stripe Checkout operations."""

    def __init__(self, api_key: str = None, currency: str = None):
        api_key = api_key or current_app.config.get('STRIPE_SECRET_KEY')
        if not api_key:
            raise ConfigurationError('STRIPE_SECRET_KEY is not configured')

        stripe.api_key = api_key
        stripe.api_version = current_app.config.get('STRIPE_API_VERSION')
        self.currency = currency or current_app.config.get('STRIPE_CURRENCY', 'eur')
        self.coupon_prefix = current_app.config.get('STRIPE_COUPON_PREFIX', 'lunara_points')

    def build_line_item(self, name: str, unit_amount: int, quantity: int,
                        description: str = None) -> Dict[str, Any]:
        product_data = {'name': name}
        if description:
            product_data['description'] = description
        return {
            'price_data': {
                'currency': self.currency,
                'product_data': product_data,
                'unit_amount': unit_amount,
            },
            'quantity': quantity,
        }

    def create_checkout_session(
        self,
        order_id: str,
        line_items: List[Dict[str, Any]],
        success_url: str,
        cancel_url: str,
        customer_email: Optional[str] = None,
        user_id: Optional[str] = None,
        points_used: int = 0,
        discount_cents: int = 0
    ) -> dict:
        """
        Create a one-off payment Checkout session for an order.

        Args:
            order_id: Pending order the session pays for
            line_items: Stripe line items (non-positive amounts are dropped)
            success_url: URL to redirect after successful payment
            cancel_url: URL to redirect if payment cancelled
            customer_email: Pre-fill email for logged-in customers
            user_id: Account id, echoed back in the webhook metadata
            points_used: Points redeemed on this order
            discount_cents: Points discount, applied as a coupon

        Returns:
            Dict with session_id and url
        """
        session_params = {
            'mode': 'payment',
            'payment_method_types': ['card'],
            # Stripe rejects negative line items; discounts go through coupons
            'line_items': [li for li in line_items if li['price_data']['unit_amount'] > 0],
            'success_url': success_url,
            'cancel_url': cancel_url,
            'metadata': {
                'orderId': order_id,
                'userId': user_id or '',
                'pointsUsed': str(points_used),
                'discountCents': str(discount_cents),
            },
        }

        if customer_email:
            session_params['customer_email'] = customer_email

        try:
            if discount_cents > 0:
                session_params['discounts'] = [{
                    'coupon': self.get_or_create_points_coupon(discount_cents)
                }]
            session = stripe.checkout.Session.create(**session_params)
        except stripe.StripeError as e:
            current_app.logger.error(f'Stripe checkout session failed for order {order_id}: {e}')
            raise GatewayError('Payment provider unavailable, please try again', e)

        return {
            'session_id': session.id,
            'url': session.url
        }

    def get_or_create_points_coupon(self, amount_cents: int) -> str:
        """
        Coupon worth exactly amount_cents, shared by all orders with that discount.

        Returns:
            Stripe coupon id (lunara_points_<amount>)
        """
        coupon_id = f'{self.coupon_prefix}_{amount_cents}'

        try:
            stripe.Coupon.retrieve(coupon_id)
            return coupon_id
        except stripe.InvalidRequestError:
            pass

        try:
            coupon = stripe.Coupon.create(
                id=coupon_id,
                amount_off=amount_cents,
                currency=self.currency,
                name=f'LUNARA Points discount ({amount_cents / 100:.2f})',
                duration='once',
            )
        except stripe.InvalidRequestError as e:
            # A concurrent checkout created it between retrieve and create
            if getattr(e, 'code', None) != 'resource_already_exists':
                raise
            current_app.logger.info(f'Stripe coupon {coupon_id} already created concurrently')
            return coupon_id

        current_app.logger.info(f'Created Stripe coupon {coupon_id}')
        return coupon.id

    @staticmethod
    def construct_webhook_event(payload: bytes, sig_header: str, webhook_secret: str,
                                tolerance: int = None) -> dict:
        """
        Verify a Stripe webhook signature and decode the event.

        Args:
            payload: Raw request body
            sig_header: Stripe-Signature header
            webhook_secret: Webhook signing secret
            tolerance: Max age of the signature timestamp in seconds

        Returns:
            Event as a plain dict

        Raises:
            SignatureError: Signature missing, invalid or stale
            ValidationError: Body is not a JSON event
        """
        if not webhook_secret:
            raise ConfigurationError('STRIPE_WEBHOOK_SECRET is not configured')
        if not sig_header:
            raise SignatureError('Missing Stripe-Signature header')

        if isinstance(payload, bytes):
            try:
                payload = payload.decode('utf-8')
            except UnicodeDecodeError:
                raise ValidationError('Webhook payload is not valid UTF-8')

        try:
            stripe.WebhookSignature.verify_header(
                payload, sig_header, webhook_secret,
                tolerance or stripe.Webhook.DEFAULT_TOLERANCE
            )
        except stripe.SignatureVerificationError as e:
            raise SignatureError(f'Webhook signature verification failed: {e}')

        try:
            event = json.loads(payload)
        except ValueError:
            raise ValidationError('Webhook payload is not valid JSON')

        if not isinstance(event, dict) or 'type' not in event:
            raise ValidationError('Webhook payload is not a Stripe event')
        return event
