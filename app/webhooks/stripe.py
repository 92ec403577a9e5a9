"""
Stripe webhook endpoint.
Handles checkout payment events from Stripe.
"""
from flask import Blueprint, request, jsonify, current_app

from ..services.settlement_service import SettlementService, PaymentConfirmation
from ..services.stripe_service import StripeService
from ..utils.exceptions import SignatureError

stripe_webhook_bp = Blueprint('stripe_webhook', __name__)

SETTLED_PAYMENT_STATUSES = ('paid', 'no_payment_required')


def _int_metadata(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _confirmation_from_session(session: dict, event_id: str = None):
    metadata = session.get('metadata') or {}
    order_id = SettlementService.find_order_id(metadata.get('orderId'), session.get('id'))
    if not order_id:
        return None
    return PaymentConfirmation(
        order_id=order_id,
        user_id=metadata.get('userId') or None,
        points_used=_int_metadata(metadata.get('pointsUsed')),
        session_id=session.get('id'),
        event_id=event_id,
    )


class StripeWebhookHandler:
    """Routes verified Stripe events to the settlement service."""

    def __init__(self, settlement: SettlementService = None):
        self.settlement = settlement or SettlementService()

    def handle_event(self, event: dict) -> dict:
        """
        Route and handle a verified Stripe event.

        Returns:
            Result dict with handled status
        """
        event_type = event.get('type')
        data = (event.get('data') or {}).get('object') or {}

        handlers = {
            'checkout.session.completed': self._handle_checkout_completed,
            'checkout.session.async_payment_succeeded': self._handle_async_payment_succeeded,
            'checkout.session.expired': self._handle_checkout_expired,
        }

        handler = handlers.get(event_type)
        if handler:
            return handler(data, event.get('id'))

        return {'handled': False, 'event_type': event_type}

    def _settle(self, session: dict, event_id: str) -> dict:
        confirmation = _confirmation_from_session(session, event_id)
        if not confirmation:
            current_app.logger.warning(f"Checkout session {session.get('id')} has no matching order")
            return {'handled': False, 'error': 'No order for checkout session'}

        result = self.settlement.confirm_payment(confirmation)
        if result.order is None:
            return {'handled': False, 'error': f'Order {confirmation.order_id} not found'}
        return {'handled': True, 'action': 'settled' if result.applied else 'duplicate', **result.to_dict()}

    def _handle_checkout_completed(self, session: dict, event_id: str) -> dict:
        """Payment done, unless the method is asynchronous (then wait for async_payment_succeeded)."""
        payment_status = session.get('payment_status')
        if payment_status not in SETTLED_PAYMENT_STATUSES:
            current_app.logger.info(
                f"Checkout session {session.get('id')} completed with payment_status={payment_status}; "
                'waiting for async payment'
            )
            return {'handled': True, 'action': 'awaiting_payment'}
        return self._settle(session, event_id)

    def _handle_async_payment_succeeded(self, session: dict, event_id: str) -> dict:
        return self._settle(session, event_id)

    def _handle_checkout_expired(self, session: dict, event_id: str) -> dict:
        confirmation = _confirmation_from_session(session, event_id)
        if not confirmation:
            return {'handled': False, 'error': 'No order for checkout session'}

        cancelled = self.settlement.cancel_expired_checkout(confirmation.order_id)
        return {
            'handled': True,
            'action': 'cancelled' if cancelled else 'ignored',
            'order_id': confirmation.order_id,
        }


@stripe_webhook_bp.route('', methods=['POST'])
def handle_stripe_webhook():
    """
    Handle incoming Stripe webhook events.

    Stripe sends events for:
    - checkout.session.completed (settle the order)
    - checkout.session.async_payment_succeeded (settle delayed payments)
    - checkout.session.expired (cancel the pending order)

    Anything else is acknowledged and ignored.
    """
    payload = request.get_data()
    sig_header = request.headers.get('Stripe-Signature')

    try:
        event = StripeService.construct_webhook_event(
            payload, sig_header, current_app.config.get('STRIPE_WEBHOOK_SECRET')
        )
    except SignatureError as e:
        current_app.logger.warning(f'Rejected Stripe webhook: {e.message}')
        raise

    result = StripeWebhookHandler().handle_event(event)
    current_app.logger.info(f"Stripe webhook {event.get('type')} ({event.get('id')}): {result}")

    return jsonify({'received': True, **result})
