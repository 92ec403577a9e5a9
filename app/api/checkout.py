"""
Checkout API.

Creates a pending order and a Stripe Checkout session for it. Prices come
from the product catalog; whatever the client sends as a price is ignored.
Points are only reserved on the order here; they are debited when Stripe
confirms the payment (see webhooks/stripe.py).
"""
import json
from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..models import Order, OrderStatus, Product, User
from ..middleware import optional_session
from ..services.loyalty import compute_redemption, get_points_config
from ..services.stripe_service import StripeService
from ..utils.exceptions import ValidationError

checkout_bp = Blueprint('checkout', __name__)

MAX_QUANTITY = 99


def _resolve_cart(items) -> list:
    """
    Validate cart items against the catalog.

    Returns:
        List of dicts with product, quantity, variant and unit price (cents)
    """
    if not isinstance(items, list) or not items:
        raise ValidationError('Cart is empty', field='items')

    resolved = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError('Invalid cart item', field='items')

        product_id = item.get('productId')
        product = None
        if product_id is not None:
            try:
                product = db.session.get(Product, int(product_id))
            except (TypeError, ValueError):
                product = None
        elif item.get('slug'):
            product = Product.query.filter_by(slug=item['slug']).first()

        if not product or not product.active:
            raise ValidationError(f'Unknown product: {product_id or item.get("slug")}', field='items')

        try:
            quantity = int(item.get('quantity', 1))
        except (TypeError, ValueError):
            raise ValidationError('Quantity must be a number', field='quantity')
        if quantity < 1 or quantity > MAX_QUANTITY:
            raise ValidationError(f'Quantity must be between 1 and {MAX_QUANTITY}', field='quantity')

        resolved.append({
            'product': product,
            'quantity': quantity,
            'variant': item.get('variant') or {},
        })
    return resolved


def _variant_label(variant: dict) -> str:
    return ' / '.join(str(v) for v in (variant.get('size'), variant.get('color')) if v)


@checkout_bp.route('/create-session', methods=['POST'])
@optional_session
def create_session():
    """
    Start checkout for a cart.

    Request body:
        items: [{productId, variant: {size, color}, quantity}]
        pointsToRedeem: int (optional, logged-in customers only)
        shippingAddress: object (optional)

    Returns:
        sessionId, url and orderId
    """
    data = request.get_json(silent=True) or {}
    stripe_service = StripeService()

    cart = _resolve_cart(data.get('items'))

    subtotal = 0
    line_items = []
    order_items = []
    for entry in cart:
        product = entry['product']
        subtotal += product.price * entry['quantity']
        label = _variant_label(entry['variant'])

        line_items.append(stripe_service.build_line_item(
            product.name, product.price, entry['quantity'], description=label or None
        ))
        order_items.append({
            'productId': product.id,
            'name': product.name,
            'variant': entry['variant'],
            'quantity': entry['quantity'],
            'price': product.price / 100,
        })

    try:
        points_requested = int(data.get('pointsToRedeem') or 0)
    except (TypeError, ValueError):
        raise ValidationError('pointsToRedeem must be an integer', field='pointsToRedeem')
    if points_requested < 0:
        raise ValidationError('pointsToRedeem cannot be negative', field='pointsToRedeem')

    user = db.session.get(User, g.user_id) if g.user_id else None
    points_used = 0
    discount = 0

    if user and points_requested > 0:
        config = get_points_config()
        redemption = compute_redemption(subtotal, user.points_balance, points_requested, config)
        if redemption.can_redeem:
            points_used = redemption.points_to_use
            discount = redemption.discount_amount
        else:
            current_app.logger.info(
                f'Points redemption skipped for user {user.id}: {redemption.reason or "nothing redeemable"}'
            )

    order = Order(
        user_id=user.id if user else None,
        status=OrderStatus.PENDING.value,
        subtotal=subtotal,
        discount=discount,
        points_used=points_used,
        total=subtotal - discount,
        items_json=json.dumps(order_items),
        shipping_address_json=json.dumps(data['shippingAddress']) if data.get('shippingAddress') else None,
    )
    db.session.add(order)
    db.session.flush()

    site_url = current_app.config['SITE_URL']
    try:
        session = stripe_service.create_checkout_session(
            order_id=order.id,
            line_items=line_items,
            success_url=f'{site_url}/checkout-success.html?order={order.id}',
            cancel_url=f'{site_url}/checkout.html?cancelled=true',
            customer_email=user.email if user else None,
            user_id=user.id if user else None,
            points_used=points_used,
            discount_cents=discount,
        )
    except Exception:
        db.session.rollback()
        raise

    order.stripe_session_id = session['session_id']
    db.session.commit()

    current_app.logger.info(
        f'Checkout started: order {order.id} subtotal {subtotal} discount {discount} '
        f'points {points_used} user {order.user_id}'
    )

    return jsonify({
        'sessionId': session['session_id'],
        'url': session['url'],
        'orderId': order.id,
    })
