"""
Order history API.
"""
from flask import Blueprint, jsonify, g

from ..extensions import db
from ..models import Order
from ..middleware import require_session, optional_session
from ..utils.exceptions import NotFoundError, ForbiddenError

orders_bp = Blueprint('orders', __name__)

ORDER_HISTORY_LIMIT = 50


@orders_bp.route('', methods=['GET'])
@require_session
def list_orders():
    """The customer's latest orders, newest first."""
    orders = Order.query.filter_by(user_id=g.user_id).order_by(
        Order.created_at.desc()
    ).limit(ORDER_HISTORY_LIMIT).all()

    return jsonify({'orders': [o.to_dict() for o in orders]})


@orders_bp.route('/<order_id>', methods=['GET'])
@optional_session
def get_order(order_id):
    """
    Order details.

    Guest orders can be looked up by id (the checkout success page does
    this). Orders that belong to an account are only visible to that account.
    """
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError('Order', order_id)

    if order.user_id and order.user_id != g.user_id:
        raise ForbiddenError('You do not have access to this order')

    return jsonify({'order': order.to_dict()})
