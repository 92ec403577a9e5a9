"""
Points API endpoints for the LUNARA loyalty program.

Handles:
- Points balance and tier progress
- Points history
- Redemption preview for the cart
"""
from flask import Blueprint, request, jsonify

from ..middleware import require_session, get_current_user
from ..services.loyalty import compute_redemption, get_points_config, MIN_ORDER_NOT_MET
from ..services.points_service import PointsService
from ..utils.exceptions import ValidationError, MinOrderNotMetError

points_bp = Blueprint('points', __name__)


def _int_field(data: dict, name: str, default=None):
    value = data.get(name, default)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} must be an integer', field=name)


@points_bp.route('', methods=['GET'])
@require_session
def get_points():
    """
    Balance, current and next tier, and the public program rules.
    """
    user = get_current_user()
    return jsonify(PointsService().get_summary(user))


@points_bp.route('/history', methods=['GET'])
@require_session
def get_history():
    """Latest 50 ledger entries, newest first."""
    user = get_current_user()
    transactions = PointsService().get_history(user.id)
    return jsonify({'transactions': [t.to_dict() for t in transactions]})


@points_bp.route('/calculate-discount', methods=['POST'])
@require_session
def calculate_discount():
    """
    Preview a points redemption for a cart.

    Request body:
        cartTotalCents: int (required)
        pointsToUse: int (optional, 0/omitted = maximum)

    Returns:
        Points usable, discount and the new total
    """
    user = get_current_user()
    data = request.get_json(silent=True) or {}

    cart_total = _int_field(data, 'cartTotalCents')
    if cart_total is None:
        raise ValidationError('cartTotalCents is required', field='cartTotalCents')
    points_to_use = _int_field(data, 'pointsToUse')

    config = get_points_config()
    redemption = compute_redemption(cart_total, user.points_balance, points_to_use, config)

    if redemption.reason == MIN_ORDER_NOT_MET:
        error = MinOrderNotMetError(config.min_order_for_redemption, config.unit_value)
        return jsonify({
            'error': error.message,
            'code': error.code,
            'canRedeem': False,
        }), error.status_code

    response = redemption.to_dict(config.unit_value)
    response.update({
        'pointsAvailable': user.points_balance,
        'newTotal': cart_total - redemption.discount_amount,
    })
    return jsonify(response)
