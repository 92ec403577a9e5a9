"""
Admin API routes for LUNARA.
Handles admin login, manual points adjustments, review bonuses,
order status changes and the audit log.

Authentication:
- Separate admin accounts (admin_users) and separate admin sessions
- Every mutation writes an audit_log row in the same transaction
"""
from datetime import datetime
from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..models import AdminUser, AuditLog, User, PointsSource, PointsTransactionType
from ..middleware import require_admin
from ..services.points_service import PointsService
from ..services.session_service import SessionService, ADMIN_SESSION
from ..services.settlement_service import SettlementService
from ..utils.errors import ErrorCode
from ..utils.exceptions import ValidationError, AuthError, NotFoundError, ConflictError

admin_bp = Blueprint('admin', __name__)

AUDIT_LOG_LIMIT = 100


def _get_user(user_id: str) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError('User', user_id)
    return user


# ================== Auth ==================

@admin_bp.route('/login', methods=['POST'])
def admin_login():
    """
    Login for shop staff.

    Returns:
        Admin session token and admin data
    """
    data = request.get_json(silent=True) or {}
    email, password = data.get('email'), data.get('password')
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        raise ValidationError('Email and password are required')

    admin = AdminUser.query.filter_by(email=email.strip().lower()).first()
    if not admin or not admin.check_password(password):
        current_app.logger.warning(f"Failed admin login for {data.get('email')}")
        raise AuthError('Invalid email or password', ErrorCode.INVALID_CREDENTIALS)

    admin.last_login = datetime.utcnow()
    db.session.commit()

    token = SessionService(ADMIN_SESSION).create(admin.id, email=admin.email, role=admin.role)

    return jsonify({'success': True, 'token': token, 'admin': admin.to_dict()})


# ================== Points ==================

@admin_bp.route('/users/<user_id>/points', methods=['POST'])
@require_admin()
def adjust_points(user_id):
    """
    Manual points correction.

    Request body:
        amount: int, non-zero, signed
        reason: string (required, kept in the audit log)
    """
    data = request.get_json(silent=True) or {}
    user = _get_user(user_id)

    try:
        amount = int(data.get('amount'))
    except (TypeError, ValueError):
        raise ValidationError('amount must be a non-zero integer', field='amount')

    reason = (data.get('reason') or '').strip()
    if not reason:
        raise ValidationError('A reason is required for manual adjustments', field='reason')

    service = PointsService()
    entry = service.adjust(user, amount, reference_id=data.get('referenceId'))
    AuditLog.record(
        g.admin_id, 'points.adjust', 'user', user.id,
        {'amount': amount, 'reason': reason, 'transaction_id': entry.id}
    )
    db.session.commit()

    return jsonify({
        'success': True,
        'transaction': entry.to_dict(),
        'user': user.to_dict()
    })


@admin_bp.route('/users/<user_id>/review-bonus', methods=['POST'])
@require_admin()
def award_review_bonus(user_id):
    """
    Credit the review bonus for an approved review.

    Request body:
        reviewId: string (required). Each review earns the bonus once.
    """
    data = request.get_json(silent=True) or {}
    user = _get_user(user_id)

    review_id = str(data.get('reviewId') or '').strip()
    if not review_id:
        raise ValidationError('reviewId is required', field='reviewId')

    service = PointsService()
    entry = service.award_bonus(user, PointsSource.REVIEW, reference_id=review_id, once=True)
    if entry is None:
        if service.has_entry(user.id, PointsTransactionType.EARN, PointsSource.REVIEW, review_id):
            raise ConflictError(f'Review {review_id} was already rewarded', ErrorCode.ALREADY_REWARDED)
        raise ValidationError('Review bonus is disabled')

    AuditLog.record(
        g.admin_id, 'points.review_bonus', 'user', user.id,
        {'review_id': review_id, 'amount': entry.amount}
    )
    db.session.commit()

    return jsonify({'success': True, 'transaction': entry.to_dict(), 'user': user.to_dict()})


# ================== Orders ==================

@admin_bp.route('/orders/<order_id>/status', methods=['POST'])
@require_admin()
def update_order_status(order_id):
    """
    Move an order through its lifecycle (shipped, delivered, cancelled, refunded).

    Cancelling or refunding a paid order reverses its points.
    """
    data = request.get_json(silent=True) or {}
    new_status = data.get('status')
    if not new_status:
        raise ValidationError('status is required', field='status')

    service = SettlementService()
    order = service.transition(order_id, new_status, commit=False)

    AuditLog.record(
        g.admin_id, 'order.status', 'order', order.id,
        {'status': order.status, 'note': data.get('note')}
    )
    db.session.commit()

    return jsonify({'success': True, 'order': order.to_dict()})


# ================== Audit ==================

@admin_bp.route('/audit-log', methods=['GET'])
@require_admin(roles=['super_admin'])
def get_audit_log():
    """Latest admin actions, optionally filtered by entity_type / entity_id. super_admin only."""
    query = AuditLog.query

    entity_type = request.args.get('entity_type')
    if entity_type:
        query = query.filter_by(entity_type=entity_type)
    entity_id = request.args.get('entity_id')
    if entity_id:
        query = query.filter_by(entity_id=entity_id)

    limit = min(request.args.get('limit', AUDIT_LOG_LIMIT, type=int), AUDIT_LOG_LIMIT)
    entries = query.order_by(AuditLog.created_at.desc()).limit(limit).all()

    return jsonify({'entries': [e.to_dict() for e in entries]})
