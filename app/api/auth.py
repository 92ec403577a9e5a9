"""
Authentication API endpoints.
Handles customer registration, login, sessions, profile and password reset.
"""
import secrets
from datetime import datetime, timedelta
from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..models import User, Order, PointsSource
from ..middleware import require_session, get_current_user
from ..services.points_service import PointsService
from ..services.session_service import SessionService, token_from_request
from ..services.notification_service import NotificationService
from ..utils.errors import ErrorCode
from ..utils.exceptions import ValidationError, AuthError, ConflictError

auth_bp = Blueprint('auth', __name__)


def _normalize_email(value) -> str:
    if not isinstance(value, str):
        raise ValidationError('A valid email address is required', field='email')
    email = value.strip().lower()
    if not email or '@' not in email:
        raise ValidationError('A valid email address is required', field='email')
    return email


def _validate_password(password, field: str = 'password') -> str:
    min_length = current_app.config.get('MIN_PASSWORD_LENGTH', 8)
    if not isinstance(password, str) or len(password) < min_length:
        raise ValidationError(f'Password must be at least {min_length} characters', field=field)
    return password


def _start_session(user: User) -> str:
    return SessionService().create(user.id, email=user.email, name=user.name, tier=user.tier)


@auth_bp.route('/register', methods=['POST'])
def register():
    """
    Create a customer account and log it in.

    Request body:
        email: string (required)
        password: string (required, min 8 chars)
        name: string (optional)

    Returns:
        Session token and user data. The signup bonus is already credited.
    """
    data = request.get_json(silent=True) or {}

    email = _normalize_email(data.get('email'))
    password = _validate_password(data.get('password'))

    if User.query.filter_by(email=email).first():
        raise ConflictError('Email already registered', ErrorCode.EMAIL_EXISTS)

    user = User(email=email, name=data.get('name') or None)
    user.set_password(password)

    if current_app.config.get('REQUIRE_EMAIL_VERIFICATION'):
        user.verification_token = secrets.token_urlsafe(32)
    else:
        user.verified_at = datetime.utcnow()

    db.session.add(user)
    db.session.flush()

    points = PointsService()
    points.award_bonus(user, PointsSource.SIGNUP)
    db.session.commit()

    current_app.logger.info(f'New account {user.id} ({user.email})')

    NotificationService().send_welcome_email(
        user.email, user.name, points.config.signup_bonus, user.verification_token
    )

    token = _start_session(user)

    return jsonify({
        'success': True,
        'token': token,
        'user': user.to_dict(),
        'message': f'Welcome to LUNARA! You received {points.config.signup_bonus} welcome points.'
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Login with email and password.

    Returns:
        Session token and user data
    """
    data = request.get_json(silent=True) or {}

    email, password = data.get('email'), data.get('password')
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        raise ValidationError('Email and password are required')

    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user or not user.check_password(password):
        raise AuthError('Invalid email or password', ErrorCode.INVALID_CREDENTIALS)

    if not user.is_verified:
        raise AuthError('Please verify your email address first', ErrorCode.EMAIL_NOT_VERIFIED)

    token = _start_session(user)

    return jsonify({
        'success': True,
        'token': token,
        'user': user.to_dict()
    })


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Revoke the current session token, if any."""
    SessionService().revoke(token_from_request(request))
    return jsonify({'success': True})


@auth_bp.route('/me', methods=['GET'])
@require_session
def get_me():
    """Current account."""
    user = get_current_user()
    return jsonify({'user': user.to_dict()})


def _update_profile():
    user = get_current_user()
    data = request.get_json(silent=True) or {}

    user.name = (data.get('name') or '').strip() or None
    db.session.commit()

    return jsonify({'success': True, 'message': 'Profile updated', 'user': user.to_dict()})


@auth_bp.route('/update', methods=['PUT'])
@require_session
def update_profile():
    """Update the display name."""
    return _update_profile()


@auth_bp.route('/profile', methods=['PATCH'])
@require_session
def patch_profile():
    return _update_profile()


def _change_password():
    user = get_current_user()
    data = request.get_json(silent=True) or {}

    current_password = data.get('currentPassword')
    new_password = data.get('newPassword')
    if not isinstance(current_password, str) or not current_password or not new_password:
        raise ValidationError('Current and new password are required')

    _validate_password(new_password, field='new_password')

    if not user.check_password(current_password):
        raise AuthError('Current password is incorrect', ErrorCode.INVALID_CREDENTIALS)

    user.set_password(new_password)
    db.session.commit()

    return jsonify({'success': True, 'message': 'Password changed'})


@auth_bp.route('/change-password', methods=['POST'])
@require_session
def change_password():
    """
    Change password for the logged-in customer.

    Request body:
        currentPassword: string (required)
        newPassword: string (required)
    """
    return _change_password()


@auth_bp.route('/password', methods=['POST'])
@require_session
def change_password_alias():
    return _change_password()


@auth_bp.route('/delete', methods=['DELETE'])
@require_session
def delete_account():
    """
    Delete the account.

    Removes the points ledger and the user row. Orders are kept for
    bookkeeping but detached from the account.
    """
    user = get_current_user()
    user_id = user.id

    PointsService().purge_user_ledger(user)
    Order.query.filter_by(user_id=user_id).update({'user_id': None}, synchronize_session=False)
    db.session.delete(user)
    db.session.commit()

    SessionService().revoke(g.session_token)
    current_app.logger.info(f'Account {user_id} deleted')

    return jsonify({'success': True, 'message': 'Account deleted'})


@auth_bp.route('/verify-email', methods=['POST'])
def verify_email():
    """
    Verify email using the token from the welcome email.

    Request body:
        token: string (required)
    """
    data = request.get_json(silent=True) or {}
    if not data.get('token'):
        raise ValidationError('Verification token is required', field='token')

    user = User.query.filter_by(verification_token=data['token']).first()
    if not user:
        raise ValidationError('Invalid verification token', field='token')

    user.verified_at = datetime.utcnow()
    user.verification_token = None
    db.session.commit()

    return jsonify({'success': True, 'message': 'Email verified'})


@auth_bp.route('/forgot-password', methods=['POST'])
def forgot_password():
    """
    Request a password reset email.

    Always answers with the same message so it cannot be used to probe
    which emails have accounts.
    """
    data = request.get_json(silent=True) or {}
    email = _normalize_email(data.get('email'))

    user = User.query.filter_by(email=email).first()
    if user:
        valid_hours = current_app.config.get('RESET_TOKEN_TTL_HOURS', 2)
        user.reset_token = secrets.token_urlsafe(32)
        user.reset_token_expires = datetime.utcnow() + timedelta(hours=valid_hours)
        db.session.commit()

        NotificationService().send_password_reset(user.email, user.name, user.reset_token, valid_hours)

    return jsonify({
        'success': True,
        'message': 'If an account exists with that email, a reset link will be sent.'
    })


@auth_bp.route('/reset-password', methods=['POST'])
def reset_password():
    """
    Reset password using the token from the reset email.

    Request body:
        token: string (required)
        newPassword: string (required)
    """
    data = request.get_json(silent=True) or {}
    token = data.get('token')
    new_password = data.get('newPassword') or data.get('password')

    if not token or not new_password:
        raise ValidationError('Token and new password are required')
    _validate_password(new_password, field='new_password')

    user = User.query.filter_by(reset_token=token).first()
    if not user or not user.reset_token_expires or user.reset_token_expires < datetime.utcnow():
        raise ValidationError('Invalid or expired reset token', field='token')

    user.set_password(new_password)
    user.reset_token = None
    user.reset_token_expires = None
    db.session.commit()

    return jsonify({'success': True, 'message': 'Password reset. You can now log in.'})
