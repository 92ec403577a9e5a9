"""
Newsletter subscription API.
"""
from datetime import datetime
from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..models import NewsletterSubscriber, User, PointsSource
from ..middleware import optional_session
from ..services.points_service import PointsService
from ..utils.exceptions import ValidationError

newsletter_bp = Blueprint('newsletter', __name__)


def _email_from_request() -> str:
    data = request.get_json(silent=True) or {}
    email = str(data.get('email') or '').strip().lower()
    if not email or '@' not in email:
        raise ValidationError('Invalid email address', field='email')
    return email


@newsletter_bp.route('/subscribe', methods=['POST'])
@optional_session
def subscribe():
    """
    Subscribe an email address.

    Subscribing twice is not an error. Logged-in customers get the
    newsletter bonus, at most once per account.
    """
    email = _email_from_request()

    subscriber = NewsletterSubscriber.query.filter_by(email=email).first()
    if subscriber and subscriber.is_active:
        return jsonify({'success': True, 'message': 'You are already subscribed!'})

    if subscriber:
        subscriber.unsubscribed_at = None
        subscriber.subscribed_at = datetime.utcnow()
    else:
        db.session.add(NewsletterSubscriber(email=email))

    bonus = None
    user = db.session.get(User, g.user_id) if g.user_id else None
    if user:
        bonus = PointsService().award_bonus(user, PointsSource.NEWSLETTER, once=True)

    db.session.commit()
    current_app.logger.info(f'Newsletter subscription: {email}')

    if bonus:
        return jsonify({
            'success': True,
            'message': f'Thanks for subscribing! You received {bonus.amount} bonus points.',
            'bonusPoints': bonus.amount
        })

    return jsonify({
        'success': True,
        'message': 'Thanks for subscribing to the LUNARA newsletter!'
    })


@newsletter_bp.route('/unsubscribe', methods=['POST'])
def unsubscribe():
    """Unsubscribe an email address. Unknown addresses get the same answer."""
    email = _email_from_request()

    subscriber = NewsletterSubscriber.query.filter_by(email=email).first()
    if subscriber and subscriber.is_active:
        subscriber.unsubscribed_at = datetime.utcnow()
        db.session.commit()

    return jsonify({'success': True, 'message': 'You have been unsubscribed.'})
