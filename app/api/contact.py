"""
Contact form API.
"""
from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..models import ContactRequest
from ..services.notification_service import NotificationService
from ..utils.exceptions import ValidationError

contact_bp = Blueprint('contact', __name__)


@contact_bp.route('', methods=['POST'])
def submit_contact():
    """
    Store a contact request and notify the shop inbox.

    Request body:
        name, email, message: string (required)
        subject: string (optional, defaults to "General")
        order: string (optional order id)
    """
    data = request.get_json(silent=True) or {}

    name = str(data.get('name') or '').strip()
    email = str(data.get('email') or '').strip().lower()
    message = str(data.get('message') or '').strip()

    if not name or not email or not message:
        raise ValidationError('Name, email and message are required')
    if '@' not in email:
        raise ValidationError('Invalid email address', field='email')

    contact = ContactRequest(
        name=name,
        email=email,
        subject=data.get('subject') or 'General',
        order_id=data.get('order') or None,
        message=message,
    )
    db.session.add(contact)
    db.session.commit()

    current_app.logger.info(f'Contact request {contact.id} from {email}')
    NotificationService().send_contact_notification(contact)

    return jsonify({
        'success': True,
        'message': 'Message sent! We will get back to you soon.'
    }), 201
