"""
Contact form requests.
"""
import uuid
from datetime import datetime
from ..extensions import db


class ContactRequest(db.Model):
    """Message submitted through the storefront contact form."""
    __tablename__ = 'contact_requests'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    subject = db.Column(db.String(255))
    order_id = db.Column(db.String(36))
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), default='new', nullable=False)  # new, read, replied, closed
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    replied_at = db.Column(db.DateTime)

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('new', 'read', 'replied', 'closed')",
            name='ck_contact_status'
        ),
        db.Index('idx_contact_email', 'email'),
        db.Index('idx_contact_status', 'status'),
    )
