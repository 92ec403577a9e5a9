"""
Newsletter subscriber model.
"""
import uuid
from datetime import datetime
from ..extensions import db


class NewsletterSubscriber(db.Model):
    __tablename__ = 'newsletter_subscribers'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = db.Column(db.String(255), unique=True, nullable=False)
    subscribed_at = db.Column(db.DateTime, default=datetime.utcnow)
    unsubscribed_at = db.Column(db.DateTime)

    @property
    def is_active(self) -> bool:
        return self.unsubscribed_at is None

    def __repr__(self):
        return f'<NewsletterSubscriber {self.email}>'
