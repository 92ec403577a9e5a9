"""
User account model.
"""
import uuid
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from ..extensions import db


class User(db.Model):
    """
    Storefront customer account.

    points_balance and tier are denormalized caches over the points ledger.
    Only PointsService writes them, together with the ledger entry that
    causes the change.
    """
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(255))
    password_hash = db.Column(db.String(255), nullable=False)

    # Loyalty caches
    points_balance = db.Column(db.Integer, default=0, nullable=False)
    tier = db.Column(db.String(50), default='MOON', nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    verified_at = db.Column(db.DateTime)
    verification_token = db.Column(db.String(100))
    reset_token = db.Column(db.String(100))
    reset_token_expires = db.Column(db.DateTime)

    # Relationships
    points_transactions = db.relationship(
        'PointsTransaction', backref='user', lazy='dynamic',
        cascade='all, delete-orphan'
    )
    orders = db.relationship('Order', backref='user', lazy='dynamic')

    __table_args__ = (
        db.Index('idx_users_tier', 'tier'),
    )

    def __repr__(self):
        return f'<User {self.email}>'

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_verified(self) -> bool:
        return self.verified_at is not None

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'points': self.points_balance,
            'tier': self.tier,
            'memberSince': self.created_at.isoformat() if self.created_at else None
        }
