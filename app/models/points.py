"""
Points ledger model for the LUNARA loyalty program.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, Any
from ..extensions import db


class PointsTransactionType(str, Enum):
    """Kinds of ledger entries."""
    EARN = 'EARN'       # Points earned (positive)
    SPEND = 'SPEND'     # Points redeemed at checkout (negative)
    ADJUST = 'ADJUST'   # Correction or reversal (+/-)
    EXPIRE = 'EXPIRE'   # Points expired (negative)


class PointsSource(str, Enum):
    """Where a ledger entry came from."""
    ORDER = 'ORDER'
    SIGNUP = 'SIGNUP'
    NEWSLETTER = 'NEWSLETTER'
    REVIEW = 'REVIEW'
    ADMIN = 'ADMIN'
    REFUND = 'REFUND'


class PointsTransaction(db.Model):
    """
    Append-only points ledger, the authoritative record of every point movement.

    Design notes:
    - Immutable once written; corrections are new ADJUST entries
    - Amount is signed and never zero
    - users.points_balance is a cache of SUM(amount) for the user and is
      written in the same transaction as each entry
    """
    __tablename__ = 'points_transactions'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)

    amount = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(10), nullable=False)  # PointsTransactionType
    source = db.Column(db.String(20))  # PointsSource
    reference_id = db.Column(db.String(100))  # Order id, review id, etc.

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint('amount != 0', name='ck_points_amount_nonzero'),
        db.CheckConstraint(
            "type IN ('EARN', 'SPEND', 'ADJUST', 'EXPIRE')",
            name='ck_points_type'
        ),
        db.CheckConstraint(
            "source IN ('ORDER', 'SIGNUP', 'NEWSLETTER', 'REVIEW', 'ADMIN', 'REFUND')",
            name='ck_points_source'
        ),
        db.Index('idx_points_user', 'user_id'),
        db.Index('idx_points_type', 'type'),
        db.Index('idx_points_reference', 'reference_id'),
    )

    def __repr__(self):
        return f'<PointsTransaction {self.id}: {self.amount:+d} pts for user {self.user_id}>'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'amount': self.amount,
            'type': self.type,
            'source': self.source,
            'reference_id': self.reference_id,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
