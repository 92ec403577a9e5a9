"""
Order model.
"""
import json
import uuid
from datetime import datetime
from enum import Enum
from ..extensions import db


class OrderStatus(str, Enum):
    """Order lifecycle states."""
    PENDING = 'pending'       # Checkout session created, awaiting payment
    PAID = 'paid'             # Payment confirmed, points settled
    SHIPPED = 'shipped'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'
    REFUNDED = 'refunded'


class Order(db.Model):
    """
    Storefront order.

    Created as pending when the checkout session is opened. Moves to paid
    exactly once, when the payment processor confirms the payment; that
    transition is the only one that writes earn/spend ledger entries.
    """
    __tablename__ = 'orders'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'))  # NULL = guest checkout
    stripe_session_id = db.Column(db.String(255))

    status = db.Column(db.String(20), default=OrderStatus.PENDING.value, nullable=False)

    # Amounts in minor units (cents)
    subtotal = db.Column(db.Integer, nullable=False)
    discount = db.Column(db.Integer, default=0, nullable=False)
    points_used = db.Column(db.Integer, default=0, nullable=False)
    points_earned = db.Column(db.Integer, default=0, nullable=False)
    total = db.Column(db.Integer, nullable=False)

    items_json = db.Column(db.Text)
    shipping_address_json = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    paid_at = db.Column(db.DateTime)
    shipped_at = db.Column(db.DateTime)
    delivered_at = db.Column(db.DateTime)

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending', 'paid', 'shipped', 'delivered', 'cancelled', 'refunded')",
            name='ck_orders_status'
        ),
        db.Index('idx_orders_user', 'user_id'),
        db.Index('idx_orders_status', 'status'),
        db.Index('idx_orders_stripe', 'stripe_session_id'),
    )

    def __repr__(self):
        return f'<Order {self.id} {self.status}>'

    @property
    def items(self) -> list:
        return json.loads(self.items_json or '[]')

    @property
    def is_settled(self) -> bool:
        """True once the payment has been confirmed (paid or any later state)."""
        return self.paid_at is not None

    def to_dict(self, include_items: bool = True):
        data = {
            'id': self.id,
            'status': self.status,
            'subtotal': self.subtotal / 100,
            'discount': (self.discount or 0) / 100,
            'total': self.total / 100,
            'subtotalCents': self.subtotal,
            'discountCents': self.discount or 0,
            'totalCents': self.total,
            'pointsUsed': self.points_used or 0,
            'pointsEarned': self.points_earned or 0,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'paidAt': self.paid_at.isoformat() if self.paid_at else None,
            'shippedAt': self.shipped_at.isoformat() if self.shipped_at else None,
            'deliveredAt': self.delivered_at.isoformat() if self.delivered_at else None,
        }
        if include_items:
            data['items'] = self.items
        return data
