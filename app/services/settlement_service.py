"""
Order settlement.

Drives orders through their lifecycle and applies the loyalty side effects
of each transition:

    pending   -> paid, cancelled
    paid      -> shipped, cancelled, refunded
    shipped   -> delivered, refunded
    delivered -> refunded
    cancelled, refunded: terminal

pending -> paid happens exactly once per order, when the payment processor
confirms payment. It is claimed with a status-guarded UPDATE, so a repeated
or concurrent confirmation for the same order updates zero rows and is a
no-op. The claim, the SPEND/EARN ledger entries and the order's
points_earned are committed together or not at all.

Cancelling or refunding a settled order reverses it: earned points are
taken back and spent points returned, as ADJUST entries with source REFUND.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any, FrozenSet
from flask import current_app

from ..extensions import db
from ..models.order import Order, OrderStatus
from ..models.user import User
from ..models.points import PointsTransactionType, PointsSource
from ..utils.exceptions import NotFoundError, InvalidStatusTransitionError, ValidationError
from .loyalty import PointsProgramConfig, calculate_points_earned, get_points_config
from .points_service import PointsService


ORDER_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    OrderStatus.PENDING.value: frozenset({OrderStatus.PAID.value, OrderStatus.CANCELLED.value}),
    OrderStatus.PAID.value: frozenset({
        OrderStatus.SHIPPED.value, OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value
    }),
    OrderStatus.SHIPPED.value: frozenset({OrderStatus.DELIVERED.value, OrderStatus.REFUNDED.value}),
    OrderStatus.DELIVERED.value: frozenset({OrderStatus.REFUNDED.value}),
    OrderStatus.CANCELLED.value: frozenset(),
    OrderStatus.REFUNDED.value: frozenset(),
}

# Timestamp column stamped when entering a status
STATUS_TIMESTAMPS = {
    OrderStatus.PAID.value: 'paid_at',
    OrderStatus.SHIPPED.value: 'shipped_at',
    OrderStatus.DELIVERED.value: 'delivered_at',
}

REVERSING_STATUSES = frozenset({OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value})


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in ORDER_TRANSITIONS.get(from_status, frozenset())


@dataclass(frozen=True)
class PaymentConfirmation:
    """A confirmed payment as reported by the payment processor."""
    order_id: str
    user_id: Optional[str] = None
    points_used: int = 0
    session_id: Optional[str] = None
    event_id: Optional[str] = None


@dataclass
class SettlementResult:
    applied: bool
    order: Optional[Order] = None
    points_spent: int = 0
    points_earned: int = 0
    tier_before: Optional[str] = None
    tier_after: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'applied': self.applied,
            'order_id': self.order.id if self.order else None,
            'points_spent': self.points_spent,
            'points_earned': self.points_earned,
            'tier_before': self.tier_before,
            'tier_after': self.tier_after,
        }


class SettlementService:
    """
    Order state machine with ledger orchestration.

    Usage:
        service = SettlementService()
        result = service.confirm_payment(PaymentConfirmation(order_id=...))
    """

    def __init__(self, config: PointsProgramConfig = None, points_service: PointsService = None):
        self.config = config or get_points_config()
        self.points = points_service or PointsService(self.config)

    # ==================== Payment confirmation ====================

    def confirm_payment(self, event: PaymentConfirmation) -> SettlementResult:
        """
        Settle a confirmed payment: mark the order paid, debit redeemed
        points, credit earned points, recompute the tier.

        Safe to call any number of times for the same order; only the first
        call for a pending order has an effect.
        """
        try:
            now = datetime.utcnow()
            claimed = Order.query.filter_by(
                id=event.order_id,
                status=OrderStatus.PENDING.value
            ).update(
                {'status': OrderStatus.PAID.value, 'paid_at': now},
                synchronize_session=False
            )

            order = db.session.get(Order, event.order_id, populate_existing=True)

            if not claimed:
                self._log_unclaimed(event, order)
                return SettlementResult(applied=False, order=order)

            result = SettlementResult(applied=True, order=order)
            self._check_event_metadata(event, order)

            user = db.session.get(User, order.user_id) if order.user_id else None
            if order.user_id and not user:
                current_app.logger.warning(
                    f'Order {order.id} belongs to missing user {order.user_id}; settling without points'
                )

            if user:
                result.tier_before = user.tier

                if order.points_used and order.points_used > 0:
                    self.points.append_entry(
                        user, -order.points_used,
                        PointsTransactionType.SPEND, PointsSource.ORDER, order.id
                    )
                    result.points_spent = order.points_used

                # Earn rate uses the tier after the spend, before the earn
                tier = self.config.tiers.tier_for(user.points_balance or 0)
                earned = calculate_points_earned(order.total, tier, self.config)
                if earned > 0:
                    self.points.append_entry(
                        user, earned,
                        PointsTransactionType.EARN, PointsSource.ORDER, order.id
                    )
                order.points_earned = earned
                result.points_earned = earned
                result.tier_after = user.tier

            db.session.commit()

        except Exception:
            db.session.rollback()
            current_app.logger.exception(f'Settlement failed for order {event.order_id}')
            raise

        current_app.logger.info(
            f'Order {order.id} settled: spent {result.points_spent}, earned {result.points_earned} '
            f'(user={order.user_id}, session={event.session_id})'
        )
        if result.tier_before and result.tier_before != result.tier_after:
            current_app.logger.info(
                f'User {order.user_id} tier {result.tier_before} -> {result.tier_after} after order {order.id}'
            )
        return result

    def _log_unclaimed(self, event: PaymentConfirmation, order: Optional[Order]) -> None:
        if order is None:
            current_app.logger.warning(f'Payment confirmation for unknown order {event.order_id}')
        elif order.status in REVERSING_STATUSES:
            current_app.logger.warning(
                f'Payment confirmation for order {order.id} which is already {order.status}'
            )
        else:
            current_app.logger.info(f'Order {order.id} already settled ({order.status}); ignoring')

    def _check_event_metadata(self, event: PaymentConfirmation, order: Order) -> None:
        # The order row wins; the event metadata is only cross-checked
        if event.user_id and event.user_id != (order.user_id or ''):
            current_app.logger.warning(
                f'Order {order.id}: event user {event.user_id} does not match order user {order.user_id}'
            )
        if event.points_used and event.points_used != (order.points_used or 0):
            current_app.logger.warning(
                f'Order {order.id}: event pointsUsed {event.points_used} does not match '
                f'order {order.points_used}'
            )

    # ==================== Lifecycle transitions ====================

    def transition(self, order_id: str, new_status: str, commit: bool = True) -> Order:
        """
        Move an order to new_status. Cancelling or refunding a settled order
        reverses its points in the same transaction.

        pending -> paid is reserved for confirm_payment(). With commit=False the
        caller commits (used to add an audit entry to the same transaction).
        """
        try:
            new_status = OrderStatus(new_status).value
        except ValueError:
            raise ValidationError(f'Unknown order status: {new_status}', field='status')

        order = db.session.get(Order, order_id)
        if not order:
            raise NotFoundError('Order', order_id)

        old_status = order.status
        if not can_transition(old_status, new_status):
            raise InvalidStatusTransitionError('order', old_status, new_status)
        if new_status == OrderStatus.PAID.value:
            raise InvalidStatusTransitionError('order', old_status, new_status)

        try:
            values = {'status': new_status}
            stamp = STATUS_TIMESTAMPS.get(new_status)
            if stamp:
                values[stamp] = datetime.utcnow()

            claimed = Order.query.filter_by(id=order_id, status=old_status).update(
                values, synchronize_session=False
            )
            if not claimed:
                # Someone else moved the order first
                db.session.rollback()
                order = db.session.get(Order, order_id, populate_existing=True)
                raise InvalidStatusTransitionError('order', order.status, new_status)

            order = db.session.get(Order, order_id, populate_existing=True)

            if new_status in REVERSING_STATUSES and order.is_settled:
                self._reverse_points(order)

            if commit:
                db.session.commit()

        except InvalidStatusTransitionError:
            raise
        except Exception:
            db.session.rollback()
            current_app.logger.exception(f'Status change {old_status} -> {new_status} failed for order {order_id}')
            raise

        current_app.logger.info(f'Order {order_id} status {old_status} -> {new_status}')
        return order

    def _reverse_points(self, order: Order) -> None:
        if not order.user_id:
            return
        user = db.session.get(User, order.user_id)
        if not user:
            return

        if order.points_earned:
            self.points.append_entry(
                user, -order.points_earned,
                PointsTransactionType.ADJUST, PointsSource.REFUND, order.id
            )
        if order.points_used:
            self.points.append_entry(
                user, order.points_used,
                PointsTransactionType.ADJUST, PointsSource.REFUND, order.id
            )

    def cancel_expired_checkout(self, order_id: str) -> bool:
        """Cancel a still-pending order whose checkout session expired. No ledger effect."""
        cancelled = Order.query.filter_by(
            id=order_id,
            status=OrderStatus.PENDING.value
        ).update({'status': OrderStatus.CANCELLED.value}, synchronize_session=False)
        db.session.commit()

        if cancelled:
            current_app.logger.info(f'Order {order_id} cancelled after checkout expired')
        return bool(cancelled)

    # ==================== Lookups ====================

    @staticmethod
    def find_order_id(metadata_order_id: Optional[str], session_id: Optional[str]) -> Optional[str]:
        """Order id from event metadata, falling back to the checkout session id."""
        if metadata_order_id:
            return metadata_order_id
        if session_id:
            order = Order.query.filter_by(stripe_session_id=session_id).first()
            if order:
                return order.id
        return None
