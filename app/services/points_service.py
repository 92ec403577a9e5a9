"""
Points Service for the LUNARA loyalty program.

ARCHITECTURE:
- points_transactions is an append-only ledger and the source of truth
- users.points_balance and users.tier are caches over that ledger
- Every append locks the user row, adds the entry and rewrites both caches
  in the same transaction, so SUM(amount) == points_balance whenever no
  append is in flight

The service never commits. Callers (request handlers, settlement, CLI)
own the transaction boundary, which lets a settlement write several
entries and an order update as one unit.
"""

from typing import Optional, List, Dict, Any
from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models.user import User
from ..models.points import PointsTransaction, PointsTransactionType, PointsSource
from ..utils.exceptions import ValidationError, NotFoundError
from .loyalty import PointsProgramConfig, Tier, get_points_config


# Required sign per entry type (None = either)
SIGN_CONVENTION = {
    PointsTransactionType.EARN: 1,
    PointsTransactionType.SPEND: -1,
    PointsTransactionType.EXPIRE: -1,
    PointsTransactionType.ADJUST: None,
}

HISTORY_LIMIT = 50


class PointsService:
    """
    Ledger operations for user accounts.

    Usage:
        service = PointsService()
        service.append_entry(user, 50, PointsTransactionType.EARN, PointsSource.SIGNUP)
        db.session.commit()
    """

    def __init__(self, config: PointsProgramConfig = None):
        self.config = config or get_points_config()

    # ==================== Core Ledger Operations ====================

    def append_entry(
        self,
        user: User,
        amount: int,
        entry_type: PointsTransactionType,
        source: PointsSource,
        reference_id: str = None
    ) -> PointsTransaction:
        """
        Append one ledger entry and update the user's cached balance and tier.

        Args:
            user: Account to credit or debit
            amount: Signed point amount, never zero
            entry_type: EARN (+), SPEND (-), EXPIRE (-) or ADJUST (+/-)
            source: Where the movement came from
            reference_id: Order id, review id, etc.

        Returns:
            The pending PointsTransaction (flushed, not committed)
        """
        entry_type = PointsTransactionType(entry_type)
        source = PointsSource(source)

        if not isinstance(amount, int) or isinstance(amount, bool):
            raise ValidationError('Points amount must be an integer', field='amount')
        if amount == 0:
            raise ValidationError('Points amount cannot be zero', field='amount')

        sign = SIGN_CONVENTION[entry_type]
        if sign is not None and (amount > 0) != (sign > 0):
            raise ValidationError(
                f'{entry_type.value} entries must be {"positive" if sign > 0 else "negative"}',
                field='amount'
            )

        # Row lock on the account so concurrent appends serialize
        locked = User.query.filter_by(id=user.id).with_for_update().populate_existing().first()
        if not locked:
            raise NotFoundError('User', user.id)

        old_balance = locked.points_balance or 0
        old_tier = locked.tier
        new_balance = old_balance + amount

        if new_balance < 0:
            current_app.logger.warning(
                f'Points balance for user {locked.id} goes negative: '
                f'{old_balance} {amount:+d} = {new_balance}'
            )

        entry = PointsTransaction(
            user_id=locked.id,
            amount=amount,
            type=entry_type.value,
            source=source.value,
            reference_id=reference_id,
        )
        db.session.add(entry)

        locked.points_balance = new_balance
        locked.tier = self.config.tiers.tier_for(new_balance).name
        db.session.flush()

        current_app.logger.info(
            f'Points {entry_type.value}: user {locked.id} {amount:+d} pts '
            f'from {source.value} (ref={reference_id}) balance {old_balance} -> {new_balance}'
        )
        if locked.tier != old_tier:
            current_app.logger.info(f'Tier change: user {locked.id} {old_tier} -> {locked.tier}')

        return entry

    def award_bonus(
        self,
        user: User,
        source: PointsSource,
        reference_id: str = None,
        once: bool = False
    ) -> Optional[PointsTransaction]:
        """
        Credit a configured bonus (signup, newsletter, review).

        With once=True the bonus is skipped (None returned) when the user
        already has an EARN entry for this source and reference.
        """
        source = PointsSource(source)
        amounts = {
            PointsSource.SIGNUP: self.config.signup_bonus,
            PointsSource.NEWSLETTER: self.config.newsletter_bonus,
            PointsSource.REVIEW: self.config.review_bonus,
        }
        if source not in amounts:
            raise ValidationError(f'No bonus configured for {source.value}', field='source')

        if once and self.has_entry(user.id, PointsTransactionType.EARN, source, reference_id):
            return None

        amount = amounts[source]
        if amount <= 0:
            return None
        return self.append_entry(user, amount, PointsTransactionType.EARN, source, reference_id)

    def adjust(self, user: User, amount: int, reference_id: str = None,
               source: PointsSource = PointsSource.ADMIN) -> PointsTransaction:
        """Manual correction. Positive or negative, never zero."""
        return self.append_entry(user, amount, PointsTransactionType.ADJUST, source, reference_id)

    def has_entry(self, user_id: str, entry_type: PointsTransactionType,
                  source: PointsSource, reference_id: str = None) -> bool:
        query = PointsTransaction.query.filter_by(
            user_id=user_id,
            type=PointsTransactionType(entry_type).value,
            source=PointsSource(source).value,
        )
        if reference_id is not None:
            query = query.filter_by(reference_id=reference_id)
        return db.session.query(query.exists()).scalar()

    # ==================== Queries ====================

    def balance_for(self, user_id: str) -> int:
        """Balance derived from the ledger: SUM(amount)."""
        total = db.session.query(
            func.coalesce(func.sum(PointsTransaction.amount), 0)
        ).filter(PointsTransaction.user_id == user_id).scalar()
        return int(total or 0)

    def get_history(self, user_id: str, limit: int = HISTORY_LIMIT) -> List[PointsTransaction]:
        """Latest entries first."""
        return PointsTransaction.query.filter_by(user_id=user_id).order_by(
            PointsTransaction.created_at.desc()
        ).limit(limit).all()

    def get_summary(self, user: User) -> Dict[str, Any]:
        """Balance, tier progress and public program rules for the points page."""
        balance = user.points_balance or 0
        current = self.config.tiers.tier_for(balance)
        following: Optional[Tier] = self.config.tiers.next_tier(balance)

        return {
            'points': balance,
            'tier': current.name,
            'tierInfo': {
                'current': current.to_dict(),
                'next': following.to_dict() if following else None,
                'pointsToNext': following.min_points - balance if following else 0,
            },
            'config': self.config.to_public_dict(),
        }

    # ==================== Reconciliation ====================

    def verify_account(self, user: User) -> Dict[str, Any]:
        """Compare cached balance/tier against the ledger."""
        derived = self.balance_for(user.id)
        expected_tier = self.config.tiers.tier_for(derived).name
        return {
            'user_id': user.id,
            'email': user.email,
            'cached_balance': user.points_balance or 0,
            'ledger_balance': derived,
            'cached_tier': user.tier,
            'expected_tier': expected_tier,
            'consistent': (user.points_balance or 0) == derived and user.tier == expected_tier,
        }

    def reconcile_all(self, fix: bool = False) -> Dict[str, Any]:
        """
        Check every account. With fix=True, drifted caches are rewritten from
        the ledger. The ledger itself is never modified here.
        """
        checked = 0
        drifted = []

        for user in User.query.order_by(User.created_at).all():
            checked += 1
            report = self.verify_account(user)
            if report['consistent']:
                continue

            drifted.append(report)
            current_app.logger.warning(
                f"Ledger drift for user {user.id}: cached {report['cached_balance']}/"
                f"{report['cached_tier']}, ledger {report['ledger_balance']}/{report['expected_tier']}"
            )
            if fix:
                user.points_balance = report['ledger_balance']
                user.tier = report['expected_tier']

        if fix and drifted:
            db.session.commit()

        return {'checked': checked, 'drifted': drifted, 'fixed': len(drifted) if fix else 0}

    # ==================== Account removal ====================

    def purge_user_ledger(self, user: User) -> int:
        """Delete every ledger entry of an account that is being removed."""
        return PointsTransaction.query.filter_by(user_id=user.id).delete(synchronize_session=False)
