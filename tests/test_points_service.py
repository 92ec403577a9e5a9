"""
Tests for the Points Service.

Covers:
- Ledger appends and the cached balance/tier
- Sign rules per entry type
- Bonuses (signup, newsletter, review) and once-only awards
- Summary, history and reconciliation
"""
import pytest

from app.models import PointsTransaction, PointsTransactionType, PointsSource
from app.services.points_service import PointsService
from app.utils.exceptions import ValidationError


def ledger_sum(user_id):
    return sum(t.amount for t in PointsTransaction.query.filter_by(user_id=user_id).all())


class TestAppendEntry:
    """Tests for PointsService.append_entry."""

    def test_earn_updates_balance_and_tier(self, app, db, sample_user):
        service = PointsService()

        entry = service.append_entry(
            sample_user, 600, PointsTransactionType.EARN, PointsSource.ORDER, 'order-1'
        )
        db.session.commit()

        assert entry.id is not None
        assert sample_user.points_balance == 600
        assert sample_user.tier == 'ECLIPSE'
        assert ledger_sum(sample_user.id) == 600

    def test_balance_always_matches_ledger(self, app, db, sample_user):
        service = PointsService()
        service.append_entry(sample_user, 100, 'EARN', 'SIGNUP')
        service.append_entry(sample_user, -40, 'SPEND', 'ORDER', 'order-1')
        service.append_entry(sample_user, 25, 'ADJUST', 'ADMIN')
        service.append_entry(sample_user, -10, 'EXPIRE', 'ADMIN')
        db.session.commit()

        assert sample_user.points_balance == 75
        assert ledger_sum(sample_user.id) == 75
        assert service.balance_for(sample_user.id) == 75

    def test_zero_amount_rejected(self, app, sample_user):
        with pytest.raises(ValidationError):
            PointsService().append_entry(sample_user, 0, 'ADJUST', 'ADMIN')

    def test_non_integer_amount_rejected(self, app, sample_user):
        with pytest.raises(ValidationError):
            PointsService().append_entry(sample_user, 10.5, 'EARN', 'ORDER')

    @pytest.mark.parametrize('entry_type,amount', [
        ('EARN', -10),
        ('SPEND', 10),
        ('EXPIRE', 10),
    ])
    def test_sign_convention(self, app, sample_user, entry_type, amount):
        with pytest.raises(ValidationError):
            PointsService().append_entry(sample_user, amount, entry_type, 'ORDER')
        assert PointsTransaction.query.filter_by(user_id=sample_user.id).count() == 0

    def test_unknown_type_rejected(self, app, sample_user):
        with pytest.raises(ValueError):
            PointsService().append_entry(sample_user, 10, 'GIFT', 'ORDER')

    def test_balance_may_go_negative(self, app, db, sample_user):
        service = PointsService()
        service.append_entry(sample_user, -30, 'SPEND', 'ORDER', 'order-1')
        db.session.commit()

        assert sample_user.points_balance == -30
        assert sample_user.tier == 'MOON'

    def test_tier_downgrade_on_adjust(self, app, db, make_user):
        user = make_user(points=1600)
        assert user.tier == 'NOVA'

        PointsService().adjust(user, -200)
        db.session.commit()

        assert user.points_balance == 1400
        assert user.tier == 'ECLIPSE'


class TestBonuses:
    """Tests for configured bonuses."""

    def test_signup_bonus(self, app, db, sample_user):
        entry = PointsService().award_bonus(sample_user, PointsSource.SIGNUP)
        db.session.commit()

        assert entry.amount == 50
        assert entry.type == 'EARN'
        assert entry.source == 'SIGNUP'

    def test_once_only_bonus(self, app, db, sample_user):
        service = PointsService()
        first = service.award_bonus(sample_user, PointsSource.NEWSLETTER, once=True)
        db.session.commit()
        second = service.award_bonus(sample_user, PointsSource.NEWSLETTER, once=True)

        assert first.amount == 25
        assert second is None
        assert sample_user.points_balance == 25

    def test_review_bonus_once_per_review(self, app, db, sample_user):
        service = PointsService()
        service.award_bonus(sample_user, PointsSource.REVIEW, 'review-1', once=True)
        service.award_bonus(sample_user, PointsSource.REVIEW, 'review-2', once=True)
        repeat = service.award_bonus(sample_user, PointsSource.REVIEW, 'review-1', once=True)
        db.session.commit()

        assert repeat is None
        assert sample_user.points_balance == 200

    def test_no_bonus_for_order_source(self, app, sample_user):
        with pytest.raises(ValidationError):
            PointsService().award_bonus(sample_user, PointsSource.ORDER)


class TestQueries:
    """Tests for summary and history."""

    def test_summary(self, app, make_user):
        user = make_user(points=120)
        summary = PointsService().get_summary(user)

        assert summary['points'] == 120
        assert summary['tier'] == 'MOON'
        assert summary['tierInfo']['next']['name'] == 'ECLIPSE'
        assert summary['tierInfo']['pointsToNext'] == 380
        assert summary['config']['maxDiscountPercent'] == 20

    def test_summary_at_top_tier(self, app, make_user):
        summary = PointsService().get_summary(make_user(points=2000))

        assert summary['tier'] == 'NOVA'
        assert summary['tierInfo']['next'] is None
        assert summary['tierInfo']['pointsToNext'] == 0

    def test_history_limit(self, app, db, sample_user):
        service = PointsService()
        for i in range(5):
            service.append_entry(sample_user, 10, 'EARN', 'ORDER', f'order-{i}')
        db.session.commit()

        assert len(service.get_history(sample_user.id)) == 5
        assert len(service.get_history(sample_user.id, limit=3)) == 3


class TestReconciliation:
    """Tests for verify_account / reconcile_all."""

    def test_consistent_accounts(self, app, make_user):
        make_user(points=100)
        make_user(points=700)

        result = PointsService().reconcile_all()

        assert result['checked'] == 2
        assert result['drifted'] == []

    def test_drift_detected_and_fixed(self, app, db, make_user):
        user = make_user(points=100)
        user.points_balance = 999
        user.tier = 'ECLIPSE'
        db.session.commit()

        service = PointsService()
        report = service.verify_account(user)
        assert report['consistent'] is False
        assert report['ledger_balance'] == 100

        result = service.reconcile_all(fix=True)
        assert result['fixed'] == 1
        assert user.points_balance == 100
        assert user.tier == 'MOON'

    def test_purge_user_ledger(self, app, db, make_user):
        user = make_user(points=100)
        assert PointsService().purge_user_ledger(user) == 1
        db.session.commit()
        assert PointsTransaction.query.filter_by(user_id=user.id).count() == 0
