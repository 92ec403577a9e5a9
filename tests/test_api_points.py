"""
Tests for the Points API endpoints.

Tests cover:
- GET /api/points (balance, tier progress, program rules)
- GET /api/points/history
- POST /api/points/calculate-discount
"""
from app.models import PointsTransactionType, PointsSource
from app.services.points_service import PointsService


class TestPointsSummary:
    """Tests for GET /api/points."""

    def test_summary(self, client, make_user, make_headers):
        user = make_user(points=520)

        response = client.get('/api/points', headers=make_headers(user))

        assert response.status_code == 200
        data = response.get_json()
        assert data['points'] == 520
        assert data['tier'] == 'ECLIPSE'
        assert data['tierInfo']['current']['bonusMultiplier'] == 1.1
        assert data['tierInfo']['next']['name'] == 'NOVA'
        assert data['tierInfo']['pointsToNext'] == 980
        assert data['config']['pointsPerEuroDiscount'] == 20

    def test_requires_session(self, client):
        assert client.get('/api/points').status_code == 401


class TestPointsHistory:
    """Tests for GET /api/points/history."""

    def test_history_newest_first(self, client, db, sample_user, auth_headers):
        service = PointsService()
        service.award_bonus(sample_user, PointsSource.SIGNUP)
        service.append_entry(sample_user, 30, PointsTransactionType.EARN, PointsSource.ORDER, 'order-1')
        db.session.commit()

        response = client.get('/api/points/history', headers=auth_headers)

        transactions = response.get_json()['transactions']
        assert len(transactions) == 2
        assert {t['source'] for t in transactions} == {'SIGNUP', 'ORDER'}
        assert all(t['user_id'] == sample_user.id for t in transactions)


class TestCalculateDiscount:
    """Tests for POST /api/points/calculate-discount."""

    def test_maximum_discount(self, client, make_user, make_headers):
        user = make_user(points=1000)

        response = client.post('/api/points/calculate-discount', headers=make_headers(user), json={
            'cartTotalCents': 10000
        })

        assert response.status_code == 200
        data = response.get_json()
        assert data['pointsToUse'] == 400
        assert data['discountCents'] == 2000
        assert data['discount'] == 20.0
        assert data['maxPointsUsable'] == 400
        assert data['newTotal'] == 8000
        assert data['pointsAvailable'] == 1000
        assert data['canRedeem'] is True

    def test_requested_points(self, client, make_user, make_headers):
        user = make_user(points=1000)

        response = client.post('/api/points/calculate-discount', headers=make_headers(user), json={
            'cartTotalCents': 10000, 'pointsToUse': 100
        })

        data = response.get_json()
        assert data['pointsToUse'] == 100
        assert data['discountCents'] == 500
        assert data['newTotal'] == 9500

    def test_below_minimum_order(self, client, make_user, make_headers):
        user = make_user(points=1000)

        response = client.post('/api/points/calculate-discount', headers=make_headers(user), json={
            'cartTotalCents': 2500
        })

        assert response.status_code == 400
        data = response.get_json()
        assert data['code'] == 'MIN_ORDER_NOT_MET'
        assert data['canRedeem'] is False
        assert '30.00' in data['error']

    def test_missing_cart_total(self, client, auth_headers):
        response = client.post('/api/points/calculate-discount', headers=auth_headers, json={})
        assert response.status_code == 400

    def test_negative_points(self, client, auth_headers):
        response = client.post('/api/points/calculate-discount', headers=auth_headers, json={
            'cartTotalCents': 10000, 'pointsToUse': -5
        })
        assert response.status_code == 400
