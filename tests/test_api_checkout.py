"""
Tests for the Checkout API.

Stripe calls are mocked; the order written to the database is checked.

Tests cover:
- Catalog prices are used, client prices ignored
- Points redemption reserved on the order and sent as a coupon
- Guest checkout
- Stripe failures leave no pending order behind
"""
import json
import pytest
import stripe
from unittest.mock import patch, MagicMock

from app.extensions import db
from app.models import Order


def stripe_session(session_id='cs_test_123'):
    session = MagicMock()
    session.id = session_id
    session.url = f'https://checkout.stripe.com/c/pay/{session_id}'
    return session


@pytest.fixture
def mock_stripe():
    with patch('stripe.checkout.Session.create') as create, \
         patch('stripe.Coupon.retrieve') as retrieve, \
         patch('stripe.Coupon.create') as coupon_create:
        create.return_value = stripe_session()
        retrieve.side_effect = stripe.InvalidRequestError('No such coupon', 'id')
        coupon_create.side_effect = lambda **kwargs: MagicMock(id=kwargs['id'])
        yield {'create': create, 'retrieve': retrieve, 'coupon_create': coupon_create}


class TestCreateSession:
    """Tests for POST /api/checkout/create-session."""

    def test_guest_checkout(self, client, sample_product, mock_stripe):
        response = client.post('/api/checkout/create-session', json={
            'items': [{'productId': sample_product.id, 'quantity': 2, 'price': 1}],
        })

        assert response.status_code == 200
        data = response.get_json()
        assert data['sessionId'] == 'cs_test_123'
        assert data['url'].startswith('https://checkout.stripe.com/')

        order = db.session.get(Order, data['orderId'])
        assert order.status == 'pending'
        assert order.user_id is None
        assert order.subtotal == 10000
        assert order.total == 10000
        assert order.stripe_session_id == 'cs_test_123'

        params = mock_stripe['create'].call_args.kwargs
        assert params['line_items'][0]['price_data']['unit_amount'] == 5000
        assert params['line_items'][0]['quantity'] == 2
        assert params['metadata']['orderId'] == order.id
        assert params['metadata']['pointsUsed'] == '0'
        assert params['success_url'] == f'https://shop.test/checkout-success.html?order={order.id}'
        assert 'discounts' not in params

    def test_points_redemption(self, client, sample_product, make_user, make_headers, mock_stripe):
        user = make_user(points=1000)

        response = client.post('/api/checkout/create-session', headers=make_headers(user), json={
            'items': [{'productId': sample_product.id, 'quantity': 2, 'variant': {'size': 'M'}}],
            'pointsToRedeem': 1000,
        })

        assert response.status_code == 200
        order = db.session.get(Order, response.get_json()['orderId'])
        assert order.user_id == user.id
        assert order.points_used == 400
        assert order.discount == 2000
        assert order.total == 8000
        # Nothing is debited until the payment is confirmed
        assert user.points_balance == 1000

        params = mock_stripe['create'].call_args.kwargs
        assert params['customer_email'] == user.email
        assert params['metadata']['userId'] == user.id
        assert params['metadata']['pointsUsed'] == '400'
        assert params['discounts'] == [{'coupon': 'lunara_points_2000'}]
        mock_stripe['coupon_create'].assert_called_once()

    def test_redemption_skipped_below_minimum(self, client, sample_product, make_user, make_headers, mock_stripe):
        user = make_user(points=1000)
        sample_product.price = 2000
        db.session.commit()

        response = client.post('/api/checkout/create-session', headers=make_headers(user), json={
            'items': [{'productId': sample_product.id, 'quantity': 1}],
            'pointsToRedeem': 200,
        })

        order = db.session.get(Order, response.get_json()['orderId'])
        assert order.points_used == 0
        assert order.discount == 0
        assert order.total == 2000

    def test_redemption_below_one_unit_spends_nothing(self, client, sample_product, make_user, make_headers, mock_stripe):
        user = make_user(points=1000)

        response = client.post('/api/checkout/create-session', headers=make_headers(user), json={
            'items': [{'productId': sample_product.id, 'quantity': 2}],
            'pointsToRedeem': 10,
        })

        order = db.session.get(Order, response.get_json()['orderId'])
        assert order.points_used == 0
        assert order.discount == 0
        assert 'discounts' not in mock_stripe['create'].call_args.kwargs

    def test_coupon_created_concurrently_is_reused(self, client, sample_product, make_user, make_headers, mock_stripe):
        user = make_user(points=1000)
        mock_stripe['coupon_create'].side_effect = stripe.InvalidRequestError(
            'Coupon already exists.', 'id', code='resource_already_exists'
        )

        response = client.post('/api/checkout/create-session', headers=make_headers(user), json={
            'items': [{'productId': sample_product.id, 'quantity': 2}],
            'pointsToRedeem': 400,
        })

        assert response.status_code == 200
        params = mock_stripe['create'].call_args.kwargs
        assert params['discounts'] == [{'coupon': 'lunara_points_2000'}]

    def test_coupon_rejection_is_a_gateway_error(self, client, sample_product, make_user, make_headers, mock_stripe):
        user = make_user(points=1000)
        mock_stripe['coupon_create'].side_effect = stripe.InvalidRequestError('Invalid currency', 'currency')

        response = client.post('/api/checkout/create-session', headers=make_headers(user), json={
            'items': [{'productId': sample_product.id, 'quantity': 2}],
            'pointsToRedeem': 400,
        })

        assert response.status_code == 502
        assert Order.query.count() == 0

    def test_guest_cannot_redeem(self, client, sample_product, mock_stripe):
        response = client.post('/api/checkout/create-session', json={
            'items': [{'productId': sample_product.id, 'quantity': 1}],
            'pointsToRedeem': 200,
        })

        order = db.session.get(Order, response.get_json()['orderId'])
        assert order.points_used == 0

    def test_lookup_by_slug(self, client, sample_product, mock_stripe):
        response = client.post('/api/checkout/create-session', json={
            'items': [{'slug': 'crescent-hoodie'}],
        })
        assert response.status_code == 200

    def test_empty_cart(self, client, mock_stripe):
        response = client.post('/api/checkout/create-session', json={'items': []})

        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_ITEMS'
        mock_stripe['create'].assert_not_called()

    def test_unknown_product(self, client, mock_stripe):
        response = client.post('/api/checkout/create-session', json={
            'items': [{'productId': 999, 'quantity': 1}],
        })
        assert response.status_code == 400

    def test_bad_quantity(self, client, sample_product, mock_stripe):
        response = client.post('/api/checkout/create-session', json={
            'items': [{'productId': sample_product.id, 'quantity': 0}],
        })
        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_QUANTITY'

    def test_stripe_failure_leaves_no_order(self, client, sample_product, mock_stripe):
        mock_stripe['create'].side_effect = stripe.APIConnectionError('Network down')

        response = client.post('/api/checkout/create-session', json={
            'items': [{'productId': sample_product.id, 'quantity': 1}],
        })

        assert response.status_code == 502
        assert response.get_json()['code'] == 'GATEWAY_ERROR'
        assert Order.query.count() == 0
