"""
Tests for the Orders API endpoints.
"""


class TestOrderList:
    """Tests for GET /api/orders."""

    def test_lists_own_orders_only(self, client, make_user, make_headers, make_order):
        user = make_user()
        other = make_user()
        mine = make_order(user=user, subtotal=4500)
        make_order(user=other)

        response = client.get('/api/orders', headers=make_headers(user))

        assert response.status_code == 200
        orders = response.get_json()['orders']
        assert [o['id'] for o in orders] == [mine.id]
        assert orders[0]['total'] == 45.0
        assert orders[0]['totalCents'] == 4500
        assert orders[0]['items'][0]['name'] == 'Crescent Hoodie'

    def test_requires_session(self, client):
        assert client.get('/api/orders').status_code == 401


class TestOrderDetail:
    """Tests for GET /api/orders/<id>."""

    def test_own_order(self, client, make_user, make_headers, make_order):
        user = make_user()
        order = make_order(user=user)

        response = client.get(f'/api/orders/{order.id}', headers=make_headers(user))

        assert response.status_code == 200
        assert response.get_json()['order']['status'] == 'pending'

    def test_guest_order_visible_by_id(self, client, make_order):
        order = make_order()
        assert client.get(f'/api/orders/{order.id}').status_code == 200

    def test_other_users_order_forbidden(self, client, make_user, make_headers, make_order):
        order = make_order(user=make_user())

        response = client.get(f'/api/orders/{order.id}', headers=make_headers(make_user()))

        assert response.status_code == 403
        assert response.get_json()['code'] == 'PERMISSION_DENIED'

    def test_account_order_hidden_from_guests(self, client, make_user, make_order):
        order = make_order(user=make_user())
        assert client.get(f'/api/orders/{order.id}').status_code == 403

    def test_missing_order(self, client):
        response = client.get('/api/orders/does-not-exist')

        assert response.status_code == 404
        assert response.get_json()['code'] == 'ORDER_NOT_FOUND'
