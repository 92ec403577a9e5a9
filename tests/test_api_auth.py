"""
Tests for the Auth API endpoints.

Tests cover:
- Registration with signup bonus
- Login / logout / session lookup
- Profile and password changes
- Password reset flow
- Account deletion
"""
import json
from datetime import datetime, timedelta

from app.models import User, Order, PointsTransaction
from app.services.session_service import SessionService, USER_SESSION
from app.utils.cache import cache, cache_key


def register(client, email='nova@example.com', password='moonlight123', name='Nova'):
    return client.post(
        '/api/auth/register',
        data=json.dumps({'email': email, 'password': password, 'name': name}),
        content_type='application/json'
    )


class TestRegister:
    """Tests for POST /api/auth/register."""

    def test_register_credits_signup_bonus(self, client):
        response = register(client)

        assert response.status_code == 201
        data = response.get_json()
        assert data['token']
        assert data['user']['points'] == 50
        assert data['user']['tier'] == 'MOON'

        user = User.query.filter_by(email='nova@example.com').first()
        entries = PointsTransaction.query.filter_by(user_id=user.id).all()
        assert [(e.type, e.source, e.amount) for e in entries] == [('EARN', 'SIGNUP', 50)]

    def test_register_normalizes_email(self, client):
        register(client, email='  Nova@Example.COM ')
        assert User.query.filter_by(email='nova@example.com').count() == 1

    def test_duplicate_email(self, client):
        register(client)
        response = register(client, email='NOVA@example.com')

        assert response.status_code == 409
        assert response.get_json()['code'] == 'EMAIL_EXISTS'

    def test_short_password(self, client):
        response = register(client, password='short')

        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_PASSWORD'

    def test_invalid_email(self, client):
        response = register(client, email='not-an-email')
        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_EMAIL'

    def test_non_string_credentials_are_rejected(self, client):
        response = register(client, email=12345, password=12345678)

        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_EMAIL'

        response = register(client, password=123456789)
        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_PASSWORD'

    def test_token_works_for_me(self, client):
        token = register(client).get_json()['token']

        response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 200
        assert response.get_json()['user']['email'] == 'nova@example.com'


class TestLogin:
    """Tests for login, logout and /me."""

    def test_login(self, client, sample_user):
        response = client.post('/api/auth/login', json={
            'email': 'LUNA@example.com', 'password': 'moonlight123'
        })

        assert response.status_code == 200
        assert response.get_json()['user']['id'] == sample_user.id

    def test_wrong_password(self, client, sample_user):
        response = client.post('/api/auth/login', json={
            'email': 'luna@example.com', 'password': 'wrong-password'
        })

        assert response.status_code == 401
        assert response.get_json()['code'] == 'INVALID_CREDENTIALS'

    def test_login_with_non_string_password(self, client, sample_user):
        response = client.post('/api/auth/login', json={
            'email': 'luna@example.com', 'password': 12345678
        })

        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION_ERROR'

    def test_unverified_account(self, client, db, sample_user):
        sample_user.verified_at = None
        db.session.commit()

        response = client.post('/api/auth/login', json={
            'email': 'luna@example.com', 'password': 'moonlight123'
        })

        assert response.status_code == 401
        assert response.get_json()['code'] == 'EMAIL_NOT_VERIFIED'

    def test_me_requires_session(self, client):
        response = client.get('/api/auth/me')

        assert response.status_code == 401
        assert response.get_json() == {'error': 'Not authenticated', 'code': 'AUTH_REQUIRED'}

    def test_logout_revokes_token(self, client, auth_headers):
        assert client.get('/api/auth/me', headers=auth_headers).status_code == 200

        client.post('/api/auth/logout', headers=auth_headers)

        assert client.get('/api/auth/me', headers=auth_headers).status_code == 401

    def test_expired_session(self, client, sample_user):
        token = SessionService().create(sample_user.id)
        key = cache_key(USER_SESSION, token)
        session = cache.get(key)
        session['expiresAt'] = 0
        cache.set(key, session)

        response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 401
        assert cache.get(key) is None


class TestProfile:
    """Tests for profile and password changes."""

    def test_update_name(self, client, auth_headers, sample_user):
        response = client.put('/api/auth/update', headers=auth_headers, json={'name': 'Selene'})

        assert response.status_code == 200
        assert response.get_json()['user']['name'] == 'Selene'
        assert sample_user.name == 'Selene'

    def test_change_password(self, client, auth_headers, sample_user):
        response = client.post('/api/auth/change-password', headers=auth_headers, json={
            'currentPassword': 'moonlight123', 'newPassword': 'eclipse-2026'
        })

        assert response.status_code == 200
        assert sample_user.check_password('eclipse-2026')

    def test_change_password_wrong_current(self, client, auth_headers):
        response = client.post('/api/auth/password', headers=auth_headers, json={
            'currentPassword': 'nope-nope', 'newPassword': 'eclipse-2026'
        })
        assert response.status_code == 401


class TestPasswordReset:
    """Tests for forgot-password / reset-password."""

    def test_reset_flow(self, client, sample_user):
        response = client.post('/api/auth/forgot-password', json={'email': 'luna@example.com'})
        assert response.status_code == 200
        token = sample_user.reset_token
        assert token

        response = client.post('/api/auth/reset-password', json={
            'token': token, 'newPassword': 'fresh-moon-99'
        })
        assert response.status_code == 200

        login = client.post('/api/auth/login', json={
            'email': 'luna@example.com', 'password': 'fresh-moon-99'
        })
        assert login.status_code == 200
        assert sample_user.reset_token is None

    def test_unknown_email_same_answer(self, client):
        response = client.post('/api/auth/forgot-password', json={'email': 'ghost@example.com'})
        assert response.status_code == 200
        assert response.get_json()['success'] is True

    def test_expired_token(self, client, db, sample_user):
        sample_user.reset_token = 'expired-token'
        sample_user.reset_token_expires = datetime.utcnow() - timedelta(minutes=1)
        db.session.commit()

        response = client.post('/api/auth/reset-password', json={
            'token': 'expired-token', 'newPassword': 'fresh-moon-99'
        })

        assert response.status_code == 400
        assert response.get_json()['code'] == 'INVALID_TOKEN'


class TestDeleteAccount:
    """Tests for DELETE /api/auth/delete."""

    def test_delete_removes_ledger_and_detaches_orders(self, client, db, make_user, make_headers, make_order):
        user = make_user(points=300)
        user_id = user.id
        order = make_order(user=user)
        headers = make_headers(user)

        response = client.delete('/api/auth/delete', headers=headers)

        assert response.status_code == 200
        assert db.session.get(User, user_id) is None
        assert PointsTransaction.query.filter_by(user_id=user_id).count() == 0
        assert db.session.get(Order, order.id).user_id is None
        assert client.get('/api/auth/me', headers=headers).status_code == 401
