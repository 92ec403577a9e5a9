"""
Shared pytest fixtures for the LUNARA backend.

The app fixture keeps one application context pushed for the whole test, so
requests made through the test client share its database session.
"""
import json
import pytest
from datetime import datetime

from app import create_app
from app.extensions import db as _db
from app.models import User, Order, OrderStatus, Product, AdminUser
from app.services.session_service import SessionService, ADMIN_SESSION


@pytest.fixture
def app():
    """Application configured for testing with a fresh in-memory database."""
    app = create_app('testing')

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def make_user(app):
    """Factory for verified customer accounts."""
    counter = {'n': 0}

    def _make_user(email=None, password='moonlight123', name='Luna', points=0):
        counter['n'] += 1
        user = User(email=email or f'customer{counter["n"]}@example.com', name=name)
        user.set_password(password)
        user.verified_at = datetime.utcnow()
        _db.session.add(user)
        _db.session.commit()

        if points:
            from app.services.points_service import PointsService
            PointsService().adjust(user, points)
            _db.session.commit()
        return user

    return _make_user


@pytest.fixture
def sample_user(make_user):
    return make_user(email='luna@example.com')


@pytest.fixture
def auth_headers(sample_user):
    token = SessionService().create(sample_user.id, email=sample_user.email)
    return {
        'Authorization': f'Bearer {token}',
        'Content-Type': 'application/json'
    }


@pytest.fixture
def make_headers(app):
    """Session headers for any customer account."""
    def _make_headers(user):
        token = SessionService().create(user.id, email=user.email)
        return {'Authorization': f'Bearer {token}', 'Content-Type': 'application/json'}

    return _make_headers


@pytest.fixture
def sample_product(app):
    product = Product(
        name='Crescent Hoodie',
        slug='crescent-hoodie',
        description='Heavyweight hoodie with moon print',
        price=5000,
        category='hoodies',
        variants_json=json.dumps([{'size': 'M', 'color': 'black'}]),
        stock=10,
        active=True,
    )
    _db.session.add(product)
    _db.session.commit()
    return product


@pytest.fixture
def make_order(app):
    """Factory for pending orders."""
    def _make_order(user=None, subtotal=3000, points_used=0, discount=0,
                    status=OrderStatus.PENDING.value, session_id=None):
        order = Order(
            user_id=user.id if user else None,
            status=status,
            subtotal=subtotal,
            discount=discount,
            points_used=points_used,
            total=subtotal - discount,
            items_json=json.dumps([{'productId': 1, 'name': 'Crescent Hoodie', 'quantity': 1}]),
            stripe_session_id=session_id,
        )
        _db.session.add(order)
        _db.session.commit()
        return order

    return _make_order


@pytest.fixture
def sample_admin(app):
    admin = AdminUser(email='staff@lunara.shop', role='admin')
    admin.set_password('stardust-admin')
    _db.session.add(admin)
    _db.session.commit()
    return admin


@pytest.fixture
def admin_headers(sample_admin):
    token = SessionService(ADMIN_SESSION).create(sample_admin.id, email=sample_admin.email, role=sample_admin.role)
    return {'Authorization': f'Bearer {token}', 'Content-Type': 'application/json'}


@pytest.fixture
def super_admin_headers(app):
    admin = AdminUser(email='owner@lunara.shop', role='super_admin')
    admin.set_password('stardust-owner')
    _db.session.add(admin)
    _db.session.commit()
    token = SessionService(ADMIN_SESSION).create(admin.id, email=admin.email, role=admin.role)
    return {'Authorization': f'Bearer {token}', 'Content-Type': 'application/json'}
