"""
Database models for the LUNARA storefront.
Accounts, the points ledger, orders and the supporting catalog tables.
"""
from .user import User
from .points import PointsTransaction, PointsTransactionType, PointsSource
from .order import Order, OrderStatus
from .product import Product
from .newsletter import NewsletterSubscriber
from .contact import ContactRequest
from .admin import AdminUser, AuditLog

__all__ = [
    'User',
    # Points ledger
    'PointsTransaction',
    'PointsTransactionType',
    'PointsSource',
    # Orders
    'Order',
    'OrderStatus',
    # Catalog & storefront
    'Product',
    'NewsletterSubscriber',
    'ContactRequest',
    # Admin
    'AdminUser',
    'AuditLog',
]
