"""Initial LUNARA schema: accounts, points ledger, orders, catalog, storefront, admin

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1b2c3d4e5f6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create all LUNARA tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('points_balance', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tier', sa.String(50), nullable=False, server_default='MOON'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('verification_token', sa.String(100), nullable=True),
        sa.Column('reset_token', sa.String(100), nullable=True),
        sa.Column('reset_token_expires', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email')
    )
    op.create_index('idx_users_tier', 'users', ['tier'])

    op.create_table(
        'points_transactions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(10), nullable=False),
        sa.Column('source', sa.String(20), nullable=True),
        sa.Column('reference_id', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('amount != 0', name='ck_points_amount_nonzero'),
        sa.CheckConstraint("type IN ('EARN', 'SPEND', 'ADJUST', 'EXPIRE')", name='ck_points_type'),
        sa.CheckConstraint(
            "source IN ('ORDER', 'SIGNUP', 'NEWSLETTER', 'REVIEW', 'ADMIN', 'REFUND')",
            name='ck_points_source'
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_points_transactions_user'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_points_user', 'points_transactions', ['user_id'])
    op.create_index('idx_points_type', 'points_transactions', ['type'])
    op.create_index('idx_points_reference', 'points_transactions', ['reference_id'])

    op.create_table(
        'orders',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=True),
        sa.Column('stripe_session_id', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('subtotal', sa.Integer(), nullable=False),
        sa.Column('discount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('points_used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('points_earned', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total', sa.Integer(), nullable=False),
        sa.Column('items_json', sa.Text(), nullable=True),
        sa.Column('shipping_address_json', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('shipped_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'paid', 'shipped', 'delivered', 'cancelled', 'refunded')",
            name='ck_orders_status'
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_orders_user'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_orders_user', 'orders', ['user_id'])
    op.create_index('idx_orders_status', 'orders', ['status'])
    op.create_index('idx_orders_stripe', 'orders', ['stripe_session_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('long_description', sa.Text(), nullable=True),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('images_json', sa.Text(), nullable=True),
        sa.Column('variants_json', sa.Text(), nullable=True),
        sa.Column('quality_score_json', sa.Text(), nullable=True),
        sa.Column('tags_json', sa.Text(), nullable=True),
        sa.Column('stock', sa.Integer(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug', name='uq_products_slug')
    )
    op.create_index('idx_products_category', 'products', ['category'])
    op.create_index('idx_products_active', 'products', ['active'])

    op.create_table(
        'newsletter_subscribers',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('subscribed_at', sa.DateTime(), nullable=True),
        sa.Column('unsubscribed_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_newsletter_email')
    )

    op.create_table(
        'contact_requests',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('subject', sa.String(255), nullable=True),
        sa.Column('order_id', sa.String(36), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='new'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('replied_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('new', 'read', 'replied', 'closed')", name='ck_contact_status'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_contact_email', 'contact_requests', ['email'])
    op.create_index('idx_contact_status', 'contact_requests', ['status'])

    op.create_table(
        'admin_users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='admin'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.CheckConstraint("role IN ('admin', 'super_admin')", name='ck_admin_role'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_admin_users_email')
    )

    op.create_table(
        'audit_log',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('admin_id', sa.String(36), nullable=False),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=True),
        sa.Column('entity_id', sa.String(100), nullable=True),
        sa.Column('details_json', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['admin_id'], ['admin_users.id'], name='fk_audit_log_admin'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_audit_admin', 'audit_log', ['admin_id'])
    op.create_index('idx_audit_entity', 'audit_log', ['entity_type', 'entity_id'])


def downgrade():
    """Drop all LUNARA tables."""
    op.drop_index('idx_audit_entity', 'audit_log')
    op.drop_index('idx_audit_admin', 'audit_log')
    op.drop_table('audit_log')
    op.drop_table('admin_users')
    op.drop_index('idx_contact_status', 'contact_requests')
    op.drop_index('idx_contact_email', 'contact_requests')
    op.drop_table('contact_requests')
    op.drop_table('newsletter_subscribers')
    op.drop_index('idx_products_active', 'products')
    op.drop_index('idx_products_category', 'products')
    op.drop_table('products')
    op.drop_index('idx_orders_stripe', 'orders')
    op.drop_index('idx_orders_status', 'orders')
    op.drop_index('idx_orders_user', 'orders')
    op.drop_table('orders')
    op.drop_index('idx_points_reference', 'points_transactions')
    op.drop_index('idx_points_type', 'points_transactions')
    op.drop_index('idx_points_user', 'points_transactions')
    op.drop_table('points_transactions')
    op.drop_index('idx_users_tier', 'users')
    op.drop_table('users')
