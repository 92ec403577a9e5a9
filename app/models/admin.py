"""
Admin users and the audit trail of their actions.

Admins are kept apart from storefront users: separate table, separate
sessions, separate login.
"""
import json
import uuid
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from ..extensions import db


class AdminUser(db.Model):
    __tablename__ = 'admin_users'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), default='admin', nullable=False)  # admin, super_admin
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)

    __table_args__ = (
        db.CheckConstraint("role IN ('admin', 'super_admin')", name='ck_admin_role'),
    )

    def __repr__(self):
        return f'<AdminUser {self.email}>'

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'role': self.role,
            'last_login': self.last_login.isoformat() if self.last_login else None,
        }


class AuditLog(db.Model):
    """One row per admin mutation."""
    __tablename__ = 'audit_log'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    admin_id = db.Column(db.String(36), db.ForeignKey('admin_users.id'), nullable=False)
    action = db.Column(db.String(100), nullable=False)
    entity_type = db.Column(db.String(50))
    entity_id = db.Column(db.String(100))
    details_json = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    admin = db.relationship('AdminUser', backref='audit_entries')

    __table_args__ = (
        db.Index('idx_audit_admin', 'admin_id'),
        db.Index('idx_audit_entity', 'entity_type', 'entity_id'),
    )

    @classmethod
    def record(cls, admin_id: str, action: str, entity_type: str = None,
               entity_id: str = None, details: dict = None) -> 'AuditLog':
        """Add an audit entry to the current session (caller commits)."""
        entry = cls(
            admin_id=admin_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details_json=json.dumps(details) if details else None,
        )
        db.session.add(entry)
        return entry

    @property
    def details(self):
        return json.loads(self.details_json) if self.details_json else None

    def to_dict(self):
        return {
            'id': self.id,
            'admin_id': self.admin_id,
            'action': self.action,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'details': self.details,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
