import hashlib
from invoicing import db
from flask_login import UserMixin
from invoicing.data.core.tenant_scoped_base import TenantScopedBase


class User(UserMixin, TenantScopedBase):
    """API caller belonging to one tenant; identified by an API key digest"""
    __tablename__ = 'users'

    email = db.Column(db.String(120), unique=True, nullable=False)
    api_key_digest = db.Column(db.String(64), unique=True, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    tenant = db.relationship('Tenant')

    @staticmethod
    def digest_api_key(api_key):
        return hashlib.sha256(api_key.encode('utf-8')).hexdigest()

    def set_api_key(self, api_key):
        self.api_key_digest = self.digest_api_key(api_key)

    @classmethod
    def find_by_api_key(cls, api_key):
        if not api_key:
            return None
        return cls.query.filter_by(api_key_digest=cls.digest_api_key(api_key), is_active=True).first()

    def __repr__(self):
        return f'<User {self.email} tenant={self.tenant_id}>'
