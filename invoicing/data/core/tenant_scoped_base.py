from invoicing import db
from datetime import datetime
from sqlalchemy.orm import declared_attr
from invoicing.business.core.data_insertion_mixin import DataInsertionMixin


class TenantScopedBase(db.Model, DataInsertionMixin):
    """Abstract base class for every row owned by exactly one tenant"""

    __abstract__ = True

    @declared_attr
    def __tablename__(cls):
        return cls.__name__.lower() + 's'

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @declared_attr
    def tenant_id(cls):
        return db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False, index=True)

    @classmethod
    def for_tenant(cls, tenant_id):
        """Query restricted to one tenant's rows"""
        return cls.query.filter(cls.tenant_id == tenant_id)
