from invoicing import db
from datetime import datetime
from invoicing.business.core.data_insertion_mixin import DataInsertionMixin


class Tenant(db.Model, DataInsertionMixin):
    """An isolated business account; owns every other row in the system"""
    __tablename__ = 'tenants'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(200), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Tenant {self.id}: {self.name}>'
