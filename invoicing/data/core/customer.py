from invoicing import db
from invoicing.data.core.tenant_scoped_base import TenantScopedBase


class Customer(TenantScopedBase):
    """Customer of a tenant. Only existence and contact details matter to the order/invoice flow."""
    __tablename__ = 'customers'

    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(200), nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    address = db.Column(db.Text, nullable=True)
    deleted = db.Column(db.Boolean, default=False, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'email', name='uix_customer_tenant_email'),
    )

    def __repr__(self):
        return f'<Customer {self.id}: {self.name}>'
