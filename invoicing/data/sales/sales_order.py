from invoicing import db
from invoicing.data.core.tenant_scoped_base import TenantScopedBase


class SalesOrder(TenantScopedBase):
    """Sales order header. Totals are stored in minor currency units."""
    __tablename__ = 'sales_orders'

    order_number = db.Column(db.Integer, nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False)

    status = db.Column(db.String(20), nullable=False, default='PENDING')  # PENDING/ACCEPTED/REJECTED

    sub_total = db.Column(db.BigInteger, nullable=False, default=0)
    tax_amount = db.Column(db.BigInteger, nullable=False, default=0)
    total = db.Column(db.BigInteger, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)
    terms = db.Column(db.Text, nullable=True)
    place_of_supply = db.Column(db.String(100), nullable=True)

    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'order_number', name='uix_sales_order_tenant_number'),
    )

    customer = db.relationship('Customer')
    items = db.relationship(
        'SalesOrderItem',
        back_populates='sales_order',
        cascade='all, delete-orphan',
        order_by='SalesOrderItem.id',
    )

    def __repr__(self):
        return f'<SalesOrder #{self.order_number} tenant={self.tenant_id} status={self.status}>'

    def to_dict(self, exclude=None, include_items=True):
        data = super().to_dict(exclude=exclude)
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data
