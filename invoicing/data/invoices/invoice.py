from invoicing import db
from invoicing.data.core.tenant_scoped_base import TenantScopedBase


class Invoice(TenantScopedBase):
    """Invoice header, optionally materialized from exactly one sales order"""
    __tablename__ = 'invoices'

    invoice_number = db.Column(db.Integer, nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False)
    # At most one invoice per sales order
    sales_order_id = db.Column(db.Integer, db.ForeignKey('sales_orders.id'), nullable=True, unique=True)

    issue_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='PENDING')  # PENDING/PAID/OVERDUE/CANCELLED

    sub_total = db.Column(db.BigInteger, nullable=False, default=0)
    tax_amount = db.Column(db.BigInteger, nullable=False, default=0)
    total = db.Column(db.BigInteger, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)
    terms = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'invoice_number', name='uix_invoice_tenant_number'),
    )

    customer = db.relationship('Customer')
    sales_order = db.relationship('SalesOrder')
    items = db.relationship(
        'InvoiceItem',
        back_populates='invoice',
        cascade='all, delete-orphan',
        order_by='InvoiceItem.id',
    )

    def __repr__(self):
        return f'<Invoice #{self.invoice_number} tenant={self.tenant_id} status={self.status}>'

    def to_dict(self, exclude=None, include_items=True):
        data = super().to_dict(exclude=exclude)
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data
