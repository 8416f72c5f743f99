from invoicing import db


class TenantCounter(db.Model):
    """
    Per-tenant document counters.

    Each column holds the last number handed out for its document kind;
    rows are seeded at 0 and only ever moved by a single atomic UPDATE.
    """
    __tablename__ = 'tenant_counters'

    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), primary_key=True)
    next_invoice_number = db.Column(db.Integer, nullable=False, default=0)
    next_order_number = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return (f'<TenantCounter tenant={self.tenant_id} '
                f'invoice={self.next_invoice_number} order={self.next_order_number}>')
