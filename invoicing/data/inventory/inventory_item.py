from invoicing import db
from invoicing.data.core.tenant_scoped_base import TenantScopedBase


class InventoryItem(TenantScopedBase):
    """Stock item of a tenant: catalog price, default tax rate and quantity on hand"""
    __tablename__ = 'inventory_items'

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    hsn_or_sac_code = db.Column(db.String(10), nullable=True)

    # Minor currency units
    unit_price = db.Column(db.BigInteger, nullable=False)
    # Percent, 0-100
    tax_rate = db.Column(db.Float, nullable=True)
    # Non-negative by ledger rule, not by table constraint
    quantity = db.Column(db.BigInteger, nullable=False, default=0)

    def __repr__(self):
        return f'<InventoryItem {self.id}: {self.name} qty={self.quantity}>'

    @property
    def in_stock(self):
        return (self.quantity or 0) > 0
