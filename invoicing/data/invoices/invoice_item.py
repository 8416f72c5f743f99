from invoicing import db
from invoicing.business.core.data_insertion_mixin import DataInsertionMixin


class InvoiceItem(db.Model, DataInsertionMixin):
    """Billed line; its quantity is what the invoice has taken out of stock"""
    __tablename__ = 'invoice_items'

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False, index=True)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey('inventory_items.id'), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.BigInteger, nullable=False)
    tax_rate = db.Column(db.Float, nullable=False, default=0)
    amount = db.Column(db.BigInteger, nullable=False)

    invoice = db.relationship('Invoice', back_populates='items')
    inventory_item = db.relationship('InventoryItem')

    def __repr__(self):
        return f'<InvoiceItem {self.id}: item={self.inventory_item_id} qty={self.quantity}>'
