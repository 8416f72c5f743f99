from invoicing import db
from invoicing.business.core.data_insertion_mixin import DataInsertionMixin


class SalesOrderItem(db.Model, DataInsertionMixin):
    """Line item of a sales order; replaced wholesale whenever the order's items change"""
    __tablename__ = 'sales_order_items'

    id = db.Column(db.Integer, primary_key=True)
    sales_order_id = db.Column(db.Integer, db.ForeignKey('sales_orders.id', ondelete='CASCADE'), nullable=False, index=True)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey('inventory_items.id'), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.BigInteger, nullable=False)
    tax_rate = db.Column(db.Float, nullable=False, default=0)
    hsn_or_sac_code = db.Column(db.String(10), nullable=True)
    # quantity * unit_price, tax excluded
    amount = db.Column(db.BigInteger, nullable=False)

    sales_order = db.relationship('SalesOrder', back_populates='items')
    inventory_item = db.relationship('InventoryItem')

    def __repr__(self):
        return f'<SalesOrderItem {self.id}: item={self.inventory_item_id} qty={self.quantity}>'
