"""
Inventory catalog maintenance

Adds, edits and removes a tenant's inventory items. Stock adjustments go
through the InventoryLedger so they obey the same non-negative rule as
invoicing does.
"""

from __future__ import annotations

from sqlalchemy import select

from invoicing.business.core.errors import ConflictError
from invoicing.business.core.unit_of_work import UnitOfWork
from invoicing.business.inventory.inventory_ledger import InventoryLedger
from invoicing.business.inventory.inventory_requests import InventoryItemCreate, InventoryItemPatch
from invoicing.data.inventory.inventory_item import InventoryItem
from invoicing.data.invoices.invoice_item import InvoiceItem
from invoicing.data.sales.sales_order_item import SalesOrderItem
from invoicing.logger import get_logger

logger = get_logger("invoicing.business.inventory.catalog")

ITEM_IN_USE_MESSAGE = "Inventory item is referenced by sales orders or invoices"

_CATALOG_FIELDS = ('name', 'unit_price', 'description', 'tax_rate', 'hsn_or_sac_code')


class InventoryCatalogManager:

    def __init__(self, ledger: InventoryLedger | None = None):
        self.ledger = ledger or InventoryLedger()

    def create(self, tenant_id: int, request: InventoryItemCreate) -> InventoryItem:
        request.validate()

        with UnitOfWork(label="create inventory item") as uow:
            item = InventoryItem(
                tenant_id=tenant_id,
                name=request.name,
                description=request.description,
                unit_price=request.unit_price,
                tax_rate=request.tax_rate,
                hsn_or_sac_code=request.hsn_or_sac_code,
                quantity=request.quantity,
            )
            uow.session.add(item)
            uow.flush()

        logger.info(f"Created inventory item {item.id} '{item.name}' for tenant {tenant_id} "
                    f"with {item.quantity} in stock")
        return item

    def update(self, tenant_id: int, item_id: int, patch: InventoryItemPatch) -> InventoryItem:
        """
        Raises:
            NotFoundError: Item not found for the tenant
            InsufficientStockError: A negative quantity_change larger than the stock on hand
        """
        patch.validate()

        with UnitOfWork(label="update inventory item") as uow:
            item = self._lock_item(uow, tenant_id, item_id)

            for name in _CATALOG_FIELDS:
                value = getattr(patch, name)
                if value is not None:
                    setattr(item, name, value)
            uow.flush()

            if patch.quantity_change is not None and patch.quantity_change > 0:
                self.ledger.increment(uow, tenant_id, item_id, patch.quantity_change)
            elif patch.quantity_change is not None:
                self.ledger.decrement(uow, tenant_id, item_id, -patch.quantity_change)

        logger.info(f"Updated inventory item {item_id} for tenant {tenant_id}")
        return item

    def delete(self, tenant_id: int, item_id: int) -> None:
        """
        Raises:
            NotFoundError: Item not found for the tenant
            ConflictError: Item still appears on a sales order or invoice line
        """
        with UnitOfWork(label="delete inventory item", conflict_message=ITEM_IN_USE_MESSAGE) as uow:
            item = self._lock_item(uow, tenant_id, item_id)

            for line_model in (SalesOrderItem, InvoiceItem):
                in_use = uow.session.execute(
                    select(line_model.id).where(line_model.inventory_item_id == item_id).limit(1)
                ).first()
                if in_use is not None:
                    raise ConflictError(ITEM_IN_USE_MESSAGE)

            uow.session.delete(item)

        logger.info(f"Deleted inventory item {item_id} for tenant {tenant_id}")

    def _lock_item(self, uow, tenant_id: int, item_id: int) -> InventoryItem:
        return self.ledger.lock_items(uow, tenant_id, [item_id])[item_id]
