from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterable, List

from sqlalchemy import select, update

from invoicing.business.core.errors import InsufficientStockError, NotFoundError, ValidationError
from invoicing.data.inventory.inventory_item import InventoryItem
from invoicing.logger import get_logger

logger = get_logger("invoicing.business.inventory")


@dataclass(frozen=True)
class StockShortfall:
    inventory_item_id: int
    name: str
    requested: int
    available: int

    def to_dict(self) -> dict:
        return {
            'inventory_item_id': self.inventory_item_id,
            'name': self.name,
            'requested': self.requested,
            'available': self.available,
        }


def quantities_by_item(lines: Iterable) -> "OrderedDict[int, int]":
    """Sum quantities per inventory item, keeping first-seen order"""
    totals: "OrderedDict[int, int]" = OrderedDict()
    for line in lines:
        totals[line.inventory_item_id] = totals.get(line.inventory_item_id, 0) + line.quantity
    return totals


class InventoryLedger:
    """
    Stock quantities for a tenant's inventory items.

    Every mutation runs inside the caller's UnitOfWork:
    - check/require lock the rows for the rest of the transaction
    - decrement/increment are relative UPDATEs, never read-modify-write
    - decrement is guarded so quantity can never go below zero
    """

    # ---- locking & availability -------------------------------------------------

    def lock_items(self, uow, tenant_id: int, item_ids: Iterable[int]) -> Dict[int, InventoryItem]:
        ids = sorted(set(item_ids))
        if not ids:
            return {}
        rows = uow.session.execute(
            select(InventoryItem)
            .where(InventoryItem.tenant_id == tenant_id, InventoryItem.id.in_(ids))
            .order_by(InventoryItem.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        items = {row.id: row for row in rows}

        missing = [item_id for item_id in ids if item_id not in items]
        if missing:
            raise NotFoundError(
                "One or more inventory items not found",
                errors=[{'field': 'inventory_item_id', 'value': item_id, 'message': 'not found'}
                        for item_id in missing],
            )
        return items

    def check_availability(self, uow, tenant_id: int, lines: Iterable) -> List[StockShortfall]:
        """
        Lock the referenced rows and report every item whose quantity is short.

        Args:
            uow: Enclosing UnitOfWork
            tenant_id: Owning tenant
            lines: Objects with inventory_item_id and quantity; repeated items are summed

        Returns:
            list[StockShortfall]: Empty when every line can be fulfilled
        """
        requested = quantities_by_item(lines)
        items = self.lock_items(uow, tenant_id, requested.keys())

        shortfalls = []
        for item_id, quantity in requested.items():
            item = items[item_id]
            if item.quantity < quantity:
                shortfalls.append(StockShortfall(item_id, item.name, quantity, item.quantity))
        return shortfalls

    def require_availability(self, uow, tenant_id: int, lines: Iterable) -> None:
        """
        Raises:
            NotFoundError: If an item does not exist for the tenant
            InsufficientStockError: Listing every shortfall, not just the first
        """
        shortfalls = self.check_availability(uow, tenant_id, lines)
        if shortfalls:
            summary = ', '.join(
                f"{s.name} (requested: {s.requested}, available: {s.available})" for s in shortfalls
            )
            logger.info(f"Insufficient stock for tenant {tenant_id}: {summary}")
            raise InsufficientStockError(
                f"Insufficient stock for items: {summary}",
                errors=[s.to_dict() for s in shortfalls],
            )

    # ---- single-item adjustments ----------------------------------------------------

    def decrement(self, uow, tenant_id: int, item_id: int, quantity: int) -> None:
        self._check_quantity(quantity)
        result = uow.session.execute(
            update(InventoryItem)
            .where(
                InventoryItem.tenant_id == tenant_id,
                InventoryItem.id == item_id,
                InventoryItem.quantity >= quantity,
            )
            .values(quantity=InventoryItem.quantity - quantity)
            .execution_options(synchronize_session='fetch')
        )
        if result.rowcount == 0:
            item = uow.session.execute(
                select(InventoryItem)
                .where(InventoryItem.tenant_id == tenant_id, InventoryItem.id == item_id)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if item is None:
                raise NotFoundError(f"Inventory item {item_id} not found")
            raise InsufficientStockError(
                f"Insufficient stock for items: {item.name} (requested: {quantity}, available: {item.quantity})",
                errors=[StockShortfall(item.id, item.name, quantity, item.quantity).to_dict()],
            )
        logger.debug(f"Stock -{quantity} on item {item_id} (tenant {tenant_id})")

    def increment(self, uow, tenant_id: int, item_id: int, quantity: int) -> None:
        self._check_quantity(quantity)
        result = uow.session.execute(
            update(InventoryItem)
            .where(InventoryItem.tenant_id == tenant_id, InventoryItem.id == item_id)
            .values(quantity=InventoryItem.quantity + quantity)
            .execution_options(synchronize_session='fetch')
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Inventory item {item_id} not found")
        logger.debug(f"Stock +{quantity} on item {item_id} (tenant {tenant_id})")

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError("Stock adjustments must be positive whole quantities")

    # ---- document-level helpers -----------------------------------------------------

    def take_lines(self, uow, tenant_id: int, lines: Iterable) -> None:
        """Check every line first, then decrement; nothing is taken if anything is short"""
        lines = list(lines)
        self.require_availability(uow, tenant_id, lines)
        for item_id, quantity in quantities_by_item(lines).items():
            self.decrement(uow, tenant_id, item_id, quantity)

    def return_lines(self, uow, tenant_id: int, lines: Iterable) -> None:
        for item_id, quantity in quantities_by_item(lines).items():
            self.increment(uow, tenant_id, item_id, quantity)

    # ---- reads ---------------------------------------------------------------------

    @staticmethod
    def get_item(tenant_id: int, item_id: int) -> InventoryItem:
        item = InventoryItem.for_tenant(tenant_id).filter(InventoryItem.id == item_id).first()
        if item is None:
            raise NotFoundError(f"Inventory item {item_id} not found")
        return item

    @staticmethod
    def list_items(tenant_id: int, in_stock_only: bool = False) -> List[InventoryItem]:
        query = InventoryItem.for_tenant(tenant_id)
        if in_stock_only:
            query = query.filter(InventoryItem.quantity > 0)
        return query.order_by(InventoryItem.name, InventoryItem.id).all()

    @staticmethod
    def search_items(tenant_id: int, text: str, limit: int = 50) -> List[InventoryItem]:
        """Case-insensitive match on name, description or HSN/SAC code"""
        text = (text or '').strip()
        if not text:
            return []
        like = f"%{text}%"
        return (
            InventoryItem.for_tenant(tenant_id)
            .filter(
                InventoryItem.name.ilike(like)
                | InventoryItem.description.ilike(like)
                | InventoryItem.hsn_or_sac_code.ilike(like)
            )
            .order_by(InventoryItem.name, InventoryItem.id)
            .limit(limit)
            .all()
        )
