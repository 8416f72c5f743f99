"""
Inventory Service
Presentation helpers for a tenant's stock levels.
"""

from typing import Any, Dict, List

from invoicing.business.inventory.inventory_ledger import InventoryLedger
from invoicing.data.inventory.inventory_item import InventoryItem


class InventoryService:

    @staticmethod
    def serialize(item: InventoryItem) -> Dict[str, Any]:
        data = item.to_dict(exclude={'tenant_id'})
        data['in_stock'] = item.in_stock
        return data

    @staticmethod
    def stock_levels(tenant_id: int, in_stock_only: bool = False) -> List[Dict[str, Any]]:
        return [InventoryService.serialize(item)
                for item in InventoryLedger.list_items(tenant_id, in_stock_only=in_stock_only)]

    @staticmethod
    def item_detail(tenant_id: int, item_id: int) -> Dict[str, Any]:
        return InventoryService.serialize(InventoryLedger.get_item(tenant_id, item_id))

    @staticmethod
    def search(tenant_id: int, text: str) -> List[Dict[str, Any]]:
        return [InventoryService.serialize(item) for item in InventoryLedger.search_items(tenant_id, text)]
