from flask import request

from invoicing.auth import current_tenant_id
from invoicing.business.inventory.inventory_catalog import InventoryCatalogManager
from invoicing.business.inventory.inventory_requests import InventoryItemCreate, InventoryItemPatch
from invoicing.presentation.routes.api import api_bp, json_body, logger
from invoicing.presentation.routes.api.responses import api_response
from invoicing.services.inventory_service import InventoryService
from invoicing.utils.logging_sanitizer import sanitize_payload


@api_bp.post('/inventory')
def create_inventory_item():
    payload = json_body()
    logger.debug(f"Create inventory item payload: {sanitize_payload(payload)}")
    item = InventoryCatalogManager().create(current_tenant_id(), InventoryItemCreate.from_payload(payload))
    return api_response(InventoryService.serialize(item), 'Inventory item created successfully', 201)


@api_bp.get('/inventory')
def list_inventory():
    in_stock_only = request.args.get('in_stock', '').lower() in ('true', '1', 'yes')
    items = InventoryService.stock_levels(current_tenant_id(), in_stock_only=in_stock_only)
    return api_response(items, 'Inventory retrieved successfully')


@api_bp.get('/inventory/search')
def search_inventory():
    items = InventoryService.search(current_tenant_id(), request.args.get('q', ''))
    return api_response(items, 'Inventory search completed')


@api_bp.get('/inventory/<int:item_id>')
def get_inventory_item(item_id):
    return api_response(InventoryService.item_detail(current_tenant_id(), item_id),
                        'Inventory item retrieved successfully')


@api_bp.patch('/inventory/<int:item_id>')
def update_inventory_item(item_id):
    payload = json_body()
    logger.debug(f"Update inventory item {item_id} payload: {sanitize_payload(payload)}")
    item = InventoryCatalogManager().update(current_tenant_id(), item_id, InventoryItemPatch.from_payload(payload))
    return api_response(InventoryService.serialize(item), 'Inventory item updated successfully')


@api_bp.delete('/inventory/<int:item_id>')
def delete_inventory_item(item_id):
    InventoryCatalogManager().delete(current_tenant_id(), item_id)
    return api_response(None, 'Inventory item deleted successfully')
