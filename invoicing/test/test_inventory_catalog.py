import pytest

from invoicing.business.core.errors import ConflictError, InsufficientStockError, NotFoundError, ValidationError
from invoicing.business.core.requests import LineItemInput
from invoicing.business.inventory.inventory_catalog import ITEM_IN_USE_MESSAGE, InventoryCatalogManager
from invoicing.business.inventory.inventory_ledger import InventoryLedger
from invoicing.business.inventory.inventory_requests import InventoryItemCreate, InventoryItemPatch
from invoicing.business.invoices.invoice_manager import InvoiceManager
from invoicing.business.invoices.invoice_requests import InvoiceCreate
from invoicing.business.sales.sales_order_manager import SalesOrderManager
from invoicing.business.sales.sales_order_requests import SalesOrderCreate


@pytest.fixture
def catalog():
    return InventoryCatalogManager()


def test_create_defaults_to_no_stock(seed, catalog):
    item = catalog.create(seed.tenant_id, InventoryItemCreate(name='Hinge', unit_price=120))

    assert item.id is not None
    assert (item.tenant_id, item.quantity, item.in_stock) == (seed.tenant_id, 0, False)
    assert InventoryLedger.get_item(seed.tenant_id, item.id).name == 'Hinge'


@pytest.mark.parametrize('payload, fields', [
    ({}, {'name', 'unit_price'}),
    ({'name': 'Hinge', 'unit_price': 0}, {'unit_price'}),
    ({'name': 'Hinge', 'unit_price': 5, 'quantity': -1}, {'quantity'}),
    ({'name': 'Hinge', 'unit_price': 5, 'tax_rate': 150}, {'tax_rate'}),
    ({'name': 'Hinge', 'unit_price': 5, 'hsn_or_sac_code': 'X' * 11}, {'hsn_or_sac_code'}),
])
def test_create_payload_validation(payload, fields):
    with pytest.raises(ValidationError) as exc:
        InventoryItemCreate.from_payload(payload)
    assert {error['field'] for error in exc.value.errors} == fields


def test_update_changes_catalog_fields_only_when_given(seed, catalog):
    item = catalog.update(seed.tenant_id, seed.widget_id, InventoryItemPatch(unit_price=1200))

    assert (item.name, item.unit_price, item.tax_rate, item.quantity) == ('Widget X', 1200, 10.0, 5)


def test_quantity_change_restocks_and_writes_off(seed, catalog, stock):
    catalog.update(seed.tenant_id, seed.widget_id, InventoryItemPatch(quantity_change=7))
    assert stock(seed.widget_id) == 12

    catalog.update(seed.tenant_id, seed.widget_id, InventoryItemPatch(quantity_change=-12))
    assert stock(seed.widget_id) == 0


def test_write_off_beyond_stock_rolls_back_the_whole_update(seed, catalog, stock):
    with pytest.raises(InsufficientStockError) as exc:
        catalog.update(seed.tenant_id, seed.widget_id, InventoryItemPatch(name='Renamed', quantity_change=-6))

    assert exc.value.errors[0]['available'] == 5
    assert stock(seed.widget_id) == 5
    assert InventoryLedger.get_item(seed.tenant_id, seed.widget_id).name == 'Widget X'


@pytest.mark.parametrize('patch', [InventoryItemPatch(), InventoryItemPatch(quantity_change=0),
                                   InventoryItemPatch(name='')])
def test_empty_or_meaningless_patch_is_rejected(seed, catalog, patch):
    with pytest.raises(ValidationError):
        catalog.update(seed.tenant_id, seed.widget_id, patch)


def test_items_are_tenant_scoped(seed, catalog):
    with pytest.raises(NotFoundError):
        catalog.update(seed.tenant_id, seed.foreign_item_id, InventoryItemPatch(name='Mine now'))
    with pytest.raises(NotFoundError):
        catalog.delete(seed.tenant_id, seed.foreign_item_id)

    assert InventoryLedger.get_item(seed.other_tenant_id, seed.foreign_item_id).name == 'Foreign Part'


def test_delete_unused_item(seed, catalog):
    catalog.delete(seed.tenant_id, seed.gadget_id)

    with pytest.raises(NotFoundError):
        InventoryLedger.get_item(seed.tenant_id, seed.gadget_id)


def test_item_on_a_sales_order_cannot_be_deleted(seed, catalog):
    SalesOrderManager().create(seed.tenant_id, SalesOrderCreate(
        customer_id=seed.customer_id, items=[LineItemInput(seed.widget_id, 1)],
    ))

    with pytest.raises(ConflictError) as exc:
        catalog.delete(seed.tenant_id, seed.widget_id)

    assert exc.value.message == ITEM_IN_USE_MESSAGE
    assert InventoryLedger.get_item(seed.tenant_id, seed.widget_id) is not None


def test_item_on_an_invoice_cannot_be_deleted(seed, catalog):
    InvoiceManager().create_standalone(seed.tenant_id, InvoiceCreate(
        customer_id=seed.customer_id, items=[LineItemInput(seed.gadget_id, 2)],
    ))

    with pytest.raises(ConflictError):
        catalog.delete(seed.tenant_id, seed.gadget_id)
