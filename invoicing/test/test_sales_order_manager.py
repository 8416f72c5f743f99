import pytest

from invoicing.business.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from invoicing.business.core.requests import LineItemInput
from invoicing.business.sales.sales_order_manager import SalesOrderManager
from invoicing.business.sales.sales_order_requests import SalesOrderCreate, SalesOrderPatch
from invoicing.data.sales.sales_order_item import SalesOrderItem
from invoicing.services.sales_order_service import SalesOrderFilters


@pytest.fixture
def manager():
    return SalesOrderManager()


def _order(seed, manager, quantity=3, **kwargs):
    request = SalesOrderCreate(
        customer_id=kwargs.pop('customer_id', seed.customer_id),
        items=kwargs.pop('items', [LineItemInput(seed.widget_id, quantity)]),
        **kwargs,
    )
    return manager.create(seed.tenant_id, request)


def test_create_prices_lines_and_leaves_stock_alone(seed, manager, stock):
    order = _order(seed, manager, notes='Deliver to dock 4', place_of_supply='KA')

    assert order.status == 'PENDING'
    assert order.order_number == 1
    assert (order.sub_total, order.tax_amount, order.total) == (3000, 300, 3300)
    assert [(i.quantity, i.unit_price, i.tax_rate, i.amount, i.hsn_or_sac_code) for i in order.items] == [
        (3, 1000, 10.0, 3000, '7318'),
    ]
    assert order.notes == 'Deliver to dock 4'
    assert stock(seed.widget_id) == 5


def test_order_numbers_increase_per_tenant(seed, manager):
    first = _order(seed, manager)
    second = _order(seed, manager, quantity=1)
    other = manager.create(seed.other_tenant_id, SalesOrderCreate(
        customer_id=seed.other_customer_id, items=[LineItemInput(seed.foreign_item_id, 1)],
    ))
    assert (first.order_number, second.order_number, other.order_number) == (1, 2, 1)


def test_create_rejects_foreign_or_missing_customer(seed, manager):
    with pytest.raises(NotFoundError):
        _order(seed, manager, customer_id=seed.other_customer_id)
    with pytest.raises(NotFoundError):
        _order(seed, manager, customer_id=424242)


def test_create_rejects_foreign_inventory(seed, manager):
    with pytest.raises(NotFoundError):
        _order(seed, manager, items=[LineItemInput(seed.foreign_item_id, 1)])


def test_create_validates_shape(seed, manager):
    with pytest.raises(ValidationError) as exc:
        _order(seed, manager, items=[])
    assert exc.value.errors[0]['field'] == 'items'

    with pytest.raises(ValidationError) as exc:
        _order(seed, manager, items=[LineItemInput(seed.widget_id, 0, unit_price=-5)])
    fields = {error['field'] for error in exc.value.errors}
    assert fields == {'items[0].quantity', 'items[0].unit_price'}


def test_update_replaces_items_and_totals(seed, manager, db):
    order = _order(seed, manager)
    updated = manager.update(seed.tenant_id, order.id, SalesOrderPatch(
        items=[LineItemInput(seed.gadget_id, 4), LineItemInput(seed.widget_id, 1, unit_price=900)],
        terms='Net 30',
    ))

    assert [(i.inventory_item_id, i.quantity) for i in updated.items] == [(seed.gadget_id, 4), (seed.widget_id, 1)]
    assert (updated.sub_total, updated.tax_amount, updated.total) == (1900, 90, 1990)
    assert updated.terms == 'Net 30'
    assert db.session.query(SalesOrderItem).filter_by(sales_order_id=order.id).count() == 2


def test_scalar_update_keeps_items(seed, manager):
    order = _order(seed, manager)
    updated = manager.update(seed.tenant_id, order.id, SalesOrderPatch(notes='Call first'))
    assert updated.notes == 'Call first'
    assert updated.total == 3300
    assert len(updated.items) == 1


def test_update_requires_a_field_and_an_existing_order(seed, manager):
    order = _order(seed, manager)
    with pytest.raises(ValidationError):
        manager.update(seed.tenant_id, order.id, SalesOrderPatch())
    with pytest.raises(NotFoundError):
        manager.update(seed.other_tenant_id, order.id, SalesOrderPatch(notes='x'))


def test_status_cannot_return_to_pending(seed, manager):
    order = _order(seed, manager)
    assert manager.update_status(seed.tenant_id, order.id, 'ACCEPTED').status == 'ACCEPTED'

    with pytest.raises(InvalidTransitionError):
        manager.update_status(seed.tenant_id, order.id, 'PENDING')
    assert manager.get(seed.tenant_id, order.id).status == 'ACCEPTED'

    assert manager.update_status(seed.tenant_id, order.id, 'REJECTED').status == 'REJECTED'


def test_status_must_be_known(seed, manager):
    order = _order(seed, manager)
    with pytest.raises(ValidationError):
        manager.update_status(seed.tenant_id, order.id, 'SHIPPED')


def test_orders_are_invisible_to_other_tenants(seed, manager):
    order = _order(seed, manager)
    with pytest.raises(NotFoundError):
        manager.get(seed.other_tenant_id, order.id)
    with pytest.raises(NotFoundError):
        manager.update_status(seed.other_tenant_id, order.id, 'ACCEPTED')


def test_list_filters_and_paginates(seed, manager):
    for quantity in (1, 2, 3):
        _order(seed, manager, quantity=quantity)
    _order(seed, manager, customer_id=seed.silent_customer_id)
    accepted = _order(seed, manager)
    manager.update_status(seed.tenant_id, accepted.id, 'ACCEPTED')

    page = manager.list(seed.tenant_id, SalesOrderFilters(page=1, limit=2))
    assert page.total == 5
    assert page.pages == 3
    assert len(page.items) == 2

    page = manager.list(seed.tenant_id, SalesOrderFilters(customer_id=seed.silent_customer_id))
    assert page.total == 1

    page = manager.list(seed.tenant_id, SalesOrderFilters(status='ACCEPTED'))
    assert [order.id for order in page.items] == [accepted.id]

    assert manager.list(seed.other_tenant_id).total == 0


def test_filters_from_query_args():
    filters = SalesOrderFilters.from_args({'status': 'accepted', 'page': '2', 'limit': '25'})
    assert (filters.status, filters.page, filters.limit) == ('ACCEPTED', 2, 25)

    with pytest.raises(ValidationError) as exc:
        SalesOrderFilters.from_args({'limit': '500', 'page': 'x'})
    assert {error['field'] for error in exc.value.errors} == {'limit', 'page'}
