import pytest

from invoicing.business.core.errors import InsufficientStockError, NotFoundError, ValidationError
from invoicing.business.core.requests import LineItemInput
from invoicing.business.core.unit_of_work import UnitOfWork
from invoicing.business.inventory.inventory_ledger import InventoryLedger


@pytest.fixture
def ledger():
    return InventoryLedger()


def test_availability_sums_repeated_items(seed, ledger):
    with UnitOfWork() as uow:
        shortfalls = ledger.check_availability(uow, seed.tenant_id, [
            LineItemInput(seed.widget_id, 3),
            LineItemInput(seed.widget_id, 3),
        ])
    assert len(shortfalls) == 1
    assert shortfalls[0].to_dict() == {
        'inventory_item_id': seed.widget_id, 'name': 'Widget X', 'requested': 6, 'available': 5,
    }


def test_require_availability_lists_every_shortfall(seed, ledger):
    with pytest.raises(InsufficientStockError) as exc:
        with UnitOfWork() as uow:
            ledger.require_availability(uow, seed.tenant_id, [
                LineItemInput(seed.widget_id, 6),
                LineItemInput(seed.gadget_id, 11),
            ])
    names = [error['name'] for error in exc.value.errors]
    assert names == ['Widget X', 'Gadget Y']
    assert 'Widget X' in exc.value.message and 'Gadget Y' in exc.value.message


def test_take_lines_is_all_or_nothing(seed, ledger, stock):
    with pytest.raises(InsufficientStockError):
        with UnitOfWork() as uow:
            ledger.take_lines(uow, seed.tenant_id, [
                LineItemInput(seed.widget_id, 2),
                LineItemInput(seed.gadget_id, 11),
            ])
    assert stock(seed.widget_id) == 5
    assert stock(seed.gadget_id) == 10


def test_take_and_return_lines(seed, ledger, stock):
    lines = [LineItemInput(seed.widget_id, 2), LineItemInput(seed.gadget_id, 4), LineItemInput(seed.widget_id, 1)]
    with UnitOfWork() as uow:
        ledger.take_lines(uow, seed.tenant_id, lines)
    assert stock(seed.widget_id) == 2
    assert stock(seed.gadget_id) == 6

    with UnitOfWork() as uow:
        ledger.return_lines(uow, seed.tenant_id, lines)
    assert stock(seed.widget_id) == 5
    assert stock(seed.gadget_id) == 10


def test_decrement_never_goes_negative(seed, ledger, stock):
    with pytest.raises(InsufficientStockError) as exc:
        with UnitOfWork() as uow:
            ledger.decrement(uow, seed.tenant_id, seed.widget_id, 6)
    assert exc.value.errors[0]['available'] == 5
    assert stock(seed.widget_id) == 5

    with UnitOfWork() as uow:
        ledger.decrement(uow, seed.tenant_id, seed.widget_id, 5)
    assert stock(seed.widget_id) == 0


def test_adjustments_are_tenant_scoped(seed, ledger, stock):
    with pytest.raises(NotFoundError):
        with UnitOfWork() as uow:
            ledger.decrement(uow, seed.tenant_id, seed.foreign_item_id, 1)
    with pytest.raises(NotFoundError):
        with UnitOfWork() as uow:
            ledger.increment(uow, seed.tenant_id, seed.foreign_item_id, 1)
    with pytest.raises(NotFoundError):
        with UnitOfWork() as uow:
            ledger.check_availability(uow, seed.tenant_id, [LineItemInput(seed.foreign_item_id, 1)])
    assert stock(seed.foreign_item_id) == 100


def test_adjustments_require_positive_quantities(seed, ledger):
    with pytest.raises(ValidationError):
        with UnitOfWork() as uow:
            ledger.increment(uow, seed.tenant_id, seed.widget_id, 0)


def test_failed_unit_of_work_rolls_back_earlier_adjustments(seed, ledger, stock):
    with pytest.raises(InsufficientStockError):
        with UnitOfWork() as uow:
            ledger.increment(uow, seed.tenant_id, seed.gadget_id, 3)
            ledger.decrement(uow, seed.tenant_id, seed.widget_id, 50)
    assert stock(seed.gadget_id) == 10


def test_reads(seed, ledger):
    assert ledger.get_item(seed.tenant_id, seed.widget_id).name == 'Widget X'
    with pytest.raises(NotFoundError):
        ledger.get_item(seed.tenant_id, seed.foreign_item_id)

    assert [item.name for item in ledger.list_items(seed.tenant_id)] == ['Gadget Y', 'Widget X']
    assert [item.name for item in ledger.search_items(seed.tenant_id, 'widget')] == ['Widget X']
    assert [item.name for item in ledger.search_items(seed.tenant_id, '7318')] == ['Widget X']
    assert ledger.search_items(seed.tenant_id, 'foreign') == []
    assert ledger.search_items(seed.tenant_id, '   ') == []
