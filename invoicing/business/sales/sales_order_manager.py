from __future__ import annotations

from typing import Optional

from sqlalchemy import select

from invoicing.business.core.errors import NotFoundError
from invoicing.business.core.state_machine import SalesOrderStateMachine
from invoicing.business.core.unit_of_work import UnitOfWork
from invoicing.business.numbering.document_numbering import DocumentKind, DocumentNumberingService
from invoicing.business.pricing.totals_calculator import PricedDocument, TotalsCalculator
from invoicing.business.sales.sales_order_requests import SalesOrderCreate, SalesOrderPatch
from invoicing.data.core.customer import Customer
from invoicing.data.sales.sales_order import SalesOrder
from invoicing.data.sales.sales_order_item import SalesOrderItem
from invoicing.logger import get_logger
from invoicing.services.sales_order_service import Page, SalesOrderFilters, SalesOrderService

logger = get_logger("invoicing.business.sales")


def require_customer(session, tenant_id: int, customer_id: int) -> Customer:
    customer = session.execute(
        select(Customer).where(
            Customer.tenant_id == tenant_id,
            Customer.id == customer_id,
            Customer.deleted.is_(False),
        )
    ).scalar_one_or_none()
    if customer is None:
        raise NotFoundError(
            f"Customer {customer_id} not found",
            errors=[{'field': 'customer_id', 'value': customer_id, 'message': 'not found'}],
        )
    return customer


class SalesOrderManager:
    """
    Sales order lifecycle: create, edit, accept/reject.

    Orders never move stock; stock is only taken when an accepted
    order is turned into an invoice.
    """

    def __init__(self, calculator: TotalsCalculator | None = None,
                 numbering: DocumentNumberingService | None = None):
        self.calculator = calculator or TotalsCalculator()
        self.numbering = numbering or DocumentNumberingService()

    def create(self, tenant_id: int, request: SalesOrderCreate) -> SalesOrder:
        request.validate()

        with UnitOfWork(label="create sales order") as uow:
            require_customer(uow.session, tenant_id, request.customer_id)
            priced = self.calculator.calculate(tenant_id, request.items, session=uow.session)
            order_number = self.numbering.next_number(uow, tenant_id, DocumentKind.ORDER)

            order = SalesOrder(
                tenant_id=tenant_id,
                order_number=order_number,
                customer_id=request.customer_id,
                status=SalesOrderStateMachine.PENDING,
                notes=request.notes,
                terms=request.terms,
                place_of_supply=request.place_of_supply,
            )
            self._apply_priced(order, priced)
            uow.session.add(order)
            uow.flush()

        logger.info(f"Created sales order #{order.order_number} (id {order.id}) for tenant {tenant_id}: "
                    f"{len(priced.lines)} lines, total {priced.total}")
        return order

    def update(self, tenant_id: int, order_id: int, patch: SalesOrderPatch) -> SalesOrder:
        patch.validate()

        with UnitOfWork(label="update sales order") as uow:
            order = self._get_for_update(uow, tenant_id, order_id)

            if patch.customer_id is not None:
                require_customer(uow.session, tenant_id, patch.customer_id)
                order.customer_id = patch.customer_id

            if patch.items is not None:
                priced = self.calculator.calculate(tenant_id, patch.items, session=uow.session)
                order.items.clear()
                uow.flush()
                self._apply_priced(order, priced)

            for field_name in ('notes', 'terms', 'place_of_supply'):
                value = getattr(patch, field_name)
                if value is not None:
                    setattr(order, field_name, value)
            uow.flush()

        logger.info(f"Updated sales order {order_id} for tenant {tenant_id}"
                    f"{' (items replaced)' if patch.items is not None else ''}")
        return order

    def update_status(self, tenant_id: int, order_id: int, new_status: str) -> SalesOrder:
        """
        Move an order to a new status.

        Raises:
            ValidationError: Unknown status
            NotFoundError: Order not found for the tenant
            InvalidTransitionError: Attempt to go back to PENDING
        """
        SalesOrderStateMachine.validate_status(new_status)

        with UnitOfWork(label="update sales order status") as uow:
            order = self._get_for_update(uow, tenant_id, order_id)
            previous = order.status
            SalesOrderStateMachine.validate_transition(previous, new_status)
            order.status = new_status

        logger.info(f"Sales order {order_id} status {previous} -> {new_status} (tenant {tenant_id})")
        return order

    def get(self, tenant_id: int, order_id: int) -> SalesOrder:
        return SalesOrderService.get_order(tenant_id, order_id)

    def list(self, tenant_id: int, filters: Optional[SalesOrderFilters] = None) -> Page:
        return SalesOrderService.list_orders(tenant_id, filters)

    @staticmethod
    def _get_for_update(uow, tenant_id: int, order_id: int) -> SalesOrder:
        order = uow.session.execute(
            select(SalesOrder)
            .where(SalesOrder.tenant_id == tenant_id, SalesOrder.id == order_id)
            .with_for_update()
        ).scalar_one_or_none()
        if order is None:
            raise NotFoundError(f"Sales order {order_id} not found")
        return order

    @staticmethod
    def _apply_priced(order: SalesOrder, priced: PricedDocument) -> None:
        order.items = [
            SalesOrderItem(hsn_or_sac_code=line.hsn_or_sac_code, **line.as_row())
            for line in priced.lines
        ]
        order.sub_total = priced.sub_total
        order.tax_amount = priced.tax_amount
        order.total = priced.total
