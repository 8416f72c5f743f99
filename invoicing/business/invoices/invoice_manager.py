"""
Invoice lifecycle

Every stock-moving path (create from an order, standalone create, line
replacement on update) runs inside one UnitOfWork so stock, numbering and
the invoice rows commit together or not at all.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional

from flask import current_app, has_app_context
from sqlalchemy import select

from invoicing.business.core.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from invoicing.business.core.state_machine import InvoiceStateMachine, SalesOrderStateMachine
from invoicing.business.core.unit_of_work import UnitOfWork
from invoicing.business.inventory.inventory_ledger import InventoryLedger
from invoicing.business.invoices.invoice_requests import InvoiceCreate, InvoicePatch
from invoicing.business.numbering.document_numbering import DocumentKind, DocumentNumberingService
from invoicing.business.pricing.totals_calculator import PricedDocument, TotalsCalculator
from invoicing.business.sales.sales_order_manager import require_customer
from invoicing.data.invoices.invoice import Invoice
from invoicing.data.invoices.invoice_item import InvoiceItem
from invoicing.data.sales.sales_order import SalesOrder
from invoicing.logger import get_logger
from invoicing.services.invoice_service import InvoiceFilters, InvoiceService
from invoicing.services.sales_order_service import Page

logger = get_logger("invoicing.business.invoices")

DEFAULT_DUE_DAYS = 14

DUPLICATE_INVOICE_MESSAGE = "An invoice already exists for this sales order"
DUPLICATE_NUMBER_MESSAGE = "Invoice number already in use"


class InvoiceManager:

    def __init__(self, calculator: TotalsCalculator | None = None,
                 ledger: InventoryLedger | None = None,
                 numbering: DocumentNumberingService | None = None,
                 due_days: int | None = None):
        self.calculator = calculator or TotalsCalculator()
        self.ledger = ledger or InventoryLedger()
        self.numbering = numbering or DocumentNumberingService()
        self._due_days = due_days

    @property
    def due_days(self) -> int:
        if self._due_days is not None:
            return self._due_days
        if has_app_context():
            return int(current_app.config.get('INVOICE_DUE_DAYS', DEFAULT_DUE_DAYS))
        return DEFAULT_DUE_DAYS

    # ---- create ---------------------------------------------------------------------

    def create(self, tenant_id: int, request: InvoiceCreate) -> Invoice:
        """Materialize from a sales order when sales_order_id is set, otherwise standalone"""
        request.validate()
        if request.from_sales_order:
            return self.create_from_sales_order(tenant_id, request.sales_order_id, request)
        return self.create_standalone(tenant_id, request)

    def create_from_sales_order(self, tenant_id: int, sales_order_id: int,
                                overrides: Optional[InvoiceCreate] = None) -> Invoice:
        """
        Turn an ACCEPTED sales order into an invoice and take its stock.

        Args:
            tenant_id: Owning tenant
            sales_order_id: Order to invoice
            overrides: Optional issue/due date, status, notes and terms

        Raises:
            NotFoundError: Order not found for the tenant
            InvalidStateError: Order is not ACCEPTED
            ConflictError: Order already has an invoice
            InsufficientStockError: Any line short on stock; nothing is written
        """
        overrides = overrides or InvoiceCreate(sales_order_id=sales_order_id)

        with UnitOfWork(label="invoice sales order", conflict_message=DUPLICATE_INVOICE_MESSAGE) as uow:
            order = self._get_invoiceable_order(uow, tenant_id, sales_order_id)
            self._ensure_not_invoiced(uow, tenant_id, order.id)

            self.ledger.take_lines(uow, tenant_id, order.items)
            number = self.numbering.next_number(uow, tenant_id, DocumentKind.INVOICE)

            issue_date, due_date = self._resolve_dates(overrides.issue_date, overrides.due_date)
            invoice = Invoice(
                tenant_id=tenant_id,
                invoice_number=number,
                customer_id=order.customer_id,
                sales_order_id=order.id,
                issue_date=issue_date,
                due_date=due_date,
                status=overrides.status or InvoiceStateMachine.PENDING,
                notes=overrides.notes or order.notes,
                terms=overrides.terms or order.terms,
                sub_total=order.sub_total,
                tax_amount=order.tax_amount,
                total=order.total,
            )
            invoice.items = self._copy_order_lines(order)
            uow.session.add(invoice)
            uow.flush()

        logger.info(f"Invoiced sales order {sales_order_id} as invoice #{invoice.invoice_number} "
                    f"(id {invoice.id}) for tenant {tenant_id}")
        return invoice

    def create_standalone(self, tenant_id: int, request: InvoiceCreate) -> Invoice:
        request.validate()
        if request.from_sales_order:
            raise ValidationError("Standalone invoices cannot reference a sales order")

        with UnitOfWork(label="create invoice", conflict_message=DUPLICATE_NUMBER_MESSAGE) as uow:
            require_customer(uow.session, tenant_id, request.customer_id)
            priced = self.calculator.calculate(tenant_id, request.items, session=uow.session)
            self.ledger.take_lines(uow, tenant_id, priced.lines)

            if request.invoice_number is not None:
                self._ensure_number_free(uow, tenant_id, request.invoice_number)
                self.numbering.record_explicit(uow, tenant_id, DocumentKind.INVOICE, request.invoice_number)
                number = request.invoice_number
            else:
                number = self.numbering.next_number(uow, tenant_id, DocumentKind.INVOICE)

            issue_date, due_date = self._resolve_dates(request.issue_date, request.due_date)
            invoice = Invoice(
                tenant_id=tenant_id,
                invoice_number=number,
                customer_id=request.customer_id,
                issue_date=issue_date,
                due_date=due_date,
                status=request.status or InvoiceStateMachine.PENDING,
                notes=request.notes,
                terms=request.terms,
            )
            self._apply_priced(invoice, priced)
            uow.session.add(invoice)
            uow.flush()

        logger.info(f"Created standalone invoice #{invoice.invoice_number} (id {invoice.id}) "
                    f"for tenant {tenant_id}: total {invoice.total}")
        return invoice

    # ---- update ---------------------------------------------------------------------

    def update(self, tenant_id: int, invoice_id: int, patch: InvoicePatch) -> Invoice:
        """
        Apply a partial update.

        Stock moves only when the lines change: the old lines are returned
        and the new ones taken in the same transaction.
        """
        patch.validate()

        with UnitOfWork(label="update invoice", conflict_message=DUPLICATE_INVOICE_MESSAGE) as uow:
            invoice = self._get_for_update(uow, tenant_id, invoice_id)
            if patch.status is not None:
                InvoiceStateMachine.validate_transition(invoice.status, patch.status)

            if patch.sales_order_id is not None:
                order = self._get_invoiceable_order(uow, tenant_id, patch.sales_order_id)
                self._ensure_not_invoiced(uow, tenant_id, order.id, exclude_invoice_id=invoice.id)
                self._replace_lines(uow, tenant_id, invoice, self._copy_order_lines(order))
                invoice.sales_order_id = order.id
                invoice.customer_id = order.customer_id
                invoice.sub_total = order.sub_total
                invoice.tax_amount = order.tax_amount
                invoice.total = order.total
                invoice.notes = patch.notes or order.notes
                invoice.terms = patch.terms or order.terms
            elif patch.items is not None:
                priced = self.calculator.calculate(tenant_id, patch.items, session=uow.session)
                self._replace_lines(uow, tenant_id, invoice, self._priced_items(priced))
                invoice.sub_total = priced.sub_total
                invoice.tax_amount = priced.tax_amount
                invoice.total = priced.total

            if patch.customer_id is not None and patch.sales_order_id is None:
                require_customer(uow.session, tenant_id, patch.customer_id)
                invoice.customer_id = patch.customer_id
            if patch.invoice_number is not None and patch.invoice_number != invoice.invoice_number:
                self._ensure_number_free(uow, tenant_id, patch.invoice_number)
                self.numbering.record_explicit(uow, tenant_id, DocumentKind.INVOICE, patch.invoice_number)
                invoice.invoice_number = patch.invoice_number
            if patch.issue_date is not None:
                invoice.issue_date = patch.issue_date
            if patch.due_date is not None:
                invoice.due_date = patch.due_date
            if invoice.due_date < invoice.issue_date:
                raise ValidationError(
                    "Due date must not be before issue date",
                    errors=[{'field': 'due_date', 'message': 'must not be before issue_date'}],
                )
            if patch.sales_order_id is None:
                if patch.notes is not None:
                    invoice.notes = patch.notes
                if patch.terms is not None:
                    invoice.terms = patch.terms
            if patch.status is not None:
                invoice.status = patch.status
            uow.flush()

        logger.info(f"Updated invoice {invoice_id} for tenant {tenant_id}")
        return invoice

    def update_status(self, tenant_id: int, invoice_id: int, new_status: str) -> Invoice:
        """
        Raises:
            ValidationError: Unknown status
            NotFoundError: Invoice not found for the tenant
            InvalidTransitionError: Attempt to go back to PENDING
        """
        InvoiceStateMachine.validate_status(new_status)

        with UnitOfWork(label="update invoice status") as uow:
            invoice = self._get_for_update(uow, tenant_id, invoice_id)
            previous = invoice.status
            InvoiceStateMachine.validate_transition(previous, new_status)
            invoice.status = new_status

        logger.info(f"Invoice {invoice_id} status {previous} -> {new_status} (tenant {tenant_id})")
        return invoice

    # ---- reads ----------------------------------------------------------------------

    def get(self, tenant_id: int, invoice_id: int) -> Invoice:
        return InvoiceService.get_invoice(tenant_id, invoice_id)

    def list(self, tenant_id: int, filters: Optional[InvoiceFilters] = None) -> Page:
        return InvoiceService.list_invoices(tenant_id, filters)

    # ---- helpers --------------------------------------------------------------------

    def _resolve_dates(self, issue_date: Optional[date], due_date: Optional[date]):
        issue_date = issue_date or date.today()
        due_date = due_date or issue_date + timedelta(days=self.due_days)
        if due_date < issue_date:
            raise ValidationError(
                "Due date must not be before issue date",
                errors=[{'field': 'due_date', 'message': 'must not be before issue_date'}],
            )
        return issue_date, due_date

    def _replace_lines(self, uow, tenant_id: int, invoice: Invoice, new_items: List[InvoiceItem]) -> None:
        self.ledger.return_lines(uow, tenant_id, list(invoice.items))
        invoice.items.clear()
        uow.flush()
        self.ledger.take_lines(uow, tenant_id, new_items)
        invoice.items.extend(new_items)

    @staticmethod
    def _get_for_update(uow, tenant_id: int, invoice_id: int) -> Invoice:
        invoice = uow.session.execute(
            select(Invoice)
            .where(Invoice.tenant_id == tenant_id, Invoice.id == invoice_id)
            .with_for_update()
        ).scalar_one_or_none()
        if invoice is None:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    @staticmethod
    def _get_invoiceable_order(uow, tenant_id: int, sales_order_id: int) -> SalesOrder:
        order = uow.session.execute(
            select(SalesOrder)
            .where(SalesOrder.tenant_id == tenant_id, SalesOrder.id == sales_order_id)
            .with_for_update()
        ).scalar_one_or_none()
        if order is None:
            raise NotFoundError(f"Sales order {sales_order_id} not found")
        if order.status != SalesOrderStateMachine.ACCEPTED:
            raise InvalidStateError(
                f"Sales order must be {SalesOrderStateMachine.ACCEPTED} to create an invoice "
                f"(current status: {order.status})"
            )
        return order

    @staticmethod
    def _ensure_not_invoiced(uow, tenant_id: int, sales_order_id: int,
                             exclude_invoice_id: Optional[int] = None) -> None:
        query = select(Invoice.id).where(
            Invoice.tenant_id == tenant_id,
            Invoice.sales_order_id == sales_order_id,
        )
        if exclude_invoice_id is not None:
            query = query.where(Invoice.id != exclude_invoice_id)
        if uow.session.execute(query).first() is not None:
            raise ConflictError(DUPLICATE_INVOICE_MESSAGE)

    @staticmethod
    def _ensure_number_free(uow, tenant_id: int, invoice_number: int) -> None:
        taken = uow.session.execute(
            select(Invoice.id).where(Invoice.tenant_id == tenant_id, Invoice.invoice_number == invoice_number)
        ).first()
        if taken is not None:
            raise ConflictError(
                DUPLICATE_NUMBER_MESSAGE,
                errors=[{'field': 'invoice_number', 'value': invoice_number, 'message': 'already in use'}],
            )

    @staticmethod
    def _copy_order_lines(order: SalesOrder) -> List[InvoiceItem]:
        return [
            InvoiceItem(
                inventory_item_id=line.inventory_item_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                tax_rate=line.tax_rate,
                amount=line.amount,
            )
            for line in order.items
        ]

    @staticmethod
    def _priced_items(priced: PricedDocument) -> List[InvoiceItem]:
        return [InvoiceItem(**line.as_row()) for line in priced.lines]

    def _apply_priced(self, invoice: Invoice, priced: PricedDocument) -> None:
        invoice.items = self._priced_items(priced)
        invoice.sub_total = priced.sub_total
        invoice.tax_amount = priced.tax_amount
        invoice.total = priced.total
