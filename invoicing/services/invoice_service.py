"""
Invoice Service
Read-only queries for invoices of one tenant.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from invoicing.business.core.errors import NotFoundError
from invoicing.business.core.requests import FieldErrors
from invoicing.business.core.state_machine import InvoiceStateMachine
from invoicing.data.invoices.invoice import Invoice
from invoicing.services.sales_order_service import MAX_PAGE_SIZE, Page, arg_int

DEFAULT_LIMIT = 20


@dataclass
class InvoiceFilters:
    status: Optional[str] = None
    customer_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_total: Optional[int] = None
    max_total: Optional[int] = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    @classmethod
    def from_args(cls, args, max_limit: int = MAX_PAGE_SIZE) -> "InvoiceFilters":
        errors = FieldErrors()
        filters = cls(
            status=(args.get('status') or None),
            customer_id=arg_int(args, 'customer_id', errors, minimum=1),
            start_date=_arg_date(args, 'start_date', errors),
            end_date=_arg_date(args, 'end_date', errors),
            min_total=arg_int(args, 'min_total', errors, minimum=0),
            max_total=arg_int(args, 'max_total', errors, minimum=0),
            limit=arg_int(args, 'limit', errors, minimum=1) or DEFAULT_LIMIT,
            offset=arg_int(args, 'offset', errors, minimum=0) or 0,
        )
        if filters.status is not None:
            filters.status = filters.status.upper()
            if filters.status not in InvoiceStateMachine.STATUSES:
                errors.add('status', f"must be one of {', '.join(sorted(InvoiceStateMachine.STATUSES))}")
        if filters.limit > max_limit:
            errors.add('limit', f'must be at most {max_limit}')
        if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
            errors.add('end_date', 'must not be before start_date')
        if (filters.min_total is not None and filters.max_total is not None
                and filters.min_total > filters.max_total):
            errors.add('max_total', 'must not be less than min_total')
        errors.raise_if_any("Invalid query parameters")
        return filters


def _arg_date(args, key, errors: FieldErrors) -> Optional[date]:
    raw = args.get(key)
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        errors.add(key, 'must be an ISO-8601 date')
        return None


class InvoiceService:

    @staticmethod
    def get_invoice(tenant_id: int, invoice_id: int) -> Invoice:
        invoice = Invoice.for_tenant(tenant_id).filter(Invoice.id == invoice_id).first()
        if invoice is None:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    @staticmethod
    def list_invoices(tenant_id: int, filters: Optional[InvoiceFilters] = None) -> Page:
        """
        List a tenant's invoices, newest issue date first.

        Args:
            tenant_id: Owning tenant
            filters: status, customer, issue date range, total range, limit/offset

        Returns:
            Page whose page number is derived from offset and limit
        """
        filters = filters or InvoiceFilters()
        query = Invoice.for_tenant(tenant_id)
        if filters.status is not None:
            query = query.filter(Invoice.status == filters.status)
        if filters.customer_id is not None:
            query = query.filter(Invoice.customer_id == filters.customer_id)
        if filters.start_date is not None:
            query = query.filter(Invoice.issue_date >= filters.start_date)
        if filters.end_date is not None:
            query = query.filter(Invoice.issue_date <= filters.end_date)
        if filters.min_total is not None:
            query = query.filter(Invoice.total >= filters.min_total)
        if filters.max_total is not None:
            query = query.filter(Invoice.total <= filters.max_total)

        total = query.count()
        invoices = (
            query.order_by(Invoice.issue_date.desc(), Invoice.id.desc())
            .offset(filters.offset)
            .limit(filters.limit)
            .all()
        )
        return Page(invoices, total, filters.offset // filters.limit + 1, filters.limit)
