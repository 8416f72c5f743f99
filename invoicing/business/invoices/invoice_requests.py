from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from typing import List, Optional

from invoicing.business.core.requests import (
    FieldErrors, LineItemInput, TEXT_MAX_LENGTH, check_id, check_line_items, check_text_length,
    read_date, read_int, read_line_items, read_text, require_object,
)
from invoicing.business.core.state_machine import InvoiceStateMachine


def _check_common(request, errors: FieldErrors) -> None:
    for key in ('customer_id', 'sales_order_id', 'invoice_number'):
        check_id(errors, key, getattr(request, key))
    if request.status is not None and request.status not in InvoiceStateMachine.STATUSES:
        errors.add('status', f"must be one of {', '.join(sorted(InvoiceStateMachine.STATUSES))}")
    if request.sales_order_id is not None and request.items is not None:
        errors.add('items', 'cannot be combined with sales_order_id')
    if request.issue_date and request.due_date and request.due_date < request.issue_date:
        errors.add('due_date', 'must not be before issue_date')
    check_text_length(errors, 'notes', request.notes, TEXT_MAX_LENGTH)
    check_text_length(errors, 'terms', request.terms, TEXT_MAX_LENGTH)


def _read_status(payload: dict, errors: FieldErrors) -> Optional[str]:
    status = read_text(payload, 'status', errors, max_length=20)
    return status.upper() if status else None


@dataclass
class InvoiceCreate:
    """
    Either sales_order_id (materialize an accepted order) or customer_id + items
    (standalone). invoice_number is only honoured for standalone invoices.
    """

    customer_id: Optional[int] = None
    sales_order_id: Optional[int] = None
    items: Optional[List[LineItemInput]] = None
    invoice_number: Optional[int] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    terms: Optional[str] = None

    @property
    def from_sales_order(self) -> bool:
        return self.sales_order_id is not None

    def validate(self) -> None:
        errors = FieldErrors()
        _check_common(self, errors)
        if not self.from_sales_order:
            if self.customer_id is None:
                errors.add('customer_id', 'is required when sales_order_id is not provided')
            check_line_items(self.items, errors, required=True)
        errors.raise_if_any("Invalid invoice data")

    @classmethod
    def from_payload(cls, payload) -> "InvoiceCreate":
        payload = require_object(payload)
        errors = FieldErrors()
        request = cls(
            customer_id=read_int(payload, 'customer_id', errors),
            sales_order_id=read_int(payload, 'sales_order_id', errors),
            items=read_line_items(payload, errors),
            invoice_number=read_int(payload, 'invoice_number', errors),
            issue_date=read_date(payload, 'issue_date', errors),
            due_date=read_date(payload, 'due_date', errors),
            status=_read_status(payload, errors),
            notes=read_text(payload, 'notes', errors),
            terms=read_text(payload, 'terms', errors),
        )
        errors.raise_if_any("Invalid invoice data")
        request.validate()
        return request


@dataclass
class InvoicePatch:
    """
    Partial update. sales_order_id re-derives the invoice from that order;
    items replace the lines; anything else is a plain field update.
    """

    invoice_number: Optional[int] = None
    customer_id: Optional[int] = None
    sales_order_id: Optional[int] = None
    items: Optional[List[LineItemInput]] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    terms: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def validate(self) -> None:
        errors = FieldErrors()
        if self.is_empty():
            errors.add('body', 'at least one field must be provided')
        _check_common(self, errors)
        check_line_items(self.items, errors, required=False)
        errors.raise_if_any("Invalid invoice data")

    @classmethod
    def from_payload(cls, payload) -> "InvoicePatch":
        payload = require_object(payload)
        errors = FieldErrors()
        request = cls(
            invoice_number=read_int(payload, 'invoice_number', errors),
            customer_id=read_int(payload, 'customer_id', errors),
            sales_order_id=read_int(payload, 'sales_order_id', errors),
            items=read_line_items(payload, errors),
            issue_date=read_date(payload, 'issue_date', errors),
            due_date=read_date(payload, 'due_date', errors),
            status=_read_status(payload, errors),
            notes=read_text(payload, 'notes', errors),
            terms=read_text(payload, 'terms', errors),
        )
        errors.raise_if_any("Invalid invoice data")
        request.validate()
        return request
