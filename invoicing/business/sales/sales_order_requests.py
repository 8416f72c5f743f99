from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from invoicing.business.core.requests import (
    FieldErrors, LineItemInput, TEXT_MAX_LENGTH, check_id, check_line_items, check_text_length,
    read_int, read_line_items, read_text, require_object,
)

PLACE_OF_SUPPLY_MAX_LENGTH = 100


@dataclass
class SalesOrderCreate:
    customer_id: int
    items: List[LineItemInput]
    notes: Optional[str] = None
    terms: Optional[str] = None
    place_of_supply: Optional[str] = None

    def validate(self) -> None:
        errors = FieldErrors()
        if self.customer_id is None:
            errors.add('customer_id', 'is required')
        check_id(errors, 'customer_id', self.customer_id)
        check_line_items(self.items, errors, required=True)
        check_text_length(errors, 'notes', self.notes, TEXT_MAX_LENGTH)
        check_text_length(errors, 'terms', self.terms, TEXT_MAX_LENGTH)
        check_text_length(errors, 'place_of_supply', self.place_of_supply, PLACE_OF_SUPPLY_MAX_LENGTH)
        errors.raise_if_any("Invalid sales order data")

    @classmethod
    def from_payload(cls, payload) -> "SalesOrderCreate":
        payload = require_object(payload)
        errors = FieldErrors()
        request = cls(
            customer_id=read_int(payload, 'customer_id', errors),
            items=read_line_items(payload, errors),
            notes=read_text(payload, 'notes', errors),
            terms=read_text(payload, 'terms', errors),
            place_of_supply=read_text(payload, 'place_of_supply', errors, PLACE_OF_SUPPLY_MAX_LENGTH),
        )
        errors.raise_if_any("Invalid sales order data")
        request.validate()
        return request


@dataclass
class SalesOrderPatch:
    """Partial update; items, when present, replace the order's items wholesale"""

    customer_id: Optional[int] = None
    items: Optional[List[LineItemInput]] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    place_of_supply: Optional[str] = None

    def is_empty(self) -> bool:
        return all(value is None for value in
                   (self.customer_id, self.items, self.notes, self.terms, self.place_of_supply))

    def validate(self) -> None:
        errors = FieldErrors()
        if self.is_empty():
            errors.add('body', 'at least one field must be provided')
        check_id(errors, 'customer_id', self.customer_id)
        check_line_items(self.items, errors, required=False)
        check_text_length(errors, 'notes', self.notes, TEXT_MAX_LENGTH)
        check_text_length(errors, 'terms', self.terms, TEXT_MAX_LENGTH)
        check_text_length(errors, 'place_of_supply', self.place_of_supply, PLACE_OF_SUPPLY_MAX_LENGTH)
        errors.raise_if_any("Invalid sales order data")

    @classmethod
    def from_payload(cls, payload) -> "SalesOrderPatch":
        payload = require_object(payload)
        errors = FieldErrors()
        request = cls(
            customer_id=read_int(payload, 'customer_id', errors),
            items=read_line_items(payload, errors),
            notes=read_text(payload, 'notes', errors),
            terms=read_text(payload, 'terms', errors),
            place_of_supply=read_text(payload, 'place_of_supply', errors, PLACE_OF_SUPPLY_MAX_LENGTH),
        )
        errors.raise_if_any("Invalid sales order data")
        request.validate()
        return request
