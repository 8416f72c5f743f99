from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Optional

from invoicing.business.core.requests import (
    FieldErrors, HSN_MAX_LENGTH, MAX_QUANTITY, MAX_UNIT_PRICE, check_text_length,
    read_int, read_number, read_text, require_object,
)

NAME_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 1000


def _check_catalog_fields(request, errors: FieldErrors) -> None:
    if request.name is not None and not request.name:
        errors.add('name', 'must not be blank')
    check_text_length(errors, 'name', request.name, NAME_MAX_LENGTH)
    check_text_length(errors, 'description', request.description, DESCRIPTION_MAX_LENGTH)
    check_text_length(errors, 'hsn_or_sac_code', request.hsn_or_sac_code, HSN_MAX_LENGTH)
    if request.unit_price is not None and not 1 <= request.unit_price <= MAX_UNIT_PRICE:
        errors.add('unit_price', f'must be between 1 and {MAX_UNIT_PRICE}')
    if request.tax_rate is not None and not 0 <= request.tax_rate <= 100:
        errors.add('tax_rate', 'must be between 0 and 100')


@dataclass
class InventoryItemCreate:
    """New catalog item; quantity is the opening stock"""

    name: Optional[str] = None
    unit_price: Optional[int] = None
    description: Optional[str] = None
    tax_rate: Optional[float] = None
    hsn_or_sac_code: Optional[str] = None
    quantity: int = 0

    def validate(self) -> None:
        errors = FieldErrors()
        if self.name is None:
            errors.add('name', 'is required')
        if self.unit_price is None:
            errors.add('unit_price', 'is required')
        _check_catalog_fields(self, errors)
        if not 0 <= self.quantity <= MAX_QUANTITY:
            errors.add('quantity', f'must be between 0 and {MAX_QUANTITY}')
        errors.raise_if_any("Invalid inventory item data")

    @classmethod
    def from_payload(cls, payload) -> "InventoryItemCreate":
        payload = require_object(payload)
        errors = FieldErrors()
        request = cls(
            name=read_text(payload, 'name', errors, NAME_MAX_LENGTH),
            unit_price=read_int(payload, 'unit_price', errors),
            description=read_text(payload, 'description', errors, DESCRIPTION_MAX_LENGTH),
            tax_rate=read_number(payload, 'tax_rate', errors),
            hsn_or_sac_code=read_text(payload, 'hsn_or_sac_code', errors, HSN_MAX_LENGTH),
            quantity=read_int(payload, 'quantity', errors) or 0,
        )
        errors.raise_if_any("Invalid inventory item data")
        request.validate()
        return request


@dataclass
class InventoryItemPatch:
    """
    Partial catalog update. quantity_change is a signed stock adjustment
    (restock or write-off), applied relative to the current quantity.
    """

    name: Optional[str] = None
    unit_price: Optional[int] = None
    description: Optional[str] = None
    tax_rate: Optional[float] = None
    hsn_or_sac_code: Optional[str] = None
    quantity_change: Optional[int] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def validate(self) -> None:
        errors = FieldErrors()
        if self.is_empty():
            errors.add('body', 'at least one field must be provided')
        _check_catalog_fields(self, errors)
        if self.quantity_change is not None and (
                self.quantity_change == 0 or abs(self.quantity_change) > MAX_QUANTITY):
            errors.add('quantity_change', f'must be a non-zero integer between -{MAX_QUANTITY} and {MAX_QUANTITY}')
        errors.raise_if_any("Invalid inventory item data")

    @classmethod
    def from_payload(cls, payload) -> "InventoryItemPatch":
        payload = require_object(payload)
        errors = FieldErrors()
        request = cls(
            name=read_text(payload, 'name', errors, NAME_MAX_LENGTH),
            unit_price=read_int(payload, 'unit_price', errors),
            description=read_text(payload, 'description', errors, DESCRIPTION_MAX_LENGTH),
            tax_rate=read_number(payload, 'tax_rate', errors),
            hsn_or_sac_code=read_text(payload, 'hsn_or_sac_code', errors, HSN_MAX_LENGTH),
            quantity_change=read_int(payload, 'quantity_change', errors),
        )
        errors.raise_if_any("Invalid inventory item data")
        request.validate()
        return request
