"""
Typed request structs shared by the sales order and invoice workflows

Routes build these from JSON bodies with from_payload(); workflows call
validate() again so the business layer can be driven without HTTP.
A field left as None means "not supplied".
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, List, Optional

from invoicing.business.core.errors import ValidationError

TEXT_MAX_LENGTH = 2000
HSN_MAX_LENGTH = 10

# Upper bounds keep every stored amount inside a 64-bit column and every
# id or document number inside a 32-bit one
MAX_QUANTITY = 1_000_000
MAX_UNIT_PRICE = 100_000_000_000
MAX_ID = 2_147_483_647


class FieldErrors:
    """Collects field errors so one ValidationError can report all of them"""

    def __init__(self):
        self.errors = []

    def add(self, field: str, message: str) -> None:
        self.errors.append({'field': field, 'message': message})

    def __bool__(self):
        return bool(self.errors)

    def raise_if_any(self, message: str = "Invalid request data") -> None:
        if self.errors:
            raise ValidationError(message, errors=self.errors)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def read_int(payload: dict, key: str, errors: FieldErrors, field: Optional[str] = None,
             minimum: Optional[int] = None) -> Optional[int]:
    """Read an optional integer; reports (and returns None for) wrong types"""
    value = payload.get(key)
    if value is None:
        return None
    field = field or key
    if not _is_int(value):
        errors.add(field, 'must be an integer')
        return None
    if minimum is not None and value < minimum:
        errors.add(field, f'must be at least {minimum}')
        return None
    return value


def read_number(payload: dict, key: str, errors: FieldErrors, field: Optional[str] = None) -> Optional[float]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        errors.add(field or key, 'must be a number')
        return None
    return float(value)


def read_text(payload: dict, key: str, errors: FieldErrors, max_length: int = TEXT_MAX_LENGTH) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        errors.add(key, 'must be a string')
        return None
    value = value.strip()
    if len(value) > max_length:
        errors.add(key, f'must be at most {max_length} characters')
        return None
    return value


def read_date(payload: dict, key: str, errors: FieldErrors) -> Optional[date]:
    """Accepts YYYY-MM-DD or a full ISO-8601 timestamp"""
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        errors.add(key, 'must be an ISO-8601 date string')
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
    except ValueError:
        errors.add(key, 'must be an ISO-8601 date string')
        return None


def require_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


@dataclass(frozen=True)
class LineItemInput:
    """One requested line; unit_price and tax_rate fall back to the catalog when absent"""

    inventory_item_id: int
    quantity: int
    unit_price: Optional[int] = None
    tax_rate: Optional[float] = None
    hsn_or_sac_code: Optional[str] = None

    def collect_errors(self, errors: FieldErrors, prefix: str) -> None:
        if not _is_int(self.inventory_item_id) or not 1 <= self.inventory_item_id <= MAX_ID:
            errors.add(f'{prefix}.inventory_item_id', 'must be a positive integer')
        if not _is_int(self.quantity) or self.quantity < 1:
            errors.add(f'{prefix}.quantity', 'must be a positive integer')
        elif self.quantity > MAX_QUANTITY:
            errors.add(f'{prefix}.quantity', f'must be at most {MAX_QUANTITY}')
        if self.unit_price is not None:
            if not _is_int(self.unit_price) or self.unit_price < 1:
                errors.add(f'{prefix}.unit_price', 'must be a positive integer amount')
            elif self.unit_price > MAX_UNIT_PRICE:
                errors.add(f'{prefix}.unit_price', f'must be at most {MAX_UNIT_PRICE}')
        if self.tax_rate is not None and not (0 <= self.tax_rate <= 100):
            errors.add(f'{prefix}.tax_rate', 'must be between 0 and 100')
        if self.hsn_or_sac_code is not None and len(self.hsn_or_sac_code) > HSN_MAX_LENGTH:
            errors.add(f'{prefix}.hsn_or_sac_code', f'must be at most {HSN_MAX_LENGTH} characters')

    @classmethod
    def from_payload(cls, raw: Any, errors: FieldErrors, prefix: str) -> Optional["LineItemInput"]:
        if not isinstance(raw, dict):
            errors.add(prefix, 'must be an object')
            return None
        before = len(errors.errors)
        item_id = read_int(raw, 'inventory_item_id', errors, f'{prefix}.inventory_item_id')
        quantity = read_int(raw, 'quantity', errors, f'{prefix}.quantity')
        unit_price = read_int(raw, 'unit_price', errors, f'{prefix}.unit_price')
        tax_rate = read_number(raw, 'tax_rate', errors, f'{prefix}.tax_rate')
        hsn = raw.get('hsn_or_sac_code')
        if hsn is not None and not isinstance(hsn, str):
            errors.add(f'{prefix}.hsn_or_sac_code', 'must be a string')
            hsn = None
        if item_id is None and 'inventory_item_id' not in raw:
            errors.add(f'{prefix}.inventory_item_id', 'is required')
        if quantity is None and 'quantity' not in raw:
            errors.add(f'{prefix}.quantity', 'is required')
        if len(errors.errors) > before:
            return None
        return cls(item_id, quantity, unit_price, tax_rate, hsn)


def read_line_items(payload: dict, errors: FieldErrors, key: str = 'items') -> Optional[List[LineItemInput]]:
    """Parse an optional list of line items; returns None when the key is absent"""
    raw = payload.get(key)
    if raw is None:
        return None
    if not isinstance(raw, list):
        errors.add(key, 'must be a list')
        return None
    lines = []
    for index, raw_line in enumerate(raw):
        line = LineItemInput.from_payload(raw_line, errors, f'{key}[{index}]')
        if line is not None:
            lines.append(line)
    return lines


def check_line_items(lines: Optional[List[LineItemInput]], errors: FieldErrors, required: bool,
                     key: str = 'items') -> None:
    if lines is None:
        if required:
            errors.add(key, 'is required')
        return
    if not lines:
        errors.add(key, 'must contain at least one item')
        return
    for index, line in enumerate(lines):
        line.collect_errors(errors, f'{key}[{index}]')


def check_id(errors: FieldErrors, field: str, value: Optional[int]) -> None:
    if value is not None and not 1 <= value <= MAX_ID:
        errors.add(field, 'must be a positive integer')


def check_text_length(errors: FieldErrors, field: str, value: Optional[str], max_length: int) -> None:
    if value is not None and len(value) > max_length:
        errors.add(field, f'must be at most {max_length} characters')
