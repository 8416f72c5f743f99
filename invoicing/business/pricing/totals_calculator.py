"""
Line-item pricing and document totals

All amounts are integer minor currency units. Line tax is rounded half-up to
the nearest minor unit; document tax is the sum of the rounded line taxes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Mapping, Optional

from sqlalchemy import select

from invoicing import db
from invoicing.business.core.errors import NotFoundError, ValidationError
from invoicing.data.inventory.inventory_item import InventoryItem
from invoicing.logger import get_logger

logger = get_logger("invoicing.business.pricing")

HUNDRED = Decimal(100)

# Largest document total a 64-bit amount column accepts with headroom
MAX_DOCUMENT_TOTAL = 10 ** 18


@dataclass(frozen=True)
class CatalogEntry:
    """Catalog defaults for one inventory item"""
    inventory_item_id: int
    unit_price: int
    tax_rate: Optional[float] = None
    hsn_or_sac_code: Optional[str] = None

    @classmethod
    def from_item(cls, item: InventoryItem) -> "CatalogEntry":
        return cls(item.id, item.unit_price, item.tax_rate, item.hsn_or_sac_code)


@dataclass(frozen=True)
class PricedLine:
    inventory_item_id: int
    quantity: int
    unit_price: int
    tax_rate: float
    amount: int
    line_tax: int
    hsn_or_sac_code: Optional[str] = None

    def as_row(self) -> dict:
        """Column values shared by sales order and invoice item rows"""
        return {
            'inventory_item_id': self.inventory_item_id,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'tax_rate': self.tax_rate,
            'amount': self.amount,
        }


@dataclass(frozen=True)
class PricedDocument:
    lines: List[PricedLine] = field(default_factory=list)
    sub_total: int = 0
    tax_amount: int = 0
    total: int = 0

    def totals(self) -> dict:
        return {'sub_total': self.sub_total, 'tax_amount': self.tax_amount, 'total': self.total}


def line_tax(amount: int, tax_rate: float) -> int:
    """round_half_up(amount * tax_rate / 100)"""
    value = Decimal(amount) * Decimal(str(tax_rate)) / HUNDRED
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def price_lines(lines: Iterable, catalog: Mapping[int, CatalogEntry]) -> PricedDocument:
    """
    Price request lines against catalog defaults. Pure; no database access.

    Args:
        lines: Objects with inventory_item_id, quantity and optional unit_price/tax_rate/hsn_or_sac_code
        catalog: CatalogEntry per inventory item id; every referenced id must be present

    Returns:
        PricedDocument with one PricedLine per input line, in input order

    Raises:
        ValidationError: If the document total exceeds MAX_DOCUMENT_TOTAL
    """
    priced = []
    for line in lines:
        entry = catalog[line.inventory_item_id]
        unit_price = line.unit_price if line.unit_price is not None else entry.unit_price
        if line.tax_rate is not None:
            tax_rate = line.tax_rate
        elif entry.tax_rate is not None:
            tax_rate = entry.tax_rate
        else:
            tax_rate = 0.0
        hsn = getattr(line, 'hsn_or_sac_code', None) or entry.hsn_or_sac_code

        amount = line.quantity * unit_price
        priced.append(PricedLine(
            inventory_item_id=line.inventory_item_id,
            quantity=line.quantity,
            unit_price=unit_price,
            tax_rate=float(tax_rate),
            amount=amount,
            line_tax=line_tax(amount, tax_rate),
            hsn_or_sac_code=hsn,
        ))

    sub_total = sum(p.amount for p in priced)
    tax_amount = sum(p.line_tax for p in priced)
    if sub_total + tax_amount > MAX_DOCUMENT_TOTAL:
        raise ValidationError(
            "Document total is too large",
            errors=[{'field': 'items', 'message': f'total must be at most {MAX_DOCUMENT_TOTAL}'}],
        )
    return PricedDocument(priced, sub_total, tax_amount, sub_total + tax_amount)


class TotalsCalculator:
    """Catalog-backed pricing: one batch lookup per document"""

    def load_catalog(self, tenant_id: int, item_ids: Iterable[int], session=None) -> Dict[int, CatalogEntry]:
        """
        Raises:
            NotFoundError: If any id does not belong to the tenant; errors lists every missing id
        """
        session = session or db.session
        wanted = set(item_ids)
        rows = session.execute(
            select(InventoryItem).where(
                InventoryItem.tenant_id == tenant_id,
                InventoryItem.id.in_(wanted),
            )
        ).scalars().all()
        catalog = {row.id: CatalogEntry.from_item(row) for row in rows}

        missing = sorted(wanted - set(catalog))
        if missing:
            logger.info(f"Pricing failed for tenant {tenant_id}: unknown inventory items {missing}")
            raise NotFoundError(
                "One or more inventory items not found",
                errors=[{'field': 'inventory_item_id', 'value': item_id, 'message': 'not found'}
                        for item_id in missing],
            )
        return catalog

    def calculate(self, tenant_id: int, lines: List, session=None) -> PricedDocument:
        catalog = self.load_catalog(tenant_id, (line.inventory_item_id for line in lines), session)
        document = price_lines(lines, catalog)
        logger.debug(
            f"Priced {len(document.lines)} lines for tenant {tenant_id}: "
            f"sub_total={document.sub_total} tax={document.tax_amount} total={document.total}"
        )
        return document
