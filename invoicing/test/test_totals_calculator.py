import pytest

from invoicing.business.core.errors import NotFoundError, ValidationError
from invoicing.business.core.requests import LineItemInput
from invoicing.business.pricing.totals_calculator import (
    MAX_DOCUMENT_TOTAL, CatalogEntry, TotalsCalculator, line_tax, price_lines,
)

CATALOG = {
    1: CatalogEntry(1, unit_price=1000, tax_rate=10, hsn_or_sac_code='7318'),
    2: CatalogEntry(2, unit_price=250, tax_rate=None),
    3: CatalogEntry(3, unit_price=1, tax_rate=10),
}


def test_catalog_defaults_are_used():
    document = price_lines([LineItemInput(1, 3)], CATALOG)

    line = document.lines[0]
    assert (line.unit_price, line.tax_rate, line.amount, line.line_tax) == (1000, 10.0, 3000, 300)
    assert line.hsn_or_sac_code == '7318'
    assert (document.sub_total, document.tax_amount, document.total) == (3000, 300, 3300)


def test_supplied_price_and_rate_override_catalog():
    document = price_lines([LineItemInput(1, 2, unit_price=1500, tax_rate=5)], CATALOG)
    assert document.lines[0].amount == 3000
    assert document.tax_amount == 150
    assert document.total == 3150


def test_missing_tax_rate_means_zero_tax():
    document = price_lines([LineItemInput(2, 4)], CATALOG)
    assert document.lines[0].tax_rate == 0.0
    assert document.totals() == {'sub_total': 1000, 'tax_amount': 0, 'total': 1000}


def test_line_tax_rounds_half_up():
    assert line_tax(5, 10) == 1       # 0.5
    assert line_tax(4, 10) == 0       # 0.4
    assert line_tax(1005, 18) == 181  # 180.9
    assert line_tax(15, 10) == 2      # 1.5
    assert line_tax(0, 18) == 0


def test_document_tax_is_sum_of_rounded_line_taxes():
    document = price_lines([LineItemInput(3, 5), LineItemInput(3, 5)], CATALOG)
    assert [line.line_tax for line in document.lines] == [1, 1]
    assert document.tax_amount == 2
    assert document.total == document.sub_total + document.tax_amount == 12


def test_lines_keep_input_order_and_repeats():
    document = price_lines([LineItemInput(2, 1), LineItemInput(1, 1), LineItemInput(2, 2)], CATALOG)
    assert [line.inventory_item_id for line in document.lines] == [2, 1, 2]
    assert document.sub_total == 250 + 1000 + 500


def test_calculate_uses_tenant_catalog(seed):
    document = TotalsCalculator().calculate(seed.tenant_id, [
        LineItemInput(seed.widget_id, 3),
        LineItemInput(seed.gadget_id, 2),
    ])
    assert document.sub_total == 3000 + 500
    assert document.tax_amount == 300
    assert document.total == 3800


def test_calculate_reports_every_missing_item(seed):
    with pytest.raises(NotFoundError) as exc:
        TotalsCalculator().calculate(seed.tenant_id, [
            LineItemInput(seed.widget_id, 1),
            LineItemInput(seed.foreign_item_id, 1),
            LineItemInput(99999, 1),
        ])
    missing = sorted(error['value'] for error in exc.value.errors)
    assert missing == sorted([seed.foreign_item_id, 99999])


def test_document_total_is_capped():
    catalog = {9: CatalogEntry(9, unit_price=10 ** 13, tax_rate=10)}
    with pytest.raises(ValidationError) as exc:
        price_lines([LineItemInput(9, 1_000_000)], catalog)
    assert exc.value.errors[0]['field'] == 'items'

    just_fits = price_lines([LineItemInput(9, 1)], {9: CatalogEntry(9, unit_price=MAX_DOCUMENT_TOTAL)})
    assert just_fits.total == MAX_DOCUMENT_TOTAL
