"""Tests for cart pricing: exact decimal arithmetic and the rounding rule."""

from dataclasses import dataclass
from decimal import Decimal

from dining.pricing import PriceBreakdown, line_total, price_cart, to_decimal


@dataclass
class _Item:
    price: float


CATALOG = {"item1": _Item(18.99), "item2": _Item(14.99)}


class TestPriceCart:
    def test_reference_cart(self):
        breakdown = price_cart({"item1": 2, "item2": 1}, CATALOG, Decimal("0.08"))
        assert breakdown.subtotal == Decimal("52.97")
        assert breakdown.tax == Decimal("4.2376")
        assert breakdown.total == Decimal("57.2076")

    def test_reference_cart_rounded(self):
        rounded = price_cart({"item1": 2, "item2": 1}, CATALOG, Decimal("0.08")).rounded()
        assert rounded.subtotal == Decimal("52.97")
        assert rounded.tax == Decimal("4.24")
        assert rounded.total == Decimal("57.21")

    def test_total_is_subtotal_plus_tax(self):
        breakdown = price_cart({"item1": 3, "item2": 7}, CATALOG, "0.0825")
        assert breakdown.total == breakdown.subtotal + breakdown.tax
        rounded = breakdown.rounded()
        assert rounded.total == rounded.subtotal + rounded.tax

    def test_empty_cart_prices_to_zero(self):
        breakdown = price_cart({}, CATALOG)
        assert breakdown.subtotal == 0
        assert breakdown.tax == 0
        assert breakdown.total == 0
        assert breakdown.total == breakdown.subtotal + breakdown.tax

    def test_unknown_items_contribute_nothing(self):
        breakdown = price_cart({"item1": 1, "deleted": 4}, CATALOG, Decimal("0.08"))
        assert breakdown.subtotal == Decimal("18.99")

    def test_non_positive_quantities_ignored(self):
        breakdown = price_cart({"item1": 0, "item2": -2}, CATALOG)
        assert breakdown.subtotal == 0

    def test_default_tax_rate(self):
        breakdown = price_cart({"item2": 1}, CATALOG)
        assert breakdown.tax == Decimal("14.99") * Decimal("0.08")

    def test_no_binary_float_noise(self):
        breakdown = price_cart({"a": 3}, {"a": _Item(0.1)}, Decimal("0"))
        assert breakdown.subtotal == Decimal("0.3")


class TestRounding:
    def test_half_up(self):
        rounded = PriceBreakdown(Decimal("10.005"), Decimal("0.125"), Decimal("10.130")).rounded()
        assert rounded.subtotal == Decimal("10.01")
        assert rounded.tax == Decimal("0.13")
        assert rounded.total == Decimal("10.14")

    def test_as_dict(self):
        breakdown = PriceBreakdown(Decimal("52.97"), Decimal("4.24"), Decimal("57.21"))
        assert breakdown.as_dict() == {"subtotal": 52.97, "tax": 4.24, "total": 57.21}


class TestHelpers:
    def test_line_total(self):
        assert line_total(18.99, 2) == Decimal("37.98")

    def test_to_decimal_passthrough(self):
        value = Decimal("1.10")
        assert to_decimal(value) is value

    def test_to_decimal_from_float(self):
        assert to_decimal(14.99) == Decimal("14.99")
