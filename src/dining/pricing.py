"""Cart pricing: subtotal, tax and grand total.

Pure functions over a quantity mapping and a catalog snapshot. Amounts are
``Decimal`` throughout; ``PriceBreakdown.rounded()`` is the only place
rounding happens. The rounded total is the sum of the rounded subtotal and
the rounded tax, so the parts always add up to the total shown.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping

CENT = Decimal("0.01")
DEFAULT_TAX_RATE = Decimal("0.08")


def to_decimal(value: Any) -> Decimal:
    """Convert a stored amount (float, int, str or Decimal) without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    tax: Decimal
    total: Decimal

    def rounded(self) -> "PriceBreakdown":
        """Amounts for display and storage, in currency minor units."""
        subtotal = self.subtotal.quantize(CENT, rounding=ROUND_HALF_UP)
        tax = self.tax.quantize(CENT, rounding=ROUND_HALF_UP)
        return PriceBreakdown(subtotal=subtotal, tax=tax, total=subtotal + tax)

    def as_dict(self) -> dict:
        return {"subtotal": float(self.subtotal), "tax": float(self.tax), "total": float(self.total)}


def line_total(unit_price: Any, quantity: int) -> Decimal:
    return to_decimal(unit_price) * quantity


def price_cart(quantities: Mapping[str, int], catalog: Mapping[str, Any], tax_rate: Any = DEFAULT_TAX_RATE) -> PriceBreakdown:
    """Price a cart against a catalog snapshot.

    ``catalog`` maps item identifiers to anything with a ``price`` attribute.
    Identifiers missing from the catalog (deleted or unavailable items still
    sitting in a cart) contribute nothing.
    """
    subtotal = Decimal("0")
    for item_id, quantity in quantities.items():
        item = catalog.get(item_id)
        if item is None or quantity <= 0:
            continue
        subtotal += line_total(item.price, quantity)

    tax = subtotal * to_decimal(tax_rate)
    return PriceBreakdown(subtotal=subtotal, tax=tax, total=subtotal + tax)
