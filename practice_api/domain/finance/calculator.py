"""Line item and document totals, payment status derivation"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional, Union

from ...errors import ValidationError
from ...models import PaymentStatus

CENT = Decimal("0.01")
# Scales of the stored item columns; totals are computed from values at these scales
QUANTITY_STEP = Decimal("0.001")
RATE_STEP = Decimal("0.0001")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Optional[Number], default: str = "0") -> Decimal:
    if value is None:
        return Decimal(default)
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.16 from turning into 0.1600000000000000033...
    return Decimal(str(value))


def money(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def quantity_value(value: Number) -> Decimal:
    return to_decimal(value).quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)


def rate_value(value: Number) -> Decimal:
    return to_decimal(value).quantize(RATE_STEP, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineTotals:
    subtotal: Decimal
    tax: Decimal


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def line_totals(
    quantity: Number, unit_price: Number, discount_rate: Number = 0, tax_rate: Number = 0
) -> LineTotals:
    """
    subtotal = quantity * unit_price * (1 - discount_rate)
    tax = subtotal * tax_rate

    Inputs are first rounded to the scale their columns store, so totals
    recomputed from saved items match the ones computed at creation. Both
    results are rounded to cents before documents sum them.
    """
    quantity = quantity_value(quantity)
    unit_price = money(unit_price)
    discount_rate = rate_value(discount_rate)
    tax_rate = rate_value(tax_rate)

    if quantity < 0:
        raise ValidationError("Quantity cannot be negative", field="quantity")
    if unit_price < 0:
        raise ValidationError("Unit price cannot be negative", field="unitPrice")
    if not Decimal(0) <= discount_rate <= Decimal(1):
        raise ValidationError("Discount rate must be between 0 and 1", field="discountRate")
    if tax_rate < 0:
        raise ValidationError("Tax rate cannot be negative", field="taxRate")

    subtotal = money(quantity * unit_price * (Decimal(1) - discount_rate))
    return LineTotals(subtotal=subtotal, tax=money(subtotal * tax_rate))


def _field(item: Any, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def document_totals(items: Iterable[Any]) -> DocumentTotals:
    """Sum per-line subtotals and taxes; items may be dicts or objects with snake_case fields"""
    subtotal = Decimal("0.00")
    tax = Decimal("0.00")
    for item in items:
        line = line_totals(
            _field(item, "quantity"),
            _field(item, "unit_price"),
            _field(item, "discount_rate", 0),
            _field(item, "tax_rate", 0),
        )
        subtotal += line.subtotal
        tax += line.tax
    return DocumentTotals(subtotal=subtotal, tax=tax, total=subtotal + tax)


def derive_payment_status(amount_paid: Number, total: Number) -> PaymentStatus:
    paid = to_decimal(amount_paid)
    if paid < 0:
        raise ValidationError("Amount paid cannot be negative", field="amountPaid")
    if paid == 0:
        return PaymentStatus.PENDING
    if paid >= to_decimal(total):
        return PaymentStatus.PAID
    return PaymentStatus.PARTIAL
