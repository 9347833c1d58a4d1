from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from invoicing.errors import ValidationError
from invoicing.models import InvoiceTotals, LineItem

AUTO_TAX_PERCENT = Decimal("18")
MONEY_QUANT = Decimal("0.01")
TAX_MODES = ("auto", "none", "manual")


def round2(value: Decimal) -> Decimal:
    return Decimal(value).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def is_valid_item(item: LineItem) -> bool:
    return bool(item.name and item.name.strip()) and item.quantity > 0 and item.rate >= 0


def resolve_tax_percent(tax_mode: str, manual_percent: object = None) -> Decimal:
    if tax_mode == "auto":
        return AUTO_TAX_PERCENT
    if tax_mode == "none":
        return Decimal("0")
    if tax_mode != "manual":
        raise ValidationError(f"Unknown tax mode: {tax_mode!r}. Expected one of {', '.join(TAX_MODES)}.")

    if manual_percent is None or isinstance(manual_percent, bool) or str(manual_percent).strip() == "":
        raise ValidationError("Manual tax percent is required when tax mode is 'manual'.")
    try:
        percent = Decimal(str(manual_percent).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Manual tax percent must be a number, got {manual_percent!r}.") from exc
    if not percent.is_finite():
        raise ValidationError("Manual tax percent must be a finite number.")
    if percent < 0:
        raise ValidationError("Manual tax percent cannot be negative.")
    return percent


def compute_totals(items: Iterable[LineItem], tax_mode: str = "auto", manual_percent: object = None) -> InvoiceTotals:
    """Derive subtotal, tax and grand total for a list of line items.

    Items failing :func:`is_valid_item` (blank rows still being edited) do not
    contribute; at least one valid item is required. The subtotal keeps full
    precision and only the tax amount is rounded to two places.
    """
    valid: List[LineItem] = [item for item in items if is_valid_item(item)]
    if not valid:
        raise ValidationError("At least one valid item is required (name, positive quantity, and non-negative rate).")
    tax_percent = resolve_tax_percent(tax_mode, manual_percent)

    subtotal = sum((item.total for item in valid), Decimal("0"))
    tax_amount = round2(subtotal * tax_percent / Decimal("100"))
    return InvoiceTotals(
        subtotal=subtotal,
        tax_percent=tax_percent,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
    )


def split_tax(tax_amount: Decimal, tax_percent: Decimal) -> Dict[str, Decimal]:
    """Central/state halves printed in the tax breakdown of an invoice."""
    half = Decimal(tax_amount) / 2
    return {
        "cgst": round2(half),
        "sgst": round2(Decimal(tax_amount) - round2(half)),
        "half_percent": Decimal(tax_percent) / 2,
    }


def format_percent(percent: Optional[Decimal]) -> str:
    value = Decimal(str(percent or 0))
    if value == value.to_integral_value():
        return str(value.to_integral_value())
    return str(round2(value))


__all__ = [
    "AUTO_TAX_PERCENT",
    "TAX_MODES",
    "round2",
    "is_valid_item",
    "resolve_tax_percent",
    "compute_totals",
    "split_tax",
    "format_percent",
]
