from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Tuple

from invoicing.errors import PolicyViolation, ValidationError
from invoicing.models import OPENING_BALANCE, LedgerEntry

INVOICE_PARTICULARS = re.compile(r"^BY BILL (\S+)")
PAYMENT_MARKER = "PAYMENT RECEIVED"
DEFAULT_PAYMENT_METHOD = "CASH"


class EntryKind(str, Enum):
    INVOICE_LINKED = "invoice_linked"
    PAYMENT = "payment"
    MANUAL_ADJUSTMENT = "manual_adjustment"
    OPENING_BALANCE = "opening_balance"


def invoice_particulars(invoice_id: str) -> str:
    return f"BY BILL {invoice_id}"


def payment_particulars(method: Optional[str]) -> str:
    label = (method or "").strip().upper() or DEFAULT_PAYMENT_METHOD
    return f"{PAYMENT_MARKER} {label}"


def classify(entry: LedgerEntry) -> EntryKind:
    particulars = entry.particulars or ""
    if particulars == OPENING_BALANCE:
        return EntryKind.OPENING_BALANCE
    if entry.linked_invoice_id or INVOICE_PARTICULARS.match(particulars):
        return EntryKind.INVOICE_LINKED
    if particulars.upper().startswith(PAYMENT_MARKER):
        return EntryKind.PAYMENT
    return EntryKind.MANUAL_ADJUSTMENT


def can_edit(entry: LedgerEntry) -> bool:
    return classify(entry) in (EntryKind.PAYMENT, EntryKind.MANUAL_ADJUSTMENT)


def can_delete(entry: LedgerEntry) -> bool:
    return classify(entry) in (EntryKind.PAYMENT, EntryKind.MANUAL_ADJUSTMENT)


def _violation(entry: LedgerEntry, action: str) -> PolicyViolation:
    kind = classify(entry)
    if kind is EntryKind.OPENING_BALANCE:
        return PolicyViolation(f"The opening balance row cannot be {action}.")
    return PolicyViolation(
        f"Entry '{entry.particulars}' is linked to an invoice and cannot be {action} from the ledger; "
        "change or delete the invoice instead."
    )


def ensure_editable(entry: LedgerEntry) -> None:
    if not can_edit(entry):
        raise _violation(entry, "edited")


def ensure_deletable(entry: LedgerEntry) -> None:
    if not can_delete(entry):
        raise _violation(entry, "deleted")


def _amount(value: object, label: str) -> Decimal:
    if value is None or str(value).strip() == "":
        return Decimal("0")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{label} must be a number, got {value!r}.") from exc
    if not amount.is_finite():
        raise ValidationError(f"{label} must be a finite number.")
    return amount


def validate_legs(debit: object, credit: object) -> Tuple[Decimal, Decimal]:
    """Check that an entry is either a charge or a receipt, never both or neither."""
    dr = _amount(debit, "Debit")
    cr = _amount(credit, "Credit")
    if dr < 0 or cr < 0:
        raise ValidationError("Amounts cannot be negative.")
    if dr > 0 and cr > 0:
        raise ValidationError("Entry cannot be both debit and credit.")
    if dr == 0 and cr == 0:
        raise ValidationError("Amount cannot be zero.")
    return dr, cr


def _ensure_free_particulars(particulars: str) -> None:
    if particulars == OPENING_BALANCE:
        raise PolicyViolation("The opening balance row is derived and cannot be entered manually.")
    if INVOICE_PARTICULARS.match(particulars):
        raise PolicyViolation("Invoice entries are posted by saving an invoice, not from the ledger.")


def build_payment(customer_id: int, entry_date: Optional[date], amount: object, method: Optional[str] = None) -> LedgerEntry:
    """Receipt entry: a credit of ``amount`` labelled ``PAYMENT RECEIVED <METHOD>``."""
    if entry_date is None:
        raise ValidationError("Payment date is required.")
    value = _amount(amount, "Amount")
    if value <= 0:
        raise ValidationError("Payment amount must be greater than zero.")
    return LedgerEntry(
        customer_id=customer_id,
        entry_date=entry_date,
        particulars=payment_particulars(method),
        debit=Decimal("0"),
        credit=value,
    )


def build_manual_entry(
    customer_id: int,
    entry_date: Optional[date],
    particulars: Optional[str],
    debit: object = None,
    credit: object = None,
) -> LedgerEntry:
    if entry_date is None or not (particulars or "").strip():
        raise ValidationError("Date and particulars are required.")
    text = particulars.strip()
    _ensure_free_particulars(text)
    dr, cr = validate_legs(debit, credit)
    return LedgerEntry(customer_id=customer_id, entry_date=entry_date, particulars=text, debit=dr, credit=cr)


__all__ = [
    "EntryKind",
    "invoice_particulars",
    "payment_particulars",
    "classify",
    "can_edit",
    "can_delete",
    "ensure_editable",
    "ensure_deletable",
    "validate_legs",
    "build_payment",
    "build_manual_entry",
]
