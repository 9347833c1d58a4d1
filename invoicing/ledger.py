from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from invoicing.errors import ValidationError
from invoicing.models import (
    OPENING_BALANCE,
    CustomerBalance,
    DecoratedEntry,
    LedgerEntry,
    LedgerTotals,
    LedgerView,
)
from invoicing.tax import round2

ZERO = Decimal("0")


def format_amount(value: Decimal) -> str:
    """Two decimals with thousands separators, e.g. ``1,234.50``."""
    return f"{round2(value):,.2f}"


def format_date(value: date) -> str:
    return value.strftime("%d.%m.%Y")


def is_opening_entry(entry: LedgerEntry) -> bool:
    return entry.particulars == OPENING_BALANCE


def materialize(
    raw_entries: Sequence[LedgerEntry],
    customer_id: Optional[int] = None,
    financial_year: Optional[str] = None,
) -> LedgerView:
    """Fold chronologically ordered entries into a running-balance view.

    Entries are processed once, in the order given; the input is not
    reordered or mutated. An opening-balance row, if present, must be first
    and seeds the balance.
    """
    decorated: List[DecoratedEntry] = []
    balance = ZERO
    total_debit = ZERO
    total_credit = ZERO
    opening = ZERO

    for idx, entry in enumerate(raw_entries):
        if is_opening_entry(entry):
            if idx != 0:
                raise ValidationError(f"Opening balance row must be the first entry, found at position {idx + 1}.")
            opening = entry.debit - entry.credit
        balance = balance + entry.debit - entry.credit
        total_debit += entry.debit
        total_credit += entry.credit
        decorated.append(
            DecoratedEntry(
                **entry.model_dump(),
                s_no=idx + 1,
                balance=balance,
                debit_display=format_amount(entry.debit) if entry.debit else "",
                credit_display=format_amount(entry.credit) if entry.credit else "",
                balance_display=format_amount(balance),
                date_display=format_date(entry.entry_date),
            )
        )

    totals = LedgerTotals(
        total_debit=total_debit,
        total_credit=total_credit,
        opening_balance=opening,
        final_balance=balance,
    )
    return LedgerView(customer_id=customer_id, financial_year=financial_year, entries=decorated, totals=totals)


def carried_balance(prior_entries: Iterable[LedgerEntry]) -> Decimal:
    return sum((e.debit - e.credit for e in prior_entries), ZERO)


def opening_balance_entry(customer_id: int, year_start: date, prior_entries: Iterable[LedgerEntry]) -> LedgerEntry:
    """Synthetic opening row carrying the balance of everything before ``year_start``."""
    carried = carried_balance(prior_entries)
    return LedgerEntry(
        id=None,
        customer_id=customer_id,
        entry_date=year_start,
        particulars=OPENING_BALANCE,
        debit=carried if carried > 0 else ZERO,
        credit=-carried if carried < 0 else ZERO,
    )


def customer_balance(customer_id: int, name: str, view: LedgerView) -> CustomerBalance:
    totals = view.totals
    return CustomerBalance(
        customer_id=customer_id,
        name=name,
        opening_balance=totals.opening_balance,
        total_debit=totals.total_debit - max(totals.opening_balance, ZERO),
        total_credit=totals.total_credit - max(-totals.opening_balance, ZERO),
        balance=totals.final_balance,
    )


__all__ = [
    "format_amount",
    "format_date",
    "is_opening_entry",
    "materialize",
    "carried_balance",
    "opening_balance_entry",
    "customer_balance",
]
