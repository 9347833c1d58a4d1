import random
from datetime import date, timedelta
from decimal import Decimal

import pytest

from invoicing.errors import ValidationError
from invoicing.ledger import carried_balance, customer_balance, format_amount, materialize, opening_balance_entry
from invoicing.models import OPENING_BALANCE, LedgerEntry


def _entry(idx, debit="0", credit="0", particulars=None, day=None):
    return LedgerEntry(
        id=idx,
        customer_id=1,
        entry_date=day or date(2024, 4, 1) + timedelta(days=idx),
        particulars=particulars or f"Entry {idx}",
        debit=Decimal(debit),
        credit=Decimal(credit),
    )


def _generate_dataset(rng: random.Random, with_opening: bool):
    rows = []
    if with_opening:
        amount = Decimal(rng.randint(-50000, 50000)) / 100
        rows.append(
            LedgerEntry(
                customer_id=1,
                entry_date=date(2024, 4, 1),
                particulars=OPENING_BALANCE,
                debit=amount if amount > 0 else Decimal("0"),
                credit=-amount if amount < 0 else Decimal("0"),
            )
        )
    for idx in range(rng.randint(0, 80)):
        amount = Decimal(rng.randint(1, 10_000_000)) / 100
        if rng.random() < 0.5:
            rows.append(_entry(idx + 1, debit=amount))
        else:
            rows.append(_entry(idx + 1, credit=amount))
    return rows


def test_running_balance_scenario():
    rows = [_entry(1, debit="1000"), _entry(2, credit="400"), _entry(3, debit="200")]
    view = materialize(rows)
    assert [e.balance for e in view.entries] == [Decimal("1000"), Decimal("600"), Decimal("800")]
    assert view.totals.total_debit == Decimal("1200")
    assert view.totals.total_credit == Decimal("400")
    assert view.totals.final_balance == Decimal("800")
    assert view.totals.opening_balance == Decimal("0")


def test_display_strings_and_serial_numbers():
    rows = [_entry(1, debit="1234567.5"), _entry(2, credit="0.25")]
    view = materialize(rows)
    first, second = view.entries
    assert first.s_no == 1 and second.s_no == 2
    assert first.debit_display == "1,234,567.50"
    assert first.credit_display == ""
    assert second.credit_display == "0.25"
    assert second.balance_display == "1,234,567.25"
    assert first.date_display == "02.04.2024"


def test_opening_row_seeds_balance():
    opening = LedgerEntry(customer_id=1, entry_date=date(2024, 4, 1), particulars=OPENING_BALANCE, credit=Decimal("300"))
    view = materialize([opening, _entry(1, debit="500")])
    assert view.entries[0].balance == Decimal("-300")
    assert view.totals.opening_balance == Decimal("-300")
    assert view.totals.final_balance == Decimal("200")


def test_opening_row_must_be_first():
    opening = LedgerEntry(customer_id=1, entry_date=date(2024, 4, 1), particulars=OPENING_BALANCE)
    with pytest.raises(ValidationError):
        materialize([_entry(1, debit="5"), opening])


def test_empty_ledger():
    view = materialize([])
    assert view.entries == []
    assert view.totals.final_balance == Decimal("0")


def test_input_is_not_mutated():
    rows = [_entry(1, debit="10"), _entry(2, credit="4")]
    before = [r.model_dump() for r in rows]
    materialize(rows)
    assert [r.model_dump() for r in rows] == before


@pytest.mark.parametrize("seed", range(40))
def test_final_balance_equals_opening_plus_movements(seed):
    rng = random.Random(seed)
    rows = _generate_dataset(rng, with_opening=seed % 2 == 0)
    view = materialize(rows)

    movements = [r for r in rows if r.particulars != OPENING_BALANCE]
    expected = view.totals.opening_balance + sum((r.debit for r in movements), Decimal("0")) - sum(
        (r.credit for r in movements), Decimal("0")
    )
    assert view.totals.final_balance == expected
    assert view.totals.final_balance == view.totals.total_debit - view.totals.total_credit
    if rows:
        assert view.entries[-1].balance == view.totals.final_balance


def test_opening_balance_entry_from_prior_years():
    prior = [_entry(1, debit="1000", day=date(2023, 5, 1)), _entry(2, credit="250", day=date(2024, 1, 3))]
    opening = opening_balance_entry(7, date(2024, 4, 1), prior)
    assert opening.particulars == OPENING_BALANCE
    assert opening.entry_date == date(2024, 4, 1)
    assert opening.debit == Decimal("750") and opening.credit == Decimal("0")

    in_credit = opening_balance_entry(7, date(2024, 4, 1), [_entry(1, credit="90")])
    assert in_credit.debit == Decimal("0") and in_credit.credit == Decimal("90")
    assert carried_balance([]) == Decimal("0")


def test_customer_balance_excludes_opening_from_movements():
    opening = LedgerEntry(customer_id=3, entry_date=date(2024, 4, 1), particulars=OPENING_BALANCE, debit=Decimal("100"))
    view = materialize([opening, _entry(1, debit="40"), _entry(2, credit="15")])
    summary = customer_balance(3, "Acme", view)
    assert summary.opening_balance == Decimal("100")
    assert summary.total_debit == Decimal("40")
    assert summary.total_credit == Decimal("15")
    assert summary.balance == Decimal("125")


def test_format_amount_negative():
    assert format_amount(Decimal("-1234.5")) == "-1,234.50"
