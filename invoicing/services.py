"""Application layer: invoice and ledger workflows over the record store.

The pure core (tax, numbering, ledger, policy, pagination) does the
calculations; this module sequences store calls around it and turns a
half-finished invoice cascade into a :class:`PartialFailureError`.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from invoicing import store
from invoicing.config import get_settings
from invoicing.errors import NotFoundError, PartialFailureError, PolicyViolation, ValidationError
from invoicing.ledger import customer_balance, materialize, opening_balance_entry
from invoicing.models import Customer, CustomerBalance, Invoice, LedgerEntry, LedgerView, Statement
from invoicing.numbering import financial_year, financial_year_bounds, next_invoice_id
from invoicing.pagination import paginate
from invoicing.policy import (
    build_manual_entry,
    build_payment,
    ensure_deletable,
    ensure_editable,
    invoice_particulars,
)
from invoicing.schemas import CustomerCreate, InvoiceDraft, LedgerEntryRequest
from invoicing.tax import compute_totals, is_valid_item, round2

logger = logging.getLogger(__name__)


def _validate_draft(draft: InvoiceDraft) -> None:
    if not draft.client_name or not draft.client_name.strip():
        raise ValidationError("Client name is required.")
    if draft.invoice_date is None:
        raise ValidationError("Invoice date is required.")
    if not draft.items or not all(is_valid_item(item) for item in draft.items):
        raise ValidationError("At least one valid item is required (name, positive quantity, and non-negative rate).")
    if draft.bill_from is None or not draft.bill_from.name or not draft.bill_from.street_address:
        raise ValidationError("Bill From name and street address are required.")
    if draft.bill_to is None or not draft.bill_to.street_address:
        raise ValidationError("Bill To street address is required.")


def _build_invoice(invoice_id: str, draft: InvoiceDraft, status: str = "pending") -> Invoice:
    _validate_draft(draft)
    totals = compute_totals(draft.items, draft.tax_mode, draft.tax_percent)
    # Money columns hold 2dp; the total is derived from the rounded subtotal.
    subtotal = round2(totals.subtotal)
    return Invoice(
        id=invoice_id,
        invoice_date=draft.invoice_date,
        client_name=draft.client_name.strip(),
        bill_from=draft.bill_from.model_copy(),
        bill_to=draft.bill_to.model_copy(),
        items=list(draft.items),
        tax_mode=draft.tax_mode,
        tax_percent=totals.tax_percent,
        subtotal=subtotal,
        tax_amount=totals.tax_amount,
        total=subtotal + totals.tax_amount,
        status=status,
        project_description=draft.project_description,
        terms_of_payment=draft.terms_of_payment,
        suppliers_ref=draft.suppliers_ref,
        other_ref=draft.other_ref,
        hsn=draft.hsn,
    )


def _invoice_entry(invoice: Invoice, customer_id: int) -> LedgerEntry:
    return LedgerEntry(
        customer_id=customer_id,
        entry_date=invoice.invoice_date,
        particulars=invoice_particulars(invoice.id),
        debit=invoice.total,
        linked_invoice_id=invoice.id,
    )


# --- invoices --------------------------------------------------------------


def create_invoice(db: Session, draft: InvoiceDraft, today: Optional[date] = None) -> Invoice:
    """Number, price and save an invoice, then post its debit to the client's ledger."""
    settings = get_settings()
    fy = financial_year(today, settings["fy_start_month"])
    invoice_id = next_invoice_id(
        store.list_invoice_ids_in_year(db, fy),
        today=today,
        org_prefix=settings["invoice_prefix"],
        start_month=settings["fy_start_month"],
    )
    invoice = store.save_invoice(db, _build_invoice(invoice_id, draft))
    logger.info("Created invoice %s for %s (total %s)", invoice.id, invoice.client_name, invoice.total)

    try:
        customer = store.find_or_create_customer(db, invoice.client_name)
        store.create_ledger_entry(db, _invoice_entry(invoice, customer.id))
    except Exception as exc:
        logger.exception("Invoice %s saved but its ledger entry could not be posted", invoice.id)
        raise PartialFailureError(
            f"Invoice {invoice.id} was saved but its ledger entry could not be posted: {exc}",
            completed="save_invoice",
            failed="create_ledger_entry",
            ref=invoice.id,
        ) from exc
    return invoice


def update_invoice(db: Session, invoice_id: str, draft: InvoiceDraft) -> Invoice:
    existing = store.get_invoice(db, invoice_id)
    if existing.status == "paid":
        raise PolicyViolation(f"Invoice {invoice_id} is paid and can no longer be edited.")

    invoice = store.update_invoice(db, _build_invoice(invoice_id, draft, status=existing.status))
    try:
        customer = store.find_or_create_customer(db, invoice.client_name)
        linked = store.get_ledger_entry_for_invoice(db, invoice_id)
        if linked is None:
            logger.warning("Invoice %s had no ledger entry; posting a new one", invoice_id)
            store.create_ledger_entry(db, _invoice_entry(invoice, customer.id))
        else:
            store.update_ledger_entry(
                db,
                linked.id,
                {"customer_id": customer.id, "entry_date": invoice.invoice_date, "debit": invoice.total},
            )
    except Exception as exc:
        logger.exception("Invoice %s updated but its ledger entry was not", invoice_id)
        raise PartialFailureError(
            f"Invoice {invoice_id} was updated but its ledger entry could not be synced: {exc}",
            completed="update_invoice",
            failed="update_ledger_entry",
            ref=invoice_id,
        ) from exc
    logger.info("Updated invoice %s (total %s)", invoice.id, invoice.total)
    return invoice


def delete_invoice(db: Session, invoice_id: str) -> None:
    """Delete an invoice and then its linked ledger entry.

    The two deletions are separate store calls; if the second fails the
    invoice is already gone, which is reported as a partial failure.
    """
    store.delete_invoice(db, invoice_id)
    logger.info("Deleted invoice %s", invoice_id)
    try:
        removed = store.delete_ledger_entries_for_invoice(db, invoice_id)
    except Exception as exc:
        logger.exception("Invoice %s deleted but its ledger entry was not", invoice_id)
        raise PartialFailureError(
            f"Invoice {invoice_id} was deleted but its ledger entry could not be removed: {exc}",
            completed="delete_invoice",
            failed="delete_ledger_entry",
            ref=invoice_id,
        ) from exc
    if not removed:
        logger.warning("Invoice %s had no linked ledger entry", invoice_id)


def mark_invoice_paid(db: Session, invoice_id: str) -> Invoice:
    return store.set_invoice_status(db, invoice_id, "paid")


# --- ledger ----------------------------------------------------------------


def require_customer(db: Session, name: str) -> Customer:
    customer = store.get_customer_by_name(db, name)
    if customer is None:
        raise NotFoundError(f"Customer {name!r} not found.")
    return customer


def _entry_from_request(customer_id: int, payload: LedgerEntryRequest) -> LedgerEntry:
    if payload.is_payment:
        return build_payment(customer_id, payload.entry_date, payload.amount, payload.method)
    if payload.particulars is not None:
        return build_manual_entry(customer_id, payload.entry_date, payload.particulars, payload.dr, payload.cr)
    raise ValidationError("Invalid request body. Missing 'method' or 'particulars'.")


def _post(db: Session, customer: Customer, entry: LedgerEntry) -> LedgerEntry:
    saved = store.create_ledger_entry(db, entry)
    logger.info("Recorded ledger entry %s for %s: %s", saved.id, customer.name, saved.particulars)
    return saved


def record_payment(
    db: Session, customer_name: str, entry_date: Optional[date], amount: object, method: Optional[str] = None
) -> LedgerEntry:
    customer = require_customer(db, customer_name)
    return _post(db, customer, build_payment(customer.id, entry_date, amount, method))


def record_manual_entry(
    db: Session,
    customer_name: str,
    entry_date: Optional[date],
    particulars: Optional[str],
    debit: object = None,
    credit: object = None,
) -> LedgerEntry:
    customer = require_customer(db, customer_name)
    return _post(db, customer, build_manual_entry(customer.id, entry_date, particulars, debit, credit))


def record_ledger_entry(db: Session, customer_name: str, payload: LedgerEntryRequest) -> LedgerEntry:
    """Dispatch a request body to :func:`record_payment` or :func:`record_manual_entry`."""
    if payload.is_payment:
        return record_payment(db, customer_name, payload.entry_date, payload.amount, payload.method)
    if payload.particulars is not None:
        return record_manual_entry(db, customer_name, payload.entry_date, payload.particulars, payload.dr, payload.cr)
    require_customer(db, customer_name)
    raise ValidationError("Invalid request body. Missing 'method' or 'particulars'.")


def edit_ledger_entry(db: Session, entry_id: int, payload: LedgerEntryRequest) -> LedgerEntry:
    existing = store.get_ledger_entry(db, entry_id)
    ensure_editable(existing)
    replacement = _entry_from_request(existing.customer_id, payload)
    return store.update_ledger_entry(
        db,
        entry_id,
        {
            "entry_date": replacement.entry_date,
            "particulars": replacement.particulars,
            "debit": replacement.debit,
            "credit": replacement.credit,
        },
    )


def remove_ledger_entry(db: Session, entry_id: int) -> None:
    existing = store.get_ledger_entry(db, entry_id)
    ensure_deletable(existing)
    store.delete_ledger_entry(db, entry_id)
    logger.info("Deleted ledger entry %s (%s)", entry_id, existing.particulars)


def get_ledger_view(db: Session, customer: Customer, fy: Optional[str] = None) -> LedgerView:
    """Opening row plus the year's entries, folded into running balances.

    A customer with neither a carried balance nor activity in the year gets
    an empty view.
    """
    settings = get_settings()
    fy = fy or financial_year(start_month=settings["fy_start_month"])
    start, _ = financial_year_bounds(fy, settings["fy_start_month"])
    opening = opening_balance_entry(customer.id, start, store.list_ledger_entries_before(db, customer.id, start))
    entries = store.list_ledger_entries(db, customer.id, fy, settings["fy_start_month"])
    if not entries and not (opening.debit or opening.credit):
        return materialize([], customer_id=customer.id, financial_year=fy)
    return materialize([opening, *entries], customer_id=customer.id, financial_year=fy)


def get_statement(db: Session, customer_name: str, fy: Optional[str] = None, page_size: Optional[int] = None) -> Statement:
    settings = get_settings()
    customer = require_customer(db, customer_name)
    view = get_ledger_view(db, customer, fy)
    pages = paginate(view.entries, settings["page_size"] if page_size is None else page_size)
    return Statement(customer=customer, financial_year=view.financial_year, view=view, pages=pages)


def list_customer_balances(db: Session, fy: Optional[str] = None) -> List[CustomerBalance]:
    return [customer_balance(c.id, c.name, get_ledger_view(db, c, fy)) for c in store.list_customers(db)]


# --- customers -------------------------------------------------------------


def update_customer(db: Session, customer_id: int, payload: CustomerCreate) -> Customer:
    customer = store.update_customer(db, customer_id, **payload.model_dump())
    logger.info("Updated customer %s (%s)", customer.id, customer.name)
    return customer


def delete_customer(db: Session, customer_id: int) -> None:
    """Remove a customer together with every ledger entry posted to it.

    Invoices are kept; they carry their own bill-to snapshot.
    """
    removed = store.delete_customer(db, customer_id)
    logger.info("Deleted customer %s and %s ledger entries", customer_id, removed)


def list_item_suggestions(db: Session) -> List[str]:
    return store.list_item_names(db)
