"""SQLAlchemy-backed record store used by the invoicing services.

Every mutating function is a single request/response unit: it commits its
own work and raises :class:`NotFoundError` for ids it does not know.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from invoicing.config import DEFAULT_FY_START_MONTH
from invoicing.db_models import CustomerORM, InvoiceORM, LedgerEntryORM
from invoicing.errors import NotFoundError, ValidationError
from invoicing.models import Address, Customer, Invoice, LedgerEntry, LineItem
from invoicing.numbering import financial_year_bounds

CUSTOMER_FIELDS = ("client_email", "street_address", "city", "post_code", "country", "gstin")
ENTRY_PATCH_FIELDS = {"entry_date", "particulars", "debit", "credit", "customer_id"}


def _to_customer(row: CustomerORM) -> Customer:
    return Customer(id=row.id, name=row.name, **{f: getattr(row, f) or "" for f in CUSTOMER_FIELDS})


def _to_entry(row: LedgerEntryORM) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        customer_id=row.customer_id,
        entry_date=row.entry_date,
        particulars=row.particulars,
        debit=row.debit,
        credit=row.credit,
        linked_invoice_id=row.invoice_id,
    )


def _to_invoice(row: InvoiceORM) -> Invoice:
    return Invoice(
        id=row.id,
        invoice_date=row.invoice_date,
        client_name=row.client_name,
        bill_from=Address.model_validate(row.bill_from or {}),
        bill_to=Address.model_validate(row.bill_to or {}),
        items=[LineItem.model_validate(item) for item in row.items or []],
        tax_mode=row.tax_mode,
        tax_percent=row.tax_percent,
        subtotal=row.subtotal,
        tax_amount=row.tax_amount,
        total=row.total,
        status=row.status,
        project_description=row.project_description,
        terms_of_payment=row.terms_of_payment,
        suppliers_ref=row.suppliers_ref,
        other_ref=row.other_ref,
        hsn=row.hsn,
    )


def _invoice_columns(invoice: Invoice) -> Dict[str, Any]:
    data = invoice.model_dump(mode="json", exclude={"id", "items", "bill_from", "bill_to"})
    data.update(
        invoice_date=invoice.invoice_date,
        tax_percent=invoice.tax_percent,
        subtotal=invoice.subtotal,
        tax_amount=invoice.tax_amount,
        total=invoice.total,
        items=[item.model_dump(mode="json") for item in invoice.items],
        bill_from=invoice.bill_from.model_dump(mode="json"),
        bill_to=invoice.bill_to.model_dump(mode="json"),
    )
    return data


# --- customers -------------------------------------------------------------


def list_customers(db: Session) -> List[Customer]:
    return [_to_customer(row) for row in db.query(CustomerORM).order_by(CustomerORM.name).all()]


def get_customer(db: Session, customer_id: int) -> Customer:
    row = db.get(CustomerORM, customer_id)
    if not row:
        raise NotFoundError(f"Customer {customer_id} not found.")
    return _to_customer(row)


def get_customer_by_name(db: Session, name: str) -> Optional[Customer]:
    row = db.query(CustomerORM).filter(CustomerORM.name == name).first()
    return _to_customer(row) if row else None


def save_customer(db: Session, name: str, **fields: str) -> Customer:
    if not (name or "").strip():
        raise ValidationError("Customer name is required.")
    row = CustomerORM(name=name.strip(), **{f: fields.get(f) or "" for f in CUSTOMER_FIELDS})
    db.add(row)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError(f"Customer {name!r} already exists.") from exc
    db.refresh(row)
    return _to_customer(row)


def find_or_create_customer(db: Session, name: str) -> Customer:
    existing = get_customer_by_name(db, name)
    if existing:
        return existing
    return save_customer(db, name)


def update_customer(db: Session, customer_id: int, name: str, **fields: str) -> Customer:
    if not (name or "").strip():
        raise ValidationError("Customer name is required.")
    row = db.get(CustomerORM, customer_id)
    if not row:
        raise NotFoundError(f"Customer {customer_id} not found.")
    row.name = name.strip()
    for field in CUSTOMER_FIELDS:
        setattr(row, field, fields.get(field) or "")
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError(f"Customer {name!r} already exists.") from exc
    db.refresh(row)
    return _to_customer(row)


def delete_customer(db: Session, customer_id: int) -> int:
    """Delete a customer and its ledger entries in one commit; returns the entry count."""
    row = db.get(CustomerORM, customer_id)
    if not row:
        raise NotFoundError(f"Customer {customer_id} not found.")
    try:
        removed = db.query(LedgerEntryORM).filter(LedgerEntryORM.customer_id == customer_id).delete()
        db.delete(row)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return removed


# --- ledger entries --------------------------------------------------------


def list_ledger_entries(
    db: Session, customer_id: int, financial_year: str, start_month: int = DEFAULT_FY_START_MONTH
) -> List[LedgerEntry]:
    """Entries inside one financial year, ordered by date then creation order."""
    start, end = financial_year_bounds(financial_year, start_month)
    rows = (
        db.query(LedgerEntryORM)
        .filter(
            LedgerEntryORM.customer_id == customer_id,
            LedgerEntryORM.entry_date >= start,
            LedgerEntryORM.entry_date <= end,
        )
        .order_by(LedgerEntryORM.entry_date, LedgerEntryORM.id)
        .all()
    )
    return [_to_entry(row) for row in rows]


def list_ledger_entries_before(db: Session, customer_id: int, day: date) -> List[LedgerEntry]:
    rows = (
        db.query(LedgerEntryORM)
        .filter(LedgerEntryORM.customer_id == customer_id, LedgerEntryORM.entry_date < day)
        .order_by(LedgerEntryORM.entry_date, LedgerEntryORM.id)
        .all()
    )
    return [_to_entry(row) for row in rows]


def _entry_row(db: Session, entry_id: int) -> LedgerEntryORM:
    row = db.get(LedgerEntryORM, entry_id)
    if not row:
        raise NotFoundError(f"Ledger entry {entry_id} not found.")
    return row


def get_ledger_entry(db: Session, entry_id: int) -> LedgerEntry:
    return _to_entry(_entry_row(db, entry_id))


def get_ledger_entry_for_invoice(db: Session, invoice_id: str) -> Optional[LedgerEntry]:
    row = db.query(LedgerEntryORM).filter(LedgerEntryORM.invoice_id == invoice_id).first()
    return _to_entry(row) if row else None


def create_ledger_entry(db: Session, entry: LedgerEntry) -> LedgerEntry:
    row = LedgerEntryORM(
        customer_id=entry.customer_id,
        invoice_id=entry.linked_invoice_id,
        entry_date=entry.entry_date,
        particulars=entry.particulars,
        debit=entry.debit,
        credit=entry.credit,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return _to_entry(row)


def update_ledger_entry(db: Session, entry_id: int, patch: Mapping[str, Any]) -> LedgerEntry:
    row = _entry_row(db, entry_id)
    unknown = set(patch) - ENTRY_PATCH_FIELDS
    if unknown:
        raise ValidationError(f"Cannot update ledger entry fields: {', '.join(sorted(unknown))}")
    for field, value in patch.items():
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return _to_entry(row)


def delete_ledger_entry(db: Session, entry_id: int) -> None:
    row = _entry_row(db, entry_id)
    db.delete(row)
    db.commit()


def delete_ledger_entries_for_invoice(db: Session, invoice_id: str) -> int:
    deleted = db.query(LedgerEntryORM).filter(LedgerEntryORM.invoice_id == invoice_id).delete()
    db.commit()
    return deleted


# --- invoices --------------------------------------------------------------


def list_invoice_ids_in_year(db: Session, financial_year: str) -> List[str]:
    rows = db.query(InvoiceORM.id).filter(InvoiceORM.id.like(f"%/{financial_year}/%")).all()
    return [row[0] for row in rows]


def list_item_names(db: Session) -> List[str]:
    """Distinct trimmed item names across all saved invoices, sorted."""
    names = set()
    for (items,) in db.query(InvoiceORM.items).all():
        for item in items or []:
            name = item.get("name") if isinstance(item, dict) else None
            if isinstance(name, str) and name.strip():
                names.add(name.strip())
    return sorted(names)


def list_invoices(db: Session) -> List[Invoice]:
    rows = db.query(InvoiceORM).order_by(InvoiceORM.invoice_date, InvoiceORM.id).all()
    return [_to_invoice(row) for row in rows]


def _invoice_row(db: Session, invoice_id: str) -> InvoiceORM:
    row = db.get(InvoiceORM, invoice_id)
    if not row:
        raise NotFoundError(f"Invoice {invoice_id} not found.")
    return row


def get_invoice(db: Session, invoice_id: str) -> Invoice:
    return _to_invoice(_invoice_row(db, invoice_id))


def save_invoice(db: Session, invoice: Invoice) -> Invoice:
    row = InvoiceORM(id=invoice.id, **_invoice_columns(invoice))
    db.add(row)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError(f"A duplicate invoice id {invoice.id} was detected. Please try again.") from exc
    db.refresh(row)
    return _to_invoice(row)


def update_invoice(db: Session, invoice: Invoice) -> Invoice:
    row = _invoice_row(db, invoice.id)
    for field, value in _invoice_columns(invoice).items():
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return _to_invoice(row)


def set_invoice_status(db: Session, invoice_id: str, status: str) -> Invoice:
    row = _invoice_row(db, invoice_id)
    row.status = status
    db.commit()
    db.refresh(row)
    return _to_invoice(row)


def delete_invoice(db: Session, invoice_id: str) -> None:
    row = _invoice_row(db, invoice_id)
    db.delete(row)
    db.commit()
