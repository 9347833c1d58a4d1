from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.types import JSON

from invoicing.db import Base

Money = Numeric(14, 2)


class CustomerORM(Base):
    __tablename__ = "customers"
    __table_args__ = (UniqueConstraint("name", name="uq_customers_name"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    client_email = Column(String, nullable=False, default="")
    street_address = Column(String, nullable=False, default="")
    city = Column(String, nullable=False, default="")
    post_code = Column(String, nullable=False, default="")
    country = Column(String, nullable=False, default="")
    gstin = Column(String, nullable=False, default="")

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class InvoiceORM(Base):
    __tablename__ = "invoices"

    id = Column(String, primary_key=True)
    client_name = Column(String, nullable=False, index=True)
    invoice_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="pending")
    items = Column(JSON, nullable=False)
    bill_from = Column(JSON, nullable=False)
    bill_to = Column(JSON, nullable=False)
    tax_mode = Column(String, nullable=False, default="auto")
    tax_percent = Column(Numeric(7, 4), nullable=False)
    subtotal = Column(Money, nullable=False)
    tax_amount = Column(Money, nullable=False)
    total = Column(Money, nullable=False)
    project_description = Column(Text, nullable=True)
    terms_of_payment = Column(String, nullable=True)
    suppliers_ref = Column(String, nullable=True)
    other_ref = Column(String, nullable=True)
    hsn = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class LedgerEntryORM(Base):
    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    # Weak back-reference; invoice deletion removes the entry explicitly.
    invoice_id = Column(String, nullable=True, index=True)
    entry_date = Column(Date, nullable=False, index=True)
    particulars = Column(String, nullable=False)
    debit = Column(Money, nullable=False, default=0)
    credit = Column(Money, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
