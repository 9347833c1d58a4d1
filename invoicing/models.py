from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, computed_field

TaxMode = Literal["auto", "none", "manual"]
InvoiceStatus = Literal["pending", "paid"]

OPENING_BALANCE = "Opening Balance"


class Address(BaseModel):
    """Bill-from / bill-to snapshot copied into an invoice at creation time."""

    name: Optional[str] = None
    street_address: str = ""
    city: str = ""
    post_code: str = ""
    country: str = ""
    gstin: str = ""
    email: str = ""


class LineItem(BaseModel):
    """One billed line. ``total`` is always derived from quantity and rate."""

    model_config = {"frozen": True}

    name: str = ""
    quantity: int = 1
    rate: Decimal = Decimal("0")
    unit: str = "unit"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> Decimal:
        return self.quantity * self.rate

    @classmethod
    def clamped(cls, name: str, quantity: int, rate: Decimal | str | int, unit: str = "unit") -> "LineItem":
        """Build an item from form input, clamping quantity to >= 1 and rate to >= 0."""
        return cls(name=name, quantity=max(1, int(quantity)), rate=max(Decimal("0"), Decimal(str(rate))), unit=unit)

    def with_quantity(self, quantity: int) -> "LineItem":
        return LineItem.clamped(self.name, quantity, self.rate, self.unit)

    def with_rate(self, rate: Decimal | str | int) -> "LineItem":
        return LineItem.clamped(self.name, self.quantity, rate, self.unit)


class InvoiceTotals(BaseModel):
    subtotal: Decimal
    tax_percent: Decimal
    tax_amount: Decimal
    total: Decimal


class Invoice(BaseModel):
    """Tax invoice. Owns its line items and its address snapshots."""

    id: str
    invoice_date: date
    client_name: str
    bill_from: Address
    bill_to: Address
    items: List[LineItem] = Field(default_factory=list)
    tax_mode: TaxMode = "auto"
    tax_percent: Decimal = Decimal("18")
    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    status: InvoiceStatus = "pending"
    project_description: Optional[str] = None
    terms_of_payment: Optional[str] = None
    suppliers_ref: Optional[str] = None
    other_ref: Optional[str] = None
    hsn: Optional[str] = None


class LedgerEntry(BaseModel):
    """A dated line in a customer's running account."""

    id: Optional[int] = None  # None for the synthetic opening row
    customer_id: int
    entry_date: date
    particulars: str
    debit: Decimal = Field(default=Decimal("0"), ge=0)
    credit: Decimal = Field(default=Decimal("0"), ge=0)
    linked_invoice_id: Optional[str] = None


class DecoratedEntry(LedgerEntry):
    """Ledger entry plus its running balance and display strings."""

    s_no: int
    balance: Decimal
    debit_display: str = ""
    credit_display: str = ""
    balance_display: str = ""
    date_display: str = ""


class LedgerTotals(BaseModel):
    total_debit: Decimal = Decimal("0")
    total_credit: Decimal = Decimal("0")
    opening_balance: Decimal = Decimal("0")
    final_balance: Decimal = Decimal("0")


class LedgerView(BaseModel):
    customer_id: Optional[int] = None
    financial_year: Optional[str] = None
    entries: List[DecoratedEntry] = Field(default_factory=list)
    totals: LedgerTotals = Field(default_factory=LedgerTotals)


class Page(BaseModel):
    """One printable statement page."""

    index: int = Field(ge=0)
    entries: List[DecoratedEntry]
    is_first_page: bool
    is_last_page: bool


class Customer(BaseModel):
    id: int
    name: str
    client_email: str = ""
    street_address: str = ""
    city: str = ""
    post_code: str = ""
    country: str = ""
    gstin: str = ""


class Statement(BaseModel):
    """Ledger view of one customer-year split into printable pages."""

    customer: Customer
    financial_year: str
    view: LedgerView
    pages: List[Page] = Field(default_factory=list)


class CustomerBalance(BaseModel):
    customer_id: int
    name: str
    opening_balance: Decimal
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal


__all__ = [
    "TaxMode",
    "InvoiceStatus",
    "OPENING_BALANCE",
    "Address",
    "LineItem",
    "InvoiceTotals",
    "Invoice",
    "LedgerEntry",
    "DecoratedEntry",
    "LedgerTotals",
    "LedgerView",
    "Page",
    "Customer",
    "Statement",
    "CustomerBalance",
]
